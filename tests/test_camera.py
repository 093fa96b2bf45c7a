import numpy as np
import pytest

from superlaser.camera import INITIAL_POSE, Camera3D, CameraChoreographer, CameraPose
from superlaser.interpolation import ease_linear, ease_out_cubic


def _camera() -> Camera3D:
    return Camera3D(
        position=INITIAL_POSE.position,
        target=INITIAL_POSE.target,
        viewport_size=(800, 600),
    )


def test_animate_to_eases_toward_target() -> None:
    camera = _camera()
    choreographer = CameraChoreographer(camera)

    choreographer.animate_to((0.0, 30.0, 0.0), (0.0, 0.0, -100.0), 1000.0)
    choreographer.update(500.0)

    # ease_out_cubic(0.5) == 0.875
    assert camera.position == pytest.approx((0.0, 30.0, 12.5))
    assert camera.target == pytest.approx((0.0, 0.0, -87.5))
    assert choreographer.busy


def test_task_lands_exactly_and_completes_once() -> None:
    camera = _camera()
    choreographer = CameraChoreographer(camera)
    calls = []

    choreographer.animate_to(
        (1.5, 2.5, 3.5), (0.1, 0.2, 0.3), 300.0, on_complete=lambda: calls.append(1)
    )
    for _ in range(10):
        choreographer.update(100.0)

    assert camera.position == (1.5, 2.5, 3.5)
    assert camera.target == (0.1, 0.2, 0.3)
    assert calls == [1]
    assert not choreographer.busy


def test_zero_duration_completes_on_first_update() -> None:
    camera = _camera()
    choreographer = CameraChoreographer(camera, ease_linear)
    calls = []

    choreographer.animate_to((5.0, 5.0, 5.0), (0.0, 0.0, 0.0), 0.0, on_complete=lambda: calls.append(1))
    choreographer.update(0.0)

    assert camera.position == (5.0, 5.0, 5.0)
    assert calls == [1]


def test_overlapping_moves_newest_wins() -> None:
    camera = _camera()
    choreographer = CameraChoreographer(camera, ease_linear)

    choreographer.animate_to((100.0, 0.0, 0.0), (0.0, 0.0, 0.0), 1000.0)
    choreographer.update(500.0)
    second = choreographer.animate_to((0.0, 0.0, -100.0), (0.0, 0.0, -200.0), 1000.0)
    assert second.start == camera.pose()

    choreographer.update(600.0)

    assert camera.pose() == second.pose_at(0.6)
    assert camera.position != (100.0, 0.0, 0.0)
    assert choreographer.tasks == (second,)


def test_zoom_moves_along_view_axis_and_clamps() -> None:
    camera = Camera3D(position=(0.0, 0.0, 100.0), target=(0.0, 0.0, 0.0), viewport_size=(800, 600))

    camera.zoom(1.0)
    assert camera.position == pytest.approx((0.0, 0.0, 88.0))

    camera.zoom(100.0)
    assert camera.position == pytest.approx((0.0, 0.0, camera.min_zoom))


def test_shake_offset_moves_the_eye_not_the_pose() -> None:
    camera = _camera()
    baseline = camera.view_matrix()

    camera.shake_offset = (1.0, 0.0, 0.0)

    assert camera.pose() == CameraPose(INITIAL_POSE.position, INITIAL_POSE.target)
    assert camera.eye() == (1.0, 30.0, 100.0)
    assert not np.allclose(camera.view_matrix(), baseline)


@pytest.mark.parametrize("easing", [ease_linear, ease_out_cubic])
def test_interpolation_is_monotonic(easing) -> None:
    camera = _camera()
    choreographer = CameraChoreographer(camera, easing)
    choreographer.animate_to((0.0, 30.0, -200.0), (0.0, 0.0, -300.0), 1000.0)

    depths = []
    for _ in range(12):
        choreographer.update(100.0)
        depths.append(camera.position[2])

    assert all(later <= earlier for earlier, later in zip(depths, depths[1:]))
    assert depths[-1] == -200.0
