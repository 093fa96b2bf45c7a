import math

import pytest

from superlaser.animation import OrbitState, PathState, PhaseState, path_point
from superlaser.explosion import ExplosionPhase

WAYPOINTS = (
    (0.0, 0.0, 0.0),
    (0.0, 3.0, 0.0),
    (6.0, 3.0, 0.0),
    (6.0, 0.0, 0.0),
)


def test_path_point_visits_each_segment() -> None:
    assert path_point(WAYPOINTS, 0.0) == WAYPOINTS[0]
    assert path_point(WAYPOINTS, 1.0 / 6.0) == pytest.approx((0.0, 1.5, 0.0))
    assert path_point(WAYPOINTS, 0.5) == pytest.approx((3.0, 3.0, 0.0))
    assert path_point(WAYPOINTS, 1.0) == pytest.approx(WAYPOINTS[3])


def test_path_wraps_to_start_after_overflow() -> None:
    path = PathState(handle=1, waypoints=WAYPOINTS, progress=0.998, speed=0.005)

    position = path.advance()

    assert path.progress == 0.0
    assert position == WAYPOINTS[0]


def test_orbit_radius_breathes_around_base() -> None:
    orbit = OrbitState(
        handle=1, center=(0.0, 0.0, 0.0), radius=1.0, angle=0.0, speed=0.01, index=0,
        bob_height=0.0,
    )

    x, y, z = orbit.position(0.0)
    assert (x, y, z) == pytest.approx((1.0, 0.0, 0.0))

    x, _, z = orbit.position(math.pi / 2)
    assert math.hypot(x, z) == pytest.approx(1.2)


def test_phase_state_clock() -> None:
    state = PhaseState(planet=1, blast_ring=2, duration=8.0)
    state.elapsed = 2.0

    sample = state.sample()

    assert state.fraction == pytest.approx(0.25)
    assert sample.phase is ExplosionPhase.EXPANDING
    state.elapsed = 20.0
    assert state.fraction == 1.0
