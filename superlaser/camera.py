"""Scene camera and timed camera choreography."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np

from .interpolation import Easing, Vec3, add_vec3, ease_out_cubic, lerp_vec3

LOGGER = logging.getLogger(__name__)


def _normalize(vec: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(vec)
    if norm == 0:
        return vec
    return vec / norm


def _look_at_matrix(position: Vec3, target: Vec3, up: Vec3) -> np.ndarray:
    pos = np.array(position, dtype=np.float32)
    tgt = np.array(target, dtype=np.float32)
    up_vec = np.array(up, dtype=np.float32)

    forward = _normalize(tgt - pos)
    side = _normalize(np.cross(forward, up_vec))
    true_up = np.cross(side, forward)

    view = np.identity(4, dtype=np.float32)
    view[0, :3] = side
    view[1, :3] = true_up
    view[2, :3] = -forward
    view[0, 3] = -np.dot(side, pos)
    view[1, 3] = -np.dot(true_up, pos)
    view[2, 3] = np.dot(forward, pos)
    return view


def _perspective_matrix(fov_degrees: float, aspect: float, near: float, far: float) -> np.ndarray:
    perspective = np.zeros((4, 4), dtype=np.float32)
    f = 1.0 / math.tan(math.radians(fov_degrees) / 2.0)
    perspective[0, 0] = f / aspect
    perspective[1, 1] = f
    perspective[2, 2] = (far + near) / (near - far)
    perspective[2, 3] = (2 * far * near) / (near - far)
    perspective[3, 2] = -1.0
    return perspective


@dataclass(frozen=True)
class CameraPose:
    position: Vec3
    target: Vec3


INITIAL_POSE = CameraPose(position=(0.0, 30.0, 100.0), target=(0.0, 0.0, 0.0))


@dataclass
class Camera3D:
    position: Vec3
    target: Vec3
    viewport_size: Tuple[int, int]
    min_zoom: float = 8.0
    max_zoom: float = 900.0
    zoom_speed: float = 12.0
    fov: float = 60.0
    near_clip: float = 0.1
    far_clip: float = 2000.0
    up: Vec3 = (0.0, 1.0, 0.0)
    shake_offset: Vec3 = (0.0, 0.0, 0.0)

    def pose(self) -> CameraPose:
        return CameraPose(position=self.position, target=self.target)

    def set_pose(self, pose: CameraPose) -> None:
        self.position = pose.position
        self.target = pose.target

    def eye(self) -> Vec3:
        """Camera position including any transient shake offset."""

        return add_vec3(self.position, self.shake_offset)

    def zoom(self, scroll_delta: float) -> None:
        """Move the camera closer/farther from the target while preserving angle."""

        view_dir = self._view_direction()
        if np.linalg.norm(view_dir) == 0:
            return
        current_distance = np.linalg.norm(np.array(self.position) - np.array(self.target))
        desired = current_distance - scroll_delta * self.zoom_speed
        clamped = max(self.min_zoom, min(self.max_zoom, desired))
        self.position = (
            float(self.target[0] + view_dir[0] * clamped),
            float(self.target[1] + view_dir[1] * clamped),
            float(self.target[2] + view_dir[2] * clamped),
        )

    def update_viewport(self, size: Tuple[int, int]) -> None:
        self.viewport_size = size

    def view_matrix(self) -> np.ndarray:
        return _look_at_matrix(self.eye(), self.target, self.up)

    def projection_matrix(self) -> np.ndarray:
        width, height = self.viewport_size
        aspect = width / height if height > 0 else 1.0
        return _perspective_matrix(self.fov, aspect, self.near_clip, self.far_clip)

    def view_projection_matrix(self) -> np.ndarray:
        return self.projection_matrix() @ self.view_matrix()

    def _view_direction(self) -> np.ndarray:
        pos = np.array(self.position, dtype=np.float32)
        tgt = np.array(self.target, dtype=np.float32)
        return _normalize(pos - tgt)


@dataclass
class CameraTask:
    """One eased camera move from a captured pose to a target pose."""

    start: CameraPose
    end: CameraPose
    duration_ms: float
    easing: Easing = ease_out_cubic
    on_complete: Optional[Callable[[], None]] = None
    elapsed_ms: float = 0.0
    done: bool = field(default=False)

    @property
    def progress(self) -> float:
        if self.duration_ms <= 0.0:
            return 1.0
        return min(self.elapsed_ms / self.duration_ms, 1.0)

    def pose_at(self, t: float) -> CameraPose:
        eased = self.easing(t)
        return CameraPose(
            position=lerp_vec3(self.start.position, self.end.position, eased),
            target=lerp_vec3(self.start.target, self.end.target, eased),
        )

    def advance(self, camera: Camera3D, dt_ms: float) -> bool:
        """Write this frame's pose to ``camera``; return True once finished."""

        if self.done:
            return True
        self.elapsed_ms += max(0.0, dt_ms)
        t = self.progress
        if t >= 1.0:
            # Land exactly on the requested pose regardless of easing rounding.
            camera.set_pose(self.end)
            self.done = True
            if self.on_complete is not None:
                self.on_complete()
            return True
        camera.set_pose(self.pose_at(t))
        return False


class CameraChoreographer:
    """Runs camera tasks against a single camera.

    There is no cancellation: starting a new move while another is still
    running leaves both live. Tasks are advanced in the order they were
    started, so the most recent one writes last and wins the frame.
    """

    def __init__(self, camera: Camera3D, easing: Easing = ease_out_cubic) -> None:
        self.camera = camera
        self.easing = easing
        self._tasks: List[CameraTask] = []

    @property
    def busy(self) -> bool:
        return bool(self._tasks)

    @property
    def tasks(self) -> Tuple[CameraTask, ...]:
        return tuple(self._tasks)

    def animate_to(
        self,
        position: Vec3,
        look_at: Vec3,
        duration_ms: float,
        on_complete: Optional[Callable[[], None]] = None,
        easing: Optional[Easing] = None,
    ) -> CameraTask:
        task = CameraTask(
            start=self.camera.pose(),
            end=CameraPose(position=tuple(position), target=tuple(look_at)),
            duration_ms=duration_ms,
            easing=easing or self.easing,
            on_complete=on_complete,
        )
        if self._tasks:
            LOGGER.debug("Camera move started while %d still running", len(self._tasks))
        self._tasks.append(task)
        return task

    def update(self, dt_ms: float) -> None:
        for task in list(self._tasks):
            if task.advance(self.camera, dt_ms):
                if task in self._tasks:
                    self._tasks.remove(task)

    def clear(self) -> None:
        self._tasks.clear()
