"""Shared fixtures: an in-memory render backend and payload display."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import pytest

from superlaser.context import SimulationContext
from superlaser.settings import SequenceSettings


class FakeRenderer:
    """Records scene state the way the OpenGL renderer would hold it."""

    def __init__(self) -> None:
        self.nodes: Dict[int, Dict[str, Any]] = {}
        self.frames = 0
        self.removed: List[int] = []
        self._next = 1

    def construct(self, kind: str, **params: Any) -> int:
        handle = self._next
        self._next += 1
        self.nodes[handle] = {
            "kind": kind,
            "params": params,
            "position": (0.0, 0.0, 0.0),
            "scale": (1.0, 1.0, 1.0),
            "rotation": (0.0, 0.0, 0.0),
            "color": params.get("color"),
            "opacity": params.get("opacity", 1.0),
            "visible": True,
            "distortion": (0.0, 0.0),
            "parent": None,
            "children": [],
        }
        return handle

    def _node(self, handle: int) -> Dict[str, Any]:
        # Unknown handles are skipped, matching WireframeRenderer.
        return self.nodes.get(handle, {})

    def set_position(self, handle: int, position: Sequence[float]) -> None:
        self._node(handle)["position"] = tuple(float(v) for v in position)

    def set_scale(self, handle: int, scale: Sequence[float]) -> None:
        self._node(handle)["scale"] = tuple(float(v) for v in scale)

    def set_rotation(self, handle: int, rotation: Sequence[float]) -> None:
        self._node(handle)["rotation"] = tuple(float(v) for v in rotation)

    def set_color(self, handle: int, color: Sequence[float]) -> None:
        self._node(handle)["color"] = tuple(float(v) for v in color)

    def set_opacity(self, handle: int, opacity: float) -> None:
        self._node(handle)["opacity"] = float(opacity)

    def set_visible(self, handle: int, visible: bool) -> None:
        self._node(handle)["visible"] = visible

    def set_distortion(self, handle: int, amount: float, time: float) -> None:
        self._node(handle)["distortion"] = (amount, time)

    def add_child(self, parent: int, child: int) -> None:
        if parent not in self.nodes or child not in self.nodes:
            return
        self.nodes[child]["parent"] = parent
        self.nodes[parent]["children"].append(child)

    def remove(self, handle: int) -> None:
        node = self.nodes.pop(handle, None)
        if node is None:
            return
        self.removed.append(handle)
        parent = self.nodes.get(node["parent"]) if node["parent"] is not None else None
        if parent is not None and handle in parent["children"]:
            parent["children"].remove(handle)
        for child in list(node["children"]):
            self.remove(child)

    def render(self, camera: Any) -> None:
        self.frames += 1

    def kinds(self, kind: str) -> List[int]:
        return [handle for handle, node in self.nodes.items() if node["kind"] == kind]


class FakeDisplay:
    def __init__(self) -> None:
        self.payload: Optional[str] = None
        self.shown: List[str] = []
        self.hidden = 0

    def show_payload(self, payload_id: str) -> None:
        self.payload = payload_id
        self.shown.append(payload_id)

    def hide(self) -> None:
        self.payload = None
        self.hidden += 1


FRAME = 1.0 / 60.0


def run_frames(context: SimulationContext, frames: int, dt: float = FRAME) -> None:
    for _ in range(frames):
        context.tick(dt)


def run_until(context: SimulationContext, predicate, limit: int = 2000, dt: float = FRAME) -> int:
    for frame in range(1, limit + 1):
        context.tick(dt)
        if predicate():
            return frame
    raise AssertionError(f"Condition not reached within {limit} frames")


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def display() -> FakeDisplay:
    return FakeDisplay()


@pytest.fixture
def small_settings() -> SequenceSettings:
    return SequenceSettings(
        seed=7,
        streak_count=20,
        ions_per_cell=4,
        electrons_per_cell=4,
        energy_count=30,
        plasma_count=25,
        debris_count=60,
        chunk_count=5,
        explosion_duration=1.0,
    )


@pytest.fixture
def enabled() -> List[Optional[str]]:
    return []


@pytest.fixture
def context(renderer, display, small_settings, enabled) -> SimulationContext:
    return SimulationContext(renderer, display, small_settings, on_enabled=enabled.append)
