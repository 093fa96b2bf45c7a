"""Wireframe meshes for the superlaser scene."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple


Vec3 = Tuple[float, float, float]


@dataclass(frozen=True)
class WireframeMesh:
    """Simple container for line segments connecting vertex indices."""

    vertices: Sequence[Vec3]
    segments: Sequence[Tuple[int, int]]

    def transformed(
        self,
        offset: Vec3 = (0.0, 0.0, 0.0),
        scale: float = 1.0,
    ) -> "WireframeMesh":
        """Return a new mesh with vertices offset/scaled for drawing."""

        ox, oy, oz = offset
        transformed_vertices = [
            ((x * scale) + ox, (y * scale) + oy, (z * scale) + oz)
            for x, y, z in self.vertices
        ]
        return WireframeMesh(transformed_vertices, self.segments)


def _loop_segments(start: int, count: int) -> List[Tuple[int, int]]:
    return [(start + i, start + (i + 1) % count) for i in range(count)]


def _circle(radius: float, segments: int, axis: str, offset: float = 0.0) -> List[Vec3]:
    points: List[Vec3] = []
    for i in range(segments):
        angle = (2 * math.pi * i) / segments
        a = math.cos(angle) * radius
        b = math.sin(angle) * radius
        if axis == "xy":
            points.append((a, b, offset))
        elif axis == "yz":
            points.append((offset, a, b))
        else:  # xz plane
            points.append((a, offset, b))
    return points


def create_sphere_mesh(radius: float, segments: int = 24, trench: bool = False) -> WireframeMesh:
    """Approximate a sphere with latitude rings and meridians.

    ``trench`` adds a doubled equator, the Death Star's equatorial trench.
    """

    vertices: List[Vec3] = []
    lines: List[Tuple[int, int]] = []

    for latitude in (-60.0, -30.0, 0.0, 30.0, 60.0):
        phi = math.radians(latitude)
        start = len(vertices)
        vertices.extend(
            _circle(math.cos(phi) * radius, segments, "xz", math.sin(phi) * radius)
        )
        lines.extend(_loop_segments(start, segments))

    for meridian in range(6):
        theta = math.pi * meridian / 6
        start = len(vertices)
        for i in range(segments):
            angle = (2 * math.pi * i) / segments
            horizontal = math.cos(angle) * radius
            vertices.append(
                (
                    horizontal * math.cos(theta),
                    math.sin(angle) * radius,
                    horizontal * math.sin(theta),
                )
            )
        lines.extend(_loop_segments(start, segments))

    if trench:
        for offset in (-0.03, 0.03):
            start = len(vertices)
            vertices.extend(_circle(radius * 1.002, segments * 2, "xz", offset * radius))
            lines.extend(_loop_segments(start, segments * 2))

    return WireframeMesh(vertices, lines)


def create_dish_mesh(radius: float, depth: float = 1.5, segments: int = 20) -> WireframeMesh:
    """Concave emitter dish opening along +Z."""

    vertices: List[Vec3] = [(0.0, 0.0, 0.0)]
    lines: List[Tuple[int, int]] = []
    rings = (0.35, 0.7, 1.0)
    for fraction in rings:
        start = len(vertices)
        vertices.extend(
            _circle(radius * fraction, segments, "xy", depth * fraction * fraction)
        )
        lines.extend(_loop_segments(start, segments))
    outer = 1 + segments * (len(rings) - 1)
    for i in range(0, segments, 4):
        lines.append((0, 1 + i))
        lines.append((1 + i, 1 + segments + i))
        lines.append((1 + segments + i, outer + i))
    return WireframeMesh(vertices, lines)


def create_octahedron_mesh(size: float) -> WireframeMesh:
    vertices: List[Vec3] = [
        (size, 0.0, 0.0),
        (-size, 0.0, 0.0),
        (0.0, size, 0.0),
        (0.0, -size, 0.0),
        (0.0, 0.0, size),
        (0.0, 0.0, -size),
    ]
    lines = [
        (0, 2), (0, 3), (0, 4), (0, 5),
        (1, 2), (1, 3), (1, 4), (1, 5),
        (2, 4), (4, 3), (3, 5), (5, 2),
    ]
    return WireframeMesh(vertices, lines)


def create_cylinder_mesh(radius: float, height: float, segments: int = 16) -> WireframeMesh:
    """Upright cylinder centred on the origin."""

    half = height / 2.0
    bottom = _circle(radius, segments, "xz", -half)
    top = _circle(radius, segments, "xz", half)
    vertices = bottom + top
    lines = _loop_segments(0, segments) + _loop_segments(segments, segments)
    for i in range(0, segments, 2):
        lines.append((i, i + segments))
    return WireframeMesh(vertices, lines)


def create_box_mesh(size: Vec3) -> WireframeMesh:
    hx, hy, hz = size[0] / 2.0, size[1] / 2.0, size[2] / 2.0
    vertices: List[Vec3] = [
        (-hx, -hy, -hz), (hx, -hy, -hz), (hx, -hy, hz), (-hx, -hy, hz),
        (-hx, hy, -hz), (hx, hy, -hz), (hx, hy, hz), (-hx, hy, hz),
    ]
    lines = _loop_segments(0, 4) + _loop_segments(4, 4) + [(i, i + 4) for i in range(4)]
    return WireframeMesh(vertices, lines)


def create_beam_mesh(radius: float, length: float, segments: int = 12) -> WireframeMesh:
    """Beam from the origin out to ``length`` along +Z."""

    vertices: List[Vec3] = []
    lines: List[Tuple[int, int]] = []
    stations = 6
    for station in range(stations + 1):
        start = len(vertices)
        vertices.extend(_circle(radius, segments, "xy", length * station / stations))
        lines.extend(_loop_segments(start, segments))
    for i in range(0, segments, 3):
        lines.append((i, i + segments * stations))
    core_start = len(vertices)
    vertices.extend([(0.0, 0.0, 0.0), (0.0, 0.0, length)])
    lines.append((core_start, core_start + 1))
    return WireframeMesh(vertices, lines)


def create_ring_mesh(inner: float, outer: float, segments: int = 48) -> WireframeMesh:
    """Flat annulus in the XY plane; scaled up to the wavefront radius."""

    vertices = _circle(inner, segments, "xy") + _circle(outer, segments, "xy")
    lines = _loop_segments(0, segments) + _loop_segments(segments, segments)
    for i in range(0, segments, 6):
        lines.append((i, i + segments))
    return WireframeMesh(vertices, lines)


def create_streak_mesh(length: float) -> WireframeMesh:
    return WireframeMesh([(0.0, 0.0, -length * 8.0), (0.0, 0.0, 0.0)], [(0, 1)])


def create_chunk_mesh(radius: float) -> WireframeMesh:
    """Chunky irregular rock for large planetary fragments."""

    vertices: List[Vec3] = [
        (-0.6 * radius, -0.2 * radius, -0.5 * radius),
        (-0.2 * radius, 0.4 * radius, -0.4 * radius),
        (0.5 * radius, 0.2 * radius, -0.3 * radius),
        (0.3 * radius, -0.5 * radius, -0.6 * radius),
        (-0.4 * radius, -0.3 * radius, 0.4 * radius),
        (-0.1 * radius, 0.5 * radius, 0.5 * radius),
        (0.4 * radius, 0.3 * radius, 0.4 * radius),
        (0.2 * radius, -0.4 * radius, 0.6 * radius),
    ]
    segments = _loop_segments(0, 4) + _loop_segments(4, 4) + [
        (0, 4), (1, 5), (2, 6), (3, 7), (0, 5), (2, 7),
    ]
    return WireframeMesh(vertices, segments)
