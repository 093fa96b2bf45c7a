"""Scalar and vector interpolation helpers shared by the sequence."""
from __future__ import annotations

import math
from typing import Callable, Dict, Sequence, Tuple

Vec3 = Tuple[float, float, float]
Easing = Callable[[float], float]


def clamp01(value: float) -> float:
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def lerp_vec3(a: Sequence[float], b: Sequence[float], t: float) -> Vec3:
    return (
        lerp(a[0], b[0], t),
        lerp(a[1], b[1], t),
        lerp(a[2], b[2], t),
    )


def ease_linear(t: float) -> float:
    return clamp01(t)


def ease_out_cubic(t: float) -> float:
    """Decelerating curve used by every camera move: ``1 - (1 - t)^3``."""

    t = clamp01(t)
    return 1.0 - (1.0 - t) ** 3


EASINGS: Dict[str, Easing] = {
    "linear": ease_linear,
    "cubic": ease_out_cubic,
}


def get_easing(name: str) -> Easing:
    """Look up an easing curve by its settings name."""

    if name not in EASINGS:
        raise KeyError(f"Unknown easing: {name}")
    return EASINGS[name]


def add_vec3(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def sub_vec3(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def scale_vec3(a: Sequence[float], factor: float) -> Vec3:
    return (a[0] * factor, a[1] * factor, a[2] * factor)


def length_vec3(a: Sequence[float]) -> float:
    return math.sqrt(a[0] * a[0] + a[1] * a[1] + a[2] * a[2])


def distance_vec3(a: Sequence[float], b: Sequence[float]) -> float:
    return length_vec3(sub_vec3(a, b))


def normalize_vec3(a: Sequence[float]) -> Vec3:
    length = length_vec3(a)
    if length == 0.0:
        return (0.0, 0.0, 0.0)
    return (a[0] / length, a[1] / length, a[2] / length)
