"""Explosion phases derived from the explosion clock."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

import numpy as np

from .interpolation import Vec3, clamp01, ease_out_cubic, lerp, lerp_vec3


class ExplosionPhase(Enum):
    HEATING = "heating"
    EXPANDING = "expanding"
    EXPLODING = "exploding"
    SHOCKWAVE = "shockwave"


# (phase, start fraction, end fraction); contiguous and covering [0, 1].
PHASE_BOUNDS: Tuple[Tuple[ExplosionPhase, float, float], ...] = (
    (ExplosionPhase.HEATING, 0.0, 0.25),
    (ExplosionPhase.EXPANDING, 0.25, 0.5),
    (ExplosionPhase.EXPLODING, 0.5, 0.875),
    (ExplosionPhase.SHOCKWAVE, 0.875, 1.0),
)

PLANET_BASE_COLOR: Vec3 = (0.13, 0.53, 1.0)
HEAT_RED: Vec3 = (1.0, 0.2, 0.05)
WHITE_HOT: Vec3 = (1.0, 0.95, 0.85)

EXPANSION_SCALE = 1.6
DISTORTION_GAIN = 0.2
SHOCKWAVE_RADIUS = 120.0


@dataclass(frozen=True)
class PhaseSample:
    phase: ExplosionPhase
    progress: float
    total: float


def phase_at(fraction: float) -> PhaseSample:
    """Return the phase and intra-phase progress for a clock fraction.

    Boundaries belong to the later phase, so ``phase_at(0.25)`` is the
    start of EXPANDING with progress 0.
    """

    total = clamp01(fraction)
    for phase, start, end in PHASE_BOUNDS:
        if total < end:
            return PhaseSample(phase, (total - start) / (end - start), total)
    return PhaseSample(ExplosionPhase.SHOCKWAVE, 1.0, total)


def radial_displacement(
    distance: Union[float, np.ndarray], time: float, amount: float
) -> Union[float, np.ndarray]:
    """Vertex scale factor offset used to churn the planet surface.

    Accepts a scalar distance or an array of per-vertex distances.
    """

    return np.sin(distance + time * 10.0) * amount * DISTORTION_GAIN


def heat_color(phase: ExplosionPhase, progress: float) -> Vec3:
    """Surface colour: blue to red while heating, red to white afterwards."""

    if phase is ExplosionPhase.HEATING:
        return lerp_vec3(PLANET_BASE_COLOR, HEAT_RED, progress)
    if phase is ExplosionPhase.EXPANDING:
        return lerp_vec3(HEAT_RED, WHITE_HOT, progress)
    return WHITE_HOT


def planet_scale(phase: ExplosionPhase, progress: float) -> float:
    if phase is ExplosionPhase.HEATING:
        return 1.0 + 0.05 * progress
    if phase is ExplosionPhase.EXPANDING:
        return lerp(1.05, EXPANSION_SCALE, ease_out_cubic(progress))
    return EXPANSION_SCALE


def planet_opacity(phase: ExplosionPhase, progress: float) -> float:
    if phase is ExplosionPhase.EXPLODING:
        return 1.0 - progress
    if phase is ExplosionPhase.SHOCKWAVE:
        return 0.0
    return 1.0


def distortion_amount(phase: ExplosionPhase, progress: float) -> float:
    if phase is ExplosionPhase.HEATING:
        return 0.0
    if phase is ExplosionPhase.EXPANDING:
        return progress
    return 1.0


def shockwave_radius(progress: float) -> float:
    return max(0.01, SHOCKWAVE_RADIUS * ease_out_cubic(progress))


def shockwave_opacity(progress: float) -> float:
    return 1.0 - progress


def shake_scale(progress: float) -> float:
    """Fraction of the shake amplitude left; reaches zero as the phase ends."""

    return 1.0 - clamp01(progress)
