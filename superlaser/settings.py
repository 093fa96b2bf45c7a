"""Tunable constants for the superlaser sequence and their JSON overrides."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .interpolation import EASINGS

LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class SettingsError(ValueError):
    """Raised when a settings override has the wrong type or an invalid value."""


@dataclass(frozen=True)
class SequenceSettings:
    """Durations, rates and particle counts used by the stage effects."""

    seed: Optional[int] = None
    easing: str = "cubic"
    hyperspace_duration_ms: float = 2000.0
    arrival_start_z: float = -1000.0
    arrival_start_scale: float = 0.05
    streak_count: int = 200
    ions_per_cell: int = 12
    electrons_per_cell: int = 8
    reaction_rate: float = 0.002
    reaction_max: float = 0.5
    charge_rate: float = 0.01
    photon_chance: float = 0.3
    beam_growth_rate: float = 0.02
    energy_count: int = 1000
    impact_rate: float = 0.002
    plasma_count: int = 500
    explosion_duration: float = 8.0
    debris_count: int = 2500
    chunk_count: int = 30
    debris_growth: float = 1.01
    shake_amplitude: float = 2.5

    def validate(self) -> None:
        if self.easing not in EASINGS:
            raise SettingsError(f"Unknown easing '{self.easing}'")
        positive = (
            "hyperspace_duration_ms",
            "explosion_duration",
            "charge_rate",
            "impact_rate",
            "beam_growth_rate",
        )
        for name in positive:
            if getattr(self, name) <= 0.0:
                raise SettingsError(f"{name} must be positive")
        counts = (
            "streak_count",
            "ions_per_cell",
            "electrons_per_cell",
            "energy_count",
            "plasma_count",
            "debris_count",
            "chunk_count",
        )
        for name in counts:
            if getattr(self, name) < 0:
                raise SettingsError(f"{name} cannot be negative")
        if self.debris_growth <= 1.0:
            raise SettingsError("debris_growth must be greater than 1.0")
        if not 0.0 <= self.reaction_max <= 1.0:
            raise SettingsError("reaction_max must lie in [0, 1]")


@dataclass(frozen=True)
class DisplaySettings:
    window_size: Tuple[int, int] = (1280, 720)
    fullscreen: bool = False
    frame_rate: int = 60
    star_count: int = 1500

    def validate(self) -> None:
        width, height = self.window_size
        if width <= 0 or height <= 0:
            raise SettingsError("window_size must be positive")
        if self.frame_rate <= 0:
            raise SettingsError("frame_rate must be positive")


@dataclass(frozen=True)
class Settings:
    sequence: SequenceSettings = field(default_factory=SequenceSettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)


def load_settings(
    path: Optional[Union[str, Path]] = None, strict: bool = False
) -> Settings:
    """Load settings, merging a JSON override file into the defaults.

    The file holds up to two sections, ``"sequence"`` and ``"display"``,
    each a flat mapping of field name to value. Keys starting with ``_``
    are treated as notes and ignored. A missing or unreadable file falls
    back to the defaults unless ``strict`` is set.
    """

    defaults = Settings()
    if path is None:
        return defaults

    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (json.JSONDecodeError, OSError) as exc:
        if strict:
            raise FileNotFoundError(f"Settings not found: {path}") from exc
        LOGGER.warning("Failed to load %s: %s - using defaults", path, exc)
        return defaults

    if not isinstance(data, dict):
        raise SettingsError(f"{path}: top level must be an object")

    sequence = _merge_section(defaults.sequence, data.get("sequence", {}), "sequence")
    display = _merge_section(defaults.display, data.get("display", {}), "display")
    for key in data:
        if key not in ("sequence", "display") and not key.startswith("_"):
            LOGGER.warning("Ignoring unknown settings section '%s'", key)

    sequence.validate()
    display.validate()
    return Settings(sequence=sequence, display=display)


def _merge_section(base: Any, overrides: Dict[str, Any], section: str) -> Any:
    if not isinstance(overrides, dict):
        raise SettingsError(f"Section '{section}' must be an object")

    known = {item.name: item for item in fields(base)}
    changes: Dict[str, Any] = {}
    for key, value in overrides.items():
        if key.startswith("_"):
            continue
        if key not in known:
            LOGGER.warning("Ignoring unknown setting '%s.%s'", section, key)
            continue
        changes[key] = _coerce(getattr(base, key), value, f"{section}.{key}")
    return replace(base, **changes)


def _coerce(current: Any, value: Any, name: str) -> Any:
    if isinstance(current, tuple):
        if not isinstance(value, (list, tuple)) or len(value) != len(current):
            raise SettingsError(f"{name} expects {len(current)} values")
        return tuple(_coerce(c, v, name) for c, v in zip(current, value))
    if isinstance(current, bool):
        if not isinstance(value, bool):
            raise SettingsError(f"{name} expects true/false")
        return value
    if isinstance(current, int) and not isinstance(current, bool):
        if isinstance(value, bool) or not isinstance(value, int):
            raise SettingsError(f"{name} expects an integer")
        return value
    if isinstance(current, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise SettingsError(f"{name} expects a number")
        return float(value)
    if isinstance(current, str):
        if not isinstance(value, str):
            raise SettingsError(f"{name} expects a string")
        return value
    # Optional fields (currently only the seed) default to None.
    if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
        raise SettingsError(f"{name} expects an integer or null")
    return value


def configure_logging(level: Union[int, str] = "INFO") -> None:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise SettingsError(f"Unknown log level '{level}'")
        level = resolved
    logging.basicConfig(level=level, format=LOG_FORMAT)
