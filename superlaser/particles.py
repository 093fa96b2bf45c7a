"""Spawning, integration and removal of transient particle batches."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .interpolation import Vec3
from .registry import Handle, RenderBackend

LOGGER = logging.getLogger(__name__)


class RemovalKind(Enum):
    NONE = "none"  # lives until its stage ends
    ESCAPED = "escaped"  # farther than ``threshold`` from the batch origin
    ARRIVED = "arrived"  # closer than ``threshold`` to the attractor
    FADED = "faded"  # opacity dropped below ``threshold``
    RECYCLED = "recycled"  # snaps back to its spawn point past ``threshold``


@dataclass(frozen=True)
class RemovalRule:
    kind: RemovalKind = RemovalKind.NONE
    threshold: float = 0.0


@dataclass(frozen=True)
class KinematicsPolicy:
    """How a batch is launched and how each particle evolves per frame."""

    speed_range: Tuple[float, float]
    jitter: float = 0.0
    direction: Optional[Vec3] = None
    spread: float = 0.0
    velocity_factor: float = 1.0
    size_range: Tuple[float, float] = (1.0, 1.0)
    spin: float = 0.0
    attractor: Optional[Vec3] = None
    attraction: float = 0.0
    chaos: float = 0.0
    fade: float = 1.0
    max_age: Optional[int] = None
    removal: RemovalRule = RemovalRule()
    kind: str = "particle"
    color: Vec3 = (1.0, 1.0, 1.0)
    opacity: float = 1.0

    def __post_init__(self) -> None:
        low, high = self.speed_range
        if low < 0.0 or high < low:
            raise ValueError(f"Invalid speed range: {self.speed_range}")
        small, large = self.size_range
        if small <= 0.0 or large < small:
            raise ValueError(f"Invalid size range: {self.size_range}")


@dataclass(eq=False)
class ParticleBatch:
    """Particles created together; state is kept in parallel arrays."""

    name: str
    policy: KinematicsPolicy
    lifespan: FrozenSet[Any]
    origin: np.ndarray
    group: Handle
    handles: List[Handle]
    positions: np.ndarray
    velocities: np.ndarray
    spawn_positions: np.ndarray
    initial_speeds: np.ndarray
    sizes: np.ndarray
    spins: np.ndarray
    rotations: np.ndarray
    opacities: np.ndarray
    ages: np.ndarray
    spawned: int = 0
    removed: int = 0
    recycled: int = 0
    frames: int = field(default=0)

    def __len__(self) -> int:
        return len(self.handles)

    @property
    def exhausted(self) -> bool:
        return self.spawned > 0 and not self.handles

    def speeds(self) -> np.ndarray:
        return np.linalg.norm(self.velocities, axis=1)

    def _keep(self, mask: np.ndarray) -> None:
        self.handles = [handle for handle, keep in zip(self.handles, mask) if keep]
        self.positions = self.positions[mask]
        self.velocities = self.velocities[mask]
        self.spawn_positions = self.spawn_positions[mask]
        self.initial_speeds = self.initial_speeds[mask]
        self.sizes = self.sizes[mask]
        self.spins = self.spins[mask]
        self.rotations = self.rotations[mask]
        self.opacities = self.opacities[mask]
        self.ages = self.ages[mask]


def _unit_rows(vectors: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    norms[norms == 0.0] = 1.0
    return vectors / norms


class ParticleManager:
    """Owns every live particle batch and integrates them once per frame."""

    def __init__(self, renderer: RenderBackend, rng: np.random.Generator) -> None:
        self._renderer = renderer
        self._rng = rng
        self._batches: List[ParticleBatch] = []

    def __len__(self) -> int:
        return len(self._batches)

    @property
    def batches(self) -> Tuple[ParticleBatch, ...]:
        return tuple(self._batches)

    def named(self, name: str) -> List[ParticleBatch]:
        return [batch for batch in self._batches if batch.name == name]

    def particle_count(self) -> int:
        return sum(len(batch) for batch in self._batches)

    def spawn_batch(
        self,
        name: str,
        count: int,
        origin: Sequence[float],
        policy: KinematicsPolicy,
        *,
        lifespan: Iterable[Any] = (),
        parent: Optional[Handle] = None,
    ) -> ParticleBatch:
        if count < 0:
            raise ValueError(f"Particle count cannot be negative: {count}")
        rng = self._rng
        origin_arr = np.asarray(origin, dtype=np.float64).reshape(3)

        offsets = rng.uniform(-policy.jitter, policy.jitter, (count, 3))
        positions = origin_arr + offsets
        if policy.direction is None:
            directions = _unit_rows(rng.normal(size=(count, 3)))
        else:
            base = np.asarray(policy.direction, dtype=np.float64)
            base = base / max(np.linalg.norm(base), 1e-12)
            noise = rng.uniform(-policy.spread, policy.spread, (count, 3))
            directions = _unit_rows(base + noise)
        speeds = rng.uniform(policy.speed_range[0], policy.speed_range[1], count)
        velocities = directions * speeds[:, None]
        sizes = rng.uniform(policy.size_range[0], policy.size_range[1], count)
        # Smaller pieces spin faster.
        spins = rng.uniform(-1.0, 1.0, (count, 3)) * (policy.spin / sizes[:, None])

        group = self._renderer.construct("group", label=name)
        if parent is not None:
            self._renderer.add_child(parent, group)
        handles: List[Handle] = []
        for index in range(count):
            handle = self._renderer.construct(
                policy.kind,
                size=float(sizes[index]),
                color=policy.color,
                opacity=policy.opacity,
            )
            self._renderer.set_position(handle, tuple(positions[index]))
            self._renderer.add_child(group, handle)
            handles.append(handle)

        batch = ParticleBatch(
            name=name,
            policy=policy,
            lifespan=frozenset(lifespan),
            origin=origin_arr,
            group=group,
            handles=handles,
            positions=positions,
            velocities=velocities,
            spawn_positions=positions.copy(),
            initial_speeds=speeds,
            sizes=sizes,
            spins=spins,
            rotations=np.zeros((count, 3)),
            opacities=np.full(count, policy.opacity, dtype=np.float64),
            ages=np.zeros(count, dtype=np.int64),
            spawned=count,
        )
        self._batches.append(batch)
        LOGGER.debug("Spawned %d %s particles", count, name)
        return batch

    def update(self) -> None:
        """Advance every batch by one frame and drop spent particles."""

        for batch in list(self._batches):
            self._step(batch)
            if batch.exhausted:
                self._drop(batch)

    def _step(self, batch: ParticleBatch) -> None:
        if not batch.handles:
            return
        policy = batch.policy
        rng = self._rng

        batch.positions += batch.velocities
        if policy.velocity_factor != 1.0:
            batch.velocities *= policy.velocity_factor
        if policy.attractor is not None and policy.attraction != 0.0:
            pull = np.asarray(policy.attractor, dtype=np.float64) - batch.positions
            batch.velocities += _unit_rows(pull) * policy.attraction
        if policy.chaos > 0.0:
            batch.velocities += rng.uniform(-policy.chaos, policy.chaos, batch.velocities.shape)
        if policy.spin != 0.0:
            batch.rotations += batch.spins
        if policy.fade != 1.0:
            batch.opacities *= policy.fade
        batch.ages += 1
        batch.frames += 1

        remove = self._removal_mask(batch)
        if policy.max_age is not None:
            remove |= batch.ages >= policy.max_age
        if remove.any():
            for handle, gone in zip(batch.handles, remove):
                if gone:
                    self._renderer.remove(handle)
            batch.removed += int(remove.sum())
            batch._keep(~remove)

        for index, handle in enumerate(batch.handles):
            self._renderer.set_position(handle, tuple(batch.positions[index]))
            if policy.spin != 0.0:
                self._renderer.set_rotation(handle, tuple(batch.rotations[index]))
            if policy.fade != 1.0:
                self._renderer.set_opacity(handle, float(batch.opacities[index]))

    def _removal_mask(self, batch: ParticleBatch) -> np.ndarray:
        rule = batch.policy.removal
        count = len(batch.handles)
        if rule.kind is RemovalKind.ESCAPED:
            return np.linalg.norm(batch.positions - batch.origin, axis=1) > rule.threshold
        if rule.kind is RemovalKind.ARRIVED and batch.policy.attractor is not None:
            target = np.asarray(batch.policy.attractor, dtype=np.float64)
            return np.linalg.norm(batch.positions - target, axis=1) < rule.threshold
        if rule.kind is RemovalKind.FADED:
            return batch.opacities < rule.threshold
        if rule.kind is RemovalKind.RECYCLED:
            travelled = np.linalg.norm(batch.positions - batch.spawn_positions, axis=1)
            wrap = travelled > rule.threshold
            if wrap.any():
                batch.positions[wrap] = batch.spawn_positions[wrap]
                batch.recycled += int(wrap.sum())
        return np.zeros(count, dtype=bool)

    def retire(self, stage: Any) -> List[str]:
        """Drop every batch whose lifespan does not include ``stage``."""

        dropped = [
            batch for batch in self._batches if batch.lifespan and stage not in batch.lifespan
        ]
        for batch in dropped:
            self._drop(batch)
        return [batch.name for batch in dropped]

    def _drop(self, batch: ParticleBatch) -> None:
        for handle in batch.handles:
            self._renderer.remove(handle)
        self._renderer.remove(batch.group)
        batch.handles = []
        if batch in self._batches:
            self._batches.remove(batch)
        LOGGER.debug("Dropped %s batch", batch.name)

    def clear(self) -> None:
        for batch in list(self._batches):
            self._drop(batch)
