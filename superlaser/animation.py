"""Per-frame procedural animation for every live scene element."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from . import explosion
from .explosion import ExplosionPhase
from .interpolation import Easing, Vec3, clamp01, ease_out_cubic, lerp, lerp_vec3
from .particles import KinematicsPolicy
from .registry import Handle
from .stages import Stage

if TYPE_CHECKING:
    from .context import SimulationContext

LOGGER = logging.getLogger(__name__)

ENGINE_STAGES = frozenset({Stage.ENGINES_ZOOMED, Stage.LASER_POWERING})
CRYSTAL_SPIN_STAGES = frozenset({Stage.LASER_POWERED, Stage.EXAMINING})
BEAM_STAGES = frozenset({Stage.FIRING, Stage.ANALYZING})
EXPLOSION_STAGES = (
    Stage.EXPLOSION_HEATING,
    Stage.EXPLOSION_EXPANDING,
    Stage.EXPLOSION_EXPLODING,
    Stage.EXPLOSION_SHOCKWAVE,
    Stage.DONE,
)
PHASE_STAGES: Dict[ExplosionPhase, Stage] = {
    ExplosionPhase.HEATING: Stage.EXPLOSION_HEATING,
    ExplosionPhase.EXPANDING: Stage.EXPLOSION_EXPANDING,
    ExplosionPhase.EXPLODING: Stage.EXPLOSION_EXPLODING,
    ExplosionPhase.SHOCKWAVE: Stage.EXPLOSION_SHOCKWAVE,
}

CRYSTAL_DIM: Vec3 = (0.0, 0.25, 0.13)
CRYSTAL_LIT: Vec3 = (0.0, 1.0, 0.53)


def path_point(waypoints: Tuple[Vec3, Vec3, Vec3, Vec3], progress: float) -> Vec3:
    """Position along a rise / traverse / descend path of equal-share segments."""

    t = clamp01(progress)
    segment = min(int(t * 3.0), 2)
    local = t * 3.0 - segment
    return lerp_vec3(waypoints[segment], waypoints[segment + 1], local)


@dataclass
class OrbitState:
    handle: Handle
    center: Vec3
    radius: float
    angle: float
    speed: float
    index: int
    bob_phase: float = 0.0
    bob_height: float = 0.3

    def position(self, time: float) -> Vec3:
        radius = self.radius + math.sin(time + self.index) * 0.2
        return (
            self.center[0] + radius * math.cos(self.angle),
            self.center[1] + math.sin(time * 2.0 + self.bob_phase) * self.bob_height,
            self.center[2] + radius * math.sin(self.angle),
        )


@dataclass
class PathState:
    handle: Handle
    waypoints: Tuple[Vec3, Vec3, Vec3, Vec3]
    progress: float
    speed: float

    def advance(self) -> Vec3:
        self.progress += self.speed
        if self.progress > 1.0:
            self.progress = 0.0
        return path_point(self.waypoints, self.progress)


@dataclass
class ArrivalState:
    """Hyperspace approach: slides and grows an object into place."""

    handle: Handle
    start: Vec3
    end: Vec3
    start_scale: float
    end_scale: float
    duration_ms: float
    easing: Easing = ease_out_cubic
    elapsed_ms: float = 0.0

    @property
    def done(self) -> bool:
        return self.elapsed_ms >= self.duration_ms


@dataclass
class ChargeState:
    crystals: List[Handle]
    crystal_positions: List[Vec3]
    parent: Handle
    rate: float
    photon_policy: KinematicsPolicy
    photon_chance: float
    level: float = 0.0
    complete: bool = False


@dataclass
class BeamState:
    handle: Handle
    growth_rate: float
    growth: float = 0.0
    pulse: float = 0.0


@dataclass
class ImpactState:
    impact: Handle
    shockwave: Handle
    planet: Handle
    rate: float
    progress: float = 0.0


@dataclass
class PhaseState:
    """Explosion clock; the phase itself is always recomputed from it."""

    planet: Handle
    blast_ring: Handle
    duration: float
    elapsed: float = 0.0

    @property
    def fraction(self) -> float:
        return clamp01(self.elapsed / self.duration)

    def sample(self) -> explosion.PhaseSample:
        return explosion.phase_at(self.fraction)


@dataclass
class AnimationStates:
    """Typed animation records, each collection keyed by render handle."""

    orbits: Dict[Handle, OrbitState] = field(default_factory=dict)
    paths: Dict[Handle, PathState] = field(default_factory=dict)
    arrivals: Dict[Handle, ArrivalState] = field(default_factory=dict)
    charges: Dict[Handle, ChargeState] = field(default_factory=dict)
    beams: Dict[Handle, BeamState] = field(default_factory=dict)
    impacts: Dict[Handle, ImpactState] = field(default_factory=dict)
    phases: Dict[Handle, PhaseState] = field(default_factory=dict)
    reaction_progress: float = 0.0

    def clear(self) -> None:
        self.orbits.clear()
        self.paths.clear()
        self.arrivals.clear()
        self.charges.clear()
        self.beams.clear()
        self.impacts.clear()
        self.phases.clear()
        self.reaction_progress = 0.0

    def forget(self, handle: Handle) -> None:
        for collection in (
            self.orbits,
            self.paths,
            self.arrivals,
            self.charges,
            self.beams,
            self.impacts,
            self.phases,
        ):
            collection.pop(handle, None)


class AnimationDriver:
    """Advances every live animation once per rendered frame.

    Pass order is fixed: camera moves, tweens, orbits, paths, particles,
    explosion phase effects, camera shake, then the frame is rendered.
    """

    def __init__(self, context: "SimulationContext") -> None:
        self._ctx = context
        self.time = 0.0
        self.frame = 0

    def tick(self, dt: float) -> None:
        ctx = self._ctx
        dt = max(0.0, dt)
        self.time += dt
        self.frame += 1

        ctx.choreographer.update(dt * 1000.0)
        self._update_arrivals(dt * 1000.0)
        self._update_charge()
        self._update_beams()
        self._update_impacts()
        self._update_orbits()
        self._update_paths()
        ctx.particles.update()
        ctx.registry.sweep()
        sample = self._update_phases(dt)
        self._update_shake(sample)
        ctx.renderer.render(ctx.camera)

    @property
    def _stage(self) -> Stage:
        return self._ctx.machine.stage

    def _update_arrivals(self, dt_ms: float) -> None:
        renderer = self._ctx.renderer
        for handle, state in list(self._ctx.states.arrivals.items()):
            state.elapsed_ms += dt_ms
            t = state.easing(clamp01(state.elapsed_ms / max(state.duration_ms, 1e-6)))
            scale = lerp(state.start_scale, state.end_scale, t)
            renderer.set_position(handle, lerp_vec3(state.start, state.end, t))
            renderer.set_scale(handle, (scale, scale, scale))
            if state.done:
                del self._ctx.states.arrivals[handle]

    def _update_charge(self) -> None:
        ctx = self._ctx
        renderer = ctx.renderer
        stage = self._stage
        for state in list(ctx.states.charges.values()):
            if stage is Stage.LASER_POWERING and not state.complete:
                state.level = min(1.0, state.level + state.rate)
                scale = 1.0 + state.level * 0.2
                color = lerp_vec3(CRYSTAL_DIM, CRYSTAL_LIT, state.level)
                for crystal in state.crystals:
                    renderer.set_scale(crystal, (scale, scale, scale))
                    renderer.set_color(crystal, color)
                if state.crystal_positions and ctx.rng.random() < state.level * state.photon_chance:
                    index = int(ctx.rng.integers(len(state.crystal_positions)))
                    ctx.particles.spawn_batch(
                        "photons",
                        1,
                        state.crystal_positions[index],
                        state.photon_policy,
                        lifespan=(Stage.LASER_POWERING,),
                        parent=state.parent,
                    )
                if state.level >= 1.0:
                    state.complete = True
                    ctx.machine.advance(Stage.LASER_POWERED)
            elif stage in CRYSTAL_SPIN_STAGES:
                spin = self.frame
                for crystal in state.crystals:
                    renderer.set_rotation(crystal, (0.0, spin * 0.01, spin * 0.02))

    def _update_beams(self) -> None:
        if self._stage not in BEAM_STAGES:
            return
        renderer = self._ctx.renderer
        for handle, state in self._ctx.states.beams.items():
            state.growth = min(1.0, state.growth + state.growth_rate)
            state.pulse += 0.01
            length = lerp(0.2, 1.0, state.growth)
            renderer.set_scale(handle, (1.0, 1.0, length))
            renderer.set_opacity(handle, min(1.0, 0.8 + math.sin(state.pulse * 20.0) * 0.2))

    def _update_impacts(self) -> None:
        if self._stage is not Stage.ANALYZING:
            return
        renderer = self._ctx.renderer
        for state in self._ctx.states.impacts.values():
            state.progress = min(1.0, state.progress + state.rate)
            p = state.progress
            impact_scale = 1.0 + p * 5.0
            renderer.set_scale(state.impact, (impact_scale, impact_scale, impact_scale))
            renderer.set_opacity(state.impact, 0.8 - p * 0.3)
            ring = max(p * 50.0, 0.01)
            renderer.set_scale(state.shockwave, (ring, ring, ring))
            renderer.set_opacity(state.shockwave, 0.5 - p * 0.5)
            renderer.set_opacity(state.planet, 1.0 - p * 0.5)
            renderer.set_distortion(state.planet, p, self.time)

    def _update_orbits(self) -> None:
        if self._stage not in ENGINE_STAGES:
            return
        ctx = self._ctx
        states = ctx.states
        settings = ctx.settings
        states.reaction_progress = min(
            settings.reaction_max, states.reaction_progress + settings.reaction_rate
        )
        reaction = states.reaction_progress
        for handle, orbit in states.orbits.items():
            orbit.angle += orbit.speed
            ctx.renderer.set_position(handle, orbit.position(self.time))
            ctx.renderer.set_opacity(handle, 0.3 + reaction)
            scale = 1.0 + reaction
            ctx.renderer.set_scale(handle, (scale, scale, scale))

    def _update_paths(self) -> None:
        if self._stage not in ENGINE_STAGES:
            return
        renderer = self._ctx.renderer
        for handle, path in self._ctx.states.paths.items():
            renderer.set_position(handle, path.advance())

    def _update_phases(self, dt: float) -> Optional[explosion.PhaseSample]:
        ctx = self._ctx
        if not ctx.states.phases or self._stage not in EXPLOSION_STAGES:
            return None
        sample: Optional[explosion.PhaseSample] = None
        for handle, state in list(ctx.states.phases.items()):
            state.elapsed += dt
            sample = state.sample()
            self._sync_stage(sample, state.fraction >= 1.0)
            self._apply_phase(state, sample)
            if state.fraction >= 1.0:
                del ctx.states.phases[handle]
                LOGGER.info("Explosion finished after %.2fs", state.elapsed)
        return sample

    def _sync_stage(self, sample: explosion.PhaseSample, finished: bool) -> None:
        machine = self._ctx.machine
        wanted = Stage.DONE if finished else PHASE_STAGES[sample.phase]
        # Large frame gaps can cross more than one boundary; step through each.
        while machine.stage is not wanted and machine.stage in EXPLOSION_STAGES:
            following = machine.stage.next
            if following is None or not machine.advance(following):
                break

    def _apply_phase(self, state: PhaseState, sample: explosion.PhaseSample) -> None:
        renderer = self._ctx.renderer
        phase, progress = sample.phase, sample.progress
        scale = explosion.planet_scale(phase, progress)
        opacity = explosion.planet_opacity(phase, progress)
        renderer.set_color(state.planet, explosion.heat_color(phase, progress))
        renderer.set_scale(state.planet, (scale, scale, scale))
        renderer.set_opacity(state.planet, opacity)
        renderer.set_distortion(
            state.planet, explosion.distortion_amount(phase, progress), self.time
        )
        if opacity <= 0.0:
            renderer.set_visible(state.planet, False)
        if phase is ExplosionPhase.SHOCKWAVE:
            radius = explosion.shockwave_radius(progress)
            renderer.set_visible(state.blast_ring, True)
            renderer.set_scale(state.blast_ring, (radius, radius, radius))
            renderer.set_opacity(state.blast_ring, explosion.shockwave_opacity(progress))

    def _update_shake(self, sample: Optional[explosion.PhaseSample]) -> None:
        camera = self._ctx.camera
        if (
            sample is None
            or sample.phase is not ExplosionPhase.SHOCKWAVE
            or sample.total >= 1.0
        ):
            camera.shake_offset = (0.0, 0.0, 0.0)
            return
        amplitude = self._ctx.settings.shake_amplitude * explosion.shake_scale(sample.progress)
        jitter = self._ctx.rng.uniform(-amplitude, amplitude, 3)
        camera.shake_offset = (float(jitter[0]), float(jitter[1]), float(jitter[2]))
