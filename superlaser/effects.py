"""Scene construction for each stage and the choreography table."""
from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Dict, List, Tuple

import numpy as np

from . import registry as names
from .animation import (
    ArrivalState,
    BeamState,
    ChargeState,
    ImpactState,
    OrbitState,
    PathState,
    PhaseState,
)
from .camera import CameraPose
from .explosion import PLANET_BASE_COLOR
from .interpolation import (
    Vec3,
    add_vec3,
    distance_vec3,
    get_easing,
    normalize_vec3,
    scale_vec3,
    sub_vec3,
)
from .particles import KinematicsPolicy, RemovalKind, RemovalRule
from .settings import SequenceSettings
from .stages import (
    ANALYZE,
    EXAMINE,
    EXPLODE,
    FIRE,
    HYPERSPACE,
    POWER_UP,
    ZOOM_ENGINES,
    Stage,
    StageTransition,
)

if TYPE_CHECKING:
    from .context import SimulationContext

LOGGER = logging.getLogger(__name__)

DEATH_STAR_POSITION: Vec3 = (0.0, 0.0, -300.0)
DEATH_STAR_RADIUS = 20.0
DEATH_STAR_COLOR: Vec3 = (0.53, 0.53, 0.53)
PLANET_POSITION: Vec3 = (120.0, 0.0, -300.0)
PLANET_RADIUS = 25.0

# Offsets below are relative to the Death Star centre.
SUPERLASER_OFFSET: Vec3 = (18.03, 8.11, 5.41)
ENGINE_OFFSET: Vec3 = (0.0, -4.0, -24.0)
CELL_SPACING = 8.0
CELL_COUNT = 3
ELECTRODE_X = 1.2
ELECTRODE_HEIGHT = 10.0

CRYSTAL_COUNT = 8
CRYSTAL_RADIUS = 2.5
LASER_GREEN: Vec3 = (0.0, 1.0, 0.53)
ION_COLOR: Vec3 = (1.0, 0.67, 0.0)
ELECTRON_COLOR: Vec3 = (0.27, 0.67, 1.0)
IMPACT_COLOR: Vec3 = (1.0, 0.27, 0.0)
DEBRIS_COLOR: Vec3 = (1.0, 0.55, 0.2)
CHUNK_COLOR: Vec3 = (0.55, 0.35, 0.25)

STREAKS = "streaks"
PHOTONS = "photons"
ENERGY = "energy"
PLASMA = "plasma"
DEBRIS = "debris"
CHUNKS = "chunks"

# (position, look-at, duration in ms) for every triggered transition.
POSES: Dict[str, Tuple[Vec3, Vec3, float]] = {
    HYPERSPACE: ((0.0, 30.0, -180.0), DEATH_STAR_POSITION, 2000.0),
    ZOOM_ENGINES: ((0.0, 2.0, -352.0), (0.0, -4.0, -324.0), 1200.0),
    POWER_UP: ((40.0, 30.0, -200.0), DEATH_STAR_POSITION, 1400.0),
    EXAMINE: ((38.0, 14.0, -282.0), (18.0, 8.0, -295.0), 1200.0),
    FIRE: ((40.0, 30.0, -200.0), (60.0, 0.0, -300.0), 1200.0),
    ANALYZE: ((75.0, 20.0, -255.0), (105.0, 0.0, -300.0), 1200.0),
    EXPLODE: ((80.0, 20.0, -200.0), PLANET_POSITION, 1000.0),
}

STREAK_POLICY = KinematicsPolicy(
    speed_range=(12.0, 18.0),
    jitter=250.0,
    direction=(0.0, 0.0, 1.0),
    size_range=(0.5, 3.0),
    removal=RemovalRule(RemovalKind.RECYCLED, 500.0),
    kind="streak",
)


def superlaser_world_position() -> Vec3:
    return add_vec3(DEATH_STAR_POSITION, SUPERLASER_OFFSET)


def beam_geometry() -> Tuple[Vec3, Vec3, float]:
    """Beam origin, unit direction and length from the dish to the planet surface."""

    origin = superlaser_world_position()
    direction = normalize_vec3(sub_vec3(PLANET_POSITION, origin))
    length = distance_vec3(origin, PLANET_POSITION) - PLANET_RADIUS
    return origin, direction, length


def impact_position() -> Vec3:
    _, direction, _ = beam_geometry()
    return sub_vec3(PLANET_POSITION, scale_vec3(direction, PLANET_RADIUS))


def _plane_basis(normal: Vec3) -> Tuple[np.ndarray, np.ndarray]:
    n = np.array(normal, dtype=np.float64)
    helper = np.array((0.0, 1.0, 0.0))
    if abs(float(np.dot(n, helper))) > 0.95:
        helper = np.array((1.0, 0.0, 0.0))
    u = np.cross(n, helper)
    u /= np.linalg.norm(u)
    v = np.cross(u, n)
    return u, v


def crystal_layout(facing: Vec3) -> List[Vec3]:
    """Ring of crystal positions around the dish, in dish-local space."""

    u, v = _plane_basis(facing)
    lift = np.array(facing) * 0.5
    positions: List[Vec3] = []
    for index in range(CRYSTAL_COUNT):
        angle = index / CRYSTAL_COUNT * math.tau
        point = (math.cos(angle) * u + math.sin(angle) * v) * CRYSTAL_RADIUS + lift
        positions.append((float(point[0]), float(point[1]), float(point[2])))
    return positions


# -- INIT -> ARRIVED_READY ---------------------------------------------------


def _build_death_star(ctx: "SimulationContext") -> None:
    renderer = ctx.renderer
    settings = ctx.settings
    stage = Stage.ARRIVED_READY

    start = (DEATH_STAR_POSITION[0], DEATH_STAR_POSITION[1], settings.arrival_start_z)
    scale = settings.arrival_start_scale
    death_star = renderer.construct(
        "sphere", radius=DEATH_STAR_RADIUS, color=DEATH_STAR_COLOR, trench=True
    )
    renderer.set_position(death_star, start)
    renderer.set_scale(death_star, (scale, scale, scale))
    ctx.registry.register(names.DEATH_STAR, death_star, stage)

    _build_superlaser(ctx, death_star)
    _build_engine_section(ctx, death_star)

    planet = renderer.construct("sphere", radius=PLANET_RADIUS, color=PLANET_BASE_COLOR)
    renderer.set_position(planet, PLANET_POSITION)
    ctx.registry.register(
        names.TARGET_PLANET,
        planet,
        stage,
        expired=lambda entity: ctx.machine.stage is Stage.DONE,
    )

    ctx.states.arrivals[death_star] = ArrivalState(
        handle=death_star,
        start=start,
        end=DEATH_STAR_POSITION,
        start_scale=scale,
        end_scale=1.0,
        duration_ms=settings.hyperspace_duration_ms,
        easing=get_easing(settings.easing),
    )
    ctx.particles.spawn_batch(
        STREAKS,
        settings.streak_count,
        (0.0, 0.0, -250.0),
        STREAK_POLICY,
        lifespan=(Stage.INIT,),
    )
    LOGGER.info("Death Star entering from z=%.0f", start[2])


def _build_superlaser(ctx: "SimulationContext", death_star: int) -> None:
    renderer = ctx.renderer
    _, facing, _ = beam_geometry()

    group = renderer.construct("group", label=names.SUPERLASER)
    renderer.set_position(group, SUPERLASER_OFFSET)
    renderer.add_child(death_star, group)
    dish = renderer.construct("dish", radius=5.0, facing=facing, color=LASER_GREEN)
    renderer.add_child(group, dish)

    crystals: List[int] = []
    positions = crystal_layout(facing)
    for position in positions:
        crystal = renderer.construct("octahedron", size=0.5, color=(0.0, 0.25, 0.13))
        renderer.set_position(crystal, position)
        renderer.add_child(group, crystal)
        crystals.append(crystal)
    ctx.registry.register(names.SUPERLASER, group, Stage.ARRIVED_READY)

    focus = scale_vec3(facing, 4.0)
    photon_policy = KinematicsPolicy(
        speed_range=(0.15, 0.25),
        direction=facing,
        spread=0.25,
        size_range=(0.15, 0.3),
        attractor=focus,
        attraction=0.1,
        max_age=240,
        removal=RemovalRule(RemovalKind.ARRIVED, 0.5),
        kind="photon",
        color=LASER_GREEN,
    )
    ctx.states.charges[group] = ChargeState(
        crystals=crystals,
        crystal_positions=positions,
        parent=group,
        rate=ctx.settings.charge_rate,
        photon_policy=photon_policy,
        photon_chance=ctx.settings.photon_chance,
    )


def _build_engine_section(ctx: "SimulationContext", death_star: int) -> None:
    renderer = ctx.renderer
    rng = ctx.rng
    settings = ctx.settings

    section = renderer.construct("group", label=names.ENGINE_SECTION)
    renderer.set_position(section, ENGINE_OFFSET)
    renderer.add_child(death_star, section)

    for cell_index in range(CELL_COUNT):
        cell = renderer.construct("group", label=f"cell_{cell_index}")
        renderer.set_position(cell, ((cell_index - 1) * CELL_SPACING, 0.0, 0.0))
        renderer.add_child(section, cell)

        container = renderer.construct(
            "cylinder", radius=2.0, height=8.0, color=(0.27, 0.27, 0.27), opacity=0.3
        )
        renderer.add_child(cell, container)
        for sign, color in ((-1.0, (0.8, 0.2, 0.2)), (1.0, (0.2, 0.4, 0.8))):
            electrode = renderer.construct(
                "box", size=(0.4, ELECTRODE_HEIGHT, 0.4), color=color
            )
            renderer.set_position(electrode, (sign * ELECTRODE_X, 0.0, 0.0))
            renderer.add_child(cell, electrode)

        for ion_index in range(settings.ions_per_cell):
            ion = renderer.construct("point", size=0.3, color=ION_COLOR, opacity=0.3)
            renderer.add_child(cell, ion)
            orbit = OrbitState(
                handle=ion,
                center=(0.0, float(rng.uniform(-3.0, 3.0)), 0.0),
                radius=float(rng.uniform(0.4, 1.6)),
                angle=float(rng.uniform(0.0, math.tau)),
                speed=float(rng.uniform(0.005, 0.01)),
                index=ion_index,
                bob_phase=float(rng.uniform(0.0, math.tau)),
            )
            renderer.set_position(ion, orbit.position(0.0))
            ctx.states.orbits[ion] = orbit

        top = ELECTRODE_HEIGHT / 2.0
        waypoints = (
            (-ELECTRODE_X, top, 0.0),
            (-ELECTRODE_X, top + 2.0, 0.0),
            (ELECTRODE_X, top + 2.0, 0.0),
            (ELECTRODE_X, top, 0.0),
        )
        count = settings.electrons_per_cell
        for electron_index in range(count):
            electron = renderer.construct("point", size=0.2, color=ELECTRON_COLOR)
            renderer.add_child(cell, electron)
            path = PathState(
                handle=electron,
                waypoints=waypoints,
                progress=electron_index / count,
                speed=0.005,
            )
            ctx.states.paths[electron] = path

    ctx.registry.register(names.ENGINE_SECTION, section, Stage.ARRIVED_READY)


# -- ENGINES_ZOOMED -> LASER_POWERING ----------------------------------------


def _start_reaction(ctx: "SimulationContext") -> None:
    ctx.states.reaction_progress = 0.0


def _start_charge(ctx: "SimulationContext") -> None:
    for charge in ctx.states.charges.values():
        charge.level = 0.0
        charge.complete = False


# -- EXAMINING -> FIRING -----------------------------------------------------


def _fire_beam(ctx: "SimulationContext") -> None:
    renderer = ctx.renderer
    settings = ctx.settings
    origin, direction, length = beam_geometry()

    beam = renderer.construct(
        "beam", radius=0.8, length=length, direction=direction, color=LASER_GREEN
    )
    renderer.set_position(beam, origin)
    renderer.set_scale(beam, (1.0, 1.0, 0.2))
    ctx.registry.register(names.LASER_BEAM, beam, Stage.FIRING)
    ctx.states.beams[beam] = BeamState(handle=beam, growth_rate=settings.beam_growth_rate)

    energy = KinematicsPolicy(
        speed_range=(1.0, 3.0),
        jitter=0.5,
        direction=direction,
        spread=0.02,
        size_range=(0.2, 0.5),
        removal=RemovalRule(RemovalKind.RECYCLED, length),
        kind="spark",
        color=(0.53, 1.0, 0.8),
        opacity=0.8,
    )
    ctx.particles.spawn_batch(
        ENERGY,
        settings.energy_count,
        origin,
        energy,
        lifespan=(Stage.FIRING, Stage.ANALYZING),
    )


# -- FIRING -> ANALYZING -----------------------------------------------------


def _start_impact(ctx: "SimulationContext") -> None:
    renderer = ctx.renderer
    settings = ctx.settings
    point = impact_position()
    _, direction, _ = beam_geometry()

    impact = renderer.construct("sphere", radius=5.0, color=IMPACT_COLOR, opacity=0.8)
    renderer.set_position(impact, point)
    ctx.registry.register(names.IMPACT_POINT, impact, Stage.ANALYZING)

    ring = renderer.construct(
        "ring", inner=0.9, outer=1.0, facing=scale_vec3(direction, -1.0), color=(1.0, 1.0, 1.0)
    )
    renderer.set_position(ring, point)
    renderer.set_scale(ring, (0.01, 0.01, 0.01))
    renderer.set_opacity(ring, 0.5)
    ctx.registry.register(names.SHOCKWAVE, ring, Stage.ANALYZING)

    planet = ctx.registry.handle(names.TARGET_PLANET)
    if planet is None:
        raise RuntimeError("Target planet missing when the beam reached it")
    ctx.states.impacts[impact] = ImpactState(
        impact=impact, shockwave=ring, planet=planet, rate=settings.impact_rate
    )

    plasma = KinematicsPolicy(
        speed_range=(0.3, 1.2),
        size_range=(0.2, 0.6),
        attractor=PLANET_POSITION,
        attraction=0.1,
        chaos=0.1,
        fade=0.99,
        removal=RemovalRule(RemovalKind.FADED, 0.01),
        kind="spark",
        color=(1.0, 0.4, 0.0),
        opacity=0.8,
    )
    ctx.particles.spawn_batch(
        PLASMA, settings.plasma_count, point, plasma, lifespan=(Stage.ANALYZING,)
    )


# -- ANALYZING -> explosion --------------------------------------------------


def _start_explosion(ctx: "SimulationContext") -> None:
    renderer = ctx.renderer
    planet = ctx.registry.handle(names.TARGET_PLANET)
    if planet is None:
        raise RuntimeError("Target planet missing at detonation")

    ring = renderer.construct(
        "ring", inner=0.95, outer=1.0, facing=(0.0, 1.0, 0.0), color=(1.0, 0.9, 0.7)
    )
    renderer.set_position(ring, PLANET_POSITION)
    renderer.set_visible(ring, False)
    ctx.registry.register(
        names.BLAST_RING,
        ring,
        Stage.EXPLOSION_HEATING,
        expired=lambda entity: ctx.machine.stage is Stage.DONE,
    )
    ctx.states.phases[planet] = PhaseState(
        planet=planet, blast_ring=ring, duration=ctx.settings.explosion_duration
    )


def _spawn_debris(ctx: "SimulationContext") -> None:
    settings = ctx.settings
    lifespan = (Stage.EXPLOSION_EXPLODING, Stage.EXPLOSION_SHOCKWAVE, Stage.DONE)
    debris = KinematicsPolicy(
        speed_range=(0.3, 1.2),
        jitter=PLANET_RADIUS * 0.5,
        velocity_factor=settings.debris_growth,
        size_range=(0.2, 0.8),
        spin=0.05,
        removal=RemovalRule(RemovalKind.ESCAPED, 600.0),
        kind="debris",
        color=DEBRIS_COLOR,
    )
    chunks = KinematicsPolicy(
        speed_range=(0.1, 0.5),
        jitter=PLANET_RADIUS * 0.3,
        velocity_factor=settings.debris_growth,
        size_range=(2.0, 5.0),
        spin=0.02,
        removal=RemovalRule(RemovalKind.ESCAPED, 600.0),
        kind="chunk",
        color=CHUNK_COLOR,
    )
    ctx.particles.spawn_batch(
        DEBRIS, settings.debris_count, PLANET_POSITION, debris, lifespan=lifespan
    )
    ctx.particles.spawn_batch(
        CHUNKS, settings.chunk_count, PLANET_POSITION, chunks, lifespan=lifespan
    )
    LOGGER.info(
        "Planet breaking up: %d debris, %d chunks", settings.debris_count, settings.chunk_count
    )


def _settle(ctx: "SimulationContext") -> None:
    ctx.camera.shake_offset = (0.0, 0.0, 0.0)


def _pose(trigger: str, settings: SequenceSettings) -> Tuple[CameraPose, float]:
    position, look_at, duration = POSES[trigger]
    if trigger == HYPERSPACE:
        duration = settings.hyperspace_duration_ms
    return CameraPose(position=position, target=look_at), duration


def build_transition_table(settings: SequenceSettings) -> List[StageTransition]:
    """Every stage transition, triggered and automatic, in stage order."""

    def triggered(trigger: str, source: Stage, **kwargs) -> StageTransition:
        pose, duration = _pose(trigger, settings)
        return StageTransition(
            trigger=trigger,
            source=source,
            target=source.next,
            pose=pose,
            duration_ms=duration,
            **kwargs,
        )

    def automatic(source: Stage, **kwargs) -> StageTransition:
        return StageTransition(trigger=None, source=source, target=source.next, **kwargs)

    return [
        triggered(HYPERSPACE, Stage.INIT, prelude=_build_death_star),
        triggered(
            ZOOM_ENGINES, Stage.ARRIVED_READY, effects=_start_reaction, payload_id="engines"
        ),
        triggered(POWER_UP, Stage.ENGINES_ZOOMED, effects=_start_charge, payload_id="powering"),
        automatic(Stage.LASER_POWERING),
        triggered(EXAMINE, Stage.LASER_POWERED, payload_id="laser"),
        triggered(FIRE, Stage.EXAMINING, effects=_fire_beam, payload_id="firing"),
        triggered(ANALYZE, Stage.FIRING, effects=_start_impact, payload_id="impact"),
        triggered(
            EXPLODE,
            Stage.ANALYZING,
            effects=_start_explosion,
            discard=(names.LASER_BEAM, names.IMPACT_POINT, names.SHOCKWAVE),
            payload_id="energy",
        ),
        automatic(Stage.EXPLOSION_HEATING),
        automatic(Stage.EXPLOSION_EXPANDING, effects=_spawn_debris),
        automatic(Stage.EXPLOSION_EXPLODING),
        automatic(Stage.EXPLOSION_SHOCKWAVE, effects=_settle),
    ]
