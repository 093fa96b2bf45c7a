import pytest

from conftest import FRAME, run_frames, run_until
from superlaser import registry as names
from superlaser.camera import INITIAL_POSE
from superlaser.effects import DEATH_STAR_POSITION, DEBRIS, ENERGY, PHOTONS, PLASMA, STREAKS
from superlaser.stages import (
    ANALYZE,
    EXAMINE,
    EXPLODE,
    FIRE,
    HYPERSPACE,
    POWER_UP,
    ZOOM_ENGINES,
    Stage,
)


def _step(context, trigger: str, stage: Stage) -> None:
    assert context.on_trigger(trigger)
    run_until(context, lambda: context.stage is stage)


def test_full_sequence_walks_every_stage(context, renderer, display) -> None:
    _step(context, HYPERSPACE, Stage.ARRIVED_READY)
    death_star = context.registry.handle(names.DEATH_STAR)
    assert renderer.nodes[death_star]["position"] == pytest.approx(DEATH_STAR_POSITION)
    assert renderer.nodes[death_star]["scale"] == pytest.approx((1.0, 1.0, 1.0))
    assert context.particles.named(STREAKS) == []

    _step(context, ZOOM_ENGINES, Stage.ENGINES_ZOOMED)
    _step(context, POWER_UP, Stage.LASER_POWERING)
    run_until(context, lambda: context.stage is Stage.LASER_POWERED)
    assert context.particles.named(PHOTONS) == []
    charge = next(iter(context.states.charges.values()))
    assert charge.level == 1.0
    assert renderer.nodes[charge.crystals[0]]["scale"] == pytest.approx((1.2, 1.2, 1.2))

    _step(context, EXAMINE, Stage.EXAMINING)
    _step(context, FIRE, Stage.FIRING)
    assert names.LASER_BEAM in context.registry
    assert len(context.particles.named(ENERGY)[0]) == context.settings.energy_count

    _step(context, ANALYZE, Stage.ANALYZING)
    assert names.IMPACT_POINT in context.registry
    assert names.SHOCKWAVE in context.registry
    assert context.particles.named(PLASMA)

    _step(context, EXPLODE, Stage.EXPLOSION_HEATING)
    for name in (names.LASER_BEAM, names.IMPACT_POINT, names.SHOCKWAVE):
        assert name not in context.registry
    assert context.particles.named(ENERGY) == []
    assert context.particles.named(PLASMA) == []
    assert not context.states.beams
    assert not context.states.impacts

    run_until(context, lambda: context.stage is Stage.EXPLOSION_EXPLODING)
    debris = context.particles.named(DEBRIS)
    assert len(debris) == 1
    assert debris[0].spawned == context.settings.debris_count

    run_until(context, lambda: context.stage is Stage.EXPLOSION_SHOCKWAVE)
    assert context.camera.shake_offset != (0.0, 0.0, 0.0)

    run_until(context, lambda: context.stage is Stage.DONE)
    run_frames(context, 1)
    assert context.camera.shake_offset == (0.0, 0.0, 0.0)
    assert names.TARGET_PLANET not in context.registry
    assert names.BLAST_RING not in context.registry
    assert names.DEATH_STAR in context.registry

    assert context.machine.history == list(Stage)
    assert display.shown == ["engines", "powering", "laser", "firing", "impact", "energy"]


def test_out_of_order_triggers_are_ignored(context) -> None:
    assert not context.on_trigger(FIRE)
    assert not context.on_trigger("warp")
    assert context.on_trigger(HYPERSPACE)
    assert not context.on_trigger(HYPERSPACE)
    assert not context.on_trigger(ZOOM_ENGINES)
    assert context.stage is Stage.INIT


def test_enabled_trigger_follows_the_stage(context, enabled) -> None:
    context.on_trigger(HYPERSPACE)
    assert enabled[-1] is None
    run_until(context, lambda: context.stage is Stage.ARRIVED_READY)
    assert enabled[-1] == ZOOM_ENGINES


def test_engine_reaction_saturates(context, renderer) -> None:
    _step(context, HYPERSPACE, Stage.ARRIVED_READY)
    _step(context, ZOOM_ENGINES, Stage.ENGINES_ZOOMED)

    run_frames(context, 300)

    assert context.states.reaction_progress == 0.5
    ion = next(iter(context.states.orbits))
    assert renderer.nodes[ion]["opacity"] == pytest.approx(0.8)
    for path in context.states.paths.values():
        assert 0.0 <= path.progress <= 1.0


def test_reset_after_finale_clears_everything(context, renderer, display, enabled) -> None:
    for trigger, stage in (
        (HYPERSPACE, Stage.ARRIVED_READY),
        (ZOOM_ENGINES, Stage.ENGINES_ZOOMED),
        (POWER_UP, Stage.LASER_POWERING),
    ):
        _step(context, trigger, stage)
    run_until(context, lambda: context.stage is Stage.LASER_POWERED)
    for trigger, stage in (
        (EXAMINE, Stage.EXAMINING),
        (FIRE, Stage.FIRING),
        (ANALYZE, Stage.ANALYZING),
        (EXPLODE, Stage.EXPLOSION_HEATING),
    ):
        _step(context, trigger, stage)
    run_until(context, lambda: context.stage is Stage.DONE)

    assert context.on_trigger("reset")

    assert context.stage is Stage.INIT
    assert len(context.registry) == 0
    assert len(context.particles) == 0
    assert renderer.nodes == {}
    assert context.camera.pose() == INITIAL_POSE
    assert display.payload is None
    assert enabled[-1] == HYPERSPACE


def test_reset_during_camera_move(context, renderer) -> None:
    context.on_trigger(HYPERSPACE)
    run_frames(context, 10)

    context.reset()

    assert not context.choreographer.busy
    assert not context.machine.in_transition
    assert renderer.nodes == {}
    run_frames(context, 200)
    assert context.stage is Stage.INIT
    assert len(context.registry) == 0

    _step(context, HYPERSPACE, Stage.ARRIVED_READY)
    assert names.DEATH_STAR in context.registry


def test_stage_changes_only_after_the_camera_lands(context, display) -> None:
    context.on_trigger(HYPERSPACE)
    run_frames(context, 60)

    assert context.stage is Stage.INIT
    assert context.machine.in_transition
    assert not context.on_trigger(ZOOM_ENGINES)
    assert names.DEATH_STAR in context.registry

    run_until(context, lambda: not context.machine.in_transition)
    assert context.stage is Stage.ARRIVED_READY
    assert display.hidden == 1


def _drive_to(context, stage: Stage, limit: int = 5000) -> None:
    for _ in range(limit):
        if context.stage is stage and not context.machine.in_transition:
            return
        trigger = context.machine.legal_trigger
        if trigger is not None:
            context.on_trigger(trigger)
        context.tick(FRAME)
    raise AssertionError(f"{stage.name} not reached within {limit} frames")


@pytest.mark.parametrize("moving", [False, True], ids=["settled", "moving"])
@pytest.mark.parametrize("stage", list(Stage), ids=lambda stage: stage.name)
def test_reset_from_any_stage(context, renderer, stage, moving) -> None:
    _drive_to(context, stage)
    if moving:
        trigger = context.machine.legal_trigger
        if trigger is not None:
            assert context.on_trigger(trigger)
        run_frames(context, 5)

    context.reset()

    assert context.stage is Stage.INIT
    assert len(context.registry) == 0
    assert len(context.particles) == 0
    assert renderer.nodes == {}
    assert not context.choreographer.busy
    assert context.camera.pose() == INITIAL_POSE
    assert context.camera.shake_offset == (0.0, 0.0, 0.0)

    _drive_to(context, Stage.DONE)
    assert context.machine.history == list(Stage)


def test_animating_a_discarded_subtree_is_harmless(context, renderer) -> None:
    _step(context, HYPERSPACE, Stage.ARRIVED_READY)
    _step(context, ZOOM_ENGINES, Stage.ENGINES_ZOOMED)
    ions = list(context.states.orbits)
    electrons = list(context.states.paths)

    assert context.discard(names.ENGINE_SECTION)
    frames = renderer.frames
    run_frames(context, 30)

    assert renderer.frames == frames + 30
    assert ions and electrons
    for handle in ions + electrons:
        assert handle not in renderer.nodes
    _step(context, POWER_UP, Stage.LASER_POWERING)
