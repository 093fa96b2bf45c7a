import numpy as np
import pytest

from conftest import FakeRenderer
from superlaser.particles import KinematicsPolicy, ParticleManager, RemovalKind, RemovalRule
from superlaser.stages import Stage


def _manager(renderer: FakeRenderer) -> ParticleManager:
    return ParticleManager(renderer, np.random.default_rng(3))


def test_growing_velocity_follows_geometric_series() -> None:
    renderer = FakeRenderer()
    manager = _manager(renderer)
    policy = KinematicsPolicy(
        speed_range=(1.0, 1.0), direction=(1.0, 0.0, 0.0), velocity_factor=1.01
    )
    batch = manager.spawn_batch("debris", 100, (0.0, 0.0, 0.0), policy)

    for _ in range(10):
        manager.update()

    expected_distance = (1.01 ** 10 - 1.0) / 0.01
    assert len(batch) == 100
    assert np.allclose(batch.positions[:, 0], expected_distance)
    assert np.allclose(batch.positions[:, 1:], 0.0)
    assert np.allclose(batch.speeds(), 1.01 ** 10)
    first = renderer.nodes[batch.handles[0]]
    assert first["position"][0] == pytest.approx(expected_distance)


def test_spawn_builds_group_with_one_node_per_particle() -> None:
    renderer = FakeRenderer()
    manager = _manager(renderer)
    batch = manager.spawn_batch(
        "sparks", 12, (1.0, 2.0, 3.0), KinematicsPolicy(speed_range=(0.5, 1.0), kind="spark")
    )

    group = renderer.nodes[batch.group]
    assert group["kind"] == "group"
    assert group["children"] == batch.handles
    assert len(renderer.kinds("spark")) == 12
    assert np.all(batch.speeds() >= 0.5 - 1e-9)
    assert np.all(batch.speeds() <= 1.0 + 1e-9)


def test_escaped_particles_are_removed_and_batch_dropped() -> None:
    renderer = FakeRenderer()
    manager = _manager(renderer)
    policy = KinematicsPolicy(
        speed_range=(1.0, 1.0),
        removal=RemovalRule(RemovalKind.ESCAPED, 5.5),
    )
    manager.spawn_batch("debris", 20, (0.0, 0.0, 0.0), policy)

    for _ in range(5):
        manager.update()
    assert manager.particle_count() == 20

    manager.update()

    assert len(manager) == 0
    assert renderer.nodes == {}


def test_faded_particles_are_removed() -> None:
    renderer = FakeRenderer()
    manager = _manager(renderer)
    policy = KinematicsPolicy(
        speed_range=(0.0, 0.0), fade=0.5, removal=RemovalRule(RemovalKind.FADED, 0.1)
    )
    batch = manager.spawn_batch("plasma", 8, (0.0, 0.0, 0.0), policy)

    for _ in range(3):
        manager.update()
    assert len(batch) == 8
    assert np.allclose(batch.opacities, 0.125)
    assert renderer.nodes[batch.handles[0]]["opacity"] == pytest.approx(0.125)

    manager.update()
    assert batch.removed == 8
    assert len(manager) == 0


def test_attracted_particles_are_removed_on_arrival() -> None:
    renderer = FakeRenderer()
    manager = _manager(renderer)
    policy = KinematicsPolicy(
        speed_range=(0.0, 0.0),
        attractor=(10.0, 0.0, 0.0),
        attraction=1.0,
        removal=RemovalRule(RemovalKind.ARRIVED, 0.5),
    )
    manager.spawn_batch("photons", 5, (0.0, 0.0, 0.0), policy)

    for _ in range(30):
        manager.update()
        if not len(manager):
            break

    assert len(manager) == 0


def test_recycled_particles_return_to_spawn_point() -> None:
    renderer = FakeRenderer()
    manager = _manager(renderer)
    policy = KinematicsPolicy(
        speed_range=(1.0, 1.0),
        direction=(0.0, 0.0, 1.0),
        removal=RemovalRule(RemovalKind.RECYCLED, 2.5),
    )
    batch = manager.spawn_batch("energy", 10, (0.0, 0.0, 0.0), policy)

    for _ in range(3):
        manager.update()

    assert len(batch) == 10
    assert batch.recycled == 10
    assert np.allclose(batch.positions, batch.spawn_positions)


def test_max_age_expires_particles() -> None:
    manager = _manager(FakeRenderer())
    policy = KinematicsPolicy(speed_range=(0.1, 0.2), max_age=4)
    manager.spawn_batch("photons", 6, (0.0, 0.0, 0.0), policy)

    for _ in range(3):
        manager.update()
    assert manager.particle_count() == 6
    manager.update()
    assert manager.particle_count() == 0


def test_retire_drops_batches_outside_their_lifespan() -> None:
    renderer = FakeRenderer()
    manager = _manager(renderer)
    policy = KinematicsPolicy(speed_range=(0.1, 0.2))
    manager.spawn_batch("streaks", 4, (0.0, 0.0, 0.0), policy, lifespan=(Stage.INIT,))
    keep = manager.spawn_batch(
        "debris", 4, (0.0, 0.0, 0.0), policy, lifespan=(Stage.ARRIVED_READY, Stage.DONE)
    )

    retired = manager.retire(Stage.ARRIVED_READY)

    assert retired == ["streaks"]
    assert len(manager) == 1
    assert manager.batches[0] is keep
    assert len(renderer.nodes) == 5


def test_spin_accumulates_rotation() -> None:
    renderer = FakeRenderer()
    manager = _manager(renderer)
    policy = KinematicsPolicy(speed_range=(0.0, 0.0), spin=0.05, size_range=(0.5, 0.5))
    batch = manager.spawn_batch("chunks", 3, (0.0, 0.0, 0.0), policy)

    manager.update()
    manager.update()

    assert np.allclose(batch.rotations, batch.spins * 2)
    assert renderer.nodes[batch.handles[0]]["rotation"] == pytest.approx(tuple(batch.rotations[0]))


def test_policy_rejects_bad_ranges() -> None:
    with pytest.raises(ValueError):
        KinematicsPolicy(speed_range=(2.0, 1.0))
    with pytest.raises(ValueError):
        KinematicsPolicy(speed_range=(1.0, 2.0), size_range=(0.0, 1.0))
