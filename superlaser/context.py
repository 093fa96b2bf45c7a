"""Owns every collaborator of one running superlaser sequence."""
from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

import numpy as np

from .animation import AnimationDriver, AnimationStates
from .camera import INITIAL_POSE, Camera3D, CameraChoreographer
from .effects import build_transition_table
from .interpolation import get_easing
from .particles import ParticleManager
from .registry import RenderBackend, SceneRegistry
from .settings import SequenceSettings
from .stages import RESET, TRIGGERS, PayloadDisplay, Stage, StageMachine, StageTransition

LOGGER = logging.getLogger(__name__)


class SimulationContext:
    """Single owner of the scene, camera, particles and stage machine.

    The UI talks to it through :meth:`on_trigger`; the main loop calls
    :meth:`tick` once per frame.
    """

    def __init__(
        self,
        renderer: RenderBackend,
        display: PayloadDisplay,
        settings: Optional[SequenceSettings] = None,
        on_enabled: Optional[Callable[[Optional[str]], None]] = None,
        viewport_size: Tuple[int, int] = (1280, 720),
    ) -> None:
        self.settings = settings or SequenceSettings()
        self.settings.validate()
        self.renderer = renderer
        self.display = display
        self.rng = np.random.default_rng(self.settings.seed)
        self.easing = get_easing(self.settings.easing)

        self.registry = SceneRegistry(renderer)
        self.camera = Camera3D(
            position=INITIAL_POSE.position,
            target=INITIAL_POSE.target,
            viewport_size=viewport_size,
        )
        self.choreographer = CameraChoreographer(self.camera, self.easing)
        self.particles = ParticleManager(renderer, self.rng)
        self.states = AnimationStates()
        self.machine = StageMachine(
            build_transition_table(self.settings),
            self.choreographer,
            display,
            self,
            on_enabled=on_enabled,
            on_stage=self._on_stage,
        )
        self.driver = AnimationDriver(self)

    @property
    def stage(self) -> Stage:
        return self.machine.stage

    def on_trigger(self, name: str) -> bool:
        """Dispatch a UI trigger; returns True if it was acted on."""

        if name == RESET:
            self.reset()
            return True
        if name not in TRIGGERS:
            LOGGER.warning("Unknown trigger '%s'", name)
            return False
        return self.machine.request_transition(name)

    def tick(self, dt: float) -> None:
        self.driver.tick(dt)

    def reset(self) -> None:
        LOGGER.info("Resetting sequence from %s", self.machine.stage.name)
        self.choreographer.clear()
        self.particles.clear()
        self.states.clear()
        self.registry.clear()
        self.camera.set_pose(INITIAL_POSE)
        self.camera.shake_offset = (0.0, 0.0, 0.0)
        self.machine.reset()

    def discard(self, name: str) -> bool:
        handle = self.registry.handle(name)
        if handle is not None:
            self.states.forget(handle)
        return self.registry.discard(name)

    def _on_stage(self, stage: Stage, transition: StageTransition) -> None:
        for name in transition.discard:
            self.discard(name)
        retired = self.particles.retire(stage)
        if retired:
            LOGGER.debug("Retired %s on entering %s", ", ".join(retired), stage.name)
