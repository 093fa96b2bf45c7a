"""Linear stage sequence and the guarded state machine that walks it."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from .camera import CameraChoreographer, CameraPose

LOGGER = logging.getLogger(__name__)


class Stage(Enum):
    INIT = 0
    ARRIVED_READY = 1
    ENGINES_ZOOMED = 2
    LASER_POWERING = 3
    LASER_POWERED = 4
    EXAMINING = 5
    FIRING = 6
    ANALYZING = 7
    EXPLOSION_HEATING = 8
    EXPLOSION_EXPANDING = 9
    EXPLOSION_EXPLODING = 10
    EXPLOSION_SHOCKWAVE = 11
    DONE = 12

    @property
    def next(self) -> Optional["Stage"]:
        members = list(Stage)
        index = members.index(self)
        if index + 1 >= len(members):
            return None
        return members[index + 1]


HYPERSPACE = "hyperspace"
ZOOM_ENGINES = "zoom_engines"
POWER_UP = "power_up"
EXAMINE = "examine"
FIRE = "fire"
ANALYZE = "analyze"
EXPLODE = "explode"
RESET = "reset"

TRIGGERS: Tuple[str, ...] = (
    HYPERSPACE,
    ZOOM_ENGINES,
    POWER_UP,
    EXAMINE,
    FIRE,
    ANALYZE,
    EXPLODE,
    RESET,
)

Bundle = Callable[[Any], None]


class PayloadDisplay(Protocol):
    def show_payload(self, payload_id: str) -> None: ...

    def hide(self) -> None: ...


@dataclass(frozen=True)
class StageTransition:
    """One row of the choreography table.

    ``trigger`` is None for transitions the animation driver performs on
    its own (charge complete, explosion phase boundaries).
    """

    trigger: Optional[str]
    source: Stage
    target: Stage
    pose: Optional[CameraPose] = None
    duration_ms: float = 0.0
    prelude: Optional[Bundle] = None
    effects: Optional[Bundle] = None
    discard: Tuple[str, ...] = ()
    payload_id: Optional[str] = None


class StageMachine:
    """Walks the stage table one guarded step at a time.

    A transition runs: prelude, camera move, then (once the move lands)
    effects, stage change, payload, and finally the next trigger is
    enabled. Requests from the wrong stage or while a move is still in
    flight are ignored.
    """

    def __init__(
        self,
        table: Iterable[StageTransition],
        choreographer: CameraChoreographer,
        display: PayloadDisplay,
        target: Any,
        on_enabled: Optional[Callable[[Optional[str]], None]] = None,
        on_stage: Optional[Callable[[Stage, StageTransition], None]] = None,
    ) -> None:
        self._choreographer = choreographer
        self._display = display
        self._target = target
        self._on_enabled = on_enabled
        self._on_stage = on_stage
        self._by_trigger: Dict[str, StageTransition] = {}
        self._automatic: Dict[Stage, StageTransition] = {}
        for transition in table:
            self._check(transition)
            if transition.trigger is None:
                self._automatic[transition.source] = transition
            else:
                self._by_trigger[transition.trigger] = transition
        self.stage = Stage.INIT
        self.in_transition = False
        self.history: List[Stage] = [Stage.INIT]

    @staticmethod
    def _check(transition: StageTransition) -> None:
        if transition.source.next is not transition.target:
            raise ValueError(
                f"Transition {transition.source.name} -> {transition.target.name} skips stages"
            )
        if transition.trigger == RESET:
            raise ValueError("Reset is handled by the simulation context")

    @property
    def legal_trigger(self) -> Optional[str]:
        """The single trigger that may fire now, if any (reset aside)."""

        if self.in_transition:
            return None
        for trigger, transition in self._by_trigger.items():
            if transition.source is self.stage:
                return trigger
        return None

    def request_transition(self, trigger: str) -> bool:
        transition = self._by_trigger.get(trigger)
        if transition is None:
            LOGGER.warning("Ignoring unknown trigger '%s'", trigger)
            return False
        if self.in_transition:
            LOGGER.debug("Ignoring %s: transition already in flight", trigger)
            return False
        if transition.source is not self.stage:
            LOGGER.debug(
                "Ignoring %s: requires %s, current stage is %s",
                trigger,
                transition.source.name,
                self.stage.name,
            )
            return False
        self._begin(transition)
        return True

    def advance(self, target: Stage) -> bool:
        """Take the automatic transition into ``target`` if it is next."""

        transition = self._automatic.get(self.stage)
        if transition is None or transition.target is not target or self.in_transition:
            return False
        self._begin(transition)
        return True

    def _begin(self, transition: StageTransition) -> None:
        LOGGER.info(
            "Stage %s -> %s (%s)",
            transition.source.name,
            transition.target.name,
            transition.trigger or "automatic",
        )
        self.in_transition = True
        self._notify_enabled(None)
        if transition.prelude is not None:
            transition.prelude(self._target)
        if transition.pose is None:
            self._complete(transition)
            return
        self._choreographer.animate_to(
            transition.pose.position,
            transition.pose.target,
            transition.duration_ms,
            on_complete=lambda: self._complete(transition),
        )

    def _complete(self, transition: StageTransition) -> None:
        # A reset while the camera was moving invalidates this completion.
        if not self.in_transition or self.stage is not transition.source:
            return
        if transition.effects is not None:
            transition.effects(self._target)
        self.stage = transition.target
        self.in_transition = False
        self.history.append(transition.target)
        if self._on_stage is not None:
            self._on_stage(transition.target, transition)
        if transition.payload_id is not None:
            self._display.show_payload(transition.payload_id)
        elif transition.trigger is not None:
            self._display.hide()
        self._notify_enabled(self.legal_trigger)

    def _notify_enabled(self, trigger: Optional[str]) -> None:
        if self._on_enabled is not None:
            self._on_enabled(trigger)

    def reset(self) -> None:
        self.stage = Stage.INIT
        self.in_transition = False
        self.history = [Stage.INIT]
        self._display.hide()
        self._notify_enabled(self.legal_trigger)
