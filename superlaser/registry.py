"""Ownership map from symbolic scene names to render handles."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Protocol, Sequence

LOGGER = logging.getLogger(__name__)

Handle = int

DEATH_STAR = "death_star"
SUPERLASER = "superlaser"
ENGINE_SECTION = "engine_section"
TARGET_PLANET = "target_planet"
LASER_BEAM = "laser_beam"
IMPACT_POINT = "impact_point"
SHOCKWAVE = "shockwave"
BLAST_RING = "blast_ring"


class RenderBackend(Protocol):
    """The slice of the renderer the sequence is allowed to touch."""

    def construct(self, kind: str, **params: Any) -> Handle: ...

    def set_position(self, handle: Handle, position: Sequence[float]) -> None: ...

    def set_scale(self, handle: Handle, scale: Sequence[float]) -> None: ...

    def set_rotation(self, handle: Handle, rotation: Sequence[float]) -> None: ...

    def set_color(self, handle: Handle, color: Sequence[float]) -> None: ...

    def set_opacity(self, handle: Handle, opacity: float) -> None: ...

    def set_visible(self, handle: Handle, visible: bool) -> None: ...

    def set_distortion(self, handle: Handle, amount: float, time: float) -> None: ...

    def add_child(self, parent: Handle, child: Handle) -> None: ...

    def remove(self, handle: Handle) -> None: ...

    def render(self, camera: Any) -> None: ...


@dataclass
class SceneEntity:
    """A registered scene object and the stage that created it."""

    name: str
    handle: Handle
    stage: Any
    children: List[Handle] = field(default_factory=list)
    expired: Optional[Callable[["SceneEntity"], bool]] = None


class SceneRegistry:
    """Creates, tracks and destroys named scene objects.

    Entities are owned exclusively by their entry; discarding an entry
    removes its handle (and every child handle) from the renderer.
    """

    def __init__(self, renderer: RenderBackend) -> None:
        self._renderer = renderer
        self._entities: Dict[str, SceneEntity] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[SceneEntity]:
        return iter(list(self._entities.values()))

    @property
    def renderer(self) -> RenderBackend:
        return self._renderer

    def register(
        self,
        name: str,
        handle: Handle,
        stage: Any,
        *,
        children: Sequence[Handle] = (),
        expired: Optional[Callable[[SceneEntity], bool]] = None,
    ) -> SceneEntity:
        if name in self._entities:
            raise ValueError(f"Scene entity already registered: {name}")
        entity = SceneEntity(
            name=name,
            handle=handle,
            stage=stage,
            children=list(children),
            expired=expired,
        )
        self._entities[name] = entity
        LOGGER.debug("Registered %s (handle %s) at %s", name, handle, stage)
        return entity

    def get(self, name: str) -> Optional[SceneEntity]:
        return self._entities.get(name)

    def handle(self, name: str) -> Optional[Handle]:
        entity = self._entities.get(name)
        if entity is None:
            return None
        return entity.handle

    def discard(self, name: str) -> bool:
        entity = self._entities.pop(name, None)
        if entity is None:
            return False
        for child in entity.children:
            self._renderer.remove(child)
        self._renderer.remove(entity.handle)
        LOGGER.debug("Discarded %s", name)
        return True

    def sweep(self) -> List[str]:
        """Discard every entity whose removal predicate now holds."""

        removed = [
            entity.name
            for entity in list(self._entities.values())
            if entity.expired is not None and entity.expired(entity)
        ]
        for name in removed:
            self.discard(name)
        return removed

    def clear(self) -> None:
        # Children are discarded before their parents.
        for name in reversed(list(self._entities)):
            self.discard(name)
