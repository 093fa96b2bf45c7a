"""Layout helpers for the scene viewport, control bar and info panel."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import pygame


Vec2 = Tuple[float, float]
Size = Tuple[int, int]


@dataclass
class UILayout:
    """Splits the window into the 3D scene and a bottom control bar.

    The info panel floats over the right-hand side of the scene.
    """

    window_size: Size
    scene_ratio: float = 0.88
    info_ratio: float = 0.3
    margin: int = 16

    def update(self, window_size: Size) -> None:
        self.window_size = window_size

    @property
    def scene_rect(self) -> pygame.Rect:
        width, height = self.window_size
        return pygame.Rect(0, 0, width, int(height * self.scene_ratio))

    @property
    def control_rect(self) -> pygame.Rect:
        width, height = self.window_size
        scene_height = self.scene_rect.height
        return pygame.Rect(0, scene_height, width, height - scene_height)

    @property
    def info_rect(self) -> pygame.Rect:
        scene = self.scene_rect
        width = max(240, int(scene.width * self.info_ratio))
        height = max(0, scene.height - 2 * self.margin)
        return pygame.Rect(scene.right - width - self.margin, scene.top + self.margin, width, height)

    def is_in_scene(self, point: Vec2) -> bool:
        return self.scene_rect.collidepoint(point)

    def is_in_controls(self, point: Vec2) -> bool:
        return self.control_rect.collidepoint(point)
