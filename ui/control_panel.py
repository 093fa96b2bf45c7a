"""Bottom bar of stage buttons; only the next legal trigger is enabled."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import pygame
from OpenGL import GL as gl

from superlaser.stages import (
    ANALYZE,
    EXAMINE,
    EXPLODE,
    FIRE,
    HYPERSPACE,
    POWER_UP,
    RESET,
    ZOOM_ENGINES,
)
from .layout import UILayout

Vec2 = Tuple[int, int]

BUTTON_LABELS: Sequence[Tuple[str, str]] = (
    ("1 Hyperspace", HYPERSPACE),
    ("2 Engines", ZOOM_ENGINES),
    ("3 Power Up", POWER_UP),
    ("4 Examine", EXAMINE),
    ("5 Fire", FIRE),
    ("6 Analyze", ANALYZE),
    ("7 Explode", EXPLODE),
    ("R Reset", RESET),
)


@dataclass
class ControlButton:
    label: str
    action: str
    rect: pygame.Rect
    enabled: bool = False


class ControlPanel:
    """Row of trigger buttons along the bottom of the window."""

    def __init__(self, layout: UILayout) -> None:
        pygame.font.init()
        self._button_font = pygame.font.SysFont("Consolas", 18)
        self._layout = layout
        self._buttons: List[ControlButton] = []
        self._enabled: Optional[str] = HYPERSPACE
        self.update_layout()

    @property
    def buttons(self) -> Tuple[ControlButton, ...]:
        return tuple(self._buttons)

    @property
    def enabled_trigger(self) -> Optional[str]:
        return self._enabled

    def enable_only(self, trigger: Optional[str]) -> None:
        """Enable ``trigger`` (and reset); disable every other button."""

        self._enabled = trigger
        for button in self._buttons:
            button.enabled = button.action == RESET or button.action == trigger

    def update_layout(self) -> None:
        bar = self._layout.control_rect
        padding = 10
        count = len(BUTTON_LABELS)
        button_width = max(60, (bar.width - padding * (count + 1)) // count)
        button_height = max(24, bar.height - 2 * padding)
        buttons: List[ControlButton] = []
        for index, (label, action) in enumerate(BUTTON_LABELS):
            left = bar.left + padding + index * (button_width + padding)
            rect = pygame.Rect(left, bar.top + padding, button_width, button_height)
            buttons.append(ControlButton(label=label, action=action, rect=rect))
        self._buttons = buttons
        self.enable_only(self._enabled)

    def handle_mouse_click(self, pos: Vec2) -> Optional[str]:
        for button in self._buttons:
            if button.rect.collidepoint(pos):
                return button.action if button.enabled else None
        return None

    def draw(self) -> None:
        width, height = self._layout.window_size
        gl.glViewport(0, 0, width, height)
        gl.glMatrixMode(gl.GL_PROJECTION)
        gl.glLoadIdentity()
        gl.glOrtho(0, width, height, 0, -1, 1)
        gl.glMatrixMode(gl.GL_MODELVIEW)
        gl.glLoadIdentity()
        gl.glDisable(gl.GL_DEPTH_TEST)
        gl.glEnable(gl.GL_BLEND)
        gl.glBlendFunc(gl.GL_SRC_ALPHA, gl.GL_ONE_MINUS_SRC_ALPHA)

        bar = self._layout.control_rect
        gl.glColor4f(0.03, 0.04, 0.08, 0.95)
        gl.glBegin(gl.GL_QUADS)
        gl.glVertex2f(bar.left, bar.top)
        gl.glVertex2f(bar.right, bar.top)
        gl.glVertex2f(bar.right, bar.bottom)
        gl.glVertex2f(bar.left, bar.bottom)
        gl.glEnd()
        self._draw_buttons()

        gl.glEnable(gl.GL_DEPTH_TEST)

    def _draw_buttons(self) -> None:
        mouse_pos = pygame.mouse.get_pos()
        for button in self._buttons:
            hovered = button.enabled and button.rect.collidepoint(mouse_pos)
            if hovered:
                fill = (0.0, 0.45, 0.25, 0.95)
                border = (0.4, 1.0, 0.7, 1.0)
            elif button.enabled:
                fill = (0.05, 0.25, 0.15, 0.92)
                border = (0.0, 1.0, 0.53, 1.0)
            else:
                fill = (0.08, 0.08, 0.1, 0.7)
                border = (0.25, 0.25, 0.3, 1.0)
            gl.glColor4f(*fill)
            gl.glBegin(gl.GL_QUADS)
            gl.glVertex2f(button.rect.left, button.rect.top)
            gl.glVertex2f(button.rect.right, button.rect.top)
            gl.glVertex2f(button.rect.right, button.rect.bottom)
            gl.glVertex2f(button.rect.left, button.rect.bottom)
            gl.glEnd()
            gl.glColor4f(*border)
            gl.glBegin(gl.GL_LINE_LOOP)
            gl.glVertex2f(button.rect.left + 1, button.rect.top + 1)
            gl.glVertex2f(button.rect.right - 1, button.rect.top + 1)
            gl.glVertex2f(button.rect.right - 1, button.rect.bottom - 1)
            gl.glVertex2f(button.rect.left + 1, button.rect.bottom - 1)
            gl.glEnd()
            color = (230, 255, 240) if button.enabled else (110, 110, 125)
            self._draw_text_centered(button.rect.centerx, button.rect.centery, button.label, color)

    def _draw_text_centered(
        self, center_x: float, center_y: float, text: str, color: Tuple[int, int, int]
    ) -> None:
        surface = self._button_font.render(text, True, color)
        data = pygame.image.tobytes(surface, "RGBA", True)
        x = center_x - surface.get_width() * 0.5
        # Raster position marks the bottom-left of the flipped pixel block.
        y = center_y + surface.get_height() * 0.5
        gl.glRasterPos2f(x, y)
        gl.glDrawPixels(
            surface.get_width(),
            surface.get_height(),
            gl.GL_RGBA,
            gl.GL_UNSIGNED_BYTE,
            data,
        )
