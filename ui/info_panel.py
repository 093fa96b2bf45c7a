"""Side panel showing the narrative text for the current stage."""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import pygame
from OpenGL import GL as gl

from superlaser.payloads import StagePayload, get_payload
from .layout import UILayout

LOGGER = logging.getLogger(__name__)


def wrap_text(text: str, font: pygame.font.Font, max_width: int) -> List[str]:
    """Greedy word wrap; paragraphs are separated by blank lines."""

    lines: List[str] = []
    for paragraph in text.split("\n"):
        if not paragraph.strip():
            lines.append("")
            continue
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if current and font.size(candidate)[0] > max_width:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return lines


class InfoPanel:
    """Payload display: shows one stage payload at a time, or nothing."""

    def __init__(self, layout: UILayout) -> None:
        pygame.font.init()
        self._title_font = pygame.font.SysFont("Consolas", 22, bold=True)
        self._body_font = pygame.font.SysFont("Consolas", 16)
        self._layout = layout
        self.payload: Optional[StagePayload] = None

    @property
    def visible(self) -> bool:
        return self.payload is not None

    def show_payload(self, payload_id: str) -> None:
        try:
            self.payload = get_payload(payload_id)
        except KeyError:
            LOGGER.error("No stage payload named '%s'", payload_id)
            self.payload = None

    def hide(self) -> None:
        self.payload = None

    def draw(self) -> None:
        if self.payload is None:
            return
        rect = self._layout.info_rect
        if rect.width <= 0 or rect.height <= 0:
            return
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

        gl.glColor4f(0.0, 0.05, 0.03, 0.82)
        gl.glBegin(gl.GL_QUADS)
        gl.glVertex2f(rect.left, rect.top)
        gl.glVertex2f(rect.right, rect.top)
        gl.glVertex2f(rect.right, rect.bottom)
        gl.glVertex2f(rect.left, rect.bottom)
        gl.glEnd()
        gl.glColor4f(0.0, 1.0, 0.53, 1.0)
        gl.glBegin(gl.GL_LINE_LOOP)
        gl.glVertex2f(rect.left + 1, rect.top + 1)
        gl.glVertex2f(rect.right - 1, rect.top + 1)
        gl.glVertex2f(rect.right - 1, rect.bottom - 1)
        gl.glVertex2f(rect.left + 1, rect.bottom - 1)
        gl.glEnd()

        padding = 14
        inner_width = rect.width - 2 * padding
        y = rect.top + padding
        for line in wrap_text(self.payload.title, self._title_font, inner_width):
            y = self._draw_line(rect.left + padding, y, line, self._title_font, (0, 255, 136))
        y += 8
        body = "\n\n".join(self.payload.paragraphs)
        for line in wrap_text(body, self._body_font, inner_width):
            if y > rect.bottom - padding:
                break
            y = self._draw_line(rect.left + padding, y, line, self._body_font, (220, 235, 230))

        gl.glEnable(gl.GL_DEPTH_TEST)

    def _draw_line(
        self,
        x: float,
        y: float,
        text: str,
        font: pygame.font.Font,
        color: Tuple[int, int, int],
    ) -> float:
        line_height = font.get_linesize()
        if text:
            surface = font.render(text, True, color)
            data = pygame.image.tobytes(surface, "RGBA", True)
            gl.glRasterPos2f(x, y + surface.get_height())
            gl.glDrawPixels(
                surface.get_width(),
                surface.get_height(),
                gl.GL_RGBA,
                gl.GL_UNSIGNED_BYTE,
                data,
            )
        return y + line_height
