"""OpenGL context helpers for the superlaser wireframe scene."""
from __future__ import annotations

from typing import Tuple

from OpenGL import GL as gl


BACKGROUND_COLOR = (0.0, 0.0, 0.02, 1.0)
LINE_COLOR = (0.65, 0.85, 1.0, 1.0)
STAR_COLOR = (0.85, 0.88, 1.0, 0.8)


def initialize_gl(surface_size: Tuple[int, int]) -> None:
    """Configure OpenGL state for depth-tested, blended line rendering."""
    width, height = surface_size
    gl.glViewport(0, 0, width, height)
    gl.glClearColor(*BACKGROUND_COLOR)

    gl.glMatrixMode(gl.GL_PROJECTION)
    gl.glLoadIdentity()
    gl.glMatrixMode(gl.GL_MODELVIEW)
    gl.glLoadIdentity()

    gl.glEnable(gl.GL_DEPTH_TEST)
    gl.glDepthFunc(gl.GL_LEQUAL)
    gl.glEnable(gl.GL_BLEND)
    gl.glBlendFunc(gl.GL_SRC_ALPHA, gl.GL_ONE_MINUS_SRC_ALPHA)
    gl.glEnable(gl.GL_LINE_SMOOTH)
    gl.glEnable(gl.GL_POINT_SMOOTH)
    gl.glLineWidth(1.5)


def resize_viewport(surface_size: Tuple[int, int]) -> None:
    """Update viewport and projection when the window changes size."""
    initialize_gl(surface_size)
