"""Wireframe renderer: a handle-addressed scene graph drawn with OpenGL."""
from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from OpenGL import GL as gl

import numpy as np

from superlaser.camera import Camera3D
from superlaser.explosion import radial_displacement
from superlaser.registry import Handle
from ui.layout import UILayout
from .opengl_context import LINE_COLOR, STAR_COLOR
from .wireframe_primitives import (
    WireframeMesh,
    create_beam_mesh,
    create_box_mesh,
    create_chunk_mesh,
    create_cylinder_mesh,
    create_dish_mesh,
    create_octahedron_mesh,
    create_ring_mesh,
    create_sphere_mesh,
    create_streak_mesh,
)

LOGGER = logging.getLogger(__name__)

Color = Tuple[float, float, float]

# Drawn as single GL points rather than meshes.
POINT_KINDS = frozenset({"point", "photon", "spark", "debris"})


def _rotation_matrix(rotation: Sequence[float]) -> np.ndarray:
    rx, ry, rz = rotation
    cx, sx = math.cos(rx), math.sin(rx)
    cy, sy = math.cos(ry), math.sin(ry)
    cz, sz = math.cos(rz), math.sin(rz)
    x_axis = np.array(((1, 0, 0), (0, cx, -sx), (0, sx, cx)))
    y_axis = np.array(((cy, 0, sy), (0, 1, 0), (-sy, 0, cy)))
    z_axis = np.array(((cz, -sz, 0), (sz, cz, 0), (0, 0, 1)))
    return z_axis @ y_axis @ x_axis


def _point_size(size: Any) -> float:
    # Boxes pass a per-axis size; only scalar sizes matter for points.
    if isinstance(size, (int, float)):
        return float(size)
    return 1.0


def _facing_basis(direction: Sequence[float]) -> np.ndarray:
    """Rotation taking local +Z onto ``direction``."""

    forward = np.array(direction, dtype=np.float64)
    norm = np.linalg.norm(forward)
    if norm == 0:
        return np.identity(3)
    forward /= norm
    helper = np.array((0.0, 1.0, 0.0))
    if abs(float(np.dot(forward, helper))) > 0.95:
        helper = np.array((1.0, 0.0, 0.0))
    side = np.cross(helper, forward)
    side /= np.linalg.norm(side)
    up = np.cross(forward, side)
    return np.column_stack((side, up, forward))


@dataclass
class SceneNode:
    kind: str
    mesh: Optional[WireframeMesh]
    color: Color = LINE_COLOR[:3]
    opacity: float = 1.0
    size: float = 1.0
    label: str = ""
    basis: np.ndarray = field(default_factory=lambda: np.identity(3))
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    scale: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    rotation: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    visible: bool = True
    distortion: float = 0.0
    distortion_time: float = 0.0
    parent: Optional[Handle] = None
    children: List[Handle] = field(default_factory=list)

    def local_matrix(self) -> np.ndarray:
        linear = self.basis @ _rotation_matrix(self.rotation) @ np.diag(self.scale)
        matrix = np.identity(4)
        matrix[:3, :3] = linear
        matrix[:3, 3] = self.position
        return matrix


class WireframeRenderer:
    """Scene graph of wireframe nodes addressed by integer handles."""

    def __init__(self, layout: UILayout, star_count: int = 1500, seed: Optional[int] = None) -> None:
        self.layout = layout
        self._nodes: Dict[Handle, SceneNode] = {}
        self._roots: List[Handle] = []
        self._next_handle = itertools.count(1)
        self._mesh_cache: Dict[Tuple[Any, ...], WireframeMesh] = {}
        self._chunk_mesh = create_chunk_mesh(1.0)
        self._stars = self._create_starfield(star_count, seed)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, handle: Handle) -> bool:
        return handle in self._nodes

    @staticmethod
    def _create_starfield(count: int, seed: Optional[int]) -> np.ndarray:
        rng = np.random.default_rng(seed)
        directions = rng.normal(size=(count, 3))
        directions /= np.linalg.norm(directions, axis=1, keepdims=True)
        return directions * 1500.0

    # -- construction ---------------------------------------------------

    def construct(self, kind: str, **params: Any) -> Handle:
        mesh = self._mesh_for(kind, params)
        node = SceneNode(
            kind=kind,
            mesh=mesh,
            color=tuple(params.get("color", LINE_COLOR[:3])),
            opacity=float(params.get("opacity", 1.0)),
            size=_point_size(params.get("size", 1.0)),
            label=str(params.get("label", "")),
        )
        if kind in ("dish", "ring") and "facing" in params:
            node.basis = _facing_basis(params["facing"])
        elif kind == "beam" and "direction" in params:
            node.basis = _facing_basis(params["direction"])
        handle = next(self._next_handle)
        self._nodes[handle] = node
        self._roots.append(handle)
        return handle

    def _mesh_for(self, kind: str, params: Dict[str, Any]) -> Optional[WireframeMesh]:
        if kind in POINT_KINDS or kind == "group":
            return None
        if kind == "chunk":
            return self._chunk_mesh.transformed(scale=float(params.get("size", 1.0)))
        if kind == "streak":
            return create_streak_mesh(float(params.get("size", 1.0)))
        key = (kind,) + tuple(
            (name, tuple(value) if isinstance(value, (list, tuple)) else value)
            for name, value in sorted(params.items())
            if name not in ("color", "opacity", "label", "facing", "direction")
        )
        cached = self._mesh_cache.get(key)
        if cached is not None:
            return cached
        if kind == "sphere":
            mesh = create_sphere_mesh(params["radius"], trench=params.get("trench", False))
        elif kind == "dish":
            mesh = create_dish_mesh(params["radius"])
        elif kind == "octahedron":
            mesh = create_octahedron_mesh(params.get("size", 1.0))
        elif kind == "cylinder":
            mesh = create_cylinder_mesh(params["radius"], params["height"])
        elif kind == "box":
            mesh = create_box_mesh(params["size"])
        elif kind == "beam":
            mesh = create_beam_mesh(params["radius"], params["length"])
        elif kind == "ring":
            mesh = create_ring_mesh(params.get("inner", 0.9), params.get("outer", 1.0))
        else:
            raise ValueError(f"Unknown scene object kind: {kind}")
        self._mesh_cache[key] = mesh
        return mesh

    def _node(self, handle: Handle) -> Optional[SceneNode]:
        node = self._nodes.get(handle)
        if node is None:
            LOGGER.debug("Skipping update for unknown handle %s", handle)
        return node

    def set_position(self, handle: Handle, position: Sequence[float]) -> None:
        node = self._node(handle)
        if node is not None:
            node.position = (float(position[0]), float(position[1]), float(position[2]))

    def set_scale(self, handle: Handle, scale: Sequence[float]) -> None:
        node = self._node(handle)
        if node is not None:
            node.scale = (float(scale[0]), float(scale[1]), float(scale[2]))

    def set_rotation(self, handle: Handle, rotation: Sequence[float]) -> None:
        node = self._node(handle)
        if node is not None:
            node.rotation = (float(rotation[0]), float(rotation[1]), float(rotation[2]))

    def set_color(self, handle: Handle, color: Sequence[float]) -> None:
        node = self._node(handle)
        if node is not None:
            node.color = (float(color[0]), float(color[1]), float(color[2]))

    def set_opacity(self, handle: Handle, opacity: float) -> None:
        node = self._node(handle)
        if node is not None:
            node.opacity = max(0.0, min(1.0, float(opacity)))

    def set_visible(self, handle: Handle, visible: bool) -> None:
        node = self._node(handle)
        if node is not None:
            node.visible = visible

    def set_distortion(self, handle: Handle, amount: float, time: float) -> None:
        node = self._node(handle)
        if node is not None:
            node.distortion = amount
            node.distortion_time = time

    def add_child(self, parent: Handle, child: Handle) -> None:
        parent_node = self._node(parent)
        child_node = self._node(child)
        if parent_node is None or child_node is None:
            return
        self._detach(child, child_node)
        child_node.parent = parent
        parent_node.children.append(child)

    def remove(self, handle: Handle) -> None:
        node = self._nodes.get(handle)
        if node is None:
            return
        self._detach(handle, node)
        stack = [handle]
        while stack:
            current = stack.pop()
            removed = self._nodes.pop(current, None)
            if removed is not None:
                stack.extend(removed.children)

    def _detach(self, handle: Handle, node: SceneNode) -> None:
        if node.parent is None:
            if handle in self._roots:
                self._roots.remove(handle)
            return
        parent = self._nodes.get(node.parent)
        if parent is not None and handle in parent.children:
            parent.children.remove(handle)
        node.parent = None

    # -- drawing --------------------------------------------------------

    def render(self, camera: Camera3D) -> None:
        gl.glClear(gl.GL_COLOR_BUFFER_BIT | gl.GL_DEPTH_BUFFER_BIT)
        scene = self.layout.scene_rect
        window_height = self.layout.window_size[1]
        gl.glViewport(scene.left, window_height - scene.bottom, scene.width, scene.height)
        camera.update_viewport(scene.size)
        self._apply_camera(camera)
        gl.glEnable(gl.GL_DEPTH_TEST)
        gl.glEnable(gl.GL_BLEND)
        gl.glBlendFunc(gl.GL_SRC_ALPHA, gl.GL_ONE_MINUS_SRC_ALPHA)

        self._draw_starfield(camera)
        points: Dict[int, List[Tuple[np.ndarray, Color, float]]] = {}
        for root in list(self._roots):
            self._draw_node(root, np.identity(4), points)
        self._draw_points(points)

    def _apply_camera(self, camera: Camera3D) -> None:
        projection = camera.projection_matrix()
        view = camera.view_matrix()
        gl.glMatrixMode(gl.GL_PROJECTION)
        gl.glLoadMatrixf(np.transpose(projection).flatten())
        gl.glMatrixMode(gl.GL_MODELVIEW)
        gl.glLoadMatrixf(np.transpose(view).flatten())

    def _draw_starfield(self, camera: Camera3D) -> None:
        # Stars sit on a shell around the eye so they never parallax.
        eye = np.array(camera.eye())
        gl.glDepthMask(gl.GL_FALSE)
        gl.glPointSize(1.5)
        gl.glColor4f(*STAR_COLOR)
        gl.glBegin(gl.GL_POINTS)
        for star in self._stars:
            gl.glVertex3f(*(star + eye))
        gl.glEnd()
        gl.glDepthMask(gl.GL_TRUE)

    def _draw_node(
        self,
        handle: Handle,
        parent_matrix: np.ndarray,
        points: Dict[int, List[Tuple[np.ndarray, Color, float]]],
    ) -> None:
        node = self._nodes.get(handle)
        if node is None or not node.visible:
            return
        matrix = parent_matrix @ node.local_matrix()
        if node.kind in POINT_KINDS:
            scale = float(np.linalg.norm(matrix[:3, 0]))
            pixel_size = int(max(1, min(8, round(node.size * scale * 4))))
            points.setdefault(pixel_size, []).append((matrix[:3, 3], node.color, node.opacity))
        elif node.mesh is not None and node.opacity > 0.0:
            self._draw_mesh(node, matrix)
        for child in list(node.children):
            self._draw_node(child, matrix, points)

    def _draw_mesh(self, node: SceneNode, matrix: np.ndarray) -> None:
        mesh = node.mesh
        vertices = np.asarray(mesh.vertices, dtype=np.float64)
        if node.distortion > 0.0:
            distances = np.linalg.norm(vertices, axis=1)
            factors = 1.0 + radial_displacement(distances, node.distortion_time, node.distortion)
            vertices = vertices * factors[:, None]
        transformed = vertices @ matrix[:3, :3].T + matrix[:3, 3]

        gl.glColor4f(node.color[0], node.color[1], node.color[2], node.opacity)
        gl.glBegin(gl.GL_LINES)
        for start_index, end_index in mesh.segments:
            gl.glVertex3f(*transformed[start_index])
            gl.glVertex3f(*transformed[end_index])
        gl.glEnd()

    @staticmethod
    def _draw_points(points: Dict[int, List[Tuple[np.ndarray, Color, float]]]) -> None:
        for pixel_size, entries in sorted(points.items()):
            gl.glPointSize(float(pixel_size))
            gl.glBegin(gl.GL_POINTS)
            for position, color, opacity in entries:
                gl.glColor4f(color[0], color[1], color[2], opacity)
                gl.glVertex3f(*position)
            gl.glEnd()
