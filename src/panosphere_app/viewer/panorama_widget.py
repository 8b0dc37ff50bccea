"""OpenGL-powered panorama viewer widget."""
from __future__ import annotations

from dataclasses import dataclass, field
import itertools
import math
from typing import TYPE_CHECKING, Any, Optional

import numpy as np
from loguru import logger
from OpenGL.GL import (
    GL_BLEND,
    GL_CLAMP_TO_EDGE,
    GL_COLOR_BUFFER_BIT,
    GL_DEPTH_BUFFER_BIT,
    GL_DEPTH_TEST,
    GL_LINEAR,
    GL_MODELVIEW,
    GL_ONE_MINUS_SRC_ALPHA,
    GL_PROJECTION,
    GL_QUADS,
    GL_RGB,
    GL_SRC_ALPHA,
    GL_TEXTURE_2D,
    GL_TEXTURE_MAG_FILTER,
    GL_TEXTURE_MIN_FILTER,
    GL_TEXTURE_WRAP_S,
    GL_TEXTURE_WRAP_T,
    GL_TRIANGLE_STRIP,
    GL_UNPACK_ALIGNMENT,
    GL_UNSIGNED_BYTE,
    glBegin,
    glBindTexture,
    glBlendFunc,
    glClear,
    glClearColor,
    glColor4f,
    glDeleteTextures,
    glDisable,
    glEnable,
    glEnd,
    glGenTextures,
    glLoadIdentity,
    glMatrixMode,
    glPixelStorei,
    glPopMatrix,
    glPushMatrix,
    glRotatef,
    glTexCoord2f,
    glTexImage2D,
    glTexParameteri,
    glVertex3f,
    glViewport,
)
from OpenGL.GLU import gluPerspective
from PyQt6.QtCore import QTimer, Qt
from PyQt6.QtGui import QKeyEvent, QMouseEvent, QWheelEvent
from PyQt6.QtOpenGLWidgets import QOpenGLWidget

if TYPE_CHECKING:
    from ..controller.viewport import ViewportController

_surface_ids = itertools.count(1)


@dataclass(eq=False)
class SceneSurface:
    """Renderer-side handle for the panorama sphere or the camera overlay."""

    kind: str
    radius: float
    image: Optional[np.ndarray] = None
    feed: Any = None
    opacity: float = 1.0
    yaw: float = 0.0
    pitch: float = 0.0
    texture_id: Optional[int] = None
    pending_upload: bool = True
    surface_id: int = field(default_factory=lambda: next(_surface_ids))


class PanoramaWidget(QOpenGLWidget):
    """Interactive panorama viewer backed by OpenGL.

    Implements the render binding used by :class:`ViewportController` and
    forwards mouse, wheel and key input to it.
    """

    def __init__(self, parent=None, frame_interval_ms: int = 16) -> None:
        super().__init__(parent)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        self._controller: Optional[ViewportController] = None
        self._scene: list[SceneSurface] = []
        self._retired_textures: list[int] = []
        self._fov_y_deg = 75.0
        self._sphere_lon_segments = 96
        self._sphere_lat_segments = 48

        self._timer = QTimer(self)
        self._timer.setInterval(frame_interval_ms)
        self._timer.timeout.connect(self._on_frame)

    def attach_controller(self, controller: "ViewportController") -> None:
        self._controller = controller
        self._timer.start()

    def detach_controller(self) -> None:
        self._timer.stop()
        self._controller = None

    # Render binding ------------------------------------------------------
    def create_sphere(self, radius: float, material: Any) -> SceneSurface:
        image = np.asarray(material)
        if image.dtype != np.uint8 or image.ndim != 3 or image.shape[2] != 3:
            raise ValueError("Panorama material must be uint8 RGB image data")
        return SceneSurface(kind="sphere", radius=radius, image=np.ascontiguousarray(image))

    def create_overlay_surface(self, feed: Any) -> SceneSurface:
        return SceneSurface(kind="overlay", radius=self._sphere_radius(), feed=feed, opacity=0.5)

    def set_opacity(self, surface: SceneSurface, value: float) -> None:
        surface.opacity = float(value)

    def set_rotation(self, surface: SceneSurface, yaw: float, pitch: float) -> None:
        surface.yaw = yaw
        surface.pitch = pitch

    def add_to_scene(self, surface: SceneSurface) -> None:
        if surface not in self._scene:
            self._scene.append(surface)
            logger.debug("Added {} surface #{} to scene", surface.kind, surface.surface_id)

    def remove_from_scene(self, surface: SceneSurface) -> None:
        if surface in self._scene:
            self._scene.remove(surface)
            if surface.texture_id is not None:
                self._retired_textures.append(surface.texture_id)
                surface.texture_id = None
            logger.debug("Removed {} surface #{} from scene", surface.kind, surface.surface_id)

    def set_camera_fov(self, value: float) -> None:
        self._fov_y_deg = float(value)

    def render_frame(self) -> None:
        self.update()

    # ------------------------------------------------------------------
    def initializeGL(self) -> None:  # noqa: N802
        glClearColor(0.03, 0.04, 0.06, 1.0)
        glDisable(GL_DEPTH_TEST)
        glEnable(GL_BLEND)
        glBlendFunc(GL_SRC_ALPHA, GL_ONE_MINUS_SRC_ALPHA)
        glPixelStorei(GL_UNPACK_ALIGNMENT, 1)

    def resizeGL(self, width: int, height: int) -> None:  # noqa: N802
        glViewport(0, 0, width, height)

    def paintGL(self) -> None:  # noqa: N802
        self._delete_retired_textures()
        glClear(GL_COLOR_BUFFER_BIT | GL_DEPTH_BUFFER_BIT)
        glMatrixMode(GL_PROJECTION)
        glLoadIdentity()
        aspect = max(1e-3, self.width() / max(1, self.height()))
        gluPerspective(self._fov_y_deg, aspect, 0.1, self._sphere_radius() * 4.0)

        glMatrixMode(GL_MODELVIEW)
        glLoadIdentity()

        glEnable(GL_TEXTURE_2D)
        # The overlay sits behind the sphere so the panorama alpha reveals it.
        for surface in sorted(self._scene, key=lambda s: s.kind != "overlay"):
            if surface.kind == "overlay":
                self._draw_overlay(surface)
            else:
                self._draw_sphere(surface)
        glBindTexture(GL_TEXTURE_2D, 0)
        glDisable(GL_TEXTURE_2D)

    # Input -----------------------------------------------------------------
    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if self._controller is not None and event.button() == Qt.MouseButton.LeftButton:
            pos = event.position()
            self._controller.on_pointer_down(pos.x(), pos.y())
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if self._controller is not None and event.buttons() & Qt.MouseButton.LeftButton:
            pos = event.position()
            self._controller.on_pointer_move(pos.x(), pos.y())
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if self._controller is not None and event.button() == Qt.MouseButton.LeftButton:
            self._controller.on_pointer_up()
        super().mouseReleaseEvent(event)

    def leaveEvent(self, event) -> None:  # noqa: N802
        if self._controller is not None:
            self._controller.on_pointer_up()
        super().leaveEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:  # noqa: N802
        steps = event.angleDelta().y() / 120.0
        if self._controller is not None and steps != 0:
            self._controller.on_zoom(1 if steps > 0 else -1)
        event.accept()

    def keyPressEvent(self, event: QKeyEvent) -> None:  # noqa: N802
        if self._controller is None:
            super().keyPressEvent(event)
            return
        key = event.key()
        if key in (Qt.Key.Key_Plus, Qt.Key.Key_Equal):
            self._controller.on_zoom(1)
        elif key == Qt.Key.Key_Minus:
            self._controller.on_zoom(-1)
        elif key in (Qt.Key.Key_R, Qt.Key.Key_Home):
            self._controller.on_reset_view()
        else:
            super().keyPressEvent(event)
            return
        event.accept()

    def closeEvent(self, event) -> None:  # noqa: N802
        self.detach_controller()
        super().closeEvent(event)

    # ------------------------------------------------------------------
    def _on_frame(self) -> None:
        if self._controller is not None and self._controller.panorama_surface is not None:
            self._controller.tick()

    def _sphere_radius(self) -> float:
        for surface in self._scene:
            if surface.kind == "sphere":
                return surface.radius
        return 500.0

    def _draw_sphere(self, surface: SceneSurface) -> None:
        if surface.image is None:
            return
        if surface.pending_upload or surface.texture_id is None:
            self._upload_texture(surface, surface.image)
            surface.pending_upload = False

        glPushMatrix()
        glRotatef(math.degrees(surface.pitch), 1.0, 0.0, 0.0)
        glRotatef(math.degrees(surface.yaw), 0.0, 1.0, 0.0)
        glColor4f(1.0, 1.0, 1.0, surface.opacity)
        glBindTexture(GL_TEXTURE_2D, surface.texture_id or 0)
        self._draw_textured_sphere(surface.radius)
        glPopMatrix()

    def _draw_overlay(self, surface: SceneSurface) -> None:
        frame = surface.feed.latest_frame() if surface.feed is not None else None
        if frame is None:
            return
        if frame is not surface.image or surface.texture_id is None:
            self._upload_texture(surface, frame)
            surface.image = frame

        half_w = surface.radius
        half_h = surface.radius / 2.0
        depth = -surface.radius
        glColor4f(1.0, 1.0, 1.0, surface.opacity)
        glBindTexture(GL_TEXTURE_2D, surface.texture_id or 0)
        glBegin(GL_QUADS)
        glTexCoord2f(0.0, 1.0)
        glVertex3f(-half_w, -half_h, depth)
        glTexCoord2f(1.0, 1.0)
        glVertex3f(half_w, -half_h, depth)
        glTexCoord2f(1.0, 0.0)
        glVertex3f(half_w, half_h, depth)
        glTexCoord2f(0.0, 0.0)
        glVertex3f(-half_w, half_h, depth)
        glEnd()

    def _upload_texture(self, surface: SceneSurface, image: np.ndarray) -> None:
        height, width, _ = image.shape
        texture_id = surface.texture_id or glGenTextures(1)
        glBindTexture(GL_TEXTURE_2D, texture_id)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_MIN_FILTER, GL_LINEAR)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_MAG_FILTER, GL_LINEAR)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_WRAP_S, GL_CLAMP_TO_EDGE)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_WRAP_T, GL_CLAMP_TO_EDGE)
        glTexImage2D(
            GL_TEXTURE_2D,
            0,
            GL_RGB,
            width,
            height,
            0,
            GL_RGB,
            GL_UNSIGNED_BYTE,
            image,
        )
        glBindTexture(GL_TEXTURE_2D, 0)
        surface.texture_id = texture_id

    def _delete_retired_textures(self) -> None:
        if self._retired_textures:
            glDeleteTextures(self._retired_textures)
            self._retired_textures = []

    def _draw_textured_sphere(self, radius: float) -> None:
        """Render a sphere with explicit equirectangular texture coordinates.

        The mesh is Y-up with longitude zero on -Z, matching the GL camera that
        looks down -Z, rather than the Z-up convention of a ``gluLookAt`` viewer.
        Each strip is wound for viewing from inside.
        """
        lon_steps = self._sphere_lon_segments
        lat_steps = self._sphere_lat_segments

        for lat_idx in range(lat_steps):
            v0 = lat_idx / lat_steps
            v1 = (lat_idx + 1) / lat_steps
            phi0 = (math.pi / 2.0) - (v0 * math.pi)
            phi1 = (math.pi / 2.0) - (v1 * math.pi)
            cos_phi0 = math.cos(phi0)
            cos_phi1 = math.cos(phi1)
            sin_phi0 = math.sin(phi0)
            sin_phi1 = math.sin(phi1)

            glBegin(GL_TRIANGLE_STRIP)
            for lon_idx in range(lon_steps + 1):
                u = lon_idx / lon_steps
                theta = u * (2.0 * math.pi)
                sin_theta = math.sin(theta)
                cos_theta = math.cos(theta)

                glTexCoord2f(u, v1)
                glVertex3f(
                    radius * cos_phi1 * sin_theta,
                    radius * sin_phi1,
                    -radius * cos_phi1 * cos_theta,
                )
                glTexCoord2f(u, v0)
                glVertex3f(
                    radius * cos_phi0 * sin_theta,
                    radius * sin_phi0,
                    -radius * cos_phi0 * cos_theta,
                )
            glEnd()
