"""Per-frame push of the view state to the renderer."""
from __future__ import annotations

from typing import Optional

from ..models.orientation import OrientationModel
from ..models.zoom import ZoomModel
from .interfaces import RenderBinding, Surface


class FrameTicker:
    """Reads the view models once per frame; never mutates them."""

    def __init__(
        self,
        render: RenderBinding,
        orientation: OrientationModel,
        zoom: ZoomModel,
        base_fov: float,
    ) -> None:
        self._render = render
        self._orientation = orientation
        self._zoom = zoom
        self._base_fov = base_fov
        self._panorama: Optional[Surface] = None

    def attach(self, panorama: Optional[Surface]) -> None:
        self._panorama = panorama

    def tick(self) -> None:
        if self._panorama is None:
            raise RuntimeError("FrameTicker has no panorama surface; call init() first")
        view = self._orientation.current()
        self._render.set_rotation(self._panorama, view.yaw, view.pitch)
        self._render.set_camera_fov(self._zoom.effective_fov(self._base_fov))
        self._render.render_frame()
