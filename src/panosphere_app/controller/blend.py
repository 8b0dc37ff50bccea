"""Opacity coupling between the panorama sphere and the camera overlay."""
from __future__ import annotations

import math
from typing import Callable, Optional

import numpy as np
from loguru import logger

from ..config import BlendCoupling
from ..errors import InvalidInput
from .interfaces import RenderBinding, Surface

OpacityListener = Callable[[float], None]


class BlendController:
    """Maps the single opacity control onto surface alpha values.

    The panorama always takes the control value. With
    :attr:`BlendCoupling.INDEPENDENT` the overlay follows ``1 - value``; with
    :attr:`BlendCoupling.FIXED` it keeps the opacity it was created with.
    """

    def __init__(
        self,
        render: RenderBinding,
        coupling: BlendCoupling = BlendCoupling.INDEPENDENT,
        fixed_overlay_opacity: float = 0.5,
    ) -> None:
        self._render = render
        self._coupling = coupling
        self._fixed_overlay_opacity = fixed_overlay_opacity
        self._opacity = 1.0
        self._panorama: Optional[Surface] = None
        self._overlay: Optional[Surface] = None
        self._overlay_opacity: Optional[float] = None
        self._listeners: list[OpacityListener] = []

    @property
    def coupling(self) -> BlendCoupling:
        return self._coupling

    @property
    def opacity(self) -> float:
        return self._opacity

    @property
    def panorama_opacity(self) -> float:
        return self._opacity

    @property
    def overlay_opacity(self) -> Optional[float]:
        """Current overlay alpha, or ``None`` when no overlay exists."""
        return self._overlay_opacity

    def add_listener(self, listener: OpacityListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    def bind_panorama(self, surface: Optional[Surface]) -> None:
        self._panorama = surface
        if surface is not None:
            self._render.set_opacity(surface, self._opacity)

    def bind_overlay(self, surface: Surface) -> float:
        """Attach a freshly created overlay and return the opacity it was given."""
        self._overlay = surface
        if self._coupling is BlendCoupling.INDEPENDENT:
            self._overlay_opacity = 1.0 - self._opacity
        else:
            self._overlay_opacity = self._fixed_overlay_opacity
        self._render.set_opacity(surface, self._overlay_opacity)
        return self._overlay_opacity

    def unbind_overlay(self) -> None:
        self._overlay = None
        self._overlay_opacity = None

    def set_opacity(self, value: float) -> float:
        """Set the control value, clamped to ``[0, 1]``.

        Raises
        ------
        InvalidInput
            If ``value`` is not a finite number.
        """
        try:
            value = float(value)
        except (TypeError, ValueError) as exc:
            raise InvalidInput(f"Opacity must be numeric, got {value!r}") from exc
        if not math.isfinite(value):
            raise InvalidInput(f"Opacity must be finite, got {value}")

        self._opacity = float(np.clip(value, 0.0, 1.0))
        if self._panorama is not None:
            self._render.set_opacity(self._panorama, self._opacity)
        if self._overlay is not None and self._coupling is BlendCoupling.INDEPENDENT:
            self._overlay_opacity = 1.0 - self._opacity
            self._render.set_opacity(self._overlay, self._overlay_opacity)

        logger.debug("Opacity set to {:.3f} (overlay {})", self._opacity, self._overlay_opacity)
        for listener in list(self._listeners):
            listener(self._opacity)
        return self._opacity
