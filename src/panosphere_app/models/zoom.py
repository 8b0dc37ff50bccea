"""Zoom level model."""
from __future__ import annotations

import numpy as np

DEFAULT_ZOOM = 1.0


class ZoomModel:
    """Clamped zoom scalar mapped onto a field of view."""

    def __init__(self, step: float = 0.1, minimum: float = 0.5, maximum: float = 2.0) -> None:
        if minimum <= 0.0 or minimum > maximum:
            raise ValueError(f"Invalid zoom range [{minimum}, {maximum}]")
        self._step = step
        self._min = minimum
        self._max = maximum
        self._level = DEFAULT_ZOOM

    @property
    def level(self) -> float:
        return self._level

    def adjust(self, direction: int) -> float:
        """Step the zoom in (+1) or out (-1) and return the new level."""
        if direction not in (-1, 1):
            raise ValueError(f"Zoom direction must be -1 or +1, got {direction!r}")
        # Rounding keeps repeated 0.1 steps from drifting off the grid.
        level = round(self._level + direction * self._step, 6)
        self._level = float(np.clip(level, self._min, self._max))
        return self._level

    def reset(self) -> None:
        self._level = DEFAULT_ZOOM

    def effective_fov(self, base_fov: float) -> float:
        """Field of view in the same unit as ``base_fov``."""
        return base_fov / self._level
