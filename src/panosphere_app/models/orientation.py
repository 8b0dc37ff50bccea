"""Look-direction model for the panorama sphere."""
from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np

MIN_PITCH = -math.pi / 2.0
MAX_PITCH = math.pi / 2.0


@dataclass(slots=True, frozen=True)
class Orientation:
    """Snapshot of the look direction in radians."""

    yaw: float = 0.0
    pitch: float = 0.0

    def degrees(self) -> tuple[float, float]:
        return math.degrees(self.yaw), math.degrees(self.pitch)


def clamp_pitch(pitch: float) -> float:
    """Clamp a pitch angle to the straight-up/straight-down range."""
    return float(np.clip(pitch, MIN_PITCH, MAX_PITCH))


class OrientationModel:
    """Holds yaw/pitch and enforces the pitch range on every write.

    Yaw is left unbounded; the renderer only consumes it through periodic
    trigonometry so wrapping is implicit.
    """

    def __init__(self) -> None:
        self._yaw = 0.0
        self._pitch = 0.0

    def apply_delta(self, d_yaw: float, d_pitch: float) -> None:
        """Add relative deltas (pointer path)."""
        self._yaw += float(d_yaw)
        self._pitch = clamp_pitch(self._pitch + float(d_pitch))

    def set_absolute(self, yaw: float, pitch: float) -> None:
        """Overwrite the look direction (sensor path)."""
        self._yaw = float(yaw)
        self._pitch = clamp_pitch(pitch)

    def reset(self) -> None:
        self._yaw = 0.0
        self._pitch = 0.0

    def current(self) -> Orientation:
        return Orientation(self._yaw, self._pitch)
