"""Arbitration between pointer drags and the orientation sensor."""
from __future__ import annotations

from enum import Enum
import math
from typing import Callable, Optional, Tuple

from loguru import logger

from ..errors import CapabilityUnavailable, InvalidInput
from ..models.orientation import OrientationModel
from .interfaces import OrientationSensorProvider, Subscription


class InputMode(Enum):
    POINTER = "pointer"
    SENSOR = "sensor"


ModeListener = Callable[[InputMode], None]


def _finite_pair(a: Optional[float], b: Optional[float], what: str) -> Tuple[float, float]:
    if a is None or b is None:
        raise InvalidInput(f"{what} sample is missing coordinates: ({a!r}, {b!r})")
    try:
        first, second = float(a), float(b)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"{what} sample is not numeric: ({a!r}, {b!r})") from exc
    if not (math.isfinite(first) and math.isfinite(second)):
        raise InvalidInput(f"{what} sample is not finite: ({first}, {second})")
    return first, second


class InputArbiter:
    """Decides which input source writes the orientation model.

    Pointer drags apply relative deltas scaled by ``rotation_speed``. When the
    sensor is enabled it takes priority and every sample overwrites the look
    direction; pointer motion is ignored until the sensor is disabled again.
    """

    def __init__(
        self,
        orientation: OrientationModel,
        sensor: OrientationSensorProvider,
        rotation_speed: float = 0.005,
    ) -> None:
        self._orientation = orientation
        self._sensor = sensor
        self._rotation_speed = rotation_speed
        self._mode = InputMode.POINTER
        self._subscription: Optional[Subscription] = None
        self._dragging = False
        self._previous: Optional[Tuple[float, float]] = None
        self._mode_listeners: list[ModeListener] = []

    @property
    def mode(self) -> InputMode:
        return self._mode

    def add_mode_listener(self, listener: ModeListener) -> None:
        self._mode_listeners.append(listener)

    @property
    def dragging(self) -> bool:
        return self._dragging

    # ------------------------------------------------------------------
    def on_pointer_down(self, x: Optional[float], y: Optional[float]) -> None:
        try:
            position = _finite_pair(x, y, "Pointer")
        except InvalidInput as exc:
            logger.debug("Dropping pointer down: {}", exc)
            return
        self._dragging = True
        self._previous = position

    def on_pointer_move(self, x: Optional[float], y: Optional[float]) -> None:
        if not self._dragging or self._mode is not InputMode.POINTER:
            return
        try:
            current = _finite_pair(x, y, "Pointer")
        except InvalidInput as exc:
            logger.debug("Dropping pointer move: {}", exc)
            return
        if self._previous is None:
            self._previous = current
            return

        dx = current[0] - self._previous[0]
        dy = current[1] - self._previous[1]
        self._orientation.apply_delta(dx * self._rotation_speed, dy * self._rotation_speed)
        self._previous = current

    def on_pointer_up(self) -> None:
        """End the drag; also used for pointer-leave."""
        self._dragging = False

    # ------------------------------------------------------------------
    def on_sensor_sample(self, beta: Optional[float], gamma: Optional[float]) -> None:
        """Apply an absolute (beta, gamma) reading in degrees."""
        if self._mode is not InputMode.SENSOR:
            return
        try:
            beta_deg, gamma_deg = _finite_pair(beta, gamma, "Sensor")
        except InvalidInput as exc:
            logger.debug("Dropping sensor sample: {}", exc)
            return
        yaw = -math.radians(gamma_deg)
        pitch = -math.radians(beta_deg) + math.pi / 2.0
        self._orientation.set_absolute(yaw, pitch)

    def set_sensor_enabled(self, enabled: bool) -> None:
        """Switch between sensor and pointer control.

        Raises
        ------
        CapabilityUnavailable
            If the sensor is requested but the platform has none. The mode
            stays ``POINTER``.
        """
        if enabled:
            if self._mode is InputMode.SENSOR:
                return
            if not self._sensor.is_supported():
                logger.warning("Orientation sensor requested but not supported")
                raise CapabilityUnavailable("Device orientation sensor is not available")
            self._subscription = self._sensor.subscribe(self.on_sensor_sample)
            self._set_mode(InputMode.SENSOR)
            logger.info("Sensor input enabled")
            return

        if self._mode is InputMode.POINTER:
            return
        self._drop_subscription()
        self._set_mode(InputMode.POINTER)
        # The next pointer down re-anchors the drag.
        self._dragging = False
        logger.info("Sensor input disabled; pointer control restored")

    def reset(self) -> None:
        """Force pointer mode and end any drag."""
        self._drop_subscription()
        self._set_mode(InputMode.POINTER)
        self._dragging = False
        self._previous = None

    def _set_mode(self, mode: InputMode) -> None:
        if mode is self._mode:
            return
        self._mode = mode
        for listener in list(self._mode_listeners):
            listener(mode)

    def _drop_subscription(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
