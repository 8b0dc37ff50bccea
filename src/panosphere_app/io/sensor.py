"""Device-orientation sensor providers."""
from __future__ import annotations

from loguru import logger
from PyQt6.QtSensors import QRotationSensor

from ..controller.interfaces import SensorCallback, Subscription


class NullSensorProvider:
    """Provider for machines without an orientation sensor."""

    def is_supported(self) -> bool:
        return False

    def subscribe(self, callback: SensorCallback) -> Subscription:
        raise RuntimeError("NullSensorProvider cannot be subscribed to")


class _QtSubscription:
    def __init__(self, sensor: QRotationSensor, slot) -> None:
        self._sensor = sensor
        self._slot = slot

    def unsubscribe(self) -> None:
        if self._slot is None:
            return
        self._sensor.readingChanged.disconnect(self._slot)
        self._sensor.stop()
        self._slot = None
        logger.debug("Rotation sensor stopped")


class QtRotationSensorProvider:
    """Reports Qt rotation readings as (beta, gamma) in degrees.

    ``QRotationReading.x`` is the front-back tilt and ``y`` the left-right
    tilt, which match the browser ``beta``/``gamma`` angles.
    """

    def __init__(self) -> None:
        self._sensor = QRotationSensor()

    def is_supported(self) -> bool:
        return bool(self._sensor.connectToBackend())

    def subscribe(self, callback: SensorCallback) -> _QtSubscription:
        def _forward() -> None:
            reading = self._sensor.reading()
            if reading is None:
                callback(None, None)
                return
            callback(reading.x(), reading.y())

        self._sensor.readingChanged.connect(_forward)
        self._sensor.start()
        logger.debug("Rotation sensor started")
        return _QtSubscription(self._sensor, _forward)
