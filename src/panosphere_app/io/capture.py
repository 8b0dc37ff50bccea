"""Environment camera access backed by OpenCV."""
from __future__ import annotations

import threading
import time
from typing import Optional

import cv2
import numpy as np
from loguru import logger

from ..controller.interfaces import AcquisitionCallback, AcquisitionOutcome
from ..errors import CaptureDenied
from ..workers.task_runner import FunctionTask, TaskRunner


class CameraFeed:
    """A live ``cv2.VideoCapture`` read continuously on a background thread.

    The reader thread keeps only the newest RGB frame, so the GL side never
    waits on the device.
    """

    def __init__(self, capture: cv2.VideoCapture, index: int, first_frame: Optional[np.ndarray] = None) -> None:
        self._capture = capture
        self.index = index
        self._lock = threading.Lock()
        self._last_frame: Optional[np.ndarray] = None
        if first_frame is not None:
            self._last_frame = _to_rgb(first_frame)
        self._running = True
        self._thread = threading.Thread(target=self._capture_loop, name=f"camera-{index}", daemon=True)
        self._thread.start()

    @property
    def is_open(self) -> bool:
        return self._running and self._capture.isOpened()

    def latest_frame(self) -> Optional[np.ndarray]:
        """Return the newest frame without touching the device."""
        with self._lock:
            return self._last_frame

    def _capture_loop(self) -> None:
        while self._running and self._capture.isOpened():
            ok, frame = self._capture.read()
            if not ok or frame is None:
                time.sleep(0.01)
                continue
            rgb = _to_rgb(frame)
            with self._lock:
                self._last_frame = rgb

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._thread.is_alive():
            self._thread.join(timeout=1.0)
        self._capture.release()
        logger.debug("Camera {} released", self.index)


def _to_rgb(frame: np.ndarray) -> np.ndarray:
    return np.ascontiguousarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))


def open_camera(index: int, width: int, height: int) -> CameraFeed:
    """Open a camera and request the given resolution (blocking).

    Raises
    ------
    CaptureDenied
        If the device is missing, busy or access is refused.
    """
    capture = cv2.VideoCapture(index)
    if not capture.isOpened():
        capture.release()
        raise CaptureDenied(f"Camera {index} is unavailable or access was denied")
    capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
    capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
    ok, first_frame = capture.read()
    if not ok:
        capture.release()
        raise CaptureDenied(f"Camera {index} opened but delivered no frames")
    logger.info(
        "Camera {} opened at {}x{}",
        index,
        int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
        int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
    )
    return CameraFeed(capture, index, first_frame)


class OpenCVCaptureProvider:
    """Opens the camera on a worker thread and reports back on the GUI thread."""

    def __init__(self, runner: TaskRunner, index: int = 0, width: int = 1280, height: int = 720) -> None:
        self._runner = runner
        self._index = index
        self._width = width
        self._height = height

    def request_environment_camera(self, callback: AcquisitionCallback) -> None:
        task = FunctionTask(open_camera, self._index, self._width, self._height)
        self._runner.submit(
            task,
            on_success=lambda feed: callback(AcquisitionOutcome(feed=feed)),
            on_failure=lambda exc: callback(AcquisitionOutcome(error=_as_capture_denied(exc))),
        )

    def stop_feed(self, feed: CameraFeed) -> None:
        feed.stop()


def _as_capture_denied(exc: Exception) -> CaptureDenied:
    if isinstance(exc, CaptureDenied):
        return exc
    denied = CaptureDenied(f"Camera error: {exc}")
    denied.__cause__ = exc
    return denied
