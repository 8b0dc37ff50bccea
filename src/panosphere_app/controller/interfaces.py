"""Narrow interfaces to the rendering engine, camera and orientation sensor."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from ..errors import CaptureDenied


class Surface(Protocol):
    """Opaque handle to a renderable scene surface."""


class FeedHandle(Protocol):
    """Opaque handle to a live camera feed."""


class RenderBinding(Protocol):
    """Operations the controller needs from the 3D rendering engine."""

    def create_sphere(self, radius: float, material: Any) -> Surface: ...

    def create_overlay_surface(self, feed: FeedHandle) -> Surface: ...

    def set_opacity(self, surface: Surface, value: float) -> None: ...

    def set_rotation(self, surface: Surface, yaw: float, pitch: float) -> None: ...

    def add_to_scene(self, surface: Surface) -> None: ...

    def remove_from_scene(self, surface: Surface) -> None: ...

    def set_camera_fov(self, value: float) -> None: ...

    def render_frame(self) -> None: ...


@dataclass(slots=True, frozen=True)
class AcquisitionOutcome:
    """Completion of an asynchronous camera request: a feed or an error."""

    feed: Optional[FeedHandle] = None
    error: Optional[CaptureDenied] = None

    @property
    def ok(self) -> bool:
        return self.feed is not None and self.error is None


AcquisitionCallback = Callable[[AcquisitionOutcome], None]


class CaptureProvider(Protocol):
    """Asynchronous access to the environment-facing camera."""

    def request_environment_camera(self, callback: AcquisitionCallback) -> None:
        """Start opening the camera; ``callback`` runs exactly once on completion."""

    def stop_feed(self, feed: FeedHandle) -> None: ...


SensorCallback = Callable[[Optional[float], Optional[float]], None]


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class OrientationSensorProvider(Protocol):
    """Device-orientation sensor reporting (beta, gamma) in degrees."""

    def is_supported(self) -> bool: ...

    def subscribe(self, callback: SensorCallback) -> Subscription: ...
