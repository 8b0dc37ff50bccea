from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import pytest

from panosphere_app.config import ActivationPolicy, BlendCoupling, ViewerConfig
from panosphere_app.controller.interfaces import AcquisitionOutcome
from panosphere_app.controller.viewport import ViewportController
from panosphere_app.errors import CaptureDenied


@dataclass(eq=False)
class FakeSurface:
    kind: str
    material: Any = None
    feed: Any = None
    opacity: Optional[float] = None
    yaw: float = 0.0
    pitch: float = 0.0


class FakeRender:
    def __init__(self) -> None:
        self.scene: list[FakeSurface] = []
        self.created: list[FakeSurface] = []
        self.fov: Optional[float] = None
        self.frames = 0

    def create_sphere(self, radius: float, material: Any) -> FakeSurface:
        surface = FakeSurface("sphere", material=material)
        self.created.append(surface)
        return surface

    def create_overlay_surface(self, feed: Any) -> FakeSurface:
        surface = FakeSurface("overlay", feed=feed)
        self.created.append(surface)
        return surface

    def set_opacity(self, surface: FakeSurface, value: float) -> None:
        surface.opacity = value

    def set_rotation(self, surface: FakeSurface, yaw: float, pitch: float) -> None:
        surface.yaw = yaw
        surface.pitch = pitch

    def add_to_scene(self, surface: FakeSurface) -> None:
        assert surface not in self.scene
        self.scene.append(surface)

    def remove_from_scene(self, surface: FakeSurface) -> None:
        self.scene.remove(surface)

    def set_camera_fov(self, value: float) -> None:
        self.fov = value

    def render_frame(self) -> None:
        self.frames += 1

    def overlays(self) -> list[FakeSurface]:
        return [s for s in self.scene if s.kind == "overlay"]


@dataclass(eq=False)
class FakeFeed:
    number: int
    stopped: bool = False


class FakeCapture:
    """Capture provider whose requests stay pending until a test resolves them."""

    def __init__(self) -> None:
        self.pending: list[Callable[[AcquisitionOutcome], None]] = []
        self.feeds: list[FakeFeed] = []
        self.requests = 0

    def request_environment_camera(self, callback) -> None:
        self.requests += 1
        self.pending.append(callback)

    def stop_feed(self, feed: FakeFeed) -> None:
        assert not feed.stopped, "feed stopped twice"
        feed.stopped = True

    def new_feed(self) -> FakeFeed:
        feed = FakeFeed(len(self.feeds) + 1)
        self.feeds.append(feed)
        return feed

    def grant(self):
        callback = self.pending.pop(0)
        callback(AcquisitionOutcome(feed=self.new_feed()))
        return callback

    def deny(self, message: str = "permission denied"):
        callback = self.pending.pop(0)
        callback(AcquisitionOutcome(error=CaptureDenied(message)))
        return callback

    @property
    def open_feeds(self) -> list[FakeFeed]:
        return [feed for feed in self.feeds if not feed.stopped]


class FakeSubscription:
    def __init__(self, sensor: "FakeSensor") -> None:
        self._sensor = sensor

    def unsubscribe(self) -> None:
        self._sensor.callback = None
        self._sensor.unsubscribed += 1


class FakeSensor:
    def __init__(self, supported: bool = True) -> None:
        self.supported = supported
        self.callback = None
        self.unsubscribed = 0

    def is_supported(self) -> bool:
        return self.supported

    def subscribe(self, callback) -> FakeSubscription:
        assert self.callback is None, "subscribed twice"
        self.callback = callback
        return FakeSubscription(self)

    def emit(self, beta, gamma) -> None:
        if self.callback is not None:
            self.callback(beta, gamma)


@pytest.fixture
def render() -> FakeRender:
    return FakeRender()


@pytest.fixture
def capture() -> FakeCapture:
    return FakeCapture()


@pytest.fixture
def sensor() -> FakeSensor:
    return FakeSensor()


@pytest.fixture
def make_controller(render, capture, sensor):
    def _make(
        policy: ActivationPolicy = ActivationPolicy.EXPLICIT_TOGGLE,
        coupling: BlendCoupling = BlendCoupling.INDEPENDENT,
        **overrides: Any,
    ) -> ViewportController:
        config = ViewerConfig(activation_policy=policy, blend_coupling=coupling, **overrides)
        controller = ViewportController(render, capture, sensor, config)
        controller.init("panorama-texture")
        return controller

    return _make
