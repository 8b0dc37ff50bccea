import numpy as np
import pytest

from panosphere_app.config import BlendCoupling
from panosphere_app.controller.blend import BlendController
from panosphere_app.controller.interfaces import AcquisitionOutcome
from panosphere_app.controller.overlay_lifecycle import OverlayLifecycle, OverlayState
from panosphere_app.errors import CaptureDenied

from conftest import FakeSurface


@pytest.fixture
def blend(render):
    blend = BlendController(render, BlendCoupling.INDEPENDENT)
    blend.bind_panorama(FakeSurface("sphere"))
    return blend


@pytest.fixture
def lifecycle(render, capture, blend):
    return OverlayLifecycle(render, capture, blend)


def test_activation_goes_through_acquiring(lifecycle, capture, render):
    states = []
    lifecycle.add_state_listener(lambda previous, current: states.append(current))
    lifecycle.request_activation()
    assert lifecycle.state is OverlayState.ACQUIRING
    assert render.overlays() == []

    capture.grant()
    assert lifecycle.state is OverlayState.ACTIVE
    assert lifecycle.feed is capture.feeds[0]
    assert render.overlays() == [lifecycle.overlay_surface]
    assert states == [OverlayState.ACQUIRING, OverlayState.ACTIVE]


def test_release_stops_feed_and_removes_surface(lifecycle, capture, render):
    lifecycle.toggle()
    capture.grant()
    lifecycle.toggle()
    assert lifecycle.state is OverlayState.INACTIVE
    assert capture.open_feeds == []
    assert render.overlays() == []
    assert lifecycle.feed is None and lifecycle.overlay_surface is None


def test_denied_capture_reports_and_returns_to_inactive(lifecycle, capture, render, blend):
    errors = []
    lifecycle.add_error_listener(errors.append)
    lifecycle.request_activation()
    capture.deny("user said no")

    assert lifecycle.state is OverlayState.INACTIVE
    assert len(errors) == 1 and isinstance(errors[0], CaptureDenied)
    assert lifecycle.last_error is errors[0]
    assert render.overlays() == []
    assert blend.panorama_opacity == 1.0
    assert capture.pending == []


def test_no_automatic_retry_after_denial(lifecycle, capture):
    lifecycle.request_activation()
    capture.deny()
    assert capture.requests == 1
    lifecycle.request_activation()
    assert capture.requests == 2


def test_repeated_activation_while_acquiring_is_ignored(lifecycle, capture):
    lifecycle.request_activation()
    lifecycle.request_activation()
    lifecycle.toggle()
    assert capture.requests == 1


def test_release_while_acquiring_is_queued(lifecycle, capture, render):
    lifecycle.request_activation()
    lifecycle.request_release()
    assert lifecycle.state is OverlayState.ACQUIRING
    assert lifecycle.release_pending

    capture.grant()
    assert lifecycle.state is OverlayState.INACTIVE
    assert capture.open_feeds == []
    assert render.overlays() == []


def test_queued_release_is_dropped_when_acquisition_fails(lifecycle, capture):
    lifecycle.request_activation()
    lifecycle.request_release()
    capture.deny()
    assert lifecycle.state is OverlayState.INACTIVE
    assert not lifecycle.release_pending


def test_new_activation_cancels_queued_release(lifecycle, capture):
    lifecycle.request_activation()
    lifecycle.request_release()
    lifecycle.request_activation()
    capture.grant()
    assert lifecycle.state is OverlayState.ACTIVE
    assert capture.requests == 1


def test_release_when_inactive_is_noop(lifecycle, capture):
    lifecycle.request_release()
    assert lifecycle.state is OverlayState.INACTIVE
    assert capture.requests == 0


def test_duplicate_completion_cannot_create_second_handle(lifecycle, capture, render):
    lifecycle.request_activation()
    callback = capture.grant()
    extra = capture.new_feed()
    callback(AcquisitionOutcome(feed=extra))
    assert extra.stopped
    assert len(capture.open_feeds) == 1
    assert len(render.overlays()) == 1


def test_resource_invariant_under_random_interleavings(lifecycle, capture, render):
    rng = np.random.default_rng(2024)
    actions = ["activate", "release", "toggle", "grant", "deny"]
    for step in range(2000):
        action = actions[rng.integers(len(actions))]
        if action == "activate":
            lifecycle.request_activation()
        elif action == "release":
            lifecycle.request_release()
        elif action == "toggle":
            lifecycle.toggle()
        elif action == "grant" and capture.pending:
            capture.grant()
        elif action == "deny" and capture.pending:
            capture.deny()

        assert len(capture.pending) <= 1, step
        assert len(capture.open_feeds) <= 1, step
        assert len(render.overlays()) <= 1, step
        if lifecycle.state is OverlayState.ACTIVE:
            assert capture.open_feeds == [lifecycle.feed]
            assert render.overlays() == [lifecycle.overlay_surface]
        else:
            assert capture.open_feeds == []
            assert render.overlays() == []


def test_overlay_setup_failure_releases_camera(lifecycle, capture, render, blend, monkeypatch):
    def broken_surface(feed):
        raise RuntimeError("no GL context")

    monkeypatch.setattr(render, "create_overlay_surface", broken_surface)
    errors = []
    lifecycle.add_error_listener(errors.append)
    lifecycle.request_activation()
    capture.grant()

    assert lifecycle.state is OverlayState.INACTIVE
    assert lifecycle.feed is None
    assert capture.open_feeds == []
    assert render.overlays() == []
    assert blend.overlay_opacity is None
    assert len(errors) == 1 and isinstance(errors[0], CaptureDenied)
    assert isinstance(errors[0].__cause__, RuntimeError)

    lifecycle.request_activation()
    assert capture.requests == 2


def test_scene_insert_failure_rolls_back_overlay(lifecycle, capture, render, monkeypatch):
    original = render.add_to_scene

    def reject_overlay(surface):
        if surface.kind == "overlay":
            raise RuntimeError("scene rejected overlay")
        original(surface)

    monkeypatch.setattr(render, "add_to_scene", reject_overlay)
    lifecycle.request_activation()
    lifecycle.request_release()
    capture.grant()

    assert lifecycle.state is OverlayState.INACTIVE
    assert not lifecycle.release_pending
    assert lifecycle.overlay_surface is None
    assert capture.open_feeds == []
    assert render.overlays() == []
