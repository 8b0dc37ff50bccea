import math

import pytest

from panosphere_app.config import ActivationPolicy, BlendCoupling, ViewerConfig
from panosphere_app.controller import InputMode, OverlayState, ViewportController
from panosphere_app.errors import CapabilityUnavailable, UnsupportedCommand

from conftest import FakeSensor

THRESHOLD = ActivationPolicy.THRESHOLD


def test_init_creates_and_holds_panorama_sphere(make_controller, render):
    controller = make_controller()
    sphere = controller.panorama_surface
    assert sphere.kind == "sphere"
    assert sphere.material == "panorama-texture"
    assert render.scene == [sphere]
    assert sphere.opacity == 1.0


def test_init_twice_is_a_contract_violation(make_controller):
    controller = make_controller()
    with pytest.raises(RuntimeError):
        controller.init("again")


def test_tick_before_init_is_a_contract_violation(render, capture, sensor):
    controller = ViewportController(render, capture, sensor)
    with pytest.raises(RuntimeError):
        controller.tick()


def test_tick_pushes_rotation_and_fov(make_controller, render):
    controller = make_controller(base_fov=75.0)
    controller.on_pointer_down(100, 100)
    controller.on_pointer_move(150, 130)
    controller.on_zoom(1)
    controller.tick()

    sphere = controller.panorama_surface
    assert math.isclose(sphere.yaw, 0.25)
    assert math.isclose(sphere.pitch, 0.15)
    assert render.fov == pytest.approx(75.0 / 1.1)
    assert render.frames == 1


def test_tick_does_not_mutate_models(make_controller):
    controller = make_controller()
    controller.on_pointer_down(0, 0)
    controller.on_pointer_move(40, 20)
    before = controller.current_orientation()
    zoom = controller.zoom.level
    for _ in range(5):
        controller.tick()
    assert controller.current_orientation() == before
    assert controller.zoom.level == zoom


def test_reset_restores_defaults_from_any_state(make_controller, sensor):
    controller = make_controller()
    controller.on_pointer_down(0, 0)
    controller.on_pointer_move(300, -900)
    controller.on_zoom(1)
    controller.on_zoom(1)
    controller.on_set_sensor_enabled(True)
    sensor.emit(10, 20)

    controller.on_reset_view()
    view = controller.current_orientation()
    assert (view.yaw, view.pitch) == (0.0, 0.0)
    assert controller.zoom.level == 1.0
    assert controller.input_mode is InputMode.POINTER
    assert sensor.callback is None


def test_reset_reports_input_mode_change(make_controller):
    controller = make_controller()
    modes = []
    controller.add_input_mode_listener(modes.append)
    controller.on_set_sensor_enabled(True)
    controller.on_reset_view()
    assert modes == [InputMode.SENSOR, InputMode.POINTER]


def test_unsupported_sensor_reports_capability(render, capture):
    controller = ViewportController(render, capture, FakeSensor(supported=False))
    controller.init("pano")
    with pytest.raises(CapabilityUnavailable):
        controller.on_set_sensor_enabled(True)
    assert controller.input_mode is InputMode.POINTER


def test_threshold_policy_activates_below_threshold(make_controller, capture, render):
    controller = make_controller(policy=THRESHOLD)
    controller.on_set_opacity(0.5)
    assert controller.overlay_state is OverlayState.ACQUIRING

    capture.grant()
    assert controller.overlay_state is OverlayState.ACTIVE
    assert controller.panorama_surface.opacity == pytest.approx(0.5)
    overlay = render.overlays()[0]
    assert overlay.opacity == pytest.approx(0.5)


def test_threshold_policy_releases_at_threshold(make_controller, capture, render):
    controller = make_controller(policy=THRESHOLD)
    controller.on_set_opacity(0.4)
    capture.grant()
    controller.on_set_opacity(0.6)
    assert controller.overlay_state is OverlayState.ACTIVE
    assert render.overlays()[0].opacity == pytest.approx(0.4)

    controller.on_set_opacity(0.7)
    assert controller.overlay_state is OverlayState.INACTIVE
    assert capture.open_feeds == []
    assert controller.panorama_surface.opacity == pytest.approx(0.7)


def test_threshold_crossing_back_during_acquisition_is_queued(make_controller, capture):
    controller = make_controller(policy=THRESHOLD)
    controller.on_set_opacity(0.3)
    controller.on_set_opacity(0.9)
    capture.grant()
    assert controller.overlay_state is OverlayState.INACTIVE
    assert capture.open_feeds == []


def test_threshold_denial_is_not_retried_until_next_crossing(make_controller, capture):
    controller = make_controller(policy=THRESHOLD)
    denied = []
    controller.add_error_listener(denied.append)
    controller.on_set_opacity(0.5)
    capture.deny()
    assert controller.overlay_state is OverlayState.INACTIVE
    assert controller.panorama_surface.opacity == pytest.approx(0.5)
    assert len(denied) == 1

    controller.on_set_opacity(0.4)
    assert capture.requests == 1
    controller.on_set_opacity(0.8)
    controller.on_set_opacity(0.2)
    assert capture.requests == 2


def test_threshold_policy_has_no_toggle(make_controller):
    controller = make_controller(policy=THRESHOLD)
    with pytest.raises(UnsupportedCommand):
        controller.on_toggle_overlay()


def test_toggle_policy_opacity_is_cosmetic(make_controller, capture):
    controller = make_controller()
    controller.on_set_opacity(0.1)
    assert controller.overlay_state is OverlayState.INACTIVE
    assert capture.requests == 0


def test_toggle_policy_presets_opacity(make_controller, capture, render):
    controller = make_controller()
    seen = []
    controller.add_opacity_listener(seen.append)

    controller.on_toggle_overlay()
    capture.grant()
    assert controller.blend.opacity == pytest.approx(0.5)
    assert render.overlays()[0].opacity == pytest.approx(0.5)

    controller.on_set_opacity(0.8)
    assert render.overlays()[0].opacity == pytest.approx(0.2)

    controller.on_toggle_overlay()
    assert controller.overlay_state is OverlayState.INACTIVE
    assert controller.panorama_surface.opacity == 1.0
    assert seen == [pytest.approx(0.5), pytest.approx(0.8), 1.0]


def test_toggle_denial_leaves_opacity_unchanged(make_controller, capture):
    controller = make_controller()
    controller.on_set_opacity(0.8)
    controller.on_toggle_overlay()
    capture.deny()
    assert controller.overlay_state is OverlayState.INACTIVE
    assert controller.panorama_surface.opacity == pytest.approx(0.8)


def test_fixed_coupling_overlay_ignores_slider(make_controller, capture, render):
    controller = make_controller(policy=THRESHOLD, coupling=BlendCoupling.FIXED, overlay_opacity=0.6)
    controller.on_set_opacity(0.2)
    capture.grant()
    controller.on_set_opacity(0.1)
    assert render.overlays()[0].opacity == pytest.approx(0.6)


def test_invalid_opacity_is_dropped(make_controller):
    controller = make_controller(policy=THRESHOLD)
    controller.on_set_opacity(float("nan"))
    assert controller.blend.opacity == 1.0
    assert controller.overlay_state is OverlayState.INACTIVE


def test_teardown_while_acquiring_releases_on_completion(make_controller, capture, render, sensor):
    controller = make_controller()
    controller.on_set_sensor_enabled(True)
    controller.on_toggle_overlay()
    controller.teardown()
    assert sensor.callback is None
    assert render.scene == []

    capture.grant()
    assert controller.overlay_state is OverlayState.INACTIVE
    assert capture.open_feeds == []
    assert render.scene == []


def test_teardown_is_idempotent(make_controller, capture, render):
    controller = make_controller()
    controller.on_toggle_overlay()
    capture.grant()
    controller.teardown()
    controller.teardown()
    assert render.scene == []
    assert capture.open_feeds == []


def test_default_config_is_toggle_and_independent():
    config = ViewerConfig()
    assert config.activation_policy is ActivationPolicy.EXPLICIT_TOGGLE
    assert config.blend_coupling is BlendCoupling.INDEPENDENT
