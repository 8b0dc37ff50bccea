"""The viewport controller: one owned instance wiring models, input and overlay."""
from __future__ import annotations

from typing import Any, Optional

from loguru import logger

from ..config import ActivationPolicy, ViewerConfig
from ..errors import InvalidInput, UnsupportedCommand
from ..models.orientation import Orientation, OrientationModel
from ..models.zoom import ZoomModel
from .blend import BlendController, OpacityListener
from .frame_ticker import FrameTicker
from .input_arbiter import InputArbiter, InputMode, ModeListener
from .interfaces import (
    CaptureProvider,
    OrientationSensorProvider,
    RenderBinding,
    Surface,
)
from .overlay_lifecycle import ErrorListener, OverlayLifecycle, OverlayState, StateListener

FULL_OPACITY = 1.0


class ViewportController:
    """Panoramic viewport controller.

    Owns the orientation and zoom models, the input arbiter, the blend
    controller and the overlay lifecycle. The UI layer calls the ``on_*``
    command methods and :meth:`tick` once per frame; all calls are expected
    on the same thread.
    """

    def __init__(
        self,
        render: RenderBinding,
        capture: CaptureProvider,
        sensor: OrientationSensorProvider,
        config: Optional[ViewerConfig] = None,
    ) -> None:
        self.config = config or ViewerConfig()
        self._render = render
        self.orientation = OrientationModel()
        self.zoom = ZoomModel(self.config.zoom_step, self.config.zoom_min, self.config.zoom_max)
        self.arbiter = InputArbiter(self.orientation, sensor, self.config.rotation_speed)
        self.blend = BlendController(
            render,
            coupling=self.config.blend_coupling,
            fixed_overlay_opacity=self.config.overlay_opacity,
        )
        self.overlay = OverlayLifecycle(render, capture, self.blend)
        self.ticker = FrameTicker(render, self.orientation, self.zoom, self.config.base_fov)
        self._panorama: Optional[Surface] = None
        self._initialised = False

        if self.policy is ActivationPolicy.EXPLICIT_TOGGLE:
            self.overlay.add_state_listener(self._apply_toggle_presets)

    # ------------------------------------------------------------------
    @property
    def policy(self) -> ActivationPolicy:
        return self.config.activation_policy

    @property
    def panorama_surface(self) -> Optional[Surface]:
        return self._panorama

    @property
    def input_mode(self) -> InputMode:
        return self.arbiter.mode

    @property
    def overlay_state(self) -> OverlayState:
        return self.overlay.state

    def current_orientation(self) -> Orientation:
        return self.orientation.current()

    def add_error_listener(self, listener: ErrorListener) -> None:
        self.overlay.add_error_listener(listener)

    def add_overlay_state_listener(self, listener: StateListener) -> None:
        self.overlay.add_state_listener(listener)

    def add_input_mode_listener(self, listener: ModeListener) -> None:
        self.arbiter.add_mode_listener(listener)

    def add_opacity_listener(self, listener: OpacityListener) -> None:
        self.blend.add_listener(listener)

    # ------------------------------------------------------------------
    def init(self, panorama_material: Any) -> Surface:
        """Create the panorama sphere and hold on to its handle."""
        if self._initialised:
            raise RuntimeError("ViewportController is already initialised")
        sphere = self._render.create_sphere(self.config.sphere_radius, panorama_material)
        self._render.add_to_scene(sphere)
        self._panorama = sphere
        self.blend.bind_panorama(sphere)
        self.ticker.attach(sphere)
        self._initialised = True
        logger.info(
            "Viewport initialised (policy={}, coupling={})",
            self.policy.value,
            self.config.blend_coupling.value,
        )
        return sphere

    def teardown(self) -> None:
        """Release the overlay and sensor and remove the panorama sphere."""
        if not self._initialised:
            return
        self.overlay.request_release()
        self.arbiter.reset()
        self.ticker.attach(None)
        self.blend.bind_panorama(None)
        if self._panorama is not None:
            self._render.remove_from_scene(self._panorama)
            self._panorama = None
        self._initialised = False
        logger.info("Viewport torn down")

    # UI command surface -------------------------------------------------
    def on_pointer_down(self, x: Optional[float], y: Optional[float]) -> None:
        self.arbiter.on_pointer_down(x, y)

    def on_pointer_move(self, x: Optional[float], y: Optional[float]) -> None:
        self.arbiter.on_pointer_move(x, y)

    def on_pointer_up(self) -> None:
        self.arbiter.on_pointer_up()

    def on_zoom(self, direction: int) -> float:
        return self.zoom.adjust(direction)

    def on_reset_view(self) -> None:
        self.orientation.reset()
        self.zoom.reset()
        self.arbiter.reset()
        logger.debug("View reset")

    def on_set_sensor_enabled(self, enabled: bool) -> None:
        self.arbiter.set_sensor_enabled(enabled)

    def on_set_opacity(self, value: float) -> None:
        previous = self.blend.opacity
        try:
            current = self.blend.set_opacity(value)
        except InvalidInput as exc:
            logger.debug("Dropping opacity sample: {}", exc)
            return

        if self.policy is not ActivationPolicy.THRESHOLD:
            return
        threshold = self.config.activation_threshold
        if previous >= threshold > current:
            self.overlay.request_activation()
        elif previous < threshold <= current:
            self.overlay.request_release()

    def on_toggle_overlay(self) -> None:
        if self.policy is not ActivationPolicy.EXPLICIT_TOGGLE:
            raise UnsupportedCommand("Overlay toggle is not available under the threshold policy")
        self.overlay.toggle()

    def tick(self) -> None:
        self.ticker.tick()

    # ------------------------------------------------------------------
    def _apply_toggle_presets(self, previous: OverlayState, current: OverlayState) -> None:
        if current is OverlayState.ACTIVE:
            self.blend.set_opacity(self.config.activation_opacity)
        elif previous is OverlayState.RELEASING and current is OverlayState.INACTIVE:
            self.blend.set_opacity(FULL_OPACITY)
