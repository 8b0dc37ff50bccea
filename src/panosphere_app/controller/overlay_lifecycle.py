"""Camera overlay lifecycle.

The overlay owns exactly one camera feed and one overlay surface while it is
``ACTIVE`` and none otherwise. Opening the camera is asynchronous: the
lifecycle parks in ``ACQUIRING`` until the capture provider calls back, and
guards against re-entrant requests in the meantime instead of locking.
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

from loguru import logger

from ..errors import CaptureDenied
from .blend import BlendController
from .interfaces import (
    AcquisitionOutcome,
    CaptureProvider,
    FeedHandle,
    RenderBinding,
    Surface,
)


class OverlayState(Enum):
    INACTIVE = "inactive"
    ACQUIRING = "acquiring"
    ACTIVE = "active"
    RELEASING = "releasing"


StateListener = Callable[[OverlayState, OverlayState], None]
ErrorListener = Callable[[CaptureDenied], None]


class OverlayLifecycle:
    """State machine governing the live camera overlay."""

    def __init__(
        self,
        render: RenderBinding,
        capture: CaptureProvider,
        blend: BlendController,
    ) -> None:
        self._render = render
        self._capture = capture
        self._blend = blend
        self._state = OverlayState.INACTIVE
        self._feed: Optional[FeedHandle] = None
        self._surface: Optional[Surface] = None
        self._in_scene = False
        self._release_pending = False
        self._state_listeners: list[StateListener] = []
        self._error_listeners: list[ErrorListener] = []
        self.last_error: Optional[CaptureDenied] = None

    # ------------------------------------------------------------------
    @property
    def state(self) -> OverlayState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is OverlayState.ACTIVE

    @property
    def feed(self) -> Optional[FeedHandle]:
        return self._feed

    @property
    def overlay_surface(self) -> Optional[Surface]:
        return self._surface

    @property
    def release_pending(self) -> bool:
        return self._release_pending

    def add_state_listener(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def add_error_listener(self, listener: ErrorListener) -> None:
        self._error_listeners.append(listener)

    # ------------------------------------------------------------------
    def request_activation(self) -> None:
        """Start acquiring the camera if the overlay is inactive."""
        if self._state is OverlayState.ACQUIRING:
            # Activation is already under way; a newer activation intent
            # supersedes a release queued behind it.
            self._release_pending = False
            return
        if self._state is not OverlayState.INACTIVE:
            logger.debug("Ignoring overlay activation while {}", self._state.value)
            return

        self.last_error = None
        self._transition(OverlayState.ACQUIRING)
        self._capture.request_environment_camera(self._on_acquisition_complete)

    def request_release(self) -> None:
        """Tear the overlay down, or queue the teardown while acquiring."""
        if self._state is OverlayState.ACQUIRING:
            logger.debug("Queueing overlay release until acquisition resolves")
            self._release_pending = True
            return
        if self._state is not OverlayState.ACTIVE:
            logger.debug("Ignoring overlay release while {}", self._state.value)
            return
        self._release()

    def toggle(self) -> None:
        if self._state is OverlayState.INACTIVE:
            self.request_activation()
        elif self._state is OverlayState.ACTIVE:
            self.request_release()
        else:
            logger.debug("Ignoring overlay toggle while {}", self._state.value)

    # ------------------------------------------------------------------
    def _on_acquisition_complete(self, outcome: AcquisitionOutcome) -> None:
        if self._state is not OverlayState.ACQUIRING:
            logger.warning("Discarding stale camera acquisition result in state {}", self._state.value)
            if outcome.feed is not None:
                self._capture.stop_feed(outcome.feed)
            return

        pending_release = self._release_pending
        self._release_pending = False

        if not outcome.ok:
            if outcome.feed is not None:
                self._capture.stop_feed(outcome.feed)
            self._fail(outcome.error or CaptureDenied("Camera acquisition returned no feed"))
            return

        try:
            self._attach_overlay(outcome.feed)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Overlay surface setup failed; releasing camera")
            self._rollback_attach()
            error = CaptureDenied(f"Camera overlay could not be created: {exc}")
            error.__cause__ = exc
            self._fail(error)
            return
        self._transition(OverlayState.ACTIVE)

        if pending_release:
            logger.debug("Running release queued during acquisition")
            self._release()

    def _attach_overlay(self, feed: FeedHandle) -> None:
        self._feed = feed
        self._surface = self._render.create_overlay_surface(feed)
        self._blend.bind_overlay(self._surface)
        self._render.add_to_scene(self._surface)
        self._in_scene = True

    def _rollback_attach(self) -> None:
        feed, surface, in_scene = self._feed, self._surface, self._in_scene
        self._feed = None
        self._surface = None
        self._in_scene = False
        self._blend.unbind_overlay()
        try:
            if feed is not None:
                self._capture.stop_feed(feed)
        finally:
            if surface is not None and in_scene:
                self._render.remove_from_scene(surface)

    def _fail(self, error: CaptureDenied) -> None:
        self.last_error = error
        logger.warning("Camera acquisition failed: {}", error)
        self._transition(OverlayState.INACTIVE)
        for listener in list(self._error_listeners):
            listener(error)

    def _release(self) -> None:
        self._transition(OverlayState.RELEASING)
        feed, surface = self._feed, self._surface
        self._feed = None
        self._surface = None
        self._in_scene = False
        self._blend.unbind_overlay()
        try:
            if feed is not None:
                self._capture.stop_feed(feed)
        finally:
            if surface is not None:
                self._render.remove_from_scene(surface)
            self._transition(OverlayState.INACTIVE)

    def _transition(self, new_state: OverlayState) -> None:
        previous = self._state
        self._state = new_state
        logger.info("Overlay {} -> {}", previous.value, new_state.value)
        for listener in list(self._state_listeners):
            listener(previous, new_state)
