"""Panoramic viewport controller core (no Qt or OpenGL imports)."""

from .blend import BlendController
from .frame_ticker import FrameTicker
from .input_arbiter import InputArbiter, InputMode
from .interfaces import AcquisitionOutcome
from .overlay_lifecycle import OverlayLifecycle, OverlayState
from .viewport import ViewportController

__all__ = [
    "AcquisitionOutcome",
    "BlendController",
    "FrameTicker",
    "InputArbiter",
    "InputMode",
    "OverlayLifecycle",
    "OverlayState",
    "ViewportController",
]
