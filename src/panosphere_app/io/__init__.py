"""Input/output adapters: panorama loading, camera capture and orientation sensors."""

from .capture import CameraFeed, OpenCVCaptureProvider
from .loader import load_equirectangular_image

__all__ = [
    "CameraFeed",
    "OpenCVCaptureProvider",
    "load_equirectangular_image",
]
