"""View-state models shared by the controller and the renderer."""

from .orientation import Orientation, OrientationModel
from .zoom import ZoomModel

__all__ = [
    "Orientation",
    "OrientationModel",
    "ZoomModel",
]
