"""Typed outcomes reported by the viewport controller."""
from __future__ import annotations


class ViewerError(Exception):
    """Base class for recoverable viewer errors."""


class CapabilityUnavailable(ViewerError):
    """The device-orientation sensor is not available on this machine."""


class CaptureDenied(ViewerError):
    """The environment camera could not be opened or access was refused."""


class InvalidInput(ViewerError):
    """A pointer, sensor or opacity sample was malformed and has been dropped."""


class UnsupportedCommand(ViewerError):
    """The command does not exist under the configured activation policy."""
