"""Viewer configuration."""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from loguru import logger


class ActivationPolicy(str, Enum):
    """What switches the camera overlay on and off."""

    EXPLICIT_TOGGLE = "toggle"
    THRESHOLD = "threshold"


class BlendCoupling(str, Enum):
    """How the overlay opacity follows the opacity control."""

    INDEPENDENT = "independent"
    FIXED = "fixed"


@dataclass(slots=True, frozen=True)
class ViewerConfig:
    """Tunables for the viewport controller and its Qt shell."""

    rotation_speed: float = 0.005  # radians per pixel of drag
    base_fov: float = 75.0  # degrees
    zoom_step: float = 0.1
    zoom_min: float = 0.5
    zoom_max: float = 2.0
    sphere_radius: float = 500.0
    activation_policy: ActivationPolicy = ActivationPolicy.EXPLICIT_TOGGLE
    blend_coupling: BlendCoupling = BlendCoupling.INDEPENDENT
    activation_threshold: float = 0.7
    activation_opacity: float = 0.5
    overlay_opacity: float = 0.5
    camera_index: int = 0
    camera_width: int = 1280
    camera_height: int = 720
    frame_interval_ms: int = 16
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.zoom_min <= 0.0 or self.zoom_min > self.zoom_max:
            raise ValueError(f"Invalid zoom bounds [{self.zoom_min}, {self.zoom_max}]")
        if not 0.0 <= self.activation_threshold <= 1.0:
            raise ValueError("activation_threshold must lie in [0, 1]")
        for name in ("activation_opacity", "overlay_opacity"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise ValueError(f"{name} must lie in [0, 1]")
        if self.rotation_speed <= 0.0:
            raise ValueError("rotation_speed must be positive")
        if self.base_fov <= 0.0:
            raise ValueError("base_fov must be positive")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ViewerConfig":
        """Build a config from a plain mapping, e.g. parsed YAML."""
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

        values = dict(data)
        if "activation_policy" in values:
            values["activation_policy"] = ActivationPolicy(values["activation_policy"])
        if "blend_coupling" in values:
            values["blend_coupling"] = BlendCoupling(values["blend_coupling"])
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "ViewerConfig":
        """Return a copy with non-``None`` overrides applied."""
        values = {key: value for key, value in overrides.items() if value is not None}
        if "activation_policy" in values:
            values["activation_policy"] = ActivationPolicy(values["activation_policy"])
        if "blend_coupling" in values:
            values["blend_coupling"] = BlendCoupling(values["blend_coupling"])
        return replace(self, **values)


def load_config(path: Optional[Path]) -> ViewerConfig:
    """Load a YAML config file, falling back to defaults when absent."""
    if path is None:
        return ViewerConfig()
    if not path.exists():
        logger.info("Config file {} not found; using defaults", path)
        return ViewerConfig()

    with path.open("r", encoding="utf-8") as stream:
        data = yaml.safe_load(stream) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping at top level")

    config = ViewerConfig.from_mapping(data)
    logger.debug("Loaded viewer config from {}: {}", path, config)
    return config
