"""Panorama image loading."""
from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
from loguru import logger


def load_equirectangular_image(path: Path) -> np.ndarray:
    """Load an equirectangular panorama as a contiguous RGB uint8 array."""
    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise FileNotFoundError(f"Unable to read panorama image: {path}")
    image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    height, width = image.shape[:2]
    if width != 2 * height:
        logger.warning(
            "Panorama {} is {}x{}; equirectangular images are usually 2:1", path, width, height
        )
    logger.debug("Loaded panorama image {} with shape {}", path, image.shape)
    return np.ascontiguousarray(image)


def placeholder_panorama(width: int = 1024, height: int = 512) -> np.ndarray:
    """Latitude/longitude grid shown when no image was given."""
    image = np.full((height, width, 3), 28, dtype=np.uint8)
    image[:, :, 2] = np.linspace(40, 110, height, dtype=np.uint8)[:, None]
    image[:: height // 8, :, :] = 180
    image[:, :: width // 16, :] = 180
    return image
