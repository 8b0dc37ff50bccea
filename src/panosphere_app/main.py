"""Application bootstrap utilities."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QGuiApplication
from PyQt6.QtWidgets import QApplication

from .config import ActivationPolicy, BlendCoupling, load_config
from .io.loader import load_equirectangular_image, placeholder_panorama
from .io.sensor import NullSensorProvider, QtRotationSensorProvider
from .logging import configure_logging
from .ui.main_window import MainWindow
from .ui.theme import apply_dark_theme


def _configure_high_dpi() -> None:
    """Configure high-DPI handling before QApplication instantiation."""
    QGuiApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="panosphere", description="360 degree panorama viewer with camera overlay")
    parser.add_argument("image", nargs="?", type=Path, help="Equirectangular panorama image")
    parser.add_argument("--config", type=Path, default=None, help="YAML viewer config")
    parser.add_argument("--policy", choices=[p.value for p in ActivationPolicy], default=None)
    parser.add_argument("--coupling", choices=[c.value for c in BlendCoupling], default=None)
    parser.add_argument("--camera", type=int, default=None, help="Camera device index")
    parser.add_argument("--no-sensor", action="store_true", help="Never use the orientation sensor")
    parser.add_argument("--log-level", default=None)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Launch the Panosphere viewer."""
    argv = list(sys.argv if argv is None else argv)
    args = build_parser().parse_args(argv[1:])

    config = load_config(args.config).with_overrides(
        activation_policy=args.policy,
        blend_coupling=args.coupling,
        camera_index=args.camera,
        log_level=args.log_level,
    )
    configure_logging(config.log_level)

    if args.image is not None:
        panorama = load_equirectangular_image(args.image)
    else:
        logger.info("No panorama given; showing a placeholder grid")
        panorama = placeholder_panorama()

    _configure_high_dpi()
    app = QApplication(argv)
    apply_dark_theme(app)

    sensor = NullSensorProvider() if args.no_sensor else QtRotationSensorProvider()
    window = MainWindow(panorama, sensor, config)
    window.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
