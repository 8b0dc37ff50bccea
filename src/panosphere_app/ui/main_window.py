"""Main application window."""
from __future__ import annotations

from typing import Optional

import numpy as np
from loguru import logger
from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QCheckBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSlider,
    QVBoxLayout,
    QWidget,
)

from ..config import ActivationPolicy, ViewerConfig
from ..controller.input_arbiter import InputMode
from ..controller.interfaces import OrientationSensorProvider
from ..controller.overlay_lifecycle import OverlayState
from ..controller.viewport import ViewportController
from ..errors import CapabilityUnavailable, CaptureDenied
from ..io.capture import OpenCVCaptureProvider
from ..viewer.panorama_widget import PanoramaWidget
from ..workers.task_runner import TaskRunner

_SLIDER_STEPS = 100


class MainWindow(QMainWindow):
    """Panorama viewer with camera overlay controls."""

    def __init__(
        self,
        panorama: np.ndarray,
        sensor: OrientationSensorProvider,
        config: Optional[ViewerConfig] = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("Panosphere")
        self.resize(1280, 760)

        self._config = config or ViewerConfig()
        self._task_runner = TaskRunner(max_threads=1)
        self._viewer = PanoramaWidget(self, frame_interval_ms=self._config.frame_interval_ms)
        capture = OpenCVCaptureProvider(
            self._task_runner,
            index=self._config.camera_index,
            width=self._config.camera_width,
            height=self._config.camera_height,
        )
        self._controller = ViewportController(self._viewer, capture, sensor, self._config)

        self._build_ui()
        self._controller.add_error_listener(self._on_capture_denied)
        self._controller.add_overlay_state_listener(self._on_overlay_state)
        self._controller.add_opacity_listener(self._sync_slider)
        self._controller.add_input_mode_listener(self._on_input_mode)

        self._controller.init(panorama)
        self._viewer.attach_controller(self._controller)
        logger.info("UI initialised")

    @property
    def controller(self) -> ViewportController:
        return self._controller

    # ------------------------------------------------------------------
    def _build_ui(self) -> None:
        central = QWidget(self)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._viewer, stretch=1)

        bar = QWidget(central)
        bar.setObjectName("controlBar")
        row = QHBoxLayout(bar)

        self._camera_button = QPushButton("Enable Camera", bar)
        self._camera_button.clicked.connect(self._on_camera_clicked)
        self._camera_button.setVisible(self._controller.policy is ActivationPolicy.EXPLICIT_TOGGLE)
        row.addWidget(self._camera_button)

        reset_button = QPushButton("Reset View", bar)
        reset_button.clicked.connect(self._on_reset_clicked)
        row.addWidget(reset_button)

        zoom_out = QPushButton("-", bar)
        zoom_out.clicked.connect(lambda: self._controller.on_zoom(-1))
        zoom_in = QPushButton("+", bar)
        zoom_in.clicked.connect(lambda: self._controller.on_zoom(1))
        row.addWidget(zoom_out)
        row.addWidget(zoom_in)

        row.addWidget(QLabel("Opacity", bar))
        self._opacity_slider = QSlider(Qt.Orientation.Horizontal, bar)
        self._opacity_slider.setRange(0, _SLIDER_STEPS)
        self._opacity_slider.setValue(_SLIDER_STEPS)
        self._opacity_slider.valueChanged.connect(self._on_slider_changed)
        row.addWidget(self._opacity_slider, stretch=1)

        self._sensor_checkbox = QCheckBox("Device orientation", bar)
        self._sensor_checkbox.toggled.connect(self._on_sensor_toggled)
        row.addWidget(self._sensor_checkbox)

        layout.addWidget(bar)
        self.setCentralWidget(central)

    # ------------------------------------------------------------------
    def _on_camera_clicked(self) -> None:
        self._controller.on_toggle_overlay()

    def _on_reset_clicked(self) -> None:
        self._controller.on_reset_view()

    def _on_slider_changed(self, value: int) -> None:
        self._controller.on_set_opacity(value / _SLIDER_STEPS)

    def _sync_slider(self, opacity: float) -> None:
        value = int(round(opacity * _SLIDER_STEPS))
        if self._opacity_slider.value() != value:
            self._opacity_slider.blockSignals(True)
            self._opacity_slider.setValue(value)
            self._opacity_slider.blockSignals(False)

    def _on_sensor_toggled(self, checked: bool) -> None:
        try:
            self._controller.on_set_sensor_enabled(checked)
        except CapabilityUnavailable as exc:
            self._set_checkbox_silently(False)
            QMessageBox.information(self, "Device Orientation", str(exc))

    def _on_input_mode(self, mode: InputMode) -> None:
        self._set_checkbox_silently(mode is InputMode.SENSOR)

    def _set_checkbox_silently(self, checked: bool) -> None:
        self._sensor_checkbox.blockSignals(True)
        self._sensor_checkbox.setChecked(checked)
        self._sensor_checkbox.blockSignals(False)

    def _on_overlay_state(self, _previous: OverlayState, current: OverlayState) -> None:
        labels = {
            OverlayState.INACTIVE: "Enable Camera",
            OverlayState.ACQUIRING: "Starting Camera...",
            OverlayState.ACTIVE: "Disable Camera",
            OverlayState.RELEASING: "Stopping Camera...",
        }
        self._camera_button.setText(labels[current])
        self._camera_button.setEnabled(current in {OverlayState.INACTIVE, OverlayState.ACTIVE})
        self.statusBar().showMessage(f"Camera overlay {current.value}", 3000)

    def _on_capture_denied(self, error: CaptureDenied) -> None:
        QMessageBox.warning(
            self,
            "Camera Unavailable",
            f"Camera access is required for AR functionality.\n\n{error}",
        )

    def closeEvent(self, event) -> None:  # noqa: N802
        self._viewer.detach_controller()
        self._controller.teardown()
        super().closeEvent(event)
