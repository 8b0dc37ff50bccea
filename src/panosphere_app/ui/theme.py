"""Application-wide theme helpers."""
from __future__ import annotations

from PyQt6.QtGui import QColor, QPalette

_CONTROL_BAR_STYLE = """
QWidget#controlBar { background-color: rgba(20, 22, 26, 200); border-radius: 8px; }
QPushButton { padding: 6px 12px; }
QPushButton:checked { background-color: #4c6ef5; }
"""


def build_dark_palette() -> QPalette:
    palette = QPalette()
    for role, color in (
        (QPalette.ColorRole.Window, QColor(18, 19, 22)),
        (QPalette.ColorRole.WindowText, QColor(220, 220, 220)),
        (QPalette.ColorRole.Base, QColor(24, 25, 28)),
        (QPalette.ColorRole.Text, QColor(235, 235, 235)),
        (QPalette.ColorRole.Button, QColor(40, 43, 48)),
        (QPalette.ColorRole.ButtonText, QColor(235, 235, 235)),
        (QPalette.ColorRole.Highlight, QColor(76, 110, 245)),
        (QPalette.ColorRole.HighlightedText, QColor(255, 255, 255)),
    ):
        palette.setColor(role, color)
    return palette


def apply_dark_theme(app) -> None:
    """Apply the dark palette and the control bar stylesheet."""
    app.setStyle("Fusion")
    app.setPalette(build_dark_palette())
    app.setStyleSheet(_CONTROL_BAR_STYLE)
