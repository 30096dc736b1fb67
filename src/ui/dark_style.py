from PySide6.QtGui import QPalette, QColor
from PySide6.QtCore import Qt

# Badge colours of the status cards
STATUS_COLORS = {
    "OK": "#4CAF50",
    "FAIL": "#F44336",
    "WARN": "#FF9800",
    "INFO": "#2196F3",
}

STYLE_SHEET = """
QToolTip { color: #ffffff; background-color: #2a82da; border: 1px solid white; }
QFrame#statusCard {
    background-color: #2b2b2b;
    border: 1px solid #3c3c3c;
    border-radius: 6px;
}
QFrame#progressFrame {
    border: 1px solid #3c3c3c;
    border-radius: 6px;
}
QLabel#titleLabel { font-size: 18pt; font-weight: bold; }
QLabel#subtitleLabel { color: #999; }
QLabel#wslNotice { color: #FF9800; }
QPushButton { padding: 6px 14px; }
QProgressBar { text-align: center; }
"""


def enable_dark_mode(app):
    app.setStyle("Fusion")
    dark_palette = QPalette()

    dark_palette.setColor(QPalette.ColorRole.Window, QColor(53, 53, 53))
    dark_palette.setColor(QPalette.ColorRole.WindowText, Qt.GlobalColor.white)
    dark_palette.setColor(QPalette.ColorRole.Base, QColor(25, 25, 25))
    dark_palette.setColor(QPalette.ColorRole.AlternateBase, QColor(53, 53, 53))
    dark_palette.setColor(QPalette.ColorRole.ToolTipBase, Qt.GlobalColor.white)
    dark_palette.setColor(QPalette.ColorRole.ToolTipText, Qt.GlobalColor.white)
    dark_palette.setColor(QPalette.ColorRole.Text, Qt.GlobalColor.white)
    dark_palette.setColor(QPalette.ColorRole.Button, QColor(53, 53, 53))
    dark_palette.setColor(QPalette.ColorRole.ButtonText, Qt.GlobalColor.white)
    dark_palette.setColor(QPalette.ColorRole.BrightText, Qt.GlobalColor.red)
    dark_palette.setColor(QPalette.ColorRole.Link, QColor(118, 185, 0))
    dark_palette.setColor(QPalette.ColorRole.Highlight, QColor(118, 185, 0))
    dark_palette.setColor(QPalette.ColorRole.HighlightedText, Qt.GlobalColor.black)

    # Disabled state (Detect/Install while a run is active)
    dark_palette.setColor(QPalette.ColorGroup.Disabled, QPalette.ColorRole.ButtonText, QColor(128, 128, 128))
    dark_palette.setColor(QPalette.ColorGroup.Disabled, QPalette.ColorRole.WindowText, QColor(128, 128, 128))
    dark_palette.setColor(QPalette.ColorGroup.Disabled, QPalette.ColorRole.Text, QColor(128, 128, 128))
    dark_palette.setColor(QPalette.ColorGroup.Disabled, QPalette.ColorRole.Button, QColor(40, 40, 40))

    app.setPalette(dark_palette)
    app.setStyleSheet(STYLE_SHEET)
