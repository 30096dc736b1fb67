from PySide6.QtWidgets import QFrame, QHBoxLayout, QLabel, QVBoxLayout
from PySide6.QtCore import Qt

from model.system_info import UNKNOWN
from ui.dark_style import STATUS_COLORS

BADGE_OK = "OK"
BADGE_FAIL = "FAIL"
BADGE_WARN = "WARN"
BADGE_INFO = "INFO"


class StatusCard(QFrame):
    """One row of the system status panel: badge, title and detail text."""

    def __init__(self, title: str, parent=None):
        super().__init__(parent)
        self.setObjectName("statusCard")
        self.badge = BADGE_INFO

        layout = QHBoxLayout(self)
        layout.setContentsMargins(10, 6, 10, 6)

        self.badge_label = QLabel()
        self.badge_label.setFixedWidth(60)
        self.badge_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.badge_label)

        text_layout = QVBoxLayout()
        self.title_label = QLabel(title)
        self.title_label.setStyleSheet("font-weight: bold;")
        self.detail_label = QLabel(UNKNOWN)
        self.detail_label.setWordWrap(True)
        self.detail_label.setStyleSheet("color: #bbb;")
        text_layout.addWidget(self.title_label)
        text_layout.addWidget(self.detail_label)
        layout.addLayout(text_layout, 1)

        self.set_status(BADGE_INFO, UNKNOWN)

    def set_status(self, badge: str, detail: str):
        self.badge = badge
        self.badge_label.setText(f"[{badge}]")
        self.badge_label.setStyleSheet(f"color: {STATUS_COLORS.get(badge, '#bbb')}; font-weight: bold;")
        self.detail_label.setText(detail)

    def detail(self) -> str:
        return self.detail_label.text()


def gpu_badge(info) -> str:
    if info.gpu_detected:
        return BADGE_OK
    return BADGE_INFO if info.gpu_description == UNKNOWN else BADGE_FAIL


def component_badge(installed: bool, description: str) -> str:
    if installed:
        return BADGE_OK
    return BADGE_INFO if description == UNKNOWN else BADGE_WARN
