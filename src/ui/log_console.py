"""
Log console widget for the setup window.

Shows the formatted progress log with colour per severity and keeps at most
``max_lines`` lines (see model.log_buffer).
"""

import logging
from PySide6.QtWidgets import QWidget, QVBoxLayout, QTextEdit, QLabel, QSizePolicy
from PySide6.QtCore import QTimer, Qt
from PySide6.QtGui import QFont, QTextCursor

from common.constants import DEFAULT_LOG_MAX_LINES
from model.log_buffer import LogBuffer
from model.progress_event import Severity

logger = logging.getLogger(__name__)

# Colour per severity label, matching the dark theme
LINE_COLORS = {
    Severity.ERROR.label: "#F48771",
    Severity.WARNING.label: "#D7BA7D",
    Severity.SUCCESS.label: "#89D185",
    Severity.INFO.label: "#4EC9B0",
}
DEFAULT_LINE_COLOR = "#D4D4D4"


def line_color(line: str) -> str:
    for label, color in LINE_COLORS.items():
        if f"] [{label}] " in line:
            return color
    return DEFAULT_LINE_COLOR


class LogConsole(QWidget):
    """
    Read-only monospace console backed by a LogBuffer.

    Several appends within one event-loop pass are rendered once.
    """

    def __init__(self, max_lines: int = DEFAULT_LOG_MAX_LINES, parent=None):
        super().__init__(parent)
        self.buffer = LogBuffer(max_lines)
        self._refresh_pending = False

        self._init_ui()

    def _init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(2)

        header = QLabel("Console Output")
        header_font = QFont()
        header_font.setBold(True)
        header.setFont(header_font)
        layout.addWidget(header)

        self.text_edit = QTextEdit()
        self.text_edit.setReadOnly(True)
        self.text_edit.setMinimumHeight(160)
        self.text_edit.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAsNeeded)
        self.text_edit.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAsNeeded)
        self.text_edit.setLineWrapMode(QTextEdit.LineWrapMode.NoWrap)

        font = QFont("DejaVu Sans Mono", 9)
        if not font.exactMatch():
            font = QFont("Monospace", 9)
        font.setStyleHint(QFont.StyleHint.Monospace)
        self.text_edit.setFont(font)

        self.text_edit.setStyleSheet(
            """
            QTextEdit {
                background-color: #1E1E1E;
                color: #D4D4D4;
                border: 1px solid #3C3C3C;
                border-radius: 3px;
                padding: 4px;
            }
        """
        )

        layout.addWidget(self.text_edit)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

    def append(self, message: str, severity: Severity = Severity.INFO, timestamp=None) -> str:
        """Add a message (one line per message line) and schedule a repaint."""
        formatted = self.buffer.append(message, severity, timestamp)
        if not self._refresh_pending:
            self._refresh_pending = True
            QTimer.singleShot(0, self._refresh_display)
        return formatted

    def clear(self):
        self.buffer.clear()
        self.text_edit.clear()

    def plain_text(self) -> str:
        return self.buffer.text()

    def _refresh_display(self):
        self._refresh_pending = False

        v_scrollbar = self.text_edit.verticalScrollBar()
        h_scrollbar = self.text_edit.horizontalScrollBar()
        # Follow new output only when the user has not scrolled up
        was_at_bottom = v_scrollbar.value() >= (v_scrollbar.maximum() - 2)
        h_scroll_pos = h_scrollbar.value()

        display_text = [
            f'<span style="color: {line_color(line)};">{self._html_escape(line)}</span>' for line in self.buffer.lines()
        ]
        html_content = (
            '<pre style="margin: 0; padding: 0; font-family: inherit;">' + "<br>".join(display_text) + "</pre>"
        )
        self.text_edit.setHtml(html_content)

        if was_at_bottom:
            self._scroll_to_bottom()
        h_scrollbar.setValue(h_scroll_pos)

    def _scroll_to_bottom(self):
        cursor = self.text_edit.textCursor()
        cursor.movePosition(QTextCursor.MoveOperation.End)
        self.text_edit.setTextCursor(cursor)
        v_scrollbar = self.text_edit.verticalScrollBar()
        v_scrollbar.setValue(v_scrollbar.maximum())

    @staticmethod
    def _html_escape(text: str) -> str:
        return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")
