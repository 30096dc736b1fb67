"""Tests for the LogConsole widget."""

from model.progress_event import Severity
from ui.log_console import DEFAULT_LINE_COLOR, LINE_COLORS, LogConsole, line_color


class TestLineColor:
    def test_colors_by_label(self):
        assert line_color("[12:00:00] [ERROR] failed") == LINE_COLORS["ERROR"]
        assert line_color("[12:00:00] [OK] done") == LINE_COLORS["OK"]
        assert line_color("[12:00:00] [WARN] careful") == LINE_COLORS["WARN"]

    def test_unlabelled_line(self):
        assert line_color("plain text") == DEFAULT_LINE_COLOR


class TestLogConsole:
    def test_append_renders_once_per_event_loop_pass(self, qtbot):
        console = LogConsole(max_lines=100)
        qtbot.addWidget(console)

        console.append("Checking for NVIDIA GPU...")
        console.append("NVIDIA GPU Detected", Severity.SUCCESS)

        qtbot.waitUntil(lambda: "NVIDIA GPU Detected" in console.text_edit.toPlainText())
        assert "[INFO] Checking for NVIDIA GPU..." in console.text_edit.toPlainText()
        assert "[OK] NVIDIA GPU Detected" in console.plain_text()

    def test_respects_max_lines(self, qtbot):
        console = LogConsole(max_lines=3)
        qtbot.addWidget(console)

        for i in range(5):
            console.append(f"line {i}")

        lines = console.buffer.lines()
        assert len(lines) == 3
        assert lines[0].endswith("line 2")

    def test_markup_is_escaped(self, qtbot):
        console = LogConsole(max_lines=10)
        qtbot.addWidget(console)

        console.append("<b>not bold</b> & more")

        qtbot.waitUntil(lambda: "<b>not bold</b> & more" in console.text_edit.toPlainText())

    def test_clear(self, qtbot):
        console = LogConsole(max_lines=10)
        qtbot.addWidget(console)
        console.append("something")

        console.clear()

        assert console.plain_text() == ""
