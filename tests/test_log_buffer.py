"""Tests for the bounded log console buffer."""

import re
from datetime import datetime

import pytest

from model.log_buffer import LogBuffer, format_log_line
from model.progress_event import Severity

LINE_PATTERN = re.compile(r"^\[\d{2}:\d{2}:\d{2}\] \[(INFO|OK|WARN|ERROR)\] ")


class TestFormatLogLine:
    def test_uses_timestamp_and_severity_label(self):
        """Test: Lines look like [HH:MM:SS] [LABEL] message"""
        timestamp = datetime(2024, 5, 1, 13, 45, 7).timestamp()

        line = format_log_line("Checking for NVIDIA GPU...", Severity.INFO, timestamp)

        assert line == "[13:45:07] [INFO] Checking for NVIDIA GPU..."

    @pytest.mark.parametrize(
        "severity,label",
        [
            (Severity.INFO, "INFO"),
            (Severity.SUCCESS, "OK"),
            (Severity.WARNING, "WARN"),
            (Severity.ERROR, "ERROR"),
        ],
    )
    def test_severity_labels(self, severity, label):
        assert f"[{label}] message" in format_log_line("message", severity)

    def test_defaults_to_current_time(self):
        assert LINE_PATTERN.match(format_log_line("now", Severity.INFO))


class TestLogBuffer:
    def test_evicts_oldest_lines_first(self):
        """Test: Appending 1200 lines to a 1000-line buffer keeps lines 201..1200"""
        buffer = LogBuffer(max_lines=1000)

        for i in range(1, 1201):
            buffer.append(f"line {i}")

        lines = buffer.lines()
        assert len(lines) == 1000
        assert lines[0].endswith("line 201")
        assert lines[-1].endswith("line 1200")

    def test_multi_line_message_counts_each_line(self):
        """Test: A message with newlines becomes one formatted line per line"""
        buffer = LogBuffer(max_lines=10)

        formatted = buffer.append("first\nsecond\nthird", Severity.WARNING)

        assert len(buffer) == 3
        assert formatted.count("[WARN]") == 3
        assert all(LINE_PATTERN.match(line) for line in buffer.lines())

    def test_empty_message_still_produces_a_line(self):
        buffer = LogBuffer(max_lines=5)
        buffer.append("")
        assert len(buffer) == 1

    def test_text_and_clear(self):
        buffer = LogBuffer(max_lines=5)
        buffer.append("a")
        buffer.append("b", Severity.ERROR)

        assert buffer.text().splitlines()[1].endswith("[ERROR] b")

        buffer.clear()
        assert len(buffer) == 0
        assert buffer.text() == ""

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            LogBuffer(max_lines=0)
