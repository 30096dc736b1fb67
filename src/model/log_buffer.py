"""
Bounded buffer of formatted log console lines.

Lines use the format ``[HH:MM:SS] [SEVERITY] message``. Once ``max_lines`` is
reached the oldest lines are evicted first.
"""

from collections import deque
from datetime import datetime
from typing import List, Optional

from common.constants import DEFAULT_LOG_MAX_LINES
from model.progress_event import Severity


def format_log_line(message: str, severity: Severity, timestamp: Optional[float] = None) -> str:
    when = datetime.fromtimestamp(timestamp) if timestamp is not None else datetime.now()
    return f"[{when.strftime('%H:%M:%S')}] [{severity.label}] {message}"


class LogBuffer:
    def __init__(self, max_lines: int = DEFAULT_LOG_MAX_LINES):
        if max_lines < 1:
            raise ValueError("max_lines must be at least 1")
        self.max_lines = max_lines
        self._lines = deque(maxlen=max_lines)  # Ring buffer for log lines

    def append(self, message: str, severity: Severity = Severity.INFO, timestamp: Optional[float] = None) -> str:
        """Format and store one line per message line. Returns the formatted text."""
        formatted = [format_log_line(part, severity, timestamp) for part in message.splitlines() or [""]]
        self._lines.extend(formatted)
        return "\n".join(formatted)

    def lines(self) -> List[str]:
        return list(self._lines)

    def text(self) -> str:
        return "\n".join(self._lines)

    def clear(self):
        self._lines.clear()

    def __len__(self):
        return len(self._lines)
