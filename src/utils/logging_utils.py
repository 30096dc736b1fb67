"""
Logging helpers for long-running external commands.

Provides:
- flush_logs() so queued records reach the log file before a long command starts
- TimingSpan for logging how long an install step took
"""

import logging
import logging.handlers
import sys
import time
from typing import Optional

logger = logging.getLogger(__name__)


def flush_logs():
    """
    Force immediate flush of all log handlers.

    With the queue-based setup the records sit in the queue until the
    listener thread picks them up; a short sleep gives it that chance.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        handler.flush()
        if isinstance(handler, logging.handlers.QueueHandler):
            time.sleep(0.001)

    sys.stdout.flush()
    sys.stderr.flush()


class TimingSpan:
    """
    Context manager for timing operations and logging duration.

    Usage:
        with TimingSpan("install-driver"):
            runner(command)
    """

    def __init__(self, operation: str, log: Optional[logging.Logger] = None):
        self.operation = operation
        self.log = log or logger
        self.start_time = None
        self.end_time = None

    def __enter__(self):
        self.start_time = time.monotonic()
        self.log.debug(f"{self.operation} - started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.monotonic()
        duration_ms = (self.end_time - self.start_time) * 1000

        if exc_type is not None:
            self.log.error(f"{self.operation} - failed after {duration_ms:.0f}ms: {exc_val}")
        else:
            self.log.info(f"{self.operation} - completed in {duration_ms:.0f}ms")

        return False  # Don't suppress exceptions

    def get_duration_ms(self) -> Optional[float]:
        if self.start_time is not None and self.end_time is not None:
            return (self.end_time - self.start_time) * 1000
        return None
