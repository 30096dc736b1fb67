import logging
import queue
from typing import List, Optional

from model.progress_event import EventKind, ProgressEvent, Severity

logger = logging.getLogger(__name__)

_SEVERITY_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class ProgressChannel:
    """
    Ordered hand-off of ProgressEvents from the worker thread to the presentation thread.

    post() may be called from any thread and never blocks. drain() is called
    by the consumer only and returns events in the order they were posted.
    Events are never dropped, reordered or merged here. The channel outlives
    individual runs.
    """

    def __init__(self):
        self._queue: "queue.SimpleQueue[ProgressEvent]" = queue.SimpleQueue()

    def post(self, event: ProgressEvent):
        self._queue.put(event)

    def drain(self, max_events: Optional[int] = None) -> List[ProgressEvent]:
        """Take all currently pending events (at most max_events) without blocking."""
        events = []
        while max_events is None or len(events) < max_events:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return events

    def pending(self) -> int:
        """Approximate number of events waiting to be drained."""
        return self._queue.qsize()


class ProgressReporter:
    """Producer-side helper that posts events and mirrors them into the log file."""

    def __init__(self, channel: ProgressChannel, source: str = "setup"):
        self.channel = channel
        self._logger = logging.getLogger(f"{__name__}.{source}")

    def log(self, message: str, severity: Severity = Severity.INFO):
        self._logger.log(_SEVERITY_LEVELS[severity], message)
        self.channel.post(ProgressEvent.log(message, severity))

    def info(self, message: str):
        self.log(message, Severity.INFO)

    def success(self, message: str):
        self.log(message, Severity.SUCCESS)

    def warning(self, message: str):
        self.log(message, Severity.WARNING)

    def error(self, message: str):
        self.log(message, Severity.ERROR)

    def progress(self, fraction: float, message: str):
        self._logger.debug(f"Progress {fraction:.1f}%: {message}")
        self.channel.post(ProgressEvent.progress(fraction, message))

    def finished_probe(self, system_info):
        self._logger.debug("Probe finished")
        self.channel.post(ProgressEvent(kind=EventKind.PROBE_FINISHED, payload=system_info))

    def finished_install(self, outcome):
        self._logger.debug(f"Install finished: {outcome.status.value}")
        self.channel.post(
            ProgressEvent(kind=EventKind.INSTALL_FINISHED, message=outcome.message, payload=outcome)
        )
