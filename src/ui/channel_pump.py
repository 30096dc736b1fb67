import logging
from PySide6.QtCore import QObject, QTimer, Signal

from managers.progress_channel import ProgressChannel
from model.progress_event import EventKind

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 100


class ChannelPump(QObject):
    """
    Drains the progress channel on the GUI thread and re-emits events as Qt signals.

    Progress events drained in the same tick collapse into the last one; log
    and terminal events are always emitted, in channel order.
    """

    progress_changed = Signal(float, str)
    log_appended = Signal(str, object)  # message, Severity
    probe_finished = Signal(object)  # SystemInfo
    install_finished = Signal(object)  # RunOutcome

    def __init__(self, channel: ProgressChannel, interval_ms: int = DEFAULT_INTERVAL_MS, parent=None):
        super().__init__(parent)
        self.channel = channel
        self.timer = QTimer(self)
        self.timer.setInterval(interval_ms)
        self.timer.timeout.connect(self.pump)

    def start(self):
        self.timer.start()

    def stop(self):
        self.timer.stop()

    def pump(self) -> int:
        """Drain and dispatch everything pending. Returns the number of events handled."""
        events = self.channel.drain()
        pending_progress = None

        for event in events:
            if event.kind == EventKind.PROGRESS:
                pending_progress = event
                continue

            # Keep progress before anything that followed it
            if pending_progress is not None:
                self.progress_changed.emit(pending_progress.fraction, pending_progress.message)
                pending_progress = None

            if event.kind == EventKind.LOG:
                self.log_appended.emit(event.message, event.severity)
            elif event.kind == EventKind.PROBE_FINISHED:
                self.probe_finished.emit(event.payload)
            elif event.kind == EventKind.INSTALL_FINISHED:
                self.install_finished.emit(event.payload)

        if pending_progress is not None:
            self.progress_changed.emit(pending_progress.fraction, pending_progress.message)

        return len(events)
