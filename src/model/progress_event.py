import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventKind(Enum):
    PROGRESS = "PROGRESS"
    LOG = "LOG"
    # Terminal events carry the completed SystemInfo / RunOutcome as payload
    PROBE_FINISHED = "PROBE_FINISHED"
    INSTALL_FINISHED = "INSTALL_FINISHED"


class Severity(Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"

    @property
    def label(self) -> str:
        """Tag shown in the log console."""
        return _SEVERITY_LABELS[self]


_SEVERITY_LABELS = {
    Severity.INFO: "INFO",
    Severity.SUCCESS: "OK",
    Severity.WARNING: "WARN",
    Severity.ERROR: "ERROR",
}


@dataclass(frozen=True)
class ProgressEvent:
    """Event sent from a worker to the presentation thread. Consumed exactly once."""

    kind: EventKind
    message: str = ""
    fraction: float = 0.0
    severity: Severity = Severity.INFO
    payload: Any = None
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self):
        if not 0.0 <= self.fraction <= 100.0:
            raise ValueError(f"fraction must be within [0, 100], got {self.fraction}")

    @property
    def is_terminal(self) -> bool:
        return self.kind in (EventKind.PROBE_FINISHED, EventKind.INSTALL_FINISHED)

    @classmethod
    def log(cls, message: str, severity: Severity = Severity.INFO) -> "ProgressEvent":
        return cls(kind=EventKind.LOG, message=message, severity=severity)

    @classmethod
    def progress(cls, fraction: float, message: str) -> "ProgressEvent":
        return cls(kind=EventKind.PROGRESS, message=message, fraction=min(100.0, max(0.0, fraction)))
