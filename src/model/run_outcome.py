from dataclasses import dataclass
from enum import Enum


class RunStatus(Enum):
    SUCCEEDED = "SUCCEEDED"
    ABORTED = "ABORTED"
    FAILED = "FAILED"


class AbortReason(Enum):
    WSL = "WSL"
    NO_GPU = "NO_GPU"
    EMPTY_SELECTION = "EMPTY_SELECTION"
    NO_CONNECTIVITY = "NO_CONNECTIVITY"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    CANCELLED = "CANCELLED"


class RunState(Enum):
    """States of a single install run. Terminal states are final for that run."""

    IDLE = "IDLE"
    GATING = "GATING"
    EXECUTING = "EXECUTING"
    SUCCEEDED = "SUCCEEDED"
    ABORTED = "ABORTED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.SUCCEEDED, RunState.ABORTED, RunState.FAILED)


@dataclass(frozen=True)
class RunOutcome:
    """
    Terminal result of an install run.

    Attributes:
        status: SUCCEEDED, ABORTED (gate failure or cancel) or FAILED (step failure)
        step_description: Description of the failed step (FAILED only)
        exit_status: Exit status of the failed step, surfaced verbatim (FAILED only)
        abort_reason: Which gate stopped the run (ABORTED only)
        message: Detail for the presentation layer
    """

    status: RunStatus
    step_description: str = ""
    exit_status: int = 0
    abort_reason: AbortReason | None = None
    message: str = ""

    @classmethod
    def succeeded(cls) -> "RunOutcome":
        return cls(status=RunStatus.SUCCEEDED, message="Installation completed successfully!")

    @classmethod
    def aborted(cls, reason: AbortReason, message: str) -> "RunOutcome":
        return cls(status=RunStatus.ABORTED, abort_reason=reason, message=message)

    @classmethod
    def failed(cls, step_description: str, exit_status: int) -> "RunOutcome":
        return cls(
            status=RunStatus.FAILED,
            step_description=step_description,
            exit_status=exit_status,
            message=f"{step_description} failed with exit code {exit_status}",
        )

    @property
    def is_success(self) -> bool:
        return self.status == RunStatus.SUCCEEDED
