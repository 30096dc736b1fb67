"""
Exceptions for the setup core.

Gate failures are raised before anything on the system is changed and are
turned into an ABORTED run outcome. Step failures are raised while executing
an install plan and are turned into a FAILED run outcome after remediation.
"""

from typing import Optional

from model.run_outcome import AbortReason


class SetupError(Exception):
    """Base exception for all setup-related errors."""


class GateFailure(SetupError):
    """
    Raised when a precondition fails before any mutating step.

    Attributes:
        reason: AbortReason identifying the failed gate, None when unspecified
        message: Human-readable explanation suitable for an error dialog
    """

    reason: Optional[AbortReason] = None

    def __init__(self, message: str, reason: Optional[AbortReason] = None):
        super().__init__(message)
        self.message = message
        if reason is not None:
            self.reason = reason


class WslEnvironmentError(GateFailure):
    """Running under WSL, where the GPU is not reachable for driver installs."""

    reason = AbortReason.WSL


class NoGpuError(GateFailure):
    reason = AbortReason.NO_GPU


class EmptySelectionError(GateFailure):
    reason = AbortReason.EMPTY_SELECTION


class NoConnectivityError(GateFailure):
    reason = AbortReason.NO_CONNECTIVITY


class NotAuthorizedError(GateFailure):
    """Invalid password, insufficient privileges or a missing privilege proof."""

    reason = AbortReason.NOT_AUTHORIZED


class StepFailure(SetupError):
    """
    Raised when an install step returns a non-zero exit status.

    Args:
        step_description: Description of the failed step (e.g. "Installing NVIDIA driver...")
        exit_status: Exit status returned by the process runner
    """

    def __init__(self, step_description: str, exit_status: int):
        super().__init__(f"{step_description} failed with exit code {exit_status}")
        self.step_description = step_description
        self.exit_status = exit_status
