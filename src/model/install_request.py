from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from common.errors import EmptySelectionError

# Package-manager prep plus four steps per selected component
BASE_STEPS = 2
STEPS_PER_COMPONENT = 4


@dataclass(frozen=True)
class InstallRequest:
    """Which components an install run should set up."""

    install_driver: bool = True
    install_cuda: bool = False

    def validate(self):
        if not (self.install_driver or self.install_cuda):
            raise EmptySelectionError("Please select at least one installation option.")

    @property
    def total_steps(self) -> int:
        return BASE_STEPS + STEPS_PER_COMPONENT * int(self.install_driver) + STEPS_PER_COMPONENT * int(self.install_cuda)

    def components(self) -> List[str]:
        selected = []
        if self.install_driver:
            selected.append("NVIDIA Driver")
        if self.install_cuda:
            selected.append("CUDA Toolkit")
        return selected

    def describe(self) -> str:
        """Confirmation text listing the selected components."""
        lines = ["This will install:", ""]
        lines.extend(f"• {name}" for name in self.components())
        lines.append("")
        lines.append("The installation may take several minutes and require a reboot.")
        return "\n".join(lines)


@dataclass(frozen=True)
class InstallStep:
    """
    One external command of an install run.

    Attributes:
        name: Stable key of the step (e.g. "update", "install-driver")
        description: Progress text, also reported when the step fails
        log_message: Info line logged when the step starts
        command: Opaque argv handed to the process runner
        progress_weight: Share of the overall 100%
        input_text: Optional text fed to the command's stdin
        privileged: Command runs through sudo
    """

    name: str
    description: str
    log_message: str
    command: Tuple[str, ...]
    progress_weight: float
    input_text: Optional[str] = None
    privileged: bool = field(default=False)

    def command_line(self) -> str:
        return " ".join(self.command)
