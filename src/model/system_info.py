"""
Host snapshot produced by a probe pass.

A new probe builds a new SystemInfo; consumers never see a half-filled one.
"""

from dataclasses import dataclass

UNKNOWN = "Unknown"
UNKNOWN_CODENAME = "unknown"
NO_GPU_DETECTED = "No NVIDIA GPU detected"
NOT_INSTALLED = "Not installed"


@dataclass(frozen=True)
class SystemInfo:
    """
    Immutable snapshot of host state.

    Attributes:
        gpu_detected: An NVIDIA device shows up in the PCI device list
        gpu_description: "Detected: <device lines>" or a sentinel
        driver_installed: nvidia-smi reported a driver version
        driver_description: "Installed: Version <ver>" or a sentinel
        cuda_installed: nvcc reported a release version
        cuda_description: "Installed: CUDA <ver>" or a sentinel
        distro_codename: lsb_release/os-release codename or "unknown"
    """

    gpu_detected: bool = False
    gpu_description: str = UNKNOWN
    driver_installed: bool = False
    driver_description: str = UNKNOWN
    cuda_installed: bool = False
    cuda_description: str = UNKNOWN
    distro_codename: str = UNKNOWN_CODENAME

    def __post_init__(self):
        # Empty strings are replaced by the sentinels so no field is ever blank
        if not self.gpu_description:
            object.__setattr__(self, "gpu_description", NO_GPU_DETECTED if not self.gpu_detected else UNKNOWN)
        if not self.driver_description:
            object.__setattr__(self, "driver_description", NOT_INSTALLED if not self.driver_installed else UNKNOWN)
        if not self.cuda_description:
            object.__setattr__(self, "cuda_description", NOT_INSTALLED if not self.cuda_installed else UNKNOWN)
        if not self.distro_codename:
            object.__setattr__(self, "distro_codename", UNKNOWN_CODENAME)

    @classmethod
    def unknown(cls) -> "SystemInfo":
        """Snapshot used before the first probe has completed."""
        return cls()

    def summary(self) -> str:
        """Get human-readable summary for logging."""
        lines = []
        lines.append("System Status:")
        lines.append(f"  GPU: {'✓' if self.gpu_detected else '✗'} {self.gpu_description}")
        lines.append(f"  Driver: {'✓' if self.driver_installed else '✗'} {self.driver_description}")
        lines.append(f"  CUDA: {'✓' if self.cuda_installed else '✗'} {self.cuda_description}")
        lines.append(f"  Distribution codename: {self.distro_codename}")
        return "\n".join(lines)
