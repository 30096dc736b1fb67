"""
Checks that run before an install run changes anything.

Gates raise a GateFailure subclass and stop the run. Advisories only post
warnings; output that cannot be parsed is ignored.
"""

import logging
from typing import Optional

from common.errors import NoConnectivityError, NoGpuError, NotAuthorizedError, WslEnvironmentError
from model.system_info import UNKNOWN_CODENAME

logger = logging.getLogger(__name__)

WSL_GUIDANCE = (
    "This tool is designed for live boot Linux systems or native installations.",
    "To use this tool:",
    "1. Create a live USB with Ubuntu/Debian",
    "2. Boot from the USB on the target system",
    "3. Run this tool on the live system",
)

# Friendly names for end-of-life codenames
EOL_NAMES = {"bullseye": "Debian 11", "buster": "Debian 10", "focal": "Ubuntu 20.04"}


def is_wsl_kernel(proc_version: str) -> bool:
    return "microsoft" in proc_version.lower()


def parse_free_kb(df_output: str) -> Optional[int]:
    """Available KB from `df -Pk /` (4th column of the first data row)."""
    lines = [line for line in df_output.splitlines() if line.strip()]
    if len(lines) < 2:
        return None
    columns = lines[1].split()
    if len(columns) < 4:
        return None
    try:
        return int(columns[3])
    except ValueError:
        return None


class Preflight:
    def __init__(self, config, runner, catalog):
        self.config = config
        self.runner = runner
        self.catalog = catalog

    def _run(self, command):
        return self.runner(command, input_text=None, timeout=self.config.probe_timeout_sec)

    # Gates

    def check_not_wsl(self, reporter):
        status, output = self._run(self.catalog.kernel_version())
        if status == 0 and is_wsl_kernel(output):
            reporter.error("ERROR: Running in WSL. NVIDIA driver installation requires native Linux.")
            for line in WSL_GUIDANCE:
                reporter.info(line)
            raise WslEnvironmentError("This tool cannot install NVIDIA drivers in WSL.\n\n" + "\n".join(WSL_GUIDANCE))

    def check_gpu_detected(self, system_info):
        if not system_info.gpu_detected:
            raise NoGpuError("No NVIDIA GPU detected. Installation cannot proceed.")

    def check_selection(self, request):
        request.validate()

    def check_privilege(self, proof):
        if proof is None or not proof.verified:
            raise NotAuthorizedError("Administrator privileges are required. Please authenticate first.")

    def check_connectivity(self, reporter):
        reporter.info("Checking internet connectivity...")
        status, _ = self._run(self.catalog.connectivity())
        if status != 0:
            message = "No internet connection detected. Installation requires internet access."
            reporter.error(message)
            raise NoConnectivityError(message)
        reporter.success("Internet connectivity confirmed")

    def run_gates(self, request, system_info, proof, reporter):
        """Run every gate in order; the first failing one raises."""
        self.check_not_wsl(reporter)
        self.check_gpu_detected(system_info)
        self.check_selection(request)
        self.check_privilege(proof)
        self.check_connectivity(reporter)

    # Advisories

    def run_advisories(self, system_info, reporter):
        if self.catalog.as_root:
            reporter.warning("WARNING: Running as root. This is not recommended for security reasons.")

        status, output = self._run(self.catalog.disk_free())
        free_kb = parse_free_kb(output) if status == 0 else None
        if free_kb is not None and free_kb < self.config.min_free_disk_kb:
            reporter.warning("WARNING: Low disk space detected. Installation may fail.")

        status, output = self._run(self.catalog.secure_boot_state())
        if status == 0 and "enabled" in output:
            reporter.warning("WARNING: Secure Boot is enabled. Driver installation may require additional steps.")

        codename = system_info.distro_codename
        if codename == UNKNOWN_CODENAME:
            return
        if codename in self.config.eol_codenames:
            reporter.warning(f"WARNING: {EOL_NAMES.get(codename, codename)} is EOL. Upgrade recommended.")
        elif codename not in self.config.supported_codenames:
            reporter.warning("WARNING: Unsupported distro. Installation may fail.")
