"""
System probe service.

Runs a fixed, read-only battery of checks and produces one SystemInfo snapshot:
- distribution codename (lsb_release, then /etc/os-release)
- NVIDIA GPU presence (lspci)
- installed driver version (nvidia-smi)
- installed CUDA toolkit version (nvcc)

Sub-check failures never abort the probe; they degrade to sentinel values and
a warning in the log.
"""

import logging
import time
from typing import Optional

from model.system_info import NO_GPU_DETECTED, NOT_INSTALLED, UNKNOWN_CODENAME, SystemInfo
from services.command_catalog import CommandCatalog
from utils.run_command import ProcessRunner, run_command

logger = logging.getLogger(__name__)


def parse_os_release_codename(content: str) -> Optional[str]:
    """Extract VERSION_CODENAME from os-release content."""
    for line in content.splitlines():
        key, sep, value = line.strip().partition("=")
        if sep and key == "VERSION_CODENAME":
            value = value.strip().strip("\"'")
            return value or None
    return None


def parse_gpu_lines(lspci_output: str) -> list:
    """PCI device lines mentioning NVIDIA (case-insensitive), trimmed."""
    return [line.strip() for line in lspci_output.splitlines() if "nvidia" in line.lower() and line.strip()]


def parse_nvcc_version(nvcc_output: str) -> Optional[str]:
    """
    Parse the toolkit version from `nvcc --version`.

    The relevant line looks like:
        Cuda compilation tools, release 12.6, V12.6.77
    """
    for line in nvcc_output.splitlines():
        if "release" not in line:
            continue
        for token in line.replace(",", " ").split():
            if token.startswith("V") and len(token) > 1 and token[1].isdigit():
                return token[1:]
    return None


class SystemProber:
    def __init__(self, config, runner: Optional[ProcessRunner] = None, catalog: Optional[CommandCatalog] = None):
        self.config = config
        self.runner = runner or run_command
        self.catalog = catalog or CommandCatalog(config)

    def _run(self, command):
        return self.runner(command, input_text=None, timeout=self.config.probe_timeout_sec)

    def _pause(self):
        # Cosmetic only: lets the user follow the checks in the console
        if self.config.probe_delay_ms > 0:
            time.sleep(self.config.probe_delay_ms / 1000.0)

    def probe(self, reporter) -> SystemInfo:
        """
        Run all checks in order and return a new snapshot.

        Args:
            reporter: ProgressReporter receiving the per-check log lines

        Returns:
            SystemInfo with every field populated
        """
        logger.info("Starting system detection...")

        codename = self.detect_codename(reporter)
        self._pause()
        gpu_detected, gpu_description = self.detect_gpu(reporter)
        self._pause()
        driver_installed, driver_description = self.detect_driver(reporter)
        self._pause()
        cuda_installed, cuda_description = self.detect_cuda(reporter)

        info = SystemInfo(
            gpu_detected=gpu_detected,
            gpu_description=gpu_description,
            driver_installed=driver_installed,
            driver_description=driver_description,
            cuda_installed=cuda_installed,
            cuda_description=cuda_description,
            distro_codename=codename,
        )

        reporter.success("System detection completed.")
        logger.info(f"\n{info.summary()}")
        return info

    def detect_codename(self, reporter) -> str:
        reporter.info("Detecting Linux distribution...")

        status, output = self._run(self.catalog.distro_codename())
        codename = output.strip().splitlines()[0].strip() if status == 0 and output.strip() else ""

        if not codename:
            logger.debug(f"lsb_release unavailable (exit {status}), falling back to os-release")
            status, output = self._run(self.catalog.os_release())
            if status == 0:
                codename = parse_os_release_codename(output) or ""

        if codename:
            reporter.success(f"Distribution codename: {codename}")
            return codename

        reporter.warning("Unable to detect distribution codename")
        return UNKNOWN_CODENAME

    def detect_gpu(self, reporter):
        reporter.info("Checking for NVIDIA GPU...")

        status, output = self._run(self.catalog.list_pci_devices())
        if status != 0:
            reporter.warning(f"Could not list PCI devices (exit code {status})")
            return False, NO_GPU_DETECTED

        gpu_lines = parse_gpu_lines(output)
        if not gpu_lines:
            reporter.error(NO_GPU_DETECTED)
            return False, NO_GPU_DETECTED

        description = "Detected: " + "; ".join(gpu_lines)
        reporter.success(f"NVIDIA GPU {description}")
        return True, description

    def detect_driver(self, reporter):
        reporter.info("Checking driver status...")

        status, output = self._run(self.catalog.driver_version())
        version = output.strip().splitlines()[0].strip() if status == 0 and output.strip() else ""
        if not version:
            reporter.warning("NVIDIA driver not installed")
            return False, NOT_INSTALLED

        reporter.success(f"NVIDIA driver installed: version {version}")
        return True, f"Installed: Version {version}"

    def detect_cuda(self, reporter):
        reporter.info("Checking CUDA status...")

        for command in self.catalog.nvcc_version():
            status, output = self._run(command)
            if status != 0:
                logger.debug(f"{command[0]} exited with {status}")
                continue
            version = parse_nvcc_version(output)
            if version:
                reporter.success(f"CUDA toolkit installed: version {version}")
                return True, f"Installed: CUDA {version}"
            logger.debug(f"Could not parse nvcc output: {output!r}")

        reporter.warning("CUDA toolkit not installed")
        return False, NOT_INSTALLED
