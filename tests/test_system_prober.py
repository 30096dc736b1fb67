"""
Tests for SystemProber.

All host commands go through a FakeRunner, so these run on any machine.
"""

import pytest

from model.progress_event import EventKind, Severity
from model.system_info import NO_GPU_DETECTED, NOT_INSTALLED, UNKNOWN_CODENAME, SystemInfo
from services.system_prober import (
    SystemProber,
    parse_gpu_lines,
    parse_nvcc_version,
    parse_os_release_codename,
)

NVCC_OUTPUT = (
    "nvcc: NVIDIA (R) Cuda compiler driver\n"
    "Copyright (c) 2005-2024 NVIDIA Corporation\n"
    "Built on Thu_Sep_12_02:18:05_PDT_2024\n"
    "Cuda compilation tools, release 12.6, V12.6.77\n"
    "Build cuda_12.6.r12.6/compiler.34841621_0\n"
)


def log_messages(channel, severity=None):
    return [
        e.message
        for e in channel.drain()
        if e.kind == EventKind.LOG and (severity is None or e.severity == severity)
    ]


class TestParsers:
    def test_os_release_codename(self):
        content = 'NAME="Debian GNU/Linux"\nVERSION_ID="12"\nVERSION_CODENAME=bookworm\n'
        assert parse_os_release_codename(content) == "bookworm"

    def test_os_release_quoted_and_missing(self):
        assert parse_os_release_codename('VERSION_CODENAME="noble"') == "noble"
        assert parse_os_release_codename("NAME=Arch\n") is None
        assert parse_os_release_codename("VERSION_CODENAME=\n") is None

    def test_gpu_lines_case_insensitive(self):
        output = "00:02.0 VGA: Intel\n01:00.0 3D controller: nvidia Corporation TU117M\n"
        assert parse_gpu_lines(output) == ["01:00.0 3D controller: nvidia Corporation TU117M"]

    def test_nvcc_version(self):
        assert parse_nvcc_version(NVCC_OUTPUT) == "12.6.77"
        assert parse_nvcc_version("garbage") is None


class TestSystemProber:
    def test_healthy_host_without_driver(self, setup_config, healthy_runner, catalog, reporter, channel):
        """Test: GPU present, driver and CUDA missing"""
        info = SystemProber(setup_config, healthy_runner, catalog).probe(reporter)

        assert info.gpu_detected is True
        assert info.gpu_description.startswith("Detected: ")
        assert "GA104 [GeForce RTX 3070]" in info.gpu_description
        # Both NVIDIA lines (VGA + audio function) are listed, the Intel one is not
        assert "; " in info.gpu_description
        assert "Intel" not in info.gpu_description
        assert info.driver_installed is False
        assert info.driver_description == NOT_INSTALLED
        assert info.cuda_installed is False
        assert info.cuda_description == NOT_INSTALLED
        assert info.distro_codename == "jammy"

        messages = log_messages(channel)
        assert messages[0] == "Detecting Linux distribution..."
        assert "Checking for NVIDIA GPU..." in messages
        assert "NVIDIA driver not installed" in messages
        assert "CUDA toolkit not installed" in messages
        assert messages[-1] == "System detection completed."

    def test_installed_driver_and_cuda(self, setup_config, healthy_runner, catalog, reporter):
        healthy_runner.respond("nvidia-smi", 0, "550.54.14\n")
        healthy_runner.respond("nvcc", 0, NVCC_OUTPUT)

        info = SystemProber(setup_config, healthy_runner, catalog).probe(reporter)

        assert info.driver_installed is True
        assert info.driver_description == "Installed: Version 550.54.14"
        assert info.cuda_installed is True
        assert info.cuda_description == "Installed: CUDA 12.6.77"

    def test_nvcc_found_only_under_cuda_home(self, setup_config, healthy_runner, catalog, reporter):
        """Test: Falls back to cuda_home/bin/nvcc when nvcc is not on PATH"""
        healthy_runner.respond("/usr/local/cuda/bin/nvcc", 0, NVCC_OUTPUT)

        info = SystemProber(setup_config, healthy_runner, catalog).probe(reporter)

        assert info.cuda_installed is True
        assert healthy_runner.command_lines().index("nvcc --version") < healthy_runner.command_lines().index(
            "/usr/local/cuda/bin/nvcc --version"
        )

    def test_no_nvidia_device(self, setup_config, healthy_runner, catalog, reporter, channel):
        healthy_runner.respond("lspci", 0, "00:02.0 VGA compatible controller: Intel Corporation UHD Graphics\n")

        info = SystemProber(setup_config, healthy_runner, catalog).probe(reporter)

        assert info.gpu_detected is False
        assert info.gpu_description == NO_GPU_DETECTED
        assert NO_GPU_DETECTED in log_messages(channel, Severity.ERROR)

    def test_missing_lspci_degrades_instead_of_raising(self, setup_config, healthy_runner, catalog, reporter, channel):
        healthy_runner.respond("lspci", -1, "")

        info = SystemProber(setup_config, healthy_runner, catalog).probe(reporter)

        assert info.gpu_detected is False
        assert info.gpu_description == NO_GPU_DETECTED
        assert any("PCI" in m for m in log_messages(channel, Severity.WARNING))

    def test_codename_falls_back_to_os_release(self, setup_config, healthy_runner, catalog, reporter):
        healthy_runner.respond("lsb_release", -1, "")
        healthy_runner.respond("cat /etc/os-release", 0, "ID=debian\nVERSION_CODENAME=bookworm\n")

        info = SystemProber(setup_config, healthy_runner, catalog).probe(reporter)

        assert info.distro_codename == "bookworm"

    def test_unknown_codename(self, setup_config, healthy_runner, catalog, reporter, channel):
        healthy_runner.respond("lsb_release", 1, "")
        healthy_runner.respond("cat /etc/os-release", 1, "")

        info = SystemProber(setup_config, healthy_runner, catalog).probe(reporter)

        assert info.distro_codename == UNKNOWN_CODENAME
        assert "Unable to detect distribution codename" in log_messages(channel, Severity.WARNING)

    def test_probe_is_read_only(self, setup_config, healthy_runner, catalog, reporter):
        """Test: Detection never runs sudo or a package manager"""
        SystemProber(setup_config, healthy_runner, catalog).probe(reporter)

        for line in healthy_runner.command_lines():
            assert "sudo" not in line
            assert "apt-get" not in line
            assert "dpkg" not in line

    def test_commands_use_probe_timeout(self, setup_config, healthy_runner, catalog, reporter):
        setup_config.probe_timeout_sec = 7
        SystemProber(setup_config, healthy_runner, catalog).probe(reporter)
        assert {timeout for _, _, timeout in healthy_runner.calls} == {7}


class TestSystemInfo:
    def test_empty_fields_become_sentinels(self):
        info = SystemInfo(gpu_description="", driver_description="", cuda_description="", distro_codename="")

        assert info.gpu_description == NO_GPU_DETECTED
        assert info.driver_description == NOT_INSTALLED
        assert info.cuda_description == NOT_INSTALLED
        assert info.distro_codename == UNKNOWN_CODENAME

    def test_is_immutable(self):
        info = SystemInfo.unknown()
        with pytest.raises(Exception):
            info.gpu_detected = True

    def test_summary(self):
        summary = SystemInfo(gpu_detected=True, gpu_description="Detected: NVIDIA", distro_codename="noble").summary()
        assert summary.startswith("System Status:")
        assert "Detected: NVIDIA" in summary
        assert "noble" in summary
