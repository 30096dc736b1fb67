"""Tests for install planning (step order, weights and commands)."""

import pytest

from common.errors import EmptySelectionError
from model.install_request import InstallRequest
from model.system_info import SystemInfo
from services.installer import plan_install

JAMMY = SystemInfo(gpu_detected=True, distro_codename="jammy")


class TestInstallRequest:
    @pytest.mark.parametrize(
        "driver,cuda,expected",
        [(True, False, 6), (False, True, 6), (True, True, 10)],
    )
    def test_total_steps(self, driver, cuda, expected):
        assert InstallRequest(driver, cuda).total_steps == expected

    def test_empty_selection_is_rejected(self):
        with pytest.raises(EmptySelectionError) as exc_info:
            InstallRequest(False, False).validate()
        assert exc_info.value.message == "Please select at least one installation option."

    def test_describe_lists_components(self):
        text = InstallRequest(True, True).describe()
        assert text.startswith("This will install:")
        assert "NVIDIA Driver" in text
        assert "CUDA Toolkit" in text


class TestPlanInstall:
    def test_driver_only(self, catalog):
        steps = plan_install(InstallRequest(True, False), JAMMY, catalog)

        assert [s.name for s in steps] == ["update", "prereqs", "add-keyring", "dpkg-keyring", "update", "install-driver"]
        assert all(s.progress_weight == pytest.approx(100.0 / 6) for s in steps)
        assert steps[-1].description == "Installing NVIDIA driver..."
        assert steps[2].command[-1].endswith("/ubuntu2204/x86_64/cuda-keyring_1.1-1_all.deb")

    def test_cuda_only_skips_driver_steps(self, catalog):
        steps = plan_install(InstallRequest(False, True), JAMMY, catalog)

        assert [s.name for s in steps] == ["update", "prereqs", "update", "install-cuda", "cuda-path", "cuda-ld-path"]
        assert steps[2].description == "Verifying CUDA repository..."
        assert steps[4].description == "Setting up environment variables..."

    def test_both_components(self, catalog):
        steps = plan_install(InstallRequest(True, True), JAMMY, catalog)

        assert len(steps) == 10
        assert steps[5].name == "install-driver"
        assert steps[6].name == "update"
        assert sum(s.progress_weight for s in steps) == pytest.approx(100.0)

    def test_profile_steps_feed_export_lines(self, catalog):
        steps = plan_install(InstallRequest(False, True), JAMMY, catalog)
        path_step, ld_step = steps[4], steps[5]

        assert path_step.command == catalog.write_profile()
        assert path_step.input_text == catalog.path_export_line()
        assert ld_step.command == catalog.append_profile()
        assert ld_step.input_text == catalog.ld_library_path_export_line()

    def test_privileged_steps_use_sudo(self, catalog):
        for step in plan_install(InstallRequest(True, True), JAMMY, catalog):
            assert (step.command[0] == "sudo") == step.privileged, step.name

    def test_codename_selects_repository(self, catalog):
        steps = plan_install(InstallRequest(True, False), SystemInfo(gpu_detected=True, distro_codename="bookworm"), catalog)
        assert "/debian12/" in steps[2].command[-1]

    def test_empty_request(self, catalog):
        with pytest.raises(EmptySelectionError):
            plan_install(InstallRequest(False, False), JAMMY, catalog)
