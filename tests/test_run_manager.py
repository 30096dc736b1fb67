"""
Tests for RunManager: single active run, terminal events and shutdown.
"""

import threading
import time

import pytest

from common.errors import EmptySelectionError
from managers.run_manager import RunManager
from model.install_request import InstallRequest
from model.progress_event import EventKind
from model.run_outcome import RunStatus
from model.system_info import SystemInfo
from services.privilege import METHOD_SUDO, PrivilegeProof


def wait_for_terminal(channel, timeout=10.0):
    """Collect events until a terminal one arrives."""
    collected = []
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        for event in channel.drain():
            collected.append(event)
            if event.is_terminal:
                return event, collected
        time.sleep(0.01)
    raise AssertionError("no terminal event within timeout")


@pytest.fixture
def manager(setup_config, channel, healthy_runner, catalog):
    manager = RunManager(setup_config, channel, healthy_runner, catalog)
    yield manager
    manager.shutdown(timeout=5)


@pytest.fixture
def system_info():
    return SystemInfo(gpu_detected=True, gpu_description="Detected: NVIDIA", distro_codename="jammy")


class TestProbeRuns:
    def test_probe_posts_system_info(self, manager, channel):
        assert manager.start_probe() is True

        event, events = wait_for_terminal(channel)

        assert event.kind == EventKind.PROBE_FINISHED
        assert event.payload.gpu_detected is True
        assert event.payload.distro_codename == "jammy"
        assert events[0].kind == EventKind.LOG
        assert event is events[-1]

    def test_idle_when_terminal_event_arrives(self, manager, channel):
        """Test: The busy flag is already released once the terminal event is visible"""
        manager.start_probe()
        wait_for_terminal(channel)

        assert manager.is_busy is False
        assert manager.start_probe() is True
        wait_for_terminal(channel)

    def test_probe_error_degrades_to_unknown(self, setup_config, channel, catalog):
        def broken_runner(command, input_text=None, timeout=None):
            raise RuntimeError("runner exploded")

        manager = RunManager(setup_config, channel, broken_runner, catalog)
        manager.start_probe()

        event, events = wait_for_terminal(channel)

        assert event.payload == SystemInfo.unknown()
        assert any("System detection failed" in e.message for e in events)
        manager.shutdown(timeout=5)


class TestSingleActiveRun:
    def test_second_start_is_rejected(self, setup_config, channel, healthy_runner, catalog):
        release = threading.Event()
        healthy_runner.on_call("lsb_release", lambda command: release.wait(5))
        manager = RunManager(setup_config, channel, healthy_runner, catalog)

        assert manager.start_probe() is True
        assert manager.is_busy
        assert manager.start_probe() is False
        assert manager.start_install(InstallRequest(), SystemInfo(gpu_detected=True), None) is False

        release.set()
        wait_for_terminal(channel)
        # Only one probe ran
        assert healthy_runner.count("lsb_release") == 1
        manager.shutdown(timeout=5)

    def test_empty_selection_spawns_nothing(self, manager, system_info, healthy_runner):
        with pytest.raises(EmptySelectionError):
            manager.start_install(InstallRequest(False, False), system_info, PrivilegeProof(method=METHOD_SUDO))

        assert manager.is_busy is False
        assert healthy_runner.calls == []


class TestInstallRuns:
    def test_install_posts_outcome(self, manager, channel, system_info):
        assert manager.start_install(InstallRequest(True, False), system_info, PrivilegeProof(method=METHOD_SUDO))

        event, events = wait_for_terminal(channel)

        assert event.kind == EventKind.INSTALL_FINISHED
        assert event.payload.status == RunStatus.SUCCEEDED
        progress = [e.fraction for e in events if e.kind == EventKind.PROGRESS]
        assert progress[-1] == 100.0

    def test_unexpected_exception_becomes_failed_outcome(self, setup_config, channel, healthy_runner, catalog, system_info):
        def flaky(command, input_text=None, timeout=None):
            if "dpkg" in command:
                raise OSError("disk on fire")
            return healthy_runner(command, input_text=input_text, timeout=timeout)

        manager = RunManager(setup_config, channel, flaky, catalog)
        manager.start_install(InstallRequest(True, False), system_info, PrivilegeProof(method=METHOD_SUDO))

        event, _ = wait_for_terminal(channel)

        assert event.payload.status == RunStatus.FAILED
        assert event.payload.exit_status == -1
        assert manager.is_busy is False
        manager.shutdown(timeout=5)


class TestShutdown:
    def test_shutdown_cancels_between_steps(self, setup_config, channel, healthy_runner, catalog, system_info):
        step_started = threading.Event()
        release = threading.Event()

        def slow_update(command):
            step_started.set()
            release.wait(5)

        healthy_runner.on_call("apt-get update", slow_update)
        manager = RunManager(setup_config, channel, healthy_runner, catalog)
        manager.start_install(InstallRequest(True, False), system_info, PrivilegeProof(method=METHOD_SUDO))
        assert step_started.wait(5)

        manager.cancel()
        release.set()
        assert manager.shutdown(timeout=5) is True

        event, _ = wait_for_terminal(channel)
        assert event.payload.status == RunStatus.ABORTED
        # First step finished, nothing after it ran
        assert healthy_runner.count("apt-get update") == 1
        assert not healthy_runner.ran("software-properties-common")

    def test_shutdown_without_run(self, manager):
        assert manager.shutdown() is True
