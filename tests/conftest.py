import os
import sys
import pytest

# Ensure src directory is importable
PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
SRC_DIR = os.path.join(PROJECT_ROOT, 'src')
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

# Add tests directory to path for test utilities
TESTS_DIR = os.path.join(PROJECT_ROOT, 'tests')
if TESTS_DIR not in sys.path:
    sys.path.append(TESTS_DIR)

# Headless Qt platform when no display is available
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# No modal error dialogs during tests
os.environ.setdefault("NVSETUP_SUPPRESS_ERROR_DIALOGS", "1")

from common.config import Config
from managers.progress_channel import ProgressChannel, ProgressReporter
from services.command_catalog import CommandCatalog
from test_utils.fake_runner import FakeRunner


GPU_LSPCI_OUTPUT = (
    "00:02.0 VGA compatible controller: Intel Corporation UHD Graphics 630\n"
    "01:00.0 VGA compatible controller: NVIDIA Corporation GA104 [GeForce RTX 3070] (rev a1)\n"
    "01:00.1 Audio device: NVIDIA Corporation GA104 High Definition Audio Controller (rev a1)\n"
)

DF_OUTPUT_PLENTY = (
    "Filesystem     1024-blocks     Used Available Capacity Mounted on\n"
    "/dev/sda1        102400000 20480000  81920000      20% /\n"
)


@pytest.fixture
def setup_config(tmp_path):
    """
    Real Config backed by a temp config.ini, tuned for fast tests.

    - no cosmetic delay between probe steps
    - downloads land in tmp_path/work
    """
    config = Config(custom_config_path=str(tmp_path / "config.ini"))
    config.probe_delay_ms = 0
    config.work_directory = str(tmp_path / "work")
    return config


@pytest.fixture
def fake_runner():
    """Scripted process runner that records every command (see test_utils.fake_runner)."""
    return FakeRunner()


@pytest.fixture
def healthy_runner():
    """
    Fake runner describing a supported Ubuntu 22.04 host with an NVIDIA GPU,
    no driver, no CUDA, internet access and plenty of disk space.
    Install commands succeed by default.
    """
    runner = FakeRunner()
    runner.respond("lsb_release -cs", 0, "jammy\n")
    runner.respond("lspci", 0, GPU_LSPCI_OUTPUT)
    runner.respond("nvidia-smi", 9, "NVIDIA-SMI has failed because it couldn't communicate with the NVIDIA driver.\n")
    runner.respond("nvcc", -1, "")
    runner.respond("cat /proc/version", 0, "Linux version 6.5.0-35-generic (buildd@lcy02-amd64-079) #35~22.04.1-Ubuntu\n")
    runner.respond("df -Pk /", 0, DF_OUTPUT_PLENTY)
    runner.respond("mokutil --sb-state", 0, "SecureBoot disabled\n")
    runner.respond("ping", 0, "1 packets transmitted, 1 received, 0% packet loss\n")
    return runner


@pytest.fixture
def catalog(setup_config):
    """Command catalog for a regular (non-root) user, independent of who runs the tests."""
    return CommandCatalog(setup_config, as_root=False)


@pytest.fixture
def channel():
    return ProgressChannel()


@pytest.fixture
def reporter(channel):
    return ProgressReporter(channel, "test")
