"""
Command catalog.

Builds every argv the setup core hands to the process runner. The rest of the
core treats these as opaque: it only looks at the exit status and, for probes,
the captured output.
"""

import logging
import os
from typing import List, Optional, Tuple

from utils.files import is_root

logger = logging.getLogger(__name__)

# Distribution codename -> NVIDIA CUDA repository id
REPO_IDS = {
    "jammy": "ubuntu2204",
    "noble": "ubuntu2404",
    "focal": "ubuntu2004",
    "bookworm": "debian12",
    "bullseye": "debian11",
}

PREREQUISITE_PACKAGES = (
    "software-properties-common",
    "apt-transport-https",
    "ca-certificates",
    "curl",
    "wget",
    "gnupg",
    "lsb-release",
    "build-essential",
    "dkms",
)

Command = Tuple[str, ...]


def repo_id_for(codename: str) -> str:
    """Map a distribution codename to its repository id; unknown codenames pass through verbatim."""
    return REPO_IDS.get(codename, codename)


class CommandCatalog:
    def __init__(self, config, as_root: Optional[bool] = None):
        self.config = config
        self.as_root = is_root() if as_root is None else as_root

    def _privileged(self, *argv: str) -> Command:
        # -n: fail instead of prompting when the sudo timestamp has lapsed
        if self.as_root:
            return tuple(argv)
        return ("sudo", "-n") + tuple(argv)

    # Probe commands (read-only)

    def distro_codename(self) -> Command:
        return ("lsb_release", "-cs")

    def os_release(self) -> Command:
        return ("cat", self.config.os_release_path)

    def list_pci_devices(self) -> Command:
        return ("lspci",)

    def driver_version(self) -> Command:
        return ("nvidia-smi", "--query-gpu=driver_version", "--format=csv,noheader,nounits")

    def nvcc_version(self) -> List[Command]:
        """Candidates in lookup order: nvcc on PATH, then the one under cuda_home."""
        return [
            ("nvcc", "--version"),
            (os.path.join(self.config.cuda_home, "bin", "nvcc"), "--version"),
        ]

    # Preflight commands (read-only)

    def kernel_version(self) -> Command:
        return ("cat", self.config.proc_version_path)

    def connectivity(self) -> Command:
        return (
            "ping",
            "-c",
            "1",
            "-W",
            str(self.config.connectivity_timeout_sec),
            self.config.connectivity_host,
        )

    def disk_free(self) -> Command:
        return ("df", "-Pk", "/")

    def secure_boot_state(self) -> Command:
        return ("mokutil", "--sb-state")

    def verify_sudo(self) -> Command:
        # Password arrives on stdin; empty prompt keeps it out of the captured output
        return ("sudo", "-S", "-p", "", "-v")

    # Install commands (mutating)

    @property
    def keyring_path(self) -> str:
        return os.path.join(self.config.effective_work_directory, self.config.keyring_package)

    def keyring_url(self, codename: str) -> str:
        return self.config.keyring_url_template.format(
            repo=repo_id_for(codename),
            arch=self.config.repo_arch,
            package=self.config.keyring_package,
        )

    def update_package_index(self) -> Command:
        return self._privileged("apt-get", "update")

    def install_prerequisites(self) -> Command:
        return self._privileged("apt-get", "install", "-y", *PREREQUISITE_PACKAGES)

    def download_keyring(self, codename: str) -> Command:
        return ("wget", "-q", "-O", self.keyring_path, self.keyring_url(codename))

    def install_keyring(self) -> Command:
        return self._privileged("dpkg", "-i", self.keyring_path)

    def install_driver(self) -> Command:
        return self._privileged("apt-get", "install", "-y", self.config.driver_package)

    def install_cuda_toolkit(self) -> Command:
        return self._privileged("apt-get", "install", "-y", self.config.cuda_toolkit_package)

    def write_profile(self) -> Command:
        return self._privileged("tee", self.config.profile_path)

    def append_profile(self) -> Command:
        return self._privileged("tee", "-a", self.config.profile_path)

    def path_export_line(self) -> str:
        return f"export PATH={self.config.cuda_home}/bin${{PATH:+:$PATH}}\n"

    def ld_library_path_export_line(self) -> str:
        return f"export LD_LIBRARY_PATH={self.config.cuda_home}/lib64${{LD_LIBRARY_PATH:+:$LD_LIBRARY_PATH}}\n"

    def autoremove(self) -> Command:
        return self._privileged("apt-get", "autoremove", "-y")
