import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from common.errors import NotAuthorizedError
from services.command_catalog import CommandCatalog
from utils.run_command import ProcessRunner, run_command

logger = logging.getLogger(__name__)

METHOD_SUDO = "sudo"
METHOD_ROOT = "root"


@dataclass(frozen=True)
class PrivilegeProof:
    """
    Evidence that privileged steps may run.

    Carries no credential: a sudo proof only means the sudo timestamp was
    refreshed at verified_at, so `sudo -n` works until it lapses.
    """

    method: str
    verified_at: float = field(default_factory=time.time)

    @property
    def verified(self) -> bool:
        return self.method in (METHOD_SUDO, METHOD_ROOT)

    @classmethod
    def for_root(cls) -> "PrivilegeProof":
        return cls(method=METHOD_ROOT)


def verify_privilege(
    password: Optional[str],
    runner: Optional[ProcessRunner] = None,
    catalog: Optional[CommandCatalog] = None,
    timeout: float = 30,
) -> PrivilegeProof:
    """
    Validate the password against sudo once and return a proof.

    Raises:
        NotAuthorizedError: Password missing, wrong, or the user may not use sudo
    """
    if catalog is not None and catalog.as_root:
        return PrivilegeProof.for_root()

    if not password:
        raise NotAuthorizedError("Authentication failed: a password is required.")

    runner = runner or run_command
    command = catalog.verify_sudo() if catalog is not None else ("sudo", "-S", "-p", "", "-v")
    status, _ = runner(command, input_text=password + "\n", timeout=timeout)
    if status != 0:
        logger.warning(f"sudo verification failed with exit code {status}")
        raise NotAuthorizedError("Authentication failed: Invalid password or insufficient privileges.")

    logger.info("Administrator privileges verified")
    return PrivilegeProof(method=METHOD_SUDO)
