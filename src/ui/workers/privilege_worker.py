"""
Privilege Verification Worker

Runs the one-time sudo check off the GUI thread so the window stays responsive
while sudo validates the password.
"""

import logging
from PySide6.QtCore import QThread, Signal

from common.errors import NotAuthorizedError
from services.privilege import verify_privilege

logger = logging.getLogger(__name__)


class PrivilegeWorker(QThread):
    """
    Worker thread for sudo verification.

    Signals:
        verified: (proof: PrivilegeProof) - privileges confirmed
        failed: (message: str) - wrong password or no sudo rights
    """

    verified = Signal(object)
    failed = Signal(str)

    def __init__(self, password: str, runner=None, catalog=None, parent=None):
        super().__init__(parent)
        self._password = password
        self.runner = runner
        self.catalog = catalog

    def run(self):
        try:
            proof = verify_privilege(self._password, self.runner, self.catalog)
        except NotAuthorizedError as e:
            self.failed.emit(e.message)
        except Exception as e:
            logger.error(f"Privilege verification failed: {e}", exc_info=True)
            self.failed.emit(f"Could not verify privileges: {e}")
        else:
            self.verified.emit(proof)
        finally:
            # The password is only needed for this one check
            self._password = None
