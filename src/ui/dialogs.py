"""Modal dialogs used by the setup window."""

import logging
from typing import Optional
from PySide6.QtWidgets import QInputDialog, QLineEdit, QMessageBox

logger = logging.getLogger(__name__)

INSTALL_FAILED_HINT = (
    "Installation failed. Please check the console output for details.\n\n"
    "Ensure you have internet access and sufficient disk space."
)

INSTALL_COMPLETE_TEXT = (
    "Installation completed successfully!\n\n"
    "Please reboot your system to load the drivers.\n\n"
    "After reboot, verify with:\n"
    "• nvidia-smi (for driver)\n"
    "• nvcc --version (for CUDA)"
)


def show_error(parent, title: str, message: str):
    logger.debug(f"Error dialog: {title}: {message}")
    QMessageBox.critical(parent, title, message)


def show_info(parent, title: str, message: str):
    QMessageBox.information(parent, title, message)


def ask_confirmation(parent, title: str, message: str) -> bool:
    answer = QMessageBox.question(
        parent,
        title,
        message,
        QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        QMessageBox.StandardButton.No,
    )
    return answer == QMessageBox.StandardButton.Yes


def ask_password(parent) -> Optional[str]:
    """Ask for the sudo password. Returns None when the user cancels."""
    password, ok = QInputDialog.getText(
        parent,
        "Authentication Required",
        "This operation requires administrator privileges.\nPlease enter your password:",
        QLineEdit.EchoMode.Password,
    )
    if not ok:
        return None
    return password
