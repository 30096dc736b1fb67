"""
Global exception handler for the setup tool GUI.

Catches unhandled exceptions on the GUI thread, routes Qt's own messages into
logging and shows an error dialog instead of letting the window vanish in the
middle of an installation. Worker threads catch their exceptions themselves
(see managers.run_manager).
"""

import sys
import logging
import traceback
import os
import faulthandler
from typing import Optional
from PySide6.QtWidgets import QApplication, QMessageBox
from PySide6.QtCore import QObject, qInstallMessageHandler, QtMsgType

logger = logging.getLogger(__name__)

# Set to "1" in tests/CI so no modal dialog blocks the run
SUPPRESS_DIALOGS_ENV = "NVSETUP_SUPPRESS_ERROR_DIALOGS"

# Keep a reference to the original handler
_original_excepthook = sys.excepthook

_QT_LEVELS = {
    QtMsgType.QtDebugMsg: logging.DEBUG,
    QtMsgType.QtInfoMsg: logging.INFO,
    QtMsgType.QtWarningMsg: logging.WARNING,
    QtMsgType.QtCriticalMsg: logging.CRITICAL,
    QtMsgType.QtFatalMsg: logging.CRITICAL,
}


def _show_error_dialog(message: str, details: str, log_file_path: Optional[str] = None):
    """
    Show error dialog to user, or print to stderr when no Qt app is running.

    Args:
        message: Short error message
        details: Full stack trace and details
        log_file_path: Optional path to log file mentioned in the dialog
    """
    if os.environ.get(SUPPRESS_DIALOGS_ENV) == "1":
        return

    app = QApplication.instance()
    if app is None:
        print(f"\nERROR: {message}", file=sys.stderr)
        print(f"\nDetails:\n{details}", file=sys.stderr)
        return

    try:
        msg_box = QMessageBox()
        msg_box.setIcon(QMessageBox.Icon.Critical)
        msg_box.setWindowTitle("Unexpected Error")
        msg_box.setText(
            "An unexpected error occurred.\n\n"
            f"{message}\n\n"
            "If an installation was running, check the console output before retrying."
        )
        msg_box.setDetailedText(details)
        if log_file_path:
            msg_box.setInformativeText(f"Error details have been logged to:\n{log_file_path}")
        msg_box.setStandardButtons(QMessageBox.StandardButton.Ok)
        msg_box.exec()
    except RuntimeError as e:
        logger.error(f"Failed to show error dialog: {e}")
        print(f"\nERROR: {message}", file=sys.stderr)


class GlobalExceptionHandler(QObject):
    """Installs sys.excepthook, the Qt message handler and faulthandler."""

    def __init__(self, log_file_path: Optional[str] = None):
        super().__init__()
        self.log_file_path = log_file_path
        self._fault_handler_file = None

    def install(self):
        sys.excepthook = self._handle_exception
        qInstallMessageHandler(self._qt_message_handler)
        self.enable_faulthandler()
        logger.info("Global exception handler installed")

    def uninstall(self):
        """Restore original exception handlers."""
        sys.excepthook = _original_excepthook
        qInstallMessageHandler(None)
        self.disable_faulthandler()
        logger.info("Global exception handler uninstalled")

    def enable_faulthandler(self):
        """Enable faulthandler to log hard crashes."""
        if not self.log_file_path:
            faulthandler.enable(all_threads=True)
            logger.debug("Faulthandler writing to stderr only")
            return

        try:
            # Keep the file handle open so faulthandler can write to it on crash
            self._fault_handler_file = open(self.log_file_path, "a", encoding="utf-8")
            faulthandler.enable(file=self._fault_handler_file, all_threads=True)
            logger.debug(f"Faulthandler configured to log to {self.log_file_path}")
        except OSError as e:
            logger.error(f"Failed to configure faulthandler file logging: {e}")
            faulthandler.enable(all_threads=True)

    def disable_faulthandler(self):
        faulthandler.disable()
        if self._fault_handler_file:
            try:
                self._fault_handler_file.close()
            except OSError as e:
                logger.error(f"Failed to close faulthandler file: {e}")
            self._fault_handler_file = None

    def _qt_message_handler(self, mode: QtMsgType, context, message: str):
        """Handle messages from Qt's logging system."""
        level = _QT_LEVELS.get(mode, logging.DEBUG)
        log_message = f"[QT] {message} (Context: {context.file}:{context.line}, {context.function})"
        logger.log(level, log_message)

        if mode == QtMsgType.QtFatalMsg:
            _show_error_dialog(
                "A fatal Qt error occurred, and the application must close.",
                log_message,
                self.log_file_path,
            )

    def _handle_exception(self, exc_type, exc_value, exc_traceback):
        # Ignore KeyboardInterrupt so we can still exit cleanly
        if issubclass(exc_type, KeyboardInterrupt):
            _original_excepthook(exc_type, exc_value, exc_traceback)
            return

        error_msg = f"{exc_type.__name__}: {exc_value}"
        error_details = "".join(traceback.format_exception(exc_type, exc_value, exc_traceback))

        logger.critical("=" * 60)
        logger.critical("UNHANDLED EXCEPTION")
        logger.critical("=" * 60)
        for line in error_details.split("\n"):
            if line.strip():
                logger.critical(line)
        logger.critical("=" * 60)

        _show_error_dialog(error_msg, error_details, self.log_file_path)


def install_global_exception_handler(log_file_path: Optional[str] = None) -> GlobalExceptionHandler:
    handler = GlobalExceptionHandler(log_file_path)
    handler.install()
    return handler
