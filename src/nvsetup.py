import sys
import os
import logging
import argparse
import traceback
from typing import Any, Optional, Tuple

# Import only the minimal constants needed for early execution
from common.constants import APP_NAME, APP_DESCRIPTION, APP_LOG_FILENAME
from utils.version import get_version

# Defer other imports until after health check / version check


def show_error_dialog(title, message, details=None):
    """Show error dialog for critical startup failures (even before the window exists)"""
    try:
        from PySide6.QtWidgets import QApplication, QMessageBox

        if not os.environ.get("DISPLAY") and not os.environ.get("WAYLAND_DISPLAY"):
            raise RuntimeError("no display available")

        app = QApplication.instance()
        if app is None:
            app = QApplication(sys.argv)

        msg_box = QMessageBox()
        msg_box.setIcon(QMessageBox.Icon.Critical)
        msg_box.setWindowTitle(title)
        msg_box.setText(message)
        if details:
            msg_box.setDetailedText(details)
        msg_box.exec()
    except Exception:
        # If GUI fails, print to stderr (visible if run from a terminal)
        print(f"\n{'=' * 60}", file=sys.stderr)
        print(f"CRITICAL ERROR: {title}", file=sys.stderr)
        print(f"{'=' * 60}", file=sys.stderr)
        print(message, file=sys.stderr)
        if details:
            print(f"\nDetails:\n{details}", file=sys.stderr)
        print(f"{'=' * 60}\n", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=f"{APP_NAME} - {APP_DESCRIPTION}")

    parser.add_argument("--version", action="store_true", help="Show version information and exit")
    parser.add_argument("--health-check", action="store_true", help="Verify application can start (for CI/testing)")

    # Headless mode
    parser.add_argument("--detect", action="store_true", help="Detect GPU, driver and CUDA status and exit")
    parser.add_argument("--install-driver", action="store_true", help="Install the NVIDIA driver without the GUI")
    parser.add_argument("--install-cuda", action="store_true", help="Install the CUDA toolkit without the GUI")
    parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation before installing")

    return parser


def parse_arguments(argv=None):
    """Parse command-line arguments"""
    return build_parser().parse_args(argv)


def print_version_info():
    """Print version and dependency information"""
    print(f"{APP_NAME} {get_version()}")
    print(f"Python: {sys.version.split()[0]}")

    try:
        from PySide6 import __version__ as pyside_version

        print(f"PySide6: {pyside_version}")
    except ImportError:
        print("PySide6: not available")


def health_check() -> int:
    """
    Minimal health check - verify the core imports and the config load.

    Returns exit code: 0 = success, 1 = failure
    """
    print(f"{APP_NAME} Health Check")
    print("=" * 50)

    try:
        from managers.run_manager import RunManager  # noqa: F401
        from utils.config_validator import validate_config, print_validation_report
        from common.config import Config

        print("✓ Core modules import")
        print(f"✓ Version: {get_version()}")

        config = Config()
        print(f"✓ Config: {config.config_path}")
        is_valid, errors = validate_config(config, auto_fix=False)
        print_validation_report(errors)
        if not is_valid:
            raise RuntimeError("configuration has errors")

        print("=" * 50)
        print("\n✅ Health check PASSED")
        return 0
    except Exception as e:
        print("=" * 50)
        print(f"\n❌ Health check FAILED: {e}")
        return 1


def _has_cli_flags(args: argparse.Namespace) -> bool:
    """Return True if the run is headless."""
    return any([args.detect, args.install_driver, args.install_cuda, args.yes])


def _create_and_validate_config() -> Any:
    """Create Config and validate it, exiting on critical errors."""
    from common.config import Config
    from utils.config_validator import validate_config, print_validation_report

    config = Config()
    is_valid, validation_errors = validate_config(config, auto_fix=True)
    if validation_errors:
        print_validation_report(validation_errors, stream=sys.stderr)
        if not is_valid:
            error_msg = (
                "Critical configuration errors detected!\n\n"
                "Please review and fix config.ini, then restart the application."
            )
            error_details = "\n".join([f"- {err}" for err in validation_errors])
            show_error_dialog("Configuration Error", error_msg, error_details)
            sys.exit(1)
    return config


def _setup_logging_early(config: Any, headless: bool) -> Tuple[str, logging.Logger]:
    """Setup async logging and return (log_file_path, logger)."""
    from common.utils.async_logging import setup_async_logging
    from utils.files import get_localappdata_dir

    log_file_path = os.path.join(get_localappdata_dir(), APP_LOG_FILENAME)
    setup_async_logging(
        log_level=config.log_level,
        log_file_path=log_file_path,
        max_bytes=10 * 1024 * 1024,
        backup_count=3,
        # Headless runs print the progress log themselves; only surface real problems
        console_level=logging.ERROR if headless else None,
    )

    logger = logging.getLogger(__name__)
    logger.info(f"{APP_NAME} {get_version()} started with log level: {config.log_level_str}")
    config.log_config_location()
    return log_file_path, logger


def main(argv=None):
    """Main entry point for the NVIDIA GPU Setup Tool"""
    log_file_path: Optional[str] = None
    exception_handler = None

    try:
        args = parse_arguments(argv)

        # Early exits
        if args.version:
            print_version_info()
            sys.exit(0)
        if args.health_check:
            sys.exit(health_check())

        headless = _has_cli_flags(args)
        config = _create_and_validate_config()
        log_file_path, logger = _setup_logging_early(config, headless)

        if headless:
            from cli.setup_cli_handler import handle_setup_cli_flags

            exit_code = handle_setup_cli_flags(args, config)
            if exit_code is not None:
                sys.exit(exit_code)

        # Install global exception handler AFTER logging is configured
        from utils.exception_handler import install_global_exception_handler

        exception_handler = install_global_exception_handler(log_file_path)

        from ui.main_window import create_and_run_gui

        sys.exit(create_and_run_gui(config, log_file_path))

    except Exception as e:
        # Critical startup failure - show error dialog and log
        error_msg = f"A critical error occurred during application startup:\n\n{str(e)}"
        error_details = traceback.format_exc()
        logging.getLogger(__name__).critical(error_details)
        if log_file_path:
            error_msg += f"\n\nError details have been logged to:\n{log_file_path}"

        show_error_dialog("Critical Startup Error", error_msg, error_details)

        from common.utils.async_logging import shutdown_async_logging

        if exception_handler:
            exception_handler.uninstall()
        shutdown_async_logging()

        sys.exit(1)


if __name__ == "__main__":
    main()
