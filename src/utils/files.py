import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# <repo>/src/utils/files.py -> <repo>
SOURCE_ROOT = Path(__file__).resolve().parents[2]


def is_root() -> bool:
    """True when the effective user id is 0."""
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def get_localappdata_dir():
    """
    Get the application data directory for the setup tool.

    Holds config.ini, the log file and downloaded artifacts.
    Respects the XDG Base Directory Specification.

    Returns:
        str: Path to application data directory, e.g.
        ~/.local/share/NvidiaSetupTool/ (or $XDG_DATA_HOME/NvidiaSetupTool/)
    """
    from common.constants import APP_FOLDER_NAME

    xdg_data = os.getenv("XDG_DATA_HOME")
    if xdg_data:
        app_data_dir = os.path.join(xdg_data, APP_FOLDER_NAME)
    else:
        app_data_dir = os.path.expanduser(f"~/.local/share/{APP_FOLDER_NAME}")
    os.makedirs(app_data_dir, exist_ok=True)
    return app_data_dir


def resource_path(relative_path):
    """Absolute path to a file shipped at the root of the source tree."""
    source_path = SOURCE_ROOT / relative_path
    if source_path.exists():
        return str(source_path)
    # Installed without the source tree: fall back to the working directory
    return os.path.join(os.path.abspath("."), relative_path)
