"""Application version, read from the VERSION file shipped next to the sources."""

from __future__ import annotations

import os
import threading
from pathlib import Path

from utils.files import resource_path

UNKNOWN_VERSION = "unknown"

_version_cache: str | None = None
_version_lock = threading.Lock()


def _candidate_paths():
    yield Path(resource_path("VERSION"))


def _read_version() -> str:
    for path in _candidate_paths():
        if not os.path.isfile(path):
            continue
        try:
            content = path.read_text(encoding="utf-8").strip()
        except OSError:
            continue
        if content:
            return content.lstrip("v")
    return UNKNOWN_VERSION


def get_version() -> str:
    """Return the application version string, cached after first read."""
    global _version_cache
    if _version_cache is None:
        with _version_lock:
            if _version_cache is None:
                _version_cache = _read_version()
    return _version_cache
