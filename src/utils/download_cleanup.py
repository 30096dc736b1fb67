"""
Download Cleanup Utilities

Removes artifacts downloaded during an install run (the repository keyring
package). Cleanup is best effort: failures are logged, never raised.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Iterable, Optional

logger = logging.getLogger(__name__)


def cleanup_download_files(paths: Iterable, log_cb: Optional[Callable[[str], None]] = None) -> int:
    """
    Delete downloaded artifacts left behind by an install run.

    Missing files are skipped silently. A locked file is retried a few times
    before giving up.

    Args:
        paths: Files to remove
        log_cb: Optional callback for user-facing log messages

    Returns:
        Number of files successfully cleaned up
    """
    cleaned_count = 0
    for file_path in (Path(p) for p in paths):
        if not file_path.exists():
            continue
        for attempt in range(3):
            try:
                file_path.unlink()
                logger.info(f"Deleted downloaded artifact: {file_path}")
                cleaned_count += 1
                break
            except PermissionError as e:
                if attempt < 2:
                    logger.warning(f"File locked, retrying in 1 second: {file_path}")
                    time.sleep(1)
                else:
                    logger.error(f"Failed to delete {file_path} after 3 attempts: {e}")
                    if log_cb:
                        log_cb(f"Could not clean up {file_path.name}")
            except OSError as e:
                logger.warning(f"Failed to delete {file_path}: {e}")
                break

    if cleaned_count > 0:
        logger.info(f"Cleaned up {cleaned_count} downloaded file(s)")
        if log_cb:
            log_cb(f"Cleaned up {cleaned_count} downloaded file(s)")

    return cleaned_count
