import logging
import logging.handlers
import queue
import atexit
import sys
from typing import Optional

FILE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"

# Global reference to prevent garbage collection
_queue_listener = None
_shutdown_registered = False


class SafeRotatingFileHandler(logging.handlers.RotatingFileHandler):
    """
    RotatingFileHandler that keeps logging when a rollover fails.

    Installs often run with a log file that another process (a tail -f, a
    root-owned copy from an earlier sudo run) holds or owns.
    """

    def doRollover(self):
        try:
            super().doRollover()
        except OSError as e:
            print(f"Warning: Could not rotate log file: {e}", file=sys.stderr)


def setup_async_logging(
    log_level=logging.INFO,
    log_file_path: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
    console_level: Optional[int] = None,
) -> None:
    """
    Route all logging through a queue so worker threads never block on file I/O.

    Args:
        log_level: The logging level (e.g., logging.INFO)
        log_file_path: Path to the log file, if None no file handler is added
        max_bytes: Maximum size of each log file before rotation
        backup_count: Number of backup files to keep
        console_level: If set, also log to stderr at this level (headless mode)
    """
    global _queue_listener, _shutdown_registered

    if _queue_listener is not None:
        shutdown_async_logging(flush_only=True)

    log_queue = queue.Queue(-1)  # No limit on queue size
    queue_handler = logging.handlers.QueueHandler(log_queue)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove any existing handlers to avoid duplicate logs
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.addHandler(queue_handler)

    handlers = []

    if log_file_path:
        file_handler = SafeRotatingFileHandler(
            log_file_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    if console_level is not None:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        handlers.append(console_handler)

    _queue_listener = logging.handlers.QueueListener(log_queue, *handlers, respect_handler_level=True)
    _queue_listener.start()

    # Register atexit hook (one-time) to ensure cleanup on unexpected exit
    if not _shutdown_registered:
        atexit.register(shutdown_async_logging)
        _shutdown_registered = True

    logging.info("Asynchronous logging setup completed")


def shutdown_async_logging(flush_only: bool = False):
    """
    Stop the queue listener thread and wait for it to finish (idempotent).

    Args:
        flush_only: Stop the listener but leave the logging module usable
    """
    global _queue_listener

    if _queue_listener is None:
        return

    # stop() drains the remaining records before returning
    _queue_listener.stop()
    for handler in _queue_listener.handlers:
        handler.close()
    _queue_listener = None

    if not flush_only:
        logging.shutdown()
