import logging
import os
import signal
import subprocess
import threading
import time
from typing import Callable, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# Exit status returned when the process could not be started at all
SPAWN_FAILED = -1
# Exit status returned when the process was killed after exceeding its timeout
TIMED_OUT = -2
# Seconds a timed-out process gets to exit on SIGTERM before its group is killed
TERMINATE_GRACE_SEC = 2.0

# (command, input_text, timeout) -> (exit_status, output)
ProcessRunner = Callable[..., Tuple[int, str]]


def run_command(
    command: Sequence[str],
    input_text: Optional[str] = None,
    timeout: Optional[float] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Tuple[int, str]:
    """Run one external process and capture its combined output.

    Must be called from a worker thread; it blocks until the process exits.
    There is no retry at this level.

    Args:
        command: argv list, executed without a shell
        input_text: Optional text written to the process's stdin (then closed)
        timeout: Seconds before the process is killed; None or 0 waits forever
        env: Optional environment for the child process

    Returns:
        tuple: (exit_status, output) where output is stdout and stderr merged.
        exit_status is SPAWN_FAILED if the process could not be created and
        TIMED_OUT if it was killed after the timeout.
    """
    if not command or not isinstance(command, (list, tuple)):
        raise ValueError("command must be a non-empty list/tuple")

    logger.debug("Running command: %s", " ".join(command))

    popen_kwargs = {
        "stdout": subprocess.PIPE,
        "stderr": subprocess.STDOUT,
        "stdin": subprocess.PIPE if input_text is not None else subprocess.DEVNULL,
        "text": True,
        "encoding": "utf-8",
        "errors": "ignore",  # Ignore decoding errors
        # Own process group so a timeout reaches children (sudo -> apt-get)
        "start_new_session": True,
    }
    if env is not None:
        popen_kwargs["env"] = dict(env)

    try:
        process = subprocess.Popen(list(command), **popen_kwargs)
    except OSError as e:
        # Missing executable, permission denied, etc.
        logger.error(f"Failed to start '{command[0]}': {e}")
        return SPAWN_FAILED, ""

    output = []

    def read_output(pipe):
        try:
            for line in pipe:
                output.append(line)
                logger.debug(line.rstrip())
        except (OSError, ValueError) as e:
            logger.warning(f"Error reading process output: {e}")

    reader = threading.Thread(target=read_output, args=(process.stdout,), daemon=True)
    reader.start()

    if input_text is not None:
        try:
            process.stdin.write(input_text)
            process.stdin.close()
        except (BrokenPipeError, OSError) as e:
            # Process exited before reading its input; the exit status tells the rest
            logger.debug(f"Could not write to stdin of '{command[0]}': {e}")

    deadline = time.monotonic() + timeout if timeout else None
    timed_out = False
    while process.poll() is None:
        if deadline is not None and time.monotonic() >= deadline:
            logger.warning(f"Command exceeded {timeout}s timeout, stopping: {' '.join(command)}")
            _stop_process_group(process)
            timed_out = True
            break
        time.sleep(0.05)

    try:
        process.wait(timeout=5.0)
    except subprocess.TimeoutExpired:
        logger.warning("Process did not terminate after kill.")
    reader.join(timeout=2.0)

    # A surviving grandchild can still hold the pipe open; closing it from here
    # would block until that process exits, so leave it to the reader thread.
    if process.stdout and not reader.is_alive():
        try:
            process.stdout.close()
        except OSError:
            pass

    captured = "".join(list(output))
    if timed_out:
        return TIMED_OUT, captured
    return process.returncode, captured


def _stop_process_group(process: subprocess.Popen) -> None:
    """Terminate a timed-out process and everything it started.

    SIGTERM goes to the direct child first (sudo forwards it to its command),
    then the whole session is killed after TERMINATE_GRACE_SEC.
    """
    try:
        process.terminate()
    except OSError as e:
        logger.debug(f"terminate() failed: {e}")
    try:
        process.wait(timeout=TERMINATE_GRACE_SEC)
    except subprocess.TimeoutExpired:
        logger.debug("Process ignored SIGTERM, killing its process group")
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except OSError as e:
        # e.g. EPERM once a sudo child has changed its uid
        logger.warning(f"Could not kill process group {process.pid}: {e}")
        process.kill()
