"""Unit tests for run_command (the real process runner)."""

import sys
import time

import pytest

from utils.run_command import SPAWN_FAILED, TIMED_OUT, run_command


class TestRunCommandSuccess:
    """Unit tests for successful subprocess execution"""

    def test_merges_stdout_and_stderr(self):
        """Test: stdout and stderr end up in one output string"""
        command = [
            sys.executable,
            "-c",
            "import sys; print('output line'); sys.stderr.write('error line\\n')",
        ]

        status, output = run_command(command)

        assert status == 0, f"Expected exit status 0, got {status}"
        assert "output line" in output
        assert "error line" in output

    def test_returns_exit_status_verbatim(self):
        """Test: Non-zero exit status is passed through unchanged"""
        status, _ = run_command([sys.executable, "-c", "import sys; sys.exit(100)"])

        assert status == 100

    def test_feeds_input_text_to_stdin(self):
        """Test: input_text is written to the process's stdin"""
        command = [sys.executable, "-c", "import sys; print(sys.stdin.read().upper())"]

        status, output = run_command(command, input_text="secret\n")

        assert status == 0
        assert "SECRET" in output

    def test_accepts_tuple_command(self):
        """Test: Command catalog tuples are accepted as-is"""
        status, output = run_command((sys.executable, "-c", "print('tuple ok')"))

        assert status == 0
        assert "tuple ok" in output


class TestRunCommandFailures:
    """Unit tests for spawn failures, timeouts and bad arguments"""

    def test_missing_executable_returns_spawn_failed(self):
        """Test: A command that cannot be started yields SPAWN_FAILED, not an exception"""
        status, output = run_command(["definitely-not-a-real-binary-4711"])

        assert status == SPAWN_FAILED
        assert output == ""

    def test_timeout_kills_process(self):
        """Test: Process exceeding the timeout is killed and reported as TIMED_OUT"""
        command = [sys.executable, "-c", "import time; print('started', flush=True); time.sleep(30)"]

        status, output = run_command(command, timeout=0.5)

        assert status == TIMED_OUT
        assert "started" in output

    def test_timeout_reaches_child_processes(self):
        """Test: A wrapper that started a child (like sudo -> apt-get) is bounded by the timeout"""
        command = ["sh", "-c", "sleep 8; echo done"]

        start = time.monotonic()
        status, output = run_command(command, timeout=0.5)
        elapsed = time.monotonic() - start

        assert status == TIMED_OUT
        assert elapsed < 4.0, f"run_command returned after {elapsed:.1f}s"
        assert "done" not in output

    def test_timeout_kills_group_that_ignores_sigterm(self):
        """Test: A process group ignoring SIGTERM is killed after the grace period"""
        command = ["sh", "-c", "trap '' TERM; sleep 8 & wait; echo done"]

        start = time.monotonic()
        status, _ = run_command(command, timeout=0.5)
        elapsed = time.monotonic() - start

        assert status == TIMED_OUT
        assert elapsed < 6.0, f"run_command returned after {elapsed:.1f}s"

    @pytest.mark.parametrize("command", [[], (), "ls -la", None])
    def test_rejects_invalid_command(self, command):
        """Test: Empty or non-sequence commands raise ValueError"""
        with pytest.raises(ValueError):
            run_command(command)
