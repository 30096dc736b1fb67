"""
CLI handler for headless detection and installation.

Drives the same RunManager as the GUI and prints the progress channel to the
terminal instead of a log console.
"""

import getpass
import sys
import time
from collections import deque
from typing import Callable, Optional

from common.errors import GateFailure
from managers.progress_channel import ProgressChannel
from managers.run_manager import RunManager
from model.install_request import InstallRequest
from model.log_buffer import format_log_line
from model.progress_event import EventKind
from services.command_catalog import CommandCatalog
from services.privilege import PrivilegeProof, verify_privilege

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

REBOOT_HINT = (
    "Please reboot your system to load the drivers.\n\n"
    "After reboot, verify with:\n"
    "  nvidia-smi (for driver)\n"
    "  nvcc --version (for CUDA)"
)


def wait_for_terminal_event(manager: RunManager, channel: ProgressChannel, out=None, poll_interval: float = 0.1):
    """
    Print events as they arrive until the run's terminal event shows up.

    Ctrl+C requests cancellation; the run stops at the next step boundary.
    Events already drained from the channel are still printed after an interrupt.

    Returns:
        The terminal event's payload (SystemInfo or RunOutcome)
    """
    out = out or sys.stdout
    last_progress = None
    pending = deque()
    while True:
        try:
            pending.extend(channel.drain())
            while pending:
                event = pending[0]
                if event.kind == EventKind.LOG:
                    print(format_log_line(event.message, event.severity, event.timestamp), file=out)
                elif event.kind == EventKind.PROGRESS:
                    if (event.fraction, event.message) != last_progress:
                        print(f"[{event.fraction:5.1f}%] {event.message}", file=out)
                        last_progress = (event.fraction, event.message)
                else:
                    return event.payload
                # Dropped only once printed
                pending.popleft()
            time.sleep(poll_interval)
        except KeyboardInterrupt:
            print("Cancelling after the current step...", file=out)
            manager.cancel()


def _confirm(request: InstallRequest, input_fn: Callable[[str], str], out) -> bool:
    print(request.describe(), file=out)
    try:
        answer = input_fn("Continue? [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _obtain_proof(catalog: CommandCatalog, runner, password_fn: Callable[[str], str], out) -> Optional[PrivilegeProof]:
    if catalog.as_root:
        return PrivilegeProof.for_root()
    print("This operation requires administrator privileges.", file=out)
    try:
        password = password_fn("Password: ")
        return verify_privilege(password, runner, catalog)
    except GateFailure as e:
        print(f"ERROR: {e.message}", file=out)
        return None
    except EOFError:
        print("ERROR: No password entered.", file=out)
        return None


def handle_detect(config, runner=None, catalog=None, out=None) -> int:
    out = out or sys.stdout
    channel = ProgressChannel()
    manager = RunManager(config, channel, runner, catalog)
    try:
        manager.start_probe()
        info = wait_for_terminal_event(manager, channel, out)
    finally:
        manager.shutdown()
    print("", file=out)
    print(info.summary(), file=out)
    return EXIT_OK


def handle_install(
    config,
    install_driver: bool,
    install_cuda: bool,
    assume_yes: bool = False,
    runner=None,
    catalog=None,
    input_fn: Callable[[str], str] = input,
    password_fn: Callable[[str], str] = getpass.getpass,
    out=None,
) -> int:
    out = out or sys.stdout
    request = InstallRequest(install_driver=install_driver, install_cuda=install_cuda)
    try:
        request.validate()
    except GateFailure as e:
        print(f"ERROR: {e.message}", file=out)
        return EXIT_USAGE

    channel = ProgressChannel()
    catalog = catalog or CommandCatalog(config)
    manager = RunManager(config, channel, runner, catalog)
    try:
        manager.start_probe()
        system_info = wait_for_terminal_event(manager, channel, out)
        print(system_info.summary(), file=out)

        if not assume_yes and not _confirm(request, input_fn, out):
            print("Installation cancelled.", file=out)
            return EXIT_FAILURE

        proof = _obtain_proof(catalog, manager.runner, password_fn, out)
        if proof is None:
            return EXIT_FAILURE

        manager.start_install(request, system_info, proof)
        outcome = wait_for_terminal_event(manager, channel, out)
    finally:
        manager.shutdown()

    print("", file=out)
    if outcome.is_success:
        print(outcome.message, file=out)
        print(REBOOT_HINT, file=out)
        return EXIT_OK

    if outcome.step_description:
        print(f"Installation failed at: {outcome.step_description} (exit code {outcome.exit_status})", file=out)
    else:
        print(f"Installation aborted: {outcome.message}", file=out)
    return EXIT_FAILURE


def handle_setup_cli_flags(args, config, **kwargs) -> Optional[int]:
    """
    Handle --detect / --install-* flags.

    Returns:
        Exit code if a CLI action ran, None if the GUI should start
    """
    if args.install_driver or args.install_cuda:
        return handle_install(config, args.install_driver, args.install_cuda, args.yes, **kwargs)
    if args.detect:
        detect_kwargs = {key: kwargs[key] for key in ("runner", "catalog", "out") if key in kwargs}
        return handle_detect(config, **detect_kwargs)
    if args.yes:
        print("ERROR: --yes requires --install-driver and/or --install-cuda", file=kwargs.get("out") or sys.stderr)
        return EXIT_USAGE
    return None
