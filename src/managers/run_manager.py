import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from managers.progress_channel import ProgressChannel, ProgressReporter
from model.install_request import InstallRequest
from model.run_outcome import RunOutcome
from model.system_info import SystemInfo
from services.command_catalog import CommandCatalog
from services.installer import Installer
from services.system_prober import SystemProber
from utils.run_command import ProcessRunner, run_command

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Everything a worker needs. Passed explicitly; only the worker writes to it after spawn."""

    config: object
    runner: ProcessRunner
    catalog: CommandCatalog
    channel: ProgressChannel
    cancel_event: threading.Event = field(default_factory=threading.Event)


class RunManager:
    """
    Runs at most one probe or install at a time on a background thread.

    A second start while a run is active is rejected, not queued. Results
    reach the caller only through the progress channel.
    """

    def __init__(
        self,
        config,
        channel: ProgressChannel,
        runner: Optional[ProcessRunner] = None,
        catalog: Optional[CommandCatalog] = None,
    ):
        self.config = config
        self.channel = channel
        self.runner = runner or run_command
        self.catalog = catalog or CommandCatalog(config)
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._context: Optional[RunContext] = None
        self._busy = False

    @property
    def is_busy(self) -> bool:
        with self._lock:
            return self._busy

    def start_probe(self) -> bool:
        return self._start("probe", self._probe_worker)

    def start_install(self, request: InstallRequest, system_info: SystemInfo, proof) -> bool:
        """
        Start an install run.

        Raises:
            EmptySelectionError: Neither component selected (nothing is spawned)
        """
        request.validate()
        return self._start("install", self._install_worker, request, system_info, proof)

    def _start(self, kind: str, target, *args) -> bool:
        with self._lock:
            if self._busy:
                logger.warning(f"Cannot start {kind}: another run is still active")
                return False
            # Previous worker has already posted its terminal event
            if self._thread is not None:
                self._thread.join()
            context = RunContext(
                config=self.config,
                runner=self.runner,
                catalog=self.catalog,
                channel=self.channel,
            )
            self._context = context
            self._busy = True
            self._thread = threading.Thread(target=target, args=(context, *args), name=f"nvsetup-{kind}")
            logger.info(f"Starting {kind} worker")
            self._thread.start()
            return True

    def cancel(self):
        """Request cooperative cancellation of the active run (checked between steps)."""
        with self._lock:
            if self._busy and self._context is not None:
                logger.info("Cancellation requested")
                self._context.cancel_event.set()

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Cancel and join the outstanding worker.

        Returns:
            True if no worker is left running
        """
        self.cancel()
        thread = self._thread
        if thread is not None and thread.is_alive():
            logger.info("Waiting for active worker to finish...")
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Worker still running after shutdown timeout")
                return False
        return True

    def _release(self):
        with self._lock:
            self._busy = False
            self._context = None

    def _probe_worker(self, context: RunContext):
        reporter = ProgressReporter(context.channel, "probe")
        try:
            info = SystemProber(context.config, context.runner, context.catalog).probe(reporter)
        except Exception as e:
            logger.exception("Unexpected error during system detection")
            reporter.error(f"System detection failed: {e}")
            info = SystemInfo.unknown()
        # Release before the terminal event so a consumer may start the next run right away
        self._release()
        reporter.finished_probe(info)

    def _install_worker(self, context: RunContext, request, system_info, proof):
        reporter = ProgressReporter(context.channel, "install")
        try:
            installer = Installer(context.config, context.runner, context.catalog)
            outcome = installer.install(request, system_info, proof, reporter, context.cancel_event)
        except Exception as e:
            logger.exception("Unexpected error during installation")
            reporter.error(f"Installation failed unexpectedly: {e}")
            outcome = RunOutcome.failed("Unexpected error", -1)
        self._release()
        reporter.finished_install(outcome)
