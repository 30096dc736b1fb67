"""
Installation planner and executor.

plan_install() turns the two component choices into an ordered list of
InstallSteps. Installer.install() runs the gates, executes the steps one by
one through the process runner and reports progress. The first failing step
aborts the run and triggers a best-effort package cleanup.
"""

import logging
import os
import threading
from typing import List, Optional

from common.errors import GateFailure, StepFailure
from model.install_request import InstallRequest, InstallStep
from model.run_outcome import AbortReason, RunOutcome, RunState
from services.command_catalog import CommandCatalog
from services.preflight import Preflight
from utils.download_cleanup import cleanup_download_files
from utils.logging_utils import TimingSpan, flush_logs
from utils.run_command import ProcessRunner, run_command

logger = logging.getLogger(__name__)

# Lines of command output echoed to the console when a step fails
FAILURE_OUTPUT_LINES = 10

_TRANSITIONS = {
    RunState.IDLE: {RunState.GATING},
    RunState.GATING: {RunState.EXECUTING, RunState.ABORTED},
    RunState.EXECUTING: {RunState.SUCCEEDED, RunState.FAILED, RunState.ABORTED},
}


def plan_install(request: InstallRequest, system_info, catalog: CommandCatalog) -> List[InstallStep]:
    """
    Build the ordered step list for a request.

    Raises:
        EmptySelectionError: Neither component is selected
    """
    request.validate()
    weight = 100.0 / request.total_steps
    codename = system_info.distro_codename

    planned = [
        ("update", "Updating package lists...", "Updating package repositories...", catalog.update_package_index(), None, True),
        ("prereqs", "Installing prerequisites...", "Installing required packages...", catalog.install_prerequisites(), None, True),
    ]
    if request.install_driver:
        planned += [
            ("add-keyring", "Adding NVIDIA repository...", "Adding NVIDIA repository...", catalog.download_keyring(codename), None, False),
            ("dpkg-keyring", "Installing repository keyring...", "Installing NVIDIA repository keyring...", catalog.install_keyring(), None, True),
            ("update", "Updating package lists...", "Updating package lists with NVIDIA repository...", catalog.update_package_index(), None, True),
            ("install-driver", "Installing NVIDIA driver...", "Installing NVIDIA proprietary driver...", catalog.install_driver(), None, True),
        ]
    if request.install_cuda:
        planned += [
            ("update", "Verifying CUDA repository...", "Ensuring NVIDIA CUDA repository...", catalog.update_package_index(), None, True),
            ("install-cuda", "Installing CUDA toolkit...", "Installing CUDA toolkit...", catalog.install_cuda_toolkit(), None, True),
            ("cuda-path", "Setting up environment variables...", "Configuring CUDA environment (PATH)...", catalog.write_profile(), catalog.path_export_line(), True),
            ("cuda-ld-path", "Setting up environment variables...", "Configuring CUDA environment (LD_LIBRARY_PATH)...", catalog.append_profile(), catalog.ld_library_path_export_line(), True),
        ]

    return [
        InstallStep(
            name=name,
            description=description,
            log_message=log_message,
            command=tuple(command),
            progress_weight=weight,
            input_text=input_text,
            privileged=privileged,
        )
        for name, description, log_message, command, input_text, privileged in planned
    ]


class InstallRun:
    """State of one install run. A new run starts from IDLE; nothing resumes."""

    def __init__(self, request: InstallRequest):
        self.request = request
        self.state = RunState.IDLE
        self.step_index = 0
        self.outcome: Optional[RunOutcome] = None

    def transition(self, new_state: RunState):
        if new_state not in _TRANSITIONS.get(self.state, set()):
            raise RuntimeError(f"Invalid run state transition {self.state.value} -> {new_state.value}")
        logger.debug(f"Run state {self.state.value} -> {new_state.value}")
        self.state = new_state

    def finish(self, new_state: RunState, outcome: RunOutcome) -> RunOutcome:
        self.transition(new_state)
        self.outcome = outcome
        return outcome


class Installer:
    def __init__(
        self,
        config,
        runner: Optional[ProcessRunner] = None,
        catalog: Optional[CommandCatalog] = None,
        preflight: Optional[Preflight] = None,
    ):
        self.config = config
        self.runner = runner or run_command
        self.catalog = catalog or CommandCatalog(config)
        self.preflight = preflight or Preflight(config, self.runner, self.catalog)
        self.current_run: Optional[InstallRun] = None

    def install(
        self,
        request: InstallRequest,
        system_info,
        proof,
        reporter,
        cancel_event: Optional[threading.Event] = None,
    ) -> RunOutcome:
        """
        Execute one complete install run.

        Returns:
            RunOutcome: SUCCEEDED, ABORTED (gate or cancel) or FAILED (step)
        """
        run = InstallRun(request)
        self.current_run = run
        logger.info(f"Starting installation: {', '.join(request.components()) or 'nothing selected'}")

        try:
            run.transition(RunState.GATING)
            try:
                self.preflight.run_gates(request, system_info, proof, reporter)
            except GateFailure as e:
                gate = e.reason.value if e.reason else "unspecified"
                logger.warning(f"Installation aborted by gate {gate}: {e.message}")
                reporter.error(f"Installation aborted: {e.message.splitlines()[0]}")
                return run.finish(RunState.ABORTED, RunOutcome.aborted(e.reason, e.message))

            self.preflight.run_advisories(system_info, reporter)
            steps = plan_install(request, system_info, self.catalog)
            self._prepare_work_directory()

            run.transition(RunState.EXECUTING)
            try:
                for index, step in enumerate(steps):
                    if cancel_event is not None and cancel_event.is_set():
                        message = "Installation cancelled by user."
                        reporter.error(message)
                        return run.finish(RunState.ABORTED, RunOutcome.aborted(AbortReason.CANCELLED, message))
                    run.step_index = index
                    self._execute_step(index, step, reporter)
            except StepFailure as e:
                self._remediate(reporter)
                reporter.error(f"Installation failed: {e.step_description} (exit code {e.exit_status})")
                return run.finish(RunState.FAILED, RunOutcome.failed(e.step_description, e.exit_status))

            outcome = RunOutcome.succeeded()
            reporter.progress(100.0, outcome.message)
            reporter.success(outcome.message)
            return run.finish(RunState.SUCCEEDED, outcome)
        finally:
            self._cleanup_artifacts(reporter)

    def _execute_step(self, index: int, step: InstallStep, reporter):
        reporter.progress(index * step.progress_weight, step.description)
        reporter.info(step.log_message)
        reporter.info(f"Running: {step.command_line()}")

        timeout = self.config.step_timeout_sec or None
        flush_logs()
        with TimingSpan(f"step {index + 1} ({step.name})", logger):
            status, output = self.runner(step.command, input_text=step.input_text, timeout=timeout)

        if status != 0:
            tail = [line for line in output.splitlines() if line.strip()][-FAILURE_OUTPUT_LINES:]
            for line in tail:
                reporter.info(line)
            reporter.error(f"Command failed with exit code {status}")
            raise StepFailure(step.description, status)

        reporter.success("Command completed successfully")
        reporter.progress((index + 1) * step.progress_weight, step.description)

    def _remediate(self, reporter):
        """Remove packages left behind by a partial install. The result does not change the outcome."""
        reporter.info("Cleaning up partial installation...")
        try:
            status, _ = self.runner(
                self.catalog.autoremove(), input_text=None, timeout=self.config.step_timeout_sec or None
            )
        except Exception as e:
            logger.warning(f"Remediation raised: {e}")
            return
        if status != 0:
            logger.warning(f"Remediation exited with code {status}")

    def _prepare_work_directory(self):
        try:
            os.makedirs(self.config.effective_work_directory, exist_ok=True)
        except OSError as e:
            # The download step reports the failure
            logger.warning(f"Could not create work directory {self.config.effective_work_directory}: {e}")

    def _cleanup_artifacts(self, reporter):
        try:
            cleanup_download_files([self.catalog.keyring_path], log_cb=reporter.info)
        except Exception as e:
            logger.warning(f"Artifact cleanup failed: {e}")
