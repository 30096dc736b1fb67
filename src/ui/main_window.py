import logging
import sys
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QFrame,
    QHBoxLayout,
    QLabel,
    QProgressBar,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from common.constants import APP_DESCRIPTION, APP_NAME
from common.errors import EmptySelectionError
from managers.progress_channel import ProgressChannel
from managers.run_manager import RunManager
from model.install_request import InstallRequest
from model.run_outcome import AbortReason, RunStatus
from model.system_info import SystemInfo
from services.command_catalog import CommandCatalog
from services.privilege import PrivilegeProof
from ui import dialogs
from ui.channel_pump import ChannelPump
from ui.dark_style import enable_dark_mode
from ui.log_console import LogConsole
from ui.status_card import StatusCard, component_badge, gpu_badge
from ui.workers.privilege_worker import PrivilegeWorker
from utils.version import get_version

logger = logging.getLogger(__name__)

WSL_NOTICE = "WSL users: This tool requires a live boot Linux system for GPU access"

ABORT_TITLES = {
    AbortReason.WSL: "WSL Environment Detected",
    AbortReason.NO_GPU: "Error",
    AbortReason.EMPTY_SELECTION: "Error",
    AbortReason.NO_CONNECTIVITY: "Installation Failed",
    AbortReason.NOT_AUTHORIZED: "Authentication Failed",
    AbortReason.CANCELLED: "Installation Cancelled",
}


class SetupWindow(QWidget):
    """
    Main window: status cards, install options, progress and console.

    All core work runs on the RunManager's worker; this widget only reacts to
    the signals of its ChannelPump.
    """

    def __init__(self, config, manager: RunManager, channel: ProgressChannel, log_file_path: Optional[str] = None):
        super().__init__()
        self.config = config
        self.manager = manager
        self.channel = channel
        self.catalog: CommandCatalog = manager.catalog
        self.log_file_path = log_file_path
        self.system_info = SystemInfo.unknown()
        self._pending_request: Optional[InstallRequest] = None
        self._privilege_worker: Optional[PrivilegeWorker] = None
        self._busy = False

        self._setup_ui()

        self.pump = ChannelPump(channel, parent=self)
        self.pump.progress_changed.connect(self.on_progress_changed)
        self.pump.log_appended.connect(self.console.append)
        self.pump.probe_finished.connect(self.on_probe_finished)
        self.pump.install_finished.connect(self.on_install_finished)
        self.pump.start()

    # --------------------------- UI BUILD HELPERS ---------------------------
    def _setup_ui(self):
        self.setWindowTitle(APP_NAME)
        self.resize(800, 720)
        layout = QVBoxLayout(self)
        layout.setSpacing(10)
        layout.setContentsMargins(14, 14, 14, 14)
        self._build_header(layout)
        self._build_status_cards(layout)
        self._build_options(layout)
        self._build_progress_frame(layout)
        self._build_buttons(layout)

    def _build_header(self, layout: QVBoxLayout) -> None:
        title_label = QLabel(f"{APP_NAME} {get_version()}")
        title_label.setObjectName("titleLabel")
        title_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(title_label)

        subtitle_label = QLabel(APP_DESCRIPTION)
        subtitle_label.setObjectName("subtitleLabel")
        subtitle_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(subtitle_label)

        wsl_label = QLabel(WSL_NOTICE)
        wsl_label.setObjectName("wslNotice")
        wsl_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(wsl_label)

    def _build_status_cards(self, layout: QVBoxLayout) -> None:
        self.gpu_card = StatusCard("NVIDIA GPU")
        self.driver_card = StatusCard("NVIDIA Driver")
        self.cuda_card = StatusCard("CUDA Toolkit")
        for card in (self.gpu_card, self.driver_card, self.cuda_card):
            layout.addWidget(card)

    def _build_options(self, layout: QVBoxLayout) -> None:
        options_layout = QHBoxLayout()
        self.driver_checkbox = QCheckBox("Install NVIDIA Driver")
        self.driver_checkbox.setChecked(True)
        self.cuda_checkbox = QCheckBox("Install CUDA Toolkit")
        self.cuda_checkbox.setChecked(False)
        options_layout.addWidget(self.driver_checkbox)
        options_layout.addWidget(self.cuda_checkbox)
        options_layout.addStretch()
        layout.addLayout(options_layout)

    def _build_progress_frame(self, layout: QVBoxLayout) -> None:
        frame = QFrame()
        frame.setObjectName("progressFrame")
        frame_layout = QVBoxLayout(frame)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setValue(0)
        self.progress_bar.setTextVisible(True)
        frame_layout.addWidget(self.progress_bar)

        self.progress_label = QLabel("Ready")
        self.progress_label.setStyleSheet("color: #999;")
        frame_layout.addWidget(self.progress_label)

        self.console = LogConsole(self.config.log_max_lines)
        frame_layout.addWidget(self.console, 1)
        layout.addWidget(frame, 1)

    def _build_buttons(self, layout: QVBoxLayout) -> None:
        button_layout = QHBoxLayout()
        self.detect_button = QPushButton("[DETECT] Refresh")
        self.detect_button.clicked.connect(self.start_detection)
        self.install_button = QPushButton("[INSTALL] Start")
        self.install_button.clicked.connect(self.on_install_clicked)
        self.install_button.setDefault(True)
        self.close_button = QPushButton("Close")
        self.close_button.clicked.connect(self.close)
        button_layout.addWidget(self.detect_button)
        button_layout.addWidget(self.install_button)
        button_layout.addStretch()
        button_layout.addWidget(self.close_button)
        layout.addLayout(button_layout)

    # --------------------------- STATE ---------------------------
    @property
    def busy(self) -> bool:
        return self._busy

    def set_busy(self, busy: bool, install_label: Optional[str] = None):
        self._busy = busy
        self.detect_button.setEnabled(not busy)
        self.install_button.setEnabled(not busy)
        self.install_button.setText(install_label or "[INSTALL] Start")

    def update_status_cards(self, info: SystemInfo):
        self.gpu_card.set_status(gpu_badge(info), info.gpu_description)
        self.driver_card.set_status(
            component_badge(info.driver_installed, info.driver_description), info.driver_description
        )
        self.cuda_card.set_status(component_badge(info.cuda_installed, info.cuda_description), info.cuda_description)

    def current_request(self) -> InstallRequest:
        return InstallRequest(
            install_driver=self.driver_checkbox.isChecked(),
            install_cuda=self.cuda_checkbox.isChecked(),
        )

    # --------------------------- DETECTION ---------------------------
    def start_detection(self):
        if not self.manager.start_probe():
            return
        self.set_busy(True)
        self.progress_label.setText("Detecting system configuration...")

    def on_probe_finished(self, info: SystemInfo):
        self.system_info = info
        self.update_status_cards(info)
        self.progress_label.setText("Ready")
        self.set_busy(False)

    # --------------------------- INSTALLATION ---------------------------
    def on_install_clicked(self):
        if self._busy:
            return

        request = self.current_request()
        try:
            request.validate()
        except EmptySelectionError as e:
            dialogs.show_error(self, "Error", e.message)
            return

        if not self.system_info.gpu_detected:
            dialogs.show_error(self, "Error", "No NVIDIA GPU detected. Installation cannot proceed.")
            return

        if not dialogs.ask_confirmation(self, "Confirm Installation", request.describe() + "\n\nContinue?"):
            return

        self._pending_request = request
        if self.catalog.as_root:
            self.start_install(PrivilegeProof.for_root())
            return

        password = dialogs.ask_password(self)
        if password is None:
            self._pending_request = None
            return

        self.set_busy(True, "Verifying...")
        self._privilege_worker = PrivilegeWorker(password, self.manager.runner, self.catalog, parent=self)
        self._privilege_worker.verified.connect(self.start_install)
        self._privilege_worker.failed.connect(self.on_privilege_failed)
        self._privilege_worker.start()

    def on_privilege_failed(self, message: str):
        self._pending_request = None
        self.set_busy(False)
        dialogs.show_error(self, "Authentication Failed", message)

    def start_install(self, proof: PrivilegeProof):
        request = self._pending_request
        self._pending_request = None
        if request is None:
            self.set_busy(False)
            return

        self.progress_bar.setValue(0)
        if not self.manager.start_install(request, self.system_info, proof):
            self.set_busy(False)
            return
        self.set_busy(True, "Installing...")

    def on_progress_changed(self, fraction: float, message: str):
        self.progress_bar.setValue(int(round(fraction)))
        self.progress_label.setText(message)

    def on_install_finished(self, outcome):
        self.set_busy(False)

        if outcome.status == RunStatus.SUCCEEDED:
            dialogs.show_info(self, "Installation Complete", dialogs.INSTALL_COMPLETE_TEXT)
            self.start_detection()
        elif outcome.status == RunStatus.FAILED:
            self.progress_label.setText(f"Failed: {outcome.step_description}")
            dialogs.show_error(
                self,
                "Installation Failed",
                f"{outcome.step_description} (exit code {outcome.exit_status})\n\n{dialogs.INSTALL_FAILED_HINT}",
            )
        else:
            self.progress_label.setText("Installation aborted")
            dialogs.show_error(self, ABORT_TITLES.get(outcome.abort_reason, "Error"), outcome.message)

    # --------------------------- SHUTDOWN ---------------------------
    def closeEvent(self, event):
        if self.manager.is_busy:
            if not dialogs.ask_confirmation(
                self,
                "Installation Running",
                "An operation is still running. Stop after the current step and close?",
            ):
                event.ignore()
                return
        self.pump.stop()
        if self._privilege_worker is not None and self._privilege_worker.isRunning():
            self._privilege_worker.wait()
        self.manager.shutdown()
        event.accept()


def create_and_run_gui(config, log_file_path: Optional[str] = None) -> int:
    """
    Create the setup window and run the Qt event loop.

    Returns:
        Exit code for the application
    """
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    enable_dark_mode(app)

    channel = ProgressChannel()
    manager = RunManager(config, channel)
    window = SetupWindow(config, manager, channel, log_file_path)
    window.show()
    window.start_detection()

    try:
        return app.exec()
    finally:
        manager.shutdown()
