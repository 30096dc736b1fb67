"""Tests for ChannelPump: draining the progress channel into Qt signals."""

import pytest

from managers.progress_channel import ProgressChannel, ProgressReporter
from model.progress_event import Severity
from model.run_outcome import RunOutcome
from model.system_info import SystemInfo
from ui.channel_pump import ChannelPump


@pytest.fixture
def pump(qtbot):
    channel = ProgressChannel()
    pump = ChannelPump(channel, interval_ms=10)
    yield pump
    pump.stop()


class TestChannelPump:
    def test_emits_logs_in_order(self, pump):
        reporter = ProgressReporter(pump.channel)
        received = []
        pump.log_appended.connect(lambda message, severity: received.append((message, severity)))

        reporter.info("first")
        reporter.warning("second")
        handled = pump.pump()

        assert handled == 2
        assert received == [("first", Severity.INFO), ("second", Severity.WARNING)]

    def test_coalesces_progress_within_a_tick(self, pump):
        reporter = ProgressReporter(pump.channel)
        progress = []
        pump.progress_changed.connect(lambda fraction, message: progress.append((fraction, message)))

        reporter.progress(10.0, "a")
        reporter.progress(20.0, "b")
        reporter.progress(30.0, "c")
        pump.pump()

        assert progress == [(30.0, "c")]

    def test_progress_is_flushed_before_following_log(self, pump):
        reporter = ProgressReporter(pump.channel)
        order = []
        pump.progress_changed.connect(lambda fraction, message: order.append(("progress", fraction)))
        pump.log_appended.connect(lambda message, severity: order.append(("log", message)))

        reporter.progress(50.0, "half")
        reporter.error("boom")
        reporter.progress(60.0, "more")
        pump.pump()

        assert order == [("progress", 50.0), ("log", "boom"), ("progress", 60.0)]

    def test_terminal_events(self, pump, qtbot):
        reporter = ProgressReporter(pump.channel)
        info = SystemInfo(gpu_detected=True)
        outcome = RunOutcome.failed("Installing NVIDIA driver...", 100)

        with qtbot.waitSignal(pump.probe_finished) as probe_blocker:
            reporter.finished_probe(info)
            pump.pump()
        with qtbot.waitSignal(pump.install_finished) as install_blocker:
            reporter.finished_install(outcome)
            pump.pump()

        assert probe_blocker.args == [info]
        assert install_blocker.args == [outcome]

    def test_timer_drains_automatically(self, pump, qtbot):
        reporter = ProgressReporter(pump.channel)
        pump.start()

        with qtbot.waitSignal(pump.log_appended, timeout=2000):
            reporter.info("from worker")

        assert pump.channel.pending() == 0
