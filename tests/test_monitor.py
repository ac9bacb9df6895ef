"""
Tests for the band monitor state machine
"""
import logging
import threading

import pytest

from bandmon.bandplan import default_band_table
from bandmon.command import NotifyError
from bandmon.fldigi import FetchError
from bandmon.monitor import BandMonitor

# One representative frequency (Hz) per band used below
FREQ = {
    "10m": 28_074_000,
    "15m": 21_074_000,
    "20m": 14_074_000,
    "40m": 7_074_000,
    "unknown": 100_000_000,
}


class ScriptedRig:
    """Returns a fixed sequence of readings, exceptions are raised instead of returned"""

    def __init__(self, readings):
        self.readings = list(readings)
        self.calls = 0

    def __call__(self):
        reading = self.readings[self.calls]
        self.calls += 1
        if isinstance(reading, Exception):
            raise reading
        return reading


class RecordingNotifier:
    def __init__(self, fail=False):
        self.bands = []
        self.fail = fail

    def __call__(self, band):
        self.bands.append(band)
        if self.fail:
            raise NotifyError(f"command failed for {band}")


@pytest.fixture(scope="module")
def table():
    return default_band_table()


def run_readings(table, readings, notifier=None):
    """Feed readings through a monitor one poll at a time"""
    notifier = notifier or RecordingNotifier()
    monitor = BandMonitor(table, ScriptedRig(readings), notifier)
    changes = [monitor.poll_once() for _ in readings]
    return monitor, notifier, changes


class TestTransitions:
    """Band change detection"""

    def test_first_band_is_reported_not_notified(self, table):
        monitor, notifier, changes = run_readings(table, [FREQ["40m"]])
        assert notifier.bands == []
        assert monitor.last_band == "40m"
        assert changes[0].is_initial
        assert changes[0].current == "40m"
        assert changes[0].frequency == FREQ["40m"]

    def test_repeated_band_never_notifies(self, table):
        monitor, notifier, changes = run_readings(table, [FREQ["20m"]] * 5)
        assert notifier.bands == []
        assert changes[1:] == [None] * 4

    def test_change_notifies_new_band(self, table):
        monitor, notifier, changes = run_readings(table, [FREQ["40m"], FREQ["20m"]])
        assert notifier.bands == ["20m"]
        assert monitor.last_band == "20m"
        assert changes[1].previous == "40m"
        assert changes[1].current == "20m"
        assert not changes[1].is_initial

    def test_reference_sequence(self, table):
        readings = [FREQ[b] for b in ("10m", "10m", "20m", "unknown", "20m", "15m")]
        monitor, notifier, _ = run_readings(table, readings)
        assert notifier.bands == ["20m", "15m"]
        assert monitor.last_band == "15m"

    def test_unknown_between_same_band_is_invisible(self, table):
        readings = [FREQ["20m"], FREQ["unknown"], FREQ["20m"]]
        monitor, notifier, changes = run_readings(table, readings)
        assert notifier.bands == []
        assert changes[1:] == [None, None]
        assert monitor.last_band == "20m"

    def test_unknown_before_and_between_bands(self, table):
        readings = [FREQ["unknown"], FREQ["40m"], FREQ["unknown"], FREQ["20m"]]
        monitor, notifier, changes = run_readings(table, readings)
        assert changes[0] is None
        assert changes[1].is_initial and changes[1].current == "40m"
        assert changes[2] is None
        assert (changes[3].previous, changes[3].current) == ("40m", "20m")
        assert notifier.bands == ["20m"]

    def test_unknown_only_stays_in_init(self, table):
        monitor, notifier, _ = run_readings(table, [FREQ["unknown"], 0, -1])
        assert monitor.last_band is None
        assert notifier.bands == []

    def test_logs_detection_and_change(self, table, caplog):
        with caplog.at_level(logging.INFO, logger="bandmon.monitor"):
            run_readings(table, [FREQ["40m"], FREQ["20m"]])
        messages = [r.getMessage() for r in caplog.records]
        assert "Initial band detected: 40m (7.074 MHz)" in messages
        assert "Band changed from 40m to 20m (14.074 MHz)" in messages


class TestErrors:
    """Transient failures never stop the monitor"""

    def test_fetch_error_keeps_state(self, table, caplog):
        readings = [FREQ["40m"], FetchError("connection refused"), FREQ["40m"]]
        with caplog.at_level(logging.WARNING, logger="bandmon.monitor"):
            monitor, notifier, changes = run_readings(table, readings)
        assert changes[1:] == [None, None]
        assert monitor.last_band == "40m"
        assert notifier.bands == []
        assert "connection refused" in caplog.text

    def test_fetch_error_before_first_reading(self, table):
        readings = [FetchError("down"), FetchError("down"), FREQ["10m"], FREQ["15m"]]
        monitor, notifier, changes = run_readings(table, readings)
        assert changes[2].is_initial
        assert notifier.bands == ["15m"]

    def test_notify_error_still_advances(self, table, caplog):
        notifier = RecordingNotifier(fail=True)
        readings = [FREQ["40m"], FREQ["20m"], FREQ["20m"], FREQ["20m"]]
        with caplog.at_level(logging.ERROR, logger="bandmon.monitor"):
            monitor, _, _ = run_readings(table, readings, notifier)
        assert notifier.bands == ["20m"]
        assert monitor.last_band == "20m"
        assert "command failed for 20m" in caplog.text

    def test_other_exceptions_propagate(self, table):
        monitor = BandMonitor(table, ScriptedRig([RuntimeError("bug")]), RecordingNotifier())
        with pytest.raises(RuntimeError):
            monitor.poll_once()

    @pytest.mark.parametrize("interval", [0, -5, float("nan")])
    def test_interval_must_be_positive(self, table, interval):
        with pytest.raises(ValueError):
            BandMonitor(table, ScriptedRig([]), RecordingNotifier(), interval=interval)


class TestRun:
    """The polling loop"""

    def test_sleeps_between_polls_until_stopped(self, table):
        stop = threading.Event()
        sleeps = []
        rig = ScriptedRig([FREQ["40m"], FREQ["20m"], FREQ["10m"]])
        notifier = RecordingNotifier()

        def fake_sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) == 3:
                stop.set()

        monitor = BandMonitor(table, rig, notifier, interval=2.5, sleep=fake_sleep)
        monitor.run(stop)

        assert rig.calls == 3
        assert sleeps == [2.5, 2.5, 2.5]
        assert notifier.bands == ["20m", "10m"]

    def test_preset_stop_does_not_poll(self, table):
        stop = threading.Event()
        stop.set()
        rig = ScriptedRig([])
        BandMonitor(table, rig, RecordingNotifier()).run(stop)
        assert rig.calls == 0

    def test_stop_interrupts_wait(self, table):
        stop = threading.Event()
        rig = ScriptedRig([FREQ["40m"]])

        def fetch():
            stop.set()
            return rig()

        monitor = BandMonitor(table, fetch, RecordingNotifier(), interval=3600)
        thread = threading.Thread(target=monitor.run, args=(stop,))
        thread.start()
        thread.join(timeout=5)
        assert not thread.is_alive()
        assert monitor.last_band == "40m"

    def test_keeps_polling_through_errors(self, table):
        stop = threading.Event()
        readings = [FetchError("timeout")] * 3 + [FREQ["40m"], FREQ["20m"]]
        rig = ScriptedRig(readings)
        notifier = RecordingNotifier(fail=True)

        def fake_sleep(seconds):
            if rig.calls == len(readings):
                stop.set()

        BandMonitor(table, rig, notifier, sleep=fake_sleep).run(stop)
        assert rig.calls == 5
        assert notifier.bands == ["20m"]
