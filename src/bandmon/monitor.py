"""
Poll the rig frequency and react to band changes

The monitor only knows two states: no band seen yet, and tracking the last
known band. Readings outside every band are ignored entirely, so they never
overwrite the tracked band and never cause a change on the next reading.
"""
import logging
import threading
import time
from typing import Callable, Optional

from bandmon import DEFAULT_INTERVAL, UNKNOWN_BAND
from bandmon.bandplan import BandTable
from bandmon.command import NotifyError
from bandmon.fldigi import FetchError
from bandmon.models import BandChange

logger = logging.getLogger(__name__)


class BandMonitor:
    """
    Follow the rig across bands.

    fetch_frequency() returns the VFO frequency in Hz or raises FetchError.
    notify(band) is called on every band change and may raise NotifyError.
    """

    def __init__(
        self,
        table: BandTable,
        fetch_frequency: Callable[[], float],
        notify: Callable[[str], None],
        interval: float = DEFAULT_INTERVAL,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        if not interval > 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.table = table
        self.fetch_frequency = fetch_frequency
        self.notify = notify
        self.interval = interval
        self._sleep = sleep
        self._last_band: Optional[str] = None

    @property
    def last_band(self) -> Optional[str]:
        """Most recently detected band, None until the first detection"""
        return self._last_band

    def poll_once(self) -> Optional[BandChange]:
        """
        Take one reading and update the tracked band

        Returns the BandChange when a band was first detected or changed,
        otherwise None.
        """
        try:
            freq = self.fetch_frequency()
        except FetchError as e:
            logger.warning(f"Error getting frequency: {e}")
            return None

        band = self.table.classify(freq)
        logger.debug(f"{freq / 1_000_000:.6f} MHz -> {band}")
        if band == UNKNOWN_BAND or band == self._last_band:
            return None

        change = BandChange(previous=self._last_band, current=band, frequency=freq)
        if change.is_initial:
            logger.info(f"Initial band detected: {band} ({change.frequency_mhz:.3f} MHz)")
        else:
            logger.info(f"Band changed from {change.previous} to {band} ({change.frequency_mhz:.3f} MHz)")
            try:
                self.notify(band)
            except NotifyError as e:
                logger.error(f"Error running external command: {e}")

        # Advance even if notify failed, otherwise every later reading would retry it
        self._last_band = band
        return change

    def _wait(self, stop: Optional[threading.Event]) -> bool:
        """Sleep one interval, returns True if stop was requested meanwhile"""
        if self._sleep is not None:
            self._sleep(self.interval)
            return stop is not None and stop.is_set()
        if stop is not None:
            return stop.wait(self.interval)
        time.sleep(self.interval)
        return False

    def run(self, stop: Optional[threading.Event] = None) -> None:
        """
        Poll until stop is set. Without a stop event this never returns.
        """
        logger.info(f"Starting band monitor (interval: {self.interval:g}s)")
        while stop is None or not stop.is_set():
            self.poll_once()
            if self._wait(stop):
                break
        logger.info("Band monitor stopped")
