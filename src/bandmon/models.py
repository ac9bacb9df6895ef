"""
Data models for band monitoring
"""
import math
from typing import Optional

import attr

from bandmon import DEFAULT_HOST, DEFAULT_INTERVAL, DEFAULT_PORT


def _non_empty(instance, attribute, value):
    if not value or not value.strip():
        raise ValueError(f"{attribute.name} must not be empty")


def _positive_finite(instance, attribute, value):
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{attribute.name} must be a positive finite number, got {value!r}")


def _optional_positive(instance, attribute, value):
    if value is not None:
        _positive_finite(instance, attribute, value)


@attr.s(frozen=True)
class BandRange:
    """One contiguous amateur band allocation, bounds inclusive and in MHz"""
    name: str = attr.ib(validator=_non_empty)
    start: float = attr.ib(converter=float, validator=_positive_finite)
    end: float = attr.ib(converter=float, validator=_positive_finite)

    @end.validator
    def _end_after_start(self, attribute, value):
        if value <= self.start:
            raise ValueError(f"band {self.name}: end {value} must be above start {self.start}")

    def contains(self, freq_mhz: float) -> bool:
        """Check if a frequency (MHz) falls inside this band"""
        return self.start <= freq_mhz <= self.end


@attr.s(frozen=True, auto_attribs=True)
class BandChange:
    """
    A band detection reported by the monitor.

    previous is None for the initial detection after startup.
    """
    previous: Optional[str]
    current: str
    frequency: float  # Hz

    @property
    def is_initial(self) -> bool:
        return self.previous is None

    @property
    def frequency_mhz(self) -> float:
        return self.frequency / 1_000_000


@attr.s(frozen=True)
class MonitorConfig:
    """Settings collected from the command line"""
    command: str = attr.ib(validator=_non_empty)
    host: str = attr.ib(default=DEFAULT_HOST, validator=_non_empty)
    port: int = attr.ib(default=DEFAULT_PORT)
    interval: float = attr.ib(default=DEFAULT_INTERVAL, converter=float, validator=_positive_finite)
    command_timeout: Optional[float] = attr.ib(default=None, validator=_optional_positive)

    @port.validator
    def _valid_port(self, attribute, value):
        if not 0 < value < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {value}")
