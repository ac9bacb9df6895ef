"""
Parse band plan definitions and classify frequencies into bands

Band plan format, one band per line:
    name:start_mhz:end_mhz

Bounds are inclusive. Blank lines and lines starting with '#' are ignored.
Malformed lines are skipped with a warning so that a hand-edited plan with a
typo still loads; a plan with no usable lines at all is an error.
"""
import logging
from importlib import resources
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

import attr

from bandmon import UNKNOWN_BAND, BandmonError
from bandmon.models import BandRange

logger = logging.getLogger(__name__)

DEFAULT_BAND_PLAN = "bands.txt"


class LoadError(BandmonError):
    """The band plan is missing or contains no usable bands"""


def parse_band_line(line: str) -> Optional[BandRange]:
    """
    Parse a single band plan line
    Returns None for blank lines and comments, raises ValueError if malformed
    """
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    parts = line.split(":")
    if len(parts) != 3:
        raise ValueError(f"expected 3 fields, got {len(parts)}")

    name, start, end = (p.strip() for p in parts)
    return BandRange(name=name, start=float(start), end=float(end))


def parse_band_definitions(lines: Iterable[str]) -> Tuple[BandRange, ...]:
    """
    Parse band plan lines, skipping anything malformed
    """
    bands = []
    for lineno, line in enumerate(lines, start=1):
        try:
            band = parse_band_line(line)
        except ValueError as e:
            logger.warning(f"Skipping band plan line {lineno} ({line.strip()!r}): {e}")
            continue
        if band is not None:
            bands.append(band)
    return tuple(bands)


def _to_bands(value) -> Tuple[BandRange, ...]:
    return tuple(value)


@attr.s(frozen=True)
class BandTable:
    """
    Ordered, read-only collection of bands.

    Lookup scans in definition order and the first matching band wins, so
    overlapping entries resolve to whichever was listed first.
    """
    bands: Tuple[BandRange, ...] = attr.ib(converter=_to_bands)

    @bands.validator
    def _not_empty(self, attribute, value):
        if not value:
            raise LoadError("band plan contains no usable bands")

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "BandTable":
        return cls(parse_band_definitions(lines))

    @classmethod
    def from_text(cls, text: str) -> "BandTable":
        return cls.from_lines(text.splitlines())

    @classmethod
    def from_file(cls, path: Path) -> "BandTable":
        """Load a user supplied band plan file"""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(f"cannot read band plan {path}: {e}") from e
        logger.debug(f"Reading band plan from {path}")
        return cls.from_text(text)

    def classify(self, frequency_hz: float) -> str:
        """
        Return the name of the band containing frequency_hz,
        or UNKNOWN_BAND if it is outside every band
        """
        try:
            freq_mhz = float(frequency_hz) / 1_000_000
        except OverflowError:
            return UNKNOWN_BAND
        for band in self.bands:
            if band.contains(freq_mhz):
                return band.name
        return UNKNOWN_BAND

    def find(self, name: str) -> Optional[BandRange]:
        """Get the first band with the given name"""
        for band in self.bands:
            if band.name == name:
                return band
        return None

    @property
    def names(self) -> List[str]:
        return [band.name for band in self.bands]

    def __iter__(self) -> Iterator[BandRange]:
        return iter(self.bands)

    def __len__(self) -> int:
        return len(self.bands)


def default_band_table() -> BandTable:
    """Load the band plan shipped with the package"""
    try:
        text = resources.files("bandmon").joinpath(DEFAULT_BAND_PLAN).read_text(encoding="utf-8")
    except OSError as e:
        raise LoadError(f"built-in band plan is missing: {e}") from e
    return BandTable.from_text(text)
