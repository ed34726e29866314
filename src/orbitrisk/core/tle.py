"""TLE (Two-Line Element) parsing and validation.

Text is scanned line by line into raw name/line1/line2 groups, which are
then validated and turned into immutable :class:`ElementSet` records backed
by an sgp4 ``Satrec``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sgp4.api import Satrec, WGS72

logger = logging.getLogger(__name__)

PLACEHOLDER_NAME = "Unknown Satellite"
TLE_LINE_LENGTH = 69


@dataclass(frozen=True)
class RawTLE:
    """An unvalidated line group as found in the input text."""

    name: str
    line1: str
    line2: str


@dataclass(frozen=True)
class ElementSet:
    """A parsed Two-Line Element set.

    Attributes:
        name: Object name (line 0, or a placeholder for bare 2-line input).
        line1: Raw TLE line 1.
        line2: Raw TLE line 2.
        norad_id: NORAD catalog number.
        epoch: Epoch as a UTC datetime.
        inclination_deg: Orbital inclination in degrees.
        raan_deg: Right ascension of ascending node in degrees.
        eccentricity: Orbital eccentricity (dimensionless).
        arg_perigee_deg: Argument of perigee in degrees.
        mean_anomaly_deg: Mean anomaly in degrees.
        mean_motion_rev_per_day: Mean motion in revolutions per day.
        mean_motion_rad_per_min: Mean motion in radians per minute (SGP4 units).
        bstar: BSTAR drag term.
        satrec: Underlying sgp4 Satrec object for propagation.
    """

    name: str
    line1: str
    line2: str
    norad_id: int
    epoch: datetime
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_per_day: float
    mean_motion_rad_per_min: float
    bstar: float
    satrec: Satrec = field(repr=False, compare=False)

    @classmethod
    def from_lines(cls, line1: str, line2: str, name: str = "") -> ElementSet:
        """Parse an element set from its two data lines.

        Args:
            line1: TLE line 1 (69 characters).
            line2: TLE line 2 (69 characters).
            name: Optional object name (line 0).

        Returns:
            A parsed ElementSet.

        Raises:
            ValueError: If the TLE lines are malformed.
        """
        line1 = line1.strip()
        line2 = line2.strip()

        if len(line1) != TLE_LINE_LENGTH or not line1.startswith("1 "):
            raise ValueError(f"Invalid TLE line 1: {line1!r}")
        if len(line2) != TLE_LINE_LENGTH or not line2.startswith("2 "):
            raise ValueError(f"Invalid TLE line 2: {line2!r}")
        if line1[2:7] != line2[2:7]:
            raise ValueError(
                f"Catalog number mismatch between lines: {line1[2:7]!r} != {line2[2:7]!r}"
            )

        try:
            norad_id = int(line1[2:7].strip())
            year = int(line1[18:20])
            day_of_year = float(line1[20:32])
        except ValueError as exc:
            raise ValueError(f"Invalid TLE line 1 fields: {line1!r}") from exc

        sat = Satrec.twoline2rv(line1, line2, WGS72)
        if sat.no_kozai <= 0:
            raise ValueError(f"Non-positive mean motion for NORAD {norad_id}")

        year = year + 2000 if year < 57 else year + 1900
        epoch = datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(
            days=day_of_year - 1
        )

        logger.debug("Parsed TLE for NORAD %d (epoch %s)", norad_id, epoch.isoformat())

        return cls(
            name=name.strip(),
            line1=line1,
            line2=line2,
            norad_id=norad_id,
            epoch=epoch,
            inclination_deg=math.degrees(sat.inclo),
            raan_deg=math.degrees(sat.nodeo),
            eccentricity=sat.ecco,
            arg_perigee_deg=math.degrees(sat.argpo),
            mean_anomaly_deg=math.degrees(sat.mo),
            mean_motion_rev_per_day=sat.no_kozai * 1440 / (2 * math.pi),
            mean_motion_rad_per_min=sat.no_kozai,
            bstar=sat.bstar,
            satrec=sat,
        )

    @property
    def object_id(self) -> str:
        """Identity used across trajectories, conjunctions and assessments.

        Names are not unique within a catalog; the NORAD id always is.
        """
        if self.name:
            return f"{self.name} [{self.norad_id}]"
        return str(self.norad_id)

    @property
    def period_minutes(self) -> float:
        """Orbital period derived from mean motion (2π / n)."""
        return 2 * math.pi / self.mean_motion_rad_per_min

    def __str__(self) -> str:
        header = f"{self.name}\n" if self.name else ""
        return f"{header}{self.line1}\n{self.line2}"


@dataclass(frozen=True)
class ParseResult:
    """Element sets recovered from a text block plus the number of lines or
    groups that had to be skipped."""

    element_sets: tuple[ElementSet, ...]
    skipped: int = 0

    def __len__(self) -> int:
        return len(self.element_sets)


def split_tle_groups(text: str) -> tuple[list[RawTLE], int]:
    """Scan text into raw line groups.

    Accepts 3-line groups (name, "1 ...", "2 ...") and bare 2-line groups,
    which get a placeholder name. Unrecognized lines are skipped.

    Returns:
        Tuple of (groups in input order, number of skipped lines).
    """
    lines = [l.strip() for l in text.splitlines()]
    lines = [l for l in lines if l]
    groups: list[RawTLE] = []
    skipped = 0
    i = 0

    while i < len(lines):
        if lines[i].startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            groups.append(RawTLE(PLACEHOLDER_NAME, lines[i], lines[i + 1]))
            i += 2
        elif (
            i + 2 < len(lines)
            and lines[i + 1].startswith("1 ")
            and lines[i + 2].startswith("2 ")
        ):
            groups.append(RawTLE(lines[i], lines[i + 1], lines[i + 2]))
            i += 3
        else:
            skipped += 1
            i += 1

    return groups, skipped


def parse_catalog(text: str) -> ParseResult:
    """Parse a block of TLE text, skipping anything malformed.

    Groups that match the line pattern but fail validation are dropped
    whole; a partial record is never produced.
    """
    groups, skipped = split_tle_groups(text)
    element_sets: list[ElementSet] = []

    for group in groups:
        try:
            element_sets.append(ElementSet.from_lines(group.line1, group.line2, name=group.name))
        except ValueError as exc:
            logger.debug("Skipping TLE group %r: %s", group.name, exc)
            skipped += 1

    if skipped:
        logger.warning("Skipped %d malformed TLE lines/groups", skipped)
    logger.debug("Parsed %d TLEs from text", len(element_sets))
    return ParseResult(tuple(element_sets), skipped)


def parse_tle(text: str) -> list[ElementSet]:
    """Parse one or more TLEs from text.

    Handles both 2-line and 3-line (with name) formats.

    Args:
        text: Raw TLE text, one or more TLE sets separated by newlines.

    Returns:
        A list of parsed ElementSet objects.
    """
    return list(parse_catalog(text).element_sets)
