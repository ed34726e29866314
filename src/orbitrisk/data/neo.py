"""Near-Earth-object close-approach records.

Reads the positional row layout of the JPL SBDB close-approach (CAD) API
payload. Only already-fetched payloads are handled here; see
:mod:`orbitrisk.data.celestrak` for the network side.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence

from orbitrisk.utils.constants import (
    NEO_APPROACH_WINDOW_DAYS,
    NEO_HAZARD_DIAMETER_KM,
    NEO_HAZARD_MISS_AU,
)

logger = logging.getLogger(__name__)

# Positional fields of a CAD row
IDX_ID = 0
IDX_DATE = 3
IDX_MISS_AU = 4
IDX_VELOCITY = 7
IDX_NAME = 10
IDX_DIAMETER_MIN = 11
IDX_DIAMETER_MAX = 12

DEFAULT_DIAMETER_KM = 0.1

_DATE_FORMATS = ("%Y-%b-%d %H:%M", "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d")


def _field(row: Sequence[Any], index: int) -> Any:
    return row[index] if index < len(row) else None


def _float(value: Any, default: float) -> float:
    """Parse a numeric field; missing, unparseable or zero values use ``default``."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if result else default


def _parse_date(value: Any) -> datetime | None:
    if not value:
        return None
    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        logger.debug("Unparseable close-approach date %r", text)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class NeoRecord:
    """One close approach of a near-Earth object.

    Attributes:
        id: Object designation.
        name: Display name.
        close_approach_date: Time of close approach (UTC), if parseable.
        miss_distance_au: Nominal miss distance in AU.
        relative_velocity_km_s: Relative velocity at close approach in km/s.
        diameter_min_km: Lower diameter estimate in km.
        diameter_max_km: Upper diameter estimate in km.
    """

    id: str
    name: str
    close_approach_date: datetime | None
    miss_distance_au: float
    relative_velocity_km_s: float
    diameter_min_km: float
    diameter_max_km: float

    @property
    def hazardous(self) -> bool:
        """Potentially hazardous: miss < 0.05 AU and diameter > 0.14 km."""
        return (
            self.miss_distance_au < NEO_HAZARD_MISS_AU
            and self.diameter_min_km > NEO_HAZARD_DIAMETER_KM
        )

    @classmethod
    def from_cad_row(cls, row: Sequence[Any], index: int = 0) -> NeoRecord:
        """Build a record from one positional CAD row.

        Missing values fall back to: id ``NEO-{index}``, name
        ``Unknown Object {index}``, velocity and miss distance 0, minimum
        diameter 0.1 km, maximum diameter twice the minimum.
        """
        diameter_min = _float(_field(row, IDX_DIAMETER_MIN), DEFAULT_DIAMETER_KM)
        return cls(
            id=str(_field(row, IDX_ID) or f"NEO-{index}"),
            name=str(_field(row, IDX_NAME) or f"Unknown Object {index}").strip(),
            close_approach_date=_parse_date(_field(row, IDX_DATE)),
            miss_distance_au=_float(_field(row, IDX_MISS_AU), 0.0),
            relative_velocity_km_s=_float(_field(row, IDX_VELOCITY), 0.0),
            diameter_min_km=diameter_min,
            diameter_max_km=_float(_field(row, IDX_DIAMETER_MAX), diameter_min * 2),
        )


def parse_cad_payload(payload: dict | str) -> list[NeoRecord]:
    """Parse a CAD API response (decoded dict or raw JSON text).

    Returns an empty list when the payload has no ``data`` array.

    Raises:
        ValueError: If ``payload`` is a string that is not valid JSON.
    """
    if isinstance(payload, str):
        payload = json.loads(payload)

    rows = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(rows, list):
        logger.warning("CAD payload has no data array")
        return []

    records = [NeoRecord.from_cad_row(row, i) for i, row in enumerate(rows)]
    logger.debug("Parsed %d NEO close approaches", len(records))
    return records


@dataclass(frozen=True)
class NeoSummary:
    count: int
    approaching: int
    hazardous: int


def summarize_neos(records: list[NeoRecord], now: datetime | None = None) -> NeoSummary:
    """Count records, approaches within the next 7 days, and hazardous objects.

    Records without a parseable date count as approaching now.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    window = timedelta(days=NEO_APPROACH_WINDOW_DAYS)
    approaching = 0
    for r in records:
        when = r.close_approach_date or now
        if when - now < window:
            approaching += 1

    return NeoSummary(
        count=len(records),
        approaching=approaching,
        hazardous=sum(1 for r in records if r.hazardous),
    )
