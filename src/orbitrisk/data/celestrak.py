"""CelesTrak and JPL close-approach API client.

Fetches the raw payloads the engine consumes: TLE text for CelesTrak
groups and the JSON close-approach table from JPL SSD. The analysis core
never calls this module; callers fetch, then hand text/JSON to
:func:`orbitrisk.core.tle.parse_catalog` and
:func:`orbitrisk.data.neo.parse_cad_payload`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

import requests

from orbitrisk.core.tle import ParseResult, parse_catalog
from orbitrisk.data.neo import NeoRecord, parse_cad_payload
from orbitrisk.errors import IngestionUnavailable

logger = logging.getLogger(__name__)

DEBRIS_GROUPS = ("fengyun-1c-debris", "cosmos-1408-debris", "iridium-33-debris")


@dataclass
class CelestrakClient:
    """Client for CelesTrak GP element sets and the JPL CAD API.

    Attributes:
        timeout: Per-request timeout in seconds.
    """

    timeout: float = 20.0
    _session: requests.Session = field(default_factory=requests.Session, repr=False)

    GP_URL = "https://celestrak.org/NORAD/elements/gp.php"
    CAD_URL = "https://ssd-api.jpl.nasa.gov/cad.api"

    def _get(self, url: str, params: dict) -> requests.Response:
        """GET with timeout; network and HTTP errors become IngestionUnavailable."""
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Request to %s failed: %s", url, exc)
            raise IngestionUnavailable(f"Request to {url} failed: {exc}") from exc
        return response

    def fetch_group(self, group: str) -> str:
        """Fetch raw TLE text for a CelesTrak group (e.g. ``"active"``).

        Raises:
            IngestionUnavailable: If the request fails.
        """
        response = self._get(self.GP_URL, {"GROUP": group, "FORMAT": "tle"})
        logger.debug("Fetched CelesTrak group %s (%d bytes)", group, len(response.text))
        return response.text

    def load_group(self, group: str) -> ParseResult:
        """Fetch and parse a CelesTrak group."""
        return parse_catalog(self.fetch_group(group))

    def load_debris(self, groups: tuple[str, ...] = DEBRIS_GROUPS) -> ParseResult:
        """Fetch and parse several debris groups.

        Groups that cannot be fetched are logged and left out; the result
        is empty (not an error) if none are available.
        """
        element_sets = []
        skipped = 0
        for group in groups:
            try:
                result = self.load_group(group)
            except IngestionUnavailable:
                continue
            element_sets.extend(result.element_sets)
            skipped += result.skipped
        return ParseResult(tuple(element_sets), skipped)

    def fetch_close_approaches(
        self,
        date_min: date | None = None,
        date_max: date | None = None,
        dist_max: str = "0.2",
        limit: int = 100,
    ) -> dict:
        """Fetch the JPL close-approach table as decoded JSON.

        Defaults to the next 60 days.

        Raises:
            IngestionUnavailable: If the request fails or the body is not JSON.
        """
        if date_min is None:
            date_min = datetime.now(timezone.utc).date()
        if date_max is None:
            date_max = date_min + timedelta(days=60)

        params = {
            "date-min": date_min.isoformat(),
            "date-max": date_max.isoformat(),
            "dist-max": dist_max,
            "sort": "date",
            "limit": str(limit),
        }
        response = self._get(self.CAD_URL, params)
        try:
            return response.json()
        except ValueError as exc:
            raise IngestionUnavailable(f"Invalid JSON from {self.CAD_URL}") from exc

    def load_close_approaches(self, **kwargs) -> list[NeoRecord]:
        """Fetch and parse close approaches; see :meth:`fetch_close_approaches`."""
        return parse_cad_payload(self.fetch_close_approaches(**kwargs))
