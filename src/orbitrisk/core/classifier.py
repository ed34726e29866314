"""Coarse orbit-regime classification (LEO / MEO / GEO)."""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from enum import Enum

from orbitrisk.core.propagation import PropagationFailed, propagate, to_geodetic
from orbitrisk.core.tle import ElementSet
from orbitrisk.utils.constants import (
    LEO_MAX_ALT_KM,
    LEO_MAX_PERIOD_MIN,
    MEO_MAX_ALT_KM,
    MEO_MAX_PERIOD_MIN,
)

logger = logging.getLogger(__name__)


class OrbitRegime(Enum):
    """Orbital regime buckets."""

    LOW = "LEO"
    MEDIUM = "MEO"
    HIGH = "GEO"


def classify_altitude(altitude_km: float) -> OrbitRegime:
    """Bucket a geodetic altitude: [.., 2000) LOW, [2000, 35786) MEDIUM, else HIGH."""
    if altitude_km < LEO_MAX_ALT_KM:
        return OrbitRegime.LOW
    if altitude_km < MEO_MAX_ALT_KM:
        return OrbitRegime.MEDIUM
    return OrbitRegime.HIGH


def classify_period(period_minutes: float) -> OrbitRegime:
    """Bucket an orbital period: [.., 200) LOW, [200, 1200) MEDIUM, else HIGH."""
    if period_minutes < LEO_MAX_PERIOD_MIN:
        return OrbitRegime.LOW
    if period_minutes < MEO_MAX_PERIOD_MIN:
        return OrbitRegime.MEDIUM
    return OrbitRegime.HIGH


def classify(element_set: ElementSet, reference_time: datetime) -> OrbitRegime:
    """Classify an object's orbit at ``reference_time``.

    Propagates and classifies by geodetic altitude. When SGP4 fails the
    period implied by the mean motion is used instead.
    """
    state = propagate(element_set, reference_time)
    if isinstance(state, PropagationFailed):
        logger.debug("NORAD %d: propagation failed (%s), classifying by period %.1f min",
                     element_set.norad_id, state.message, element_set.period_minutes)
        return classify_period(element_set.period_minutes)
    return classify_altitude(to_geodetic(state).altitude_km)


def regime_counts(
    element_sets: list[ElementSet], reference_time: datetime
) -> dict[OrbitRegime, int]:
    """Number of objects in each regime (every regime present, possibly 0)."""
    counts = Counter(classify(es, reference_time) for es in element_sets)
    return {regime: counts.get(regime, 0) for regime in OrbitRegime}
