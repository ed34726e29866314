"""Aggregate mission risk score.

A deterministic, versioned heuristic: each risk category contributes
``count * weight`` points up to its own cap, and the total is clamped to
100. This is a count-based indicator, not a probabilistic combination.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from orbitrisk.core.classifier import OrbitRegime
from orbitrisk.core.risk import RiskAssessment, RiskKind, RiskLevel

logger = logging.getLogger(__name__)

SCORING_VERSION = "1"

# category -> (points per item, cap); caps sum to 100
CATEGORY_WEIGHTS: dict[str, tuple[float, float]] = {
    "satellite_satellite": (5.0, 25.0),
    "satellite_debris": (3.0, 20.0),
    "meteor_satellite": (8.0, 25.0),
    "meteor_earth": (10.0, 20.0),
    "debris_reentry": (2.0, 10.0),
}

LEO_DENSITY_ALERT = 50


@dataclass(frozen=True)
class RiskCounts:
    """Number of items in each scored risk category."""

    satellite_satellite: int = 0
    satellite_debris: int = 0
    meteor_satellite: int = 0
    meteor_earth: int = 0
    debris_reentry: int = 0

    def __post_init__(self) -> None:
        for name in CATEGORY_WEIGHTS:
            if getattr(self, name) < 0:
                raise ValueError(f"{name} count must be non-negative")


@dataclass(frozen=True)
class AggregateRiskScore:
    score: float                        # 0-100
    level: RiskLevel
    contributions: Mapping[str, float] = field(hash=False)   # category -> capped points
    counts: RiskCounts
    version: str = SCORING_VERSION

    def __post_init__(self) -> None:
        object.__setattr__(self, "contributions", MappingProxyType(dict(self.contributions)))


def count_risk_categories(
    conjunction_risks: list[RiskAssessment] = (),
    debris_collision_risks: list[RiskAssessment] = (),
    neo_risks: list[RiskAssessment] = (),
    reentry_risks: list[RiskAssessment] = (),
) -> RiskCounts:
    """
    Count the items that fall in each scored category.

    - satellite/satellite: conjunctions not involving debris at HIGH or above
    - satellite/debris: debris snapshot pairs, plus conjunctions involving
      debris, at MEDIUM or above
    - meteor/satellite: NEO satellite-collision risk above 0.2
    - meteor/earth: NEO Earth-impact probability above 0.1
    - debris re-entry: re-entry risk above 0.3
    """
    sat_sat = 0
    sat_debris = 0
    for a in conjunction_risks:
        if a.details.get("involves_debris"):
            if a.level >= RiskLevel.MEDIUM:
                sat_debris += 1
        elif a.level >= RiskLevel.HIGH:
            sat_sat += 1

    sat_debris += sum(1 for a in debris_collision_risks if a.level >= RiskLevel.MEDIUM)

    neos = [a for a in neo_risks if a.kind is RiskKind.NEO]
    meteor_sat = sum(1 for a in neos if a.probabilities.get("satellite_collision", 0.0) > 0.2)
    meteor_earth = sum(1 for a in neos if a.probabilities.get("earth_impact", 0.0) > 0.1)
    reentry = sum(1 for a in reentry_risks if a.probabilities.get("reentry", 0.0) > 0.3)

    return RiskCounts(
        satellite_satellite=sat_sat,
        satellite_debris=sat_debris,
        meteor_satellite=meteor_sat,
        meteor_earth=meteor_earth,
        debris_reentry=reentry,
    )


def _score_level(score: float) -> RiskLevel:
    if score >= 80:
        return RiskLevel.CRITICAL
    elif score >= 60:
        return RiskLevel.HIGH
    elif score >= 40:
        return RiskLevel.MEDIUM
    else:
        return RiskLevel.LOW


def aggregate_risk_score(counts: RiskCounts) -> AggregateRiskScore:
    """Weighted, per-category capped sum of risk counts, clamped to 100."""
    contributions = {}
    for name, (weight, cap) in CATEGORY_WEIGHTS.items():
        contributions[name] = min(getattr(counts, name) * weight, cap)

    score = min(sum(contributions.values()), 100.0)
    logger.debug("Aggregate risk score v%s: %.1f from %s", SCORING_VERSION, score, contributions)
    return AggregateRiskScore(
        score=score,
        level=_score_level(score),
        contributions=contributions,
        counts=counts,
    )


def orbital_density(regimes: list[OrbitRegime]) -> dict[OrbitRegime, int]:
    """Number of objects per orbital regime."""
    density = {regime: 0 for regime in OrbitRegime}
    for regime in regimes:
        density[regime] += 1
    return density


def critical_alerts(counts: RiskCounts, density: dict[OrbitRegime, int] | None = None) -> list[str]:
    """Human-readable alerts for counts that cross attention thresholds."""
    alerts = []
    if counts.meteor_earth > 0:
        alerts.append(f"{counts.meteor_earth} meteor(s) with Earth impact risk >10%")
    if counts.satellite_satellite > 5:
        alerts.append(f"{counts.satellite_satellite} high-risk satellite conjunctions detected")
    if counts.meteor_satellite > 3:
        alerts.append(f"{counts.meteor_satellite} meteors pose collision risk to satellites")
    if counts.debris_reentry > 10:
        alerts.append(f"{counts.debris_reentry} debris objects at high reentry risk")
    if density is not None and density.get(OrbitRegime.LOW, 0) > LEO_DENSITY_ALERT:
        alerts.append(f"High debris density in LEO ({density[OrbitRegime.LOW]} objects/region)")
    return alerts
