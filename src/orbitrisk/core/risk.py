from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

import numpy as np

from orbitrisk.core.propagation import PropagationFailed, propagate, propagate_batch, to_geodetic
from orbitrisk.core.screening import Conjunction
from orbitrisk.core.tle import ElementSet
from orbitrisk.data.neo import NeoRecord
from orbitrisk.utils.constants import (
    ASTEROID_DENSITY_KG_M3,
    AU_KM,
    DEBRIS_COLLISION_RADIUS_KM,
    DEBRIS_REENTRY_BANDS,
    DEBRIS_REFERENCE_SPEED_KM_S,
    DEBRIS_UNKNOWN_REENTRY_RISK,
    JOULES_PER_MEGATON,
    MAX_EARTH_IMPACT_PROBABILITY,
    MAX_SATELLITE_COLLISION_RISK,
    NEO_CRITICAL_DISTANCE_KM,
    NEO_SATELLITE_ZONE_KM,
)

logger = logging.getLogger(__name__)


class RiskLevel(Enum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    def __ge__(self, other: RiskLevel) -> bool:
        return self.value >= other.value

    def __gt__(self, other: RiskLevel) -> bool:
        return self.value > other.value

    def __le__(self, other: RiskLevel) -> bool:
        return self.value <= other.value

    def __lt__(self, other: RiskLevel) -> bool:
        return self.value < other.value


class RiskKind(Enum):
    NEO = "neo"
    DEBRIS_REENTRY = "debris_reentry"
    DEBRIS_COLLISION = "debris_collision"
    CONJUNCTION = "conjunction"


@dataclass(frozen=True)
class RiskAssessment:
    object_id: str
    kind: RiskKind
    probabilities: Mapping[str, float] = field(hash=False)   # name -> scalar in [0, cap]
    level: RiskLevel
    impact_energy_mt: float | None = None   # NEOs only
    counterpart_id: str | None = None       # pairwise kinds only
    miss_distance_km: float | None = None
    details: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "probabilities", MappingProxyType(dict(self.probabilities)))
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @property
    def peak_probability(self) -> float:
        return max(self.probabilities.values(), default=0.0)


def _clamp(value: float, upper: float) -> float:
    return max(0.0, min(value, upper))


def earth_impact_probability(
    miss_distance_au: float, diameter_km: float, velocity_km_s: float
) -> float:
    """
    Heuristic Earth-impact probability for a NEO close approach.

    Zero beyond 10 Earth radii; inside that, a linear fall-off with miss
    distance, nudged up for larger and faster objects. Capped at 0.95.
    """
    d = max(0.0, miss_distance_au) * AU_KM
    if not d < NEO_CRITICAL_DISTANCE_KM:
        return 0.0

    diameter_km = max(0.0, diameter_km)
    velocity_km_s = max(0.0, velocity_km_s)

    p = 1 - d / NEO_CRITICAL_DISTANCE_KM
    p *= 1 + 0.1 * math.log10(diameter_km + 0.1)
    p *= 1 + velocity_km_s / 100
    return _clamp(p, MAX_EARTH_IMPACT_PROBABILITY)


def satellite_collision_risk(
    miss_distance_au: float, diameter_km: float, velocity_km_s: float
) -> float:
    """
    Heuristic risk a NEO poses to the satellite population.

    Zero if it passes farther than 50,000 km; otherwise a 0.1 base scaled
    by size, speed and proximity. Capped at 0.8.
    """
    d = max(0.0, miss_distance_au) * AU_KM
    if d > NEO_SATELLITE_ZONE_KM:
        return 0.0

    risk = 0.1
    risk *= 1 + max(0.0, diameter_km)
    risk *= 1 + max(0.0, velocity_km_s) / 50
    risk *= max(0.0, 1 - d / NEO_SATELLITE_ZONE_KM)
    return _clamp(risk, MAX_SATELLITE_COLLISION_RISK)


def debris_reentry_risk(altitude_km: float, eccentricity: float, mean_motion: float) -> float:
    """
    Re-entry risk for a debris object from its current state.

    Args:
        altitude_km: Current geodetic altitude.
        eccentricity: Orbital eccentricity.
        mean_motion: SGP4 mean motion in rad/min.

    Returns:
        Risk in [0, 1].
    """
    risk = 0.0
    for upper_km, contribution in DEBRIS_REENTRY_BANDS:
        if altitude_km < upper_km:
            risk += contribution
            break

    risk += max(0.0, eccentricity) * 0.3
    risk += min(max(0.0, mean_motion) * 0.001, 0.2)
    return _clamp(risk, 1.0)


def debris_collision_probability(distance_km: float, relative_speed_km_s: float) -> float:
    """
    Pairwise collision heuristic from current separation and relative speed.

    Nonzero only within 50 km; the speed factor saturates at 10 km/s.
    """
    if not distance_km < DEBRIS_COLLISION_RADIUS_KM:
        return 0.0
    proximity = (DEBRIS_COLLISION_RADIUS_KM - max(0.0, distance_km)) / DEBRIS_COLLISION_RADIUS_KM
    speed = min(max(0.0, relative_speed_km_s) / DEBRIS_REFERENCE_SPEED_KM_S, 1.0)
    return _clamp(proximity * speed, 1.0)


def impact_energy_megatons(diameter_km: float, velocity_km_s: float) -> float:
    """Kinetic energy (MT TNT) of a 2500 kg/m³ sphere of the given diameter."""
    radius_m = max(0.0, diameter_km) * 500
    mass = (4 / 3) * math.pi * radius_m ** 3 * ASTEROID_DENSITY_KG_M3
    velocity_m_s = velocity_km_s * 1000
    return 0.5 * mass * velocity_m_s ** 2 / JOULES_PER_MEGATON


def risk_level(probability: float, energy_mt: float = 0.0) -> RiskLevel:
    """Discretize a probability (and optional impact energy) into a level."""
    if probability > 0.6 or energy_mt > 100:
        return RiskLevel.CRITICAL
    elif probability > 0.3 or energy_mt > 10:
        return RiskLevel.HIGH
    elif probability > 0.1 or energy_mt > 1:
        return RiskLevel.MEDIUM
    else:
        return RiskLevel.LOW


def assess_neo(record: NeoRecord) -> RiskAssessment:
    """Score one NEO close approach for Earth impact and satellite risk."""
    earth = earth_impact_probability(
        record.miss_distance_au, record.diameter_min_km, record.relative_velocity_km_s
    )
    satellite = satellite_collision_risk(
        record.miss_distance_au, record.diameter_min_km, record.relative_velocity_km_s
    )
    energy = impact_energy_megatons(record.diameter_min_km, record.relative_velocity_km_s)
    level = risk_level(max(earth, satellite), energy)

    logger.debug("NEO %s: earth=%.4f satellite=%.4f energy=%.2f MT level=%s",
                 record.name, earth, satellite, energy, level.name)
    return RiskAssessment(
        object_id=record.name,
        kind=RiskKind.NEO,
        probabilities={"earth_impact": earth, "satellite_collision": satellite},
        level=level,
        impact_energy_mt=energy,
        miss_distance_km=record.miss_distance_au * AU_KM,
        details={"hazardous": record.hazardous, "close_approach_date": record.close_approach_date},
    )


def significant_neo_risks(
    assessments: list[RiskAssessment], limit: int | None = 10
) -> list[RiskAssessment]:
    """NEO assessments worth surfacing (earth > 1% or satellite > 10%),
    highest peak probability first."""
    significant = [
        a for a in assessments
        if a.kind is RiskKind.NEO and (
            a.probabilities.get("earth_impact", 0.0) > 0.01
            or a.probabilities.get("satellite_collision", 0.0) > 0.1
        )
    ]
    ordered = sort_assessments(significant)
    return ordered if limit is None else ordered[:limit]


def assess_debris_reentry(element_set: ElementSet, at: datetime) -> RiskAssessment:
    """Re-entry risk of a debris object at time ``at``.

    Objects that cannot be propagated get a fixed 0.3.
    """
    state = propagate(element_set, at)
    if isinstance(state, PropagationFailed):
        logger.debug("NORAD %d: cannot propagate (%s), using default re-entry risk",
                     element_set.norad_id, state.message)
        risk = DEBRIS_UNKNOWN_REENTRY_RISK
        altitude = None
    else:
        altitude = to_geodetic(state).altitude_km
        risk = debris_reentry_risk(
            altitude, element_set.eccentricity, element_set.mean_motion_rad_per_min
        )

    return RiskAssessment(
        object_id=element_set.object_id,
        kind=RiskKind.DEBRIS_REENTRY,
        probabilities={"reentry": risk},
        level=risk_level(risk),
        details={"altitude_km": altitude, "norad_id": element_set.norad_id},
    )


def assess_debris_collisions(
    debris: list[ElementSet],
    satellites: list[ElementSet],
    at: datetime,
    min_probability: float = 0.1,
) -> list[RiskAssessment]:
    """
    Snapshot collision heuristic between every debris/satellite pair at ``at``.

    Objects that fail to propagate are skipped. Only pairs whose probability
    exceeds ``min_probability`` are returned, highest first.
    """
    if not debris or not satellites:
        return []

    deb_states, deb_valid = propagate_batch(debris, at)
    sat_states, sat_valid = propagate_batch(satellites, at)

    results: list[RiskAssessment] = []
    for i, deb in enumerate(debris):
        if not deb_valid[i]:
            continue
        for j, sat in enumerate(satellites):
            if not sat_valid[j]:
                continue
            distance = float(np.linalg.norm(deb_states[i, 0:3] - sat_states[j, 0:3]))
            rel_speed = float(np.linalg.norm(deb_states[i, 3:6] - sat_states[j, 3:6]))
            probability = debris_collision_probability(distance, rel_speed)
            if probability > min_probability:
                results.append(RiskAssessment(
                    object_id=deb.object_id,
                    kind=RiskKind.DEBRIS_COLLISION,
                    probabilities={"collision": probability},
                    level=risk_level(probability),
                    counterpart_id=sat.object_id,
                    miss_distance_km=distance,
                    details={"relative_speed_km_s": rel_speed, "epoch": at},
                ))

    logger.info("Debris snapshot: %d risky pairs out of %d", len(results),
                int(deb_valid.sum()) * int(sat_valid.sum()))
    return sort_assessments(results)


def assess_conjunction(conjunction: Conjunction, involves_debris: bool = False) -> RiskAssessment:
    """Collision heuristic evaluated at the time of closest approach."""
    probability = debris_collision_probability(
        conjunction.miss_distance_km, conjunction.relative_velocity_km_s
    )
    return RiskAssessment(
        object_id=conjunction.object_a,
        kind=RiskKind.CONJUNCTION,
        probabilities={"collision": probability},
        level=risk_level(probability),
        counterpart_id=conjunction.object_b,
        miss_distance_km=conjunction.miss_distance_km,
        details={
            "tca": conjunction.tca,
            "relative_velocity_km_s": conjunction.relative_velocity_km_s,
            "involves_debris": involves_debris,
        },
    )


def sort_assessments(assessments: list[RiskAssessment]) -> list[RiskAssessment]:
    """Descending peak probability; ties broken by object then counterpart id."""
    return sorted(
        assessments,
        key=lambda a: (-a.peak_probability, a.object_id, a.counterpart_id or ""),
    )
