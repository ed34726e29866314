from __future__ import annotations

"""Physical constants and default thresholds for orbital risk analysis.

Distances in km and velocities in km/s unless otherwise noted.
"""

# --- Earth parameters (WGS-84) ---
EARTH_RADIUS_KM: float = 6378.137
"""Equatorial radius of Earth in km."""

EARTH_FLATTENING: float = 1.0 / 298.257223563
"""WGS-84 flattening of the reference ellipsoid."""

EARTH_MEAN_RADIUS_KM: float = 6371.0
"""Mean Earth radius in km, used by the NEO impact model."""

EARTH_MU_KM3_S2: float = 398600.4418
"""Earth gravitational parameter (GM) in km³/s²."""

AU_KM: float = 149_597_871.0
"""One astronomical unit in km."""

# --- Orbit regime boundaries ---
LEO_MAX_ALT_KM: float = 2000.0
"""Maximum altitude for Low Earth Orbit in km (exclusive)."""

MEO_MAX_ALT_KM: float = 35786.0
"""Maximum altitude for Medium Earth Orbit in km (exclusive)."""

LEO_MAX_PERIOD_MIN: float = 200.0
"""Fallback classifier: periods below this are LEO."""

MEO_MAX_PERIOD_MIN: float = 1200.0
"""Fallback classifier: periods below this (and >= LEO bound) are MEO."""

# --- Default analysis window ---
DEFAULT_WINDOW_MINUTES: float = 60.0
"""Default look-ahead window for trajectory sampling in minutes."""

DEFAULT_STEP_SECONDS: float = 30.0
"""Default sampling interval in seconds."""

DEFAULT_MISS_DISTANCE_KM: float = 10.0
"""Default conjunction threshold in km."""

# --- NEO model ---
NEO_CRITICAL_DISTANCE_KM: float = 10 * EARTH_MEAN_RADIUS_KM
"""Miss distance beyond which Earth-impact probability is zero."""

NEO_SATELLITE_ZONE_KM: float = 50_000.0
"""Miss distance beyond which a NEO poses no risk to the satellite shells."""

NEO_HAZARD_MISS_AU: float = 0.05
"""PHA definition: miss distance strictly below this (AU)."""

NEO_HAZARD_DIAMETER_KM: float = 0.14
"""PHA definition: diameter strictly above this (km)."""

NEO_APPROACH_WINDOW_DAYS: float = 7.0
"""Close approaches within this many days count as approaching."""

ASTEROID_DENSITY_KG_M3: float = 2500.0
"""Assumed bulk density of a NEO for impact energy estimates."""

JOULES_PER_MEGATON: float = 4.184e15
"""Energy of one megaton of TNT in joules."""

MAX_EARTH_IMPACT_PROBABILITY: float = 0.95
"""Upper clamp for the NEO Earth-impact heuristic."""

MAX_SATELLITE_COLLISION_RISK: float = 0.8
"""Upper clamp for the NEO satellite-collision heuristic."""

# --- Debris model ---
DEBRIS_COLLISION_RADIUS_KM: float = 50.0
"""Separation beyond which the debris collision heuristic is zero."""

DEBRIS_REFERENCE_SPEED_KM_S: float = 10.0
"""Relative speed at which the debris velocity factor saturates."""

DEBRIS_UNKNOWN_REENTRY_RISK: float = 0.3
"""Re-entry risk assigned to debris that cannot be propagated."""

DEBRIS_REENTRY_BANDS: tuple[tuple[float, float], ...] = (
    (200.0, 0.8),
    (400.0, 0.6),
    (800.0, 0.4),
    (1500.0, 0.2),
)
"""(altitude upper bound km, risk contribution) pairs, lowest band first."""
