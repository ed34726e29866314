"""Frame conversions: TEME (SGP4 output) to Earth-fixed and geodetic."""
from __future__ import annotations

import math
from datetime import datetime

import numpy as np
from numpy.typing import NDArray
from sgp4.api import jday
from sgp4.propagation import gstime

from orbitrisk.utils.constants import EARTH_FLATTENING, EARTH_RADIUS_KM


def julian_date(t: datetime) -> tuple[float, float]:
    """Split Julian date (whole, fraction) for a UTC datetime."""
    return jday(t.year, t.month, t.day, t.hour, t.minute,
                t.second + t.microsecond / 1e6)


def gmst(t: datetime) -> float:
    """Greenwich mean sidereal time in radians."""
    jd, fr = julian_date(t)
    return gstime(jd + fr)


def eci_to_ecef(position_eci: NDArray[np.float64], theta: float) -> NDArray[np.float64]:
    """Rotate an inertial position about Z by the sidereal angle ``theta``."""
    c, s = math.cos(theta), math.sin(theta)
    rotation = np.array([
        [c, s, 0.0],
        [-s, c, 0.0],
        [0.0, 0.0, 1.0],
    ])
    return rotation @ position_eci


def ecef_to_geodetic(position_ecef: NDArray[np.float64]) -> tuple[float, float, float]:
    """Convert ECEF (km) to geodetic latitude, longitude (radians) and
    altitude above the WGS-84 ellipsoid (km)."""
    a = EARTH_RADIUS_KM
    e2 = 2 * EARTH_FLATTENING - EARTH_FLATTENING ** 2

    x, y, z = (float(c) for c in position_ecef)
    lon = math.atan2(y, x)
    p = math.hypot(x, y)
    lat = math.atan2(z, p * (1 - e2))

    for _ in range(10):
        n = a / math.sqrt(1 - e2 * math.sin(lat) ** 2)
        new_lat = math.atan2(z + e2 * n * math.sin(lat), p)
        if abs(new_lat - lat) < 1e-12:
            lat = new_lat
            break
        lat = new_lat

    n = a / math.sqrt(1 - e2 * math.sin(lat) ** 2)
    cos_lat = math.cos(lat)
    if abs(cos_lat) > 1e-10:
        alt = p / cos_lat - n
    else:
        # polar: use the z-axis form
        alt = abs(z) - n * (1 - e2)

    return lat, lon, alt


def eci_to_geodetic(position_eci: NDArray[np.float64], t: datetime) -> tuple[float, float, float]:
    """Geodetic (lat_deg, lon_deg, alt_km) of an inertial position at ``t``."""
    lat, lon, alt = ecef_to_geodetic(eci_to_ecef(np.asarray(position_eci, dtype=np.float64), gmst(t)))
    lon_deg = (math.degrees(lon) + 180.0) % 360.0 - 180.0
    return math.degrees(lat), lon_deg, alt
