"""Orbital propagation via SGP4."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Union

import numpy as np
from numpy.typing import NDArray
from sgp4.api import SGP4_ERRORS, SatrecArray

from orbitrisk.core.tle import ElementSet
from orbitrisk.utils.coordinates import eci_to_geodetic, julian_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class StateVector:
    """Position and velocity in TEME frame.

    Attributes:
        position_km: [x, y, z] position in km.
        velocity_km_s: [vx, vy, vz] velocity in km/s.
        epoch: Time of this state vector.
    """

    position_km: NDArray[np.float64]  # shape (3,)
    velocity_km_s: NDArray[np.float64]  # shape (3,)
    epoch: datetime


@dataclass(frozen=True)
class PropagationFailed:
    """SGP4 could not produce a state (decayed or degenerate orbit)."""

    epoch: datetime
    norad_id: int
    error_code: int
    message: str


PropagatedState = Union[StateVector, PropagationFailed]


@dataclass(frozen=True)
class GeodeticState:
    """Sub-satellite point and altitude above the WGS-84 ellipsoid."""

    latitude_deg: float
    longitude_deg: float
    altitude_km: float


def to_geodetic(state: StateVector) -> GeodeticState:
    """Convert a TEME state to geodetic coordinates at its own epoch."""
    lat, lon, alt = eci_to_geodetic(state.position_km, state.epoch)
    return GeodeticState(latitude_deg=lat, longitude_deg=lon, altitude_km=alt)


def as_utc(t: datetime) -> datetime:
    """Return ``t`` as an aware UTC datetime; naive values are taken as UTC."""
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


def propagate(element_set: ElementSet, time: datetime) -> PropagatedState:
    """Propagate one element set to one time using SGP4.

    Args:
        element_set: A parsed element set.
        time: Target time (naive datetimes are treated as UTC).

    Returns:
        A StateVector, or PropagationFailed if SGP4 reports an error or
        produces non-finite output.
    """
    t = as_utc(time)
    jd, fr = julian_date(t)
    error_code, pos, vel = element_set.satrec.sgp4(jd, fr)

    if error_code != 0:
        message = SGP4_ERRORS.get(error_code, "unknown SGP4 error")
        logger.debug("SGP4 propagation failed for NORAD %d at %s: error code %d (%s)",
                     element_set.norad_id, t, error_code, message)
        return PropagationFailed(t, element_set.norad_id, error_code, message)

    position = np.array(pos, dtype=np.float64)
    velocity = np.array(vel, dtype=np.float64)
    if not (np.all(np.isfinite(position)) and np.all(np.isfinite(velocity))):
        logger.debug("SGP4 returned non-finite state for NORAD %d at %s", element_set.norad_id, t)
        return PropagationFailed(t, element_set.norad_id, -1, "non-finite state")

    return StateVector(position_km=position, velocity_km_s=velocity, epoch=t)


def propagate_many(element_set: ElementSet, times: list[datetime]) -> list[PropagatedState]:
    """Propagate a single element set to multiple times."""
    result = [propagate(element_set, t) for t in times]
    logger.debug("Propagated NORAD %d to %d times", element_set.norad_id, len(times))
    return result


def propagate_batch(
    element_sets: list[ElementSet], time: datetime
) -> tuple[NDArray[np.float64], NDArray[np.bool_]]:
    """Propagate many element sets to a single time using vectorized SGP4.

    Uses SatrecArray for C-level batch propagation (fast path for large catalogs).

    Args:
        element_sets: Element sets to propagate.
        time: Single datetime to propagate all objects to.

    Returns:
        Tuple of:
            - positions_velocities: Array of shape (n, 6) with [x,y,z,vx,vy,vz] in km, km/s
            - valid_mask: Boolean array of shape (n,) indicating which propagations succeeded
    """
    if not element_sets:
        return np.empty((0, 6), dtype=np.float64), np.empty(0, dtype=np.bool_)

    satrec_array = SatrecArray([es.satrec for es in element_sets])

    jd, fr = julian_date(as_utc(time))
    jd_array = np.array([jd], dtype=np.float64)
    fr_array = np.array([fr], dtype=np.float64)

    # Output shape: errors (n,1), positions (n,1,3), velocities (n,1,3)
    errors, positions, velocities = satrec_array.sgp4(jd_array, fr_array)

    n = len(element_sets)
    result = np.empty((n, 6), dtype=np.float64)
    result[:, 0:3] = positions[:, 0, :]
    result[:, 3:6] = velocities[:, 0, :]

    valid_mask = (errors[:, 0] == 0) & np.all(np.isfinite(result), axis=1)
    failed = int(n - valid_mask.sum())
    if failed:
        logger.warning("Batch propagation: %d/%d objects failed at %s", failed, n, time)

    return result, valid_mask
