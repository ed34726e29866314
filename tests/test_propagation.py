"""Tests for the SGP4 propagation adapter and geodetic conversion."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import numpy as np
import pytest

from orbitrisk.core.tle import ElementSet
from orbitrisk.core.propagation import (
    PropagationFailed,
    StateVector,
    propagate,
    propagate_batch,
    propagate_many,
    to_geodetic,
)
from orbitrisk.utils.coordinates import ecef_to_geodetic


ISS_LINE1 = "1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9993"
ISS_LINE2 = "2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439596"

GEO_LINE1 = "1 36516U 10012A   24045.39583333  .00000112  00000-0  00000+0 0  9991"
GEO_LINE2 = "2 36516   0.0254 268.0254 0000567 142.5432 240.3076  1.00271953 50780"


@pytest.fixture
def iss() -> ElementSet:
    return ElementSet.from_lines(ISS_LINE1, ISS_LINE2, "ISS (ZARYA)")


@pytest.fixture
def geo() -> ElementSet:
    return ElementSet.from_lines(GEO_LINE1, GEO_LINE2, "SES-1")


def _failing(es: ElementSet, code: int = 6) -> ElementSet:
    """Copy of ``es`` whose satrec always reports an SGP4 error."""
    satrec = MagicMock()
    satrec.sgp4.return_value = (code, (np.nan, np.nan, np.nan), (np.nan, np.nan, np.nan))
    return ElementSet(**{**es.__dict__, "satrec": satrec})


def test_propagate_returns_state(iss: ElementSet):
    state = propagate(iss, iss.epoch)
    assert isinstance(state, StateVector)
    assert state.position_km.shape == (3,)
    assert state.velocity_km_s.shape == (3,)
    assert state.epoch == iss.epoch
    assert 6500 < np.linalg.norm(state.position_km) < 7000
    assert 7.0 < np.linalg.norm(state.velocity_km_s) < 8.0


def test_propagate_is_deterministic(iss: ElementSet):
    t = iss.epoch + timedelta(minutes=37)
    a = propagate(iss, t)
    b = propagate(iss, t)
    np.testing.assert_array_equal(a.position_km, b.position_km)
    np.testing.assert_array_equal(a.velocity_km_s, b.velocity_km_s)


def test_naive_datetime_treated_as_utc(iss: ElementSet):
    aware = iss.epoch + timedelta(hours=1)
    naive = aware.replace(tzinfo=None)
    np.testing.assert_allclose(
        propagate(iss, naive).position_km, propagate(iss, aware).position_km
    )


def test_failure_is_tagged_not_raised(iss: ElementSet):
    broken = _failing(iss)
    result = propagate(broken, iss.epoch)
    assert isinstance(result, PropagationFailed)
    assert result.norad_id == 25544
    assert result.error_code == 6
    assert result.message


def test_non_finite_output_is_a_failure(iss: ElementSet):
    broken = _failing(iss, code=0)
    result = propagate(broken, iss.epoch)
    assert isinstance(result, PropagationFailed)
    assert result.error_code == -1


def test_propagate_many(iss: ElementSet):
    times = [iss.epoch + timedelta(hours=h) for h in range(3)]
    states = propagate_many(iss, times)
    assert len(states) == 3
    for i in range(1, 3):
        assert np.linalg.norm(states[i].position_km - states[0].position_km) > 0
        assert states[i].epoch == times[i]


def test_propagate_batch_shape(iss: ElementSet, geo: ElementSet):
    states, valid = propagate_batch([iss, geo], iss.epoch)
    assert states.shape == (2, 6)
    assert valid.shape == (2,)
    assert valid.dtype == np.bool_
    assert np.all(valid)


def test_propagate_batch_empty():
    states, valid = propagate_batch([], datetime.now(timezone.utc))
    assert states.shape == (0, 6)
    assert valid.shape == (0,)


def test_propagate_batch_matches_single(iss: ElementSet):
    time = iss.epoch + timedelta(hours=1)
    single = propagate(iss, time)
    batch, valid = propagate_batch([iss], time)
    assert valid[0]
    np.testing.assert_allclose(batch[0, 0:3], single.position_km, rtol=1e-10)
    np.testing.assert_allclose(batch[0, 3:6], single.velocity_km_s, rtol=1e-10)


class TestGeodetic:
    def test_equator_surface(self):
        lat, lon, alt = ecef_to_geodetic(np.array([6378.137, 0.0, 0.0]))
        assert lat == pytest.approx(0.0, abs=1e-9)
        assert lon == pytest.approx(0.0, abs=1e-9)
        assert alt == pytest.approx(0.0, abs=1e-6)

    def test_pole(self):
        polar_radius = 6378.137 * (1 - 1 / 298.257223563)
        lat, _, alt = ecef_to_geodetic(np.array([0.0, 0.0, polar_radius + 100.0]))
        assert np.degrees(lat) == pytest.approx(90.0)
        assert alt == pytest.approx(100.0, abs=1e-6)

    def test_iss_altitude(self, iss: ElementSet):
        geo = to_geodetic(propagate(iss, iss.epoch))
        assert 350 < geo.altitude_km < 450
        assert -52.0 < geo.latitude_deg < 52.0
        assert -180.0 <= geo.longitude_deg < 180.0

    def test_geo_altitude(self, geo: ElementSet):
        g = to_geodetic(propagate(geo, geo.epoch))
        assert 35000 < g.altitude_km < 36500
        assert abs(g.latitude_deg) < 1.0
