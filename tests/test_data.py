"""Tests for data ingestion: NEO close-approach parsing and the CelesTrak/JPL client."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from orbitrisk.data.celestrak import CelestrakClient
from orbitrisk.data.neo import NeoRecord, parse_cad_payload, summarize_neos
from orbitrisk.errors import IngestionUnavailable


# CAD rows: des, orbit_id, jd, cd, dist, dist_min, dist_max, v_rel, v_inf, t_sigma, name, d_min, d_max
SAMPLE_CAD = {
    "signature": {"source": "NASA/JPL SBDB Close Approach Data API", "version": "1.5"},
    "count": "2",
    "fields": ["des", "orbit_id", "jd", "cd", "dist", "dist_min", "dist_max",
               "v_rel", "v_inf", "t_sigma_f", "fullname", "diameter_min", "diameter_max"],
    "data": [
        ["2024 AB1", "12", "2460360.5", "2024-Feb-20 14:32", "0.0123", "0.0120", "0.0126",
         "18.5", "18.4", "< 00:01", "(2024 AB1)", "0.25", "0.55"],
        ["2024 CD", "3", "2460400.1", "2024-Mar-31 02:10", "0.15", "0.14", "0.16",
         "7.2", "7.1", "00:05", "(2024 CD)", "0.02", "0.04"],
    ],
}

ISS_TLE_TEXT = (
    "ISS (ZARYA)\n"
    "1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9993\n"
    "2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439596\n"
)


def test_cad_row_parsing():
    records = parse_cad_payload(SAMPLE_CAD)
    assert len(records) == 2
    r = records[0]
    assert r.id == "2024 AB1"
    assert r.name == "(2024 AB1)"
    assert r.miss_distance_au == pytest.approx(0.0123)
    assert r.relative_velocity_km_s == pytest.approx(18.5)
    assert r.diameter_min_km == pytest.approx(0.25)
    assert r.diameter_max_km == pytest.approx(0.55)
    assert r.close_approach_date == datetime(2024, 2, 20, 14, 32, tzinfo=timezone.utc)


def test_cad_payload_from_json_text():
    records = parse_cad_payload(json.dumps(SAMPLE_CAD))
    assert [r.id for r in records] == ["2024 AB1", "2024 CD"]


def test_cad_payload_invalid_json():
    with pytest.raises(ValueError):
        parse_cad_payload("{not json")


def test_cad_payload_without_data():
    assert parse_cad_payload({"count": "0"}) == []
    assert parse_cad_payload({"data": None}) == []


def test_cad_row_defaults():
    r = NeoRecord.from_cad_row(["", "1", "", "", "", "", "", "", "", "", "", "", ""], index=7)
    assert r.id == "NEO-7"
    assert r.name == "Unknown Object 7"
    assert r.close_approach_date is None
    assert r.miss_distance_au == 0.0
    assert r.relative_velocity_km_s == 0.0
    assert r.diameter_min_km == pytest.approx(0.1)
    assert r.diameter_max_km == pytest.approx(0.2)


def test_cad_short_row_uses_defaults():
    r = NeoRecord.from_cad_row(["2024 XY", "1", "2460360.5", "2024-02-20", "0.3"], index=0)
    assert r.id == "2024 XY"
    assert r.miss_distance_au == pytest.approx(0.3)
    assert r.diameter_min_km == pytest.approx(0.1)
    assert r.close_approach_date == datetime(2024, 2, 20, tzinfo=timezone.utc)


def test_zero_diameter_falls_back():
    row = ["X", "1", "", "", "0.01", "", "", "10", "", "", "X", "0", "0"]
    r = NeoRecord.from_cad_row(row)
    assert r.diameter_min_km == pytest.approx(0.1)
    assert r.diameter_max_km == pytest.approx(0.2)


def test_hazardous_flag():
    big_close, small_far = parse_cad_payload(SAMPLE_CAD)
    assert big_close.hazardous
    assert not small_far.hazardous


def test_summarize_neos():
    records = parse_cad_payload(SAMPLE_CAD)
    now = datetime(2024, 2, 16, tzinfo=timezone.utc)
    summary = summarize_neos(records, now=now)
    assert summary.count == 2
    assert summary.approaching == 1
    assert summary.hazardous == 1


def test_summarize_undated_counts_as_approaching():
    r = NeoRecord.from_cad_row([], index=0)
    assert summarize_neos([r]).approaching == 1


# -- CelesTrak / JPL client ---------------------------------------------------

def _make_response(status_code: int = 200, text: str = "", payload=None) -> MagicMock:
    """Helper to create a mock response."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    resp.raise_for_status = MagicMock()
    if payload is not None:
        resp.json.return_value = payload
    else:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(response=resp)
    return resp


def test_fetch_group_success():
    client = CelestrakClient()
    with patch.object(client._session, "get", return_value=_make_response(200, ISS_TLE_TEXT)) as mock_get:
        text = client.fetch_group("stations")
    assert text == ISS_TLE_TEXT
    _, kwargs = mock_get.call_args
    assert kwargs["params"] == {"GROUP": "stations", "FORMAT": "tle"}
    assert kwargs["timeout"] == client.timeout


def test_load_group_parses():
    client = CelestrakClient()
    with patch.object(client._session, "get", return_value=_make_response(200, ISS_TLE_TEXT)):
        result = client.load_group("stations")
    assert len(result) == 1
    assert result.element_sets[0].name == "ISS (ZARYA)"


def test_fetch_group_http_error():
    client = CelestrakClient()
    with patch.object(client._session, "get", return_value=_make_response(503)):
        with pytest.raises(IngestionUnavailable):
            client.fetch_group("active")


def test_fetch_group_network_error():
    client = CelestrakClient()
    with patch.object(client._session, "get", side_effect=requests.ConnectionError("down")):
        with pytest.raises(IngestionUnavailable):
            client.fetch_group("active")


def test_load_debris_skips_unavailable_groups():
    client = CelestrakClient()
    responses = [_make_response(500), _make_response(200, ISS_TLE_TEXT), _make_response(404)]
    with patch.object(client._session, "get", side_effect=responses):
        result = client.load_debris()
    assert len(result) == 1


def test_load_debris_all_unavailable_is_empty():
    client = CelestrakClient()
    with patch.object(client._session, "get", side_effect=requests.Timeout("slow")):
        result = client.load_debris(("a", "b"))
    assert len(result) == 0


def test_fetch_close_approaches_params():
    client = CelestrakClient()
    with patch.object(client._session, "get", return_value=_make_response(200, payload=SAMPLE_CAD)) as mock_get:
        payload = client.fetch_close_approaches(date_min=date(2024, 2, 14))
    assert payload is SAMPLE_CAD
    _, kwargs = mock_get.call_args
    params = kwargs["params"]
    assert params["date-min"] == "2024-02-14"
    assert params["date-max"] == (date(2024, 2, 14) + timedelta(days=60)).isoformat()
    assert params["dist-max"] == "0.2"


def test_fetch_close_approaches_bad_json():
    client = CelestrakClient()
    with patch.object(client._session, "get", return_value=_make_response(200, "<html>")):
        with pytest.raises(IngestionUnavailable):
            client.fetch_close_approaches()


def test_load_close_approaches():
    client = CelestrakClient()
    with patch.object(client._session, "get", return_value=_make_response(200, payload=SAMPLE_CAD)):
        records = client.load_close_approaches()
    assert len(records) == 2
    assert records[0].hazardous
