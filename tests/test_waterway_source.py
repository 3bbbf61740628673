"""Tests for Overpass acquisition with ordered endpoint failover."""

import pytest
import requests

from blueways.config import Settings
from blueways.errors import AcquisitionError
from blueways.models.network_models import AccessPoint
from blueways.services import waterway_source
from blueways.services.waterway_source import (
    OverpassSource,
    build_waterway_query,
    overpass_to_features,
    waterway_bbox,
)

PAYLOAD = {
    "elements": [
        {"type": "way", "id": 10, "nodes": [1, 2, 3], "tags": {"waterway": "stream", "name": "Jones Creek"}},
        {"type": "way", "id": 11, "nodes": [3, 4], "tags": {"waterway": "stream"}},
        {"type": "way", "id": 12, "nodes": [4, 99], "tags": {"waterway": "river", "name": "Broken"}},
        {"type": "node", "id": 1, "lat": 36.90, "lon": -86.50},
        {"type": "node", "id": 2, "lat": 36.90, "lon": -86.49},
        {"type": "node", "id": 3, "lat": 36.90, "lon": -86.48},
        {"type": "node", "id": 4, "lat": 36.91, "lon": -86.47},
    ]
}

BBOX = {"min_lon": -86.55, "min_lat": 36.85, "max_lon": -86.40, "max_lat": 36.95}


class FakeResponse:
    def __init__(self, status=200, payload=None):
        self.status_code = status
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class ScriptedSession:
    """Returns (or raises) one scripted outcome per POST, in order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.posts = []

    def post(self, url, data=None, headers=None, timeout=None):
        self.posts.append({"url": url, "data": data, "timeout": timeout})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def sleeps(monkeypatch):
    calls = []
    monkeypatch.setattr(waterway_source.time, "sleep", calls.append)
    return calls


ENDPOINTS = ["https://one.example/api", "https://two.example/api", "https://three.example/api"]


class TestQuery:
    def test_bbox_is_south_west_north_east(self):
        q = build_waterway_query(BBOX)
        assert "(36.85,-86.55,36.95,-86.4)" in q

    def test_waterway_classes(self):
        q = build_waterway_query(BBOX)
        assert 'way["waterway"~"river|stream|canal"]' in q
        assert q.startswith("[out:json]")
        assert q.rstrip().endswith("out skel qt;")

    def test_bbox_from_access_points(self):
        points = [
            AccessPoint(name="Mill Ramp", coordinate=(-86.50, 36.90)),
            AccessPoint(name="Iron Bridge", coordinate=(-86.45, 36.92)),
        ]
        bbox = waterway_bbox(points)
        assert bbox["min_lon"] == pytest.approx(-86.55)
        assert bbox["max_lat"] == pytest.approx(36.97)

    def test_bbox_needs_points(self):
        with pytest.raises(AcquisitionError):
            waterway_bbox([])


class TestOverpassToFeatures:
    def test_ways_become_lines(self):
        features = overpass_to_features(PAYLOAD)
        by_id = {f.osm_id: f for f in features}
        assert by_id[10].name == "Jones Creek"
        assert by_id[10].waterway == "stream"
        assert by_id[10].coordinates == [(-86.50, 36.90), (-86.49, 36.90), (-86.48, 36.90)]

    def test_unnamed_way_kept(self):
        by_id = {f.osm_id: f for f in overpass_to_features(PAYLOAD)}
        assert by_id[11].name is None

    def test_way_with_missing_node_dropped(self):
        ids = [f.osm_id for f in overpass_to_features(PAYLOAD)]
        assert 12 not in ids

    def test_empty_payload(self):
        assert overpass_to_features({}) == []


class TestOverpassSource:
    def test_first_endpoint_success(self, sleeps):
        session = ScriptedSession(FakeResponse(payload=PAYLOAD))
        features = OverpassSource(ENDPOINTS, session=session).fetch(BBOX)
        assert len(features) == 2
        assert [p["url"] for p in session.posts] == ENDPOINTS[:1]
        assert session.posts[0]["timeout"] == 45.0
        assert sleeps == []

    def test_fails_over_in_order(self, sleeps):
        session = ScriptedSession(
            requests.ConnectionError("refused"),
            FakeResponse(status=504),
            FakeResponse(payload=PAYLOAD),
        )
        features = OverpassSource(ENDPOINTS, session=session).fetch(BBOX)
        assert len(features) == 2
        assert [p["url"] for p in session.posts] == ENDPOINTS
        assert sleeps == [2.0, 2.0]

    def test_timeout_counts_as_failure(self, sleeps):
        session = ScriptedSession(requests.Timeout("45s"), FakeResponse(payload=PAYLOAD))
        OverpassSource(ENDPOINTS, session=session).fetch(BBOX)
        assert len(session.posts) == 2

    def test_bad_json_counts_as_failure(self, sleeps):
        session = ScriptedSession(FakeResponse(payload=None), FakeResponse(payload=PAYLOAD))
        assert len(OverpassSource(ENDPOINTS, session=session).fetch(BBOX)) == 2

    def test_non_object_json_counts_as_failure(self, sleeps):
        session = ScriptedSession(FakeResponse(payload=[]), FakeResponse(payload=PAYLOAD))
        assert len(OverpassSource(ENDPOINTS, session=session).fetch(BBOX)) == 2
        assert sleeps == [2.0]

    def test_all_endpoints_fail(self, sleeps):
        session = ScriptedSession(
            FakeResponse(status=429),
            requests.ConnectionError("refused"),
            FakeResponse(status=500),
        )
        with pytest.raises(AcquisitionError, match="All Overpass servers failed"):
            OverpassSource(ENDPOINTS, session=session).fetch(BBOX)
        # no pause after the last endpoint
        assert sleeps == [2.0, 2.0]

    def test_from_settings(self, sleeps):
        settings = Settings(overpass_endpoints=["https://only.example/api"], request_timeout_s=10, retry_backoff_s=0)
        session = ScriptedSession(FakeResponse(status=500))
        source = OverpassSource.from_settings(settings, session=session)
        with pytest.raises(AcquisitionError):
            source.fetch(BBOX)
        assert session.posts[0]["timeout"] == 10
        assert sleeps == []

    def test_requires_endpoints(self):
        with pytest.raises(ValueError):
            OverpassSource([])
