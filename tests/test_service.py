"""
Service Endpoint Tests
======================

Tests for the FastAPI service using the TestClient.
"""

import json

import pytest
from fastapi.testclient import TestClient

from route_heatmap import main
from route_heatmap.models import AggregationConfig


OVERLAPPING_PAYLOAD = [
    {
        "track_id": "A",
        "name": "Track A",
        "points": [{"lat": 0, "lon": 0}, {"lat": 0, "lon": 1}, {"lat": 0, "lon": 2}],
    },
    {
        "track_id": "B",
        "name": "Track B",
        "points": [{"lat": 0, "lon": 1}, {"lat": 0, "lon": 2}, {"lat": 0, "lon": 3}],
    },
]


@pytest.fixture
def client(monkeypatch, tmp_path):
    """Client with a fresh engine, default config and a temp snapshot path."""
    monkeypatch.setattr(main, "_config", AggregationConfig())
    monkeypatch.setattr(main.settings.snapshot, "output_path", str(tmp_path / "snap.json"))
    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture
def loaded_client(client):
    response = client.put("/tracks", json=OVERLAPPING_PAYLOAD)
    assert response.status_code == 200
    return client


class TestServiceStatus:
    """Tests for info, health and readiness endpoints."""

    def test_root(self, client):
        data = client.get("/").json()
        assert data["service"] == "RouteHeatmap"
        assert data["config"]["max_density"] == 10

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

    def test_not_ready_without_tracks(self, client):
        response = client.get("/ready")
        assert response.status_code == 503
        assert response.json()["tracks_loaded"] == 0

    def test_ready_after_tracks(self, loaded_client):
        response = loaded_client.get("/ready")
        assert response.status_code == 200
        assert response.json()["tracks_loaded"] == 2

    @pytest.mark.parametrize("path", ["/records", "/features", "/snapshot", "/stats"])
    def test_no_result_is_503(self, client, path):
        response = client.get(path)
        assert response.status_code == 503
        assert "error" in response.json()


class TestTracksAndConfig:
    """Tests for replacing tracks and configuration."""

    def test_put_tracks_returns_stats(self, client):
        stats = client.put("/tracks", json=OVERLAPPING_PAYLOAD).json()
        assert stats["track_count"] == 2
        assert stats["segment_count"] == 4
        assert stats["bucket_count"] == 3

    def test_records(self, loaded_client):
        records = loaded_client.get("/records").json()
        assert [r["intensity"] for r in records] == [1, 2, 2, 1]
        assert records[0]["track_name"] == "Track A"

    def test_invalid_track_rejected(self, client):
        payload = [{"track_id": "bad", "points": [{"lat": 120, "lon": 0}]}]
        assert client.put("/tracks", json=payload).status_code == 422

    def test_put_config_recomputes(self, loaded_client):
        response = loaded_client.put("/config", json={"precision": 10000, "max_density": 1})
        assert response.status_code == 200
        assert response.json()["stats"]["segment_count"] == 4

        records = loaded_client.get("/records").json()
        assert {r["intensity"] for r in records} == {1}
        assert [r["density"] for r in records] == [1, 2, 2, 1]

    def test_put_config_without_tracks(self, client):
        data = client.put("/config", json={"precision": 1000}).json()
        assert data["config"]["precision"] == 1000.0
        assert "stats" not in data
        assert client.get("/").json()["config"]["precision"] == 1000.0

    def test_empty_tracks_not_ready(self, client):
        """An empty collection aggregates but does not count as ready."""
        stats = client.put("/tracks", json=[]).json()
        assert stats["track_count"] == 0

        response = client.get("/ready")
        assert response.status_code == 503
        assert response.json()["tracks_loaded"] == 0

    def test_config_after_empty_tracks_replaces_result(self, loaded_client):
        """A held result always reflects the current config."""
        loaded_client.put("/tracks", json=[])
        data = loaded_client.put(
            "/config", json={"precision": 1000, "max_density": 3}
        ).json()
        assert data["stats"]["track_count"] == 0

        stats = loaded_client.get("/stats").json()
        current = loaded_client.get("/").json()["config"]
        assert stats["config"] == current
        assert stats["config"]["max_density"] == 3
        assert stats["config"]["precision"] == 1000.0
        assert loaded_client.get("/records").json() == []

    def test_invalid_config_rejected(self, loaded_client):
        assert loaded_client.put("/config", json={"max_density": 0}).status_code == 422
        assert loaded_client.put("/config", json={"precision": -5}).status_code == 422

    def test_randomized_config(self, loaded_client):
        loaded_client.put("/config", json={"randomize": True, "seed": 3})
        stats = loaded_client.get("/stats").json()

        assert stats["config"]["randomize"] is True
        assert stats["stats"]["intersection_count"] == 2
        assert stats["stats"]["subsegment_count"] == 4


class TestOutputs:
    """Tests for feature, snapshot and stats outputs."""

    def test_features(self, loaded_client):
        collection = loaded_client.get("/features").json()
        assert collection["type"] == "FeatureCollection"
        assert len(collection["features"]) == 4

    def test_snapshot(self, loaded_client):
        payload = loaded_client.get("/snapshot").json()
        assert payload["metadata"]["totalFeatures"] == 4
        assert payload["features"][1][4] == 2

    def test_snapshot_save(self, loaded_client, tmp_path):
        loaded_client.get("/snapshot", params={"save": True})

        with (tmp_path / "snap.json").open() as f:
            saved = json.load(f)
        assert saved["metadata"]["routeNames"] == ["Track A", "Track B"]

    def test_stats_summary(self, loaded_client):
        data = loaded_client.get("/stats").json()
        assert data["aggregation_errors"] == 0
        assert data["summary"]["record_count"] == 4
        assert data["summary"]["intensity_histogram"]["2"] == 2


class TestOneShotAggregate:
    """Tests for POST /aggregate."""

    def test_aggregate_does_not_touch_held_result(self, client):
        response = client.post(
            "/aggregate",
            json={"tracks": OVERLAPPING_PAYLOAD, "config": {"max_density": 1}},
        )
        assert response.status_code == 200
        data = response.json()

        assert [r["intensity"] for r in data["records"]] == [1, 1, 1, 1]
        assert data["stats"]["max_bucket_density"] == 2
        assert client.get("/ready").status_code == 503

    def test_aggregate_uses_current_config(self, client):
        client.put("/config", json={"max_density": 2})
        data = client.post("/aggregate", json={"tracks": OVERLAPPING_PAYLOAD}).json()
        assert data["config"]["max_density"] == 2
