"""
Snapshot Export Tests
=====================

Tests for the compact snapshot format.
"""

import json
from datetime import datetime, timezone

import pytest

from route_heatmap.aggregation import aggregate
from route_heatmap.export import (
    SnapshotFormatError,
    SnapshotMetadata,
    build_snapshot,
    read_snapshot,
    snapshot_to_features,
    write_snapshot,
)
from route_heatmap.export.snapshot import FORMAT_DESCRIPTION, decimal_places
from route_heatmap.models import AggregationConfig


GENERATED_AT = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def snapshot(overlapping_tracks, default_config):
    result = aggregate(overlapping_tracks, default_config)
    return build_snapshot(result, generated_at=GENERATED_AT)


class TestBuildSnapshot:
    """Tests for snapshot construction."""

    def test_metadata(self, snapshot):
        """Metadata counts routes and features."""
        metadata = snapshot["metadata"]

        assert metadata["generatedAt"] == "2026-10-19T12:00:00+00:00"
        assert metadata["totalRoutes"] == 2
        assert metadata["totalFeatures"] == 4
        assert metadata["routeNames"] == ["Track A", "Track B"]
        assert metadata["format"] == "compact"
        assert metadata["coordinatePrecision"] == 4

    def test_compact_features(self, snapshot):
        """Features are [lon1, lat1, lon2, lat2, intensity]."""
        assert snapshot["features"][1] == [1.0, 0.0, 2.0, 0.0, 2]
        assert [f[4] for f in snapshot["features"]] == [1, 2, 2, 1]

    def test_coordinates_rounded(self, track_factory):
        """Coordinates keep the configured number of decimals."""
        track = track_factory("t", [(54.123456, -2.987654), (54.123499, -2.987601)])
        result = aggregate([track], AggregationConfig(precision=1000))

        feature = build_snapshot(result)["features"][0]
        assert feature[:4] == [-2.988, 54.123, -2.988, 54.123]

    def test_explicit_route_names(self, overlapping_tracks, default_config):
        """Caller-supplied names override record names."""
        result = aggregate(overlapping_tracks, default_config)
        payload = build_snapshot(result, route_names=["north", "south"])
        assert payload["metadata"]["routeNames"] == ["north", "south"]

    @pytest.mark.parametrize(
        "precision, places",
        [(10000, 4), (1000, 3), (100000, 5), (1, 0), (0.5, 0)],
    )
    def test_decimal_places(self, precision, places):
        assert decimal_places(precision) == places


class TestSnapshotFiles:
    """Tests for writing and reading snapshot files."""

    def test_written_file_is_valid_json(self, snapshot, tmp_path):
        """The line-oriented writer produces parseable JSON."""
        path = write_snapshot(snapshot, tmp_path / "out" / "heatmap-data.json")

        with path.open() as f:
            data = json.load(f)
        assert data["features"] == snapshot["features"]
        assert data["metadata"] == snapshot["metadata"]

    def test_read_back(self, snapshot, tmp_path):
        """read_snapshot returns the written payload."""
        path = write_snapshot(snapshot, tmp_path / "heatmap-data.json")
        assert read_snapshot(path)["metadata"]["totalFeatures"] == 4

    def test_empty_snapshot(self, default_config, tmp_path):
        """An empty result writes an empty feature list."""
        payload = build_snapshot(aggregate([], default_config))
        path = write_snapshot(payload, tmp_path / "empty.json")
        assert read_snapshot(path)["features"] == []

    def test_reads_generator_file(self, tmp_path):
        """Files from the offline generator load with camelCase metadata."""
        path = tmp_path / "heatmap-data.json"
        path.write_text(json.dumps({
            "metadata": {
                "generatedAt": "2025-01-01T00:00:00.000Z",
                "totalRoutes": 1,
                "totalFeatures": 2,
                "routeNames": ["Morning Ride"],
                "format": "compact",
                "coordinatePrecision": 4,
            },
            "format": FORMAT_DESCRIPTION,
            "features": [
                [-2.5, 54.5, -2.4999, 54.5001, 1],
                [-2.4999, 54.5001, -2.4998, 54.5002, 3],
            ],
        }))

        data = read_snapshot(path)
        metadata = SnapshotMetadata.model_validate(data["metadata"])
        assert metadata.total_routes == 1
        assert metadata.total_features == 2
        assert metadata.route_names == ["Morning Ride"]
        assert metadata.coordinate_precision == 4

        features = snapshot_to_features(data)["features"]
        assert features[1]["properties"] == {"intensity": 3, "density": 3}

    def test_metadata_round_trips_through_aliases(self, snapshot):
        """Parsed metadata dumps back to the same camelCase keys."""
        metadata = SnapshotMetadata.model_validate(snapshot["metadata"])
        assert metadata.model_dump(by_alias=True) == snapshot["metadata"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_snapshot(tmp_path / "missing.json")

    def test_missing_sections(self, tmp_path):
        """Payloads without metadata or features are rejected."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"features": []}))
        with pytest.raises(SnapshotFormatError):
            read_snapshot(path)


class TestSnapshotToFeatures:
    """Tests for compact -> GeoJSON conversion."""

    def test_compact_conversion(self, snapshot):
        """Compact rows become LineString features indexed by position."""
        converted = snapshot_to_features(snapshot)
        feature = converted["features"][1]

        assert converted["metadata"] == snapshot["metadata"]
        assert feature["id"] == 1
        assert feature["properties"] == {"intensity": 2, "density": 2}
        assert feature["geometry"]["coordinates"] == [[1.0, 0.0], [2.0, 0.0]]

    def test_other_format_passthrough(self):
        """Non-compact payloads are returned unchanged."""
        payload = {"metadata": {"format": "geojson"}, "features": [{"type": "Feature"}]}
        assert snapshot_to_features(payload) is payload
