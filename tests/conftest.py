"""
Test Configuration
==================

Pytest fixtures and test configuration for the route heatmap engine.
"""

import pytest

from route_heatmap.models import AggregationConfig, Point, Track


def make_track(track_id, coords, name=None):
    """Build a Track from (lat, lon) pairs."""
    return Track(
        track_id=track_id,
        points=tuple(Point(lat, lon) for lat, lon in coords),
        name=name,
    )


@pytest.fixture
def track_factory():
    """Provide the make_track helper."""
    return make_track


@pytest.fixture
def overlapping_tracks():
    """Two tracks sharing the segment (0,1)-(0,2)."""
    return [
        make_track("A", [(0, 0), (0, 1), (0, 2)], name="Track A"),
        make_track("B", [(0, 1), (0, 2), (0, 3)], name="Track B"),
    ]


@pytest.fixture
def busy_tracks():
    """Seven copies of one route plus a lone detour."""
    route = [(54.5, -2.5), (54.5001, -2.5001), (54.5002, -2.5002)]
    tracks = [make_track(f"busy-{i}", route) for i in range(7)]
    tracks.append(make_track("detour", [(54.6, -2.6), (54.6001, -2.6001)]))
    return tracks


@pytest.fixture
def random_tracks():
    """Random walks that revisit a small grid, so they intersect often."""
    import numpy as np

    rng = np.random.default_rng(1234)
    tracks = []
    for i in range(12):
        steps = rng.integers(-1, 2, size=(40, 2))
        coords = np.cumsum(steps, axis=0) * 0.0001 + [54.5, -2.5]
        tracks.append(make_track(f"walk-{i}", [tuple(c) for c in coords]))
    return tracks


@pytest.fixture
def default_config():
    """Default direct-policy configuration."""
    return AggregationConfig(precision=10000, max_density=10)


@pytest.fixture
def sample_track_payload():
    """Provide a sample TrackInput payload for testing."""
    return {
        "track_id": "ridge-walk",
        "name": "Ridge Walk",
        "points": [
            {"lat": 54.5, "lon": -2.5},
            {"lat": 54.5001, "lon": -2.4999},
            {"lat": 54.5002, "lon": -2.4998},
        ],
    }
