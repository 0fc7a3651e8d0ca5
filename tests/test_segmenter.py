"""
Segmenter Tests
===============

Tests for track -> segment conversion and the segment cache.
"""

import pytest

from route_heatmap.aggregation.segmenter import (
    SegmentCache,
    count_segments,
    group_by_track,
    segment_track,
    segment_tracks,
)
from route_heatmap.models import Point, Track, TrackInput


class TestSegmentTrack:
    """Tests for single-track segmentation."""

    @pytest.mark.parametrize("n_points", [0, 1, 2, 5])
    def test_segment_count(self, track_factory, n_points):
        """A track with N points yields max(N - 1, 0) segments."""
        track = track_factory("t", [(0, i) for i in range(n_points)])
        assert len(segment_track(track)) == max(n_points - 1, 0)

    def test_consecutive_pairs_in_order(self, track_factory):
        """Each segment pairs points[i] with points[i + 1]."""
        track = track_factory("t", [(0, 0), (1, 1), (2, 2)])
        segments = segment_track(track, track_index=3)

        assert [s.start for s in segments] == [Point(0, 0), Point(1, 1)]
        assert [s.end for s in segments] == [Point(1, 1), Point(2, 2)]
        assert [s.segment_index for s in segments] == [0, 1]
        assert all(s.track_index == 3 for s in segments)
        assert all(s.track_id == "t" for s in segments)

    def test_single_point_track_is_empty(self, track_factory):
        """One-point tracks produce no segments."""
        assert segment_track(track_factory("lonely", [(54.5, -2.5)])) == []

    def test_degenerate_segment_kept(self, track_factory):
        """Repeated points still produce a segment."""
        segments = segment_track(track_factory("t", [(1, 1), (1, 1)]))
        assert len(segments) == 1
        assert segments[0].is_degenerate


class TestSegmentTracks:
    """Tests for collection segmentation."""

    def test_concatenates_in_track_order(self, overlapping_tracks):
        """Segments from track 0 come before track 1."""
        segments = segment_tracks(overlapping_tracks)

        assert [s.track_index for s in segments] == [0, 0, 1, 1]
        assert count_segments(overlapping_tracks) == len(segments)

    def test_group_by_track(self, overlapping_tracks):
        """Grouping keeps per-track segment order."""
        groups = group_by_track(segment_tracks(overlapping_tracks))

        assert list(groups) == [0, 1]
        assert [s.segment_index for s in groups[1]] == [0, 1]

    def test_duplicate_ids_stay_separate(self, track_factory):
        """Tracks sharing an id are still grouped by position."""
        tracks = [
            track_factory("same", [(0, 0), (0, 1)]),
            track_factory("same", [(1, 0), (1, 1)]),
        ]
        groups = group_by_track(segment_tracks(tracks))
        assert len(groups) == 2


class TestSegmentCache:
    """Tests for segment caching."""

    def test_computed_once(self, overlapping_tracks):
        """Repeated access returns the same list object."""
        cache = SegmentCache(overlapping_tracks)
        assert not cache.is_cached

        first = cache.segments
        assert cache.is_cached
        assert cache.segments is first

    def test_invalidate(self, overlapping_tracks):
        """Invalidation forces recomputation."""
        cache = SegmentCache(overlapping_tracks)
        first = cache.segments
        cache.invalidate()

        assert not cache.is_cached
        assert cache.segments == first
        assert cache.segments is not first

    def test_track_is_immutable(self):
        """Tracks freeze their point sequence."""
        track = Track("t", [Point(0, 0), Point(0, 1)])
        assert isinstance(track.points, tuple)
        with pytest.raises(AttributeError):
            track.track_id = "other"


class TestTrackInput:
    """Tests for converting validated payloads into tracks."""

    def test_to_track(self, sample_track_payload):
        """Payload points become an ordered, immutable point tuple."""
        track = TrackInput.model_validate(sample_track_payload).to_track()

        assert track.track_id == "ridge-walk"
        assert track.display_name == "Ridge Walk"
        assert track.points[1] == Point(54.5001, -2.4999)
        assert len(segment_track(track)) == 2

    def test_unnamed_track_displays_id(self):
        track = TrackInput(track_id="loop", points=[]).to_track()
        assert track.display_name == "loop"
        assert segment_track(track) == []
