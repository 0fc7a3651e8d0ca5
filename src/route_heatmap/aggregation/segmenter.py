"""
Segmenter
=========

Converts track point sequences into atomic two-point segments.

A track with N points yields exactly max(N - 1, 0) segments, each pairing
points[i] with points[i + 1]. Track and segment indices are preserved for
attribution in the final records.

Segmenting does not depend on precision or intensity settings, so its
output is cached by SegmentCache and reused across configuration changes.
"""

import logging
from typing import Dict, List, Optional, Sequence

from route_heatmap.models.segment import Segment
from route_heatmap.models.track import Track


logger = logging.getLogger(__name__)


def segment_track(track: Track, track_index: int = 0) -> List[Segment]:
    """
    Split one track into consecutive two-point segments.

    Args:
        track: Track to split
        track_index: Position of the track in its collection

    Returns:
        Segments in track order (empty for 0- or 1-point tracks)
    """
    points = track.points
    return [
        Segment(
            start=points[i],
            end=points[i + 1],
            track_id=track.track_id,
            track_index=track_index,
            segment_index=i,
        )
        for i in range(len(points) - 1)
    ]


def segment_tracks(tracks: Sequence[Track]) -> List[Segment]:
    """Segment every track, concatenated in track order."""
    segments: List[Segment] = []
    for track_index, track in enumerate(tracks):
        segments.extend(segment_track(track, track_index))
    return segments


def count_segments(tracks: Sequence[Track]) -> int:
    """Total number of segments the tracks will produce."""
    return sum(max(len(track.points) - 1, 0) for track in tracks)


class SegmentCache:
    """
    Caches the Segmenter output for a fixed track collection.

    Tracks are immutable, so the segments stay valid until the
    collection itself is replaced.

    Example:
        cache = SegmentCache(tracks)
        segments = cache.segments      # computed once
    """

    def __init__(self, tracks: Sequence[Track]) -> None:
        """
        Initialize cache for a track collection.

        Args:
            tracks: Tracks to segment (order defines track_index)
        """
        self.tracks: List[Track] = list(tracks)
        self._segments: Optional[List[Segment]] = None

    @property
    def segments(self) -> List[Segment]:
        """All segments, computed on first access."""
        if self._segments is None:
            self._segments = segment_tracks(self.tracks)
            logger.info(
                f"Segmented {len(self.tracks)} tracks into "
                f"{len(self._segments)} segments"
            )
        return self._segments

    def invalidate(self) -> None:
        """Drop cached segments."""
        self._segments = None

    @property
    def is_cached(self) -> bool:
        return self._segments is not None


def group_by_track(segments: Sequence[Segment]) -> Dict[int, List[Segment]]:
    """
    Group segments by originating track.

    Insertion order of the returned dict follows first appearance, and
    each group keeps segment order.
    """
    groups: Dict[int, List[Segment]] = {}
    for segment in segments:
        groups.setdefault(segment.track_index, []).append(segment)
    return groups
