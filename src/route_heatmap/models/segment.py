"""
Segment Models
==============

Internal pipeline types produced by the Segmenter and consumed by the
Density Aggregator and Intensity Mapper.

These are frozen dataclasses: they are derived, held for one
configuration, and discarded on the next one.
"""

from dataclasses import dataclass
from typing import Tuple

from route_heatmap.models.track import Point


@dataclass(frozen=True, slots=True)
class Segment:
    """
    Atomic two-point piece of a track.

    Endpoint order follows the track and is kept for rendering.
    It is not significant for bucketing.

    Attributes:
        start: Point at position segment_index in the track
        end: Point at position segment_index + 1
        track_id: Identifier of the originating track
        track_index: Position of the track in the input collection
        segment_index: Position of this segment within its track
    """

    start: Point
    end: Point
    track_id: str
    track_index: int
    segment_index: int

    def reversed(self) -> "Segment":
        """Same segment traversed in the opposite direction."""
        return Segment(
            start=self.end,
            end=self.start,
            track_id=self.track_id,
            track_index=self.track_index,
            segment_index=self.segment_index,
        )

    @property
    def is_degenerate(self) -> bool:
        """True when both endpoints are identical."""
        return self.start == self.end


@dataclass(frozen=True, slots=True)
class BucketKey:
    """
    Canonical identifier of a geographic segment at one precision.

    Holds the two rounded endpoints with the lexicographically smallest
    (lat, lon) first, so both traversal orders produce equal keys.

    Attributes:
        first: Smaller rounded endpoint
        second: Larger rounded endpoint
    """

    first: Point
    second: Point

    def __str__(self) -> str:
        return (
            f"{self.first.lat},{self.first.lon}-"
            f"{self.second.lat},{self.second.lon}"
        )


@dataclass(frozen=True, slots=True)
class RouteSubSegment:
    """
    Maximal run of one track's consecutive segments between
    intersection points.

    Attributes:
        track_index: Position of the track the run belongs to
        segments: Consecutive segments, in track order
        overlap_count: Max distinct tracks touching any endpoint (>= 1)
    """

    track_index: int
    segments: Tuple[Segment, ...]
    overlap_count: int

    def __len__(self) -> int:
        return len(self.segments)
