"""
Track Models
============

Geographic input types for the aggregation engine.

A Track is an identifier plus an ordered sequence of Points. Ordering is
significant: consecutive points define the segments of the track.

Two flavours of each type live here:
    - Point / Track: frozen dataclasses used inside the pipeline
    - PointInput / TrackInput: pydantic schemas for validated ingestion
      (HTTP payloads, YAML fixtures). Convert with TrackInput.to_track().

Example:
    from route_heatmap.models.track import Point, Track

    track = Track(
        track_id="ridge-walk",
        points=(Point(54.50, -2.50), Point(54.51, -2.49)),
    )
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties towards positive infinity."""
    return int(math.floor(value + 0.5))


def round_coordinate(value: float, precision: float) -> float:
    """
    Round a coordinate at a precision multiplier.

    Implements round(value * precision) / precision with half-up ties,
    so 10000 keeps four decimal places (~10 m).

    Args:
        value: Latitude or longitude in degrees
        precision: Positive rounding multiplier

    Returns:
        Rounded coordinate in degrees
    """
    return round_half_up(value * precision) / precision


@dataclass(frozen=True, slots=True)
class Point:
    """
    Geographic point in WGS84 degrees.

    Attributes:
        lat: Latitude in degrees
        lon: Longitude in degrees
    """

    lat: float
    lon: float

    def rounded(self, precision: float) -> "Point":
        """Return this point with both coordinates rounded at precision."""
        return Point(
            round_coordinate(self.lat, precision),
            round_coordinate(self.lon, precision),
        )


@dataclass(frozen=True, slots=True)
class Track:
    """
    Immutable, ordered GPS track.

    Attributes:
        track_id: Stable identifier (e.g. source file name)
        points: Ordered points; adjacency defines segments
        name: Optional human-readable name for display
    """

    track_id: str
    points: Tuple[Point, ...]
    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Freeze the point sequence."""
        if not isinstance(self.points, tuple):
            object.__setattr__(self, "points", tuple(self.points))

    def __len__(self) -> int:
        return len(self.points)

    @property
    def display_name(self) -> str:
        """Name used by the presentation layer."""
        return self.name or self.track_id

    @classmethod
    def from_input(cls, payload: "TrackInput") -> "Track":
        """Build a Track from a validated TrackInput."""
        return cls(
            track_id=payload.track_id,
            points=tuple(Point(p.lat, p.lon) for p in payload.points),
            name=payload.name,
        )


class PointInput(BaseModel):
    """
    Point as received from a Track Source.

    Attributes:
        lat: Latitude in degrees [-90, 90]
        lon: Longitude in degrees [-180, 180]
    """

    lat: float = Field(
        ...,
        ge=-90.0,
        le=90.0,
        description="Latitude in degrees",
    )

    lon: float = Field(
        ...,
        ge=-180.0,
        le=180.0,
        description="Longitude in degrees",
    )


class TrackInput(BaseModel):
    """
    Track payload accepted at the service boundary.

    Zero- and one-point tracks are valid; they produce no segments.

    Attributes:
        track_id: Stable identifier for the track
        name: Optional display name
        points: Ordered track points
    """

    track_id: str = Field(
        ...,
        min_length=1,
        description="Stable identifier for the track",
    )

    name: Optional[str] = Field(
        default=None,
        description="Human-readable track name",
    )

    points: List[PointInput] = Field(
        default_factory=list,
        description="Ordered track points",
    )

    def to_track(self) -> Track:
        return Track.from_input(self)
