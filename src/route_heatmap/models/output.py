"""
Aggregation Output Models
=========================

This module defines the output contract handed to the presentation layer.

One record is produced per segment, per configuration:
    {
        "start": {"lat": 54.5001, "lon": -2.4999},
        "end": {"lat": 54.5002, "lon": -2.4998},
        "intensity": 3,
        "density": 3,
        "track_id": "ridge-walk",
        "track_index": 0,
        "segment_index": 41,
        "track_name": "Ridge Walk"
    }

Design Rules:
    - Records carry the ORIGINAL (unrounded) endpoints; rounding only
      drives bucketing
    - 1 <= intensity <= max_density for every record
    - A result is replaced as a whole on configuration change, never
      mutated in place
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from route_heatmap.models.aggregation import AggregationConfig
from route_heatmap.models.track import PointInput


class HeatmapRecord(BaseModel):
    """
    One segment annotated with its display intensity.

    Attributes:
        start: First endpoint, in track order
        end: Second endpoint, in track order
        intensity: Bounded display value in [1, max_density]
        density: Raw bucket density (1 if unmatched)
        track_id: Originating track identifier
        track_index: Position of the track in the input collection
        segment_index: Position of the segment within its track
        track_name: Display name of the track
    """

    start: PointInput
    end: PointInput
    intensity: int = Field(..., ge=1, description="Display intensity")
    density: int = Field(..., ge=1, description="Overlap count of the bucket")
    track_id: str
    track_index: int = Field(..., ge=0)
    segment_index: int = Field(..., ge=0)
    track_name: Optional[str] = None

    @property
    def feature_id(self) -> str:
        """Unique id suitable for map feature-state."""
        return f"{self.track_index}-{self.segment_index}"

    def to_feature(self) -> Dict[str, Any]:
        """Export as a GeoJSON LineString Feature."""
        return {
            "type": "Feature",
            "id": self.feature_id,
            "properties": {
                "intensity": self.intensity,
                "density": self.density,
                "track_id": self.track_id,
                "segment_index": self.segment_index,
                "track_name": self.track_name or self.track_id,
            },
            "geometry": {
                "type": "LineString",
                "coordinates": [
                    [self.start.lon, self.start.lat],
                    [self.end.lon, self.end.lat],
                ],
            },
        }


class AggregationStats(BaseModel):
    """Counts describing one aggregation run."""

    track_count: int = Field(..., ge=0)
    segment_count: int = Field(..., ge=0)
    bucket_count: int = Field(..., ge=0)
    intersection_count: int = Field(
        default=0,
        ge=0,
        description="Intersection points (randomized policy only)",
    )
    subsegment_count: int = Field(
        default=0,
        ge=0,
        description="Route sub-segments (randomized policy only)",
    )
    max_bucket_density: int = Field(default=0, ge=0)


class AggregationResult(BaseModel):
    """
    Complete output of one aggregation run.

    Attributes:
        config: Configuration the result was computed with
        records: One record per segment, in track then segment order
        stats: Run counts
    """

    config: AggregationConfig
    records: List[HeatmapRecord] = Field(default_factory=list)
    stats: AggregationStats

    def to_feature_collection(self) -> Dict[str, Any]:
        """Export all records as a GeoJSON FeatureCollection."""
        return {
            "type": "FeatureCollection",
            "features": [record.to_feature() for record in self.records],
        }

    def intensities(self) -> List[int]:
        return [record.intensity for record in self.records]
