"""
Aggregation Module
==================

Segment-density aggregation engine.

This module provides:
    - Segmenter: tracks -> two-point segments (cached)
    - DensityAggregator: rounded, canonical bucket counting
    - DirectIntensityPolicy / RandomizedIntensityPolicy: density -> intensity
    - aggregate / HeatmapEngine: the full pipeline
"""

from route_heatmap.aggregation.segmenter import (
    SegmentCache,
    segment_track,
    segment_tracks,
)
from route_heatmap.aggregation.density import (
    DensityAggregator,
    canonical_key,
    segment_key,
)
from route_heatmap.aggregation.intensity import (
    DirectIntensityPolicy,
    RandomizedIntensityPolicy,
    find_intersection_points,
    split_route_subsegments,
)
from route_heatmap.aggregation.engine import HeatmapEngine, aggregate


__all__ = [
    "SegmentCache",
    "segment_track",
    "segment_tracks",
    "DensityAggregator",
    "canonical_key",
    "segment_key",
    "DirectIntensityPolicy",
    "RandomizedIntensityPolicy",
    "find_intersection_points",
    "split_route_subsegments",
    "HeatmapEngine",
    "aggregate",
]
