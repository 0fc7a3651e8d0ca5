"""
Data Models
===========

Data models for the route heatmap aggregation engine.

This module re-exports all data models for convenient access.

Models:
    Input:
        - Point, Track: Immutable pipeline input
        - PointInput, TrackInput: Validated ingestion schemas

    Pipeline:
        - Segment: Atomic two-point piece of a track
        - BucketKey: Canonical rounded endpoint pair
        - RouteSubSegment: Unit of randomized intensity assignment

    Configuration:
        - AggregationConfig: precision, max_density, randomize, seed
        - AggregateRequest: tracks + optional config for one-shot runs

    Output:
        - HeatmapRecord: Segment + intensity for the presentation layer
        - AggregationStats: Run counts
        - AggregationResult: Complete output contract
"""

from route_heatmap.models.track import Point, PointInput, Track, TrackInput
from route_heatmap.models.segment import BucketKey, RouteSubSegment, Segment
from route_heatmap.models.aggregation import AggregateRequest, AggregationConfig
from route_heatmap.models.output import (
    AggregationResult,
    AggregationStats,
    HeatmapRecord,
)

__all__ = [
    # Input
    "Point",
    "Track",
    "PointInput",
    "TrackInput",
    # Pipeline
    "Segment",
    "BucketKey",
    "RouteSubSegment",
    # Configuration
    "AggregationConfig",
    "AggregateRequest",
    # Output
    "HeatmapRecord",
    "AggregationStats",
    "AggregationResult",
]
