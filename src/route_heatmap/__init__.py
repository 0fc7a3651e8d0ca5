"""
RouteHeatmap
============

Segment-density aggregation for GPS track heatmaps.

This package breaks GPS tracks into atomic segments, buckets them by
rounded geographic position at a configurable precision, counts overlap,
and maps the counts to a bounded intensity for display.

Components:
    - models: Track, segment, configuration and output types
    - aggregation: Segmenter, Density Aggregator, Intensity Mapper, engine
    - export: Compact snapshot interchange format
    - observability: Summary analytics
    - main: FastAPI service for a presentation layer

Example:
    from route_heatmap.aggregation import aggregate
    from route_heatmap.models import AggregationConfig, Point, Track

    tracks = [Track("a", (Point(0, 0), Point(0, 1), Point(0, 2)))]
    result = aggregate(tracks, AggregationConfig(precision=10000, max_density=10))
"""

__version__ = "0.1.0"
__author__ = "RouteHeatmap Project"

__all__ = [
    "__version__",
]
