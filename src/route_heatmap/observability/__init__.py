"""
Observability Module
====================

Summary analytics for aggregation results.

DESIGN RULES:
    - Does NOT influence densities or intensities
    - Computed on demand, never cached inside the engine
"""

from route_heatmap.observability.summary import (
    AggregationSummary,
    Bounds,
    summarize,
)


__all__ = [
    "AggregationSummary",
    "Bounds",
    "summarize",
]
