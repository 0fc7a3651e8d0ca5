"""
Aggregation Summary
===================

Derive summary analytics from an aggregation result.

Summaries are for observability ONLY (logging, the /stats endpoint).
They never feed back into densities or intensities.

Derived from:
    - AggregationResult.records (intensities, densities, coordinates)
    - AggregationResult.stats (counts)
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from route_heatmap.models.output import AggregationResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Bounds:
    """Bounding box of all record endpoints, in degrees."""

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    @property
    def center(self) -> Dict[str, float]:
        return {
            "lon": round((self.min_lon + self.max_lon) / 2, 6),
            "lat": round((self.min_lat + self.max_lat) / 2, 6),
        }

    def to_list(self) -> List[List[float]]:
        """[[west, south], [east, north]], the order map fit-bounds APIs take."""
        return [[self.min_lon, self.min_lat], [self.max_lon, self.max_lat]]


@dataclass(frozen=True, slots=True)
class AggregationSummary:
    """
    Summary of one aggregation result.

    Attributes:
        record_count: Number of records
        intensity_histogram: Count of records per intensity 1..max_density
        mean_intensity: Mean intensity (0.0 when empty)
        mean_density: Mean raw density (0.0 when empty)
        p95_density: 95th percentile raw density (0.0 when empty)
        bounds: Bounding box, None when empty
    """

    record_count: int
    intensity_histogram: Dict[int, int]
    mean_intensity: float
    mean_density: float
    p95_density: float
    bounds: Optional[Bounds]

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "record_count": self.record_count,
            "intensity_histogram": {str(k): v for k, v in self.intensity_histogram.items()},
            "mean_intensity": self.mean_intensity,
            "mean_density": self.mean_density,
            "p95_density": self.p95_density,
            "bounds": self.bounds.to_list() if self.bounds else None,
            "center": self.bounds.center if self.bounds else None,
        }


def summarize(result: AggregationResult) -> AggregationSummary:
    """
    Compute a summary for an aggregation result.

    Args:
        result: Aggregation result

    Returns:
        AggregationSummary
    """
    max_density = result.config.max_density
    records = result.records

    if not records:
        return AggregationSummary(
            record_count=0,
            intensity_histogram={i: 0 for i in range(1, max_density + 1)},
            mean_intensity=0.0,
            mean_density=0.0,
            p95_density=0.0,
            bounds=None,
        )

    intensities = np.fromiter((r.intensity for r in records), dtype=np.int64)
    densities = np.fromiter((r.density for r in records), dtype=np.int64)
    lons = np.array([[r.start.lon, r.end.lon] for r in records], dtype=np.float64)
    lats = np.array([[r.start.lat, r.end.lat] for r in records], dtype=np.float64)

    counts = np.bincount(intensities, minlength=max_density + 1)
    histogram = {i: int(counts[i]) for i in range(1, max_density + 1)}

    bounds = Bounds(
        min_lon=float(lons.min()),
        min_lat=float(lats.min()),
        max_lon=float(lons.max()),
        max_lat=float(lats.max()),
    )

    summary = AggregationSummary(
        record_count=len(records),
        intensity_histogram=histogram,
        mean_intensity=round(float(intensities.mean()), 4),
        mean_density=round(float(densities.mean()), 4),
        p95_density=round(float(np.percentile(densities, 95)), 4),
        bounds=bounds,
    )

    logger.debug(
        f"Summary: records={summary.record_count}, "
        f"mean_intensity={summary.mean_intensity}, p95_density={summary.p95_density}"
    )
    return summary
