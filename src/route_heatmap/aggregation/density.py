"""
Density Aggregator
==================

Buckets segments by rounded, canonically ordered endpoints and counts
how many segments across all tracks fall into each bucket.

Algorithm:
    1. Round both endpoints at precision P: round(value * P) / P
    2. Order the rounded endpoints by (lat, lon), smallest first
    3. The ordered pair is the BucketKey
    4. Increment the density counter for that key

Precision Choice:
    Precision is the single control knob for "how close must two points be
    to count as the same location":
    - 10000 = 4 decimal places (~10 m), the default
    - 1000  = 3 decimal places (~100 m), coarser, more aggregation
    - 100000 = 5 decimal places (~1 m), finer, less aggregation

Determinism:
    Keys depend only on the segment and P, never on iteration order, so
    identical input and precision always give identical densities.
"""

import logging
from collections import Counter
from typing import Callable, Dict, Optional, Sequence

from route_heatmap.models.segment import BucketKey, Segment
from route_heatmap.models.track import Point


logger = logging.getLogger(__name__)


ProgressCallback = Callable[[int, int, str], None]

# Density assumed for a segment whose bucket is absent from the mapping
DEFAULT_DENSITY = 1


def canonical_key(a: Point, b: Point, precision: float) -> BucketKey:
    """
    Build the canonical bucket key for an endpoint pair.

    Args:
        a: First endpoint (original coordinates)
        b: Second endpoint (original coordinates)
        precision: Rounding multiplier

    Returns:
        BucketKey with the smaller rounded endpoint first
    """
    ra = a.rounded(precision)
    rb = b.rounded(precision)
    if (ra.lat, ra.lon) <= (rb.lat, rb.lon):
        return BucketKey(ra, rb)
    return BucketKey(rb, ra)


def segment_key(segment: Segment, precision: float) -> BucketKey:
    """Canonical bucket key of a segment."""
    return canonical_key(segment.start, segment.end, precision)


def lookup_density(
    densities: Dict[BucketKey, int],
    key: BucketKey,
) -> int:
    """Density of a bucket, falling back to DEFAULT_DENSITY."""
    return densities.get(key, DEFAULT_DENSITY)


class DensityAggregator:
    """
    Counts segment overlap at a fixed precision.

    Attributes:
        precision: Rounding multiplier (> 0)
        progress_every: Report progress every N segments

    Example:
        aggregator = DensityAggregator(precision=10000)
        densities = aggregator.aggregate(segments)
        density = densities[segment_key(segments[0], 10000)]
    """

    def __init__(
        self,
        precision: float = 10000.0,
        progress_every: int = 5000,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Initialize density aggregator.

        Args:
            precision: Rounding multiplier, must be positive
            progress_every: Progress reporting interval in segments
            on_progress: Optional callback(processed, total, message)
        """
        if precision <= 0:
            raise ValueError("precision must be positive")
        if progress_every <= 0:
            raise ValueError("progress_every must be positive")

        self.precision = precision
        self.progress_every = progress_every
        self.on_progress = on_progress

        logger.debug(f"DensityAggregator initialized: precision={precision}")

    def key(self, segment: Segment) -> BucketKey:
        """Bucket key of a segment at this aggregator's precision."""
        return segment_key(segment, self.precision)

    def aggregate(self, segments: Sequence[Segment]) -> Dict[BucketKey, int]:
        """
        Count segments per bucket.

        Args:
            segments: All segments across all tracks

        Returns:
            Mapping of BucketKey to density (empty for no segments)
        """
        total = len(segments)
        densities: Counter = Counter()

        self._report(0, total, "Analyzing route segments...")
        for processed, segment in enumerate(segments, start=1):
            densities[self.key(segment)] += 1
            if processed % self.progress_every == 0:
                logger.debug(f"Analyzed {processed}/{total} segments")
                self._report(processed, total, "Analyzing route segments...")
        self._report(total, total, "Segment analysis complete")

        logger.info(
            f"Aggregated {total} segments into {len(densities)} buckets "
            f"(precision={self.precision})"
        )
        return dict(densities)

    def _report(self, processed: int, total: int, message: str) -> None:
        if self.on_progress is not None:
            self.on_progress(processed, total, message)
