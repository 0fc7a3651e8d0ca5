"""
Aggregation Engine
==================

Ties the Segmenter, Density Aggregator and Intensity Mapper together.

Pipeline:
    tracks -> segments (cached) -> bucket densities -> intensities -> records

Entry Points:
    aggregate(tracks, config):
        Pure function. No implicit state; every call recomputes.

    HeatmapEngine(tracks):
        Holds the segment cache for one track collection. configure()
        recomputes densities and intensities for a new configuration and
        swaps in the new result as a whole.

Example:
    from route_heatmap.aggregation import HeatmapEngine
    from route_heatmap.models import AggregationConfig

    engine = HeatmapEngine(tracks)
    result = engine.configure(AggregationConfig(precision=10000, max_density=10))
    coarse = engine.configure(AggregationConfig(precision=1000, max_density=10))
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from route_heatmap.aggregation.density import (
    DensityAggregator,
    ProgressCallback,
    lookup_density,
)
from route_heatmap.aggregation.intensity import (
    DirectIntensityPolicy,
    RandomizedIntensityPolicy,
)
from route_heatmap.aggregation.segmenter import SegmentCache
from route_heatmap.models.aggregation import AggregationConfig
from route_heatmap.models.output import (
    AggregationResult,
    AggregationStats,
    HeatmapRecord,
)
from route_heatmap.models.segment import BucketKey, Segment
from route_heatmap.models.track import PointInput, Track


logger = logging.getLogger(__name__)


def aggregate(
    tracks: Sequence[Track],
    config: AggregationConfig,
    rng: Optional[np.random.Generator] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> AggregationResult:
    """
    Aggregate tracks into intensity-annotated segment records.

    Args:
        tracks: Track collection (order defines track_index)
        config: Aggregation configuration
        rng: Generator for the randomized policy; defaults to one seeded
            from config.seed
        on_progress: Optional callback(processed, total, message)

    Returns:
        AggregationResult with one record per segment
    """
    return _compute(SegmentCache(tracks), config, rng, on_progress)


class HeatmapEngine:
    """
    Stateful wrapper reusing segments across configuration changes.

    Attributes:
        tracks: Current track collection
        result: Latest result (None before the first configure())
    """

    def __init__(
        self,
        tracks: Sequence[Track] = (),
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Initialize engine.

        Args:
            tracks: Initial track collection
            on_progress: Optional progress callback passed to each run
        """
        self._cache = SegmentCache(tracks)
        self._result: Optional[AggregationResult] = None
        self.on_progress = on_progress

        logger.info(f"HeatmapEngine initialized: tracks={len(self._cache.tracks)}")

    @property
    def tracks(self) -> List[Track]:
        return self._cache.tracks

    @property
    def result(self) -> Optional[AggregationResult]:
        """Latest result, replaced whole on each configure()."""
        return self._result

    @property
    def config(self) -> Optional[AggregationConfig]:
        return self._result.config if self._result else None

    def load_tracks(self, tracks: Sequence[Track]) -> None:
        """Replace the track collection and drop the previous result."""
        self._cache = SegmentCache(tracks)
        self._result = None
        logger.info(f"Loaded {len(self._cache.tracks)} tracks")

    def configure(
        self,
        config: AggregationConfig,
        rng: Optional[np.random.Generator] = None,
    ) -> AggregationResult:
        """
        Recompute for a new configuration.

        Args:
            config: New configuration
            rng: Optional generator for the randomized policy

        Returns:
            The new result, also available as self.result
        """
        result = _compute(self._cache, config, rng, self.on_progress)
        self._result = result
        return result


# =============================================================================
# Internal
# =============================================================================

def _compute(
    cache: SegmentCache,
    config: AggregationConfig,
    rng: Optional[np.random.Generator],
    on_progress: Optional[ProgressCallback],
) -> AggregationResult:
    segments = cache.segments
    aggregator = DensityAggregator(
        precision=config.precision,
        on_progress=on_progress,
    )
    densities = aggregator.aggregate(segments)

    intersection_count = 0
    subsegment_count = 0

    if config.randomize:
        if rng is None:
            rng = np.random.default_rng(config.seed)
        policy = RandomizedIntensityPolicy(
            max_density=config.max_density,
            rng=rng,
            jitter=config.jitter,
        )
        assignment = policy.assign(segments, config.precision)
        intensities = assignment.intensities
        intersection_count = assignment.intersection_count
        subsegment_count = len(assignment.subsegments)
    else:
        intensities = DirectIntensityPolicy(config.max_density).assign(
            segments, densities, config.precision
        )

    records = _build_records(
        cache.tracks, segments, intensities, densities, aggregator
    )

    stats = AggregationStats(
        track_count=len(cache.tracks),
        segment_count=len(segments),
        bucket_count=len(densities),
        intersection_count=intersection_count,
        subsegment_count=subsegment_count,
        max_bucket_density=max(densities.values(), default=0),
    )

    logger.info(
        f"Aggregation complete: {stats.segment_count} segments, "
        f"{stats.bucket_count} buckets, randomize={config.randomize}"
    )

    return AggregationResult(config=config, records=records, stats=stats)


def _build_records(
    tracks: Sequence[Track],
    segments: Sequence[Segment],
    intensities: Sequence[int],
    densities: Dict[BucketKey, int],
    aggregator: DensityAggregator,
) -> List[HeatmapRecord]:
    records: List[HeatmapRecord] = []
    for segment, intensity in zip(segments, intensities):
        track = tracks[segment.track_index]
        records.append(
            HeatmapRecord(
                start=PointInput(lat=segment.start.lat, lon=segment.start.lon),
                end=PointInput(lat=segment.end.lat, lon=segment.end.lon),
                intensity=intensity,
                density=lookup_density(densities, aggregator.key(segment)),
                track_id=segment.track_id,
                track_index=segment.track_index,
                segment_index=segment.segment_index,
                track_name=track.display_name,
            )
        )
    return records
