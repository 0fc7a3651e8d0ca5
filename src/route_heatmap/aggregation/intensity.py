"""
Intensity Mapper
================

Maps raw bucket densities to a bounded display intensity.

Two policies are provided:

Direct Policy:
    intensity = min(density, max_density)
    Pure and stateless. A segment whose bucket is missing from the density
    mapping counts as density 1.

Randomized Policy:
    Preserves the relative overlap structure while adding bounded noise,
    simulating realistic usage variance.

    1. Group segments by track
    2. Map each rounded endpoint to the set of tracks touching it; points
       touched by >= 2 tracks are intersection points
    3. Split each track's segments into route sub-segments, closing a run
       after any segment whose end point is an intersection point
    4. overlap_count = max tracks touching any endpoint of the run (>= 1)
    5. base = min(overlap_count, max_density); draw v ~ U[-jitter, +jitter]
       once per run; intensity = clamp(round(base + v), 1, max_density)

    All segments of one run share the same intensity. Results vary between
    invocations unless a seeded generator is injected.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np

from route_heatmap.aggregation.density import lookup_density, segment_key
from route_heatmap.aggregation.segmenter import group_by_track
from route_heatmap.models.segment import BucketKey, RouteSubSegment, Segment
from route_heatmap.models.track import Point, round_half_up


logger = logging.getLogger(__name__)


# Intensity assigned to a segment that no sub-segment claims
FALLBACK_INTENSITY = 1


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))


# =============================================================================
# Direct Policy
# =============================================================================

class DirectIntensityPolicy:
    """
    Caps bucket density at max_density.

    Example:
        policy = DirectIntensityPolicy(max_density=10)
        intensities = policy.assign(segments, densities, precision=10000)
    """

    def __init__(self, max_density: int = 10) -> None:
        """
        Initialize direct policy.

        Args:
            max_density: Intensity cap, must be >= 1
        """
        if max_density < 1:
            raise ValueError("max_density must be >= 1")
        self.max_density = max_density

    def intensity_for(self, density: int) -> int:
        """Intensity for a single density value."""
        return clamp(density, 1, self.max_density)

    def assign(
        self,
        segments: Sequence[Segment],
        densities: Dict[BucketKey, int],
        precision: float,
    ) -> List[int]:
        """
        Assign an intensity to every segment.

        Args:
            segments: Segments to annotate
            densities: Bucket densities at the same precision
            precision: Rounding multiplier used to build the densities

        Returns:
            Intensities aligned with segments
        """
        return [
            self.intensity_for(lookup_density(densities, segment_key(s, precision)))
            for s in segments
        ]


# =============================================================================
# Randomized Policy Helpers
# =============================================================================

def build_point_track_index(
    segments: Sequence[Segment],
    precision: float,
) -> Dict[Point, Set[int]]:
    """
    Map every rounded endpoint to the tracks that touch it.

    Tracks are identified by their index in the input collection.

    Args:
        segments: All segments across all tracks
        precision: Rounding multiplier

    Returns:
        Rounded point -> set of track indices
    """
    index: Dict[Point, Set[int]] = {}
    for segment in segments:
        for point in (segment.start, segment.end):
            index.setdefault(point.rounded(precision), set()).add(segment.track_index)
    return index


def find_intersection_points(point_tracks: Dict[Point, Set[int]]) -> Set[Point]:
    """Rounded points touched by two or more distinct tracks."""
    return {point for point, tracks in point_tracks.items() if len(tracks) >= 2}


def overlap_count(
    segments: Sequence[Segment],
    point_tracks: Dict[Point, Set[int]],
    precision: float,
) -> int:
    """
    Max number of distinct tracks touching any endpoint of the segments.

    Returns at least 1.
    """
    best = 1
    for segment in segments:
        for point in (segment.start, segment.end):
            best = max(best, len(point_tracks.get(point.rounded(precision), ())))
    return best


def split_route_subsegments(
    track_segments: Sequence[Segment],
    intersections: Set[Point],
    point_tracks: Dict[Point, Set[int]],
    precision: float,
) -> List[RouteSubSegment]:
    """
    Split one track's ordered segments at intersection points.

    A run is closed after any segment whose end point (rounded) is an
    intersection point, and at the end of the list.

    Args:
        track_segments: One track's segments, in track order
        intersections: Rounded intersection points
        point_tracks: Rounded point -> track indices
        precision: Rounding multiplier

    Returns:
        Sub-segments in track order; empty for an empty list
    """
    runs: List[RouteSubSegment] = []
    current: List[Segment] = []

    for segment in track_segments:
        current.append(segment)
        if segment.end.rounded(precision) in intersections:
            runs.append(_close_run(current, point_tracks, precision))
            current = []

    if current:
        runs.append(_close_run(current, point_tracks, precision))

    return runs


def _close_run(
    segments: List[Segment],
    point_tracks: Dict[Point, Set[int]],
    precision: float,
) -> RouteSubSegment:
    return RouteSubSegment(
        track_index=segments[0].track_index,
        segments=tuple(segments),
        overlap_count=overlap_count(segments, point_tracks, precision),
    )


def spread_intensities(
    segments: Sequence[Segment],
    subsegments: Sequence[RouteSubSegment],
    drawn: Sequence[int],
) -> List[int]:
    """
    Give every segment the intensity drawn for its sub-segment.

    Segments are matched by (track_index, segment_index). A segment no
    sub-segment claims gets FALLBACK_INTENSITY.

    Args:
        segments: All segments, in output order
        subsegments: Route sub-segments
        drawn: One intensity per sub-segment

    Returns:
        Intensities aligned with segments
    """
    by_position: Dict[Tuple[int, int], int] = {}
    for subsegment, intensity in zip(subsegments, drawn):
        for segment in subsegment.segments:
            by_position[(segment.track_index, segment.segment_index)] = intensity

    intensities: List[int] = []
    unmatched = 0
    for segment in segments:
        intensity = by_position.get((segment.track_index, segment.segment_index))
        if intensity is None:
            unmatched += 1
            intensity = FALLBACK_INTENSITY
        intensities.append(intensity)

    if unmatched:
        logger.warning(f"{unmatched} segments matched no sub-segment")

    return intensities


@dataclass(frozen=True, slots=True)
class RandomizedAssignment:
    """
    Output of the randomized policy.

    Attributes:
        intensities: Intensities aligned with the input segments
        subsegments: Route sub-segments the intensities were drawn for
        intersection_count: Number of intersection points found
    """

    intensities: List[int]
    subsegments: List[RouteSubSegment]
    intersection_count: int


# =============================================================================
# Randomized Policy
# =============================================================================

class RandomizedIntensityPolicy:
    """
    Overlap-aware intensity with one random draw per route sub-segment.

    Attributes:
        max_density: Intensity cap
        jitter: Half-width of the uniform variation
        rng: numpy Generator used for draws

    Example:
        policy = RandomizedIntensityPolicy(max_density=10, rng=np.random.default_rng(7))
        assignment = policy.assign(segments, precision=10000)
    """

    def __init__(
        self,
        max_density: int = 10,
        rng: Optional[np.random.Generator] = None,
        jitter: float = 0.2,
    ) -> None:
        """
        Initialize randomized policy.

        Args:
            max_density: Intensity cap, must be >= 1
            rng: Random generator; an unseeded one is created if None
            jitter: Variation half-width in [0, 0.5)
        """
        if max_density < 1:
            raise ValueError("max_density must be >= 1")
        if not 0 <= jitter < 0.5:
            raise ValueError("jitter must be in [0, 0.5)")

        self.max_density = max_density
        self.jitter = jitter
        self.rng = rng if rng is not None else np.random.default_rng()

    def draw_intensity(self, overlap: int) -> int:
        """Jittered intensity for one sub-segment."""
        base = min(overlap, self.max_density)
        variation = float(self.rng.uniform(-self.jitter, self.jitter))
        return clamp(round_half_up(base + variation), 1, self.max_density)

    def assign(
        self,
        segments: Sequence[Segment],
        precision: float,
    ) -> RandomizedAssignment:
        """
        Assign jittered intensities to every segment.

        Args:
            segments: All segments across all tracks
            precision: Rounding multiplier

        Returns:
            RandomizedAssignment with intensities aligned to segments
        """
        point_tracks = build_point_track_index(segments, precision)
        intersections = find_intersection_points(point_tracks)

        subsegments: List[RouteSubSegment] = []
        for track_segments in group_by_track(segments).values():
            subsegments.extend(
                split_route_subsegments(
                    track_segments, intersections, point_tracks, precision
                )
            )

        drawn = [self.draw_intensity(s.overlap_count) for s in subsegments]
        intensities = spread_intensities(segments, subsegments, drawn)

        logger.info(
            f"Randomized intensities: {len(intersections)} intersections, "
            f"{len(subsegments)} sub-segments"
        )

        return RandomizedAssignment(
            intensities=intensities,
            subsegments=subsegments,
            intersection_count=len(intersections),
        )
