"""
Heatmap Snapshot
================

Compact, precomputed interchange format for aggregated segments.

A snapshot is a one-way export: it keeps rounded endpoints and intensity
only, so it cannot be re-aggregated at another precision.

Snapshot Format:
    {
        "metadata": {
            "generatedAt": "2026-10-19T12:00:00+00:00",
            "totalRoutes": 42,
            "totalFeatures": 18231,
            "routeNames": ["Ridge Walk", ...],
            "format": "compact",
            "coordinatePrecision": 4
        },
        "format": {
            "description": "Ultra-compact format: [lon1, lat1, lon2, lat2, intensity]",
            "structure": "Each feature is [longitude1, latitude1, longitude2, latitude2, intensity]"
        },
        "features": [
            [-2.4999, 54.5001, -2.4998, 54.5002, 3],
            ...
        ]
    }

Readers convert compact features back to GeoJSON LineString features with
snapshot_to_features(). Payloads in any other format pass through as-is.
"""

import json
import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from route_heatmap.models.output import AggregationResult
from route_heatmap.models.track import round_coordinate


logger = logging.getLogger(__name__)


COMPACT_FORMAT = "compact"

FORMAT_DESCRIPTION = {
    "description": "Ultra-compact format: [lon1, lat1, lon2, lat2, intensity]",
    "structure": (
        "Each feature is [longitude1, latitude1, longitude2, latitude2, intensity]"
    ),
}


class SnapshotFormatError(Exception):
    """Raised when a snapshot payload is missing required sections."""
    pass


class SnapshotMetadata(BaseModel):
    """
    Snapshot header.

    Attributes:
        generated_at: ISO-8601 generation timestamp (UTC)
        total_routes: Number of tracks aggregated
        total_features: Number of compact features
        route_names: Display names of the aggregated tracks
        format: Feature encoding, "compact"
        coordinate_precision: Decimal places kept in coordinates

    Serialised with camelCase keys, the names offline snapshot
    generators and static loaders use.
    """

    model_config = ConfigDict(populate_by_name=True)

    generated_at: str = Field(..., alias="generatedAt", description="ISO-8601 generation time")
    total_routes: int = Field(..., alias="totalRoutes", ge=0)
    total_features: int = Field(..., alias="totalFeatures", ge=0)
    route_names: List[str] = Field(default_factory=list, alias="routeNames")
    format: str = Field(default=COMPACT_FORMAT)
    coordinate_precision: int = Field(..., alias="coordinatePrecision", ge=0)


def decimal_places(precision: float) -> int:
    """
    Decimal places implied by a precision multiplier.

    10000 -> 4, 1000 -> 3. Non-powers of ten round to the nearest
    place; multipliers below 1 give 0.
    """
    return max(0, int(round(math.log10(precision))))


def compact_features(result: AggregationResult) -> List[List[Union[float, int]]]:
    """
    Encode records as [lon1, lat1, lon2, lat2, intensity].

    Coordinates are rounded at the result's precision.
    """
    precision = result.config.precision
    return [
        [
            round_coordinate(r.start.lon, precision),
            round_coordinate(r.start.lat, precision),
            round_coordinate(r.end.lon, precision),
            round_coordinate(r.end.lat, precision),
            r.intensity,
        ]
        for r in result.records
    ]


def build_snapshot(
    result: AggregationResult,
    route_names: Optional[Sequence[str]] = None,
    generated_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Build a compact snapshot from an aggregation result.

    Args:
        result: Aggregation result to export
        route_names: Track display names; defaults to the names found in
            the records, in track order
        generated_at: Generation time (defaults to now, UTC)

    Returns:
        JSON-serialisable snapshot payload
    """
    features = compact_features(result)

    if route_names is None:
        names: Dict[int, str] = {}
        for record in result.records:
            names.setdefault(record.track_index, record.track_name or record.track_id)
        route_names = [names[i] for i in sorted(names)]

    metadata = SnapshotMetadata(
        generated_at=(generated_at or datetime.now(timezone.utc)).isoformat(),
        total_routes=result.stats.track_count,
        total_features=len(features),
        route_names=list(route_names),
        coordinate_precision=decimal_places(result.config.precision),
    )

    return {
        "metadata": metadata.model_dump(by_alias=True),
        "format": dict(FORMAT_DESCRIPTION),
        "features": features,
    }


def write_snapshot(snapshot: Dict[str, Any], path: Union[str, Path]) -> Path:
    """
    Write a snapshot as JSON, one feature per line.

    Args:
        snapshot: Payload from build_snapshot()
        path: Output file path (parent directories are created)

    Returns:
        Path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    features = snapshot.get("features", [])
    with path.open("w", encoding="utf-8") as f:
        f.write("{\n")
        f.write(f'  "metadata": {json.dumps(snapshot["metadata"], indent=2)},\n')
        f.write(f'  "format": {json.dumps(snapshot.get("format", FORMAT_DESCRIPTION))},\n')
        f.write('  "features": [\n')
        for i, feature in enumerate(features):
            separator = "," if i < len(features) - 1 else ""
            f.write(f"    {json.dumps(feature)}{separator}\n")
        f.write("  ]\n")
        f.write("}\n")

    logger.info(f"Wrote snapshot with {len(features)} features to {path}")
    return path


def read_snapshot(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read and validate a snapshot file.

    Raises:
        FileNotFoundError: If the file does not exist
        SnapshotFormatError: If metadata or features are missing
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict) or "metadata" not in data or "features" not in data:
        raise SnapshotFormatError(f"Snapshot {path} is missing metadata or features")

    metadata = data["metadata"]
    logger.info(
        f"Loaded snapshot: routes={metadata.get('totalRoutes')}, "
        f"features={metadata.get('totalFeatures')}, "
        f"generated_at={metadata.get('generatedAt')}, "
        f"format={metadata.get('format')}"
    )
    return data


def snapshot_to_features(snapshot: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert a compact snapshot to GeoJSON features for rendering.

    Compact features become LineString features whose intensity and
    density are both the stored intensity. Other formats are returned
    unchanged.

    Returns:
        {"metadata": ..., "features": [...]}
    """
    metadata = snapshot.get("metadata", {})
    if metadata.get("format") != COMPACT_FORMAT:
        return snapshot

    features = []
    for index, compact in enumerate(snapshot.get("features", [])):
        lon1, lat1, lon2, lat2, intensity = compact
        features.append(
            {
                "type": "Feature",
                "id": index,
                "properties": {"intensity": intensity, "density": intensity},
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[lon1, lat1], [lon2, lat2]],
                },
            }
        )

    return {"metadata": metadata, "features": features}
