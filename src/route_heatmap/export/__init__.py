"""
Export Module
=============

Compact snapshot export and import for precomputed heatmaps.
"""

from route_heatmap.export.snapshot import (
    SnapshotFormatError,
    SnapshotMetadata,
    build_snapshot,
    read_snapshot,
    snapshot_to_features,
    write_snapshot,
)

__all__ = [
    "SnapshotFormatError",
    "SnapshotMetadata",
    "build_snapshot",
    "read_snapshot",
    "snapshot_to_features",
    "write_snapshot",
]
