#!/usr/bin/env python3
"""
Service Smoke Test Script
=========================

Standalone script to exercise a running route heatmap service.

This script:
    1. Generates synthetic overlapping tracks around a centre point
    2. Uploads them with PUT /tracks
    3. Sweeps precision values with PUT /config and logs bucket counts
    4. Runs one randomized configuration and checks intensity bounds
    5. Reports a final summary

Prerequisites:
    - The service must be running (python -m route_heatmap.main)
    - Install dependencies: pip install -e ".[scripts]"

Usage:
    python scripts/smoke_aggregate.py --tracks 20
    python scripts/smoke_aggregate.py --url http://localhost:8002 --max-density 5
"""

import argparse
import logging
import os
import sys
from typing import List

import numpy as np
import requests


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


PRECISION_SWEEP = [100000.0, 10000.0, 1000.0]


def synthetic_tracks(
    count: int,
    points_per_track: int,
    seed: int,
    center_lat: float = 54.5,
    center_lon: float = -2.5,
) -> List[dict]:
    """
    Build overlapping tracks sharing a common trunk.

    Every track follows the same trunk for its first half and then
    wanders off in a random direction, so trunk segments overlap.
    """
    rng = np.random.default_rng(seed)
    step = 0.0002
    half = points_per_track // 2

    tracks = []
    for i in range(count):
        points = [
            {"lat": center_lat + k * step, "lon": center_lon}
            for k in range(half)
        ]
        heading = rng.uniform(0, 2 * np.pi)
        lat, lon = points[-1]["lat"], points[-1]["lon"]
        for _ in range(points_per_track - half):
            lat += step * np.cos(heading) + rng.normal(0, step / 10)
            lon += step * np.sin(heading) + rng.normal(0, step / 10)
            points.append({"lat": float(lat), "lon": float(lon)})
        tracks.append({"track_id": f"synthetic-{i}", "name": f"Synthetic {i}", "points": points})
    return tracks


def run_smoke(
    url: str,
    track_count: int,
    points_per_track: int,
    max_density: int,
    seed: int,
) -> dict:
    """
    Run the smoke test.

    Args:
        url: HTTP root of the service
        track_count: Number of synthetic tracks
        points_per_track: Points per synthetic track
        max_density: Intensity cap to configure
        seed: Seed for track generation and randomized policy

    Returns:
        Final results dict
    """
    logger.info("=" * 60)
    logger.info("Route Heatmap Smoke Test")
    logger.info("=" * 60)
    logger.info(f"Service URL: {url}")
    logger.info(f"Tracks: {track_count} x {points_per_track} points")
    logger.info(f"Max density: {max_density}")
    logger.info("=" * 60)

    tracks = synthetic_tracks(track_count, points_per_track, seed)
    response = requests.put(f"{url}/tracks", json=tracks, timeout=30)
    response.raise_for_status()
    logger.info(f"Uploaded tracks: {response.json()}")

    bucket_counts = {}
    for precision in PRECISION_SWEEP:
        response = requests.put(
            f"{url}/config",
            json={"precision": precision, "max_density": max_density},
            timeout=30,
        )
        response.raise_for_status()
        stats = response.json()["stats"]
        bucket_counts[precision] = stats["bucket_count"]
        logger.info("-" * 40)
        logger.info(f"precision={precision}")
        logger.info(f"  Segments: {stats['segment_count']}")
        logger.info(f"  Buckets: {stats['bucket_count']}")
        logger.info(f"  Max bucket density: {stats['max_bucket_density']}")

    response = requests.put(
        f"{url}/config",
        json={
            "precision": 10000.0,
            "max_density": max_density,
            "randomize": True,
            "seed": seed,
        },
        timeout=30,
    )
    response.raise_for_status()

    records = requests.get(f"{url}/records", timeout=30).json()
    intensities = [r["intensity"] for r in records]
    in_bounds = all(1 <= i <= max_density for i in intensities)

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Records: {len(records)}")
    logger.info(f"Bucket counts by precision: {bucket_counts}")
    logger.info(f"Randomized intensities in bounds: {in_bounds}")
    logger.info("=" * 60)

    coarsening_ok = all(
        bucket_counts[fine] >= bucket_counts[coarse]
        for fine, coarse in zip(PRECISION_SWEEP, PRECISION_SWEEP[1:])
    )
    passed = bool(records) and in_bounds and coarsening_ok

    if passed:
        logger.info("✅ SMOKE TEST PASSED")
    else:
        logger.error("❌ SMOKE TEST FAILED")

    return {
        "records": len(records),
        "bucket_counts": bucket_counts,
        "in_bounds": in_bounds,
        "coarsening_ok": coarsening_ok,
        "passed": passed,
    }


def main():
    parser = argparse.ArgumentParser(
        description="Smoke test for a running route heatmap service"
    )
    parser.add_argument(
        "--url",
        type=str,
        default=os.environ.get("ROUTE_HEATMAP_URL", "http://localhost:8002"),
        help="HTTP root of the service",
    )
    parser.add_argument(
        "--tracks",
        type=int,
        default=20,
        help="Number of synthetic tracks (default: 20)",
    )
    parser.add_argument(
        "--points",
        type=int,
        default=200,
        help="Points per synthetic track (default: 200)",
    )
    parser.add_argument(
        "--max-density",
        type=int,
        default=10,
        help="Intensity cap (default: 10)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=7,
        help="Random seed (default: 7)",
    )

    args = parser.parse_args()

    result = run_smoke(
        url=args.url,
        track_count=args.tracks,
        points_per_track=args.points,
        max_density=args.max_density,
        seed=args.seed,
    )

    sys.exit(0 if result["passed"] else 1)


if __name__ == "__main__":
    main()
