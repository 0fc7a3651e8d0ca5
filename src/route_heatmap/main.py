"""
Route Heatmap Service
=====================

FastAPI entry point exposing the aggregation engine to a presentation layer.

The service holds one track collection and one current configuration.
Changing either recomputes the full result and replaces the previous one;
readers never see a partially built result.

Endpoints:
    GET  /           - Service information
    GET  /health     - Liveness probe
    GET  /ready      - Readiness probe (tracks loaded + result available?)
    PUT  /tracks     - Replace the track collection and recompute
    PUT  /config     - Replace the aggregation configuration and recompute
    GET  /records    - Current records
    GET  /features   - Current records as a GeoJSON FeatureCollection
    GET  /snapshot   - Compact snapshot of the current result
    GET  /stats      - Aggregation counts and summary
    POST /aggregate  - Stateless one-shot aggregation
"""

import logging
import os
import threading
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from route_heatmap.aggregation import HeatmapEngine, aggregate
from route_heatmap.config import settings
from route_heatmap.export import build_snapshot, write_snapshot
from route_heatmap.models import (
    AggregateRequest,
    AggregationConfig,
    AggregationResult,
    TrackInput,
)
from route_heatmap.observability import summarize


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_engine: Optional[HeatmapEngine] = None
_config: AggregationConfig = settings.aggregation.to_config()
_engine_lock = threading.Lock()
_startup_time: float = 0.0

# Error counters
_aggregation_error_count: int = 0


# =============================================================================
# Getters
# =============================================================================

def get_engine() -> Optional[HeatmapEngine]:
    return _engine

def get_current_config() -> AggregationConfig:
    return _config

def get_current_result() -> Optional[AggregationResult]:
    return _engine.result if _engine else None

def is_ready() -> bool:
    engine = get_engine()
    return engine is not None and bool(engine.tracks) and engine.result is not None


def _no_result() -> JSONResponse:
    return JSONResponse(
        {"error": "No aggregation result available yet"},
        status_code=503,
    )


def _recompute(config: AggregationConfig) -> AggregationResult:
    """Recompute the engine result under the lock."""
    global _aggregation_error_count

    engine = get_engine()
    if engine is None:
        raise RuntimeError("Engine not initialized")

    try:
        return engine.configure(config)
    except Exception as e:
        _aggregation_error_count += 1
        logger.error(f"Aggregation error: {e}")
        raise


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    global _engine, _startup_time

    _startup_time = time.time()
    logger.info(f"Starting {settings.service.name} {settings.service.version}")

    port = int(os.environ.get("PORT", settings.server.port))
    logger.info(f"Configured port: {port}")

    _engine = HeatmapEngine()
    logger.info(
        f"Default aggregation: precision={_config.precision}, "
        f"max_density={_config.max_density}, randomize={_config.randomize}"
    )

    yield

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="RouteHeatmap",
    description="Segment-density aggregation for GPS track heatmaps",
    version=settings.service.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "RouteHeatmap",
        "version": settings.service.version,
        "name": settings.service.name,
        "status": "running",
        "config": get_current_config().model_dump(mode="json"),
    })


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness probe - is a result available?

    Returns 200 once tracks are loaded and aggregated, 503 otherwise.
    """
    engine = get_engine()
    track_count = len(engine.tracks) if engine else 0

    if is_ready():
        return JSONResponse({
            "status": "ready",
            "tracks_loaded": track_count,
        })
    return JSONResponse(
        {
            "status": "not_ready",
            "tracks_loaded": track_count,
        },
        status_code=503,
    )


@app.put("/tracks")
def put_tracks(tracks: List[TrackInput]) -> JSONResponse:
    """Replace the track collection and recompute with the current config."""
    engine = get_engine()
    if engine is None:
        return _no_result()

    with _engine_lock:
        engine.load_tracks([t.to_track() for t in tracks])
        result = _recompute(get_current_config())

    return JSONResponse(result.stats.model_dump(mode="json"))


@app.put("/config")
def put_config(config: AggregationConfig) -> JSONResponse:
    """Replace the configuration and recompute from cached segments."""
    global _config

    with _engine_lock:
        _config = config
        engine = get_engine()
        if engine is None or (not engine.tracks and engine.result is None):
            return JSONResponse({"config": config.model_dump(mode="json")})
        result = _recompute(config)

    return JSONResponse({
        "config": config.model_dump(mode="json"),
        "stats": result.stats.model_dump(mode="json"),
    })


@app.get("/records")
async def records() -> JSONResponse:
    """Current records."""
    result = get_current_result()
    if result is None:
        return _no_result()
    return JSONResponse([r.model_dump(mode="json") for r in result.records])


@app.get("/features")
async def features() -> JSONResponse:
    """Current records as a GeoJSON FeatureCollection."""
    result = get_current_result()
    if result is None:
        return _no_result()
    return JSONResponse(result.to_feature_collection())


@app.get("/snapshot")
def snapshot(save: bool = False) -> JSONResponse:
    """
    Compact snapshot of the current result.

    With save=true the snapshot is also written to snapshot.output_path.
    """
    result = get_current_result()
    if result is None:
        return _no_result()

    payload = build_snapshot(result)
    if save:
        write_snapshot(payload, settings.snapshot.output_path)
    return JSONResponse(payload)


@app.get("/stats")
async def stats() -> JSONResponse:
    """Aggregation counts and summary analytics."""
    result = get_current_result()
    if result is None:
        return _no_result()

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "aggregation_errors": _aggregation_error_count,
        "config": result.config.model_dump(mode="json"),
        "stats": result.stats.model_dump(mode="json"),
        "summary": summarize(result).to_dict(),
    })


@app.post("/aggregate")
def aggregate_once(request: AggregateRequest) -> JSONResponse:
    """Stateless one-shot aggregation; does not touch the held result."""
    config = request.config or get_current_config()
    tracks = [t.to_track() for t in request.tracks]
    result = aggregate(tracks, config)
    return JSONResponse(result.model_dump(mode="json"))


# =============================================================================
# Main Entry Point
# =============================================================================

def run() -> None:
    """Run the service with uvicorn."""
    import uvicorn

    # Cloud Run uses PORT env var
    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "route_heatmap.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    run()
