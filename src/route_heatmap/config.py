"""
Route Heatmap Configuration
===========================

This module handles configuration loading for the heatmap service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    ROUTE_HEATMAP_PRECISION     -> aggregation.precision
    ROUTE_HEATMAP_MAX_DENSITY   -> aggregation.max_density
    ROUTE_HEATMAP_RANDOMIZE     -> aggregation.randomize
    ROUTE_HEATMAP_SEED          -> aggregation.seed
    ROUTE_HEATMAP_JITTER        -> aggregation.jitter
    ROUTE_HEATMAP_SNAPSHOT_PATH -> snapshot.output_path
    ROUTE_HEATMAP_PORT          -> server.port
    ROUTE_HEATMAP_LOG_LEVEL     -> logging.level
    PORT                        -> server.port (Cloud Run)

Example:
    from route_heatmap.config import settings

    print(settings.aggregation.precision)
    print(settings.aggregation.to_config())
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from route_heatmap.models.aggregation import AggregationConfig


logger = logging.getLogger(__name__)


_TRUE_VALUES = {"1", "true", "yes", "on"}


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="route-heatmap", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class AggregationSettings(AggregationConfig):
    """
    Default aggregation parameters.

    Shares fields and bounds with AggregationConfig; the service uses
    these values until PUT /config replaces them.
    """

    def to_config(self) -> AggregationConfig:
        """Build the explicit configuration object for the engine."""
        return AggregationConfig(**self.model_dump())


class SnapshotConfig(BaseModel):
    """Compact snapshot export configuration."""

    output_path: str = Field(
        default="./data/heatmap-data.json",
        description="Where GET /snapshot?save=true writes the snapshot",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the route heatmap service.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    aggregation: AggregationSettings = Field(default_factory=AggregationSettings)
    snapshot: SnapshotConfig = Field(default_factory=SnapshotConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    # Find config file
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Aggregation settings
    if env_precision := os.environ.get("ROUTE_HEATMAP_PRECISION"):
        config_data.setdefault("aggregation", {})["precision"] = float(env_precision)
    if env_max := os.environ.get("ROUTE_HEATMAP_MAX_DENSITY"):
        config_data.setdefault("aggregation", {})["max_density"] = int(env_max)
    if env_random := os.environ.get("ROUTE_HEATMAP_RANDOMIZE"):
        config_data.setdefault("aggregation", {})["randomize"] = (
            env_random.strip().lower() in _TRUE_VALUES
        )
    if env_seed := os.environ.get("ROUTE_HEATMAP_SEED"):
        config_data.setdefault("aggregation", {})["seed"] = int(env_seed)
    if env_jitter := os.environ.get("ROUTE_HEATMAP_JITTER"):
        config_data.setdefault("aggregation", {})["jitter"] = float(env_jitter)

    # Snapshot settings
    if env_snapshot := os.environ.get("ROUTE_HEATMAP_SNAPSHOT_PATH"):
        config_data.setdefault("snapshot", {})["output_path"] = env_snapshot

    # Server settings (Cloud Run uses PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("ROUTE_HEATMAP_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("ROUTE_HEATMAP_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
