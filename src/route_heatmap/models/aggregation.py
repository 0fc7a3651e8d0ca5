"""
Aggregation Configuration Model
===============================

The explicit configuration object passed into the aggregation engine.

Changing any field invalidates a previous result: precision changes
bucket membership, max_density changes the cap, randomize switches the
intensity policy.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from route_heatmap.models.track import TrackInput


class AggregationConfig(BaseModel):
    """
    Explicit configuration for one aggregation run.

    Attributes:
        precision: Rounding multiplier; higher is finer
        max_density: Intensity cap
        randomize: Use the randomized intensity policy
        seed: Seed for the randomized policy (None = unseeded)
        jitter: Half-width of the uniform variation drawn per sub-segment
    """

    precision: float = Field(
        default=10000.0,
        gt=0,
        description="Rounding multiplier: round(value * precision) / precision",
    )

    max_density: int = Field(
        default=10,
        ge=1,
        description="Maximum intensity value",
    )

    randomize: bool = Field(
        default=False,
        description="Use randomized, overlap-aware intensity",
    )

    seed: Optional[int] = Field(
        default=None,
        description="Seed for the randomized policy",
    )

    jitter: float = Field(
        default=0.2,
        ge=0.0,
        lt=0.5,
        description="Uniform variation range [-jitter, +jitter]",
    )


class AggregateRequest(BaseModel):
    """
    One-shot aggregation request.

    Attributes:
        tracks: Tracks to aggregate
        config: Configuration; service defaults apply when omitted
    """

    tracks: List[TrackInput] = Field(
        default_factory=list,
        description="Tracks to aggregate",
    )

    config: Optional[AggregationConfig] = Field(
        default=None,
        description="Aggregation configuration (defaults from settings)",
    )
