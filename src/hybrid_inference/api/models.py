"""
API-specific response models for FastAPI endpoints.

These models wrap the core domain models (InferenceResult, MetricsSnapshot)
with API-specific metadata and status information.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from hybrid_inference.models.result_models import BreakerStatus, InferenceResult


class SuggestionResponse(BaseModel):
    """Response for the suggestion endpoint."""

    status: str = Field(
        description="Request status",
        examples=["success"]
    )
    result: InferenceResult = Field(
        description="Suggestion produced by the winning tier"
    )
    cache_hit: bool = Field(
        description="Whether the result was served from the cache"
    )
    final_tier: Optional[str] = Field(
        default=None,
        description="Tier that produced the result",
        examples=["local", "primary", "secondary"]
    )
    total_attempts: int = Field(
        description="Remote tier calls made for this request",
        ge=0
    )
    tiers_skipped: list[str] = Field(
        default_factory=list,
        description="Remote tiers skipped because their circuit was open"
    )
    processing_duration_ms: int = Field(
        description="Time spent resolving the request",
        ge=0
    )


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = Field(
        description="Overall health status",
        examples=["healthy", "degraded", "unhealthy"]
    )
    version: str = Field(
        description="Service version",
        examples=["0.1.0"]
    )
    services: dict[str, str] = Field(
        description="Reachability of each remote tier",
        examples=[{"primary": "ok", "secondary": "unreachable"}]
    )
    breakers: dict[str, BreakerStatus] = Field(
        default_factory=dict,
        description="Circuit breaker status per remote tier"
    )
    processing_strategy: dict[str, Any] = Field(
        default_factory=dict,
        description="Cache, local tier and retry configuration in effect"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Health check timestamp (UTC)"
    )
