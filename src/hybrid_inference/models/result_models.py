"""
Output data models: inference results, cache entries and metrics snapshots.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from hybrid_inference.models.enums import BreakerState, TierName


class InferenceResult(BaseModel):
    """
    Suggestion produced by a tier.

    Immutable once constructed. The same instance is returned from the
    cache on later hits.
    """
    model_config = ConfigDict(frozen=True)

    payload: Dict[str, Any] = Field(..., description="Suggestion fields (type, implementation, ...)")
    confidence: float = Field(..., ge=0.0, le=1.0)
    safety_score: float = Field(..., ge=0.0, le=1.0)
    rationale: str = Field(default="", description="Free-form reasoning from the backend")
    tier: TierName = Field(..., description="Tier that produced the result")
    model: Optional[str] = Field(default=None, description="Backend model identifier, when known")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CacheEntry(BaseModel):
    """Result cache entry, owned by ResultCache."""
    model_config = ConfigDict(frozen=True)

    result: InferenceResult
    confidence: float = Field(..., ge=0.0, le=1.0)
    stored_at: float = Field(..., description="Cache clock reading at write time (seconds)")
    tier_version: str = Field(..., description="Tier and model that produced the result")


class BreakerStatus(BaseModel):
    """Read-only view of one tier's breaker."""
    model_config = ConfigDict(frozen=True)

    state: BreakerState
    consecutive_failures: int = Field(..., ge=0)


class MetricsSnapshot(BaseModel):
    """
    Read-only aggregate of outcome counters.

    Consistency is per field: counters may come from slightly different
    instants under concurrent writes. Top-level consecutive_failures and
    breaker_state reflect the primary remote tier; every tier is listed
    under `breakers`.
    """
    model_config = ConfigDict(frozen=True)

    total_errors: int = Field(..., ge=0)
    rate_limit_errors: int = Field(..., ge=0)
    network_errors: int = Field(..., ge=0)
    auth_errors: int = Field(..., ge=0)
    errors_by_category: Dict[str, int] = Field(default_factory=dict)
    consecutive_failures: int = Field(default=0, ge=0)
    breaker_state: BreakerState = Field(default=BreakerState.CLOSED)
    breakers: Dict[str, BreakerStatus] = Field(default_factory=dict)
