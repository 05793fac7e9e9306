"""
Input data models for inference requests.

An InferenceRequest is immutable per call and safe to share across
concurrent tasks.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hybrid_inference.models.enums import SafetyPolicy


class EventContext(BaseModel):
    """
    Triggering event for a suggestion.

    Describes a state change on a single entity, as observed by the
    upstream event pipeline.
    """
    model_config = ConfigDict(frozen=True)

    entity_id: str = Field(..., description="Entity identifier (e.g., 'light.kitchen')")
    event_kind: str = Field(..., description="Event kind (e.g., 'state_changed')")
    old_state: Optional[str] = Field(default=None, description="State before the event")
    new_state: Optional[str] = Field(default=None, description="State after the event")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred",
    )
    user_id: str = Field(..., description="Owning user identifier")
    trigger_type: Optional[str] = Field(default=None, description="Automation trigger type, if any")
    condition_type: Optional[str] = Field(default=None, description="Automation condition type, if any")
    action_type: Optional[str] = Field(default=None, description="Automation action type, if any")


class Preferences(BaseModel):
    """User preferences that shape tier selection and acceptance."""
    model_config = ConfigDict(frozen=True)

    confidence_threshold: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Minimum local-tier confidence; falls back to LOCAL_CONFIDENCE_THRESHOLD",
    )
    preferred_model: Optional[str] = Field(
        default=None,
        description="Overrides the primary remote tier's model",
    )
    safety_policy: SafetyPolicy = Field(default=SafetyPolicy.BALANCED)
    local_processing: bool = Field(
        default=False,
        description="Opt-in to the local tier",
    )


class InferenceRequest(BaseModel):
    """Complete request submitted to the orchestrator."""
    model_config = ConfigDict(frozen=True)

    context: EventContext
    preferences: Preferences = Field(default_factory=Preferences)
