"""
Pydantic data models for the hybrid inference layer.

Includes:
- Enums (ErrorCategory, BreakerState, TierName, SafetyPolicy)
- Request models (EventContext, Preferences, InferenceRequest)
- Result models (InferenceResult, CacheEntry, BreakerStatus, MetricsSnapshot)
- LLM models (ChatMessage, LLMGenerationRequest, LLMGenerationResponse)
"""

from hybrid_inference.models.enums import BreakerState, ErrorCategory, SafetyPolicy, TierName
from hybrid_inference.models.llm_models import (
    ChatMessage,
    LLMGenerationRequest,
    LLMGenerationResponse,
)
from hybrid_inference.models.request_models import EventContext, InferenceRequest, Preferences
from hybrid_inference.models.result_models import (
    BreakerStatus,
    CacheEntry,
    InferenceResult,
    MetricsSnapshot,
)

__all__ = [
    # Enums
    "BreakerState",
    "ErrorCategory",
    "SafetyPolicy",
    "TierName",
    # Request models
    "EventContext",
    "Preferences",
    "InferenceRequest",
    # Result models
    "InferenceResult",
    "CacheEntry",
    "BreakerStatus",
    "MetricsSnapshot",
    # LLM models
    "ChatMessage",
    "LLMGenerationRequest",
    "LLMGenerationResponse",
]
