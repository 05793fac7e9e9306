"""
Tier backends and their exceptions.

Components:
- LocalTier / CallableLocalTier: Synchronous on-device tier
- RemoteTier: Abstract base class for remote tiers
- ChatCompletionClient: OpenAI-compatible remote tier
- PromptBuilder: Renders prompts from InferenceRequest
- exceptions: Tier-specific exceptions
"""

from hybrid_inference.tiers.exceptions import (
    TierAuthError,
    TierBadRequestError,
    TierConnectionError,
    TierError,
    TierRateLimitError,
    TierResponseError,
    TierServerError,
    TierTimeoutError,
)
from hybrid_inference.tiers.base import CallableLocalTier, LocalTier, RemoteTier
from hybrid_inference.tiers.prompt_builder import PromptBuilder
from hybrid_inference.tiers.openai_client import ChatCompletionClient, validate_request

__all__ = [
    "CallableLocalTier",
    "LocalTier",
    "RemoteTier",
    "ChatCompletionClient",
    "validate_request",
    "PromptBuilder",
    "TierError",
    "TierConnectionError",
    "TierTimeoutError",
    "TierRateLimitError",
    "TierAuthError",
    "TierBadRequestError",
    "TierServerError",
    "TierResponseError",
]
