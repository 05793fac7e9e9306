"""
LLM-specific data models for the remote request/response cycle.

These models are internal to the remote tiers and describe the raw
chat-completion exchange. They are separate from InferenceResult so the
remote client implementation can change without touching the orchestrator.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """One message in a chat-completion prompt."""
    model_config = ConfigDict(frozen=True)

    role: str = Field(..., description="'system' or 'user'")
    content: str


class LLMGenerationRequest(BaseModel):
    """
    Internal request model for chat-completion generation.

    Standardized format handed to any remote client implementation.
    """
    model_config = ConfigDict(frozen=True)

    messages: list[ChatMessage] = Field(..., min_length=1)
    model: str = Field(..., description="Model identifier (e.g., 'gpt-4o-mini')")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(default=1000, ge=1, le=8192, description="Maximum tokens to generate")


class LLMGenerationResponse(BaseModel):
    """
    Internal response model from chat-completion generation.

    Contains the raw content of the first choice plus metadata for logging.
    Parsing into suggestion fields happens in the validation layer.
    """
    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="First choice message content")
    model_version: str = Field(..., description="Model reported by the backend")
    finish_reason: Optional[str] = Field(default=None)
    prompt_tokens: Optional[int] = Field(default=None)
    completion_tokens: Optional[int] = Field(default=None)
    latency_ms: int = Field(..., ge=0)
    raw_metadata: Dict[str, Any] = Field(default_factory=dict)
