"""
OpenAI-compatible chat-completion client for remote tiers.

Communicates with POST {base_url}/chat/completions using httpx AsyncClient.
Supports:
- Bearer token auth
- Token bucket backpressure before each call
- HTTP status / transport failure mapping onto TierError subclasses
- Suggestion parsing and schema validation of the first choice

The client makes exactly one HTTP call per generate(). Retries, backoff and
circuit breaking belong to the orchestrator.
"""

import json
import time
from typing import Any, Dict, Optional

import httpx
import pydantic
import structlog

from hybrid_inference.models.enums import TierName
from hybrid_inference.models.llm_models import LLMGenerationRequest, LLMGenerationResponse
from hybrid_inference.models.request_models import InferenceRequest
from hybrid_inference.models.result_models import InferenceResult
from hybrid_inference.resilience.rate_limiter import TokenBucketLimiter
from hybrid_inference.tiers.base import RemoteTier
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
from hybrid_inference.tiers.prompt_builder import PromptBuilder
from hybrid_inference.validation.suggestion_schema import SuggestionValidator

logger = structlog.get_logger(__name__)


def validate_request(request: InferenceRequest) -> None:
    """
    Reject requests that cannot produce a meaningful prompt.

    Raises:
        TierBadRequestError: Empty entity id or event kind
    """
    context = request.context
    if not context.entity_id or not context.entity_id.strip():
        raise TierBadRequestError("Entity ID cannot be empty")
    if not context.event_kind or not context.event_kind.strip():
        raise TierBadRequestError("Event kind cannot be empty")


class ChatCompletionClient(RemoteTier):
    """
    Remote tier backed by an OpenAI-compatible API.

    API Endpoints:
    - POST /chat/completions: Generate completion
    - GET /models: Health check

    Status mapping:
    - 429 -> TierRateLimitError
    - 401/403 -> TierAuthError
    - 400/422 -> TierBadRequestError
    - 5xx -> TierServerError
    - timeout -> TierTimeoutError, other transport failures -> TierConnectionError
    """

    def __init__(
        self,
        name: TierName,
        base_url: str,
        api_key: str,
        model: str,
        timeout: float = 30.0,
        prompt_builder: Optional[PromptBuilder] = None,
        validator: Optional[SuggestionValidator] = None,
        rate_limiter: Optional[TokenBucketLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        connection_limits: Optional[httpx.Limits] = None,
    ):
        """
        Initialize chat-completion client.

        Args:
            name: Tier name
            base_url: API base URL (e.g., https://api.openai.com/v1)
            api_key: Bearer token
            model: Default model
            timeout: Request timeout in seconds
            prompt_builder: Prompt renderer (default templates if omitted)
            validator: Suggestion validator (default schema if omitted)
            rate_limiter: Token bucket, or None to disable backpressure
            transport: httpx transport override (tests use httpx.MockTransport)
            connection_limits: httpx connection pool limits
        """
        super().__init__(name=name, model=model, timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.validator = validator or SuggestionValidator()
        self.rate_limiter = rate_limiter
        self._transport = transport

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0
            )
        self._connection_limits = connection_limits
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                headers={"Authorization": f"Bearer {self._api_key}"},
                transport=self._transport,
            )
            logger.debug("Created new httpx AsyncClient", tier=self.name.value)
        return self._client

    async def generate(
        self, request: InferenceRequest, model_override: Optional[str] = None
    ) -> InferenceResult:
        validate_request(request)

        if self.rate_limiter is not None and not self.rate_limiter.try_acquire():
            raise TierRateLimitError(
                "Client-side rate limit exceeded",
                details={
                    "tier": self.name.value,
                    "retry_after_seconds": round(self.rate_limiter.seconds_until_available(), 3),
                },
            )

        model = model_override or self.model
        generation_request = self.prompt_builder.build_request(request, model=model)
        response = await self.complete(generation_request)
        fields = self.validator.validate(response.content)

        payload = {
            key: value
            for key, value in fields.items()
            if key not in ("confidence", "safety_score", "reasoning")
        }
        try:
            return InferenceResult(
                payload=payload,
                confidence=fields["confidence"],
                safety_score=fields["safety_score"],
                rationale=str(fields.get("reasoning", "")),
                tier=self.name,
                model=response.model_version,
            )
        except pydantic.ValidationError as e:
            raise TierResponseError(
                "Suggestion does not form a valid result",
                details={"tier": self.name.value, "validation_errors": e.errors(include_url=False)},
            ) from e

    async def complete(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """
        Send one chat-completion request.

        POST /chat/completions with payload:
        {
            "model": "gpt-4o-mini",
            "messages": [{"role": "system", ...}, {"role": "user", ...}],
            "max_tokens": 1000,
            "temperature": 0.7
        }

        Raises:
            TierError subclass on any failure
        """
        start_time = time.time()
        payload = {
            "model": request.model,
            "messages": [m.model_dump() for m in request.messages],
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }

        logger.info(
            "Sending chat completion request",
            tier=self.name.value,
            model=request.model,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
        )

        try:
            client = await self._get_client()
            response = await client.post("/chat/completions", json=payload)
        except httpx.TimeoutException as e:
            raise TierTimeoutError(
                f"Request timeout after {self.timeout}s",
                details={"tier": self.name.value, "timeout": self.timeout},
            ) from e
        except httpx.TransportError as e:
            raise TierConnectionError(
                f"Network error: {str(e)}",
                details={"tier": self.name.value, "error_type": type(e).__name__},
            ) from e

        if response.status_code >= 400:
            raise self._error_for_status(response)

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (json.JSONDecodeError, KeyError, IndexError, TypeError) as e:
            raise TierResponseError(
                "Malformed chat completion response",
                details={"tier": self.name.value, "parse_error": str(e)},
                status_code=response.status_code,
            ) from e

        if not isinstance(content, str):
            raise TierResponseError(
                "Chat completion content is not text",
                details={"tier": self.name.value},
                status_code=response.status_code,
            )

        latency_ms = int((time.time() - start_time) * 1000)
        usage = data.get("usage") or {}
        model_version = data.get("model", request.model)

        logger.info(
            "Chat completion successful",
            tier=self.name.value,
            model=model_version,
            latency_ms=latency_ms,
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
        )

        return LLMGenerationResponse(
            content=content,
            model_version=model_version,
            finish_reason=data["choices"][0].get("finish_reason"),
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
            latency_ms=latency_ms,
            raw_metadata={"id": data.get("id")},
        )

    def _error_for_status(self, response: httpx.Response) -> TierError:
        status_code = response.status_code
        details: Dict[str, Any] = {"tier": self.name.value, "status": status_code}
        try:
            body = response.json()
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                details["backend_error"] = body["error"]
        except json.JSONDecodeError:
            details["error_text"] = response.text[:500]

        if status_code == 429:
            return TierRateLimitError("Rate limit exceeded", details=details, status_code=status_code)
        if status_code in (401, 403):
            return TierAuthError("Authentication failed", details=details, status_code=status_code)
        if status_code in (400, 422):
            return TierBadRequestError("Bad request", details=details, status_code=status_code)
        if status_code >= 500:
            return TierServerError(
                f"Server error: {status_code}", details=details, status_code=status_code
            )
        # Other 4xx carry only a status code; the classifier decides
        return TierError(f"Client error: {status_code}", details=details, status_code=status_code)

    async def health_check(self) -> bool:
        """
        Check backend health via GET /models.

        Returns True if the backend responds with 2xx, False otherwise.
        """
        try:
            client = await self._get_client()
            response = await client.get("/models", timeout=5.0)
            response.raise_for_status()
            return True
        except Exception as e:
            logger.warning("Remote tier health check failed", tier=self.name.value, error=str(e))
            return False

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            logger.info("Chat completion client closed", tier=self.name.value)
        self._client = None
