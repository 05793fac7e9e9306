"""
Unit tests for ChatCompletionClient using httpx.MockTransport.
"""

import json

import httpx
import pytest

from hybrid_inference.models.enums import ErrorCategory, TierName
from hybrid_inference.resilience.classifier import classify
from hybrid_inference.resilience.rate_limiter import RateLimitConfig, TokenBucketLimiter
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
from hybrid_inference.tiers.openai_client import ChatCompletionClient

BASE_URL = "http://remote.test/v1"


def completion(content: str, model: str = "gpt-4o-mini-2024") -> dict:
    return {
        "id": "chatcmpl-123",
        "model": model,
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 120, "completion_tokens": 40},
    }


def make_client(handler, **kwargs) -> ChatCompletionClient:
    return ChatCompletionClient(
        name=kwargs.pop("name", TierName.PRIMARY),
        base_url=BASE_URL,
        api_key="test-key",
        model="gpt-4o-mini",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_generate_success_json_content(sample_request):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json=completion(json.dumps({
                "suggestion_type": "optimization",
                "confidence": 0.85,
                "safety_score": 0.92,
                "reasoning": "Motion rarely follows after 23:00",
                "implementation": "Add a time condition",
            })),
        )

    client = make_client(handler)
    result = await client.generate(sample_request)

    assert seen["url"] == f"{BASE_URL}/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["model"] == "gpt-4o-mini"
    assert [m["role"] for m in seen["body"]["messages"]] == ["system", "user"]
    assert "light.kitchen" in seen["body"]["messages"][1]["content"]
    assert seen["body"]["max_tokens"] == 1000

    assert result.tier == TierName.PRIMARY
    assert result.confidence == 0.85
    assert result.safety_score == 0.92
    assert result.rationale == "Motion rarely follows after 23:00"
    assert result.payload == {"suggestion_type": "optimization", "implementation": "Add a time condition"}
    assert result.model == "gpt-4o-mini-2024"

    await client.close()


@pytest.mark.asyncio
async def test_generate_key_value_content_with_defaults(sample_request):
    content = "Suggestion Type: improvement\nConfidence: 0.75\nImplementation: Dim to 30%"

    client = make_client(lambda request: httpx.Response(200, json=completion(content)))
    result = await client.generate(sample_request)

    assert result.confidence == 0.75
    assert result.safety_score == 0.9
    assert result.payload["implementation"] == "Dim to 30%"


@pytest.mark.asyncio
async def test_model_override_is_sent(sample_request):
    seen = {}

    def handler(request):
        seen["model"] = json.loads(request.content)["model"]
        return httpx.Response(200, json=completion("Confidence: 0.8"))

    await make_client(handler).generate(sample_request, model_override="gpt-4o")

    assert seen["model"] == "gpt-4o"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code,error_class,category",
    [
        (429, TierRateLimitError, ErrorCategory.RATE_LIMIT),
        (401, TierAuthError, ErrorCategory.AUTH_ERROR),
        (403, TierAuthError, ErrorCategory.AUTH_ERROR),
        (400, TierBadRequestError, ErrorCategory.BAD_REQUEST),
        (500, TierServerError, ErrorCategory.SERVER_ERROR),
        (503, TierServerError, ErrorCategory.SERVER_ERROR),
    ],
)
async def test_status_mapping(sample_request, status_code, error_class, category):
    client = make_client(
        lambda request: httpx.Response(status_code, json={"error": {"message": "nope", "type": "x"}})
    )

    with pytest.raises(error_class) as exc_info:
        await client.generate(sample_request)

    assert exc_info.value.status_code == status_code
    assert exc_info.value.details["backend_error"]["message"] == "nope"
    assert classify(exc_info.value) == category


@pytest.mark.asyncio
async def test_other_4xx_carries_status_only(sample_request):
    client = make_client(lambda request: httpx.Response(404, text="not found"))

    with pytest.raises(TierError) as exc_info:
        await client.generate(sample_request)

    assert exc_info.value.status_code == 404
    assert exc_info.value.details["error_text"] == "not found"
    assert classify(exc_info.value) == ErrorCategory.UNKNOWN


@pytest.mark.asyncio
async def test_connect_error_maps_to_connection_error(sample_request):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TierConnectionError) as exc_info:
        await make_client(handler).generate(sample_request)

    assert classify(exc_info.value) == ErrorCategory.NETWORK_ERROR


@pytest.mark.asyncio
async def test_timeout_maps_to_timeout_error(sample_request):
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(TierTimeoutError):
        await make_client(handler).generate(sample_request)


@pytest.mark.asyncio
async def test_malformed_body_is_response_error(sample_request):
    client = make_client(lambda request: httpx.Response(200, json={"choices": []}))

    with pytest.raises(TierResponseError) as exc_info:
        await client.generate(sample_request)

    assert classify(exc_info.value) == ErrorCategory.UNKNOWN


@pytest.mark.asyncio
async def test_schema_violation_is_response_error(sample_request):
    client = make_client(lambda request: httpx.Response(200, json=completion('{"confidence": 1.7}')))

    with pytest.raises(TierResponseError):
        await client.generate(sample_request)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    [
        '{"confidence": "nan", "safety_score": 0.9, "reasoning": "r"}',
        '{"confidence": NaN, "safety_score": Infinity, "reasoning": "r"}',
        "Confidence: inf\nSafety Score: -inf",
    ],
)
async def test_non_finite_scores_fall_back(sample_request, content):
    client = make_client(lambda request: httpx.Response(200, json=completion(content)))

    result = await client.generate(sample_request)

    assert result.confidence == 0.5
    assert result.safety_score in (0.5, 0.9)


class PassthroughValidator:
    """Skips the schema so out-of-range scores reach result construction."""

    def validate(self, content):
        return {"suggestion_type": "improvement", "confidence": 1.5, "safety_score": 0.9, "reasoning": "r"}


@pytest.mark.asyncio
async def test_invalid_result_is_response_error(sample_request):
    client = make_client(
        lambda request: httpx.Response(200, json=completion("ignored")),
        validator=PassthroughValidator(),
    )

    with pytest.raises(TierResponseError) as exc_info:
        await client.generate(sample_request)

    assert exc_info.value.details["validation_errors"]
    assert classify(exc_info.value) == ErrorCategory.UNKNOWN


@pytest.mark.asyncio
async def test_empty_entity_rejected_before_call(request_factory):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=completion("Confidence: 0.8"))

    with pytest.raises(TierBadRequestError, match="Entity ID"):
        await make_client(handler).generate(request_factory(entity_id="  "))

    assert calls == []


@pytest.mark.asyncio
async def test_rate_limiter_rejects_when_empty(sample_request, fake_clock):
    limiter = TokenBucketLimiter(RateLimitConfig(requests_per_minute=60, burst_size=1), clock=fake_clock)
    client = make_client(
        lambda request: httpx.Response(200, json=completion("Confidence: 0.8")),
        rate_limiter=limiter,
    )

    await client.generate(sample_request)
    with pytest.raises(TierRateLimitError) as exc_info:
        await client.generate(sample_request)

    assert exc_info.value.details["retry_after_seconds"] == pytest.approx(1.0)
    assert classify(exc_info.value) == ErrorCategory.RATE_LIMIT


@pytest.mark.asyncio
async def test_health_check():
    ok = make_client(lambda request: httpx.Response(200, json={"data": []}))
    down = make_client(lambda request: httpx.Response(503))

    assert await ok.health_check() is True
    assert await down.health_check() is False
