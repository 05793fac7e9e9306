"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit tests.
"""

from datetime import datetime, timezone

import pytest

from hybrid_inference.config import Settings
from hybrid_inference.models.enums import SafetyPolicy, TierName
from hybrid_inference.models.request_models import EventContext, InferenceRequest, Preferences
from hybrid_inference.models.result_models import InferenceResult


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.CACHE_ENABLED = False
    """
    return Settings(
        # === Application ===
        APP_NAME="Hybrid Inference Layer (Test)",
        APP_VERSION="0.1.0",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Remote Tiers ===
        REMOTE_API_BASE_URL="http://remote.test/v1",
        REMOTE_API_KEY="test-key",
        PRIMARY_MODEL="gpt-4o-mini",
        FALLBACK_MODEL="gpt-3.5-turbo",
        TIER_TIMEOUT_SECONDS=5.0,

        # === Local Tier ===
        LOCAL_TIER_ENABLED=False,

        # === Cache ===
        CACHE_ENABLED=True,
        CACHE_TTL_SECONDS=3600.0,
        CACHE_MAX_ENTRIES=100,

        PROMETHEUS_ENABLED=False,  # Disable metrics in tests unless explicitly needed
    )


def make_request(
    entity_id: str = "light.kitchen",
    event_kind: str = "state_changed",
    user_id: str = "user-1",
    **preference_overrides,
) -> InferenceRequest:
    """Helper to create a minimal InferenceRequest."""
    return InferenceRequest(
        context=EventContext(
            entity_id=entity_id,
            event_kind=event_kind,
            old_state="off",
            new_state="on",
            timestamp=datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc),
            user_id=user_id,
        ),
        preferences=Preferences(**preference_overrides),
    )


def make_result(
    tier: TierName = TierName.PRIMARY,
    confidence: float = 0.9,
    safety_score: float = 0.95,
    model: str | None = "gpt-4o-mini",
) -> InferenceResult:
    """Helper to create an InferenceResult."""
    return InferenceResult(
        payload={"suggestion_type": "improvement", "implementation": "Add a 5 minute delay"},
        confidence=confidence,
        safety_score=safety_score,
        rationale="Lights are often turned off shortly after",
        tier=tier,
        model=model,
    )


@pytest.fixture
def sample_request() -> InferenceRequest:
    """A request with default preferences."""
    return make_request()


@pytest.fixture
def local_request() -> InferenceRequest:
    """A request that opts in to the local tier."""
    return make_request(local_processing=True, safety_policy=SafetyPolicy.BALANCED)


@pytest.fixture
def request_factory():
    """Factory for InferenceRequest objects (see make_request)."""
    return make_request


@pytest.fixture
def result_factory():
    """Factory for InferenceResult objects (see make_result)."""
    return make_result
