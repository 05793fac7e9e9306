"""
FastAPI dependency injection for the hybrid inference layer.

Provides singleton instances of stateful resources. The orchestrator is a
process-wide singleton because its breakers, cache and outcome metrics must
be shared by every request.
"""

import importlib
from functools import lru_cache
from typing import Optional

import structlog

from hybrid_inference.cache.result_cache import ResultCache
from hybrid_inference.config import Settings, settings
from hybrid_inference.models.enums import TierName
from hybrid_inference.orchestrator.engine import TierOrchestrator
from hybrid_inference.resilience.circuit_breaker import BreakerConfig
from hybrid_inference.resilience.policies import RetryPolicyTable
from hybrid_inference.resilience.rate_limiter import RateLimitConfig, TokenBucketLimiter
from hybrid_inference.tiers.base import CallableLocalTier, LocalTier, RemoteTier
from hybrid_inference.tiers.openai_client import ChatCompletionClient
from hybrid_inference.tiers.prompt_builder import PromptBuilder

logger = structlog.get_logger(__name__)


@lru_cache()
def get_settings() -> Settings:
    """
    Get settings singleton.

    Returns:
        Settings instance
    """
    return settings


def load_local_tier(factory_path: str) -> LocalTier:
    """
    Import a local tier from a "module:attribute" path.

    The attribute may be a LocalTier instance or a plain callable.

    Raises:
        ValueError: Malformed path or attribute of the wrong type
    """
    module_name, _, attribute = factory_path.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"LOCAL_TIER_FACTORY must look like 'module:callable', got {factory_path!r}")

    target = getattr(importlib.import_module(module_name), attribute)
    if isinstance(target, LocalTier):
        return target
    if callable(target):
        return CallableLocalTier(target)
    raise ValueError(f"LOCAL_TIER_FACTORY target is not callable: {factory_path!r}")


def build_remote_tiers(settings: Settings) -> list[RemoteTier]:
    """
    Create the primary and secondary chat-completion tiers.

    Each tier gets its own token bucket; they share one prompt builder.
    """
    prompt_builder = PromptBuilder(
        default_temperature=settings.LLM_TEMPERATURE,
        default_max_tokens=settings.LLM_MAX_TOKENS,
    )
    rate_limit = RateLimitConfig(
        requests_per_minute=settings.REMOTE_REQUESTS_PER_MINUTE,
        burst_size=settings.REMOTE_BURST_SIZE,
    )

    primary = ChatCompletionClient(
        name=TierName.PRIMARY,
        base_url=settings.REMOTE_API_BASE_URL,
        api_key=settings.REMOTE_API_KEY,
        model=settings.PRIMARY_MODEL,
        timeout=settings.TIER_TIMEOUT_SECONDS,
        prompt_builder=prompt_builder,
        rate_limiter=TokenBucketLimiter(rate_limit),
    )
    secondary = ChatCompletionClient(
        name=TierName.SECONDARY,
        base_url=settings.SECONDARY_API_BASE_URL or settings.REMOTE_API_BASE_URL,
        api_key=settings.SECONDARY_API_KEY or settings.REMOTE_API_KEY,
        model=settings.FALLBACK_MODEL,
        timeout=settings.TIER_TIMEOUT_SECONDS,
        prompt_builder=prompt_builder,
        rate_limiter=TokenBucketLimiter(rate_limit),
    )
    return [primary, secondary]


def build_orchestrator(settings: Settings) -> TierOrchestrator:
    """
    Wire a TierOrchestrator from settings.

    Args:
        settings: Application settings

    Returns:
        Fully configured orchestrator
    """
    local_tier: Optional[LocalTier] = None
    if settings.LOCAL_TIER_ENABLED:
        if settings.LOCAL_TIER_FACTORY:
            local_tier = load_local_tier(settings.LOCAL_TIER_FACTORY)
        else:
            logger.warning("LOCAL_TIER_ENABLED is set but LOCAL_TIER_FACTORY is empty; local tier disabled")

    cache = None
    if settings.CACHE_ENABLED:
        cache = ResultCache(
            ttl_seconds=settings.CACHE_TTL_SECONDS,
            max_entries=settings.CACHE_MAX_ENTRIES,
        )

    return TierOrchestrator(
        remote_tiers=build_remote_tiers(settings),
        local_tier=local_tier,
        cache=cache,
        policies=RetryPolicyTable.from_overrides(settings.RETRY_POLICY_OVERRIDES),
        breaker_config=BreakerConfig(
            failure_threshold=settings.BREAKER_FAILURE_THRESHOLD,
            success_threshold=settings.BREAKER_SUCCESS_THRESHOLD,
            cooldown_seconds=settings.BREAKER_COOLDOWN_SECONDS,
        ),
        local_confidence_threshold=settings.LOCAL_CONFIDENCE_THRESHOLD,
        local_tier_version=settings.LOCAL_TIER_VERSION,
        cache_key_prefix=settings.CACHE_KEY_PREFIX,
    )


@lru_cache()
def get_orchestrator() -> TierOrchestrator:
    """
    Get the process-wide orchestrator singleton.

    Uses @lru_cache so breakers, cache and metrics are shared by all requests.

    Returns:
        TierOrchestrator instance
    """
    return build_orchestrator(get_settings())
