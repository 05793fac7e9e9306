"""
Tier orchestrator with cache, local tier and breaker-gated remote tiers.

This module implements TierOrchestrator, the single entry point that turns
an InferenceRequest into an InferenceResult.

Resolution order:
    1. Result cache: a hit returns immediately
    2. Local tier: one synchronous call, accepted only above the confidence bar
    3. Remote tiers (primary, then secondary): breaker gated, retried per
       error category with exponential backoff
    4. Raise TiersExhausted

Usage:
    orchestrator = TierOrchestrator(remote_tiers=[primary, secondary], cache=ResultCache())
    result = await orchestrator.resolve(request)
"""

import asyncio
import time
from typing import Awaitable, Callable, Mapping, Optional, Sequence

import structlog

from hybrid_inference.cache.fingerprint import fingerprint
from hybrid_inference.cache.result_cache import ResultCache
from hybrid_inference.models.enums import ErrorCategory, TierName
from hybrid_inference.models.request_models import InferenceRequest
from hybrid_inference.models.result_models import CacheEntry, InferenceResult
from hybrid_inference.monitoring.metrics import (
    backoff_seconds_total,
    local_fallthrough_total,
    resolve_latency_seconds,
    tier_attempts_total,
)
from hybrid_inference.monitoring.outcome import OutcomeMetrics
from hybrid_inference.orchestrator.exceptions import TiersExhausted
from hybrid_inference.orchestrator.metadata import ResolutionMetadata
from hybrid_inference.resilience.circuit_breaker import BreakerConfig, CircuitBreaker
from hybrid_inference.resilience.classifier import classify
from hybrid_inference.resilience.policies import RetryPolicyTable
from hybrid_inference.tiers.base import LocalTier, RemoteTier
from hybrid_inference.tiers.exceptions import TierTimeoutError

logger = structlog.get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]

# Log level per failure category
_FAILURE_LOG_LEVELS: Mapping[ErrorCategory, str] = {
    ErrorCategory.AUTH_ERROR: "error",
    ErrorCategory.BAD_REQUEST: "error",
    ErrorCategory.SERVER_ERROR: "error",
    ErrorCategory.RATE_LIMIT: "warning",
    ErrorCategory.NETWORK_ERROR: "warning",
    ErrorCategory.UNKNOWN: "info",
}


class _ResolutionTrace:
    """Mutable per-call accumulator, frozen into ResolutionMetadata at the end."""

    def __init__(self) -> None:
        self.started = time.monotonic()
        self.total_attempts = 0
        self.tiers_tried: list[str] = []
        self.tiers_skipped: list[str] = []
        self.failures: list[dict] = []
        self.last_category: Optional[ErrorCategory] = None
        self.last_message = ""

    def failed(self, tier: TierName, category: ErrorCategory, attempt_index: int, message: str) -> None:
        self.failures.append({
            "tier": tier.value,
            "category": category.value,
            "attempt_index": attempt_index,
            "message": message,
        })
        self.last_category = category
        self.last_message = message

    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.started

    def freeze(self, final_tier: Optional[TierName], cache_hit: bool = False) -> ResolutionMetadata:
        return ResolutionMetadata(
            total_attempts=self.total_attempts,
            tiers_tried=list(self.tiers_tried),
            tiers_skipped=list(self.tiers_skipped),
            final_tier=final_tier.value if final_tier is not None else None,
            cache_hit=cache_hit,
            total_latency_ms=int(self.elapsed_seconds() * 1000),
            failures=list(self.failures),
        )


class TierOrchestrator:
    """
    Tiered fallback orchestrator.

    Holds no per-request state: every resolve() is independent and may run
    concurrently with others. Shared state lives in the breakers, the cache
    and the outcome metrics, each guarded by its own lock.

    Attributes:
        remote_tiers: Remote tiers in priority order
        breakers: One CircuitBreaker per remote tier
        local_tier: Optional local tier
        cache: Optional ResultCache (None disables caching)
        policies: Category -> RetryPolicy table
        metrics: OutcomeMetrics shared with the breakers
    """

    def __init__(
        self,
        remote_tiers: Sequence[RemoteTier],
        breakers: Optional[Mapping[TierName, CircuitBreaker]] = None,
        local_tier: Optional[LocalTier] = None,
        cache: Optional[ResultCache] = None,
        policies: Optional[RetryPolicyTable] = None,
        metrics: Optional[OutcomeMetrics] = None,
        breaker_config: Optional[BreakerConfig] = None,
        local_confidence_threshold: float = 0.7,
        local_tier_version: str = "local-v1",
        cache_key_prefix: str = "ai:suggestion:",
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Initialize orchestrator.

        Args:
            remote_tiers: Remote tiers in priority order (earlier wins)
            breakers: Pre-built breakers keyed by tier name; missing ones are created
            local_tier: Local tier, or None to disable
            cache: Result cache, or None to disable
            policies: Retry policy table (defaults if omitted)
            metrics: Outcome metrics (created over the breakers if omitted)
            breaker_config: Thresholds for breakers created here
            local_confidence_threshold: Bar used when preferences carry none
            local_tier_version: Version tag stored with locally produced entries
            cache_key_prefix: Namespace prefix for fingerprints
            sleep: Async sleep used for backoff (injectable for tests)
        """
        names = [tier.name for tier in remote_tiers]
        if len(set(names)) != len(names):
            raise ValueError(f"Remote tier names must be unique: {[n.value for n in names]}")

        self.remote_tiers = list(remote_tiers)
        self.breakers: dict[TierName, CircuitBreaker] = dict(breakers or {})
        for tier in self.remote_tiers:
            if tier.name not in self.breakers:
                self.breakers[tier.name] = CircuitBreaker(tier.name.value, breaker_config)

        self.local_tier = local_tier
        self.cache = cache
        self.policies = policies or RetryPolicyTable()
        self.metrics = metrics or OutcomeMetrics(self.breakers)
        self.local_confidence_threshold = local_confidence_threshold
        self.local_tier_version = local_tier_version
        self.cache_key_prefix = cache_key_prefix
        self._sleep = sleep

        logger.info(
            "TierOrchestrator initialized",
            remote_tiers=[n.value for n in names],
            local_tier_enabled=local_tier is not None,
            cache_enabled=cache is not None,
        )

    async def resolve(self, request: InferenceRequest) -> InferenceResult:
        """
        Resolve a request to a result.

        Raises:
            TiersExhausted: No tier produced a result
        """
        result, _metadata = await self.resolve_with_metadata(request)
        return result

    async def resolve_with_metadata(
        self, request: InferenceRequest
    ) -> tuple[InferenceResult, ResolutionMetadata]:
        """
        Resolve a request and report how the result was obtained.

        Returns:
            Tuple of (result, resolution metadata)

        Raises:
            TiersExhausted: No tier produced a result
        """
        trace = _ResolutionTrace()
        log = logger.bind(entity_id=request.context.entity_id, user_id=request.context.user_id)

        # 1. Cache
        key = None
        if self.cache is not None:
            key = fingerprint(request, self.cache_key_prefix)
            entry = self.cache.get(key)
            if entry is not None:
                log.info("Cache hit", tier=entry.result.tier.value)
                resolve_latency_seconds.labels(final_tier="cache").observe(trace.elapsed_seconds())
                return entry.result, trace.freeze(entry.result.tier, cache_hit=True)

        # 2. Local tier
        result = self._try_local(request, trace, log)
        if result is not None:
            self._store(key, result, self.local_tier_version)
            return result, self._finish(trace, result, log)

        # 3. Remote tiers, in priority order
        for tier in self.remote_tiers:
            result = await self._run_remote_tier(tier, request, trace, log)
            if result is not None:
                self._store(key, result, f"{tier.name.value}:{result.model or tier.model}")
                return result, self._finish(trace, result, log)

        # 4. Exhausted
        metadata = trace.freeze(None)
        resolve_latency_seconds.labels(final_tier="none").observe(trace.elapsed_seconds())
        last_message = trace.last_message or "All remote tiers skipped: circuit open"
        log.error(
            "All tiers exhausted",
            total_attempts=metadata.total_attempts,
            tiers_tried=metadata.tiers_tried,
            tiers_skipped=metadata.tiers_skipped,
            last_category=trace.last_category.value if trace.last_category else None,
            total_latency_ms=metadata.total_latency_ms,
        )
        raise TiersExhausted(
            request=request,
            last_category=trace.last_category,
            last_message=last_message,
            metadata=metadata,
        )

    def _try_local(self, request: InferenceRequest, trace: _ResolutionTrace, log) -> Optional[InferenceResult]:
        if self.local_tier is None or not request.preferences.local_processing:
            return None

        preferences = request.preferences
        threshold = (
            preferences.confidence_threshold
            if preferences.confidence_threshold is not None
            else self.local_confidence_threshold
        )
        trace.tiers_tried.append(TierName.LOCAL.value)

        try:
            result = self.local_tier.infer(request)
        except Exception as e:
            category = classify(e)
            self.metrics.record_failure(category, TierName.LOCAL)
            trace.failed(TierName.LOCAL, category, 0, str(e) or type(e).__name__)
            tier_attempts_total.labels(tier=TierName.LOCAL.value, outcome="failure").inc()
            local_fallthrough_total.labels(reason="failure").inc()
            log.info("Local tier failed, falling through", category=category.value, error=str(e))
            return None

        if not isinstance(result, InferenceResult):
            tier_attempts_total.labels(tier=TierName.LOCAL.value, outcome="no_result").inc()
            local_fallthrough_total.labels(reason="no_result").inc()
            log.info("Local tier returned no result, falling through", result_type=type(result).__name__)
            return None

        if result.confidence < threshold:
            tier_attempts_total.labels(tier=TierName.LOCAL.value, outcome="below_threshold").inc()
            local_fallthrough_total.labels(reason="below_confidence").inc()
            log.info(
                "Local result below confidence threshold, falling through",
                confidence=result.confidence,
                threshold=threshold,
            )
            return None

        min_safety = preferences.safety_policy.min_safety_score
        if result.safety_score < min_safety:
            tier_attempts_total.labels(tier=TierName.LOCAL.value, outcome="below_threshold").inc()
            local_fallthrough_total.labels(reason="below_safety").inc()
            log.info(
                "Local result below safety policy, falling through",
                safety_score=result.safety_score,
                safety_policy=preferences.safety_policy.value,
                min_safety_score=min_safety,
            )
            return None

        tier_attempts_total.labels(tier=TierName.LOCAL.value, outcome="success").inc()
        return result

    async def _run_remote_tier(
        self, tier: RemoteTier, request: InferenceRequest, trace: _ResolutionTrace, log
    ) -> Optional[InferenceResult]:
        """
        Call one remote tier until success, a non-retryable failure or attempts run out.

        The breaker is consulted before every attempt. Returns None to move
        on to the next tier.
        """
        breaker = self.breakers[tier.name]
        model_override = request.preferences.preferred_model if tier.name == TierName.PRIMARY else None
        tier_log = log.bind(tier=tier.name.value)
        attempt_index = 0

        while True:
            if not breaker.allow():
                tier_attempts_total.labels(tier=tier.name.value, outcome="skipped").inc()
                if attempt_index == 0:
                    trace.tiers_skipped.append(tier.name.value)
                    tier_log.info("Tier skipped, circuit open")
                else:
                    tier_log.warning("Circuit open mid-retry, leaving tier", attempt_index=attempt_index)
                return None

            if attempt_index == 0:
                trace.tiers_tried.append(tier.name.value)
            trace.total_attempts += 1

            try:
                result = await self._call_tier(tier, request, model_override)
            except asyncio.CancelledError:
                breaker.release_probe()
                tier_log.info("Resolve cancelled during tier call", attempt_index=attempt_index)
                raise
            except Exception as e:
                category = classify(e)
                message = str(e) or type(e).__name__
                breaker.record_failure()
                self.metrics.record_failure(category, tier.name)
                trace.failed(tier.name, category, attempt_index, message)
                tier_attempts_total.labels(tier=tier.name.value, outcome="failure").inc()
                self._log_failure(tier_log, category, attempt_index, e)

                policy = self.policies.policy_for(category)
                if not policy.retryable or attempt_index >= policy.max_attempts:
                    tier_log.warning(
                        "Tier given up",
                        category=category.value,
                        attempts=attempt_index + 1,
                        retryable=policy.retryable,
                    )
                    return None

                delay = policy.delay_for(attempt_index)
                backoff_seconds_total.labels(tier=tier.name.value).inc(delay)
                tier_log.info(
                    "Retrying tier after backoff",
                    category=category.value,
                    delay_seconds=delay,
                    next_attempt_index=attempt_index + 1,
                    max_attempts=policy.max_attempts,
                )
                await self._sleep(delay)
                attempt_index += 1
                continue

            breaker.record_success()
            tier_attempts_total.labels(tier=tier.name.value, outcome="success").inc()
            return result

    async def _call_tier(
        self, tier: RemoteTier, request: InferenceRequest, model_override: Optional[str]
    ) -> InferenceResult:
        try:
            return await asyncio.wait_for(tier.generate(request, model_override), timeout=tier.timeout)
        except asyncio.TimeoutError as e:
            raise TierTimeoutError(
                f"Tier call exceeded {tier.timeout}s",
                details={"tier": tier.name.value, "timeout": tier.timeout},
            ) from e

    def _log_failure(self, tier_log, category: ErrorCategory, attempt_index: int, error: Exception) -> None:
        level = _FAILURE_LOG_LEVELS.get(category, "info")
        getattr(tier_log, level)(
            "Tier call failed",
            category=category.value,
            attempt_index=attempt_index,
            error_type=type(error).__name__,
            error=str(error),
        )

    def _store(self, key: Optional[str], result: InferenceResult, tier_version: str) -> None:
        if self.cache is None or key is None:
            return
        self.cache.put(
            key,
            CacheEntry(
                result=result,
                confidence=result.confidence,
                stored_at=self.cache.now(),
                tier_version=tier_version,
            ),
        )

    def _finish(self, trace: _ResolutionTrace, result: InferenceResult, log) -> ResolutionMetadata:
        metadata = trace.freeze(result.tier)
        resolve_latency_seconds.labels(final_tier=result.tier.value).observe(trace.elapsed_seconds())
        log.info(
            "Resolve succeeded",
            final_tier=result.tier.value,
            total_attempts=metadata.total_attempts,
            total_latency_ms=metadata.total_latency_ms,
            confidence=result.confidence,
        )
        return metadata

    async def close(self) -> None:
        """Close all remote tier clients."""
        for tier in self.remote_tiers:
            await tier.close()
