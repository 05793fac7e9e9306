"""
Outcome metrics: in-process failure counters with a read-only snapshot.

The counters are purely additive. Each write and each snapshot takes the
same lock, so no update is lost and no single counter is ever read
half-written. Breaker state is read from the registered breakers at
snapshot time.
"""

import threading
from typing import TYPE_CHECKING, Mapping, Optional

import structlog

from hybrid_inference.models.enums import ErrorCategory, TierName
from hybrid_inference.models.result_models import MetricsSnapshot
from hybrid_inference.monitoring.metrics import tier_errors_total

if TYPE_CHECKING:
    from hybrid_inference.resilience.circuit_breaker import CircuitBreaker

logger = structlog.get_logger(__name__)


class OutcomeMetrics:
    """
    Failure counters for all tiers of one process.

    Attributes:
        breakers: Remote tier breakers, read (never written) by snapshot()
    """

    def __init__(self, breakers: Optional[Mapping[TierName, "CircuitBreaker"]] = None):
        self.breakers: dict[TierName, "CircuitBreaker"] = dict(breakers or {})
        self._lock = threading.Lock()
        self._total = 0
        self._by_category: dict[ErrorCategory, int] = {category: 0 for category in ErrorCategory}

    def record_failure(self, category: ErrorCategory, tier: Optional[TierName] = None) -> None:
        """Count one failure."""
        with self._lock:
            self._total += 1
            self._by_category[category] += 1

        tier_errors_total.labels(
            tier=tier.value if tier else "unknown", category=category.value
        ).inc()

    def snapshot(self) -> MetricsSnapshot:
        """Current counters plus breaker status."""
        with self._lock:
            total = self._total
            by_category = dict(self._by_category)

        breakers = {tier.value: breaker.status() for tier, breaker in self.breakers.items()}

        primary = breakers.get(TierName.PRIMARY.value)
        if primary is None and breakers:
            primary = next(iter(breakers.values()))

        snapshot_fields = dict(
            total_errors=total,
            rate_limit_errors=by_category[ErrorCategory.RATE_LIMIT],
            network_errors=by_category[ErrorCategory.NETWORK_ERROR],
            auth_errors=by_category[ErrorCategory.AUTH_ERROR],
            errors_by_category={category.value: count for category, count in by_category.items()},
            breakers=breakers,
        )
        if primary is not None:
            snapshot_fields["consecutive_failures"] = primary.consecutive_failures
            snapshot_fields["breaker_state"] = primary.state

        return MetricsSnapshot(**snapshot_fields)

    def reset(self) -> None:
        """Zero all counters (operator action only)."""
        with self._lock:
            self._total = 0
            self._by_category = {category: 0 for category in ErrorCategory}
        logger.warning("Outcome metrics reset")
