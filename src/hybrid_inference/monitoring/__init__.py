"""Monitoring and metrics instrumentation for the hybrid inference layer.

Exports custom Prometheus metrics for operational monitoring and alerting,
plus OutcomeMetrics, the in-process failure counters polled by health
collectors.
"""

from hybrid_inference.monitoring.metrics import (
    backoff_seconds_total,
    cache_evictions_total,
    cache_lookups_total,
    circuit_breaker_state,
    local_fallthrough_total,
    resolve_latency_seconds,
    tier_attempts_total,
    tier_errors_total,
)
from hybrid_inference.monitoring.outcome import OutcomeMetrics

__all__ = [
    "OutcomeMetrics",
    "tier_attempts_total",
    "tier_errors_total",
    "circuit_breaker_state",
    "cache_lookups_total",
    "cache_evictions_total",
    "local_fallthrough_total",
    "resolve_latency_seconds",
    "backoff_seconds_total",
]
