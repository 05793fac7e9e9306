"""Custom Prometheus metrics for the hybrid inference layer.

These metrics are exposed at /metrics endpoint and should be scraped by Prometheus.
Alert rules should be configured for:
- circuit_breaker_state (any remote tier OPEN)
- tier_errors_total (auth_error on any tier means misconfiguration)
- resolve_latency_seconds (p95 dominated by backoff indicates a degraded backend)
"""

from prometheus_client import Counter, Gauge, Histogram

# === Tier Attempt Metrics ===

tier_attempts_total = Counter(
    "tier_attempts_total",
    "Total tier calls by tier and outcome",
    ["tier", "outcome"],
)
"""
Tier call counter.

Labels:
- tier: local, primary, secondary
- outcome: success, failure, skipped (breaker OPEN), below_threshold (local only)
"""

tier_errors_total = Counter(
    "tier_errors_total",
    "Total tier failures by tier and error category",
    ["tier", "category"],
)
"""
Tier failure counter, incremented by OutcomeMetrics.record_failure.

Labels:
- tier: local, primary, secondary
- category: rate_limit, network_error, server_error, auth_error, bad_request, unknown

Alert thresholds:
- WARN: any auth_error
- CRITICAL: server_error rate > 30% of attempts
"""

# === Circuit Breaker Metrics ===

circuit_breaker_state = Gauge(
    "circuit_breaker_state",
    "Circuit breaker state per tier (0=closed, 1=half_open, 2=open)",
    ["tier"],
)

# === Cache Metrics ===

cache_lookups_total = Counter(
    "cache_lookups_total",
    "Result cache lookups by result",
    ["result"],
)
"""
Labels:
- result: hit, miss, expired
"""

cache_evictions_total = Counter(
    "cache_evictions_total",
    "Result cache evictions by reason",
    ["reason"],
)
"""
Labels:
- reason: expired, capacity
"""

# === Local Tier Metrics ===

local_fallthrough_total = Counter(
    "local_fallthrough_total",
    "Local tier results not accepted, by reason",
    ["reason"],
)
"""
Labels:
- reason: failure, below_confidence, below_safety
"""

# === Resolution Metrics ===

resolve_latency_seconds = Histogram(
    "resolve_latency_seconds",
    "End-to-end resolve latency in seconds",
    ["final_tier"],
    buckets=[0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
)
"""
Labels:
- final_tier: cache, local, primary, secondary, none (exhausted)

Buckets extend to 300s because a rate_limit backoff starts at 60s.
"""

backoff_seconds_total = Counter(
    "backoff_seconds_total",
    "Total seconds spent waiting between retries, by tier",
    ["tier"],
)
