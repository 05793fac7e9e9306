"""
Resilience primitives for remote tiers.

Main Components:
    - classify: Maps any failure to an ErrorCategory via prioritised rules
    - RetryPolicyTable: Static category -> RetryPolicy mapping
    - CircuitBreaker: Per-tier CLOSED/OPEN/HALF_OPEN state machine
    - TokenBucketLimiter: Per-client backpressure

Usage:
    >>> from hybrid_inference.resilience import classify, RetryPolicyTable
    >>> policy = RetryPolicyTable().policy_for(classify(error))
"""

from hybrid_inference.resilience.circuit_breaker import (
    BreakerConfig,
    BreakerSnapshot,
    CircuitBreaker,
    on_failure,
    on_query,
    on_success,
)
from hybrid_inference.resilience.classifier import FailureDescriptor, classify, describe_failure
from hybrid_inference.resilience.policies import DEFAULT_POLICIES, RetryPolicy, RetryPolicyTable
from hybrid_inference.resilience.rate_limiter import RateLimitConfig, TokenBucketLimiter

__all__ = [
    "BreakerConfig",
    "BreakerSnapshot",
    "CircuitBreaker",
    "on_failure",
    "on_query",
    "on_success",
    "FailureDescriptor",
    "classify",
    "describe_failure",
    "DEFAULT_POLICIES",
    "RetryPolicy",
    "RetryPolicyTable",
    "RateLimitConfig",
    "TokenBucketLimiter",
]
