"""
Enumerations for the hybrid inference layer.

All enums are closed taxonomies - no values outside these sets are permitted.
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """
    Closed taxonomy of failure categories.

    Every failure observed while calling a tier classifies into exactly
    one of these. The category selects the retry policy.
    """

    RATE_LIMIT = "rate_limit"
    NETWORK_ERROR = "network_error"
    SERVER_ERROR = "server_error"
    AUTH_ERROR = "auth_error"
    BAD_REQUEST = "bad_request"
    UNKNOWN = "unknown"

    @classmethod
    def from_code(cls, code: str) -> "ErrorCategory":
        """Map a backend-declared error code to a category (UNKNOWN if not recognised)."""
        try:
            return cls(code.strip().lower())
        except ValueError:
            return cls.UNKNOWN


class BreakerState(str, Enum):
    """
    Circuit breaker states.

    CLOSED: normal operation, failures are counted
    OPEN: tier is skipped without a call until the cool-down elapses
    HALF_OPEN: probing recovery, one call in flight at a time
    """

    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"

    @classmethod
    def get_ordinal(cls, state: "BreakerState") -> int:
        """Gauge value for a state (0=closed, 1=half_open, 2=open)."""
        order = [cls.CLOSED, cls.HALF_OPEN, cls.OPEN]
        return order.index(state)


class TierName(str, Enum):
    """
    Backend tiers in priority order.

    Cache is not a tier; a cache hit is reported with the tier that
    originally produced the result.
    """

    LOCAL = "local"
    PRIMARY = "primary"
    SECONDARY = "secondary"


class SafetyPolicy(str, Enum):
    """
    User safety policy for accepted suggestions.

    Ordered from most to least strict.
    """

    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"

    @property
    def min_safety_score(self) -> float:
        """Minimum safety score a suggestion must carry under this policy."""
        return {
            SafetyPolicy.CONSERVATIVE: 0.9,
            SafetyPolicy.BALANCED: 0.7,
            SafetyPolicy.AGGRESSIVE: 0.5,
        }[self]
