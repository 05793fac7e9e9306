"""
Retry policy table.

One RetryPolicy per ErrorCategory, fixed at startup. The orchestrator looks
up the policy for each classified failure to decide whether to retry the
same tier and how long to wait.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

import structlog

from hybrid_inference.models.enums import ErrorCategory

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry policy for one error category.

    Attributes:
        max_attempts: Retries allowed after the first call (>= 0)
        base_delay: Seconds before the first retry; doubles per retry
        retryable: Whether this category is retried at all
    """

    max_attempts: int
    base_delay: float
    retryable: bool

    def __post_init__(self) -> None:
        """Validate policy invariants."""
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")

        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

        if not self.retryable and self.max_attempts != 0:
            raise ValueError("non-retryable policy must have max_attempts == 0")

    def delay_for(self, attempt_index: int) -> float:
        """Backoff before retry number `attempt_index` (0-based): base_delay * 2**k."""
        return self.base_delay * (2 ** attempt_index)


DEFAULT_POLICIES: Mapping[ErrorCategory, RetryPolicy] = MappingProxyType({
    ErrorCategory.RATE_LIMIT: RetryPolicy(max_attempts=3, base_delay=60.0, retryable=True),
    ErrorCategory.NETWORK_ERROR: RetryPolicy(max_attempts=5, base_delay=1.0, retryable=True),
    ErrorCategory.SERVER_ERROR: RetryPolicy(max_attempts=3, base_delay=2.0, retryable=True),
    ErrorCategory.AUTH_ERROR: RetryPolicy(max_attempts=0, base_delay=0.0, retryable=False),
    ErrorCategory.BAD_REQUEST: RetryPolicy(max_attempts=0, base_delay=0.0, retryable=False),
    ErrorCategory.UNKNOWN: RetryPolicy(max_attempts=1, base_delay=5.0, retryable=True),
})


class RetryPolicyTable:
    """
    Read-only mapping from ErrorCategory to RetryPolicy.

    Any category missing from the table resolves to the UNKNOWN policy.
    """

    def __init__(self, policies: Optional[Mapping[ErrorCategory, RetryPolicy]] = None):
        table = dict(policies if policies is not None else DEFAULT_POLICIES)
        if ErrorCategory.UNKNOWN not in table:
            table[ErrorCategory.UNKNOWN] = DEFAULT_POLICIES[ErrorCategory.UNKNOWN]
        self._policies: Mapping[ErrorCategory, RetryPolicy] = MappingProxyType(table)

    @classmethod
    def from_overrides(cls, overrides: Mapping[str, Mapping]) -> "RetryPolicyTable":
        """
        Build a table from the defaults plus per-category overrides.

        Args:
            overrides: {category_name: {"max_attempts": .., "base_delay": .., "retryable": ..}}

        Raises:
            ValueError: Unknown category name or invalid policy values
        """
        table = dict(DEFAULT_POLICIES)
        for name, fields in overrides.items():
            try:
                category = ErrorCategory(name)
            except ValueError:
                raise ValueError(f"Unknown error category in retry overrides: {name}")

            base = table[category]
            table[category] = RetryPolicy(
                max_attempts=int(fields.get("max_attempts", base.max_attempts)),
                base_delay=float(fields.get("base_delay", base.base_delay)),
                retryable=bool(fields.get("retryable", base.retryable)),
            )

        if overrides:
            logger.info("Retry policy overrides applied", categories=sorted(overrides))
        return cls(table)

    def policy_for(self, category: ErrorCategory) -> RetryPolicy:
        """Policy for a category, defaulting to the UNKNOWN policy."""
        return self._policies.get(category, self._policies[ErrorCategory.UNKNOWN])

    def as_dict(self) -> dict[str, dict]:
        """Plain-dict view for health/diagnostic output."""
        return {
            category.value: {
                "max_attempts": policy.max_attempts,
                "base_delay": policy.base_delay,
                "retryable": policy.retryable,
            }
            for category, policy in self._policies.items()
        }
