"""
Resolution metadata tracking.

This module defines the ResolutionMetadata dataclass that captures what
happened during one resolve: which tiers were called or skipped, how many
attempts were made and every failure observed on the way.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ResolutionMetadata:
    """
    Complete history of one resolve for audit trail and debugging.

    Attributes:
        total_attempts: Remote tier calls made (local tier call excluded)
        tiers_tried: Tiers that were called, in order (local included)
        tiers_skipped: Remote tiers skipped because their breaker was OPEN
        final_tier: Tier whose result was returned (None if exhausted)
        cache_hit: Whether the result came from the cache
        total_latency_ms: Time from entry to result or exhaustion (ms)
        failures: One dict per failure: tier, category, attempt_index, message
    """

    total_attempts: int
    tiers_tried: list[str]
    tiers_skipped: list[str]
    final_tier: Optional[str]
    cache_hit: bool
    total_latency_ms: int
    failures: list[dict] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate metadata invariants."""
        if self.total_attempts < 0:
            raise ValueError("total_attempts must be >= 0")

        if self.total_latency_ms < 0:
            raise ValueError("total_latency_ms must be >= 0")

        if self.cache_hit and self.final_tier is None:
            raise ValueError("cache hit must report the tier that produced the result")
