"""
Circuit breaker for remote tiers.

The breaker state lives in an immutable BreakerSnapshot. Every transition is
a pure function (old snapshot, event, now) -> new snapshot, so the state
machine can be tested without a clock or a lock. CircuitBreaker applies those
functions under a threading.Lock, which makes each read-modify-write atomic
for both threads and asyncio tasks (no await happens inside the lock).

Transitions:
    CLOSED    --failures >= failure_threshold-->   OPEN
    OPEN      --allow() after cooldown-->          HALF_OPEN (probe let through)
    HALF_OPEN --successes >= success_threshold-->  CLOSED
    HALF_OPEN --any failure-->                     OPEN
    CLOSED    --success-->                         CLOSED (failures reset)
"""

import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional

import structlog

from hybrid_inference.models.enums import BreakerState
from hybrid_inference.models.result_models import BreakerStatus
from hybrid_inference.monitoring.metrics import circuit_breaker_state

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BreakerConfig:
    """Breaker thresholds."""

    failure_threshold: int = 10
    success_threshold: int = 3
    cooldown_seconds: float = 60.0

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if self.success_threshold < 1:
            raise ValueError("success_threshold must be >= 1")
        if self.cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be >= 0")


@dataclass(frozen=True)
class BreakerSnapshot:
    """
    Complete breaker state at one instant.

    Attributes:
        state: Current BreakerState
        consecutive_failures: Failures since the last reset
        half_open_successes: Successes recorded while HALF_OPEN
        last_failure_at: Clock reading of the most recent failure
        opened_at: Clock reading of the most recent trip
        probe_started_at: Clock reading when the in-flight HALF_OPEN probe was admitted
    """

    state: BreakerState = BreakerState.CLOSED
    consecutive_failures: int = 0
    half_open_successes: int = 0
    last_failure_at: Optional[float] = None
    opened_at: Optional[float] = None
    probe_started_at: Optional[float] = None


def on_query(
    snapshot: BreakerSnapshot, now: float, config: BreakerConfig
) -> tuple[BreakerSnapshot, bool]:
    """
    Decide whether a call may go through.

    Returns:
        Tuple of (new snapshot, allowed)
    """
    if snapshot.state == BreakerState.CLOSED:
        return snapshot, True

    if snapshot.state == BreakerState.OPEN:
        reference = snapshot.last_failure_at if snapshot.last_failure_at is not None else now
        if now - reference >= config.cooldown_seconds:
            return (
                replace(
                    snapshot,
                    state=BreakerState.HALF_OPEN,
                    half_open_successes=0,
                    probe_started_at=now,
                ),
                True,
            )
        return snapshot, False

    # HALF_OPEN: one probe in flight at a time. A probe whose outcome never
    # arrives (cancelled caller) frees its slot after one cool-down.
    if snapshot.probe_started_at is None or now - snapshot.probe_started_at >= config.cooldown_seconds:
        return replace(snapshot, probe_started_at=now), True
    return snapshot, False


def on_failure(snapshot: BreakerSnapshot, now: float, config: BreakerConfig) -> BreakerSnapshot:
    """Apply a recorded failure."""
    failures = snapshot.consecutive_failures + 1

    if snapshot.state == BreakerState.HALF_OPEN:
        return replace(
            snapshot,
            state=BreakerState.OPEN,
            consecutive_failures=failures,
            half_open_successes=0,
            last_failure_at=now,
            opened_at=now,
            probe_started_at=None,
        )

    if snapshot.state == BreakerState.CLOSED and failures >= config.failure_threshold:
        return replace(
            snapshot,
            state=BreakerState.OPEN,
            consecutive_failures=failures,
            half_open_successes=0,
            last_failure_at=now,
            opened_at=now,
        )

    # CLOSED below threshold, or a late failure while already OPEN
    return replace(
        snapshot,
        consecutive_failures=failures,
        half_open_successes=0,
        last_failure_at=now,
    )


def on_success(snapshot: BreakerSnapshot, config: BreakerConfig) -> BreakerSnapshot:
    """Apply a recorded success."""
    if snapshot.state == BreakerState.HALF_OPEN:
        successes = snapshot.half_open_successes + 1
        if successes >= config.success_threshold:
            return BreakerSnapshot(state=BreakerState.CLOSED)
        return replace(snapshot, half_open_successes=successes, probe_started_at=None)

    if snapshot.state == BreakerState.CLOSED:
        return replace(snapshot, consecutive_failures=0)

    # Late success from a call admitted before the trip; OPEN ignores it
    return snapshot


def release_probe(snapshot: BreakerSnapshot) -> BreakerSnapshot:
    """Free the HALF_OPEN probe slot without recording an outcome."""
    if snapshot.state == BreakerState.HALF_OPEN and snapshot.probe_started_at is not None:
        return replace(snapshot, probe_started_at=None)
    return snapshot


class CircuitBreaker:
    """
    Thread-safe circuit breaker for one tier.

    Example:
        breaker = CircuitBreaker("primary")
        if breaker.allow():
            try:
                result = await tier.generate(...)
                breaker.record_success()
            except TierError:
                breaker.record_failure()
    """

    def __init__(
        self,
        name: str,
        config: Optional[BreakerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.config = config or BreakerConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot = BreakerSnapshot()
        circuit_breaker_state.labels(tier=name).set(BreakerState.get_ordinal(BreakerState.CLOSED))

    def allow(self) -> bool:
        """Whether a call may be attempted now (may move OPEN -> HALF_OPEN)."""
        with self._lock:
            old = self._snapshot
            self._snapshot, allowed = on_query(old, self._clock(), self.config)
            new = self._snapshot
        self._on_transition(old, new)
        return allowed

    def record_failure(self) -> None:
        """Record a failed call."""
        with self._lock:
            old = self._snapshot
            self._snapshot = on_failure(old, self._clock(), self.config)
            new = self._snapshot
        self._on_transition(old, new)

    def record_success(self) -> None:
        """Record a successful call."""
        with self._lock:
            old = self._snapshot
            self._snapshot = on_success(old, self.config)
            new = self._snapshot
        self._on_transition(old, new)

    def release_probe(self) -> None:
        """Free an admitted probe whose call was abandoned before an outcome."""
        with self._lock:
            self._snapshot = release_probe(self._snapshot)

    def snapshot(self) -> BreakerSnapshot:
        """Current immutable state."""
        with self._lock:
            return self._snapshot

    @property
    def state(self) -> BreakerState:
        return self.snapshot().state

    def status(self) -> BreakerStatus:
        """Read-only status for metrics snapshots."""
        snap = self.snapshot()
        return BreakerStatus(state=snap.state, consecutive_failures=snap.consecutive_failures)

    def _on_transition(self, old: BreakerSnapshot, new: BreakerSnapshot) -> None:
        if old.state == new.state:
            return

        circuit_breaker_state.labels(tier=self.name).set(BreakerState.get_ordinal(new.state))

        if new.state == BreakerState.OPEN:
            logger.warning(
                "Circuit breaker opened",
                tier=self.name,
                from_state=old.state.value,
                consecutive_failures=new.consecutive_failures,
            )
        elif new.state == BreakerState.HALF_OPEN:
            logger.info("Circuit breaker moved to HALF_OPEN", tier=self.name)
        else:
            logger.info(
                "Circuit breaker closed",
                tier=self.name,
                successes=self.config.success_threshold,
            )

    def __repr__(self) -> str:
        snap = self.snapshot()
        return (
            f"{self.__class__.__name__}("
            f"name={self.name}, "
            f"state={snap.state.value}, "
            f"failures={snap.consecutive_failures})"
        )
