"""
Unit tests for the circuit breaker.

Covers the pure transition functions and the locked CircuitBreaker wrapper,
using a fake clock for cool-down timing.
"""

import threading

import pytest

from hybrid_inference.models.enums import BreakerState
from hybrid_inference.resilience.circuit_breaker import (
    BreakerConfig,
    BreakerSnapshot,
    CircuitBreaker,
    on_failure,
    on_query,
    on_success,
    release_probe,
)

CONFIG = BreakerConfig(failure_threshold=10, success_threshold=3, cooldown_seconds=60.0)


def trip(breaker: CircuitBreaker, failures: int = 10) -> None:
    for _ in range(failures):
        breaker.record_failure()


# ============================================================================
# Pure transitions
# ============================================================================


def test_closed_allows():
    snapshot, allowed = on_query(BreakerSnapshot(), now=0.0, config=CONFIG)
    assert allowed
    assert snapshot.state == BreakerState.CLOSED


def test_failures_below_threshold_stay_closed():
    snapshot = BreakerSnapshot()
    for i in range(9):
        snapshot = on_failure(snapshot, now=float(i), config=CONFIG)

    assert snapshot.state == BreakerState.CLOSED
    assert snapshot.consecutive_failures == 9


def test_tenth_failure_opens_and_records_trip_time():
    snapshot = BreakerSnapshot()
    for i in range(10):
        snapshot = on_failure(snapshot, now=float(i), config=CONFIG)

    assert snapshot.state == BreakerState.OPEN
    assert snapshot.opened_at == 9.0
    assert snapshot.last_failure_at == 9.0


def test_success_in_closed_resets_failures():
    snapshot = BreakerSnapshot(consecutive_failures=7)
    snapshot = on_success(snapshot, CONFIG)

    assert snapshot.state == BreakerState.CLOSED
    assert snapshot.consecutive_failures == 0


def test_half_open_failure_reopens_without_resetting_counter():
    snapshot = BreakerSnapshot(
        state=BreakerState.HALF_OPEN, consecutive_failures=10, probe_started_at=100.0
    )
    snapshot = on_failure(snapshot, now=101.0, config=CONFIG)

    assert snapshot.state == BreakerState.OPEN
    assert snapshot.consecutive_failures == 11
    assert snapshot.last_failure_at == 101.0


def test_half_open_closes_after_success_threshold():
    snapshot = BreakerSnapshot(state=BreakerState.HALF_OPEN, consecutive_failures=10)
    for _ in range(2):
        snapshot = on_success(snapshot, CONFIG)
        assert snapshot.state == BreakerState.HALF_OPEN

    snapshot = on_success(snapshot, CONFIG)
    assert snapshot == BreakerSnapshot(state=BreakerState.CLOSED)


def test_release_probe_only_affects_half_open():
    half_open = BreakerSnapshot(state=BreakerState.HALF_OPEN, probe_started_at=5.0)
    closed = BreakerSnapshot()

    assert release_probe(half_open).probe_started_at is None
    assert release_probe(closed) is closed


# ============================================================================
# CircuitBreaker
# ============================================================================


def test_breaker_trips_on_tenth_failure(fake_clock):
    """Ten consecutive failures open the breaker; the next query is denied."""
    breaker = CircuitBreaker("primary", CONFIG, clock=fake_clock)

    trip(breaker, 9)
    assert breaker.state == BreakerState.CLOSED
    assert breaker.allow()

    breaker.record_failure()
    assert breaker.state == BreakerState.OPEN
    assert not breaker.allow()


def test_open_breaker_probes_after_cooldown(fake_clock):
    """Denied before the cool-down; one probe allowed after it."""
    breaker = CircuitBreaker("primary", CONFIG, clock=fake_clock)
    trip(breaker)

    fake_clock.advance(59.0)
    assert not breaker.allow()
    assert breaker.state == BreakerState.OPEN

    fake_clock.advance(2.0)
    assert breaker.allow()
    assert breaker.state == BreakerState.HALF_OPEN


def test_half_open_admits_one_probe_at_a_time(fake_clock):
    breaker = CircuitBreaker("primary", CONFIG, clock=fake_clock)
    trip(breaker)
    fake_clock.advance(60.0)

    assert breaker.allow()
    assert not breaker.allow()

    breaker.record_success()
    assert breaker.allow()


def test_half_open_recovers_after_three_successes(fake_clock):
    breaker = CircuitBreaker("primary", CONFIG, clock=fake_clock)
    trip(breaker)
    fake_clock.advance(60.0)

    for _ in range(3):
        assert breaker.allow()
        breaker.record_success()

    assert breaker.state == BreakerState.CLOSED
    assert breaker.status().consecutive_failures == 0


def test_half_open_failure_restarts_cooldown(fake_clock):
    breaker = CircuitBreaker("primary", CONFIG, clock=fake_clock)
    trip(breaker)
    fake_clock.advance(60.0)
    assert breaker.allow()

    breaker.record_failure()
    assert breaker.state == BreakerState.OPEN

    fake_clock.advance(30.0)
    assert not breaker.allow()
    fake_clock.advance(30.0)
    assert breaker.allow()


def test_abandoned_probe_frees_slot(fake_clock):
    """A probe whose caller was cancelled can be released immediately."""
    breaker = CircuitBreaker("primary", CONFIG, clock=fake_clock)
    trip(breaker)
    fake_clock.advance(60.0)
    assert breaker.allow()

    breaker.release_probe()
    assert breaker.allow()


def test_stale_probe_slot_expires_after_cooldown(fake_clock):
    breaker = CircuitBreaker("primary", CONFIG, clock=fake_clock)
    trip(breaker)
    fake_clock.advance(60.0)
    assert breaker.allow()
    assert not breaker.allow()

    fake_clock.advance(60.0)
    assert breaker.allow()


def test_concurrent_failures_trip_exactly_once(fake_clock):
    """Failures recorded from many threads are never lost."""
    breaker = CircuitBreaker("primary", BreakerConfig(failure_threshold=50), clock=fake_clock)

    def worker():
        for _ in range(25):
            breaker.record_failure()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    snapshot = breaker.snapshot()
    assert snapshot.consecutive_failures == 200
    assert snapshot.state == BreakerState.OPEN


def test_invalid_config_rejected():
    with pytest.raises(ValueError):
        BreakerConfig(failure_threshold=0)
    with pytest.raises(ValueError):
        BreakerConfig(success_threshold=0)
    with pytest.raises(ValueError):
        BreakerConfig(cooldown_seconds=-1.0)
