"""
Unit tests for ResultCache and fingerprint derivation.
"""

import pytest

from hybrid_inference.cache.fingerprint import fingerprint, preferences_hash
from hybrid_inference.cache.result_cache import ResultCache
from hybrid_inference.models.enums import SafetyPolicy
from hybrid_inference.models.request_models import Preferences
from hybrid_inference.models.result_models import CacheEntry


def entry_for(result, stored_at: float, tier_version: str = "primary:gpt-4o-mini") -> CacheEntry:
    return CacheEntry(
        result=result,
        confidence=result.confidence,
        stored_at=stored_at,
        tier_version=tier_version,
    )


# ============================================================================
# Fingerprint
# ============================================================================


def test_fingerprint_is_deterministic(request_factory):
    assert fingerprint(request_factory()) == fingerprint(request_factory())


def test_fingerprint_has_prefix(request_factory):
    key = fingerprint(request_factory(), prefix="ai:suggestion:")
    assert key.startswith("ai:suggestion:")
    assert len(key) == len("ai:suggestion:") + 64


def test_fingerprint_ignores_field_order():
    """Preferences built with kwargs in a different order hash the same."""
    a = Preferences(safety_policy=SafetyPolicy.CONSERVATIVE, local_processing=True, confidence_threshold=0.8)
    b = Preferences(confidence_threshold=0.8, local_processing=True, safety_policy=SafetyPolicy.CONSERVATIVE)
    assert preferences_hash(a) == preferences_hash(b)


def test_fingerprint_ignores_state_and_timestamp(request_factory):
    """Only entity, event kind, user and preferences are keyed."""
    base = request_factory()
    other = base.model_copy(
        update={"context": base.context.model_copy(update={"new_state": "dim", "old_state": None})}
    )
    assert fingerprint(base) == fingerprint(other)


@pytest.mark.parametrize(
    "overrides",
    [
        {"entity_id": "light.hall"},
        {"event_kind": "call_service"},
        {"user_id": "user-2"},
        {"safety_policy": SafetyPolicy.AGGRESSIVE},
        {"preferred_model": "gpt-4o"},
    ],
)
def test_fingerprint_changes_with_keyed_fields(request_factory, overrides):
    assert fingerprint(request_factory()) != fingerprint(request_factory(**overrides))


# ============================================================================
# ResultCache
# ============================================================================


def test_put_then_get_within_ttl(fake_clock, result_factory):
    cache = ResultCache(ttl_seconds=3600, max_entries=10, clock=fake_clock)
    result = result_factory()
    cache.put("k", entry_for(result, cache.now()))

    fake_clock.advance(3599)
    entry = cache.get("k")

    assert entry is not None
    assert entry.result == result


def test_get_after_ttl_is_miss_and_removes_entry(fake_clock, result_factory):
    cache = ResultCache(ttl_seconds=3600, max_entries=10, clock=fake_clock)
    cache.put("k", entry_for(result_factory(), cache.now()))

    fake_clock.advance(3601)

    assert cache.get("k") is None
    assert "k" not in cache
    assert len(cache) == 0


def test_missing_key_is_miss(fake_clock):
    cache = ResultCache(clock=fake_clock)
    assert cache.get("absent") is None


def test_put_replaces_existing_entry(fake_clock, result_factory):
    cache = ResultCache(clock=fake_clock)
    cache.put("k", entry_for(result_factory(confidence=0.5), cache.now()))
    cache.put("k", entry_for(result_factory(confidence=0.9), cache.now()))

    assert len(cache) == 1
    assert cache.get("k").confidence == 0.9


def test_overflow_evicts_oldest(fake_clock, result_factory):
    cache = ResultCache(ttl_seconds=3600, max_entries=3, clock=fake_clock)
    for key in ("a", "b", "c"):
        cache.put(key, entry_for(result_factory(), cache.now()))
        fake_clock.advance(1)

    cache.put("d", entry_for(result_factory(), cache.now()))

    assert len(cache) == 3
    assert "a" not in cache
    assert all(key in cache for key in ("b", "c", "d"))


def test_overflow_sweeps_expired_before_evicting_live(fake_clock, result_factory):
    cache = ResultCache(ttl_seconds=100, max_entries=3, clock=fake_clock)
    cache.put("old", entry_for(result_factory(), cache.now()))
    fake_clock.advance(50)
    cache.put("b", entry_for(result_factory(), cache.now()))
    cache.put("c", entry_for(result_factory(), cache.now()))
    fake_clock.advance(60)

    cache.put("d", entry_for(result_factory(), cache.now()))

    assert "old" not in cache
    assert all(key in cache for key in ("b", "c", "d"))


def test_evict_expired(fake_clock, result_factory):
    cache = ResultCache(ttl_seconds=10, max_entries=10, clock=fake_clock)
    cache.put("a", entry_for(result_factory(), cache.now()))
    fake_clock.advance(5)
    cache.put("b", entry_for(result_factory(), cache.now()))
    fake_clock.advance(6)

    assert cache.evict_expired() == 1
    assert "a" not in cache
    assert "b" in cache


def test_clear(fake_clock, result_factory):
    cache = ResultCache(clock=fake_clock)
    cache.put("a", entry_for(result_factory(), cache.now()))
    cache.clear()
    assert len(cache) == 0


def test_invalid_bounds_rejected():
    with pytest.raises(ValueError):
        ResultCache(ttl_seconds=0)
    with pytest.raises(ValueError):
        ResultCache(max_entries=0)
