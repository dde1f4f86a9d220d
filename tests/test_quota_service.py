"""
Tests for quota tracking.
"""

import pytest

from cron_translator.entities import DenialKind
from cron_translator.services.quota_service import DailyCounterCache, QuotaTracker, day_key


@pytest.fixture
def tracker(store, clock):
    return QuotaTracker(
        store=store,
        key_prefix="test",
        daily_limit=10,
        per_caller_max=3,
        per_caller_window_seconds=3600,
        burst_max=2,
        burst_window_seconds=60,
        flush_interval=3.0,
        clock=clock,
    )


def test_per_caller_limit_within_window(tracker, clock):
    """Three admissions per hour succeed, the fourth is denied."""
    for _ in range(3):
        assert tracker.admit("1.2.3.4").admitted
        clock.advance(61)

    admission = tracker.admit("1.2.3.4")
    assert not admission.admitted
    assert admission.denial is DenialKind.PER_CALLER_LIMIT_REACHED


def test_per_caller_limit_resets_after_window(tracker, clock):
    for _ in range(3):
        assert tracker.admit("1.2.3.4").admitted
        clock.advance(61)
    assert not tracker.admit("1.2.3.4").admitted

    clock.advance(3600)
    assert tracker.admit("1.2.3.4").admitted


def test_sliding_window_only_counts_recent_admissions(tracker, clock):
    """The oldest admission leaving the window frees exactly one slot."""
    assert tracker.admit("a").admitted  # t=0
    clock.advance(1000)
    assert tracker.admit("a").admitted  # t=1000
    clock.advance(1000)
    assert tracker.admit("a").admitted  # t=2000
    clock.advance(1601)  # t=3601, first admission has aged out
    assert tracker.admit("a").admitted
    clock.advance(61)
    assert not tracker.admit("a").admitted


def test_burst_limit(tracker, clock):
    """Two quick requests pass, a third within 60s is a burst denial."""
    assert tracker.admit("a").admitted
    clock.advance(1)
    assert tracker.admit("a").admitted
    clock.advance(1)

    admission = tracker.admit("a")
    assert admission.denial is DenialKind.BURST_LIMIT_REACHED
    assert admission.denial.rate_limit_type == "perUser"

    clock.advance(60)
    assert tracker.admit("a").admitted


def test_callers_are_tracked_separately(tracker, clock):
    assert tracker.admit("a").admitted
    assert tracker.admit("a").admitted
    assert not tracker.admit("a").admitted
    assert tracker.admit("b").admitted


def test_denied_requests_are_not_counted(tracker, clock):
    tracker.admit("a")
    tracker.admit("a")
    tracker.admit("a")  # burst denial
    assert tracker.current_usage().daily_used == 2


def test_daily_limit_applies_to_all_callers(store, clock):
    tracker = QuotaTracker(store=store, key_prefix="test", daily_limit=3, clock=clock)
    for caller in ("a", "b", "c"):
        assert tracker.admit(caller).admitted

    admission = tracker.admit("fresh-caller")
    assert admission.denial is DenialKind.DAILY_LIMIT_REACHED
    assert admission.denial.rate_limit_type == "daily"


def test_daily_limit_is_checked_before_per_caller_state(store, clock):
    tracker = QuotaTracker(store=store, key_prefix="test", daily_limit=2, per_caller_max=1, clock=clock)
    assert tracker.admit("a").admitted
    assert tracker.admit("b").admitted
    assert tracker.admit("a").denial is DenialKind.DAILY_LIMIT_REACHED


def test_daily_counter_resets_at_next_day(store, clock):
    tracker = QuotaTracker(store=store, key_prefix="test", daily_limit=2, clock=clock)
    assert tracker.admit("a").admitted
    assert tracker.admit("b").admitted
    assert not tracker.admit("c").admitted

    clock.advance(12 * 3600)  # past midnight UTC
    usage = tracker.current_usage()
    assert usage.daily_used == 0
    assert usage.date == "2026-10-19"
    assert tracker.admit("c").admitted


def test_current_usage_snapshot(tracker, clock):
    tracker.admit("a")
    usage = tracker.current_usage()

    assert usage.daily_used == 1
    assert usage.daily_remaining == 9
    assert usage.daily_limit == 10
    assert usage.date == "2026-10-18"
    assert usage.per_caller_max == 3
    assert usage.per_caller_window_ms == 3_600_000
    assert usage.burst_max == 2
    assert usage.burst_window_ms == 60_000


def test_current_usage_does_not_write(tracker, store):
    tracker.current_usage()
    tracker.current_usage()
    assert store.writes == []


def test_caller_timestamps_are_persisted_with_window_ttl(tracker, store, clock):
    tracker.admit("1.2.3.4")
    value, expires_at = store.data["test:caller:1.2.3.4"]
    assert expires_at == clock() + 3600


def test_per_caller_state_survives_a_new_tracker(tracker, store, clock):
    """Per-caller limits come from the store, not process memory."""
    tracker.admit("a")
    clock.advance(61)
    tracker.admit("a")
    clock.advance(61)
    tracker.admit("a")
    clock.advance(61)

    restarted = QuotaTracker(store=store, key_prefix="test", daily_limit=10, clock=clock)
    assert restarted.admit("a").denial is DenialKind.PER_CALLER_LIMIT_REACHED


def test_store_failure_does_not_block_admission(tracker, store):
    store.fail = True
    assert tracker.admit("a").admitted


@pytest.mark.parametrize("raw", ["not json", "5", '{"a": 1}', '["x"]', "[null]"])
def test_corrupt_caller_record_is_reset(tracker, store, raw):
    store.set(tracker.caller_key("a"), raw, ttl=60)
    assert tracker.admit("a").admitted
    assert store.get(tracker.caller_key("a")).startswith("[")


def test_daily_counter_writes_are_debounced(store, clock):
    counter = DailyCounterCache(store, "test", flush_interval=3.0, clock=clock)
    today = day_key(clock())
    key = counter.key_for(today)

    counter.increment(today)
    assert store.get(key) == "1"

    clock.advance(1)
    counter.increment(today)
    counter.increment(today)
    assert store.get(key) == "1"
    assert counter.pending
    assert counter.count(today) == 3

    clock.advance(3)
    counter.increment(today)
    assert store.get(key) == "4"
    assert not counter.pending


def test_daily_counter_flush_writes_pending_increments(store, clock):
    counter = DailyCounterCache(store, "test", flush_interval=3.0, clock=clock)
    today = day_key(clock())
    counter.increment(today)
    counter.increment(today)

    counter.flush()
    assert store.get(counter.key_for(today)) == "2"


def test_daily_counter_picks_up_other_processes(store, clock):
    """While idle, the cached count is refreshed from the store."""
    counter = DailyCounterCache(store, "test", flush_interval=3.0, clock=clock)
    today = day_key(clock())
    assert counter.count(today) == 0

    store.set(counter.key_for(today), "7", ttl=86400)
    assert counter.count(today) == 0

    clock.advance(3)
    assert counter.count(today) == 7


def test_day_key_uses_utc():
    assert day_key(0) == "1970-01-01"


def test_daily_counter_outage_does_not_clobber_stored_count(store, clock):
    """Increments made while the store was unreadable are added to its count."""
    counter = DailyCounterCache(store, "test", flush_interval=3.0, clock=clock)
    today = day_key(clock())
    key = counter.key_for(today)
    store.set(key, "7", ttl=86400)

    store.fail = True
    counter.increment(today)
    counter.flush()
    assert counter.pending

    store.fail = False
    counter.flush()
    assert store.get(key) == "8"
    assert not counter.pending


def test_daily_counter_recovers_stored_count_after_failed_load(store, clock):
    counter = DailyCounterCache(store, "test", flush_interval=3.0, clock=clock)
    today = day_key(clock())
    store.set(counter.key_for(today), "7", ttl=86400)

    store.fail = True
    assert counter.count(today) == 0
    counter.increment(today)

    store.fail = False
    clock.advance(3)
    assert counter.count(today) == 8
