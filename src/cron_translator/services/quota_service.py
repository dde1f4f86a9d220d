"""Quota tracking for translate requests.

Three rules, checked cheapest first:

1. Global daily cap - one counter per UTC calendar day.
2. Per-caller sliding window - at most N admissions per caller in the window.
3. Per-caller burst cap - a tighter limit over a short sub-window.

State lives in a KeyValueStore so it survives process restarts. The daily
counter sits behind an in-process DailyCounterCache that coalesces writes;
a restart may lose the last few increments, which is acceptable for a cost
guard. Concurrent requests are not serialized: two admissions racing at a
boundary may both pass, overshooting by at most the number of racers.

Store failures are logged and never fail the request.
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Callable

from cron_translator.entities import Admission, DenialKind, QuotaUsage
from cron_translator.errors import StoreError
from cron_translator.protocols import KeyValueStore

logger = logging.getLogger(__name__)

DAILY_KEY_TTL = 2 * 24 * 3600


def day_key(timestamp: float) -> str:
    """UTC calendar date for a Unix timestamp, ISO formatted."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).date().isoformat()


class DailyCounterCache:
    """Debounced in-process view of the daily admission counter.

    The in-memory count is the source of truth for this process. Writes to
    the store are coalesced: at most one per ``flush_interval`` seconds from
    ``increment``, plus ``flush()`` calls from the application's periodic
    flush task and at shutdown. While nothing is pending, the count is
    refreshed from the store once per interval so increments made by other
    processes become visible.

    If the stored count could not be read, local increments are held back
    until a read succeeds and are then added to the stored value, so an
    outage never overwrites the real count with a smaller one.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key_prefix: str,
        flush_interval: float = 3.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._key_prefix = key_prefix
        self._flush_interval = flush_interval
        self._clock = clock
        self._day: str | None = None
        self._count = 0
        self._dirty = False
        self._synced = False
        self._loaded_at = 0.0
        self._flushed_at = 0.0

    def key_for(self, day: str) -> str:
        return f"{self._key_prefix}:daily:{day}"

    def _read(self, day: str) -> int | None:
        """Stored count for ``day``; None when the store is unreachable."""
        try:
            value = self._store.get(self.key_for(day))
        except StoreError as e:
            logger.warning("Could not read daily counter for %s: %s", day, e)
            return None
        try:
            return int(value) if value is not None else 0
        except ValueError:
            logger.warning("Ignoring corrupt daily counter for %s: %r", day, value)
            return 0

    def _reconcile(self, day: str) -> None:
        stored = self._read(day)
        if stored is None:
            return
        if self._synced:
            self._count = max(self._count, stored)
        else:
            # only local increments so far; none of them reached the store
            self._count += stored
            self._synced = True

    def _sync(self, day: str) -> None:
        now = self._clock()
        if self._day != day:
            if self._dirty:
                self.flush()
            self._day = day
            self._count = 0
            self._dirty = False
            self._synced = False
            self._reconcile(day)
            self._loaded_at = now
            return

        if (not self._dirty or not self._synced) and now - self._loaded_at >= self._flush_interval:
            self._reconcile(day)
            self._loaded_at = now

    def count(self, day: str) -> int:
        """Current count for ``day``, loading or refreshing as needed."""
        self._sync(day)
        return self._count

    def peek(self, day: str) -> int:
        """Current count for ``day`` without touching cached state."""
        if self._day == day:
            return self._count
        return self._read(day) or 0

    def increment(self, day: str) -> int:
        """Count one admission for ``day``; the store write may be deferred."""
        self._sync(day)
        self._count += 1
        self._dirty = True
        if self._clock() - self._flushed_at >= self._flush_interval:
            self.flush()
        return self._count

    def flush(self) -> None:
        """Write any pending count to the store.

        Skipped while the stored count is unknown; the increments stay
        pending.
        """
        if not self._dirty or self._day is None:
            return
        if not self._synced:
            self._reconcile(self._day)
            if not self._synced:
                return
        try:
            self._store.set(self.key_for(self._day), str(self._count), ttl=DAILY_KEY_TTL)
        except StoreError as e:
            logger.warning("Could not persist daily counter for %s: %s", self._day, e)
            return
        self._dirty = False
        self._flushed_at = self._clock()

    @property
    def pending(self) -> bool:
        """Whether increments are waiting to be written."""
        return self._dirty


class QuotaTracker:
    """Admission control for translate requests.

    Example:
        ```python
        tracker = QuotaTracker(store=RedisKeyValueStore.create(), daily_limit=50)
        admission = tracker.admit("203.0.113.7")
        if not admission.admitted:
            print(admission.denial, tracker.current_usage())
        ```
    """

    def __init__(
        self,
        store: KeyValueStore,
        key_prefix: str = "cron_translator",
        daily_limit: int = 50,
        per_caller_max: int = 3,
        per_caller_window_seconds: int = 3600,
        burst_max: int = 2,
        burst_window_seconds: int = 60,
        flush_interval: float = 3.0,
        clock: Callable[[], float] = time.time,
        counter_cache: DailyCounterCache | None = None,
    ) -> None:
        """Initialize the quota tracker.

        Args:
            store: Durable key-value store for counters.
            key_prefix: Namespace for all quota keys.
            daily_limit: Maximum admissions per UTC day, across all callers.
            per_caller_max: Maximum admissions per caller per window.
            per_caller_window_seconds: Sliding window length.
            burst_max: Maximum admissions per caller per burst window.
            burst_window_seconds: Burst window length.
            flush_interval: Debounce interval for daily counter writes.
            clock: Returns the current Unix time in seconds.
            counter_cache: Daily counter cache; built from the store if None.
        """
        self._store = store
        self._key_prefix = key_prefix
        self._daily_limit = daily_limit
        self._per_caller_max = per_caller_max
        self._window_ms = per_caller_window_seconds * 1000
        self._burst_max = burst_max
        self._burst_window_ms = burst_window_seconds * 1000
        self._clock = clock
        self._daily = counter_cache or DailyCounterCache(
            store, key_prefix, flush_interval=flush_interval, clock=clock
        )

    def caller_key(self, caller_id: str) -> str:
        return f"{self._key_prefix}:caller:{caller_id}"

    def _load_timestamps(self, caller_id: str) -> list[int]:
        try:
            raw = self._store.get(self.caller_key(caller_id))
        except StoreError as e:
            logger.warning("Could not read quota for caller %s: %s", caller_id, e)
            return []
        if raw is None:
            return []
        try:
            return sorted(int(ts) for ts in json.loads(raw))
        except (TypeError, ValueError):
            logger.warning("Ignoring corrupt quota record for caller %s: %r", caller_id, raw)
            return []

    def _save_timestamps(self, caller_id: str, timestamps: list[int]) -> None:
        try:
            self._store.set(
                self.caller_key(caller_id),
                json.dumps(timestamps),
                ttl=self._window_ms // 1000,
            )
        except StoreError as e:
            logger.warning("Could not persist quota for caller %s: %s", caller_id, e)

    def admit(self, caller_id: str) -> Admission:
        """Decide whether a request from ``caller_id`` may proceed.

        On admission the caller's timestamp list and the daily counter are
        both updated.

        Args:
            caller_id: Caller identity (``"unknown"`` when none is available)

        Returns:
            Admission, with the denial kind when rejected
        """
        now = self._clock()
        now_ms = int(now * 1000)
        today = day_key(now)

        if self._daily.count(today) >= self._daily_limit:
            logger.info("Daily limit of %d reached", self._daily_limit)
            return Admission.deny(DenialKind.DAILY_LIMIT_REACHED)

        timestamps = [ts for ts in self._load_timestamps(caller_id) if now_ms - ts < self._window_ms]
        if len(timestamps) >= self._per_caller_max:
            logger.info("Caller %s hit per-caller limit (%d/%d)", caller_id, len(timestamps), self._per_caller_max)
            return Admission.deny(DenialKind.PER_CALLER_LIMIT_REACHED)

        recent = sum(1 for ts in timestamps if now_ms - ts < self._burst_window_ms)
        if recent >= self._burst_max:
            logger.info("Caller %s hit burst limit (%d/%d)", caller_id, recent, self._burst_max)
            return Admission.deny(DenialKind.BURST_LIMIT_REACHED)

        timestamps.append(now_ms)
        self._save_timestamps(caller_id, timestamps)
        self._daily.increment(today)
        return Admission.allow()

    def current_usage(self) -> QuotaUsage:
        """Snapshot of quota usage. Never mutates state."""
        today = day_key(self._clock())
        return QuotaUsage(
            daily_used=self._daily.peek(today),
            daily_limit=self._daily_limit,
            date=today,
            per_caller_max=self._per_caller_max,
            per_caller_window_ms=self._window_ms,
            burst_max=self._burst_max,
            burst_window_ms=self._burst_window_ms,
        )

    def flush(self) -> None:
        """Persist any debounced counter increments."""
        self._daily.flush()
