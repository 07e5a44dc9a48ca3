"""
astroview/core/cache.py
═══════════════════════════════════════════════════════════════════════════
In-process TTL cache with background refresh.

  fetch_with_background_refresh(key, ttl_s, fetcher):
    • no entry  → miss; await fetcher(), store, return      (errors propagate)
    • age < ttl → hit; return cached data, no fetch
    • age ≥ ttl → hit; return cached data NOW, refresh in a detached task
                  success → entry replaced wholesale with a new timestamp
                  failure → warning logged, stale entry left untouched

  • Entries are replaced, never mutated in place
  • Writes are last-write-wins; concurrent stale reads may each start a
    refresh (no per-key in-flight de-duplication)
  • The lock guards dict operations only and is never held across an await
  • Nothing is persisted; a restart starts empty
═══════════════════════════════════════════════════════════════════════════
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from astroview.core.background import DetachedTasks
from astroview.core.metrics import MetricsRecorder

log = logging.getLogger("cache")

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry:
    timestamp: float   # epoch seconds of the write
    data:      Any


class CacheService:
    def __init__(
        self,
        metrics: Optional[MetricsRecorder] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store: dict[str, CacheEntry] = {}
        self._lock    = threading.Lock()
        self._metrics = metrics if metrics is not None else MetricsRecorder()
        self._clock   = clock
        self._refreshes = DetachedTasks("cache-refresh")

    # ── Reads / writes ────────────────────────────────────────────────────────

    def _entry(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._store.get(key)

    def _age(self, entry: CacheEntry) -> float:
        return self._clock() - entry.timestamp

    def set_cache(self, key: str, data: Any) -> None:
        """Unconditional overwrite stamped with the current time."""
        entry = CacheEntry(timestamp=self._clock(), data=data)
        with self._lock:
            self._store[key] = entry

    def get_cached(self, key: str, max_age_s: float) -> Optional[Any]:
        """Whatever is stored, however old; None only if the key was never set."""
        entry = self._entry(key)
        if entry is None:
            return None
        if self._age(entry) <= max_age_s:
            self._metrics.record_cache_event(key, True)
        return entry.data

    def get_if_fresh(self, key: str, max_age_s: float) -> Optional[Any]:
        entry = self._entry(key)
        if entry is None or self._age(entry) > max_age_s:
            return None
        self._metrics.record_cache_event(key, True)
        return entry.data

    def clear_cache(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                n = len(self._store)
                self._store.clear()
            else:
                n = 1 if self._store.pop(key, None) is not None else 0
        log.info(f"Cleared {n} entr{'y' if n == 1 else 'ies'}" + (f" for {key}" if key else ""))

    def summary(self) -> dict:
        """Metadata only — safe to expose in /health."""
        now = self._clock()
        with self._lock:
            return {k: {"age_s": round(now - e.timestamp, 1)} for k, e in self._store.items()}

    # ── Background refresh ────────────────────────────────────────────────────

    async def fetch_with_background_refresh(
        self,
        key: str,
        ttl_s: float,
        fetcher: Callable[[], Awaitable[T]],
    ) -> T:
        entry = self._entry(key)

        if entry is None:
            self._metrics.record_cache_event(key, False)
            log.debug(f"MISS {key} — fetching")
            data = await fetcher()
            self.set_cache(key, data)
            return data

        self._metrics.record_cache_event(key, True)
        if self._age(entry) < ttl_s:
            return entry.data

        log.debug(f"STALE {key} ({self._age(entry):.0f}s old) — serving cached, refreshing")
        self._refreshes.spawn(self._refresh(key, fetcher), name=key)
        return entry.data

    async def _refresh(self, key: str, fetcher: Callable[[], Awaitable[Any]]) -> None:
        try:
            data = await fetcher()
        except Exception as ex:
            # Stale entry stays valid until a refresh succeeds
            log.warning(f"Background refresh for {key} failed: {ex}")
            return
        self.set_cache(key, data)
        log.info(f"Background refresh for {key} completed")

    @property
    def refreshes_in_flight(self) -> int:
        return self._refreshes.pending

    async def wait_for_refreshes(self) -> None:
        await self._refreshes.drain()
