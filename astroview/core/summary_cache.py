"""
astroview/core/summary_cache.py
═══════════════════════════════════════════════════════════════════════════
Durable summary cache (repository pattern).

One fixed document per domain (e.g. "agriculture/summary"), hours-scale TTL,
sitting underneath the minutes-scale in-process cache.

  get_cached() → SummaryRecord | None
      None when: store unavailable, document missing, older than ttl_hours,
      or the store raised. cache_age_hours is computed here, never stored.
  save(summary) → overwrite {summary, last_updated: now}; failures are
      logged, never raised — controllers can always recompute.
  save_in_background(summary) → same, detached from the caller.

The store itself is a narrow protocol: load a document by key, overwrite a
document by key. SqlSummaryStore (astroview/core/db.py) is the production
implementation; MemorySummaryStore is for tests and database-less runs.
═══════════════════════════════════════════════════════════════════════════
"""

import copy
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Protocol

from astroview.core.background import DetachedTasks
from astroview.core.config import UTC

log = logging.getLogger("summary_cache")


@dataclass(frozen=True)
class StoredDocument:
    payload:      Any
    last_updated: datetime


@dataclass(frozen=True)
class SummaryRecord:
    summary:         Any
    last_updated:    datetime
    cache_age_hours: float

    def as_response(self, stale: bool = False) -> dict:
        """Summary fields plus freshness metadata, as served to clients."""
        out = {
            **self.summary,
            "last_updated":    self.last_updated.isoformat(),
            "cache_age_hours": round(self.cache_age_hours, 2),
        }
        if stale:
            out["stale"] = True
        return out


class SummaryStore(Protocol):
    async def load(self, key: str) -> Optional[StoredDocument]: ...

    async def store(self, key: str, payload: Any, last_updated: datetime) -> None: ...


class MemorySummaryStore:
    """Process-local stand-in for the durable store."""

    def __init__(self) -> None:
        self.documents: dict[str, StoredDocument] = {}

    async def load(self, key: str) -> Optional[StoredDocument]:
        doc = self.documents.get(key)
        return StoredDocument(copy.deepcopy(doc.payload), doc.last_updated) if doc else None

    async def store(self, key: str, payload: Any, last_updated: datetime) -> None:
        self.documents[key] = StoredDocument(copy.deepcopy(payload), last_updated)


def utc_now() -> datetime:
    return datetime.now(UTC)


class SummaryCache:
    def __init__(
        self,
        store: Optional[SummaryStore],
        key: str,
        ttl_hours: Optional[float] = 6.0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.key        = key
        self.ttl_hours  = ttl_hours
        self._store     = store
        self._clock     = clock
        self._saves     = DetachedTasks(f"durable-save:{key}")

    async def get_cached(self) -> Optional[SummaryRecord]:
        return await self._read(self.ttl_hours)

    async def get_latest(self) -> Optional[SummaryRecord]:
        """Last saved record regardless of age (last-resort fallback)."""
        return await self._read(None)

    async def _read(self, ttl_hours: Optional[float]) -> Optional[SummaryRecord]:
        if self._store is None:
            log.debug(f"[{self.key}] durable store not available")
            return None

        try:
            doc = await self._store.load(self.key)
        except Exception as ex:
            log.warning(f"[{self.key}] error reading durable cache: {ex}")
            return None

        if doc is None:
            return None

        age_hours = (self._clock() - doc.last_updated).total_seconds() / 3600
        if ttl_hours is not None and age_hours > ttl_hours:
            log.debug(f"[{self.key}] durable cache expired ({age_hours:.1f}h old)")
            return None

        log.debug(f"[{self.key}] using durable cache ({age_hours:.1f}h old)")
        return SummaryRecord(summary=doc.payload, last_updated=doc.last_updated, cache_age_hours=age_hours)

    async def save(self, summary: Any) -> None:
        if self._store is None:
            log.debug(f"[{self.key}] durable store not available — skipping save")
            return
        try:
            await self._store.store(self.key, summary, self._clock())
            log.debug(f"[{self.key}] saved to durable cache")
        except Exception as ex:
            log.warning(f"[{self.key}] error saving to durable cache: {ex}")

    def save_in_background(self, summary: Any) -> None:
        self._saves.spawn(self.save(summary))

    async def drain(self) -> None:
        await self._saves.drain()


class KeyedSummaryCache:
    """
    A family of durable documents under one prefix, one per sub-key
    (e.g. "climate/history/5", "apod/2026-10-19"). Each document behaves
    like its own SummaryCache and is created on first use.
    """

    def __init__(
        self,
        store: Optional[SummaryStore],
        prefix: str,
        ttl_hours: Optional[float] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.prefix     = prefix
        self.ttl_hours  = ttl_hours
        self._store     = store
        self._clock     = clock
        self._documents: dict[str, SummaryCache] = {}

    def __getitem__(self, sub_key: Any) -> SummaryCache:
        key = f"{self.prefix}/{sub_key}"
        doc = self._documents.get(key)
        if doc is None:
            doc = self._documents[key] = SummaryCache(self._store, key, self.ttl_hours, self._clock)
        return doc

    async def drain(self) -> None:
        for doc in list(self._documents.values()):
            await doc.drain()
