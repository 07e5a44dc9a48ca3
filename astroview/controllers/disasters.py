"""
astroview/controllers/disasters.py
Active natural events from NASA EONET.

  cache "disasters:active" (15 min) → EONET → normalise → keep events with a
  usable location → durable save in background
  on failure: durable "disasters/active" (any age) → []
"""

import logging
from typing import Optional

import httpx

from astroview.core.cache import CacheService
from astroview.core.config import DISASTERS_TTL_S
from astroview.core.metrics import MetricsRecorder
from astroview.core.summary_cache import SummaryCache
from astroview.sources.eonet import fetch_open_events, has_location, normalize_event

log = logging.getLogger("disasters")

ACTIVE_KEY = "disasters:active"


def _records(raw: list) -> list[dict]:
    records = [r for r in raw if isinstance(r, dict)]
    if len(records) != len(raw):
        log.warning(f"Skipped {len(raw) - len(records)} EONET records that are not objects")
    return records


class DisasterController:
    def __init__(
        self,
        cache: CacheService,
        client: httpx.AsyncClient,
        metrics: MetricsRecorder,
        active_store: SummaryCache,
    ) -> None:
        self._cache   = cache
        self._client  = client
        self._metrics = metrics
        self._active  = active_store

    async def _load_active(self) -> list[dict]:
        raw = await fetch_open_events(self._client, self._metrics)
        events = [e for e in map(normalize_event, _records(raw)) if has_location(e)]
        dropped = len(raw) - len(events)
        if dropped:
            log.debug(f"Dropped {dropped} EONET events without a usable location")
        if events:
            self._active.save_in_background(events)
        return events

    async def get_active_disasters(self) -> list[dict]:
        try:
            return await self._cache.fetch_with_background_refresh(
                ACTIVE_KEY, DISASTERS_TTL_S, self._load_active,
            )
        except Exception as ex:
            log.warning(f"EONET fetch failed ({ex}) — falling back to durable cache")

        cached = await self._active.get_cached()
        if cached:
            return cached.summary

        log.error("No cached disaster events available either — returning empty list")
        return []

    async def get_disaster_by_id(self, event_id: str) -> Optional[dict]:
        for event in await self.get_active_disasters():
            if event.get("id") == event_id:
                return event
        return None
