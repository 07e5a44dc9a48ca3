"""
astroview/controllers/apod.py
Astronomy Picture of the Day.

  cache "apod:{date}" / "apod:today" (1 h) → durable "apod/{date}" (24 h)
  → NASA APOD → durable saves in background ("apod/{date}", "apod/latest")
  on failure, with a date: durable "apod/{date}" (any age) → None
  on failure, without one: durable "apod/latest" marked stale → None
"""

import logging
from functools import partial
from typing import Optional

import httpx

from astroview.core.cache import CacheService
from astroview.core.config import APOD_TTL_S
from astroview.core.metrics import MetricsRecorder
from astroview.core.summary_cache import KeyedSummaryCache, SummaryCache
from astroview.sources.apod import fetch_apod

log = logging.getLogger("apod")


class ApodController:
    def __init__(
        self,
        cache: CacheService,
        client: httpx.AsyncClient,
        metrics: MetricsRecorder,
        by_date_store: KeyedSummaryCache,
        latest_store: SummaryCache,
    ) -> None:
        self._cache   = cache
        self._client  = client
        self._metrics = metrics
        self._by_date = by_date_store
        self._latest  = latest_store

    async def _load(self, date: Optional[str]) -> dict:
        if date:
            cached = await self._by_date[date].get_cached()
            if cached:
                return cached.summary

        apod = await fetch_apod(self._client, self._metrics, date)
        self._by_date[apod["date"] or date or "today"].save_in_background(apod)
        self._latest.save_in_background(apod)
        return apod

    async def get_apod(self, date: Optional[str] = None) -> Optional[dict]:
        """`date` is YYYY-MM-DD; None asks NASA for today's entry."""
        try:
            return await self._cache.fetch_with_background_refresh(
                f"apod:{date or 'today'}", APOD_TTL_S, partial(self._load, date),
            )
        except Exception as ex:
            log.warning(f"APOD fetch failed ({ex}) — falling back to durable cache")

        if date:
            cached = await self._by_date[date].get_latest()
            if cached:
                return cached.summary
        else:
            latest = await self._latest.get_latest()
            if latest:
                return {**latest.summary, "stale": True}

        log.error(f"No APOD available for {date or 'today'}")
        return None
