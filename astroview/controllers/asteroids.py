"""
astroview/controllers/asteroids.py
Near-Earth asteroid flybys for the coming week (NASA NeoWs).

  cache "asteroids:flybys" (1 h) → NeoWs feed → 2 per day, 12 max →
  durable save in background
  on failure: durable "asteroids/flybys" (any age) → one demo flyby
"""

import logging
from typing import Optional

import httpx

from astroview.core.cache import CacheService
from astroview.core.config import NEO_TTL_S
from astroview.core.metrics import MetricsRecorder
from astroview.core.summary_cache import SummaryCache
from astroview.sources.neo import fallback_flybys, fetch_neo_feed, normalize_flybys

log = logging.getLogger("asteroids")

FLYBYS_KEY = "asteroids:flybys"


class AsteroidsController:
    def __init__(
        self,
        cache: CacheService,
        client: httpx.AsyncClient,
        metrics: MetricsRecorder,
        flybys_store: SummaryCache,
    ) -> None:
        self._cache   = cache
        self._client  = client
        self._metrics = metrics
        self._flybys  = flybys_store

    async def _load_flybys(self) -> list[dict]:
        feed = await fetch_neo_feed(self._client, self._metrics)
        flybys = normalize_flybys(feed)
        if flybys:
            self._flybys.save_in_background(flybys)
        return flybys

    async def get_flybys(self) -> list[dict]:
        try:
            return await self._cache.fetch_with_background_refresh(
                FLYBYS_KEY, NEO_TTL_S, self._load_flybys,
            )
        except Exception as ex:
            log.warning(f"NeoWs fetch failed ({ex}) — falling back to durable cache")

        cached = await self._flybys.get_cached()
        if cached:
            return cached.summary

        log.error("No cached flybys available either — serving demo flyby")
        return fallback_flybys()

    async def get_asteroid_by_id(self, asteroid_id: str) -> Optional[dict]:
        for flyby in await self.get_flybys():
            if flyby.get("id") == asteroid_id:
                return flyby
        return None
