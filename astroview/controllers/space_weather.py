"""
astroview/controllers/space_weather.py
Latest solar X-ray flares from NOAA SWPC.

  cache "swpc:flares" (10 min) → SWPC → normalise → durable save in background
  on failure: durable "space-weather/flares" (any age) → []
"""

import logging

import httpx

from astroview.core.cache import CacheService
from astroview.core.config import FLARES_TTL_S
from astroview.core.metrics import MetricsRecorder
from astroview.core.summary_cache import SummaryCache
from astroview.sources.swpc import fetch_xray_flares

log = logging.getLogger("space_weather")

FLARES_KEY = "swpc:flares"


class SpaceWeatherController:
    def __init__(
        self,
        cache: CacheService,
        client: httpx.AsyncClient,
        metrics: MetricsRecorder,
        flares_store: SummaryCache,
    ) -> None:
        self._cache   = cache
        self._client  = client
        self._metrics = metrics
        self._flares  = flares_store

    async def _load_flares(self) -> list[dict]:
        flares = await fetch_xray_flares(self._client, self._metrics)
        if flares:
            self._flares.save_in_background(flares)
        return flares

    async def get_solar_flares(self) -> list[dict]:
        try:
            return await self._cache.fetch_with_background_refresh(
                FLARES_KEY, FLARES_TTL_S, self._load_flares,
            )
        except Exception as ex:
            log.warning(f"SWPC fetch failed ({ex}) — falling back to durable cache")

        cached = await self._flares.get_cached()
        if cached:
            return cached.summary

        log.error("No cached solar flares available either — returning empty list")
        return []
