"""
astroview/controllers/agriculture.py
═══════════════════════════════════════════════════════════════════════════════
Agriculture monitoring zones (NASA POWER) and the Impact-page summary.

Zones:
  cache "agriculture:zones" (1 h) → POWER per zone, bounded fan-out → derive
  metrics, failed zones get baseline values → durable save in background.
  Every zone failing counts as an upstream failure:
  durable "agriculture/zones" (any age) → [].

Summary:
  durable "agriculture/summary" (6 h TTL) → else aggregate the zones and save
  in background → on error the last durable summary of any age, marked stale
  → static fallback.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from functools import partial
from typing import Optional

import httpx

from astroview.core.cache import CacheService
from astroview.core.config import (
    AGRICULTURE_SUMMARY_FALLBACK, AGRICULTURE_ZONES_TTL_S, HECTARES_TO_ACRES, POWER_BASE,
    POWER_CONCURRENCY,
)
from astroview.core.http_client import FetchError
from astroview.core.metrics import MetricsRecorder
from astroview.core.pool import run_with_concurrency
from astroview.core.summary_cache import SummaryCache
from astroview.sources.nasa_power import ZONES, derive_zone_metrics, fallback_zone, fetch_zone_parameters

log = logging.getLogger("agriculture")

ZONES_KEY = "agriculture:zones"


def summarize_zones(zones: list[dict]) -> dict:
    n = len(zones)
    hectares = sum(z["area_hectares"] for z in zones)
    return {
        "total_area_acres":      round(hectares * HECTARES_TO_ACRES),
        "avg_vegetation_health": round(sum(z["vegetation_health"] for z in zones) / n),
        "avg_soil_moisture":     round(sum(z["soil_moisture"] for z in zones) / n),
        "yield_trend_percent":   round(sum(z["yield_trend"] for z in zones) / n, 1),
        "active_zones":          n,
    }


class AgricultureController:
    def __init__(
        self,
        cache: CacheService,
        client: httpx.AsyncClient,
        metrics: MetricsRecorder,
        zones_store: SummaryCache,
        summary_store: SummaryCache,
    ) -> None:
        self._cache    = cache
        self._client   = client
        self._metrics  = metrics
        self._zones    = zones_store
        self._summary  = summary_store

    async def _load_zones(self) -> list[dict]:
        results = await run_with_concurrency(
            [partial(fetch_zone_parameters, self._client, z, self._metrics) for z in ZONES],
            POWER_CONCURRENCY,
        )
        if all(r is None for r in results):
            raise FetchError(POWER_BASE, reason="no zone could be fetched")

        zones = [
            derive_zone_metrics(z, params) if params is not None else fallback_zone(z)
            for z, params in zip(ZONES, results)
        ]
        live = sum(1 for r in results if r is not None)
        log.info(f"NASA POWER: {live}/{len(ZONES)} zones live")
        self._zones.save_in_background(zones)
        return zones

    async def get_zones(self) -> list[dict]:
        try:
            return await self._cache.fetch_with_background_refresh(
                ZONES_KEY, AGRICULTURE_ZONES_TTL_S, self._load_zones,
            )
        except Exception as ex:
            log.warning(f"Agriculture zones unavailable ({ex}) — falling back to durable cache")

        cached = await self._zones.get_cached()
        if cached:
            return cached.summary

        log.error("No cached agriculture zones available either")
        return []

    async def get_summary(self) -> dict:
        cached = await self._summary.get_cached()
        if cached:
            return cached.as_response()

        log.debug("Summary cache miss — computing fresh summary")
        try:
            zones = await self.get_zones()
            if zones:
                summary = summarize_zones(zones)
                self._summary.save_in_background(summary)
                return summary
            log.warning("No agriculture zones available to summarise")
        except Exception as ex:
            log.error(f"Error computing agriculture summary: {ex}")

        latest = await self._summary.get_latest()
        if latest:
            return latest.as_response(stale=True)
        return dict(AGRICULTURE_SUMMARY_FALLBACK)

    async def get_zone_by_id(self, zone_id: str) -> Optional[dict]:
        for zone in await self.get_zones():
            if zone.get("id") == zone_id:
                return zone
        return None
