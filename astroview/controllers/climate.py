"""
astroview/controllers/climate.py
Regional climate indicators, historical series and the Impact-page summary.

Same ladder as agriculture: in-process cache → compute → durable save in
background → durable copy → static fallback. The summary document has a
6 h TTL; regional metrics and history fall back to durable copies of any age.
History keeps one durable document per length, "climate/history/{years}".
"""

import logging
from typing import Optional

from astroview.core.cache import CacheService
from astroview.core.config import CLIMATE_HISTORY_TTL_S, CLIMATE_METRICS_TTL_S, CLIMATE_SUMMARY_FALLBACK
from astroview.core.summary_cache import KeyedSummaryCache, SummaryCache
from astroview.sources.climate import historical_series, regional_metrics

log = logging.getLogger("climate")

METRICS_KEY     = "climate:metrics"
MAX_HISTORY_YRS = 30


def summarize_metrics(metrics: list[dict]) -> dict:
    n = len(metrics)

    def avg(field: str) -> float:
        return sum(m[field] for m in metrics) / n

    return {
        "avg_temperature_anomaly": round(avg("temperature_anomaly_c"), 2),
        "avg_co2":                 round(avg("co2_ppm"), 1),
        "avg_sea_level_rise":      round(avg("sea_level_rise_mm")),
        "avg_ice_loss":            round(avg("ice_mass_loss_gt")),
        "total_regions":           n,
    }


class ClimateController:
    def __init__(
        self,
        cache: CacheService,
        metrics_store: SummaryCache,
        history_store: KeyedSummaryCache,
        summary_store: SummaryCache,
    ) -> None:
        self._cache   = cache
        self._metrics = metrics_store
        self._history = history_store
        self._summary = summary_store

    async def _load_metrics(self) -> list[dict]:
        metrics = regional_metrics()
        self._metrics.save_in_background(metrics)
        return metrics

    async def get_metrics(self) -> list[dict]:
        try:
            return await self._cache.fetch_with_background_refresh(
                METRICS_KEY, CLIMATE_METRICS_TTL_S, self._load_metrics,
            )
        except Exception as ex:
            log.error(f"Error computing climate metrics: {ex}")

        cached = await self._metrics.get_cached()
        if cached:
            return cached.summary
        return []

    async def get_summary(self) -> dict:
        cached = await self._summary.get_cached()
        if cached:
            return cached.as_response()

        try:
            metrics = await self.get_metrics()
            if metrics:
                summary = summarize_metrics(metrics)
                self._summary.save_in_background(summary)
                return summary
            log.warning("No climate metrics available to summarise")
        except Exception as ex:
            log.error(f"Error computing climate summary: {ex}")

        latest = await self._summary.get_latest()
        if latest:
            return latest.as_response(stale=True)
        return dict(CLIMATE_SUMMARY_FALLBACK)

    async def get_historical(self, years: int = 5) -> list[dict]:
        years = max(1, min(MAX_HISTORY_YRS, years))

        async def load() -> list[dict]:
            series = historical_series(years)
            self._history[years].save_in_background(series)
            return series

        try:
            return await self._cache.fetch_with_background_refresh(
                f"climate:history:{years}", CLIMATE_HISTORY_TTL_S, load,
            )
        except Exception as ex:
            log.error(f"Error computing climate history: {ex}")

        cached = await self._history[years].get_cached()
        if cached:
            return cached.summary
        return []

    async def get_metric_by_id(self, metric_id: str) -> Optional[dict]:
        for m in await self.get_metrics():
            if m.get("id") == metric_id:
                return m
        for m in await self.get_historical(MAX_HISTORY_YRS):
            if m.get("id") == metric_id:
                return m
        return None
