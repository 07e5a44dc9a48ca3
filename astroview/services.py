"""
astroview/services.py
Process-wide object graph, built once at startup and injected everywhere.

  metrics  → MetricsRecorder
  cache    → CacheService (in-process, minutes-scale)
  client   → shared httpx.AsyncClient
  store    → durable SummaryStore, or None when unavailable
  controllers: missions, disasters, agriculture, climate, apod, asteroids,
               space_weather

Tests build their own graph with build_services() around a mock transport
and a MemorySummaryStore.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

import httpx
from fastapi import Request

from astroview.controllers.agriculture import AgricultureController
from astroview.controllers.apod import ApodController
from astroview.controllers.asteroids import AsteroidsController
from astroview.controllers.climate import ClimateController
from astroview.controllers.disasters import DisasterController
from astroview.controllers.missions import MissionsController
from astroview.controllers.space_weather import SpaceWeatherController
from astroview.core.cache import CacheService
from astroview.core.config import APOD_TTL_HOURS, DATABASE_ECHO, DATABASE_URL, SUMMARY_TTL_HOURS
from astroview.core.db import Database, SqlSummaryStore
from astroview.core.http_client import create_client
from astroview.core.metrics import MetricsRecorder
from astroview.core.summary_cache import KeyedSummaryCache, SummaryCache, SummaryStore

log = logging.getLogger("services")


@dataclass
class Services:
    metrics:       MetricsRecorder
    cache:         CacheService
    client:        httpx.AsyncClient
    store:         Optional[SummaryStore]
    missions:      MissionsController
    disasters:     DisasterController
    agriculture:   AgricultureController
    climate:       ClimateController
    apod:          ApodController
    asteroids:     AsteroidsController
    space_weather: SpaceWeatherController
    durable:       list[Union[SummaryCache, KeyedSummaryCache]] = field(default_factory=list)
    database:      Optional[Database] = None

    async def drain(self) -> None:
        """Wait for detached refreshes and durable saves to settle."""
        await self.cache.wait_for_refreshes()
        for sc in self.durable:
            await sc.drain()

    async def aclose(self) -> None:
        await self.drain()
        if not self.client.is_closed:
            await self.client.aclose()
        if self.database is not None:
            await self.database.close()


def build_services(
    client: httpx.AsyncClient,
    store: Optional[SummaryStore],
    metrics: Optional[MetricsRecorder] = None,
    cache: Optional[CacheService] = None,
    database: Optional[Database] = None,
) -> Services:
    metrics = metrics if metrics is not None else MetricsRecorder()
    cache   = cache if cache is not None else CacheService(metrics)

    upcoming     = SummaryCache(store, "missions/upcoming", ttl_hours=None)
    active       = SummaryCache(store, "disasters/active", ttl_hours=None)
    zones        = SummaryCache(store, "agriculture/zones", ttl_hours=None)
    agri_summary = SummaryCache(store, "agriculture/summary", ttl_hours=SUMMARY_TTL_HOURS)
    climate_now  = SummaryCache(store, "climate/metrics", ttl_hours=None)
    climate_hist = KeyedSummaryCache(store, "climate/history", ttl_hours=None)
    climate_sum  = SummaryCache(store, "climate/summary", ttl_hours=SUMMARY_TTL_HOURS)
    apod_by_date = KeyedSummaryCache(store, "apod", ttl_hours=APOD_TTL_HOURS)
    apod_latest  = SummaryCache(store, "apod/latest", ttl_hours=None)
    flybys       = SummaryCache(store, "asteroids/flybys", ttl_hours=None)
    flares       = SummaryCache(store, "space-weather/flares", ttl_hours=None)

    return Services(
        metrics=metrics,
        cache=cache,
        client=client,
        store=store,
        missions=MissionsController(cache, client, metrics, upcoming),
        disasters=DisasterController(cache, client, metrics, active),
        agriculture=AgricultureController(cache, client, metrics, zones, agri_summary),
        climate=ClimateController(cache, climate_now, climate_hist, climate_sum),
        apod=ApodController(cache, client, metrics, apod_by_date, apod_latest),
        asteroids=AsteroidsController(cache, client, metrics, flybys),
        space_weather=SpaceWeatherController(cache, client, metrics, flares),
        durable=[
            upcoming, active, zones, agri_summary, climate_now, climate_hist, climate_sum,
            apod_by_date, apod_latest, flybys, flares,
        ],
        database=database,
    )


async def _open_store() -> tuple[Optional[Database], Optional[SummaryStore]]:
    if not DATABASE_URL:
        log.warning("DATABASE_URL empty — durable cache disabled")
        return None, None
    db = Database(DATABASE_URL, echo=DATABASE_ECHO)
    try:
        await db.init()
    except Exception as ex:
        # Durable cache is an optimisation: run without it
        log.warning(f"Durable store unavailable ({ex}) — durable cache disabled")
        await db.close()
        return None, None
    return db, SqlSummaryStore(db.session_factory)


async def create_services() -> Services:
    database, store = await _open_store()
    return build_services(create_client(), store, database=database)


def get_services(request: Request) -> Services:
    """FastAPI dependency."""
    return request.app.state.services
