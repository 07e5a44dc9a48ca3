"""
astroview/main.py  — AstroView Data API v1
Startup: opens the durable store, builds the service graph, launches the
cache warmer. Shutdown: stops the warmer, lets detached refreshes and
durable saves settle, closes the HTTP client and the database.
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from astroview.core.config import ADMIN_TOKEN, LOG_LEVEL, VERSION, WARM_INTERVAL_S, WARM_ON_STARTUP
from astroview.core.scheduler import CacheWarmer
from astroview.routers import admin, apod, asteroids, disasters, impact, missions, space_weather
from astroview.services import Services, create_services

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("main")


def _attach(app: FastAPI, services: Services) -> None:
    app.state.services = services
    app.state.warmer   = CacheWarmer(services, WARM_INTERVAL_S)


def create_app(
    services: Optional[Services] = None,
    warm_on_startup: bool = WARM_ON_STARTUP,
    admin_token: str = ADMIN_TOKEN,
) -> FastAPI:
    """
    Pass `services` to run against a pre-built graph (tests); it is then
    owned by the caller and not closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info(f"AstroView Data API v{VERSION} starting...")
        owned = services is None
        if owned:
            _attach(app, await create_services())

        warm_task = None
        if warm_on_startup:
            warm_task = asyncio.create_task(app.state.warmer.run())
        yield
        log.info("Shutting down...")
        if warm_task is not None:
            warm_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await warm_task
        if owned:
            await app.state.services.aclose()
        else:
            await app.state.services.drain()

    app = FastAPI(
        title="AstroView Data API",
        description=(
            "Cache-first aggregation of space and Earth-observation data. "
            "Sources: The Space Devs Launch Library (missions), NASA EONET "
            "(natural events), NASA POWER (agriculture), NASA Mars Rover Photos, "
            "NASA APOD, NASA NeoWs (asteroid flybys), NOAA SWPC (solar flares). "
            "Stale data is served while refreshing in the background; durable "
            "summaries survive restarts."
        ),
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.admin_token = admin_token
    if services is not None:
        _attach(app, services)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # ── Routers ──────────────────────────────────────────────────────────────
    app.include_router(missions.router)
    app.include_router(disasters.router)
    app.include_router(impact.router)
    app.include_router(apod.router)
    app.include_router(asteroids.router)
    app.include_router(space_weather.router)
    app.include_router(admin.router)

    @app.get("/", tags=["meta"])
    async def root():
        return {
            "status":  "online",
            "version": VERSION,
            "sources": {
                "missions":    "The Space Devs Launch Library 2 + NASA Mars Rover Photos",
                "disasters":   "NASA EONET v3",
                "agriculture": "NASA POWER (daily point, AG community)",
                "climate":     "Regional indicator model (NASA GISS / NOAA anchored)",
                "apod":        "NASA Astronomy Picture of the Day",
                "asteroids":   "NASA NeoWs feed",
                "space_weather": "NOAA SWPC GOES X-ray flares",
            },
            "endpoints": {
                "missions":          "/missions",
                "mission":           "/missions/{id}",
                "disasters":         "/disasters",
                "disaster":          "/disasters/{id}",
                "impact_summary":    "/impact/summary",
                "agriculture":       "/impact/agriculture",
                "agriculture_zones": "/impact/agriculture/zones",
                "climate":           "/impact/climate",
                "climate_metrics":   "/impact/climate/metrics",
                "climate_history":   "/impact/climate/history?years={n}",
                "apod":              "/apod?date={YYYY-MM-DD}",
                "asteroids":         "/asteroids",
                "asteroid":          "/asteroids/{id}",
                "solar_flares":      "/solar-flares",
                "metrics":           "/admin/metrics",
                "cache":             "/admin/cache",
                "health":            "/health",
                "docs":              "/docs",
            },
        }

    @app.get("/health", tags=["meta"])
    async def health():
        """Lightweight health check."""
        svc: Services = app.state.services
        summary = svc.cache.summary()
        return {
            "status":        "healthy" if summary else "warming_up",
            "cache_keys":    summary,
            "durable_store": svc.store is not None,
        }

    return app


app = create_app()
