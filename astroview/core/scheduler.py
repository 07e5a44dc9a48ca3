"""
astroview/core/scheduler.py
═══════════════════════════════════════════════════════════════════════════════
Cache warmer.

  1. ONE warm loop per process (guarded by the _running flag)
  2. ONE warm cycle at a time (asyncio.Lock — a cycle requested while another
     is running is skipped, never queued)
  3. A cycle calls every controller entry point once, so cold keys are filled
     before the first user request and stale keys start their refresh
  4. A failing job is logged and the cycle carries on
═══════════════════════════════════════════════════════════════════════════════
"""

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable

if TYPE_CHECKING:
    from astroview.services import Services

log = logging.getLogger("scheduler")

Job = Callable[["Services"], Awaitable[object]]

JOBS: list[tuple[str, Job]] = [
    ("missions",            lambda s: s.missions.get_upcoming_missions()),
    ("disasters",           lambda s: s.disasters.get_active_disasters()),
    ("agriculture_zones",   lambda s: s.agriculture.get_zones()),
    ("agriculture_summary", lambda s: s.agriculture.get_summary()),
    ("climate_metrics",     lambda s: s.climate.get_metrics()),
    ("climate_summary",     lambda s: s.climate.get_summary()),
    ("apod",                lambda s: s.apod.get_apod()),
    ("asteroids",           lambda s: s.asteroids.get_flybys()),
    ("solar_flares",        lambda s: s.space_weather.get_solar_flares()),
]


class CacheWarmer:
    def __init__(self, services: "Services", interval_s: float) -> None:
        self._services  = services
        self._interval  = interval_s
        self._lock      = asyncio.Lock()
        self._running   = False

    async def warm(self) -> dict:
        if self._lock.locked():
            log.warning("Previous warm cycle still running — skipping")
            return {"skipped": True}

        async with self._lock:
            t0 = time.perf_counter()
            jobs: dict[str, dict] = {}
            for name, job in JOBS:
                t = time.perf_counter()
                try:
                    data = await job(self._services)
                except Exception as ex:
                    log.error(f"Warm job {name} failed: {ex}")
                    jobs[name] = {"ok": False, "error": str(ex)}
                    continue
                jobs[name] = {
                    "ok":    True,
                    "ms":    round((time.perf_counter() - t) * 1000),
                    "items": len(data) if isinstance(data, list) else None,
                }
            took_ms = round((time.perf_counter() - t0) * 1000)
            log.info(f"Warm cycle complete in {took_ms}ms")
            return {"jobs": jobs, "took_ms": took_ms}

    async def run(self) -> None:
        """Called once at startup. Runs until cancelled."""
        if self._running:
            log.warning("Warmer already running — ignoring duplicate start")
            return
        self._running = True
        log.info(f"Cache warmer started (every {self._interval:.0f}s)")
        try:
            while True:
                try:
                    await self.warm()
                except Exception as ex:
                    log.error(f"Warm cycle error (continuing): {ex}")
                await asyncio.sleep(self._interval)
        finally:
            self._running = False
