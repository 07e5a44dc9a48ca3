"""
astroview/controllers/missions.py
═══════════════════════════════════════════════════════════════════════════════
Upcoming missions (Launch Library) enriched with Mars rover imagery.

Resilience ladder:
  1. in-process cache "launches" (1 h TTL, stale served while refreshing)
  2. cold / refresh → Launch Library → normalise → rover images (bounded
     fan-out, one call per distinct rover) → durable save in background
  3. upstream down on a cold key → durable "missions/upcoming" (any age)
  4. nothing durable either → []
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from functools import partial
from typing import Optional

import httpx

from astroview.core.cache import CacheService
from astroview.core.config import LAUNCHES_TTL_S, MISSION_TTL_S, ROVER_CONCURRENCY, ROVER_IMAGES_TTL_S
from astroview.core.metrics import MetricsRecorder
from astroview.core.pool import run_with_concurrency
from astroview.core.summary_cache import SummaryCache
from astroview.sources.launch_library import fetch_launch, fetch_upcoming_launches, normalize_mission
from astroview.sources.mars_rover import fetch_latest_photos

log = logging.getLogger("missions")

LAUNCHES_KEY = "launches"


def rover_for_mission(mission: dict) -> Optional[str]:
    text = f"{mission.get('mission_name', '')} {mission.get('description') or ''}".lower()
    for rover in ("perseverance", "curiosity", "opportunity", "spirit"):
        if rover in text:
            return rover
    # Generic Mars / rover mention → the rover currently operating
    if "mars" in text or "rover" in text:
        return "perseverance"
    return None


class MissionsController:
    def __init__(
        self,
        cache: CacheService,
        client: httpx.AsyncClient,
        metrics: MetricsRecorder,
        upcoming_store: SummaryCache,
    ) -> None:
        self._cache    = cache
        self._client   = client
        self._metrics  = metrics
        self._upcoming = upcoming_store

    # ── Rover imagery ─────────────────────────────────────────────────────────

    async def _rover_image(self, rover: str) -> Optional[str]:
        photos = await self._cache.fetch_with_background_refresh(
            f"rover:{rover}",
            ROVER_IMAGES_TTL_S,
            partial(fetch_latest_photos, self._client, rover, metrics=self._metrics),
        )
        return photos[0]["img_src"] if photos else None

    async def _with_rover_images(self, missions: list[dict]) -> list[dict]:
        rovers = sorted({r for r in map(rover_for_mission, missions) if r})
        images = await run_with_concurrency(
            [partial(self._rover_image, r) for r in rovers],
            ROVER_CONCURRENCY,
        )
        by_rover = dict(zip(rovers, images))
        return [{**m, "rover_image_url": by_rover.get(rover_for_mission(m))} for m in missions]

    # ── Loaders (run on cold path or background refresh) ──────────────────────

    async def _load_upcoming(self) -> list[dict]:
        raw = await fetch_upcoming_launches(self._client, self._metrics)
        missions = await self._with_rover_images([normalize_mission(r) for r in raw])
        if missions:  # never overwrite the durable copy with an empty list
            self._upcoming.save_in_background(missions)
        return missions

    async def _load_mission(self, mission_id: str) -> dict:
        raw = await fetch_launch(self._client, mission_id, self._metrics)
        enriched = await self._with_rover_images([normalize_mission(raw)])
        return enriched[0]

    # ── Public API ────────────────────────────────────────────────────────────

    async def get_upcoming_missions(self) -> list[dict]:
        try:
            return await self._cache.fetch_with_background_refresh(
                LAUNCHES_KEY, LAUNCHES_TTL_S, self._load_upcoming,
            )
        except Exception as ex:
            log.warning(f"Launch Library unavailable ({ex}) — falling back to durable cache")

        cached = await self._upcoming.get_cached()
        if cached:
            return cached.summary

        log.error("No cached missions available either — returning empty list")
        return []

    async def get_mission_by_id(self, mission_id: str) -> Optional[dict]:
        upcoming = self._cache.get_if_fresh(LAUNCHES_KEY, LAUNCHES_TTL_S) or []
        for m in upcoming:
            if m.get("id") == mission_id:
                return m

        try:
            return await self._cache.fetch_with_background_refresh(
                f"mission:{mission_id}", MISSION_TTL_S, partial(self._load_mission, mission_id),
            )
        except Exception as ex:
            log.warning(f"Launch Library failed for mission {mission_id} ({ex}) — trying durable cache")

        cached = await self._upcoming.get_cached()
        for m in (cached.summary if cached else []):
            if m.get("id") == mission_id:
                return m
        return None
