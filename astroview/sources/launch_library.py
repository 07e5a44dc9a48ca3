"""
astroview/sources/launch_library.py
═══════════════════════════════════════════════════════════════════════════════
The Space Devs — Launch Library 2 (public, rate limited: ~15 req/hour anon).

Provides:
  • Upcoming launches  → /launch/upcoming/
  • Single launch      → /launch/{id}/

Normalised mission record (snake_case, stable keys):
  id, mission_name, agency_name, launch_date, mission_type, orbit_type,
  mission_status, description, rocket_name, launch_site, image_url
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from astroview.core.config import (
    DEFAULT_HEADERS, LAUNCH_LIBRARY_BASE, LAUNCH_LIBRARY_RETRIES,
    LAUNCH_LIBRARY_TIMEOUT_S, UTC,
)
from astroview.core.http_client import FetchError, fetch_with_retry
from astroview.core.metrics import MetricsRecorder

log = logging.getLogger("launch_library")

METRIC = "launchLibrary"

# Priority order for a mission's picture
IMAGE_PATHS: list[tuple[str, ...]] = [
    ("image",),
    ("rocket", "configuration", "image_url"),
    ("mission", "patch", "image_url"),
    ("infographic",),
    ("launch_service_provider", "logo_url"),
]


# ── Helpers ───────────────────────────────────────────────────────────────────

def _dig(obj: Any, path: tuple[str, ...]) -> Any:
    for part in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(part)
    return obj


def pick_image(raw: dict) -> Optional[str]:
    for path in IMAGE_PATHS:
        value = _dig(raw, path)
        if value:
            return value
    return None


def normalize_mission(raw: dict) -> dict:
    return {
        "id":             str(raw.get("id", "")),
        "mission_name":   raw.get("name") or "Unknown Mission",
        "agency_name":    _dig(raw, ("launch_service_provider", "name")) or "Unknown Agency",
        # net = "No Earlier Than"
        "launch_date":    raw.get("net") or datetime.now(UTC).isoformat(),
        "mission_type":   _dig(raw, ("mission", "type")) or "Unknown Type",
        "orbit_type":     _dig(raw, ("mission", "orbit", "name")) or "Unknown Orbit",
        "mission_status": _dig(raw, ("status", "name")) or "TBD",
        "description":    _dig(raw, ("mission", "description")) or "No description available.",
        "rocket_name":    _dig(raw, ("rocket", "configuration", "name")) or "Unknown Rocket",
        "launch_site":    _dig(raw, ("pad", "name")) or "Unknown Launch Site",
        "image_url":      pick_image(raw),
    }


# ── Fetchers ──────────────────────────────────────────────────────────────────

async def fetch_upcoming_launches(
    client: httpx.AsyncClient,
    metrics: Optional[MetricsRecorder] = None,
) -> list[dict]:
    url = f"{LAUNCH_LIBRARY_BASE}/launch/upcoming/"
    data = await fetch_with_retry(
        client, url,
        timeout_s=LAUNCH_LIBRARY_TIMEOUT_S,
        retries=LAUNCH_LIBRARY_RETRIES,
        metric_name=METRIC,
        metrics=metrics,
        headers=DEFAULT_HEADERS,
    )
    if not isinstance(data, dict):
        raise FetchError(url, reason="expected a JSON object")
    results = data.get("results") or []
    log.info(f"Launch Library: {len(results)} upcoming launches")
    return results


async def fetch_launch(
    client: httpx.AsyncClient,
    launch_id: str,
    metrics: Optional[MetricsRecorder] = None,
) -> dict:
    url = f"{LAUNCH_LIBRARY_BASE}/launch/{launch_id}/"
    data = await fetch_with_retry(
        client, url,
        timeout_s=LAUNCH_LIBRARY_TIMEOUT_S,
        retries=LAUNCH_LIBRARY_RETRIES,
        metric_name=METRIC,
        metrics=metrics,
        headers=DEFAULT_HEADERS,
    )
    if not isinstance(data, dict):
        raise FetchError(url, reason="expected a JSON object")
    return data
