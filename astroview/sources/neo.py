"""
astroview/sources/neo.py
═══════════════════════════════════════════════════════════════════════════════
NASA NeoWs feed — near-Earth asteroid close approaches (api.nasa.gov, keyed).

The feed groups objects by calendar day:
  near_earth_objects = {"2026-10-19": [neo, ...], "2026-10-20": [...], ...}

Flyby list: days in date order, at most NEO_PER_DAY objects per day,
NEO_MAX_FLYBYS overall. Objects without close-approach data are skipped.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import zlib
from datetime import date, datetime, timedelta
from typing import Any, Optional

import httpx

from astroview.core.config import (
    DEFAULT_HEADERS, NASA_API_KEY, NEO_FEED_URL, NEO_MAX_FLYBYS, NEO_PER_DAY,
    NEO_RETRIES, NEO_TIMEOUT_S, NEO_WINDOW_DAYS, UTC,
)
from astroview.core.http_client import FetchError, fetch_with_retry
from astroview.core.metrics import MetricsRecorder

log = logging.getLogger("neo")

METRIC = "neoFeed"

DIRECTIONS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")

WHY_IT_MATTERS = (
    "Tracking asteroid flybys helps us understand potential threats "
    "and study solar system composition."
)
OBSERVATION_TIPS = [
    "Most asteroids require a telescope to view.",
    "Check brightness magnitude for visibility.",
    "Use astronomy software for precise location.",
]


def direction_for(neo_id: str) -> str:
    """Stable compass direction per object, so repeated fetches agree."""
    return DIRECTIONS[zlib.crc32(neo_id.encode()) % len(DIRECTIONS)]


def _dig(obj: Any, *path: str) -> Any:
    for part in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(part)
    return obj


def _number(v: Any) -> Optional[float]:
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def _approach_time(approach: dict) -> Optional[datetime]:
    epoch_ms = _number(approach.get("epoch_date_close_approach"))
    try:
        if epoch_ms is not None:
            return datetime.fromtimestamp(epoch_ms / 1000, UTC)
        day = date.fromisoformat(approach.get("close_approach_date") or "")
    except (TypeError, ValueError, OverflowError, OSError):
        return None
    return datetime(day.year, day.month, day.day, tzinfo=UTC)


def _flyby(
    neo_id: str,
    name: str,
    when: datetime,
    diameter_km: Optional[float],
    hazardous: bool,
    miss_km: Optional[float],
    source_url: str,
    simple: str,
    detailed: str,
    visibility_score: int,
) -> dict:
    at = when.isoformat()
    return {
        "id":        neo_id,
        "name":      name,
        "type":      "asteroid",
        "subtype":   "flyby",
        "date":      at,
        "peak_time": at,
        "duration_min": 120,
        "visibility": {
            "location":         "Near Earth",
            "coordinates":      {"lat": 0, "lng": 0},
            "best_view_time":   at,
            "direction":        direction_for(neo_id),
            "visibility_score": visibility_score,
        },
        "description":       {"simple": simple, "detailed": detailed},
        "why_it_matters":    WHY_IT_MATTERS,
        "observation_tips":  list(OBSERVATION_TIPS),
        "weather_dependent": True,
        "images":            [],
        "agency":            "NASA JPL",
        "diameter_km":       diameter_km,
        "hazardous":         hazardous,
        "miss_distance_km":  miss_km,
        "source_url":        source_url,
    }


def normalize_neo(neo: dict) -> Optional[dict]:
    """None when the object carries no usable close approach."""
    approaches = neo.get("close_approach_data")
    approach = approaches[0] if isinstance(approaches, list) and approaches else None
    if not isinstance(approach, dict):
        return None
    when = _approach_time(approach)
    if when is None:
        return None

    neo_id    = str(neo.get("id", ""))
    name      = neo.get("name") or f"Asteroid {neo_id}"
    hazardous = neo.get("is_potentially_hazardous_asteroid") is True
    diameter  = _number(_dig(neo, "estimated_diameter", "kilometers", "estimated_diameter_max"))
    miss_km   = _number(_dig(approach, "miss_distance", "kilometers"))
    size      = f"{diameter:.2f} km" if diameter is not None else "unknown"

    return _flyby(
        neo_id, name, when, diameter, hazardous, miss_km,
        source_url=neo.get("nasa_jpl_url") or "",
        simple=f"Asteroid {name} will pass near Earth on {when.date().isoformat()}",
        detailed=(
            f"Asteroid {name} close approach. Diameter: {size}. "
            f"Potentially hazardous: {'Yes' if hazardous else 'No'}"
        ),
        visibility_score=70 if hazardous else 50,
    )


def normalize_flybys(feed: dict) -> list[dict]:
    by_day = feed.get("near_earth_objects")
    if not isinstance(by_day, dict):
        return []

    flybys: list[dict] = []
    for day in sorted(by_day):
        objects = by_day[day] if isinstance(by_day[day], list) else []
        kept = 0
        for neo in objects:
            if kept == NEO_PER_DAY:
                break
            flyby = normalize_neo(neo) if isinstance(neo, dict) else None
            if flyby is not None:
                flybys.append(flyby)
                kept += 1
    return flybys[:NEO_MAX_FLYBYS]


def fallback_flybys(now: Optional[datetime] = None) -> list[dict]:
    """Single demo record, served when neither NeoWs nor the durable copy answer."""
    now = now or datetime.now(UTC)
    return [_flyby(
        "demo-asteroid-1", "Demo Asteroid 2026 AB", now,
        diameter_km=0.25, hazardous=False, miss_km=1_200_000.0,
        source_url="https://cneos.jpl.nasa.gov",
        simple="Demo asteroid data (API unavailable).",
        detailed="This is sample data shown when the NASA NEO API cannot be reached.",
        visibility_score=60,
    )]


async def fetch_neo_feed(
    client: httpx.AsyncClient,
    metrics: Optional[MetricsRecorder] = None,
    start: Optional[date] = None,
) -> dict:
    start = start or datetime.now(UTC).date()
    end   = start + timedelta(days=NEO_WINDOW_DAYS)

    data = await fetch_with_retry(
        client, NEO_FEED_URL,
        timeout_s=NEO_TIMEOUT_S,
        retries=NEO_RETRIES,
        metric_name=METRIC,
        metrics=metrics,
        headers=DEFAULT_HEADERS,
        params={
            "start_date": start.isoformat(),
            "end_date":   end.isoformat(),
            "api_key":    NASA_API_KEY,
        },
    )
    if not isinstance(data, dict) or not isinstance(data.get("near_earth_objects"), dict):
        raise FetchError(NEO_FEED_URL, reason="expected near_earth_objects by date")
    log.info(f"NeoWs: {data.get('element_count', '?')} objects {start} → {end}")
    return data
