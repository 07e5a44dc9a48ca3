"""
astroview/sources/mars_rover.py
NASA Mars Rover Photos — latest photos per rover (api.nasa.gov, keyed).
Used on-demand to illustrate Mars missions; results are cached by the caller.
"""

import logging
from typing import Optional

import httpx

from astroview.core.config import (
    DEFAULT_HEADERS, MARS_PHOTOS_BASE, MARS_PHOTOS_RETRIES, MARS_PHOTOS_TIMEOUT_S, NASA_API_KEY,
)
from astroview.core.http_client import FetchError, fetch_with_retry
from astroview.core.metrics import MetricsRecorder

log = logging.getLogger("mars_rover")

METRIC = "marsRover"
ROVERS = ("perseverance", "curiosity", "opportunity", "spirit")


def normalize_photo(photo: dict, rover: str) -> dict:
    camera = photo.get("camera") or {}
    return {
        "id":         str(photo.get("id", "")),
        "rover":      rover,
        "camera":     camera.get("full_name") or camera.get("name") or "Unknown",
        "earth_date": photo.get("earth_date", ""),
        "sol":        photo.get("sol"),
        "img_src":    photo.get("img_src", ""),
    }


async def fetch_latest_photos(
    client: httpx.AsyncClient,
    rover: str,
    max_images: int = 6,
    metrics: Optional[MetricsRecorder] = None,
) -> list[dict]:
    if rover not in ROVERS:
        raise ValueError(f"unknown rover: {rover}")

    url = f"{MARS_PHOTOS_BASE}/rovers/{rover}/latest_photos"
    data = await fetch_with_retry(
        client, url,
        timeout_s=MARS_PHOTOS_TIMEOUT_S,
        retries=MARS_PHOTOS_RETRIES,
        metric_name=METRIC,
        metrics=metrics,
        headers=DEFAULT_HEADERS,
        params={"api_key": NASA_API_KEY},
    )
    if not isinstance(data, dict):
        raise FetchError(url, reason="expected a JSON object")

    photos = [p for p in data.get("latest_photos") or [] if p.get("img_src")]
    log.debug(f"{rover}: {len(photos)} photos, keeping {max_images}")
    return [normalize_photo(p, rover) for p in photos[:max_images]]
