"""
astroview/sources/apod.py
NASA Astronomy Picture of the Day (api.nasa.gov, keyed).
One record per calendar date; without a date NASA serves today's entry.
"""

import logging
from typing import Optional
from urllib.parse import parse_qs, urlparse

import httpx

from astroview.core.config import APOD_RETRIES, APOD_TIMEOUT_S, APOD_URL, DEFAULT_HEADERS, NASA_API_KEY
from astroview.core.http_client import FetchError, fetch_with_retry
from astroview.core.metrics import MetricsRecorder

log = logging.getLogger("apod")

METRIC = "apod"


def youtube_video_id(url: str) -> Optional[str]:
    """Video id for youtube.com/watch?v=, youtube.com/embed/ and youtu.be links."""
    try:
        parsed = urlparse(url or "")
    except ValueError:
        return None
    host = parsed.hostname or ""
    if host.endswith("youtu.be"):
        return parsed.path.strip("/") or None
    if host.endswith("youtube.com"):
        if parsed.path.startswith("/embed/"):
            return parsed.path[len("/embed/"):].split("/")[0] or None
        ids = parse_qs(parsed.query).get("v")
        return ids[0] if ids else None
    return None


def normalize_apod(raw: dict) -> Optional[dict]:
    """None when the record lacks a title or a media URL."""
    title = raw.get("title")
    url   = raw.get("url")
    if not title or not url:
        return None
    media_type = raw.get("media_type") or "image"
    return {
        "date":        raw.get("date", ""),
        "title":       title,
        "explanation": raw.get("explanation", ""),
        "url":         url,
        "hdurl":       raw.get("hdurl"),
        "media_type":  media_type,
        "copyright":   (raw.get("copyright") or "").strip() or None,
        "video_id":    youtube_video_id(url) if media_type == "video" else None,
    }


async def fetch_apod(
    client: httpx.AsyncClient,
    metrics: Optional[MetricsRecorder] = None,
    date: Optional[str] = None,
) -> dict:
    params = {"api_key": NASA_API_KEY}
    if date:
        params["date"] = date

    data = await fetch_with_retry(
        client, APOD_URL,
        timeout_s=APOD_TIMEOUT_S,
        retries=APOD_RETRIES,
        metric_name=METRIC,
        metrics=metrics,
        headers=DEFAULT_HEADERS,
        params=params,
    )
    if not isinstance(data, dict):
        raise FetchError(APOD_URL, reason="expected a JSON object")

    apod = normalize_apod(data)
    if apod is None:
        raise FetchError(APOD_URL, reason="APOD record without title or url")
    log.info(f"APOD {apod['date']}: {apod['title']}")
    return apod
