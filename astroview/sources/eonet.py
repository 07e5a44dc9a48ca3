"""
astroview/sources/eonet.py
═══════════════════════════════════════════════════════════════════════════════
NASA EONET v3 — open natural events (wildfires, storms, volcanoes ...).

EONET geometry comes in several shapes, under either "geometry" (v3) or
"geometries" (older payloads):

  Point       coordinates = [lng, lat]
  LineString  coordinates = [[lng, lat], ...]
  Polygon     coordinates = [[[lng, lat], ...], ...]

Each raw sample is parsed into one explicit shape type; locating an event is
then a pure function per shape. The most recent sample wins.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union

import httpx

from astroview.core.config import DEFAULT_HEADERS, EONET_BASE, EONET_RETRIES, EONET_TIMEOUT_S, UTC
from astroview.core.http_client import FetchError, fetch_with_retry
from astroview.core.metrics import MetricsRecorder

log = logging.getLogger("eonet")

METRIC = "eonet"

Position = tuple[float, float]   # (lng, lat), GeoJSON order


# ── Geometry shapes ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PointGeometry:
    position: Position


@dataclass(frozen=True)
class LineStringGeometry:
    positions: tuple[Position, ...]


@dataclass(frozen=True)
class PolygonGeometry:
    rings: tuple[tuple[Position, ...], ...]


@dataclass(frozen=True)
class UnknownGeometry:
    raw: Any


Geometry = Union[PointGeometry, LineStringGeometry, PolygonGeometry, UnknownGeometry]


@dataclass(frozen=True)
class GeometrySample:
    shape:           Geometry
    date:            Optional[str]
    magnitude_value: Optional[float]
    magnitude_unit:  Optional[str]


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def _position(v: Any) -> Optional[Position]:
    if isinstance(v, (list, tuple)) and len(v) >= 2 and _is_number(v[0]) and _is_number(v[1]):
        return (float(v[0]), float(v[1]))
    return None


def _positions(v: Any) -> Optional[tuple[Position, ...]]:
    if not isinstance(v, (list, tuple)) or not v:
        return None
    out = []
    for item in v:
        p = _position(item)
        if p is None:
            return None
        out.append(p)
    return tuple(out)


def parse_shape(geo_type: Optional[str], coords: Any) -> Geometry:
    """Parse by declared type, falling back to the nesting depth when absent."""
    kind = (geo_type or "").lower()

    if kind in ("point", ""):
        p = _position(coords)
        if p is not None:
            return PointGeometry(p)
    if kind in ("linestring", ""):
        ps = _positions(coords)
        if ps is not None:
            return LineStringGeometry(ps)
    if kind in ("polygon", ""):
        if isinstance(coords, (list, tuple)) and coords:
            rings = [_positions(r) for r in coords]
            if all(r is not None for r in rings):
                return PolygonGeometry(tuple(rings))
    return UnknownGeometry(coords)


def first_position(shape: Geometry) -> Optional[Position]:
    if isinstance(shape, PointGeometry):
        return shape.position
    if isinstance(shape, LineStringGeometry):
        return shape.positions[0]
    if isinstance(shape, PolygonGeometry):
        return shape.rings[0][0]
    return None


def parse_sample(raw: dict) -> GeometrySample:
    mag = raw.get("magnitudeValue")
    return GeometrySample(
        shape=parse_shape(raw.get("type"), raw.get("coordinates")),
        date=raw.get("date"),
        magnitude_value=float(mag) if _is_number(mag) else None,
        magnitude_unit=raw.get("magnitudeUnit") or None,
    )


# ── Normalisation ─────────────────────────────────────────────────────────────

def _dicts(v: Any) -> list[dict]:
    return [item for item in v if isinstance(item, dict)] if isinstance(v, list) else []


def normalize_event(raw: dict) -> dict:
    """Total over malformed records: entries of the wrong type are skipped."""
    samples = _dicts(raw.get("geometry") or raw.get("geometries"))
    latest  = parse_sample(samples[-1]) if samples else None
    pos     = first_position(latest.shape) if latest else None

    categories = _dicts(raw.get("categories"))
    sources    = _dicts(raw.get("sources"))
    kind = str(categories[0].get("title") or "Unknown") if categories else "Unknown"

    return {
        "id":              str(raw.get("id", "")),
        "title":           raw.get("title", ""),
        "disaster_type":   kind,
        "description":     raw.get("description") or f"Active {kind} event monitored by NASA EONET.",
        "coordinates":     [{"lat": pos[1], "lng": pos[0]}] if pos else [],
        "magnitude_value": latest.magnitude_value if latest else None,
        "magnitude_unit":  latest.magnitude_unit if latest else None,
        "event_date":      (latest.date if latest else None) or datetime.now(UTC).isoformat(),
        "source_url":      (sources[0].get("url") if sources else None) or raw.get("link") or "",
    }


def has_location(event: dict) -> bool:
    coords = event.get("coordinates") or []
    return bool(coords) and _is_number(coords[0].get("lat")) and _is_number(coords[0].get("lng"))


# ── Fetcher ───────────────────────────────────────────────────────────────────

async def fetch_open_events(
    client: httpx.AsyncClient,
    metrics: Optional[MetricsRecorder] = None,
    days: int = 20,
) -> list[dict]:
    url = f"{EONET_BASE}/events"
    data = await fetch_with_retry(
        client, url,
        timeout_s=EONET_TIMEOUT_S,
        retries=EONET_RETRIES,
        metric_name=METRIC,
        metrics=metrics,
        headers=DEFAULT_HEADERS,
        params={"status": "open", "days": days},
    )
    if not isinstance(data, dict):
        raise FetchError(url, reason="expected a JSON object")
    events = data.get("events") or []
    if not isinstance(events, list):
        raise FetchError(url, reason="expected an events array")
    log.info(f"EONET: {len(events)} open events")
    return events
