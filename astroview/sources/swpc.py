"""
astroview/sources/swpc.py
═══════════════════════════════════════════════════════════════════════════════
NOAA SWPC — latest GOES X-ray flares (public, no key).

Each record carries begin / max / end times, the GOES class at peak
("M2.3") and the peak long-band flux in W/m² (max_xrlong). Missing or "Unk"
fields are normal while a flare is in progress.

Radio blackout scale from peak flux:
  R5 ≥ 2e-3   R4 ≥ 1e-3   R3 ≥ 1e-4   R2 ≥ 5e-5   R1 ≥ 1e-5   below M1 → None
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import math
import re
from typing import Any, Optional

import httpx

from astroview.core.config import DEFAULT_HEADERS, SWPC_FLARES_URL, SWPC_RETRIES, SWPC_TIMEOUT_S
from astroview.core.http_client import FetchError, fetch_with_retry
from astroview.core.metrics import MetricsRecorder

log = logging.getLogger("swpc")

METRIC = "swpcFlares"

R_SCALE: list[tuple[float, str]] = [
    (2e-3, "R5"),
    (1e-3, "R4"),
    (1e-4, "R3"),
    (5e-5, "R2"),
    (1e-5, "R1"),
]

CLASS_BASE_FLUX = {"A": 1e-8, "B": 1e-7, "C": 1e-6, "M": 1e-5, "X": 1e-4}
_CLASS_RE = re.compile(r"^\s*([ABCMX])\s*(\d+(?:\.\d+)?)?\s*$", re.IGNORECASE)


def _flux(v: Any) -> Optional[float]:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) and f > 0 else None


def flux_from_class(goes_class: Optional[str]) -> Optional[float]:
    """'M2.3' → 2.3e-5 W/m². None for anything that is not a GOES class."""
    m = _CLASS_RE.match(goes_class or "")
    if not m:
        return None
    return CLASS_BASE_FLUX[m.group(1).upper()] * float(m.group(2) or 1)


def r_scale(flux: Optional[float]) -> Optional[str]:
    if flux is None:
        return None
    for threshold, level in R_SCALE:
        if flux >= threshold:
            return level
    return None


def _text(v: Any) -> Optional[str]:
    if not isinstance(v, str) or not v.strip() or v.strip().lower() == "unk":
        return None
    return v.strip()


def normalize_flare(raw: dict) -> Optional[dict]:
    """None when the record has neither a start nor a peak time."""
    begin = _text(raw.get("begin_time"))
    peak  = _text(raw.get("max_time"))
    if begin is None and peak is None:
        return None

    goes_class = _text(raw.get("max_class")) or _text(raw.get("current_class"))
    flux = _flux(raw.get("max_xrlong"))
    if flux is None:
        flux = flux_from_class(goes_class)

    return {
        "begin_time": begin,
        "peak_time":  peak,
        "end_time":   _text(raw.get("end_time")),
        "class":      goes_class,
        "peak_flux":  flux,
        "r_scale":    r_scale(flux),
        "satellite":  raw.get("satellite"),
        "ongoing":    _text(raw.get("end_time")) is None,
    }


def normalize_flares(raw: list) -> list[dict]:
    """Most recent peak first."""
    flares = [f for f in (normalize_flare(r) for r in raw if isinstance(r, dict)) if f is not None]
    flares.sort(key=lambda f: f["peak_time"] or f["begin_time"] or "", reverse=True)
    return flares


async def fetch_xray_flares(
    client: httpx.AsyncClient,
    metrics: Optional[MetricsRecorder] = None,
) -> list[dict]:
    data = await fetch_with_retry(
        client, SWPC_FLARES_URL,
        timeout_s=SWPC_TIMEOUT_S,
        retries=SWPC_RETRIES,
        metric_name=METRIC,
        metrics=metrics,
        headers=DEFAULT_HEADERS,
    )
    if not isinstance(data, list):
        raise FetchError(SWPC_FLARES_URL, reason="expected a JSON array")
    flares = normalize_flares(data)
    log.info(f"SWPC: {len(flares)} X-ray flares")
    return flares
