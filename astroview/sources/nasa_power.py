"""
astroview/sources/nasa_power.py
═══════════════════════════════════════════════════════════════════════════════
NASA POWER daily point API (community=AG) — agriculture zone conditions.

For each monitored zone we pull the last 30 days of:
  PRECTOTCORR  precipitation (mm/day)
  T2M          mean temperature at 2 m (°C)
  T2M_MAX      max temperature at 2 m (°C)
  T2M_MIN      min temperature at 2 m (°C)

and derive vegetation health, soil moisture, crop stress and a yield trend
indicator. POWER marks missing days with -999.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

import httpx

from astroview.core.config import DEFAULT_HEADERS, POWER_BASE, POWER_RETRIES, POWER_TIMEOUT_S, UTC
from astroview.core.http_client import FetchError, fetch_with_retry
from astroview.core.metrics import MetricsRecorder

log = logging.getLogger("nasa_power")

METRIC     = "nasaPower"
MISSING    = -999
PARAMETERS = "PRECTOTCORR,T2M,T2M_MAX,T2M_MIN"
WINDOW_DAYS = 30

OPTIMAL_MONTHLY_RAIN_MM = 75.0

# Major farming regions monitored
ZONES: list[dict] = [
    {"id": "indo-gangetic",       "name": "Indo-Gangetic Plain",   "location": "India",     "lat": 30.3,  "lng": 76.5,  "area_hectares": 37_000_000},
    {"id": "us-midwest",          "name": "US Midwest",            "location": "USA",       "lat": 41.8,  "lng": -93.6, "area_hectares": 20_000_000},
    {"id": "pampas",              "name": "Pampas",                "location": "Argentina", "lat": -34.0, "lng": -60.5, "area_hectares": 54_000_000},
    {"id": "great-plains",        "name": "Great Plains",          "location": "USA",       "lat": 39.8,  "lng": -98.6, "area_hectares": 45_000_000},
    {"id": "china-northeast",     "name": "Northeast China Plain", "location": "China",     "lat": 43.9,  "lng": 125.3, "area_hectares": 35_000_000},
    {"id": "murray-darling",      "name": "Murray-Darling Basin",  "location": "Australia", "lat": -34.5, "lng": 143.5, "area_hectares": 106_000_000},
    {"id": "ukraine-breadbasket", "name": "Ukrainian Breadbasket", "location": "Ukraine",   "lat": 49.0,  "lng": 32.0,  "area_hectares": 32_000_000},
    {"id": "nile-delta",          "name": "Nile Delta",            "location": "Egypt",     "lat": 30.8,  "lng": 31.2,  "area_hectares": 2_400_000},
]


# ── Helpers ───────────────────────────────────────────────────────────────────

def _values(series: Optional[dict]) -> list[float]:
    if not series:
        return []
    return [float(v) for v in series.values() if v is not None and v != MISSING]


def _mean(values: list[float], default: float) -> float:
    return sum(values) / len(values) if values else default


def _zone_base(zone: dict) -> dict:
    return {k: zone[k] for k in ("id", "name", "location", "lat", "lng", "area_hectares")}


def _temperature_score(avg_temp: float) -> float:
    """100 inside the 15–25 °C band, tapering to a floor of 50 outside it."""
    if 15 <= avg_temp <= 25:
        return 100.0
    if avg_temp < 15:
        return max(50.0, 100 - (15 - avg_temp) * 5)
    return max(50.0, 100 - (avg_temp - 25) * 3)


def _crop_stress(max_temp: float) -> str:
    if max_temp > 35: return "High"
    if max_temp > 30: return "Medium"
    return "Low"


def _yield_trend(vegetation_health: float) -> float:
    # Linear around a neutral health of 60, clamped to ±20 %
    return round(max(-20.0, min(20.0, (vegetation_health - 60) / 2.5)), 1)


def derive_zone_metrics(zone: dict, parameters: dict) -> dict:
    precip   = _values(parameters.get("PRECTOTCORR"))
    temp     = _values(parameters.get("T2M"))
    max_temp = _values(parameters.get("T2M_MAX"))

    rainfall  = sum(precip)
    avg_temp  = _mean(temp, 20.0)
    peak_temp = max(max_temp) if max_temp else 30.0

    rain_score = min(100.0, rainfall / OPTIMAL_MONTHLY_RAIN_MM * 100)
    vegetation = round(rain_score * 0.6 + _temperature_score(avg_temp) * 0.4)
    soil       = min(100, round(rainfall))
    stress     = _crop_stress(peak_temp)

    alerts = []
    if stress == "High":
        alerts.append("Heat stress detected")
    if rainfall < 20:
        alerts.append("Drought conditions")
    if rainfall > 150:
        alerts.append("Excess rainfall")
    if vegetation < 50:
        alerts.append("Low vegetation health")

    return {
        **_zone_base(zone),
        "vegetation_health": vegetation,
        "soil_moisture":     soil,
        "crop_stress_level": stress,
        "yield_trend":       _yield_trend(vegetation),
        "rainfall_mm":       round(rainfall),
        "temperature_c":     round(avg_temp, 1),
        "last_updated":      datetime.now(UTC).isoformat(),
        "alerts":            alerts,
        "source":            "nasa-power",
    }


def fallback_zone(zone: dict) -> dict:
    """Baseline values for a zone whose live data could not be fetched."""
    return {
        **_zone_base(zone),
        "vegetation_health": 72,
        "soil_moisture":     65,
        "crop_stress_level": "Low",
        "yield_trend":       0.0,
        "rainfall_mm":       70,
        "temperature_c":     22.0,
        "last_updated":      datetime.now(UTC).isoformat(),
        "alerts":            ["Live conditions unavailable — showing baseline values"],
        "source":            "fallback",
    }


# ── Fetcher ───────────────────────────────────────────────────────────────────

async def fetch_zone_parameters(
    client: httpx.AsyncClient,
    zone: dict,
    metrics: Optional[MetricsRecorder] = None,
    today: Optional[date] = None,
) -> dict:
    end   = today or datetime.now(UTC).date()
    start = end - timedelta(days=WINDOW_DAYS)
    data = await fetch_with_retry(
        client, POWER_BASE,
        timeout_s=POWER_TIMEOUT_S,
        retries=POWER_RETRIES,
        metric_name=METRIC,
        metrics=metrics,
        headers=DEFAULT_HEADERS,
        params={
            "parameters": PARAMETERS,
            "community":  "AG",
            "longitude":  zone["lng"],
            "latitude":   zone["lat"],
            "start":      start.strftime("%Y%m%d"),
            "end":        end.strftime("%Y%m%d"),
            "format":     "JSON",
        },
    )
    parameters = data.get("properties", {}).get("parameters") if isinstance(data, dict) else None
    if not parameters:
        raise FetchError(POWER_BASE, reason=f"no parameters for zone {zone['id']}")
    return parameters
