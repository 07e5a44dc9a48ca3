"""
astroview/sources/climate.py
═══════════════════════════════════════════════════════════════════════════════
Regional climate indicators.

There is no single free live API for these four indicators, so values come
from a regional baseline table (reference year 2025, anchored on NASA GISS /
NOAA published figures) projected along per-indicator yearly trends:

  temperature anomaly  °C vs 1951–1980
  CO2                  ppm
  sea level rise       mm since 1993
  ice mass loss        Gt / year
═══════════════════════════════════════════════════════════════════════════════
"""

from datetime import datetime
from typing import Optional

from astroview.core.config import UTC

REFERENCE_YEAR = 2025

# Yearly change applied to every region
TRENDS = {
    "temperature_anomaly_c": 0.03,
    "co2_ppm":               2.4,
    "sea_level_rise_mm":     3.4,
    "ice_mass_loss_gt":      4.0,
}

REGIONS: list[dict] = [
    {"id": "global",        "region": "Global Average", "location": "Worldwide",       "lat": 0,   "lng": 0,    "temperature_anomaly_c": 1.42, "co2_ppm": 423.5, "sea_level_rise_mm": 107, "ice_mass_loss_gt": 295},
    {"id": "arctic",        "region": "Arctic",         "location": "Arctic Circle",   "lat": 75,  "lng": 0,    "temperature_anomaly_c": 2.75, "co2_ppm": 422.0, "sea_level_rise_mm": 100, "ice_mass_loss_gt": 375},
    {"id": "north-america", "region": "North America",  "location": "Continental USA", "lat": 40,  "lng": -100, "temperature_anomaly_c": 1.40, "co2_ppm": 422.8, "sea_level_rise_mm": 102, "ice_mass_loss_gt": 120},
    {"id": "europe",        "region": "Europe",         "location": "Central Europe",  "lat": 50,  "lng": 10,   "temperature_anomaly_c": 1.75, "co2_ppm": 422.1, "sea_level_rise_mm": 98,  "ice_mass_loss_gt": 60},
    {"id": "asia",          "region": "Asia",           "location": "Central Asia",    "lat": 35,  "lng": 100,  "temperature_anomaly_c": 1.55, "co2_ppm": 424.6, "sea_level_rise_mm": 104, "ice_mass_loss_gt": 210},
    {"id": "africa",        "region": "Africa",         "location": "Central Africa",  "lat": 0,   "lng": 20,   "temperature_anomaly_c": 1.10, "co2_ppm": 421.4, "sea_level_rise_mm": 101, "ice_mass_loss_gt": 55},
    {"id": "south-america", "region": "South America",  "location": "Amazon Basin",    "lat": -10, "lng": -60,  "temperature_anomaly_c": 1.15, "co2_ppm": 420.9, "sea_level_rise_mm": 103, "ice_mass_loss_gt": 90},
    {"id": "oceania",       "region": "Oceania",        "location": "Australia",       "lat": -25, "lng": 135,  "temperature_anomaly_c": 1.30, "co2_ppm": 421.7, "sea_level_rise_mm": 106, "ice_mass_loss_gt": 70},
]


def _project(region: dict, year: int) -> dict:
    dy = year - REFERENCE_YEAR
    return {k: region[k] + TRENDS[k] * dy for k in TRENDS}


def _alerts(region_id: str, anomaly: float) -> Optional[list[str]]:
    if anomaly >= 1.5:
        return ["Critical warming detected - exceeds Paris Agreement targets"]
    if anomaly >= 1.2 and region_id == "arctic":
        return ["Accelerated Arctic warming - monitoring ice sheet stability"]
    return None


def _metric(region: dict, year: int) -> dict:
    v = _project(region, year)
    anomaly = round(v["temperature_anomaly_c"], 2)
    return {
        "id":                    f"{region['id']}-{year}",
        "region":                region["region"],
        "location":              region["location"],
        "lat":                   region["lat"],
        "lng":                   region["lng"],
        "temperature_anomaly_c": anomaly,
        "co2_ppm":               round(v["co2_ppm"], 1),
        "sea_level_rise_mm":     round(v["sea_level_rise_mm"]),
        "ice_mass_loss_gt":      round(v["ice_mass_loss_gt"]),
        "year":                  year,
        "last_updated":          datetime.now(UTC).isoformat(),
        "alerts":                _alerts(region["id"], anomaly),
    }


def regional_metrics(year: Optional[int] = None) -> list[dict]:
    year = year or datetime.now(UTC).year
    return [_metric(r, year) for r in REGIONS]


def historical_series(years: int, current_year: Optional[int] = None) -> list[dict]:
    """Global average for the last `years` years, oldest first."""
    current_year = current_year or datetime.now(UTC).year
    glob = REGIONS[0]
    return [_metric(glob, y) for y in range(current_year - years + 1, current_year + 1)]
