"""
astroview/core/config.py  ── AstroView Data API
═══════════════════════════════════════════════════════════════════════════════
SOURCE ASSIGNMENT:

  Launch Library 2 (The Space Devs)  →  upcoming launches / missions
  NASA EONET v3                      →  active natural events (disasters)
  NASA POWER (daily point, AG)       →  agriculture zone conditions
  NASA Mars Rover Photos             →  rover imagery for Mars missions
  NASA APOD                          →  astronomy picture of the day
  NASA NeoWs feed                    →  near-Earth asteroid flybys (7 days)
  NOAA SWPC GOES X-ray               →  latest solar flares
  Regional indicator table           →  climate metrics (no live upstream)

Freshness layers:
  in-process TTL cache   → minutes-scale, background refresh on expiry
  durable summary store  → hours-scale, survives restarts (SQLAlchemy)
  static fallbacks       → documented constants, never an error
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import os

import pytz

UTC = pytz.utc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ── Service ───────────────────────────────────────────────────────────────────
VERSION         = "1.0.0"
LOG_LEVEL       = os.environ.get("LOG_LEVEL", "INFO").upper()
WARM_ON_STARTUP = _env_bool("WARM_ON_STARTUP", True)
WARM_INTERVAL_S = float(os.environ.get("WARM_INTERVAL_S", "1800"))

# Optional: when empty, admin endpoints are open (local development).
ADMIN_TOKEN = os.environ.get("ADMIN_TOKEN", "")
if not ADMIN_TOKEN:
    logging.getLogger("config").warning(
        "ADMIN_TOKEN env var not set — admin endpoints are unauthenticated"
    )

# ── Durable store ─────────────────────────────────────────────────────────────
# Empty DATABASE_URL disables the durable layer (reads miss, writes no-op).
DATABASE_URL  = os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///./astroview.db")
DATABASE_ECHO = _env_bool("DATABASE_ECHO", False)

# ── Upstreams ─────────────────────────────────────────────────────────────────
NASA_API_KEY = (
    os.environ.get("NASA_NEO_API_KEY")
    or os.environ.get("NASA_API_KEY")
    or "DEMO_KEY"
)

LAUNCH_LIBRARY_BASE = os.environ.get("SPACE_DEVS_API", "https://ll.thespacedevs.com/2.2.0")
EONET_BASE          = "https://eonet.gsfc.nasa.gov/api/v3"
POWER_BASE          = "https://power.larc.nasa.gov/api/temporal/daily/point"
MARS_PHOTOS_BASE    = "https://api.nasa.gov/mars-photos/api/v1"
APOD_URL            = "https://api.nasa.gov/planetary/apod"
NEO_FEED_URL        = "https://api.nasa.gov/neo/rest/v1/feed"
SWPC_FLARES_URL     = "https://services.swpc.noaa.gov/json/goes/primary/xray-flares-latest.json"

USER_AGENT      = "AstroViewDataAPI/1.0"
DEFAULT_HEADERS = {"Accept": "application/json", "User-Agent": USER_AGENT}

# Per-source resilience tuning (timeout seconds, retries)
LAUNCH_LIBRARY_TIMEOUT_S = 4.0
LAUNCH_LIBRARY_RETRIES   = 2
EONET_TIMEOUT_S          = 4.0
EONET_RETRIES            = 2
POWER_TIMEOUT_S          = 8.0
POWER_RETRIES            = 1
MARS_PHOTOS_TIMEOUT_S    = 5.0
MARS_PHOTOS_RETRIES      = 1
APOD_TIMEOUT_S           = 5.0
APOD_RETRIES             = 1
NEO_TIMEOUT_S            = 6.0
NEO_RETRIES              = 1
SWPC_TIMEOUT_S           = 4.0
SWPC_RETRIES             = 2

# ── In-process cache TTLs (seconds) ───────────────────────────────────────────
LAUNCHES_TTL_S          = 60 * 60
MISSION_TTL_S           = 60 * 60
ROVER_IMAGES_TTL_S      = 60 * 60
DISASTERS_TTL_S         = 15 * 60
AGRICULTURE_ZONES_TTL_S = 60 * 60
CLIMATE_METRICS_TTL_S   = 60 * 60
CLIMATE_HISTORY_TTL_S   = 6 * 60 * 60
APOD_TTL_S              = 60 * 60
NEO_TTL_S               = 60 * 60
FLARES_TTL_S            = 10 * 60

# ── Durable summary TTLs (hours) ──────────────────────────────────────────────
SUMMARY_TTL_HOURS = 6.0
APOD_TTL_HOURS    = 24.0

# ── Fan-out ceilings ──────────────────────────────────────────────────────────
POWER_CONCURRENCY = 3
ROVER_CONCURRENCY = 2

# ── NEO feed shaping ──────────────────────────────────────────────────────────
NEO_WINDOW_DAYS   = 7
NEO_PER_DAY       = 2
NEO_MAX_FLYBYS    = 12

# ── Static fallbacks (served when live + durable both fail) ───────────────────
AGRICULTURE_SUMMARY_FALLBACK: dict = {
    "total_area_acres":      250_000_000,
    "avg_vegetation_health": 72,
    "avg_soil_moisture":     65,
    "yield_trend_percent":   8.5,
    "active_zones":          0,
}

CLIMATE_SUMMARY_FALLBACK: dict = {
    "avg_temperature_anomaly": 1.35,
    "avg_co2":                 422,
    "avg_sea_level_rise":      105,
    "avg_ice_loss":            280,
    "total_regions":           0,
}

HECTARES_TO_ACRES = 2.47105
