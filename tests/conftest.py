# tests/conftest.py
"""Shared fixtures: a fake upstream behind httpx.MockTransport and a
service graph wired to it with an in-memory durable store."""

from __future__ import annotations

from typing import Callable, Optional

import httpx
import pytest

from astroview.core.summary_cache import MemorySummaryStore
from astroview.services import Services, build_services

LL_HOST    = "ll.thespacedevs.com"
EONET_HOST = "eonet.gsfc.nasa.gov"
POWER_HOST = "power.larc.nasa.gov"
NASA_HOST  = "api.nasa.gov"
SWPC_HOST  = "services.swpc.noaa.gov"


class FakeUpstream:
    """Routes requests by host; unrouted hosts answer 404. Every request is kept."""

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], object]] = {}
        self.requests: list[httpx.Request] = []

    def route(self, host: str, handler: Callable[[httpx.Request], object]) -> None:
        self.routes[host] = handler

    def json(self, host: str, payload: object, status: int = 200) -> None:
        self.route(host, lambda request: httpx.Response(status, json=payload))

    def fail(self, host: str, status: int = 503) -> None:
        self.route(host, lambda request: httpx.Response(status, text="unavailable"))

    def calls(self, host: str) -> int:
        return sum(1 for r in self.requests if r.url.host == host)

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        handler = self.routes.get(request.url.host)
        if handler is None:
            return httpx.Response(404, json={"detail": "not routed"})
        return handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


# ── Sample upstream payloads ──────────────────────────────────────────────────

def launch(launch_id: str = "ll-1", name: str = "Starlink Group 9", description: str = "Batch of satellites") -> dict:
    return {
        "id":   launch_id,
        "name": name,
        "net":  "2026-11-01T12:00:00Z",
        "status": {"name": "Go for Launch"},
        "launch_service_provider": {"name": "SpaceX", "logo_url": "https://img/spacex.png"},
        "rocket": {"configuration": {"name": "Falcon 9", "image_url": "https://img/f9.png"}},
        "mission": {"type": "Communications", "description": description, "orbit": {"name": "Low Earth Orbit"}},
        "pad": {"name": "SLC-40"},
    }


def launch_library(*launches):
    """Handler serving /launch/upcoming/ and /launch/{id}/ for the given launches."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/launch/upcoming/"):
            return httpx.Response(200, json={"count": len(launches), "results": list(launches)})
        for l in launches:
            if request.url.path.endswith(f"/launch/{l['id']}/"):
                return httpx.Response(200, json=l)
        return httpx.Response(404, json={"detail": "Not found."})

    return handler


def eonet_event(event_id: str = "EONET_1", title: str = "Wildfire in Nowhere", coords=None, kind: str = "Wildfires") -> dict:
    return {
        "id":         event_id,
        "title":      title,
        "categories": [{"id": "wildfires", "title": kind}],
        "sources":    [{"id": "InciWeb", "url": "https://inciweb.example/1"}],
        "geometry":   [
            {"date": "2026-10-01T00:00:00Z", "type": "Point", "coordinates": coords or [-120.5, 38.2]},
        ],
    }


def power_payload(rain_per_day: float = 2.5, temp: float = 20.0, tmax: float = 28.0, days: int = 30) -> dict:
    def series(v: float) -> dict:
        return {f"202609{d:02d}": v for d in range(1, days + 1)}

    return {
        "properties": {
            "parameters": {
                "PRECTOTCORR": series(rain_per_day),
                "T2M":         series(temp),
                "T2M_MAX":     series(tmax),
                "T2M_MIN":     series(temp - 8),
            }
        }
    }


def apod_payload(date: str = "2026-10-19", title: str = "Pillars of Creation", media_type: str = "image", url: str = "https://apod.nasa.gov/image/pillars.jpg") -> dict:
    return {
        "date":        date,
        "title":       title,
        "explanation": "Towers of cold gas and dust.",
        "url":         url,
        "hdurl":       url.replace(".jpg", "_hd.jpg"),
        "media_type":  media_type,
        "copyright":   " Jane Doe ",
    }


def neo(neo_id: str, day: str = "2026-10-20", hazardous: bool = False, diameter_km: float = 0.31) -> dict:
    return {
        "id":           neo_id,
        "name":         f"({neo_id} AB)",
        "nasa_jpl_url": f"https://ssd.jpl.nasa.gov/tools/sbdb_lookup.html#/?sstr={neo_id}",
        "is_potentially_hazardous_asteroid": hazardous,
        "estimated_diameter": {"kilometers": {"estimated_diameter_min": diameter_km / 2, "estimated_diameter_max": diameter_km}},
        "close_approach_data": [{
            "close_approach_date":       day,
            "close_approach_date_full":  f"{day} 14:32",
            "epoch_date_close_approach": None,
            "miss_distance":             {"kilometers": "4512345.67"},
        }],
    }


def neo_feed(by_day: dict) -> dict:
    return {"element_count": sum(len(v) for v in by_day.values()), "near_earth_objects": by_day}


def swpc_flare(max_time: str = "2026-10-19T10:12:00Z", max_class: str = "M2.3", flux=2.3e-05, end_time="2026-10-19T10:30:00Z") -> dict:
    return {
        "time_tag":   "2026-10-19T11:00:00Z",
        "satellite":  18,
        "begin_time": "2026-10-19T10:01:00Z",
        "begin_class": "C1.0",
        "max_time":   max_time,
        "max_class":  max_class,
        "max_xrlong": flux,
        "end_time":   end_time,
    }


def nasa_api(apod=None, feed=None):
    """Handler for api.nasa.gov: /planetary/apod and /neo/rest/v1/feed. Anything not given answers 503."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.startswith("/planetary/apod") and apod is not None:
            return httpx.Response(200, json=apod)
        if request.url.path.startswith("/neo/rest/v1/feed") and feed is not None:
            return httpx.Response(200, json=feed)
        return httpx.Response(503, text="unavailable")

    return handler


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def single_attempt(monkeypatch):
    """Upstream failures fail fast: one attempt per source call, no backoff."""
    monkeypatch.setattr("astroview.sources.launch_library.LAUNCH_LIBRARY_RETRIES", 0)
    monkeypatch.setattr("astroview.sources.eonet.EONET_RETRIES", 0)
    monkeypatch.setattr("astroview.sources.nasa_power.POWER_RETRIES", 0)
    monkeypatch.setattr("astroview.sources.mars_rover.MARS_PHOTOS_RETRIES", 0)
    monkeypatch.setattr("astroview.sources.apod.APOD_RETRIES", 0)
    monkeypatch.setattr("astroview.sources.neo.NEO_RETRIES", 0)
    monkeypatch.setattr("astroview.sources.swpc.SWPC_RETRIES", 0)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def durable() -> MemorySummaryStore:
    return MemorySummaryStore()


@pytest.fixture
def make_services(upstream: FakeUpstream, durable: MemorySummaryStore):
    def _make(store: Optional[MemorySummaryStore] = durable) -> Services:
        return build_services(upstream.client(), store)

    return _make
