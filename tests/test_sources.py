# tests/test_sources.py
"""Upstream normalisers and derived metrics."""

import httpx
import pytest

from conftest import apod_payload, eonet_event, launch, neo, neo_feed, power_payload, swpc_flare
from astroview.core.http_client import FetchError
from astroview.sources.apod import fetch_apod, normalize_apod, youtube_video_id
from astroview.sources.climate import REGIONS, historical_series, regional_metrics
from astroview.sources.eonet import (
    LineStringGeometry, PointGeometry, PolygonGeometry, UnknownGeometry,
    first_position, has_location, normalize_event, parse_shape,
)
from astroview.sources.launch_library import normalize_mission, pick_image
from astroview.sources.mars_rover import fetch_latest_photos, normalize_photo
from astroview.sources.nasa_power import ZONES, derive_zone_metrics, fallback_zone
from astroview.sources.neo import direction_for, fallback_flybys, fetch_neo_feed, normalize_flybys, normalize_neo
from astroview.sources.swpc import flux_from_class, normalize_flare, normalize_flares, r_scale


class TestLaunchLibrary:

    def test_normalize_full_record(self):
        m = normalize_mission(launch("abc", "Europa Clipper"))
        assert m["id"] == "abc"
        assert m["mission_name"] == "Europa Clipper"
        assert m["agency_name"] == "SpaceX"
        assert m["launch_date"] == "2026-11-01T12:00:00Z"
        assert m["mission_type"] == "Communications"
        assert m["orbit_type"] == "Low Earth Orbit"
        assert m["mission_status"] == "Go for Launch"
        assert m["rocket_name"] == "Falcon 9"
        assert m["launch_site"] == "SLC-40"
        assert m["image_url"] == "https://img/f9.png"

    def test_normalize_sparse_record_uses_defaults(self):
        m = normalize_mission({"id": 42})
        assert m["id"] == "42"
        assert m["mission_name"] == "Unknown Mission"
        assert m["agency_name"] == "Unknown Agency"
        assert m["mission_status"] == "TBD"
        assert m["description"] == "No description available."
        assert m["image_url"] is None
        assert m["launch_date"]

    def test_image_priority(self):
        raw = {"infographic": "https://img/info.png", "mission": {"patch": {"image_url": "https://img/patch.png"}}}
        assert pick_image(raw) == "https://img/patch.png"
        assert pick_image({"image": "https://img/top.png", **raw}) == "https://img/top.png"


class TestEonetGeometry:

    def test_point(self):
        shape = parse_shape("Point", [-120.5, 38.2])
        assert shape == PointGeometry((-120.5, 38.2))
        assert first_position(shape) == (-120.5, 38.2)

    def test_linestring(self):
        shape = parse_shape("LineString", [[1, 2], [3, 4]])
        assert isinstance(shape, LineStringGeometry)
        assert first_position(shape) == (1.0, 2.0)

    def test_polygon(self):
        shape = parse_shape("Polygon", [[[10, 20], [11, 21], [10, 20]]])
        assert isinstance(shape, PolygonGeometry)
        assert first_position(shape) == (10.0, 20.0)

    def test_shape_inferred_without_type(self):
        assert isinstance(parse_shape(None, [5, 6]), PointGeometry)
        assert isinstance(parse_shape(None, [[[5, 6]]]), PolygonGeometry)

    def test_garbage_is_unknown(self):
        shape = parse_shape("Point", ["a", "b"])
        assert isinstance(shape, UnknownGeometry)
        assert first_position(shape) is None


class TestEonetEvents:

    def test_normalize_event_uses_latest_sample(self):
        raw = eonet_event("EONET_9")
        raw["geometry"].append({
            "date": "2026-10-05T00:00:00Z", "type": "Point", "coordinates": [-121.0, 39.0],
            "magnitudeValue": 1200, "magnitudeUnit": "acres",
        })
        e = normalize_event(raw)
        assert e["id"] == "EONET_9"
        assert e["disaster_type"] == "Wildfires"
        assert e["coordinates"] == [{"lat": 39.0, "lng": -121.0}]
        assert e["event_date"] == "2026-10-05T00:00:00Z"
        assert e["magnitude_value"] == 1200.0
        assert e["magnitude_unit"] == "acres"
        assert e["source_url"] == "https://inciweb.example/1"
        assert e["description"] == "Active Wildfires event monitored by NASA EONET."
        assert has_location(e)

    def test_legacy_geometries_key(self):
        raw = eonet_event()
        raw["geometries"] = raw.pop("geometry")
        assert has_location(normalize_event(raw))

    def test_event_without_geometry_has_no_location(self):
        raw = eonet_event()
        raw["geometry"] = []
        e = normalize_event(raw)
        assert e["coordinates"] == []
        assert not has_location(e)

    def test_malformed_categories_and_sources_are_skipped(self):
        raw = eonet_event("EONET_5")
        raw["categories"] = ["Wildfires"]
        raw["sources"] = [None, {"url": "https://inciweb.example/5"}]
        raw["link"] = "https://eonet.example/EONET_5"
        e = normalize_event(raw)
        assert e["disaster_type"] == "Unknown"
        assert e["source_url"] == "https://inciweb.example/5"
        assert has_location(e)

    def test_non_list_fields_are_tolerated(self):
        raw = eonet_event("EONET_6")
        raw["categories"] = "Wildfires"
        raw["sources"] = {"url": "x"}
        raw["geometry"] = ["not a sample", {"date": "2026-10-02T00:00:00Z", "type": "Point", "coordinates": [1.0, 2.0]}]
        e = normalize_event(raw)
        assert e["disaster_type"] == "Unknown"
        assert e["source_url"] == ""
        assert e["coordinates"] == [{"lat": 2.0, "lng": 1.0}]


class TestNasaPower:

    def test_ideal_conditions(self):
        zone = ZONES[0]
        z = derive_zone_metrics(zone, power_payload(rain_per_day=2.5, temp=20.0, tmax=28.0)["properties"]["parameters"])
        # 75 mm over 30 days: full rain score, temperature in band
        assert z["rainfall_mm"] == 75
        assert z["vegetation_health"] == 100
        assert z["soil_moisture"] == 75
        assert z["crop_stress_level"] == "Low"
        assert z["yield_trend"] == 16.0
        assert z["alerts"] == []
        assert z["source"] == "nasa-power"
        assert z["id"] == zone["id"]

    def test_drought_and_heat(self):
        params = power_payload(rain_per_day=0.2, temp=33.0, tmax=41.0)["properties"]["parameters"]
        z = derive_zone_metrics(ZONES[1], params)
        assert z["crop_stress_level"] == "High"
        assert "Heat stress detected" in z["alerts"]
        assert "Drought conditions" in z["alerts"]
        assert "Low vegetation health" in z["alerts"]
        assert z["yield_trend"] < 0

    def test_missing_values_are_ignored(self):
        params = power_payload()["properties"]["parameters"]
        params["PRECTOTCORR"] = {k: -999 for k in params["PRECTOTCORR"]}
        z = derive_zone_metrics(ZONES[2], params)
        assert z["rainfall_mm"] == 0
        assert z["soil_moisture"] == 0

    def test_fallback_zone(self):
        z = fallback_zone(ZONES[3])
        assert z["source"] == "fallback"
        assert z["vegetation_health"] == 72
        assert z["area_hectares"] == ZONES[3]["area_hectares"]


class TestClimate:

    def test_regional_metrics_for_reference_year(self):
        rows = regional_metrics(2025)
        assert len(rows) == len(REGIONS)
        glob = rows[0]
        assert glob["id"] == "global-2025"
        assert glob["temperature_anomaly_c"] == 1.42
        assert glob["alerts"] is None
        arctic = next(r for r in rows if r["id"] == "arctic-2025")
        assert arctic["alerts"] == ["Critical warming detected - exceeds Paris Agreement targets"]

    def test_projection_follows_trend(self):
        later = regional_metrics(2035)[0]
        assert later["temperature_anomaly_c"] == pytest.approx(1.72)
        assert later["co2_ppm"] == pytest.approx(447.5)

    def test_history_oldest_first(self):
        series = historical_series(5, current_year=2026)
        assert [r["year"] for r in series] == [2022, 2023, 2024, 2025, 2026]
        assert all(r["region"] == "Global Average" for r in series)


class TestMarsRover:

    def test_normalize_photo(self):
        p = normalize_photo({"id": 7, "camera": {"name": "NAVCAM"}, "earth_date": "2026-10-01", "sol": 1500, "img_src": "https://img/1.jpg"}, "curiosity")
        assert p == {"id": "7", "rover": "curiosity", "camera": "NAVCAM", "earth_date": "2026-10-01", "sol": 1500, "img_src": "https://img/1.jpg"}

    @pytest.mark.asyncio
    async def test_fetch_keeps_photos_with_images(self):
        payload = {"latest_photos": [
            {"id": i, "img_src": f"https://img/{i}.jpg" if i % 2 == 0 else "", "camera": {}} for i in range(10)
        ]}
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
        async with httpx.AsyncClient(transport=transport) as client:
            photos = await fetch_latest_photos(client, "perseverance", max_images=3)
        assert [p["id"] for p in photos] == ["0", "2", "4"]

    @pytest.mark.asyncio
    async def test_unknown_rover(self):
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={}))) as client:
            with pytest.raises(ValueError):
                await fetch_latest_photos(client, "sojourner")


class TestApod:

    def test_normalize_image_record(self):
        a = normalize_apod(apod_payload())
        assert a["title"] == "Pillars of Creation"
        assert a["hdurl"] == "https://apod.nasa.gov/image/pillars_hd.jpg"
        assert a["copyright"] == "Jane Doe"
        assert a["video_id"] is None

    def test_video_record_gets_youtube_id(self):
        a = normalize_apod(apod_payload(media_type="video", url="https://www.youtube.com/embed/abc123?rel=0"))
        assert a["media_type"] == "video"
        assert a["video_id"] == "abc123"

    def test_record_without_url_is_rejected(self):
        raw = apod_payload()
        raw["url"] = ""
        assert normalize_apod(raw) is None

    def test_media_type_defaults_to_image(self):
        raw = apod_payload()
        del raw["media_type"]
        assert normalize_apod(raw)["media_type"] == "image"

    @pytest.mark.parametrize("url, expected", [
        ("https://www.youtube.com/watch?v=xyz", "xyz"),
        ("https://youtu.be/short1", "short1"),
        ("https://vimeo.com/123", None),
        ("not a url", None),
    ])
    def test_youtube_video_id(self, url, expected):
        assert youtube_video_id(url) == expected

    @pytest.mark.asyncio
    async def test_fetch_passes_date_and_key(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=apod_payload(date="2026-01-02"))

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            a = await fetch_apod(client, date="2026-01-02")
        assert a["date"] == "2026-01-02"
        assert seen[0].url.params["date"] == "2026-01-02"
        assert seen[0].url.params["api_key"]

    @pytest.mark.asyncio
    async def test_fetch_rejects_incomplete_record(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"date": "2026-01-02"}))
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(FetchError):
                await fetch_apod(client)


class TestNeo:

    def test_normalize_neo(self):
        f = normalize_neo(neo("3542519", hazardous=True))
        assert f["id"] == "3542519"
        assert f["date"] == "2026-10-20T00:00:00+00:00"
        assert f["hazardous"] is True
        assert f["diameter_km"] == pytest.approx(0.31)
        assert f["miss_distance_km"] == pytest.approx(4512345.67)
        assert f["visibility"]["visibility_score"] == 70
        assert f["visibility"]["direction"] == direction_for("3542519")
        assert "Potentially hazardous: Yes" in f["description"]["detailed"]

    def test_epoch_preferred_over_calendar_day(self):
        raw = neo("1")
        raw["close_approach_data"][0]["epoch_date_close_approach"] = 1792506720000
        assert normalize_neo(raw)["date"].startswith("2026-10-20T")

    def test_without_close_approach_is_skipped(self):
        raw = neo("1")
        raw["close_approach_data"] = []
        assert normalize_neo(raw) is None

    def test_missing_diameter_is_tolerated(self):
        raw = neo("1")
        raw["estimated_diameter"] = "n/a"
        f = normalize_neo(raw)
        assert f["diameter_km"] is None
        assert "Diameter: unknown" in f["description"]["detailed"]

    def test_direction_is_stable(self):
        assert direction_for("2000433") == direction_for("2000433")

    def test_flybys_capped_per_day_and_overall(self):
        by_day = {
            f"2026-10-{d:02d}": [neo(f"{d}-{i}", day=f"2026-10-{d:02d}") for i in range(3)]
            for d in range(27, 19, -1)
        }
        flybys = normalize_flybys(neo_feed(by_day))
        assert len(flybys) == 12
        assert [f["id"] for f in flybys[:3]] == ["20-0", "20-1", "21-0"]

    def test_flybys_skip_bad_entries(self):
        bad = neo("bad")
        bad["close_approach_data"] = None
        flybys = normalize_flybys(neo_feed({"2026-10-20": ["junk", bad, neo("ok")]}))
        assert [f["id"] for f in flybys] == ["ok"]

    def test_fallback_is_demo_record(self):
        [demo] = fallback_flybys()
        assert demo["id"] == "demo-asteroid-1"
        assert demo["hazardous"] is False

    @pytest.mark.asyncio
    async def test_fetch_requests_seven_day_window(self):
        from datetime import date

        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=neo_feed({}))

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await fetch_neo_feed(client, start=date(2026, 10, 19))
        assert seen[0].url.params["start_date"] == "2026-10-19"
        assert seen[0].url.params["end_date"] == "2026-10-26"

    @pytest.mark.asyncio
    async def test_fetch_rejects_unexpected_shape(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"near_earth_objects": []}))
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(FetchError):
                await fetch_neo_feed(client)


class TestSwpc:

    @pytest.mark.parametrize("flux, level", [
        (3e-3, "R5"), (2e-3, "R5"), (1e-3, "R4"), (1e-4, "R3"),
        (5e-5, "R2"), (1e-5, "R1"), (9.9e-6, None), (None, None),
    ])
    def test_r_scale(self, flux, level):
        assert r_scale(flux) == level

    def test_flux_from_class(self):
        assert flux_from_class("M2.3") == pytest.approx(2.3e-5)
        assert flux_from_class("x") == pytest.approx(1e-4)
        assert flux_from_class("Unk") is None

    def test_normalize_flare(self):
        f = normalize_flare(swpc_flare())
        assert f["class"] == "M2.3"
        assert f["peak_flux"] == pytest.approx(2.3e-5)
        assert f["r_scale"] == "R1"
        assert f["ongoing"] is False

    def test_missing_flux_derived_from_class(self):
        f = normalize_flare(swpc_flare(max_class="X1.5", flux=None, end_time="Unk"))
        assert f["peak_flux"] == pytest.approx(1.5e-4)
        assert f["r_scale"] == "R3"
        assert f["end_time"] is None
        assert f["ongoing"] is True

    def test_record_without_times_is_dropped(self):
        assert normalize_flare({"max_class": "C1.0"}) is None

    def test_newest_peak_first(self):
        flares = normalize_flares([
            swpc_flare(max_time="2026-10-18T08:00:00Z"),
            "junk",
            swpc_flare(max_time="2026-10-19T08:00:00Z"),
        ])
        assert [f["peak_time"] for f in flares] == ["2026-10-19T08:00:00Z", "2026-10-18T08:00:00Z"]
