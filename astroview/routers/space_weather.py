"""
astroview/routers/space_weather.py
Endpoints:
  GET /solar-flares   → latest GOES X-ray flares (NOAA SWPC), newest first
"""

from fastapi import APIRouter, Depends

from astroview.services import Services, get_services

router = APIRouter(tags=["space-weather"])


@router.get("/solar-flares")
async def list_solar_flares(services: Services = Depends(get_services)):
    return await services.space_weather.get_solar_flares()
