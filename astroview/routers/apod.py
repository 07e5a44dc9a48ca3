"""
astroview/routers/apod.py
Endpoints:
  GET /apod              → today's Astronomy Picture of the Day
  GET /apod?date=YYYY-MM-DD → that day's entry (422 on a malformed date)

503 only when NASA is down and no durable copy exists.
"""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from astroview.services import Services, get_services

router = APIRouter(prefix="/apod", tags=["apod"])


@router.get("")
async def get_apod(
    date: Optional[dt.date] = Query(None, description="YYYY-MM-DD, defaults to today"),
    services: Services = Depends(get_services),
):
    apod = await services.apod.get_apod(date.isoformat() if date else None)
    if apod is None:
        raise HTTPException(503, detail="Astronomy Picture of the Day is unavailable")
    return apod
