"""
astroview/routers/disasters.py
Endpoints:
  GET /disasters         → active natural events (NASA EONET)
  GET /disasters?type=   → filtered by disaster_type (case-insensitive)
  GET /disasters/{id}    → single event, 404 if not currently active
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from astroview.services import Services, get_services

router = APIRouter(prefix="/disasters", tags=["disasters"])


@router.get("")
async def list_disasters(
    type: Optional[str] = Query(None, description="e.g. Wildfires, Severe Storms"),
    services: Services = Depends(get_services),
):
    events = await services.disasters.get_active_disasters()
    if type:
        events = [e for e in events if e.get("disaster_type", "").lower() == type.lower()]
    return events


@router.get("/{event_id}")
async def get_disaster(event_id: str, services: Services = Depends(get_services)):
    event = await services.disasters.get_disaster_by_id(event_id)
    if event is None:
        raise HTTPException(404, detail=f"Event {event_id} is not active")
    return event
