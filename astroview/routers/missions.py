"""
astroview/routers/missions.py
Endpoints:
  GET /missions        → upcoming missions (Launch Library + rover imagery)
  GET /missions/{id}   → single mission, 404 if unknown

Served through the missions controller: cached, stale-while-refresh,
durable fallback. Upstream failures never surface as 5xx here.
"""

from fastapi import APIRouter, Depends, HTTPException

from astroview.services import Services, get_services

router = APIRouter(prefix="/missions", tags=["missions"])


@router.get("")
async def list_missions(services: Services = Depends(get_services)):
    return await services.missions.get_upcoming_missions()


@router.get("/{mission_id}")
async def get_mission(mission_id: str, services: Services = Depends(get_services)):
    mission = await services.missions.get_mission_by_id(mission_id)
    if mission is None:
        raise HTTPException(404, detail=f"Mission {mission_id} not found")
    return mission
