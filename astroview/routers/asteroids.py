"""
astroview/routers/asteroids.py
Endpoints:
  GET /asteroids        → near-Earth flybys for the coming week (NASA NeoWs)
  GET /asteroids/{id}   → single flyby, 404 if not in the current window
"""

from fastapi import APIRouter, Depends, HTTPException

from astroview.services import Services, get_services

router = APIRouter(prefix="/asteroids", tags=["asteroids"])


@router.get("")
async def list_flybys(services: Services = Depends(get_services)):
    return await services.asteroids.get_flybys()


@router.get("/{asteroid_id}")
async def get_asteroid(asteroid_id: str, services: Services = Depends(get_services)):
    flyby = await services.asteroids.get_asteroid_by_id(asteroid_id)
    if flyby is None:
        raise HTTPException(404, detail=f"Asteroid {asteroid_id} not found")
    return flyby
