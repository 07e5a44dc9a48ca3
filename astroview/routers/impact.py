"""
astroview/routers/impact.py
Endpoints:
  GET /impact/summary                   → disasters + agriculture summary, partial-tolerant
  GET /impact/agriculture               → agriculture summary (6 h durable)
  GET /impact/agriculture/zones         → monitored zones
  GET /impact/agriculture/zones/{id}
  GET /impact/climate                   → climate summary (6 h durable)
  GET /impact/climate/metrics           → regional indicators
  GET /impact/climate/metrics/{id}
  GET /impact/climate/history?years=5   → global series, oldest first
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from astroview.services import Services, get_services

log    = logging.getLogger("impact_router")
router = APIRouter(prefix="/impact", tags=["impact"])


@router.get("/summary")
async def impact_summary(services: Services = Depends(get_services)):
    # One failing half must not take the whole response down
    disasters, agriculture = await asyncio.gather(
        services.disasters.get_active_disasters(),
        services.agriculture.get_summary(),
        return_exceptions=True,
    )
    partial = isinstance(disasters, Exception) or isinstance(agriculture, Exception)
    if partial:
        log.warning("/impact/summary returning partial data due to upstream failures")
    return {
        "active_disasters":    [] if isinstance(disasters, Exception) else disasters,
        "agriculture_summary": None if isinstance(agriculture, Exception) else agriculture,
        "partial":             partial,
    }


# ── Agriculture ───────────────────────────────────────────────────────────────

@router.get("/agriculture")
async def agriculture_summary(services: Services = Depends(get_services)):
    return await services.agriculture.get_summary()


@router.get("/agriculture/zones")
async def agriculture_zones(services: Services = Depends(get_services)):
    return await services.agriculture.get_zones()


@router.get("/agriculture/zones/{zone_id}")
async def agriculture_zone(zone_id: str, services: Services = Depends(get_services)):
    zone = await services.agriculture.get_zone_by_id(zone_id)
    if zone is None:
        raise HTTPException(404, detail=f"Zone {zone_id} not found")
    return zone


# ── Climate ───────────────────────────────────────────────────────────────────

@router.get("/climate")
async def climate_summary(services: Services = Depends(get_services)):
    return await services.climate.get_summary()


@router.get("/climate/metrics")
async def climate_metrics(services: Services = Depends(get_services)):
    return await services.climate.get_metrics()


@router.get("/climate/metrics/{metric_id}")
async def climate_metric(metric_id: str, services: Services = Depends(get_services)):
    metric = await services.climate.get_metric_by_id(metric_id)
    if metric is None:
        raise HTTPException(404, detail=f"Metric {metric_id} not found")
    return metric


@router.get("/climate/history")
async def climate_history(
    years: int = Query(5, ge=1, le=30),
    services: Services = Depends(get_services),
):
    return await services.climate.get_historical(years)
