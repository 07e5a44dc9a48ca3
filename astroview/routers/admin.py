"""
astroview/routers/admin.py
Operational endpoints. When ADMIN_TOKEN is configured every mutating call
(and the cache status) needs header `x-admin-token`, else 401.

  GET  /admin/metrics          → {"metrics": {...}}
  POST /admin/metrics          → reset metrics
  GET  /admin/cache            → in-process cache ages
  POST /admin/cache?key=...    → clear one key, or everything
  POST /admin/refresh          → clear + run one warm cycle
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import JSONResponse

from astroview.services import Services, get_services

log    = logging.getLogger("admin_router")
router = APIRouter(prefix="/admin", tags=["admin"])


def _unauthorized(request: Request, provided: Optional[str]) -> Optional[JSONResponse]:
    token = request.app.state.admin_token
    if not token:
        return None
    if provided and secrets.compare_digest(provided.encode(), token.encode()):
        return None
    log.warning(f"Rejected admin call to {request.url.path}")
    return JSONResponse({"ok": False, "error": "unauthorized"}, status_code=401)


@router.get("/metrics")
async def read_metrics(services: Services = Depends(get_services)):
    return {"metrics": services.metrics.snapshot()}


@router.post("/metrics")
async def reset_metrics(
    request: Request,
    x_admin_token: Optional[str] = Header(None),
    services: Services = Depends(get_services),
):
    denied = _unauthorized(request, x_admin_token)
    if denied:
        return denied
    try:
        services.metrics.reset()
    except Exception as ex:
        log.error(f"Failed to reset metrics: {ex}")
        return JSONResponse({"ok": False}, status_code=500)
    return {"ok": True}


@router.get("/cache")
async def cache_status(
    request: Request,
    x_admin_token: Optional[str] = Header(None),
    services: Services = Depends(get_services),
):
    denied = _unauthorized(request, x_admin_token)
    if denied:
        return denied
    return {
        "ok":                  True,
        "entries":             services.cache.summary(),
        "refreshes_in_flight": services.cache.refreshes_in_flight,
        "durable_store":       services.store is not None,
    }


@router.post("/cache")
async def clear_cache(
    request: Request,
    key: Optional[str] = Query(None),
    x_admin_token: Optional[str] = Header(None),
    services: Services = Depends(get_services),
):
    denied = _unauthorized(request, x_admin_token)
    if denied:
        return denied
    try:
        services.cache.clear_cache(key)
    except Exception as ex:
        log.error(f"Failed to clear cache: {ex}")
        return JSONResponse({"ok": False}, status_code=500)
    return {"ok": True}


@router.post("/refresh")
async def refresh(
    request: Request,
    x_admin_token: Optional[str] = Header(None),
    services: Services = Depends(get_services),
):
    denied = _unauthorized(request, x_admin_token)
    if denied:
        return denied
    try:
        services.cache.clear_cache()
        results = await request.app.state.warmer.warm()
    except Exception as ex:
        log.error(f"Refresh failed: {ex}")
        return JSONResponse({"ok": False}, status_code=500)
    return {"ok": True, "results": results}
