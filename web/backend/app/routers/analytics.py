"""Analytics router -- dashboard totals, growth, timelines and rankings."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from curator.auth import AdminIdentity
from curator.services import Services
from web.backend.app.dependencies import call_service, get_services, ok
from web.backend.app.middleware.auth import require_admin

router = APIRouter(prefix="/api/analytics", tags=["analytics"], dependencies=[Depends(require_admin)])


@router.get("/stats")
async def stats(services: Services = Depends(get_services)):
    return ok(await call_service(services.analytics.stats(), "Failed to fetch analytics stats"))


@router.get("/timeline")
async def timeline(
    days: Optional[int] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    services: Services = Depends(get_services),
):
    """Sign-ups and generations per UTC day."""
    buckets = await call_service(
        services.analytics.timeline(days=days, start_date=start_date, end_date=end_date),
        "Failed to fetch timeline data",
    )
    return ok({"timeline": buckets})


@router.get("/top-users")
async def top_users(limit: int = Query(10, ge=1, le=100), services: Services = Depends(get_services)):
    users = await call_service(services.analytics.top_users(limit), "Failed to fetch top users")
    return ok({"users": users})


@router.get("/top-generators")
async def top_generators(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    limit: int = Query(10, ge=1, le=100),
    services: Services = Depends(get_services),
):
    users = await call_service(
        services.analytics.top_generators(start_date=start_date, end_date=end_date, limit=limit),
        "Failed to fetch top generators",
    )
    return ok({"users": users})


@router.get("/user/{uid}")
async def user_stats(uid: str, services: Services = Depends(get_services)):
    return ok(await call_service(services.analytics.user_stats(uid), "Failed to fetch user stats"))


@router.get("/breakdown")
async def breakdown(range_name: str = Query("all", alias="range"), services: Services = Depends(get_services)):
    return ok(await call_service(services.analytics.breakdown(range_name), "Failed to fetch breakdown"))


@router.get("/audit")
async def data_audit(services: Services = Depends(get_services)):
    """Consistency check between category counts and raw totals."""
    return ok(await call_service(services.analytics.data_audit(), "Failed to fetch audit data"))


@router.get("/growth")
async def user_growth(services: Services = Depends(get_services)):
    return ok(await call_service(services.analytics.user_growth(), "Failed to fetch user growth"))


@router.get("/models")
async def model_stats(range_name: str = Query("all", alias="range"), services: Services = Depends(get_services)):
    return ok(await call_service(services.analytics.model_stats(range_name), "Failed to fetch model stats"))
