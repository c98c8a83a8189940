"""Feature flags router -- global flags and per-user overrides."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from curator.auth import AdminIdentity
from curator.services import Services
from web.backend.app.dependencies import call_service, get_services, ok
from web.backend.app.middleware.auth import require_admin
from web.backend.app.models.api import FlagRequest

router = APIRouter(prefix="/api/feature-flags", tags=["feature-flags"])


@router.get("")
async def global_flags(services: Services = Depends(get_services), _: AdminIdentity = Depends(require_admin)):
    flags = await call_service(services.flags.global_flags(), "Failed to fetch feature flags")
    return ok({"flags": flags})


@router.get("/user/{uid}")
async def user_flags(uid: str, services: Services = Depends(get_services), _: AdminIdentity = Depends(require_admin)):
    flags = await call_service(services.flags.user_flags(uid), "Failed to fetch user flags")
    return ok({"flags": flags})


@router.patch("/user/{uid}/{flag}")
async def set_user_flag(
    uid: str,
    flag: str,
    body: FlagRequest,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    await call_service(services.flags.set_user(uid, flag, body.enabled, admin.email), "Failed to set user flag")
    return ok(message=f"User flag '{flag}' set to {str(body.enabled).lower()}")


@router.patch("/{flag}")
async def set_global_flag(
    flag: str,
    body: FlagRequest,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    await call_service(services.flags.set_global(flag, body.enabled, admin.email), "Failed to set feature flag")
    return ok(message=f"Flag '{flag}' set to {str(body.enabled).lower()}")
