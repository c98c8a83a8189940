"""Users router -- the user listing, profile views and moderation actions."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from curator.auth import AdminIdentity
from curator.generations.service import clamp_limit
from curator.services import Services
from web.backend.app.dependencies import call_service, get_services, ok
from web.backend.app.middleware.auth import require_admin
from web.backend.app.models.api import (
    AdjustCreditsRequest,
    BanRequest,
    RoleRequest,
    SuspendRequest,
    WarningRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


@router.get("")
async def list_users(
    limit: Optional[int] = Query(None),
    cursor: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    filter_type: str = Query("all", alias="filterType"),
    filter_date: Optional[str] = Query(None, alias="filterDate"),
    services: Services = Depends(get_services),
    _: AdminIdentity = Depends(require_admin),
):
    page = await call_service(
        services.users.list_users(
            limit=clamp_limit(limit, default=50),
            cursor=cursor or None,
            search=search,
            filter_type=filter_type,
            filter_date=filter_date,
            email=email,
            is_active=is_active,
        ),
        "Failed to fetch users",
    )
    return ok(page.to_dict())


@router.get("/count")
async def count_users(services: Services = Depends(get_services), _: AdminIdentity = Depends(require_admin)):
    total = await call_service(services.users.count_users(), "Failed to fetch user count")
    return ok({"total": total, "timestamp": datetime.now(timezone.utc).isoformat()})


@router.get("/{uid}")
async def get_user(uid: str, services: Services = Depends(get_services), _: AdminIdentity = Depends(require_admin)):
    user = await call_service(services.users.get_user(uid), "Failed to fetch user")
    return ok({"user": user.to_dict()})


@router.get("/{uid}/generations")
async def user_generations(
    uid: str,
    limit: Optional[int] = Query(None),
    cursor: Optional[str] = Query(None),
    services: Services = Depends(get_services),
    _: AdminIdentity = Depends(require_admin),
):
    page = await call_service(
        services.generations.list_for_user(uid, clamp_limit(limit), cursor or None),
        "Failed to fetch user generations",
    )
    return ok(page.to_dict())


@router.get("/{uid}/ips")
async def user_ips(uid: str, services: Services = Depends(get_services), _: AdminIdentity = Depends(require_admin)):
    ips = await call_service(services.users.user_ips(uid), "Failed to fetch user IPs")
    return ok({"ips": ips})


@router.get("/{uid}/devices")
async def user_devices(uid: str, services: Services = Depends(get_services), _: AdminIdentity = Depends(require_admin)):
    devices, history = await call_service(services.users.user_devices(uid), "Failed to fetch user devices")
    return ok({"devices": devices, "loginHistory": history})


# ---------------------------------------------------------------------------
# Account moderation
# ---------------------------------------------------------------------------


@router.post("/{uid}/suspend")
async def suspend_user(
    uid: str,
    body: SuspendRequest,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    await call_service(
        services.moderator.suspend(uid, body.reason, admin.email, suspended_until=body.suspended_until),
        "Failed to suspend user",
    )
    return ok(message="User suspended successfully")


@router.post("/{uid}/unsuspend")
async def unsuspend_user(uid: str, services: Services = Depends(get_services), admin: AdminIdentity = Depends(require_admin)):
    await call_service(services.moderator.unsuspend(uid, admin.email), "Failed to unsuspend user")
    return ok(message="User unsuspended successfully")


@router.post("/{uid}/ban")
async def ban_user(
    uid: str,
    body: BanRequest,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    await call_service(services.moderator.ban(uid, body.reason, admin.email), "Failed to ban user")
    return ok(message="User banned successfully")


@router.post("/{uid}/unban")
async def unban_user(uid: str, services: Services = Depends(get_services), admin: AdminIdentity = Depends(require_admin)):
    await call_service(services.moderator.unban(uid, admin.email), "Failed to unban user")
    return ok(message="User unbanned successfully")


@router.post("/{uid}/force-logout")
async def force_logout(uid: str, services: Services = Depends(get_services), admin: AdminIdentity = Depends(require_admin)):
    await call_service(services.moderator.force_logout(uid, admin.email), "Failed to force logout user")
    return ok(message="User sessions revoked successfully")


@router.patch("/{uid}/role")
async def set_role(
    uid: str,
    body: RoleRequest,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    previous = await call_service(services.moderator.set_role(uid, body.role, admin.email), "Failed to set user role")
    return ok({"previousRole": previous, "role": body.role}, message=f"Role updated to {body.role}")


@router.post("/{uid}/verify-email")
async def verify_email(uid: str, services: Services = Depends(get_services), admin: AdminIdentity = Depends(require_admin)):
    await call_service(services.moderator.verify_email(uid, admin.email), "Failed to verify email")
    return ok(message="Email verified successfully")


# ---------------------------------------------------------------------------
# Credits
# ---------------------------------------------------------------------------


@router.post("/{uid}/adjust-credits")
async def adjust_credits(
    uid: str,
    body: AdjustCreditsRequest,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    result = await call_service(
        services.credits.adjust(uid, body.amount, body.reason, admin.email), "Failed to adjust credits"
    )
    verb = "added" if result.change >= 0 else "deducted"
    return ok(result.to_dict(), message=f"Credits {verb} successfully")


@router.get("/{uid}/credit-history")
async def credit_history(uid: str, services: Services = Depends(get_services), _: AdminIdentity = Depends(require_admin)):
    history = await call_service(services.credits.history(uid), "Failed to fetch credit history")
    return ok({"history": history, "total": len(history)})


# ---------------------------------------------------------------------------
# Warnings
# ---------------------------------------------------------------------------


@router.get("/{uid}/warnings")
async def list_warnings(uid: str, services: Services = Depends(get_services), _: AdminIdentity = Depends(require_admin)):
    warnings = await call_service(services.warnings.list_for_user(uid), "Failed to fetch warnings")
    return ok({"warnings": warnings, "total": len(warnings)})


@router.post("/{uid}/warnings")
async def issue_warning(
    uid: str,
    body: WarningRequest,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    warning_id = await call_service(services.warnings.issue(uid, body.reason, admin.email), "Failed to issue warning")
    return ok({"warningId": warning_id}, message="Warning issued")


@router.delete("/{uid}/warnings/{warning_id}")
async def delete_warning(
    uid: str,
    warning_id: str,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    await call_service(services.warnings.delete(uid, warning_id, admin.email), "Failed to delete warning")
    return ok(message="Warning deleted")
