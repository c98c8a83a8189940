"""Audit router -- paginated read of the admin audit log."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from curator.auth import AdminIdentity
from curator.services import Services
from web.backend.app.dependencies import call_service, get_services, ok
from web.backend.app.middleware.auth import require_admin

router = APIRouter(prefix="/api/audit-logs", tags=["audit"])


@router.get("")
async def audit_logs(
    admin_email: Optional[str] = Query(None, alias="adminEmail"),
    target_uid: Optional[str] = Query(None, alias="targetUid"),
    limit: int = Query(50),
    cursor: Optional[str] = Query(None),
    services: Services = Depends(get_services),
    _: AdminIdentity = Depends(require_admin),
):
    page = await call_service(
        services.audit.get_entries(admin_email=admin_email, target_uid=target_uid, limit=limit, cursor=cursor),
        "Failed to fetch audit logs",
    )
    return ok(
        {
            "logs": [e.to_dict() for e in page.entries],
            "nextCursor": page.next_cursor,
            "hasMore": page.has_more,
        }
    )
