"""Broadcast router -- direct email and announcements."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from curator.auth import AdminIdentity
from curator.services import Services
from web.backend.app.dependencies import call_service, get_services, ok
from web.backend.app.middleware.auth import require_admin
from web.backend.app.models.api import AnnouncementRequest, EmailRequest

router = APIRouter(prefix="/api/broadcast", tags=["broadcast"])


@router.post("/email")
async def send_email(
    body: EmailRequest,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    outcome = await call_service(
        services.broadcaster.send_email(body.uid or "", body.subject or "", body.body or "", admin.email),
        "Failed to send email",
    )
    message = (
        "Email sent successfully via Resend"
        if outcome.sent
        else "Email logged but not sent; configure RESEND_API_KEY and SMTP_FROM"
    )
    return ok(outcome.to_dict(), message=message)


@router.post("/announcement")
async def create_announcement(
    body: AnnouncementRequest,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    announcement_id = await call_service(
        services.broadcaster.create_announcement(
            body.title or "",
            body.body or "",
            admin.email,
            target_group=body.target_group,
            expires_at=body.expires_at,
        ),
        "Failed to create announcement",
    )
    return ok({"id": announcement_id}, message="Announcement created")


@router.get("/announcements")
async def list_announcements(services: Services = Depends(get_services), _: AdminIdentity = Depends(require_admin)):
    announcements = await call_service(services.broadcaster.announcements(), "Failed to fetch announcements")
    return ok({"announcements": announcements})


@router.patch("/announcements/{announcement_id}/deactivate")
async def deactivate_announcement(
    announcement_id: str,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    await call_service(
        services.broadcaster.deactivate(announcement_id, admin.email), "Failed to deactivate announcement"
    )
    return ok(message="Announcement deactivated")
