"""Blocklist router -- blocked IP addresses and devices."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from curator.auth import AdminIdentity
from curator.services import Services
from web.backend.app.dependencies import call_service, get_services, ok
from web.backend.app.middleware.auth import require_admin
from web.backend.app.models.api import BlockDeviceRequest, BlockIPRequest

router = APIRouter(prefix="/api", tags=["blocklist"])


# ---------------------------------------------------------------------------
# IPs
# ---------------------------------------------------------------------------


@router.get("/ips/blocked")
async def blocked_ips(services: Services = Depends(get_services), _: AdminIdentity = Depends(require_admin)):
    ips = await call_service(services.ips.list_blocked(), "Failed to list blocked IPs")
    return ok({"ips": ips, "total": len(ips)})


@router.post("/ips/block")
async def block_ip(
    body: BlockIPRequest,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    await call_service(
        services.ips.block(body.ip, body.reason, admin.email, target_uid=body.target_uid), "Failed to block IP"
    )
    return ok(message="IP blocked successfully")


@router.delete("/ips/unblock/{ip:path}")
async def unblock_ip(ip: str, services: Services = Depends(get_services), admin: AdminIdentity = Depends(require_admin)):
    await call_service(services.ips.unblock(ip, admin.email), "Failed to unblock IP")
    return ok(message="IP unblocked successfully")


# ---------------------------------------------------------------------------
# Devices
# ---------------------------------------------------------------------------


@router.get("/devices/blocked")
async def blocked_devices(services: Services = Depends(get_services), _: AdminIdentity = Depends(require_admin)):
    devices = await call_service(services.devices.list_blocked(), "Failed to list blocked devices")
    return ok({"devices": devices, "total": len(devices)})


@router.post("/devices/block")
async def block_device(
    body: BlockDeviceRequest,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    await call_service(
        services.devices.block(body.device_id, body.reason, admin.email, target_uid=body.target_uid),
        "Failed to block device",
    )
    return ok(message="Device blocked successfully")


@router.delete("/devices/unblock/{device_id}")
async def unblock_device(
    device_id: str,
    services: Services = Depends(get_services),
    admin: AdminIdentity = Depends(require_admin),
):
    await call_service(services.devices.unblock(device_id, admin.email), "Failed to unblock device")
    return ok(message="Device unblocked successfully")
