"""Auth router -- admin login, logout and token verification."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from curator.auth import COOKIE_NAME, AdminIdentity
from curator.services import Services
from web.backend.app.dependencies import get_services, ok
from web.backend.app.middleware.auth import require_admin
from web.backend.app.models.api import LoginRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login")
async def login(body: LoginRequest, response: Response, services: Services = Depends(get_services)):
    """Check the configured admin credentials and set the session cookie."""
    if not body.email or not body.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email and password are required")

    identity = services.authenticator.check_credentials(body.email, body.password)
    if identity is None:
        logger.warning("Failed admin login for %s", body.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = services.authenticator.issue(identity)
    response.set_cookie(
        COOKIE_NAME,
        token,
        httponly=True,
        secure=services.settings.is_production,
        samesite="strict",
        max_age=int(services.authenticator.ttl.total_seconds()),
    )
    logger.info("Admin %s logged in", identity.email)
    return {"success": True, "token": token, "admin": identity.to_dict()}


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(COOKIE_NAME)
    return ok(message="Logged out successfully")


@router.get("/verify")
async def verify(admin: AdminIdentity = Depends(require_admin)):
    return ok({"admin": admin.to_dict()}, message="Token is valid")
