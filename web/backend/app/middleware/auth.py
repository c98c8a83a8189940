"""Auth middleware -- FastAPI dependency for the signed-in admin.

The admin token is read from (in order):
1. the ``admin_token`` cookie set at login
2. an ``Authorization: Bearer <token>`` header
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from curator.auth import COOKIE_NAME, AdminIdentity, InvalidToken
from curator.services import Services
from web.backend.app.dependencies import get_services


def _token_from_request(request: Request, authorization: Optional[str]) -> Optional[str]:
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    return None


async def require_admin(
    request: Request,
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services),
) -> AdminIdentity:
    """Raises ``401 Unauthorized`` unless a valid admin token is presented."""
    token = _token_from_request(request, authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return services.authenticator.verify(token)
    except InvalidToken:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
