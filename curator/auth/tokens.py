"""Admin login and signed session tokens (HS256 JWT)."""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

ALGORITHM = "HS256"
ADMIN_ID = "admin-1"
COOKIE_NAME = "admin_token"


class InvalidToken(Exception):
    pass


@dataclass
class AdminIdentity:
    admin_id: str
    email: str
    role: str = "admin"

    def to_dict(self) -> dict[str, str]:
        return {"id": self.admin_id, "email": self.email, "role": self.role}


class AdminAuthenticator:
    """Checks the configured admin credentials and issues/verifies tokens."""

    def __init__(self, admin_email: str, admin_password: str, secret: str, ttl_hours: int = 24) -> None:
        self._email = admin_email
        self._password = admin_password
        self._secret = secret
        self.ttl = timedelta(hours=ttl_hours)

    def check_credentials(self, email: str, password: str) -> Optional[AdminIdentity]:
        if not self._password:
            # no password configured: login disabled
            return None
        email_ok = hmac.compare_digest(email.encode(), self._email.encode())
        password_ok = hmac.compare_digest(password.encode(), self._password.encode())
        if email_ok and password_ok:
            return AdminIdentity(admin_id=ADMIN_ID, email=self._email)
        return None

    def issue(self, identity: AdminIdentity, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        claims = {
            "adminId": identity.admin_id,
            "email": identity.email,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> AdminIdentity:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except JWTError as exc:
            raise InvalidToken(str(exc)) from None
        email = payload.get("email")
        admin_id = payload.get("adminId")
        if not email or not admin_id:
            raise InvalidToken("Token is missing admin claims")
        return AdminIdentity(admin_id=admin_id, email=email)
