"""Data models for user moderation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from curator.generations.normalizer import jsonable


class Role(str, Enum):
    """Account roles, lowest to highest privilege."""

    user = "user"
    premium = "premium"
    creator = "creator"
    moderator = "moderator"
    admin = "admin"

    @property
    def level(self) -> int:
        return {
            Role.user: 10,
            Role.premium: 20,
            Role.creator: 30,
            Role.moderator: 40,
            Role.admin: 50,
        }[self]


VALID_ROLES = [r.value for r in Role]


class UserNotFound(LookupError):
    def __init__(self, uid: str) -> None:
        super().__init__(f"User not found: {uid}")
        self.uid = uid


@dataclass
class UserRecord:
    """A ``users`` document as the panel shows it."""

    uid: str
    email: str = ""
    username: str = ""
    display_name: str = ""
    photo_url: str = ""
    role: Role = Role.user
    is_banned: bool = False
    is_suspended: bool = False
    credit_balance: int = 0
    warning_count: int = 0
    email_verified: bool = False
    login_history: list[dict[str, Any]] = field(default_factory=list)
    total_generations: Optional[int] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.extra)
        out.update(
            {
                "uid": self.uid,
                "id": self.uid,
                "email": self.email,
                "username": self.username,
                "displayName": self.display_name,
                "photoURL": self.photo_url,
                "role": self.role.value,
                "isBanned": self.is_banned,
                "isSuspended": self.is_suspended,
                "creditBalance": self.credit_balance,
                "warningCount": self.warning_count,
                "emailVerified": self.email_verified,
                "loginHistory": self.login_history,
            }
        )
        if self.total_generations is not None:
            out["totalGenerations"] = self.total_generations
        return out


_KNOWN_USER_FIELDS = {
    "email",
    "username",
    "displayName",
    "photoURL",
    "role",
    "isBanned",
    "isSuspended",
    "creditBalance",
    "warningCount",
    "emailVerified",
    "loginHistory",
}


def _int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def _role(value: Any) -> Role:
    try:
        return Role(value)
    except ValueError:
        return Role.user


def normalize_user(uid: str, data: Optional[dict[str, Any]]) -> UserRecord:
    """Build a ``UserRecord`` from a raw ``users`` document; never raises."""
    data = data if isinstance(data, dict) else {}
    history = data.get("loginHistory")
    return UserRecord(
        uid=str(uid),
        email=str(data.get("email") or ""),
        username=str(data.get("username") or ""),
        display_name=str(data.get("displayName") or ""),
        photo_url=str(data.get("photoURL") or ""),
        role=_role(data.get("role")),
        is_banned=data.get("isBanned") is True,
        is_suspended=data.get("isSuspended") is True,
        credit_balance=_int(data.get("creditBalance")),
        warning_count=_int(data.get("warningCount")),
        email_verified=data.get("emailVerified") is True,
        login_history=[jsonable(e) for e in history if isinstance(e, dict)] if isinstance(history, list) else [],
        extra={k: jsonable(v) for k, v in data.items() if k not in _KNOWN_USER_FIELDS},
    )


@dataclass
class CreditAdjustment:
    previous_balance: int
    new_balance: int
    change: int

    def to_dict(self) -> dict[str, int]:
        return {"previousBalance": self.previous_balance, "newBalance": self.new_balance, "change": self.change}
