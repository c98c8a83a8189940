"""Account moderation: suspensions, bans, sessions, roles and email verification.

Each action updates the ``users`` document, calls the identity provider
where the account itself must change, and records an audit entry.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from curator.audit import AuditLogger
from curator.moderation.identity import IdentityProvider
from curator.moderation.models import Role, UserNotFound, VALID_ROLES
from curator.store import DELETE_FIELD, DocumentNotFound, DocumentStore

USERS_COLLECTION = "users"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require(value: Optional[str], message: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(message)
    return str(value).strip()


class UserModerator:
    """Moderation actions on user accounts."""

    def __init__(self, store: DocumentStore, identity: IdentityProvider, audit: AuditLogger) -> None:
        self._store = store
        self._identity = identity
        self._audit = audit

    async def _update_user(self, uid: str, updates: dict[str, Any]) -> None:
        try:
            await self._store.update(USERS_COLLECTION, uid, updates)
        except DocumentNotFound:
            raise UserNotFound(uid) from None

    async def suspend(
        self,
        uid: str,
        reason: Optional[str],
        admin_email: str,
        suspended_until: Optional[str] = None,
    ) -> None:
        reason = _require(reason, "Reason is required")
        updates: dict[str, Any] = {
            "isSuspended": True,
            "suspendReason": reason,
            "suspendedAt": _now_iso(),
            "suspendedBy": admin_email or "admin",
        }
        if suspended_until:
            updates["suspendedUntil"] = suspended_until
        await self._update_user(uid, updates)
        # logged out immediately
        await self._identity.revoke_sessions(uid)
        await self._audit.log_action(
            admin_email,
            "SUSPEND_USER",
            target_uid=uid,
            details={"reason": reason, "suspendedUntil": suspended_until},
        )

    async def unsuspend(self, uid: str, admin_email: str) -> None:
        await self._update_user(
            uid,
            {
                "isSuspended": False,
                "suspendReason": DELETE_FIELD,
                "suspendedAt": DELETE_FIELD,
                "suspendedBy": DELETE_FIELD,
                "suspendedUntil": DELETE_FIELD,
            },
        )
        await self._audit.log_action(admin_email, "UNSUSPEND_USER", target_uid=uid)

    async def ban(self, uid: str, reason: Optional[str], admin_email: str) -> None:
        reason = _require(reason, "Reason is required")
        await self._update_user(
            uid,
            {
                "isBanned": True,
                "banReason": reason,
                "bannedAt": _now_iso(),
                "bannedBy": admin_email or "admin",
            },
        )
        await self._identity.set_disabled(uid, True)
        await self._audit.log_action(admin_email, "BAN_USER", target_uid=uid, details={"reason": reason})

    async def unban(self, uid: str, admin_email: str) -> None:
        await self._update_user(
            uid,
            {
                "isBanned": False,
                "banReason": DELETE_FIELD,
                "bannedAt": DELETE_FIELD,
                "bannedBy": DELETE_FIELD,
            },
        )
        await self._identity.set_disabled(uid, False)
        await self._audit.log_action(admin_email, "UNBAN_USER", target_uid=uid)

    async def force_logout(self, uid: str, admin_email: str) -> None:
        await self._identity.revoke_sessions(uid)
        await self._audit.log_action(admin_email, "FORCE_LOGOUT", target_uid=uid)

    async def set_role(self, uid: str, role: Optional[str], admin_email: str) -> str:
        """Change a user's role and return the previous one."""
        if role not in VALID_ROLES:
            raise ValueError(f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}")
        doc = await self._store.get(USERS_COLLECTION, uid)
        if doc is None:
            raise UserNotFound(uid)
        previous = doc.data.get("role") or Role.user.value
        await self._update_user(
            uid,
            {"role": role, "roleUpdatedAt": _now_iso(), "roleUpdatedBy": admin_email or "admin"},
        )
        await self._audit.log_action(
            admin_email, "SET_ROLE", target_uid=uid, details={"previousRole": previous, "newRole": role}
        )
        return previous

    async def verify_email(self, uid: str, admin_email: str) -> None:
        await self._identity.mark_email_verified(uid)
        await self._update_user(
            uid,
            {"emailVerified": True, "emailVerifiedAt": _now_iso(), "emailVerifiedBy": admin_email or "admin"},
        )
        await self._audit.log_action(admin_email, "VERIFY_EMAIL", target_uid=uid)
