"""User warnings with a denormalized ``warningCount`` on the user document."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from curator.audit import AuditLogger
from curator.generations.normalizer import jsonable
from curator.moderation.models import UserNotFound
from curator.moderation.moderator import USERS_COLLECTION
from curator.store import DocumentStore, Increment, Query

WARNINGS_COLLECTION = "userWarnings"


class WarningService:
    def __init__(self, store: DocumentStore, audit: AuditLogger) -> None:
        self._store = store
        self._audit = audit

    async def issue(self, uid: str, reason: Optional[str], admin_email: str) -> str:
        """Record a warning and return its id."""
        if not reason or not reason.strip():
            raise ValueError("Reason is required")
        if await self._store.get(USERS_COLLECTION, uid) is None:
            raise UserNotFound(uid)

        now = datetime.now(timezone.utc).isoformat()
        warning_id = await self._store.add(
            WARNINGS_COLLECTION,
            {"uid": uid, "reason": reason, "issuedAt": now, "issuedBy": admin_email or "admin"},
        )
        await self._store.update(USERS_COLLECTION, uid, {"warningCount": Increment(1), "lastWarningAt": now})
        await self._audit.log_action(
            admin_email, "ISSUE_WARNING", target_uid=uid, details={"reason": reason, "warningId": warning_id}
        )
        return warning_id

    async def list_for_user(self, uid: str) -> list[dict[str, Any]]:
        docs = await self._store.query(
            Query(WARNINGS_COLLECTION).where("uid", "==", uid).order("issuedAt", descending=True)
        )
        return [{"id": d.id, **jsonable(d.data)} for d in docs]

    async def delete(self, uid: str, warning_id: str, admin_email: str) -> None:
        await self._store.delete(WARNINGS_COLLECTION, warning_id)
        user = await self._store.get(USERS_COLLECTION, uid)
        count = user.data.get("warningCount") if user is not None else 0
        if isinstance(count, (int, float)) and not isinstance(count, bool) and count > 0:
            await self._store.update(USERS_COLLECTION, uid, {"warningCount": Increment(-1)})
        await self._audit.log_action(admin_email, "DELETE_WARNING", target_uid=uid, details={"warningId": warning_id})
