"""Direct emails to users and in-app announcements."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from curator.audit import AuditLogger
from curator.broadcast.mailer import ResendMailer, text_to_html
from curator.generations.normalizer import jsonable
from curator.moderation.models import UserNotFound
from curator.moderation.moderator import USERS_COLLECTION
from curator.store import DocumentNotFound, DocumentStore, Query

EMAIL_LOGS_COLLECTION = "emailLogs"
ANNOUNCEMENTS_COLLECTION = "announcements"
ANNOUNCEMENT_LIST_LIMIT = 50
TARGET_GROUPS = ("all", "premium", "free", "creator")


class AnnouncementNotFound(LookupError):
    pass


@dataclass
class EmailOutcome:
    to: str
    subject: str
    sent: bool

    def to_dict(self) -> dict[str, Any]:
        return {"to": self.to, "subject": self.subject, "sent": self.sent}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Broadcaster:
    def __init__(self, store: DocumentStore, audit: AuditLogger, mailer: ResendMailer) -> None:
        self._store = store
        self._audit = audit
        self._mailer = mailer

    @property
    def email_enabled(self) -> bool:
        return self._mailer.configured

    async def send_email(self, uid: str, subject: str, body: str, admin_email: str) -> EmailOutcome:
        """Email one user. The attempt is logged to ``emailLogs`` whether or not it was sent."""
        for name, value in (("uid", uid), ("subject", subject), ("body", body)):
            if not value or not str(value).strip():
                raise ValueError(f"{name} is required")

        doc = await self._store.get(USERS_COLLECTION, uid)
        if doc is None:
            raise UserNotFound(uid)
        email = doc.data.get("email")
        if not email:
            raise ValueError("User has no email address")

        sent = await self._mailer.send(email, subject, body, text_to_html(body))
        await self._store.add(
            EMAIL_LOGS_COLLECTION,
            {
                "uid": uid,
                "to": email,
                "subject": subject,
                "body": body,
                "sentAt": _now_iso(),
                "sentBy": admin_email or "admin",
                "sent": sent,
            },
        )
        await self._audit.log_action(
            admin_email, "SEND_EMAIL", target_uid=uid, details={"to": email, "subject": subject, "sent": sent}
        )
        return EmailOutcome(to=email, subject=subject, sent=sent)

    async def create_announcement(
        self,
        title: str,
        body: str,
        admin_email: str,
        target_group: str = "all",
        expires_at: Optional[str] = None,
    ) -> str:
        if not title or not title.strip():
            raise ValueError("title is required")
        if not body or not body.strip():
            raise ValueError("body is required")
        if target_group not in TARGET_GROUPS:
            raise ValueError(f"Invalid targetGroup. Must be one of: {', '.join(TARGET_GROUPS)}")

        announcement_id = await self._store.add(
            ANNOUNCEMENTS_COLLECTION,
            {
                "title": title,
                "body": body,
                "targetGroup": target_group,
                "expiresAt": expires_at or None,
                "active": True,
                "createdAt": _now_iso(),
                "createdBy": admin_email or "admin",
            },
        )
        await self._audit.log_action(
            admin_email,
            "CREATE_ANNOUNCEMENT",
            details={"title": title, "targetGroup": target_group, "id": announcement_id},
        )
        return announcement_id

    async def announcements(self, limit: int = ANNOUNCEMENT_LIST_LIMIT) -> list[dict[str, Any]]:
        docs = await self._store.query(
            Query(ANNOUNCEMENTS_COLLECTION, limit=limit).order("createdAt", descending=True)
        )
        return [{"id": d.id, **jsonable(d.data)} for d in docs]

    async def deactivate(self, announcement_id: str, admin_email: str) -> None:
        try:
            await self._store.update(ANNOUNCEMENTS_COLLECTION, announcement_id, {"active": False})
        except DocumentNotFound:
            raise AnnouncementNotFound(announcement_id) from None
        await self._audit.log_action(admin_email, "DEACTIVATE_ANNOUNCEMENT", details={"id": announcement_id})
