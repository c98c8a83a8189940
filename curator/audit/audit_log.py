"""Append-only admin audit log.

Every mutating admin action records who did what to whom in the
``auditLogs`` collection. Writes are fire-and-forget: a failed audit write is
logged and never fails the action that triggered it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from curator.generations.normalizer import jsonable
from curator.store import DocumentStore, Query

logger = logging.getLogger(__name__)

AUDIT_COLLECTION = "auditLogs"
MAX_PAGE_SIZE = 200


@dataclass
class AuditEntry:
    """A single audit log entry."""

    id: str
    admin_email: str
    action: str
    timestamp: str
    target_uid: Optional[str] = None
    resource: Optional[str] = None
    resource_id: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "adminEmail": self.admin_email,
            "action": self.action,
            "timestamp": self.timestamp,
            "details": self.details,
        }
        if self.target_uid:
            out["targetUid"] = self.target_uid
        if self.resource:
            out["resource"] = self.resource
        if self.resource_id:
            out["resourceId"] = self.resource_id
        return out


@dataclass
class AuditPage:
    entries: list[AuditEntry] = field(default_factory=list)
    next_cursor: Optional[str] = None
    has_more: bool = False


def _entry_from_doc(doc_id: str, data: dict[str, Any]) -> AuditEntry:
    details = data.get("details")
    return AuditEntry(
        id=doc_id,
        admin_email=str(data.get("adminEmail") or ""),
        action=str(data.get("action") or ""),
        timestamp=str(jsonable(data.get("timestamp")) or ""),
        target_uid=data.get("targetUid") or None,
        resource=data.get("resource") or None,
        resource_id=data.get("resourceId") or None,
        details=jsonable(details) if isinstance(details, dict) else {},
    )


class AuditLogger:
    """Audit sink and reader over the document store."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def log_action(
        self,
        admin_email: str,
        action: str,
        *,
        target_uid: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> Optional[str]:
        """Record an admin action. Returns the entry id, or ``None`` on failure."""
        entry: dict[str, Any] = {
            "adminEmail": admin_email or "admin",
            "action": action,
            "details": details or {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if target_uid:
            entry["targetUid"] = target_uid
        if resource:
            entry["resource"] = resource
        if resource_id:
            entry["resourceId"] = resource_id
        try:
            return await self._store.add(AUDIT_COLLECTION, entry)
        except Exception:
            logger.exception("Failed to write audit log entry for %s", action)
            return None

    async def get_entries(
        self,
        *,
        admin_email: Optional[str] = None,
        target_uid: Optional[str] = None,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> AuditPage:
        """Return audit entries newest first, one page at a time."""
        limit = max(1, min(int(limit or 50), MAX_PAGE_SIZE))
        query = Query(AUDIT_COLLECTION, limit=limit + 1)
        if admin_email:
            query.where("adminEmail", "==", admin_email)
        if target_uid:
            query.where("targetUid", "==", target_uid)
        query.order("timestamp", descending=True)

        if cursor and "/" not in cursor:
            anchor = await self._store.get(AUDIT_COLLECTION, cursor)
            if anchor is not None:
                query.start_after = anchor

        docs = await self._store.query(query)
        entries = [_entry_from_doc(d.id, d.data) for d in docs[:limit]]
        has_more = len(docs) > limit
        return AuditPage(
            entries=entries,
            next_cursor=entries[-1].id if has_more and entries else None,
            has_more=has_more,
        )
