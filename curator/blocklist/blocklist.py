"""IP address and device blocklists."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional

from curator.audit import AuditLogger
from curator.generations.normalizer import jsonable
from curator.store import DocumentStore, Query

BLOCKED_IPS_COLLECTION = "blockedIPs"
BLOCKED_DEVICES_COLLECTION = "blockedDevices"

_IP_UNSAFE = re.compile(r"[./:]")


class AlreadyBlocked(Exception):
    """The IP or device already has a blocklist entry."""


def ip_doc_id(ip: str) -> str:
    """Document id for an IP: ``.``, ``/`` and ``:`` become ``_``."""
    return _IP_UNSAFE.sub("_", ip)


class Blocklist:
    """One blocklist collection (``ip`` or ``device``)."""

    def __init__(
        self,
        store: DocumentStore,
        audit: AuditLogger,
        *,
        kind: str,
        label: str,
        collection: str,
        key_field: str,
        doc_id=lambda value: value,
    ) -> None:
        self._store = store
        self._audit = audit
        self.kind = kind
        self.label = label
        self._collection = collection
        self._key_field = key_field
        self._doc_id = doc_id

    async def list_blocked(self) -> list[dict[str, Any]]:
        docs = await self._store.query(Query(self._collection).order("blockedAt", descending=True))
        return [{"id": d.id, **jsonable(d.data)} for d in docs]

    async def is_blocked(self, value: str) -> bool:
        return await self._store.get(self._collection, self._doc_id(value)) is not None

    async def block(self, value: Optional[str], reason: Optional[str], admin_email: str, target_uid: Optional[str] = None) -> str:
        if not value or not value.strip():
            raise ValueError(f"{self._key_field} is required")
        if not reason or not reason.strip():
            raise ValueError("reason is required")
        value = value.strip()
        doc_id = self._doc_id(value)
        if await self._store.get(self._collection, doc_id) is not None:
            raise AlreadyBlocked(f"{self.label} is already blocked")

        await self._store.set(
            self._collection,
            doc_id,
            {
                self._key_field: value,
                "reason": reason,
                "targetUid": target_uid or None,
                "blockedAt": datetime.now(timezone.utc).isoformat(),
                "blockedBy": admin_email or "admin",
            },
        )
        await self._audit.log_action(
            admin_email,
            f"BLOCK_{self.kind.upper()}",
            target_uid=target_uid or None,
            details={self._key_field: value, "reason": reason},
        )
        return doc_id

    async def unblock(self, value: str, admin_email: str) -> None:
        await self._store.delete(self._collection, self._doc_id(value))
        await self._audit.log_action(admin_email, f"UNBLOCK_{self.kind.upper()}", details={self._key_field: value})


def ip_blocklist(store: DocumentStore, audit: AuditLogger) -> Blocklist:
    return Blocklist(store, audit, kind="ip", label="IP", collection=BLOCKED_IPS_COLLECTION, key_field="ip", doc_id=ip_doc_id)


def device_blocklist(store: DocumentStore, audit: AuditLogger) -> Blocklist:
    return Blocklist(store, audit, kind="device", label="Device", collection=BLOCKED_DEVICES_COLLECTION, key_field="deviceId")
