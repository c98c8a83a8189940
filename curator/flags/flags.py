"""Global feature flags and per-user overrides.

Flags live in ``featureFlags``: the ``global`` document holds the global
values, and a document per uid holds that user's overrides.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from curator.audit import AuditLogger
from curator.generations.normalizer import jsonable
from curator.store import DocumentStore

FLAGS_COLLECTION = "featureFlags"
GLOBAL_FLAGS_DOC = "global"

DEFAULT_FLAGS: dict[str, bool] = {
    "imageGeneration": True,
    "videoGeneration": True,
    "musicGeneration": True,
    "artStation": True,
    "newUserSignup": True,
    "betaFeatures": False,
    "maintenanceMode": False,
}


def _check(flag: str, enabled: Any) -> None:
    if not flag or not flag.strip():
        raise ValueError("flag name is required")
    if not isinstance(enabled, bool):
        raise ValueError("enabled must be a boolean")


class FeatureFlags:
    def __init__(self, store: DocumentStore, audit: AuditLogger) -> None:
        self._store = store
        self._audit = audit

    async def global_flags(self) -> dict[str, Any]:
        """Stored global values layered over the defaults."""
        doc = await self._store.get(FLAGS_COLLECTION, GLOBAL_FLAGS_DOC)
        flags: dict[str, Any] = dict(DEFAULT_FLAGS)
        if doc is not None:
            flags.update(jsonable(doc.data))
        return flags

    async def set_global(self, flag: str, enabled: bool, admin_email: str) -> None:
        _check(flag, enabled)
        await self._store.set(
            FLAGS_COLLECTION,
            GLOBAL_FLAGS_DOC,
            {flag: enabled, "updatedAt": datetime.now(timezone.utc).isoformat()},
            merge=True,
        )
        await self._audit.log_action(admin_email, "SET_GLOBAL_FLAG", details={"flag": flag, "enabled": enabled})

    async def user_flags(self, uid: str) -> dict[str, Any]:
        doc = await self._store.get(FLAGS_COLLECTION, uid)
        return jsonable(doc.data) if doc is not None else {}

    async def set_user(self, uid: str, flag: str, enabled: bool, admin_email: str) -> None:
        _check(flag, enabled)
        if uid == GLOBAL_FLAGS_DOC:
            raise ValueError("Invalid user ID")
        await self._store.set(
            FLAGS_COLLECTION,
            uid,
            {flag: enabled, "updatedAt": datetime.now(timezone.utc).isoformat()},
            merge=True,
        )
        await self._audit.log_action(
            admin_email, "SET_USER_FLAG", target_uid=uid, details={"flag": flag, "enabled": enabled}
        )
