"""Resolve a human-readable owner handle to a stable user id."""

from __future__ import annotations

from typing import Optional

from curator.store import DocumentStore, Query

USERS_COLLECTION = "users"


async def resolve_owner(store: DocumentStore, handle: str) -> Optional[str]:
    """Return the uid for ``handle`` or ``None`` when it names no single user.

    Tried in order: a unique exact ``username``, then a unique exact ``email``.
    Stable ids arrive through ``createdBy`` instead.
    """
    handle = (handle or "").strip()
    if not handle:
        return None

    for field_name in ("username", "email"):
        matches = await store.query(
            Query(USERS_COLLECTION, limit=2, select=[field_name]).where(field_name, "==", handle)
        )
        if len(matches) == 1:
            return matches[0].id
    return None
