"""Read-only user views: listing, profile, known IPs and known devices."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Optional

from curator.blocklist import Blocklist
from curator.generations.normalizer import to_datetime
from curator.generations.paginator import GENERATIONS_COLLECTION
from curator.moderation.models import UserNotFound, UserRecord, normalize_user
from curator.moderation.moderator import USERS_COLLECTION
from curator.store import DocumentStore, Query

logger = logging.getLogger(__name__)

# The listing filters and sorts in memory over at most this many users.
USER_SCAN_LIMIT = 10000
USER_FILTER_TYPES = ("all", "newer", "older", "alphabetical", "date")


@dataclass
class UserListPage:
    users: list[UserRecord] = field(default_factory=list)
    next_cursor: Optional[str] = None
    has_more: bool = False
    total: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "users": [u.to_dict() for u in self.users],
            "nextCursor": self.next_cursor,
            "hasMore": self.has_more,
            "total": self.total,
            "displayed": len(self.users),
        }


def parse_filter_date(value: str) -> date:
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValueError("Invalid date format. Expected YYYY-MM-DD") from None


def _timestamp(user: UserRecord, name: str) -> Optional[float]:
    dt = to_datetime(user.extra.get(name))
    return dt.timestamp() if dt else None


def _by_time(name: str, descending: bool) -> Callable[[UserRecord], tuple]:
    """Sort key on a timestamp field; users without one go last."""

    def key(user: UserRecord) -> tuple:
        ts = _timestamp(user, name)
        if ts is None:
            return (1, 0.0, user.uid)
        return (0, -ts if descending else ts, user.uid)

    return key


def _alphabetical(user: UserRecord) -> tuple:
    return ((user.username or user.display_name or user.email).lower(), user.uid)


_SORT_KEYS: dict[str, Callable[[UserRecord], tuple]] = {
    "all": _by_time("lastLoginAt", descending=True),
    "newer": _by_time("createdAt", descending=True),
    "older": _by_time("createdAt", descending=False),
    "alphabetical": _alphabetical,
    "date": _by_time("createdAt", descending=True),
}


def _created_on(user: UserRecord, day: date) -> bool:
    created = to_datetime(user.extra.get("createdAt"))
    return created is not None and created.date() == day


def _matches_search(user: UserRecord, needle: str) -> bool:
    return any(needle in value.lower() for value in (user.email, user.username, user.display_name))


class UserDirectory:
    def __init__(self, store: DocumentStore, ip_blocklist: Blocklist) -> None:
        self._store = store
        self._ip_blocklist = ip_blocklist

    async def list_users(
        self,
        limit: int = 50,
        cursor: Optional[str] = None,
        search: Optional[str] = None,
        filter_type: str = "all",
        filter_date: Optional[str] = None,
        email: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> UserListPage:
        """One page of users, filtered and sorted by ``filter_type``.

        ``search`` is a case-insensitive substring of email, username or
        display name. ``filter_type="date"`` keeps users created on
        ``filter_date`` (a UTC ``YYYY-MM-DD`` day). ``cursor`` is the uid of
        the last user of the previous page; an unknown cursor starts over.
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")
        filter_type = (filter_type or "all").strip().lower()
        if filter_type not in USER_FILTER_TYPES:
            raise ValueError(f"Invalid filterType. Must be one of: {', '.join(USER_FILTER_TYPES)}")
        day = parse_filter_date(filter_date) if filter_type == "date" and filter_date else None

        docs = await self._store.query(Query(USERS_COLLECTION, limit=USER_SCAN_LIMIT))
        if len(docs) >= USER_SCAN_LIMIT:
            logger.warning("User listing scanned the %d-user cap; older users are not listed", USER_SCAN_LIMIT)
        users = [normalize_user(doc.id, doc.data) for doc in docs]

        if day is not None:
            users = [u for u in users if _created_on(u, day)]
        needle = (search or "").strip().lower()
        if needle:
            users = [u for u in users if _matches_search(u, needle)]
        if email:
            users = [u for u in users if u.email.lower() == email.strip().lower()]
        if is_active is not None:
            users = [u for u in users if u.extra.get("isActive") is is_active]

        users.sort(key=_SORT_KEYS[filter_type])

        start = 0
        if cursor:
            positions = {u.uid: i for i, u in enumerate(users)}
            if cursor in positions:
                start = positions[cursor] + 1
            else:
                logger.info("User cursor %s not in the current listing; starting from the top", cursor)
        page = users[start : start + limit]
        has_more = start + limit < len(users)
        return UserListPage(
            users=page,
            next_cursor=page[-1].uid if has_more and page else None,
            has_more=has_more,
            total=len(users),
        )

    async def count_users(self) -> int:
        docs = await self._store.query(Query(USERS_COLLECTION, select=[]))
        return len(docs)

    async def get_user(self, uid: str) -> UserRecord:
        doc = await self._store.get(USERS_COLLECTION, uid)
        if doc is None:
            raise UserNotFound(uid)
        user = normalize_user(doc.id, doc.data)
        try:
            generations = await self._store.query(
                Query(GENERATIONS_COLLECTION, select=[]).where("createdBy.uid", "==", uid)
            )
            user.total_generations = len(generations)
        except Exception:
            logger.warning("Could not count generations for %s", uid, exc_info=True)
            user.total_generations = 0
        return user

    async def user_ips(self, uid: str) -> list[dict[str, Any]]:
        """Distinct IPs from the login history, first occurrence wins."""
        user = await self.get_profile(uid)
        ips: dict[str, dict[str, Any]] = {}
        for entry in user.login_history:
            ip = entry.get("ip")
            if ip and ip not in ips:
                ips[ip] = {
                    "ip": ip,
                    "lastSeen": entry.get("timestamp"),
                    "deviceId": entry.get("deviceId") or None,
                }
        for entry in ips.values():
            entry["isBlocked"] = await self._ip_blocklist.is_blocked(entry["ip"])
        return list(ips.values())

    async def user_devices(self, uid: str) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        """Distinct devices from the login history, plus the history itself."""
        user = await self.get_profile(uid)
        devices: dict[str, dict[str, Any]] = {}
        for entry in user.login_history:
            device_id = entry.get("deviceId")
            if device_id and device_id not in devices:
                devices[device_id] = {
                    "deviceId": device_id,
                    "browser": entry.get("browser"),
                    "os": entry.get("os"),
                    "device": entry.get("device"),
                    "lastSeen": entry.get("timestamp"),
                    "ip": entry.get("ip"),
                }
        found = list(devices.values())
        device_info = user.extra.get("deviceInfo")
        if not found and isinstance(device_info, dict):
            found.append({"deviceId": user.extra.get("deviceId") or "unknown", **device_info})
        return found, user.login_history

    async def get_profile(self, uid: str) -> UserRecord:
        """The user document alone, without derived counts."""
        doc = await self._store.get(USERS_COLLECTION, uid)
        if doc is None:
            raise UserNotFound(uid)
        return normalize_user(doc.id, doc.data)
