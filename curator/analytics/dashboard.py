"""Dashboard numbers for the admin panel: totals, growth, timelines and rankings.

Every figure is computed by scanning the projected fields of ``users`` or
``generations`` in memory. ``createdAt`` is stored as native timestamps, ISO
strings or epoch values depending on the writer, so date windows are applied
after normalization rather than as store range filters. Days are UTC days.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, Optional

from curator.generations.normalizer import normalize_owner, parse_iso, to_datetime
from curator.generations.owners import USERS_COLLECTION
from curator.generations.paginator import GENERATIONS_COLLECTION
from curator.store import Document, DocumentStore, Query

logger = logging.getLogger(__name__)

GENERATION_CATEGORIES: dict[str, tuple[str, ...]] = {
    "image": (
        "text-to-image",
        "image-to-image",
        "image-edit",
        "reimagine",
        "image-outpaint",
        "image-upscale",
        "image-to-svg",
        "logo",
        "logo-generation",
        "sticker-generation",
        "mockup-generation",
        "product-generation",
        "ad-generation",
        "edit-image",
        "text-to-character",
    ),
    "video": (
        "text-to-video",
        "image-to-video",
        "video-to-video",
        "video-upscale",
        "video-remove-bg",
        "edit-video",
    ),
    "music": (
        "text-to-music",
        "text-to-audio",
        "music-generation",
        "audio",
        "music",
        "sfx",
        "text-to-dialogue",
        "text-to-speech",
    ),
}

_CATEGORY_BY_TYPE = {t: name for name, types in GENERATION_CATEGORIES.items() for t in types}

RANGE_WINDOWS: dict[str, Optional[timedelta]] = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "all": None,
}

FAILED_STATUSES = {"failed", "error", "cancelled", "canceled"}
MAX_TIMELINE_DAYS = 366

_GENERATION_FIELDS = ["generationType", "model", "status", "createdAt", "createdBy", "uid"]
_USER_FIELDS = ["username", "displayName", "email", "photoURL", "createdAt", "lastLoginAt", "totalGenerations"]


def category_of(generation_type: Any) -> Optional[str]:
    """``image``, ``video``, ``music`` or ``None`` for uncategorized types."""
    if not isinstance(generation_type, str):
        return None
    return _CATEGORY_BY_TYPE.get(generation_type.strip().lower())


def _owner_uid(data: dict[str, Any]) -> str:
    return normalize_owner(data.get("createdBy")).uid or str(data.get("uid") or "")


def _created(doc: Document) -> Optional[datetime]:
    return to_datetime(doc.data.get("createdAt"))


def _created_since(doc: Document, start: datetime) -> bool:
    created = _created(doc)
    return created is not None and created >= start


def _breakdown(docs: list[Document]) -> dict[str, int]:
    counts = Counter(category_of(d.data.get("generationType")) for d in docs)
    return {name: counts[name] for name in GENERATION_CATEGORIES}


def _parse_day(value: str, name: str) -> date:
    parsed = parse_iso(value)
    if parsed is None:
        raise ValueError(f"Invalid {name}. Expected YYYY-MM-DD or an ISO timestamp")
    return parsed.date()


def _day_bounds(value: Optional[str], name: str, end_of_day: bool) -> Optional[datetime]:
    """Parse a window bound; a bare date covers that whole day."""
    if not value:
        return None
    parsed = parse_iso(value)
    if parsed is None:
        raise ValueError(f"Invalid {name}. Expected YYYY-MM-DD or an ISO timestamp")
    if end_of_day and len(value.strip()) == 10:
        return datetime.combine(parsed.date(), time.max, tzinfo=timezone.utc)
    return parsed


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnalyticsService:
    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = _utc_now) -> None:
        self._store = store
        self._clock = clock

    async def _generations(self) -> list[Document]:
        return await self._store.query(Query(GENERATIONS_COLLECTION, select=list(_GENERATION_FIELDS)))

    async def _users(self) -> list[Document]:
        return await self._store.query(Query(USERS_COLLECTION, select=list(_USER_FIELDS)))

    def _window_start(self, range_name: Optional[str]) -> tuple[str, Optional[datetime]]:
        """Normalized range name and its start; unknown names mean all time."""
        name = (range_name or "all").strip().lower()
        if name not in RANGE_WINDOWS:
            logger.info("Unknown analytics range %r; using all time", range_name)
            name = "all"
        window = RANGE_WINDOWS[name]
        return name, (self._clock() - window if window else None)

    async def stats(self) -> dict[str, Any]:
        """Headline totals: users, categorized generations and today's sign-ups."""
        users = await self._users()
        today = self._clock().date()
        created = [_created(d) for d in users]
        new_today = sum(1 for c in created if c is not None and c.date() == today)
        breakdown = _breakdown(await self._generations())
        return {
            "totalUsers": len(users),
            "totalGenerations": sum(breakdown.values()),
            "newUsersToday": new_today,
            "generationBreakdown": breakdown,
        }

    async def timeline(
        self,
        days: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Sign-ups and generations per UTC day.

        With both ``start_date`` and ``end_date`` the buckets span those days;
        otherwise they run from ``days`` (default 7) days ago through today.
        """
        if start_date and end_date:
            first = _parse_day(start_date, "startDate")
            last = _parse_day(end_date, "endDate")
        else:
            span = days if days and days > 0 else 7
            last = self._clock().date()
            first = last - timedelta(days=span)
        if last < first:
            raise ValueError("endDate must not be before startDate")
        if (last - first).days + 1 > MAX_TIMELINE_DAYS:
            raise ValueError(f"Timeline is limited to {MAX_TIMELINE_DAYS} days")

        users = Counter()
        for doc in await self._users():
            created = _created(doc)
            if created is not None:
                users[created.date()] += 1
        generations = Counter()
        for doc in await self._generations():
            created = _created(doc)
            if created is not None:
                generations[created.date()] += 1

        buckets = []
        day = first
        while day <= last:
            buckets.append({"date": day.isoformat(), "users": users[day], "generations": generations[day]})
            day += timedelta(days=1)
        return buckets

    async def top_users(self, limit: int = 10) -> list[dict[str, Any]]:
        """Most recently active users by ``lastLoginAt``."""
        query = Query(USERS_COLLECTION, limit=max(1, limit)).order("lastLoginAt", descending=True)
        docs = await self._store.query(query)
        out = []
        for doc in docs:
            data = doc.data
            last_login = to_datetime(data.get("lastLoginAt"))
            out.append(
                {
                    "uid": doc.id,
                    "username": data.get("username"),
                    "displayName": data.get("displayName"),
                    "email": data.get("email"),
                    "photoURL": data.get("photoURL"),
                    "lastLoginAt": last_login.isoformat() if last_login else None,
                    "totalGenerations": data.get("totalGenerations") or 0,
                }
            )
        return out

    async def top_generators(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        """Users ranked by generations created, optionally inside a date window."""
        start = _day_bounds(start_date, "startDate", end_of_day=False)
        end = _day_bounds(end_date, "endDate", end_of_day=True)
        counts: Counter = Counter()
        for doc in await self._generations():
            uid = _owner_uid(doc.data)
            if not uid:
                continue
            if start or end:
                created = _created(doc)
                if created is None or (start and created < start) or (end and created > end):
                    continue
            counts[uid] += 1

        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[: max(1, limit)]
        if not ranked:
            return []
        profiles = {d.id: d.data for d in await self._store.get_many(USERS_COLLECTION, [uid for uid, _ in ranked])}
        out = []
        for uid, count in ranked:
            profile = profiles.get(uid, {})
            out.append(
                {
                    "uid": uid,
                    "username": profile.get("username") or profile.get("displayName") or "Unknown",
                    "email": profile.get("email"),
                    "totalGenerations": count,
                    "photoURL": profile.get("photoURL"),
                }
            )
        return out

    async def user_stats(self, uid: str) -> dict[str, int]:
        docs = await self._store.query(
            Query(GENERATIONS_COLLECTION, select=["generationType"]).where("createdBy.uid", "==", uid)
        )
        breakdown = _breakdown(docs)
        return {
            "total": sum(breakdown.values()),
            "images": breakdown["image"],
            "videos": breakdown["video"],
            "music": breakdown["music"],
        }

    async def breakdown(self, range_name: Optional[str] = "all") -> dict[str, Any]:
        name, start = self._window_start(range_name)
        docs = await self._generations()
        if start is not None:
            docs = [d for d in docs if _created_since(d, start)]
        counts = _breakdown(docs)
        return {"range": name, "breakdown": counts, "total": sum(counts.values())}

    async def data_audit(self) -> dict[str, Any]:
        """Cross-check the category breakdown against raw and per-user totals."""
        generations = await self._generations()
        counts = _breakdown(generations)
        breakdown_sum = sum(counts.values())
        user_sum = 0
        for doc in await self._users():
            value = doc.data.get("totalGenerations")
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                user_sum += int(value)
        return {
            "totalGenerations": len(generations),
            "breakdownSum": breakdown_sum,
            "userGenerationsSum": user_sum,
            "isConsistent": len(generations) == breakdown_sum,
            "discrepancy": len(generations) - breakdown_sum,
            "details": counts,
        }

    async def user_growth(self) -> dict[str, int]:
        now = self._clock()
        today = now.date()
        week_ago = now - timedelta(days=7)
        month_ago = now - timedelta(days=30)
        growth = {"newToday": 0, "newThisWeek": 0, "newThisMonth": 0, "activeLastWeek": 0}
        users = await self._users()
        for doc in users:
            created = _created(doc)
            if created is not None:
                if created.date() == today:
                    growth["newToday"] += 1
                if created >= week_ago:
                    growth["newThisWeek"] += 1
                if created >= month_ago:
                    growth["newThisMonth"] += 1
            last_login = to_datetime(doc.data.get("lastLoginAt"))
            if last_login is not None and last_login >= week_ago:
                growth["activeLastWeek"] += 1
        return {**growth, "totalUsers": len(users)}

    async def model_stats(self, range_name: Optional[str] = "all") -> dict[str, Any]:
        """Per-model totals and success rate, busiest model first."""
        name, start = self._window_start(range_name)
        totals: Counter = Counter()
        failed: Counter = Counter()
        for doc in await self._generations():
            if start is not None and not _created_since(doc, start):
                continue
            model = str(doc.data.get("model") or "unknown")
            totals[model] += 1
            if str(doc.data.get("status") or "").lower() in FAILED_STATUSES:
                failed[model] += 1

        models = [
            {
                "model": model,
                "total": total,
                "successful": total - failed[model],
                "failed": failed[model],
                "successRate": (total - failed[model]) / total * 100,
            }
            for model, total in sorted(totals.items(), key=lambda item: (-item[1], item[0]))
        ]
        return {"range": name, "models": models}
