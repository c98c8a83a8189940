"""Generation listings and lookups used by the HTTP routers and the CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from curator.generations.dedup import dedupe_media
from curator.generations.filters import GenerationFilters
from curator.generations.models import GenerationRecord, ListingPage
from curator.generations.normalizer import normalize_generation
from curator.generations.owners import USERS_COLLECTION, resolve_owner
from curator.generations.paginator import (
    GENERATIONS_COLLECTION,
    CursorPaginator,
    feed_view,
    owner_view,
    scoring_view,
)
from curator.store import DocumentStore, Query

logger = logging.getLogger(__name__)

FILTER_OPTIONS_SAMPLE = 1000
MAX_PAGE_SIZE = 100


def clamp_limit(limit: Optional[int], default: int = 20) -> int:
    if limit is None:
        return default
    return max(1, min(int(limit), MAX_PAGE_SIZE))


@dataclass
class FilterOptions:
    """Distinct values seen in a recent sample, for the filter dropdowns."""

    generation_types: list[str] = field(default_factory=list)
    models: list[str] = field(default_factory=list)
    users: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"generationTypes": self.generation_types, "models": self.models, "users": self.users}


class GenerationService:
    """Read side of the generations collection."""

    def __init__(self, store: DocumentStore, paginator: CursorPaginator, feed_min_score: float = 9.0) -> None:
        self._store = store
        self._paginator = paginator
        self.feed_min_score = feed_min_score

    async def _owner_filter(self, filters: GenerationFilters, owner: Optional[str]) -> bool:
        """Resolve an ``owner`` handle into ``filters``.

        False when it names nobody, or a different user than ``createdBy``.
        """
        if not owner or not owner.strip():
            return True
        uid = await resolve_owner(self._store, owner)
        if uid is None:
            logger.info("Owner handle %r did not resolve to a single user", owner)
            return False
        if filters.owner_uid and filters.owner_uid != uid:
            logger.info("Owner handle %r and createdBy %r name different users", owner, filters.owner_uid)
            return False
        filters.owner_uid = uid
        return True

    async def list_for_scoring(
        self,
        filters: GenerationFilters,
        limit: int = 20,
        cursor: Optional[str] = None,
        owner: Optional[str] = None,
    ) -> ListingPage:
        if not await self._owner_filter(filters, owner):
            return ListingPage()
        return await self._paginator.paginate(scoring_view(), filters, limit, cursor)

    async def list_feed(
        self,
        filters: GenerationFilters,
        limit: int = 20,
        cursor: Optional[str] = None,
        owner: Optional[str] = None,
    ) -> ListingPage:
        if not await self._owner_filter(filters, owner):
            return ListingPage()
        page = await self._paginator.paginate(feed_view(self.feed_min_score), filters, limit, cursor)
        await self._enrich_photos(page.items)
        return page

    async def list_for_user(self, uid: str, limit: int = 20, cursor: Optional[str] = None) -> ListingPage:
        return await self._paginator.paginate(owner_view(uid), GenerationFilters(), limit, cursor)

    async def _enrich_photos(self, records: list[GenerationRecord]) -> None:
        missing = sorted({r.owner.uid for r in records if r.owner.uid and not r.owner.photo_url})
        if not missing:
            return
        try:
            users = await self._store.get_many(USERS_COLLECTION, missing)
        except Exception:
            logger.warning("Failed to enrich owner photos for %d users", len(missing), exc_info=True)
            return
        photos = {
            doc.id: doc.data.get("photoURL")
            for doc in users
            if isinstance(doc.data.get("photoURL"), str) and doc.data.get("photoURL")
        }
        for record in records:
            if not record.owner.photo_url and record.owner.uid in photos:
                record.owner.photo_url = photos[record.owner.uid]

    async def get(self, generation_id: str) -> Optional[GenerationRecord]:
        doc = await self._store.get(GENERATIONS_COLLECTION, generation_id)
        if doc is None:
            return None
        return dedupe_media(normalize_generation(doc.id, doc.data))

    async def filter_options(self) -> FilterOptions:
        docs = await self._store.query(
            Query(
                GENERATIONS_COLLECTION,
                limit=FILTER_OPTIONS_SAMPLE,
                select=["model", "createdBy", "generationType"],
            ).order("createdAt", descending=True)
        )
        types: set[str] = set()
        models: set[str] = set()
        users: dict[str, dict[str, str]] = {}
        for doc in docs:
            record = normalize_generation(doc.id, doc.data)
            if record.generation_type:
                types.add(record.generation_type)
            if record.model:
                models.add(record.model)
            owner = record.owner
            if owner.uid and owner.uid not in users:
                users[owner.uid] = {
                    "uid": owner.uid,
                    "email": owner.email or "",
                    "username": owner.username or owner.email or owner.uid,
                }
        return FilterOptions(
            generation_types=sorted(types),
            models=sorted(models),
            users=sorted(users.values(), key=lambda u: u["username"].lower()),
        )
