"""Keyset pagination over filtered generation listings.

Only equality pre-filters and the ordering go to the store (so no composite
indexes are needed beyond the ordering itself); every other filter runs in
memory. Because in-memory filters can discard most of a batch, the paginator
keeps fetching batches until it holds more matches than the page needs, the
store runs dry, or the batch cap is reached.

Cursors are document ids. The next page starts strictly after the cursor
document in store order, so the store order is the only order used: results
are never re-sorted in memory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from curator.generations.dedup import dedupe_media
from curator.generations.filters import GenerationFilters
from curator.generations.models import GenerationRecord, ListingOrder, ListingPage
from curator.generations.normalizer import normalize_generation
from curator.store import Document, DocumentStore, FieldFilter, Query

logger = logging.getLogger(__name__)

GENERATIONS_COLLECTION = "generations"
DEFAULT_BATCH_SIZE = 200
DEFAULT_MAX_BATCHES = 100


@dataclass
class ListingView:
    """Store-side shape and eligibility rules of one listing."""

    name: str
    order: ListingOrder = ListingOrder.created_desc
    prefilters: list[FieldFilter] = field(default_factory=list)
    require_public: bool = False
    require_media: bool = False
    require_type: bool = False
    min_score: Optional[float] = None

    @property
    def order_fields(self) -> list[str]:
        if self.order == ListingOrder.score_desc:
            return ["aestheticScore", "createdAt"]
        return ["createdAt"]

    def build_query(self, collection: str, batch_size: int, start_after: Optional[Document]) -> Query:
        query = Query(collection, filters=list(self.prefilters), limit=batch_size, start_after=start_after)
        if self.min_score is not None:
            query.where("aestheticScore", ">=", self.min_score)
        for name in self.order_fields:
            query.order(name, descending=True)
        return query

    def eligible(self, record: GenerationRecord) -> bool:
        if record.is_deleted:
            return False
        if self.require_public and not record.is_public:
            return False
        if self.require_media and not record.has_media:
            return False
        if self.require_type and not record.generation_type:
            return False
        if self.min_score is not None and (record.score is None or record.score < self.min_score):
            return False
        return True


def scoring_view() -> ListingView:
    """Public, non-deleted generations with media, newest first."""
    return ListingView(
        name="scoring",
        prefilters=[FieldFilter("isPublic", "==", True), FieldFilter("isDeleted", "==", False)],
        require_public=True,
        require_media=True,
    )


def feed_view(min_score: float) -> ListingView:
    """The curated feed: scored at or above ``min_score``, best first."""
    return ListingView(
        name="feed",
        order=ListingOrder.score_desc,
        prefilters=[FieldFilter("isPublic", "==", True), FieldFilter("isDeleted", "==", False)],
        require_public=True,
        require_media=True,
        require_type=True,
        min_score=min_score,
    )


def owner_view(uid: str) -> ListingView:
    """Every non-deleted generation of one user, newest first."""
    return ListingView(name="owner", prefilters=[FieldFilter("createdBy.uid", "==", uid)])


class CursorPaginator:
    """Fetch → normalize → dedupe → filter loop producing one page."""

    def __init__(
        self,
        store: DocumentStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_batches: int = DEFAULT_MAX_BATCHES,
        collection: str = GENERATIONS_COLLECTION,
    ) -> None:
        self._store = store
        self._batch_size = max(1, batch_size)
        self._max_batches = max(1, max_batches)
        self._collection = collection

    async def _resolve_cursor(self, view: ListingView, cursor: Optional[str]) -> Optional[Document]:
        """Cursor id → anchor document; anything unusable restarts the stream."""
        if not cursor or "/" in cursor:
            return None
        doc = await self._store.get(self._collection, cursor)
        if doc is None:
            logger.info("Cursor %s not found for %s listing; starting from the top", cursor, view.name)
            return None
        if any(doc.data.get(name) is None for name in view.order_fields):
            # e.g. a feed cursor whose score was removed since the last page
            return None
        return doc

    async def paginate(
        self,
        view: ListingView,
        filters: GenerationFilters,
        limit: int,
        cursor: Optional[str] = None,
    ) -> ListingPage:
        if limit < 1:
            raise ValueError("limit must be at least 1")

        anchor = await self._resolve_cursor(view, cursor)
        matched: list[GenerationRecord] = []
        seen: set[str] = set()
        batches = 0
        exhausted = False

        while True:
            docs = await self._store.query(view.build_query(self._collection, self._batch_size, anchor))
            batches += 1
            for doc in docs:
                if doc.id in seen:
                    continue
                seen.add(doc.id)
                record = dedupe_media(normalize_generation(doc.id, doc.data))
                if view.eligible(record) and filters.matches(record):
                    matched.append(record)
            if docs:
                anchor = docs[-1]

            if len(matched) > limit:
                break
            if len(docs) < self._batch_size:
                exhausted = True
                break
            if batches >= self._max_batches:
                logger.warning(
                    "%s listing hit the %d-batch cap with %d matches; resuming from %s next page",
                    view.name, self._max_batches, len(matched), anchor.id if anchor else None,
                )
                break

        page = matched[:limit]
        if len(matched) > limit:
            return ListingPage(items=page, next_cursor=page[-1].id, has_more=True)
        if not exhausted and anchor is not None:
            # Batch cap reached: resume the scan after the last document seen
            return ListingPage(items=page, next_cursor=anchor.id, has_more=True)
        return ListingPage(items=page, next_cursor=None, has_more=False)
