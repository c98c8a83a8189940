"""Aesthetic score writes for the curated feed.

The ``generations`` document is the source of truth. Its score is mirrored
onto the media attachments, into the owner's ``generationHistory`` copy, and
a sync task is queued for the public mirror. Those mirrors are best effort:
their failures are logged and do not fail the write. No transactions are
used; concurrent scorers race and the last write wins.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

from curator.audit import AuditLogger
from curator.generations.models import BulkItemResult, BulkResult, ScoreChange
from curator.generations.normalizer import parse_score
from curator.generations.paginator import GENERATIONS_COLLECTION
from curator.store import DELETE_FIELD, SERVER_TIMESTAMP, DocumentStore

logger = logging.getLogger(__name__)

HISTORY_COLLECTION = "generationHistory"
MIRROR_QUEUE_COLLECTION = "mirrorQueue"


def history_collection(uid: str) -> str:
    return f"{HISTORY_COLLECTION}/{uid}/items"


@dataclass(frozen=True)
class ScoreBand:
    """Inclusive range of scores an endpoint accepts."""

    low: float
    high: float

    def validate(self, value: Any) -> float:
        """Return ``value`` as a float, or raise ``ValueError`` when out of band."""
        if value is None or isinstance(value, bool):
            raise ValueError("Score is required")
        try:
            score = float(value)
        except (TypeError, ValueError):
            raise ValueError("Score must be a number") from None
        if math.isnan(score) or score < self.low or score > self.high:
            raise ValueError(f"Score must be between {self.low:g} and {self.high:g}")
        return score


def mirror_score(items: list[Any], score: float) -> list[Any]:
    """Copy ``score`` onto the first attachment and any attachment lacking one."""
    out = []
    for index, item in enumerate(items):
        if isinstance(item, dict) and (index == 0 or item.get("aestheticScore") is None):
            item = {**item, "aestheticScore": score}
        out.append(item)
    return out


def strip_score(items: list[Any]) -> list[Any]:
    return [
        {k: v for k, v in item.items() if k != "aestheticScore"} if isinstance(item, dict) else item
        for item in items
    ]


def _media_updates(data: dict[str, Any], transform) -> dict[str, Any]:
    """Attachment-list updates: images when present, otherwise videos."""
    images = data.get("images") if isinstance(data.get("images"), list) else []
    videos = data.get("videos") if isinstance(data.get("videos"), list) else []
    if images:
        return {"images": transform(images)}
    if videos:
        return {"videos": transform(videos)}
    return {}


class ScoreMutator:
    """Set, remove and bulk-apply aesthetic scores."""

    def __init__(self, store: DocumentStore, audit: AuditLogger, band: ScoreBand) -> None:
        self._store = store
        self._audit = audit
        self.band = band

    # ------------------------------------------------------------------
    # Mirrors
    # ------------------------------------------------------------------

    async def _mirror_history(self, uid: str, generation_id: str, updates: dict[str, Any], media_transform) -> bool:
        try:
            collection = history_collection(uid)
            doc = await self._store.get(collection, generation_id)
            if doc is None:
                return False
            payload = dict(updates)
            payload.update(_media_updates(doc.data, media_transform))
            payload["updatedAt"] = SERVER_TIMESTAMP
            await self._store.update(collection, generation_id, payload)
            return True
        except Exception:
            logger.warning("Failed to mirror score into history for %s (uid=%s)", generation_id, uid, exc_info=True)
            return False

    async def _queue_mirror_sync(self, uid: str, generation_id: str, updates: dict[str, Any]) -> None:
        try:
            await self._store.add(
                MIRROR_QUEUE_COLLECTION,
                {
                    "op": "update",
                    "uid": uid,
                    "historyId": generation_id,
                    "updates": updates,
                    "createdAt": SERVER_TIMESTAMP,
                    "attempts": 0,
                    "status": "pending",
                },
            )
        except Exception:
            logger.warning("Failed to queue mirror update for %s", generation_id, exc_info=True)

    # ------------------------------------------------------------------
    # Single-record operations
    # ------------------------------------------------------------------

    async def set_score(
        self,
        generation_id: str,
        score: Any,
        admin_email: str,
        *,
        action: str = "update_aesthetic_score",
        audit_details: Optional[dict[str, Any]] = None,
    ) -> Optional[ScoreChange]:
        """Validate and write a score. Returns ``None`` if the generation is missing."""
        value = self.band.validate(score)
        doc = await self._store.get(GENERATIONS_COLLECTION, generation_id)
        if doc is None:
            return None

        data = doc.data
        old_score = parse_score(data.get("aestheticScore"))
        media = _media_updates(data, lambda items: mirror_score(items, value))
        update: dict[str, Any] = {
            "aestheticScore": value,
            "updatedAt": SERVER_TIMESTAMP,
            "scoreUpdatedBy": admin_email or "admin",
            "scoreUpdatedAt": SERVER_TIMESTAMP,
            **media,
        }
        await self._store.update(GENERATIONS_COLLECTION, generation_id, update)

        uid = (data.get("createdBy") or {}).get("uid") if isinstance(data.get("createdBy"), dict) else None
        mirrored = False
        if uid:
            mirrored = await self._mirror_history(
                uid, generation_id, {"aestheticScore": value}, lambda items: mirror_score(items, value)
            )
            if mirrored:
                await self._queue_mirror_sync(uid, generation_id, {"aestheticScore": value, **media})

        details = {"newScore": value, "oldScore": old_score}
        details.update(audit_details or {})
        await self._audit.log_action(
            admin_email,
            action,
            target_uid=uid or None,
            resource="generation",
            resource_id=generation_id,
            details=details,
        )
        return ScoreChange(generation_id, old_score, value, history_mirrored=mirrored)

    async def remove_score(
        self,
        generation_id: str,
        admin_email: str,
        *,
        audit_details: Optional[dict[str, Any]] = None,
    ) -> Optional[ScoreChange]:
        """Take a generation out of the curated feed by deleting its score."""
        doc = await self._store.get(GENERATIONS_COLLECTION, generation_id)
        if doc is None:
            return None

        data = doc.data
        old_score = parse_score(data.get("aestheticScore"))
        media = _media_updates(data, strip_score)
        update: dict[str, Any] = {
            "aestheticScore": DELETE_FIELD,
            "scoreUpdatedAt": DELETE_FIELD,
            "scoreUpdatedBy": DELETE_FIELD,
            "updatedAt": SERVER_TIMESTAMP,
            "removedFromArtStationAt": SERVER_TIMESTAMP,
            "removedFromArtStationBy": admin_email or "admin",
            **media,
        }
        await self._store.update(GENERATIONS_COLLECTION, generation_id, update)

        uid = (data.get("createdBy") or {}).get("uid") if isinstance(data.get("createdBy"), dict) else None
        mirrored = False
        if uid:
            mirrored = await self._mirror_history(uid, generation_id, {"aestheticScore": DELETE_FIELD}, strip_score)

        details = {"oldScore": old_score}
        details.update(audit_details or {})
        await self._audit.log_action(
            admin_email,
            "remove_from_artstation",
            target_uid=uid or None,
            resource="generation",
            resource_id=generation_id,
            details=details,
        )
        return ScoreChange(generation_id, old_score, None, history_mirrored=mirrored)

    # ------------------------------------------------------------------
    # Bulk operations (sequential, partial-failure tolerant)
    # ------------------------------------------------------------------

    async def bulk_set_score(self, generation_ids: list[str], score: Any, admin_email: str) -> BulkResult:
        value = self.band.validate(score)
        result = BulkResult()
        for generation_id in generation_ids:
            try:
                change = await self.set_score(
                    generation_id,
                    value,
                    admin_email,
                    action="bulk_update_aesthetic_score",
                    audit_details={"bulkOperation": True},
                )
            except Exception as exc:
                logger.error("Error updating score for %s: %s", generation_id, exc)
                result.results.append(BulkItemResult(generation_id, False, str(exc) or "Update failed"))
                continue
            if change is None:
                result.results.append(BulkItemResult(generation_id, False, "Not found"))
            else:
                result.results.append(BulkItemResult(generation_id, True))
        return result

    async def bulk_remove(self, generation_ids: list[str], admin_email: str) -> BulkResult:
        result = BulkResult()
        for generation_id in generation_ids:
            try:
                change = await self.remove_score(generation_id, admin_email, audit_details={"bulkOperation": True})
            except Exception as exc:
                logger.error("Error removing %s from the feed: %s", generation_id, exc)
                result.results.append(BulkItemResult(generation_id, False, str(exc) or "Remove failed"))
                continue
            if change is None:
                result.results.append(BulkItemResult(generation_id, False, "Not found"))
            else:
                result.results.append(BulkItemResult(generation_id, True))
        return result
