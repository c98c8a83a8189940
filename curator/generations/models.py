"""Domain models for generation records, listing pages and score changes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class TimestampKind(str, Enum):
    """How a timestamp was stored before normalization."""

    native = "native"  # datetime / Firestore timestamp object
    seconds = "seconds"  # {"seconds": ..., "nanoseconds": ...} struct
    iso = "iso"  # ISO-8601 string
    epoch_millis = "epoch_millis"
    missing = "missing"
    invalid = "invalid"


@dataclass(frozen=True)
class ResolvedTimestamp:
    kind: TimestampKind
    value: Optional[datetime] = None


class ListingOrder(str, Enum):
    """Store-level ordering of a listing view."""

    created_desc = "created_desc"
    score_desc = "score_desc"  # aestheticScore desc, createdAt desc


@dataclass
class Owner:
    """The ``createdBy`` block of a generation."""

    uid: str = ""
    email: Optional[str] = None
    username: Optional[str] = None
    photo_url: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"uid": self.uid}
        if self.email:
            out["email"] = self.email
        if self.username:
            out["username"] = self.username
        if self.photo_url:
            out["photoURL"] = self.photo_url
        return out


@dataclass
class GenerationRecord:
    """Canonical in-memory form of a ``generations`` document."""

    id: str
    owner: Owner = field(default_factory=Owner)
    generation_type: Optional[str] = None
    model: Optional[str] = None
    prompt: Optional[str] = None
    status: Optional[str] = None
    score: Optional[float] = None
    images: list[dict[str, Any]] = field(default_factory=list)
    videos: list[dict[str, Any]] = field(default_factory=list)
    audios: list[dict[str, Any]] = field(default_factory=list)
    is_public: bool = True
    is_deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    score_updated_at: Optional[datetime] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def has_media(self) -> bool:
        return bool(self.images) or bool(self.videos)

    @property
    def is_scored(self) -> bool:
        return self.score is not None

    def to_dict(self) -> dict[str, Any]:
        """JSON form, using the stored (camelCase) field names."""
        out: dict[str, Any] = dict(self.extra)
        out["id"] = self.id
        out["createdBy"] = self.owner.to_dict()
        for key, value in (
            ("generationType", self.generation_type),
            ("model", self.model),
            ("prompt", self.prompt),
            ("status", self.status),
            ("aestheticScore", self.score),
        ):
            if value is not None:
                out[key] = value
        out["images"] = list(self.images)
        out["videos"] = list(self.videos)
        out["audios"] = list(self.audios)
        out["isPublic"] = self.is_public
        out["isDeleted"] = self.is_deleted
        for key, value in (
            ("createdAt", self.created_at),
            ("updatedAt", self.updated_at),
            ("scoreUpdatedAt", self.score_updated_at),
        ):
            if value is not None:
                out[key] = value.isoformat()
        return out


@dataclass
class ListingPage:
    """One page of a paginated listing."""

    items: list[GenerationRecord] = field(default_factory=list)
    next_cursor: Optional[str] = None
    has_more: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "generations": [g.to_dict() for g in self.items],
            "nextCursor": self.next_cursor,
            "hasMore": self.has_more,
        }


@dataclass
class ScoreChange:
    """Outcome of a single score write or removal."""

    generation_id: str
    old_score: Optional[float]
    new_score: Optional[float]
    history_mirrored: bool = False


@dataclass
class BulkItemResult:
    id: str
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "success": self.success}
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass
class BulkResult:
    results: list[BulkItemResult] = field(default_factory=list)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "total": len(self.results),
            "successful": self.successful,
            "failed": self.failed,
        }
