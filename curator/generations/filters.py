"""Optional AND-combined predicates over normalized generation records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from curator.generations.models import GenerationRecord
from curator.generations.normalizer import parse_iso

# Curated-feed ``mode`` values and the generation types each one admits
MODE_GENERATION_TYPES: dict[str, tuple[str, ...]] = {
    "image": ("text-to-image", "image-generation", "image", "text-to-character"),
    "video": ("text-to-video", "image-to-video", "video-generation", "video"),
    "music": ("text-to-music", "music-generation", "music"),
    "branding": ("logo", "logo-generation", "branding", "branding-kit", "sticker-generation"),
}


def generation_types_for_mode(mode: Optional[str]) -> list[str]:
    """Allow-list for a feed mode; ``all`` or unknown modes impose none."""
    if not mode:
        return []
    return list(MODE_GENERATION_TYPES.get(mode.strip().lower(), ()))


@dataclass
class GenerationFilters:
    """Filter set for a listing request. Unset fields do not filter."""

    generation_types: list[str] = field(default_factory=list)
    model: Optional[str] = None
    owner_uid: Optional[str] = None
    status: Optional[str] = None
    date_start: Optional[datetime] = None
    date_end: Optional[datetime] = None
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    unscored_only: bool = False
    search: Optional[str] = None

    def __post_init__(self) -> None:
        self.generation_types = [t.strip().lower() for t in self.generation_types if t and t.strip()]
        if self.search is not None:
            self.search = self.search.strip().lower() or None

    @classmethod
    def from_params(
        cls,
        *,
        generation_types: Optional[Iterable[str]] = None,
        mode: Optional[str] = None,
        model: Optional[str] = None,
        owner_uid: Optional[str] = None,
        status: Optional[str] = None,
        date_start: Optional[str] = None,
        date_end: Optional[str] = None,
        min_score: Optional[float] = None,
        max_score: Optional[float] = None,
        unscored_only: bool = False,
        search: Optional[str] = None,
    ) -> "GenerationFilters":
        """Build filters from raw request parameters.

        Explicit generation types take precedence over a feed ``mode``.
        Unparsable date bounds raise ``ValueError``.
        """
        types = [t for t in (generation_types or []) if t]
        if not types:
            types = generation_types_for_mode(mode)
        return cls(
            generation_types=types,
            model=model or None,
            owner_uid=owner_uid or None,
            status=status or None,
            date_start=_parse_bound("dateStart", date_start),
            date_end=_parse_bound("dateEnd", date_end),
            min_score=min_score,
            max_score=max_score,
            unscored_only=unscored_only,
            search=search,
        )

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def _type_ok(self, record: GenerationRecord) -> bool:
        if not self.generation_types:
            return True
        return (record.generation_type or "").lower() in self.generation_types

    def _model_ok(self, record: GenerationRecord) -> bool:
        return self.model is None or (record.model or "").lower() == self.model.lower()

    def _owner_ok(self, record: GenerationRecord) -> bool:
        return self.owner_uid is None or record.owner.uid == self.owner_uid

    def _status_ok(self, record: GenerationRecord) -> bool:
        return self.status is None or (record.status or "").lower() == self.status.lower()

    def _date_ok(self, record: GenerationRecord) -> bool:
        if self.date_start is None and self.date_end is None:
            return True
        created = record.created_at
        if created is None:
            return False
        if self.date_start is not None and created < self.date_start:
            return False
        if self.date_end is not None and created > self.date_end:
            return False
        return True

    def _score_ok(self, record: GenerationRecord) -> bool:
        if self.min_score is None and self.max_score is None:
            return True
        if record.score is None:
            return False
        if self.min_score is not None and record.score < self.min_score:
            return False
        if self.max_score is not None and record.score > self.max_score:
            return False
        return True

    def _unscored_ok(self, record: GenerationRecord) -> bool:
        return not self.unscored_only or record.score is None

    def _search_ok(self, record: GenerationRecord) -> bool:
        return self.search is None or self.search in (record.prompt or "").lower()

    def matches(self, record: GenerationRecord) -> bool:
        return (
            self._type_ok(record)
            and self._model_ok(record)
            and self._owner_ok(record)
            and self._status_ok(record)
            and self._date_ok(record)
            and self._score_ok(record)
            and self._unscored_ok(record)
            and self._search_ok(record)
        )

    def apply(self, records: Iterable[GenerationRecord]) -> list[GenerationRecord]:
        return [r for r in records if self.matches(r)]


def _parse_bound(name: str, value: Optional[str]) -> Optional[datetime]:
    if value is None or not value.strip():
        return None
    parsed = parse_iso(value)
    if parsed is None:
        raise ValueError(f"{name} must be an ISO-8601 date")
    return parsed
