"""Normalization of raw ``generations`` documents.

The collection's schema drifted over time: timestamps were written as native
Firestore timestamps, as ``{seconds, nanoseconds}`` structs, as ISO strings
and occasionally as epoch milliseconds; media lists are sometimes missing or
not lists at all. ``normalize_generation`` absorbs all of that and never
raises.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

from curator.generations.models import GenerationRecord, Owner, ResolvedTimestamp, TimestampKind

_KNOWN_FIELDS = frozenset(
    {
        "id",
        "createdBy",
        "generationType",
        "model",
        "prompt",
        "status",
        "aestheticScore",
        "images",
        "videos",
        "audios",
        "isPublic",
        "isDeleted",
        "createdAt",
        "updatedAt",
        "scoreUpdatedAt",
    }
)


def _aware(dt: datetime) -> datetime:
    # Drop datetime subclasses (DatetimeWithNanoseconds) and pin to UTC
    plain = datetime(
        dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second, dt.microsecond,
        tzinfo=dt.tzinfo or timezone.utc,
    )
    return plain.astimezone(timezone.utc)


def _from_seconds(seconds: Any, nanos: Any = 0) -> Optional[datetime]:
    try:
        total = float(seconds) + float(nanos or 0) / 1_000_000_000
        return datetime.fromtimestamp(total, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def parse_iso(text: str) -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime; naive values are taken as UTC."""
    raw = text.strip()
    if not raw:
        return None
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        return _aware(datetime.fromisoformat(raw))
    except ValueError:
        pass
    try:
        d = date.fromisoformat(raw)
    except ValueError:
        return None
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def resolve_timestamp(value: Any) -> ResolvedTimestamp:
    """Classify a stored timestamp and convert it to an aware UTC datetime."""
    if value is None:
        return ResolvedTimestamp(TimestampKind.missing)
    if isinstance(value, datetime):
        return ResolvedTimestamp(TimestampKind.native, _aware(value))
    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None:
            return ResolvedTimestamp(TimestampKind.invalid)
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0))
        dt = _from_seconds(seconds, nanos)
        return ResolvedTimestamp(TimestampKind.seconds if dt else TimestampKind.invalid, dt)
    if isinstance(value, str):
        dt = parse_iso(value)
        return ResolvedTimestamp(TimestampKind.iso if dt else TimestampKind.invalid, dt)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        dt = _from_seconds(value / 1000)
        return ResolvedTimestamp(TimestampKind.epoch_millis if dt else TimestampKind.invalid, dt)
    # protobuf-style Timestamp objects
    seconds = getattr(value, "seconds", None)
    if seconds is not None:
        dt = _from_seconds(seconds, getattr(value, "nanos", getattr(value, "nanoseconds", 0)))
        return ResolvedTimestamp(TimestampKind.native if dt else TimestampKind.invalid, dt)
    return ResolvedTimestamp(TimestampKind.invalid)


def to_datetime(value: Any) -> Optional[datetime]:
    return resolve_timestamp(value).value


def jsonable(value: Any) -> Any:
    """Recursively convert stored values into JSON-safe equivalents."""
    if isinstance(value, dict):
        return {str(k): jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    resolved = resolve_timestamp(value)
    if resolved.value is not None:
        return resolved.value.isoformat()
    return str(value)


def _media_list(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [jsonable(item) for item in value if isinstance(item, dict)]


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def parse_score(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def normalize_owner(value: Any) -> Owner:
    if not isinstance(value, dict):
        return Owner()
    uid = value.get("uid")
    return Owner(
        uid=str(uid) if uid is not None else "",
        email=_opt_str(value.get("email")) or None,
        username=_opt_str(value.get("username")) or None,
        photo_url=_opt_str(value.get("photoURL")) or None,
    )


def normalize_generation(doc_id: str, data: Optional[dict[str, Any]]) -> GenerationRecord:
    """Build a ``GenerationRecord`` from a raw stored document."""
    data = data if isinstance(data, dict) else {}
    visibility = data.get("visibility")
    return GenerationRecord(
        id=str(doc_id),
        owner=normalize_owner(data.get("createdBy")),
        generation_type=_opt_str(data.get("generationType")),
        model=_opt_str(data.get("model")),
        prompt=_opt_str(data.get("prompt")),
        status=_opt_str(data.get("status")),
        score=parse_score(data.get("aestheticScore")),
        images=_media_list(data.get("images")),
        videos=_media_list(data.get("videos")),
        audios=_media_list(data.get("audios")),
        is_public=data.get("isPublic") is not False and visibility != "private",
        is_deleted=data.get("isDeleted") is True,
        created_at=to_datetime(data.get("createdAt")),
        updated_at=to_datetime(data.get("updatedAt")),
        score_updated_at=to_datetime(data.get("scoreUpdatedAt")),
        extra={k: jsonable(v) for k, v in data.items() if k not in _KNOWN_FIELDS},
    )
