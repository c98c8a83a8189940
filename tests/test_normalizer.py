"""Tests for generation document normalization."""

from datetime import datetime, timezone

from curator.generations.models import TimestampKind
from curator.generations.normalizer import normalize_generation, parse_iso, resolve_timestamp

WHEN = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def messy_doc():
    return {
        "createdBy": {"uid": "u1", "email": "ada@example.com", "username": ""},
        "generationType": "text-to-image",
        "model": "flux-pro",
        "prompt": "A lighthouse at dusk",
        "status": "completed",
        "aestheticScore": 9,
        "images": [{"url": "https://cdn/x.jpg"}, "not-a-dict", {"url": "https://cdn/y.jpg", "optimized": True}],
        "videos": "broken",
        "createdAt": {"seconds": int(WHEN.timestamp()), "nanoseconds": 0},
        "updatedAt": "2024-05-02T08:00:00Z",
        "scoreUpdatedAt": int(WHEN.timestamp() * 1000),
        "visibility": "public",
        "frameSize": "1024x1024",
    }


def test_timestamp_kinds():
    assert resolve_timestamp(None).kind == TimestampKind.missing
    assert resolve_timestamp(WHEN).kind == TimestampKind.native
    assert resolve_timestamp({"_seconds": 0}).kind == TimestampKind.seconds
    assert resolve_timestamp("2024-05-01").kind == TimestampKind.iso
    assert resolve_timestamp(1714566600000).kind == TimestampKind.epoch_millis
    assert resolve_timestamp("yesterday").kind == TimestampKind.invalid
    assert resolve_timestamp({"nanoseconds": 5}).kind == TimestampKind.invalid
    assert resolve_timestamp(True).kind == TimestampKind.invalid


def test_timestamps_resolve_to_utc():
    assert resolve_timestamp({"seconds": int(WHEN.timestamp())}).value == WHEN
    assert resolve_timestamp(int(WHEN.timestamp() * 1000)).value == WHEN
    assert parse_iso("2024-05-01T14:30:00+02:00") == WHEN
    assert parse_iso("2024-05-01T12:30:00") == WHEN
    assert parse_iso("2024-05-01") == datetime(2024, 5, 1, tzinfo=timezone.utc)
    assert parse_iso("   ") is None


def test_normalize_messy_document():
    record = normalize_generation("g1", messy_doc())
    assert record.owner.uid == "u1"
    assert record.owner.username is None
    assert record.score == 9.0
    assert len(record.images) == 2
    assert record.videos == []
    assert record.audios == []
    assert record.created_at == WHEN
    assert record.score_updated_at == WHEN
    assert record.is_public and not record.is_deleted
    assert record.extra == {"visibility": "public", "frameSize": "1024x1024"}


def test_normalize_never_raises_on_garbage():
    record = normalize_generation("g2", {"createdBy": "nobody", "aestheticScore": "high", "createdAt": [1, 2]})
    assert record.owner.uid == ""
    assert record.score is None
    assert record.created_at is None
    assert normalize_generation("g3", None).id == "g3"


def test_private_visibility_and_deleted_flags():
    assert not normalize_generation("a", {"visibility": "private"}).is_public
    assert not normalize_generation("b", {"isPublic": False}).is_public
    assert normalize_generation("c", {}).is_public
    assert normalize_generation("d", {"isDeleted": True}).is_deleted
    assert not normalize_generation("e", {"isDeleted": "yes"}).is_deleted


def test_json_output_omits_empty_owner_fields():
    out = normalize_generation("g1", messy_doc()).to_dict()
    assert out["createdBy"] == {"uid": "u1", "email": "ada@example.com"}
    assert out["createdAt"] == WHEN.isoformat()
    assert "username" not in out["createdBy"]


def test_normalization_is_idempotent():
    for raw in (messy_doc(), {}, {"visibility": "private", "isDeleted": True}, {"createdBy": {"uid": 7}}):
        once = normalize_generation("g", raw)
        twice = normalize_generation("g", once.to_dict())
        assert twice == once
