"""Tests for aesthetic score writes and their mirrors."""

import asyncio
import math

import pytest

from curator.audit import AuditLogger
from curator.audit.audit_log import AUDIT_COLLECTION
from curator.generations.scoring import (
    MIRROR_QUEUE_COLLECTION,
    ScoreBand,
    ScoreMutator,
    history_collection,
    mirror_score,
)
from curator.store import MemoryStore, Query

BAND = ScoreBand(9, 10)


def run(coro):
    return asyncio.run(coro)


class BrokenHistoryStore(MemoryStore):
    async def update(self, collection, doc_id, data):
        if collection.startswith("generationHistory/"):
            raise RuntimeError("history unavailable")
        await super().update(collection, doc_id, data)


def seeded(store=None):
    store = store or MemoryStore()
    gen = {
        "createdBy": {"uid": "u1"},
        "images": [{"url": "https://cdn/a.jpg"}, {"url": "https://cdn/b.jpg", "aestheticScore": 9.2}],
        "aestheticScore": 9.0,
    }
    run(store.set("generations", "g1", gen))
    run(store.set(history_collection("u1"), "g1", {"images": [{"url": "https://cdn/a.jpg"}]}))
    run(store.set("generations", "g2", {"createdBy": {"uid": "u2"}, "videos": [{"url": "https://cdn/v.mp4"}]}))
    return store


def mutator(store):
    return ScoreMutator(store, AuditLogger(store), BAND)


def audit_actions(store):
    return sorted(d.data["action"] for d in run(store.query(Query(AUDIT_COLLECTION))))


@pytest.mark.parametrize("value", [9, 9.5, "10", 10.0])
def test_band_accepts_bounds(value):
    assert 9 <= BAND.validate(value) <= 10


@pytest.mark.parametrize(
    "value, message",
    [
        (None, "required"),
        (True, "required"),
        ("abc", "number"),
        ([9], "number"),
        (8.99, "between 9 and 10"),
        (11, "between 9 and 10"),
        (math.nan, "between 9 and 10"),
    ],
)
def test_band_rejects(value, message):
    with pytest.raises(ValueError, match=message):
        BAND.validate(value)


def test_mirror_score_fills_first_and_unscored_only():
    items = [{"aestheticScore": 9.1}, {"aestheticScore": 9.3}, {}, "junk"]
    assert mirror_score(items, 9.8) == [{"aestheticScore": 9.8}, {"aestheticScore": 9.3}, {"aestheticScore": 9.8}, "junk"]


def test_set_score_updates_mirrors_and_audits():
    store = seeded()
    change = run(mutator(store).set_score("g1", 9.7, "ops@example.com"))

    assert change.old_score == 9.0 and change.new_score == 9.7
    assert change.history_mirrored

    data = run(store.get("generations", "g1")).data
    assert data["aestheticScore"] == 9.7
    assert data["scoreUpdatedBy"] == "ops@example.com"
    assert [i["aestheticScore"] for i in data["images"]] == [9.7, 9.2]

    history = run(store.get(history_collection("u1"), "g1")).data
    assert history["aestheticScore"] == 9.7
    assert history["images"][0]["aestheticScore"] == 9.7

    queued = run(store.query(Query(MIRROR_QUEUE_COLLECTION)))
    assert len(queued) == 1
    assert queued[0].data["historyId"] == "g1" and queued[0].data["status"] == "pending"

    entries = run(store.query(Query(AUDIT_COLLECTION)))
    assert len(entries) == 1
    entry = entries[0].data
    assert entry["action"] == "update_aesthetic_score"
    assert entry["targetUid"] == "u1" and entry["resourceId"] == "g1"
    assert entry["details"] == {"newScore": 9.7, "oldScore": 9.0}


def test_set_score_without_history_doc_skips_queue():
    store = seeded()
    change = run(mutator(store).set_score("g2", 10, "ops@example.com"))
    assert not change.history_mirrored
    assert run(store.get("generations", "g2")).data["videos"][0]["aestheticScore"] == 10.0
    assert run(store.query(Query(MIRROR_QUEUE_COLLECTION))) == []


def test_history_failure_does_not_fail_the_write():
    store = seeded(BrokenHistoryStore())
    change = run(mutator(store).set_score("g1", 9.5, "ops@example.com"))
    assert change.new_score == 9.5 and not change.history_mirrored
    assert run(store.get("generations", "g1")).data["aestheticScore"] == 9.5
    assert audit_actions(store) == ["update_aesthetic_score"]


def test_invalid_score_writes_nothing():
    store = seeded()
    with pytest.raises(ValueError):
        run(mutator(store).set_score("g1", 8, "ops@example.com"))
    assert run(store.get("generations", "g1")).data["aestheticScore"] == 9.0
    assert audit_actions(store) == []


def test_set_score_missing_generation():
    assert run(mutator(MemoryStore()).set_score("nope", 9.5, "ops@example.com")) is None


def test_remove_score_clears_everything():
    store = seeded()
    change = run(mutator(store).remove_score("g1", "ops@example.com"))
    assert change.old_score == 9.0 and change.new_score is None

    data = run(store.get("generations", "g1")).data
    assert "aestheticScore" not in data
    assert data["removedFromArtStationBy"] == "ops@example.com"
    assert all("aestheticScore" not in i for i in data["images"])
    assert "aestheticScore" not in run(store.get(history_collection("u1"), "g1")).data
    assert audit_actions(store) == ["remove_from_artstation"]


def test_bulk_set_score_partial_failure():
    store = seeded()
    result = run(mutator(store).bulk_set_score(["g1", "ghost", "g2"], 9.5, "ops@example.com"))
    assert result.to_dict() == {
        "results": [
            {"id": "g1", "success": True},
            {"id": "ghost", "success": False, "error": "Not found"},
            {"id": "g2", "success": True},
        ],
        "total": 3,
        "successful": 2,
        "failed": 1,
    }
    entries = run(store.query(Query(AUDIT_COLLECTION)))
    assert {e.data["action"] for e in entries} == {"bulk_update_aesthetic_score"}
    assert all(e.data["details"]["bulkOperation"] for e in entries)


def test_bulk_set_score_validates_before_writing():
    store = seeded()
    with pytest.raises(ValueError):
        run(mutator(store).bulk_set_score(["g1", "g2"], 12, "ops@example.com"))
    assert audit_actions(store) == []


def test_bulk_remove():
    store = seeded()
    result = run(mutator(store).bulk_remove(["g1", "ghost"], "ops@example.com"))
    assert (result.successful, result.failed) == (1, 1)
    assert "aestheticScore" not in run(store.get("generations", "g1")).data
