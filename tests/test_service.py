"""Tests for generation listings, owner resolution and filter options."""

import asyncio
from datetime import datetime, timedelta, timezone

from curator.generations.filters import GenerationFilters
from curator.generations.owners import resolve_owner
from curator.generations.paginator import CursorPaginator
from curator.generations.service import GenerationService, clamp_limit
from curator.store import MemoryStore

BASE = datetime(2024, 3, 1, tzinfo=timezone.utc)


def run(coro):
    return asyncio.run(coro)


def build():
    store = MemoryStore()
    users = {
        "u1": {"username": "ada", "email": "ada@example.com", "photoURL": "https://cdn/ada.png"},
        "u2": {"username": "grace", "email": "grace@example.com"},
        "u3": {"username": "twin", "email": "t1@example.com"},
        "u4": {"username": "twin", "email": "t2@example.com"},
    }
    for uid, data in users.items():
        run(store.set("users", uid, data))
    rows = [
        ("g1", "u1", "ada@example.com", "text-to-image", "flux", 9.5),
        ("g2", "u2", "grace@example.com", "text-to-video", "kling", None),
        ("g3", "u1", "ada@example.com", "text-to-image", "sdxl", 10.0),
        ("g4", "u3", "", "logo", "flux", 9.0),
    ]
    for i, (doc_id, uid, email, gen_type, model, score) in enumerate(rows):
        data = {
            "createdBy": {"uid": uid, "email": email},
            "generationType": gen_type,
            "model": model,
            "prompt": f"prompt {doc_id}",
            "images": [{"url": f"https://cdn/{doc_id}.jpg"}],
            "isPublic": True,
            "isDeleted": False,
            "createdAt": BASE + timedelta(hours=i),
        }
        if score is not None:
            data["aestheticScore"] = score
        run(store.set("generations", doc_id, data))
    return store, GenerationService(store, CursorPaginator(store), feed_min_score=9.0)


def ids(page):
    return [r.id for r in page.items]


def test_clamp_limit():
    assert clamp_limit(None) == 20
    assert clamp_limit(0) == 1
    assert clamp_limit(500) == 100
    assert clamp_limit(35) == 35


def test_resolve_owner_by_username_then_email():
    store, _ = build()
    assert run(resolve_owner(store, " grace ")) == "u2"
    assert run(resolve_owner(store, "ada@example.com")) == "u1"
    assert run(resolve_owner(store, "twin")) is None
    assert run(resolve_owner(store, "nobody")) is None
    # document ids are not handles
    assert run(resolve_owner(store, "u2")) is None


def test_resolve_owner_prefers_username_over_a_matching_uid():
    store = MemoryStore()
    run(store.set("users", "bob", {"username": "robert", "email": "robert@example.com"}))
    run(store.set("users", "u2", {"username": "bob", "email": "bob@example.com"}))
    assert run(resolve_owner(store, "bob")) == "u2"
    assert run(resolve_owner(store, "robert")) == "bob"


def test_unknown_owner_returns_empty_page():
    _, service = build()
    page = run(service.list_for_scoring(GenerationFilters(), owner="nobody"))
    assert page.items == [] and not page.has_more and page.next_cursor is None


def test_owner_handle_narrows_listing():
    _, service = build()
    assert ids(run(service.list_for_scoring(GenerationFilters(), owner="ada"))) == ["g3", "g1"]
    assert ids(run(service.list_for_scoring(GenerationFilters(), owner="t1@example.com"))) == ["g4"]


def test_owner_handle_and_created_by_are_combined():
    _, service = build()
    page = run(service.list_for_scoring(GenerationFilters(owner_uid="u2"), owner="ada"))
    assert page.items == [] and not page.has_more
    assert ids(run(service.list_feed(GenerationFilters(owner_uid="u2"), owner="ada"))) == []

    assert ids(run(service.list_for_scoring(GenerationFilters(owner_uid="u1"), owner="ada"))) == ["g3", "g1"]


def test_scoring_listing_unscored_only():
    _, service = build()
    page = run(service.list_for_scoring(GenerationFilters(unscored_only=True)))
    assert ids(page) == ["g2"]


def test_feed_is_score_ordered_and_enriched_with_photos():
    _, service = build()
    page = run(service.list_feed(GenerationFilters()))
    assert ids(page) == ["g3", "g1", "g4"]
    assert page.items[0].owner.photo_url == "https://cdn/ada.png"
    assert page.items[2].owner.photo_url is None


def test_feed_mode_filter():
    _, service = build()
    page = run(service.list_feed(GenerationFilters.from_params(mode="branding")))
    assert ids(page) == ["g4"]


def test_list_for_user():
    _, service = build()
    assert ids(run(service.list_for_user("u1", limit=1))) == ["g3"]


def test_get_missing_and_present():
    _, service = build()
    assert run(service.get("nope")) is None
    assert run(service.get("g2")).generation_type == "text-to-video"


def test_filter_options():
    _, service = build()
    options = run(service.filter_options()).to_dict()
    assert options["generationTypes"] == ["logo", "text-to-image", "text-to-video"]
    assert options["models"] == ["flux", "kling", "sdxl"]
    # owners come from the generation documents themselves
    assert options["users"] == [
        {"uid": "u1", "email": "ada@example.com", "username": "ada@example.com"},
        {"uid": "u2", "email": "grace@example.com", "username": "grace@example.com"},
        {"uid": "u3", "email": "", "username": "u3"},
    ]
