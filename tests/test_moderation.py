"""Tests for account moderation, credits, warnings and user views."""

import asyncio

import pytest

from curator.audit import AuditLogger
from curator.audit.audit_log import AUDIT_COLLECTION
from curator.blocklist import ip_blocklist
from curator.moderation import (
    CreditLedger,
    MemoryIdentityProvider,
    Role,
    UserDirectory,
    UserModerator,
    UserNotFound,
    WarningService,
)
from curator.moderation.credits import parse_amount
from curator.store import MemoryStore, Query

ADMIN = "ops@example.com"


def run(coro):
    return asyncio.run(coro)


def seeded():
    store = MemoryStore()
    run(store.set("users", "u1", {
        "email": "ada@example.com",
        "username": "ada",
        "role": "creator",
        "creditBalance": 10,
        "loginHistory": [
            {"ip": "10.0.0.1", "deviceId": "d1", "browser": "Firefox", "timestamp": "2024-05-03T00:00:00Z"},
            {"ip": "10.0.0.2", "deviceId": "d2", "browser": "Safari", "timestamp": "2024-05-02T00:00:00Z"},
            {"ip": "10.0.0.1", "deviceId": "d1", "browser": "Firefox", "timestamp": "2024-05-01T00:00:00Z"},
        ],
    }))
    run(store.set("users", "u2", {"email": "bob@example.com", "deviceInfo": {"browser": "Chrome"}}))
    run(store.set("generations", "g1", {"createdBy": {"uid": "u1"}}))
    run(store.set("generations", "g2", {"createdBy": {"uid": "u1"}}))
    return store


def actions(store):
    return sorted(d.data["action"] for d in run(store.query(Query(AUDIT_COLLECTION))))


def directory(store):
    return UserDirectory(store, ip_blocklist(store, AuditLogger(store)))


def moderator(store, identity=None):
    return UserModerator(store, identity or MemoryIdentityProvider(), AuditLogger(store))


def test_role_levels_are_ordered():
    levels = [r.level for r in Role]
    assert levels == sorted(levels)
    assert Role.admin.level > Role.moderator.level


def test_suspend_revokes_sessions_and_unsuspend_clears():
    store = seeded()
    identity = MemoryIdentityProvider()
    mod = moderator(store, identity)

    run(mod.suspend("u1", "spam", ADMIN, suspended_until="2024-06-01"))
    data = run(store.get("users", "u1")).data
    assert data["isSuspended"] is True
    assert data["suspendReason"] == "spam" and data["suspendedUntil"] == "2024-06-01"
    assert identity.revoked == ["u1"]

    run(mod.unsuspend("u1", ADMIN))
    data = run(store.get("users", "u1")).data
    assert data["isSuspended"] is False
    assert "suspendReason" not in data and "suspendedUntil" not in data
    assert actions(store) == ["SUSPEND_USER", "UNSUSPEND_USER"]


def test_suspend_requires_reason_and_existing_user():
    mod = moderator(seeded())
    with pytest.raises(ValueError, match="Reason is required"):
        run(mod.suspend("u1", "  ", ADMIN))
    with pytest.raises(UserNotFound):
        run(mod.suspend("ghost", "spam", ADMIN))


def test_ban_disables_account():
    store = seeded()
    identity = MemoryIdentityProvider()
    mod = moderator(store, identity)
    run(mod.ban("u1", "fraud", ADMIN))
    assert identity.disabled == {"u1": True}
    assert run(store.get("users", "u1")).data["banReason"] == "fraud"
    run(mod.unban("u1", ADMIN))
    assert identity.disabled == {"u1": False}
    assert "banReason" not in run(store.get("users", "u1")).data


def test_force_logout_unknown_to_identity_provider():
    mod = moderator(seeded(), MemoryIdentityProvider(known_uids={"u1"}))
    run(mod.force_logout("u1", ADMIN))
    with pytest.raises(UserNotFound):
        run(mod.force_logout("u9", ADMIN))


def test_set_role_returns_previous():
    store = seeded()
    mod = moderator(store)
    assert run(mod.set_role("u1", "moderator", ADMIN)) == "creator"
    assert run(mod.set_role("u2", "premium", ADMIN)) == "user"
    assert run(store.get("users", "u1")).data["role"] == "moderator"
    with pytest.raises(ValueError, match="Invalid role"):
        run(mod.set_role("u1", "overlord", ADMIN))


def test_verify_email():
    store = seeded()
    identity = MemoryIdentityProvider()
    run(moderator(store, identity).verify_email("u2", ADMIN))
    assert identity.verified == {"u2"}
    assert run(store.get("users", "u2")).data["emailVerified"] is True


@pytest.mark.parametrize("value, expected", [(5, 5), (-3, -3), (12.7, 12), ("12.7", 12), (" -4 credits", -4)])
def test_parse_amount(value, expected):
    assert parse_amount(value) == expected


@pytest.mark.parametrize("value", [None, "", True, "abc", float("nan")])
def test_parse_amount_rejects(value):
    with pytest.raises(ValueError):
        parse_amount(value)


def test_credit_adjustments_floor_at_zero():
    store = seeded()
    ledger = CreditLedger(store, AuditLogger(store))

    added = run(ledger.adjust("u1", 5, "bonus", ADMIN))
    assert added.to_dict() == {"previousBalance": 10, "newBalance": 15, "change": 5}

    deducted = run(ledger.adjust("u1", "-40", "refund abuse", ADMIN))
    assert deducted.new_balance == 0 and deducted.change == -40

    assert run(store.get("users", "u1")).data["creditBalance"] == 0
    history = run(ledger.history("u1"))
    assert len(history) == 2
    assert {h["amount"] for h in history} == {5, -40}
    assert actions(store) == ["ADD_CREDITS", "DEDUCT_CREDITS"]


def test_credit_adjust_unknown_user():
    store = seeded()
    with pytest.raises(UserNotFound):
        run(CreditLedger(store, AuditLogger(store)).adjust("ghost", 5, "bonus", ADMIN))


def test_warnings_keep_count_in_sync():
    store = seeded()
    warnings = WarningService(store, AuditLogger(store))
    first = run(warnings.issue("u1", "rude", ADMIN))
    run(warnings.issue("u1", "rude again", ADMIN))
    assert run(store.get("users", "u1")).data["warningCount"] == 2
    assert len(run(warnings.list_for_user("u1"))) == 2

    run(warnings.delete("u1", first, ADMIN))
    assert run(store.get("users", "u1")).data["warningCount"] == 1
    assert [w["reason"] for w in run(warnings.list_for_user("u1"))] == ["rude again"]

    with pytest.raises(UserNotFound):
        run(warnings.issue("ghost", "rude", ADMIN))


def test_deleting_warning_never_goes_negative():
    store = seeded()
    run(WarningService(store, AuditLogger(store)).delete("u2", "missing", ADMIN))
    assert "warningCount" not in run(store.get("users", "u2")).data


def test_user_profile_counts_generations():
    users = directory(seeded())
    user = run(users.get_user("u1"))
    assert user.total_generations == 2
    assert user.role == Role.creator
    assert user.to_dict()["id"] == "u1"
    with pytest.raises(UserNotFound):
        run(users.get_user("ghost"))


def test_user_ips_first_occurrence_and_block_state():
    store = seeded()
    run(ip_blocklist(store, AuditLogger(store)).block("10.0.0.2", "abuse", ADMIN))
    ips = run(directory(store).user_ips("u1"))
    assert ips == [
        {"ip": "10.0.0.1", "lastSeen": "2024-05-03T00:00:00Z", "deviceId": "d1", "isBlocked": False},
        {"ip": "10.0.0.2", "lastSeen": "2024-05-02T00:00:00Z", "deviceId": "d2", "isBlocked": True},
    ]


def test_user_devices_with_device_info_fallback():
    users = directory(seeded())
    devices, history = run(users.user_devices("u1"))
    assert [d["deviceId"] for d in devices] == ["d1", "d2"]
    assert len(history) == 3

    devices, history = run(users.user_devices("u2"))
    assert devices == [{"deviceId": "unknown", "browser": "Chrome"}]
    assert history == []


def listing_store():
    store = MemoryStore()
    users = {
        "a": {"username": "zed", "email": "zed@example.com", "createdAt": "2024-01-01T10:00:00Z",
              "lastLoginAt": "2024-06-01T00:00:00Z"},
        "b": {"username": "amy", "email": "amy@studio.io", "displayName": "Amy Pond",
              "createdAt": "2024-03-05T23:30:00Z", "isActive": True},
        "c": {"username": "", "email": "carol@example.com", "createdAt": "2024-03-05T01:00:00Z",
              "lastLoginAt": "2024-07-01T00:00:00Z"},
        "d": {"username": "dan", "email": "dan@example.com"},
    }
    for uid, data in users.items():
        run(store.set("users", uid, data))
    return store


def uids(page):
    return [u.uid for u in page.users]


def test_list_users_sort_orders():
    users = directory(listing_store())
    assert uids(run(users.list_users())) == ["c", "a", "b", "d"]
    assert uids(run(users.list_users(filter_type="newer"))) == ["b", "c", "a", "d"]
    assert uids(run(users.list_users(filter_type="older"))) == ["a", "c", "b", "d"]
    assert uids(run(users.list_users(filter_type="alphabetical"))) == ["b", "c", "d", "a"]


def test_list_users_search_and_filters():
    users = directory(listing_store())
    page = run(users.list_users(search="  POND "))
    assert uids(page) == ["b"] and page.total == 1
    assert uids(run(users.list_users(search="example.com", filter_type="older"))) == ["a", "c", "d"]
    assert uids(run(users.list_users(email="DAN@example.com"))) == ["d"]
    assert uids(run(users.list_users(is_active=True))) == ["b"]

    page = run(users.list_users(filter_type="date", filter_date="2024-03-05"))
    assert uids(page) == ["b", "c"]
    with pytest.raises(ValueError, match="YYYY-MM-DD"):
        run(users.list_users(filter_type="date", filter_date="March 5"))
    with pytest.raises(ValueError, match="filterType"):
        run(users.list_users(filter_type="loudest"))


def test_list_users_cursor_pages():
    users = directory(listing_store())
    first = run(users.list_users(limit=3, filter_type="older"))
    assert uids(first) == ["a", "c", "b"]
    assert first.has_more and first.next_cursor == "b" and first.total == 4

    second = run(users.list_users(limit=3, cursor=first.next_cursor, filter_type="older"))
    assert uids(second) == ["d"]
    assert not second.has_more and second.next_cursor is None
    assert second.to_dict()["displayed"] == 1

    assert uids(run(users.list_users(limit=2, cursor="ghost", filter_type="older"))) == ["a", "c"]


def test_count_users():
    assert run(directory(listing_store()).count_users()) == 4
    assert run(directory(MemoryStore()).count_users()) == 0
