"""Tests for the admin audit log."""

import asyncio

from curator.audit import AuditLogger
from curator.audit.audit_log import AUDIT_COLLECTION
from curator.store import MemoryStore, Query


def run(coro):
    return asyncio.run(coro)


class FailingStore(MemoryStore):
    async def add(self, collection, data):
        raise RuntimeError("write refused")


def seeded():
    store = MemoryStore()
    rows = [
        ("a1", "ops@example.com", "ban_user", "u1", "2024-01-01T00:00:00+00:00"),
        ("a2", "ops@example.com", "add_credits", "u2", "2024-01-02T00:00:00+00:00"),
        ("a3", "mod@example.com", "issue_warning", "u1", "2024-01-03T00:00:00+00:00"),
        ("a4", "ops@example.com", "unban_user", "u1", "2024-01-04T00:00:00+00:00"),
    ]
    for doc_id, admin, action, target, ts in rows:
        run(store.set(AUDIT_COLLECTION, doc_id, {
            "adminEmail": admin, "action": action, "targetUid": target, "timestamp": ts, "details": {},
        }))
    return store


def test_log_action_writes_entry():
    store = MemoryStore()
    entry_id = run(AuditLogger(store).log_action(
        "ops@example.com", "ban_user", target_uid="u1", details={"reason": "spam"},
    ))
    doc = run(store.get(AUDIT_COLLECTION, entry_id))
    assert doc.data["action"] == "ban_user"
    assert doc.data["targetUid"] == "u1"
    assert doc.data["details"] == {"reason": "spam"}
    assert "resource" not in doc.data


def test_log_action_failure_is_swallowed():
    assert run(AuditLogger(FailingStore()).log_action("ops@example.com", "ban_user")) is None


def test_missing_admin_email_defaults():
    store = MemoryStore()
    run(AuditLogger(store).log_action("", "set_role"))
    assert run(store.query(Query(AUDIT_COLLECTION)))[0].data["adminEmail"] == "admin"


def test_entries_newest_first_with_cursor():
    audit = AuditLogger(seeded())
    first = run(audit.get_entries(limit=3))
    assert [e.id for e in first.entries] == ["a4", "a3", "a2"]
    assert first.has_more and first.next_cursor == "a2"

    second = run(audit.get_entries(limit=3, cursor=first.next_cursor))
    assert [e.id for e in second.entries] == ["a1"]
    assert not second.has_more and second.next_cursor is None


def test_entries_filtered_by_admin_and_target():
    audit = AuditLogger(seeded())
    page = run(audit.get_entries(admin_email="ops@example.com", target_uid="u1"))
    assert [e.action for e in page.entries] == ["unban_user", "ban_user"]
    assert page.entries[0].to_dict()["targetUid"] == "u1"
