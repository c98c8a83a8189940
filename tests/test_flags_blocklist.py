"""Tests for feature flags and the IP/device blocklists."""

import asyncio

import pytest

from curator.audit import AuditLogger
from curator.audit.audit_log import AUDIT_COLLECTION
from curator.blocklist import AlreadyBlocked, device_blocklist, ip_blocklist, ip_doc_id
from curator.flags import DEFAULT_FLAGS, FeatureFlags
from curator.store import MemoryStore, Query

ADMIN = "ops@example.com"


def run(coro):
    return asyncio.run(coro)


def audit_actions(store):
    return sorted(d.data["action"] for d in run(store.query(Query(AUDIT_COLLECTION))))


def test_global_flags_layer_over_defaults():
    store = MemoryStore()
    flags = FeatureFlags(store, AuditLogger(store))
    assert run(flags.global_flags()) == DEFAULT_FLAGS

    run(flags.set_global("maintenanceMode", True, ADMIN))
    current = run(flags.global_flags())
    assert current["maintenanceMode"] is True
    assert current["imageGeneration"] is True
    assert audit_actions(store) == ["SET_GLOBAL_FLAG"]


def test_user_flags():
    store = MemoryStore()
    flags = FeatureFlags(store, AuditLogger(store))
    assert run(flags.user_flags("u1")) == {}
    run(flags.set_user("u1", "betaFeatures", True, ADMIN))
    run(flags.set_user("u1", "videoGeneration", False, ADMIN))
    stored = run(flags.user_flags("u1"))
    assert stored["betaFeatures"] is True and stored["videoGeneration"] is False


@pytest.mark.parametrize("enabled", ["true", 1, None])
def test_flags_require_booleans(enabled):
    store = MemoryStore()
    with pytest.raises(ValueError, match="boolean"):
        run(FeatureFlags(store, AuditLogger(store)).set_global("betaFeatures", enabled, ADMIN))


def test_user_flags_cannot_target_global_doc():
    store = MemoryStore()
    with pytest.raises(ValueError):
        run(FeatureFlags(store, AuditLogger(store)).set_user("global", "betaFeatures", True, ADMIN))


def test_ip_doc_id():
    assert ip_doc_id("10.0.0.1") == "10_0_0_1"
    assert ip_doc_id("2001:db8::1") == "2001_db8__1"
    assert ip_doc_id("10.0.0.0/24") == "10_0_0_0_24"


def test_block_and_unblock_ip():
    store = MemoryStore()
    ips = ip_blocklist(store, AuditLogger(store))
    doc_id = run(ips.block(" 10.0.0.1 ", "abuse", ADMIN, target_uid="u1"))
    assert doc_id == "10_0_0_1"
    assert run(ips.is_blocked("10.0.0.1"))

    listed = run(ips.list_blocked())
    assert listed[0]["ip"] == "10.0.0.1" and listed[0]["targetUid"] == "u1"

    with pytest.raises(AlreadyBlocked, match="IP is already blocked"):
        run(ips.block("10.0.0.1", "again", ADMIN))

    run(ips.unblock("10.0.0.1", ADMIN))
    assert not run(ips.is_blocked("10.0.0.1"))
    assert audit_actions(store) == ["BLOCK_IP", "UNBLOCK_IP"]


def test_block_device_validation():
    store = MemoryStore()
    devices = device_blocklist(store, AuditLogger(store))
    with pytest.raises(ValueError, match="deviceId is required"):
        run(devices.block("", "abuse", ADMIN))
    with pytest.raises(ValueError, match="reason is required"):
        run(devices.block("dev-1", None, ADMIN))

    run(devices.block("dev-1", "abuse", ADMIN))
    with pytest.raises(AlreadyBlocked, match="Device is already blocked"):
        run(devices.block("dev-1", "abuse", ADMIN))
    assert audit_actions(store) == ["BLOCK_DEVICE"]
