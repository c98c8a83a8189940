"""IP and device blocklists."""

from curator.blocklist.blocklist import (
    BLOCKED_DEVICES_COLLECTION,
    BLOCKED_IPS_COLLECTION,
    AlreadyBlocked,
    Blocklist,
    device_blocklist,
    ip_blocklist,
    ip_doc_id,
)

__all__ = [
    "BLOCKED_DEVICES_COLLECTION",
    "BLOCKED_IPS_COLLECTION",
    "AlreadyBlocked",
    "Blocklist",
    "device_blocklist",
    "ip_blocklist",
    "ip_doc_id",
]
