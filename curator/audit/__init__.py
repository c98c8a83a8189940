"""Admin audit trail."""

from curator.audit.audit_log import AuditEntry, AuditLogger, AuditPage

__all__ = ["AuditEntry", "AuditLogger", "AuditPage"]
