"""Security module.

- read_only: the hard read-only execution gate
- scanners: advisory security/performance rule tables
- audit_logger: structured execution audit events
"""

from sqlscope.security.audit_logger import (
    AuditEvent,
    AuditEventType,
    AuditLogger,
    AuditStorage,
)
from sqlscope.security.read_only import ensure_read_only, is_read_only_query
from sqlscope.security.scanners import scan_performance, scan_security

__all__ = [
    "AuditEvent",
    "AuditEventType",
    "AuditLogger",
    "AuditStorage",
    "ensure_read_only",
    "is_read_only_query",
    "scan_performance",
    "scan_security",
]
