"""Audit logging package."""

from spendsmart.audit.logger import (
    AuditLogger,
    AuditStorageInterface,
    InMemoryAuditStorage,
)

__all__ = ["AuditLogger", "AuditStorageInterface", "InMemoryAuditStorage"]
