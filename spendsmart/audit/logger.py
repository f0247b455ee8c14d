"""
Audit Logger

DESIGN DECISION: Every ledger mutation and every AI call is logged.
This provides:
1. A trace of every category correction and what it taught the AI
2. Debugging capability when predictions go wrong
3. A visible record of failed storage writes

The audit logger:
- Is synchronous, like the ledger operations that call it
- Gracefully handles failures (never breaks the caller if logging fails)
- Writes to an optional append-only audit store
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import Optional

import structlog

from spendsmart.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditStorageInterface(ABC):
    """
    Append-only audit event store.

    Audit logs are never modified or deleted once written.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> None:
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Most recent events, newest first."""
        pass


class InMemoryAuditStorage(AuditStorageInterface):
    """Keeps the last ``max_events`` events in memory."""

    def __init__(self, max_events: int = 1000):
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    def append_event(self, event: AuditEvent) -> None:
        self._events.append(event)

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit store, if one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Append-only store for events.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("spendsmart.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Appends to storage if available.

        Returns True if the storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_storage_failed(self, document: str, error_message: str) -> None:
        self.log(AuditEventBuilder.storage_failed(document, error_message))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(error_type, error_message, details))

    def log_external_service_error(self, service: str, error_message: str) -> None:
        """Log external service error."""
        self.log(AuditEventBuilder.external_service_error(service, error_message))
