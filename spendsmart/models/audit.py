"""
Audit Models for SpendSmart

Every ledger mutation and every AI call is logged for audit purposes.
This provides:
1. A trace of how each expense reached its current category
2. Debugging information when the AI misbehaves
3. Visibility into what the classifier was taught

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger
    EXPENSE_ADDED = "expense_added"
    EXPENSE_DELETED = "expense_deleted"
    CATEGORY_CORRECTED = "category_corrected"
    FEEDBACK_POSITIVE = "feedback_positive"
    FEEDBACK_NEGATIVE = "feedback_negative"

    # Training set
    TRAINING_EXAMPLE_UPSERTED = "training_example_upserted"
    TRAINING_EXAMPLE_EVICTED = "training_example_evicted"

    # Category prediction
    PREDICTION_COMPLETED = "prediction_completed"
    PREDICTION_FAILED = "prediction_failed"
    PREDICTION_DISCARDED = "prediction_discarded"

    # Insights
    INSIGHTS_GENERATED = "insights_generated"
    INSIGHTS_FAILED = "insights_failed"

    # Preferences
    PREFERENCES_UPDATED = "preferences_updated"

    # System events
    STORAGE_FAILED = "storage_failed"
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'training_example')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID or key of the entity this event relates to"
    )

    description: str = Field(
        ...,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(expense_id, "Coffee", "4.50", "Food & Dining")
        event = AuditEventBuilder.category_corrected(expense_id, "Coffee", old, new)
    """

    @staticmethod
    def expense_added(
        expense_id: str,
        description: str,
        amount: str,
        category: str,
        is_ai_generated: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense added: {description} - {amount}",
            details={
                "amount": amount,
                "category": category,
                "is_ai_generated": is_ai_generated,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(expense_id: str, description: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense deleted: {description}",
            is_user_action=True,
        )

    @staticmethod
    def category_corrected(
        expense_id: str,
        description: str,
        old_category: str,
        new_category: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_CORRECTED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Category changed: {old_category} → {new_category}",
            details={
                "expense_description": description,
                "old_category": old_category,
                "new_category": new_category,
            },
            is_user_action=True,
        )

    @staticmethod
    def feedback_recorded(
        expense_id: str,
        judgment: str,
        category: str,
        training_example_added: bool,
    ) -> AuditEvent:
        event_type = (
            AuditEventType.FEEDBACK_POSITIVE
            if judgment == "positive"
            else AuditEventType.FEEDBACK_NEGATIVE
        )
        return AuditEvent(
            event_type=event_type,
            entity_type="expense",
            entity_id=expense_id,
            description=f"User marked suggestion '{category}' as {judgment}",
            details={
                "category": category,
                "training_example_added": training_example_added,
            },
            is_user_action=True,
        )

    @staticmethod
    def training_example_upserted(
        description: str,
        category: str,
        replaced: bool,
        size: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRAINING_EXAMPLE_UPSERTED,
            entity_type="training_example",
            entity_id=description,
            description=(
                f"Training example {'updated' if replaced else 'added'}: "
                f"{description} → {category}"
            ),
            details={
                "category": category,
                "replaced": replaced,
                "training_set_size": size,
            },
        )

    @staticmethod
    def training_example_evicted(description: str, category: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRAINING_EXAMPLE_EVICTED,
            entity_type="training_example",
            entity_id=description,
            description=f"Oldest training example evicted: {description}",
            details={"category": category},
        )

    @staticmethod
    def prediction_completed(
        request_id: int,
        category: str,
        raw_label: str,
        is_fallback: bool,
        hint_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PREDICTION_COMPLETED,
            entity_type="prediction",
            entity_id=str(request_id),
            description=f"Category predicted: {category}",
            details={
                "raw_label": raw_label,
                "is_fallback": is_fallback,
                "hint_count": hint_count,
            },
        )

    @staticmethod
    def prediction_failed(request_id: int, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PREDICTION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="prediction",
            entity_id=str(request_id),
            description="Category prediction failed; keeping current category",
            error_message=error_message,
        )

    @staticmethod
    def prediction_discarded(request_id: int, latest_request_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PREDICTION_DISCARDED,
            entity_type="prediction",
            entity_id=str(request_id),
            description="Stale category prediction discarded",
            details={"latest_request_id": latest_request_id},
        )

    @staticmethod
    def insights_generated(expense_count: int, is_fallback: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHTS_GENERATED,
            entity_type="insight",
            description=f"Insights generated from {expense_count} expenses",
            details={
                "expense_count": expense_count,
                "is_fallback": is_fallback,
            },
            is_user_action=True,
        )

    @staticmethod
    def insights_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHTS_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="insight",
            description="Insight generation failed",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def preferences_updated(setting: str, value: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PREFERENCES_UPDATED,
            entity_type="preferences",
            entity_id=setting,
            description=f"Preference updated: {setting} = {value}",
            details={"value": value},
            is_user_action=True,
        )

    @staticmethod
    def storage_failed(document: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="document",
            entity_id=document,
            description=f"Failed to save document: {document}",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def external_service_error(service: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
        )
