"""
Data Models Package

This package contains all Pydantic models used in SpendSmart.
Everything the ledger stores or the AI returns conforms to these schemas.
"""

from spendsmart.models.expense import (
    FALLBACK_CATEGORY,
    AiInsight,
    Category,
    CategoryPrediction,
    Expense,
    FeedbackStatus,
    TrainingExample,
)
from spendsmart.models.preferences import (
    CURRENCIES,
    DEFAULT_CATEGORY_COLORS,
    DEFAULT_CURRENCY,
    CategoryColorMap,
    Currency,
    find_currency,
)
from spendsmart.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "FALLBACK_CATEGORY",
    "AiInsight",
    "Category",
    "CategoryPrediction",
    "Expense",
    "FeedbackStatus",
    "TrainingExample",
    # Preference models
    "CURRENCIES",
    "DEFAULT_CATEGORY_COLORS",
    "DEFAULT_CURRENCY",
    "CategoryColorMap",
    "Currency",
    "find_currency",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
