"""
Core Data Models for SpendSmart

These models define the schemas for everything the ledger stores and
everything that crosses the boundary to the AI services. They are
designed to:
1. Enforce the record invariants at runtime
2. Round-trip through the persisted JSON documents
3. Keep oracle output in a closed, testable shape

DESIGN DECISION: Persisted documents use camelCase keys so the stored
blobs stay readable by the browser front end that shares them.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Category(str, Enum):
    """
    Spending categories.

    DESIGN DECISION: The set is closed. Anything the AI returns that is
    not one of these becomes OTHERS rather than a new category.
    """
    FOOD_AND_DINING = "Food & Dining"
    SHOPPING = "Shopping"
    TRANSPORT = "Transport"
    BILLS_AND_UTILITIES = "Bills & Utilities"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    TRAVEL = "Travel"
    EDUCATION = "Education"
    OTHERS = "Others"

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional["Category"]:
        """Case-insensitive lookup by display label. None if nothing matches."""
        if not label:
            return None
        wanted = label.strip().strip("\"'`").rstrip(".").strip().casefold()
        for category in cls:
            if category.value.casefold() == wanted:
                return category
        return None


FALLBACK_CATEGORY = Category.OTHERS


class FeedbackStatus(str, Enum):
    """
    Last explicit human judgment on the AI-suggested category.

    UNSET until the user presses thumbs up/down; reset to UNSET
    whenever the category is changed directly.
    """
    UNSET = "unset"
    POSITIVE = "positive"
    NEGATIVE = "negative"


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class Expense(BaseModel):
    """
    One recorded transaction.

    Identity, amount, description and date are fixed at creation.
    Only the category and the feedback flags change afterwards.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    id: str = Field(
        default_factory=lambda: uuid4().hex,
        frozen=True,
        description="Opaque unique expense ID",
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        frozen=True,
        description="Positive amount, currency-agnostic",
    )
    description: str = Field(
        ...,
        min_length=1,
        frozen=True,
        description="Free-text label entered by the user",
    )
    category: Category = Field(
        ...,
        description="Current category",
    )
    date: dt.date = Field(
        default_factory=dt.date.today,
        frozen=True,
        description="Day the expense was recorded",
    )
    is_ai_generated: bool = Field(
        default=True,
        frozen=True,
        description="Was the category suggested by the AI at creation?",
    )
    user_corrected: bool = Field(
        default=False,
        description="Has a human changed or confirmed the category?",
    )
    feedback_status: FeedbackStatus = Field(
        default=FeedbackStatus.UNSET,
        description="Last thumbs up/down on the AI suggestion",
    )

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, amount: Decimal) -> float:
        """Stored documents keep amounts as JSON numbers."""
        return float(amount)

    @model_validator(mode="after")
    def validate_feedback(self) -> "Expense":
        """A positive judgment is a human confirmation."""
        if self.feedback_status == FeedbackStatus.POSITIVE and not self.user_corrected:
            raise ValueError("Positive feedback requires user_corrected")
        return self


class TrainingExample(BaseModel):
    """A human-confirmed (description → category) hint for the classifier."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    description: str = Field(..., min_length=1)
    correct_category: Category


# =============================================================================
# AI RESULTS
# =============================================================================

class CategoryPrediction(BaseModel):
    """
    Validated classifier output.

    CRITICAL: raw oracle text never reaches the ledger directly.
    Unknown or empty labels are kept as a fallback prediction so callers
    can tell "the AI said Others" apart from "the AI said nonsense".
    """

    category: Category
    raw_label: str = ""
    is_fallback: bool = False

    @classmethod
    def from_label(cls, raw_label: Optional[str]) -> "CategoryPrediction":
        raw = (raw_label or "").strip()
        category = Category.from_label(raw)
        if category is None:
            return cls(category=FALLBACK_CATEGORY, raw_label=raw, is_fallback=True)
        return cls(category=category, raw_label=raw)


class AiInsight(BaseModel):
    """Spending summary generated from the full expense list."""

    summary: str = Field(..., min_length=1)
    suggestions: list[str] = Field(..., min_length=3, max_length=4)
    prediction: str = Field(..., min_length=1)

    # Set when the content is the local stand-in, not the model's answer
    is_fallback: bool = False
