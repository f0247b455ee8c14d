"""
AI Agents for SpendSmart

Two thin clients around Gemini:

1. CATEGORY AGENT:
   - CAN: Suggest one category for an expense description
   - MUST: Follow the user's own corrections over its general knowledge
   - CANNOT: Invent a category; anything outside the closed set
     becomes an explicit fallback prediction

2. INSIGHT AGENT:
   - CAN: Summarize spending, suggest savings, forecast next month
   - CANNOT: Be called without expenses to look at

CRITICAL BOUNDARIES:
- Neither agent touches the ledger. Callers decide what to apply.
- Transport failures are raised, never hidden behind a made-up answer.
- Neither agent retries. A failure is reported once to the caller.
"""

import json
from collections.abc import Sequence
from typing import Any, Optional

import google.generativeai as genai
from pydantic import ValidationError

from spendsmart.config import get_settings
from spendsmart.models.expense import (
    AiInsight,
    Category,
    CategoryPrediction,
    Expense,
    TrainingExample,
)
from spendsmart.models.preferences import DEFAULT_CURRENCY, Currency


class OracleError(Exception):
    """Base exception for AI service failures."""
    pass


class ClassificationError(OracleError):
    """The category could not be predicted."""
    pass


class InsightGenerationError(OracleError):
    """Insights could not be generated."""
    pass


class EmptyLedgerError(InsightGenerationError):
    """Insights were requested with no expenses recorded."""
    pass


CATEGORY_DEFINITIONS: dict[Category, str] = {
    Category.FOOD_AND_DINING: "Restaurants, cafes, groceries, fast food, bars.",
    Category.SHOPPING: "Clothes, electronics, home goods, Amazon, malls.",
    Category.TRANSPORT: "Gas, public transit, Uber/Lyft, parking, car maintenance.",
    Category.BILLS_AND_UTILITIES: (
        "Rent, electricity, water, internet, phone, insurance, "
        "subscriptions like Netflix."
    ),
    Category.ENTERTAINMENT: "Movies, concerts, gaming, hobbies, zoo, theater.",
    Category.HEALTH: "Doctor visits, pharmacy, gym, therapy, supplements.",
    Category.TRAVEL: "Flights, hotels, Airbnb, car rentals, vacation tours.",
    Category.EDUCATION: "Tuition, books, online courses, school supplies.",
    Category.OTHERS: (
        "Cash withdrawals, gifts, donations, or anything else that doesn't fit."
    ),
}

STANDARD_EXAMPLES: tuple[tuple[str, Category], ...] = (
    ("Starbucks", Category.FOOD_AND_DINING),
    ("Shell Gas Station", Category.TRANSPORT),
    ("H&M", Category.SHOPPING),
    ("Rent Payment", Category.BILLS_AND_UTILITIES),
    ("CVS Pharmacy", Category.HEALTH),
)

FALLBACK_INSIGHT = AiInsight(
    summary="Could not generate automated summary at this time.",
    suggestions=[
        "Check your high-cost categories.",
        "Maintain a consistent budget.",
        "Review recurring subscriptions for services you no longer use.",
    ],
    prediction="Record more expenses over time for an accurate forecast.",
    is_fallback=True,
)


def build_category_prompt(
    description: str,
    training_examples: Sequence[TrainingExample],
) -> str:
    """Prompt asking for exactly one category name."""
    definitions = "\n".join(
        f"- {category.value}: {rule}" for category, rule in CATEGORY_DEFINITIONS.items()
    )
    examples = "\n".join(
        f'"{text}" -> {category.value}' for text, category in STANDARD_EXAMPLES
    )

    corrections = ""
    if training_examples:
        lines = "\n".join(
            f'- "{example.description}" MUST be categorized as '
            f'"{example.correct_category.value}"'
            for example in training_examples
        )
        corrections = (
            "\nThe user has corrected earlier suggestions. "
            "These corrections override every rule above:\n"
            f"{lines}\n"
        )

    return f"""You are classifying personal expenses for a budgeting app.

Available categories:
{definitions}

Examples:
{examples}
{corrections}
Classify this expense description: "{description}"

Respond with EXACTLY one category name from the list above.
No explanation, no punctuation, no extra text.
If unsure, choose the closest match."""


def build_insight_prompt(expenses: Sequence[Expense], currency: Currency) -> str:
    """Prompt asking for a JSON summary of the given expenses."""
    lines = "\n".join(
        f"{expense.date.isoformat()}: {expense.description} - "
        f"{currency.symbol}{expense.amount} ({expense.category.value})"
        for expense in expenses
    )

    return f"""Analyze these personal expenses (amounts in {currency.code}) and give financial advice.

Expenses:
{lines}

Respond with ONLY a JSON object in this exact format:
{{"summary": "brief summary of spending", "suggestions": ["3-4 actionable suggestions"], "prediction": "forecast for next month's spending"}}"""


def parse_insight(text: Optional[str]) -> AiInsight:
    """
    Turn the model's reply into an AiInsight.

    Anything that does not fit the schema yields the fallback insight.
    Suggestions beyond four are dropped.
    """
    text = (text or "").strip()
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        return FALLBACK_INSIGHT.model_copy(deep=True)

    try:
        data = json.loads(text[start:end])
    except ValueError:
        return FALLBACK_INSIGHT.model_copy(deep=True)
    if not isinstance(data, dict):
        return FALLBACK_INSIGHT.model_copy(deep=True)

    suggestions = data.get("suggestions")
    if isinstance(suggestions, list):
        suggestions = [
            s.strip() for s in suggestions if isinstance(s, str) and s.strip()
        ][:4]

    try:
        return AiInsight(
            summary=data.get("summary"),
            suggestions=suggestions,
            prediction=data.get("prediction"),
        )
    except ValidationError:
        return FALLBACK_INSIGHT.model_copy(deep=True)


def _create_model(generation_config: dict[str, Any]) -> "genai.GenerativeModel":
    """Configure Google Generative AI and build a model."""
    settings = get_settings().gemini
    genai.configure(api_key=settings.api_key)
    return genai.GenerativeModel(
        model_name=settings.model_name,
        generation_config={
            "temperature": settings.temperature,
            "max_output_tokens": settings.max_tokens,
            **generation_config,
        },
    )


class CategoryAgent:
    """
    Predicts an expense category from its description.

    The user's training examples are included in every prompt so the
    model follows earlier corrections.
    """

    def __init__(self, model: Optional[Any] = None):
        """
        Args:
            model: Anything with an async generate_content_async(prompt).
                   Defaults to a Gemini model built from settings.
        """
        self._model = model if model is not None else _create_model(
            {"max_output_tokens": 20}
        )

    async def predict_category(
        self,
        description: str,
        training_examples: Sequence[TrainingExample] = (),
    ) -> CategoryPrediction:
        """
        Ask the model for a category.

        Raises:
            ClassificationError: If the model call fails
        """
        prompt = build_category_prompt(description, training_examples)
        try:
            response = await self._model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            raise ClassificationError(f"Category prediction failed: {e}") from e

        return CategoryPrediction.from_label(text)


class InsightAgent:
    """Generates a spending summary, suggestions and a forecast."""

    def __init__(self, model: Optional[Any] = None):
        """
        Args:
            model: Anything with an async generate_content_async(prompt).
                   Defaults to a Gemini model built from settings.
        """
        self._model = model if model is not None else _create_model(
            {"response_mime_type": "application/json"}
        )

    async def generate_insights(
        self,
        expenses: Sequence[Expense],
        currency: Currency = DEFAULT_CURRENCY,
    ) -> AiInsight:
        """
        Analyze the full expense list.

        Raises:
            EmptyLedgerError: If there are no expenses
            InsightGenerationError: If the model call fails
        """
        if not expenses:
            raise EmptyLedgerError("Add at least one expense before requesting insights")

        prompt = build_insight_prompt(expenses, currency)
        try:
            response = await self._model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            raise InsightGenerationError(f"Insight generation failed: {e}") from e

        return parse_insight(text)
