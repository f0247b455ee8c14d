"""
Tests for the AI agents.

No real API calls: every agent gets a FakeModel.
"""

import asyncio
import json
import pytest
from datetime import date
from decimal import Decimal

from spendsmart.agents import (
    FALLBACK_INSIGHT,
    CategoryAgent,
    ClassificationError,
    EmptyLedgerError,
    InsightAgent,
    InsightGenerationError,
    OracleError,
    build_category_prompt,
    build_insight_prompt,
    parse_insight,
)
from spendsmart.models.expense import Category, Expense, TrainingExample
from spendsmart.models.preferences import find_currency

from conftest import FakeModel


def insight_json(**overrides):
    data = {
        "summary": "You mostly spend on food.",
        "suggestions": ["Cook at home", "Set a budget", "Track coffee"],
        "prediction": "About the same next month.",
    }
    data.update(overrides)
    return json.dumps(data)


class TestCategoryPrompt:
    """Tests for the classification prompt."""

    def test_lists_every_category(self):
        prompt = build_category_prompt("Coffee", [])
        for category in Category:
            assert category.value in prompt
        assert '"Coffee"' in prompt

    def test_includes_corrections(self):
        examples = [TrainingExample(description="Coffee", correct_category=Category.SHOPPING)]
        prompt = build_category_prompt("Coffee", examples)
        assert '"Coffee" MUST be categorized as "Shopping"' in prompt

    def test_no_corrections_section_without_examples(self):
        assert "MUST be categorized" not in build_category_prompt("Coffee", [])


class TestCategoryAgent:
    """Tests for category prediction."""

    def test_known_label(self):
        agent = CategoryAgent(model=FakeModel("Transport\n"))
        prediction = asyncio.run(agent.predict_category("Uber"))
        assert prediction.category == Category.TRANSPORT
        assert prediction.is_fallback is False

    def test_unknown_label_falls_back(self):
        agent = CategoryAgent(model=FakeModel("Rideshare"))
        prediction = asyncio.run(agent.predict_category("Uber"))
        assert prediction.category == Category.OTHERS
        assert prediction.is_fallback is True

    def test_sends_training_examples(self):
        model = FakeModel("Shopping")
        agent = CategoryAgent(model=model)
        examples = [TrainingExample(description="Coffee", correct_category=Category.SHOPPING)]
        asyncio.run(agent.predict_category("Coffee", examples))
        assert '"Coffee" MUST be categorized as "Shopping"' in model.prompts[0]

    def test_transport_failure_raises(self):
        agent = CategoryAgent(model=FakeModel(ConnectionError("offline")))
        with pytest.raises(ClassificationError) as exc_info:
            asyncio.run(agent.predict_category("Uber"))
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert isinstance(exc_info.value, OracleError)


class TestInsightPrompt:

    def test_lists_expenses_with_currency(self):
        expense = Expense(
            amount=Decimal("4.50"),
            description="Coffee",
            category=Category.FOOD_AND_DINING,
            date=date(2024, 1, 2),
        )
        prompt = build_insight_prompt([expense], find_currency("EUR"))
        assert "2024-01-02: Coffee - €4.50 (Food & Dining)" in prompt
        assert "EUR" in prompt


class TestParseInsight:
    """Tests for reading the model's JSON reply."""

    def test_valid_reply(self):
        insight = parse_insight(insight_json())
        assert insight.summary == "You mostly spend on food."
        assert len(insight.suggestions) == 3
        assert insight.is_fallback is False

    def test_reply_wrapped_in_text(self):
        insight = parse_insight("```json\n" + insight_json() + "\n```")
        assert insight.is_fallback is False

    def test_extra_suggestions_are_trimmed(self):
        insight = parse_insight(insight_json(suggestions=[f"tip {i}" for i in range(6)]))
        assert insight.suggestions == ["tip 0", "tip 1", "tip 2", "tip 3"]

    @pytest.mark.parametrize("text", [
        None,
        "",
        "no json here",
        "{broken",
        insight_json(suggestions=["only one"]),
        insight_json(summary=""),
        json.dumps({"summary": "s"}),
    ])
    def test_unusable_reply_gives_fallback(self, text):
        insight = parse_insight(text)
        assert insight.is_fallback is True
        assert insight == FALLBACK_INSIGHT

    def test_fallback_is_a_copy(self):
        insight = parse_insight(None)
        insight.suggestions.append("changed")
        assert len(FALLBACK_INSIGHT.suggestions) == 3


class TestInsightAgent:
    """Tests for insight generation."""

    @pytest.fixture
    def expenses(self):
        return [
            Expense(amount=Decimal("4.50"), description="Coffee", category=Category.FOOD_AND_DINING),
        ]

    def test_generates_insight(self, expenses):
        model = FakeModel(insight_json())
        insight = asyncio.run(InsightAgent(model=model).generate_insights(expenses))
        assert insight.prediction == "About the same next month."
        assert "$4.50" in model.prompts[0]

    def test_empty_ledger_is_rejected_without_call(self):
        model = FakeModel()
        with pytest.raises(EmptyLedgerError):
            asyncio.run(InsightAgent(model=model).generate_insights([]))
        assert model.prompts == []

    def test_transport_failure_raises(self, expenses):
        agent = InsightAgent(model=FakeModel(TimeoutError("slow")))
        with pytest.raises(InsightGenerationError):
            asyncio.run(agent.generate_insights(expenses))

    def test_garbled_reply_gives_fallback(self, expenses):
        agent = InsightAgent(model=FakeModel("I cannot help with that"))
        insight = asyncio.run(agent.generate_insights(expenses))
        assert insight.is_fallback is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
