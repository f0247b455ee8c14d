"""
Integration tests for the entry and insight flows.

Agents are real, models are fakes.
"""

import asyncio
import json
import pytest
from decimal import Decimal
from types import SimpleNamespace

from spendsmart.agents import (
    CategoryAgent,
    EmptyLedgerError,
    InsightAgent,
    InsightGenerationError,
)
from spendsmart.config import get_settings
from spendsmart.models.audit import AuditEventType
from spendsmart.models.expense import Category, FeedbackStatus
from spendsmart.orchestrator import (
    ExpenseEntryFlow,
    InsightFlow,
    create_app_components,
    create_document_store,
)
from spendsmart.preferences import PreferencesManager
from spendsmart.services.storage import (
    CorruptDocumentError,
    FileDocumentStore,
    InMemoryDocumentStore,
)

from conftest import FakeModel, event_types


class GatedModel:
    """Fake model whose replies can be held back until a gate opens."""

    def __init__(self, *replies):
        # (gate or None, text) per call, in call order
        self._replies = list(replies)
        self.prompts = []

    async def generate_content_async(self, prompt: str):
        self.prompts.append(prompt)
        gate, text = self._replies.pop(0)
        if gate is not None:
            await gate.wait()
        return SimpleNamespace(text=text)


def make_entry_flow(ledger, audit_logger, model):
    return ExpenseEntryFlow(
        ledger=ledger,
        category_agent=CategoryAgent(model=model),
        audit_logger=audit_logger,
    )


class TestSuggestCategory:
    """Tests for AI category suggestions."""

    def test_returns_prediction(self, ledger, audit_logger, audit_storage):
        flow = make_entry_flow(ledger, audit_logger, FakeModel("Transport"))
        prediction = asyncio.run(flow.suggest_category("Uber"))
        assert prediction.category == Category.TRANSPORT
        assert event_types(audit_storage) == [AuditEventType.PREDICTION_COMPLETED]

    @pytest.mark.parametrize("description", ["", "   "])
    def test_blank_description_makes_no_call(self, ledger, audit_logger, description):
        model = FakeModel()
        flow = make_entry_flow(ledger, audit_logger, model)
        assert asyncio.run(flow.suggest_category(description)) is None
        assert model.prompts == []

    def test_failure_returns_none(self, ledger, audit_logger, audit_storage):
        """Test a failed call leaves the caller's category alone."""
        flow = make_entry_flow(ledger, audit_logger, FakeModel(ConnectionError("offline")))
        assert asyncio.run(flow.suggest_category("Uber")) is None
        assert event_types(audit_storage) == [AuditEventType.PREDICTION_FAILED]

    def test_stale_response_is_discarded(self, ledger, audit_logger, audit_storage):
        """Test that a slow earlier answer cannot overwrite a newer one."""

        async def scenario():
            gate = asyncio.Event()
            model = GatedModel((gate, "Travel"), (None, "Shopping"))
            flow = make_entry_flow(ledger, audit_logger, model)

            first = asyncio.create_task(flow.suggest_category("Flight"))
            await asyncio.sleep(0)
            second = await flow.suggest_category("Flight to Paris")
            gate.set()
            return await first, second

        first, second = asyncio.run(scenario())
        assert first is None
        assert second.category == Category.SHOPPING
        assert AuditEventType.PREDICTION_DISCARDED in event_types(audit_storage)

    def test_sequential_requests_all_apply(self, ledger, audit_logger):
        flow = make_entry_flow(ledger, audit_logger, FakeModel("Travel", "Health"))
        assert asyncio.run(flow.suggest_category("Hotel")).category == Category.TRAVEL
        assert asyncio.run(flow.suggest_category("Pharmacy")).category == Category.HEALTH

    def test_correction_reaches_next_prompt(self, ledger, audit_logger):
        """Coffee: a correction on one expense is sent with the next request."""
        model = FakeModel("Shopping")
        flow = make_entry_flow(ledger, audit_logger, model)

        first = flow.add_expense("Coffee", "4.50", Category.FOOD_AND_DINING)
        flow.add_expense("Bus", "2.00", Category.TRANSPORT)
        flow.add_expense("Coffee", "5.00", Category.FOOD_AND_DINING)
        flow.change_category(first.id, Category.SHOPPING)

        asyncio.run(flow.suggest_category("Coffee"))
        assert '"Coffee" MUST be categorized as "Shopping"' in model.prompts[0]
        assert model.prompts[0].count("MUST be categorized") == 1


class TestEntryDelegation:

    def test_review_actions(self, ledger, audit_logger):
        flow = make_entry_flow(ledger, audit_logger, FakeModel())
        expense = flow.add_expense("Coffee", "4.50", Category.FOOD_AND_DINING)

        assert flow.give_feedback(expense.id, FeedbackStatus.POSITIVE) is True
        assert flow.change_category(expense.id, Category.SHOPPING) is True
        assert flow.delete_expense(expense.id) is True
        assert flow.delete_expense(expense.id) is False
        assert len(flow.ledger) == 0
        assert "Coffee" in flow.training_set


class TestInsightFlow:
    """Tests for the AI Analyze action."""

    @pytest.fixture
    def preferences(self, repository, audit_logger):
        return PreferencesManager(repository=repository, audit_logger=audit_logger)

    def make_flow(self, ledger, preferences, audit_logger, model):
        return InsightFlow(
            ledger=ledger,
            preferences=preferences,
            insight_agent=InsightAgent(model=model),
            audit_logger=audit_logger,
        )

    def test_generates_in_selected_currency(self, ledger, preferences, audit_logger, audit_storage):
        reply = json.dumps({
            "summary": "s",
            "suggestions": ["a", "b", "c"],
            "prediction": "p",
        })
        model = FakeModel(reply)
        ledger.add("Coffee", "4.50", Category.FOOD_AND_DINING)
        preferences.update_currency("GBP")

        insight = asyncio.run(self.make_flow(ledger, preferences, audit_logger, model).run_analysis())
        assert insight.summary == "s"
        assert "£4.50" in model.prompts[0]
        assert AuditEventType.INSIGHTS_GENERATED in event_types(audit_storage)

    def test_empty_ledger_raises(self, ledger, preferences, audit_logger, audit_storage):
        model = FakeModel()
        flow = self.make_flow(ledger, preferences, audit_logger, model)
        with pytest.raises(EmptyLedgerError):
            asyncio.run(flow.run_analysis())
        assert model.prompts == []
        assert AuditEventType.INSIGHTS_FAILED in event_types(audit_storage)

    def test_empty_ledger_needs_no_agent(self, ledger, preferences, audit_logger):
        flow = InsightFlow(ledger=ledger, preferences=preferences, audit_logger=audit_logger)
        with pytest.raises(EmptyLedgerError):
            asyncio.run(flow.run_analysis())

    def test_failure_is_surfaced(self, ledger, preferences, audit_logger, audit_storage):
        """Test that a user-triggered failure is raised, not swallowed."""
        ledger.add("Coffee", "4.50", Category.FOOD_AND_DINING)
        flow = self.make_flow(ledger, preferences, audit_logger, FakeModel(TimeoutError("slow")))
        with pytest.raises(InsightGenerationError):
            asyncio.run(flow.run_analysis())
        assert event_types(audit_storage)[-2:] == [
            AuditEventType.EXTERNAL_SERVICE_ERROR,
            AuditEventType.INSIGHTS_FAILED,
        ]


class TestCreateAppComponents:
    """Tests for wiring and startup loading."""

    def test_loads_stored_state(self):
        store = InMemoryDocumentStore({
            "smarttrack_expenses": json.dumps([{
                "id": "e1",
                "amount": "4.50",
                "description": "Coffee",
                "category": "Food & Dining",
                "date": "2024-01-02",
                "isAiGenerated": True,
                "userCorrected": False,
                "feedbackStatus": "unset",
            }]),
            "smarttrack_training": json.dumps([
                {"description": "Coffee", "correctCategory": "Shopping"},
            ]),
            "smarttrack_colors": json.dumps({"Travel": "#000000"}),
            "smarttrack_currency": "EUR",
        })

        entry_flow, insight_flow, preferences = create_app_components(
            store=store,
            category_agent=CategoryAgent(model=FakeModel()),
            insight_agent=InsightAgent(model=FakeModel()),
        )

        assert [e.id for e in entry_flow.ledger] == ["e1"]
        assert entry_flow.ledger.get("e1").amount == Decimal("4.50")
        assert entry_flow.training_set.get("coffee").correct_category == Category.SHOPPING
        assert preferences.currency.code == "EUR"
        assert preferences.category_colors.color_for(Category.TRAVEL) == "#000000"
        assert store.save_count == 0

    def test_empty_store_uses_defaults(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_CURRENCY_CODE", "PLN")
        monkeypatch.setenv("TRAINING_SET_LIMIT", "3")
        get_settings.cache_clear()

        entry_flow, _, preferences = create_app_components(store=InMemoryDocumentStore())
        assert len(entry_flow.ledger) == 0
        assert entry_flow.training_set.limit == 3
        assert preferences.currency.code == "PLN"

    def test_mutations_persist_across_restarts(self):
        store = InMemoryDocumentStore()
        entry_flow, _, preferences = create_app_components(store=store)
        expense = entry_flow.add_expense("Coffee", "4.50", Category.FOOD_AND_DINING)
        entry_flow.change_category(expense.id, Category.SHOPPING)
        preferences.update_currency("INR")

        restarted, _, restarted_preferences = create_app_components(store=store)
        assert restarted.ledger.get(expense.id).category == Category.SHOPPING
        assert "Coffee" in restarted.training_set
        assert restarted_preferences.currency.code == "INR"

    def test_corrupt_document_stops_startup(self, audit_logger, audit_storage):
        """Test that an unreadable document is audited and raised."""
        store = InMemoryDocumentStore({"smarttrack_expenses": "not json"})
        with pytest.raises(CorruptDocumentError):
            create_app_components(store=store, audit_logger=audit_logger)

        events = audit_storage.get_recent_events()
        assert [e.event_type for e in events] == [AuditEventType.SYSTEM_ERROR]
        assert events[0].details == {"key": "smarttrack_expenses"}
        assert store.save_count == 0

    def test_store_selected_from_settings(self, monkeypatch, tmp_path):
        assert isinstance(create_document_store(), InMemoryDocumentStore)

        monkeypatch.setenv("STORAGE_BACKEND", "file")
        monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
        get_settings.cache_clear()
        store = create_document_store()
        assert isinstance(store, FileDocumentStore)
        assert store.data_dir == tmp_path / "data"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
