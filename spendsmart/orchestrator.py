"""
Main Orchestrator for SpendSmart

This module ties together all the components and defines the
flows the presentation layer drives:
1. Expense entry (description → AI suggestion → user picks → add)
2. Expense review (delete, correct category, thumbs up/down)
3. Insights (expenses → AI summary)

DESIGN DECISION: The orchestrator enforces the boundaries:
- AI output only ever becomes a *suggestion* for the draft expense
- A stale AI answer never overwrites a newer one
- AI failures are audited; classification failures keep the current
  category, insight failures are raised so the user sees them
"""

from decimal import Decimal
from typing import Optional, Union

from spendsmart.agents import (
    CategoryAgent,
    ClassificationError,
    EmptyLedgerError,
    InsightAgent,
    InsightGenerationError,
)
from spendsmart.audit import AuditLogger
from spendsmart.config import Settings, get_settings
from spendsmart.ledger import ExpenseLedger
from spendsmart.models.audit import AuditEventBuilder
from spendsmart.models.expense import (
    AiInsight,
    Category,
    CategoryPrediction,
    Expense,
    FeedbackStatus,
)
from spendsmart.models.preferences import DEFAULT_CURRENCY, find_currency
from spendsmart.preferences import PreferencesManager
from spendsmart.services.storage import (
    AppStateRepository,
    CorruptDocumentError,
    DocumentStoreInterface,
    FileDocumentStore,
    InMemoryDocumentStore,
)
from spendsmart.training import TrainingSetManager


class ExpenseEntryFlow:
    """
    Orchestrates adding and reviewing expenses.

    Flow:
    1. User types a description → suggest_category()
    2. User keeps or changes the suggestion → add_expense()
    3. Later: change_category() / give_feedback() / delete_expense()

    Prediction requests are numbered. Only the response to the most
    recently *issued* request is returned; anything that settles after
    a newer request was made is discarded.
    """

    def __init__(
        self,
        ledger: ExpenseLedger,
        category_agent: Optional[CategoryAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._category_agent = category_agent
        self._audit_logger = audit_logger or AuditLogger()
        self._latest_request_id = 0

    @property
    def ledger(self) -> ExpenseLedger:
        return self._ledger

    @property
    def training_set(self) -> TrainingSetManager:
        return self._ledger.training_set

    def _get_agent(self) -> CategoryAgent:
        # Built on first use so the app runs offline without a Gemini key
        if self._category_agent is None:
            self._category_agent = CategoryAgent()
        return self._category_agent

    async def suggest_category(self, description: str) -> Optional[CategoryPrediction]:
        """
        Get an AI-suggested category for a draft expense.

        Returns:
            The prediction, or None when the description is blank, the
            AI call failed, or a newer request superseded this one.
            On None the caller keeps whatever category it already has.
        """
        if not description or not description.strip():
            return None

        self._latest_request_id += 1
        request_id = self._latest_request_id
        hints = self.training_set.snapshot()

        try:
            prediction = await self._get_agent().predict_category(description, hints)
        except ClassificationError as e:
            self._audit_logger.log(
                AuditEventBuilder.prediction_failed(request_id, str(e))
            )
            return None

        if request_id != self._latest_request_id:
            self._audit_logger.log(
                AuditEventBuilder.prediction_discarded(
                    request_id, self._latest_request_id
                )
            )
            return None

        self._audit_logger.log(
            AuditEventBuilder.prediction_completed(
                request_id=request_id,
                category=prediction.category.value,
                raw_label=prediction.raw_label,
                is_fallback=prediction.is_fallback,
                hint_count=len(hints),
            )
        )
        return prediction

    def add_expense(
        self,
        description: str,
        amount: Union[Decimal, int, float, str],
        category: Category,
        is_ai_generated: bool = True,
    ) -> Expense:
        """Add the confirmed draft to the ledger."""
        return self._ledger.add(description, amount, category, is_ai_generated)

    def delete_expense(self, expense_id: str) -> bool:
        return self._ledger.delete(expense_id)

    def change_category(self, expense_id: str, category: Category) -> bool:
        return self._ledger.recategorize(expense_id, category)

    def give_feedback(self, expense_id: str, judgment: FeedbackStatus) -> bool:
        return self._ledger.record_feedback(expense_id, judgment)


class InsightFlow:
    """
    Orchestrates the "AI Analyze" action.

    The user asked for this explicitly, so failures are raised for the
    presentation layer to show, after being audited.
    """

    def __init__(
        self,
        ledger: ExpenseLedger,
        preferences: PreferencesManager,
        insight_agent: Optional[InsightAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._preferences = preferences
        self._insight_agent = insight_agent
        self._audit_logger = audit_logger or AuditLogger()

    def _get_agent(self) -> InsightAgent:
        if self._insight_agent is None:
            self._insight_agent = InsightAgent()
        return self._insight_agent

    async def run_analysis(self) -> AiInsight:
        """
        Generate insights for every expense in the ledger.

        Raises:
            EmptyLedgerError: If the ledger is empty
            InsightGenerationError: If the AI call fails
        """
        expenses = self._ledger.expenses
        try:
            if not expenses:
                # Checked here so no agent (or API key) is needed
                raise EmptyLedgerError(
                    "Add at least one expense before requesting insights"
                )
            insight = await self._get_agent().generate_insights(
                expenses, self._preferences.currency
            )
        except InsightGenerationError as e:
            if e.__cause__ is not None:
                self._audit_logger.log_external_service_error("gemini", str(e.__cause__))
            self._audit_logger.log(AuditEventBuilder.insights_failed(str(e)))
            raise

        self._audit_logger.log(
            AuditEventBuilder.insights_generated(len(expenses), insight.is_fallback)
        )
        return insight


def create_document_store(settings: Optional[Settings] = None) -> DocumentStoreInterface:
    """Build the document store selected in settings."""
    storage_settings = (settings or get_settings()).storage
    if storage_settings.backend == "memory":
        return InMemoryDocumentStore()
    return FileDocumentStore(storage_settings.data_dir)


def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStoreInterface] = None,
    category_agent: Optional[CategoryAgent] = None,
    insight_agent: Optional[InsightAgent] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> tuple[ExpenseEntryFlow, InsightFlow, PreferencesManager]:
    """
    Factory function to create all application components.

    Loads every persisted document exactly once, before anything can
    mutate state.

    Args:
        settings: Settings to use. Defaults to get_settings().
        store: Document store. Defaults to the backend in settings.
        category_agent / insight_agent: AI clients. Built lazily from
            settings on first use when not given.
        audit_logger: Audit trail. Defaults to local-only logging.

    Returns:
        (entry_flow, insight_flow, preferences)

    Raises:
        CorruptDocumentError: If a stored document cannot be read
    """
    settings = settings or get_settings()
    app_settings = settings.app
    storage_settings = settings.storage
    audit_logger = audit_logger or AuditLogger()

    store = store or create_document_store(settings)
    repository = AppStateRepository(store, key_prefix=storage_settings.key_prefix)

    try:
        expenses = repository.load_expenses()
        training_examples = repository.load_training_examples()
        colors = repository.load_category_colors()
        currency = repository.load_currency(
            default=find_currency(app_settings.default_currency_code) or DEFAULT_CURRENCY
        )
    except CorruptDocumentError as e:
        audit_logger.log_error("CorruptDocumentError", str(e), {"key": e.key})
        raise

    training_set = TrainingSetManager(
        repository=repository,
        examples=training_examples,
        limit=app_settings.training_set_limit,
        audit_logger=audit_logger,
    )
    ledger = ExpenseLedger(
        training_set=training_set,
        repository=repository,
        expenses=expenses,
        audit_logger=audit_logger,
    )
    preferences = PreferencesManager(
        repository=repository,
        category_colors=colors,
        currency=currency,
        audit_logger=audit_logger,
    )

    entry_flow = ExpenseEntryFlow(
        ledger=ledger,
        category_agent=category_agent,
        audit_logger=audit_logger,
    )
    insight_flow = InsightFlow(
        ledger=ledger,
        preferences=preferences,
        insight_agent=insight_agent,
        audit_logger=audit_logger,
    )

    return entry_flow, insight_flow, preferences
