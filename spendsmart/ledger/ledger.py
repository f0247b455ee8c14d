"""
Expense Ledger

Owns the ordered list of expenses and the rules for changing them.

CRITICAL RULES:
1. Expenses keep creation order. Deletion removes by id, never by position.
2. Only the category and the feedback flags of an expense ever change.
3. A category change is a correction: it marks the expense as
   user-corrected, clears the thumbs up/down, and teaches the training set.
4. A thumbs up is a confirmation: it teaches the training set only if
   nothing is known about that description yet.
5. A thumbs down teaches nothing. We know the AI was wrong, not what is right.
6. Unknown ids are a no-op, never an error.

Every successful mutation saves the full ledger snapshot and is audited.
A failed save is audited but never fails the mutation.
"""

from collections.abc import Callable, Iterator
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from spendsmart.audit import AuditLogger
from spendsmart.models.audit import AuditEventBuilder
from spendsmart.models.expense import Category, Expense, FeedbackStatus
from spendsmart.services.storage import AppStateRepository, StorageError
from spendsmart.training import TrainingSetManager


class LedgerError(ValueError):
    """Base exception for rejected ledger input."""
    pass


class EmptyDescriptionError(LedgerError):
    """Expense description is blank."""
    pass


class InvalidAmountError(LedgerError):
    """Expense amount is not a positive, finite number."""
    pass


AmountLike = Union[Decimal, int, float, str]


def parse_amount(value: AmountLike) -> Decimal:
    """
    Convert user input to a positive Decimal.

    Floats go through str() so 4.5 becomes Decimal("4.5"),
    not its binary approximation.
    """
    if isinstance(value, bool):
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(f"Amount is not a number: {value!r}")
    if not amount.is_finite():
        raise InvalidAmountError(f"Amount must be finite: {value!r}")
    if amount <= 0:
        raise InvalidAmountError(f"Amount must be greater than zero: {value!r}")
    return amount


class ExpenseLedger:
    """
    The ordered collection of all expenses for the current user.

    All operations are synchronous and total: given well-typed input
    they never fail on the state they find.
    """

    def __init__(
        self,
        training_set: TrainingSetManager,
        repository: Optional[AppStateRepository] = None,
        expenses: Optional[list[Expense]] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], date] = date.today,
    ):
        """
        Initialize the ledger.

        Args:
            training_set: Receives corrections and confirmations
            repository: Where snapshots are saved. If None, nothing is persisted.
            expenses: Expenses loaded at startup, in ledger order
            audit_logger: Audit trail. Defaults to local-only logging.
            clock: Source of the creation date for new expenses
        """
        self._training_set = training_set
        self._repository = repository
        self._expenses: list[Expense] = list(expenses or [])
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock

    # -- read side --------------------------------------------------------

    @property
    def expenses(self) -> list[Expense]:
        """Snapshot of all expenses in creation order."""
        return list(self._expenses)

    @property
    def training_set(self) -> TrainingSetManager:
        return self._training_set

    def __len__(self) -> int:
        return len(self._expenses)

    def __iter__(self) -> Iterator[Expense]:
        return iter(list(self._expenses))

    def __contains__(self, expense_id: object) -> bool:
        return self.get(expense_id) is not None

    def get(self, expense_id: object) -> Optional[Expense]:
        for expense in self._expenses:
            if expense.id == expense_id:
                return expense
        return None

    # -- mutations --------------------------------------------------------

    def add(
        self,
        description: str,
        amount: AmountLike,
        category: Category,
        is_ai_generated: bool = True,
    ) -> Expense:
        """
        Record a new expense dated today and append it to the ledger.

        Raises:
            EmptyDescriptionError: If the description is blank
            InvalidAmountError: If the amount is not a positive number
        """
        if not description or not description.strip():
            raise EmptyDescriptionError("Expense description is required")
        parsed_amount = parse_amount(amount)

        expense = Expense(
            amount=parsed_amount,
            description=description,
            category=category,
            date=self._clock(),
            is_ai_generated=is_ai_generated,
        )
        self._expenses.append(expense)

        self._audit_logger.log(
            AuditEventBuilder.expense_added(
                expense_id=expense.id,
                description=expense.description,
                amount=str(expense.amount),
                category=expense.category.value,
                is_ai_generated=expense.is_ai_generated,
            )
        )
        self._save()
        return expense

    def delete(self, expense_id: str) -> bool:
        """
        Remove an expense by id.

        Returns False (and changes nothing) if the id is unknown.
        """
        expense = self.get(expense_id)
        if expense is None:
            return False

        self._expenses = [e for e in self._expenses if e.id != expense_id]
        self._audit_logger.log(
            AuditEventBuilder.expense_deleted(expense.id, expense.description)
        )
        self._save()
        return True

    def recategorize(self, expense_id: str, new_category: Category) -> bool:
        """
        Apply a human category correction.

        Setting the category it already has is a no-op: no flags change
        and the training set is not touched.

        Returns True if the category changed.
        """
        expense = self.get(expense_id)
        if expense is None or expense.category == new_category:
            return False

        old_category = expense.category
        expense.category = new_category
        expense.user_corrected = True
        expense.feedback_status = FeedbackStatus.UNSET

        self._audit_logger.log(
            AuditEventBuilder.category_corrected(
                expense_id=expense.id,
                description=expense.description,
                old_category=old_category.value,
                new_category=new_category.value,
            )
        )
        self._training_set.upsert(expense.description, new_category)
        self._save()
        return True

    def record_feedback(self, expense_id: str, judgment: FeedbackStatus) -> bool:
        """
        Record a thumbs up (POSITIVE) or thumbs down (NEGATIVE) on the
        AI-suggested category.

        Returns False if the id is unknown.

        Raises:
            ValueError: If judgment is UNSET
        """
        judgment = FeedbackStatus(judgment)
        if judgment == FeedbackStatus.UNSET:
            raise ValueError("Feedback must be positive or negative")

        expense = self.get(expense_id)
        if expense is None:
            return False

        example_added = False
        if judgment == FeedbackStatus.POSITIVE:
            # user_corrected first: the model rejects POSITIVE without it
            expense.user_corrected = True
            expense.feedback_status = FeedbackStatus.POSITIVE
            example_added = self._training_set.add_if_absent(
                expense.description, expense.category
            )
        else:
            expense.feedback_status = FeedbackStatus.NEGATIVE

        self._audit_logger.log(
            AuditEventBuilder.feedback_recorded(
                expense_id=expense.id,
                judgment=judgment.value,
                category=expense.category.value,
                training_example_added=example_added,
            )
        )
        self._save()
        return True

    def _save(self) -> None:
        if self._repository is None:
            return
        try:
            self._repository.save_expenses(self._expenses)
        except StorageError as e:
            self._audit_logger.log_storage_failed("expenses", str(e))
