"""
App State Repository

Typed access to the four documents the app persists:

    <prefix>expenses   JSON list of expenses, in ledger order
    <prefix>training   JSON list of training examples, oldest first
    <prefix>colors     JSON object of category -> color
    <prefix>currency   bare currency code, e.g. "USD"

DESIGN DECISION: Reading is strict. A document that exists but cannot
be parsed raises CorruptDocumentError instead of silently starting
from an empty ledger and overwriting the user's data on the next save.
The one exception is an unknown currency code, which only affects
display and falls back to the default currency.
"""

import json
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from spendsmart.models.expense import Expense, TrainingExample
from spendsmart.models.preferences import (
    DEFAULT_CURRENCY,
    CategoryColorMap,
    Currency,
    find_currency,
)
from spendsmart.services.storage.interface import (
    CorruptDocumentError,
    DocumentStoreInterface,
)


EXPENSES_DOCUMENT = "expenses"
TRAINING_DOCUMENT = "training"
COLORS_DOCUMENT = "colors"
CURRENCY_DOCUMENT = "currency"

_expense_list = TypeAdapter(list[Expense])
_training_list = TypeAdapter(list[TrainingExample])


class AppStateRepository:
    """Serializes app state to and from a document store."""

    def __init__(
        self,
        store: DocumentStoreInterface,
        key_prefix: str = "smarttrack_",
    ):
        self._store = store
        self._key_prefix = key_prefix

    @property
    def store(self) -> DocumentStoreInterface:
        return self._store

    def key_for(self, document: str) -> str:
        return f"{self._key_prefix}{document}"

    def _load(self, document: str) -> Optional[str]:
        return self._store.load(self.key_for(document))

    def _save(self, document: str, blob: str) -> None:
        self._store.save(self.key_for(document), blob)

    # -- expenses ---------------------------------------------------------

    def load_expenses(self) -> list[Expense]:
        blob = self._load(EXPENSES_DOCUMENT)
        if blob is None:
            return []
        try:
            return _expense_list.validate_json(blob)
        except ValidationError as e:
            raise CorruptDocumentError(self.key_for(EXPENSES_DOCUMENT), str(e))

    def save_expenses(self, expenses: list[Expense]) -> None:
        blob = _expense_list.dump_json(expenses, by_alias=True).decode("utf-8")
        self._save(EXPENSES_DOCUMENT, blob)

    # -- training set -----------------------------------------------------

    def load_training_examples(self) -> list[TrainingExample]:
        blob = self._load(TRAINING_DOCUMENT)
        if blob is None:
            return []
        try:
            return _training_list.validate_json(blob)
        except ValidationError as e:
            raise CorruptDocumentError(self.key_for(TRAINING_DOCUMENT), str(e))

    def save_training_examples(self, examples: list[TrainingExample]) -> None:
        blob = _training_list.dump_json(examples, by_alias=True).decode("utf-8")
        self._save(TRAINING_DOCUMENT, blob)

    # -- preferences ------------------------------------------------------

    def load_category_colors(self) -> CategoryColorMap:
        blob = self._load(COLORS_DOCUMENT)
        if blob is None:
            return CategoryColorMap()
        try:
            return CategoryColorMap(colors=json.loads(blob))
        except (ValueError, ValidationError) as e:
            raise CorruptDocumentError(self.key_for(COLORS_DOCUMENT), str(e))

    def save_category_colors(self, colors: CategoryColorMap) -> None:
        blob = json.dumps(
            {category.value: color for category, color in colors.colors.items()},
            ensure_ascii=False,
        )
        self._save(COLORS_DOCUMENT, blob)

    def load_currency(self, default: Currency = DEFAULT_CURRENCY) -> Currency:
        code = self._load(CURRENCY_DOCUMENT)
        return find_currency(code) or default

    def save_currency(self, currency: Currency) -> None:
        self._save(CURRENCY_DOCUMENT, currency.code)
