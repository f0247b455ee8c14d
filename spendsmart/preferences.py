"""
Display Preferences

Holds the category color map and the selected currency. Both are
display-only and saved as their own documents whenever they change.
"""

from typing import Optional

from spendsmart.audit import AuditLogger
from spendsmart.models.audit import AuditEventBuilder
from spendsmart.models.expense import Category
from spendsmart.models.preferences import (
    CURRENCIES,
    DEFAULT_CURRENCY,
    CategoryColorMap,
    Currency,
    find_currency,
)
from spendsmart.services.storage import AppStateRepository, StorageError


class UnknownCurrencyError(ValueError):
    """Currency code is not in the catalog."""
    pass


class PreferencesManager:
    """Current color map and currency, saved on every change."""

    def __init__(
        self,
        repository: Optional[AppStateRepository] = None,
        category_colors: Optional[CategoryColorMap] = None,
        currency: Optional[Currency] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._category_colors = category_colors or CategoryColorMap()
        self._currency = currency or DEFAULT_CURRENCY
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def category_colors(self) -> CategoryColorMap:
        return self._category_colors

    @property
    def currency(self) -> Currency:
        return self._currency

    @property
    def available_currencies(self) -> tuple[Currency, ...]:
        return CURRENCIES

    def update_category_color(self, category: Category, color: str) -> CategoryColorMap:
        """
        Recolor one category.

        Raises:
            ValueError: If color is not #RRGGBB
        """
        self._category_colors = self._category_colors.with_color(category, color)
        self._audit_logger.log(
            AuditEventBuilder.preferences_updated(
                f"color:{Category(category).value}",
                self._category_colors.color_for(category),
            )
        )
        if self._repository is not None:
            try:
                self._repository.save_category_colors(self._category_colors)
            except StorageError as e:
                self._audit_logger.log_storage_failed("colors", str(e))
        return self._category_colors

    def update_currency(self, code: str) -> Currency:
        """
        Switch the display currency.

        Raises:
            UnknownCurrencyError: If code is not in the catalog
        """
        currency = find_currency(code)
        if currency is None:
            raise UnknownCurrencyError(f"Unknown currency: {code!r}")

        self._currency = currency
        self._audit_logger.log(
            AuditEventBuilder.preferences_updated("currency", currency.code)
        )
        if self._repository is not None:
            try:
                self._repository.save_currency(currency)
            except StorageError as e:
                self._audit_logger.log_storage_failed("currency", str(e))
        return currency

    def format_amount(self, amount) -> str:
        """Format an amount in the selected currency."""
        return self._currency.format_amount(amount)
