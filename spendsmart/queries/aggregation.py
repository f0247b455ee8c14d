"""
Aggregation Views

DESIGN DECISION: Aggregations are PURE functions over a ledger snapshot.
Nothing here is stored; every view is recomputed from the expenses it
is given, so it can never drift out of sync with the ledger.

All sums are exact Decimal arithmetic.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from enum import Enum
from operator import attrgetter
from typing import Optional

from pydantic import BaseModel

from spendsmart.models.expense import Category, Expense
from spendsmart.models.preferences import CategoryColorMap


ZERO = Decimal("0")


class SortKey(str, Enum):
    """Orderings offered by the history view."""
    DATE_ASC = "date-asc"
    DATE_DESC = "date-desc"
    AMOUNT_ASC = "amount-asc"
    AMOUNT_DESC = "amount-desc"


class CategorySlice(BaseModel):
    """One slice of the spending-by-category chart."""

    category: Category
    total: Decimal
    share: float
    color: str


def grand_total(expenses: Iterable[Expense]) -> Decimal:
    """Sum of all amounts. Zero for no expenses."""
    return sum((expense.amount for expense in expenses), ZERO)


def totals_by_category(expenses: Iterable[Expense]) -> dict[Category, Decimal]:
    """
    Sum of amounts per category.

    Only categories with at least one expense appear, in order of first
    appearance in the ledger.
    """
    totals: dict[Category, Decimal] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, ZERO) + expense.amount
    return totals


def average_amount(expenses: Iterable[Expense]) -> Decimal:
    """Mean amount. Zero for no expenses."""
    amounts = [expense.amount for expense in expenses]
    if not amounts:
        return ZERO
    return sum(amounts, ZERO) / len(amounts)


def date_span(expenses: Iterable[Expense]) -> Optional[tuple[date, date]]:
    """(earliest, latest) expense date, or None for no expenses."""
    dates = [expense.date for expense in expenses]
    if not dates:
        return None
    return min(dates), max(dates)


def recent_expenses(expenses: Iterable[Expense], limit: int = 10) -> list[Expense]:
    """The last ``limit`` expenses added, newest first."""
    if limit < 0:
        raise ValueError("limit must not be negative")
    return list(reversed(list(expenses)))[:limit]


def filter_expenses(
    expenses: Iterable[Expense],
    text_query: Optional[str] = None,
    category: Optional[Category] = None,
) -> list[Expense]:
    """
    Expenses matching every filter that is given.

    text_query: case-insensitive substring of the description.
                None or blank matches everything.
    category:   exact category. None matches everything.
    """
    needle = (text_query or "").strip().casefold()
    matched = []
    for expense in expenses:
        if needle and needle not in expense.description.casefold():
            continue
        if category is not None and expense.category != category:
            continue
        matched.append(expense)
    return matched


def sort_expenses(expenses: Iterable[Expense], key: SortKey) -> list[Expense]:
    """
    Expenses in the requested order.

    The sort is stable in both directions: expenses that tie keep their
    ledger order whether sorting ascending or descending.
    """
    key = SortKey(key)
    if key in (SortKey.DATE_ASC, SortKey.DATE_DESC):
        sort_key = attrgetter("date")
    else:
        sort_key = attrgetter("amount")
    reverse = key in (SortKey.DATE_DESC, SortKey.AMOUNT_DESC)
    # sorted() keeps equal elements in input order even with reverse=True
    return sorted(expenses, key=sort_key, reverse=reverse)


def category_breakdown(
    expenses: Iterable[Expense],
    colors: Optional[CategoryColorMap] = None,
) -> list[CategorySlice]:
    """
    Per-category totals with their share of the grand total and chart color.

    Ordered like totals_by_category.
    """
    colors = colors or CategoryColorMap()
    totals = totals_by_category(expenses)
    overall = sum(totals.values(), ZERO)

    slices = []
    for category, total in totals.items():
        share = float(total / overall) if overall else 0.0
        slices.append(
            CategorySlice(
                category=category,
                total=total,
                share=share,
                color=colors.color_for(category),
            )
        )
    return slices
