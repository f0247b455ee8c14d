"""Aggregation views package."""

from spendsmart.queries.aggregation import (
    CategorySlice,
    SortKey,
    average_amount,
    category_breakdown,
    date_span,
    filter_expenses,
    grand_total,
    recent_expenses,
    sort_expenses,
    totals_by_category,
)

__all__ = [
    "CategorySlice",
    "SortKey",
    "average_amount",
    "category_breakdown",
    "date_span",
    "filter_expenses",
    "grand_total",
    "recent_expenses",
    "sort_expenses",
    "totals_by_category",
]
