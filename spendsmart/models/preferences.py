"""
Display Preference Models

Currency and category colors only affect how amounts and charts are
shown. Neither is stored per expense and neither changes any arithmetic.
"""

import re
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from spendsmart.models.expense import Category


class Currency(BaseModel):
    """A display currency from the fixed catalog."""
    model_config = ConfigDict(frozen=True)

    code: str = Field(..., min_length=3, max_length=3)
    symbol: str = Field(..., min_length=1)
    label: str

    def format_amount(self, amount: Decimal) -> str:
        """Format like the dashboard does: symbol, thousands separators, 2 decimals."""
        return f"{self.symbol}{Decimal(amount):,.2f}"


CURRENCIES: tuple[Currency, ...] = (
    Currency(code="USD", symbol="$", label="US Dollar"),
    Currency(code="EUR", symbol="€", label="Euro"),
    Currency(code="GBP", symbol="£", label="British Pound"),
    Currency(code="JPY", symbol="¥", label="Japanese Yen"),
    Currency(code="PLN", symbol="zł", label="Polish Złoty"),
    Currency(code="INR", symbol="₹", label="Indian Rupee"),
    Currency(code="CAD", symbol="C$", label="Canadian Dollar"),
    Currency(code="AUD", symbol="A$", label="Australian Dollar"),
)

DEFAULT_CURRENCY = CURRENCIES[0]


def find_currency(code: Optional[str]) -> Optional[Currency]:
    """Look up a catalog currency by its ISO code (case-insensitive)."""
    if not code:
        return None
    wanted = code.strip().upper()
    for currency in CURRENCIES:
        if currency.code == wanted:
            return currency
    return None


DEFAULT_CATEGORY_COLORS: dict[Category, str] = {
    Category.FOOD_AND_DINING: "#F87171",
    Category.SHOPPING: "#60A5FA",
    Category.TRANSPORT: "#34D399",
    Category.BILLS_AND_UTILITIES: "#FBBF24",
    Category.ENTERTAINMENT: "#A78BFA",
    Category.HEALTH: "#F472B6",
    Category.TRAVEL: "#2DD4BF",
    Category.EDUCATION: "#FB923C",
    Category.OTHERS: "#94A3B8",
}


class CategoryColorMap(BaseModel):
    """
    Color for every category.

    DESIGN DECISION: The map is always total. Missing entries are filled
    from the default palette when the map is built, so renderers never
    have to handle a category without a color.
    """
    model_config = ConfigDict(frozen=True)

    colors: dict[Category, str] = Field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_COLORS)
    )

    @field_validator("colors")
    @classmethod
    def fill_and_validate(cls, v: dict[Category, str]) -> dict[Category, str]:
        """Fill gaps from the defaults and normalize every color."""
        merged = {}
        for category in Category:
            merged[category] = _normalize_color(
                v.get(category, DEFAULT_CATEGORY_COLORS[category])
            )
        return merged

    def color_for(self, category: Category) -> str:
        return self.colors[category]

    def with_color(self, category: Category, color: str) -> "CategoryColorMap":
        """Return a copy with one category recolored."""
        updated = dict(self.colors)
        updated[category] = color
        return CategoryColorMap(colors=updated)


_HEX_COLOR = re.compile(r"#[0-9A-Fa-f]{6}")


def _normalize_color(value: str) -> str:
    color = value.strip()
    if not _HEX_COLOR.fullmatch(color):
        raise ValueError(f"Invalid color {value!r}: expected #RRGGBB")
    return color.upper()
