"""Expense ledger package."""

from spendsmart.ledger.ledger import (
    EmptyDescriptionError,
    ExpenseLedger,
    InvalidAmountError,
    LedgerError,
    parse_amount,
)

__all__ = [
    "EmptyDescriptionError",
    "ExpenseLedger",
    "InvalidAmountError",
    "LedgerError",
    "parse_amount",
]
