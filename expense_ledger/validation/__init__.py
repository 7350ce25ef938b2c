"""Input validation package."""

from expense_ledger.validation.validator import (
    InvalidExpenseError,
    InvalidPatternError,
    LedgerValidationError,
    LedgerValidator,
)

__all__ = [
    "InvalidExpenseError",
    "InvalidPatternError",
    "LedgerValidationError",
    "LedgerValidator",
]
