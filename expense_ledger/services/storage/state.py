"""
In-memory Ledger State

The two collections a store owns, plus a dirty flag. The store never hands
out its current state: readers get a copy from ``snapshot()`` and writers
mutate a copy inside ``apply()``.
"""

from datetime import date
from typing import Optional

from expense_ledger.models.envelope import StoreEnvelope
from expense_ledger.models.expense import LedgerEntry
from expense_ledger.models.recurring import RecurringPattern


class LedgerState:
    """Ledger entries and recurring patterns, in stored order."""

    def __init__(
        self,
        expenses: Optional[list[LedgerEntry]] = None,
        patterns: Optional[list[RecurringPattern]] = None,
    ):
        self.expenses: list[LedgerEntry] = list(expenses or [])
        self.patterns: list[RecurringPattern] = list(patterns or [])
        self.dirty = False

    @classmethod
    def from_envelope(cls, envelope: StoreEnvelope) -> "LedgerState":
        return cls(envelope.expenses, envelope.recurring_patterns)

    def to_envelope(self) -> StoreEnvelope:
        return StoreEnvelope(expenses=self.expenses, recurring_patterns=self.patterns)

    def copy(self) -> "LedgerState":
        """Deep copy; the dirty flag starts clear."""
        return LedgerState(
            [entry.model_copy(deep=True) for entry in self.expenses],
            [pattern.model_copy(deep=True) for pattern in self.patterns],
        )

    def mark_dirty(self) -> None:
        self.dirty = True

    # Lookups

    def find_expense(self, expense_id: str) -> Optional[LedgerEntry]:
        for entry in self.expenses:
            if entry.id == expense_id:
                return entry
        return None

    def find_pattern(self, pattern_id: str) -> Optional[RecurringPattern]:
        for pattern in self.patterns:
            if pattern.id == pattern_id:
                return pattern
        return None

    def occurrence_keys(self) -> set[tuple[str, date]]:
        """``(pattern id, date)`` of every generated entry."""
        return {
            entry.occurrence_key
            for entry in self.expenses
            if entry.occurrence_key is not None
        }

    # Mutations (callers inside ``apply`` only)

    def add_expense(self, entry: LedgerEntry) -> None:
        self.expenses.append(entry)
        self.mark_dirty()

    def remove_expense(self, expense_id: str) -> bool:
        for index, entry in enumerate(self.expenses):
            if entry.id == expense_id:
                del self.expenses[index]
                self.mark_dirty()
                return True
        return False

    def add_pattern(self, pattern: RecurringPattern) -> None:
        self.patterns.append(pattern)
        self.mark_dirty()
