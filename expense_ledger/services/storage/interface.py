"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for ledger storage.
This allows us to:
1. Keep the recurrence engine and projector decoupled from the file format
2. Hand the engine an injectable state owner instead of a global
3. Swap the JSON file for a database later without touching business logic

The interface is intentionally small - we're not building a full ORM.
Just the ledger and pattern operations, plus ``snapshot``/``apply`` for
components that work on the whole state at once (the engine, the projector).
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional, TypeVar

from expense_ledger.models.expense import ExpenseFilter, ExpenseInput, LedgerEntry
from expense_ledger.models.recurring import (
    RecurringOptions,
    RecurringPattern,
    RecurringPatternInput,
    RecurringPatternUpdate,
)
from expense_ledger.services.storage.state import LedgerState


T = TypeVar("T")


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Every mutating method is atomic: either the change reaches the backing
    store, or neither memory nor the backing store changes.
    """

    # -------------------------------------------------------------------------
    # Whole-state access
    # -------------------------------------------------------------------------

    @abstractmethod
    def snapshot(self) -> LedgerState:
        """
        Return an independent copy of the current state.

        Taken under the shared lock; mutating it has no effect on the store.
        """
        pass

    @abstractmethod
    def apply(self, mutation: Callable[[LedgerState], T]) -> T:
        """
        Run ``mutation`` against the state under the exclusive lock.

        The mutation works on a copy. If it marks the copy dirty, the copy is
        persisted and only then becomes the current state.

        Raises:
            StorageError: If persisting fails (current state is unchanged)
        """
        pass

    # -------------------------------------------------------------------------
    # Ledger entries
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_expense(
        self,
        expense: ExpenseInput,
        recurring: Optional[RecurringOptions] = None,
    ) -> LedgerEntry:
        """
        Create a ledger entry.

        Args:
            expense: Amount, category, note and date (defaults to today)
            recurring: When given, a pattern starting on the entry's date is
                created in the same write and the entry is its first occurrence

        Raises:
            InvalidExpenseError: If the amount is not positive
            InvalidPatternError: If the recurrence options are invalid
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def get_expense(self, expense_id: str) -> LedgerEntry:
        """
        Raises:
            NotFoundError: If no entry has this ID
        """
        pass

    @abstractmethod
    def update_expense(self, expense_id: str, expense: ExpenseInput) -> LedgerEntry:
        """
        Replace amount, category and note; replace the date only if given.

        Raises:
            NotFoundError: If no entry has this ID
            InvalidExpenseError: If the amount is not positive
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete_expense(self, expense_id: str) -> None:
        """
        Raises:
            NotFoundError: If no entry has this ID
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def list_expenses(self, filters: Optional[ExpenseFilter] = None) -> list[LedgerEntry]:
        """
        List entries, newest date first.

        Entries on the same date keep their stored order.
        """
        pass

    # -------------------------------------------------------------------------
    # Recurring patterns
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_pattern(self, pattern: RecurringPatternInput) -> RecurringPattern:
        """
        Raises:
            InvalidPatternError: Unsupported frequency, non-positive amount,
                or end date before start date
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def get_pattern(self, pattern_id: str) -> RecurringPattern:
        """
        Raises:
            NotFoundError: If no pattern has this ID
        """
        pass

    @abstractmethod
    def apply_pattern_update(
        self,
        pattern_id: str,
        update: RecurringPatternUpdate,
    ) -> tuple[RecurringPattern, bool]:
        """
        Apply a partial update.

        Changing frequency or start date resets the cursor to the start date.

        Returns:
            The updated pattern, and whether it was active before the
            update (read inside the same write)

        Raises:
            NotFoundError: If no pattern has this ID
            InvalidPatternError: If the resulting pattern would be invalid
            StorageError: If the write fails
        """
        pass

    def update_pattern(
        self,
        pattern_id: str,
        update: RecurringPatternUpdate,
    ) -> RecurringPattern:
        """``apply_pattern_update`` without the previous state."""
        updated, _ = self.apply_pattern_update(pattern_id, update)
        return updated

    @abstractmethod
    def deactivate_pattern(self, pattern_id: str) -> RecurringPattern:
        """
        Soft delete: the pattern becomes Dormant, generated entries stay.

        Raises:
            NotFoundError: If no pattern has this ID
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def list_patterns(self) -> list[RecurringPattern]:
        """List patterns, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class CorruptDataError(StorageError):
    """The backing file cannot be parsed. Fatal at startup."""
    pass
