"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON file holds the whole ledger because:
1. A personal ledger is small enough to rewrite on every change
2. The file is human-readable and trivially backed up
3. Atomic rename gives us crash safety without a database

TRADEOFFS:
- Every write rewrites the whole file (fine at single-user scale)
- One process owns the file; external edits while running are not detected
- Filtering happens in Python

Write path: mutations run on a copy of the state under the exclusive
lock. The copy is serialized to ``<file>.tmp`` in the same directory and
renamed over the real file. Only after the rename succeeds does the copy
become the current state, so a failed persist changes nothing.
"""

import contextlib
import os
from pathlib import Path
from typing import Callable, Optional, TypeVar, Union

import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from expense_ledger.audit.logger import AuditLogger
from expense_ledger.models.envelope import (
    CorruptLedgerDocument,
    LegacyLedger,
    parse_ledger_document,
)
from expense_ledger.models.expense import ExpenseFilter, ExpenseInput, LedgerEntry
from expense_ledger.models.recurring import (
    RecurringOptions,
    RecurringPattern,
    RecurringPatternInput,
    RecurringPatternUpdate,
)
from expense_ledger.schedule import to_calendar_date, utc_now
from expense_ledger.services.storage.interface import (
    CorruptDataError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from expense_ledger.services.storage.locking import ReadWriteLock
from expense_ledger.services.storage.state import LedgerState
from expense_ledger.validation.validator import LedgerValidator


logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _require_expense(state: LedgerState, expense_id: str) -> LedgerEntry:
    entry = state.find_expense(expense_id)
    if entry is None:
        raise NotFoundError(f"Expense not found: {expense_id}")
    return entry


def _require_pattern(state: LedgerState, pattern_id: str) -> RecurringPattern:
    pattern = state.find_pattern(pattern_id)
    if pattern is None:
        raise NotFoundError(f"Recurring pattern not found: {pattern_id}")
    return pattern


class JsonFileLedgerStore(LedgerStorageInterface):
    """
    JSON file implementation of ledger storage.

    The file is loaded once, in the constructor. A missing file is created
    empty; a legacy (bare array) or older-version file is re-persisted in
    the current envelope straight away.

    Raises (constructor):
        CorruptDataError: The file exists but cannot be parsed
        StorageError: The file cannot be read or the initial write fails
    """

    def __init__(
        self,
        path: Union[str, Path],
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable = utc_now,
        validator: Optional[LedgerValidator] = None,
    ):
        self._path = Path(path)
        self._audit = audit_logger
        self._clock = clock
        self._validator = validator or LedgerValidator()
        self._lock = ReadWriteLock()
        self._state = self._load()

    @property
    def path(self) -> Path:
        return self._path

    # -------------------------------------------------------------------------
    # Load / persist
    # -------------------------------------------------------------------------

    def _load(self) -> LedgerState:
        if not self._path.exists():
            state = LedgerState()
            self._persist(state, operation="create")
            logger.info("ledger_created", path=str(self._path))
            return state

        try:
            raw = self._path.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read ledger file {self._path}: {exc}") from exc

        try:
            document = parse_ledger_document(raw)
        except CorruptLedgerDocument as exc:
            logger.error("ledger_corrupt", path=str(self._path), error=str(exc))
            raise CorruptDataError(f"{self._path}: {exc}") from exc

        envelope = document.to_envelope() if isinstance(document, LegacyLedger) else document
        state = LedgerState.from_envelope(envelope)

        if document.needs_migration:
            self._persist(state, operation="migrate")
            logger.info(
                "legacy_ledger_migrated",
                path=str(self._path),
                from_version=document.version,
                expenses=len(state.expenses),
            )
            if self._audit:
                self._audit.log_ledger_migrated(
                    path=str(self._path),
                    from_version=document.version,
                    expense_count=len(state.expenses),
                )

        logger.info(
            "ledger_loaded",
            path=str(self._path),
            expenses=len(state.expenses),
            patterns=len(state.patterns),
        )
        return state

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, max=1),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )
    def _write_atomic(self, payload: str) -> None:
        """Write to a temp file next to the ledger, then rename over it."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")

        try:
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, self._path)
        except Exception:
            with contextlib.suppress(FileNotFoundError):
                tmp.unlink()
            raise

    def _persist(self, state: LedgerState, operation: str = "write") -> None:
        try:
            self._write_atomic(state.to_envelope().to_json())
        except (OSError, ValueError) as exc:
            logger.error(
                "persist_failed",
                path=str(self._path),
                operation=operation,
                error=str(exc),
            )
            if self._audit:
                self._audit.log_storage_error(operation=operation, error_message=str(exc))
            raise StorageError(f"Failed to persist ledger: {exc}") from exc

        logger.debug(
            "ledger_persisted",
            path=str(self._path),
            operation=operation,
            expenses=len(state.expenses),
            patterns=len(state.patterns),
        )

    # -------------------------------------------------------------------------
    # Whole-state access
    # -------------------------------------------------------------------------

    def snapshot(self) -> LedgerState:
        with self._lock.read():
            return self._state.copy()

    def apply(self, mutation: Callable[[LedgerState], T]) -> T:
        with self._lock.write():
            working = self._state.copy()
            result = mutation(working)
            if working.dirty:
                self._persist(working)
                working.dirty = False
                self._state = working
            return result

    # -------------------------------------------------------------------------
    # Ledger entries
    # -------------------------------------------------------------------------

    def create_expense(
        self,
        expense: ExpenseInput,
        recurring: Optional[RecurringOptions] = None,
    ) -> LedgerEntry:
        self._validator.ensure_valid_expense(expense)
        now = self._clock()
        entry_date = expense.date or to_calendar_date(now)

        frequency = None
        if recurring is not None:
            frequency = self._validator.ensure_valid_recurring_options(recurring, entry_date)

        def mutation(state: LedgerState) -> LedgerEntry:
            pattern_id = None
            if frequency is not None:
                # The entry is the first occurrence; the sweep will see it and skip.
                pattern = RecurringPattern(
                    amount=expense.amount,
                    category=expense.category,
                    note=expense.note,
                    frequency=frequency,
                    start_date=entry_date,
                    next_run_date=entry_date,
                    end_date=recurring.end_date,
                    created_at=now,
                    updated_at=now,
                )
                state.add_pattern(pattern)
                pattern_id = pattern.id

            entry = LedgerEntry(
                amount=expense.amount,
                category=expense.category,
                note=expense.note,
                date=entry_date,
                created_at=now,
                recurring_pattern_id=pattern_id,
            )
            state.add_expense(entry)
            return entry.model_copy(deep=True)

        return self.apply(mutation)

    def get_expense(self, expense_id: str) -> LedgerEntry:
        with self._lock.read():
            return _require_expense(self._state, expense_id).model_copy(deep=True)

    def update_expense(self, expense_id: str, expense: ExpenseInput) -> LedgerEntry:
        self._validator.ensure_valid_expense(expense)

        def mutation(state: LedgerState) -> LedgerEntry:
            entry = _require_expense(state, expense_id)
            entry.amount = expense.amount
            entry.category = expense.category
            entry.note = expense.note
            if expense.date is not None:
                entry.date = expense.date
            state.mark_dirty()
            return entry.model_copy(deep=True)

        return self.apply(mutation)

    def delete_expense(self, expense_id: str) -> None:
        def mutation(state: LedgerState) -> None:
            if not state.remove_expense(expense_id):
                raise NotFoundError(f"Expense not found: {expense_id}")

        self.apply(mutation)

    def list_expenses(self, filters: Optional[ExpenseFilter] = None) -> list[LedgerEntry]:
        with self._lock.read():
            entries = [
                entry.model_copy(deep=True)
                for entry in self._state.expenses
                if filters is None or filters.matches(entry)
            ]

        # Sort by date descending (newest first); sort is stable
        entries.sort(key=lambda e: e.date, reverse=True)
        return entries

    # -------------------------------------------------------------------------
    # Recurring patterns
    # -------------------------------------------------------------------------

    def create_pattern(self, pattern: RecurringPatternInput) -> RecurringPattern:
        now = self._clock()
        start_date = pattern.start_date or to_calendar_date(now)
        frequency = self._validator.ensure_valid_new_pattern(pattern, start_date)

        def mutation(state: LedgerState) -> RecurringPattern:
            created = RecurringPattern(
                amount=pattern.amount,
                category=pattern.category,
                note=pattern.note,
                frequency=frequency,
                start_date=start_date,
                next_run_date=start_date,
                end_date=pattern.end_date,
                created_at=now,
                updated_at=now,
            )
            state.add_pattern(created)
            return created.model_copy(deep=True)

        return self.apply(mutation)

    def get_pattern(self, pattern_id: str) -> RecurringPattern:
        with self._lock.read():
            return _require_pattern(self._state, pattern_id).model_copy(deep=True)

    def apply_pattern_update(
        self,
        pattern_id: str,
        update: RecurringPatternUpdate,
    ) -> tuple[RecurringPattern, bool]:
        now = self._clock()

        def mutation(state: LedgerState) -> tuple[RecurringPattern, bool]:
            pattern = _require_pattern(state, pattern_id)
            was_active = pattern.active
            frequency = self._validator.ensure_valid_update(pattern, update)

            if update.amount is not None:
                pattern.amount = update.amount
            if update.category is not None:
                pattern.category = update.category
            if update.note is not None:
                pattern.note = update.note
            if frequency is not None:
                pattern.frequency = frequency
            if update.start_date is not None:
                pattern.start_date = update.start_date
            if update.clears_end_date:
                pattern.end_date = None
            elif update.end_date is not None:
                pattern.end_date = update.end_date

            if update.resets_cursor:
                pattern.next_run_date = pattern.start_date

            if update.active is False:
                pattern.active = False
            elif pattern.active and pattern.is_past_end(pattern.cursor):
                pattern.active = False
                logger.info("pattern_dormant", pattern_id=pattern.id, reason="end_date_reached")

            pattern.updated_at = now
            state.mark_dirty()
            return pattern.model_copy(deep=True), was_active

        return self.apply(mutation)

    def deactivate_pattern(self, pattern_id: str) -> RecurringPattern:
        now = self._clock()

        def mutation(state: LedgerState) -> RecurringPattern:
            pattern = _require_pattern(state, pattern_id)
            if pattern.active:
                pattern.active = False
                pattern.updated_at = now
                state.mark_dirty()
            return pattern.model_copy(deep=True)

        return self.apply(mutation)

    def list_patterns(self) -> list[RecurringPattern]:
        with self._lock.read():
            patterns = [pattern.model_copy(deep=True) for pattern in self._state.patterns]

        patterns.sort(key=lambda p: p.created_at, reverse=True)
        return patterns
