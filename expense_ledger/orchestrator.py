"""
Main Orchestrator for the Expense Ledger

This module ties together all the components and defines the boundary
that request handlers call into.

DESIGN DECISION: The orchestrator enforces the boundaries:
- A sweep runs before every read that exposes ledger, pattern, stats or
  upcoming data, so callers never see an occurrence that should have fired
- The store stays free of hidden side effects; the sweep is explicit here
- Every user action is audited, and the sweep it triggers shares its
  correlation ID

This is the "glue" that ensures the system works correctly even when the
process was down for a while and patterns fell behind.
"""

from datetime import date, datetime
from typing import Callable, Optional, Union
from uuid import UUID

import structlog

from expense_ledger.audit import AuditLogger, configure_logging, create_correlation_id
from expense_ledger.config import Settings, get_settings
from expense_ledger.models.expense import (
    ExpenseFilter,
    ExpenseInput,
    LedgerEntry,
    LedgerStats,
    StatsPeriod,
)
from expense_ledger.models.recurring import (
    RecurringOptions,
    RecurringPattern,
    RecurringPatternInput,
    RecurringPatternUpdate,
    SweepResult,
    UpcomingOccurrence,
)
from expense_ledger.queries import StatsCalculator
from expense_ledger.recurrence import RecurrenceEngine, UpcomingProjector
from expense_ledger.recurrence.engine import DORMANT_END_DATE_REACHED
from expense_ledger.schedule import parse_frequency, utc_now
from expense_ledger.services.storage import JsonFileLedgerStore, LedgerStorageInterface


logger = structlog.get_logger(__name__)

DateLike = Union[date, datetime, None]


class LedgerService:
    """
    Facade over store, engine, projector and stats.

    Reads: sweep first, then delegate.
    Writes: delegate, audit, and sweep after any write that creates or
    changes a pattern so a back-dated pattern materializes immediately.
    """

    def __init__(
        self,
        store: LedgerStorageInterface,
        engine: Optional[RecurrenceEngine] = None,
        projector: Optional[UpcomingProjector] = None,
        stats_calculator: Optional[StatsCalculator] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._clock = clock
        self._engine = engine or RecurrenceEngine(store, audit_logger=audit_logger, clock=clock)
        self._projector = projector or UpcomingProjector(store, clock=clock)
        self._stats = stats_calculator or StatsCalculator(store, clock=clock)

    @property
    def store(self) -> LedgerStorageInterface:
        return self._store

    @property
    def engine(self) -> RecurrenceEngine:
        return self._engine

    @property
    def projector(self) -> UpcomingProjector:
        return self._projector

    def sweep(
        self,
        now: DateLike = None,
        correlation_id: Optional[UUID] = None,
    ) -> SweepResult:
        return self._engine.sweep(now, correlation_id=correlation_id)

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def create_expense(
        self,
        expense: ExpenseInput,
        recurring: Optional[RecurringOptions] = None,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEntry:
        correlation_id = correlation_id or create_correlation_id()

        entry = self._store.create_expense(expense, recurring)

        if self._audit_logger:
            if entry.recurring_pattern_id:
                self._audit_logger.log_pattern_created(
                    pattern_id=entry.recurring_pattern_id,
                    frequency=parse_frequency(recurring.frequency).value,
                    start_date=entry.date.isoformat(),
                    correlation_id=correlation_id,
                )
            self._audit_logger.log_expense_created(
                expense_id=entry.id,
                amount=str(entry.amount),
                category=entry.category,
                recurring_pattern_id=entry.recurring_pattern_id,
                correlation_id=correlation_id,
            )

        if entry.recurring_pattern_id:
            self.sweep(correlation_id=correlation_id)
        return entry

    def get_expense(self, expense_id: str) -> LedgerEntry:
        self.sweep()
        return self._store.get_expense(expense_id)

    def update_expense(
        self,
        expense_id: str,
        expense: ExpenseInput,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerEntry:
        entry = self._store.update_expense(expense_id, expense)

        if self._audit_logger:
            self._audit_logger.log_expense_updated(
                expense_id=entry.id,
                changes=expense.model_dump(mode="json", exclude_none=True),
                correlation_id=correlation_id,
            )
        return entry

    def delete_expense(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self._store.delete_expense(expense_id)

        if self._audit_logger:
            self._audit_logger.log_expense_deleted(
                expense_id=expense_id,
                correlation_id=correlation_id,
            )

    def list_expenses(self, filters: Optional[ExpenseFilter] = None) -> list[LedgerEntry]:
        self.sweep()
        return self._store.list_expenses(filters)

    def stats(
        self,
        period: Union[StatsPeriod, str, None] = None,
        now: DateLike = None,
    ) -> LedgerStats:
        self.sweep(now)
        return self._stats.stats(period, now)

    # -------------------------------------------------------------------------
    # Recurring patterns
    # -------------------------------------------------------------------------

    def create_pattern(
        self,
        pattern: RecurringPatternInput,
        correlation_id: Optional[UUID] = None,
    ) -> RecurringPattern:
        correlation_id = correlation_id or create_correlation_id()

        created = self._store.create_pattern(pattern)

        if self._audit_logger:
            self._audit_logger.log_pattern_created(
                pattern_id=created.id,
                frequency=created.frequency,
                start_date=created.start_date.isoformat(),
                correlation_id=correlation_id,
            )

        self.sweep(correlation_id=correlation_id)
        return self._store.get_pattern(created.id)

    def get_pattern(self, pattern_id: str) -> RecurringPattern:
        self.sweep()
        return self._store.get_pattern(pattern_id)

    def update_pattern(
        self,
        pattern_id: str,
        update: RecurringPatternUpdate,
        correlation_id: Optional[UUID] = None,
    ) -> RecurringPattern:
        correlation_id = correlation_id or create_correlation_id()

        updated, was_active = self._store.apply_pattern_update(pattern_id, update)

        if self._audit_logger:
            self._audit_logger.log_pattern_updated(
                pattern_id=pattern_id,
                changes=update.model_dump(mode="json", exclude_unset=True),
                cursor_reset=update.resets_cursor,
                correlation_id=correlation_id,
            )
            if was_active and not updated.active:
                if update.active is False:
                    self._audit_logger.log_pattern_deactivated(
                        pattern_id=pattern_id,
                        correlation_id=correlation_id,
                    )
                else:
                    self._audit_logger.log_pattern_dormant(
                        pattern_id=pattern_id,
                        reason=DORMANT_END_DATE_REACHED,
                        correlation_id=correlation_id,
                    )

        self.sweep(correlation_id=correlation_id)
        return self._store.get_pattern(pattern_id)

    def deactivate_pattern(
        self,
        pattern_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> RecurringPattern:
        pattern = self._store.deactivate_pattern(pattern_id)

        if self._audit_logger:
            self._audit_logger.log_pattern_deactivated(
                pattern_id=pattern_id,
                correlation_id=correlation_id,
            )
        return pattern

    def list_patterns(self) -> list[RecurringPattern]:
        self.sweep()
        return self._store.list_patterns()

    def upcoming(
        self,
        horizon_days: Optional[int] = None,
        now: DateLike = None,
    ) -> list[UpcomingOccurrence]:
        # Validate the horizon before paying for a sweep
        self._projector.resolve_horizon(horizon_days)
        self.sweep(now)
        return self._projector.upcoming(now, horizon_days)


def create_app_components(
    settings: Optional[Settings] = None,
    clock: Callable[[], datetime] = utc_now,
    audit_sink: Optional[list] = None,
) -> LedgerService:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use (default: ``get_settings()``)
        clock: Source of "now" for every component
        audit_sink: Optional list that receives every audit event

    Returns:
        The LedgerService facade, after the startup sweep if enabled

    Raises:
        CorruptDataError: The ledger file cannot be parsed
        StorageError: The ledger file cannot be read or written
    """
    settings = settings or get_settings()
    app_settings = settings.app
    recurrence_settings = settings.recurrence

    configure_logging(level=app_settings.log_level, json_output=app_settings.log_json)

    audit_logger = AuditLogger(sink=audit_sink)
    store = JsonFileLedgerStore(
        settings.storage.data_file,
        audit_logger=audit_logger,
        clock=clock,
    )

    service = LedgerService(
        store=store,
        engine=RecurrenceEngine(store, audit_logger=audit_logger, clock=clock),
        projector=UpcomingProjector(
            store,
            clock=clock,
            default_horizon_days=recurrence_settings.default_upcoming_days,
            max_horizon_days=recurrence_settings.max_upcoming_days,
        ),
        stats_calculator=StatsCalculator(
            store,
            clock=clock,
            default_period=StatsPeriod.parse(app_settings.default_stats_period),
        ),
        audit_logger=audit_logger,
        clock=clock,
    )

    if recurrence_settings.sweep_on_startup:
        result = service.sweep()
        logger.info(
            "startup_sweep_completed",
            generated=result.generated,
            deactivated=len(result.patterns_deactivated),
        )

    return service
