"""
Recurrence Engine

DESIGN DECISION: Idempotency is checked against the ledger itself, not
against the cursor. An occurrence ``(pattern id, date)`` is generated only
if no entry with that key exists, so repeated, overlapping or out-of-order
sweeps never duplicate entries, and a partially applied sweep is safe to
resume.

A sweep runs entirely inside one ``store.apply`` call:
- one exclusive lock for the whole catch-up
- one atomic write for all new entries and cursor moves
- a failed write leaves the ledger exactly as it was before the sweep

Patterns move Active -> Dormant when their frequency cannot be parsed or
their cursor passes ``end_date``. Dormant is terminal.
"""

from datetime import date, datetime
from typing import Callable, Optional, Union
from uuid import UUID

import structlog

from expense_ledger.audit.logger import AuditLogger, create_correlation_id
from expense_ledger.models.expense import LedgerEntry
from expense_ledger.models.recurring import RecurringPattern, SweepResult
from expense_ledger.schedule import (
    UnsupportedFrequencyError,
    advance,
    parse_frequency,
    to_calendar_date,
    utc_now,
)
from expense_ledger.services.storage.interface import LedgerStorageInterface, StorageError
from expense_ledger.services.storage.state import LedgerState


logger = structlog.get_logger(__name__)

DORMANT_UNSUPPORTED_FREQUENCY = "unsupported_frequency"
DORMANT_END_DATE_REACHED = "end_date_reached"


def _retire(pattern: RecurringPattern, reason: str, dormant: dict[str, str]) -> None:
    pattern.active = False
    dormant[pattern.id] = reason


def sweep_state(
    state: LedgerState,
    today: date,
    now: Optional[datetime] = None,
) -> tuple[SweepResult, dict[str, str]]:
    """
    Generate every occurrence due on or before ``today``.

    Mutates ``state`` in place and marks it dirty if anything changed.

    Returns:
        The sweep summary and ``{pattern id: reason}`` for every pattern
        that went Dormant during this sweep
    """
    now = now or utc_now()
    occurrences = state.occurrence_keys()

    generated = 0
    skipped_existing = 0
    advanced: list[str] = []
    dormant: dict[str, str] = {}

    for pattern in state.patterns:
        if not pattern.active:
            continue

        try:
            frequency = parse_frequency(pattern.frequency)
        except UnsupportedFrequencyError:
            logger.warning(
                "pattern_frequency_unsupported",
                pattern_id=pattern.id,
                frequency=pattern.frequency,
            )
            _retire(pattern, DORMANT_UNSUPPORTED_FREQUENCY, dormant)
            pattern.updated_at = now
            continue

        original_cursor = pattern.next_run_date
        cursor = pattern.cursor
        anchor_day = pattern.anchor_day

        while cursor <= today:
            if pattern.is_past_end(cursor):
                break

            key = (pattern.id, cursor)
            if key in occurrences:
                skipped_existing += 1
            else:
                state.add_expense(LedgerEntry(
                    amount=pattern.amount,
                    category=pattern.category,
                    note=pattern.note,
                    date=cursor,
                    created_at=now,
                    recurring_pattern_id=pattern.id,
                ))
                occurrences.add(key)
                generated += 1

            cursor = advance(cursor, frequency, anchor_day)

        if cursor != original_cursor:
            pattern.next_run_date = cursor
            pattern.updated_at = now
            advanced.append(pattern.id)

        if pattern.is_past_end(cursor):
            _retire(pattern, DORMANT_END_DATE_REACHED, dormant)
            pattern.updated_at = now

    if advanced or dormant:
        state.mark_dirty()

    result = SweepResult(
        swept_through=today,
        generated=generated,
        skipped_existing=skipped_existing,
        patterns_advanced=advanced,
        patterns_deactivated=list(dormant),
        completed_at=now,
    )
    return result, dormant


class RecurrenceEngine:
    """
    Catches the ledger up with its recurring patterns.

    The engine owns no state: it works on whatever store it is given, so
    tests can hand it a store backed by a temporary file.
    """

    def __init__(
        self,
        store: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._audit = audit_logger
        self._clock = clock

    def sweep(
        self,
        now: Union[date, datetime, None] = None,
        correlation_id: Optional[UUID] = None,
    ) -> SweepResult:
        """
        Generate all occurrences due on or before ``now`` (default: clock).

        Raises:
            StorageError: If the sweep could not be persisted; nothing from
                this sweep is kept
        """
        today = to_calendar_date(now, clock=self._clock)
        correlation_id = correlation_id or create_correlation_id()
        stamp = self._clock()

        try:
            result, dormant = self._store.apply(lambda state: sweep_state(state, today, stamp))
        except StorageError as e:
            logger.error("sweep_failed", swept_through=today.isoformat(), error=str(e))
            if self._audit:
                self._audit.log_sweep_failed(
                    swept_through=today.isoformat(),
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if result.changed:
            logger.info(
                "sweep_completed",
                swept_through=today.isoformat(),
                generated=result.generated,
                skipped_existing=result.skipped_existing,
                advanced=len(result.patterns_advanced),
                deactivated=len(result.patterns_deactivated),
            )
            if self._audit:
                for pattern_id, reason in dormant.items():
                    self._audit.log_pattern_dormant(
                        pattern_id=pattern_id,
                        reason=reason,
                        correlation_id=correlation_id,
                    )
                self._audit.log_sweep_completed(
                    swept_through=today.isoformat(),
                    generated=result.generated,
                    skipped_existing=result.skipped_existing,
                    deactivated=result.patterns_deactivated,
                    correlation_id=correlation_id,
                )

        return result
