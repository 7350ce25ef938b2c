"""
Upcoming-Occurrence Projector

A read-only preview of what future sweeps will generate. It walks copies
of the pattern cursors forward and never writes: no entries are created,
no cursor moves, and a pattern with a bad frequency is skipped rather
than retired (retiring is the engine's job).
"""

from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional, Union

from expense_ledger.models.recurring import RecurringPattern, UpcomingOccurrence
from expense_ledger.schedule import (
    UnsupportedFrequencyError,
    advance,
    parse_frequency,
    to_calendar_date,
    utc_now,
)
from expense_ledger.services.storage.interface import LedgerStorageInterface


DEFAULT_HORIZON_DAYS = 30
MAX_HORIZON_DAYS = 365


def project_occurrences(
    patterns: Iterable[RecurringPattern],
    today: date,
    horizon_days: int,
) -> list[UpcomingOccurrence]:
    """
    Every occurrence of an active pattern in ``[today, today + horizon_days]``.

    Sorted by date, then pattern ID.
    """
    window_end = today + timedelta(days=horizon_days)
    occurrences = []

    for pattern in patterns:
        if not pattern.active:
            continue
        try:
            frequency = parse_frequency(pattern.frequency)
        except UnsupportedFrequencyError:
            continue

        anchor_day = pattern.anchor_day
        cursor = pattern.cursor

        # Catch up to the window; a stale cursor is possible between sweeps
        while cursor < today and not pattern.is_past_end(cursor):
            cursor = advance(cursor, frequency, anchor_day)

        while cursor <= window_end and not pattern.is_past_end(cursor):
            occurrences.append(UpcomingOccurrence(
                recurring_pattern_id=pattern.id,
                date=cursor,
                amount=pattern.amount,
                category=pattern.category,
                note=pattern.note,
                frequency=frequency,
            ))
            cursor = advance(cursor, frequency, anchor_day)

    occurrences.sort(key=lambda o: (o.date, o.recurring_pattern_id))
    return occurrences


class UpcomingProjector:
    """Previews occurrences within a horizon from a store snapshot."""

    def __init__(
        self,
        store: LedgerStorageInterface,
        clock: Callable[[], datetime] = utc_now,
        default_horizon_days: int = DEFAULT_HORIZON_DAYS,
        max_horizon_days: int = MAX_HORIZON_DAYS,
    ):
        self._store = store
        self._clock = clock
        self._default_horizon_days = default_horizon_days
        self._max_horizon_days = max_horizon_days

    def resolve_horizon(self, horizon_days: Optional[int]) -> int:
        """
        None -> default, above the maximum -> clamped.

        Raises:
            ValueError: If the horizon is less than one day
        """
        if horizon_days is None:
            return self._default_horizon_days
        if horizon_days < 1:
            raise ValueError(f"Horizon must be at least 1 day, got {horizon_days}")
        return min(horizon_days, self._max_horizon_days)

    def upcoming(
        self,
        now: Union[date, datetime, None] = None,
        horizon_days: Optional[int] = None,
    ) -> list[UpcomingOccurrence]:
        horizon = self.resolve_horizon(horizon_days)
        today = to_calendar_date(now, clock=self._clock)
        return project_occurrences(self._store.snapshot().patterns, today, horizon)
