"""
Ledger Stats

DESIGN DECISION: Stats are DETERMINISTIC aggregates over stored entries.
Nothing is estimated or extrapolated: upcoming recurring occurrences are
not counted until a sweep has turned them into entries.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional, Union

from expense_ledger.models.expense import (
    CategoryTotal,
    DailyTotal,
    ExpenseFilter,
    LedgerEntry,
    LedgerStats,
    StatsPeriod,
)
from expense_ledger.schedule import to_calendar_date, utc_now
from expense_ledger.services.storage.interface import LedgerStorageInterface


def period_start(period: StatsPeriod, today: date) -> date:
    """Monday of the current week, or the 1st of the current month."""
    if period is StatsPeriod.WEEK:
        return today - timedelta(days=today.weekday())
    return today.replace(day=1)


def compute_stats(
    entries: Iterable[LedgerEntry],
    period: StatsPeriod,
    today: date,
) -> LedgerStats:
    start = period_start(period, today)

    count = 0
    total = Decimal("0")
    period_total = Decimal("0")
    by_category: dict[str, Decimal] = defaultdict(Decimal)
    by_day: dict[date, Decimal] = defaultdict(Decimal)

    for entry in entries:
        count += 1
        total += entry.amount
        by_category[entry.category] += entry.amount
        if entry.date >= start:
            period_total += entry.amount
            by_day[entry.date] += entry.amount

    categories = [
        CategoryTotal(category=category, total=amount)
        for category, amount in by_category.items()
    ]
    # Largest first; ties by name so output is stable
    categories.sort(key=lambda c: (-c.total, c.category))

    return LedgerStats(
        total_expenses=count,
        total_amount=total,
        period=period,
        period_start=start,
        period_total=period_total,
        by_category=categories,
        trend=[DailyTotal(date=day, total=by_day[day]) for day in sorted(by_day)],
    )


class StatsCalculator:
    """Computes dashboard stats from the store."""

    def __init__(
        self,
        store: LedgerStorageInterface,
        clock: Callable[[], datetime] = utc_now,
        default_period: StatsPeriod = StatsPeriod.MONTH,
    ):
        self._store = store
        self._clock = clock
        self._default_period = default_period

    def stats(
        self,
        period: Union[StatsPeriod, str, None] = None,
        now: Union[date, datetime, None] = None,
        filters: Optional[ExpenseFilter] = None,
    ) -> LedgerStats:
        """
        Totals, per-category totals and a per-day trend for the period.

        Unknown or empty periods fall back to month.
        """
        if period is None or (isinstance(period, str) and not period.strip()):
            resolved = self._default_period
        elif isinstance(period, StatsPeriod):
            resolved = period
        else:
            resolved = StatsPeriod.parse(period)

        today = to_calendar_date(now, clock=self._clock)
        return compute_stats(self._store.list_expenses(filters), resolved, today)
