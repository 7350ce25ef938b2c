"""
Calendar Arithmetic

Pure date functions used by the recurrence engine, the upcoming projector
and the store's load-time normalization. Nothing here touches I/O or shared
state.

DESIGN DECISION: Monthly cadences are anchored on the day-of-month of the
pattern's start date, not on the current occurrence. A pattern that starts
on the 31st is clamped to Feb 28/29 and returns to the 31st in March.
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Union


class Frequency(str, Enum):
    """Supported recurrence cadences. Nothing else is valid."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class UnsupportedFrequencyError(ValueError):
    """Raised when a cadence other than weekly/monthly is requested."""

    def __init__(self, frequency: object):
        self.frequency = frequency
        super().__init__(f"Unsupported frequency: {frequency!r} (expected weekly or monthly)")


def utc_now() -> datetime:
    """Default clock: the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_frequency(value: Union[Frequency, str]) -> Frequency:
    """
    Normalize a frequency value.

    Accepts enum members and case/whitespace-insensitive strings.

    Raises:
        UnsupportedFrequencyError: For anything but weekly/monthly
    """
    if isinstance(value, Frequency):
        return value
    normalized = str(value or "").strip().lower()
    try:
        return Frequency(normalized)
    except ValueError:
        raise UnsupportedFrequencyError(value) from None


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, clamping ``day`` into the valid range for the month."""
    last_day = days_in_month(year, month)
    return date(year, month, max(1, min(day, last_day)))


def anchor_day_of(start_date: date) -> int:
    """The anchor day of a pattern is the day-of-month of its start date."""
    return start_date.day


def advance(current: date, frequency: Union[Frequency, str], anchor_day: int) -> date:
    """
    Compute the next occurrence after ``current``.

    Args:
        current: The occurrence date being advanced from
        frequency: weekly or monthly
        anchor_day: Day-of-month targeted by monthly cadences

    Returns:
        weekly  -> exactly seven days later
        monthly -> ``anchor_day`` of the following month, clamped to
                   the last day of that month when it is shorter

    Raises:
        UnsupportedFrequencyError: For any other frequency
    """
    cadence = parse_frequency(frequency)

    if cadence is Frequency.WEEKLY:
        return current + timedelta(days=7)

    # Monthly
    total_months = current.year * 12 + current.month  # month index of next month
    year, month = divmod(total_months, 12)
    return clamp_day(year, month + 1, anchor_day)


def coerce_date(value: object) -> object:
    """
    Normalize persisted/user supplied date values to a calendar date.

    Accepts ``date``, ``datetime`` (converted to its UTC date when aware)
    and ISO 8601 strings, including full RFC 3339 timestamps such as
    ``2026-01-01T12:00:00Z`` written by older ledger files. Anything else is
    returned unchanged so that model validation can reject it.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) > 10:
            try:
                return coerce_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
            except ValueError:
                return value
        try:
            return date.fromisoformat(text)
        except ValueError:
            return value
    return value


def ensure_utc(value: object) -> object:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return value


def to_calendar_date(value: Union[date, datetime, None], clock=utc_now) -> date:
    """
    Resolve a caller supplied "now" to the calendar date it falls on.

    ``None`` means "today" according to ``clock``.
    """
    if value is None:
        value = clock()
    resolved = coerce_date(value)
    if not isinstance(resolved, date):
        raise TypeError(f"Expected a date or datetime, got {type(value).__name__}")
    return resolved
