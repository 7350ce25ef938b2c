"""
Recurring Pattern Models

A RecurringPattern is a declarative rule ("12.50, weekly, from Jan 1") that
the recurrence engine turns into concrete ledger entries.

State per pattern is {Active, Dormant}. Dormant is terminal: once
``active`` is False the pattern never generates again.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from expense_ledger.models.expense import (
    DEFAULT_CATEGORY,
    CalendarDate,
    Money,
    UtcDatetime,
    new_id,
    normalize_category,
)
from expense_ledger.schedule import Frequency, anchor_day_of, utc_now


class RecurringPattern(BaseModel):
    """
    A recurrence rule plus its cursor.

    ``frequency`` is kept as a normalized string rather than the enum so
    that a corrupted value on disk still loads; the engine then retires
    the pattern instead of failing startup.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Opaque unique identifier"
    )

    # Template copied onto every generated entry
    amount: Money = Field(
        ...,
        gt=0,
        description="Amount of each occurrence"
    )
    category: str = Field(default=DEFAULT_CATEGORY)
    note: str = Field(default="")

    frequency: str = Field(
        ...,
        description="weekly or monthly"
    )
    start_date: CalendarDate = Field(
        ...,
        description="First occurrence; its day-of-month is the anchor day"
    )
    next_run_date: Optional[CalendarDate] = Field(
        default=None,
        description="Cursor: next occurrence not yet generated"
    )
    end_date: Optional[CalendarDate] = Field(
        default=None,
        description="Inclusive last possible occurrence"
    )
    active: bool = Field(
        default=True,
        description="False means Dormant (terminal)"
    )

    created_at: UtcDatetime = Field(default_factory=utc_now)
    updated_at: UtcDatetime = Field(default_factory=utc_now)

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category_slug(cls, v: Optional[str]) -> str:
        return normalize_category(v)

    @field_validator("note", mode="before")
    @classmethod
    def strip_note(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @field_validator("frequency", mode="before")
    @classmethod
    def normalize_frequency(cls, v: object) -> str:
        if isinstance(v, Frequency):
            return v.value
        return str(v or "").strip().lower()

    @property
    def anchor_day(self) -> int:
        return anchor_day_of(self.start_date)

    @property
    def cursor(self) -> date:
        """
        The date the next sweep starts from.

        Falls back to ``start_date`` when the cursor is unset, and never
        points before ``start_date``.
        """
        if self.next_run_date is None or self.next_run_date < self.start_date:
            return self.start_date
        return self.next_run_date

    def is_past_end(self, day: date) -> bool:
        return self.end_date is not None and day > self.end_date


# =============================================================================
# INPUT MODELS
# =============================================================================

class RecurringPatternInput(BaseModel):
    """
    Fields for creating a pattern.

    The cursor is not accepted from callers: a new pattern always starts
    at ``start_date``.
    """
    amount: Decimal
    category: Optional[str] = None
    note: Optional[str] = None
    frequency: Union[Frequency, str]
    start_date: Optional[CalendarDate] = Field(
        default=None,
        description="Defaults to today"
    )
    end_date: Optional[CalendarDate] = None


class RecurringPatternUpdate(BaseModel):
    """
    Partial update. Fields that are not supplied are left untouched.

    Supplying ``end_date=None`` explicitly clears the end date.
    Changing ``frequency`` or ``start_date`` resets the cursor to the
    (new) start date.
    """
    amount: Optional[Decimal] = None
    category: Optional[str] = None
    note: Optional[str] = None
    frequency: Optional[Union[Frequency, str]] = None
    start_date: Optional[CalendarDate] = None
    end_date: Optional[CalendarDate] = None
    active: Optional[bool] = None

    @property
    def clears_end_date(self) -> bool:
        return "end_date" in self.model_fields_set and self.end_date is None

    @property
    def resets_cursor(self) -> bool:
        return self.frequency is not None or self.start_date is not None


class RecurringOptions(BaseModel):
    """Recurrence requested together with a new expense."""

    frequency: Union[Frequency, str]
    end_date: Optional[CalendarDate] = None


# =============================================================================
# ENGINE / PROJECTOR OUTPUT
# =============================================================================

class UpcomingOccurrence(BaseModel):
    """A projected, not yet generated, occurrence."""

    recurring_pattern_id: str
    date: CalendarDate
    amount: Money
    category: str
    note: str = ""
    frequency: Frequency


class SweepResult(BaseModel):
    """Summary of one sweep."""

    swept_through: date = Field(
        ...,
        description="The 'now' date the sweep caught up to"
    )
    generated: int = Field(default=0, ge=0)
    skipped_existing: int = Field(
        default=0,
        ge=0,
        description="Occurrences already present in the ledger"
    )
    patterns_advanced: list[str] = Field(default_factory=list)
    patterns_deactivated: list[str] = Field(default_factory=list)
    completed_at: datetime = Field(default_factory=utc_now)

    @property
    def changed(self) -> bool:
        return bool(self.generated or self.patterns_advanced or self.patterns_deactivated)
