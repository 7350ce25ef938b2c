"""
Core Ledger Models

These models define the strict schemas for ledger entries and the read
models built from them. They are designed to:
1. Normalize input the same way whether it comes from a user or from disk
2. Provide clear validation error messages
3. Serialize to the on-disk envelope format without extra mapping code

DESIGN DECISION: Amounts are Decimal in memory and plain JSON numbers on
disk. Existing ledger files store numbers, so we keep that wire shape.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)

from expense_ledger.schedule import coerce_date, ensure_utc, utc_now


DEFAULT_CATEGORY = "other"


def new_id() -> str:
    """Generate an opaque identifier for entries and patterns."""
    return uuid4().hex


def normalize_category(value: Optional[str]) -> str:
    """Lowercase, trimmed slug. Empty input becomes ``"other"``."""
    category = (value or "").strip().lower()
    return category or DEFAULT_CATEGORY


def _quantize_money(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


# Largest amount whose cents survive the float round trip (15 significant digits)
MAX_AMOUNT = Decimal("9999999999999.99")

# Decimal in memory, number in JSON
Money = Annotated[
    Decimal,
    AfterValidator(_quantize_money),
    PlainSerializer(float, return_type=float, when_used="json"),
]

# Accepts ISO dates and legacy RFC 3339 timestamps
CalendarDate = Annotated[date, BeforeValidator(coerce_date)]

# Always timezone-aware UTC
UtcDatetime = Annotated[datetime, BeforeValidator(ensure_utc)]

OptionalId = Annotated[Optional[str], BeforeValidator(_blank_to_none)]


# =============================================================================
# ENUMS
# =============================================================================

class StatsPeriod(str, Enum):
    """Reporting period for ledger stats."""
    WEEK = "week"
    MONTH = "month"

    @classmethod
    def parse(cls, value: Optional[str]) -> "StatsPeriod":
        """Unknown or empty periods fall back to month."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.MONTH


# =============================================================================
# LEDGER ENTRY
# =============================================================================

class LedgerEntry(BaseModel):
    """
    A single expense in the ledger.

    Created by the user or by the recurrence engine. Only users update or
    delete entries; the engine never touches an entry after generating it.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Opaque unique identifier"
    )
    amount: Money = Field(
        ...,
        gt=0,
        description="Positive monetary amount"
    )
    category: str = Field(
        default=DEFAULT_CATEGORY,
        description="Lowercase category slug"
    )
    note: str = Field(
        default="",
        description="Free text note"
    )
    date: CalendarDate = Field(
        ...,
        description="Economic date of the expense"
    )
    created_at: UtcDatetime = Field(
        default_factory=utc_now,
        description="When the entry was created (UTC)"
    )
    recurring_pattern_id: OptionalId = Field(
        default=None,
        description="Pattern that generated this entry, if any"
    )

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category_slug(cls, v: Optional[str]) -> str:
        return normalize_category(v)

    @field_validator("note", mode="before")
    @classmethod
    def strip_note(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @property
    def occurrence_key(self) -> Optional[tuple]:
        """``(pattern id, date)`` for generated entries, None for manual ones."""
        if not self.recurring_pattern_id:
            return None
        return self.recurring_pattern_id, self.date


# =============================================================================
# INPUT MODELS
# =============================================================================

class ExpenseInput(BaseModel):
    """
    User supplied fields for creating or updating an entry.

    Semantic checks (positive amount) live in the validation layer so they
    raise the ledger's own error types.
    """
    amount: Decimal
    category: Optional[str] = None
    note: Optional[str] = None
    date: Optional[CalendarDate] = Field(
        default=None,
        description="Defaults to today on create; unchanged on update"
    )


class ExpenseFilter(BaseModel):
    """Filter for listing entries. All bounds are inclusive."""

    category: Optional[str] = None
    date_from: Optional[CalendarDate] = None
    date_to: Optional[CalendarDate] = None

    @field_validator("category", mode="before")
    @classmethod
    def normalize_filter_category(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not str(v).strip():
            return None
        return normalize_category(v)

    def matches(self, entry: LedgerEntry) -> bool:
        if self.category and entry.category != self.category:
            return False
        if self.date_from and entry.date < self.date_from:
            return False
        if self.date_to and entry.date > self.date_to:
            return False
        return True


# =============================================================================
# STATS MODELS
# =============================================================================

class CategoryTotal(BaseModel):
    category: str
    total: Money


class DailyTotal(BaseModel):
    date: date
    total: Money


class LedgerStats(BaseModel):
    """Aggregated view of the ledger for the dashboard."""

    total_expenses: int = Field(ge=0)
    total_amount: Money
    period: StatsPeriod
    period_start: date
    period_total: Money
    by_category: list[CategoryTotal] = Field(default_factory=list)
    trend: list[DailyTotal] = Field(default_factory=list)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'inconsistent')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning)$",
    )


class ValidationResult(BaseModel):
    """Outcome of validating an expense or pattern input."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")
