"""
Data Models Package

This package contains all Pydantic models used by the expense ledger.
All data flowing through the store, the recurrence engine and the
on-disk envelope must conform to these schemas.
"""

from expense_ledger.models.expense import (
    MAX_AMOUNT,
    CategoryTotal,
    DailyTotal,
    ExpenseFilter,
    ExpenseInput,
    LedgerEntry,
    LedgerStats,
    StatsPeriod,
    ValidationIssue,
    ValidationResult,
    new_id,
    normalize_category,
)
from expense_ledger.models.recurring import (
    RecurringOptions,
    RecurringPattern,
    RecurringPatternInput,
    RecurringPatternUpdate,
    SweepResult,
    UpcomingOccurrence,
)
from expense_ledger.models.envelope import (
    CURRENT_VERSION,
    CorruptLedgerDocument,
    LegacyLedger,
    StoreEnvelope,
    parse_ledger_document,
)
from expense_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "MAX_AMOUNT",
    "CategoryTotal",
    "DailyTotal",
    "ExpenseFilter",
    "ExpenseInput",
    "LedgerEntry",
    "LedgerStats",
    "StatsPeriod",
    "ValidationIssue",
    "ValidationResult",
    "new_id",
    "normalize_category",
    # Recurrence models
    "RecurringOptions",
    "RecurringPattern",
    "RecurringPatternInput",
    "RecurringPatternUpdate",
    "SweepResult",
    "UpcomingOccurrence",
    # Envelope
    "CURRENT_VERSION",
    "CorruptLedgerDocument",
    "LegacyLedger",
    "StoreEnvelope",
    "parse_ledger_document",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
