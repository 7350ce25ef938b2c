"""
Audit Models for the Expense Ledger

Every change to the ledger or to the pattern set is recorded as an audit
event. This provides:
1. Traceability of generated entries back to the sweep that created them
2. Debugging information when a persist fails
3. A history of pattern lifecycle changes (created, edited, dormant)

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from expense_ledger.schedule import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger entries
    EXPENSE_CREATED = "expense_created"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"

    # Patterns
    PATTERN_CREATED = "pattern_created"
    PATTERN_UPDATED = "pattern_updated"
    PATTERN_DEACTIVATED = "pattern_deactivated"
    PATTERN_DORMANT = "pattern_dormant"

    # Recurrence engine
    SWEEP_COMPLETED = "sweep_completed"
    SWEEP_FAILED = "sweep_failed"

    # Storage
    LEDGER_MIGRATED = "ledger_migrated"
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'pattern', 'ledger')"
    )
    entity_id: Optional[str] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Ties together a facade call and the sweep it triggered"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_created(expense_id, amount, category)
        event = AuditEventBuilder.sweep_completed(result, correlation_id)
    """

    @staticmethod
    def expense_created(
        expense_id: str,
        amount: str,
        category: str,
        recurring_pattern_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense created: {category} {amount}",
            details={
                "amount": amount,
                "category": category,
                "recurring_pattern_id": recurring_pattern_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(
        expense_id: str,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Expense updated",
            details={"changes": changes},
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def pattern_created(
        pattern_id: str,
        frequency: str,
        start_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PATTERN_CREATED,
            entity_type="pattern",
            entity_id=pattern_id,
            correlation_id=correlation_id,
            description=f"Recurring pattern created: {frequency} from {start_date}",
            details={
                "frequency": frequency,
                "start_date": start_date,
            },
            is_user_action=True,
        )

    @staticmethod
    def pattern_updated(
        pattern_id: str,
        changes: dict[str, Any],
        cursor_reset: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PATTERN_UPDATED,
            entity_type="pattern",
            entity_id=pattern_id,
            correlation_id=correlation_id,
            description="Recurring pattern updated" + (" (cursor reset)" if cursor_reset else ""),
            details={
                "changes": changes,
                "cursor_reset": cursor_reset,
            },
            is_user_action=True,
        )

    @staticmethod
    def pattern_deactivated(
        pattern_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PATTERN_DEACTIVATED,
            entity_type="pattern",
            entity_id=pattern_id,
            correlation_id=correlation_id,
            description="Recurring pattern deactivated by user",
            is_user_action=True,
        )

    @staticmethod
    def pattern_dormant(
        pattern_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PATTERN_DORMANT,
            severity=AuditSeverity.WARNING if reason == "unsupported_frequency" else AuditSeverity.INFO,
            entity_type="pattern",
            entity_id=pattern_id,
            correlation_id=correlation_id,
            description=f"Recurring pattern became dormant: {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def sweep_completed(
        swept_through: str,
        generated: int,
        skipped_existing: int,
        deactivated: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SWEEP_COMPLETED,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Sweep through {swept_through} generated {generated} entries",
            details={
                "swept_through": swept_through,
                "generated": generated,
                "skipped_existing": skipped_existing,
                "deactivated": deactivated,
            },
        )

    @staticmethod
    def sweep_failed(
        swept_through: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SWEEP_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Sweep through {swept_through} failed",
            error_message=error_message,
        )

    @staticmethod
    def ledger_migrated(
        path: str,
        from_version: int,
        expense_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_MIGRATED,
            entity_type="ledger",
            entity_id=path,
            description=f"Ledger file migrated from version {from_version}",
            details={
                "from_version": from_version,
                "expense_count": expense_count,
            },
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )
