"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. Traceability of generated entries back to their sweep
2. Debugging capability when a persist fails
3. History of pattern lifecycle changes

The audit logger:
- Writes to the structured local log
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from expense_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog on top of the stdlib logging module.

    Called once by ``create_app_components``; library modules only call
    ``structlog.get_logger(__name__)``.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured log under the ``audit_event`` key.
    An optional ``sink`` receives every event as well (tests use a list).
    """

    def __init__(self, sink: Optional[list[AuditEvent]] = None):
        self._sink = sink
        self._logger = structlog.get_logger(__name__)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written. Never raises.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            self._logger.error(
                "audit_log_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

        if self._sink is not None:
            self._sink.append(event)
        return True

    def log_expense_created(
        self,
        expense_id: str,
        amount: str,
        category: str,
        recurring_pattern_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.expense_created(
            expense_id=expense_id,
            amount=amount,
            category=category,
            recurring_pattern_id=recurring_pattern_id,
            correlation_id=correlation_id,
        ))

    def log_expense_updated(
        self,
        expense_id: str,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.expense_updated(
            expense_id=expense_id,
            changes=changes,
            correlation_id=correlation_id,
        ))

    def log_expense_deleted(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    def log_pattern_created(
        self,
        pattern_id: str,
        frequency: str,
        start_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.pattern_created(
            pattern_id=pattern_id,
            frequency=frequency,
            start_date=start_date,
            correlation_id=correlation_id,
        ))

    def log_pattern_updated(
        self,
        pattern_id: str,
        changes: dict[str, Any],
        cursor_reset: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.pattern_updated(
            pattern_id=pattern_id,
            changes=changes,
            cursor_reset=cursor_reset,
            correlation_id=correlation_id,
        ))

    def log_pattern_deactivated(
        self,
        pattern_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.pattern_deactivated(
            pattern_id=pattern_id,
            correlation_id=correlation_id,
        ))

    def log_pattern_dormant(
        self,
        pattern_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.pattern_dormant(
            pattern_id=pattern_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_sweep_completed(
        self,
        swept_through: str,
        generated: int,
        skipped_existing: int,
        deactivated: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.sweep_completed(
            swept_through=swept_through,
            generated=generated,
            skipped_existing=skipped_existing,
            deactivated=deactivated,
            correlation_id=correlation_id,
        ))

    def log_sweep_failed(
        self,
        swept_through: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.sweep_failed(
            swept_through=swept_through,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_ledger_migrated(
        self,
        path: str,
        from_version: int,
        expense_count: int,
    ) -> None:
        self.log(AuditEventBuilder.ledger_migrated(
            path=path,
            from_version=from_version,
            expense_count=expense_count,
        ))

    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a facade call and pass it to the sweep
    that call triggers.
    """
    return uuid4()
