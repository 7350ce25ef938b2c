"""Tests for audit events and the audit logger."""

from uuid import uuid4

from expense_ledger.audit import AuditLogger, configure_logging, create_correlation_id
from expense_ledger.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.EXPENSE_CREATED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None
        assert event.timestamp.tzinfo is not None

    def test_to_log_dict(self):
        """Test the structured log payload is JSON friendly."""
        correlation_id = uuid4()
        event = AuditEventBuilder.expense_deleted("e1", correlation_id=correlation_id)
        payload = event.to_log_dict()

        assert payload["event_type"] == "expense_deleted"
        assert payload["entity_id"] == "e1"
        assert payload["correlation_id"] == str(correlation_id)
        assert payload["is_user_action"] is True


class TestAuditEventBuilder:
    """Tests for the event factories."""

    def test_expense_created(self):
        event = AuditEventBuilder.expense_created(
            expense_id="e1", amount="12.50", category="food", recurring_pattern_id="p1",
        )
        assert event.event_type == AuditEventType.EXPENSE_CREATED
        assert event.entity_type == "expense"
        assert event.details["recurring_pattern_id"] == "p1"

    def test_pattern_updated_mentions_cursor_reset(self):
        """Test a cursor reset shows up in the description."""
        event = AuditEventBuilder.pattern_updated("p1", {"frequency": "monthly"}, cursor_reset=True)
        assert "cursor reset" in event.description
        assert event.details["cursor_reset"] is True

    def test_dormant_severity_depends_on_reason(self):
        """A corrupted frequency is a warning; reaching the end date is info."""
        assert AuditEventBuilder.pattern_dormant("p1", "unsupported_frequency").severity == AuditSeverity.WARNING
        assert AuditEventBuilder.pattern_dormant("p1", "end_date_reached").severity == AuditSeverity.INFO

    def test_sweep_completed(self):
        event = AuditEventBuilder.sweep_completed("2026-01-22", 4, 1, ["p1"])
        assert event.details == {
            "swept_through": "2026-01-22",
            "generated": 4,
            "skipped_existing": 1,
            "deactivated": ["p1"],
        }
        assert event.is_user_action is False

    def test_failures_are_errors(self):
        """Test failure events carry ERROR severity and the message."""
        failed = AuditEventBuilder.sweep_failed("2026-01-22", "disk full")
        storage = AuditEventBuilder.storage_error("persist", "disk full")
        assert failed.severity == storage.severity == AuditSeverity.ERROR
        assert failed.error_message == "disk full"


class TestAuditLogger:
    """Tests for the audit logger."""

    def test_events_reach_sink(self):
        sink = []
        logger = AuditLogger(sink=sink)
        logger.log_pattern_created("p1", "weekly", "2026-01-01")
        logger.log_sweep_failed("2026-01-22", "boom")

        assert [e.event_type for e in sink] == [
            AuditEventType.PATTERN_CREATED,
            AuditEventType.SWEEP_FAILED,
        ]

    def test_logging_failure_does_not_raise(self, monkeypatch):
        """Audit logging never breaks the main flow."""
        sink = []
        logger = AuditLogger(sink=sink)

        class BrokenLogger:
            def info(self, *args, **kwargs):
                raise RuntimeError("log backend down")

            def error(self, *args, **kwargs):
                pass

        monkeypatch.setattr(logger, "_logger", BrokenLogger())

        event = AuditEventBuilder.expense_deleted("e1")
        assert logger.log(event) is False
        assert sink == []

    def test_configure_logging_json(self):
        """Test configured logging still accepts audit events."""
        configure_logging(level="DEBUG", json_output=True)
        assert AuditLogger().log(AuditEventBuilder.expense_deleted("e1")) is True

    def test_correlation_ids_are_unique(self):
        assert create_correlation_id() != create_correlation_id()
