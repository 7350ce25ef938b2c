"""
Tests for the Expense Ledger models

Test strategy:
1. Unit tests for the pydantic models and their normalization
2. Envelope parsing against both on-disk shapes
3. No filesystem access here (see test_store.py)
"""

import json
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from expense_ledger.models import (
    CURRENT_VERSION,
    CorruptLedgerDocument,
    ExpenseFilter,
    LedgerEntry,
    LegacyLedger,
    RecurringPattern,
    RecurringPatternUpdate,
    StoreEnvelope,
    normalize_category,
    parse_ledger_document,
)
from expense_ledger.schedule import Frequency


class TestLedgerEntry:
    """Tests for the ledger entry model."""

    def test_entry_creation(self):
        """Test LedgerEntry model creation with defaults."""
        entry = LedgerEntry(amount=Decimal("12.5"), date=date(2026, 1, 5))
        assert entry.amount == Decimal("12.50")
        assert entry.category == "other"
        assert entry.note == ""
        assert entry.recurring_pattern_id is None
        assert entry.created_at.tzinfo is not None
        assert len(entry.id) == 32

    def test_category_is_normalized(self):
        """Test categories become trimmed lowercase slugs."""
        entry = LedgerEntry(amount=Decimal("1"), category="  Groceries ", date=date(2026, 1, 5))
        assert entry.category == "groceries"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_blank_category_is_other(self, raw):
        assert normalize_category(raw) == "other"

    def test_amount_rounds_half_up(self):
        entry = LedgerEntry(amount=Decimal("2.345"), date=date(2026, 1, 5))
        assert entry.amount == Decimal("2.35")

    def test_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError):
            LedgerEntry(amount=Decimal("-1"), date=date(2026, 1, 5))

    def test_legacy_timestamp_date(self):
        """Test an RFC 3339 timestamp is read as its UTC calendar date."""
        entry = LedgerEntry(amount=Decimal("1"), date="2026-01-05T23:30:00-02:00")
        assert entry.date == date(2026, 1, 6)

    def test_naive_created_at_becomes_utc(self):
        entry = LedgerEntry(
            amount=Decimal("1"), date=date(2026, 1, 5), created_at=datetime(2026, 1, 5, 8, 0),
        )
        assert entry.created_at == datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc)

    def test_blank_pattern_id_is_none(self):
        """Test an empty pattern reference means a manual entry."""
        entry = LedgerEntry(amount=Decimal("1"), date=date(2026, 1, 5), recurring_pattern_id=" ")
        assert entry.recurring_pattern_id is None
        assert entry.occurrence_key is None

    def test_occurrence_key(self):
        entry = LedgerEntry(amount=Decimal("1"), date=date(2026, 1, 5), recurring_pattern_id="p1")
        assert entry.occurrence_key == ("p1", date(2026, 1, 5))

    def test_assignment_is_validated(self):
        """Test in-place edits go through the same normalization."""
        entry = LedgerEntry(amount=Decimal("1"), date=date(2026, 1, 5))
        entry.category = "Food"
        entry.amount = Decimal("3.999")
        assert entry.category == "food"
        assert entry.amount == Decimal("4.00")

    def test_amount_is_a_json_number(self):
        """Test amounts serialize as plain numbers on disk."""
        entry = LedgerEntry(amount=Decimal("12.30"), date=date(2026, 1, 5))
        payload = json.loads(entry.model_dump_json())
        assert payload["amount"] == 12.3
        assert payload["date"] == "2026-01-05"


class TestRecurringPattern:
    """Tests for the recurring pattern model."""

    def test_frequency_is_stored_as_lowercase_string(self):
        pattern = RecurringPattern(amount=Decimal("5"), frequency=" Weekly ", start_date=date(2026, 1, 1))
        assert pattern.frequency == "weekly"
        pattern = RecurringPattern(amount=Decimal("5"), frequency=Frequency.MONTHLY, start_date=date(2026, 1, 1))
        assert pattern.frequency == "monthly"

    def test_unknown_frequency_still_loads(self):
        """Test a bad stored frequency is left for the engine to retire."""
        pattern = RecurringPattern(amount=Decimal("5"), frequency="hourly", start_date=date(2026, 1, 1))
        assert pattern.frequency == "hourly"
        assert pattern.active is True

    def test_cursor_falls_back_to_start(self):
        """Test a missing or early cursor starts from start_date."""
        pattern = RecurringPattern(amount=Decimal("5"), frequency="weekly", start_date=date(2026, 1, 10))
        assert pattern.cursor == date(2026, 1, 10)

        pattern.next_run_date = date(2026, 1, 3)
        assert pattern.cursor == date(2026, 1, 10)

        pattern.next_run_date = date(2026, 1, 17)
        assert pattern.cursor == date(2026, 1, 17)

    def test_anchor_day(self):
        pattern = RecurringPattern(amount=Decimal("5"), frequency="monthly", start_date=date(2026, 1, 31))
        assert pattern.anchor_day == 31

    def test_is_past_end(self):
        pattern = RecurringPattern(
            amount=Decimal("5"), frequency="weekly",
            start_date=date(2026, 1, 1), end_date=date(2026, 1, 15),
        )
        assert not pattern.is_past_end(date(2026, 1, 15))
        assert pattern.is_past_end(date(2026, 1, 16))


class TestRecurringPatternUpdate:
    """Tests for partial pattern updates."""

    def test_explicit_null_clears_end_date(self):
        assert RecurringPatternUpdate(end_date=None).clears_end_date is True

    def test_omitted_end_date_is_untouched(self):
        assert RecurringPatternUpdate(amount=Decimal("3")).clears_end_date is False

    def test_cursor_reset_fields(self):
        """Only frequency and start_date changes reset the cursor."""
        assert RecurringPatternUpdate(frequency="monthly").resets_cursor
        assert RecurringPatternUpdate(start_date=date(2026, 2, 1)).resets_cursor
        assert not RecurringPatternUpdate(amount=Decimal("3"), note="x").resets_cursor


class TestExpenseFilter:
    """Tests for listing filters."""

    @pytest.fixture
    def entry(self):
        return LedgerEntry(amount=Decimal("1"), category="food", date=date(2026, 1, 10))

    def test_empty_filter_matches(self, entry):
        assert ExpenseFilter().matches(entry)

    def test_category_is_normalized(self, entry):
        assert ExpenseFilter(category=" FOOD ").matches(entry)
        assert not ExpenseFilter(category="rent").matches(entry)

    def test_blank_category_is_ignored(self, entry):
        assert ExpenseFilter(category="  ").category is None

    def test_date_bounds_are_inclusive(self, entry):
        assert ExpenseFilter(date_from=date(2026, 1, 10), date_to=date(2026, 1, 10)).matches(entry)
        assert not ExpenseFilter(date_from=date(2026, 1, 11)).matches(entry)
        assert not ExpenseFilter(date_to=date(2026, 1, 9)).matches(entry)


class TestEnvelope:
    """Tests for parsing and writing the on-disk document."""

    def test_empty_document(self):
        """Test an empty file is an empty current envelope."""
        document = parse_ledger_document("  \n")
        assert isinstance(document, StoreEnvelope)
        assert document.expenses == []
        assert not document.needs_migration

    def test_legacy_array(self):
        """Test a bare array is the legacy shape."""
        raw = json.dumps([
            {"id": "a", "amount": 4.5, "category": "Food", "note": "", "date": "2026-01-01T10:00:00Z",
             "created_at": "2026-01-01T10:00:00Z"},
        ])
        document = parse_ledger_document(raw)
        assert isinstance(document, LegacyLedger)
        assert document.needs_migration

        envelope = document.to_envelope()
        assert envelope.recurring_patterns == []
        assert envelope.expenses[0].date == date(2026, 1, 1)
        assert envelope.expenses[0].category == "food"

    def test_current_envelope_with_null_collections(self):
        document = parse_ledger_document(b'{"version": 2, "expenses": null, "recurring_patterns": null}')
        assert isinstance(document, StoreEnvelope)
        assert document.recurring_patterns == []

    @pytest.mark.parametrize("raw", [
        "{not json",
        "42",
        '"text"',
        '{"version": 9}',
        '[{"amount": "lots"}]',
        b"\xff\xfe",
    ])
    def test_corrupt_documents(self, raw):
        with pytest.raises(CorruptLedgerDocument):
            parse_ledger_document(raw)

    def test_to_json_writes_current_version(self):
        """Test saving a migrated envelope stamps the current version."""
        envelope = StoreEnvelope(
            version=1,
            expenses=[LedgerEntry(amount=Decimal("2"), date=date(2026, 1, 1))],
        )
        payload = json.loads(envelope.to_json())
        assert payload["version"] == CURRENT_VERSION
        assert payload["expenses"][0]["amount"] == 2.0
        assert "recurring_pattern_id" not in payload["expenses"][0]
        assert payload["recurring_patterns"] == []
