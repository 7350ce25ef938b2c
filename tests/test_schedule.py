"""Tests for calendar arithmetic."""

from datetime import date, datetime, timezone

import pytest

from expense_ledger.schedule import (
    Frequency,
    UnsupportedFrequencyError,
    advance,
    clamp_day,
    coerce_date,
    days_in_month,
    ensure_utc,
    parse_frequency,
    to_calendar_date,
)


class TestParseFrequency:
    """Tests for frequency normalization."""

    @pytest.mark.parametrize("raw", ["weekly", "WEEKLY", "  Weekly ", Frequency.WEEKLY])
    def test_weekly_variants(self, raw):
        """Case and whitespace are ignored."""
        assert parse_frequency(raw) is Frequency.WEEKLY

    def test_monthly(self):
        """Test monthly parses."""
        assert parse_frequency("monthly") is Frequency.MONTHLY

    @pytest.mark.parametrize("raw", ["daily", "yearly", "", None, "0 0 * * *"])
    def test_unsupported_is_an_error(self, raw):
        """Anything else is rejected, never defaulted."""
        with pytest.raises(UnsupportedFrequencyError) as exc_info:
            parse_frequency(raw)
        assert exc_info.value.frequency == raw

    def test_unsupported_is_a_value_error(self):
        """Callers catching ValueError also catch bad frequencies."""
        with pytest.raises(ValueError):
            parse_frequency("fortnightly")


class TestAdvance:
    """Tests for advancing an occurrence."""

    def test_weekly_adds_seven_days(self):
        """Weekly is exactly seven days."""
        assert advance(date(2026, 1, 1), Frequency.WEEKLY, 1) == date(2026, 1, 8)

    def test_weekly_crosses_year_end(self):
        """Test weekly across the new year."""
        assert advance(date(2025, 12, 29), "weekly", 29) == date(2026, 1, 5)

    def test_monthly_same_day(self):
        """Test monthly keeps the day."""
        assert advance(date(2026, 1, 15), "monthly", 15) == date(2026, 2, 15)

    def test_monthly_clamps_to_short_month(self):
        """Anchor 31 in February clamps to the last day."""
        assert advance(date(2026, 1, 31), "monthly", 31) == date(2026, 2, 28)

    def test_monthly_clamps_to_leap_day(self):
        """Test leap-year February."""
        assert advance(date(2024, 1, 31), "monthly", 31) == date(2024, 2, 29)

    def test_monthly_returns_to_anchor_after_clamp(self):
        """The anchor day is used, not the clamped current day."""
        assert advance(date(2024, 2, 29), "monthly", 31) == date(2024, 3, 31)

    def test_monthly_anchor_30_through_february(self):
        """Test anchor 30 through a non-leap February."""
        assert advance(date(2026, 2, 28), "monthly", 30) == date(2026, 3, 30)

    def test_monthly_december_rolls_year(self):
        """Test December to January."""
        assert advance(date(2025, 12, 31), "monthly", 31) == date(2026, 1, 31)

    def test_monthly_walk_preserves_anchor(self):
        """A full year from Jan 31 hits every month end."""
        current = date(2024, 1, 31)
        seen = [current]
        for _ in range(11):
            current = advance(current, "monthly", 31)
            seen.append(current)
        assert seen == [date(2024, m, days_in_month(2024, m)) for m in range(1, 13)]

    def test_invalid_frequency_raises(self):
        """Test advance rejects unknown frequencies."""
        with pytest.raises(UnsupportedFrequencyError):
            advance(date(2026, 1, 1), "daily", 1)


class TestClampDay:
    """Tests for clamp_day."""

    def test_clamps_high(self):
        assert clamp_day(2023, 2, 31) == date(2023, 2, 28)

    def test_keeps_valid(self):
        assert clamp_day(2023, 4, 30) == date(2023, 4, 30)


class TestDateCoercion:
    """Tests for date/datetime normalization."""

    def test_iso_date_string(self):
        """Test plain ISO dates."""
        assert coerce_date("2026-01-05") == date(2026, 1, 5)

    def test_rfc3339_timestamp(self):
        """Older files store full timestamps."""
        assert coerce_date("2026-01-05T00:00:00Z") == date(2026, 1, 5)

    def test_offset_timestamp_uses_utc_date(self):
        """Test an offset timestamp resolves to its UTC date."""
        assert coerce_date("2026-01-05T23:30:00-05:00") == date(2026, 1, 6)

    def test_unparseable_passes_through(self):
        """Garbage is left for model validation to reject."""
        assert coerce_date("not a date") == "not a date"

    def test_naive_datetime_becomes_utc(self):
        """Test naive datetimes are taken as UTC."""
        value = ensure_utc(datetime(2026, 1, 1, 8, 0))
        assert value.tzinfo == timezone.utc

    def test_to_calendar_date_uses_clock(self):
        """None means today according to the clock."""
        fixed = datetime(2026, 3, 1, 1, 0, tzinfo=timezone.utc)
        assert to_calendar_date(None, clock=lambda: fixed) == date(2026, 3, 1)

    def test_to_calendar_date_rejects_other_types(self):
        """Test unsupported 'now' types."""
        with pytest.raises(TypeError):
            to_calendar_date(12345)
