"""Tests for configuration."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from expense_ledger.config import (
    AppSettings,
    RecurrenceSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)


class TestDefaults:
    """Tests for default settings."""

    def test_storage_default_path(self):
        assert StorageSettings().data_file == Path("data") / "expenses.json"

    def test_recurrence_defaults(self):
        settings = RecurrenceSettings()
        assert settings.default_upcoming_days == 30
        assert settings.max_upcoming_days == 365
        assert settings.sweep_on_startup is True

    def test_app_defaults(self):
        settings = AppSettings()
        assert settings.log_level == "INFO"
        assert settings.default_stats_period == "month"


class TestEnvironment:
    """Tests for environment overrides."""

    def test_data_file_from_env(self, monkeypatch, tmp_path):
        """Test the storage prefix."""
        monkeypatch.setenv("LEDGER_STORAGE_DATA_FILE", str(tmp_path / "x.json"))
        assert get_settings().storage.data_file == tmp_path / "x.json"

    def test_log_level_is_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", " debug ")
        assert AppSettings().log_level == "DEBUG"

    def test_unknown_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_default_cannot_exceed_max(self, monkeypatch):
        """Test the horizon cross-field check."""
        monkeypatch.setenv("LEDGER_RECURRENCE_DEFAULT_UPCOMING_DAYS", "60")
        monkeypatch.setenv("LEDGER_RECURRENCE_MAX_UPCOMING_DAYS", "30")
        with pytest.raises(ValidationError):
            RecurrenceSettings()

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()


class TestValidateAllSettings:
    """Tests for the startup settings report."""

    def test_all_valid(self):
        assert validate_all_settings() == {"storage": True, "recurrence": True, "app": True}

    def test_reports_broken_section(self, monkeypatch):
        """Test a broken section is reported, not raised."""
        monkeypatch.setenv("DEFAULT_STATS_PERIOD", "decade")
        results = validate_all_settings()
        assert results["app"] is False
        assert "app_error" in results
        assert results["storage"] is True
