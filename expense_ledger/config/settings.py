"""
Configuration Management for the Expense Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Components receive the values they need through their constructors, so
tests can build them without touching the environment.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Ledger file configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_file: Path = Field(
        default=Path("data") / "expenses.json",
        description="Path to the JSON ledger file (created if missing)"
    )

    @field_validator("data_file")
    @classmethod
    def expand_data_file(cls, v: Path) -> Path:
        return v.expanduser()


class RecurrenceSettings(BaseSettings):
    """Recurrence engine and upcoming projector configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_RECURRENCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    default_upcoming_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Horizon used when the caller does not pass one"
    )
    max_upcoming_days: int = Field(
        default=365,
        ge=1,
        description="Longer horizons are clamped to this"
    )
    sweep_on_startup: bool = Field(
        default=True,
        description="Run a sweep when the application components are created"
    )

    @model_validator(mode="after")
    def default_within_max(self) -> "RecurrenceSettings":
        if self.default_upcoming_days > self.max_upcoming_days:
            raise ValueError("default_upcoming_days cannot exceed max_upcoming_days")
        return self


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    log_level: str = Field(
        default="INFO",
        description="Minimum level for the structured log"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON lines (console rendering otherwise)"
    )

    default_stats_period: str = Field(
        default="month",
        pattern="^(week|month)$",
        description="Stats period used when the caller does not pass one"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def recurrence(self) -> RecurrenceSettings:
        return RecurrenceSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    ``<setting_name>_error`` entries for the sections that failed.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "recurrence", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
