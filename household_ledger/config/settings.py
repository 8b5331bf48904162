"""
Configuration Management for the Household Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The money engine itself has no knobs besides the display currency mark;
everything else tunes the edit boundary (retries) and logging.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Ledger computation and edit-retry configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    currency_mark: str = Field(
        default="円",
        description="Suffix appended to formatted amounts"
    )

    # Optimistic-lock retries on the aggregate ledger
    edit_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per edit before a version conflict is surfaced"
    )
    retry_wait_multiplier: float = Field(
        default=0.5,
        ge=0.0,
        description="Exponential backoff multiplier in seconds"
    )
    retry_wait_max: float = Field(
        default=5.0,
        ge=0.0,
        description="Upper bound for a single backoff wait in seconds"
    )


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Root log level"
    )
    json_logs: bool = Field(
        default=True,
        description="Render JSON lines (False = human-readable console output)"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
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

    # Note: These are loaded lazily to allow partial configuration

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}; a failing section also
    gets a ``<name>_error`` entry. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.ledger
        results["ledger"] = True
    except Exception as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    try:
        _ = settings.logging
        results["logging"] = True
    except Exception as e:
        results["logging"] = False
        results["logging_error"] = str(e)

    return results
