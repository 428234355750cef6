"""
Configuration Management for Monimo

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every tunable of the ledger is visible in one place and validated at
startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local ledger file configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MONIMO_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    path: str = Field(
        default="monimo_ledger.json",
        description="Path to the ledger JSON document"
    )
    save_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a failed save is retried"
    )
    run_migrations: bool = Field(
        default=True,
        description="Upgrade older ledger documents at startup"
    )

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Reject a path that points at an existing directory."""
        if Path(v).is_dir():
            raise ValueError(f"Ledger path is a directory: {v}")
        return v

    @property
    def ledger_path(self) -> Path:
        return Path(self.path).expanduser()


class LedgerSettings(BaseSettings):
    """Bookkeeping behaviour and display thresholds."""

    model_config = SettingsConfigDict(
        env_prefix="MONIMO_LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    low_stock_threshold: int = Field(
        default=5,
        ge=0,
        description="Items at or below this quantity are reported as low stock"
    )
    currency_symbol: str = Field(
        default="₱",
        max_length=5,
    )
    # Sanity threshold, warning only
    max_transaction_amount: float = Field(
        default=10_000_000.0,
        gt=0,
        description="Amounts above this are accepted with a warning"
    )


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MONIMO_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )


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
    debug_mode: bool = False


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
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


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

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry for each failure. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("storage", "ledger", "logging", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
