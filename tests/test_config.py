"""Tests for settings loading."""

import pytest

from monimo.config import (
    LedgerSettings,
    LoggingSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)


class TestSettings:
    """Tests for pydantic-settings configuration."""

    def test_defaults(self, monkeypatch):
        """Test default values without environment overrides."""
        monkeypatch.delenv("MONIMO_LEDGER_LOW_STOCK_THRESHOLD", raising=False)
        ledger = LedgerSettings()
        assert ledger.low_stock_threshold == 5
        assert ledger.currency_symbol == "₱"

    def test_env_override(self, monkeypatch):
        """Test that prefixed environment variables are read."""
        monkeypatch.setenv("MONIMO_LEDGER_LOW_STOCK_THRESHOLD", "3")
        monkeypatch.setenv("MONIMO_STORAGE_SAVE_ATTEMPTS", "5")
        assert LedgerSettings().low_stock_threshold == 3
        assert StorageSettings().save_attempts == 5

    def test_storage_path_rejects_directory(self, tmp_path):
        """The ledger path must not be a directory."""
        with pytest.raises(ValueError):
            StorageSettings(path=str(tmp_path))

    def test_ledger_path_property(self, tmp_path):
        target = tmp_path / "shop.json"
        assert StorageSettings(path=str(target)).ledger_path == target

    def test_log_level_pattern(self):
        with pytest.raises(ValueError):
            LoggingSettings(level="LOUD")

    def test_settings_cached(self):
        assert get_settings() is get_settings()

    def test_validate_all_settings(self):
        """Test the startup health map."""
        results = validate_all_settings()
        assert results["storage"] is True
        assert results["ledger"] is True
        assert results["logging"] is True

    def test_validate_all_settings_reports_failure(self, monkeypatch):
        """An invalid environment value is reported, not raised."""
        monkeypatch.setenv("MONIMO_LOG_LEVEL", "LOUD")
        results = validate_all_settings()
        assert results["logging"] is False
        assert "logging_error" in results
