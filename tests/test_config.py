"""Tests for the settings layer."""

import pytest

from finance_tracker.config.settings import AppSettings, LedgerSettings


class TestAppSettings:
    """Tests for AppSettings."""

    def test_debug_mode_forces_debug_logging(self, monkeypatch):
        """DEBUG_MODE overrides LOG_LEVEL."""
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.setenv("DEBUG_MODE", "true")
        assert AppSettings().effective_log_level == "DEBUG"

    def test_log_level_used_without_debug_mode(self, monkeypatch):
        """Without debug mode the configured level applies."""
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.setenv("DEBUG_MODE", "false")
        assert AppSettings().effective_log_level == "WARNING"

    def test_environment_is_read(self, monkeypatch):
        """APP_ENVIRONMENT names the deployment."""
        monkeypatch.setenv("APP_ENVIRONMENT", "production")
        assert AppSettings().app_environment == "production"


class TestLedgerSettings:
    """Tests for LedgerSettings."""

    def test_display_format_from_environment(self, monkeypatch):
        """LEDGER_DISPLAY_DATE_FORMAT sets the display format."""
        monkeypatch.setenv("LEDGER_DISPLAY_DATE_FORMAT", "%Y/%m/%d")
        assert LedgerSettings().display_date_format == "%Y/%m/%d"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
