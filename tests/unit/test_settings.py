"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from src.config.settings import AnalyticsSettings, LedgerSettings, Settings


def test_defaults():
    settings = Settings()
    assert settings.ledger.timezone == "UTC"
    assert settings.analytics.significant_change_percent == 50.0
    assert settings.api.max_page_size >= settings.api.default_page_size


def test_timezone_from_environment(monkeypatch):
    monkeypatch.setenv("LEDGER_TIMEZONE", "Europe/Paris")
    assert LedgerSettings().timezone == "Europe/Paris"


def test_unknown_timezone_rejected():
    with pytest.raises(ValidationError, match="unknown IANA time zone"):
        LedgerSettings(timezone="Mars/Olympus")


def test_unit_classes_must_not_overlap():
    with pytest.raises(ValidationError, match="both count and continuous"):
        LedgerSettings(count_units=["units", "KG"], continuous_units=["kg"])


def test_analytics_window_positive():
    with pytest.raises(ValidationError):
        AnalyticsSettings(default_previous_months=0)
