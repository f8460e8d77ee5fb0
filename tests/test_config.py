"""Tests for settings and logging setup."""

import io
import logging
from decimal import Decimal

import pytest

from ledgerkit.config import DEFAULT_DB_PATH, Settings
from ledgerkit import logging_setup
from ledgerkit.logging_setup import _parse_level, configure_logging, get_logger


def test_defaults(monkeypatch):
    for name in (
        "LEDGERKIT_DB_PATH",
        "LEDGERKIT_LOG_LEVEL",
        "LEDGERKIT_RECONCILE_WINDOW_DAYS",
        "LEDGERKIT_AMOUNT_EPSILON",
        "LEDGERKIT_AGENT_THRESHOLD",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings == Settings()
    assert settings.db_path == DEFAULT_DB_PATH
    assert settings.reconcile_window_days == 3
    assert settings.amount_epsilon == Decimal("0.01")
    assert settings.agent_threshold == Decimal("0.85")


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("LEDGERKIT_DB_PATH", str(tmp_path / "x.db"))
    monkeypatch.setenv("LEDGERKIT_RECONCILE_WINDOW_DAYS", "7")
    monkeypatch.setenv("LEDGERKIT_AMOUNT_EPSILON", "0.005")
    monkeypatch.setenv("LEDGERKIT_AGENT_THRESHOLD", "0.9")

    settings = Settings.from_env()

    assert settings.db_path == str(tmp_path / "x.db")
    assert settings.reconcile_window_days == 7
    assert settings.amount_epsilon == Decimal("0.005")
    assert settings.agent_threshold == Decimal("0.9")


def test_bad_number_in_environment(monkeypatch):
    monkeypatch.setenv("LEDGERKIT_RECONCILE_WINDOW_DAYS", "three")

    with pytest.raises(ValueError):
        Settings.from_env()


def test_parse_level(monkeypatch):
    monkeypatch.delenv("LEDGERKIT_LOG_LEVEL", raising=False)
    assert _parse_level("debug") == logging.DEBUG
    assert _parse_level(logging.WARNING) == logging.WARNING
    assert _parse_level("15") == 15
    assert _parse_level(None) == logging.INFO

    monkeypatch.setenv("LEDGERKIT_LOG_LEVEL", "ERROR")
    assert _parse_level(None) == logging.ERROR
    assert _parse_level("bogus") == logging.ERROR


def test_get_logger_is_package_scoped():
    logger = get_logger("ledgerkit.domain.entry")

    assert logger.name == "ledgerkit.domain.entry"
    assert logging.getLogger("ledgerkit").handlers


def test_configure_logging_uses_level_format_and_stream(monkeypatch):
    package_logger = logging.getLogger("ledgerkit")
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    monkeypatch.setattr(package_logger, "handlers", [])
    monkeypatch.setattr(package_logger, "propagate", package_logger.propagate)
    monkeypatch.setattr(package_logger, "level", package_logger.level)
    stream = io.StringIO()

    configure_logging("WARNING", fmt="%(levelname)s %(message)s", stream=stream)
    get_logger("ledgerkit.domain.entry").info("hidden")
    get_logger("ledgerkit.domain.entry").warning("shown")
    configure_logging("DEBUG", stream=io.StringIO())

    assert stream.getvalue() == "WARNING shown\n"
    assert len(package_logger.handlers) == 1
