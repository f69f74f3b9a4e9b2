"""
Tests for settings and logging setup.
"""

import json
import logging
import sys

import pytest

from bank_ledger.config import Settings
from bank_ledger.errors import ConfigurationError, ErrorKind
from bank_ledger.logging_config import JsonFormatter, setup_logging


ENV_NAMES = ("DB_PATH", "LOG_LEVEL", "LOG_FORMAT", "CURRENCY_SYMBOL", "HISTORY_LIMIT")


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(f"BANK_LEDGER_{name}", raising=False)
    return monkeypatch


class TestSettings:
    """Test Settings.from_env."""

    def test_defaults(self, clean_env):
        settings = Settings.from_env()
        assert settings == Settings()
        assert settings.db_path == "bank.db"
        assert settings.log_level == "WARNING"
        assert settings.currency_symbol == "₹"
        assert settings.history_limit == 10

    def test_overrides(self, clean_env):
        clean_env.setenv("BANK_LEDGER_DB_PATH", "/tmp/ledger.db")
        clean_env.setenv("BANK_LEDGER_LOG_LEVEL", "DEBUG")
        clean_env.setenv("BANK_LEDGER_LOG_FORMAT", "json")
        clean_env.setenv("BANK_LEDGER_CURRENCY_SYMBOL", "$")
        clean_env.setenv("BANK_LEDGER_HISTORY_LIMIT", "25")

        settings = Settings.from_env()
        assert settings.db_path == "/tmp/ledger.db"
        assert settings.log_level == "DEBUG"
        assert settings.log_format == "json"
        assert settings.currency_symbol == "$"
        assert settings.history_limit == 25

    @pytest.mark.parametrize("value", ["ten", "0", "-3", ""])
    def test_invalid_history_limit(self, clean_env, value):
        clean_env.setenv("BANK_LEDGER_HISTORY_LIMIT", value)
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_env()
        assert exc_info.value.kind is ErrorKind.CONFIGURATION

    def test_invalid_log_format(self, clean_env):
        clean_env.setenv("BANK_LEDGER_LOG_FORMAT", "xml")
        with pytest.raises(ConfigurationError, match="LOG_FORMAT"):
            Settings.from_env()


class TestLogging:
    """Test setup_logging and JsonFormatter."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        saved_level = root.level
        yield
        for handler in root.handlers[:]:
            if type(handler) is logging.StreamHandler:
                root.removeHandler(handler)
        root.setLevel(saved_level)
        logging.getLogger("bank_ledger").setLevel(logging.NOTSET)

    def test_setup_installs_single_handler(self):
        first = setup_logging("INFO")
        second = setup_logging("DEBUG")

        root = logging.getLogger()
        assert root.handlers == [second]
        assert first not in root.handlers
        assert root.level == logging.DEBUG
        assert logging.getLogger("bank_ledger").level == logging.DEBUG
        assert logging.getLogger("passlib").level == logging.WARNING

    def test_unknown_level_falls_back_to_warning(self):
        handler = setup_logging("LOUD")
        assert handler.level == logging.WARNING

    def test_standard_format(self):
        handler = setup_logging("INFO", "standard")
        record = logging.LogRecord("bank_ledger.database", logging.INFO, __file__, 1,
                                   "Database initialized", None, None)
        line = handler.format(record)
        assert "| INFO     | bank_ledger.database | Database initialized" in line

    def test_json_format(self):
        handler = setup_logging("INFO", "json")
        assert isinstance(handler.formatter, JsonFormatter)

        record = logging.LogRecord("bank_ledger.auth_manager", logging.WARNING, __file__, 1,
                                   "Failed login for %s", ("ghost",), None)
        data = json.loads(handler.format(record))
        assert data["level"] == "WARNING"
        assert data["logger"] == "bank_ledger.auth_manager"
        assert data["message"] == "Failed login for ghost"
        assert "timestamp" in data

    def test_json_format_includes_exception(self):
        formatter = JsonFormatter()
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("bank_ledger", logging.ERROR, __file__, 1,
                                       "failed", None, sys.exc_info())
        data = json.loads(formatter.format(record))
        assert "RuntimeError: boom" in data["exception"]
