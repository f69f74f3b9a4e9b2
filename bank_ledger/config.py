"""Configuration management for the bank ledger."""

import os
from dataclasses import dataclass

from .errors import ConfigurationError


@dataclass
class Settings:
    """Runtime settings."""

    db_path: str = "bank.db"
    log_level: str = "WARNING"
    log_format: str = "standard"
    currency_symbol: str = "₹"
    history_limit: int = 10

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        limit_str = os.getenv("BANK_LEDGER_HISTORY_LIMIT", "10")
        try:
            history_limit = int(limit_str)
        except ValueError:
            raise ConfigurationError(f"Invalid BANK_LEDGER_HISTORY_LIMIT: {limit_str!r}")
        if history_limit < 1:
            raise ConfigurationError("BANK_LEDGER_HISTORY_LIMIT must be positive")

        log_format = os.getenv("BANK_LEDGER_LOG_FORMAT", "standard")
        if log_format not in ("standard", "json"):
            raise ConfigurationError(f"Invalid BANK_LEDGER_LOG_FORMAT: {log_format!r}")

        return cls(
            db_path=os.getenv("BANK_LEDGER_DB_PATH", "bank.db"),
            log_level=os.getenv("BANK_LEDGER_LOG_LEVEL", "WARNING"),
            log_format=log_format,
            currency_symbol=os.getenv("BANK_LEDGER_CURRENCY_SYMBOL", "₹"),
            history_limit=history_limit,
        )
