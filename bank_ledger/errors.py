"""Exception hierarchy for the bank ledger.

Every error carries an ``ErrorKind`` so callers can dispatch on ``err.kind``
instead of on the concrete class.
"""

from enum import Enum


class ErrorKind(Enum):
    """Categories of failure surfaced to callers."""
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    STATE = "state"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    AUTH = "auth"
    STORAGE = "storage"
    CONFIGURATION = "configuration"


class BankError(Exception):
    """Base exception for all bank ledger errors."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BankError):
    """Raised when input is malformed or out of range."""

    kind = ErrorKind.VALIDATION


class ConflictError(BankError):
    """Raised when a uniqueness constraint would be violated."""

    kind = ErrorKind.CONFLICT


class NotFoundError(BankError):
    """Raised when a referenced entity does not exist."""

    kind = ErrorKind.NOT_FOUND


class StateError(BankError):
    """Raised when an entity's status forbids the operation."""

    kind = ErrorKind.STATE


class InsufficientFundsError(BankError):
    """Raised when a debit exceeds the available balance."""

    kind = ErrorKind.INSUFFICIENT_FUNDS


class AuthError(BankError):
    """Raised when credentials do not match."""

    kind = ErrorKind.AUTH


class StorageError(BankError):
    """Raised when the underlying store fails."""

    kind = ErrorKind.STORAGE


class ConfigurationError(BankError):
    """Raised when configuration is invalid."""

    kind = ErrorKind.CONFIGURATION
