"""
Bank Ledger

A console banking ledger: customers register and log in, open typed
accounts, and move money with every balance change recorded as an
immutable transaction row.
"""

__version__ = "0.1.0"

from dataclasses import dataclass

from .models import (
    Account, AccountStatus, AccountType, Customer, Transaction, TransactionType,
)
from .errors import (
    AuthError, BankError, ConfigurationError, ConflictError, ErrorKind,
    InsufficientFundsError, NotFoundError, StateError, StorageError, ValidationError,
)
from .database import DatabaseManager
from .auth_manager import AuthManager
from .account_manager import AccountManager
from .transaction_manager import TransactionManager


@dataclass
class BankServices:
    """The three components wired to one shared store handle."""

    db: DatabaseManager
    auth: AuthManager
    accounts: AccountManager
    transactions: TransactionManager

    def close(self):
        self.db.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def create_services(db_path: str = "bank.db") -> BankServices:
    """
    Open the store and build the auth, account and transaction components.

    Args:
        db_path: Path to the database file

    Returns:
        BankServices bundle; call ``close()`` when done
    """
    db_manager = DatabaseManager(db_path)
    return BankServices(
        db=db_manager,
        auth=AuthManager(db_manager),
        accounts=AccountManager(db_manager),
        transactions=TransactionManager(db_manager),
    )


__all__ = [
    "Account",
    "AccountStatus",
    "AccountType",
    "Customer",
    "Transaction",
    "TransactionType",
    "AuthError",
    "BankError",
    "ConfigurationError",
    "ConflictError",
    "ErrorKind",
    "InsufficientFundsError",
    "NotFoundError",
    "StateError",
    "StorageError",
    "ValidationError",
    "DatabaseManager",
    "AuthManager",
    "AccountManager",
    "TransactionManager",
    "BankServices",
    "create_services",
]
