"""
Database manager for the bank ledger.

This module handles all persistence using SQLite: customers (the identity
store), accounts and transactions (the ledger store).
"""

import sqlite3
import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Iterator, List, Optional

from .errors import ConflictError, StorageError
from .models import (
    Account, AccountStatus, AccountType, Customer, Transaction, TransactionType, to_money,
)


SCHEMA = """
    CREATE TABLE IF NOT EXISTS customers (
        customer_id INTEGER PRIMARY KEY AUTOINCREMENT,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        phone TEXT NOT NULL,
        address TEXT NOT NULL,
        username TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL
    );

    CREATE TABLE IF NOT EXISTS accounts (
        account_id INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id INTEGER NOT NULL,
        account_number TEXT NOT NULL UNIQUE,
        account_type TEXT NOT NULL CHECK (account_type IN
            ('SAVINGS', 'CURRENT', 'FIXED_DEPOSIT', 'RECURRING_DEPOSIT')),
        balance DECIMAL(15,2) NOT NULL DEFAULT 0.00 CHECK (balance >= 0),
        status TEXT NOT NULL DEFAULT 'ACTIVE' CHECK (status IN
            ('ACTIVE', 'INACTIVE', 'SUSPENDED', 'CLOSED')),
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL,
        FOREIGN KEY (customer_id) REFERENCES customers (customer_id)
    );

    CREATE TABLE IF NOT EXISTS transactions (
        transaction_id INTEGER PRIMARY KEY AUTOINCREMENT,
        account_id INTEGER NOT NULL,
        transaction_type TEXT NOT NULL CHECK (transaction_type IN
            ('DEPOSIT', 'WITHDRAWAL', 'TRANSFER_IN', 'TRANSFER_OUT')),
        amount DECIMAL(15,2) NOT NULL CHECK (amount > 0),
        balance_after DECIMAL(15,2) NOT NULL,
        description TEXT,
        -- not enforced: history rows outlive a hard-deleted counterparty
        related_account_id INTEGER,
        transaction_date TIMESTAMP NOT NULL,
        FOREIGN KEY (account_id) REFERENCES accounts (account_id)
    );

    CREATE INDEX IF NOT EXISTS idx_accounts_customer_id ON accounts (customer_id);
    CREATE INDEX IF NOT EXISTS idx_transactions_account_id ON transactions (account_id);
    CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions (transaction_date);
"""

CUSTOMER_COLUMNS = """customer_id, first_name, last_name, email, phone, address,
                      username, password_hash, created_at, updated_at"""

ACCOUNT_COLUMNS = """account_id, customer_id, account_number, account_type,
                     balance, status, created_at, updated_at"""

TRANSACTION_COLUMNS = """transaction_id, account_id, transaction_type, amount,
                         balance_after, description, related_account_id, transaction_date"""

# newest first; ties fall back to insertion order
HISTORY_ORDER = "ORDER BY transaction_date DESC, transaction_id DESC"


def _ts(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


def _money(value: Decimal) -> str:
    return str(to_money(value))


class DatabaseManager:
    """Owns the SQLite connection and all data access for the ledger."""

    def __init__(self, db_path: str = "bank.db"):
        """Open the database and create tables if needed."""
        self.db_path = db_path
        self.logger = logging.getLogger(__name__)
        self._in_transaction = False
        try:
            # autocommit outside of explicit transaction() blocks
            self._conn = sqlite3.connect(db_path, isolation_level=None)
            self._conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            self.logger.error(f"Error opening database {db_path}: {e}")
            raise StorageError(f"Failed to open database: {e}") from e
        self._init_database()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _init_database(self):
        """Initialize database tables."""
        try:
            self._conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            self.logger.error(f"Error initializing schema: {e}")
            raise StorageError(f"Failed to initialize database: {e}") from e

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Run one parameterized statement, translating driver errors."""
        try:
            return self._conn.execute(sql, params)
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e):
                self.logger.warning(f"Uniqueness violation: {e}")
                raise ConflictError(f"Duplicate value: {e}") from e
            self.logger.error(f"Integrity error: {e}")
            raise StorageError(f"Storage constraint failed: {e}") from e
        except sqlite3.Error as e:
            self.logger.error(f"Database error: {e}")
            raise StorageError(f"Storage operation failed: {e}") from e

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    @contextmanager
    def transaction(self) -> Iterator["DatabaseManager"]:
        """Run the enclosed statements as one all-or-nothing unit.

        BEGIN IMMEDIATE takes the write lock up front so balances read inside
        the block cannot change underneath it. Nested use joins the outer
        unit.
        """
        if self._in_transaction:
            yield self
            return

        self._execute("BEGIN IMMEDIATE")
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            self._rollback()
            raise
        else:
            self._commit()
        finally:
            self._in_transaction = False

    def _commit(self):
        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as e:
            self.logger.error(f"Error committing transaction: {e}")
            self._rollback()
            raise StorageError(f"Failed to commit: {e}") from e

    def _rollback(self):
        try:
            self._conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            # nothing to roll back if sqlite already aborted the transaction
            self.logger.warning(f"Rollback failed: {e}")

    # Customers

    def _row_to_customer(self, row) -> Customer:
        return Customer(
            customer_id=row[0],
            first_name=row[1],
            last_name=row[2],
            email=row[3],
            phone=row[4],
            address=row[5],
            username=row[6],
            password_hash=row[7],
            created_at=datetime.fromisoformat(row[8]),
            updated_at=datetime.fromisoformat(row[9]),
        )

    def create_customer(self, customer: Customer) -> int:
        """Insert a customer and return its id."""
        cursor = self._execute("""
            INSERT INTO customers (first_name, last_name, email, phone, address,
                                   username, password_hash, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            customer.first_name,
            customer.last_name,
            customer.email,
            customer.phone,
            customer.address,
            customer.username,
            customer.password_hash,
            _ts(customer.created_at),
            _ts(customer.updated_at),
        ))
        return cursor.lastrowid

    def _fetch_customer(self, where: str, value) -> Optional[Customer]:
        row = self._execute(
            f"SELECT {CUSTOMER_COLUMNS} FROM customers WHERE {where} = ?", (value,)
        ).fetchone()
        return self._row_to_customer(row) if row else None

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        return self._fetch_customer("customer_id", customer_id)

    def get_customer_by_username(self, username: str) -> Optional[Customer]:
        return self._fetch_customer("username", username)

    def get_customer_by_email(self, email: str) -> Optional[Customer]:
        return self._fetch_customer("email", email)

    def username_exists(self, username: str) -> bool:
        row = self._execute(
            "SELECT COUNT(*) FROM customers WHERE username = ?", (username,)
        ).fetchone()
        return row[0] > 0

    def email_exists(self, email: str) -> bool:
        row = self._execute(
            "SELECT COUNT(*) FROM customers WHERE email = ?", (email,)
        ).fetchone()
        return row[0] > 0

    def update_customer(self, customer: Customer) -> bool:
        """Update profile fields of a customer."""
        cursor = self._execute("""
            UPDATE customers SET first_name = ?, last_name = ?, email = ?, phone = ?,
                                 address = ?, updated_at = ?
            WHERE customer_id = ?
        """, (
            customer.first_name,
            customer.last_name,
            customer.email,
            customer.phone,
            customer.address,
            _ts(datetime.now()),
            customer.customer_id,
        ))
        return cursor.rowcount > 0

    def update_password(self, customer_id: int, password_hash: str) -> bool:
        cursor = self._execute("""
            UPDATE customers SET password_hash = ?, updated_at = ? WHERE customer_id = ?
        """, (password_hash, _ts(datetime.now()), customer_id))
        return cursor.rowcount > 0

    def get_all_customers(self) -> List[Customer]:
        rows = self._execute(
            f"SELECT {CUSTOMER_COLUMNS} FROM customers ORDER BY created_at DESC, customer_id DESC"
        ).fetchall()
        return [self._row_to_customer(row) for row in rows]

    # Accounts

    def _row_to_account(self, row) -> Account:
        return Account(
            account_id=row[0],
            customer_id=row[1],
            account_number=row[2],
            account_type=AccountType(row[3]),
            balance=Decimal(str(row[4])),
            status=AccountStatus(row[5]),
            created_at=datetime.fromisoformat(row[6]),
            updated_at=datetime.fromisoformat(row[7]),
        )

    def create_account(self, account: Account) -> int:
        """Insert an account and return its id."""
        cursor = self._execute("""
            INSERT INTO accounts (customer_id, account_number, account_type, balance,
                                  status, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            account.customer_id,
            account.account_number,
            account.account_type.value,
            _money(account.balance),
            account.status.value,
            _ts(account.created_at),
            _ts(account.updated_at),
        ))
        return cursor.lastrowid

    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        row = self._execute(
            f"SELECT {ACCOUNT_COLUMNS} FROM accounts WHERE account_id = ?", (account_id,)
        ).fetchone()
        return self._row_to_account(row) if row else None

    def get_account_by_number(self, account_number: str) -> Optional[Account]:
        """Get account by account number."""
        row = self._execute(
            f"SELECT {ACCOUNT_COLUMNS} FROM accounts WHERE account_number = ?", (account_number,)
        ).fetchone()
        return self._row_to_account(row) if row else None

    def account_number_exists(self, account_number: str) -> bool:
        row = self._execute(
            "SELECT COUNT(*) FROM accounts WHERE account_number = ?", (account_number,)
        ).fetchone()
        return row[0] > 0

    def get_accounts_by_customer(self, customer_id: int) -> List[Account]:
        """Get a customer's accounts, newest first."""
        rows = self._execute(f"""
            SELECT {ACCOUNT_COLUMNS} FROM accounts WHERE customer_id = ?
            ORDER BY created_at DESC, account_id DESC
        """, (customer_id,)).fetchall()
        return [self._row_to_account(row) for row in rows]

    def get_all_accounts(self) -> List[Account]:
        """Get all accounts."""
        rows = self._execute(
            f"SELECT {ACCOUNT_COLUMNS} FROM accounts ORDER BY created_at DESC, account_id DESC"
        ).fetchall()
        return [self._row_to_account(row) for row in rows]

    def update_account_balance(self, account_id: int, new_balance: Decimal) -> bool:
        """Update account balance."""
        cursor = self._execute("""
            UPDATE accounts SET balance = ?, updated_at = ? WHERE account_id = ?
        """, (_money(new_balance), _ts(datetime.now()), account_id))
        return cursor.rowcount > 0

    def update_account_status(self, account_id: int, status: AccountStatus) -> bool:
        cursor = self._execute("""
            UPDATE accounts SET status = ?, updated_at = ? WHERE account_id = ?
        """, (status.value, _ts(datetime.now()), account_id))
        return cursor.rowcount > 0

    def update_account_type(self, account_id: int, account_type: AccountType) -> bool:
        cursor = self._execute("""
            UPDATE accounts SET account_type = ?, updated_at = ? WHERE account_id = ?
        """, (account_type.value, _ts(datetime.now()), account_id))
        return cursor.rowcount > 0

    def delete_account(self, account_id: int) -> bool:
        cursor = self._execute("DELETE FROM accounts WHERE account_id = ?", (account_id,))
        return cursor.rowcount > 0

    # Transactions

    def _row_to_transaction(self, row) -> Transaction:
        return Transaction(
            transaction_id=row[0],
            account_id=row[1],
            transaction_type=TransactionType(row[2]),
            amount=Decimal(str(row[3])),
            balance_after=Decimal(str(row[4])),
            description=row[5] or "",
            related_account_id=row[6],
            timestamp=datetime.fromisoformat(row[7]),
        )

    def create_transaction(self, transaction: Transaction) -> int:
        """Append a transaction record and return its id."""
        cursor = self._execute("""
            INSERT INTO transactions (account_id, transaction_type, amount, balance_after,
                                      description, related_account_id, transaction_date)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            transaction.account_id,
            transaction.transaction_type.value,
            _money(transaction.amount),
            _money(transaction.balance_after),
            transaction.description,
            transaction.related_account_id,
            _ts(transaction.timestamp),
        ))
        return cursor.lastrowid

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        row = self._execute(
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE transaction_id = ?",
            (transaction_id,)
        ).fetchone()
        return self._row_to_transaction(row) if row else None

    def get_account_transactions(self, account_id: int, limit: Optional[int] = None,
                                 start: Optional[datetime] = None,
                                 end: Optional[datetime] = None) -> List[Transaction]:
        """Get an account's transactions, newest first.

        ``start`` and ``end`` bound ``transaction_date`` inclusively.
        """
        sql = f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE account_id = ?"
        params: list = [account_id]
        if start is not None:
            sql += " AND transaction_date >= ?"
            params.append(_ts(start))
        if end is not None:
            sql += " AND transaction_date <= ?"
            params.append(_ts(end))
        sql += f" {HISTORY_ORDER}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        rows = self._execute(sql, tuple(params)).fetchall()
        return [self._row_to_transaction(row) for row in rows]

    def get_transactions_by_type(self, account_id: int,
                                 transaction_type: TransactionType) -> List[Transaction]:
        rows = self._execute(f"""
            SELECT {TRANSACTION_COLUMNS} FROM transactions
            WHERE account_id = ? AND transaction_type = ?
            {HISTORY_ORDER}
        """, (account_id, transaction_type.value)).fetchall()
        return [self._row_to_transaction(row) for row in rows]

    def get_all_transactions(self, limit: int = 1000) -> List[Transaction]:
        rows = self._execute(
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions {HISTORY_ORDER} LIMIT ?", (limit,)
        ).fetchall()
        return [self._row_to_transaction(row) for row in rows]

    def count_transactions(self, account_id: int) -> int:
        row = self._execute(
            "SELECT COUNT(*) FROM transactions WHERE account_id = ?", (account_id,)
        ).fetchone()
        return row[0]

    def delete_account_transactions(self, account_id: int) -> int:
        """Delete every transaction owned by an account; returns the row count."""
        cursor = self._execute("DELETE FROM transactions WHERE account_id = ?", (account_id,))
        return cursor.rowcount

    def close(self):
        """Close the database connection."""
        try:
            self._conn.close()
        except sqlite3.Error as e:
            self.logger.error(f"Error closing database: {e}")
