"""
Transaction manager for the bank ledger.

Every balance change goes through this module. The account balance and the
transaction row recording it are written in one database transaction, so
the latest row's ``balance_after`` always matches the stored balance.
"""

import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from .database import DatabaseManager
from .errors import InsufficientFundsError, NotFoundError, StateError, ValidationError
from .models import (
    MAX_AMOUNT, Account, AccountStatus, Transaction, TransactionType, exact_money,
)


logger = logging.getLogger(__name__)

DateBound = Union[date, datetime]


def _require_active(account: Account, label: str = "Account") -> None:
    status = account.status
    if status is AccountStatus.ACTIVE:
        return
    if status is AccountStatus.CLOSED:
        raise StateError(f"{label} is closed")
    if status is AccountStatus.SUSPENDED:
        raise StateError(f"{label} is suspended")
    if status is AccountStatus.INACTIVE:
        raise StateError(f"{label} is not active")
    raise StateError(f"{label} has unknown status {status}")


def _positive_amount(amount, operation: str) -> Decimal:
    money = exact_money(amount, f"{operation} amount")
    if money <= 0:
        raise ValidationError(f"{operation} amount must be positive")
    return money


def _check_ceiling(new_balance: Decimal, label: str = "Account") -> None:
    if new_balance > MAX_AMOUNT:
        raise ValidationError(f"{label} balance cannot exceed {MAX_AMOUNT}")


def _start_of(bound: DateBound) -> datetime:
    if isinstance(bound, datetime):
        return bound
    return datetime.combine(bound, time.min)


def _end_of(bound: DateBound) -> datetime:
    if isinstance(bound, datetime):
        return bound
    return datetime.combine(bound, time.max)


class TransactionManager:
    """Deposits, withdrawals, transfers and history queries."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def _load_account(self, account_id: int, label: str = "Account") -> Account:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(f"{label} not found")
        return account

    def _post(self, account: Account, transaction_type: TransactionType, amount: Decimal,
              new_balance: Decimal, description: str,
              related_account_id: Optional[int] = None,
              timestamp: Optional[datetime] = None) -> Transaction:
        """Persist the new balance and append the matching ledger row.

        Must run inside ``self.db.transaction()``.
        """
        self.db.update_account_balance(account.account_id, new_balance)
        account.balance = new_balance

        transaction = Transaction(
            account_id=account.account_id,
            transaction_type=transaction_type,
            amount=amount,
            balance_after=new_balance,
            description=description,
            related_account_id=related_account_id,
            timestamp=timestamp,
        )
        transaction.transaction_id = self.db.create_transaction(transaction)
        return transaction

    def deposit(self, account_id: int, amount: Decimal, description: str = "") -> Transaction:
        """Deposit money to an account."""
        logger.info(f"Processing deposit of {amount} for account ID: {account_id}")
        amount = _positive_amount(amount, "Deposit")

        with self.db.transaction():
            account = self._load_account(account_id)
            _require_active(account)

            new_balance = account.balance + amount
            _check_ceiling(new_balance)
            transaction = self._post(
                account, TransactionType.DEPOSIT, amount, new_balance,
                description or "Deposit",
            )

        logger.info(f"Deposit successful for account ID: {account_id}")
        return transaction

    def withdraw(self, account_id: int, amount: Decimal, description: str = "") -> Transaction:
        """Withdraw money from an account."""
        logger.info(f"Processing withdrawal of {amount} for account ID: {account_id}")
        amount = _positive_amount(amount, "Withdrawal")

        with self.db.transaction():
            account = self._load_account(account_id)
            _require_active(account)

            if not account.can_withdraw(amount):
                raise InsufficientFundsError(
                    f"Insufficient balance. Available: {account.balance}"
                )

            new_balance = account.balance - amount
            transaction = self._post(
                account, TransactionType.WITHDRAWAL, amount, new_balance,
                description or "Withdrawal",
            )

        logger.info(f"Withdrawal successful for account ID: {account_id}")
        return transaction

    def transfer(self, from_account_id: int, to_account_id: int,
                 amount: Decimal) -> Tuple[Transaction, Transaction]:
        """Move money between two accounts as one atomic unit.

        Returns the TRANSFER_OUT row on the source and the TRANSFER_IN row on
        the destination, in that order. Any failure leaves both balances and
        the ledger untouched.
        """
        logger.info(
            f"Processing transfer of {amount} from account {from_account_id} "
            f"to account {to_account_id}"
        )
        amount = _positive_amount(amount, "Transfer")
        if from_account_id == to_account_id:
            raise ValidationError("Cannot transfer to the same account")

        with self.db.transaction():
            # lower id first so concurrent transfers lock in the same order
            loaded = {}
            for account_id in sorted((from_account_id, to_account_id)):
                label = "Source account" if account_id == from_account_id else "Destination account"
                loaded[account_id] = self._load_account(account_id, label)
            from_account = loaded[from_account_id]
            to_account = loaded[to_account_id]

            _require_active(from_account, "Source account")
            _require_active(to_account, "Destination account")

            if not from_account.can_withdraw(amount):
                raise InsufficientFundsError(
                    f"Insufficient balance in source account. Available: {from_account.balance}"
                )

            from_new_balance = from_account.balance - amount
            to_new_balance = to_account.balance + amount
            _check_ceiling(to_new_balance, "Destination account")
            now = datetime.now()

            self.db.update_account_balance(from_account_id, from_new_balance)
            self.db.update_account_balance(to_account_id, to_new_balance)
            from_account.balance = from_new_balance
            to_account.balance = to_new_balance

            out_txn = Transaction(
                account_id=from_account_id,
                transaction_type=TransactionType.TRANSFER_OUT,
                amount=amount,
                balance_after=from_new_balance,
                description=f"Transfer to account {to_account.account_number}",
                related_account_id=to_account_id,
                timestamp=now,
            )
            out_txn.transaction_id = self.db.create_transaction(out_txn)

            in_txn = Transaction(
                account_id=to_account_id,
                transaction_type=TransactionType.TRANSFER_IN,
                amount=amount,
                balance_after=to_new_balance,
                description=f"Transfer from account {from_account.account_number}",
                related_account_id=from_account_id,
                timestamp=now,
            )
            in_txn.transaction_id = self.db.create_transaction(in_txn)

        logger.info(f"Transfer successful from account {from_account_id} to account {to_account_id}")
        return out_txn, in_txn

    def check_balance(self, account_id: int) -> Decimal:
        """Get the current balance of an account."""
        return self._load_account(account_id).balance

    def get_transaction_history(self, account_id: int,
                                start: Optional[DateBound] = None,
                                end: Optional[DateBound] = None) -> List[Transaction]:
        """Get an account's transactions, newest first.

        Both bounds are inclusive; a plain date covers the whole day.
        """
        start_dt = _start_of(start) if start is not None else None
        end_dt = _end_of(end) if end is not None else None
        if start_dt is not None and end_dt is not None and start_dt > end_dt:
            raise ValidationError("Start date must not be after end date")

        return self.db.get_account_transactions(account_id, start=start_dt, end=end_dt)

    def get_recent_transactions(self, account_id: int, limit: int = 10) -> List[Transaction]:
        """Get the newest ``limit`` transactions of an account."""
        if limit < 1:
            raise ValidationError("Limit must be positive")
        return self.db.get_account_transactions(account_id, limit=limit)

    def get_transaction_by_id(self, transaction_id: int) -> Transaction:
        transaction = self.db.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction not found")
        return transaction

    def get_transactions_by_type(self, account_id: int,
                                 transaction_type: TransactionType) -> List[Transaction]:
        return self.db.get_transactions_by_type(account_id, transaction_type)

    def get_transaction_count(self, account_id: int) -> int:
        return self.db.count_transactions(account_id)

    def get_all_transactions(self, limit: int = 1000) -> List[Transaction]:
        """Get the newest transactions across all accounts (admin)."""
        return self.db.get_all_transactions(limit)
