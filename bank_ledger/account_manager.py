"""
Account manager for the bank ledger.

This module contains the business logic for opening, looking up and
changing the status of bank accounts.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List

from .database import DatabaseManager
from .errors import NotFoundError, ValidationError
from .models import (
    Account, AccountStatus, AccountType, Transaction, TransactionType, ZERO, exact_money,
)
from .validation import generate_account_number


logger = logging.getLogger(__name__)


class AccountManager:
    """Manages bank account lifecycle."""

    def __init__(self, db_manager: DatabaseManager):
        """Initialize account manager with database."""
        self.db = db_manager

    def generate_account_number(self) -> str:
        """Generate an account number not yet used by any account."""
        account_number = generate_account_number()
        while self.db.account_number_exists(account_number):
            account_number = generate_account_number()
        return account_number

    def open_account(self, customer_id: int, account_type: AccountType,
                     initial_deposit: Decimal = ZERO) -> Account:
        """Open a new ACTIVE account.

        A positive initial deposit is recorded as a DEPOSIT transaction in
        the same unit of work as the account row.
        """
        logger.info(f"Opening new {account_type.value} account for customer ID: {customer_id}")

        initial_deposit = exact_money(initial_deposit, "Initial deposit")
        if initial_deposit < 0:
            raise ValidationError("Initial deposit cannot be negative")

        if self.db.get_customer(customer_id) is None:
            raise NotFoundError("Customer not found")

        with self.db.transaction():
            now = datetime.now()
            account = Account(
                customer_id=customer_id,
                account_number=self.generate_account_number(),
                account_type=account_type,
                balance=initial_deposit,
                status=AccountStatus.ACTIVE,
                created_at=now,
                updated_at=now,
            )
            account.account_id = self.db.create_account(account)

            if initial_deposit > 0:
                self.db.create_transaction(Transaction(
                    account_id=account.account_id,
                    transaction_type=TransactionType.DEPOSIT,
                    amount=initial_deposit,
                    balance_after=initial_deposit,
                    description="Initial deposit",
                    timestamp=now,
                ))

        logger.info(f"Account opened successfully: {account.account_number}")
        return account

    def get_account_by_id(self, account_id: int) -> Account:
        """Get account by ID."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        return account

    def get_account_by_number(self, account_number: str) -> Account:
        """Get account by account number."""
        account = self.db.get_account_by_number(account_number)
        if account is None:
            raise NotFoundError("Account not found")
        return account

    def get_accounts_by_customer_id(self, customer_id: int) -> List[Account]:
        """Get a customer's accounts, newest first."""
        return self.db.get_accounts_by_customer(customer_id)

    def get_all_accounts(self) -> List[Account]:
        """Get all accounts."""
        return self.db.get_all_accounts()

    @staticmethod
    def is_owned_by(account: Account, customer_id: int) -> bool:
        return account.customer_id == customer_id

    def update_account_type(self, account_id: int, account_type: AccountType) -> Account:
        logger.info(f"Updating account type for account ID: {account_id}")
        self.get_account_by_id(account_id)
        self.db.update_account_type(account_id, account_type)
        return self.get_account_by_id(account_id)

    def close_account(self, account_id: int) -> None:
        """Close an account. Only an empty account can be closed."""
        logger.info(f"Closing account ID: {account_id}")

        with self.db.transaction():
            account = self.get_account_by_id(account_id)
            if account.balance != ZERO:
                raise ValidationError(
                    "Cannot close account with non-zero balance. Please withdraw all funds first."
                )
            self.db.update_account_status(account_id, AccountStatus.CLOSED)

        logger.info(f"Account closed successfully: {account_id}")

    def suspend_account(self, account_id: int) -> None:
        """Suspend an account (admin)."""
        self._set_status(account_id, AccountStatus.SUSPENDED)

    def activate_account(self, account_id: int) -> None:
        """Activate an account (admin)."""
        self._set_status(account_id, AccountStatus.ACTIVE)

    def _set_status(self, account_id: int, status: AccountStatus) -> None:
        logger.info(f"Setting account ID {account_id} to {status.value}")
        if not self.db.update_account_status(account_id, status):
            raise NotFoundError("Account not found")

    def delete_account(self, account_id: int) -> None:
        """Hard-delete an empty account and its transaction history (admin)."""
        logger.info(f"Deleting account ID: {account_id}")

        with self.db.transaction():
            account = self.get_account_by_id(account_id)
            if account.balance != ZERO:
                raise ValidationError("Cannot delete account with non-zero balance")

            removed = self.db.delete_account_transactions(account_id)
            self.db.delete_account(account_id)

        logger.info(f"Account deleted successfully: {account_id} ({removed} transactions removed)")

    def get_account_summary(self, account_id: int) -> dict:
        """Get an account with its credit and debit totals."""
        account = self.get_account_by_id(account_id)
        transactions = self.db.get_account_transactions(account_id)

        total_credits = ZERO
        total_debits = ZERO
        for txn in transactions:
            if txn.transaction_type.is_credit:
                total_credits += txn.amount
            else:
                total_debits += txn.amount

        return {
            'account': account,
            'total_credits': total_credits,
            'total_debits': total_debits,
            'transaction_count': len(transactions),
        }

    def get_customer_summary(self, customer_id: int) -> dict:
        """Count a customer's ACTIVE accounts and total their balances."""
        active = [a for a in self.db.get_accounts_by_customer(customer_id) if a.is_active]
        return {
            'customer_id': customer_id,
            'active_accounts': len(active),
            'total_balance': sum((a.balance for a in active), ZERO),
        }
