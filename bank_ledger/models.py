"""
Data models for the bank ledger.

This module contains the core data structures used throughout the application.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional
from enum import Enum

from .errors import ValidationError


CENT = Decimal('0.01')
ZERO = Decimal('0.00')
# largest value a DECIMAL(15,2) column holds exactly
MAX_AMOUNT = Decimal('9999999999999.99')


def to_money(value) -> Decimal:
    """Convert a value to a fixed-point Decimal with two fraction digits.

    Raises ValidationError for non-numeric or non-finite input.
    """
    try:
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        if not value.is_finite():
            raise ValidationError(f"Invalid amount: {value}")
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"Invalid amount: {value}")


def exact_money(value, label: str = "Amount") -> Decimal:
    """Convert an input amount without rounding it.

    Sub-cent precision and magnitudes beyond MAX_AMOUNT raise
    ValidationError. Negative zero comes back as ZERO.
    """
    money = to_money(value)
    if money != (value if isinstance(value, Decimal) else Decimal(str(value))):
        raise ValidationError(f"{label} cannot have more than two decimal places")
    if abs(money) > MAX_AMOUNT:
        raise ValidationError(f"{label} cannot exceed {MAX_AMOUNT}")
    if money == 0:
        return ZERO
    return money


class AccountType(Enum):
    """Types of bank accounts."""
    SAVINGS = "SAVINGS"
    CURRENT = "CURRENT"
    FIXED_DEPOSIT = "FIXED_DEPOSIT"
    RECURRING_DEPOSIT = "RECURRING_DEPOSIT"


class AccountStatus(Enum):
    """Lifecycle states of an account.

    INACTIVE is modelled by the schema but no operation moves an account
    into or out of it.
    """
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    CLOSED = "CLOSED"


class TransactionType(Enum):
    """Types of transactions."""
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"

    @property
    def is_credit(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.TRANSFER_IN)


@dataclass
class Customer:
    """Represents a registered customer."""

    customer_id: Optional[int] = None
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    username: str = ""
    password_hash: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = datetime.now()
        if self.updated_at is None:
            self.updated_at = self.created_at

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass
class Account:
    """Represents a bank account."""

    account_id: Optional[int] = None
    customer_id: int = 0
    account_number: Optional[str] = None
    account_type: AccountType = AccountType.SAVINGS
    balance: Decimal = ZERO
    status: AccountStatus = AccountStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Initialize account after creation."""
        if self.created_at is None:
            self.created_at = datetime.now()
        if self.updated_at is None:
            self.updated_at = self.created_at

        self.balance = to_money(self.balance)

    @property
    def is_active(self) -> bool:
        return self.status is AccountStatus.ACTIVE

    def can_withdraw(self, amount: Decimal) -> bool:
        """Check if the balance covers the amount."""
        return to_money(amount) <= self.balance


@dataclass
class Transaction:
    """Represents one immutable balance change."""

    transaction_id: Optional[int] = None
    account_id: int = 0
    transaction_type: TransactionType = TransactionType.DEPOSIT
    amount: Decimal = ZERO
    balance_after: Decimal = ZERO
    description: str = ""
    related_account_id: Optional[int] = None  # counterparty for transfers
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        """Initialize transaction after creation."""
        if self.timestamp is None:
            self.timestamp = datetime.now()

        self.amount = to_money(self.amount)
        self.balance_after = to_money(self.balance_after)

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.transaction_type.is_credit else -self.amount
