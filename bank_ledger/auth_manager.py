"""
Authentication and customer registration.

This module contains the business logic for registering customers,
logging them in and maintaining their credentials and profile.
"""

import logging
from datetime import datetime
from typing import List

from .database import DatabaseManager
from .errors import AuthError, ConflictError, NotFoundError, ValidationError
from .models import Customer
from .security import hash_password, verify_password
from .validation import is_not_empty, is_valid_username, validate_password, validate_profile


logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


class AuthManager:
    """Manages customer identity: registration, login and credentials."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def register(self, first_name: str, last_name: str, email: str, phone: str,
                 address: str, username: str, password: str) -> int:
        """Register a new customer and return the assigned customer id.

        Fields are checked in order and the first violated rule is reported
        as a ValidationError. Nothing is written unless every check passes.
        """
        logger.info(f"Attempting to register new customer: {username}")

        validate_profile(first_name, last_name, email, phone, address)
        if not is_valid_username(username):
            raise ValidationError("Invalid username format (3-20 alphanumeric characters)")
        validate_password(password)

        if self.db.username_exists(username):
            raise ConflictError("Username already exists")
        if self.db.email_exists(email):
            raise ConflictError("Email already exists")

        now = datetime.now()
        customer = Customer(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=email,
            phone=phone,
            address=address.strip(),
            username=username,
            password_hash=hash_password(password),
            created_at=now,
            updated_at=now,
        )
        customer_id = self.db.create_customer(customer)

        logger.info(f"Customer registered successfully with ID: {customer_id}")
        return customer_id

    def login(self, username: str, password: str) -> Customer:
        """Authenticate a customer.

        Unknown usernames and wrong passwords raise the same AuthError.
        """
        if not is_not_empty(username) or not is_not_empty(password):
            raise ValidationError("Username and password are required")

        customer = self.db.get_customer_by_username(username)
        if customer is None:
            logger.warning(f"Login failed: unknown username {username}")
            raise AuthError(INVALID_CREDENTIALS)

        if not verify_password(password, customer.password_hash):
            logger.warning(f"Login failed: bad password for {username}")
            raise AuthError(INVALID_CREDENTIALS)

        logger.info(f"Login successful for username: {username}")
        return customer

    def change_password(self, customer_id: int, old_password: str, new_password: str) -> None:
        """Replace a customer's password after verifying the current one."""
        logger.info(f"Attempting to change password for customer ID: {customer_id}")

        customer = self.db.get_customer(customer_id)
        if customer is None:
            raise AuthError("Customer not found")

        if not verify_password(old_password, customer.password_hash):
            raise AuthError("Current password is incorrect")

        validate_password(new_password)

        if not self.db.update_password(customer_id, hash_password(new_password)):
            raise NotFoundError("Customer not found")

        logger.info(f"Password changed successfully for customer ID: {customer_id}")

    def get_customer(self, customer_id: int) -> Customer:
        customer = self.db.get_customer(customer_id)
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer

    def update_profile(self, customer_id: int, first_name: str, last_name: str,
                       email: str, phone: str, address: str) -> Customer:
        """Update a customer's profile fields."""
        logger.info(f"Updating profile for customer ID: {customer_id}")

        customer = self.get_customer(customer_id)
        validate_profile(first_name, last_name, email, phone, address)

        owner = self.db.get_customer_by_email(email)
        if owner is not None and owner.customer_id != customer_id:
            raise ConflictError("Email already exists")

        customer.first_name = first_name.strip()
        customer.last_name = last_name.strip()
        customer.email = email
        customer.phone = phone
        customer.address = address.strip()
        self.db.update_customer(customer)

        return self.get_customer(customer_id)

    def list_customers(self) -> List[Customer]:
        """Get all customers, newest first."""
        return self.db.get_all_customers()
