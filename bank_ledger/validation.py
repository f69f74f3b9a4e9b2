"""
Input validation helpers.

Field checks used by registration and profile edits, password strength
rules, and account-number generation.
"""

import re
import secrets
import string
from typing import Optional

from .errors import ValidationError


EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
PHONE_PATTERN = re.compile(r"^[0-9]{10}$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,20}$")
NAME_PATTERN = re.compile(r"^[a-zA-Z ]{2,50}$")

ACCOUNT_NUMBER_PREFIX = "ACC"
ACCOUNT_NUMBER_DIGITS = 9
ACCOUNT_NUMBER_PATTERN = re.compile(rf"^{ACCOUNT_NUMBER_PREFIX}\d{{{ACCOUNT_NUMBER_DIGITS}}}$")

MIN_PASSWORD_LENGTH = 8

PASSWORD_REQUIREMENTS = (
    "Password must be at least 8 characters long and contain at least one "
    "uppercase letter, one lowercase letter, one digit and one special character"
)


def _matches(pattern: re.Pattern, value: Optional[str]) -> bool:
    if value is None:
        return False
    return pattern.fullmatch(value) is not None


def is_valid_email(email: Optional[str]) -> bool:
    return _matches(EMAIL_PATTERN, email)


def is_valid_phone(phone: Optional[str]) -> bool:
    """Exactly 10 decimal digits."""
    return _matches(PHONE_PATTERN, phone)


def is_valid_username(username: Optional[str]) -> bool:
    """3-20 letters, digits or underscores."""
    return _matches(USERNAME_PATTERN, username)


def is_valid_name(name: Optional[str]) -> bool:
    """2-50 ASCII letters and spaces."""
    return _matches(NAME_PATTERN, name)


def is_not_empty(value: Optional[str]) -> bool:
    return value is not None and bool(value.strip())


def is_password_strong(password: Optional[str]) -> bool:
    """Check length and character-class requirements of a password."""
    if password is None or len(password) < MIN_PASSWORD_LENGTH:
        return False

    has_upper = any(c.isupper() for c in password)
    has_lower = any(c.islower() for c in password)
    has_digit = any(c.isdigit() for c in password)
    has_special = any(not c.isalnum() for c in password)

    return has_upper and has_lower and has_digit and has_special


def validate_profile(first_name: str, last_name: str, email: str,
                     phone: str, address: str) -> None:
    """Validate profile fields, raising on the first violated rule."""
    if not is_valid_name(first_name):
        raise ValidationError("Invalid first name format")
    if not is_valid_name(last_name):
        raise ValidationError("Invalid last name format")
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")
    if not is_valid_phone(phone):
        raise ValidationError("Invalid phone number format (should be 10 digits)")
    if not is_not_empty(address):
        raise ValidationError("Address is required")


def validate_password(password: Optional[str]) -> None:
    if not is_not_empty(password):
        raise ValidationError("Password is required")
    if not is_password_strong(password):
        raise ValidationError(f"Password does not meet strength requirements. {PASSWORD_REQUIREMENTS}")


def generate_account_number() -> str:
    """Generate a candidate account number: ACC followed by 9 random digits."""
    digits = "".join(secrets.choice(string.digits) for _ in range(ACCOUNT_NUMBER_DIGITS))
    return f"{ACCOUNT_NUMBER_PREFIX}{digits}"


def is_valid_account_number(account_number: Optional[str]) -> bool:
    return _matches(ACCOUNT_NUMBER_PATTERN, account_number)
