"""
Tests for the auth_manager module.

Registration, login, password change and profile maintenance.
"""

import pytest
import tempfile
import os

from bank_ledger.auth_manager import AuthManager, INVALID_CREDENTIALS
from bank_ledger.database import DatabaseManager
from bank_ledger.errors import AuthError, ConflictError, ErrorKind, NotFoundError, ValidationError
from bank_ledger.security import verify_password


PROFILE = dict(
    first_name="John",
    last_name="Doe",
    email="john.doe@example.com",
    phone="9876543210",
    address="456 Main Street",
    username="johndoe",
    password="Test@1234",
)


class TestAuthManager:
    """Test AuthManager class."""

    @pytest.fixture
    def temp_db_path(self):
        """Create a temporary database file."""
        fd, path = tempfile.mkstemp(suffix='.db')
        os.close(fd)
        yield path
        if os.path.exists(path):
            os.unlink(path)

    @pytest.fixture
    def db_manager(self, temp_db_path):
        manager = DatabaseManager(temp_db_path)
        yield manager
        manager.close()

    @pytest.fixture
    def auth_manager(self, db_manager):
        return AuthManager(db_manager)

    @pytest.fixture
    def customer_id(self, auth_manager):
        return auth_manager.register(**PROFILE)

    def test_register_success(self, auth_manager, db_manager):
        customer_id = auth_manager.register(**PROFILE)

        assert customer_id is not None
        customer = db_manager.get_customer(customer_id)
        assert customer.username == "johndoe"
        assert customer.full_name == "John Doe"
        assert customer.password_hash != "Test@1234"
        assert verify_password("Test@1234", customer.password_hash)

    def test_register_duplicate_username(self, auth_manager, customer_id):
        profile = dict(PROFILE, email="other@example.com")
        with pytest.raises(ConflictError, match="Username already exists") as exc_info:
            auth_manager.register(**profile)
        assert exc_info.value.kind is ErrorKind.CONFLICT

    def test_register_duplicate_email(self, auth_manager, customer_id):
        profile = dict(PROFILE, username="someoneelse")
        with pytest.raises(ConflictError, match="Email already exists"):
            auth_manager.register(**profile)

    def test_register_weak_password_writes_nothing(self, auth_manager, db_manager):
        with pytest.raises(ValidationError, match="strength"):
            auth_manager.register(**dict(PROFILE, password="test1234"))
        assert not db_manager.username_exists("johndoe")
        assert db_manager.get_all_customers() == []

    @pytest.mark.parametrize("field, value, message", [
        ("first_name", "J", "first name"),
        ("last_name", "Doe1", "last name"),
        ("email", "john.example.com", "email"),
        ("phone", "12345", "phone"),
        ("address", "", "Address"),
        ("username", "jd", "username"),
        ("username", "john-doe", "username"),
        ("password", "", "Password is required"),
    ])
    def test_register_validation(self, auth_manager, db_manager, field, value, message):
        with pytest.raises(ValidationError, match=message):
            auth_manager.register(**dict(PROFILE, **{field: value}))
        assert db_manager.get_all_customers() == []

    def test_validation_precedes_conflict_check(self, auth_manager, customer_id):
        with pytest.raises(ValidationError):
            auth_manager.register(**dict(PROFILE, password="weak"))

    def test_login_success(self, auth_manager, customer_id):
        customer = auth_manager.login("johndoe", "Test@1234")
        assert customer.customer_id == customer_id
        assert customer.email == "john.doe@example.com"

    def test_login_unknown_user_and_bad_password_share_message(self, auth_manager, customer_id):
        with pytest.raises(AuthError) as unknown:
            auth_manager.login("nobody", "Test@1234")
        with pytest.raises(AuthError) as wrong:
            auth_manager.login("johndoe", "Wrong@1234")

        assert str(unknown.value) == INVALID_CREDENTIALS
        assert str(wrong.value) == INVALID_CREDENTIALS
        assert unknown.value.kind is ErrorKind.AUTH

    @pytest.mark.parametrize("username, password", [("", "Test@1234"), ("johndoe", ""), ("  ", "x")])
    def test_login_requires_both_fields(self, auth_manager, username, password):
        with pytest.raises(ValidationError, match="required"):
            auth_manager.login(username, password)

    def test_change_password(self, auth_manager, customer_id):
        auth_manager.change_password(customer_id, "Test@1234", "Better#5678")

        assert auth_manager.login("johndoe", "Better#5678").customer_id == customer_id
        with pytest.raises(AuthError):
            auth_manager.login("johndoe", "Test@1234")

    def test_change_password_wrong_old_password(self, auth_manager, customer_id):
        with pytest.raises(AuthError, match="Current password is incorrect"):
            auth_manager.change_password(customer_id, "Nope@1234", "Better#5678")

    def test_change_password_unknown_customer(self, auth_manager):
        with pytest.raises(AuthError):
            auth_manager.change_password(999, "Test@1234", "Better#5678")

    def test_change_password_weak_new_password(self, auth_manager, customer_id):
        with pytest.raises(ValidationError):
            auth_manager.change_password(customer_id, "Test@1234", "weakpass")
        assert auth_manager.login("johndoe", "Test@1234")

    def test_get_customer(self, auth_manager, customer_id):
        assert auth_manager.get_customer(customer_id).username == "johndoe"
        with pytest.raises(NotFoundError):
            auth_manager.get_customer(999)

    def test_update_profile(self, auth_manager, customer_id):
        updated = auth_manager.update_profile(
            customer_id, "Johnny", "Doe", "johnny@example.com", "1112223334", "1 New Road"
        )
        assert updated.first_name == "Johnny"
        assert updated.email == "johnny@example.com"
        assert updated.updated_at >= updated.created_at
        assert auth_manager.login("johndoe", "Test@1234").phone == "1112223334"

    def test_update_profile_keeps_own_email(self, auth_manager, customer_id):
        updated = auth_manager.update_profile(
            customer_id, "John", "Doe", PROFILE["email"], PROFILE["phone"], "2 Other Road"
        )
        assert updated.address == "2 Other Road"

    def test_update_profile_email_taken(self, auth_manager, customer_id):
        auth_manager.register(**dict(PROFILE, username="jane", email="jane@example.com"))
        with pytest.raises(ConflictError):
            auth_manager.update_profile(
                customer_id, "John", "Doe", "jane@example.com", PROFILE["phone"], PROFILE["address"]
            )

    def test_update_profile_invalid(self, auth_manager, customer_id):
        with pytest.raises(ValidationError):
            auth_manager.update_profile(customer_id, "John", "Doe", "bad", "9876543210", "x")

    def test_list_customers(self, auth_manager, customer_id):
        second = auth_manager.register(**dict(PROFILE, username="jane", email="jane@example.com"))
        ids = [c.customer_id for c in auth_manager.list_customers()]
        assert ids == [second, customer_id]
