"""
Async unit tests for AsyncAuthService.

Covers password hashing, token creation and decoding, and the
registration and login flows against a real (SQLite) session.
"""

from datetime import timedelta

import jwt
import pytest

from app.core.config import settings
from app.core.exceptions import AuthenticationError, ConflictError
from app.models.user import User
from app.schemas.auth import ChangePasswordRequest, UserRegister
from app.services.async_auth import INVALID_LOGIN_MESSAGE, AsyncAuthService
from tests.utils_jwt import generate_test_jwt


class TestPasswordHashing:

    def test_password_hashing_and_verification(self):
        """Hashes verify against the original password only."""
        # Arrange
        password = "secure_password123"

        # Act
        hashed = AsyncAuthService.get_password_hash(password)

        # Assert
        assert hashed != password
        assert AsyncAuthService.verify_password(password, hashed) is True
        assert AsyncAuthService.verify_password("wrong_password", hashed) is False

    def test_verify_against_missing_or_garbage_hash(self):
        assert AsyncAuthService.verify_password("anything", "") is False
        assert AsyncAuthService.verify_password("anything", "not-a-bcrypt-hash") is False

    def test_hashes_are_salted(self):
        assert AsyncAuthService.get_password_hash("same") != AsyncAuthService.get_password_hash("same")


class TestTokens:

    def test_access_token_carries_identity_and_role(self):
        # Arrange
        user = User(id=7, email="coach@example.com", role="coach")

        # Act
        token = AsyncAuthService.create_access_token(user)
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.JWT_ALGORITHM])

        # Assert
        assert payload["sub"] == "7"
        assert payload["email"] == "coach@example.com"
        assert payload["role"] == "coach"
        assert payload["exp"] > payload["iat"]

    def test_decode_valid_token(self):
        token = generate_test_jwt(user_id=3, role="client")
        data = AsyncAuthService.decode_token(token)
        assert data.sub == "3"
        assert data.role == "client"

    def test_expired_token_rejected(self):
        token = generate_test_jwt(user_id=3, expires_in=timedelta(seconds=-10))
        with pytest.raises(AuthenticationError):
            AsyncAuthService.decode_token(token)

    def test_token_signed_with_other_secret_rejected(self):
        token = jwt.encode({"sub": "3"}, "some-other-secret", algorithm="HS256")
        with pytest.raises(AuthenticationError):
            AsyncAuthService.decode_token(token)

    def test_token_without_subject_rejected(self):
        token = jwt.encode({"email": "x@example.com"}, settings.jwt_secret, algorithm=settings.JWT_ALGORITHM)
        with pytest.raises(AuthenticationError):
            AsyncAuthService.decode_token(token)


class TestRegistrationAndLogin:

    async def test_register_normalizes_email(self, db_session):
        # Act
        result = await AsyncAuthService.register(
            db_session,
            UserRegister(email="Jane.Doe@Example.COM", password="secret123", name="  Jane Doe "),
        )

        # Assert
        assert result.user.email == "jane.doe@example.com"
        assert result.user.name == "Jane Doe"
        assert result.user.role == "client"
        assert result.token
        assert result.expires_in == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    async def test_duplicate_email_is_a_conflict(self, db_session):
        await AsyncAuthService.create_user(db_session, email="dup@example.com", password="secret123", name="One")

        with pytest.raises(ConflictError):
            await AsyncAuthService.create_user(db_session, email="DUP@example.com", password="secret123", name="Two")

    async def test_authenticate_success(self, db_session, make_user):
        user = await make_user("client", email="login@example.com")

        authenticated = await AsyncAuthService.authenticate(db_session, "login@example.com", "password123")

        assert authenticated.id == user.id

    @pytest.mark.parametrize(
        "email, password",
        [
            ("login@example.com", "wrong-password"),
            ("nobody@example.com", "password123"),
        ],
    )
    async def test_authenticate_failures_share_one_message(self, db_session, make_user, email, password):
        await make_user("client", email="login@example.com")

        with pytest.raises(AuthenticationError) as exc_info:
            await AsyncAuthService.authenticate(db_session, email, password)

        assert exc_info.value.message == INVALID_LOGIN_MESSAGE

    async def test_inactive_account_cannot_log_in(self, db_session, make_user):
        await make_user("client", email="gone@example.com", status="inactive")

        with pytest.raises(AuthenticationError) as exc_info:
            await AsyncAuthService.authenticate(db_session, "gone@example.com", "password123")

        assert exc_info.value.message == INVALID_LOGIN_MESSAGE

    async def test_change_password(self, db_session, make_user):
        created = await make_user("client", email="change@example.com")
        user = await AsyncAuthService.get_user_by_id(db_session, created.id)

        await AsyncAuthService.change_password(
            db_session, user, ChangePasswordRequest(current_password="password123", new_password="newsecret1")
        )

        refreshed = await AsyncAuthService.get_user_by_email(db_session, "change@example.com")
        assert AsyncAuthService.verify_password("newsecret1", refreshed.password_hash)

    async def test_change_password_requires_current_password(self, db_session, make_user):
        created = await make_user("client")
        user = await AsyncAuthService.get_user_by_id(db_session, created.id)

        with pytest.raises(AuthenticationError):
            await AsyncAuthService.change_password(
                db_session, user, ChangePasswordRequest(current_password="wrong", new_password="newsecret1")
            )
