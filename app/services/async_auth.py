from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AuthenticationError, ConflictError, PermissionDeniedError
from app.db.async_session import get_async_db
from app.models.user import User
from app.schemas.auth import AuthResult, ChangePasswordRequest, TokenPayload, UserRegister
from app.schemas.user import UserResponse
from app.services.async_error_handler import async_transaction
from app.utils.logger import auth_logger

# OAuth2 scheme for async authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/token")

# Same message for unknown email, wrong password and inactive account
INVALID_LOGIN_MESSAGE = "Invalid email or password"

# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


class AsyncAuthService:
    """
    Async authentication service: registration, login, password changes and
    bearer-token resolution.
    """

    @staticmethod
    def _password_bytes(password: str) -> bytes:
        return password.encode('utf-8')[:BCRYPT_MAX_BYTES]

    @classmethod
    def verify_password(cls, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a hash."""
        if not hashed_password:
            return False
        try:
            return bcrypt.checkpw(cls._password_bytes(plain_password), hashed_password.encode('utf-8'))
        except ValueError:
            return False

    @classmethod
    def get_password_hash(cls, password: str) -> str:
        """Hash a password for storage."""
        salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
        return bcrypt.hashpw(cls._password_bytes(password), salt).decode('utf-8')

    @staticmethod
    def normalize_email(email: str) -> str:
        return email.strip().lower()

    @classmethod
    def create_access_token(cls, user: User, expires_delta: Optional[timedelta] = None) -> str:
        """Create a signed JWT carrying the user id, email and role."""
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        now = datetime.now(timezone.utc)
        to_encode = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
            "iat": now,
            "exp": now + expires_delta,
        }
        return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.JWT_ALGORITHM)

    @classmethod
    def build_auth_result(cls, user: User) -> AuthResult:
        return AuthResult(
            token=cls.create_access_token(user),
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=UserResponse.model_validate(user),
        )

    @classmethod
    async def get_user_by_email(cls, db: AsyncSession, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == cls.normalize_email(email))
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def get_user_by_id(cls, db: AsyncSession, user_id: int) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def create_user(
        cls,
        db: AsyncSession,
        *,
        email: str,
        password: str,
        name: str,
        role: str = "client",
        phone: Optional[str] = None,
        coach_id: Optional[int] = None,
    ) -> User:
        """Insert a new account; 409 when the email is taken."""
        email = cls.normalize_email(email)
        if await cls.get_user_by_email(db, email):
            raise ConflictError("User with this email already exists")

        user = User(
            email=email,
            password_hash=cls.get_password_hash(password),
            name=name.strip(),
            role=role,
            status="active",
            phone=phone,
            coach_id=coach_id,
        )
        async with async_transaction(db, "create user"):
            db.add(user)
        await db.refresh(user)
        return user

    @classmethod
    async def register(cls, db: AsyncSession, data: UserRegister) -> AuthResult:
        """Self-service registration for clients and coaches."""
        user = await cls.create_user(
            db, email=data.email, password=data.password, name=data.name, role=data.role, phone=data.phone
        )
        auth_logger.success(f"Registered {user.role} account", "register", user_id=user.id)
        return cls.build_auth_result(user)

    @classmethod
    async def authenticate(cls, db: AsyncSession, email: str, password: str) -> User:
        """
        Check credentials.

        Raises:
            AuthenticationError: Unknown email, wrong password or inactive account,
                all reported with the same message
        """
        user = await cls.get_user_by_email(db, email)
        if user is None or not user.is_active or not cls.verify_password(password, user.password_hash):
            auth_logger.warning("Rejected login attempt", "login")
            raise AuthenticationError(INVALID_LOGIN_MESSAGE)
        return user

    @classmethod
    async def login(cls, db: AsyncSession, email: str, password: str) -> AuthResult:
        user = await cls.authenticate(db, email, password)
        auth_logger.info("User logged in", "login", user_id=user.id)
        return cls.build_auth_result(user)

    @classmethod
    async def change_password(cls, db: AsyncSession, user: User, data: ChangePasswordRequest) -> None:
        if not cls.verify_password(data.current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        async with async_transaction(db, "change password"):
            user.password_hash = cls.get_password_hash(data.new_password)
            db.add(user)
        auth_logger.info("Password changed", "password", user_id=user.id)

    @classmethod
    def decode_token(cls, token: str) -> TokenPayload:
        """Decode and verify a bearer token; PyJWT rejects expired tokens."""
        try:
            payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.JWT_ALGORITHM])
            token_data = TokenPayload(**payload)
        except (jwt.PyJWTError, ValueError):
            raise AuthenticationError("Could not validate credentials")
        if not token_data.sub:
            raise AuthenticationError("Could not validate credentials")
        return token_data

    @classmethod
    async def get_current_user(
        cls, db: AsyncSession = Depends(get_async_db), token: str = Depends(oauth2_scheme)
    ) -> User:
        """Get the current authenticated user from the token."""
        token_data = cls.decode_token(token)
        try:
            user_id = int(token_data.sub)
        except ValueError:
            raise AuthenticationError("Could not validate credentials")

        user = await cls.get_user_by_id(db, user_id)
        if user is None:
            raise AuthenticationError("Could not validate credentials")
        return user


# Standalone async dependency functions for FastAPI
async def get_current_user_async(
    db: AsyncSession = Depends(get_async_db),
    token: str = Depends(oauth2_scheme)
) -> User:
    """Get the current authenticated user from the token (async version)."""
    return await AsyncAuthService.get_current_user(db, token)


async def get_current_active_user_async(
    current_user: User = Depends(get_current_user_async)
) -> User:
    """Check if the current user is active (async version)."""
    if not current_user.is_active:
        raise PermissionDeniedError("Account is inactive")
    return current_user
