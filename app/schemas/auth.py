from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from app.core.config import settings
from app.schemas.user import UserResponse


# Registration schemas
class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=settings.MIN_PASSWORD_LENGTH)
    name: str = Field(..., min_length=1, max_length=255)
    role: Literal["client", "coach"] = "client"
    phone: Optional[str] = None


# Login schemas
class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=settings.MIN_PASSWORD_LENGTH)


class TokenPayload(BaseModel):
    sub: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    exp: Optional[int] = None


class AuthResult(BaseModel):
    """Returned by register and login."""
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
