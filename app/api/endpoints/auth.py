from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_async_db, get_current_active_user_async
from app.models.user import User
from app.schemas.auth import AuthResult, ChangePasswordRequest, UserLogin, UserRegister
from app.schemas.base import ActionResponse, APIResponse
from app.schemas.user import UserResponse
from app.services.async_auth import AsyncAuthService

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=APIResponse[AuthResult])
async def register(user_data: UserRegister, db: AsyncSession = Depends(get_async_db)) -> Any:
    """
    Register a new client or coach account.

    Returns a bearer token so the caller is signed in straight away.
    """
    result = await AsyncAuthService.register(db, user_data)
    return APIResponse(data=result, message="Registration successful")


@router.post("/login", response_model=APIResponse[AuthResult])
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_async_db)) -> Any:
    """Authenticate with email and password."""
    result = await AsyncAuthService.login(db, login_data.email, login_data.password)
    return APIResponse(data=result, message="Login successful")


@router.post("/token")
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_async_db),
) -> Dict[str, Any]:
    """
    OAuth2 compatible token login, used by the interactive docs.

    The username field carries the email address.
    """
    result = await AsyncAuthService.login(db, form_data.username, form_data.password)
    return {"access_token": result.token, "token_type": result.token_type}


@router.get("/me", response_model=APIResponse[UserResponse])
async def get_me(current_user: User = Depends(get_current_active_user_async)) -> Any:
    return APIResponse(data=UserResponse.model_validate(current_user))


@router.post("/logout", response_model=ActionResponse)
async def logout(current_user: User = Depends(get_current_active_user_async)) -> Any:
    """Tokens are stateless; the client discards its copy."""
    return ActionResponse(message="Logged out successfully")


@router.post("/change-password", response_model=ActionResponse)
async def change_password(
    data: ChangePasswordRequest,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user_async),
) -> Any:
    await AsyncAuthService.change_password(db, current_user, data)
    return ActionResponse(message="Password updated successfully")
