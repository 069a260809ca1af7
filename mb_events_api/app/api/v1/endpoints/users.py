"""
Account endpoints for API v1: registration, login and the password
lifecycle.  These routes are mounted at the root of ``/api/v1``.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from mb_events_api.app.api.deps import get_current_user, get_user_service
from mb_events_api.app.schemas import MessageResponse
from mb_events_api.app.schemas.user import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
)
from mb_events_api.app.services.user_service import UserService


router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    service: UserService = Depends(get_user_service),
) -> RegisterResponse:
    """Register a new account and send a welcome e-mail.

    The e-mail is best effort; registration succeeds even if it cannot
    be delivered.
    """
    user = await service.register(payload)
    return RegisterResponse(user=user)


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    service: UserService = Depends(get_user_service),
) -> LoginResponse:
    token, user = await service.login(payload)
    return LoginResponse(token=token, user=user)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await service.change_password(current_user["user_id"], payload)
    return MessageResponse(message="Password changed successfully")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Issue a short-lived reset token and e-mail the reset link."""
    await service.forgot_password(payload)
    return MessageResponse(message="Password reset link sent to your email")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    payload: ResetPasswordRequest,
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await service.reset_password(payload)
    return MessageResponse(message="Password reset successfully")
