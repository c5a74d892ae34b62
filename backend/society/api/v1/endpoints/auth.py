from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from society.core.database import get_db
from society.core.rate_limiter import auth_rate_limit, strict_rate_limit
from society.models.flat import Flat
from society.models.user import User
from society.schemas.auth import (
    RegisterRequest,
    RegisterResponse,
    VerifyEmailRequest,
    ResendVerificationRequest,
    LoginRequest,
    LoginResponse,
    LoginUser,
    FlatSummary,
    MessageResponse,
    UserResponse,
)
from society.modules.auth.dependencies import get_current_user
from society.services.auth_service import auth_service


router = APIRouter()


def _flat_summary(flat: Optional[Flat]) -> Optional[FlatSummary]:
    return FlatSummary.model_validate(flat) if flat is not None else None


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
@strict_rate_limit()
async def register(
    request: Request,
    user_data: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """Register a resident (into an existing flat) or the single admin (rate limited: 3/min)"""
    user = await auth_service.register(db, user_data)
    return RegisterResponse(
        message="Registration successful. Please check your email for verification code.",
        email=user.email,
    )


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(
    data: VerifyEmailRequest,
    db: AsyncSession = Depends(get_db)
):
    """Confirm an email address with the emailed 6-digit code"""
    await auth_service.verify_email(db, data.email, data.code)
    return MessageResponse(message="Email verified successfully")


@router.post("/resend-verification", response_model=MessageResponse)
@auth_rate_limit()
async def resend_verification(
    request: Request,
    data: ResendVerificationRequest,
    db: AsyncSession = Depends(get_db)
):
    """Send a fresh verification code. The answer does not reveal whether the email exists."""
    await auth_service.resend_verification(db, data.email)
    return MessageResponse(
        message="If the account exists and is not yet verified, a new code has been sent."
    )


@router.post("/login", response_model=LoginResponse)
@auth_rate_limit()
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login and receive a 24h bearer token (rate limited: 5/min)"""
    token, user = await auth_service.authenticate(db, credentials.email, credentials.password)
    flat = await auth_service.get_linked_flat(db, user)

    login_user = LoginUser.model_validate(user)
    login_user.flat = _flat_summary(flat)
    return LoginResponse(token=token, user=login_user)


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get current user profile with the linked flat"""
    flat = await auth_service.get_linked_flat(db, current_user)

    profile = UserResponse.model_validate(current_user)
    profile.flat = _flat_summary(flat)
    return profile
