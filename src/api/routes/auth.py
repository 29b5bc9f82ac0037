"""
Authentication API routes.

This module provides REST endpoints for:
- User registration
- Email verification with a one-time code
- Verification code resend
- User login
- Password reset (request and confirm)
"""

import logging

from fastapi import APIRouter, Depends, Request, status

from src.api.dependencies import get_auth_service
from src.core.config import settings
from src.core.rate_limit import limiter
from src.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    ResendOTPRequest,
    ResetPasswordRequest,
    SentResponse,
    SuccessMessageResponse,
    VerifyOTPRequest,
)
from src.schemas.permission import PermissionSetResponse
from src.schemas.user import UserResponse
from src.services.audit_service import RequestContext
from src.services.auth_service import AuthResult, AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        access_token=result.access_token,
        expires_in=result.expires_in,
        user=UserResponse.model_validate(result.user),
        permissions=PermissionSetResponse.model_validate(result.permissions),
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="""
    Register a new account and email a verification code.

    **Password Requirements:**
    - Minimum 8 characters
    - At least 1 letter
    - At least 1 digit

    The account stays inactive until the code is verified via /verify-otp.

    **Rate Limit:** Configurable via RATE_LIMIT_REGISTER (default: 3/hour)
    """,
)
@limiter.limit(settings.rate_limit_register)
async def register(
    request: Request,
    payload: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    """
    Register a new user.

    Raises:
        400: Email already registered or invalid input
        500: Registration could not be completed
    """
    result = await auth_service.register(
        email=payload.email,
        name=payload.name,
        surname=payload.surname,
        password=payload.password,
        context=RequestContext.from_request(request),
    )

    return RegisterResponse(
        user_id=result.user.id,
        email=result.user.email,
        message="Registration successful. Please check your email for the verification code.",
        otp=result.otp,
    )


@router.post(
    "/verify-otp",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="Verify email with a one-time code",
    description="""
    Verify the emailed code, activate the account and start a session.

    **Rate Limit:** Configurable via RATE_LIMIT_OTP (default: 5/15minute)
    """,
)
@limiter.limit(settings.rate_limit_otp)
async def verify_otp(
    request: Request,
    payload: VerifyOTPRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """
    Verify email address.

    Raises:
        400: Code wrong, expired, exhausted or never issued
    """
    result = await auth_service.verify_email(
        email=payload.email,
        otp=payload.otp,
        context=RequestContext.from_request(request),
    )
    return _auth_response(result)


@router.post(
    "/resend-otp",
    response_model=SentResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Resend the verification code",
    description="""
    Issue a new verification code for an unverified account. The previous
    code stops working.

    **Rate Limit:** Configurable via RATE_LIMIT_OTP (default: 5/15minute)
    """,
)
@limiter.limit(settings.rate_limit_otp)
async def resend_otp(
    request: Request,
    payload: ResendOTPRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> SentResponse:
    """
    Resend verification code.

    Raises:
        400: Email already verified
        404: No account with this email
        500: Email could not be sent
    """
    result = await auth_service.resend_otp(
        email=payload.email,
        context=RequestContext.from_request(request),
    )
    return SentResponse(message="A new verification code has been sent.", otp=result.otp)


@router.post(
    "/login",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="Login with email and password",
    description="""
    Authenticate with email and password to receive a JWT access token.

    Five consecutive wrong passwords suspend the account.

    **Rate Limit:** Configurable via RATE_LIMIT_LOGIN (default: 5/15minute)
    """,
)
@limiter.limit(settings.rate_limit_login)
async def login(
    request: Request,
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """
    Login user.

    Raises:
        401: Invalid credentials, unverified email, suspended or inactive account
    """
    result = await auth_service.login(
        email=payload.email,
        password=payload.password,
        context=RequestContext.from_request(request),
    )
    return _auth_response(result)


@router.post(
    "/forgot-password",
    response_model=SentResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Request a password reset code",
    description="""
    Email a password reset code. The response is identical whether or not
    the email belongs to an account.

    **Rate Limit:** Configurable via RATE_LIMIT_PASSWORD_RESET (default: 3/hour)
    """,
)
@limiter.limit(settings.rate_limit_password_reset)
async def forgot_password(
    request: Request,
    payload: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> SentResponse:
    """Request password reset code."""
    await auth_service.forgot_password(
        email=payload.email,
        context=RequestContext.from_request(request),
    )
    return SentResponse(
        message="If an account exists for this email, a password reset code has been sent."
    )


@router.post(
    "/reset-password",
    response_model=SuccessMessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Reset password with a code",
    description="""
    Set a new password using the emailed reset code. Does not log the user in.

    **Rate Limit:** Configurable via RATE_LIMIT_PASSWORD_RESET (default: 3/hour)
    """,
)
@limiter.limit(settings.rate_limit_password_reset)
async def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> SuccessMessageResponse:
    """
    Reset password.

    Raises:
        400: Code wrong, expired, exhausted or never issued
    """
    await auth_service.reset_password(
        email=payload.email,
        otp=payload.otp,
        new_password=payload.password,
        context=RequestContext.from_request(request),
    )
    return SuccessMessageResponse(
        message="Password has been reset. You can now log in with your new password."
    )
