"""
Authentication Pydantic schemas for API request/response handling.

This module provides:
- Registration, verification and resend schemas
- Login request and session response schemas
- Password reset schemas
"""

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.schemas.permission import PermissionSetResponse
from src.schemas.user import UserResponse, check_password_strength

OTP_PATTERN = r"^\d{4,10}$"


class RegisterRequest(BaseModel):
    """
    Schema for user registration.

    Attributes:
        email: User's email address
        name: Given name
        surname: Optional family name
        password: User's password (validated for strength)
    """

    email: EmailStr = Field(description="User's email address")
    name: str = Field(min_length=1, max_length=100, description="User's given name")
    surname: str | None = Field(default=None, max_length=100, description="User's family name")
    password: str = Field(description="Password (min 8 characters, letters and digits)")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        """Trim the name and reject blank values."""
        value = value.strip()
        if not value:
            raise ValueError("Name must not be blank")
        return value

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        """Validate password strength requirements."""
        return check_password_strength(value)


class VerifyOTPRequest(BaseModel):
    """Schema for email verification with a one-time code."""

    email: EmailStr = Field(description="Email address the code was sent to")
    otp: str = Field(pattern=OTP_PATTERN, description="Numeric verification code")


class ResendOTPRequest(BaseModel):
    """Schema for requesting a new verification code."""

    email: EmailStr = Field(description="Email address of the unverified account")


class LoginRequest(BaseModel):
    """
    Schema for user login request.

    Attributes:
        email: User's email address
        password: User's password
    """

    email: EmailStr = Field(description="User's email address")
    password: str = Field(min_length=1, description="User's password")


class ForgotPasswordRequest(BaseModel):
    """Schema for requesting a password reset code."""

    email: EmailStr = Field(description="Email address of the account")


class ResetPasswordRequest(BaseModel):
    """
    Schema for resetting a password with an emailed code.

    Attributes:
        email: Email address of the account
        otp: Reset code from the email
        password: New password (validated for strength)
    """

    email: EmailStr = Field(description="Email address of the account")
    otp: str = Field(pattern=OTP_PATTERN, description="Numeric reset code")
    password: str = Field(description="New password (min 8 characters, letters and digits)")

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        """Validate password strength requirements."""
        return check_password_strength(value)


class RegisterResponse(BaseModel):
    """
    Returned after a successful registration.

    ``otp`` is only present when the server echoes codes (development).
    """

    user_id: int = Field(description="ID of the created user")
    email: str = Field(description="Registered email address")
    message: str = Field(description="Next step for the user")
    otp: str | None = Field(default=None, description="Issued code (development only)")


class AuthResponse(BaseModel):
    """
    Session issued after login or email verification.

    Attributes:
        access_token: JWT access token
        token_type: Type of token (always "bearer")
        expires_in: Access token lifetime in seconds
        user: Authenticated user
        permissions: Stored capability flags of the user
    """

    access_token: str = Field(description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(description="Access token lifetime in seconds")
    user: UserResponse
    permissions: PermissionSetResponse


class SentResponse(BaseModel):
    """Acknowledges that an email was (or would have been) sent."""

    sent: bool = Field(default=True)
    message: str
    otp: str | None = Field(default=None, description="Issued code (development only)")


class SuccessMessageResponse(BaseModel):
    """Generic success acknowledgement."""

    success: bool = Field(default=True)
    message: str
