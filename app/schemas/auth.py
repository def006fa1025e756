"""End-user authentication schemas."""

import uuid

from pydantic import EmailStr, Field

from app.schemas.common import APIModel


class RegisterRequest(APIModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class VerifyOTPRequest(APIModel):
    """Email plus the OTP it received; used by verify and confirm-account-deletion."""

    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=12)


class EmailRequest(APIModel):
    """Body for flows that only need an email (resend, forgot, deletion request)."""

    email: EmailStr


class LoginRequest(APIModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class GoogleAuthRequest(APIModel):
    """Google sign-in with an ID token obtained client-side."""

    id_token: str = Field(..., min_length=1, description="Google ID token (credential)")


class RefreshTokenRequest(APIModel):
    refresh_token: str = Field(..., min_length=1)


class ResetPasswordRequest(APIModel):
    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=12)
    new_password: str = Field(..., min_length=1, max_length=128)


class ChangePasswordRequest(APIModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)
    confirm_password: str = Field(..., min_length=1, max_length=128)


class AccountResponse(APIModel):
    id: uuid.UUID
    name: str
    email: str
