"""Security utilities for authentication and authorization."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from app.core.config import settings

# Argon2 password hasher
ph = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a password using Argon2."""
    return ph.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a hash."""
    if not hashed:
        return False
    try:
        ph.verify(hashed, password)
        return True
    except (VerificationError, InvalidHashError):
        return False


def _encode(data: dict[str, Any], secret: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode.update({"exp": now + expires_delta, "iat": now})
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def _decode(token: str, secret: str) -> Optional[dict[str, Any]]:
    try:
        return jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None


def create_access_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRES_MINUTES)
    return _encode(data, settings.JWT_SECRET, expires_delta)


def create_refresh_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a long-lived JWT refresh token signed with the refresh secret."""
    if expires_delta is None:
        expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRES_DAYS)
    return _encode(data, settings.JWT_REFRESH_SECRET, expires_delta)


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """Decode and verify an access token."""
    return _decode(token, settings.JWT_SECRET)


def decode_refresh_token(token: str) -> Optional[dict[str, Any]]:
    """Decode and verify a refresh token."""
    return _decode(token, settings.JWT_REFRESH_SECRET)


def generate_otp(length: Optional[int] = None) -> str:
    """Generate a zero-padded numeric one-time password."""
    length = length or settings.OTP_LENGTH
    return str(secrets.randbelow(10**length)).zfill(length)
