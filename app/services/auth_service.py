"""Authentication service: registration, OTP verification, login and account recovery.

An email moves through Unregistered -> Pending -> Verified. A pending
registration lives only as an OTP challenge; the Account row is created when
the OTP is verified.
"""

import asyncio
import logging
import uuid
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from app.database.account_repo import AccountRepository
from app.database.profile_repo import ProfileRepository
from app.integrations.google_identity import GoogleIdentityVerifier
from app.models.enums import ChallengeKind
from app.models.models import Account
from app.services.notification_service import EmailNotifier
from app.services.otp_service import OTPService
from app.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidCredentialsException,
    InvalidTokenException,
    NotFoundException,
    PasswordMismatchException,
    PasswordUnchangedException,
    UnverifiedAccountException,
)

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Service for end-user identity operations."""

    def __init__(
        self,
        db: AsyncSession,
        notifier: EmailNotifier,
        google_verifier: Optional[GoogleIdentityVerifier] = None,
    ):
        self.db = db
        self.otp = OTPService(db, notifier)
        self.google_verifier = google_verifier

    @staticmethod
    def issue_tokens(account: Account) -> dict[str, Any]:
        claims = {"id": str(account.id), "email": account.email}
        return {
            "user": {"id": str(account.id), "name": account.name, "email": account.email},
            "access_token": create_access_token(claims),
            "refresh_token": create_refresh_token(claims),
        }

    async def register(self, name: str, email: str, password: str) -> None:
        """Start a registration: store the candidate as a pending challenge and email the OTP."""
        email = normalize_email(email)
        if await AccountRepository.get_by_email(self.db, email):
            raise ConflictException("Email already registered")

        payload = {"name": name.strip(), "password_hash": hash_password(password)}
        await self.otp.issue(ChallengeKind.REGISTRATION, email, payload)

    async def verify_registration(self, email: str, otp: str) -> Account:
        """Promote a pending registration to a verified Account."""
        email = normalize_email(email)
        challenge = await self.otp.verify(ChallengeKind.REGISTRATION, email, otp)

        account = Account(
            name=challenge.payload.get("name", ""),
            email=email,
            password_hash=challenge.payload.get("password_hash", ""),
            verified=True,
            is_active=True,
        )
        await self.otp.consume(ChallengeKind.REGISTRATION, email)
        self.db.add(account)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictException("Email already registered") from exc

        logger.info("Account verified", extra={"account.id": str(account.id)})
        return account

    async def resend_registration_otp(self, email: str) -> None:
        email = normalize_email(email)
        try:
            await self.otp.reissue(ChallengeKind.REGISTRATION, email)
        except NotFoundException:
            if await AccountRepository.get_by_email(self.db, email):
                raise ConflictException("User already verified. Please login or use forgot-password")
            raise

    async def login(self, email: str, password: str) -> dict[str, Any]:
        account = await AccountRepository.get_by_email(self.db, normalize_email(email))
        if account is None:
            raise NotFoundException("User not found")
        if not account.verified:
            raise UnverifiedAccountException()
        if not account.is_active:
            raise ForbiddenException("Account is blocked")
        if not verify_password(password, account.password_hash):
            raise InvalidCredentialsException("Incorrect password")

        return self.issue_tokens(account)

    async def google_login(self, id_token: str) -> dict[str, Any]:
        """Sign in (or sign up) with a Google ID token."""
        verifier = self.google_verifier or GoogleIdentityVerifier.from_settings()
        claims = await asyncio.to_thread(verifier.verify, id_token)
        email = normalize_email(claims["email"])

        account = await AccountRepository.get_by_email(self.db, email)
        if account is None:
            # Google-only accounts have no password until a reset sets one
            account = Account(name=claims.get("name") or "", email=email, password_hash="", verified=True)
            self.db.add(account)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                account = await AccountRepository.get_by_email(self.db, email)
                if account is None:
                    raise
            else:
                logger.info("Account created from Google sign-in", extra={"account.id": str(account.id)})

        if not account.is_active:
            raise ForbiddenException("Account is blocked")
        return self.issue_tokens(account)

    async def refresh(self, refresh_token: str) -> str:
        """Mint a new access token from a refresh token. Refresh tokens are not rotated."""
        payload = decode_refresh_token(refresh_token)
        if payload is None or "id" not in payload:
            raise InvalidTokenException()

        try:
            account_id = uuid.UUID(payload["id"])
        except ValueError:
            raise InvalidTokenException()

        account = await AccountRepository.get_by_id(self.db, account_id)
        if account is None:
            raise NotFoundException("User not found")

        return create_access_token({"id": str(account.id), "email": account.email})

    async def forgot_password(self, email: str) -> None:
        email = normalize_email(email)
        if await AccountRepository.get_by_email(self.db, email) is None:
            raise NotFoundException("User not found")
        await self.otp.issue(ChallengeKind.PASSWORD_RESET, email)

    async def reset_password(self, email: str, otp: str, new_password: str) -> None:
        email = normalize_email(email)
        await self.otp.verify(ChallengeKind.PASSWORD_RESET, email, otp)

        account = await AccountRepository.get_by_email(self.db, email)
        if account is None:
            raise NotFoundException("User not found")

        account.password_hash = hash_password(new_password)
        await self.otp.consume(ChallengeKind.PASSWORD_RESET, email)
        await self.db.commit()

    async def request_account_deletion(self, email: str) -> None:
        email = normalize_email(email)
        if await AccountRepository.get_by_email(self.db, email) is None:
            raise NotFoundException("User not found")
        await self.otp.issue(ChallengeKind.ACCOUNT_DELETION, email)

    async def confirm_account_deletion(self, email: str, otp: str) -> None:
        """Irreversibly delete the profile, then the account, then the challenge."""
        email = normalize_email(email)
        await self.otp.verify(ChallengeKind.ACCOUNT_DELETION, email, otp)

        account = await AccountRepository.get_by_email(self.db, email)
        if account is None:
            raise NotFoundException("User not found")

        account_id = account.id
        await ProfileRepository.delete_by_user_id(self.db, account_id)
        await AccountRepository.delete_by_email(self.db, email)
        await self.otp.consume(ChallengeKind.ACCOUNT_DELETION, email)
        await self.db.commit()

        logger.info("Account deleted", extra={"account.id": str(account_id)})

    async def change_password(
        self,
        account_id: uuid.UUID,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        if new_password != confirm_password:
            raise PasswordMismatchException()
        if current_password == new_password:
            raise PasswordUnchangedException()

        account = await AccountRepository.get_by_id(self.db, account_id)
        if account is None:
            raise NotFoundException("User not found")
        if not verify_password(current_password, account.password_hash):
            raise InvalidCredentialsException("Current password is incorrect")

        account.password_hash = hash_password(new_password)
        await self.db.commit()
