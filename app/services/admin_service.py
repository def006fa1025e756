"""Administrator service: admin identity, user management and subscription overrides.

Administrators are independent of end-user accounts. Their tokens carry a
`role` claim, which ordinary admin routes trust; superadmin-only routes
re-read the administrator on every call (see `app.api.deps`).
"""

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
from app.database.account_repo import AccountRepository, AdministratorRepository
from app.database.challenge_repo import ChallengeRepository
from app.database.profile_repo import ProfileRepository
from app.integrations.payment_gateway import PaymentGateway
from app.models.enums import AdminRole, ChallengeKind
from app.models.models import Account, Administrator, UserProfile
from app.services.auth_service import normalize_email
from app.services.notification_service import EmailNotifier
from app.services.otp_service import OTPService
from app.services.subscription_service import SubscriptionService
from app.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidCredentialsException,
    InvalidTokenException,
    NotFoundException,
    PasswordMismatchException,
    ValidationException,
)

logger = logging.getLogger(__name__)


def _claims(admin: Administrator) -> dict[str, str]:
    return {"id": str(admin.id), "email": admin.email, "role": admin.role.value}


class AdminService:
    """Service for administrator operations."""

    def __init__(self, db: AsyncSession, notifier: EmailNotifier, gateway: Optional[PaymentGateway] = None):
        self.db = db
        self.otp = OTPService(db, notifier)
        self.gateway = gateway

    # ------------------------------------------------------------------
    # Admin identity
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Authenticate an administrator. Unknown email and wrong password are indistinguishable."""
        if not email or not password:
            raise ValidationException("Email and password are required")

        admin = await AdministratorRepository.get_by_email(self.db, normalize_email(email))
        if admin is None:
            raise InvalidCredentialsException()
        if not admin.is_active:
            raise ForbiddenException("Admin account is inactive")
        if not verify_password(password, admin.password_hash):
            raise InvalidCredentialsException()

        claims = _claims(admin)
        logger.info("Admin logged in", extra={"admin.id": str(admin.id)})
        return {
            "admin": admin,
            "access_token": create_access_token(claims),
            "refresh_token": create_refresh_token(claims),
        }

    async def refresh(self, refresh_token: str) -> str:
        payload = decode_refresh_token(refresh_token)
        if payload is None or "id" not in payload:
            raise InvalidTokenException()
        try:
            admin_id = uuid.UUID(payload["id"])
        except ValueError:
            raise InvalidTokenException()

        admin = await AdministratorRepository.get_by_id(self.db, admin_id)
        if admin is None:
            raise NotFoundException("Admin not found")
        if not admin.is_active:
            raise ForbiddenException("Admin account is inactive")
        return create_access_token(_claims(admin))

    async def get_admin(self, admin_id: uuid.UUID) -> Administrator:
        admin = await AdministratorRepository.get_by_id(self.db, admin_id)
        if admin is None:
            raise NotFoundException("Admin not found")
        return admin

    async def change_password(
        self,
        admin_id: uuid.UUID,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        if not current_password or not new_password or not confirm_password:
            raise ValidationException("All password fields are required")
        if new_password != confirm_password:
            raise PasswordMismatchException()

        admin = await self.get_admin(admin_id)
        if not verify_password(current_password, admin.password_hash):
            raise InvalidCredentialsException("Current password is incorrect")

        admin.password_hash = hash_password(new_password)
        await self.db.commit()

    async def forgot_password(self, email: str) -> None:
        email = normalize_email(email)
        if await AdministratorRepository.get_by_email(self.db, email) is None:
            raise NotFoundException("Admin not found")
        await self.otp.issue(ChallengeKind.ADMIN_PASSWORD_RESET, email)

    async def resend_otp(self, email: str) -> None:
        """Resend the reset OTP; with no pending reset this behaves like forgot_password."""
        email = normalize_email(email)
        if await ChallengeRepository.get(self.db, ChallengeKind.ADMIN_PASSWORD_RESET, email) is None:
            await self.forgot_password(email)
            return
        await self.otp.reissue(ChallengeKind.ADMIN_PASSWORD_RESET, email)

    async def reset_password(self, email: str, otp: str, new_password: str) -> None:
        email = normalize_email(email)
        await self.otp.verify(ChallengeKind.ADMIN_PASSWORD_RESET, email, otp)

        admin = await AdministratorRepository.get_by_email(self.db, email)
        if admin is None:
            raise NotFoundException("Admin not found")

        admin.password_hash = hash_password(new_password)
        await self.otp.consume(ChallengeKind.ADMIN_PASSWORD_RESET, email)
        await self.db.commit()

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------

    async def list_users(self) -> list[tuple[Account, Optional[UserProfile]]]:
        """All accounts, each paired with its profile (or None), fetched in two queries."""
        accounts = await AccountRepository.list_all(self.db)
        profiles = await ProfileRepository.list_by_user_ids(self.db, (a.id for a in accounts))
        by_user = {p.user_id: p for p in profiles}
        return [(account, by_user.get(account.id)) for account in accounts]

    async def get_user(self, user_id: uuid.UUID) -> tuple[Account, Optional[UserProfile]]:
        account = await AccountRepository.get_by_id(self.db, user_id)
        if account is None:
            raise NotFoundException("User not found")
        profile = await ProfileRepository.get_by_user_id(self.db, user_id)
        return account, profile

    async def set_user_active(self, user_id: uuid.UUID, is_active: bool) -> Account:
        account = await AccountRepository.get_by_id(self.db, user_id)
        if account is None:
            raise NotFoundException("User not found")
        account.is_active = is_active
        await self.db.commit()
        logger.info("User active flag changed", extra={"user.id": str(user_id), "user.is_active": is_active})
        return account

    # ------------------------------------------------------------------
    # Subscription overrides
    # ------------------------------------------------------------------

    def _subscriptions(self) -> SubscriptionService:
        if self.gateway is None:
            raise RuntimeError("AdminService was created without a payment gateway")
        return SubscriptionService(self.db, self.gateway)

    async def extend_user_subscription(self, user_id: uuid.UUID, extra_days: int) -> UserProfile:
        return await self._subscriptions().extend(user_id, extra_days)

    async def downgrade_user_subscription(self, user_id: uuid.UUID) -> UserProfile:
        return await self._subscriptions().downgrade(user_id)

    async def cancel_user_subscription(self, user_id: uuid.UUID) -> UserProfile:
        return await self._subscriptions().cancel(user_id)

    # ------------------------------------------------------------------
    # Superadmin: administrator management
    # ------------------------------------------------------------------

    async def create_admin(self, email: str, password: str, role: AdminRole = AdminRole.ADMIN) -> Administrator:
        if not email or not password:
            raise ValidationException("Email and password are required")

        email = normalize_email(email)
        if await AdministratorRepository.get_by_email(self.db, email):
            raise ConflictException("Admin with this email already exists")

        admin = Administrator(email=email, password_hash=hash_password(password), role=role, is_active=True)
        self.db.add(admin)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictException("Admin with this email already exists") from exc

        logger.info("Admin created", extra={"admin.id": str(admin.id), "admin.role": role.value})
        return admin

    async def list_admins(self) -> list[Administrator]:
        return await AdministratorRepository.list_all(self.db)

    async def update_admin(
        self,
        admin_id: uuid.UUID,
        email: Optional[str] = None,
        password: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Administrator:
        admin = await self.get_admin(admin_id)

        if email:
            email = normalize_email(email)
            if email != admin.email and await AdministratorRepository.get_by_email(self.db, email):
                raise ConflictException("Admin with this email already exists")
            admin.email = email
        if password:
            admin.password_hash = hash_password(password)
        if is_active is not None:
            admin.is_active = is_active

        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictException("Admin with this email already exists") from exc
        return admin
