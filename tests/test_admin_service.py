"""Tests for administrator identity, user management and admin overrides."""

import uuid

import pytest

from app.core.security import decode_access_token
from app.database.profile_repo import ProfileRepository
from app.models import AdminRole
from app.services.admin_service import AdminService
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


class TestAdminIdentity:
    @pytest.mark.asyncio
    async def test_login_issues_role_claims(self, db, notifier, superadmin):
        result = await AdminService(db, notifier).login("ROOT@example.com", "rootpass1")

        claims = decode_access_token(result["access_token"])
        assert claims["id"] == str(superadmin.id)
        assert claims["role"] == "superadmin"
        assert result["admin"].id == superadmin.id

    @pytest.mark.asyncio
    async def test_unknown_email_and_wrong_password_look_the_same(self, db, notifier, superadmin):
        service = AdminService(db, notifier)
        with pytest.raises(InvalidCredentialsException) as unknown:
            await service.login("nobody@example.com", "rootpass1")
        with pytest.raises(InvalidCredentialsException) as wrong:
            await service.login("root@example.com", "nope")
        assert unknown.value.message == wrong.value.message

    @pytest.mark.asyncio
    async def test_missing_fields(self, db, notifier):
        with pytest.raises(ValidationException):
            await AdminService(db, notifier).login("", "x")

    @pytest.mark.asyncio
    async def test_inactive_admin_cannot_login_or_refresh(self, db, notifier, superadmin):
        service = AdminService(db, notifier)
        tokens = await service.login("root@example.com", "rootpass1")
        superadmin.is_active = False
        await db.commit()

        with pytest.raises(ForbiddenException):
            await service.login("root@example.com", "rootpass1")
        with pytest.raises(ForbiddenException):
            await service.refresh(tokens["refresh_token"])

    @pytest.mark.asyncio
    async def test_refresh(self, db, notifier, superadmin):
        service = AdminService(db, notifier)
        tokens = await service.login("root@example.com", "rootpass1")
        access = await service.refresh(tokens["refresh_token"])
        assert decode_access_token(access)["role"] == "superadmin"

        with pytest.raises(InvalidTokenException):
            await service.refresh("garbage")

    @pytest.mark.asyncio
    async def test_change_password(self, db, notifier, superadmin):
        service = AdminService(db, notifier)
        with pytest.raises(PasswordMismatchException):
            await service.change_password(superadmin.id, "rootpass1", "a", "b")
        with pytest.raises(InvalidCredentialsException):
            await service.change_password(superadmin.id, "wrong", "newroot1", "newroot1")

        await service.change_password(superadmin.id, "rootpass1", "newroot1", "newroot1")
        await service.login("root@example.com", "newroot1")

    @pytest.mark.asyncio
    async def test_password_reset_flow(self, db, notifier, superadmin):
        service = AdminService(db, notifier)
        await service.forgot_password("root@example.com")
        await service.resend_otp("root@example.com")
        otp = notifier.last_otp("root@example.com")

        await service.reset_password("root@example.com", otp, "reset-pass")
        await service.login("root@example.com", "reset-pass")

    @pytest.mark.asyncio
    async def test_resend_without_pending_reset_starts_one(self, db, notifier, superadmin):
        await AdminService(db, notifier).resend_otp("root@example.com")
        assert len(notifier.otps) == 1

    @pytest.mark.asyncio
    async def test_forgot_password_unknown_admin(self, db, notifier):
        with pytest.raises(NotFoundException):
            await AdminService(db, notifier).forgot_password("nobody@example.com")


class TestUserManagement:
    @pytest.mark.asyncio
    async def test_list_users_pairs_profiles(self, db, notifier, account):
        service = AdminService(db, notifier)
        assert await service.list_users() == [(account, None)]

        profile = await ProfileRepository.get_or_create(db, account.id, account.email)
        await db.commit()
        assert await service.list_users() == [(account, profile)]

    @pytest.mark.asyncio
    async def test_block_user(self, db, notifier, account):
        updated = await AdminService(db, notifier).set_user_active(account.id, False)
        assert updated.is_active is False

    @pytest.mark.asyncio
    async def test_unknown_user(self, db, notifier):
        service = AdminService(db, notifier)
        with pytest.raises(NotFoundException):
            await service.get_user(uuid.uuid4())
        with pytest.raises(NotFoundException):
            await service.set_user_active(uuid.uuid4(), True)

    @pytest.mark.asyncio
    async def test_subscription_overrides_delegate(self, db, notifier, gateway, account, pro_plan):
        await SubscriptionService(db, gateway).purchase(account.id, pro_plan.id, "pm_card")
        service = AdminService(db, notifier, gateway)

        await service.extend_user_subscription(account.id, 7)
        assert len(gateway.called("extend_trial")) == 1

        profile = await service.cancel_user_subscription(account.id)
        assert profile.subscription_is_active is False

        profile = await service.downgrade_user_subscription(account.id)
        assert profile.subscription_plan_id is None


class TestAdminManagement:
    @pytest.mark.asyncio
    async def test_create_and_list(self, db, notifier, superadmin):
        service = AdminService(db, notifier)
        admin = await service.create_admin("Ops@Example.com", "opspass1")

        assert admin.email == "ops@example.com"
        assert admin.role == AdminRole.ADMIN
        assert {a.email for a in await service.list_admins()} == {"root@example.com", "ops@example.com"}

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, db, notifier, superadmin):
        with pytest.raises(ConflictException):
            await AdminService(db, notifier).create_admin("root@example.com", "whatever")

    @pytest.mark.asyncio
    async def test_update_admin(self, db, notifier, superadmin):
        service = AdminService(db, notifier)
        admin = await service.create_admin("ops@example.com", "opspass1")

        with pytest.raises(ConflictException):
            await service.update_admin(admin.id, email="root@example.com")

        updated = await service.update_admin(admin.id, email="ops2@example.com", password="newpass1", is_active=False)
        assert updated.email == "ops2@example.com"
        assert updated.is_active is False
        with pytest.raises(ForbiddenException):
            await service.login("ops2@example.com", "newpass1")
