"""Administrator endpoints.

Public: login, token refresh and password recovery.
Admin token: own profile, password change, user management and
subscription overrides. Superadmin: administrator management.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, status

from app.api.deps import DB, CurrentAdmin, CurrentSuperAdmin, Gateway, Notifier
from app.models.models import Account, UserProfile
from app.schemas.admin import (
	AdminCreateRequest,
	AdminLoginRequest,
	AdminResponse,
	AdminUpdateRequest,
	ExtendSubscriptionRequest,
	ManagedUserResponse,
	UserStatusRequest,
)
from app.schemas.auth import ChangePasswordRequest, EmailRequest, RefreshTokenRequest, ResetPasswordRequest
from app.schemas.users import ProfileResponse, SubscriptionState
from app.services.admin_service import AdminService
from app.utils.envelopes import api_success

router = APIRouter(prefix="/admin", tags=["admin"])


def _user_wire(account: Account, profile: Optional[UserProfile]) -> dict:
	data = ManagedUserResponse.model_validate(account)
	data.profile = ProfileResponse.model_validate(profile) if profile is not None else None
	return data.to_wire()


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------


@router.post("/login")
async def login(payload: AdminLoginRequest, db: DB, notifier: Notifier):
	result = await AdminService(db, notifier).login(payload.email, payload.password)
	return api_success(
		"Login successful",
		admin=AdminResponse.model_validate(result["admin"]).to_wire(),
		accessToken=result["access_token"],
		refreshToken=result["refresh_token"],
	)


@router.post("/refresh-token")
async def refresh_token(payload: RefreshTokenRequest, db: DB, notifier: Notifier):
	access_token = await AdminService(db, notifier).refresh(payload.refresh_token)
	return api_success(accessToken=access_token)


@router.post("/forgot-password")
async def forgot_password(payload: EmailRequest, db: DB, notifier: Notifier):
	await AdminService(db, notifier).forgot_password(payload.email)
	return api_success("Password reset OTP sent to admin email")


@router.post("/resend-otp")
async def resend_otp(payload: EmailRequest, db: DB, notifier: Notifier):
	await AdminService(db, notifier).resend_otp(payload.email)
	return api_success("New OTP sent to admin email")


@router.post("/reset-password")
async def reset_password(payload: ResetPasswordRequest, db: DB, notifier: Notifier):
	await AdminService(db, notifier).reset_password(payload.email, payload.otp, payload.new_password)
	return api_success("Password reset successfully")


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@router.get("/profile")
async def get_profile(admin: CurrentAdmin, db: DB, notifier: Notifier):
	record = await AdminService(db, notifier).get_admin(admin.id)
	return api_success(admin=AdminResponse.model_validate(record).to_wire())


@router.post("/change-password")
async def change_password(payload: ChangePasswordRequest, admin: CurrentAdmin, db: DB, notifier: Notifier):
	await AdminService(db, notifier).change_password(
		admin.id,
		payload.current_password,
		payload.new_password,
		payload.confirm_password,
	)
	return api_success("Password changed successfully")


@router.get("/users")
async def list_users(admin: CurrentAdmin, db: DB, notifier: Notifier):
	rows = await AdminService(db, notifier).list_users()
	return api_success(users=[_user_wire(account, profile) for account, profile in rows])


@router.get("/users/{user_id}")
async def get_user(user_id: uuid.UUID, admin: CurrentAdmin, db: DB, notifier: Notifier):
	account, profile = await AdminService(db, notifier).get_user(user_id)
	return api_success(user=_user_wire(account, profile))


@router.patch("/users/{user_id}")
async def update_user(user_id: uuid.UUID, payload: UserStatusRequest, admin: CurrentAdmin, db: DB, notifier: Notifier):
	account = await AdminService(db, notifier).set_user_active(user_id, payload.is_active)
	return api_success(
		"User updated",
		user={"id": str(account.id), "email": account.email, "isActive": account.is_active},
	)


@router.post("/users/{user_id}/subscription/extend")
async def extend_subscription(
	user_id: uuid.UUID,
	payload: ExtendSubscriptionRequest,
	admin: CurrentAdmin,
	db: DB,
	notifier: Notifier,
	gateway: Gateway,
):
	profile = await AdminService(db, notifier, gateway).extend_user_subscription(user_id, payload.extra_days)
	return api_success(
		"Subscription extended",
		subscription=SubscriptionState.model_validate(profile.subscription).to_wire(),
	)


@router.post("/users/{user_id}/subscription/downgrade")
async def downgrade_subscription(user_id: uuid.UUID, admin: CurrentAdmin, db: DB, notifier: Notifier, gateway: Gateway):
	profile = await AdminService(db, notifier, gateway).downgrade_user_subscription(user_id)
	return api_success(
		"Subscription downgraded",
		subscription=SubscriptionState.model_validate(profile.subscription).to_wire(),
	)


@router.post("/users/{user_id}/subscription/cancel")
async def cancel_subscription(user_id: uuid.UUID, admin: CurrentAdmin, db: DB, notifier: Notifier, gateway: Gateway):
	profile = await AdminService(db, notifier, gateway).cancel_user_subscription(user_id)
	return api_success(
		"Subscription cancelled",
		subscription=SubscriptionState.model_validate(profile.subscription).to_wire(),
	)


# ---------------------------------------------------------------------------
# Superadmin
# ---------------------------------------------------------------------------


@router.post("/admins", status_code=status.HTTP_201_CREATED)
async def create_admin(payload: AdminCreateRequest, superadmin: CurrentSuperAdmin, db: DB, notifier: Notifier):
	record = await AdminService(db, notifier).create_admin(payload.email, payload.password, payload.role)
	return api_success("Admin created", admin=AdminResponse.model_validate(record).to_wire())


@router.get("/admins")
async def list_admins(superadmin: CurrentSuperAdmin, db: DB, notifier: Notifier):
	admins = await AdminService(db, notifier).list_admins()
	return api_success(admins=[AdminResponse.model_validate(a).to_wire() for a in admins])


@router.patch("/admins/{admin_id}")
async def update_admin(
	admin_id: uuid.UUID,
	payload: AdminUpdateRequest,
	superadmin: CurrentSuperAdmin,
	db: DB,
	notifier: Notifier,
):
	record = await AdminService(db, notifier).update_admin(
		admin_id,
		email=payload.email,
		password=payload.password,
		is_active=payload.is_active,
	)
	return api_success("Admin updated", admin=AdminResponse.model_validate(record).to_wire())
