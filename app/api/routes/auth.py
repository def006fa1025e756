from fastapi import APIRouter, status

from app.api.deps import DB, CurrentUser, GoogleVerifier, Notifier
from app.schemas.auth import (
	AccountResponse,
	ChangePasswordRequest,
	EmailRequest,
	GoogleAuthRequest,
	LoginRequest,
	RefreshTokenRequest,
	RegisterRequest,
	ResetPasswordRequest,
	VerifyOTPRequest,
)
from app.services.auth_service import AuthService
from app.utils.envelopes import api_success

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_envelope(message: str, result: dict) -> dict:
	return api_success(
		message,
		user=AccountResponse.model_validate(result["user"]).to_wire(),
		accessToken=result["access_token"],
		refreshToken=result["refresh_token"],
	)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: DB, notifier: Notifier):
	await AuthService(db, notifier).register(payload.name, payload.email, payload.password)
	return api_success("OTP sent to email. Please verify to complete registration")


@router.post("/verify")
async def verify(payload: VerifyOTPRequest, db: DB, notifier: Notifier):
	account = await AuthService(db, notifier).verify_registration(payload.email, payload.otp)
	return api_success("Account verified successfully", user=AccountResponse.model_validate(account).to_wire())


@router.post("/resend-otp")
async def resend_otp(payload: EmailRequest, db: DB, notifier: Notifier):
	await AuthService(db, notifier).resend_registration_otp(payload.email)
	return api_success("New OTP sent to email")


@router.post("/login")
async def login(payload: LoginRequest, db: DB, notifier: Notifier):
	result = await AuthService(db, notifier).login(payload.email, payload.password)
	return _token_envelope("Login successful", result)


@router.post("/google")
async def google_login(payload: GoogleAuthRequest, db: DB, notifier: Notifier, verifier: GoogleVerifier):
	result = await AuthService(db, notifier, verifier).google_login(payload.id_token)
	return _token_envelope("Login successful", result)


@router.post("/refresh-token")
async def refresh_token(payload: RefreshTokenRequest, db: DB, notifier: Notifier):
	access_token = await AuthService(db, notifier).refresh(payload.refresh_token)
	return api_success(accessToken=access_token)


@router.post("/forgot-password")
async def forgot_password(payload: EmailRequest, db: DB, notifier: Notifier):
	await AuthService(db, notifier).forgot_password(payload.email)
	return api_success("Password reset OTP sent to email")


@router.post("/reset-password")
async def reset_password(payload: ResetPasswordRequest, db: DB, notifier: Notifier):
	await AuthService(db, notifier).reset_password(payload.email, payload.otp, payload.new_password)
	return api_success("Password reset successfully")


@router.post("/request-account-deletion")
async def request_account_deletion(payload: EmailRequest, db: DB, notifier: Notifier):
	await AuthService(db, notifier).request_account_deletion(payload.email)
	return api_success("Account deletion OTP sent to email")


@router.post("/confirm-account-deletion")
async def confirm_account_deletion(payload: VerifyOTPRequest, db: DB, notifier: Notifier):
	await AuthService(db, notifier).confirm_account_deletion(payload.email, payload.otp)
	return api_success("Account deleted successfully")


@router.post("/change-password")
async def change_password(payload: ChangePasswordRequest, current_user: CurrentUser, db: DB, notifier: Notifier):
	await AuthService(db, notifier).change_password(
		current_user.id,
		payload.current_password,
		payload.new_password,
		payload.confirm_password,
	)
	return api_success("Password changed successfully")
