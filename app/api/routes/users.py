import uuid
from typing import Any, Optional

from fastapi import APIRouter, Body

from app.api.deps import DB, CurrentUser
from app.models.models import UserProfile
from app.schemas.users import ProfileResponse
from app.services.profile_service import ProfileService
from app.utils.envelopes import api_success
from app.utils.exceptions import ForbiddenException

router = APIRouter(prefix="/users", tags=["users"])


def _profile_wire(profile: Optional[UserProfile]) -> Optional[dict]:
	if profile is None:
		return None
	return ProfileResponse.model_validate(profile).to_wire()


def _ensure_self(current_user_id: uuid.UUID, user_id: uuid.UUID) -> None:
	if current_user_id != user_id:
		raise ForbiddenException("Not authorized")


def _ensure_body_user(current_user_id: uuid.UUID, data: dict[str, Any]) -> None:
	body_user_id = data.get("userId")
	if body_user_id and str(body_user_id) != str(current_user_id):
		raise ForbiddenException("Body userId must match authenticated user")


@router.get("/profile")
async def get_my_profile(current_user: CurrentUser, db: DB):
	profile = await ProfileService(db).get_profile(current_user.id)
	return api_success(profile=_profile_wire(profile))


@router.get("/profile/{user_id}")
async def get_profile(user_id: uuid.UUID, current_user: CurrentUser, db: DB):
	_ensure_self(current_user.id, user_id)
	profile = await ProfileService(db).get_profile(user_id)
	return api_success(profile=_profile_wire(profile))


@router.post("/profile")
async def save_profile(current_user: CurrentUser, db: DB, data: dict[str, Any] = Body(...)):
	_ensure_body_user(current_user.id, data)
	profile = await ProfileService(db).save_profile(current_user.id, data)
	return api_success(profile=_profile_wire(profile))


@router.patch("/profile")
async def patch_my_profile(current_user: CurrentUser, db: DB, data: dict[str, Any] = Body(...)):
	_ensure_body_user(current_user.id, data)
	profile = await ProfileService(db).patch_profile(current_user.id, data)
	return api_success(profile=_profile_wire(profile))


@router.patch("/profile/{user_id}")
async def patch_profile(user_id: uuid.UUID, current_user: CurrentUser, db: DB, data: dict[str, Any] = Body(...)):
	_ensure_self(current_user.id, user_id)
	profile = await ProfileService(db).patch_profile(user_id, data)
	return api_success(profile=_profile_wire(profile))
