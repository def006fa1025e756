"""Administrator schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from app.models.enums import AdminRole
from app.schemas.common import APIModel
from app.schemas.users import ProfileResponse


class AdminLoginRequest(APIModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class AdminResponse(APIModel):
    id: uuid.UUID
    email: str
    role: AdminRole
    is_active: bool
    created_at: Optional[datetime] = None


class AdminCreateRequest(APIModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    role: AdminRole = AdminRole.ADMIN


class AdminUpdateRequest(APIModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=1, max_length=128)
    is_active: Optional[bool] = None


class UserStatusRequest(APIModel):
    is_active: bool


class ExtendSubscriptionRequest(APIModel):
    extra_days: int


class ManagedUserResponse(APIModel):
    """An account as admins see it: no password hash, profile attached."""

    id: uuid.UUID
    name: str
    email: str
    verified: bool
    is_active: bool
    created_at: Optional[datetime] = None
    profile: Optional[ProfileResponse] = None
