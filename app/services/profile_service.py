"""User profile service.

Profiles are created lazily on the first save or patch. Incoming payloads go
through `PROFILE_FIELDS`, an explicit patch schema: every accepted field has
a column and a coercion rule, and anything else in the payload is dropped.
`userId`, `email` and `subscription` are never accepted from a client; the
profile email is always copied from the owning Account.
"""

import logging
import math
import uuid
from datetime import date, datetime
from typing import Any, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.database.account_repo import AccountRepository
from app.database.profile_repo import ProfileRepository
from app.models.models import Account, UserProfile
from app.utils.exceptions import NotFoundException, ValidationException

logger = logging.getLogger(__name__)


def _number(field: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationException(f"{field} must be a valid number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationException(f"{field} must be a valid number")
    if not math.isfinite(number):
        raise ValidationException(f"{field} must be a valid number")
    return number


def _trimmed(field: str, value: Any) -> str:
    return str(value).strip()


def _text(field: str, value: Any) -> str:
    return str(value)


def _date(field: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValidationException(f"{field} must be a valid date")


def _string_list(field: str, value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple)):
        raise ValidationException(f"{field} must be a list of strings")
    return [str(item) for item in value]


Coercer = Callable[[str, Any], Any]

# payload key -> (column, coercer)
PROFILE_FIELDS: dict[str, tuple[str, Coercer]] = {
    "fullName": ("full_name", _trimmed),
    "profileImage": ("profile_image", _text),
    "dateOfBirth": ("date_of_birth", _date),
    "gender": ("gender", _trimmed),
    "monthlyIncome": ("monthly_income", _number),
    "fixedExpenses": ("fixed_expenses", _number),
    "variableExpenses": ("variable_expenses", _number),
    "existingLoans": ("existing_loans", _number),
    "totalMonthlyLoanPayments": ("total_monthly_loan_payments", _number),
    "currentSavings": ("current_savings", _number),
    "dependents": ("dependents", _string_list),
    "householdResponsibilityLevel": ("household_responsibility_level", _trimmed),
    "incomeStability": ("income_stability", _trimmed),
    "riskTolerance": ("risk_tolerance", _trimmed),
    "planName": ("plan_name", _text),
    "targetAmount": ("target_amount", _number),
    "targetDate": ("target_date", _date),
    "goalDescription": ("goal_description", _text),
}


def build_profile_update(data: dict[str, Any]) -> dict[str, Any]:
    """Coerce a client payload into column values. Keys may be camelCase or column names."""
    update: dict[str, Any] = {}
    for key, (column, coerce) in PROFILE_FIELDS.items():
        if key in data:
            raw = data[key]
        elif column in data:
            raw = data[column]
        else:
            continue
        if raw is None:
            continue
        update[column] = coerce(key, raw)
    return update


class ProfileService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_account(self, user_id: uuid.UUID) -> Account:
        account = await AccountRepository.get_by_id(self.db, user_id)
        if account is None:
            raise NotFoundException("User not found")
        return account

    async def get_profile(self, user_id: uuid.UUID) -> Optional[UserProfile]:
        await self._get_account(user_id)
        return await ProfileRepository.get_by_user_id(self.db, user_id)

    async def save_profile(self, user_id: uuid.UUID, data: dict[str, Any]) -> UserProfile:
        """Upsert the caller's profile."""
        update = build_profile_update(data)
        if not update:
            raise ValidationException("No profile fields provided")
        return await self._apply(user_id, update)

    async def patch_profile(self, user_id: uuid.UUID, data: dict[str, Any]) -> UserProfile:
        """Set-only update; fields absent from `data` keep their stored value."""
        update = build_profile_update(data)
        if not update:
            raise ValidationException("No fields provided to update")
        return await self._apply(user_id, update)

    async def _apply(self, user_id: uuid.UUID, update: dict[str, Any]) -> UserProfile:
        account = await self._get_account(user_id)
        profile = await ProfileRepository.get_or_create(self.db, user_id, account.email)

        for column, value in update.items():
            setattr(profile, column, value)
        profile.email = account.email
        await self.db.commit()

        logger.info(
            "Profile updated",
            extra={"user.id": str(user_id), "profile.fields": sorted(update)},
        )
        return profile
