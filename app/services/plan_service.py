"""Service layer for the subscription plan catalog."""

import logging
import uuid
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.plan_repo import PlanRepository
from app.models.plan import SubscriptionPlan
from app.utils.exceptions import ConflictException, NotFoundException, ValidationException

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("plan_name", "plan_type", "price", "duration")

_UPDATABLE_FIELDS = (
    "plan_name",
    "plan_type",
    "price",
    "duration",
    "simulations_unlimited",
    "simulations_limit",
    "features",
    "is_active",
    "active_plan",
    "stripe_price_id",
)


class PlanService:
    """Service for plan catalog CRUD."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_plan(self, data: dict[str, Any]) -> SubscriptionPlan:
        if any(data.get(field) in (None, "") for field in _REQUIRED_FIELDS):
            raise ValidationException("All required fields must be provided")
        if not data.get("simulations_unlimited") and data.get("simulations_limit") is None:
            raise ValidationException(
                "Either simulationsUnlimited must be true or a simulationsLimit number provided"
            )

        if await PlanRepository.get_by_name(self.db, data["plan_name"]):
            raise ConflictException("Subscription with this plan name already exists")

        plan = SubscriptionPlan(
            plan_name=data["plan_name"],
            plan_type=data["plan_type"],
            price=data["price"],
            duration=data["duration"],
            simulations_unlimited=bool(data.get("simulations_unlimited")),
            simulations_limit=data.get("simulations_limit"),
            features=list(data.get("features") or []),
            is_active=data.get("is_active", True),
            active_plan=data.get("active_plan", False),
            stripe_price_id=data.get("stripe_price_id") or "",
        )
        self.db.add(plan)
        await self._commit()
        logger.info("Plan created", extra={"plan.id": str(plan.id), "plan.name": plan.plan_name})
        return plan

    async def list_plans(self) -> list[SubscriptionPlan]:
        return await PlanRepository.list_all(self.db)

    async def get_plan(self, plan_id: uuid.UUID) -> SubscriptionPlan:
        plan = await PlanRepository.get_by_id(self.db, plan_id)
        if plan is None:
            raise NotFoundException("Subscription not found")
        return plan

    async def update_plan(self, plan_id: uuid.UUID, updates: dict[str, Any]) -> SubscriptionPlan:
        """Apply a partial update; only keys present in `updates` are touched."""
        plan = await self.get_plan(plan_id)

        changes: dict[str, Any] = {}
        for field in _UPDATABLE_FIELDS:
            if field not in updates:
                continue
            value = updates[field]
            if field in _REQUIRED_FIELDS and value in (None, ""):
                continue
            if field == "stripe_price_id":
                value = value or ""
            elif field == "features":
                value = list(value or [])
            elif field in ("simulations_unlimited", "is_active", "active_plan"):
                value = bool(value)
            changes[field] = value

        unlimited = changes.get("simulations_unlimited", plan.simulations_unlimited)
        limit = changes.get("simulations_limit", plan.simulations_limit)
        if not unlimited and limit is None:
            raise ValidationException(
                "Either simulationsUnlimited must be true or a simulationsLimit number provided"
            )

        new_name = changes.get("plan_name")
        if new_name and new_name != plan.plan_name:
            if await PlanRepository.get_by_name(self.db, new_name):
                raise ConflictException("Subscription with this plan name already exists")

        for field, value in changes.items():
            setattr(plan, field, value)
        await self._commit()
        return plan

    async def delete_plan(self, plan_id: uuid.UUID) -> None:
        plan = await self.get_plan(plan_id)
        await self.db.delete(plan)
        await self.db.commit()

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictException("Subscription with this plan name already exists") from exc
