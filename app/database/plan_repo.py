"""Repository layer for the subscription plan catalog."""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.plan import SubscriptionPlan


class PlanRepository:
    """Repository for subscription plan operations."""

    @staticmethod
    async def get_by_id(db: AsyncSession, plan_id: uuid.UUID) -> Optional[SubscriptionPlan]:
        return await db.get(SubscriptionPlan, plan_id)

    @staticmethod
    async def get_by_name(db: AsyncSession, plan_name: str) -> Optional[SubscriptionPlan]:
        result = await db.execute(select(SubscriptionPlan).where(SubscriptionPlan.plan_name == plan_name))
        return result.scalar_one_or_none()

    @staticmethod
    async def list_all(db: AsyncSession) -> list[SubscriptionPlan]:
        result = await db.execute(select(SubscriptionPlan).order_by(SubscriptionPlan.price))
        return list(result.scalars().all())
