"""Repository layer for user profiles and their embedded subscription state.

This module contains ONLY database access logic - no business rules.
"""

import uuid
from typing import Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import UserProfile


class ProfileRepository:
    """Repository for user profile operations."""

    @staticmethod
    async def get_by_user_id(db: AsyncSession, user_id: uuid.UUID) -> Optional[UserProfile]:
        result = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_stripe_subscription_id(
        db: AsyncSession, stripe_subscription_id: str
    ) -> Optional[UserProfile]:
        """Fetch the profile whose subscription state references a gateway subscription."""
        if not stripe_subscription_id:
            return None
        result = await db.execute(
            select(UserProfile).where(UserProfile.stripe_subscription_id == stripe_subscription_id)
        )
        return result.scalars().first()

    @staticmethod
    async def list_by_user_ids(db: AsyncSession, user_ids: Iterable[uuid.UUID]) -> list[UserProfile]:
        ids = list(user_ids)
        if not ids:
            return []
        result = await db.execute(select(UserProfile).where(UserProfile.user_id.in_(ids)))
        return list(result.scalars().all())

    @staticmethod
    async def get_or_create(db: AsyncSession, user_id: uuid.UUID, email: str) -> UserProfile:
        """Return the user's profile, adding an empty one to the session if none exists. Caller commits."""
        profile = await ProfileRepository.get_by_user_id(db, user_id)
        if profile is None:
            profile = UserProfile(user_id=user_id, email=email)
            db.add(profile)
            await db.flush()
        return profile

    @staticmethod
    async def delete_by_user_id(db: AsyncSession, user_id: uuid.UUID) -> None:
        """Delete a user's profile. Caller commits."""
        await db.execute(delete(UserProfile).where(UserProfile.user_id == user_id))
