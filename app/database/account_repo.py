"""Repository layer for account and administrator records.

This module contains ONLY database access logic - no business rules.
"""

import uuid
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import Account, Administrator


class AccountRepository:
    """Repository for end-user account operations."""

    @staticmethod
    async def get_by_id(db: AsyncSession, account_id: uuid.UUID) -> Optional[Account]:
        return await db.get(Account, account_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[Account]:
        result = await db.execute(select(Account).where(Account.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    async def list_all(db: AsyncSession) -> list[Account]:
        result = await db.execute(select(Account).order_by(Account.created_at))
        return list(result.scalars().all())

    @staticmethod
    async def delete_by_email(db: AsyncSession, email: str) -> None:
        """Delete an account. Caller commits."""
        await db.execute(delete(Account).where(Account.email == email))


class AdministratorRepository:
    """Repository for administrator operations."""

    @staticmethod
    async def get_by_id(db: AsyncSession, admin_id: uuid.UUID) -> Optional[Administrator]:
        return await db.get(Administrator, admin_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[Administrator]:
        result = await db.execute(select(Administrator).where(Administrator.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    async def list_all(db: AsyncSession) -> list[Administrator]:
        result = await db.execute(select(Administrator).order_by(Administrator.created_at))
        return list(result.scalars().all())
