"""Repository layer for OTP challenge records."""

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import ChallengeKind
from app.models.otp_challenge import OTPChallenge


class ChallengeRepository:
    """Repository for OTP challenge operations. None of these methods commit."""

    @staticmethod
    async def get(db: AsyncSession, kind: ChallengeKind, email: str) -> Optional[OTPChallenge]:
        result = await db.execute(
            select(OTPChallenge).where(OTPChallenge.kind == kind, OTPChallenge.email == email)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def delete(db: AsyncSession, kind: ChallengeKind, email: str) -> None:
        await db.execute(
            delete(OTPChallenge).where(OTPChallenge.kind == kind, OTPChallenge.email == email)
        )

    @staticmethod
    async def purge_expired(db: AsyncSession, before: datetime) -> int:
        """Delete challenges whose expiry is older than `before`. Returns the number removed."""
        result = await db.execute(
            delete(OTPChallenge)
            .where(OTPChallenge.otp_expires < before)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0
