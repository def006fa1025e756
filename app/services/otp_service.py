"""One-time-password challenge store.

A challenge is keyed by (kind, email); issuing a new one replaces any prior
challenge of the same kind. Two concurrent issues for the same key both
delete-then-insert, so the last writer wins and the earlier OTP silently
stops working.
"""

import logging
from datetime import timedelta
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import generate_otp
from app.database.challenge_repo import ChallengeRepository
from app.models.enums import ChallengeKind
from app.models.otp_challenge import OTPChallenge
from app.services.notification_service import EmailNotifier
from app.utils.datetimes import ensure_utc, utcnow
from app.utils.exceptions import InvalidOTPException, NotFoundException, OTPExpiredException

logger = logging.getLogger(__name__)

_NOT_FOUND_MESSAGES = {
    ChallengeKind.REGISTRATION: "User not found. Please register first",
    ChallengeKind.PASSWORD_RESET: "Password reset request not found. Please try again",
    ChallengeKind.ACCOUNT_DELETION: "Account deletion request not found. Please try again",
    ChallengeKind.ADMIN_PASSWORD_RESET: "Password reset request not found",
}


class OTPService:
    def __init__(self, db: AsyncSession, notifier: EmailNotifier):
        self.db = db
        self.notifier = notifier

    @staticmethod
    def _expiry():
        return utcnow() + timedelta(minutes=settings.OTP_EXPIRES_MINUTES)

    async def purge_expired(self) -> int:
        """Remove challenges that expired longer ago than the retention window. Caller commits."""
        cutoff = utcnow() - timedelta(minutes=settings.OTP_RETENTION_MINUTES)
        return await ChallengeRepository.purge_expired(self.db, cutoff)

    async def issue(self, kind: ChallengeKind, email: str, payload: Optional[dict[str, Any]] = None) -> str:
        """Replace any challenge for (kind, email) with a fresh one and email the OTP."""
        otp = generate_otp()
        await self.purge_expired()
        await self._replace(kind, email, otp, payload or {})
        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent issue for the same key committed first; overwrite it.
            await self.db.rollback()
            await self._replace(kind, email, otp, payload or {})
            await self.db.commit()

        logger.info("OTP challenge issued", extra={"otp.kind": kind.value, "otp.email": email})
        self.notifier.send_otp(email, otp)
        return otp

    async def _replace(self, kind: ChallengeKind, email: str, otp: str, payload: dict[str, Any]) -> None:
        await ChallengeRepository.delete(self.db, kind, email)
        self.db.add(OTPChallenge(kind=kind, email=email, otp=otp, otp_expires=self._expiry(), payload=payload))

    async def reissue(self, kind: ChallengeKind, email: str) -> str:
        """Regenerate the OTP of an existing challenge, keeping its payload."""
        challenge = await ChallengeRepository.get(self.db, kind, email)
        if challenge is None:
            raise NotFoundException(_NOT_FOUND_MESSAGES[kind])

        otp = generate_otp()
        challenge.otp = otp
        challenge.otp_expires = self._expiry()
        await self.db.commit()

        self.notifier.send_otp(email, otp)
        return otp

    async def verify(self, kind: ChallengeKind, email: str, otp: str) -> OTPChallenge:
        """Check an OTP. The challenge is left in place; callers consume it on success."""
        challenge = await ChallengeRepository.get(self.db, kind, email)
        if challenge is None:
            raise NotFoundException(_NOT_FOUND_MESSAGES[kind])
        if challenge.otp != otp:
            raise InvalidOTPException()
        if ensure_utc(challenge.otp_expires) < utcnow():
            raise OTPExpiredException()
        return challenge

    async def consume(self, kind: ChallengeKind, email: str) -> None:
        """Delete a challenge. Caller commits, so it can be made atomic with its side effects."""
        await ChallengeRepository.delete(self.db, kind, email)
