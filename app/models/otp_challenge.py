"""OTP challenge model - transient one-time-password records.

A single table holds every challenge kind (pending registration, password
reset, account deletion, admin password reset). There is at most one live
challenge per (kind, email). Registration challenges carry the candidate
account's name and password hash in `payload` until verification promotes
them to an Account.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Enum, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from app.models.base import Base
from app.models.enums import ChallengeKind
from app.models.models import TimestampMixin, UUIDMixin, enum_values


class OTPChallenge(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "tbl_otp_challenges"
    __table_args__ = (UniqueConstraint("kind", "email", name="uq_otp_challenge_kind_email"),)

    kind: Mapped[ChallengeKind] = mapped_column(
        Enum(ChallengeKind, name="challenge_kind", native_enum=False, values_callable=enum_values), nullable=False
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    otp: Mapped[str] = mapped_column(String(16), nullable=False)
    otp_expires: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, index=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
