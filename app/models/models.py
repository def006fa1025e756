from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, Date, Enum, Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from app.models.base import Base
from app.models.enums import AdminRole, TicketStatus
from app.utils.datetimes import utcnow


def enum_values(enum_cls) -> list[str]:
    """Persist enum values ('superadmin') rather than member names ('SUPERADMIN')."""
    return [member.value for member in enum_cls]


class UUIDMixin:
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), onupdate=utcnow)


class Account(UUIDMixin, TimestampMixin, Base):
    """Verified end-user account. Only created by completing an OTP-verified registration or Google sign-in."""
    __tablename__ = "tbl_accounts"

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    # Empty for accounts that only sign in with Google
    password_hash: Mapped[str] = mapped_column(Text, nullable=False, default="")
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Administrator(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "tbl_administrators"

    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[AdminRole] = mapped_column(
        Enum(AdminRole, name="admin_role", native_enum=False, values_callable=enum_values), nullable=False, default=AdminRole.ADMIN
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class UserProfile(UUIDMixin, TimestampMixin, Base):
    """Profile owned by an Account, with the user's subscription state embedded as columns."""
    __tablename__ = "tbl_user_profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tbl_accounts.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False, default="")
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    profile_image: Mapped[str] = mapped_column(Text, nullable=False, default="")
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date)
    gender: Mapped[str] = mapped_column(String(50), nullable=False, default="")

    monthly_income: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    fixed_expenses: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    variable_expenses: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    existing_loans: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_monthly_loan_payments: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    current_savings: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    dependents: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    household_responsibility_level: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    income_stability: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    risk_tolerance: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    # Goal section
    plan_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    target_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    target_date: Mapped[Optional[date]] = mapped_column(Date)
    goal_description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Subscription state
    subscription_plan_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("tbl_subscription_plans.id", ondelete="SET NULL")
    )
    subscription_plan_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    subscription_started_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    subscription_expires_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    stripe_customer_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    stripe_subscription_id: Mapped[str] = mapped_column(String(255), nullable=False, default="", index=True)
    stripe_price_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    subscription_is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    @property
    def subscription(self) -> dict[str, Any]:
        return {
            "plan_id": self.subscription_plan_id,
            "plan_name": self.subscription_plan_name,
            "started_at": self.subscription_started_at,
            "expires_at": self.subscription_expires_at,
            "stripe_customer_id": self.stripe_customer_id,
            "stripe_subscription_id": self.stripe_subscription_id,
            "stripe_price_id": self.stripe_price_id,
            "is_active": self.subscription_is_active,
        }


class Ticket(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "tbl_tickets"

    ticket_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tbl_accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_email: Mapped[str] = mapped_column(String(320), nullable=False)
    subject: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[TicketStatus] = mapped_column(
        Enum(TicketStatus, name="ticket_status", native_enum=False, values_callable=enum_values), nullable=False, default=TicketStatus.NEW
    )
    admin_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("tbl_administrators.id", ondelete="SET NULL")
    )
    admin_ticket_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    reply: Mapped[str] = mapped_column(Text, nullable=False, default="")
    date_submitted: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, nullable=False)
