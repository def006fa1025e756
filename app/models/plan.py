"""Subscription plan model - catalog of purchasable plans.

Each plan has a unique name, a price and a duration in days. Plans that can be
purchased as a recurring subscription carry the Stripe price they bill against.
"""

from typing import Optional

from sqlalchemy import JSON, Boolean, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.models import TimestampMixin, UUIDMixin


class SubscriptionPlan(UUIDMixin, TimestampMixin, Base):
    """Subscription plan catalog entry.

    `simulations_limit` is null when `simulations_unlimited` is set.
    `active_plan` is a display flag only; `is_active` gates purchase.
    """

    __tablename__ = "tbl_subscription_plans"

    plan_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    plan_type: Mapped[str] = mapped_column(String(100), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    simulations_limit: Mapped[Optional[int]] = mapped_column(Integer)
    simulations_unlimited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    features: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    active_plan: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    stripe_price_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")
