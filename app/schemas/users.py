"""User profile schemas."""

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import APIModel


class SubscriptionState(APIModel):
    """Subscription state embedded in a profile."""

    plan_id: Optional[uuid.UUID] = None
    plan_name: str = ""
    started_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    stripe_customer_id: str = ""
    stripe_subscription_id: str = ""
    stripe_price_id: str = ""
    is_active: bool = False


class ProfileResponse(APIModel):
    id: uuid.UUID
    user_id: uuid.UUID
    email: str
    full_name: str = ""
    profile_image: str = ""
    date_of_birth: Optional[date] = None
    gender: str = ""
    monthly_income: float = 0
    fixed_expenses: float = 0
    variable_expenses: float = 0
    existing_loans: float = 0
    total_monthly_loan_payments: float = 0
    current_savings: float = 0
    dependents: list[str] = Field(default_factory=list)
    household_responsibility_level: str = ""
    income_stability: str = ""
    risk_tolerance: str = ""
    plan_name: str = ""
    target_amount: float = 0
    target_date: Optional[date] = None
    goal_description: str = ""
    subscription: SubscriptionState
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
