"""Subscription plan and purchase schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import APIModel


class PlanCreateRequest(APIModel):
    """New catalog plan. Required-field and simulations rules are enforced by the service."""

    plan_name: Optional[str] = Field(None, max_length=255)
    plan_type: Optional[str] = Field(None, max_length=100)
    price: Optional[float] = Field(None, ge=0)
    duration: Optional[int] = Field(None, ge=1, description="Length in days")
    simulations_limit: Optional[int] = Field(None, ge=0)
    simulations_unlimited: bool = False
    features: list[str] = Field(default_factory=list)
    is_active: bool = True
    active_plan: bool = False
    stripe_price_id: Optional[str] = None


class PlanUpdateRequest(APIModel):
    """Partial plan update; only fields present in the request body are applied."""

    plan_name: Optional[str] = Field(None, max_length=255)
    plan_type: Optional[str] = Field(None, max_length=100)
    price: Optional[float] = Field(None, ge=0)
    duration: Optional[int] = Field(None, ge=1)
    simulations_limit: Optional[int] = Field(None, ge=0)
    simulations_unlimited: Optional[bool] = None
    features: Optional[list[str]] = None
    is_active: Optional[bool] = None
    active_plan: Optional[bool] = None
    stripe_price_id: Optional[str] = None


class PlanResponse(APIModel):
    id: uuid.UUID
    plan_name: str
    plan_type: str
    price: float
    duration: int
    simulations_limit: Optional[int] = None
    simulations_unlimited: bool
    features: list[str]
    is_active: bool
    active_plan: bool
    stripe_price_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PurchaseRequest(APIModel):
    payment_method_id: str = Field(..., min_length=1)
    card_holder_name: Optional[str] = Field(None, max_length=255)
