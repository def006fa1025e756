"""Plan catalog, purchase and gateway webhook endpoints.

Static paths (`/me`, `/webhook`) are registered before `/{plan_id}` so they
are not captured by the path parameter.
"""

import logging
import uuid

from fastapi import APIRouter, Header, Request, status

from app.api.deps import DB, CurrentAdmin, CurrentUser, Gateway
from app.schemas.subscriptions import PlanCreateRequest, PlanResponse, PlanUpdateRequest, PurchaseRequest
from app.schemas.users import SubscriptionState
from app.services.plan_service import PlanService
from app.services.subscription_service import SubscriptionService
from app.utils.envelopes import api_success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.get("")
async def list_plans(db: DB):
	plans = await PlanService(db).list_plans()
	return api_success(subscriptions=[PlanResponse.model_validate(p).to_wire() for p in plans])


@router.get("/me")
async def get_my_subscription(current_user: CurrentUser, db: DB, gateway: Gateway):
	state = await SubscriptionService(db, gateway).get_subscription_state(current_user.id)
	return api_success(subscription=SubscriptionState.model_validate(state).to_wire())


@router.post("/me/cancel")
async def cancel_my_subscription(current_user: CurrentUser, db: DB, gateway: Gateway):
	profile = await SubscriptionService(db, gateway).cancel(current_user.id)
	return api_success(
		"Subscription cancelled",
		subscription=SubscriptionState.model_validate(profile.subscription).to_wire(),
	)


@router.post("/webhook")
async def stripe_webhook(
	request: Request,
	db: DB,
	gateway: Gateway,
	stripe_signature: str = Header("", alias="stripe-signature"),
):
	# Signature verification needs the exact bytes Stripe sent
	payload = await request.body()
	event = gateway.construct_event(payload, stripe_signature)
	await SubscriptionService(db, gateway).reconcile(event)
	return {"received": True}


@router.get("/{plan_id}")
async def get_plan(plan_id: uuid.UUID, db: DB):
	plan = await PlanService(db).get_plan(plan_id)
	return api_success(subscription=PlanResponse.model_validate(plan).to_wire())


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_plan(payload: PlanCreateRequest, admin: CurrentAdmin, db: DB):
	plan = await PlanService(db).create_plan(payload.model_dump())
	return api_success("Subscription created", subscription=PlanResponse.model_validate(plan).to_wire())


@router.put("/{plan_id}")
async def update_plan(plan_id: uuid.UUID, payload: PlanUpdateRequest, admin: CurrentAdmin, db: DB):
	plan = await PlanService(db).update_plan(plan_id, payload.model_dump(exclude_unset=True))
	return api_success("Subscription updated", subscription=PlanResponse.model_validate(plan).to_wire())


@router.delete("/{plan_id}")
async def delete_plan(plan_id: uuid.UUID, admin: CurrentAdmin, db: DB):
	await PlanService(db).delete_plan(plan_id)
	return api_success("Subscription deleted")


@router.post("/{plan_id}/purchase")
async def purchase_plan(
	plan_id: uuid.UUID,
	payload: PurchaseRequest,
	current_user: CurrentUser,
	db: DB,
	gateway: Gateway,
):
	profile = await SubscriptionService(db, gateway).purchase(
		current_user.id,
		plan_id,
		payload.payment_method_id,
		card_holder_name=payload.card_holder_name,
	)
	return api_success(
		"Subscription purchased",
		subscription=SubscriptionState.model_validate(profile.subscription).to_wire(),
	)
