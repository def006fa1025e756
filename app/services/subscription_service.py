"""Service layer for the subscription lifecycle.

This module contains ALL business rules for a user's subscription state.
It orchestrates repository calls and the payment gateway.

Key Concepts:
- Subscription State: columns embedded in the user's profile (plan, period,
  Stripe ids, is_active). The local record is the source of truth for access.
- Gateway Subscription: the recurring billing record on Stripe. Purchase is the
  only path that creates one.
- Reconcile: webhook-driven refresh of the local state from the gateway. It is
  idempotent, so repeated delivery of the same event is harmless.
- Best-effort gateway calls: extend/downgrade/cancel log gateway failures and
  still apply the local change.

State machine per user:
    NoSubscription -> Active (purchase)
    Active -> Active (extend, reconcile)
    Active -> NoSubscription (downgrade; all fields cleared)
    Active -> Cancelled (cancel; inactive, plan history kept)

There is no optimistic locking: a webhook and an admin action touching the
same profile are independent read-then-write operations, last write wins.
"""

import logging
import uuid
from datetime import timedelta
from typing import Any, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.database.account_repo import AccountRepository
from app.database.plan_repo import PlanRepository
from app.database.profile_repo import ProfileRepository
from app.integrations.payment_gateway import (
    GatewaySubscription,
    PaymentGateway,
    invoice_subscription_id,
    subscription_from_payload,
)
from app.models.models import UserProfile
from app.utils.datetimes import ensure_utc, utcnow
from app.utils.exceptions import (
    NotFoundException,
    PlanUnavailableException,
    SubscriptionInactiveException,
    UnsupportedPlanException,
    ValidationException,
)

logger = logging.getLogger(__name__)

# Events that can change the billing period or status of a tracked subscription
RECONCILED_EVENTS = frozenset(
    {
        "invoice.payment_succeeded",
        "customer.subscription.updated",
        "customer.subscription.deleted",
    }
)

# Gateway statuses that still grant access; any other status only deactivates
LIVE_STATUSES = frozenset({"active", "trialing"})


class SubscriptionService:
    """Service for subscription lifecycle business logic."""

    def __init__(self, db: AsyncSession, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway

    @staticmethod
    def _clear_state(profile: UserProfile) -> None:
        """Reset every subscription field to its empty/inactive default."""
        profile.subscription_plan_id = None
        profile.subscription_plan_name = ""
        profile.subscription_started_at = None
        profile.subscription_expires_at = None
        profile.stripe_customer_id = ""
        profile.stripe_subscription_id = ""
        profile.stripe_price_id = ""
        profile.subscription_is_active = False

    async def _get_profile(self, user_id: uuid.UUID) -> UserProfile:
        profile = await ProfileRepository.get_by_user_id(self.db, user_id)
        if profile is None:
            raise NotFoundException("User profile not found")
        return profile

    async def get_subscription_state(self, user_id: uuid.UUID) -> dict[str, Any]:
        """
        Get the caller's subscription state.

        Users without a profile have never purchased, so they get the
        empty/inactive defaults rather than an error.
        """
        profile = await ProfileRepository.get_by_user_id(self.db, user_id)
        if profile is None:
            empty = UserProfile(user_id=user_id)
            self._clear_state(empty)
            return empty.subscription
        return profile.subscription

    async def purchase(
        self,
        user_id: uuid.UUID,
        plan_id: uuid.UUID,
        payment_method_id: str,
        card_holder_name: Optional[str] = None,
    ) -> UserProfile:
        """
        Purchase a plan as a recurring Stripe subscription.

        Business Rules:
        - Plan must exist (NotFound) and be active (Unavailable)
        - Plan must carry a Stripe price (Unsupported); checked before any gateway call
        - The Stripe customer is reused when the profile already has one
        - An "already attached" payment method counts as attached
        - Period boundaries come from the gateway, not from the plan duration
        - Buying while active replaces the previous gateway subscription, which
          is cancelled only after the new one exists (best-effort)

        Args:
            user_id: ID of the purchasing account
            plan_id: ID of the catalog plan
            payment_method_id: Stripe payment method created client-side
            card_holder_name: Optional name recorded on a newly created customer

        Returns:
            The profile with its updated subscription state
        """
        # Step 1: Validate the plan
        plan = await PlanRepository.get_by_id(self.db, plan_id)
        if plan is None:
            raise NotFoundException("Subscription not found")
        if not plan.is_active:
            raise PlanUnavailableException()
        if not plan.stripe_price_id:
            raise UnsupportedPlanException()

        # Step 2: Resolve the account and its profile (created lazily)
        account = await AccountRepository.get_by_id(self.db, user_id)
        if account is None:
            raise NotFoundException("User not found")
        profile = await ProfileRepository.get_or_create(self.db, user_id, account.email)

        # Step 3: Resolve or create the gateway customer
        customer_id = profile.stripe_customer_id
        if not customer_id:
            customer_id = await self.gateway.create_customer(
                email=profile.email or account.email,
                metadata={"userId": str(user_id)},
                name=card_holder_name or profile.full_name or account.name,
            )
            profile.stripe_customer_id = customer_id
            await self.db.commit()

        # Step 4: Attach the payment method and make it the default
        await self.gateway.attach_payment_method(payment_method_id, customer_id)
        await self.gateway.set_default_payment_method(customer_id, payment_method_id)

        # Step 5: Create the recurring subscription
        gateway_subscription = await self.gateway.create_subscription(
            customer_id=customer_id,
            price_id=plan.stripe_price_id,
            payment_method_id=payment_method_id,
            metadata={
                "planId": str(plan.id),
                "planName": plan.plan_name,
                "userId": str(user_id),
            },
        )

        # Step 6: Stop billing the subscription this purchase replaces
        previous_subscription_id = profile.stripe_subscription_id
        if (
            profile.subscription_is_active
            and previous_subscription_id
            and previous_subscription_id != gateway_subscription.id
        ):
            try:
                await self.gateway.cancel_subscription(previous_subscription_id)
            except Exception:
                logger.warning(
                    "Failed to cancel replaced Stripe subscription %s",
                    previous_subscription_id,
                    exc_info=True,
                )

        # Step 7: Persist the subscription state from the gateway's billing period
        now = utcnow()
        profile.subscription_plan_id = plan.id
        profile.subscription_plan_name = plan.plan_name
        profile.plan_name = plan.plan_name
        profile.subscription_started_at = gateway_subscription.current_period_start or now
        profile.subscription_expires_at = (
            gateway_subscription.current_period_end or now + timedelta(days=plan.duration)
        )
        profile.stripe_subscription_id = gateway_subscription.id
        profile.stripe_price_id = plan.stripe_price_id
        profile.subscription_is_active = True
        await self.db.commit()

        logger.info(
            "Subscription purchased",
            extra={
                "user.id": str(user_id),
                "plan.id": str(plan.id),
                "stripe.subscription": gateway_subscription.id,
            },
        )
        return profile

    async def reconcile(self, event: Mapping[str, Any]) -> Optional[UserProfile]:
        """
        Apply a gateway webhook event to the matching profile.

        Only profiles whose stored Stripe subscription id matches are touched.
        Events for subscriptions we do not track (e.g. Stripe test events)
        are ignored. Applying the same event twice yields the same state.

        Args:
            event: Verified Stripe event (dict-like)

        Returns:
            The updated profile, or None when the event was ignored
        """
        event_type = event.get("type")
        if event_type not in RECONCILED_EVENTS:
            logger.debug("Ignoring webhook event %s", event_type)
            return None

        obj = event["data"]["object"]
        if event_type == "invoice.payment_succeeded":
            subscription_id = invoice_subscription_id(obj)
            if not subscription_id:
                return None
            profile = await ProfileRepository.get_by_stripe_subscription_id(self.db, subscription_id)
            if profile is None:
                logger.info("Webhook references untracked subscription %s", subscription_id)
                return None
            gateway_subscription = await self.gateway.retrieve_subscription(subscription_id)
        else:
            gateway_subscription = subscription_from_payload(obj)
            profile = await ProfileRepository.get_by_stripe_subscription_id(self.db, gateway_subscription.id)
            if profile is None:
                logger.info("Webhook references untracked subscription %s", gateway_subscription.id)
                return None

        self._apply_gateway_state(profile, gateway_subscription)
        await self.db.commit()

        logger.info(
            "Subscription reconciled",
            extra={
                "event.type": event_type,
                "stripe.subscription": gateway_subscription.id,
                "subscription.is_active": profile.subscription_is_active,
            },
        )
        return profile

    @staticmethod
    def _apply_gateway_state(profile: UserProfile, gateway_subscription: GatewaySubscription) -> None:
        """
        Copy the gateway period and status onto the profile.

        A cancelled or unpaid subscription never moves the expiry forward, so
        the deletion event that follows a local cancel keeps `expiresAt=now`.
        """
        if gateway_subscription.status not in LIVE_STATUSES:
            profile.subscription_is_active = False
            return
        if gateway_subscription.current_period_end is not None:
            profile.subscription_expires_at = gateway_subscription.current_period_end
        profile.subscription_is_active = not gateway_subscription.cancel_at_period_end

    async def extend(self, user_id: uuid.UUID, extra_days: int) -> UserProfile:
        """
        Extend an active subscription by `extra_days` (admin goodwill override).

        The new expiry is counted from now when the current one is already in
        the past. On Stripe the next invoice is pushed out with a trial end at
        the new expiry, without proration.
        """
        if not isinstance(extra_days, int) or isinstance(extra_days, bool) or extra_days <= 0:
            raise ValidationException("`extraDays` must be a positive number")

        profile = await self._get_profile(user_id)
        if not profile.subscription_is_active:
            raise SubscriptionInactiveException()

        now = utcnow()
        current_expiry = ensure_utc(profile.subscription_expires_at) or now
        new_expiry = max(current_expiry, now) + timedelta(days=extra_days)

        if profile.stripe_subscription_id:
            try:
                await self.gateway.extend_trial(profile.stripe_subscription_id, new_expiry)
            except Exception:
                logger.warning(
                    "Failed to extend Stripe subscription %s",
                    profile.stripe_subscription_id,
                    exc_info=True,
                )

        profile.subscription_expires_at = new_expiry
        await self.db.commit()
        return profile

    async def downgrade(self, user_id: uuid.UUID) -> UserProfile:
        """
        Drop the user back to no subscription.

        Step A (gateway cancel) is best-effort; step B (clearing local state)
        always runs.
        """
        profile = await self._get_profile(user_id)

        if profile.stripe_subscription_id:
            try:
                await self.gateway.cancel_subscription(profile.stripe_subscription_id)
            except Exception:
                logger.warning(
                    "Failed to cancel Stripe subscription %s during downgrade",
                    profile.stripe_subscription_id,
                    exc_info=True,
                )

        self._clear_state(profile)
        profile.plan_name = ""
        await self.db.commit()
        return profile

    async def cancel(self, user_id: uuid.UUID) -> UserProfile:
        """
        Cancel an active subscription now, keeping the plan history fields.

        Unlike downgrade, the plan reference stays so the profile reads as
        "cancelled, was on plan X".
        """
        profile = await self._get_profile(user_id)
        if not profile.subscription_is_active:
            raise SubscriptionInactiveException()

        if profile.stripe_subscription_id:
            try:
                await self.gateway.cancel_subscription(profile.stripe_subscription_id, prorate=False)
            except Exception:
                logger.warning(
                    "Failed to cancel Stripe subscription %s",
                    profile.stripe_subscription_id,
                    exc_info=True,
                )

        profile.subscription_expires_at = utcnow()
        profile.subscription_is_active = False
        await self.db.commit()
        return profile
