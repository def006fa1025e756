"""Tests for the subscription lifecycle: purchase, reconcile and admin overrides."""

import hashlib
import hmac
import json
import time
import uuid
from datetime import timedelta

import pytest

from app.database.profile_repo import ProfileRepository
from app.integrations.payment_gateway import GatewaySubscription, StripeGateway
from app.models import SubscriptionPlan
from app.services.subscription_service import SubscriptionService
from app.utils.datetimes import ensure_utc, utcnow
from app.utils.exceptions import (
    NotFoundException,
    PlanUnavailableException,
    SubscriptionInactiveException,
    UnsupportedPlanException,
    ValidationException,
)


async def _purchase(db, gateway, account, plan):
    return await SubscriptionService(db, gateway).purchase(account.id, plan.id, "pm_card")


def _event(event_type, obj):
    return {"type": event_type, "data": {"object": obj}}


def _signed(payload: str, secret: str) -> str:
    timestamp = int(time.time())
    digest = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


class TestPurchase:
    @pytest.mark.asyncio
    async def test_purchase_activates_subscription(self, db, gateway, account, pro_plan):
        profile = await _purchase(db, gateway, account, pro_plan)

        state = profile.subscription
        assert state["plan_id"] == pro_plan.id
        assert state["plan_name"] == "Pro"
        assert state["is_active"] is True
        assert state["stripe_customer_id"] == "cus_1"
        assert state["stripe_subscription_id"] == "sub_2"
        assert state["stripe_price_id"] == "price_abc"
        assert ensure_utc(state["expires_at"]) - ensure_utc(state["started_at"]) == timedelta(days=30)
        assert profile.plan_name == "Pro"

        assert gateway.called("attach_payment_method") == [("pm_card", "cus_1")]
        assert gateway.called("set_default_payment_method") == [("cus_1", "pm_card")]
        created = gateway.called("create_subscription")[0]
        assert created["price"] == "price_abc"
        assert created["metadata"] == {"planId": str(pro_plan.id), "planName": "Pro", "userId": str(account.id)}

    @pytest.mark.asyncio
    async def test_customer_named_after_account(self, db, gateway, account, pro_plan):
        await _purchase(db, gateway, account, pro_plan)
        customer = gateway.called("create_customer")[0]
        assert customer["email"] == "jane@example.com"
        assert customer["name"] == "Jane Doe"
        assert customer["metadata"] == {"userId": str(account.id)}

    @pytest.mark.asyncio
    async def test_card_holder_name_overrides_customer_name(self, db, gateway, account, pro_plan):
        await SubscriptionService(db, gateway).purchase(account.id, pro_plan.id, "pm_card", card_holder_name="J. Doe")
        assert gateway.called("create_customer")[0]["name"] == "J. Doe"

    @pytest.mark.asyncio
    async def test_existing_customer_is_reused(self, db, gateway, account, pro_plan):
        await _purchase(db, gateway, account, pro_plan)
        await _purchase(db, gateway, account, pro_plan)

        assert len(gateway.called("create_customer")) == 1
        assert [c["customer"] for c in gateway.called("create_subscription")] == ["cus_1", "cus_1"]

    @pytest.mark.asyncio
    async def test_repurchase_cancels_replaced_subscription(self, db, gateway, account, pro_plan):
        await _purchase(db, gateway, account, pro_plan)
        profile = await _purchase(db, gateway, account, pro_plan)

        assert gateway.called("cancel_subscription") == [("sub_2", True)]
        assert profile.stripe_subscription_id == "sub_3"
        assert profile.subscription_is_active is True

    @pytest.mark.asyncio
    async def test_repurchase_survives_failed_cancel_of_replaced(self, db, gateway, account, pro_plan):
        await _purchase(db, gateway, account, pro_plan)
        gateway.fail_cancel = True
        profile = await _purchase(db, gateway, account, pro_plan)

        assert profile.stripe_subscription_id == "sub_3"
        assert profile.subscription_is_active is True

    @pytest.mark.asyncio
    async def test_purchase_after_cancel_does_not_cancel_again(self, db, gateway, account, pro_plan):
        await _purchase(db, gateway, account, pro_plan)
        await SubscriptionService(db, gateway).cancel(account.id)
        await _purchase(db, gateway, account, pro_plan)

        assert gateway.called("cancel_subscription") == [("sub_2", False)]

    @pytest.mark.asyncio
    async def test_inactive_plan_is_unavailable(self, db, gateway, account, pro_plan):
        pro_plan.is_active = False
        await db.commit()
        with pytest.raises(PlanUnavailableException):
            await _purchase(db, gateway, account, pro_plan)
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_plan_without_price_is_unsupported(self, db, gateway, account):
        plan = SubscriptionPlan(plan_name="Free", plan_type="monthly", price=0, duration=30, simulations_unlimited=True)
        db.add(plan)
        await db.commit()
        with pytest.raises(UnsupportedPlanException):
            await _purchase(db, gateway, account, plan)
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_unknown_plan_is_not_found(self, db, gateway, account):
        with pytest.raises(NotFoundException):
            await SubscriptionService(db, gateway).purchase(account.id, uuid.uuid4(), "pm_card")
        assert gateway.calls == []


class TestState:
    @pytest.mark.asyncio
    async def test_no_profile_returns_defaults(self, db, gateway, account):
        state = await SubscriptionService(db, gateway).get_subscription_state(account.id)
        assert state["is_active"] is False
        assert state["plan_id"] is None
        assert state["plan_name"] == ""
        assert state["expires_at"] is None


class TestReconcile:
    @pytest.mark.asyncio
    async def test_subscription_updated_is_idempotent(self, db, gateway, account, pro_plan):
        await _purchase(db, gateway, account, pro_plan)
        period_end = int((utcnow() + timedelta(days=60)).timestamp())
        event = _event(
            "customer.subscription.updated",
            {"id": "sub_2", "status": "active", "current_period_end": period_end, "cancel_at_period_end": False},
        )
        service = SubscriptionService(db, gateway)

        first = await service.reconcile(event)
        first_state = dict(first.subscription)
        second = await service.reconcile(event)

        assert second.subscription == first_state
        assert int(ensure_utc(second.subscription_expires_at).timestamp()) == period_end
        assert second.subscription_is_active is True

    @pytest.mark.asyncio
    async def test_cancel_at_period_end_marks_inactive(self, db, gateway, account, pro_plan):
        await _purchase(db, gateway, account, pro_plan)
        event = _event(
            "customer.subscription.updated",
            {"id": "sub_2", "status": "active", "cancel_at_period_end": True},
        )
        profile = await SubscriptionService(db, gateway).reconcile(event)
        assert profile.subscription_is_active is False

    @pytest.mark.asyncio
    async def test_deleted_subscription_marks_inactive(self, db, gateway, account, pro_plan):
        await _purchase(db, gateway, account, pro_plan)
        event = _event("customer.subscription.deleted", {"id": "sub_2", "status": "canceled"})
        profile = await SubscriptionService(db, gateway).reconcile(event)
        assert profile.subscription_is_active is False

    @pytest.mark.asyncio
    async def test_deletion_after_cancel_keeps_expiry(self, db, gateway, account, pro_plan):
        await _purchase(db, gateway, account, pro_plan)
        service = SubscriptionService(db, gateway)
        cancelled = await service.cancel(account.id)
        cancelled_at = ensure_utc(cancelled.subscription_expires_at)

        period_end = int((utcnow() + timedelta(days=30)).timestamp())
        event = _event(
            "customer.subscription.deleted",
            {"id": "sub_2", "status": "canceled", "current_period_end": period_end},
        )
        profile = await service.reconcile(event)

        assert ensure_utc(profile.subscription_expires_at) == cancelled_at
        assert profile.subscription_is_active is False
        assert profile.subscription_plan_name == "Pro"

    @pytest.mark.asyncio
    async def test_trialing_subscription_stays_active(self, db, gateway, account, pro_plan):
        await _purchase(db, gateway, account, pro_plan)
        trial_end = int((utcnow() + timedelta(days=45)).timestamp())
        event = _event(
            "customer.subscription.updated",
            {"id": "sub_2", "status": "trialing", "current_period_end": trial_end},
        )
        profile = await SubscriptionService(db, gateway).reconcile(event)

        assert int(ensure_utc(profile.subscription_expires_at).timestamp()) == trial_end
        assert profile.subscription_is_active is True

    @pytest.mark.asyncio
    async def test_past_due_does_not_move_expiry(self, db, gateway, account, pro_plan):
        profile = await _purchase(db, gateway, account, pro_plan)
        before = ensure_utc(profile.subscription_expires_at)
        later = int((utcnow() + timedelta(days=90)).timestamp())
        event = _event(
            "customer.subscription.updated",
            {"id": "sub_2", "status": "past_due", "current_period_end": later},
        )
        profile = await SubscriptionService(db, gateway).reconcile(event)

        assert ensure_utc(profile.subscription_expires_at) == before
        assert profile.subscription_is_active is False

    @pytest.mark.asyncio
    async def test_invoice_payment_refreshes_from_gateway(self, db, gateway, account, pro_plan):
        await _purchase(db, gateway, account, pro_plan)
        renewed_end = (utcnow() + timedelta(days=61)).replace(microsecond=0)
        gateway.subscriptions["sub_2"] = GatewaySubscription(
            id="sub_2",
            status="active",
            current_period_start=renewed_end - timedelta(days=30),
            current_period_end=renewed_end,
        )

        profile = await SubscriptionService(db, gateway).reconcile(
            _event("invoice.payment_succeeded", {"id": "in_1", "subscription": "sub_2"})
        )

        assert gateway.called("retrieve_subscription") == ["sub_2"]
        assert ensure_utc(profile.subscription_expires_at) == renewed_end
        assert profile.subscription_is_active is True

    @pytest.mark.asyncio
    async def test_verified_stripe_event_reconciles(self, db, gateway, account, pro_plan):
        await _purchase(db, gateway, account, pro_plan)
        period_end = int((utcnow() + timedelta(days=60)).timestamp())
        payload = json.dumps(
            {
                "id": "evt_1",
                "object": "event",
                "type": "customer.subscription.updated",
                "data": {
                    "object": {
                        "id": "sub_2",
                        "object": "subscription",
                        "status": "active",
                        "cancel_at_period_end": False,
                        "items": {"object": "list", "data": [{"object": "subscription_item", "current_period_end": period_end}]},
                    }
                },
            }
        )
        stripe_gateway = StripeGateway(api_key="sk_test_123", webhook_secret="whsec_test")
        event = stripe_gateway.construct_event(payload.encode(), _signed(payload, "whsec_test"))

        profile = await SubscriptionService(db, gateway).reconcile(event)

        assert int(ensure_utc(profile.subscription_expires_at).timestamp()) == period_end
        assert profile.subscription_is_active is True

    @pytest.mark.asyncio
    async def test_unmatched_subscription_is_ignored(self, db, gateway):
        result = await SubscriptionService(db, gateway).reconcile(
            _event("customer.subscription.updated", {"id": "sub_unknown", "status": "active"})
        )
        assert result is None

    @pytest.mark.asyncio
    async def test_unhandled_event_type_is_ignored(self, db, gateway):
        result = await SubscriptionService(db, gateway).reconcile(_event("charge.refunded", {"id": "ch_1"}))
        assert result is None


class TestExtend:
    @pytest.mark.asyncio
    async def test_extend_adds_days_to_current_expiry(self, db, gateway, account, pro_plan):
        profile = await _purchase(db, gateway, account, pro_plan)
        before = ensure_utc(profile.subscription_expires_at)

        profile = await SubscriptionService(db, gateway).extend(account.id, 10)

        assert ensure_utc(profile.subscription_expires_at) == before + timedelta(days=10)
        assert gateway.called("extend_trial")[0][0] == "sub_2"

    @pytest.mark.asyncio
    async def test_extend_counts_from_now_when_lapsed(self, db, gateway, account, pro_plan):
        profile = await _purchase(db, gateway, account, pro_plan)
        profile.subscription_expires_at = utcnow() - timedelta(days=5)
        await db.commit()

        start = utcnow()
        profile = await SubscriptionService(db, gateway).extend(account.id, 10)

        new_expiry = ensure_utc(profile.subscription_expires_at)
        assert start + timedelta(days=10) <= new_expiry <= utcnow() + timedelta(days=10)

    @pytest.mark.asyncio
    async def test_extend_survives_gateway_failure(self, db, gateway, account, pro_plan):
        profile = await _purchase(db, gateway, account, pro_plan)
        before = ensure_utc(profile.subscription_expires_at)
        gateway.fail_extend = True

        profile = await SubscriptionService(db, gateway).extend(account.id, 3)
        assert ensure_utc(profile.subscription_expires_at) == before + timedelta(days=3)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("extra_days", [0, -3, "5", 2.5, True])
    async def test_extend_rejects_bad_days(self, db, gateway, account, pro_plan, extra_days):
        await _purchase(db, gateway, account, pro_plan)
        with pytest.raises(ValidationException):
            await SubscriptionService(db, gateway).extend(account.id, extra_days)

    @pytest.mark.asyncio
    async def test_extend_inactive_subscription(self, db, gateway, account):
        await ProfileRepository.get_or_create(db, account.id, account.email)
        await db.commit()
        with pytest.raises(SubscriptionInactiveException):
            await SubscriptionService(db, gateway).extend(account.id, 5)

    @pytest.mark.asyncio
    async def test_extend_without_profile(self, db, gateway, account):
        with pytest.raises(NotFoundException):
            await SubscriptionService(db, gateway).extend(account.id, 5)


class TestDowngradeAndCancel:
    @pytest.mark.asyncio
    async def test_downgrade_clears_state_even_if_gateway_fails(self, db, gateway, account, pro_plan):
        await _purchase(db, gateway, account, pro_plan)
        gateway.fail_cancel = True

        profile = await SubscriptionService(db, gateway).downgrade(account.id)

        assert profile.subscription == {
            "plan_id": None,
            "plan_name": "",
            "started_at": None,
            "expires_at": None,
            "stripe_customer_id": "",
            "stripe_subscription_id": "",
            "stripe_price_id": "",
            "is_active": False,
        }
        assert profile.plan_name == ""
        assert gateway.called("cancel_subscription") == [("sub_2", True)]

    @pytest.mark.asyncio
    async def test_cancel_keeps_plan_history(self, db, gateway, account, pro_plan):
        await _purchase(db, gateway, account, pro_plan)

        profile = await SubscriptionService(db, gateway).cancel(account.id)

        assert profile.subscription_is_active is False
        assert profile.subscription_plan_id == pro_plan.id
        assert profile.stripe_subscription_id == "sub_2"
        assert ensure_utc(profile.subscription_expires_at) <= utcnow()
        assert gateway.called("cancel_subscription") == [("sub_2", False)]

    @pytest.mark.asyncio
    async def test_cancel_inactive_leaves_profile_untouched(self, db, gateway, account, pro_plan):
        service = SubscriptionService(db, gateway)
        await _purchase(db, gateway, account, pro_plan)
        profile = await service.cancel(account.id)
        expires = profile.subscription_expires_at

        with pytest.raises(SubscriptionInactiveException):
            await service.cancel(account.id)
        assert profile.subscription_expires_at == expires
        assert len(gateway.called("cancel_subscription")) == 1
