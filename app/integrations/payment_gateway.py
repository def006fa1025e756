"""Stripe payment gateway adapter.

Wraps the stripe SDK behind a small async interface used by the subscription
lifecycle. Every Stripe error is converted to `ExternalServiceException`
carrying Stripe's user-facing message. The API key is passed per call, so
several gateways (or a test fake) can coexist in one process.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Protocol

import stripe

from app.core.config import settings
from app.utils.datetimes import from_timestamp
from app.utils.exceptions import ExternalServiceException, WebhookSignatureException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewaySubscription:
    """Gateway-side recurring subscription, reduced to what the lifecycle needs."""

    id: str
    status: str
    current_period_start: Optional[datetime]
    current_period_end: Optional[datetime]
    cancel_at_period_end: bool = False


def as_plain_dict(obj: Any) -> dict[str, Any]:
    """Convert a Stripe resource to nested plain dicts; Stripe objects are not dicts."""
    if isinstance(obj, stripe.StripeObject):
        return obj.to_dict()
    return dict(obj)


def subscription_from_payload(obj: Mapping[str, Any]) -> GatewaySubscription:
    """Normalise a Stripe subscription object (or webhook payload) to a GatewaySubscription.

    Newer Stripe API versions moved the billing period onto subscription items,
    so fall back to the first item when the top-level fields are absent.
    """
    period_start = obj.get("current_period_start")
    period_end = obj.get("current_period_end")
    if period_start is None or period_end is None:
        items = (obj.get("items") or {}).get("data") or []
        if items:
            period_start = period_start if period_start is not None else items[0].get("current_period_start")
            period_end = period_end if period_end is not None else items[0].get("current_period_end")

    return GatewaySubscription(
        id=obj.get("id") or "",
        status=obj.get("status") or "",
        current_period_start=from_timestamp(period_start),
        current_period_end=from_timestamp(period_end),
        cancel_at_period_end=bool(obj.get("cancel_at_period_end")),
    )


def invoice_subscription_id(invoice: Mapping[str, Any]) -> str:
    """Read the subscription id an invoice bills for, across Stripe API versions."""
    subscription = invoice.get("subscription")
    if isinstance(subscription, Mapping):
        return subscription.get("id") or ""
    if subscription:
        return subscription
    parent = invoice.get("parent") or {}
    details = parent.get("subscription_details") or {}
    return details.get("subscription") or ""


class PaymentGateway(Protocol):
    async def create_customer(
        self, email: str, metadata: dict[str, str], name: Optional[str] = None
    ) -> str: ...

    async def attach_payment_method(self, payment_method_id: str, customer_id: str) -> None: ...

    async def set_default_payment_method(self, customer_id: str, payment_method_id: str) -> None: ...

    async def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        payment_method_id: Optional[str],
        metadata: dict[str, str],
    ) -> GatewaySubscription: ...

    async def retrieve_subscription(self, subscription_id: str) -> GatewaySubscription: ...

    async def extend_trial(self, subscription_id: str, trial_end: datetime) -> GatewaySubscription: ...

    async def cancel_subscription(self, subscription_id: str, prorate: bool = True) -> None: ...

    def construct_event(self, payload: bytes, signature: str) -> dict[str, Any]: ...


class StripeGateway:
    """Payment gateway backed by the Stripe API."""

    def __init__(self, api_key: str, webhook_secret: str, webhook_tolerance: int = 300) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.webhook_tolerance = webhook_tolerance

    @classmethod
    def from_settings(cls) -> "StripeGateway":
        return cls(
            api_key=settings.STRIPE_SECRET_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            webhook_tolerance=settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
        )

    def _ensure_configured(self) -> None:
        if not self.api_key:
            raise ExternalServiceException("Payment provider is not configured")

    @staticmethod
    def _wrap(exc: "stripe.StripeError") -> ExternalServiceException:
        message = exc.user_message or str(exc) or "Payment provider request failed"
        return ExternalServiceException(message, details={"stripe_code": exc.code} if exc.code else None)

    async def create_customer(
        self, email: str, metadata: dict[str, str], name: Optional[str] = None
    ) -> str:
        self._ensure_configured()
        try:
            customer = await stripe.Customer.create_async(
                email=email or None, name=name or None, metadata=metadata, api_key=self.api_key
            )
        except stripe.StripeError as exc:
            raise self._wrap(exc) from exc
        logger.info("Stripe customer created", extra={"stripe.customer": customer.id})
        return customer.id

    async def attach_payment_method(self, payment_method_id: str, customer_id: str) -> None:
        self._ensure_configured()
        try:
            await stripe.PaymentMethod.attach_async(
                payment_method_id, customer=customer_id, api_key=self.api_key
            )
        except stripe.StripeError as exc:
            message = str(exc).lower()
            if "already" in message and "attached" in message:
                logger.info("Payment method already attached", extra={"stripe.customer": customer_id})
                return
            raise self._wrap(exc) from exc

    async def set_default_payment_method(self, customer_id: str, payment_method_id: str) -> None:
        self._ensure_configured()
        try:
            await stripe.Customer.modify_async(
                customer_id,
                invoice_settings={"default_payment_method": payment_method_id},
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            raise self._wrap(exc) from exc

    async def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        payment_method_id: Optional[str],
        metadata: dict[str, str],
    ) -> GatewaySubscription:
        self._ensure_configured()
        params: dict[str, Any] = {
            "customer": customer_id,
            "items": [{"price": price_id}],
            "expand": ["latest_invoice.payment_intent"],
            "metadata": metadata,
        }
        if payment_method_id:
            params["default_payment_method"] = payment_method_id
        try:
            subscription = await stripe.Subscription.create_async(api_key=self.api_key, **params)
        except stripe.StripeError as exc:
            raise self._wrap(exc) from exc
        return subscription_from_payload(as_plain_dict(subscription))

    async def retrieve_subscription(self, subscription_id: str) -> GatewaySubscription:
        self._ensure_configured()
        try:
            subscription = await stripe.Subscription.retrieve_async(subscription_id, api_key=self.api_key)
        except stripe.StripeError as exc:
            raise self._wrap(exc) from exc
        return subscription_from_payload(as_plain_dict(subscription))

    async def extend_trial(self, subscription_id: str, trial_end: datetime) -> GatewaySubscription:
        """Push the next invoice out to `trial_end` without proration."""
        self._ensure_configured()
        try:
            subscription = await stripe.Subscription.modify_async(
                subscription_id,
                trial_end=int(trial_end.timestamp()),
                proration_behavior="none",
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            raise self._wrap(exc) from exc
        return subscription_from_payload(as_plain_dict(subscription))

    async def cancel_subscription(self, subscription_id: str, prorate: bool = True) -> None:
        """Cancel a subscription immediately."""
        self._ensure_configured()
        try:
            await stripe.Subscription.cancel_async(
                subscription_id, prorate=prorate, invoice_now=False, api_key=self.api_key
            )
        except stripe.StripeError as exc:
            raise self._wrap(exc) from exc

    def construct_event(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Verify a webhook signature against the exact raw request body."""
        if not self.webhook_secret:
            raise ExternalServiceException("Webhook secret not configured")
        if not signature:
            raise WebhookSignatureException("Missing stripe-signature header")
        try:
            event = stripe.Webhook.construct_event(
                payload, signature, self.webhook_secret, tolerance=self.webhook_tolerance
            )
        except stripe.SignatureVerificationError as exc:
            logger.warning("Invalid webhook signature: %s", exc)
            raise WebhookSignatureException() from exc
        except ValueError as exc:
            logger.warning("Invalid webhook payload: %s", exc)
            raise WebhookSignatureException("Invalid webhook payload") from exc
        return as_plain_dict(event)
