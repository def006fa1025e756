"""Shared fixtures: in-memory database, fake collaborators and an HTTP client."""

import json
import uuid
from datetime import datetime, timedelta
from typing import Any, AsyncGenerator, Mapping, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.deps import get_gateway, get_notifier
from app.core.db import get_db
from app.core.security import create_access_token, hash_password
from app.integrations.payment_gateway import GatewaySubscription
from app.main import app
from app.models import Account, Administrator, AdminRole, Base, SubscriptionPlan
from app.utils.datetimes import utcnow
from app.utils.exceptions import ExternalServiceException, WebhookSignatureException


class FakeNotifier:
    """Records what would have been emailed."""

    def __init__(self) -> None:
        self.otps: list[tuple[str, str]] = []
        self.ticket_replies: list[tuple[str, str, str]] = []

    def send_otp(self, to: str, otp: str) -> None:
        self.otps.append((to, otp))

    def send_ticket_reply(self, to: str, ticket_id: str, reply: str) -> None:
        self.ticket_replies.append((to, ticket_id, reply))

    def last_otp(self, email: str) -> str:
        return [otp for to, otp in self.otps if to == email][-1]


class FakeGateway:
    """In-memory payment gateway with a 30 day billing period."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.subscriptions: dict[str, GatewaySubscription] = {}
        self.fail_cancel = False
        self.fail_extend = False
        self.period_days = 30
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_{self._counter}"

    async def create_customer(self, email: str, metadata: dict[str, str], name: Optional[str] = None) -> str:
        customer_id = self._next_id("cus")
        self.calls.append(("create_customer", {"email": email, "metadata": metadata, "name": name}))
        return customer_id

    async def attach_payment_method(self, payment_method_id: str, customer_id: str) -> None:
        self.calls.append(("attach_payment_method", (payment_method_id, customer_id)))

    async def set_default_payment_method(self, customer_id: str, payment_method_id: str) -> None:
        self.calls.append(("set_default_payment_method", (customer_id, payment_method_id)))

    async def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        payment_method_id: Optional[str],
        metadata: dict[str, str],
    ) -> GatewaySubscription:
        start = utcnow().replace(microsecond=0)
        subscription = GatewaySubscription(
            id=self._next_id("sub"),
            status="active",
            current_period_start=start,
            current_period_end=start + timedelta(days=self.period_days),
        )
        self.subscriptions[subscription.id] = subscription
        self.calls.append(("create_subscription", {"customer": customer_id, "price": price_id, "metadata": metadata}))
        return subscription

    async def retrieve_subscription(self, subscription_id: str) -> GatewaySubscription:
        self.calls.append(("retrieve_subscription", subscription_id))
        return self.subscriptions[subscription_id]

    async def extend_trial(self, subscription_id: str, trial_end: datetime) -> GatewaySubscription:
        self.calls.append(("extend_trial", (subscription_id, trial_end)))
        if self.fail_extend:
            raise ExternalServiceException("No such subscription")
        return self.subscriptions[subscription_id]

    async def cancel_subscription(self, subscription_id: str, prorate: bool = True) -> None:
        self.calls.append(("cancel_subscription", (subscription_id, prorate)))
        if self.fail_cancel:
            raise ExternalServiceException("No such subscription")
        self.subscriptions.pop(subscription_id, None)

    def construct_event(self, payload: bytes, signature: str) -> Mapping[str, Any]:
        if signature != "valid":
            raise WebhookSignatureException()
        return json.loads(payload)

    def called(self, name: str) -> list[Any]:
        return [args for call, args in self.calls if call == name]


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest_asyncio.fixture
async def account(db) -> Account:
    user = Account(name="Jane Doe", email="jane@example.com", password_hash=hash_password("secret123"), verified=True)
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def pro_plan(db) -> SubscriptionPlan:
    plan = SubscriptionPlan(
        plan_name="Pro",
        plan_type="monthly",
        price=999,
        duration=30,
        simulations_limit=100,
        stripe_price_id="price_abc",
    )
    db.add(plan)
    await db.commit()
    return plan


@pytest_asyncio.fixture
async def superadmin(db) -> Administrator:
    admin = Administrator(
        email="root@example.com",
        password_hash=hash_password("rootpass1"),
        role=AdminRole.SUPERADMIN,
    )
    db.add(admin)
    await db.commit()
    return admin


def user_headers(user: Account) -> dict[str, str]:
    token = create_access_token({"id": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


def admin_headers(admin_id: uuid.UUID, email: str = "admin@example.com", role: str = "admin") -> dict[str, str]:
    token = create_access_token({"id": str(admin_id), "email": email, "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client(session_factory, notifier, gateway) -> AsyncGenerator[AsyncClient, None]:
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_gateway] = lambda: gateway
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
