"""Service test fixtures: async DB, FastAPI test client, fake collaborators.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched so notification collaborators open test sessions
    - get_payment_gateway overridden with FakePaymentGateway (no Stripe calls)

Design Decisions:
    - SQLite in-memory: fast, no external dependency. Row locks (FOR UPDATE) are
      not rendered by SQLite, serialization is exercised through injected conflicts
    - Campaign state is always re-read through a fresh session: objects in a
      rolled-back session are expired and cannot lazy-load in async code
"""

import asyncio
import json
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from fundflow.api.dependencies import get_payment_gateway
from fundflow.core.domain_types import DonationStatus, PaymentMethod
from fundflow.core.donation_intent import PaymentConfirmation
from fundflow.core.errors import PaymentGatewayError, ResourceNotFoundError
from fundflow.core.payment_confirmation import confirmation_from_webhook_event
from fundflow.db.base import Base
from fundflow.infrastructure.database import get_db, DatabaseSessionManager
from fundflow.models.campaign import Campaign
from fundflow.services.side_effect_dispatch import SideEffectDispatcher
import fundflow.infrastructure.database as db_module
from fundflow.main import app

VALID_SIGNATURE = "t=1,v1=valid"


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


async def _seed_campaign(factory, status: str, title: str) -> Campaign:
    async with factory() as db:
        campaign = Campaign(
            title=title, status=status, currency="USD",
            goal_amount=Decimal("1000"),
        )
        db.add(campaign)
        await db.commit()
        await db.refresh(campaign)
        return campaign


@pytest.fixture
async def published_campaign(test_session_factory):
    return await _seed_campaign(test_session_factory, "published", "Clean Water")


@pytest.fixture
async def draft_campaign(test_session_factory):
    return await _seed_campaign(test_session_factory, "draft", "Not Yet Live")


@pytest.fixture
def load_campaign(test_session_factory):
    """Read a campaign's current row through a fresh session."""
    async def _load(campaign_id):
        async with test_session_factory() as db:
            return await db.get(Campaign, campaign_id)
    return _load


# ─── Fake collaborators ─────────────────────────────────────────

class RecordingActivity:
    """ActivityRecorder fake: records calls, optionally fails or stalls."""

    def __init__(self):
        self.calls = []
        self.error: Exception | None = None
        self.delay_seconds = 0.0

    async def record(self, contributor_id, campaign_id, amount, currency):
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error:
            raise self.error
        self.calls.append((contributor_id, campaign_id, amount, currency))


class RecordingCoupons:
    """CouponIssuer fake: records calls, optionally fails or stalls."""

    def __init__(self):
        self.calls = []
        self.error: Exception | None = None
        self.delay_seconds = 0.0

    async def issue(
        self, donation_id, campaign_id, contributor_id, contact_address,
        display_name, amount, currency, campaign_title,
    ):
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error:
            raise self.error
        self.calls.append({
            "donation_id": donation_id,
            "campaign_id": campaign_id,
            "amount": amount,
            "campaign_title": campaign_title,
        })
        return "FU-0000ABCD"


@pytest.fixture
def activity():
    return RecordingActivity()


@pytest.fixture
def coupons():
    return RecordingCoupons()


@pytest.fixture
def dispatcher(activity, coupons):
    return SideEffectDispatcher(activity, coupons, timeout_seconds=0.5)


class FakePaymentGateway:
    """PaymentGateway fake backed by a dict of known payments."""

    def __init__(self):
        self.payments: dict[str, PaymentConfirmation] = {}
        self.created = []

    def add_payment(
        self, reference, campaign_id, base_amount="25.00", tip_amount="5.00",
        status=DonationStatus.COMPLETED, contributor_id=None, is_anonymous=False,
    ) -> PaymentConfirmation:
        confirmation = PaymentConfirmation(
            external_reference=reference,
            campaign_id=campaign_id,
            base_amount=Decimal(base_amount),
            tip_amount=Decimal(tip_amount),
            currency="USD",
            status=status,
            display_name="Ada",
            contact_address="ada@example.com",
            method=PaymentMethod.CARD,
            is_anonymous=is_anonymous,
            contributor_id=contributor_id,
        )
        self.payments[reference] = confirmation
        return confirmation

    async def create_payment_intent(self, **kwargs) -> dict:
        self.created.append(kwargs)
        reference = f"pi_fake_{len(self.created)}"
        return {
            "client_secret": f"{reference}_secret",
            "payment_intent_id": reference,
            "amount": kwargs["base_amount"],
            "tip_amount": kwargs["tip_amount"],
            "total_amount": kwargs["base_amount"] + kwargs["tip_amount"],
        }

    async def retrieve_confirmation(self, external_reference):
        if external_reference not in self.payments:
            raise ResourceNotFoundError("Payment", external_reference)
        return self.payments[external_reference]

    def parse_webhook(self, payload, signature):
        if signature != VALID_SIGNATURE:
            raise PaymentGatewayError(
                "Webhook signature verification failed", "signature", http_status=400,
            )
        return confirmation_from_webhook_event(json.loads(payload))


@pytest.fixture
def fake_gateway():
    return FakePaymentGateway()


@pytest.fixture
async def client(test_engine, test_session_factory, fake_gateway):
    """FastAPI test client with DB and gateway dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: fake_gateway

    # Notification collaborators open sessions through db_manager directly
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
