"""Stripe gateway adapter: minor units, metadata round trip, webhook verification.

Design Decisions:
    - The StripeClient is replaced by a tiny fake exposing payment_intents.*_async;
      webhook signatures are computed with the real Stripe scheme (HMAC-SHA256)
"""

import hashlib
import hmac
import json
import time
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
import stripe

from fundflow.core.domain_types import DonationStatus
from fundflow.core.errors import (
    DonationValidationError, PaymentGatewayError, ResourceNotFoundError,
)
from fundflow.infrastructure.payment_gateway import StripePaymentGateway, to_minor_units

WEBHOOK_SECRET = "whsec_test"


class FakePaymentIntents:
    def __init__(self):
        self.created = []
        self.stored = {}
        self.error: Exception | None = None

    async def create_async(self, params):
        if self.error:
            raise self.error
        self.created.append(params)
        intent = {
            "id": "pi_new", "client_secret": "pi_new_secret", "status": "requires_payment_method",
            "currency": params["currency"], "metadata": params["metadata"],
        }
        self.stored["pi_new"] = intent
        return intent

    async def retrieve_async(self, reference):
        if reference not in self.stored:
            raise stripe.InvalidRequestError("No such payment_intent", "id")
        return self.stored[reference]


@pytest.fixture
def intents():
    return FakePaymentIntents()


@pytest.fixture
def gateway(intents):
    return StripePaymentGateway(
        "sk_test", WEBHOOK_SECRET, client=SimpleNamespace(payment_intents=intents),
    )


def _sign(payload: str, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    digest = hmac.new(
        secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256,
    ).hexdigest()
    return f"t={timestamp},v1={digest}"


async def _create(gateway, campaign_id, base="25.00", tip="5.00"):
    return await gateway.create_payment_intent(
        campaign_id=campaign_id,
        campaign_title="Clean Water",
        base_amount=Decimal(base),
        tip_amount=Decimal(tip),
        currency="USD",
        display_name="Ada",
        contact_address="ada@example.com",
        is_anonymous=False,
        contributor_id=None,
    )


def test_minor_units_round_half_up():
    assert to_minor_units(Decimal("30.00")) == 3000
    assert to_minor_units(Decimal("10.005")) == 1001


async def test_create_intent_charges_total_in_minor_units(gateway, intents):
    campaign_id = uuid4()
    result = await _create(gateway, campaign_id)

    params = intents.created[0]
    assert params["amount"] == 3000
    assert params["currency"] == "usd"
    assert params["metadata"]["campaignId"] == str(campaign_id)
    assert params["metadata"]["donationAmount"] == "25.00"
    assert result["payment_intent_id"] == "pi_new"
    assert result["total_amount"] == Decimal("30.00")


async def test_create_intent_below_minimum(gateway, intents):
    with pytest.raises(DonationValidationError):
        await _create(gateway, uuid4(), base="0.25", tip="0")
    assert intents.created == []


async def test_create_intent_stripe_failure(gateway, intents):
    intents.error = stripe.APIConnectionError("network down")
    with pytest.raises(PaymentGatewayError) as exc_info:
        await _create(gateway, uuid4())
    assert exc_info.value.http_status == 502


async def test_retrieve_reads_back_created_metadata(gateway, intents):
    campaign_id = uuid4()
    await _create(gateway, campaign_id)
    intents.stored["pi_new"]["status"] = "succeeded"

    confirmation = await gateway.retrieve_confirmation("pi_new")

    assert confirmation.campaign_id == campaign_id
    assert confirmation.status is DonationStatus.COMPLETED
    assert confirmation.base_amount == Decimal("25.00")
    assert confirmation.tip_amount == Decimal("5.00")


async def test_retrieve_unknown_payment(gateway):
    with pytest.raises(ResourceNotFoundError):
        await gateway.retrieve_confirmation("pi_missing")


def test_unconfigured_gateway_rejects_calls():
    gateway = StripePaymentGateway("")
    with pytest.raises(PaymentGatewayError) as exc_info:
        gateway._require_client()
    assert exc_info.value.http_status == 500


def test_parse_webhook_with_valid_signature(gateway):
    campaign_id = uuid4()
    payload = json.dumps({
        "id": "evt_1", "object": "event", "type": "payment_intent.succeeded",
        "data": {"object": {
            "id": "pi_hook", "object": "payment_intent", "currency": "usd",
            "metadata": {"campaignId": str(campaign_id), "donationAmount": "12.50"},
        }},
    })

    confirmation = gateway.parse_webhook(payload.encode(), _sign(payload))

    assert confirmation.external_reference == "pi_hook"
    assert confirmation.campaign_id == campaign_id
    assert confirmation.status is DonationStatus.COMPLETED


def test_parse_webhook_ignored_event(gateway):
    payload = json.dumps({"id": "evt_2", "object": "event", "type": "customer.created", "data": {}})
    assert gateway.parse_webhook(payload.encode(), _sign(payload)) is None


def test_parse_webhook_bad_signature(gateway):
    payload = json.dumps({"id": "evt_3", "object": "event", "type": "payment_intent.succeeded"})
    with pytest.raises(PaymentGatewayError) as exc_info:
        gateway.parse_webhook(payload.encode(), _sign(payload, secret="whsec_other"))
    assert exc_info.value.http_status == 400


def test_parse_webhook_without_secret():
    gateway = StripePaymentGateway("sk_test", "", client=SimpleNamespace())
    with pytest.raises(PaymentGatewayError) as exc_info:
        gateway.parse_webhook(b"{}", "t=1,v1=x")
    assert exc_info.value.http_status == 500
