"""Payment routes: intents, client confirmation, and gateway webhooks.

Invariants:
    - /confirm and /webhook apply a payment reference at most once
    - /confirm rejects payments the gateway has not completed (400)
    - /webhook requires a valid signature and acknowledges ignored events
    - Failed-payment events are stored but never move campaign totals
    - A failed attempt never blocks a later success of the same payment intent
    - The contributor in the payment metadata wins over the caller's contributor_id
"""

import json
from decimal import Decimal
from uuid import uuid4

from fundflow.core.domain_types import DonationStatus

# accepted by FakePaymentGateway
VALID_SIGNATURE = "t=1,v1=valid"


async def _totals(client, campaign_id):
    res = await client.get(f"/api/v1/campaigns/{campaign_id}/totals")
    data = res.json()
    return Decimal(data["raised_amount"]), data["donation_count"]


def _event(
    event_type, campaign_id, reference="pi_hook", contributor_id="", event_id="evt_1",
):
    return json.dumps({
        "id": event_id,
        "type": event_type,
        "data": {"object": {
            "id": reference,
            "status": "succeeded",
            "currency": "usd",
            "metadata": {
                "campaignId": str(campaign_id),
                "campaignTitle": "Clean Water",
                "donationAmount": "25.00",
                "tipAmount": "5.00",
                "donorName": "Ada",
                "donorEmail": "ada@example.com",
                "isAnonymous": "false",
                "donorId": contributor_id,
            },
        }},
    })


async def _post_webhook(client, payload, signature=VALID_SIGNATURE):
    headers = {"content-type": "application/json"}
    if signature:
        headers["stripe-signature"] = signature
    return await client.post("/api/v1/payments/webhook", content=payload, headers=headers)


# ─── Intents ────────────────────────────────────────────────────

async def test_create_intent(client, published_campaign, fake_gateway):
    res = await client.post("/api/v1/payments/intents", json={
        "campaign_id": str(published_campaign.id),
        "amount": "25.00",
        "tip_amount": "5.00",
        "display_name": "Ada",
        "contact_address": "ada@example.com",
    })

    assert res.status_code == 200
    assert res.json()["payment_intent_id"] == "pi_fake_1"
    assert Decimal(res.json()["total_amount"]) == Decimal("30")
    assert fake_gateway.created[0]["campaign_title"] == "Clean Water"
    assert fake_gateway.created[0]["currency"] == "USD"


async def test_create_intent_unknown_campaign(client):
    res = await client.post("/api/v1/payments/intents", json={
        "campaign_id": str(uuid4()),
        "amount": "25.00",
        "display_name": "Ada",
        "contact_address": "ada@example.com",
    })
    assert res.status_code == 404


# ─── Confirm ────────────────────────────────────────────────────

async def test_confirm_applies_once(client, published_campaign, fake_gateway):
    fake_gateway.add_payment("pi_r1", published_campaign.id)

    first = await client.post("/api/v1/payments/confirm", json={"payment_reference": "pi_r1"})
    second = await client.post("/api/v1/payments/confirm", json={"payment_reference": "pi_r1"})

    assert first.status_code == 200
    assert first.json()["already_applied"] is False
    assert second.status_code == 200
    assert second.json()["already_applied"] is True
    assert second.json()["donation"]["id"] == first.json()["donation"]["id"]
    assert second.json()["notifications"] == []
    assert await _totals(client, published_campaign.id) == (Decimal("25"), 1)


async def test_confirm_rejects_pending_payment(client, published_campaign, fake_gateway):
    fake_gateway.add_payment("pi_p", published_campaign.id, status=DonationStatus.PENDING)

    res = await client.post("/api/v1/payments/confirm", json={"payment_reference": "pi_p"})

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "PAYMENT_NOT_COMPLETED"
    assert await _totals(client, published_campaign.id) == (Decimal("0"), 0)


async def test_confirm_unknown_payment_returns_404(client):
    res = await client.post("/api/v1/payments/confirm", json={"payment_reference": "pi_nope"})
    assert res.status_code == 404


async def test_confirm_attaches_caller_contributor(client, published_campaign, fake_gateway):
    fake_gateway.add_payment("pi_c", published_campaign.id)
    contributor = str(uuid4())

    res = await client.post("/api/v1/payments/confirm", json={
        "payment_reference": "pi_c", "contributor_id": contributor,
    })

    assert res.json()["donation"]["contributor_id"] == contributor
    kinds = {n["kind"]: n["status"] for n in res.json()["notifications"]}
    assert kinds == {"activity": "succeeded", "coupon": "succeeded"}


async def test_confirm_keeps_metadata_contributor(client, published_campaign, fake_gateway):
    donor = uuid4()
    fake_gateway.add_payment("pi_m", published_campaign.id, contributor_id=donor)

    res = await client.post("/api/v1/payments/confirm", json={
        "payment_reference": "pi_m", "contributor_id": str(uuid4()),
    })

    assert res.status_code == 200
    assert res.json()["donation"]["contributor_id"] == str(donor)


# ─── Webhook ────────────────────────────────────────────────────

async def test_webhook_requires_signature(client, published_campaign):
    res = await _post_webhook(
        client, _event("payment_intent.succeeded", published_campaign.id), signature=None,
    )
    assert res.status_code == 400


async def test_webhook_rejects_bad_signature(client, published_campaign):
    res = await _post_webhook(
        client, _event("payment_intent.succeeded", published_campaign.id), signature="bad",
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "PAYMENT_GATEWAY_ERROR"
    assert await _totals(client, published_campaign.id) == (Decimal("0"), 0)


async def test_webhook_ignores_other_events(client, published_campaign):
    res = await _post_webhook(client, _event("charge.refunded", published_campaign.id))
    assert res.status_code == 200
    assert res.json() == {"received": True}


async def test_webhook_redelivery_applies_once(client, published_campaign):
    payload = _event("payment_intent.succeeded", published_campaign.id)

    first = await _post_webhook(client, payload)
    second = await _post_webhook(client, payload)

    assert first.json()["already_applied"] is False
    assert second.json()["already_applied"] is True
    assert second.json()["donation_id"] == first.json()["donation_id"]
    assert await _totals(client, published_campaign.id) == (Decimal("25"), 1)


async def test_webhook_then_confirm_is_idempotent(client, published_campaign, fake_gateway):
    fake_gateway.add_payment("pi_both", published_campaign.id)
    await _post_webhook(
        client, _event("payment_intent.succeeded", published_campaign.id, reference="pi_both"),
    )

    res = await client.post("/api/v1/payments/confirm", json={"payment_reference": "pi_both"})

    assert res.json()["already_applied"] is True
    assert await _totals(client, published_campaign.id) == (Decimal("25"), 1)


async def test_webhook_failed_payment_keeps_totals(client, published_campaign):
    res = await _post_webhook(
        client, _event("payment_intent.payment_failed", published_campaign.id),
    )

    donation = await client.get(f"/api/v1/donations/{res.json()['donation_id']}")
    assert donation.json()["status"] == "failed"
    assert await _totals(client, published_campaign.id) == (Decimal("0"), 0)


async def test_webhook_success_after_failed_attempt(client, published_campaign):
    failed = await _post_webhook(client, _event(
        "payment_intent.payment_failed", published_campaign.id,
        reference="pi_retry", event_id="evt_fail",
    ))
    succeeded = await _post_webhook(client, _event(
        "payment_intent.succeeded", published_campaign.id,
        reference="pi_retry", event_id="evt_ok",
    ))

    assert succeeded.status_code == 200
    assert succeeded.json()["already_applied"] is False
    assert succeeded.json()["donation_id"] != failed.json()["donation_id"]
    assert await _totals(client, published_campaign.id) == (Decimal("25"), 1)


async def test_webhook_failed_redelivery_applies_once(client, published_campaign):
    payload = _event("payment_intent.payment_failed", published_campaign.id)

    first = await _post_webhook(client, payload)
    second = await _post_webhook(client, payload)

    assert second.json()["already_applied"] is True
    assert second.json()["donation_id"] == first.json()["donation_id"]
