"""Stripe Payment Gateway: injected client for charge intents, payment lookup and webhooks.

Invariants:
    - One instance per application, built from settings and injected through a FastAPI
      dependency; never a module-level SDK singleton
    - Amounts sent to Stripe are integer minor units; minimum charge is 50 minor units
    - Payment metadata carries everything apply_confirmed_payment needs (core/payment_confirmation.py)
    - Signature failures → PaymentGatewayError (400); unknown payment → ResourceNotFoundError;
      every other Stripe failure → PaymentGatewayError (502)

Design Decisions:
    - StripeClient with the HTTPX transport: async calls without a thread pool
    - Webhook bodies are parsed with json after signature verification so the core
      mapping receives plain dicts
"""

import json
import logging
from decimal import Decimal, ROUND_HALF_UP

import stripe

from fundflow.core.domain_types import CampaignId, ContributorId
from fundflow.core.donation_intent import PaymentConfirmation
from fundflow.core.errors import (
    DonationValidationError, PaymentGatewayError, ResourceNotFoundError, ErrorContext,
)
from fundflow.core.payment_confirmation import (
    METADATA_ANONYMOUS, METADATA_BASE_AMOUNT, METADATA_CAMPAIGN_ID,
    METADATA_CAMPAIGN_TITLE, METADATA_CONTACT_ADDRESS, METADATA_CONTRIBUTOR_ID,
    METADATA_DISPLAY_NAME, METADATA_TIP_AMOUNT,
    confirmation_from_payment_intent, confirmation_from_webhook_event,
)

logger = logging.getLogger(__name__)

MINIMUM_CHARGE_MINOR_UNITS = 50


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _as_dict(obj) -> dict:
    if obj is None:
        return {}
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class StripePaymentGateway:
    """Wraps StripeClient with error mapping and payload normalization."""

    def __init__(
        self,
        secret_key: str,
        webhook_secret: str = "",
        client: stripe.StripeClient | None = None,
    ):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.client = client
        if self.client is None and secret_key:
            self.client = stripe.StripeClient(
                secret_key, http_client=stripe.HTTPXClient(),
            )

    def _require_client(self) -> stripe.StripeClient:
        if self.client is None:
            raise PaymentGatewayError(
                "Stripe is not configured", "configuration", http_status=500,
            )
        return self.client

    async def create_payment_intent(
        self,
        *,
        campaign_id: CampaignId,
        campaign_title: str,
        base_amount: Decimal,
        tip_amount: Decimal,
        currency: str,
        display_name: str,
        contact_address: str,
        is_anonymous: bool,
        contributor_id: ContributorId | None,
    ) -> dict:
        """Create a payment intent whose metadata lets the webhook rebuild the donation."""
        client = self._require_client()
        total_amount = base_amount + tip_amount
        amount_minor = to_minor_units(total_amount)
        if amount_minor < MINIMUM_CHARGE_MINOR_UNITS:
            raise DonationValidationError(
                "Minimum donation amount is 0.50", "base_amount",
            )

        try:
            intent = await client.payment_intents.create_async(params={
                "amount": amount_minor,
                "currency": currency.lower(),
                "automatic_payment_methods": {"enabled": True},
                "metadata": {
                    METADATA_CAMPAIGN_ID: str(campaign_id),
                    METADATA_CAMPAIGN_TITLE: campaign_title,
                    METADATA_CONTACT_ADDRESS: contact_address,
                    METADATA_DISPLAY_NAME: display_name,
                    METADATA_ANONYMOUS: str(is_anonymous).lower(),
                    METADATA_CONTRIBUTOR_ID: str(contributor_id) if contributor_id else "",
                    METADATA_BASE_AMOUNT: str(base_amount),
                    METADATA_TIP_AMOUNT: str(tip_amount),
                },
                "receipt_email": contact_address,
                "description": f'Donation to "{campaign_title}"',
            })
        except stripe.StripeError as e:
            logger.error(
                f"Stripe payment intent creation failed: {e}",
                extra={"campaign_id": campaign_id},
            )
            raise PaymentGatewayError(
                getattr(e, "user_message", None) or "Failed to create payment intent",
                "create_intent",
                context=ErrorContext(campaign_id=str(campaign_id)),
            )

        return {
            "client_secret": intent["client_secret"],
            "payment_intent_id": intent["id"],
            "amount": base_amount,
            "tip_amount": tip_amount,
            "total_amount": total_amount,
        }

    async def retrieve_confirmation(self, external_reference: str) -> PaymentConfirmation:
        """Look up a payment intent by id and normalize it."""
        client = self._require_client()
        try:
            intent = await client.payment_intents.retrieve_async(external_reference)
        except stripe.InvalidRequestError:
            raise ResourceNotFoundError(
                "Payment", external_reference,
                ErrorContext(external_reference=external_reference),
            )
        except stripe.StripeError as e:
            logger.error(
                f"Stripe payment lookup failed: {e}",
                extra={"external_reference": external_reference},
            )
            raise PaymentGatewayError(
                "Failed to retrieve payment", "retrieve_intent",
                context=ErrorContext(external_reference=external_reference),
            )

        payload = _as_dict(intent)
        payload["metadata"] = _as_dict(intent["metadata"])
        return confirmation_from_payment_intent(payload)

    def parse_webhook(self, payload: bytes, signature: str) -> PaymentConfirmation | None:
        """Verify the webhook signature and normalize the event. None = ignored event."""
        if not self.webhook_secret:
            raise PaymentGatewayError(
                "Stripe webhook secret is not configured", "configuration",
                http_status=500,
            )
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise PaymentGatewayError(
                f"Webhook signature verification failed: {e}", "signature",
                http_status=400,
            )
        except ValueError:
            raise PaymentGatewayError(
                "Webhook payload is not valid JSON", "payload", http_status=400,
            )
        return confirmation_from_webhook_event(json.loads(payload))
