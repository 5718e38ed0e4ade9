"""Payment Routes: gateway payment intents, client confirmation, and webhooks.

Invariants:
    - /confirm applies only payments the gateway reports as completed
    - The contributor recorded in the payment metadata wins; the request's
      contributor_id only fills in when the metadata has none
    - /webhook verifies the signature before anything is applied; ignored event
      types are acknowledged with {"received": true}
    - Both /confirm and /webhook go through apply_confirmed_payment and are
      idempotent per payment reference
"""

import logging
from dataclasses import replace

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.api.dependencies import get_donation_service, get_payment_gateway
from fundflow.config import get_settings
from fundflow.core.domain_types import CampaignId, ContributorId, DonationStatus
from fundflow.core.donation_intent import normalize_currency
from fundflow.core.errors import (
    CampaignNotFoundError, PaymentGatewayError, PaymentNotCompletedError,
)
from fundflow.core.repository_protocols import PaymentGateway
from fundflow.infrastructure.database import get_db
from fundflow.repositories.campaign_repository import SqlCampaignRepository
from fundflow.schemas.donation import DonationRecordResponse
from fundflow.schemas.payment import (
    PaymentConfirmRequest, PaymentIntentCreate, PaymentIntentResponse,
)
from fundflow.services.record_donation import DonationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post("/intents", response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: PaymentIntentCreate,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Create a gateway payment intent for a donation to a campaign."""
    campaign = await SqlCampaignRepository(db).get(CampaignId(body.campaign_id))
    if campaign is None:
        raise CampaignNotFoundError(str(body.campaign_id))
    result = await gateway.create_payment_intent(
        campaign_id=CampaignId(body.campaign_id),
        campaign_title=campaign.title,
        base_amount=body.amount,
        tip_amount=body.tip_amount,
        currency=normalize_currency(body.currency, get_settings().default_currency),
        display_name=body.display_name,
        contact_address=body.contact_address,
        is_anonymous=body.is_anonymous,
        contributor_id=ContributorId(body.contributor_id) if body.contributor_id else None,
    )
    return PaymentIntentResponse(**result)


@router.post("/confirm", response_model=DonationRecordResponse)
async def confirm_payment(
    body: PaymentConfirmRequest,
    gateway: PaymentGateway = Depends(get_payment_gateway),
    service: DonationService = Depends(get_donation_service),
):
    """Record the donation for a payment the client reports as finished."""
    confirmation = await gateway.retrieve_confirmation(body.payment_reference)
    if confirmation.status is not DonationStatus.COMPLETED:
        raise PaymentNotCompletedError(
            body.payment_reference, confirmation.status.value,
        )
    if confirmation.contributor_id is None and body.contributor_id:
        confirmation = replace(
            confirmation, contributor_id=ContributorId(body.contributor_id),
        )

    result = await service.apply_confirmed_payment(confirmation)
    return DonationRecordResponse.from_result(
        result.donation, result.already_applied, result.notifications,
    )


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="stripe-signature"),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    service: DonationService = Depends(get_donation_service),
):
    """Gateway webhook: payment succeeded/failed events become donations."""
    if not stripe_signature:
        raise PaymentGatewayError(
            "Missing stripe-signature header", "signature", http_status=400,
        )
    payload = await request.body()
    confirmation = gateway.parse_webhook(payload, stripe_signature)
    if confirmation is None:
        return {"received": True}

    result = await service.apply_confirmed_payment(confirmation)
    return {
        "received": True,
        "donation_id": str(result.donation.id),
        "already_applied": result.already_applied,
    }
