"""Payment Confirmation Mapping: gateway payment-intent payloads → PaymentConfirmation.

Invariants:
    - All functions are PURE: input is a plain mapping, no SDK objects required
    - Payment-intent status maps to DonationStatus: succeeded → completed,
      canceled → failed, everything else → pending
    - Webhook event types outside WEBHOOK_EVENT_STATUS are ignored (None)
    - Failed-payment events are keyed per attempt (failed_attempt_reference), never
      on the bare payment-intent id: a retried intent must still be able to succeed
    - Metadata keys match what create_payment_intent writes (METADATA_* constants)

Design Decisions:
    - Mapping input: Stripe objects support item access, so the infrastructure adapter
      passes them straight through and tests pass dicts
"""

from collections.abc import Mapping
from dataclasses import replace
from typing import Any
from uuid import UUID

from fundflow.core.domain_types import (
    CampaignId, ContributorId, DonationStatus, PaymentMethod,
)
from fundflow.core.donation_intent import PaymentConfirmation, to_amount
from fundflow.core.errors import DonationValidationError

METADATA_CAMPAIGN_ID = "campaignId"
METADATA_CAMPAIGN_TITLE = "campaignTitle"
METADATA_BASE_AMOUNT = "donationAmount"
METADATA_TIP_AMOUNT = "tipAmount"
METADATA_DISPLAY_NAME = "donorName"
METADATA_CONTACT_ADDRESS = "donorEmail"
METADATA_ANONYMOUS = "isAnonymous"
METADATA_CONTRIBUTOR_ID = "donorId"

PAYMENT_INTENT_STATUS = {
    "succeeded": DonationStatus.COMPLETED,
    "canceled": DonationStatus.FAILED,
}

FAILED_REFERENCE_MARKER = ":failed"

WEBHOOK_EVENT_STATUS = {
    "payment_intent.succeeded": DonationStatus.COMPLETED,
    "payment_intent.payment_failed": DonationStatus.FAILED,
}


def _parse_uuid(value: Any, field: str) -> UUID:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise DonationValidationError(f"{field} is not a valid id", field)


def status_from_payment_intent(status: str | None) -> DonationStatus:
    return PAYMENT_INTENT_STATUS.get(status or "", DonationStatus.PENDING)


def confirmation_from_payment_intent(
    payment_intent: Mapping[str, Any],
    status: DonationStatus | None = None,
) -> PaymentConfirmation:
    """Build a confirmation from a payment-intent payload and its metadata.

    `status` overrides the payload's own status (webhook events carry the
    outcome in the event type rather than on the object).
    """
    reference = payment_intent.get("id")
    if not reference:
        raise DonationValidationError("payment intent has no id", "id")
    metadata = payment_intent.get("metadata") or {}

    campaign_raw = metadata.get(METADATA_CAMPAIGN_ID)
    if not campaign_raw:
        raise DonationValidationError(
            "payment metadata has no campaign id", f"metadata.{METADATA_CAMPAIGN_ID}",
        )
    contributor_raw = metadata.get(METADATA_CONTRIBUTOR_ID) or None

    return PaymentConfirmation(
        external_reference=str(reference),
        campaign_id=CampaignId(
            _parse_uuid(campaign_raw, f"metadata.{METADATA_CAMPAIGN_ID}"),
        ),
        base_amount=to_amount(
            metadata.get(METADATA_BASE_AMOUNT), f"metadata.{METADATA_BASE_AMOUNT}",
        ),
        tip_amount=to_amount(
            metadata.get(METADATA_TIP_AMOUNT) or "0", f"metadata.{METADATA_TIP_AMOUNT}",
        ),
        currency=str(payment_intent.get("currency") or "").upper(),
        status=status or status_from_payment_intent(payment_intent.get("status")),
        display_name=str(metadata.get(METADATA_DISPLAY_NAME) or ""),
        contact_address=str(metadata.get(METADATA_CONTACT_ADDRESS) or ""),
        method=PaymentMethod.CARD,
        is_anonymous=str(metadata.get(METADATA_ANONYMOUS, "")).lower() == "true",
        contributor_id=(
            ContributorId(_parse_uuid(contributor_raw, f"metadata.{METADATA_CONTRIBUTOR_ID}"))
            if contributor_raw else None
        ),
    )


def failed_attempt_reference(
    payment_intent: Mapping[str, Any], event_id: str | None = None,
) -> str:
    """Reference for a failed-attempt audit row: <intent id>:failed:<attempt id>.

    The payment-intent id itself stays free for the eventual successful
    attempt, which Stripe reports under the same intent.
    """
    last_error = payment_intent.get("last_payment_error") or {}
    attempt = (
        last_error.get("charge")
        or payment_intent.get("latest_charge")
        or event_id
    )
    reference = f"{payment_intent.get('id')}{FAILED_REFERENCE_MARKER}"
    return f"{reference}:{attempt}" if attempt else reference


def confirmation_from_webhook_event(
    event: Mapping[str, Any],
) -> PaymentConfirmation | None:
    """Normalize a verified webhook event. Returns None for event types we ignore."""
    status = WEBHOOK_EVENT_STATUS.get(event.get("type", ""))
    if status is None:
        return None
    payment_intent = (event.get("data") or {}).get("object") or {}
    confirmation = confirmation_from_payment_intent(payment_intent, status=status)
    if status is DonationStatus.FAILED:
        confirmation = replace(
            confirmation,
            external_reference=failed_attempt_reference(payment_intent, event.get("id")),
        )
    return confirmation
