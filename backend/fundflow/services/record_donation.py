"""Donation Entry Points: direct donations and gateway-confirmed payments.

Invariants:
    - record_direct_donation: status forced to COMPLETED, synthesized TXN_ reference,
      campaign must be published
    - apply_confirmed_payment: status/amounts/reference from the confirmation,
      campaign must exist (open or not), at most one donation per external reference
    - A reference already on file returns the stored donation unchanged
      (already_applied=True): no write, no notifications
    - A DuplicateReferenceError from the transaction (a concurrent delivery won the
      race past the lookup) is answered the same way, never surfaced
    - Notifications are dispatched only after commit and only for COMPLETED donations;
      their outcomes are reported, never raised

Design Decisions:
    - The pre-insert lookup is the fast path, the unique constraint is the guarantee
    - Failed gateway attempts arrive under per-attempt references
      (core/payment_confirmation.py), so a failure never blocks the success of the
      same payment intent
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.core.domain_types import CampaignId, ContributorId, DonationStatus
from fundflow.core.donation_intent import (
    PaymentConfirmation, build_confirmed_intent, build_direct_intent,
)
from fundflow.core.errors import DuplicateReferenceError
from fundflow.core.notification_plan import DispatchReport
from fundflow.core.repository_protocols import DonationLike
from fundflow.repositories.campaign_repository import SqlCampaignRepository
from fundflow.repositories.donation_repository import SqlDonationRepository
from fundflow.schemas.donation import DonationCreate
from fundflow.services.donation_transaction import DonationTransaction
from fundflow.services.side_effect_dispatch import SideEffectDispatcher

logger = logging.getLogger(__name__)


@dataclass
class DonationResult:
    """Persisted donation plus what happened around it."""
    donation: DonationLike
    already_applied: bool = False
    notifications: DispatchReport = field(default_factory=DispatchReport)


class DonationService:
    """Entry-point adapters in front of the donation transaction."""

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: SideEffectDispatcher,
        default_currency: str = "USD",
        max_attempts: int = 3,
        retry_base_delay_ms: int = 50,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.default_currency = default_currency
        self.campaigns = SqlCampaignRepository(db)
        self.donations = SqlDonationRepository(db)
        self.transaction = DonationTransaction(
            db,
            max_attempts=max_attempts,
            retry_base_delay_ms=retry_base_delay_ms,
            campaigns=self.campaigns,
            donations=self.donations,
        )

    async def record_direct_donation(
        self, request: DonationCreate, contributor_id: UUID | None = None,
    ) -> DonationResult:
        """Record a manual donation. Raises CampaignNotFoundError / CampaignNotOpenError."""
        intent = build_direct_intent(
            campaign_id=CampaignId(request.campaign_id),
            base_amount=request.amount,
            tip_amount=request.tip_amount,
            currency=request.currency,
            method=request.method,
            display_name=request.display_name,
            contact_address=request.contact_address,
            is_anonymous=request.is_anonymous,
            message=request.message,
            contributor_id=ContributorId(contributor_id) if contributor_id else None,
            default_currency=self.default_currency,
        )
        donation = await self.transaction.execute(intent, require_open=True)
        notifications = await self._notify(donation)
        return DonationResult(donation, notifications=notifications)

    async def apply_confirmed_payment(
        self, confirmation: PaymentConfirmation,
    ) -> DonationResult:
        """Apply a gateway confirmation at most once per external reference."""
        intent = build_confirmed_intent(confirmation, self.default_currency)
        reference = confirmation.external_reference

        existing = await self.donations.get_by_external_reference(reference)
        if existing is not None:
            logger.info(
                "Payment confirmation already applied",
                extra={"donation_id": existing.id, "external_reference": reference},
            )
            return DonationResult(existing, already_applied=True)

        try:
            donation = await self.transaction.execute(intent, require_open=False)
        except DuplicateReferenceError:
            existing = await self.donations.get_by_external_reference(reference)
            if existing is None:
                raise
            logger.info(
                "Concurrent payment confirmation already applied",
                extra={"donation_id": existing.id, "external_reference": reference},
            )
            return DonationResult(existing, already_applied=True)

        notifications = await self._notify(donation)
        return DonationResult(donation, notifications=notifications)

    async def _notify(self, donation: DonationLike) -> DispatchReport:
        if donation.status != DonationStatus.COMPLETED.value:
            return DispatchReport()
        campaign = await self.campaigns.get(CampaignId(donation.campaign_id))
        title = campaign.title if campaign else ""
        return await self.dispatcher.dispatch(donation, title)
