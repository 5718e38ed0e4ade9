"""Donation Repository: insert and lookup of donation rows.

Invariants:
    - add() flushes so constraint violations surface inside the caller's atomic scope
    - get_by_external_reference() is the idempotency-guard lookup
    - Never commits
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.core.domain_types import CampaignId, DonationId
from fundflow.core.donation_intent import DonationIntent
from fundflow.models.donation import Donation


class SqlDonationRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, intent: DonationIntent) -> Donation:
        """Insert a donation built from a validated intent."""
        donation = Donation(
            campaign_id=intent.campaign_id,
            contributor_id=intent.contributor_id,
            base_amount=intent.base_amount,
            tip_amount=intent.tip_amount,
            total_amount=intent.total_amount,
            currency=intent.currency,
            method=intent.method.value,
            status=intent.status.value,
            external_reference=intent.external_reference,
            is_anonymous=intent.is_anonymous,
            display_name=intent.display_name,
            contact_address=intent.contact_address,
            message=intent.message,
        )
        self.db.add(donation)
        await self.db.flush()
        return donation

    async def get(self, donation_id: DonationId) -> Donation | None:
        result = await self.db.execute(
            select(Donation).where(Donation.id == donation_id),
        )
        return result.scalar_one_or_none()

    async def get_by_external_reference(self, external_reference: str) -> Donation | None:
        result = await self.db.execute(
            select(Donation).where(
                Donation.external_reference == external_reference,
            ),
        )
        return result.scalar_one_or_none()

    async def list_status_amounts(
        self, campaign_id: CampaignId,
    ) -> list[tuple[str, Decimal]]:
        result = await self.db.execute(
            select(Donation.status, Donation.base_amount).where(
                Donation.campaign_id == campaign_id,
            ),
        )
        return [(status, amount) for status, amount in result.all()]

    async def delete(self, donation_id: DonationId) -> bool:
        donation = await self.get(donation_id)
        if donation is None:
            return False
        await self.db.delete(donation)
        await self.db.flush()
        return True
