"""Reconcile Totals: rebuild a campaign's counters from its donations.

Invariants:
    - Scan and overwrite happen in one transaction with the campaign row locked
    - Result equals core.aggregate.compute_totals over the campaign's donations
    - Used to repair drift (e.g. after administrative deletion), never on the write path
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.core.aggregate import compute_totals
from fundflow.core.domain_types import CampaignId
from fundflow.core.errors import CampaignNotFoundError
from fundflow.repositories.campaign_repository import SqlCampaignRepository
from fundflow.repositories.donation_repository import SqlDonationRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    campaign_id: CampaignId
    previous_amount: Decimal
    previous_count: int
    raised_amount: Decimal
    donation_count: int

    @property
    def changed(self) -> bool:
        return (
            self.previous_amount != self.raised_amount
            or self.previous_count != self.donation_count
        )


async def reconcile_campaign_totals(
    db: AsyncSession, campaign_id: CampaignId,
) -> ReconcileResult:
    campaigns = SqlCampaignRepository(db)
    donations = SqlDonationRepository(db)
    try:
        campaign = await campaigns.get(campaign_id, lock=True)
        if campaign is None:
            raise CampaignNotFoundError(str(campaign_id))
        previous_amount = campaign.raised_amount
        previous_count = campaign.donation_count

        totals = compute_totals(await donations.list_status_amounts(campaign_id))
        await campaigns.set_totals(campaign_id, totals.amount, totals.count)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    result = ReconcileResult(
        campaign_id=campaign_id,
        previous_amount=previous_amount,
        previous_count=previous_count,
        raised_amount=totals.amount,
        donation_count=totals.count,
    )
    if result.changed:
        logger.warning(
            f"Campaign totals drifted: {previous_amount}/{previous_count} → "
            f"{totals.amount}/{totals.count}",
            extra={"campaign_id": campaign_id},
        )
    return result
