"""Campaign Repository: campaign lookup and atomic counter updates.

Invariants:
    - increment_totals is a single UPDATE ... SET x = x + delta (no read-modify-write in Python)
    - get(lock=True) takes a row lock where the engine supports SELECT ... FOR UPDATE
    - Never commits
"""

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.core.domain_types import CampaignId
from fundflow.models.campaign import Campaign


class SqlCampaignRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, campaign_id: CampaignId, lock: bool = False) -> Campaign | None:
        query = select(Campaign).where(Campaign.id == campaign_id)
        if lock:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def increment_totals(
        self, campaign_id: CampaignId, amount_delta: Decimal, count_delta: int,
    ) -> None:
        await self.db.execute(
            update(Campaign)
            .where(Campaign.id == campaign_id)
            .values(
                raised_amount=Campaign.raised_amount + amount_delta,
                donation_count=Campaign.donation_count + count_delta,
            ),
        )

    async def set_totals(
        self, campaign_id: CampaignId, raised_amount: Decimal, donation_count: int,
    ) -> None:
        await self.db.execute(
            update(Campaign)
            .where(Campaign.id == campaign_id)
            .values(raised_amount=raised_amount, donation_count=donation_count),
        )
