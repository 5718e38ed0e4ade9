"""Activity Feed: records a public DONATION entry for an attributed donation.

Invariants:
    - Uses its own session; commits independently of the donation transaction
    - Never called for anonymous or unattributed donations (dispatcher plan)
"""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.core.domain_types import CampaignId, ContributorId
from fundflow.models.activity import Activity

logger = logging.getLogger(__name__)

ACTIVITY_KIND_DONATION = "DONATION"

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class SqlActivityRecorder:

    def __init__(self, session_scope: SessionScope):
        self.session_scope = session_scope

    async def record(
        self,
        contributor_id: ContributorId,
        campaign_id: CampaignId,
        amount: Decimal,
        currency: str,
    ) -> None:
        async with self.session_scope() as db:
            db.add(Activity(
                contributor_id=contributor_id,
                campaign_id=campaign_id,
                kind=ACTIVITY_KIND_DONATION,
                donation_amount=amount,
                donation_currency=currency,
                is_public=True,
            ))
            await db.commit()
        logger.info(
            "Donation activity recorded",
            extra={"campaign_id": campaign_id, "notification": "activity"},
        )
