"""Campaign Routes: aggregate totals view and reconciliation.

Invariants:
    - GET /totals reads the incrementally maintained counters as stored
    - POST /reconcile rebuilds them from the campaign's completed donations
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.core.domain_types import CampaignId
from fundflow.core.errors import CampaignNotFoundError
from fundflow.infrastructure.database import get_db
from fundflow.repositories.campaign_repository import SqlCampaignRepository
from fundflow.schemas.donation import CampaignTotalsResponse, ReconcileResponse
from fundflow.services.reconcile_totals import reconcile_campaign_totals

router = APIRouter(prefix="/api/v1/campaigns", tags=["campaigns"])


@router.get("/{campaign_id}/totals", response_model=CampaignTotalsResponse)
async def get_campaign_totals(campaign_id: UUID, db: AsyncSession = Depends(get_db)):
    campaign = await SqlCampaignRepository(db).get(CampaignId(campaign_id))
    if campaign is None:
        raise CampaignNotFoundError(str(campaign_id))
    return CampaignTotalsResponse.model_validate(campaign)


@router.post("/{campaign_id}/reconcile", response_model=ReconcileResponse)
async def reconcile_campaign(campaign_id: UUID, db: AsyncSession = Depends(get_db)):
    """Recompute raised_amount/donation_count by scanning completed donations."""
    result = await reconcile_campaign_totals(db, CampaignId(campaign_id))
    return ReconcileResponse(
        campaign_id=result.campaign_id,
        previous_amount=result.previous_amount,
        previous_count=result.previous_count,
        raised_amount=result.raised_amount,
        donation_count=result.donation_count,
        changed=result.changed,
    )
