"""Donation Routes: direct donations, lookup, and administrative deletion.

Invariants:
    - POST returns 201 with the persisted donation and the notification outcomes
    - Notification failures never change the status code
    - DELETE does not adjust campaign totals (see POST /campaigns/{id}/reconcile)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.api.dependencies import get_donation_service
from fundflow.core.domain_types import DonationId
from fundflow.core.errors import ResourceNotFoundError, ErrorContext
from fundflow.infrastructure.database import get_db
from fundflow.repositories.donation_repository import SqlDonationRepository
from fundflow.schemas.donation import (
    DonationCreate, DonationRecordResponse, DonationResponse,
)
from fundflow.services.record_donation import DonationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/donations", tags=["donations"])


@router.post(
    "", response_model=DonationRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_donation(
    body: DonationCreate,
    service: DonationService = Depends(get_donation_service),
):
    """Record a direct donation (always completed)."""
    result = await service.record_direct_donation(body, body.contributor_id)
    return DonationRecordResponse.from_result(
        result.donation, result.already_applied, result.notifications,
    )


@router.get("/{donation_id}", response_model=DonationResponse)
async def get_donation(donation_id: UUID, db: AsyncSession = Depends(get_db)):
    donation = await SqlDonationRepository(db).get(DonationId(donation_id))
    if donation is None:
        raise ResourceNotFoundError(
            "Donation", str(donation_id), ErrorContext(donation_id=str(donation_id)),
        )
    return DonationResponse.model_validate(donation)


@router.delete("/{donation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_donation(donation_id: UUID, db: AsyncSession = Depends(get_db)):
    """Administrative deletion. Campaign totals are left as they are."""
    deleted = await SqlDonationRepository(db).delete(DonationId(donation_id))
    if not deleted:
        raise ResourceNotFoundError(
            "Donation", str(donation_id), ErrorContext(donation_id=str(donation_id)),
        )
    await db.commit()
    logger.info("Donation deleted", extra={"donation_id": donation_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
