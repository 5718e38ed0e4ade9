"""Coupon Issuer: one reward coupon per completed donation.

Invariants:
    - Idempotent per donation: an existing coupon for the donation is returned as-is
    - Codes are FU-XXXXXXXX (8 uppercase hex chars), unique; gives up after MAX_CODE_ATTEMPTS
    - Uses its own session; commits independently of the donation transaction
    - Expiry is issued_at + expiration_days
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select

from fundflow.core.domain_types import (
    CampaignId, ContributorId, CouponStatus, DonationId,
)
from fundflow.models.coupon import Coupon
from fundflow.services.activity_feed import SessionScope

logger = logging.getLogger(__name__)

COUPON_PREFIX = "FU"
MAX_CODE_ATTEMPTS = 10


def generate_coupon_code() -> str:
    return f"{COUPON_PREFIX}-{secrets.token_hex(4).upper()}"


class CouponCodeExhaustedError(RuntimeError):
    """No unused coupon code found within MAX_CODE_ATTEMPTS."""


class SqlCouponIssuer:

    def __init__(self, session_scope: SessionScope, expiration_days: int = 365):
        self.session_scope = session_scope
        self.expiration_days = expiration_days

    async def issue(
        self,
        donation_id: DonationId,
        campaign_id: CampaignId,
        contributor_id: ContributorId | None,
        contact_address: str,
        display_name: str,
        amount: Decimal,
        currency: str,
        campaign_title: str,
    ) -> str:
        """Create (or return the existing) coupon for a donation. Returns its code."""
        async with self.session_scope() as db:
            existing = await db.execute(
                select(Coupon.code).where(Coupon.donation_id == donation_id),
            )
            code = existing.scalar_one_or_none()
            if code:
                return code

            code = await self._unused_code(db)
            now = datetime.now(timezone.utc)
            db.add(Coupon(
                code=code,
                donation_id=donation_id,
                campaign_id=campaign_id,
                contributor_id=contributor_id,
                contact_address=contact_address,
                display_name=display_name,
                donation_amount=amount,
                currency=currency,
                status=CouponStatus.ACTIVE.value,
                expires_at=now + timedelta(days=self.expiration_days),
            ))
            await db.commit()

        logger.info(
            f"Coupon {code} issued for donation to '{campaign_title}'",
            extra={"donation_id": donation_id, "notification": "coupon"},
        )
        return code

    async def _unused_code(self, db) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_coupon_code()
            taken = await db.execute(select(Coupon.id).where(Coupon.code == code))
            if taken.scalar_one_or_none() is None:
                return code
        raise CouponCodeExhaustedError(
            f"Failed to generate unique coupon code after {MAX_CODE_ATTEMPTS} attempts",
        )
