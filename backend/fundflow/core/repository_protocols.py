"""Boundary Protocols: contracts between the donation core and its collaborators.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - Repository methods run inside the caller's session and never commit
    - ActivityRecorder and CouponIssuer own their own sessions and may fail independently
    - PaymentGateway is injected; there is no process-wide gateway instance

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes in tests need no inheritance
    - CampaignLike/DonationLike describe the ORM rows structurally so services
      get type information without coupling to SQLAlchemy
"""

from datetime import datetime
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from fundflow.core.domain_types import CampaignId, ContributorId, DonationId
from fundflow.core.donation_intent import DonationIntent, PaymentConfirmation


class CampaignLike(Protocol):
    """The slice of a campaign the donation core reads."""
    id: UUID
    title: str
    status: str
    raised_amount: Decimal
    donation_count: int


class DonationLike(Protocol):
    id: UUID
    campaign_id: UUID
    contributor_id: UUID | None
    base_amount: Decimal
    tip_amount: Decimal
    total_amount: Decimal
    currency: str
    method: str
    status: str
    external_reference: str | None
    is_anonymous: bool
    display_name: str
    contact_address: str
    message: str | None
    created_at: datetime
    updated_at: datetime


class CampaignRepository(Protocol):
    """Campaign reads and counter writes, implemented by shell."""
    async def get(
        self, campaign_id: CampaignId, lock: bool = False,
    ) -> CampaignLike | None: ...
    async def increment_totals(
        self, campaign_id: CampaignId, amount_delta: Decimal, count_delta: int,
    ) -> None: ...
    async def set_totals(
        self, campaign_id: CampaignId, raised_amount: Decimal, donation_count: int,
    ) -> None: ...


class DonationRepository(Protocol):
    """Donation persistence, implemented by shell."""
    async def add(self, intent: DonationIntent) -> DonationLike: ...
    async def get(self, donation_id: DonationId) -> DonationLike | None: ...
    async def get_by_external_reference(
        self, external_reference: str,
    ) -> DonationLike | None: ...
    async def list_status_amounts(
        self, campaign_id: CampaignId,
    ) -> list[tuple[str, Decimal]]: ...
    async def delete(self, donation_id: DonationId) -> bool: ...


class ActivityRecorder(Protocol):
    """Public activity-feed entry for an attributed donation."""
    async def record(
        self,
        contributor_id: ContributorId,
        campaign_id: CampaignId,
        amount: Decimal,
        currency: str,
    ) -> None: ...


class CouponIssuer(Protocol):
    """Reward coupon for a completed donation. Returns the coupon code."""
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
    ) -> str: ...


class PaymentGateway(Protocol):
    """Payment gateway capability consumed by the payment routes."""
    async def create_payment_intent(
        self,
        *,
        campaign_id: CampaignId,
        campaign_title: str,
        base_amount: Decimal,
        tip_amount: Decimal,
        currency: str,
        display_name: str,
        contact_address: str,
        is_anonymous: bool,
        contributor_id: ContributorId | None,
    ) -> dict: ...
    async def retrieve_confirmation(
        self, external_reference: str,
    ) -> PaymentConfirmation: ...
    def parse_webhook(
        self, payload: bytes, signature: str,
    ) -> PaymentConfirmation | None: ...
