"""Donation Schemas: request/response models for donation and campaign endpoints.

Invariants:
    - DonationCreate.amount > 0 (minimum 0.01), tip_amount >= 0, message <= 500 chars
    - currency is a 3-letter code, uppercased; None falls back to the configured default
    - Monetary values are Decimals (serialized as strings)
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fundflow.core.domain_types import DonationStatus, PaymentMethod
from fundflow.core.notification_plan import DispatchReport

CONTACT_ADDRESS_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class DonationCreate(BaseModel):
    """Direct donation request."""
    campaign_id: UUID
    amount: Decimal = Field(ge=Decimal("0.01"), max_digits=12, decimal_places=2)
    tip_amount: Decimal = Field(
        Decimal("0"), ge=Decimal("0"), max_digits=12, decimal_places=2,
    )
    currency: str | None = Field(None, pattern=r"^[A-Za-z]{3}$")
    method: PaymentMethod
    is_anonymous: bool = False
    display_name: str = Field(min_length=1, max_length=120)
    contact_address: str = Field(
        min_length=3, max_length=254, pattern=CONTACT_ADDRESS_PATTERN,
    )
    message: str | None = Field(None, max_length=500)
    contributor_id: UUID | None = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str | None) -> str | None:
        return v.upper() if v else v

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("display_name cannot be empty or whitespace")
        return v


class DonationResponse(BaseModel):
    """Persisted donation."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    campaign_id: UUID
    contributor_id: UUID | None
    base_amount: Decimal
    tip_amount: Decimal
    total_amount: Decimal
    currency: str
    method: PaymentMethod
    status: DonationStatus
    external_reference: str | None
    is_anonymous: bool
    display_name: str
    contact_address: str
    message: str | None
    created_at: datetime
    updated_at: datetime


class NotificationOutcomeResponse(BaseModel):
    kind: str
    status: str
    reason: str | None = None


class DonationRecordResponse(BaseModel):
    """Result of a direct donation or a payment confirmation."""
    donation: DonationResponse
    already_applied: bool = False
    notifications: list[NotificationOutcomeResponse] = []

    @classmethod
    def from_result(cls, donation, already_applied: bool, report: DispatchReport):
        return cls(
            donation=DonationResponse.model_validate(donation),
            already_applied=already_applied,
            notifications=[
                NotificationOutcomeResponse(**o) for o in report.to_list()
            ],
        )


class CampaignTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    status: str
    raised_amount: Decimal
    donation_count: int


class ReconcileResponse(BaseModel):
    campaign_id: UUID
    previous_amount: Decimal
    previous_count: int
    raised_amount: Decimal
    donation_count: int
    changed: bool
