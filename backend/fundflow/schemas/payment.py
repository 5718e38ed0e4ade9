"""Payment Schemas: payment-intent creation and client-side confirmation."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from fundflow.schemas.donation import CONTACT_ADDRESS_PATTERN


class PaymentIntentCreate(BaseModel):
    """Start a gateway payment for a donation."""
    campaign_id: UUID
    amount: Decimal = Field(ge=Decimal("0.01"), max_digits=12, decimal_places=2)
    tip_amount: Decimal = Field(
        Decimal("0"), ge=Decimal("0"), max_digits=12, decimal_places=2,
    )
    currency: str | None = Field(None, pattern=r"^[A-Za-z]{3}$")
    is_anonymous: bool = False
    display_name: str = Field(min_length=1, max_length=120)
    contact_address: str = Field(
        min_length=3, max_length=254, pattern=CONTACT_ADDRESS_PATTERN,
    )
    contributor_id: UUID | None = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str | None) -> str | None:
        return v.upper() if v else v


class PaymentIntentResponse(BaseModel):
    client_secret: str
    payment_intent_id: str
    amount: Decimal
    tip_amount: Decimal
    total_amount: Decimal


class PaymentConfirmRequest(BaseModel):
    """Client-side confirmation after the gateway reported success."""
    payment_reference: str = Field(min_length=1, max_length=255)
    contributor_id: UUID | None = None
