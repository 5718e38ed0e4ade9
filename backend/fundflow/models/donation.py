"""Donation ORM: one contribution attempt or result.

Invariants:
    - campaign_id is immutable after creation
    - total_amount == base_amount + tip_amount at creation time
    - base_amount > 0 and tip_amount >= 0 (CHECK constraints)
    - external_reference is unique when present (idempotency key for gateway confirmations)
    - Presentation fields are stored even when is_anonymous is set

Design Decisions:
    - Named unique constraint: the orchestrator recognizes a duplicate reference by
      the constraint name in the driver error
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, Numeric, DateTime, ForeignKey, CheckConstraint,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from fundflow.db.base import Base

EXTERNAL_REFERENCE_CONSTRAINT = "uq_donations_external_reference"


class Donation(Base):
    """Donation record, written once by the transaction orchestrator."""
    __tablename__ = "donations"
    __table_args__ = (
        UniqueConstraint(
            "external_reference", name=EXTERNAL_REFERENCE_CONSTRAINT,
        ),
        CheckConstraint("base_amount > 0", name="ck_donations_base_positive"),
        CheckConstraint("tip_amount >= 0", name="ck_donations_tip_non_negative"),
        Index("ix_donations_campaign_created", "campaign_id", "created_at"),
        Index("ix_donations_contributor_created", "contributor_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    campaign_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        nullable=False,
    )
    contributor_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    base_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tip_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0"),
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    method: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", index=True,
    )
    external_reference: Mapped[str | None] = mapped_column(
        String(255), nullable=True,
    )
    is_anonymous: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    display_name: Mapped[str] = mapped_column(String(120), nullable=False)
    contact_address: Mapped[str] = mapped_column(String(254), nullable=False)
    message: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
