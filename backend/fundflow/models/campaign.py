"""Campaign ORM: the fundraiser that receives donations and owns the aggregate totals.

Invariants:
    - raised_amount == sum(base_amount) over this campaign's COMPLETED donations
    - donation_count == count of this campaign's COMPLETED donations
    - Only status "published" accepts direct contributions

Design Decisions:
    - Counters denormalized on the row: updated incrementally by the transaction
      orchestrator with a single UPDATE, rebuilt on demand by reconcile_totals
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Integer, Numeric, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from fundflow.db.base import Base


class Campaign(Base):
    """Campaign aggregate root for donations."""
    __tablename__ = "campaigns"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="draft",
    )
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    goal_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2), nullable=True,
    )
    raised_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0"),
    )
    donation_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
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
