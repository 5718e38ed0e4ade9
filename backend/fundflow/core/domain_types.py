"""Domain Types: identity wrappers and the closed value sets of the donation core.

Invariants:
    - DonationId, CampaignId, ContributorId wrap UUIDs; domain logic never passes bare UUIDs
    - Every valid status or method is an Enum member, never a raw string comparison
    - CampaignStatus.PUBLISHED is the only state open for contributions

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: stored as-is in String columns and serialized to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

DonationId = NewType("DonationId", UUID)
CampaignId = NewType("CampaignId", UUID)
ContributorId = NewType("ContributorId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class DonationStatus(str, Enum):
    """Payment status of a donation. Only COMPLETED counts toward campaign totals."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CARD = "card"
    BANK = "bank"
    MOBILE = "mobile"


class CampaignStatus(str, Enum):
    """Campaign lifecycle states, maps to the `campaigns.status` column."""
    DRAFT = "draft"
    PUBLISHED = "published"


class NotificationKind(str, Enum):
    """Post-commit notifications, in dispatch order."""
    ACTIVITY = "activity"
    COUPON = "coupon"


class OutcomeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class CouponStatus(str, Enum):
    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"
