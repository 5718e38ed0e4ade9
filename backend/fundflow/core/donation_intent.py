"""Donation Intent: the canonical, validated input of the transaction orchestrator.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - base_amount > 0, tip_amount >= 0, total_amount == base_amount + tip_amount
    - Amounts carry exactly two decimal places (rounded half-up), matching Numeric(12, 2)
    - currency is a 3-letter uppercase code, defaulted when absent
    - message is at most MESSAGE_MAX_LENGTH characters
    - Direct intents are always COMPLETED and carry a synthesized TXN_ reference
    - Confirmed intents take status and reference from the gateway confirmation unchanged

Design Decisions:
    - Frozen dataclasses: an intent is built once by an entry-point adapter and only read afterwards
    - Violations raise DonationValidationError: the gateway path has no pydantic layer in front of it
"""

import secrets
import time
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from fundflow.core.domain_types import (
    CampaignId, ContributorId, DonationStatus, PaymentMethod,
)
from fundflow.core.errors import DonationValidationError

MESSAGE_MAX_LENGTH = 500
CURRENCY_CODE_LENGTH = 3
REFERENCE_PREFIX = "TXN"
MONEY_QUANTUM = Decimal("0.01")


@dataclass(frozen=True)
class DonationIntent:
    """Everything the orchestrator needs to write one donation."""
    campaign_id: CampaignId
    base_amount: Decimal
    tip_amount: Decimal
    currency: str
    method: PaymentMethod
    status: DonationStatus
    display_name: str
    contact_address: str
    is_anonymous: bool = False
    message: str | None = None
    external_reference: str | None = None
    contributor_id: ContributorId | None = None

    @property
    def total_amount(self) -> Decimal:
        return self.base_amount + self.tip_amount


@dataclass(frozen=True)
class PaymentConfirmation:
    """Normalized "payment confirmed/failed" event from the payment gateway."""
    external_reference: str
    campaign_id: CampaignId
    base_amount: Decimal
    tip_amount: Decimal
    currency: str
    status: DonationStatus
    display_name: str
    contact_address: str
    method: PaymentMethod = PaymentMethod.CARD
    is_anonymous: bool = False
    contributor_id: ContributorId | None = None
    message: str | None = None


def to_amount(value: object, field: str) -> Decimal:
    """Coerce an int/str/Decimal amount to a 2-place Decimal, rejecting garbage.

    Extra digits are rounded half-up, the same rule used for gateway minor units.
    """
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)  # type: ignore[arg-type]
        if not amount.is_finite():
            raise InvalidOperation
        return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        raise DonationValidationError(f"{field} is not a valid amount", field)


def normalize_currency(currency: str | None, default: str) -> str:
    """Uppercase the currency code, falling back to default when blank."""
    code = (currency or "").strip().upper() or default.strip().upper()
    if len(code) != CURRENCY_CODE_LENGTH or not code.isalpha():
        raise DonationValidationError(
            f"currency must be a {CURRENCY_CODE_LENGTH}-letter code, got '{code}'",
            "currency",
        )
    return code


def check_amounts(base_amount: Decimal, tip_amount: Decimal) -> None:
    if base_amount <= 0:
        raise DonationValidationError("base amount must be greater than 0", "base_amount")
    if tip_amount < 0:
        raise DonationValidationError("tip amount cannot be negative", "tip_amount")


def check_message(message: str | None) -> str | None:
    if message is None:
        return None
    message = message.strip()
    if len(message) > MESSAGE_MAX_LENGTH:
        raise DonationValidationError(
            f"message exceeds {MESSAGE_MAX_LENGTH} characters", "message",
        )
    return message or None


def synthesize_reference(now_ms: int | None = None, suffix: str | None = None) -> str:
    """Traceability reference for direct donations: TXN_<epoch-ms>_<random hex>."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    if suffix is None:
        suffix = secrets.token_hex(4)
    return f"{REFERENCE_PREFIX}_{now_ms}_{suffix}"


def build_direct_intent(
    *,
    campaign_id: CampaignId,
    base_amount: object,
    tip_amount: object = 0,
    currency: str | None,
    method: PaymentMethod,
    display_name: str,
    contact_address: str,
    is_anonymous: bool = False,
    message: str | None = None,
    contributor_id: ContributorId | None = None,
    default_currency: str,
    reference: str | None = None,
) -> DonationIntent:
    """Map a direct/manual request to an intent. Status is always COMPLETED."""
    base = to_amount(base_amount, "base_amount")
    tip = to_amount(tip_amount if tip_amount is not None else 0, "tip_amount")
    check_amounts(base, tip)
    return DonationIntent(
        campaign_id=campaign_id,
        base_amount=base,
        tip_amount=tip,
        currency=normalize_currency(currency, default_currency),
        method=PaymentMethod(method),
        status=DonationStatus.COMPLETED,
        display_name=display_name.strip(),
        contact_address=contact_address.strip(),
        is_anonymous=is_anonymous,
        message=check_message(message),
        external_reference=reference or synthesize_reference(),
        contributor_id=contributor_id,
    )


def build_confirmed_intent(
    confirmation: PaymentConfirmation, default_currency: str,
) -> DonationIntent:
    """Map a gateway confirmation to an intent, keeping the reported status."""
    if not confirmation.external_reference:
        raise DonationValidationError(
            "confirmed payment has no external reference", "external_reference",
        )
    base = to_amount(confirmation.base_amount, "base_amount")
    tip = to_amount(confirmation.tip_amount, "tip_amount")
    check_amounts(base, tip)
    return DonationIntent(
        campaign_id=confirmation.campaign_id,
        base_amount=base,
        tip_amount=tip,
        currency=normalize_currency(confirmation.currency, default_currency),
        method=confirmation.method,
        status=confirmation.status,
        display_name=confirmation.display_name.strip(),
        contact_address=confirmation.contact_address.strip(),
        is_anonymous=confirmation.is_anonymous,
        message=check_message(confirmation.message),
        external_reference=confirmation.external_reference,
        contributor_id=confirmation.contributor_id,
    )
