"""Campaign Aggregate Rules: which donations count toward raised_amount/donation_count.

Invariants:
    - All functions are PURE
    - A donation contributes (base_amount, 1) iff its status is COMPLETED, else (0, 0)
    - Tips never count toward raised_amount
    - compute_totals over a campaign's donations equals the incrementally maintained counters
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from fundflow.core.domain_types import DonationStatus

ZERO = Decimal("0")


@dataclass(frozen=True)
class AggregateDelta:
    amount: Decimal
    count: int

    @property
    def is_empty(self) -> bool:
        return self.count == 0 and self.amount == ZERO


def counts_toward_totals(status: DonationStatus | str) -> bool:
    return DonationStatus(status) is DonationStatus.COMPLETED


def aggregate_delta(status: DonationStatus | str, base_amount: Decimal) -> AggregateDelta:
    """Increment a new donation applies to its campaign."""
    if counts_toward_totals(status):
        return AggregateDelta(amount=base_amount, count=1)
    return AggregateDelta(amount=ZERO, count=0)


def compute_totals(
    donations: Iterable[tuple[DonationStatus | str, Decimal]],
) -> AggregateDelta:
    """Full-scan totals from (status, base_amount) pairs, used by reconciliation."""
    amount = ZERO
    count = 0
    for status, base_amount in donations:
        delta = aggregate_delta(status, base_amount)
        amount += delta.amount
        count += delta.count
    return AggregateDelta(amount=amount, count=count)
