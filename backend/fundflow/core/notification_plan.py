"""Notification Plan: which post-commit notifications a committed donation receives.

Invariants:
    - All functions are PURE
    - Non-COMPLETED donations get no notifications at all (empty plan)
    - ACTIVITY is planned before COUPON; the plan order is the dispatch order
    - ACTIVITY is skipped for anonymous donations and for donations without a contributor
    - COUPON is planned for every COMPLETED donation, attributed or not
"""

from dataclasses import dataclass, field

from fundflow.core.domain_types import (
    ContributorId, DonationStatus, NotificationKind, OutcomeStatus,
)

SKIP_ANONYMOUS = "anonymous"
SKIP_NO_CONTRIBUTOR = "no_contributor"


@dataclass(frozen=True)
class PlannedNotification:
    kind: NotificationKind
    skip_reason: str | None = None


@dataclass(frozen=True)
class NotificationOutcome:
    """Result of one notification attempt, kept for operational visibility."""
    kind: NotificationKind
    status: OutcomeStatus
    reason: str | None = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "status": self.status.value,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class DispatchReport:
    outcomes: tuple[NotificationOutcome, ...] = field(default_factory=tuple)

    @property
    def failures(self) -> list[NotificationOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.FAILED]

    def outcome_for(self, kind: NotificationKind) -> NotificationOutcome | None:
        for outcome in self.outcomes:
            if outcome.kind is kind:
                return outcome
        return None

    def to_list(self) -> list[dict]:
        return [o.to_dict() for o in self.outcomes]


def plan_notifications(
    status: DonationStatus | str,
    is_anonymous: bool,
    contributor_id: ContributorId | None,
) -> list[PlannedNotification]:
    """Ordered notification plan for a freshly committed donation."""
    if DonationStatus(status) is not DonationStatus.COMPLETED:
        return []

    activity_skip = None
    if is_anonymous:
        activity_skip = SKIP_ANONYMOUS
    elif contributor_id is None:
        activity_skip = SKIP_NO_CONTRIBUTOR

    return [
        PlannedNotification(NotificationKind.ACTIVITY, activity_skip),
        PlannedNotification(NotificationKind.COUPON),
    ]
