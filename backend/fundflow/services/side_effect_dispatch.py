"""Side-Effect Dispatcher: best-effort notifications after a donation commit.

Invariants:
    - Called only after the donation transaction committed; never inside the atomic scope
    - Follows core/notification_plan.py: nothing for non-COMPLETED donations,
      ACTIVITY before COUPON, ACTIVITY skipped for anonymous or unattributed donations
    - Each notification is isolated: its failure or timeout never affects the other,
      the committed donation, the campaign totals, or the caller's result
    - Every attempt is bounded by timeout_seconds
    - Returns a DispatchReport; failures are logged at WARNING and never raised

Design Decisions:
    - Sequential dispatch: the plan order is observable in logs and tests
    - Collaborators open their own sessions; the request session is left untouched
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from fundflow.core.domain_types import (
    CampaignId, ContributorId, DonationId, NotificationKind, OutcomeStatus,
)
from fundflow.core.notification_plan import (
    DispatchReport, NotificationOutcome, plan_notifications,
)
from fundflow.core.repository_protocols import (
    ActivityRecorder, CouponIssuer, DonationLike,
)

logger = logging.getLogger(__name__)


class SideEffectDispatcher:
    """Runs the notification plan for a committed donation."""

    def __init__(
        self,
        activity: ActivityRecorder,
        coupons: CouponIssuer,
        timeout_seconds: float = 5.0,
    ):
        self.activity = activity
        self.coupons = coupons
        self.timeout_seconds = timeout_seconds

    async def dispatch(self, donation: DonationLike, campaign_title: str) -> DispatchReport:
        contributor_id = (
            ContributorId(donation.contributor_id) if donation.contributor_id else None
        )
        plan = plan_notifications(
            donation.status, donation.is_anonymous, contributor_id,
        )
        senders: dict[NotificationKind, Callable[[], Awaitable[object]]] = {
            NotificationKind.ACTIVITY: lambda: self.activity.record(
                contributor_id,  # type: ignore[arg-type]
                CampaignId(donation.campaign_id),
                donation.base_amount,
                donation.currency,
            ),
            NotificationKind.COUPON: lambda: self.coupons.issue(
                DonationId(donation.id),
                CampaignId(donation.campaign_id),
                contributor_id,
                donation.contact_address,
                donation.display_name,
                donation.base_amount,
                donation.currency,
                campaign_title,
            ),
        }

        outcomes = []
        for planned in plan:
            if planned.skip_reason:
                outcomes.append(NotificationOutcome(
                    planned.kind, OutcomeStatus.SKIPPED, planned.skip_reason,
                ))
                continue
            outcomes.append(
                await self._attempt(planned.kind, senders[planned.kind], donation),
            )
        return DispatchReport(tuple(outcomes))

    async def _attempt(
        self,
        kind: NotificationKind,
        send: Callable[[], Awaitable[object]],
        donation: DonationLike,
    ) -> NotificationOutcome:
        """One isolated, time-bounded notification attempt."""
        extra = {
            "donation_id": donation.id,
            "campaign_id": donation.campaign_id,
            "notification": kind.value,
        }
        try:
            await asyncio.wait_for(send(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                f"{kind.value} notification timed out after {self.timeout_seconds}s",
                extra=extra,
            )
            return NotificationOutcome(kind, OutcomeStatus.FAILED, "timeout")
        except Exception as e:
            logger.warning(
                f"{kind.value} notification failed: {e}", extra=extra, exc_info=True,
            )
            return NotificationOutcome(
                kind, OutcomeStatus.FAILED, f"{type(e).__name__}: {e}",
            )
        return NotificationOutcome(kind, OutcomeStatus.SUCCEEDED)
