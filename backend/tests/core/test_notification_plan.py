"""Notification Plan: which notifications a committed donation receives.

Invariants:
    - Non-COMPLETED donations get an empty plan
    - ACTIVITY precedes COUPON
    - ACTIVITY skipped for anonymous or unattributed donations, COUPON never skipped
"""

from uuid import uuid4

import pytest

from fundflow.core.domain_types import NotificationKind, OutcomeStatus
from fundflow.core.notification_plan import (
    SKIP_ANONYMOUS, SKIP_NO_CONTRIBUTOR,
    DispatchReport, NotificationOutcome, plan_notifications,
)


@pytest.mark.parametrize("status", ["pending", "failed", "refunded"])
def test_non_completed_donations_get_nothing(status):
    assert plan_notifications(status, False, uuid4()) == []


def test_attributed_donation_gets_both_in_order():
    plan = plan_notifications("completed", False, uuid4())
    assert [p.kind for p in plan] == [NotificationKind.ACTIVITY, NotificationKind.COUPON]
    assert all(p.skip_reason is None for p in plan)


def test_anonymous_donation_skips_activity():
    plan = plan_notifications("completed", True, uuid4())
    assert plan[0].skip_reason == SKIP_ANONYMOUS
    assert plan[1].skip_reason is None


def test_unattributed_donation_skips_activity():
    plan = plan_notifications("completed", False, None)
    assert plan[0].skip_reason == SKIP_NO_CONTRIBUTOR
    assert plan[1].kind is NotificationKind.COUPON


def test_dispatch_report_helpers():
    report = DispatchReport((
        NotificationOutcome(NotificationKind.ACTIVITY, OutcomeStatus.SUCCEEDED),
        NotificationOutcome(NotificationKind.COUPON, OutcomeStatus.FAILED, "timeout"),
    ))
    assert [f.kind for f in report.failures] == [NotificationKind.COUPON]
    assert report.outcome_for(NotificationKind.COUPON).reason == "timeout"
    assert report.to_list()[0] == {
        "kind": "activity", "status": "succeeded", "reason": None,
    }


def test_empty_report():
    report = DispatchReport()
    assert report.failures == []
    assert report.outcome_for(NotificationKind.ACTIVITY) is None
