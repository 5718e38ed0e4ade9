"""Route Dependencies: wiring of services, collaborators, and the payment gateway.

Invariants:
    - The payment gateway is read from app.state (built once in the lifespan) and can be
      replaced with dependency_overrides in tests
    - Notification collaborators get session scopes from the db_manager, never the
      request session
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.config import get_settings
from fundflow.core.errors import PaymentGatewayError
from fundflow.core.repository_protocols import PaymentGateway
from fundflow.infrastructure.database import get_db, get_session_manager
from fundflow.services.activity_feed import SqlActivityRecorder
from fundflow.services.coupon_issuer import SqlCouponIssuer
from fundflow.services.record_donation import DonationService
from fundflow.services.side_effect_dispatch import SideEffectDispatcher


def get_payment_gateway(request: Request) -> PaymentGateway:
    gateway = getattr(request.app.state, "payment_gateway", None)
    if gateway is None:
        raise PaymentGatewayError(
            "Payment gateway not initialized", "configuration", http_status=500,
        )
    return gateway


def get_dispatcher() -> SideEffectDispatcher:
    settings = get_settings()
    manager = get_session_manager()
    return SideEffectDispatcher(
        activity=SqlActivityRecorder(manager.session),
        coupons=SqlCouponIssuer(
            manager.session, expiration_days=settings.coupon_expiration_days,
        ),
        timeout_seconds=settings.side_effect_timeout_seconds,
    )


def get_donation_service(
    db: AsyncSession = Depends(get_db),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
) -> DonationService:
    settings = get_settings()
    return DonationService(
        db,
        dispatcher,
        default_currency=settings.default_currency,
        max_attempts=settings.transaction_max_attempts,
        retry_base_delay_ms=settings.transaction_retry_base_delay_ms,
    )
