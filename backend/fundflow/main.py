"""FundFlow API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map FundFlowError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and payment gateway initialized on startup via lifespan context manager
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fundflow.api.error_handlers import register_error_handlers
from fundflow.api.routes import campaigns, donations, health, payments
from fundflow.config import get_settings
from fundflow.infrastructure.database import init_db
from fundflow.infrastructure.observability import setup_logging
from fundflow.infrastructure.payment_gateway import StripePaymentGateway

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    app.state.payment_gateway = StripePaymentGateway(
        settings.stripe_secret_key, settings.stripe_webhook_secret,
    )
    if not settings.stripe_secret_key:
        logger.warning("Stripe secret key not set: payment intents are disabled")
    logger.info("FundFlow API started")
    yield
    logger.info("FundFlow API shutting down")


app = FastAPI(
    title="FundFlow API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(donations.router)
app.include_router(payments.router)
app.include_router(campaigns.router)

register_error_handlers(app)
