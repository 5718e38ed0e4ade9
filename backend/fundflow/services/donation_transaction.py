"""Donation Transaction: writes a donation and its campaign increment as one atomic unit.

Invariants:
    - Campaign lookup, donation insert, and counter increment share ONE database transaction
    - Either the donation row and its increment are both committed, or neither is
    - Counters move iff the donation status is COMPLETED (core/aggregate.py)
    - Absent campaign → CampaignNotFoundError; closed campaign with require_open →
      CampaignNotOpenError; both before any write
    - Unique violation on external_reference → DuplicateReferenceError (never retried)
    - Write conflicts are retried up to max_attempts, then WriteConflictError
    - Other storage failures → DatabaseError; non-storage exceptions roll back and propagate
    - Nothing outside the database is touched here; notifications run after commit elsewhere

Design Decisions:
    - Campaign row read with FOR UPDATE: concurrent donations to one campaign serialize
      on the row lock, the increment itself is a single UPDATE
    - Retry lives here and not in callers: a conflicted attempt is fully rolled back,
      so replaying the intent cannot double-apply
"""

import asyncio
import logging
import random

from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.core.aggregate import aggregate_delta
from fundflow.core.domain_types import CampaignStatus
from fundflow.core.donation_intent import DonationIntent
from fundflow.core.errors import (
    CampaignNotFoundError, CampaignNotOpenError, DatabaseError,
    DuplicateReferenceError, ErrorContext, WriteConflictError,
)
from fundflow.core.repository_protocols import (
    CampaignRepository, DonationLike, DonationRepository,
)
from fundflow.infrastructure.database import is_duplicate_reference, is_write_conflict
from fundflow.repositories.campaign_repository import SqlCampaignRepository
from fundflow.repositories.donation_repository import SqlDonationRepository

logger = logging.getLogger(__name__)

MAX_RETRY_DELAY_MS = 2_000


class DonationTransaction:
    """Transaction orchestrator for one donation write."""

    def __init__(
        self,
        db: AsyncSession,
        max_attempts: int = 3,
        retry_base_delay_ms: int = 50,
        campaigns: CampaignRepository | None = None,
        donations: DonationRepository | None = None,
    ):
        self.db = db
        self.max_attempts = max(1, max_attempts)
        self.retry_base_delay_ms = retry_base_delay_ms
        self.campaigns = campaigns or SqlCampaignRepository(db)
        self.donations = donations or SqlDonationRepository(db)

    async def execute(self, intent: DonationIntent, require_open: bool) -> DonationLike:
        """Commit the donation and its aggregate increment, retrying write conflicts."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                donation = await self._attempt(intent, require_open)
            except DBAPIError as e:
                if attempt >= self.max_attempts:
                    logger.error(
                        f"Write conflict persisted after {attempt} attempt(s): {e}",
                        extra={"campaign_id": intent.campaign_id, "attempt": attempt},
                    )
                    raise WriteConflictError(
                        attempt,
                        retry_after_ms=self._backoff(attempt),
                        context=self._context(intent),
                    )
                delay = self._backoff(attempt)
                logger.warning(
                    f"Write conflict, retry after {delay}ms (attempt {attempt})",
                    extra={"campaign_id": intent.campaign_id, "attempt": attempt},
                )
                await asyncio.sleep(delay / 1000)
                continue

            logger.info(
                f"Donation committed ({donation.status}, {donation.base_amount} "
                f"{donation.currency})",
                extra={
                    "donation_id": donation.id,
                    "campaign_id": donation.campaign_id,
                    "external_reference": donation.external_reference,
                    "attempt": attempt,
                },
            )
            return donation
        raise AssertionError("unreachable")  # pragma: no cover

    async def _attempt(self, intent: DonationIntent, require_open: bool) -> DonationLike:
        """One atomic scope. Re-raises write conflicts as DBAPIError for execute()."""
        try:
            campaign = await self.campaigns.get(intent.campaign_id, lock=True)
            if campaign is None:
                raise CampaignNotFoundError(str(intent.campaign_id))
            if require_open and campaign.status != CampaignStatus.PUBLISHED.value:
                raise CampaignNotOpenError(str(intent.campaign_id), campaign.status)

            donation = await self.donations.add(intent)
            delta = aggregate_delta(intent.status, intent.base_amount)
            if not delta.is_empty:
                await self.campaigns.increment_totals(
                    intent.campaign_id, delta.amount, delta.count,
                )
            await self.db.commit()
            return donation
        except IntegrityError as e:
            await self.db.rollback()
            if intent.external_reference and is_duplicate_reference(e):
                raise DuplicateReferenceError(
                    intent.external_reference, self._context(intent),
                ) from e
            logger.error(
                f"DB integrity error writing donation: {e}",
                extra={"campaign_id": intent.campaign_id},
            )
            raise DatabaseError(
                "Integrity constraint violated", "insert", self._context(intent),
            ) from e
        except DBAPIError as e:
            await self.db.rollback()
            if is_write_conflict(e):
                raise
            logger.error(
                f"DB driver error writing donation: {e}",
                extra={"campaign_id": intent.campaign_id},
            )
            raise DatabaseError(
                "Database driver error", "execute", self._context(intent),
            ) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"SQLAlchemy error writing donation: {e}",
                extra={"campaign_id": intent.campaign_id},
            )
            raise DatabaseError(
                "Database operation failed", "unknown", self._context(intent),
            ) from e
        except Exception:
            await self.db.rollback()
            raise

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(MAX_RETRY_DELAY_MS, (2 ** (attempt - 1)) * self.retry_base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    @staticmethod
    def _context(intent: DonationIntent) -> ErrorContext:
        return ErrorContext(
            campaign_id=str(intent.campaign_id),
            external_reference=intent.external_reference,
        )
