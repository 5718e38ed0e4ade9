"""Error Hierarchy: typed, categorized exceptions for every donation-pipeline failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are caller mistakes or unmet preconditions
    - Infrastructure errors (500-level) never leave partial state behind
    - to_response() produces the REST envelope; no internal details in messages
    - Notification failures are not part of this hierarchy: they are reported, never raised

Design Decisions:
    - Single hierarchy with FundFlowError base: the FastAPI global handler catches all
    - ErrorContext as dataclass: carries donation/campaign identifiers for logs and responses
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    PRECONDITION_FAILED = "precondition_failed"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Identifiers attached to an error for logs and the response body."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    campaign_id: str | None = None
    donation_id: str | None = None
    external_reference: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class FundFlowError(Exception):
    """Base exception for all FundFlow errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "campaign_id": self.context.campaign_id,
                    "donation_id": self.context.donation_id,
                    "external_reference": self.context.external_reference,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class DonationValidationError(FundFlowError):
    """Donation amounts or fields violate a data-model invariant."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(FundFlowError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class CampaignNotFoundError(ResourceNotFoundError):
    """Referenced campaign is absent. Raised before any write."""
    def __init__(self, campaign_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.campaign_id = campaign_id
        super().__init__("Campaign", campaign_id, ctx)
        self.code = "CAMPAIGN_NOT_FOUND"


class CampaignNotOpenError(FundFlowError):
    """Campaign exists but does not accept contributions (direct path only)."""
    def __init__(
        self, campaign_id: str, status: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.campaign_id = campaign_id
        super().__init__(
            f"Campaign '{campaign_id}' is not open for contributions (status: {status})",
            "CAMPAIGN_NOT_OPEN", ErrorCategory.PRECONDITION_FAILED,
            ErrorSeverity.ERROR, ctx, 422,
        )
        self.status = status


class PaymentNotCompletedError(FundFlowError):
    """Client asked to confirm a payment the gateway has not completed."""
    def __init__(
        self, external_reference: str, status: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.external_reference = external_reference
        super().__init__(
            f"Payment not completed. Status: {status}",
            "PAYMENT_NOT_COMPLETED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, ctx, 400,
        )
        self.status = status


# ─── Conflict Errors (409) ──────────────────────────────────────

class DuplicateReferenceError(FundFlowError):
    """Insert hit the unique constraint on external_reference."""
    def __init__(self, external_reference: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.external_reference = external_reference
        super().__init__(
            f"Donation with reference '{external_reference}' already exists",
            "DUPLICATE_REFERENCE", ErrorCategory.CONFLICT,
            ErrorSeverity.INFO, ctx, 409,
        )
        self.external_reference = external_reference


class WriteConflictError(FundFlowError):
    """Concurrent write conflict persisted after bounded retries. Safe to retry."""
    def __init__(
        self, attempts: int, retry_after_ms: int = 100,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Write conflict persisted after {attempts} attempt(s)",
            "WRITE_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx, 409,
        )
        self.attempts = attempts


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(FundFlowError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class PaymentGatewayError(FundFlowError):
    """Payment gateway call failed or returned an unusable payload."""
    def __init__(
        self,
        message: str,
        gateway_error_type: str,
        http_status: int = 502,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Payment gateway error ({gateway_error_type}): {message}",
            "PAYMENT_GATEWAY_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, http_status,
        )
        self.gateway_error_type = gateway_error_type
