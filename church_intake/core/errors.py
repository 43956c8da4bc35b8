"""Error Hierarchy — typed, categorized exceptions for all intake failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation/input/conflict errors are 4xx and recoverable; storage errors are 5xx
    - to_response() produces the REST envelope used by every route
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with IntakeError base: FastAPI global handler catches all (ADR: uniform error shape)
    - Errors double as Err payloads: services return them inside outcomes instead of raising
      for validation, input and conflict failures, so callers can render a specific message
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone

from church_intake.core.domain_types import ApprovalStatus, ValidationReason


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    CONFLICT = "conflict"
    INPUT = "input"
    STORAGE = "storage"
    SECURITY = "security"
    RESOURCE_NOT_FOUND = "resource_not_found"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    registration_id: str | None = None
    token_id: str | None = None
    actor_id: str | None = None
    debug_info: dict[str, Any] | None = None


class IntakeError(Exception):
    """Base exception for all registration intake errors."""

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
                    "registration_id": self.context.registration_id,
                    "token_id": self.context.token_id,
                },
            }
        }


# ─── Validation Errors ──────────────────────────────────────────

_REASON_MESSAGES = {
    ValidationReason.INVALID_FORMAT: "Registration link is malformed",
    ValidationReason.NOT_FOUND: "Registration link was not found",
    ValidationReason.INACTIVE: "Registration link is no longer active",
    ValidationReason.EXPIRED: "Registration link has expired",
    ValidationReason.EXHAUSTED: "Registration link has reached its maximum uses",
}


class TokenValidationError(IntakeError):
    """Token failed one of the ordered validation checks."""
    def __init__(self, reason: ValidationReason, context: ErrorContext | None = None):
        super().__init__(
            _REASON_MESSAGES[reason], reason.value, ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.reason = reason


# ─── Conflict Errors ────────────────────────────────────────────

class AlreadyProcessedError(IntakeError):
    """Disposition attempted on a record that already left its initial state."""
    def __init__(
        self, target_id: str, current_state: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"'{target_id}' was already processed (state: {current_state})",
            "ALREADY_PROCESSED", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.target_id = target_id
        self.current_state = current_state

    @classmethod
    def for_registration(
        cls, registration_id: str, status: ApprovalStatus,
    ) -> "AlreadyProcessedError":
        return cls(
            registration_id, status.value,
            ErrorContext(registration_id=registration_id),
        )


class ConcurrentExhaustionError(IntakeError):
    """Token validated but another submitter consumed the last use first."""
    def __init__(self, token_id: str, context: ErrorContext | None = None):
        super().__init__(
            "Registration link was used up while the form was being submitted",
            "CONCURRENT_EXHAUSTION", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context or ErrorContext(token_id=token_id), 409,
        )
        self.token_id = token_id


# ─── Input Errors ───────────────────────────────────────────────

class InvalidReasonError(IntakeError):
    """Rejection attempted without a reason."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "A rejection reason is required",
            "INVALID_REASON", ErrorCategory.INPUT,
            ErrorSeverity.ERROR, context, 400,
        )


class MissingRequiredFieldError(IntakeError):
    """Required form field missing or blank."""
    def __init__(self, field_name: str, context: ErrorContext | None = None):
        super().__init__(
            f"Field '{field_name}' is required",
            "MISSING_REQUIRED_FIELD", ErrorCategory.INPUT,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field_name


class InvalidTokenParametersError(IntakeError):
    """Token creation parameters out of range."""
    def __init__(self, field_name: str, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_TOKEN_PARAMETERS", ErrorCategory.INPUT,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field_name


class InvalidBatchError(IntakeError):
    """Bulk request is empty or repeats an id."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_BATCH", ErrorCategory.INPUT,
            ErrorSeverity.ERROR, context, 400,
        )


class ResourceNotFoundError(IntakeError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Security Errors ────────────────────────────────────────────

class UnauthorizedAccessError(IntakeError):
    """Actor's role does not allow the requested operation."""
    def __init__(self, actor_id: str, role: str, context: ErrorContext | None = None):
        super().__init__(
            "You are not allowed to perform this action",
            "UNAUTHORIZED_ACCESS", ErrorCategory.SECURITY,
            ErrorSeverity.ERROR, context or ErrorContext(actor_id=actor_id), 403,
        )
        self.actor_id = actor_id
        self.role = role


# ─── Storage Errors (500-level) ─────────────────────────────────

class DatabaseError(IntakeError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class PersistFailedError(IntakeError):
    """Pending registration could not be written. Not retried."""
    def __init__(self, cause: str, context: ErrorContext | None = None):
        super().__init__(
            "We could not save your registration. Please try again.",
            "PERSIST_FAILED", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.cause = cause


class GenerationExhaustedError(IntakeError):
    """Every generated token string collided with an existing one."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"Failed to generate a unique token after {attempts} attempts",
            "GENERATION_EXHAUSTED", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.attempts = attempts


class MemberCreationError(IntakeError):
    """Member directory refused or failed to create the member record."""
    def __init__(self, cause: str, context: ErrorContext | None = None):
        super().__init__(
            f"Member record could not be created: {cause}",
            "MEMBER_CREATION_FAILED", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.cause = cause


class AuditWriteError(IntakeError):
    """A required audit entry could not be written."""
    def __init__(self, action: str, context: ErrorContext | None = None):
        super().__init__(
            f"Audit entry for '{action}' could not be written",
            "AUDIT_WRITE_FAILED", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.action = action
