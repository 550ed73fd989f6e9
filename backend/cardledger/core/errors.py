"""Error Hierarchy — typed, categorized exceptions for all CardLedger failure modes.

Invariants:
    - Every error has a code (str), kind (ErrorKind), severity (ErrorSeverity)
    - Caller/state errors (400/404/409) are never retryable; store failures (503) are
    - to_response() produces the REST envelope
    - No internal details (driver messages, connection strings) in user-facing messages

Design Decisions:
    - Single hierarchy with CardLedgerError base: FastAPI global handler catches all
    - ErrorKind mirrors the five failure kinds callers branch on; code is the finer-grained tag
    - ErrorContext as dataclass: identifiers for observability without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorKind(str, Enum):
    """Failure kinds surfaced to the request shell."""
    NOT_FOUND = "not_found"
    DUPLICATE_UID = "duplicate_uid"
    INVALID_STATE = "invalid_state"
    INVALID_INPUT = "invalid_input"
    STORE_FAILURE = "store_failure"


@dataclass
class ErrorContext:
    """Identifiers attached to an error for logs and responses."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    card_id: int | None = None
    uid: str | None = None
    assignment_id: int | None = None


class CardLedgerError(Exception):
    """Base exception for all CardLedger errors."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: str,
        kind: ErrorKind,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.kind = kind
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "kind": self.kind.value,
                "message": self.message,
                "severity": self.severity.value,
                "retryable": self.retryable,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "card_id": self.context.card_id,
                    "uid": self.context.uid,
                    "assignment_id": self.context.assignment_id,
                },
            }
        }


# ─── Caller / State Errors ──────────────────────────────────────

class ResourceNotFoundError(CardLedgerError):
    """Requested card, uid or assignment does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str | int,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorKind.NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class DuplicateUidError(CardLedgerError):
    """A live card already carries this uid."""
    def __init__(self, uid: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.uid = uid
        super().__init__(
            f"A card with uid '{uid}' already exists",
            "DUPLICATE_UID", ErrorKind.DUPLICATE_UID,
            ErrorSeverity.WARNING, ctx, 409,
        )
        self.uid = uid


class InvalidInputError(CardLedgerError):
    """A required field is missing or blank."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_INPUT", ErrorKind.INVALID_INPUT,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class InvalidStateError(CardLedgerError):
    """Transition attempted from the wrong state."""
    def __init__(
        self, message: str, code: str = "INVALID_STATE",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorKind.INVALID_STATE,
            ErrorSeverity.WARNING, context, 409,
        )


class AlreadyClosedError(InvalidStateError):
    """Assignment already has a return time."""
    def __init__(self, assignment_id: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.assignment_id = assignment_id
        super().__init__(
            f"Assignment '{assignment_id}' is already closed",
            "ASSIGNMENT_ALREADY_CLOSED", ctx,
        )


class ConsistencyError(InvalidStateError):
    """Ledger and registry disagree (e.g. two open assignments for one card)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(message, "CONSISTENCY_FAULT", context)
        self.severity = ErrorSeverity.CRITICAL


# ─── Store Errors (503, retryable) ──────────────────────────────

class DatabaseError(CardLedgerError):
    """Database operation failed."""

    retryable = True

    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorKind.STORE_FAILURE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class StoreTimeoutError(DatabaseError):
    """Store call or card transition slot did not complete in time."""
    def __init__(self, operation: str, timeout_seconds: float, context: ErrorContext | None = None):
        super().__init__(
            f"timed out after {timeout_seconds:g}s", operation, context,
        )
        self.code = "STORE_TIMEOUT"
        self.timeout_seconds = timeout_seconds
