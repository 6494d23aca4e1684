"""Error Hierarchy — typed, categorized exceptions for all Tourbook failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client errors (400-level) are operational; infrastructure errors (500-level) are critical
    - to_response() produces the REST error envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with TourbookError base: one FastAPI handler catches all (ADR: uniform error shape)
    - Resource handlers raise only DocumentNotFoundError; every other kind originates in the store
      and travels to the error boundary untouched
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


NOT_FOUND_MESSAGE = "No document found with that ID"


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    INVALID_QUERY = "invalid_query"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resource: str | None = None
    document_id: str | None = None
    details: list[dict[str, Any]] | None = None


class TourbookError(Exception):
    """Base exception for all Tourbook errors."""

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

    @property
    def status(self) -> str:
        """'fail' for client errors, 'error' for server errors."""
        return "fail" if 400 <= self.http_status < 500 else "error"

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        error: dict[str, Any] = {
            "code": self.code,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
        }
        if self.context.resource:
            error["resource"] = self.context.resource
        if self.context.document_id:
            error["document_id"] = self.context.document_id
        if self.context.details:
            error["details"] = self.context.details
        return {"status": self.status, "message": self.message, "error": error}


# ─── Client Errors (400-level) ──────────────────────────────────

class DocumentNotFoundError(TourbookError):
    """Lookup by identifier returned nothing."""
    def __init__(
        self, resource: str, document_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.resource = resource
        ctx.document_id = document_id
        super().__init__(
            NOT_FOUND_MESSAGE, "DOCUMENT_NOT_FOUND",
            ErrorCategory.RESOURCE_NOT_FOUND, ErrorSeverity.ERROR, ctx, 404,
        )


class DocumentValidationError(TourbookError):
    """Document rejected by the resource schema."""
    def __init__(
        self,
        resource: str,
        details: list[dict[str, Any]],
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.resource = resource
        ctx.details = details
        messages = ". ".join(d["message"] for d in details)
        super().__init__(
            f"Invalid input data. {messages}", "VALIDATION_ERROR",
            ErrorCategory.VALIDATION, ErrorSeverity.ERROR, ctx, 400,
        )
        self.details = details


class DuplicateKeyError(TourbookError):
    """Uniqueness constraint violated by a write."""
    def __init__(self, resource: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.resource = resource
        super().__init__(
            "Duplicate field value. Please use a different value.",
            "DUPLICATE_KEY", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )


class InvalidQueryError(TourbookError):
    """Query directive the store cannot execute (bad field, operator or value)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_QUERY", ErrorCategory.INVALID_QUERY,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ConcurrencyError(TourbookError):
    """Concurrent modification detected."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(TourbookError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
