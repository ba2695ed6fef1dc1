"""Error Hierarchy: typed, categorized exceptions for every Quill failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are raised before any remote call
    - Infrastructure errors (500-level) wrap a failed store, storage or identity call
    - UploadFailure is WARNING severity: callers downgrade it instead of aborting
    - to_response() never includes debug_info
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
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    STORAGE = "storage"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    post_id: str | None = None
    comment_id: str | None = None
    user_id: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class QuillError(Exception):
    """Base exception for all Quill errors."""

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
    def recoverable(self) -> bool:
        return self.severity in (ErrorSeverity.INFO, ErrorSeverity.WARNING)

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "recoverable": self.recoverable,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "post_id": self.context.post_id,
                    "comment_id": self.context.comment_id,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InputValidationError(QuillError):
    """Empty, oversized or malformed input, caught before any remote call."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class WeakPasswordError(QuillError):
    """Password rejected for length, locally or by the identity provider."""
    def __init__(self, min_length: int = 6, context: ErrorContext | None = None):
        super().__init__(
            f"Password must be at least {min_length} characters",
            "WEAK_PASSWORD", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.min_length = min_length


class NotAuthenticatedError(QuillError):
    """Operation requires a signed-in identity and there is none."""
    def __init__(self, action: str, context: ErrorContext | None = None):
        super().__init__(
            f"You must be signed in to {action}",
            "NOT_AUTHENTICATED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.ERROR, context, 401,
        )
        self.action = action


class InvalidCredentialsError(QuillError):
    """Email/password pair rejected by the identity provider."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Invalid email or password",
            "INVALID_CREDENTIALS", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.ERROR, context, 401,
        )


class PermissionDeniedError(QuillError):
    """Identity is present but does not own the entity."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Only the author can modify {resource_type} '{resource_id}'",
            "PERMISSION_DENIED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.ERROR, context, 403,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class NotFoundError(QuillError):
    """Requested entity does not exist."""
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


class EmailInUseError(QuillError):
    """Sign-up attempted with an email that already has an account."""
    def __init__(self, email: str, context: ErrorContext | None = None):
        super().__init__(
            f"An account already exists for {email}",
            "EMAIL_IN_USE", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.email = email


class UploadFailure(QuillError):
    """Image upload failed. Non-fatal: the dependent write proceeds without the image."""
    def __init__(self, message: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Image upload failed: {message}",
            "UPLOAD_FAILED", ErrorCategory.STORAGE,
            ErrorSeverity.WARNING, context, 422,
        )
        self.reason = reason


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(QuillError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class WriteError(QuillError):
    """A create or delete against the document store failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Could not {operation}: {message}",
            "WRITE_FAILED", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class NetworkUnavailableError(QuillError):
    """Remote service unreachable or returned a server error."""
    def __init__(self, service: str, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"{service} unavailable: {message}",
            "NETWORK_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.service = service
