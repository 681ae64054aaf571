"""Error Hierarchy — typed, categorized exceptions for every core failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - retryable is True only for transient failures (NetworkError)
    - to_event() produces the payload carried on the browser event channel
    - TypeChartConfigError is raised at load time only, never per call

Design Decisions:
    - Single hierarchy with DexError base: callers catch one type and branch on code
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and caller handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    EXTERNAL_API = "external_api"
    STORAGE = "storage"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    species_id: str | None = None
    cache_key: str | None = None
    url: str | None = None
    attempt: int | None = None
    debug_info: dict[str, Any] | None = None


class DexError(Exception):
    """Base exception for all pokedex core errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.retryable = retryable

    def to_event(self) -> dict:
        """Convert to the error payload sent to the presentation layer."""
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "retryable": self.retryable,
            "timestamp": self.context.timestamp.isoformat(),
            "species_id": self.context.species_id,
        }


# ─── Remote Data Errors ─────────────────────────────────────────

class NotFoundError(DexError):
    """Identifier outside the known catalog. Permanent, never retried."""
    def __init__(
        self, resource_type: str, identifier: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{identifier}' not found",
            "NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context,
        )
        self.resource_type = resource_type
        self.identifier = identifier


class NetworkError(DexError):
    """Timeout or connection failure. Transient, retried before surfacing."""
    def __init__(
        self, message: str, attempts: int = 1, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Network failure after {attempts} attempt(s): {message}",
            "NETWORK_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, retryable=True,
        )
        self.attempts = attempts


class MalformedError(DexError):
    """Response does not parse into the expected shape. Permanent."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Malformed response: {message}",
            "MALFORMED_RESPONSE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context,
        )


# ─── Local Errors ───────────────────────────────────────────────

class CacheIOError(DexError):
    """Local storage failure. Logged and degraded, never user-facing."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cache {operation} failed: {message}",
            "CACHE_IO_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.WARNING, context,
        )
        self.operation = operation


class InvalidInputError(DexError):
    """Programming error at a core boundary (e.g. empty team)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_INPUT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context,
        )
        self.field = field


class TypeChartConfigError(DexError):
    """Static type data references an unknown type. Fatal at startup."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "TYPE_CHART_CONFIG", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context,
        )
