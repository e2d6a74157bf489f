"""Call Mate Exception Hierarchy.

Provides structured error handling with context preservation
and HTTP status code mapping.
"""

from __future__ import annotations

from typing import Any


class CallMateError(Exception):
    """Base exception for all Call Mate errors.

    Provides:
    - Structured error context
    - HTTP status code mapping
    - Logging-friendly representation
    """

    status_code: int = 500
    error_code: str = "CALLMATE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Additional context for debugging
            cause: Original exception if wrapping
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """String representation for logging."""
        parts = [f"{self.error_code}: {self.message}"]
        if self.details:
            parts.append(f"details={self.details}")
        if self.cause:
            parts.append(f"cause={self.cause}")
        return " | ".join(parts)


# =============================================================================
# Input Errors
# =============================================================================


class ValidationError(CallMateError):
    """Input violates a business constraint. Never persisted."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class InvalidTransitionError(ValidationError):
    """Requested document status is unknown or not reachable."""

    error_code = "INVALID_STATUS_TRANSITION"

    def __init__(
        self,
        document: str,
        current: str,
        target: str,
        *,
        allowed: list[str] | None = None,
    ) -> None:
        super().__init__(
            f"Cannot move {document} from '{current}' to '{target}'",
            details={
                "document": document,
                "current": current,
                "target": target,
                "allowed": allowed or [],
            },
        )
        self.current = current
        self.target = target


# =============================================================================
# Database Errors
# =============================================================================


class DatabaseError(CallMateError):
    """A database operation failed for a reason other than bad input."""

    status_code = 500
    error_code = "DATABASE_ERROR"


class RecordNotFoundError(CallMateError):
    """Requested record not found."""

    status_code = 404
    error_code = "RECORD_NOT_FOUND"

    def __init__(self, resource: str, record_id: Any) -> None:
        super().__init__(
            f"{resource} not found",
            details={"resource": resource, "id": str(record_id)},
        )


# =============================================================================
# Upstream Collaborator Errors
# =============================================================================


class UpstreamServiceError(CallMateError):
    """An external service (LLM, payments) failed.

    The upstream error text is kept in the message so the caller can
    see what went wrong.
    """

    status_code = 500
    error_code = "UPSTREAM_SERVICE_ERROR"

    def __init__(
        self,
        service: str,
        message: str,
        *,
        status: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        details: dict[str, Any] = {"service": service}
        if status is not None:
            details["upstream_status"] = status
        super().__init__(f"{service} request failed: {message}", details=details, cause=cause)
        self.service = service


class LLMError(UpstreamServiceError):
    """LLM completion failed or returned unusable content."""

    error_code = "LLM_ERROR"

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__("LLM", message, **kwargs)


class PaymentError(UpstreamServiceError):
    """Payment provider rejected or failed the request."""

    error_code = "PAYMENT_ERROR"

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__("Payments", message, **kwargs)
