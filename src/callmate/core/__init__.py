"""Core utilities: logging setup and the exception hierarchy."""

from callmate.core.exceptions import (
    CallMateError,
    ValidationError,
    InvalidTransitionError,
    DatabaseError,
    RecordNotFoundError,
    UpstreamServiceError,
    LLMError,
    PaymentError,
)
from callmate.core.log import get_logger, setup_logging

__all__ = [
    "CallMateError",
    "ValidationError",
    "InvalidTransitionError",
    "DatabaseError",
    "RecordNotFoundError",
    "UpstreamServiceError",
    "LLMError",
    "PaymentError",
    "get_logger",
    "setup_logging",
]
