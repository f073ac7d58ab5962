"""
Error classification and sanitization for user-facing notices.

Prevents information leakage by mapping raw exceptions to a small set of
error classes and a generic notice per class.
"""

from __future__ import annotations

import re
from enum import Enum

import httpx
from pydantic import ValidationError

from mindchat.observability.logging import get_logger

logger = get_logger(__name__)


class ErrorClass(str, Enum):
    NETWORK = "network"
    API = "api"
    VALIDATION = "validation"
    INTERNAL = "internal"
    UNKNOWN = "unknown"


# Patterns that might leak sensitive information
SENSITIVE_PATTERNS = [
    # File paths
    r"/[^\s]+\.py",
    r"[A-Za-z]:\\[^\s]+",
    # Stack trace indicators
    r"Traceback \(most recent call last\)",
    r"File \".*\"",
    r"line \d+",
    # URLs with hosts or query strings
    r"https?://[^\s]+",
    # API keys / secrets patterns
    r"[A-Za-z0-9_-]{20,}",
    r"Bearer [A-Za-z0-9._-]+",
    # Internal module names
    r"mindchat\.[a-z_.]+",
]

GENERIC_NOTICES = {
    ErrorClass.NETWORK: "Connection problem. Check your network and try again.",
    ErrorClass.API: "The assistant is unavailable right now. Please try again shortly.",
    ErrorClass.VALIDATION: "That message could not be sent. Please check it and try again.",
    ErrorClass.INTERNAL: "Something went wrong. Please try again.",
    ErrorClass.UNKNOWN: "An error occurred. Please try again.",
}

_VALIDATION_STATUSES = {400, 413, 422}
_INTERNAL_TYPES = (AssertionError, AttributeError, KeyError, TypeError)


def classify_error(error: BaseException) -> ErrorClass:
    """
    Map an exception to an ErrorClass.

    Errors carrying a ``status_code`` attribute (backend adapter errors) are
    classified by status; a missing status means the request never got a
    response, which counts as a network failure.
    """
    if isinstance(error, (httpx.TransportError, ConnectionError, TimeoutError)):
        return ErrorClass.NETWORK
    if isinstance(error, (ValidationError, ValueError)):
        return ErrorClass.VALIDATION

    if hasattr(error, "status_code"):
        status = error.status_code
        if status is None:
            return ErrorClass.NETWORK
        if status in _VALIDATION_STATUSES:
            return ErrorClass.VALIDATION
        return ErrorClass.API

    if isinstance(error, httpx.HTTPStatusError):
        return ErrorClass.API
    if isinstance(error, _INTERNAL_TYPES):
        return ErrorClass.INTERNAL
    return ErrorClass.UNKNOWN


def sanitize_error_message(message: str, error_class: ErrorClass = ErrorClass.UNKNOWN) -> str:
    """
    Sanitize an error message to prevent information leakage.

    Short validation messages without structure pass through; everything
    else becomes the generic notice for its class.

    Returns:
        Sanitized error message safe to show to the user
    """
    if not message:
        return GENERIC_NOTICES[error_class]

    for pattern in SENSITIVE_PATTERNS:
        if re.search(pattern, message, re.IGNORECASE):
            logger.warning("Sanitized sensitive error pattern: %s", pattern)
            return GENERIC_NOTICES[error_class]

    if (
        error_class is ErrorClass.VALIDATION
        and len(message) < 100
        and not any(c in message for c in ["{", "}", "[", "]", "\n"])
    ):
        return message

    return GENERIC_NOTICES[error_class]


def user_error_notice(error_class: ErrorClass) -> str:
    return GENERIC_NOTICES[error_class]
