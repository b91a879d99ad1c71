"""
Error classifier mapping failures to user-facing messages.

Every failure of a round trip is classified once, logged once with full detail
for operators, and rendered once as a short, non-leaking user message.
"""

import re
from typing import Any, Optional

import httpx

from ..logging.config import get_error_logger
from .classified import (
    ClassifiedError,
    ErrorKind,
    InvalidDateError,
    ServiceFailureError,
    TransportFailureError,
    UnknownError,
)

GENERIC_FAILURE_MESSAGE = "Sorry, there was an error processing your request."
UNKNOWN_TOKEN_MESSAGE = "Sorry, that is an unknown asset."
UNPARSEABLE_DATE_MESSAGE = "Error: could not read the selected date."
MAX_DETAIL_LENGTH = 120

_REDACTIONS = (
    # Telegram bot tokens
    (re.compile(r"(?<!\d)\d{6,}:[A-Za-z0-9_-]{30,}"), "***"),
    # Credentials embedded in URLs
    (re.compile(r"(\w+://)[^/\s:@]+:[^/\s@]+@"), r"\1***@"),
    # key=value / "key": "value" style secrets
    (re.compile(r"(?i)\b(api[_-]?key|access[_-]?token|token|secret|password|authorization)"
                r"(\"?\s*[:=]\s*\"?)(?:bearer\s+)?[^\s\"'&,}]+"), r"\1\2***"),
)


def sanitize_detail(detail: Optional[str]) -> Optional[str]:
    """
    Make an error detail safe to show to an end user.

    Collapses it to one line, redacts credentials and truncates it. Stack
    traces are dropped entirely.
    """
    if not detail:
        return None

    if "Traceback (most recent call last)" in detail:
        return None

    text = " ".join(detail.split())
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)

    if len(text) > MAX_DETAIL_LENGTH:
        text = text[:MAX_DETAIL_LENGTH - 3].rstrip() + "..."

    return text or None


class ErrorClassifier:
    """Maps exceptions onto the error taxonomy and user-facing text."""

    def __init__(self, baseline_label: str = "January 23, 2024", include_details: bool = True):
        self.baseline_label = baseline_label
        self.include_details = include_details
        self.logger = get_error_logger(__name__)

    def classify(self, exc: BaseException) -> ClassifiedError:
        """Return ``exc`` as a ClassifiedError, wrapping it if needed."""
        if isinstance(exc, ClassifiedError):
            return exc

        if isinstance(exc, httpx.HTTPStatusError):
            status_code = exc.response.status_code
            detail = f"HTTP {status_code}"
            if status_code >= 500:
                return TransportFailureError(str(exc), status_code=status_code, detail=detail)
            return ServiceFailureError(str(exc), status_code=status_code, detail=detail)

        if isinstance(exc, httpx.TransportError):
            return TransportFailureError(
                str(exc),
                detail=f"network error ({type(exc).__name__})"
            )

        return UnknownError(f"{type(exc).__name__}: {exc}", cause=exc)

    def user_message(self, error: ClassifiedError) -> str:
        """Short message safe to send to the end user."""
        if error.kind == ErrorKind.INVALID_TOKEN:
            return UNKNOWN_TOKEN_MESSAGE

        if error.kind == ErrorKind.INVALID_DATE:
            if isinstance(error, InvalidDateError) and error.reason == InvalidDateError.UNPARSEABLE:
                return UNPARSEABLE_DATE_MESSAGE
            return f"Error: date must not precede the baseline date ({self.baseline_label})."

        if error.kind in (ErrorKind.TRANSPORT_FAILURE, ErrorKind.SERVICE_FAILURE):
            detail = sanitize_detail(error.detail) if self.include_details else None
            if detail:
                return f"{GENERIC_FAILURE_MESSAGE} Details: {detail}"
            return GENERIC_FAILURE_MESSAGE

        return GENERIC_FAILURE_MESSAGE

    def report(self, error: ClassifiedError, conversation_id: str, **context: Any) -> None:
        """Log the full error for operators."""
        bound_logger = self.logger.bind(
            conversation_id=conversation_id,
            error_kind=error.kind.value,
            error=str(error),
            detail=error.detail,
            recoverable=error.recoverable,
        )
        if error.context:
            bound_logger = bound_logger.bind(error_context=error.context)
        if context:
            bound_logger = bound_logger.bind(**context)

        if error.kind in (ErrorKind.INVALID_TOKEN, ErrorKind.INVALID_DATE):
            bound_logger.warning("Request rejected")
        elif isinstance(error, UnknownError) and error.cause is not None:
            bound_logger.error("Request failed", exc_info=error.cause)
        else:
            bound_logger.error("Request failed")

    def handle(self, exc: BaseException, conversation_id: str, **context: Any) -> str:
        """Classify, report and render ``exc`` in one step."""
        error = self.classify(exc)
        self.report(error, conversation_id, **context)
        return self.user_message(error)
