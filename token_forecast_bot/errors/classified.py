"""
Classified errors for a prediction round trip.

Every failure between a user's date selection and the final reply ends up as
exactly one of these. The set is closed: ``ErrorKind`` has one member per
subclass, and ``ClassifiedError.kind`` is always set.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorKind(str, Enum):
    """Error taxonomy tags."""
    INVALID_TOKEN = "invalid_token"
    INVALID_DATE = "invalid_date"
    TRANSPORT_FAILURE = "transport_failure"
    SERVICE_FAILURE = "service_failure"
    UNKNOWN = "unknown"


class ClassifiedError(Exception):
    """Base class for round trip errors with a taxonomy tag."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, detail: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.detail = detail
        self.context = context or {}
        self.recoverable = False


class InvalidTokenError(ClassifiedError):
    """Selected symbol is not in the token catalog."""

    kind = ErrorKind.INVALID_TOKEN

    def __init__(self, message: str, symbol: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.symbol = symbol


class InvalidDateError(ClassifiedError):
    """Selected date is unparseable or precedes the baseline date."""

    kind = ErrorKind.INVALID_DATE

    UNPARSEABLE = "unparseable"
    BEFORE_BASELINE = "before_baseline"

    def __init__(self, message: str, raw_date: Optional[str] = None,
                 reason: str = BEFORE_BASELINE, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_date = raw_date
        self.reason = reason


class TransportFailureError(ClassifiedError):
    """Network errors, timeouts or 5xx responses that outlasted the retries."""

    kind = ErrorKind.TRANSPORT_FAILURE

    def __init__(self, message: str, attempts: int = 1,
                 status_code: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.attempts = attempts
        self.status_code = status_code
        self.recoverable = True


class ServiceFailureError(ClassifiedError):
    """4xx responses or a malformed successful response."""

    kind = ErrorKind.SERVICE_FAILURE

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class UnknownError(ClassifiedError):
    """Anything the other kinds do not cover."""

    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str, cause: Optional[BaseException] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.cause = cause
