"""
Error classification system for the token forecast bot.

This module provides the closed taxonomy of errors a prediction round trip can
end in, plus system-level failures raised at startup.
"""

from .classified import (
    ErrorKind,
    ClassifiedError,
    InvalidTokenError,
    InvalidDateError,
    TransportFailureError,
    ServiceFailureError,
    UnknownError,
)
from .system_failures import (
    SystemFailureError,
    ConfigurationError,
    StateTransitionError,
)

__all__ = [
    # Round trip errors
    "ErrorKind",
    "ClassifiedError",
    "InvalidTokenError",
    "InvalidDateError",
    "TransportFailureError",
    "ServiceFailureError",
    "UnknownError",
    # System Failures
    "SystemFailureError",
    "ConfigurationError",
    "StateTransitionError",
]
