"""Bounded exponential-backoff retry policy for outbound calls."""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from ..config.defaults import RetryParams

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CallError(Exception):
    """Base exception for a single failed call attempt."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class RetryableCallError(CallError):
    """Transient failure: connection error, timeout or 5xx status."""
    pass


class PermanentCallError(CallError):
    """Failure that should not be retried, e.g. a 4xx status."""
    pass


class RetryExhaustedError(Exception):
    """All attempts failed with retryable errors."""

    def __init__(self, message: str, attempts: int, last_error: RetryableCallError):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry policy: one initial attempt plus up to ``max_retries`` retries.

    The delay before retry ``n`` (1-based) is
    ``base_delay_seconds * backoff_factor ** (n - 1)``, capped at
    ``max_delay_seconds``.
    """

    max_retries: int = 3
    base_delay_seconds: float = 0.5
    backoff_factor: float = 2.0
    max_delay_seconds: float = 8.0

    @classmethod
    def from_params(cls, params: RetryParams) -> "RetryPolicy":
        """Create a policy from configuration parameters."""
        return cls(
            max_retries=params.max_retries,
            base_delay_seconds=params.base_delay_seconds,
            backoff_factor=params.backoff_factor,
            max_delay_seconds=params.max_delay_seconds,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, retry_number: int) -> float:
        """Backoff delay in seconds before the given retry (1-based)."""
        if retry_number < 1:
            raise ValueError(f"retry_number must be >= 1, got {retry_number}")
        delay = self.base_delay_seconds * (self.backoff_factor ** (retry_number - 1))
        return min(delay, self.max_delay_seconds)

    @staticmethod
    def is_retryable_status(status_code: int) -> bool:
        """Server errors are retryable, everything else is final."""
        return 500 <= status_code < 600

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        operation_name: str = "call"
    ) -> T:
        """
        Run ``operation`` until it succeeds or the retries are used up.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt
            sleep: Awaitable sleep used between attempts
            operation_name: Name used in log entries

        Returns:
            The operation's result

        Raises:
            PermanentCallError: Immediately, without retrying
            RetryExhaustedError: After ``max_attempts`` retryable failures
        """
        attempt = 0

        while True:
            attempt += 1
            try:
                return await operation()

            except PermanentCallError:
                # Don't retry permanent errors
                raise

            except RetryableCallError as e:
                if attempt > self.max_retries:
                    logger.error(
                        "Retries exhausted",
                        operation=operation_name,
                        attempts=attempt,
                        error=str(e)
                    )
                    raise RetryExhaustedError(
                        f"{operation_name} failed after {attempt} attempts: {e}",
                        attempts=attempt,
                        last_error=e
                    ) from e

                delay = self.delay_for(attempt)
                logger.warning(
                    "Attempt failed, retrying",
                    operation=operation_name,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    retry_in_seconds=delay,
                    error=str(e)
                )
                await sleep(delay)
