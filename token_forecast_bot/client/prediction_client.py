"""HTTP client for the remote prediction service."""

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import urlparse

import httpx
import orjson
import structlog

from ..config.defaults import DefaultConfig
from ..data.models import PredictionRequest, PredictionResponse
from ..errors import ConfigurationError, ServiceFailureError, TransportFailureError
from .retry import PermanentCallError, RetryableCallError, RetryExhaustedError, RetryPolicy

logger = structlog.get_logger(__name__)

EXCERPT_LENGTH = 200


class PredictionClient:
    """
    Posts prediction requests and parses the returned predictions.

    Transient failures (network errors, per-attempt timeouts, 5xx) are retried
    under ``retry_policy``; 4xx and malformed bodies fail immediately.
    """

    def __init__(
        self,
        endpoint_url: str,
        retry_policy: Optional[RetryPolicy] = None,
        timeout_seconds: float = 10.0,
        headers: Optional[dict[str, str]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        # Validate URL
        parsed = urlparse(endpoint_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(f"Invalid prediction endpoint URL: {endpoint_url!r}",
                                     setting="endpoint_url")

        self.endpoint_url = endpoint_url
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout_seconds = timeout_seconds
        self.headers = {
            "Content-Type": "application/json",
            "User-Agent": "token-forecast-bot/0.1",
        }
        if headers:
            self.headers.update(headers)

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._sleep = sleep
        self.logger = logger

        self._request_count = 0
        self._error_count = 0

    @classmethod
    def from_config(cls, config: DefaultConfig, **kwargs: Any) -> "PredictionClient":
        """Create a client from the loaded configuration."""
        return cls(
            endpoint_url=config.prediction.endpoint_url,
            retry_policy=RetryPolicy.from_params(config.retry),
            timeout_seconds=config.prediction.timeout_seconds,
            headers={"User-Agent": config.prediction.user_agent},
            **kwargs
        )

    async def predict(self, request: PredictionRequest) -> PredictionResponse:
        """
        Issue a prediction request.

        Args:
            request: Normalized prediction request

        Returns:
            The full prediction sequence

        Raises:
            TransportFailureError: Retryable failures outlasted the retry policy
            ServiceFailureError: 4xx response or malformed body
        """
        payload = orjson.dumps(request.to_payload())
        self._request_count += 1

        try:
            body = await self.retry_policy.execute(
                lambda: self._post_once(payload),
                sleep=self._sleep,
                operation_name="prediction_request"
            )
        except RetryExhaustedError as e:
            self._error_count += 1
            last_error = e.last_error
            raise TransportFailureError(
                f"Prediction service unavailable after {e.attempts} attempts",
                attempts=e.attempts,
                status_code=last_error.status_code,
                detail=last_error.detail
            ) from e
        except PermanentCallError as e:
            self._error_count += 1
            raise ServiceFailureError(
                f"Prediction service rejected the request: {e}",
                status_code=e.status_code,
                detail=e.detail
            ) from e

        try:
            return self._parse_response(body)
        except ServiceFailureError:
            self._error_count += 1
            raise

    async def _post_once(self, payload: bytes) -> bytes:
        """Single POST attempt, mapping failures onto retry categories."""
        start_time = time.monotonic()
        try:
            response = await self._client.post(
                self.endpoint_url,
                content=payload,
                headers=self.headers,
                timeout=self.timeout_seconds
            )
        except httpx.TimeoutException as e:
            self.logger.warning(
                "Prediction request timed out",
                timeout_seconds=self.timeout_seconds,
                error_type=type(e).__name__
            )
            raise RetryableCallError(
                f"Timed out after {self.timeout_seconds}s",
                detail="request timed out"
            ) from e
        except httpx.TransportError as e:
            self.logger.warning(
                "Prediction request network error",
                error_type=type(e).__name__,
                error=str(e)
            )
            raise RetryableCallError(
                f"Network error: {e}",
                detail=f"network error ({type(e).__name__})"
            ) from e

        latency_ms = int((time.monotonic() - start_time) * 1000)
        status_code = response.status_code

        if 200 <= status_code < 300:
            self.logger.info(
                "Prediction request succeeded",
                status_code=status_code,
                latency_ms=latency_ms
            )
            return response.content

        excerpt = response.text[:EXCERPT_LENGTH]
        self.logger.warning(
            "Prediction request failed with HTTP error",
            status_code=status_code,
            latency_ms=latency_ms,
            response_data=excerpt
        )

        error_msg = f"HTTP {status_code}"
        detail = f"HTTP {status_code}: {excerpt}" if excerpt else error_msg
        if self.retry_policy.is_retryable_status(status_code):
            raise RetryableCallError(error_msg, status_code=status_code, detail=detail)
        raise PermanentCallError(error_msg, status_code=status_code, detail=detail)

    def _parse_response(self, body: bytes) -> PredictionResponse:
        """Require a non-empty numeric list under ``predictions``."""
        try:
            data = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise ServiceFailureError(
                "Prediction response is not valid JSON",
                detail="malformed response body"
            ) from e

        predictions = data.get("predictions") if isinstance(data, dict) else None
        if not isinstance(predictions, list) or not predictions:
            raise ServiceFailureError(
                "Prediction response has no predictions",
                detail="response missing predictions"
            )

        for value in predictions:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ServiceFailureError(
                    f"Non-numeric prediction value: {value!r}",
                    detail="response contains non-numeric predictions"
                )

        return PredictionResponse(predictions=tuple(predictions))

    def get_stats(self) -> dict[str, Any]:
        """Get request statistics."""
        return {
            "endpoint_host": urlparse(self.endpoint_url).netloc,
            "request_count": self._request_count,
            "error_count": self._error_count,
            "success_rate": (
                (self._request_count - self._error_count) / self._request_count
                if self._request_count > 0 else 0.0
            )
        }

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "PredictionClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
