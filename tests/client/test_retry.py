"""Unit tests for the retry policy."""

import pytest

from token_forecast_bot.client.retry import (
    PermanentCallError,
    RetryableCallError,
    RetryExhaustedError,
    RetryPolicy,
)
from token_forecast_bot.config.defaults import RetryParams


class FlakyOperation:
    """Fails with the scripted errors, then returns a value."""

    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class TestRetryPolicyDelays:
    """Test backoff delay computation."""

    def test_exponential_delays(self) -> None:
        policy = RetryPolicy(base_delay_seconds=0.5, backoff_factor=2.0, max_delay_seconds=100)

        assert [policy.delay_for(n) for n in (1, 2, 3, 4)] == [0.5, 1.0, 2.0, 4.0]

    def test_delays_capped(self) -> None:
        policy = RetryPolicy(base_delay_seconds=1.0, backoff_factor=10.0, max_delay_seconds=5.0)

        assert policy.delay_for(1) == 1.0
        assert policy.delay_for(2) == 5.0
        assert policy.delay_for(3) == 5.0

    def test_invalid_retry_number(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy().delay_for(0)

    def test_from_params(self) -> None:
        policy = RetryPolicy.from_params(RetryParams(max_retries=5, base_delay_seconds=0.1))

        assert policy.max_retries == 5
        assert policy.max_attempts == 6
        assert policy.base_delay_seconds == 0.1

    @pytest.mark.parametrize("status", [500, 502, 503, 504, 599])
    def test_server_errors_retryable(self, status: int) -> None:
        assert RetryPolicy.is_retryable_status(status) is True

    @pytest.mark.parametrize("status", [200, 301, 400, 401, 404, 422, 429, 499])
    def test_other_statuses_not_retryable(self, status: int) -> None:
        assert RetryPolicy.is_retryable_status(status) is False


class TestRetryPolicyExecute:
    """Test the retry loop."""

    @pytest.mark.asyncio
    async def test_success_first_attempt(self, sleep_recorder) -> None:
        operation = FlakyOperation([])

        result = await RetryPolicy().execute(operation, sleep=sleep_recorder)

        assert result == "ok"
        assert operation.calls == 1
        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self, sleep_recorder) -> None:
        operation = FlakyOperation([RetryableCallError("boom"), RetryableCallError("boom")])

        result = await RetryPolicy().execute(operation, sleep=sleep_recorder)

        assert result == "ok"
        assert operation.calls == 3
        assert sleep_recorder.delays == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_exhausts_exactly_max_retries(self, sleep_recorder) -> None:
        errors = [RetryableCallError(f"boom {i}", status_code=503, detail=f"HTTP 503 #{i}") for i in range(10)]
        operation = FlakyOperation(errors)
        policy = RetryPolicy(max_retries=3)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await policy.execute(operation, sleep=sleep_recorder)

        assert operation.calls == 4
        assert exc_info.value.attempts == 4
        # Last observed error preserved
        assert exc_info.value.last_error.detail == "HTTP 503 #3"
        # Increasing delays between attempts
        assert sleep_recorder.delays == [0.5, 1.0, 2.0]
        assert sleep_recorder.delays == sorted(sleep_recorder.delays)

    @pytest.mark.asyncio
    async def test_permanent_error_not_retried(self, sleep_recorder) -> None:
        operation = FlakyOperation([PermanentCallError("bad request", status_code=400)])

        with pytest.raises(PermanentCallError):
            await RetryPolicy().execute(operation, sleep=sleep_recorder)

        assert operation.calls == 1
        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_permanent_error_after_retryable(self, sleep_recorder) -> None:
        operation = FlakyOperation([RetryableCallError("boom"), PermanentCallError("nope")])

        with pytest.raises(PermanentCallError):
            await RetryPolicy().execute(operation, sleep=sleep_recorder)

        assert operation.calls == 2
        assert sleep_recorder.delays == [0.5]

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, sleep_recorder) -> None:
        operation = FlakyOperation([KeyError("oops")])

        with pytest.raises(KeyError):
            await RetryPolicy().execute(operation, sleep=sleep_recorder)

        assert operation.calls == 1

    @pytest.mark.asyncio
    async def test_zero_retries(self, sleep_recorder) -> None:
        operation = FlakyOperation([RetryableCallError("boom")])

        with pytest.raises(RetryExhaustedError) as exc_info:
            await RetryPolicy(max_retries=0).execute(operation, sleep=sleep_recorder)

        assert exc_info.value.attempts == 1
        assert sleep_recorder.delays == []
