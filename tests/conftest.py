"""Pytest configuration and shared fixtures."""

import json
from typing import Any, Callable, Optional, Sequence

import httpx
import pytest

from token_forecast_bot.client.prediction_client import PredictionClient
from token_forecast_bot.client.retry import RetryPolicy
from token_forecast_bot.data.catalog import TokenCatalog
from token_forecast_bot.data.request_normalizer import RequestNormalizer
from token_forecast_bot.state.tracker import ConversationTracker
from token_forecast_bot.transport.base import BaseDatePicker, BaseMessageTransport, Choice

PREDICTION_URL = "http://model.test/v1/models/price:predict"


class RecordingTransport(BaseMessageTransport):
    """Message transport that records outbound messages."""

    def __init__(self):
        self.texts: list[tuple[str, str]] = []
        self.choices: list[tuple[str, str, list[Choice]]] = []

    async def send_text(self, conversation_id: str, text: str) -> None:
        self.texts.append((conversation_id, text))

    async def send_choices(self, conversation_id: str, text: str, choices: Sequence[Choice]) -> None:
        self.choices.append((conversation_id, text, list(choices)))

    def texts_for(self, conversation_id: str) -> list[str]:
        return [text for cid, text in self.texts if cid == conversation_id]


class RecordingDatePicker(BaseDatePicker):
    """Date picker that records which conversations were asked for a date."""

    def __init__(self, fail: bool = False):
        self.started: list[str] = []
        self.fail = fail

    async def begin_date_selection(self, conversation_id: str) -> None:
        if self.fail:
            raise RuntimeError("calendar unavailable")
        self.started.append(conversation_id)


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class PredictionService:
    """Scripted prediction service backed by httpx.MockTransport."""

    def __init__(self, responses: Optional[list[Any]] = None):
        # Each entry: httpx.Response, an exception instance, or a callable(request)
        self.responses = list(responses or [])
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(200, json={"predictions": [1.0]})

        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        if callable(response) and not isinstance(response, httpx.Response):
            return response(request)
        # Fresh copy, the last scripted response may be served repeatedly
        return httpx.Response(response.status_code, content=response.content,
                              headers=response.headers)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def request_bodies(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]

    def client(self, retry_policy: Optional[RetryPolicy] = None,
               sleep: Optional[Callable] = None) -> PredictionClient:
        return PredictionClient(
            PREDICTION_URL,
            retry_policy=retry_policy or RetryPolicy(),
            timeout_seconds=2.0,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(self)),
            sleep=sleep or SleepRecorder()
        )


@pytest.fixture
def catalog() -> TokenCatalog:
    return TokenCatalog()


@pytest.fixture
def normalizer(catalog: TokenCatalog) -> RequestNormalizer:
    return RequestNormalizer(catalog=catalog)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def date_picker() -> RecordingDatePicker:
    return RecordingDatePicker()


@pytest.fixture
def service() -> PredictionService:
    return PredictionService([httpx.Response(200, json={"predictions": [100.1, 101.4, 102.0]})])


@pytest.fixture
def tracker(transport, date_picker, service, sleep_recorder) -> ConversationTracker:
    return ConversationTracker(
        transport=transport,
        date_picker=date_picker,
        client=service.client(sleep=sleep_recorder),
    )


@pytest.fixture
def make_service() -> Callable[..., PredictionService]:
    """Factory for scripted prediction services."""
    return PredictionService


@pytest.fixture
def make_tracker(transport, date_picker, sleep_recorder) -> Callable[..., ConversationTracker]:
    """Factory for trackers wired to a given prediction service."""
    def _make(service: PredictionService, **kwargs: Any) -> ConversationTracker:
        retry_policy = kwargs.pop("retry_policy", None)
        return ConversationTracker(
            transport=kwargs.pop("transport", transport),
            date_picker=kwargs.pop("date_picker", date_picker),
            client=service.client(retry_policy=retry_policy, sleep=sleep_recorder),
            **kwargs
        )
    return _make
