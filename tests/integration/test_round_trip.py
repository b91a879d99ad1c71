"""Integration tests for the full command → token → date → reply round trip."""

from dataclasses import replace
from datetime import date

import httpx
import pytest

from token_forecast_bot.config.defaults import RoundingPolicy, get_default_config
from token_forecast_bot.engine import ForecastBot, build_tracker
from token_forecast_bot.errors import ConfigurationError


def configured(**baseline_overrides):
    defaults = get_default_config()
    return replace(
        defaults,
        baseline=replace(defaults.baseline, **baseline_overrides),
        prediction=replace(defaults.prediction, endpoint_url="http://model.test/v1/models/price:predict",
                           signature_name="predict_close"),
    )


@pytest.mark.integration
class TestRoundTrip:
    """Round trips through a tracker built from configuration."""

    @pytest.mark.asyncio
    async def test_worked_example(self, make_service, transport, date_picker, sleep_recorder) -> None:
        service = make_service([httpx.Response(200, json={"predictions": [100.1, 101.4, 102.0]})])
        config = configured()
        tracker = build_tracker(config, transport, date_picker, service.client(sleep=sleep_recorder))

        await tracker.handle_command("7", "/command1")
        await tracker.handle_selection("7", "ETH")
        await tracker.handle_selection("7", "2024/02/20")

        assert service.request_bodies() == [{"signature_name": "predict_close", "instances": [7.0, 9]}]
        assert transport.texts_for("7") == ["Predicted closing price for ETH on 2024/02/20: 102.0"]
        assert tracker.store.get("7").is_idle

    @pytest.mark.asyncio
    async def test_floor_rounding_from_config(self, make_service, transport, date_picker) -> None:
        service = make_service([httpx.Response(200, json={"predictions": [1.0]})])
        tracker = build_tracker(configured(rounding=RoundingPolicy.FLOOR), transport, date_picker,
                                service.client())

        await tracker.handle_command("7", "/command1")
        await tracker.handle_selection("7", "USDC")
        await tracker.handle_selection("7", "2024/02/22")

        assert service.request_bodies()[0]["instances"] == [7, 2]

    @pytest.mark.asyncio
    async def test_baseline_label_in_rejection(self, make_service, transport, date_picker) -> None:
        service = make_service()
        tracker = build_tracker(configured(baseline_date=date(2024, 3, 5)), transport, date_picker,
                                service.client())

        await tracker.handle_command("7", "/command1")
        await tracker.handle_selection("7", "ETH")
        await tracker.handle_selection("7", "2024/03/04")

        assert transport.texts_for("7") == [
            "Error: date must not precede the baseline date (March 5, 2024)."
        ]
        assert service.call_count == 0

    @pytest.mark.asyncio
    async def test_recovers_after_transient_outage(self, make_service, transport, date_picker,
                                                   sleep_recorder) -> None:
        service = make_service([
            httpx.ConnectError("connection refused"),
            httpx.Response(503, text="warming up"),
            httpx.Response(200, json={"predictions": [42.0]}),
        ])
        tracker = build_tracker(configured(), transport, date_picker, service.client(sleep=sleep_recorder))

        await tracker.handle_command("7", "/command1")
        await tracker.handle_selection("7", "LINK")
        await tracker.handle_selection("7", "2024/02/20")

        assert service.call_count == 3
        assert sleep_recorder.delays == [0.5, 1.0]
        assert transport.texts_for("7") == ["Predicted closing price for LINK on 2024/02/20: 42.0"]


@pytest.mark.integration
class TestForecastBotStartup:
    """Startup configuration checks."""

    def test_requires_bot_token(self) -> None:
        config = configured()

        with pytest.raises(ConfigurationError) as exc_info:
            ForecastBot(config)

        assert exc_info.value.setting == "bot_token"

    def test_requires_endpoint(self) -> None:
        defaults = get_default_config()
        config = replace(defaults, transport=replace(defaults.transport, bot_token="123:abc"))

        with pytest.raises(ConfigurationError) as exc_info:
            ForecastBot(config)

        assert exc_info.value.setting == "endpoint_url"
