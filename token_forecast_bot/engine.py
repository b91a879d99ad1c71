"""
Main bot coordinator.

Loads configuration, wires the prediction client, request normalizer and
conversation tracker to the Telegram transport, and runs the bot:

Telegram update → Tracker → Normalizer → Prediction Client → Reply
"""

from pathlib import Path
from typing import Optional

import structlog
from telegram.ext import Application

from .client.prediction_client import PredictionClient
from .config.defaults import DefaultConfig
from .config.loader import ConfigLoader
from .data.catalog import default_catalog
from .data.request_normalizer import RequestNormalizer
from .errors import ConfigurationError
from .errors.classifier import ErrorClassifier
from .logging.config import configure_logging
from .state.tracker import ConversationTracker
from .transport.base import BaseDatePicker, BaseMessageTransport
from .transport.date_picker import InlineCalendarPicker
from .transport.telegram import TelegramEventRouter, TelegramMessageTransport, webhook_path

logger = structlog.get_logger(__name__)


def build_tracker(
    config: DefaultConfig,
    transport: BaseMessageTransport,
    date_picker: BaseDatePicker,
    client: PredictionClient
) -> ConversationTracker:
    """Create a conversation tracker from configuration and collaborators."""
    normalizer = RequestNormalizer(
        catalog=default_catalog,
        baseline=config.baseline,
        signature_name=config.prediction.signature_name,
    )
    classifier = ErrorClassifier(
        baseline_label=config.baseline.baseline_date.strftime("%B %d, %Y").replace(" 0", " ")
    )

    return ConversationTracker(
        transport=transport,
        date_picker=date_picker,
        client=client,
        normalizer=normalizer,
        catalog=default_catalog,
        classifier=classifier,
        trigger_command=config.conversation.trigger_command,
        idle_expiry_seconds=config.conversation.idle_expiry_seconds,
    )


class ForecastBot:
    """Owns the Telegram application and the prediction client."""

    def __init__(self, config: DefaultConfig) -> None:
        if not config.transport.bot_token:
            raise ConfigurationError("TELEGRAM_BOT_TOKEN is not set", setting="bot_token")
        if not config.prediction.endpoint_url:
            raise ConfigurationError("MODEL_API_URL is not set", setting="endpoint_url")

        self.config = config
        self.client = PredictionClient.from_config(config)
        self.application = (
            Application.builder()
            .token(config.transport.bot_token)
            .concurrent_updates(True)
            .post_shutdown(self._on_shutdown)
            .build()
        )

        bot = self.application.bot
        self.date_picker = InlineCalendarPicker(bot)
        self.tracker = build_tracker(config, TelegramMessageTransport(bot), self.date_picker, self.client)
        TelegramEventRouter(self.tracker, self.date_picker).register(self.application)

        logger.info(
            "Forecast bot initialized",
            tokens=len(default_catalog),
            baseline_date=config.baseline.baseline_date.isoformat(),
            rounding=config.baseline.rounding.value,
            max_retries=config.retry.max_retries,
            webhook=bool(config.transport.webhook_base_url)
        )

    async def _on_shutdown(self, application: Application) -> None:
        await self.client.aclose()
        logger.info(
            "Forecast bot stopped",
            conversations=len(self.tracker.store),
            awaiting_date=self.tracker.store.count_active(),
            **self.client.get_stats()
        )

    def run(self) -> None:
        """Run until interrupted, via webhook when a base URL is configured."""
        transport = self.config.transport
        if transport.webhook_base_url:
            url_path = webhook_path(transport.bot_token)
            self.application.run_webhook(
                listen="0.0.0.0",
                port=transport.webhook_port,
                url_path=url_path,
                webhook_url=f"{transport.webhook_base_url.rstrip('/')}/{url_path}",
            )
        else:
            self.application.run_polling()


def main(config_file: Optional[str] = None) -> None:
    """Console entry point."""
    loader = ConfigLoader.create(Path(config_file) if config_file else None)
    config = loader.load()
    configure_logging(level=config.logging.level, format_json=config.logging.format_json)

    ForecastBot(config).run()
