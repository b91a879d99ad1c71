"""Telegram wiring for the conversation tracker."""

import hashlib
from typing import Sequence

import structlog
from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from ..state.models import EventType, InboundEvent
from ..state.tracker import ConversationTracker
from .base import BaseMessageTransport, Choice
from .date_picker import InlineCalendarPicker, is_picker_callback

logger = structlog.get_logger(__name__)


class TelegramMessageTransport(BaseMessageTransport):
    """Sends tracker output through the Telegram Bot API."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_text(self, conversation_id: str, text: str) -> None:
        await self.bot.send_message(chat_id=int(conversation_id), text=text)

    async def send_choices(self, conversation_id: str, text: str, choices: Sequence[Choice]) -> None:
        keyboard = [[InlineKeyboardButton(label, callback_data=payload)] for label, payload in choices]
        await self.bot.send_message(
            chat_id=int(conversation_id),
            text=text,
            reply_markup=InlineKeyboardMarkup(keyboard)
        )


class TelegramEventRouter:
    """Turns Telegram updates into tracker events."""

    def __init__(self, tracker: ConversationTracker, date_picker: InlineCalendarPicker):
        self.tracker = tracker
        self.date_picker = date_picker

    async def on_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        chat = update.effective_chat
        if message is None or chat is None or not message.text:
            return

        await self.tracker.handle_event(InboundEvent(str(chat.id), EventType.COMMAND, message.text))

    async def on_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        query = update.callback_query
        if query is None:
            return

        if is_picker_callback(query.data):
            await self.date_picker.handle_callback(query)
            return

        await query.answer()
        if query.message is None or not query.data:
            return

        await self.tracker.handle_event(
            InboundEvent(str(query.message.chat.id), EventType.SELECTION, query.data)
        )

    async def on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        logger.error(
            "Unhandled error while processing update",
            update_id=getattr(update, "update_id", None),
            exc_info=context.error
        )

    def register(self, application: Application) -> None:
        """Attach handlers to the application."""
        application.add_handler(MessageHandler(filters.TEXT, self.on_message))
        application.add_handler(CallbackQueryHandler(self.on_callback))
        application.add_error_handler(self.on_error)


def webhook_path(bot_token: str) -> str:
    """Unguessable URL path for webhook delivery, derived from the token."""
    return "telegram/" + hashlib.sha256(bot_token.encode("utf-8")).hexdigest()[:32]
