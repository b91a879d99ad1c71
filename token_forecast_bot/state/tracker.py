"""
Conversation state tracker.

Drives the two-step selection round trip for each conversation:

    IDLE --command--> IDLE            (token list sent)
    IDLE --token--> AWAITING_DATE     (date picker started)
    AWAITING_DATE --date--> IDLE      (prediction requested, reply sent)

The AWAITING_DATE -> IDLE transition happens in a ``finally`` block, so no
outcome of the prediction round trip can leave a conversation waiting.
"""

import asyncio
from typing import Optional

from ..client.prediction_client import PredictionClient
from ..data.catalog import TokenCatalog, default_catalog
from ..data.request_normalizer import RequestNormalizer
from ..errors import InvalidTokenError
from ..errors.classifier import ErrorClassifier
from ..logging.config import get_state_logger, log_state_transition
from ..transport.base import BaseDatePicker, BaseMessageTransport
from .models import ConversationState, ConversationStep, EventType, InboundEvent
from .store import ConversationStore

TOKEN_PROMPT = "Select a token:"


class ConversationTracker:
    """Routes inbound events through the per-conversation state machine."""

    def __init__(
        self,
        transport: BaseMessageTransport,
        date_picker: BaseDatePicker,
        client: PredictionClient,
        normalizer: Optional[RequestNormalizer] = None,
        catalog: Optional[TokenCatalog] = None,
        classifier: Optional[ErrorClassifier] = None,
        store: Optional[ConversationStore] = None,
        trigger_command: str = "/command1",
        idle_expiry_seconds: Optional[int] = None
    ):
        self.transport = transport
        self.date_picker = date_picker
        self.client = client
        self.catalog = catalog or default_catalog
        self.normalizer = normalizer or RequestNormalizer(catalog=self.catalog)
        self.classifier = classifier or ErrorClassifier()
        self.store = store or ConversationStore()
        self.trigger_command = trigger_command
        self.idle_expiry_seconds = idle_expiry_seconds
        self.logger = get_state_logger(__name__)

        # One lock per conversation, never shared across conversations
        self._locks: dict[str, asyncio.Lock] = {}

    async def handle_event(self, event: InboundEvent) -> None:
        """Dispatch a transport event to the matching handler."""
        if event.event_type == EventType.COMMAND:
            await self.handle_command(event.conversation_id, event.payload)
        else:
            await self.handle_selection(event.conversation_id, event.payload)

    async def handle_command(self, conversation_id: str, text: str) -> None:
        """Handle a text message; only the trigger command has an effect."""
        if text.strip() != self.trigger_command:
            self.logger.debug("Ignoring message", conversation_id=conversation_id)
            return

        self._expire_idle()
        async with self._lock_for(conversation_id):
            state = self.store.get_or_create(conversation_id)
            if not state.is_idle:
                # Restarting abandons the pending date selection
                self.store.reset(conversation_id)
                log_state_transition(
                    self.logger,
                    conversation_id=conversation_id,
                    from_state=state.step.value,
                    to_state=ConversationStep.IDLE.value,
                    trigger="restart",
                    context={"abandoned_token": state.selected_token}
                )

            choices = [(symbol, symbol) for symbol in self.catalog.symbols()]
            await self.transport.send_choices(conversation_id, TOKEN_PROMPT, choices)

            log_state_transition(
                self.logger,
                conversation_id=conversation_id,
                from_state=ConversationStep.IDLE.value,
                to_state=ConversationStep.IDLE.value,
                trigger="command",
                context={"choices": len(choices)}
            )

    async def handle_selection(self, conversation_id: str, payload: str) -> None:
        """Handle a selection payload, interpreted by the current step."""
        self._expire_idle()
        async with self._lock_for(conversation_id):
            state = self.store.get_or_create(conversation_id)

            if state.step == ConversationStep.IDLE:
                await self._select_token(conversation_id, state, payload)
            else:
                await self._complete_request(conversation_id, state, payload)

    async def _select_token(self, conversation_id: str, state: ConversationState, symbol: str) -> None:
        """IDLE -> AWAITING_DATE."""
        if symbol not in self.catalog:
            message = self.classifier.handle(
                InvalidTokenError(f"Unknown token symbol: {symbol!r}", symbol=symbol),
                conversation_id
            )
            await self.transport.send_text(conversation_id, message)
            return

        self.store.update(conversation_id, state.with_token_selected(symbol))
        log_state_transition(
            self.logger,
            conversation_id=conversation_id,
            from_state=ConversationStep.IDLE.value,
            to_state=ConversationStep.AWAITING_DATE.value,
            trigger="token_selected",
            context={"token": symbol}
        )

        try:
            await self.date_picker.begin_date_selection(conversation_id)
        except Exception as e:
            self.store.reset(conversation_id)
            log_state_transition(
                self.logger,
                conversation_id=conversation_id,
                from_state=ConversationStep.AWAITING_DATE.value,
                to_state=ConversationStep.IDLE.value,
                trigger="date_picker_failed"
            )
            message = self.classifier.handle(e, conversation_id, stage="date_picker")
            await self.transport.send_text(conversation_id, message)

    async def _complete_request(self, conversation_id: str, state: ConversationState, date_string: str) -> None:
        """AWAITING_DATE -> IDLE, whatever the outcome."""
        token = state.selected_token
        outcome = "failed"

        try:
            message = await self._request_prediction(conversation_id, token, date_string)
            outcome = "completed"
        except Exception as e:
            message = self.classifier.handle(e, conversation_id, token=token, date=date_string)
        finally:
            self.store.reset(conversation_id)
            log_state_transition(
                self.logger,
                conversation_id=conversation_id,
                from_state=ConversationStep.AWAITING_DATE.value,
                to_state=ConversationStep.IDLE.value,
                trigger="date_selected",
                context={"token": token, "date": date_string, "outcome": outcome}
            )

        await self.transport.send_text(conversation_id, message)

    async def _request_prediction(self, conversation_id: str, token: Optional[str], date_string: str) -> str:
        """Normalize, call the prediction service and format the reply."""
        result = self.normalizer.normalize(token or "", date_string)
        if not result.success:
            # Validation failures never reach the prediction service
            raise result.error

        response = await self.client.predict(result.request)
        predicted_price = response.latest

        self.logger.info(
            "Prediction delivered",
            conversation_id=conversation_id,
            token=token,
            date=date_string,
            interval_count=result.request.interval_count,
            prediction_count=len(response),
            predicted_price=predicted_price
        )

        return f"Predicted closing price for {token} on {date_string}: {predicted_price}"

    def _lock_for(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = self._locks[conversation_id] = asyncio.Lock()
        return lock

    def _expire_idle(self) -> None:
        if self.idle_expiry_seconds is None:
            return

        for conversation_id in self.store.expire_idle(self.idle_expiry_seconds):
            lock = self._locks.get(conversation_id)
            if lock is not None and not lock.locked():
                del self._locks[conversation_id]
