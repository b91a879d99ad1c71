"""
Per-conversation state store.

One record per conversation identifier. Records are replaced wholesale
(they are immutable), so a handler working on one conversation can never
observe or mutate another conversation's record.
"""

from datetime import datetime
from typing import Optional

import structlog

from ..utils.dates import get_wall_clock_time, time_elapsed_seconds
from .models import ConversationState, ConversationStep

logger = structlog.get_logger(__name__)


class ConversationStore:
    """In-memory keyed store of conversation states."""

    def __init__(self):
        self.logger = logger
        self._states: dict[str, ConversationState] = {}

    def get_or_create(self, conversation_id: str) -> ConversationState:
        """Get existing state or create the initial one for a conversation."""
        if conversation_id not in self._states:
            self._states[conversation_id] = ConversationState()
            self.logger.debug(
                "Created conversation state",
                conversation_id=conversation_id,
                initial_state=ConversationStep.IDLE.value
            )

        return self._states[conversation_id]

    def get(self, conversation_id: str) -> Optional[ConversationState]:
        """Get current state for a conversation, None if unknown."""
        return self._states.get(conversation_id)

    def update(self, conversation_id: str, new_state: ConversationState) -> None:
        """Replace the state record for a conversation."""
        self._states[conversation_id] = new_state

    def reset(self, conversation_id: str) -> ConversationState:
        """Reset a conversation to IDLE and return the new record."""
        current = self._states.get(conversation_id) or ConversationState()
        new_state = current.reset()
        self._states[conversation_id] = new_state
        return new_state

    def expire_idle(self, max_age_seconds: float, now: Optional[datetime] = None) -> list[str]:
        """
        Drop records not updated for ``max_age_seconds``.

        Returns:
            Identifiers of the expired conversations
        """
        now = now or get_wall_clock_time()
        expired = [
            conversation_id
            for conversation_id, state in self._states.items()
            if time_elapsed_seconds(state.updated_at, now) > max_age_seconds
        ]

        for conversation_id in expired:
            old_state = self._states.pop(conversation_id)
            self.logger.info(
                "Expired conversation state",
                conversation_id=conversation_id,
                step=old_state.step.value,
                selected_token=old_state.selected_token
            )

        return expired

    def count_active(self) -> int:
        """Conversations waiting for a date."""
        return sum(1 for state in self._states.values() if not state.is_idle)

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._states
