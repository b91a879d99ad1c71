"""
Conversation state data models.

This module defines the immutable per-conversation record the tracker keeps
between inbound events, and the events it reacts to.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..errors import StateTransitionError
from ..utils.dates import get_wall_clock_time


class ConversationStep(str, Enum):
    """Pending selection step of a conversation."""
    IDLE = "idle"
    AWAITING_DATE = "awaiting_date"


class EventType(str, Enum):
    """Inbound event kinds delivered by the transport."""
    COMMAND = "command"
    SELECTION = "selection"


@dataclass(frozen=True)
class InboundEvent:
    """Single inbound event for one conversation."""
    conversation_id: str
    event_type: EventType
    payload: str


@dataclass(frozen=True)
class ConversationState:
    """State of one conversation's selection round trip."""

    step: ConversationStep = ConversationStep.IDLE
    selected_token: Optional[str] = None
    updated_at: datetime = field(default_factory=get_wall_clock_time)

    @property
    def is_idle(self) -> bool:
        return self.step == ConversationStep.IDLE

    def with_token_selected(self, symbol: str, timestamp: Optional[datetime] = None) -> "ConversationState":
        """Record the chosen token and start waiting for a date."""
        if self.step != ConversationStep.IDLE:
            raise StateTransitionError(
                "Token can only be selected from IDLE",
                current_state=self.step.value,
                attempted_transition="token_selected"
            )
        return ConversationState(
            step=ConversationStep.AWAITING_DATE,
            selected_token=symbol,
            updated_at=timestamp or get_wall_clock_time()
        )

    def reset(self, timestamp: Optional[datetime] = None) -> "ConversationState":
        """Back to the initial state."""
        return ConversationState(updated_at=timestamp or get_wall_clock_time())
