"""Base classes for chat transport collaborators."""

from abc import ABC, abstractmethod
from typing import Sequence

# (label shown to the user, opaque payload sent back on selection)
Choice = tuple[str, str]


class BaseMessageTransport(ABC):
    """Delivers outbound messages to a conversation."""

    @abstractmethod
    async def send_text(self, conversation_id: str, text: str) -> None:
        """Send a plain text message."""
        pass

    @abstractmethod
    async def send_choices(self, conversation_id: str, text: str, choices: Sequence[Choice]) -> None:
        """Send a text message with an attached selectable list."""
        pass


class BaseDatePicker(ABC):
    """Runs a date selection whose result comes back as a selection event."""

    @abstractmethod
    async def begin_date_selection(self, conversation_id: str) -> None:
        """Start date selection for a conversation."""
        pass
