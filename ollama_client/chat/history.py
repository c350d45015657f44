"""
Conversation history.

An append-only log of chat messages. Messages are never removed or
reordered once recorded.
"""

from typing import Iterable, Iterator, List

from .base import ChatMessage


class ConversationHistory:
    """Ordered record of the messages exchanged in one conversation."""

    def __init__(self, messages: Iterable[ChatMessage] = ()):
        self._messages: List[ChatMessage] = list(messages)

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)

    def extend(self, messages: Iterable[ChatMessage]) -> None:
        """Record several messages at once (a whole turn)."""
        self._messages.extend(messages)

    def snapshot(self) -> List[ChatMessage]:
        """Return a copy of the recorded messages."""
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"ConversationHistory({len(self._messages)} messages)"
