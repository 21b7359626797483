"""Append-only conversation history for one chat call."""

import logging
from typing import Iterable, Iterator

from ollama_toolkit.ollama.types import Message, Role

logger = logging.getLogger(__name__)


class Conversation:
    """The ordered message history driving one multi-turn exchange.

    Messages are only ever appended; earlier entries are never reordered
    or rewritten, so a snapshot taken for one request stays valid.
    """

    def __init__(self, messages: Iterable[Message] = ()) -> None:
        """Initialize a Conversation.

        Args:
            messages: Initial message history (default: empty)
        """
        self._messages: list[Message] = []
        self.extend(messages)

    def append(self, message: Message) -> None:
        """Add a message to the end of the history.

        Args:
            message: The message to add
        """
        self._messages.append(message)
        logger.debug(
            f"Appended {message.role.value} message "
            f"({len(self._messages)} messages in conversation)"
        )

    def extend(self, messages: Iterable[Message]) -> None:
        """Add several messages in order."""
        for message in messages:
            self.append(message)

    @property
    def messages(self) -> tuple[Message, ...]:
        """A snapshot of the history."""
        return tuple(self._messages)

    @property
    def last(self) -> Message | None:
        """The most recent message, or None if the conversation is empty."""
        return self._messages[-1] if self._messages else None

    def count(self, role: Role) -> int:
        """Return the number of messages with the given role."""
        return sum(1 for message in self._messages if message.role == role)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __len__(self) -> int:
        return len(self._messages)
