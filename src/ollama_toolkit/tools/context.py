"""Per-call context handed to tools that ask for it."""

import asyncio
from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from ollama_toolkit.errors import ChatCancelledError


@dataclass(frozen=True)
class ToolContext:
    """Ambient context for one tool call.

    A tool receives this as its first argument when its signature starts
    with a ToolContext parameter. The conversation loop derives one context
    per call from the caller's context, so request-scoped values and the
    cancel event are shared while tool_name and call_index vary.

    Attributes:
        tool_name: Name of the tool being called
        call_index: Position of the call within its round
        round: Number of the tool round (1-based, 0 outside a conversation)
        values: Request-scoped values supplied by the caller
        cancel_event: Set when the surrounding conversation is cancelled
    """

    tool_name: str = ""
    call_index: int = 0
    round: int = 0
    values: Mapping[str, Any] = field(default_factory=dict)
    cancel_event: asyncio.Event | None = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise ChatCancelledError if the conversation has been cancelled."""
        if self.cancelled:
            raise ChatCancelledError(f"cancelled before calling {self.tool_name!r}")

    def for_call(
        self, tool_name: str, call_index: int | None = None, round: int | None = None
    ) -> "ToolContext":
        """Return a copy of this context for a specific tool call.

        The call index and round are kept unless given.
        """
        return replace(
            self,
            tool_name=tool_name,
            call_index=self.call_index if call_index is None else call_index,
            round=self.round if round is None else round,
        )
