"""A registry of bound tools that dispatches the model's tool calls.

The toolkit is built once and is read-only afterwards. Dispatch never
raises for a failed call: the failure is rendered as a tool message the
model can read, and returned alongside it so the caller can decide whether
to keep the conversation going.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterator, Mapping

from pydantic import ValidationError

from ollama_toolkit.errors import (
    MalformedCallError,
    ToolCallError,
    ToolNotFoundError,
    ToolValidationError,
)
from ollama_toolkit.ollama.types import Message, Role, ToolCall
from ollama_toolkit.tools.bind import BoundTool
from ollama_toolkit.tools.context import ToolContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchResult:
    """The outcome of dispatching one tool call.

    Attributes:
        message: Tool message to append to the conversation; its content is
                 the tool's result, or {"error": ...} if the call failed
        error: The failure, if any
    """

    message: Message
    error: ToolCallError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def error_content(error: Exception) -> str:
    """Render an error as the JSON envelope sent back to the model."""
    return json.dumps({"error": str(error)})


class Toolkit:
    """An ordered, read-only set of tools addressed by name."""

    def __init__(self, *tools: BoundTool) -> None:
        """Initialize the toolkit.

        Args:
            *tools: Bound tools, in the order they are advertised

        Raises:
            ToolValidationError: If two tools share a name
        """
        table: dict[str, BoundTool] = {}
        for tool in tools:
            if tool.name in table:
                raise ToolValidationError(f"duplicate tool name {tool.name!r}")
            table[tool.name] = tool
        self._tools = tuple(tools)
        self._table: Mapping[str, BoundTool] = table
        logger.info(f"Toolkit assembled with tools: {list(table)}")

    def list_tools(self) -> list[BoundTool]:
        """Return the tools in registration order."""
        return list(self._tools)

    def descriptors(self) -> list[dict[str, Any]]:
        """Return the tool descriptors in the shape sent to Ollama."""
        return [tool.to_wire() for tool in self._tools]

    def get(self, name: str) -> BoundTool | None:
        return self._table.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._table

    def __iter__(self) -> Iterator[BoundTool]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    async def dispatch(
        self,
        call: ToolCall | Mapping[str, Any],
        context: ToolContext | None = None,
    ) -> DispatchResult:
        """Call the tool requested by the model.

        Args:
            call: The tool call, as a ToolCall or its dict form
            context: Context for tools that accept one

        Returns:
            DispatchResult: The tool message, plus the error if the call
                            was malformed, named an unknown tool, or failed
        """
        tool_name = ""
        try:
            tool_call = _parse_call(call)
            tool_name = tool_call.function.name
            tool = self._table.get(tool_name)
            if tool is None:
                raise ToolNotFoundError(tool_name)
            if context is not None:
                context = context.for_call(tool_name)
            content = await tool.call(tool_call.function.arguments, context)
        except ToolCallError as e:
            logger.warning(f"Tool call failed: {e}")
            message = Message(
                role=Role.TOOL, content=error_content(e), tool_name=tool_name or None
            )
            return DispatchResult(message=message, error=e)

        logger.debug(f"Tool {tool_name!r} returned {len(content)} characters")
        return DispatchResult(
            message=Message(role=Role.TOOL, content=content, tool_name=tool_name)
        )


def _parse_call(call: ToolCall | Mapping[str, Any]) -> ToolCall:
    if not isinstance(call, ToolCall):
        try:
            call = ToolCall.model_validate(call)
        except ValidationError as e:
            raise MalformedCallError(f"malformed tool call: {e}") from e
    if call.function is None:
        raise MalformedCallError("only tool function calls are supported")
    if not call.function.name:
        raise MalformedCallError("tool call does not name a function")
    return call
