"""The conversation loop that drives tool calling to completion.

Each round submits the whole conversation to the transport. If the model
answers with tool calls and a toolkit is bound, the assistant message and
one tool message per call are appended and the conversation is submitted
again; otherwise the response is returned as it arrived. Rounds run one at
a time and tool calls run in the order the model issued them.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Any

from ollama_toolkit.chat.conversation import Conversation
from ollama_toolkit.config import ToolErrorPolicy, ToolkitSettings, get_settings
from ollama_toolkit.errors import ChatCancelledError, ToolRoundLimitError
from ollama_toolkit.ollama.client import OllamaTransport, Transport
from ollama_toolkit.ollama.types import ChatRequest, ChatResponse, Message, ToolCall
from ollama_toolkit.tools.context import ToolContext
from ollama_toolkit.tools.toolkit import Toolkit

logger = logging.getLogger(__name__)


class ConversationLoop:
    """Repeats chat exchanges until the model stops calling tools.

    Attributes:
        transport: Performs each request/response exchange
        toolkit: Tools offered to the model; without one the first
                 response is always returned
        max_tool_rounds: Tool rounds allowed before ToolRoundLimitError;
                         None allows any number
        tool_error_policy: Whether a failed tool call aborts the loop or is
                           left for the model to react to
    """

    def __init__(
        self,
        transport: Transport,
        toolkit: Toolkit | None = None,
        *,
        max_tool_rounds: int | None = 16,
        tool_error_policy: ToolErrorPolicy = ToolErrorPolicy.ABORT,
    ) -> None:
        if max_tool_rounds is not None and max_tool_rounds < 0:
            raise ValueError("max_tool_rounds must not be negative")
        self.transport = transport
        self.toolkit = toolkit
        self.max_tool_rounds = max_tool_rounds
        self.tool_error_policy = ToolErrorPolicy(tool_error_policy)

    @classmethod
    def from_settings(
        cls,
        transport: Transport,
        toolkit: Toolkit | None = None,
        settings: ToolkitSettings | None = None,
    ) -> "ConversationLoop":
        """Create a loop using the round limit and error policy from settings."""
        settings = settings or get_settings()
        return cls(
            transport,
            toolkit,
            max_tool_rounds=settings.max_tool_rounds,
            tool_error_policy=settings.tool_error_policy,
        )

    async def run(
        self,
        request: ChatRequest,
        *,
        cancel: asyncio.Event | None = None,
        context: ToolContext | None = None,
    ) -> ChatResponse:
        """Run the conversation until the model answers without tool calls.

        Args:
            request: The initial request; its messages seed the conversation
            cancel: Setting this event aborts the in-flight exchange and any
                    tool calls not yet started
            context: Base context for tools that accept one

        Returns:
            ChatResponse: The final response, unmodified

        Raises:
            TransportError: If an exchange fails
            ToolCallError: If a tool call fails under the ABORT policy
            ToolRoundLimitError: If the model keeps calling tools
            ChatCancelledError: If the cancel event is set
        """
        conversation = Conversation(request.messages)
        request = self._attach_tools(request)
        context = context or ToolContext()
        if cancel is not None and context.cancel_event is None:
            context = replace(context, cancel_event=cancel)

        rounds = 0
        while True:
            snapshot = request.model_copy(update={"messages": list(conversation.messages)})
            response = await self._exchange(snapshot, cancel)

            calls = response.tool_calls
            if self.toolkit is None or not calls:
                logger.debug(f"Conversation finished after {rounds} tool rounds")
                return response

            if self.max_tool_rounds is not None and rounds >= self.max_tool_rounds:
                raise ToolRoundLimitError(rounds, response)
            rounds += 1

            logger.debug(f"Tool round {rounds}: dispatching {len(calls)} tool calls")
            conversation.append(response.message)
            await self._dispatch(calls, conversation, context, rounds, cancel)

    def _attach_tools(self, request: ChatRequest) -> ChatRequest:
        if self.toolkit is None:
            return request
        present = request.tool_names()
        tools = list(request.tools)
        for descriptor in self.toolkit.descriptors():
            if descriptor["function"]["name"] not in present:
                tools.append(descriptor)
        return request.model_copy(update={"tools": tools})

    async def _exchange(
        self, request: ChatRequest, cancel: asyncio.Event | None
    ) -> ChatResponse:
        if cancel is None:
            return await self.transport.exchange(request)
        if cancel.is_set():
            raise ChatCancelledError("conversation cancelled before exchange")

        exchange = asyncio.ensure_future(self.transport.exchange(request))
        cancelled = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait(
                {exchange, cancelled}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (exchange, cancelled):
                if not task.done():
                    task.cancel()

        if exchange in done:
            return exchange.result()
        # let the abandoned exchange unwind before reporting the cancellation
        await asyncio.gather(exchange, return_exceptions=True)
        logger.info("Conversation cancelled during exchange")
        raise ChatCancelledError("conversation cancelled during exchange")

    async def _dispatch(
        self,
        calls: list[ToolCall],
        conversation: Conversation,
        context: ToolContext,
        round: int,
        cancel: asyncio.Event | None,
    ) -> None:
        assert self.toolkit is not None
        for index, call in enumerate(calls):
            if cancel is not None and cancel.is_set():
                raise ChatCancelledError("conversation cancelled before tool call")
            result = await self.toolkit.dispatch(
                call, context.for_call(context.tool_name, index, round)
            )
            conversation.append(result.message)
            if result.error is None:
                continue
            if self.tool_error_policy is ToolErrorPolicy.ABORT:
                raise result.error
            logger.warning(f"Continuing conversation after failed tool call: {result.error}")


async def chat(
    *messages: Message,
    model: str | None = None,
    toolkit: Toolkit | None = None,
    transport: Transport | None = None,
    settings: ToolkitSettings | None = None,
    cancel: asyncio.Event | None = None,
    context: ToolContext | None = None,
    **request_fields: Any,
) -> ChatResponse:
    """Chat with a model, handling any tool calls with the toolkit.

    Args:
        *messages: The conversation so far
        model: Model name; defaults to the configured model
        toolkit: Tools the model may call
        transport: Transport to use; an OllamaTransport is created from
                   settings (and closed afterwards) if omitted
        settings: Configuration; defaults to get_settings()
        cancel: Event that cancels the conversation when set
        context: Base context for tools that accept one
        **request_fields: Other ChatRequest fields, such as options or format

    Returns:
        ChatResponse: The model's final response

    Example:
        >>> response = await chat(
        ...     system("Assist the user with inquiries about product orders."),
        ...     user("Where is my pizza?"),
        ...     toolkit=Toolkit(find_orders_tool),
        ...     options={"temperature": 0},
        ... )
        >>> print(response.message.content)
    """
    settings = settings or get_settings()
    request = ChatRequest(
        model=model or settings.model, messages=list(messages), **request_fields
    )
    if transport is not None:
        loop = ConversationLoop.from_settings(transport, toolkit, settings)
        return await loop.run(request, cancel=cancel, context=context)

    async with OllamaTransport.from_settings(settings) as owned:
        loop = ConversationLoop.from_settings(owned, toolkit, settings)
        return await loop.run(request, cancel=cancel, context=context)
