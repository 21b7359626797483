"""Test doubles and response builders shared by the test suite."""

import asyncio

from pydantic import BaseModel, Field

from ollama_toolkit.ollama.types import (
    ChatRequest,
    ChatResponse,
    Message,
    Role,
    ToolCall,
    ToolCallFunction,
)


class ScriptedTransport:
    """A transport that replays a fixed list of responses.

    Each exchange pops the next scripted item; an exception instance is
    raised instead of returned. Every request is recorded (as a deep copy)
    so tests can inspect what the loop submitted.
    """

    def __init__(self, *script: ChatResponse | Exception, delay: float = 0.0):
        self.script = list(script)
        self.delay = delay
        self.requests: list[ChatRequest] = []

    async def exchange(self, request: ChatRequest) -> ChatResponse:
        self.requests.append(request.model_copy(deep=True))
        if self.delay:
            await asyncio.sleep(self.delay)
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def reply(content: str) -> ChatResponse:
    """Build a final assistant response without tool calls."""
    return ChatResponse(
        model="test-model",
        message=Message(role=Role.ASSISTANT, content=content),
        done=True,
        done_reason="stop",
    )


def calls(*requested: tuple[str, dict]) -> ChatResponse:
    """Build an assistant response requesting the given tool calls."""
    return ChatResponse(
        model="test-model",
        message=Message(
            role=Role.ASSISTANT,
            content="",
            tool_calls=[
                ToolCall(function=ToolCallFunction(name=name, arguments=arguments))
                for name, arguments in requested
            ],
        ),
        done=True,
    )


class HelloParams(BaseModel):
    name: str = Field(description="Who to greet")


def hello(params: HelloParams) -> dict[str, str]:
    return {"hello": params.name}
