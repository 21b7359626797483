"""Type definitions for the Ollama chat and embed APIs.

This module contains the pydantic models used to describe chat requests,
responses, messages and tool calls as they travel to and from Ollama.

See https://github.com/ollama/ollama/blob/main/docs/api.md#generate-a-chat-completion
"""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """The role of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCallFunction(BaseModel):
    """A function call requested by the model.

    Attributes:
        name: Name of the tool; should match a registered tool descriptor
        arguments: Arguments from the model. Ollama delivers a decoded
                   object, but a raw JSON string is accepted as well.
    """

    name: str = ""
    arguments: dict[str, Any] | str | None = None

    def arguments_dict(self) -> dict[str, Any]:
        """Return the arguments as a decoded mapping.

        Ollama only accepts an object here when the message is sent back,
        so text that is not a JSON object is rendered as an empty one. The
        tool invoker reports the malformed text to the model separately.
        """
        if self.arguments is None:
            return {}
        if isinstance(self.arguments, str):
            try:
                decoded = json.loads(self.arguments) if self.arguments.strip() else {}
            except json.JSONDecodeError:
                return {}
            return decoded if isinstance(decoded, dict) else {}
        return dict(self.arguments)


class ToolCall(BaseModel):
    """A tool call made by the model.

    Ollama only supports function calls, so a call without a function
    is malformed.
    """

    function: ToolCallFunction | None = None

    model_config = ConfigDict(extra="ignore")


class Message(BaseModel):
    """A single chat message sent to or received from the model."""

    role: Role
    content: str = ""
    images: list[bytes | str] | None = None
    tool_calls: list[ToolCall] | None = None
    tool_name: str | None = None
    thinking: str | None = None

    model_config = ConfigDict(extra="ignore")

    def to_ollama(self) -> dict[str, Any]:
        """Convert the message to the dict shape accepted by ollama.AsyncClient.

        Returns:
            dict: Message with role and content, plus any images, tool
                  calls or tool name that are set.
        """
        data: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.images:
            data["images"] = list(self.images)
        if self.tool_calls:
            data["tool_calls"] = [
                {
                    "function": {
                        "name": call.function.name,
                        "arguments": call.function.arguments_dict(),
                    }
                }
                for call in self.tool_calls
                if call.function is not None
            ]
        if self.tool_name:
            data["tool_name"] = self.tool_name
        if self.thinking:
            data["thinking"] = self.thinking
        return data


class ChatRequest(BaseModel):
    """A chat request for the Ollama API.

    Attributes:
        model: The model name; required by Ollama
        messages: The conversation so far
        tools: Tool descriptors in their wire shape
        format: "json" or a JSON schema to constrain the response content
        options: Model parameter overrides, such as temperature
        keep_alive: How long the model should stay loaded, e.g. "5m"
        think: Whether to request thinking output from models that support it
    """

    model: str
    messages: list[Message] = Field(default_factory=list)
    tools: list[dict[str, Any]] = Field(default_factory=list)
    format: str | dict[str, Any] | None = None
    options: dict[str, Any] | None = None
    keep_alive: str | float | None = None
    think: bool | None = None

    def with_option(self, name: str, value: Any) -> "ChatRequest":
        """Return a copy of the request with a model parameter set."""
        options = dict(self.options or {})
        options[name] = value
        return self.model_copy(update={"options": options})

    def temperature(self, temperature: float) -> "ChatRequest":
        """Return a copy of the request with the sampling temperature set.

        A 0.0 temperature should avoid any deviation from the most probable
        response; 1.0 affords some variation.
        """
        return self.with_option("temperature", temperature)

    def tool_names(self) -> set[str]:
        """Return the names of the tools attached to this request."""
        return {
            tool.get("function", {}).get("name", "")
            for tool in self.tools
            if isinstance(tool, dict)
        }

    def to_ollama(self) -> dict[str, Any]:
        """Convert the request to keyword arguments for ollama.AsyncClient.chat."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [message.to_ollama() for message in self.messages],
        }
        if self.tools:
            kwargs["tools"] = list(self.tools)
        if self.format is not None:
            kwargs["format"] = self.format
        if self.options:
            kwargs["options"] = dict(self.options)
        if self.keep_alive is not None:
            kwargs["keep_alive"] = self.keep_alive
        if self.think is not None:
            kwargs["think"] = self.think
        return kwargs


class ChatResponse(BaseModel):
    """The response to a non-streaming chat request."""

    model: str = ""
    created_at: str | None = None
    message: Message
    done: bool = True
    done_reason: str | None = None
    total_duration: int | None = None
    load_duration: int | None = None
    prompt_eval_count: int | None = None
    prompt_eval_duration: int | None = None
    eval_count: int | None = None
    eval_duration: int | None = None

    model_config = ConfigDict(extra="ignore")

    @property
    def tool_calls(self) -> list[ToolCall]:
        """Tool calls carried by the response message, if any."""
        return list(self.message.tool_calls or [])

    @staticmethod
    def from_ollama(response: Any) -> "ChatResponse":
        """Create a ChatResponse from an ollama.ChatResponse or plain dict.

        Args:
            response: Raw response from ollama.AsyncClient.chat

        Returns:
            ChatResponse: Parsed response
        """
        if hasattr(response, "model_dump"):
            data = response.model_dump()
        elif isinstance(response, dict):
            data = response
        else:
            data = vars(response)
        return ChatResponse.model_validate(data)


class EmbedResponse(BaseModel):
    """The response to an embed request."""

    model: str = ""
    embeddings: list[list[float]] = Field(default_factory=list)
    total_duration: int | None = None
    load_duration: int | None = None
    prompt_eval_count: int | None = None

    model_config = ConfigDict(extra="ignore")

    @staticmethod
    def from_ollama(response: Any) -> "EmbedResponse":
        """Create an EmbedResponse from an ollama.EmbedResponse or plain dict."""
        if hasattr(response, "model_dump"):
            data = response.model_dump()
        elif isinstance(response, dict):
            data = response
        else:
            data = vars(response)
        return EmbedResponse.model_validate(data)
