"""Ollama transport and wire types.

This package provides the async transport used by the conversation loop
and the pydantic models describing Ollama chat requests and responses.
"""

from ollama_toolkit.ollama.client import OllamaTransport, Transport
from ollama_toolkit.ollama.types import (
    ChatRequest,
    ChatResponse,
    EmbedResponse,
    Message,
    Role,
    ToolCall,
    ToolCallFunction,
)

__all__ = [
    "OllamaTransport",
    "Transport",
    "ChatRequest",
    "ChatResponse",
    "EmbedResponse",
    "Message",
    "Role",
    "ToolCall",
    "ToolCallFunction",
]
