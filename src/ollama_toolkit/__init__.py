"""ollama-toolkit: expose typed Python functions as tools for Ollama models.

This package binds typed callables as tools, dispatches the model's tool
calls back into them, and drives a chat until the model stops calling
tools.
"""

from ollama_toolkit.chat import ConversationLoop, chat
from ollama_toolkit.config import ToolErrorPolicy, ToolkitSettings, get_settings
from ollama_toolkit.ollama import ChatRequest, ChatResponse, Message, OllamaTransport
from ollama_toolkit.tools import (
    BoundTool,
    Maybe,
    ToolBuilder,
    ToolContext,
    Toolkit,
    bind,
)

__version__ = "0.1.0"

__all__ = [
    "bind",
    "BoundTool",
    "ToolBuilder",
    "ToolContext",
    "Toolkit",
    "Maybe",
    "ConversationLoop",
    "chat",
    "ChatRequest",
    "ChatResponse",
    "Message",
    "OllamaTransport",
    "ToolErrorPolicy",
    "ToolkitSettings",
    "get_settings",
    "__version__",
]
