"""Conversations and the tool-calling conversation loop.

This package provides the append-only conversation history, message
builders, and the loop that resubmits the conversation until the model
stops calling tools.
"""

from ollama_toolkit.chat.conversation import Conversation
from ollama_toolkit.chat.loop import ConversationLoop, chat
from ollama_toolkit.chat.messages import (
    assistant,
    png,
    system,
    tool_result,
    user,
    with_images,
)

__all__ = [
    # Core classes
    "Conversation",
    "ConversationLoop",
    "chat",
    # Message builders
    "system",
    "user",
    "assistant",
    "tool_result",
    "with_images",
    "png",
]
