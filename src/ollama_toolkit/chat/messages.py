"""Helpers for building chat messages.

The system role carries instructions the model should treat as the
absolute truth; user messages carry lower-priority instructions, and
models are expected to favour the system when the two conflict. Assistant
messages are the voice of the model, and tool messages carry tool results.
"""

from typing import Iterable

from ollama_toolkit.ollama.types import Message, Role, ToolCall


def system(content: str) -> Message:
    """Return a message with the system role."""
    return Message(role=Role.SYSTEM, content=content)


def user(content: str, images: Iterable[bytes | str] = ()) -> Message:
    """Return a message with the user role.

    Args:
        content: The message text
        images: PNG or JPEG encoded images (raw bytes or base64 text) for
                multi-modal models such as llava
    """
    return Message(role=Role.USER, content=content, images=list(images) or None)


def assistant(content: str, tool_calls: Iterable[ToolCall] = ()) -> Message:
    """Return a message with the assistant role."""
    return Message(
        role=Role.ASSISTANT, content=content, tool_calls=list(tool_calls) or None
    )


def tool_result(content: str, tool_name: str | None = None) -> Message:
    """Return a message with the tool role."""
    return Message(role=Role.TOOL, content=content, tool_name=tool_name)


def with_images(message: Message, *images: bytes | str) -> Message:
    """Return a copy of the message with images attached."""
    return message.model_copy(
        update={"images": [*(message.images or []), *images]}
    )


def png(message: Message, data: bytes) -> Message:
    """Return a copy of the message with a PNG encoded image attached.

    Raises:
        ValueError: If data is not PNG encoded
    """
    if not data.startswith(b"\x89PNG\r\n\x1a\n"):
        raise ValueError("image data is not PNG encoded")
    return with_images(message, data)
