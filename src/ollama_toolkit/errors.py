"""Exception hierarchy for ollama-toolkit.

All toolkit-specific exceptions inherit from ToolkitError. Construction
errors (BindError, ToolValidationError) abort tool creation; ToolCallError
subclasses are raised while dispatching a model's tool call and are
rendered back into the conversation by the Toolkit; TransportError and
ChatError subclasses terminate a conversation loop.
"""


class ToolkitError(Exception):
    """Base exception for all ollama-toolkit errors."""


class BindError(ToolkitError):
    """Raised when a callable cannot be bound as a tool."""


class ToolValidationError(ToolkitError):
    """Raised when a tool descriptor violates its invariants.

    Named ToolValidationError (not ValidationError) to avoid
    collision with pydantic.ValidationError.
    """

    def __init__(self, message: str, property_name: str | None = None) -> None:
        self.property_name = property_name
        if property_name is not None:
            message = f"{message} while validating parameter {property_name!r}"
        super().__init__(message)


class ToolCallError(ToolkitError):
    """Base for failures while dispatching a tool call from the model."""

    def __init__(self, message: str, tool_name: str | None = None) -> None:
        self.tool_name = tool_name
        super().__init__(message)


class MalformedCallError(ToolCallError):
    """Raised when a tool call does not describe a named function call."""


class ToolNotFoundError(ToolCallError):
    """Raised when the model calls a tool that is not registered."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"tool {tool_name!r} not found", tool_name)


class ArgumentDecodeError(ToolCallError):
    """Raised when tool arguments cannot be decoded into the parameter model."""

    def __init__(self, tool_name: str, cause: Exception) -> None:
        self.cause = cause
        super().__init__(
            f"{cause} while parsing parameters for {tool_name!r}", tool_name
        )


class ToolInvocationError(ToolCallError):
    """Raised when the tool itself reports or raises an error."""


class ResultEncodeError(ToolCallError):
    """Raised when a tool result cannot be encoded for the model."""

    def __init__(self, tool_name: str, cause: Exception | str) -> None:
        self.cause = cause
        super().__init__(
            f"{cause} while formatting content for {tool_name!r}", tool_name
        )


class TransportError(ToolkitError):
    """Raised when an exchange with the Ollama server fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ChatError(ToolkitError):
    """Base for conditions that end a conversation loop early."""


class ToolRoundLimitError(ChatError):
    """Raised when the model keeps calling tools past the round limit."""

    def __init__(self, rounds: int, response: object = None) -> None:
        self.rounds = rounds
        self.response = response
        super().__init__(
            f"model requested tool calls after {rounds} tool rounds"
        )


class ChatCancelledError(ChatError):
    """Raised when a conversation is cancelled through its cancel event."""
