"""Invoke bound tools with raw arguments from the model.

The invoker decodes the model's arguments into the tool's parameter model,
calls the tool and encodes its content as JSON text. It never calls a tool
with arguments that failed to decode.
"""

import inspect
import json
import logging
from typing import TYPE_CHECKING, Any, Mapping

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from ollama_toolkit.errors import (
    ArgumentDecodeError,
    ChatCancelledError,
    ResultEncodeError,
    ToolInvocationError,
)
from ollama_toolkit.tools.context import ToolContext

if TYPE_CHECKING:
    from pydantic import BaseModel

    from ollama_toolkit.tools.bind import BoundTool

logger = logging.getLogger(__name__)


async def invoke(
    tool: "BoundTool", arguments: Any = None, context: ToolContext | None = None
) -> str:
    """Call a bound tool and return its content encoded as JSON text.

    Args:
        tool: The bound tool to call
        arguments: Arguments from the model, as a mapping, JSON text or None
        context: Context passed to tools that accept one; a default context
                 naming the tool is used if omitted

    Returns:
        str: The encoded content

    Raises:
        ArgumentDecodeError: If the arguments do not fit the parameter model
        ToolInvocationError: If the tool raises or returns an error
        ResultEncodeError: If the content cannot be encoded
    """
    params = _decode_arguments(tool, arguments)

    args: list[Any] = []
    if tool.expects_context:
        args.append(context if context is not None else ToolContext(tool_name=tool.name))
    if tool.params_model is not None:
        args.append(params)

    logger.debug(f"Calling tool {tool.name!r}")
    try:
        result = tool.fn(*args)
        if inspect.isawaitable(result):
            result = await result
    except ChatCancelledError:
        raise
    except Exception as e:
        raise ToolInvocationError(str(e) or type(e).__name__, tool.name) from e

    content = result
    if tool.returns_errors:
        if not (isinstance(result, tuple) and len(result) == 2):
            raise ResultEncodeError(
                tool.name, f"expected (content, error), got {type(result).__name__}"
            )
        content, error = result
        if error is not None:
            failure = ToolInvocationError(str(error) or type(error).__name__, tool.name)
            if isinstance(error, BaseException):
                raise failure from error
            raise failure

    try:
        return tool.result_adapter.dump_json(content).decode()
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise ResultEncodeError(tool.name, e) from e


def _decode_arguments(tool: "BoundTool", arguments: Any) -> "BaseModel | None":
    if tool.params_model is None:
        return None
    try:
        if isinstance(arguments, (str, bytes, bytearray)):
            data = json.loads(arguments) if arguments.strip() else {}
        elif arguments is None:
            data = {}
        else:
            data = arguments
        if not isinstance(data, Mapping):
            raise TypeError(f"arguments must be an object, got {type(data).__name__}")
        data = {tool.argument_names.get(key, key): value for key, value in data.items()}
        for key in tool.optional_keys:
            data.setdefault(key, None)
        return tool.params_model.model_validate(data)
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError, TypeError) as e:
        raise ArgumentDecodeError(tool.name, e) from e
