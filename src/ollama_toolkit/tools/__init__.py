"""Tool binding, invocation and dispatch.

This package turns typed Python callables into tools that tool-capable
models can call: ToolBuilder and bind() produce BoundTools with their
descriptors, invoke() runs them against raw arguments from the model, and
Toolkit dispatches calls by name.
"""

from ollama_toolkit.tools.bind import BoundTool, ToolBuilder, bind
from ollama_toolkit.tools.context import ToolContext
from ollama_toolkit.tools.invoke import invoke
from ollama_toolkit.tools.optional import Maybe
from ollama_toolkit.tools.schema import PropertySchema, ToolDescriptor
from ollama_toolkit.tools.toolkit import DispatchResult, Toolkit

__all__ = [
    # Binding
    "bind",
    "ToolBuilder",
    "BoundTool",
    "ToolContext",
    "Maybe",
    # Descriptors
    "ToolDescriptor",
    "PropertySchema",
    # Invocation
    "invoke",
    "Toolkit",
    "DispatchResult",
]
