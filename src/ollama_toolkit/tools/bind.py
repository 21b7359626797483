"""Bind typed Python callables as tools usable by tool-capable models.

# Input parameters

A tool callable takes no arguments, one pydantic model, or a ToolContext
followed by a pydantic model. Each field of the model is exposed as a
parameter of the tool:

  - the parameter name is the field's alias, or the field name;
    fields declared with ``exclude=True`` are not advertised
  - the description comes from ``Field(description=...)``
  - the type comes from ``Field(json_schema_extra={"type": ...})``, or is
    inferred from the annotation (numbers, bool, strings, sequences and
    mappings); str enums and string Literals also advertise their values
  - every advertised field is required unless it is wrapped in Maybe

Fields inherited from base models are flattened into the same parameter
set.

# Output

A tool returns its content, or a ``(content, error)`` pair annotated as
``tuple[Content, Exception | None]``; a non-None error is reported to the
model instead of the content.

# Example

    class FindOrders(BaseModel):
        customer_id: Maybe[int] = Field(Maybe.absent(), description="Customer ID")
        status: Maybe[str] = Field(Maybe.absent(), description="Order status")

    async def find_orders(ctx: ToolContext, q: FindOrders) -> list[Order]:
        ...

    find_orders_tool = (
        ToolBuilder(find_orders)
        .describe("Finds orders, applying various search parameters.")
        .enum("status", "completed", "delivering", "preparing", "pending")
        .camel_names()
        .build()
    )
"""

import dataclasses
import datetime
import decimal
import enum
import fractions
import functools
import inspect
import logging
import types
import uuid
from collections.abc import Mapping, Sequence, Set
from dataclasses import dataclass, field
from typing import (
    Annotated,
    Any,
    Callable,
    Literal,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from pydantic import BaseModel, TypeAdapter
from pydantic.alias_generators import to_camel
from pydantic.errors import PydanticSchemaGenerationError

from ollama_toolkit.errors import BindError, ToolValidationError
from ollama_toolkit.tools.context import ToolContext
from ollama_toolkit.tools.invoke import invoke
from ollama_toolkit.tools.optional import is_maybe
from ollama_toolkit.tools.schema import (
    ARRAY,
    BOOL,
    NUMBER,
    OBJECT,
    STRING,
    PropertySchema,
    ToolDescriptor,
)

logger = logging.getLogger(__name__)

_NUMBER_TYPES = (int, float, decimal.Decimal, fractions.Fraction)
_STRING_TYPES = (
    str,
    bytes,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
)


@dataclass(frozen=True)
class BoundTool:
    """A tool descriptor paired with the callable it invokes.

    Attributes:
        descriptor: The schema advertised to the model
        fn: The wrapped callable
        params_model: The structured parameter model, or None for tools
                      without parameters
        content_type: Declared type of the content the tool returns
        expects_context: Whether a ToolContext is passed as first argument
        returns_errors: Whether the tool returns a (content, error) pair
        argument_names: Advertised parameter name -> model input key
        optional_keys: Input keys of Maybe fields without a default; they
                       decode as absent when the model leaves them out
        result_adapter: Encoder for the content
    """

    descriptor: ToolDescriptor
    fn: Callable[..., Any]
    params_model: type[BaseModel] | None = None
    content_type: Any = Any
    expects_context: bool = False
    returns_errors: bool = False
    argument_names: Mapping[str, str] = field(default_factory=dict)
    optional_keys: frozenset[str] = frozenset()
    result_adapter: TypeAdapter[Any] = field(
        default_factory=lambda: TypeAdapter(Any), repr=False, compare=False
    )

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def description(self) -> str:
        return self.descriptor.description

    def to_wire(self) -> dict[str, Any]:
        """Return the descriptor in the shape sent to Ollama."""
        return self.descriptor.to_wire()

    async def call(self, arguments: Any = None, context: ToolContext | None = None) -> str:
        """Decode the arguments, call the tool and return its encoded content.

        See ollama_toolkit.tools.invoke.invoke for the error contract.
        """
        return await invoke(self, arguments, context)


@dataclass
class _PropertyDraft:
    type: str = ""
    description: str = ""
    enum: list[str] = field(default_factory=list)


@dataclass
class _Shape:
    params_model: type[BaseModel] | None
    content_type: Any
    expects_context: bool
    returns_errors: bool


class ToolBuilder:
    """Builds a BoundTool from a callable and explicit refinements.

    Binding the callable introspects its parameter model first; refinements
    such as describe(), parameter() and enum() then merge into the result
    additively. Fixups registered with rename_parameters() or camel_names()
    run after everything else, and validation runs last, so build() either
    returns a complete, valid tool or raises.
    """

    def __init__(
        self,
        fn: Callable[..., Any] | None = None,
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> None:
        self._fn = fn
        self._name = name or ""
        self._description = description or ""
        self._properties: dict[str, _PropertyDraft] = {}
        self._required: list[str] = []
        self._argument_names: dict[str, str] = {}
        self._optional_keys: set[str] = set()
        self._fixups: list[Callable[[str], str]] = []
        self._shape: _Shape | None = None
        if fn is not None:
            self._shape = self._bind(fn)

    def named(self, name: str) -> "ToolBuilder":
        """Set the tool name; without it the callable's name is used."""
        self._name = name
        return self

    def describe(self, description: str) -> "ToolBuilder":
        """Set the tool description the model uses to decide when to call it."""
        self._description = description
        return self

    def parameter(self, name: str, type: str, description: str) -> "ToolBuilder":
        """Declare a parameter, or override the type and description of one."""
        prop = self._property(name)
        prop.type = type
        prop.description = description
        return self

    def enum(self, name: str, *values: str) -> "ToolBuilder":
        """Add allowable values for the named parameter."""
        prop = self._property(name)
        for value in values:
            if value not in prop.enum:
                prop.enum.append(value)
        return self

    def require(self, *names: str) -> "ToolBuilder":
        """Mark the named parameters as required."""
        for name in names:
            if name not in self._required:
                self._required.append(name)
        return self

    def rename_parameters(self, fix: Callable[[str], str]) -> "ToolBuilder":
        """Rename every parameter with fix once all other options have applied.

        A parameter whose new name is empty is removed from the tool, and
        from the required list.
        """
        self._fixups.append(fix)
        return self

    def camel_names(self) -> "ToolBuilder":
        """Convert parameter names from snake_case to camelCase."""
        return self.rename_parameters(to_camel)

    def descriptor(self) -> ToolDescriptor:
        """Apply fixups, validate and return the frozen tool descriptor.

        Raises:
            BindError: If no name was given and none can be inferred
            ToolValidationError: If the descriptor is incomplete
        """
        descriptor, _ = self._finish()
        return descriptor

    def build(self) -> BoundTool:
        """Return the bound tool.

        Raises:
            BindError: If no callable was bound or no name can be found
            ToolValidationError: If the descriptor is incomplete
        """
        if self._fn is None or self._shape is None:
            raise BindError("no callable was bound to the tool")
        descriptor, argument_names = self._finish()
        shape = self._shape
        tool = BoundTool(
            descriptor=descriptor,
            fn=self._fn,
            params_model=shape.params_model,
            content_type=shape.content_type,
            expects_context=shape.expects_context,
            returns_errors=shape.returns_errors,
            argument_names=types.MappingProxyType(argument_names),
            optional_keys=frozenset(self._optional_keys),
            result_adapter=_result_adapter(descriptor.name, shape.content_type),
        )
        logger.debug(
            f"Bound tool {descriptor.name!r} with parameters "
            f"{list(descriptor.properties)} (required: {list(descriptor.required)})"
        )
        return tool

    def _property(self, name: str) -> _PropertyDraft:
        prop = self._properties.get(name)
        if prop is None:
            prop = self._properties[name] = _PropertyDraft()
        return prop

    def _finish(self) -> tuple[ToolDescriptor, dict[str, str]]:
        name = self._name or (_infer_name(self._fn) if self._fn is not None else "")
        if not name:
            raise BindError("a tool needs a name")

        properties = {
            key: dataclasses.replace(prop, enum=list(prop.enum))
            for key, prop in self._properties.items()
        }
        required = list(self._required)
        argument_names = {key: self._argument_names.get(key, key) for key in properties}

        for fix in self._fixups:
            renamed: dict[str, _PropertyDraft] = {}
            for key, prop in properties.items():
                new_key = fix(key)
                if not new_key:
                    continue
                if new_key in renamed:
                    raise ToolValidationError(
                        f"renaming {key!r} collides with another parameter", new_key
                    )
                renamed[new_key] = prop
            properties = renamed
            required = [fix(key) for key in required if fix(key)]
            argument_names = {
                fix(key): target for key, target in argument_names.items() if fix(key)
            }

        descriptor = ToolDescriptor(
            name=name,
            description=self._description,
            properties={
                key: PropertySchema(
                    name=key,
                    type=prop.type,
                    description=prop.description,
                    enum=tuple(prop.enum) or None,
                )
                for key, prop in properties.items()
            },
            required=tuple(dict.fromkeys(required)),
        )
        descriptor.validate_invariants()
        return descriptor, argument_names

    def _bind(self, fn: Callable[..., Any]) -> _Shape:
        if not callable(fn):
            raise BindError(f"cannot bind {type(fn).__name__} as a tool")
        label = self._name or getattr(fn, "__name__", repr(fn))
        shape = _inspect_shape(fn, label)
        if shape.params_model is not None:
            self._bind_parameters(shape.params_model)
        return shape

    def _bind_parameters(self, model: type[BaseModel]) -> None:
        for field_name, info in model.model_fields.items():
            if info.exclude is True:
                continue
            if isinstance(info.validation_alias, str):
                name = info.validation_alias
            else:
                name = info.alias or field_name

            annotation = info.annotation
            optional = is_maybe(annotation)
            inferred, values = _infer_type(annotation)
            extra = info.json_schema_extra
            if isinstance(extra, dict) and isinstance(extra.get("type"), str):
                inferred = extra["type"]

            prop = self._property(name)
            if info.description:
                prop.description = info.description
            if not prop.type:
                prop.type = inferred
            for value in values:
                if value not in prop.enum:
                    prop.enum.append(value)
            self._argument_names[name] = name
            if optional and info.is_required():
                self._optional_keys.add(name)
            if not optional:
                self.require(name)


def bind(
    fn: Callable[..., Any],
    *,
    name: str | None = None,
    description: str | None = None,
    parameters: Mapping[str, tuple[str, str]] | None = None,
    enums: Mapping[str, Sequence[str]] | None = None,
    required: Sequence[str] = (),
    rename: Callable[[str], str] | None = None,
    camel_names: bool = False,
) -> BoundTool:
    """Bind a callable as a tool.

    Args:
        fn: The tool callable
        name: Tool name; inferred from the callable's name if omitted
        description: What the tool does
        parameters: Parameter name -> (type, description) declarations
        enums: Parameter name -> allowable values
        required: Additional required parameter names
        rename: Fixup applied to every parameter name
        camel_names: Convert parameter names to camelCase

    Returns:
        BoundTool: The bound tool

    Raises:
        BindError: If the callable's signature cannot be used as a tool
        ToolValidationError: If the resulting descriptor is incomplete
    """
    builder = ToolBuilder(fn, name=name, description=description)
    for param_name, (param_type, param_description) in (parameters or {}).items():
        builder.parameter(param_name, param_type, param_description)
    for param_name, values in (enums or {}).items():
        builder.enum(param_name, *values)
    builder.require(*required)
    if rename is not None:
        builder.rename_parameters(rename)
    if camel_names:
        builder.camel_names()
    return builder.build()


def _infer_name(fn: Callable[..., Any]) -> str:
    # __name__ rather than __qualname__ drops enclosing classes and functions
    target = fn
    while isinstance(target, functools.partial):
        target = target.func
    name = getattr(target, "__name__", "") or getattr(type(target), "__name__", "")
    if not name or name == "<lambda>":
        raise BindError(f"cannot infer a tool name for {fn!r}; provide one explicitly")
    return name


def _type_hints(fn: Callable[..., Any]) -> dict[str, Any]:
    target: Any = fn
    while isinstance(target, functools.partial):
        target = target.func
    if not (inspect.isfunction(target) or inspect.ismethod(target)):
        target = getattr(target, "__call__", target)
    try:
        return get_type_hints(target, include_extras=True)
    except (NameError, TypeError) as e:
        raise BindError(f"cannot resolve type hints of {fn!r}: {e}") from e


def _inspect_shape(fn: Callable[..., Any], label: str) -> _Shape:
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError) as e:
        raise BindError(f"cannot bind {fn!r} as a tool") from e
    hints = _type_hints(fn)

    params = []
    for param in signature.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            raise BindError(f"bad input arity for tool {label!r}: variadic parameters")
        if param.kind is param.KEYWORD_ONLY and param.default is not param.empty:
            continue
        annotation = hints.get(param.name, param.annotation)
        if annotation is param.empty:
            raise BindError(
                f"bad input arity for tool {label!r}: "
                f"parameter {param.name!r} has no annotation"
            )
        params.append(_strip_annotated(annotation))

    params_model: type[BaseModel] | None = None
    expects_context = False
    if len(params) == 1 and _is_model(params[0]):
        params_model = params[0]
    elif len(params) == 2 and _is_context(params[0]) and _is_model(params[1]):
        expects_context = True
        params_model = params[1]
    elif params:
        raise BindError(
            f"bad input arity for tool {label!r}: expected no parameters, "
            f"a pydantic model, or a ToolContext followed by a pydantic model"
        )

    returns = _strip_annotated(hints.get("return", signature.return_annotation))
    content_type: Any = Any
    returns_errors = False
    if returns is signature.empty:
        pass
    elif returns is None or returns is type(None):
        raise BindError(f"bad output arity for tool {label!r}: the tool returns nothing")
    elif get_origin(returns) is tuple:
        args = get_args(returns)
        if len(args) == 2 and args[1] is Ellipsis:
            content_type = returns
        elif len(args) == 2 and _is_error_type(args[1]):
            content_type = args[0]
            returns_errors = True
        else:
            raise BindError(
                f"bad output arity for tool {label!r}: expected content, "
                f"or content and an exception"
            )
    else:
        content_type = returns

    return _Shape(
        params_model=params_model,
        content_type=content_type,
        expects_context=expects_context,
        returns_errors=returns_errors,
    )


def _result_adapter(name: str, content_type: Any) -> TypeAdapter[Any]:
    try:
        return TypeAdapter(content_type)
    except PydanticSchemaGenerationError:
        logger.debug(f"Tool {name!r} content type {content_type!r} is encoded as Any")
        return TypeAdapter(Any)


def _strip_annotated(annotation: Any) -> Any:
    while get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    return annotation


def _is_model(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, BaseModel)


def _is_context(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, ToolContext)


def _union_members(annotation: Any) -> tuple[Any, ...] | None:
    if get_origin(annotation) in (Union, types.UnionType):
        return get_args(annotation)
    return None


def _is_error_type(annotation: Any) -> bool:
    annotation = _strip_annotated(annotation)
    members = _union_members(annotation)
    if members is None:
        members = (annotation,)
    errors = [member for member in members if member is not type(None)]
    return bool(errors) and all(
        isinstance(member, type) and issubclass(member, BaseException)
        for member in errors
    )


def _infer_type(annotation: Any) -> tuple[str, tuple[str, ...]]:
    """Infer the advertised type and enum values from a field annotation."""
    annotation = _strip_annotated(annotation)
    if is_maybe(annotation):
        args = get_args(annotation)
        annotation = _strip_annotated(args[0]) if args else Any

    members = _union_members(annotation)
    if members is not None:
        inferred = {
            _infer_type(member) for member in members if member is not type(None)
        }
        # a union of unlike kinds has no single type
        if len(inferred) == 1:
            return inferred.pop()
        kinds = {kind for kind, _ in inferred}
        return (kinds.pop(), ()) if len(kinds) == 1 else ("", ())

    origin = get_origin(annotation)
    if origin is Literal:
        values = get_args(annotation)
        if all(isinstance(value, bool) for value in values):
            return BOOL, ()
        if all(isinstance(value, str) for value in values):
            return STRING, tuple(values)
        if all(isinstance(value, _NUMBER_TYPES) for value in values):
            return NUMBER, ()
        return "", ()

    if isinstance(origin, type):
        if issubclass(origin, Mapping):
            return OBJECT, ()
        if issubclass(origin, (Sequence, Set)) and not issubclass(origin, str):
            return ARRAY, ()
        return "", ()

    if not isinstance(annotation, type):
        return "", ()
    if issubclass(annotation, bool):
        return BOOL, ()
    if issubclass(annotation, enum.Enum):
        values = [member.value for member in annotation]
        if all(isinstance(value, str) for value in values):
            return STRING, tuple(values)
        if all(isinstance(value, _NUMBER_TYPES) for value in values):
            return NUMBER, ()
        return "", ()
    if issubclass(annotation, _NUMBER_TYPES):
        return NUMBER, ()
    if issubclass(annotation, _STRING_TYPES):
        return STRING, ()
    if issubclass(annotation, (list, tuple, set, frozenset)):
        return ARRAY, ()
    if issubclass(annotation, (dict, BaseModel)) or dataclasses.is_dataclass(annotation):
        return OBJECT, ()
    return "", ()
