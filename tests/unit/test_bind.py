"""Unit tests for binding callables as tools.

Tests input and output arity rules, parameter introspection, refinements,
renames and descriptor validation.
"""

import dataclasses
import datetime
from enum import Enum
from typing import Any, Literal

import pytest
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fakes import HelloParams, hello
from ollama_toolkit.errors import BindError, ToolValidationError
from ollama_toolkit.tools import Maybe, ToolBuilder, ToolContext, bind


class Color(str, Enum):
    RED = "red"
    GREEN = "green"


class Customer(BaseModel):
    customer_id: Maybe[int] = Field(Maybe.absent(), description="Customer ID")


class FindOrders(Customer):
    status: Maybe[str] = Field(Maybe.absent(), description="Order status")
    order_name: Maybe[str] = Field(Maybe.absent(), description="Order name")


class Everything(BaseModel):
    name: str = Field(description="A name")
    count: int = Field(description="A count")
    ratio: float | None = Field(description="A ratio")
    enabled: bool = Field(description="A flag")
    when: datetime.date = Field(description="A date")
    ids: list[int] = Field(description="Some IDs")
    labels: dict[str, str] = Field(description="Some labels")
    color: Color = Field(description="A color")
    size: Literal["s", "m", "l"] = Field(description="A size")
    note: str = Field(alias="Note", description="A note")
    secret: str = Field("", exclude=True, description="Not advertised")
    payload: Any = Field(description="Raw payload", json_schema_extra={"type": "object"})


class Undocumented(BaseModel):
    value: str


class Point:
    pass


class Untyped(BaseModel):
    value: Point = Field(description="A point")

    model_config = ConfigDict(arbitrary_types_allowed=True)


def find_orders(ctx: ToolContext, q: FindOrders) -> list[str]:
    return []


def no_params() -> str:
    return "pong"


# Input arity


def test_bind_without_parameters():
    """Test binding a tool that takes no parameters."""
    tool = bind(no_params, description="Answers ping")

    assert tool.name == "no_params"
    assert tool.params_model is None
    assert tool.descriptor.properties == {}
    assert tool.descriptor.required == ()


def test_bind_with_parameter_model(hello_tool):
    """Test binding a tool that takes a pydantic model."""
    assert hello_tool.name == "hello"
    assert hello_tool.params_model is HelloParams
    assert hello_tool.expects_context is False


def test_bind_with_context_and_model():
    """Test binding a tool that takes a ToolContext first."""
    tool = bind(find_orders, description="Finds orders")

    assert tool.expects_context is True
    assert tool.params_model is FindOrders


def test_bind_bound_method():
    """Test that self is not counted as a parameter of a bound method."""

    class Greeter:
        def greet(self, params: HelloParams) -> str:
            return f"hi {params.name}"

    tool = bind(Greeter().greet, description="Greets")

    assert tool.name == "greet"
    assert tool.params_model is HelloParams


def test_keyword_only_parameters_with_defaults_are_ignored():
    """Test that optional keyword-only parameters do not affect arity."""

    def greet(params: HelloParams, *, loud: bool = False) -> str:
        return params.name

    tool = bind(greet, description="Greets")

    assert tool.params_model is HelloParams


def test_bad_input_arity_two_models():
    """Test that two model parameters are rejected."""

    def tool(a: HelloParams, b: HelloParams) -> str:
        return ""

    with pytest.raises(BindError, match="bad input arity"):
        bind(tool, description="d")


def test_bad_input_arity_context_second():
    """Test that the context must come before the model."""

    def tool(q: HelloParams, ctx: ToolContext) -> str:
        return ""

    with pytest.raises(BindError, match="bad input arity"):
        bind(tool, description="d")


def test_bad_input_arity_plain_value():
    """Test that a non-model parameter is rejected."""

    def tool(name: str) -> str:
        return name

    with pytest.raises(BindError, match="bad input arity"):
        bind(tool, description="d")


def test_bad_input_arity_unannotated():
    """Test that an unannotated parameter is rejected."""

    def tool(params) -> str:
        return ""

    with pytest.raises(BindError, match="no annotation"):
        bind(tool, description="d")


def test_bad_input_arity_variadic():
    """Test that *args and **kwargs are rejected."""

    def tool(*params: HelloParams) -> str:
        return ""

    with pytest.raises(BindError, match="variadic"):
        bind(tool, description="d")


# Output arity


def test_return_nothing_is_rejected():
    """Test that a tool must return content."""

    def tool(params: HelloParams) -> None:
        pass

    with pytest.raises(BindError, match="bad output arity"):
        bind(tool, description="d")


def test_return_three_values_is_rejected():
    """Test that more than two return values are rejected."""

    def tool(params: HelloParams) -> tuple[str, str, Exception]:
        return "", "", Exception()

    with pytest.raises(BindError, match="bad output arity"):
        bind(tool, description="d")


def test_second_return_must_be_an_error():
    """Test that a two-value return needs an exception as second element."""

    def tool(params: HelloParams) -> tuple[str, int]:
        return "", 0

    with pytest.raises(BindError, match="bad output arity"):
        bind(tool, description="d")


def test_return_content_and_error():
    """Test that (content, error) returns are recognised."""

    def tool(params: HelloParams) -> tuple[dict[str, str], Exception | None]:
        return {}, None

    bound = bind(tool, description="d")

    assert bound.returns_errors is True
    assert bound.content_type == dict[str, str]


def test_variable_length_tuple_is_one_content_value():
    """Test that tuple[T, ...] is treated as a single array value."""

    def tool(params: HelloParams) -> tuple[int, ...]:
        return (1, 2)

    bound = bind(tool, description="d")

    assert bound.returns_errors is False
    assert bound.content_type == tuple[int, ...]


def test_missing_return_annotation_is_untyped_content():
    """Test that an unannotated return is accepted as any content."""

    def tool(params: HelloParams):
        return params.name

    bound = bind(tool, description="d")

    assert bound.content_type is Any
    assert bound.returns_errors is False


# Names


def test_lambda_requires_explicit_name():
    """Test that lambdas cannot supply a tool name."""
    with pytest.raises(BindError, match="name"):
        bind(lambda: "hi", description="Says hi")


def test_explicit_name_overrides_inferred_name():
    """Test naming a tool explicitly."""
    tool = bind(lambda: "hi", name="say_hi", description="Says hi")

    assert tool.name == "say_hi"


def test_nested_function_uses_short_name():
    """Test that enclosing scopes are not part of the tool name."""

    def lookup() -> str:
        return ""

    assert bind(lookup, description="d").name == "lookup"


# Parameter introspection


def test_hello_descriptor(hello_tool):
    """Test the descriptor of a one-parameter tool in its wire shape."""
    assert hello_tool.to_wire() == {
        "type": "function",
        "function": {
            "name": "hello",
            "description": "Says hello",
            "parameters": {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "name": {"type": "string", "description": "Who to greet"},
                },
            },
        },
    }


def test_inferred_types():
    """Test the advertised type of each kind of field."""

    def tool(params: Everything) -> str:
        return ""

    properties = bind(tool, description="d").descriptor.properties

    assert {name: prop.type for name, prop in properties.items()} == {
        "name": "string",
        "count": "number",
        "ratio": "number",
        "enabled": "bool",
        "when": "string",
        "ids": "array",
        "labels": "object",
        "color": "string",
        "size": "string",
        "Note": "string",
        "payload": "object",
    }
    assert properties["color"].enum == ("red", "green")
    assert properties["size"].enum == ("s", "m", "l")
    assert properties["count"].enum is None


def test_alias_and_excluded_fields():
    """Test that aliases name parameters and excluded fields are omitted."""

    def tool(params: Everything) -> str:
        return ""

    descriptor = bind(tool, description="d").descriptor

    assert "Note" in descriptor.properties
    assert "note" not in descriptor.properties
    assert "secret" not in descriptor.properties
    assert "secret" not in descriptor.required


def test_inherited_fields_are_flattened():
    """Test that fields from base models become parameters too."""
    descriptor = bind(find_orders, description="d").descriptor

    assert list(descriptor.properties) == ["customer_id", "status", "order_name"]


def test_optional_fields_are_not_required():
    """Test that Maybe fields are never required and others always are."""

    class Mixed(BaseModel):
        wrapped: Maybe[str] = Field(Maybe.absent(), description="Optional")
        plain: str = Field("default", description="Required despite a default")

    def tool(params: Mixed) -> str:
        return ""

    descriptor = bind(tool, description="d").descriptor

    assert descriptor.required == ("plain",)
    assert descriptor.properties["wrapped"].type == "string"


def test_enum_refinement():
    """Test that enum() attaches exactly the given values."""
    tool = (
        ToolBuilder(find_orders)
        .describe("Finds orders, applying various search parameters.")
        .enum("status", "completed", "delivering", "preparing", "pending")
        .build()
    )

    status = tool.to_wire()["function"]["parameters"]["properties"]["status"]
    assert status["enum"] == ["completed", "delivering", "preparing", "pending"]


def test_enum_refinement_skips_duplicates():
    """Test that enum values are appended without duplicates."""
    tool = (
        ToolBuilder(find_orders)
        .describe("d")
        .enum("status", "pending")
        .enum("status", "pending", "completed")
        .build()
    )

    assert tool.descriptor.properties["status"].enum == ("pending", "completed")


def test_parameter_refinement_overrides_type_and_description():
    """Test that parameter() merges into an existing property."""
    tool = (
        ToolBuilder(hello)
        .describe("Says hello")
        .enum("name", "world")
        .parameter("name", "string", "The greeted party")
        .build()
    )

    prop = tool.descriptor.properties["name"]
    assert prop.description == "The greeted party"
    assert prop.enum == ("world",)


def test_bind_keyword_refinements():
    """Test that bind() accepts refinements as keyword arguments."""
    tool = bind(
        find_orders,
        description="Finds orders",
        parameters={"status": ("string", "Delivery status")},
        enums={"status": ["pending"]},
        required=["status"],
    )

    assert tool.descriptor.properties["status"].description == "Delivery status"
    assert tool.descriptor.required == ("status",)


# Fixups


def test_camel_names():
    """Test renaming parameters to camelCase."""
    tool = bind(find_orders, description="d", camel_names=True)

    assert list(tool.descriptor.properties) == ["customerId", "status", "orderName"]
    assert tool.argument_names["customerId"] == "customer_id"
    assert tool.argument_names["orderName"] == "order_name"


def test_rename_to_empty_removes_parameter():
    """Test that a fixup returning "" deletes the parameter."""
    tool = (
        ToolBuilder(hello)
        .describe("Says hello")
        .rename_parameters(lambda name: "" if name == "name" else name)
        .build()
    )

    assert tool.descriptor.properties == {}
    assert tool.descriptor.required == ()


def test_rename_collision_is_rejected():
    """Test that a fixup mapping two parameters to one name fails the build."""
    builder = (
        ToolBuilder(find_orders)
        .describe("d")
        .rename_parameters(lambda name: "status" if name == "order_name" else name)
    )

    with pytest.raises(ToolValidationError, match="collides") as exc_info:
        builder.build()

    assert exc_info.value.property_name == "status"


def test_fixups_run_after_refinements():
    """Test that fixups see refinements declared after them."""
    tool = (
        ToolBuilder(find_orders)
        .describe("d")
        .camel_names()
        .enum("order_name", "pizza")
        .require("order_name")
        .build()
    )

    assert tool.descriptor.properties["orderName"].enum == ("pizza",)
    assert tool.descriptor.required == ("orderName",)


# Validation


def test_missing_tool_description():
    """Test that a tool needs a description."""
    with pytest.raises(ToolValidationError, match="should have a description"):
        ToolBuilder(hello).build()


def test_missing_parameter_description():
    """Test that every parameter needs a description."""

    def tool(params: Undocumented) -> str:
        return ""

    with pytest.raises(ToolValidationError) as exc_info:
        bind(tool, description="d")

    assert exc_info.value.property_name == "value"
    assert "missing parameter description" in str(exc_info.value)


def test_missing_parameter_type():
    """Test that a parameter whose type cannot be inferred is rejected."""

    def tool(params: Untyped) -> str:
        return ""

    with pytest.raises(ToolValidationError, match="missing parameter type"):
        bind(tool, description="d")


def test_required_parameter_must_exist():
    """Test that required names must be declared parameters."""
    with pytest.raises(ToolValidationError, match="not declared"):
        ToolBuilder(hello).describe("Says hello").require("nobody").build()


def test_builder_without_callable():
    """Test describing a tool without binding a callable."""
    builder = (
        ToolBuilder(name="weather", description="Reports the weather")
        .parameter("city", "string", "City name")
        .require("city")
    )

    descriptor = builder.descriptor()

    assert descriptor.required == ("city",)
    with pytest.raises(BindError, match="no callable"):
        builder.build()


def test_bound_tool_is_immutable(hello_tool):
    """Test that bound tools and descriptors cannot be modified."""
    with pytest.raises(dataclasses.FrozenInstanceError):
        hello_tool.fn = no_params
    with pytest.raises(ValidationError):
        hello_tool.descriptor.name = "goodbye"
