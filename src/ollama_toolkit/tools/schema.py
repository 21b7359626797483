"""Tool descriptors as advertised to the model.

A ToolDescriptor describes one function tool: its name, what it does and
the parameters it accepts. Descriptors are frozen once the binder has
built them; to_wire() renders the shape Ollama expects in a chat request.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ollama_toolkit.errors import ToolValidationError

STRING = "string"
NUMBER = "number"
BOOL = "bool"
ARRAY = "array"
OBJECT = "object"


class PropertySchema(BaseModel):
    """One parameter of a tool.

    Attributes:
        name: Parameter name as seen by the model
        type: JSON-ish type name, e.g. "string" or "number"
        description: Explanation of the parameter for the model
        enum: Acceptable values for enumerated parameters
    """

    name: str
    type: str = ""
    description: str = ""
    enum: tuple[str, ...] | None = None

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.enum:
            data["enum"] = list(self.enum)
        return data


class ToolDescriptor(BaseModel):
    """The schema of a function tool.

    Attributes:
        name: Unique name of the tool
        description: What the tool does; essential for the model to use it
        properties: Parameters by name, in declaration order
        required: Names of parameters the model must supply
    """

    name: str
    description: str = ""
    properties: dict[str, PropertySchema] = Field(default_factory=dict)
    required: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    def validate_invariants(self) -> None:
        """Check the descriptor invariants, raising on the first violation.

        Raises:
            ToolValidationError: If the name or description is missing, a
                                 property lacks a type or description, or a
                                 required name is not a property
        """
        if not self.name:
            raise ToolValidationError("function tools should have a name")
        if not self.description:
            raise ToolValidationError(
                f"function tool {self.name!r} should have a description"
            )
        for name, prop in self.properties.items():
            if not name:
                raise ToolValidationError("all parameters must have names")
            if not prop.type:
                raise ToolValidationError("missing parameter type", name)
            if not prop.description:
                raise ToolValidationError("missing parameter description", name)
        for name in self.required:
            if name not in self.properties:
                raise ToolValidationError("required parameter is not declared", name)

    def to_wire(self) -> dict[str, Any]:
        """Render the descriptor as an Ollama function tool."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "required": list(self.required),
                    "properties": {
                        name: prop.to_wire() for name, prop in self.properties.items()
                    },
                },
            },
        }
