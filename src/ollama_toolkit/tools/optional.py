"""Two-state optional values for tool parameters.

A parameter model field annotated ``Maybe[T]`` is advertised to the model
as optional (it is never listed in ``required``), and decodes to
``Maybe.absent()`` when the model leaves it out or sends ``null``:

    class FindOrders(BaseModel):
        name: Maybe[str] = Field(Maybe.absent(), description="Order name")

Unlike ``T | None``, the wrapper distinguishes "not supplied" from every
value ``T`` can hold, and it encodes back to ``null`` when absent.

A field declared without a default is still optional: the bound tool
fills it in as absent when the model leaves it out.

Encoding is lossy for a present ``None``: ``Maybe.present(None)`` on a
``Maybe[int | None]`` encodes to ``null`` and so decodes back as absent.
"""

from typing import Any, Generic, TypeVar, get_args

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

T = TypeVar("T")

_MISSING: Any = object()


class Maybe(Generic[T]):
    """An optional value that is either absent or present."""

    __slots__ = ("_value",)

    def __init__(self, value: Any = _MISSING) -> None:
        object.__setattr__(self, "_value", value)

    @classmethod
    def absent(cls) -> "Maybe[Any]":
        """Return an optional value where the value is absent."""
        return cls()

    @classmethod
    def present(cls, value: T) -> "Maybe[T]":
        """Return an optional value where the value is present."""
        return cls(value)

    @property
    def is_present(self) -> bool:
        return self._value is not _MISSING

    @property
    def is_absent(self) -> bool:
        return self._value is _MISSING

    @property
    def value(self) -> T:
        """The wrapped value.

        Raises:
            ValueError: If the value is absent
        """
        if self._value is _MISSING:
            raise ValueError("optional value is absent")
        return self._value

    def get(self, default: Any = None) -> Any:
        """Return the value if present, otherwise default."""
        return default if self._value is _MISSING else self._value

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Maybe values are immutable")

    def __bool__(self) -> bool:
        return self.is_present

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Maybe):
            return NotImplemented
        return self._value is other._value or (
            self.is_present and other.is_present and self._value == other._value
        )

    def __hash__(self) -> int:
        return hash((Maybe, self.is_present, self.get()))

    def __repr__(self) -> str:
        if self._value is _MISSING:
            return "Maybe.absent()"
        return f"Maybe.present({self._value!r})"

    def __copy__(self) -> "Maybe[T]":
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> "Maybe[T]":
        return self

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        args = get_args(source)
        inner = handler.generate_schema(args[0]) if args else core_schema.any_schema()

        def encode(value: "Maybe[Any]", serialize: Any) -> Any:
            if value.is_absent:
                return None
            return serialize(value.value)

        decode = [
            core_schema.no_info_after_validator_function(
                lambda _: cls.absent(), core_schema.none_schema()
            ),
            core_schema.no_info_after_validator_function(cls.present, inner),
        ]
        # isinstance checks only make sense for python input
        return core_schema.json_or_python_schema(
            json_schema=core_schema.union_schema(decode, mode="left_to_right"),
            python_schema=core_schema.union_schema(
                [core_schema.is_instance_schema(cls), *decode], mode="left_to_right"
            ),
            serialization=core_schema.wrap_serializer_function_ser_schema(
                encode, schema=inner
            ),
        )


def is_maybe(annotation: Any) -> bool:
    """Return True if the annotation is Maybe or a parameterized Maybe[T]."""
    return annotation is Maybe or getattr(annotation, "__origin__", None) is Maybe
