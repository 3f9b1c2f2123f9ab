"""Runtime value model for expression evaluation.

Every value an expression can produce is one of a closed set of frozen
dataclasses. Values never change once built; operators only ever construct
new values, so an environment can be shared freely between intermediate
results.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, ClassVar

from .exceptions import ValueConversionError

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


class ValueKind(Enum):
    """Variants of the value model."""

    INT = "Int64"
    FLOAT = "Float"
    STRING = "String"
    BOOL = "Bool"
    MAPPING = "Mapping"
    SEQUENCE = "Sequence"
    NIL = "Nil"
    FUNCTION = "Function"


@dataclass(frozen=True)
class Value:
    """Base class for all runtime values."""

    kind: ClassVar[ValueKind]

    def to_python(self) -> Any:
        """Convert to the equivalent plain Python object."""
        raise NotImplementedError

    def describe(self) -> str:
        """Short human-readable form used in error messages."""
        return f"{self.kind.value}({self.to_python()!r})"


@dataclass(frozen=True)
class IntValue(Value):
    """Signed 64-bit integer."""

    kind: ClassVar[ValueKind] = ValueKind.INT
    value: int

    def to_python(self) -> int:
        return self.value


@dataclass(frozen=True)
class FloatValue(Value):
    """64-bit float."""

    kind: ClassVar[ValueKind] = ValueKind.FLOAT
    value: float

    def to_python(self) -> float:
        return self.value


@dataclass(frozen=True)
class StringValue(Value):
    kind: ClassVar[ValueKind] = ValueKind.STRING
    value: str

    def to_python(self) -> str:
        return self.value


@dataclass(frozen=True)
class BoolValue(Value):
    kind: ClassVar[ValueKind] = ValueKind.BOOL
    value: bool

    def to_python(self) -> bool:
        return self.value


@dataclass(frozen=True, eq=False)
class MappingValue(Value):
    """Read-only mapping from name to value."""

    kind: ClassVar[ValueKind] = ValueKind.MAPPING
    entries: Mapping[str, Value] = field(default_factory=lambda: MappingProxyType({}))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MappingValue):
            return NotImplemented
        return dict(self.entries) == dict(other.entries)

    __hash__ = None  # type: ignore[assignment]

    def get(self, name: str) -> Value:
        """Look up `name`, returning NIL when it is not bound."""
        return self.entries.get(name, NIL)

    def to_python(self) -> dict[str, Any]:
        return {key: value.to_python() for key, value in self.entries.items()}

    def describe(self) -> str:
        return f"Mapping({len(self.entries)} entries)"


@dataclass(frozen=True)
class SequenceValue(Value):
    """Homogeneous ordered sequence of strings or integers."""

    kind: ClassVar[ValueKind] = ValueKind.SEQUENCE
    element_kind: ValueKind
    items: tuple[Value, ...] = ()

    def __post_init__(self) -> None:
        if self.element_kind not in (ValueKind.STRING, ValueKind.INT):
            raise ValueConversionError(
                f"sequences hold String or Int64 elements, not {self.element_kind.value}"
            )
        for item in self.items:
            if item.kind != self.element_kind:
                raise ValueConversionError(
                    f"{item.describe()} in a sequence of {self.element_kind.value}"
                )

    def __len__(self) -> int:
        return len(self.items)

    def to_python(self) -> list[Any]:
        return [item.to_python() for item in self.items]

    def describe(self) -> str:
        return f"Sequence[{self.element_kind.value}]({len(self.items)} items)"


@dataclass(frozen=True)
class NilValue(Value):
    """The absent value."""

    kind: ClassVar[ValueKind] = ValueKind.NIL

    def to_python(self) -> None:
        return None

    def describe(self) -> str:
        return "Nil"


@dataclass(frozen=True)
class FunctionValue(Value):
    """A built-in function. Only reachable through call expressions."""

    kind: ClassVar[ValueKind] = ValueKind.FUNCTION
    name: str
    callback: Callable[..., Value] = field(compare=False)

    def to_python(self) -> Callable[..., Value]:
        return self.callback

    def describe(self) -> str:
        return f"Function({self.name})"


NIL = NilValue()
TRUE = BoolValue(True)
FALSE = BoolValue(False)


def string_sequence(items: list[str] | tuple[str, ...] = ()) -> SequenceValue:
    """Build a sequence of strings from plain Python strings."""
    return SequenceValue(ValueKind.STRING, tuple(StringValue(item) for item in items))


def to_value(obj: Any) -> Value:
    """Convert a plain Python object into a Value.

    Args:
        obj: A bool, int, float, str, None, mapping with string keys,
            list/tuple of strings or integers, or an existing Value.

    Returns:
        Value: The converted value.

    Raises:
        ValueConversionError: If the object has no counterpart in the value model.
    """
    if isinstance(obj, Value):
        return obj
    if obj is None:
        return NIL
    # bool is a subclass of int, so it has to be checked first
    if isinstance(obj, bool):
        return BoolValue(obj)
    if isinstance(obj, int):
        if not INT64_MIN <= obj <= INT64_MAX:
            raise ValueConversionError(f"integer {obj} does not fit in 64 bits")
        return IntValue(obj)
    if isinstance(obj, float):
        return FloatValue(obj)
    if isinstance(obj, str):
        return StringValue(obj)
    if isinstance(obj, Mapping):
        return MappingValue(_convert_entries(obj))
    if isinstance(obj, (list, tuple)):
        return _convert_sequence(obj)
    raise ValueConversionError(f"unsupported value type: {type(obj).__name__}")


def _convert_entries(obj: Mapping[Any, Any]) -> Mapping[str, Value]:
    entries: dict[str, Value] = {}
    for key, item in obj.items():
        if not isinstance(key, str):
            raise ValueConversionError(f"mapping keys must be strings, got {type(key).__name__}")
        entries[key] = to_value(item)
    return MappingProxyType(entries)


def _convert_sequence(obj: list[Any] | tuple[Any, ...]) -> SequenceValue:
    items = tuple(to_value(item) for item in obj)
    if not items:
        return SequenceValue(ValueKind.STRING)
    return SequenceValue(items[0].kind, items)


def make_environment(environment: Mapping[str, Any] | None) -> MappingValue:
    """Build the read-only top-level environment for a run."""
    if environment is None:
        return MappingValue()
    if isinstance(environment, MappingValue):
        return environment
    return MappingValue(_convert_entries(environment))
