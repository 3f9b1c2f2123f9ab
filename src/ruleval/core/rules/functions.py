"""Built-in function registry.

Built-ins receive their argument nodes unevaluated, together with an
``evaluate`` callback bound to the current environment, and decide for
themselves which arguments to evaluate and in what order.

Example:
    @registry.register("isEmpty", min_args=1, max_args=1)
    def is_empty(args, evaluate):
        value = evaluate(args[0])
        ...
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterator, Sequence

from .ast import Node
from .exceptions import RuleEvaluationError, RuleTypeError
from .values import (
    FALSE,
    NIL,
    TRUE,
    FunctionValue,
    IntValue,
    NilValue,
    SequenceValue,
    StringValue,
    Value,
    ValueKind,
    string_sequence,
)

Evaluate = Callable[[Node], Value]
BuiltinCallback = Callable[[Sequence[Node], Evaluate], Value]


@dataclass(frozen=True)
class BuiltinFunction:
    """A registered built-in.

    Attributes:
        name: Name used in call expressions.
        callback: Implementation, called with (argument nodes, evaluate).
        min_args: Fewest arguments accepted.
        max_args: Most arguments accepted, or None for no upper bound.
    """

    name: str
    callback: BuiltinCallback
    min_args: int = 0
    max_args: int | None = None

    def accepts(self, count: int) -> bool:
        """Check whether `count` arguments are within this function's arity."""
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args

    def arity(self) -> str:
        """Describe the accepted argument count (e.g. "2", "1..3", "0+")."""
        if self.max_args is None:
            return f"{self.min_args}+"
        if self.min_args == self.max_args:
            return str(self.min_args)
        return f"{self.min_args}..{self.max_args}"

    def __call__(self, args: Sequence[Node], evaluate: Evaluate) -> Value:
        if not self.accepts(len(args)):
            raise RuleTypeError(
                f"{self.name}() expects {self.arity()} arguments, got {len(args)}"
            )
        return self.callback(args, evaluate)


class FunctionRegistry:
    """Named table of built-in functions.

    The registry is filled at import time and then frozen; after that it is
    only ever read, so concurrent evaluations can share it without locking.
    """

    def __init__(self) -> None:
        self._functions: dict[str, BuiltinFunction] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(
        self, name: str, min_args: int = 0, max_args: int | None = None
    ) -> Callable[[BuiltinCallback], BuiltinCallback]:
        """Decorator registering a built-in under `name`.

        Raises:
            RuntimeError: If the registry is frozen or `name` is taken.
        """
        def decorator(callback: BuiltinCallback) -> BuiltinCallback:
            if self._frozen:
                raise RuntimeError(f"cannot register {name!r}: registry is frozen")
            if name in self._functions:
                raise RuntimeError(f"function {name!r} is already registered")
            self._functions[name] = BuiltinFunction(name, callback, min_args, max_args)
            return callback

        return decorator

    def freeze(self) -> "FunctionRegistry":
        """Make the registry read-only."""
        self._frozen = True
        return self

    def get(self, name: str) -> BuiltinFunction | None:
        return self._functions.get(name)

    def resolve(self, name: str) -> Value:
        """Resolve a call target, returning NIL for unknown names."""
        function = self._functions.get(name)
        if function is None:
            return NIL
        return FunctionValue(name, function)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __iter__(self) -> Iterator[BuiltinFunction]:
        return iter(sorted(self._functions.values(), key=lambda function: function.name))

    def __len__(self) -> int:
        return len(self._functions)


def _expect_string(function: str, value: Value) -> str:
    if not isinstance(value, StringValue):
        raise RuleTypeError(f"{function}() expects a String argument, got {value.describe()}")
    return value.value


def _compile(function: str, pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise RuleEvaluationError(f"{function}(): invalid pattern {pattern!r}: {exc}") from exc


registry = FunctionRegistry()


@registry.register("contains", min_args=2, max_args=2)
def contains(args: Sequence[Node], evaluate: Evaluate) -> Value:
    """contains(s, substr) or contains(strings, s)."""
    container = evaluate(args[0])
    item = evaluate(args[1])

    if isinstance(container, StringValue):
        return TRUE if _expect_string("contains", item) in container.value else FALSE

    if isinstance(container, SequenceValue) and container.element_kind == ValueKind.STRING:
        return TRUE if StringValue(_expect_string("contains", item)) in container.items else FALSE

    raise RuleTypeError(
        f"contains() expects a String or Sequence[String] container, got {container.describe()}"
    )


@registry.register("matchString", min_args=2, max_args=2)
def match_string(args: Sequence[Node], evaluate: Evaluate) -> Value:
    """matchString(pattern, s): whether the pattern matches anywhere in s."""
    pattern = _expect_string("matchString", evaluate(args[0]))
    subject = _expect_string("matchString", evaluate(args[1]))
    return TRUE if _compile("matchString", pattern).search(subject) else FALSE


@registry.register("findAllString", min_args=3, max_args=3)
def find_all_string(args: Sequence[Node], evaluate: Evaluate) -> Value:
    """findAllString(pattern, s, n): up to n successive matches, all when n < 0."""
    pattern = _expect_string("findAllString", evaluate(args[0]))
    subject = _expect_string("findAllString", evaluate(args[1]))
    limit = evaluate(args[2])
    if not isinstance(limit, IntValue):
        raise RuleTypeError(f"findAllString() expects an Int64 limit, got {limit.describe()}")

    regex = _compile("findAllString", pattern)
    found: list[str] = []
    if limit.value == 0:
        return string_sequence(found)

    last_end = -1
    for match in regex.finditer(subject):
        # Empty matches directly after a previous match are not reported.
        if match.start() == match.end() == last_end:
            continue
        found.append(match.group(0))
        last_end = match.end()
        if len(found) == limit.value:
            break

    return string_sequence(found)


@registry.register("newSlice")
def new_slice(args: Sequence[Node], evaluate: Evaluate) -> Value:
    """newSlice(s...): a Sequence[String] of the arguments, in order."""
    return string_sequence([_expect_string("newSlice", evaluate(arg)) for arg in args])


@registry.register("isEmpty", min_args=1, max_args=1)
def is_empty(args: Sequence[Node], evaluate: Evaluate) -> Value:
    """isEmpty(x): true only for Nil and the empty string."""
    value = evaluate(args[0])
    if isinstance(value, NilValue) or value == StringValue(""):
        return TRUE
    return FALSE


registry.freeze()
