"""Evaluator for expressions."""

import math
from collections.abc import Mapping
from typing import Any

from .arithmetic import (
    COMPARISONS,
    FLOAT_ARITHMETIC,
    INT_ARITHMETIC,
    negate,
    unify_numeric,
)
from .ast import (
    Binary,
    Call,
    Identifier,
    Index,
    Literal,
    LiteralKind,
    Node,
    Paren,
    Selector,
    Unary,
)
from .exceptions import RuleEvaluationError, RuleSyntaxError, RuleTypeError
from .functions import FunctionRegistry, registry as default_registry
from .values import (
    FALSE,
    INT64_MAX,
    INT64_MIN,
    TRUE,
    BoolValue,
    FloatValue,
    FunctionValue,
    IntValue,
    MappingValue,
    NilValue,
    SequenceValue,
    StringValue,
    Value,
    make_environment,
)

# These names always mean the boolean constants, whatever the environment binds.
RESERVED_CONSTANTS = {"true": TRUE, "false": FALSE}


def evaluate_literal(node: Literal) -> Value:
    """Turn literal source text into a value."""
    if node.kind == LiteralKind.INT:
        try:
            value = int(node.raw, 10)
        except ValueError as exc:
            raise RuleSyntaxError(f"Invalid integer literal {node.raw}", node.position) from exc
        if not INT64_MIN <= value <= INT64_MAX:
            raise RuleSyntaxError(f"Integer literal {node.raw} out of range", node.position)
        return IntValue(value)

    if node.kind == LiteralKind.FLOAT:
        value = float(node.raw)
        if math.isinf(value):
            raise RuleSyntaxError(f"Float literal {node.raw} out of range", node.position)
        return FloatValue(value)

    if node.kind == LiteralKind.STRING:
        return StringValue(node.raw[1:-1])

    raise RuleSyntaxError(f"Unsupported literal {node.raw}", node.position)


def resolve_identifier(name: str, scope: MappingValue) -> Value:
    """Resolve a name against a mapping; unbound names give Nil."""
    constant = RESERVED_CONSTANTS.get(name)
    if constant is not None:
        return constant
    return scope.get(name)


class Evaluator:
    """Evaluates an AST against an environment.

    The environment is never modified. All failures are raised as
    RuleError subclasses from wherever they are detected.
    """

    def __init__(
        self,
        environment: MappingValue | Mapping[str, Any] | None = None,
        registry: FunctionRegistry | None = None,
    ):
        """Initialize the evaluator.

        Args:
            environment: Name bindings, as a MappingValue or a plain mapping.
            registry: Built-in functions for call expressions. Defaults to the
                process-wide registry.
        """
        self.environment = make_environment(environment)
        self.registry = registry if registry is not None else default_registry

    def evaluate(self, node: Node) -> Value:
        """Evaluate a node."""
        if isinstance(node, Paren):
            return self.evaluate(node.inner)

        if isinstance(node, Literal):
            return evaluate_literal(node)

        if isinstance(node, Identifier):
            return resolve_identifier(node.name, self.environment)

        if isinstance(node, Selector):
            return self._evaluate_selector(node)

        if isinstance(node, Index):
            return self._evaluate_index(node)

        if isinstance(node, Unary):
            return self._evaluate_unary(node)

        if isinstance(node, Binary):
            return self._evaluate_binary(node)

        if isinstance(node, Call):
            return self._evaluate_call(node)

        raise RuleEvaluationError(f"Unsupported expression: {type(node).__name__}")

    def _evaluate_selector(self, node: Selector) -> Value:
        target = self.evaluate(node.object)
        if not isinstance(target, MappingValue):
            raise RuleTypeError(
                f"cannot select field '{node.field_name}' from {target.describe()}"
            )
        return resolve_identifier(node.field_name, target)

    def _evaluate_index(self, node: Index) -> Value:
        target = self.evaluate(node.object)
        index = self.evaluate(node.index)

        if isinstance(index, IntValue):
            if not isinstance(target, SequenceValue):
                raise RuleTypeError(f"cannot index {target.describe()} with an Int64")
            if not 0 <= index.value < len(target):
                raise RuleEvaluationError(
                    f"index {index.value} out of range for sequence of length {len(target)}"
                )
            return target.items[index.value]

        if isinstance(index, StringValue):
            if not isinstance(target, MappingValue):
                raise RuleTypeError(f"cannot index {target.describe()} with a String")
            return target.get(index.value)

        raise RuleTypeError(f"index must be Int64 or String, got {index.describe()}")

    def _evaluate_unary(self, node: Unary) -> Value:
        operand = self.evaluate(node.operand)

        if node.operator == "!" and isinstance(operand, BoolValue):
            return FALSE if operand.value else TRUE

        if node.operator == "-":
            result = negate(operand)
            if result is not None:
                return result

        raise RuleTypeError(f"invalid unary operation: {node.operator}{operand.describe()}")

    def _evaluate_binary(self, node: Binary) -> Value:
        # Both sides are always evaluated; && and || do not short-circuit.
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)
        left, right = unify_numeric(left, right)
        op = node.operator

        if isinstance(left, IntValue) and isinstance(right, IntValue):
            if op in INT_ARITHMETIC:
                return IntValue(INT_ARITHMETIC[op](left.value, right.value))
            if op in COMPARISONS:
                return BoolValue(COMPARISONS[op](left.value, right.value))

        elif isinstance(left, FloatValue) and isinstance(right, FloatValue):
            if op in FLOAT_ARITHMETIC:
                return FloatValue(FLOAT_ARITHMETIC[op](left.value, right.value))
            if op in COMPARISONS:
                return BoolValue(COMPARISONS[op](left.value, right.value))

        elif isinstance(left, StringValue) and isinstance(right, StringValue):
            if op == "+":
                return StringValue(left.value + right.value)

        elif isinstance(left, BoolValue) and isinstance(right, BoolValue):
            if op == "&&":
                return BoolValue(left.value and right.value)
            if op == "||":
                return BoolValue(left.value or right.value)

        if op == "==":
            return BoolValue(left == right)
        if op == "!=":
            return BoolValue(left != right)

        raise RuleTypeError(
            f"invalid binary operation: {left.describe()} {op} {right.describe()}"
        )

    def _evaluate_call(self, node: Call) -> Value:
        if not isinstance(node.callee, Identifier):
            raise RuleTypeError(f"call target must be a function name, got {type(node.callee).__name__}")

        name = node.callee.name
        function = RESERVED_CONSTANTS.get(name) or self.registry.resolve(name)

        if isinstance(function, FunctionValue):
            return function.callback(node.arguments, self.evaluate)
        if isinstance(function, NilValue):
            raise RuleEvaluationError(f"Unknown function: {name}")
        raise RuleTypeError(f"{name} is not a function: {function.describe()}")
