"""Expression evaluation API."""

from collections.abc import Mapping
from typing import Any, NamedTuple

from ruleval.core.config import Settings, get_settings
from ruleval.core.logging import get_logger

from .ast import Node
from .evaluator import Evaluator
from .exceptions import (
    RuleError,
    RuleEvaluationError,
    RuleSyntaxError,
    RuleTypeError,
    ValueConversionError,
)
from .functions import FunctionRegistry, registry
from .lexer import Lexer
from .parser import DEFAULT_MAX_NESTING_DEPTH, Parser
from .validator import RuleValidator
from .values import MappingValue, Value, make_environment, to_value

logger = get_logger(__name__)


class RunResult(NamedTuple):
    """Outcome of `run`: exactly one of `value` and `error` is set."""

    value: Value | None
    error: RuleError | None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Value:
        """Return the value, or raise the error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def parse_expression(expression: str, max_depth: int = DEFAULT_MAX_NESTING_DEPTH) -> Node:
    """Parse an expression string into an AST."""
    lexer = Lexer(expression)
    parser = Parser(lexer, max_depth=max_depth)
    return parser.parse()


def evaluate_expression(
    node: Node,
    environment: MappingValue | Mapping[str, Any] | None = None,
    function_registry: FunctionRegistry | None = None,
) -> Value:
    """Evaluate a parsed AST against an environment."""
    evaluator = Evaluator(environment, function_registry)
    return evaluator.evaluate(node)


def run(
    expression: str,
    environment: MappingValue | Mapping[str, Any] | None = None,
    settings: Settings | None = None,
) -> RunResult:
    """Parse and evaluate an expression, returning failures instead of raising.

    Args:
        expression: Expression text.
        environment: Name bindings, as plain Python objects or Values.
        settings: Optional settings instance. If not provided, will load from environment.

    Returns:
        RunResult: The value, or the error that stopped evaluation.
    """
    if settings is None:
        settings = get_settings()

    try:
        if len(expression) > settings.max_expression_length:
            raise RuleSyntaxError(
                f"Expression longer than {settings.max_expression_length} characters"
            )
        node = parse_expression(expression, max_depth=settings.max_nesting_depth)
        value = evaluate_expression(node, make_environment(environment))
    except RuleError as exc:
        logger.warning(
            "Expression failed",
            expression=expression,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return RunResult(None, exc)
    except RecursionError as exc:
        error = RuleEvaluationError("Expression nested too deeply to evaluate")
        error.__cause__ = exc
        logger.warning("Expression failed", expression=expression, error_type="RecursionError")
        return RunResult(None, error)

    logger.debug("Expression evaluated", expression=expression, result=value.describe())
    return RunResult(value, None)


__all__ = [
    "parse_expression",
    "evaluate_expression",
    "run",
    "RunResult",
    "Node",
    "Value",
    "to_value",
    "Evaluator",
    "FunctionRegistry",
    "registry",
    "RuleValidator",
    "RuleError",
    "RuleSyntaxError",
    "RuleEvaluationError",
    "RuleTypeError",
    "ValueConversionError",
]
