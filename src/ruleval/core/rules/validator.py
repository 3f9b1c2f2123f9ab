"""Expression validator.

Checks an expression without evaluating it: it must parse, and every call
must name a registered built-in with an acceptable number of arguments.
"""

from .ast import Binary, Call, Identifier, Index, Node, Paren, Selector, Unary
from .exceptions import RuleSyntaxError
from .functions import FunctionRegistry, registry as default_registry
from .lexer import Lexer
from .parser import DEFAULT_MAX_NESTING_DEPTH, Parser


class RuleValidator:
    """Validates expressions."""

    def __init__(
        self,
        registry: FunctionRegistry | None = None,
        max_depth: int = DEFAULT_MAX_NESTING_DEPTH,
    ):
        """Initialize validator.

        Args:
            registry: Built-ins that calls may target. Defaults to the
                process-wide registry.
            max_depth: Nesting ceiling passed to the parser.
        """
        self.registry = registry if registry is not None else default_registry
        self.max_depth = max_depth
        self.errors: list[str] = []

    def validate(self, expression: str) -> Node:
        """Validate an expression.

        Args:
            expression: Expression text.

        Returns:
            Node: The parsed expression.

        Raises:
            RuleSyntaxError: If the expression is invalid.
        """
        ast = Parser(Lexer(expression), max_depth=self.max_depth).parse()

        self.errors = []
        self._validate_node(ast)

        if self.errors:
            raise RuleSyntaxError("; ".join(self.errors))
        return ast

    def _validate_node(self, node: Node) -> None:
        if isinstance(node, Call):
            self._validate_call(node)
            for argument in node.arguments:
                self._validate_node(argument)
        elif isinstance(node, Binary):
            self._validate_node(node.left)
            self._validate_node(node.right)
        elif isinstance(node, Unary):
            self._validate_node(node.operand)
        elif isinstance(node, Paren):
            self._validate_node(node.inner)
        elif isinstance(node, Selector):
            self._validate_node(node.object)
        elif isinstance(node, Index):
            self._validate_node(node.object)
            self._validate_node(node.index)

    def _validate_call(self, node: Call) -> None:
        if not isinstance(node.callee, Identifier):
            self.errors.append(f"Call target at position {node.position} is not a function name")
            self._validate_node(node.callee)
            return

        function = self.registry.get(node.callee.name)
        if function is None:
            self.errors.append(f"Unknown function: {node.callee.name}")
        elif not function.accepts(len(node.arguments)):
            self.errors.append(
                f"{function.name}() expects {function.arity()} arguments, "
                f"got {len(node.arguments)}"
            )
