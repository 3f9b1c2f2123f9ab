"""Abstract Syntax Tree nodes for expressions."""

from dataclasses import dataclass, field
from enum import Enum


class LiteralKind(Enum):
    """Kinds of literal tokens."""
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    CHAR = "char"


@dataclass(frozen=True)
class Node:
    """Base class for all AST nodes."""
    pass


@dataclass(frozen=True)
class Literal(Node):
    """A literal as written in the source (e.g. `01230`, `1.5`, `"abc"`)."""
    kind: LiteralKind
    raw: str
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Identifier(Node):
    """A bare name (e.g. `age`)."""
    name: str
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Selector(Node):
    """Field selection (e.g. `user.age`)."""
    object: Node
    field_name: str
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Index(Node):
    """Indexing (e.g. `tags[0]`, `mp["key"]`)."""
    object: Node
    index: Node
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Unary(Node):
    """A unary operation (e.g. `!ok`, `-n`)."""
    operator: str
    operand: Node
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Binary(Node):
    """A binary operation (e.g. `a + b`)."""
    operator: str
    left: Node
    right: Node
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Call(Node):
    """A function call (e.g. `contains(tags, "vip")`)."""
    callee: Node
    arguments: tuple[Node, ...]
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Paren(Node):
    """A parenthesized expression."""
    inner: Node
    position: int = field(default=0, compare=False)
