"""Parser for expressions."""

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
from .exceptions import RuleSyntaxError
from .lexer import Lexer, Token, TokenType

DEFAULT_MAX_NESTING_DEPTH = 200

# Binary operator precedence, loosest first.
BINARY_PRECEDENCE = {
    TokenType.LOR: 1,
    TokenType.LAND: 2,
    TokenType.EQL: 3,
    TokenType.NEQ: 3,
    TokenType.LSS: 3,
    TokenType.LEQ: 3,
    TokenType.GTR: 3,
    TokenType.GEQ: 3,
    TokenType.ADD: 4,
    TokenType.SUB: 4,
    TokenType.OR: 4,
    TokenType.XOR: 4,
    TokenType.MUL: 5,
    TokenType.QUO: 5,
    TokenType.REM: 5,
    TokenType.SHL: 5,
    TokenType.SHR: 5,
    TokenType.AND: 5,
}

UNARY_OPERATORS = (TokenType.NOT, TokenType.SUB, TokenType.ADD, TokenType.XOR)

LITERAL_KINDS = {
    TokenType.INTEGER: LiteralKind.INT,
    TokenType.FLOAT: LiteralKind.FLOAT,
    TokenType.STRING: LiteralKind.STRING,
    TokenType.CHAR: LiteralKind.CHAR,
}


class Parser:
    """Precedence-climbing parser for expressions."""

    def __init__(self, lexer: Lexer, max_depth: int = DEFAULT_MAX_NESTING_DEPTH):
        self.lexer = lexer
        self.max_depth = max_depth
        self.depth = 0
        self.current_token: Token = self.lexer.get_next_token()

    def error(self, message: str) -> None:
        """Raise a syntax error."""
        raise RuleSyntaxError(message, self.current_token.position)

    def consume(self, token_type: TokenType) -> Token:
        """Consume the current token if it matches the expected type."""
        token = self.current_token
        if token.type == token_type:
            self.current_token = self.lexer.get_next_token()
        else:
            self.error(f"Expected {token_type.name}, found {token.type.name}")
        return token

    def parse(self) -> Node:
        """Parse the entire expression."""
        if self.current_token.type == TokenType.EOF:
            self.error("Empty expression")
        node = self.expression()
        if self.current_token.type != TokenType.EOF:
            self.error(f"Unexpected token '{self.current_token.value}' after expression")
        return node

    def _enter(self, levels: int = 1) -> None:
        if self.depth + levels > self.max_depth:
            self.error(f"Expression nested deeper than {self.max_depth} levels")

    def expression(self, min_precedence: int = 1) -> Node:
        """Parse binary operations binding at least as tightly as `min_precedence`."""
        node = self.unary()
        chain = 0

        while True:
            precedence = BINARY_PRECEDENCE.get(self.current_token.type)
            if precedence is None or precedence < min_precedence:
                return node
            token = self.consume(self.current_token.type)
            # Left-associative chains deepen the tree without deepening the recursion.
            chain += 1
            self._enter(chain)
            self.depth += chain
            try:
                right = self.expression(precedence + 1)
            finally:
                self.depth -= chain
            node = Binary(token.value, node, right, position=token.position)

    def unary(self) -> Node:
        """Parse prefix operators."""
        self._enter()
        self.depth += 1
        try:
            if self.current_token.type in UNARY_OPERATORS:
                token = self.consume(self.current_token.type)
                return Unary(token.value, self.unary(), position=token.position)
            return self.postfix()
        finally:
            self.depth -= 1

    def postfix(self) -> Node:
        """Parse selectors, index expressions and calls following a primary."""
        node = self.primary()

        while True:
            token = self.current_token
            if token.type == TokenType.PERIOD:
                self.consume(TokenType.PERIOD)
                name = self.consume(TokenType.IDENTIFIER)
                node = Selector(node, name.value, position=token.position)
            elif token.type == TokenType.LBRACKET:
                self.consume(TokenType.LBRACKET)
                if self.current_token.type == TokenType.RBRACKET:
                    self.error("Expected index expression")
                index = self.expression()
                self.consume(TokenType.RBRACKET)
                node = Index(node, index, position=token.position)
            elif token.type == TokenType.LPAREN:
                node = Call(node, self._arguments(), position=token.position)
            else:
                return node

    def primary(self) -> Node:
        """Parse basic units: literals, identifiers, parentheses."""
        token = self.current_token

        if token.type in LITERAL_KINDS:
            self.consume(token.type)
            return Literal(LITERAL_KINDS[token.type], token.value, position=token.position)

        if token.type == TokenType.IDENTIFIER:
            self.consume(TokenType.IDENTIFIER)
            return Identifier(token.value, position=token.position)

        if token.type == TokenType.LPAREN:
            self.consume(TokenType.LPAREN)
            inner = self.expression()
            self.consume(TokenType.RPAREN)
            return Paren(inner, position=token.position)

        if token.type == TokenType.EOF:
            self.error("Unexpected end of expression")
        self.error(f"Unexpected token '{token.value}'")
        return Node()  # unreachable

    def _arguments(self) -> tuple[Node, ...]:
        """Parse a parenthesized, comma-separated argument list."""
        self.consume(TokenType.LPAREN)
        arguments = []

        while self.current_token.type != TokenType.RPAREN:
            arguments.append(self.expression())
            if self.current_token.type != TokenType.COMMA:
                break
            self.consume(TokenType.COMMA)

        self.consume(TokenType.RPAREN)
        return tuple(arguments)
