"""Lexer for expressions."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator

from .exceptions import RuleSyntaxError

class TokenType(Enum):
    """Types of tokens in expressions."""
    INTEGER = auto()
    FLOAT = auto()
    STRING = auto()
    CHAR = auto()
    IDENTIFIER = auto()

    # Arithmetic and bitwise operators
    ADD = auto()  # +
    SUB = auto()  # -
    MUL = auto()  # *
    QUO = auto()  # /
    REM = auto()  # %
    AND = auto()  # &
    OR = auto()   # |
    XOR = auto()  # ^
    SHL = auto()  # <<
    SHR = auto()  # >>

    # Logical operators
    LAND = auto()  # &&
    LOR = auto()   # ||
    NOT = auto()   # !

    # Comparison operators
    EQL = auto()  # ==
    NEQ = auto()  # !=
    LSS = auto()  # <
    GTR = auto()  # >
    LEQ = auto()  # <=
    GEQ = auto()  # >=

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    PERIOD = auto()

    EOF = auto()

@dataclass
class Token:
    """A single token; `value` is the source text it was read from."""
    type: TokenType
    value: str
    position: int

# Two-character operators are tried before their one-character prefixes.
_DOUBLE_CHAR_TOKENS = {
    "&&": TokenType.LAND,
    "||": TokenType.LOR,
    "==": TokenType.EQL,
    "!=": TokenType.NEQ,
    "<=": TokenType.LEQ,
    ">=": TokenType.GEQ,
    "<<": TokenType.SHL,
    ">>": TokenType.SHR,
}

_SINGLE_CHAR_TOKENS = {
    "+": TokenType.ADD,
    "-": TokenType.SUB,
    "*": TokenType.MUL,
    "/": TokenType.QUO,
    "%": TokenType.REM,
    "&": TokenType.AND,
    "|": TokenType.OR,
    "^": TokenType.XOR,
    "!": TokenType.NOT,
    "<": TokenType.LSS,
    ">": TokenType.GTR,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ",": TokenType.COMMA,
    ".": TokenType.PERIOD,
}

class Lexer:
    """Tokenizes expression strings."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.current_char = self.text[0] if self.text else None

    def error(self, message: str, position: int | None = None) -> None:
        """Raise a syntax error."""
        raise RuleSyntaxError(message, self.pos if position is None else position)

    def advance(self) -> None:
        """Move one character forward."""
        self.pos += 1
        if self.pos < len(self.text):
            self.current_char = self.text[self.pos]
        else:
            self.current_char = None

    def peek(self) -> str | None:
        """Look at the next character without moving."""
        peek_pos = self.pos + 1
        return self.text[peek_pos] if peek_pos < len(self.text) else None

    def skip_whitespace(self) -> None:
        """Skip over whitespace characters."""
        while self.current_char is not None and self.current_char.isspace():
            self.advance()

    def _digits(self) -> str:
        result = ""
        while self.current_char is not None and self.current_char in "0123456789":
            result += self.current_char
            self.advance()
        return result

    def _number(self) -> Token:
        """Parse an integer or float literal, keeping its source text."""
        start_pos = self.pos
        result = self._digits()
        is_float = False

        if self.current_char == ".":
            is_float = True
            result += "."
            self.advance()
            result += self._digits()

        if self.current_char in ("e", "E"):
            is_float = True
            result += self.current_char
            self.advance()
            if self.current_char in ("+", "-"):
                result += self.current_char
                self.advance()
            exponent = self._digits()
            if not exponent:
                self.error("Exponent has no digits")
            result += exponent

        if is_float:
            return Token(TokenType.FLOAT, result, start_pos)
        if len(result) > 1 and result[0] == "0" and any(digit in "89" for digit in result):
            self.error(f"Invalid digit in integer literal {result}", start_pos)
        return Token(TokenType.INTEGER, result, start_pos)

    def _quoted(self, token_type: TokenType) -> Token:
        """Parse a quoted literal; escapes are skipped over but not decoded."""
        start_pos = self.pos
        quote_char = self.current_char
        result = quote_char
        self.advance()

        while self.current_char is not None and self.current_char != quote_char:
            if self.current_char == "\n":
                self.error("Newline in string literal", start_pos)
            if self.current_char == "\\":
                result += self.current_char
                self.advance()
                if self.current_char is None:
                    break
            result += self.current_char
            self.advance()

        if self.current_char is None:
            self.error("Unterminated string literal", start_pos)

        result += quote_char
        self.advance()
        return Token(token_type, result, start_pos)

    def _raw_string(self) -> Token:
        """Parse a backquoted string; everything up to the closing quote is kept."""
        start_pos = self.pos
        result = "`"
        self.advance()
        while self.current_char is not None and self.current_char != "`":
            result += self.current_char
            self.advance()

        if self.current_char is None:
            self.error("Unterminated raw string literal", start_pos)

        result += "`"
        self.advance()
        return Token(TokenType.STRING, result, start_pos)

    def _identifier(self) -> Token:
        """Parse an identifier."""
        start_pos = self.pos
        result = ""
        while self.current_char is not None and (
            self.current_char.isalnum() or self.current_char == "_"
        ):
            result += self.current_char
            self.advance()
        return Token(TokenType.IDENTIFIER, result, start_pos)

    def get_next_token(self) -> Token:
        """Get the next token from input."""
        while self.current_char is not None:

            if self.current_char.isspace():
                self.skip_whitespace()
                continue

            if self.current_char in "0123456789":
                return self._number()

            next_char = self.peek()
            if self.current_char == "." and next_char is not None and next_char in "0123456789":
                return self._number()

            if self.current_char == '"':
                return self._quoted(TokenType.STRING)

            if self.current_char == "'":
                return self._quoted(TokenType.CHAR)

            if self.current_char == "`":
                return self._raw_string()

            if self.current_char.isalpha() or self.current_char == "_":
                return self._identifier()

            start_pos = self.pos
            pair = self.current_char + (self.peek() or "")
            if pair in _DOUBLE_CHAR_TOKENS:
                self.advance()
                self.advance()
                return Token(_DOUBLE_CHAR_TOKENS[pair], pair, start_pos)

            if self.current_char in _SINGLE_CHAR_TOKENS:
                char = self.current_char
                self.advance()
                return Token(_SINGLE_CHAR_TOKENS[char], char, start_pos)

            if self.current_char == "=":
                self.error("Unexpected character '='. Did you mean '=='?")

            self.error(f"Invalid character '{self.current_char}'")

        return Token(TokenType.EOF, "", self.pos)

    def tokenize(self) -> Iterator[Token]:
        """Generator that yields all tokens."""
        while True:
            token = self.get_next_token()
            yield token
            if token.type == TokenType.EOF:
                break
