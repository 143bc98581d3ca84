"""Token types shared by the lexer and parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    """Kinds of tokens produced by the lexer.

    Keywords are not a separate kind: ``if``, ``in``, ``not`` and friends are
    emitted as ``NAME`` tokens and the parser decides from grammatical
    position whether a spelling is a keyword or an identifier.
    """

    # Template structure
    DATA = "data"
    VARIABLE_BEGIN = "variable_begin"
    VARIABLE_END = "variable_end"
    BLOCK_BEGIN = "block_begin"
    BLOCK_END = "block_end"
    COMMENT_BEGIN = "comment_begin"
    COMMENT_END = "comment_end"

    # Literals and names
    NAME = "name"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"

    # Operators
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    FLOORDIV = "//"
    MOD = "%"
    POW = "**"
    TILDE = "~"
    PIPE = "|"
    DOT = "."
    COMMA = ","
    COLON = ":"
    ASSIGN = "="
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    # Delimiters
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    LBRACE = "{"
    RBRACE = "}"

    # Malformed input (unknown character, unterminated string)
    ERROR = "error"

    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexical token.

    Attributes:
        type: Token kind
        value: Payload (decoded string content for STRING, raw text otherwise)
        lineno: 1-based line of the first character
        col_offset: 0-based column of the first character
        position: Offset of the first character in the source
        end: Offset one past the last character in the source

    ``source[position:end]`` is the raw text the token was read from. For
    DATA tokens the span covers the untrimmed region even when whitespace
    control removed part of it from ``value``.
    """

    type: TokenType
    value: str
    lineno: int
    col_offset: int
    position: int = 0
    end: int = 0

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.lineno}:{self.col_offset})"
