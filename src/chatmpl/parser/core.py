"""Parser entry point.

Composes the parsing mixins into a single recursive-descent parser that
turns a token stream into a Template AST.
"""

from __future__ import annotations

from collections.abc import Sequence

from chatmpl._types import Token, TokenType
from chatmpl.lexer import tokenize
from chatmpl.nodes import Template
from chatmpl.parser.blocks import (
    ControlFlowBlockParsingMixin,
    FunctionBlockParsingMixin,
    SpecialBlockParsingMixin,
    VariableBlockParsingMixin,
)
from chatmpl.parser.expressions import ExpressionParsingMixin
from chatmpl.parser.statements import StatementParsingMixin
from chatmpl.parser.tokens import TokenNavigationMixin


class Parser(
    TokenNavigationMixin,
    StatementParsingMixin,
    ExpressionParsingMixin,
    ControlFlowBlockParsingMixin,
    FunctionBlockParsingMixin,
    VariableBlockParsingMixin,
    SpecialBlockParsingMixin,
):
    """Recursive-descent parser for template token streams.

    Either returns a complete Template or raises ParseError; it never
    returns a partial tree.

    Example:
            >>> tokens = tokenize("{% for m in messages %}{{ m.role }}{% endfor %}")
            >>> ast = Parser(tokens).parse()
            >>> type(ast.body[0]).__name__
        'For'
    """

    __slots__ = ("_tokens", "_pos", "_name", "_source", "_block_stack")

    def __init__(
        self,
        tokens: Sequence[Token],
        name: str | None = None,
        source: str | None = None,
    ):
        tokens = list(tokens)
        if not tokens or tokens[-1].type != TokenType.EOF:
            last = tokens[-1] if tokens else None
            tokens.append(
                Token(
                    TokenType.EOF,
                    "",
                    last.lineno if last else 1,
                    last.col_offset if last else 0,
                    last.end if last else 0,
                    last.end if last else 0,
                )
            )
        self._tokens = tokens
        self._pos = 0
        self._name = name
        self._source = source
        self._block_stack: list[tuple[str, int, int]] = []

    def parse(self) -> Template:
        """Parse the whole token stream into a Template node."""
        body = self._parse_body()
        return Template(lineno=1, col_offset=0, body=tuple(body))


def parse(
    source: str,
    *,
    name: str | None = None,
    trim_blocks: bool = False,
    lstrip_blocks: bool = False,
) -> Template:
    """Tokenize and parse template source in one step.

    Raises:
        ParseError: If the source is not a well-formed template
    """
    tokens = tokenize(source, trim_blocks=trim_blocks, lstrip_blocks=lstrip_blocks)
    return Parser(tokens, name=name, source=source).parse()
