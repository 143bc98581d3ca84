"""Statement parsing for the parser.

Walks the template body, dispatching ``{% ... %}`` tags to the block
parsing mixins and turning ``{{ ... }}`` into Output nodes.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import TYPE_CHECKING

from chatmpl._types import TokenType
from chatmpl.environment.exceptions import ErrorCode
from chatmpl.nodes import Data, Node, Output
from chatmpl.parser.blocks.core import BlockStackMixin

if TYPE_CHECKING:
    from chatmpl.nodes import Expr
    from chatmpl.parser.errors import ParseError

# Statement keyword -> parser method
_STATEMENT_PARSERS: dict[str, str] = {
    "if": "_parse_if",
    "for": "_parse_for",
    "break": "_parse_break",
    "continue": "_parse_continue",
    "set": "_parse_set",
    "macro": "_parse_macro",
    "call": "_parse_call",
    "filter": "_parse_filter_block",
    "generation": "_parse_generation",
}


class StatementParsingMixin(BlockStackMixin):
    """Mixin for parsing template bodies and dispatching statements.

    Required Host Attributes:
        - All from BlockStackMixin
        - All from TokenNavigationMixin
        - _parse_tuple: method (from ExpressionParsingMixin)
    """

    if TYPE_CHECKING:

        def _unexpected(self, expected: str | None = None) -> ParseError: ...
        def _parse_tuple(self, with_condexpr: bool = True) -> Expr: ...

    def _parse_body(self) -> list[Node]:
        """Parse nodes until the end of the template or a block boundary.

        A boundary is an end tag (``endif``, ``endfor``, ...) or a
        continuation tag (``elif``, ``else``). Inside a block the boundary is
        left for the block parser to consume. At top level a boundary has
        nothing to close, and inside a block the end of the template means
        the block was never closed; both are errors.
        """
        nodes: list[Node] = []
        while True:
            token_type = self._current.type

            if token_type == TokenType.EOF:
                if self._block_stack:
                    raise self._unclosed_block_error()
                return nodes

            if token_type == TokenType.DATA:
                nodes.append(self._parse_data())
            elif token_type == TokenType.VARIABLE_BEGIN:
                nodes.append(self._parse_output())
            elif token_type == TokenType.COMMENT_BEGIN:
                self._skip_comment()
            elif token_type == TokenType.BLOCK_BEGIN:
                if self._at_block_boundary():
                    if not self._block_stack:
                        raise self._unmatched_end_error(self._peek(1))
                    return nodes
                result = self._parse_block()
                if isinstance(result, list):
                    nodes.extend(result)
                else:
                    nodes.append(result)
            else:
                raise self._unexpected()

    def _parse_block(self) -> Node | list[Node]:
        """Parse one ``{% keyword ... %}`` statement."""
        self._advance()  # consume '{%'
        keyword = self._current
        if keyword.type != TokenType.NAME:
            raise self._unexpected("statement keyword")

        method_name = _STATEMENT_PARSERS.get(keyword.value)
        if method_name is None:
            matches = get_close_matches(keyword.value, list(_STATEMENT_PARSERS), n=1)
            raise self._error(
                f"Unknown statement '{keyword.value}'",
                suggestion=f"Did you mean '{matches[0]}'?" if matches else None,
            )
        result: Node | list[Node] = getattr(self, method_name)()
        return result

    def _parse_data(self) -> Data:
        token = self._advance()
        return Data(lineno=token.lineno, col_offset=token.col_offset, value=token.value)

    def _parse_output(self) -> Output:
        """Parse {{ expression }}."""
        start = self._advance()  # consume '{{'
        if self._match(TokenType.VARIABLE_END):
            raise self._error(
                "Empty expression in {{ }}",
                suggestion="Put an expression between the braces, e.g. {{ name }}",
                code=ErrorCode.INVALID_EXPRESSION,
            )
        expr = self._parse_tuple()
        self._expect(TokenType.VARIABLE_END)
        return Output(lineno=start.lineno, col_offset=start.col_offset, expr=expr)

    def _skip_comment(self) -> None:
        start = self._advance()  # consume '{#'
        if self._current.type != TokenType.COMMENT_END:
            raise self._error(
                "Unclosed comment",
                token=start,
                suggestion="Close the comment with #}",
                code=ErrorCode.UNCLOSED_COMMENT,
            )
        self._advance()
