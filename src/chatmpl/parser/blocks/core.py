"""Block stack management for the parser.

Every block tag pushes an entry on open and pops it when its end tag is
consumed. The stack gives precise errors for unclosed and mismatched blocks.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from chatmpl._types import Token, TokenType
from chatmpl.environment.exceptions import ErrorCode

if TYPE_CHECKING:
    from chatmpl.parser.errors import ParseError


class BlockStackMixin:
    """Open-block bookkeeping shared by all block parsing mixins.

    Entries are ``(block_type, lineno, col_offset)`` of the opening tag.
    """

    # Tags that close a block body
    _END_KEYWORDS: frozenset[str] = frozenset(
        {"endif", "endfor", "endmacro", "endcall", "endset", "endfilter", "endgeneration"}
    )

    # Tags that end one branch of a block and start another
    _CONTINUATION_KEYWORDS: frozenset[str] = frozenset({"elif", "else"})

    if TYPE_CHECKING:
        _tokens: Sequence[Token]
        _pos: int
        _block_stack: list[tuple[str, int, int]]

        @property
        def _current(self) -> Token: ...
        def _peek(self, offset: int = 0) -> Token: ...
        def _advance(self) -> Token: ...
        def _expect(self, token_type: TokenType) -> Token: ...
        def _error(
            self,
            message: str,
            token: Token | None = None,
            suggestion: str | None = None,
            code: ErrorCode | None = None,
        ) -> ParseError: ...

    def _push_block(self, block_type: str, token: Token) -> None:
        self._block_stack.append((block_type, token.lineno, token.col_offset))

    def _at_block_boundary(self) -> bool:
        """True at ``{%`` followed by an end or continuation keyword."""
        if self._current.type != TokenType.BLOCK_BEGIN:
            return False
        keyword = self._peek(1)
        return keyword.type == TokenType.NAME and (
            keyword.value in self._END_KEYWORDS or keyword.value in self._CONTINUATION_KEYWORDS
        )

    def _boundary_keyword(self) -> str | None:
        """Keyword of the tag at the cursor when it is a block boundary."""
        if not self._at_block_boundary():
            return None
        return self._peek(1).value

    def _consume_continuation(self) -> Token:
        """Consume ``{% elif`` or ``{% else``, returning the keyword token."""
        self._advance()  # consume '{%'
        return self._advance()

    def _consume_end_tag(self, block_type: str) -> None:
        """Consume ``{% end<block_type> %}`` and pop the block stack.

        Raises:
            ParseError: If the template ends first or a different tag closes the block
        """
        expected = f"end{block_type}"
        opener = self._block_stack[-1] if self._block_stack else (block_type, 0, 0)

        if self._current.type == TokenType.EOF:
            raise self._unclosed_block_error(opener)

        keyword = self._peek(1)
        if self._current.type != TokenType.BLOCK_BEGIN or keyword.value != expected:
            raise self._error(
                f"Unexpected '{keyword.value}' inside '{block_type}' block "
                f"opened at line {opener[1]}",
                token=keyword,
                suggestion=f"Close the '{block_type}' block with {{% {expected} %}}",
                code=ErrorCode.UNMATCHED_END_TAG,
            )

        self._advance()  # consume '{%'
        self._advance()  # consume end keyword
        self._expect(TokenType.BLOCK_END)
        self._block_stack.pop()

    def _unclosed_block_error(self, opener: tuple[str, int, int] | None = None) -> ParseError:
        block_type, lineno, _col = opener or self._block_stack[-1]
        return self._error(
            f"Unclosed '{block_type}' block opened at line {lineno}",
            suggestion=f"Add {{% end{block_type} %}} before the end of the template",
            code=ErrorCode.UNCLOSED_BLOCK,
        )

    def _unmatched_end_error(self, keyword: Token) -> ParseError:
        """Error for an end or continuation tag with no block to close."""
        if keyword.value in self._CONTINUATION_KEYWORDS:
            message = f"'{keyword.value}' outside of an 'if' or 'for' block"
        else:
            message = f"'{keyword.value}' without a matching opening tag"
        return self._error(message, token=keyword, code=ErrorCode.UNMATCHED_END_TAG)
