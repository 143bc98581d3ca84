"""Token navigation for the parser.

Provides the cursor primitives every other parser mixin builds on.
"""

from __future__ import annotations

from collections.abc import Sequence

from chatmpl._types import Token, TokenType
from chatmpl.environment.exceptions import ErrorCode
from chatmpl.parser.errors import ParseError

# Closers a tag may be missing when the template ends early
_CLOSERS = {
    TokenType.VARIABLE_END: "}}",
    TokenType.BLOCK_END: "%}",
    TokenType.COMMENT_END: "#}",
}


def describe_token(token: Token) -> str:
    """Human-readable token description for error messages."""
    if token.type == TokenType.EOF:
        return "end of template"
    if token.type == TokenType.DATA:
        return "template text"
    if token.type == TokenType.STRING:
        return f"string {token.value!r}"
    if token.type == TokenType.NAME:
        return f"'{token.value}'"
    if token.value:
        return f"'{token.value}'"
    return token.type.value


class TokenNavigationMixin:
    """Cursor over the token list.

    Required Host Attributes:
        - _tokens: Sequence[Token]
        - _pos: int
        - _source: str | None
        - _name: str | None
    """

    _tokens: Sequence[Token]
    _pos: int
    _source: str | None
    _name: str | None

    @property
    def _current(self) -> Token:
        return self._tokens[self._pos]

    def _peek(self, offset: int = 0) -> Token:
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.type != TokenType.EOF:
            self._pos += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        return self._current.type in types

    def _match_keyword(self, *words: str) -> bool:
        """True if the current token is a NAME spelled as one of ``words``."""
        token = self._current
        return token.type == TokenType.NAME and token.value in words

    def _expect(self, token_type: TokenType) -> Token:
        if self._current.type != token_type:
            raise self._unexpected(f"'{_CLOSERS.get(token_type, token_type.value)}'")
        return self._advance()

    def _expect_keyword(self, word: str) -> Token:
        if not self._match_keyword(word):
            raise self._unexpected(f"'{word}'")
        return self._advance()

    def _error(
        self,
        message: str,
        token: Token | None = None,
        suggestion: str | None = None,
        code: ErrorCode | None = None,
    ) -> ParseError:
        return ParseError(
            message,
            token or self._current,
            source=self._source,
            filename=self._name,
            suggestion=suggestion,
            code=code,
        )

    def _unexpected(self, expected: str | None = None) -> ParseError:
        """Build the error for the current token when it does not fit the grammar.

        Lexer ERROR tokens and a premature end of template get dedicated
        messages and codes.
        """
        token = self._current
        if token.type == TokenType.ERROR:
            if token.value == "unterminated string literal":
                return self._error(
                    "Unterminated string literal",
                    suggestion="Close the string with a matching quote",
                    code=ErrorCode.UNCLOSED_STRING,
                )
            if token.value == "unterminated raw block":
                return self._error(
                    "Missing {% endraw %} for {% raw %}",
                    code=ErrorCode.UNCLOSED_RAW,
                )
            return self._error(
                f"Unexpected character {token.value!r}",
                code=ErrorCode.UNKNOWN_CHARACTER,
            )

        if token.type == TokenType.EOF and expected in ("'}}'", "'%}'"):
            return self._error(
                f"Unterminated tag: expected {expected} before end of template",
                code=ErrorCode.UNCLOSED_TAG,
            )

        message = f"Unexpected {describe_token(token)}"
        if expected:
            message = f"Expected {expected}, got {describe_token(token)}"
        return self._error(message)
