"""Parser error handling.

Provides ParseError with rich source context and suggestions.
"""

from __future__ import annotations

from chatmpl._types import Token
from chatmpl.environment.exceptions import ErrorCode, TemplateSyntaxError


class ParseError(TemplateSyntaxError):
    """Syntax error raised by the parser, pinned to the offending token.

    Displays errors with a source snippet and a caret under the token:

        Syntax Error: Expected '%}', got end of template
          --> chat.jinja:3:24
           |
          3 | {% for m in messages
           |                         ^
    """

    def __init__(
        self,
        message: str,
        token: Token,
        source: str | None = None,
        filename: str | None = None,
        suggestion: str | None = None,
        code: ErrorCode | None = None,
    ):
        self.token = token
        self.suggestion = suggestion
        super().__init__(
            message,
            lineno=token.lineno,
            name=filename,
            source=source,
            col_offset=token.col_offset,
            code=code or ErrorCode.UNEXPECTED_TOKEN,
        )

    @property
    def position(self) -> int:
        """Source offset of the offending token."""
        return self.token.position

    def _format_message(self) -> str:
        msg = super()._format_message()
        if self.suggestion:
            msg += f"\n\nSuggestion: {self.suggestion}"
        return msg
