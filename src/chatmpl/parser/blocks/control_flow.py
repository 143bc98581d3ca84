"""Control flow block parsing.

Provides the mixin for ``if``/``elif``/``else``, ``for`` loops and the
``break``/``continue`` loop controls.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chatmpl._types import TokenType
from chatmpl.nodes import Break, Continue, For, If
from chatmpl.parser.blocks.core import BlockStackMixin

if TYPE_CHECKING:
    from chatmpl._types import Token
    from chatmpl.nodes import Expr, Node


class ControlFlowBlockParsingMixin(BlockStackMixin):
    """Mixin for parsing control flow blocks.

    Required Host Attributes:
        - All from BlockStackMixin
        - All from TokenNavigationMixin
        - _parse_body: method (from StatementParsingMixin)
        - _parse_expression, _parse_tuple, _parse_assign_target: methods
          (from ExpressionParsingMixin)
    """

    if TYPE_CHECKING:

        def _parse_body(self) -> list[Node]: ...
        def _parse_expression(self, with_condexpr: bool = True) -> Expr: ...
        def _parse_tuple(self, with_condexpr: bool = True) -> Expr: ...
        def _parse_assign_target(self, *, allow_attr: bool = False) -> Expr: ...
        def _match_keyword(self, *words: str) -> bool: ...
        def _expect_keyword(self, word: str) -> Token: ...

    def _parse_if(self) -> If:
        """Parse {% if %}...{% elif %}...{% else %}...{% endif %}."""
        start = self._advance()  # consume 'if'
        self._push_block("if", start)

        test = self._parse_expression()
        self._expect(TokenType.BLOCK_END)
        body = self._parse_body()

        elif_: list[tuple[Expr, tuple[Node, ...]]] = []
        while self._boundary_keyword() == "elif":
            self._consume_continuation()
            condition = self._parse_expression()
            self._expect(TokenType.BLOCK_END)
            elif_.append((condition, tuple(self._parse_body())))

        else_: list[Node] = []
        if self._boundary_keyword() == "else":
            self._consume_continuation()
            self._expect(TokenType.BLOCK_END)
            else_ = self._parse_body()

        self._consume_end_tag("if")

        return If(
            lineno=start.lineno,
            col_offset=start.col_offset,
            test=test,
            body=tuple(body),
            elif_=tuple(elif_),
            else_=tuple(else_),
        )

    def _parse_for(self) -> For:
        """Parse {% for target in iterable [if cond] %}...{% else %}...{% endfor %}.

        The optional ``if`` clause filters items before the body sees them,
        and ``else`` renders when no item survived.

        Example:
            {% for m in messages if m.role != 'system' %}
                {{ m.content }}
            {% else %}
                (empty)
            {% endfor %}
        """
        start = self._advance()  # consume 'for'
        self._push_block("for", start)

        target = self._parse_assign_target()
        self._expect_keyword("in")
        iterable = self._parse_tuple(with_condexpr=False)

        test: Expr | None = None
        if self._match_keyword("if"):
            self._advance()
            test = self._parse_expression()

        if self._match_keyword("recursive"):
            raise self._error(
                "Recursive loops are not supported",
                suggestion="Use a macro that calls itself instead",
            )
        self._expect(TokenType.BLOCK_END)
        body = self._parse_body()

        else_: list[Node] = []
        if self._boundary_keyword() == "else":
            self._consume_continuation()
            self._expect(TokenType.BLOCK_END)
            else_ = self._parse_body()

        self._consume_end_tag("for")

        return For(
            lineno=start.lineno,
            col_offset=start.col_offset,
            target=target,
            iter=iterable,
            body=tuple(body),
            else_=tuple(else_),
            test=test,
        )

    def _parse_break(self) -> Break:
        start = self._advance()  # consume 'break'
        self._expect(TokenType.BLOCK_END)
        return Break(lineno=start.lineno, col_offset=start.col_offset)

    def _parse_continue(self) -> Continue:
        start = self._advance()  # consume 'continue'
        self._expect(TokenType.BLOCK_END)
        return Continue(lineno=start.lineno, col_offset=start.col_offset)
