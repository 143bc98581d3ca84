"""Variable assignment block parsing.

Provides the mixin for ``{% set %}`` in its inline and block forms.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chatmpl._types import TokenType
from chatmpl.environment.exceptions import ErrorCode
from chatmpl.nodes import Capture, Set, Tuple
from chatmpl.parser.blocks.core import BlockStackMixin

if TYPE_CHECKING:
    from chatmpl.nodes import Expr, Node
    from chatmpl.nodes.output import FilterStep


class VariableBlockParsingMixin(BlockStackMixin):
    """Mixin for parsing variable assignment.

    Required Host Attributes:
        - All from BlockStackMixin
        - All from TokenNavigationMixin
        - _parse_body: method
        - _parse_tuple, _parse_assign_target: methods
        - _parse_filter_chain: method (from SpecialBlockParsingMixin)
    """

    if TYPE_CHECKING:

        def _parse_body(self) -> list[Node]: ...
        def _parse_tuple(self, with_condexpr: bool = True) -> Expr: ...
        def _parse_assign_target(self, *, allow_attr: bool = False) -> Expr: ...
        def _parse_filter_chain(self) -> list[FilterStep]: ...
        def _match(self, *types: TokenType) -> bool: ...

    def _parse_set(self) -> Set | Capture:
        """Parse {% set %} in one of its forms.

            {% set x = expr %}               bind in the current scope
            {% set a, b = pair %}            unpack an array of matching length
            {% set ns.attr = expr %}         write through to a namespace
            {% set x %}...{% endset %}       bind the rendered body
            {% set x | trim %}...{% endset %}
        """
        start = self._advance()  # consume 'set'
        target = self._parse_assign_target(allow_attr=True)

        if self._match(TokenType.ASSIGN):
            self._advance()
            value = self._parse_tuple()
            self._expect(TokenType.BLOCK_END)
            return Set(lineno=start.lineno, col_offset=start.col_offset, target=target, value=value)

        if isinstance(target, Tuple):
            raise self._error(
                "Block assignment takes a single name",
                suggestion="Use {% set name %}...{% endset %}",
                code=ErrorCode.INVALID_EXPRESSION,
            )

        steps: list[FilterStep] = []
        if self._match(TokenType.PIPE):
            steps = self._parse_filter_chain()
        self._expect(TokenType.BLOCK_END)

        self._push_block("set", start)
        body = self._parse_body()
        self._consume_end_tag("set")

        return Capture(
            lineno=start.lineno,
            col_offset=start.col_offset,
            target=target,
            body=tuple(body),
            steps=tuple(steps),
        )
