"""Special block parsing.

Provides the mixin for ``{% filter %}`` sections and the transparent
``{% generation %}`` marker used by chat templates.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chatmpl._types import TokenType
from chatmpl.environment.exceptions import ErrorCode
from chatmpl.nodes import FilterBlock
from chatmpl.parser.blocks.core import BlockStackMixin

if TYPE_CHECKING:
    from chatmpl.nodes import Node
    from chatmpl.nodes.output import FilterStep
    from chatmpl.parser.expressions import CallArguments


class SpecialBlockParsingMixin(BlockStackMixin):
    """Mixin for parsing filter blocks and generation markers.

    Required Host Attributes:
        - All from BlockStackMixin
        - All from TokenNavigationMixin
        - _parse_body: method
        - _parse_call_args: method (from ExpressionParsingMixin)
    """

    if TYPE_CHECKING:

        def _parse_body(self) -> list[Node]: ...
        def _parse_call_args(self) -> CallArguments: ...
        def _match(self, *types: TokenType) -> bool: ...

    def _parse_filter_chain(self) -> list[FilterStep]:
        """Parse ``| name(args) | name ...`` with the leading pipe optional."""
        steps: list[FilterStep] = []
        while True:
            if self._match(TokenType.PIPE):
                self._advance()
            name = self._current
            if name.type != TokenType.NAME:
                raise self._error(
                    "Expected filter name",
                    suggestion="Filter syntax: {% filter upper | trim %}",
                )
            self._advance()

            args: tuple = ()
            kwargs: dict = {}
            if self._match(TokenType.LPAREN):
                args, kwargs, dyn_args = self._parse_call_args()
                if dyn_args:
                    raise self._error(
                        "Argument unpacking is not supported in filter sections",
                        code=ErrorCode.INVALID_EXPRESSION,
                    )
            steps.append((name.value, args, kwargs))

            if not self._match(TokenType.PIPE):
                return steps

    def _parse_filter_block(self) -> FilterBlock:
        """Parse {% filter name(args) | ... %}...{% endfilter %}.

        The body is rendered to a string and passed through the filters.

        Example:
            {% filter trim | upper %}
                {{ system_message }}
            {% endfilter %}
        """
        start = self._advance()  # consume 'filter'
        steps = self._parse_filter_chain()
        self._expect(TokenType.BLOCK_END)

        self._push_block("filter", start)
        body = self._parse_body()
        self._consume_end_tag("filter")

        return FilterBlock(
            lineno=start.lineno,
            col_offset=start.col_offset,
            steps=tuple(steps),
            body=tuple(body),
        )

    def _parse_generation(self) -> list[Node]:
        """Parse {% generation %}...{% endgeneration %}.

        Marks assistant output for training tooling; rendering ignores the
        marker and emits the body inline.
        """
        start = self._advance()  # consume 'generation'
        self._expect(TokenType.BLOCK_END)

        self._push_block("generation", start)
        body = self._parse_body()
        self._consume_end_tag("generation")
        return body
