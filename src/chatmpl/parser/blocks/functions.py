"""Macro and call block parsing.

Provides the mixin for ``{% macro %}`` definitions and ``{% call %}`` blocks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chatmpl._types import TokenType
from chatmpl.environment.exceptions import ErrorCode
from chatmpl.nodes import CallBlock, FuncCall, Macro, MacroParam
from chatmpl.parser.blocks.core import BlockStackMixin

if TYPE_CHECKING:
    from chatmpl.nodes import Expr, Node


class FunctionBlockParsingMixin(BlockStackMixin):
    """Mixin for parsing macro definitions and call blocks.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks. Inherits block stack management from BlockStackMixin.
    """

    if TYPE_CHECKING:

        def _parse_body(self) -> list[Node]: ...
        def _parse_expression(self, with_condexpr: bool = True) -> Expr: ...
        def _match(self, *types: TokenType) -> bool: ...

    def _parse_params(self) -> list[MacroParam]:
        """Parse ``(name, name=default, ...)`` for a macro or call block.

        Defaults are kept as expressions and evaluated on each call.
        """
        self._expect(TokenType.LPAREN)
        params: list[MacroParam] = []
        seen: set[str] = set()

        while not self._match(TokenType.RPAREN):
            if params:
                self._expect(TokenType.COMMA)
                if self._match(TokenType.RPAREN):
                    break

            if self._current.type != TokenType.NAME:
                raise self._error(
                    "Expected parameter name",
                    suggestion="Macro syntax: {% macro name(arg, other=default) %}",
                )
            param_token = self._advance()
            if param_token.value in seen:
                raise self._error(
                    f"Duplicate parameter '{param_token.value}'",
                    token=param_token,
                    code=ErrorCode.INVALID_EXPRESSION,
                )
            seen.add(param_token.value)

            default: Expr | None = None
            if self._match(TokenType.ASSIGN):
                self._advance()
                default = self._parse_expression()

            params.append(
                MacroParam(
                    lineno=param_token.lineno,
                    col_offset=param_token.col_offset,
                    name=param_token.value,
                    default=default,
                )
            )

        self._expect(TokenType.RPAREN)
        return params

    def _parse_macro(self) -> Macro:
        """Parse {% macro name(params) %}...{% endmacro %}.

        The body closes over the scope the definition executes in, so it can
        read variables of the enclosing template.

        Example:
            {% macro render_message(m, prefix='') %}
                {{ prefix }}{{ m.role }}: {{ m.content }}
            {% endmacro %}

            {{ render_message(messages[0]) }}
        """
        start = self._advance()  # consume 'macro'
        self._push_block("macro", start)

        if self._current.type != TokenType.NAME:
            raise self._error(
                "Expected macro name",
                suggestion="Macro syntax: {% macro name(args) %}...{% endmacro %}",
            )
        name = self._advance().value
        params = self._parse_params()
        self._expect(TokenType.BLOCK_END)

        body = self._parse_body()
        self._consume_end_tag("macro")

        return Macro(
            lineno=start.lineno,
            col_offset=start.col_offset,
            name=name,
            params=tuple(params),
            body=tuple(body),
        )

    def _parse_call(self) -> CallBlock:
        """Parse {% call(params) callee(args) %}body{% endcall %}.

        The body is handed to the callee as ``caller``; calling
        ``caller(...)`` renders it with the optional params bound.

        Example:
            {% call(item) list_items(items) %}
                <li>{{ item }}</li>
            {% endcall %}
        """
        start = self._advance()  # consume 'call'
        self._push_block("call", start)

        params: list[MacroParam] = []
        if self._match(TokenType.LPAREN):
            params = self._parse_params()

        call_token = self._current
        call_expr = self._parse_expression()
        if not isinstance(call_expr, FuncCall):
            raise self._error(
                "Expected a call expression after 'call'",
                token=call_token,
                suggestion="Call block syntax: {% call macro_name(args) %}...{% endcall %}",
                code=ErrorCode.INVALID_EXPRESSION,
            )
        self._expect(TokenType.BLOCK_END)

        body = self._parse_body()
        self._consume_end_tag("call")

        return CallBlock(
            lineno=start.lineno,
            col_offset=start.col_offset,
            call=call_expr,
            body=tuple(body),
            params=tuple(params),
        )
