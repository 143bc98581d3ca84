"""Expression parsing for the parser.

Precedence, loosest to tightest:

    ternary         a if cond else b        (else optional)
    or
    and
    not
    comparison      == != < <= > >= in, not in, is [not] test
    concat          ~
    additive        + -
    multiplicative  * / // %
    unary           - +
    power           **                       (left-associative)
    filter          |
    postfix         .attr  [key]  [a:b:c]  (args)
    primary

A leading sign is applied before any filters that follow its operand, so
``-1 | abs`` is ``(-1) | abs``, while ``-2 ** 2`` is ``-(2 ** 2)``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from chatmpl._types import Token, TokenType
from chatmpl.environment.exceptions import ErrorCode
from chatmpl.nodes import (
    BinOp,
    BoolOp,
    Compare,
    Concat,
    CondExpr,
    Const,
    Dict,
    Expr,
    Filter,
    FuncCall,
    Getattr,
    Getitem,
    List,
    Name,
    Slice,
    Test,
    Tuple,
    UnaryOp,
)

if TYPE_CHECKING:
    from chatmpl.parser.errors import ParseError

_COMPARE_OPERATORS = frozenset(
    {TokenType.EQ, TokenType.NE, TokenType.LT, TokenType.LE, TokenType.GT, TokenType.GE}
)
_ADDITIVE_OPERATORS = frozenset({TokenType.ADD, TokenType.SUB})
_MULTIPLICATIVE_OPERATORS = frozenset(
    {TokenType.MUL, TokenType.DIV, TokenType.FLOORDIV, TokenType.MOD}
)
_SIGNS = frozenset({TokenType.ADD, TokenType.SUB})

# Tokens that may start the unparenthesized argument of a test: x is divisibleby 3
_TEST_ARGUMENT_STARTS = frozenset(
    {TokenType.STRING, TokenType.INTEGER, TokenType.FLOAT, TokenType.LBRACKET, TokenType.LBRACE}
)
_NOT_A_TEST_ARGUMENT = frozenset({"and", "or", "else", "if", "in", "not", "is"})

# Spellings that can never be assignment targets
_RESERVED = frozenset(
    {"true", "false", "none", "True", "False", "None", "and", "or", "not", "in", "is", "if", "else"}
)

_CONSTANTS: dict[str, bool | None] = {
    "true": True,
    "True": True,
    "false": False,
    "False": False,
    "none": None,
    "None": None,
}

CallArguments = tuple[tuple[Expr, ...], dict[str, Expr], tuple[Expr, ...]]


class ExpressionParsingMixin:
    """Mixin for parsing expressions.

    Required Host Attributes:
        - All from TokenNavigationMixin
    """

    if TYPE_CHECKING:

        @property
        def _current(self) -> Token: ...
        def _peek(self, offset: int = 0) -> Token: ...
        def _advance(self) -> Token: ...
        def _match(self, *types: TokenType) -> bool: ...
        def _match_keyword(self, *words: str) -> bool: ...
        def _expect(self, token_type: TokenType) -> Token: ...
        def _error(
            self,
            message: str,
            token: Token | None = None,
            suggestion: str | None = None,
            code: ErrorCode | None = None,
        ) -> ParseError: ...
        def _unexpected(self, expected: str | None = None) -> ParseError: ...

    # ─────────────────────────────────────────────────────────────────────────
    # Entry points
    # ─────────────────────────────────────────────────────────────────────────

    def _parse_expression(self, with_condexpr: bool = True) -> Expr:
        """Parse a full expression.

        ``with_condexpr=False`` stops before a trailing ``if``, which the
        ``for`` statement needs for its filter clause.
        """
        if with_condexpr:
            return self._parse_condexpr()
        return self._parse_or()

    def _parse_tuple(self, with_condexpr: bool = True) -> Expr:
        """Parse an expression, or a bare tuple when commas follow: a, b."""
        token = self._current
        first = self._parse_expression(with_condexpr)
        if not self._match(TokenType.COMMA):
            return first

        items = [first]
        while self._match(TokenType.COMMA):
            self._advance()
            if self._match(TokenType.VARIABLE_END, TokenType.BLOCK_END, TokenType.EOF):
                break
            items.append(self._parse_expression(with_condexpr))
        return Tuple(lineno=token.lineno, col_offset=token.col_offset, items=tuple(items))

    def _parse_assign_target(self, *, allow_attr: bool = False) -> Expr:
        """Parse the left side of ``set`` or ``for``.

        Accepts ``name``, ``a, b``, ``(a, b)`` and, with ``allow_attr``,
        ``ns.attr`` for namespace assignment.
        """
        token = self._current
        if self._match(TokenType.LPAREN):
            self._advance()
            items = [self._parse_target_item(allow_attr)]
            while self._match(TokenType.COMMA):
                self._advance()
                if self._match(TokenType.RPAREN):
                    break
                items.append(self._parse_target_item(allow_attr))
            self._expect(TokenType.RPAREN)
            return Tuple(
                lineno=token.lineno, col_offset=token.col_offset, items=tuple(items), ctx="store"
            )

        first = self._parse_target_item(allow_attr)
        if not self._match(TokenType.COMMA):
            return first
        items = [first]
        while self._match(TokenType.COMMA):
            self._advance()
            items.append(self._parse_target_item(allow_attr))
        return Tuple(
            lineno=token.lineno, col_offset=token.col_offset, items=tuple(items), ctx="store"
        )

    def _parse_target_item(self, allow_attr: bool) -> Expr:
        token = self._current
        if token.type != TokenType.NAME or token.value in _RESERVED:
            raise self._unexpected("assignment target")
        self._advance()

        if allow_attr and self._match(TokenType.DOT):
            self._advance()
            attr = self._current
            if attr.type != TokenType.NAME:
                raise self._unexpected("attribute name")
            self._advance()
            return Getattr(
                lineno=token.lineno,
                col_offset=token.col_offset,
                obj=Name(lineno=token.lineno, col_offset=token.col_offset, name=token.value),
                attr=attr.value,
            )
        return Name(lineno=token.lineno, col_offset=token.col_offset, name=token.value, ctx="store")

    # ─────────────────────────────────────────────────────────────────────────
    # Boolean layer
    # ─────────────────────────────────────────────────────────────────────────

    def _parse_condexpr(self) -> Expr:
        """Parse ``a if cond else b``; without ``else`` a false test gives Undefined."""
        expr = self._parse_or()
        while self._match_keyword("if"):
            token = self._advance()
            test = self._parse_or()
            if_false: Expr | None = None
            if self._match_keyword("else"):
                self._advance()
                if_false = self._parse_condexpr()
            expr = CondExpr(
                lineno=token.lineno,
                col_offset=token.col_offset,
                test=test,
                if_true=expr,
                if_false=if_false,
            )
        return expr

    def _parse_or(self) -> Expr:
        return self._parse_bool_chain("or", self._parse_and)

    def _parse_and(self) -> Expr:
        return self._parse_bool_chain("and", self._parse_not)

    def _parse_bool_chain(self, keyword: str, operand: Callable[[], Expr]) -> Expr:
        token = self._current
        values = [operand()]
        while self._match_keyword(keyword):
            self._advance()
            values.append(operand())
        if len(values) == 1:
            return values[0]
        return BoolOp(
            lineno=token.lineno,
            col_offset=token.col_offset,
            op="or" if keyword == "or" else "and",
            values=tuple(values),
        )

    def _parse_not(self) -> Expr:
        if self._match_keyword("not"):
            token = self._advance()
            return UnaryOp(
                lineno=token.lineno,
                col_offset=token.col_offset,
                op="not",
                operand=self._parse_not(),
            )
        return self._parse_compare()

    # ─────────────────────────────────────────────────────────────────────────
    # Comparison and tests
    # ─────────────────────────────────────────────────────────────────────────

    def _parse_compare(self) -> Expr:
        """Parse a comparison chain; ``is`` tests wrap everything to their left.

        ``a < b < c`` is one Compare node evaluated pairwise, short-circuiting
        on the first false link.
        """
        left = self._parse_concat()
        ops: list[str] = []
        comparators: list[Expr] = []

        while True:
            token = self._current
            if token.type in _COMPARE_OPERATORS:
                self._advance()
                ops.append(token.value)
            elif self._match_keyword("in"):
                self._advance()
                ops.append("in")
            elif self._match_keyword("not") and self._peek(1).type == TokenType.NAME and (
                self._peek(1).value == "in"
            ):
                self._advance()
                self._advance()
                ops.append("not in")
            elif self._match_keyword("is"):
                if ops:
                    left = Compare(
                        lineno=left.lineno,
                        col_offset=left.col_offset,
                        left=left,
                        ops=tuple(ops),
                        comparators=tuple(comparators),
                    )
                    ops, comparators = [], []
                left = self._parse_test(left)
                continue
            else:
                break
            comparators.append(self._parse_concat())

        if not ops:
            return left
        return Compare(
            lineno=left.lineno,
            col_offset=left.col_offset,
            left=left,
            ops=tuple(ops),
            comparators=tuple(comparators),
        )

    def _parse_test(self, value: Expr) -> Test:
        """Parse ``is [not] name``, ``is name(args)`` or ``is name arg``."""
        token = self._advance()  # consume 'is'
        negated = False
        if self._match_keyword("not"):
            self._advance()
            negated = True

        name_token = self._current
        if name_token.type != TokenType.NAME:
            raise self._unexpected("test name")
        self._advance()
        name = name_token.value
        if name in ("None", "True", "False"):
            name = name.lower()

        args: tuple[Expr, ...] = ()
        kwargs: dict[str, Expr] = {}
        if self._match(TokenType.LPAREN):
            args, kwargs, dyn_args = self._parse_call_args()
            if dyn_args:
                raise self._error(
                    "Argument unpacking is not supported in tests",
                    code=ErrorCode.INVALID_EXPRESSION,
                )
        elif self._starts_test_argument():
            args = (self._parse_postfix(self._parse_primary()),)

        return Test(
            lineno=token.lineno,
            col_offset=token.col_offset,
            value=value,
            name=name,
            args=args,
            kwargs=kwargs,
            negated=negated,
        )

    def _starts_test_argument(self) -> bool:
        token = self._current
        if token.type in _TEST_ARGUMENT_STARTS:
            return True
        return token.type == TokenType.NAME and token.value not in _NOT_A_TEST_ARGUMENT

    # ─────────────────────────────────────────────────────────────────────────
    # Arithmetic
    # ─────────────────────────────────────────────────────────────────────────

    def _parse_concat(self) -> Expr:
        token = self._current
        nodes = [self._parse_additive()]
        while self._match(TokenType.TILDE):
            self._advance()
            nodes.append(self._parse_additive())
        if len(nodes) == 1:
            return nodes[0]
        return Concat(lineno=token.lineno, col_offset=token.col_offset, nodes=tuple(nodes))

    def _parse_additive(self) -> Expr:
        left = self._parse_multiplicative()
        while self._current.type in _ADDITIVE_OPERATORS:
            op = self._advance()
            right = self._parse_multiplicative()
            left = BinOp(lineno=op.lineno, col_offset=op.col_offset, op=op.value, left=left, right=right)
        return left

    def _parse_multiplicative(self) -> Expr:
        left = self._parse_unary()
        while self._current.type in _MULTIPLICATIVE_OPERATORS:
            op = self._advance()
            right = self._parse_unary()
            left = BinOp(lineno=op.lineno, col_offset=op.col_offset, op=op.value, left=left, right=right)
        return left

    def _parse_unary(self, with_filter: bool = True) -> Expr:
        token = self._current
        if token.type not in _SIGNS:
            return self._parse_power(with_filter)
        self._advance()
        node: Expr = UnaryOp(
            lineno=token.lineno,
            col_offset=token.col_offset,
            op=token.value,
            operand=self._parse_unary(with_filter=False),
        )
        if with_filter:
            node = self._parse_filters(node)
        return node

    def _parse_power(self, with_filter: bool = True) -> Expr:
        """Parse ``a ** b ** c`` as ``(a ** b) ** c``."""
        left = self._parse_filtered(with_filter)
        while self._match(TokenType.POW):
            op = self._advance()
            right = self._parse_power_operand()
            left = BinOp(lineno=op.lineno, col_offset=op.col_offset, op="**", left=left, right=right)
        return left

    def _parse_power_operand(self) -> Expr:
        token = self._current
        if token.type in _SIGNS:
            self._advance()
            return UnaryOp(
                lineno=token.lineno,
                col_offset=token.col_offset,
                op=token.value,
                operand=self._parse_power_operand(),
            )
        return self._parse_filtered(with_filter=True)

    # ─────────────────────────────────────────────────────────────────────────
    # Filters and postfix
    # ─────────────────────────────────────────────────────────────────────────

    def _parse_filtered(self, with_filter: bool) -> Expr:
        node = self._parse_postfix(self._parse_primary())
        if with_filter:
            node = self._parse_filters(node)
        return node

    def _parse_filters(self, node: Expr) -> Expr:
        """Parse ``| name`` and ``| name(args)`` applications left to right."""
        while self._match(TokenType.PIPE):
            self._advance()
            name = self._current
            if name.type != TokenType.NAME:
                raise self._unexpected("filter name")
            self._advance()

            args: tuple[Expr, ...] = ()
            kwargs: dict[str, Expr] = {}
            dyn_args: tuple[Expr, ...] = ()
            if self._match(TokenType.LPAREN):
                args, kwargs, dyn_args = self._parse_call_args()
            node = Filter(
                lineno=name.lineno,
                col_offset=name.col_offset,
                value=node,
                name=name.value,
                args=args,
                kwargs=kwargs,
                dyn_args=dyn_args,
            )
        return node

    def _parse_postfix(self, node: Expr) -> Expr:
        while True:
            token = self._current
            if token.type == TokenType.DOT:
                self._advance()
                attr = self._current
                if attr.type == TokenType.NAME:
                    self._advance()
                    node = Getattr(
                        lineno=node.lineno, col_offset=node.col_offset, obj=node, attr=attr.value
                    )
                elif attr.type == TokenType.INTEGER:
                    # items.0 is items[0]
                    self._advance()
                    key = Const(lineno=attr.lineno, col_offset=attr.col_offset, value=self._to_int(attr))
                    node = Getitem(lineno=node.lineno, col_offset=node.col_offset, obj=node, key=key)
                else:
                    raise self._unexpected("attribute name")
            elif token.type == TokenType.LBRACKET:
                node = self._parse_subscript(node)
            elif token.type == TokenType.LPAREN:
                args, kwargs, dyn_args = self._parse_call_args()
                node = FuncCall(
                    lineno=node.lineno,
                    col_offset=node.col_offset,
                    func=node,
                    args=args,
                    kwargs=kwargs,
                    dyn_args=dyn_args,
                )
            else:
                return node

    def _parse_subscript(self, node: Expr) -> Expr:
        """Parse ``[key]`` or ``[start:stop:step]`` with any part optional."""
        self._advance()  # consume '['
        start: Expr | None = None
        if not self._match(TokenType.COLON):
            start = self._parse_expression()
            if self._match(TokenType.RBRACKET):
                self._advance()
                return Getitem(lineno=node.lineno, col_offset=node.col_offset, obj=node, key=start)
            if not self._match(TokenType.COLON):
                raise self._unexpected("']' or ':'")

        self._advance()  # consume ':'
        stop: Expr | None = None
        if not self._match(TokenType.COLON, TokenType.RBRACKET):
            stop = self._parse_expression()
        step: Expr | None = None
        if self._match(TokenType.COLON):
            self._advance()
            if not self._match(TokenType.RBRACKET):
                step = self._parse_expression()
        self._expect(TokenType.RBRACKET)
        return Slice(
            lineno=node.lineno,
            col_offset=node.col_offset,
            obj=node,
            start=start,
            stop=stop,
            step=step,
        )

    def _parse_call_args(self) -> CallArguments:
        """Parse ``(a, b, *rest, key=value)``.

        Returns:
            (positional, keyword, unpacked) argument expressions
        """
        self._expect(TokenType.LPAREN)
        args: list[Expr] = []
        kwargs: dict[str, Expr] = {}
        dyn_args: list[Expr] = []

        while not self._match(TokenType.RPAREN):
            if args or kwargs or dyn_args:
                self._expect(TokenType.COMMA)
                if self._match(TokenType.RPAREN):
                    break

            if self._match(TokenType.MUL):
                self._advance()
                dyn_args.append(self._parse_expression())
                continue

            if self._match(TokenType.POW):
                raise self._error(
                    "Keyword argument unpacking (**) is not supported",
                    code=ErrorCode.INVALID_EXPRESSION,
                )

            if self._match(TokenType.NAME) and self._peek(1).type == TokenType.ASSIGN:
                name = self._advance()
                self._advance()  # consume '='
                if name.value in kwargs:
                    raise self._error(
                        f"Keyword argument '{name.value}' repeated",
                        token=name,
                        code=ErrorCode.INVALID_EXPRESSION,
                    )
                kwargs[name.value] = self._parse_expression()
                continue

            if kwargs:
                raise self._error(
                    "Positional argument follows keyword argument",
                    code=ErrorCode.INVALID_EXPRESSION,
                )
            args.append(self._parse_expression())

        self._expect(TokenType.RPAREN)
        return tuple(args), kwargs, tuple(dyn_args)

    # ─────────────────────────────────────────────────────────────────────────
    # Primary
    # ─────────────────────────────────────────────────────────────────────────

    def _parse_primary(self) -> Expr:
        token = self._current
        token_type = token.type

        if token_type == TokenType.NAME:
            self._advance()
            if token.value in _CONSTANTS:
                return Const(
                    lineno=token.lineno, col_offset=token.col_offset, value=_CONSTANTS[token.value]
                )
            return Name(lineno=token.lineno, col_offset=token.col_offset, name=token.value)

        if token_type == TokenType.STRING:
            return self._parse_strings()

        if token_type == TokenType.INTEGER:
            self._advance()
            return Const(lineno=token.lineno, col_offset=token.col_offset, value=self._to_int(token))

        if token_type == TokenType.FLOAT:
            self._advance()
            return Const(lineno=token.lineno, col_offset=token.col_offset, value=float(token.value))

        if token_type == TokenType.LPAREN:
            return self._parse_parenthesized()

        if token_type == TokenType.LBRACKET:
            return self._parse_list()

        if token_type == TokenType.LBRACE:
            return self._parse_dict()

        raise self._unexpected("expression")

    def _parse_strings(self) -> Expr:
        """Parse one string literal, or adjacent literals as a concatenation."""
        first = self._advance()
        parts = [Const(lineno=first.lineno, col_offset=first.col_offset, value=first.value)]
        while self._match(TokenType.STRING):
            token = self._advance()
            parts.append(Const(lineno=token.lineno, col_offset=token.col_offset, value=token.value))
        if len(parts) == 1:
            return parts[0]
        return Concat(lineno=first.lineno, col_offset=first.col_offset, nodes=tuple(parts))

    def _parse_parenthesized(self) -> Expr:
        start = self._advance()  # consume '('
        if self._match(TokenType.RPAREN):
            self._advance()
            return Tuple(lineno=start.lineno, col_offset=start.col_offset, items=())

        expr = self._parse_expression()
        if self._match(TokenType.COMMA):
            items = [expr]
            while self._match(TokenType.COMMA):
                self._advance()
                if self._match(TokenType.RPAREN):
                    break
                items.append(self._parse_expression())
            expr = Tuple(lineno=start.lineno, col_offset=start.col_offset, items=tuple(items))
        self._expect(TokenType.RPAREN)
        return expr

    def _parse_list(self) -> List:
        start = self._advance()  # consume '['
        items: list[Expr] = []
        while not self._match(TokenType.RBRACKET):
            if items:
                self._expect(TokenType.COMMA)
                if self._match(TokenType.RBRACKET):
                    break
            items.append(self._parse_expression())
        self._expect(TokenType.RBRACKET)
        return List(lineno=start.lineno, col_offset=start.col_offset, items=tuple(items))

    def _parse_dict(self) -> Dict:
        start = self._advance()  # consume '{'
        keys: list[Expr] = []
        values: list[Expr] = []
        while not self._match(TokenType.RBRACE):
            if keys:
                self._expect(TokenType.COMMA)
                if self._match(TokenType.RBRACE):
                    break
            keys.append(self._parse_expression())
            self._expect(TokenType.COLON)
            values.append(self._parse_expression())
        self._expect(TokenType.RBRACE)
        return Dict(
            lineno=start.lineno, col_offset=start.col_offset, keys=tuple(keys), values=tuple(values)
        )

    def _to_int(self, token: Token) -> int:
        try:
            return int(token.value)
        except ValueError:
            # Beyond the interpreter's int string conversion limit
            raise self._error(
                "Integer literal is too large", token=token, code=ErrorCode.INVALID_EXPRESSION
            ) from None
