"""Interpreter core: the tree-walking evaluator.

Executes a Template AST against a scope chain. Statements append text to a
shared buffer and return a Signal; expressions return values. Uses a
mixin-based design, one mixin per group of node types, and O(1) dispatch
from node class name to handler.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from chatmpl.environment.exceptions import LoopControlError, TemplateError, TemplateRuntimeError
from chatmpl.interpreter.expressions import ExpressionEvaluationMixin
from chatmpl.interpreter.scope import Scope
from chatmpl.interpreter.signal import Signal
from chatmpl.interpreter.statements import StatementExecutionMixin
from chatmpl.render_context import RenderContext, get_render_context, render_context

if TYPE_CHECKING:
    from chatmpl.environment import Environment
    from chatmpl.nodes import Node
    from chatmpl.nodes import Template as TemplateNode

logger = logging.getLogger(__name__)


class Interpreter(ExpressionEvaluationMixin, StatementExecutionMixin):
    """Evaluate a template AST.

    Attributes:
        _env: Environment supplying filters, tests and globals

    Node Dispatch:
        Uses O(1) dict lookup for node type → handler:
            ```python
            dispatch = {
                "Data": self._exec_data,
                "Output": self._exec_output,
                "If": self._exec_if,
                ...
            }
            handler = dispatch[type(node).__name__]
            ```

    Line Tracking:
        Before executing a statement that can fail, stores its line in the
        ContextVar-backed RenderContext. A TemplateRuntimeError escaping a
        statement is stamped with the template name, that line and a source
        snippet.

    Example:
            >>> from chatmpl import Environment
            >>> from chatmpl.parser import parse
            >>> ast = parse("Hello, {{ name }}!")
            >>> Interpreter(Environment()).render(ast, Scope({"name": "World"}))
            'Hello, World!'
    """

    __slots__ = ("_env", "_node_dispatch", "_expr_dispatch")

    _LINE_TRACKED_NODES = frozenset(
        {"Output", "If", "For", "Set", "Capture", "CallBlock", "FilterBlock", "Break", "Continue"}
    )

    def __init__(self, environment: Environment):
        self._env = environment
        self._node_dispatch: dict[str, Callable[[Any, Scope, list[str]], Signal]] = {
            "Data": self._exec_data,
            "Output": self._exec_output,
            "If": self._exec_if,
            "For": self._exec_for,
            "Break": self._exec_break,
            "Continue": self._exec_continue,
            "Set": self._exec_set,
            "Capture": self._exec_capture,
            "Macro": self._exec_macro,
            "CallBlock": self._exec_call_block,
            "FilterBlock": self._exec_filter_block,
        }
        self._expr_dispatch = self._build_expr_dispatch()

    @property
    def environment(self) -> Environment:
        return self._env

    def render(self, ast: TemplateNode, scope: Scope) -> str:
        """Render a whole template in ``scope``."""
        return self.render_body(ast.body, scope, "template")

    def render_body(self, body: Sequence[Node], scope: Scope, owner: str) -> str:
        """Render a template, macro or call body to a string.

        Raises:
            LoopControlError: ``break``/``continue`` escaped every loop in the body
        """
        buffer: list[str] = []
        signal = self._execute_body(body, scope, buffer)
        if signal is not Signal.NORMAL:
            error = LoopControlError(
                f"'{{% {signal.value} %}}' outside of a loop in {owner}",
                suggestion=f"Move {{% {signal.value} %}} inside a {{% for %}} body",
            )
            ctx = get_render_context()
            if ctx is not None:
                error.attach_location(ctx.template_name, ctx.line or None, ctx.source)
            raise error
        return "".join(buffer)

    def _execute_body(self, body: Sequence[Node], scope: Scope, buffer: list[str]) -> Signal:
        for node in body:
            signal = self._execute(node, scope, buffer)
            if signal is not Signal.NORMAL:
                return signal
        return Signal.NORMAL

    def _execute(self, node: Node, scope: Scope, buffer: list[str]) -> Signal:
        node_type = type(node).__name__
        if node_type in self._LINE_TRACKED_NODES:
            ctx = get_render_context()
            if ctx is not None:
                ctx.line = node.lineno

        handler = self._node_dispatch.get(node_type)
        if handler is None:
            raise TemplateRuntimeError(f"Cannot execute node of type '{node_type}'")

        try:
            return handler(node, scope, buffer)
        except TemplateRuntimeError as e:
            ctx = get_render_context()
            e.attach_location(
                ctx.template_name if ctx else None,
                node.lineno,
                ctx.source if ctx else None,
            )
            raise


def render(
    ast: TemplateNode,
    root_context: Mapping[str, Any] | None,
    environment: Environment,
    *,
    name: str | None = None,
    source: str | None = None,
) -> str:
    """Render a parsed template.

    The scope chain is rooted at a frame holding the environment's globals;
    ``root_context`` forms the frame above it, so context variables shadow
    globals of the same name.

    Args:
        ast: Parsed template
        root_context: Variables visible to the template
        environment: Filters, tests and globals
        name: Template name for error messages
        source: Template source for error snippets
    """
    globals_scope = Scope(dict(environment.globals))
    scope = globals_scope.child(dict(root_context or {}))
    logger.debug("Rendering template %s", name or "<string>")
    with render_context(template_name=name, source=source) as ctx:
        try:
            return Interpreter(environment).render(ast, scope)
        except TemplateError:
            raise
        except Exception as e:
            raise _enhance_error(e, ctx) from e


def _enhance_error(error: Exception, ctx: RenderContext) -> TemplateRuntimeError:
    """Wrap an unexpected Python exception with the template location."""
    if isinstance(error, RecursionError):
        message = "Maximum recursion depth exceeded (runaway macro recursion?)"
    else:
        message = f"{type(error).__name__}: {error}"
    enhanced = TemplateRuntimeError(message)
    enhanced.attach_location(ctx.template_name, ctx.line or None, ctx.source)
    return enhanced
