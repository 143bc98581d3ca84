"""Filter block execution.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from chatmpl.interpreter.signal import Signal
from chatmpl.values import to_string

if TYPE_CHECKING:
    from chatmpl import nodes
    from chatmpl.environment import Environment
    from chatmpl.interpreter.scope import Scope


class SpecialBlockMixin:
    """Mixin for ``{% filter %}`` sections and filter chains."""

    if TYPE_CHECKING:
        # Host attributes (from Interpreter)
        _env: Environment

        # From ExpressionEvaluationMixin
        def evaluate(self, node: Any, scope: Scope) -> Any: ...

        # From Interpreter core
        def render_body(self, body: Sequence[nodes.Node], scope: Scope, owner: str) -> str: ...

    def _exec_filter_block(
        self, node: nodes.FilterBlock, scope: Scope, buffer: list[str]
    ) -> Signal:
        """Render the body in a child scope and pipe the text through the filters."""
        text = self.render_body(node.body, scope.child(), "filter block")
        buffer.append(to_string(self._apply_filter_steps(text, node.steps, scope)))
        return Signal.NORMAL

    def _apply_filter_steps(
        self, value: Any, steps: Sequence[nodes.FilterStep], scope: Scope
    ) -> Any:
        for name, args, kwargs in steps:
            arg_values = [self.evaluate(arg, scope) for arg in args]
            kwarg_values = {key: self.evaluate(expr, scope) for key, expr in kwargs.items()}
            value = self._env.call_filter(name, value, *arg_values, **kwarg_values)
        return value
