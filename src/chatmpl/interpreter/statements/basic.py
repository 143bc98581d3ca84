"""Basic statement execution: literal text and ``{{ expr }}`` output."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from chatmpl.interpreter.signal import Signal
from chatmpl.values import to_string

if TYPE_CHECKING:
    from chatmpl import nodes
    from chatmpl.interpreter.scope import Scope


class BasicStatementMixin:
    """Mixin for executing output statements."""

    if TYPE_CHECKING:
        # From ExpressionEvaluationMixin
        def evaluate(self, node: Any, scope: Scope) -> Any: ...

    def _exec_data(self, node: nodes.Data, scope: Scope, buffer: list[str]) -> Signal:
        buffer.append(node.value)
        return Signal.NORMAL

    def _exec_output(self, node: nodes.Output, scope: Scope, buffer: list[str]) -> Signal:
        """Print an expression; Undefined and none print as nothing."""
        buffer.append(to_string(self.evaluate(node.expr, scope)))
        return Signal.NORMAL
