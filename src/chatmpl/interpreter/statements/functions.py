"""Macro definition and call block execution.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from chatmpl.interpreter.macro import Caller, Macro
from chatmpl.interpreter.signal import Signal
from chatmpl.values import to_string

if TYPE_CHECKING:
    from chatmpl import nodes
    from chatmpl.interpreter.core import Interpreter
    from chatmpl.interpreter.scope import Scope


class FunctionExecutionMixin:
    """Mixin for executing macro definitions and call blocks.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks.

    """

    if TYPE_CHECKING:
        # From ExpressionEvaluationMixin
        def evaluate(self, node: Any, scope: Scope) -> Any: ...
        def _eval_call_args(
            self, args: Any, kwargs: Any, dyn_args: Any, scope: Scope
        ) -> tuple[list[Any], dict[str, Any]]: ...
        def _call_function(
            self, func: Any, args: list[Any], kwargs: dict[str, Any], label: str
        ) -> Any: ...

    def _exec_macro(self, node: nodes.Macro, scope: Scope, buffer: list[str]) -> Signal:
        """Bind a Macro callable under its name in the current scope.

        The macro closes over this scope by reference, so it can call itself
        and any macro defined later in the same scope.
        """
        interpreter: Interpreter = self  # type: ignore[assignment]
        scope.set(node.name, Macro(node, scope, interpreter))
        return Signal.NORMAL

    def _exec_call_block(self, node: nodes.CallBlock, scope: Scope, buffer: list[str]) -> Signal:
        """{% call(params) callee(args) %}body{% endcall %}.

        Invokes the callee with an extra ``caller`` keyword; ``caller()``
        renders the body in a child of this scope.
        """
        interpreter: Interpreter = self  # type: ignore[assignment]
        call = node.call
        func = self.evaluate(call.func, scope)
        args, kwargs = self._eval_call_args(call.args, call.kwargs, call.dyn_args, scope)
        kwargs["caller"] = Caller(node, scope, interpreter)
        result = self._call_function(func, args, kwargs, "call block")
        buffer.append(to_string(result))
        return Signal.NORMAL
