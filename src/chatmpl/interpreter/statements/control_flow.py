"""Control flow statement execution.

Provides mixin for executing if, for, break and continue.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from chatmpl.interpreter.signal import Signal
from chatmpl.template.loop_context import LoopContext
from chatmpl.values import is_truthy, iterate

if TYPE_CHECKING:
    from chatmpl import nodes
    from chatmpl.interpreter.scope import Scope


class ControlFlowMixin:
    """Mixin for executing control flow statements.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks.

    """

    if TYPE_CHECKING:
        # From ExpressionEvaluationMixin
        def evaluate(self, node: Any, scope: Scope) -> Any: ...

        # From VariableAssignmentMixin
        def _assign(self, target: Any, value: Any, scope: Scope) -> None: ...

        # From Interpreter core
        def _execute_body(
            self, body: Sequence[nodes.Node], scope: Scope, buffer: list[str]
        ) -> Signal: ...

    def _exec_if(self, node: nodes.If, scope: Scope, buffer: list[str]) -> Signal:
        """Run the first branch whose condition is truthy.

        Branches execute in the current scope: a ``{% set %}`` inside a branch
        stays visible after ``{% endif %}``.
        """
        if is_truthy(self.evaluate(node.test, scope)):
            return self._execute_body(node.body, scope, buffer)
        for test, body in node.elif_:
            if is_truthy(self.evaluate(test, scope)):
                return self._execute_body(body, scope, buffer)
        if node.else_:
            return self._execute_body(node.else_, scope, buffer)
        return Signal.NORMAL

    def _exec_for(self, node: nodes.For, scope: Scope, buffer: list[str]) -> Signal:
        """Iterate a loop body.

        The iterable is evaluated once. When an ``if`` clause is present it
        runs per item in a throwaway scope holding the target, and only
        retained items reach the body and count towards ``loop``. Each
        iteration gets a fresh child scope, so bindings never leak between
        iterations or out of the loop.

        The loop absorbs BREAK and CONTINUE from its body; ``else`` runs in the
        enclosing scope when no item was retained.

        Raises:
            NotIterableError: The iterable is not an array, mapping or string
            ArgumentError: A tuple target does not match an item's length;
                a tuple target over a mapping walks (key, value) pairs
        """
        iterable = self.evaluate(node.iter, scope)
        items = iterate(iterable)
        if isinstance(iterable, Mapping) and type(node.target).__name__ == "Tuple":
            # Unpacking a mapping binds key and value
            items = [(key, iterable[key]) for key in items]

        if node.test is not None:
            retained = []
            for item in items:
                candidate = scope.child()
                self._assign(node.target, item, candidate)
                if is_truthy(self.evaluate(node.test, candidate)):
                    retained.append(item)
            items = retained

        if not items:
            if node.else_:
                return self._execute_body(node.else_, scope, buffer)
            return Signal.NORMAL

        loop = LoopContext(items)
        for index, item in enumerate(items):
            loop.advance(index)
            iteration = scope.child({"loop": loop})
            self._assign(node.target, item, iteration)
            signal = self._execute_body(node.body, iteration, buffer)
            if signal is Signal.BREAK:
                break
        return Signal.NORMAL

    def _exec_break(self, node: nodes.Break, scope: Scope, buffer: list[str]) -> Signal:
        return Signal.BREAK

    def _exec_continue(self, node: nodes.Continue, scope: Scope, buffer: list[str]) -> Signal:
        return Signal.CONTINUE
