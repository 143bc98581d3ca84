"""Variable assignment execution.

Provides mixin for ``{% set %}`` in its inline and block forms, and the
target binding shared with ``{% for %}``.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from chatmpl.environment.exceptions import ArgumentError, TemplateRuntimeError
from chatmpl.interpreter.signal import Signal
from chatmpl.template.namespace import Namespace
from chatmpl.values import kind

if TYPE_CHECKING:
    from chatmpl import nodes
    from chatmpl.interpreter.scope import Scope


class VariableAssignmentMixin:
    """Mixin for executing variable assignments.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks.

    """

    if TYPE_CHECKING:
        # From ExpressionEvaluationMixin
        def evaluate(self, node: Any, scope: Scope) -> Any: ...

        # From SpecialBlockMixin
        def _apply_filter_steps(
            self, value: Any, steps: Sequence[nodes.FilterStep], scope: Scope
        ) -> Any: ...

        # From Interpreter core
        def render_body(self, body: Sequence[nodes.Node], scope: Scope, owner: str) -> str: ...

    def _exec_set(self, node: nodes.Set, scope: Scope, buffer: list[str]) -> Signal:
        self._assign(node.target, self.evaluate(node.value, scope), scope)
        return Signal.NORMAL

    def _exec_capture(self, node: nodes.Capture, scope: Scope, buffer: list[str]) -> Signal:
        """{% set x %}...{% endset %}: bind the rendered body text.

        The body renders in a child scope; only the captured text is bound in
        the current one.
        """
        text = self.render_body(node.body, scope.child(), "set block")
        if node.steps:
            value = self._apply_filter_steps(text, node.steps, scope)
        else:
            value = text
        self._assign(node.target, value, scope)
        return Signal.NORMAL

    def _assign(self, target: nodes.Expr, value: Any, scope: Scope) -> None:
        """Bind ``value`` to an assignment target in ``scope``.

        Names bind in the given frame. Tuple targets unpack an array of the
        same length. ``ns.attr`` writes into the Namespace object, which is
        shared by every scope that can see it.
        """
        target_type = type(target).__name__

        if target_type == "Name":
            scope.set(target.name, value)  # type: ignore[attr-defined]
            return

        if target_type == "Tuple":
            items = target.items  # type: ignore[attr-defined]
            if not isinstance(value, (list, tuple)):
                raise TemplateRuntimeError(
                    f"Cannot unpack {kind(value)} into {len(items)} names",
                    suggestion="Only arrays can be unpacked",
                )
            if len(value) != len(items):
                raise ArgumentError(
                    f"Cannot unpack {len(value)} values into {len(items)} names",
                    values={"value": value},
                )
            for item, element in zip(items, value):
                self._assign(item, element, scope)
            return

        if target_type == "Getattr":
            obj = self.evaluate(target.obj, scope)  # type: ignore[attr-defined]
            attr = target.attr  # type: ignore[attr-defined]
            if not isinstance(obj, Namespace):
                raise TemplateRuntimeError(
                    f"Cannot assign attribute '{attr}' on {kind(obj)}",
                    suggestion="Create the object with namespace(...) to assign attributes",
                )
            obj.set(attr, value)
            return

        raise TemplateRuntimeError(f"Cannot assign to {target_type}")
