"""Callables created by ``{% macro %}`` and ``{% call %}``."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from chatmpl.environment.exceptions import ArgumentError

if TYPE_CHECKING:
    from chatmpl import nodes
    from chatmpl.interpreter.core import Interpreter
    from chatmpl.interpreter.scope import Scope


def bind_arguments(
    owner: str,
    params: Sequence[nodes.MacroParam],
    args: Sequence[Any],
    kwargs: dict[str, Any],
    scope: Scope,
    interpreter: Interpreter,
) -> None:
    """Bind call arguments to declared parameters in ``scope``.

    Positional arguments fill parameters left to right, then keywords fill
    the rest by name. An omitted parameter takes its default, evaluated now
    in ``scope`` so it can refer to parameters bound before it. Leftover
    positionals become ``varargs`` and unknown keywords become ``kwargs``.

    Raises:
        ArgumentError: A parameter without default received no value, or a
            parameter received both a positional and a keyword value
    """
    names = [param.name for param in params]
    bound: dict[str, Any] = dict(zip(names, args))
    extra_kwargs: dict[str, Any] = {}

    for key, value in kwargs.items():
        if key in bound:
            raise ArgumentError(f"{owner} got multiple values for argument '{key}'")
        if key in names:
            bound[key] = value
        else:
            extra_kwargs[key] = value

    for param in params:
        if param.name in bound:
            scope.set(param.name, bound[param.name])
        elif param.default is not None:
            scope.set(param.name, interpreter.evaluate(param.default, scope))
        else:
            raise ArgumentError(
                f"{owner} missing required argument '{param.name}'",
                suggestion=f"Pass {param.name}=... or give the parameter a default",
            )

    scope.set("varargs", list(args[len(names) :]))
    scope.set("kwargs", extra_kwargs)


class Macro:
    """A template macro bound as an ordinary callable.

    Closes over the scope its definition executed in. The scope is held by
    reference, so a macro sees bindings made after it was defined, including
    its own name (recursion) and macros defined later (mutual recursion).
    Each call renders the body in a fresh child of that scope and returns
    the text.

    Example:
        >>> env.from_string(
        ...     "{% macro f(x) %}{{ x }}{% if x > 1 %}|{{ f(x - 1) }}{% endif %}{% endmacro %}"
        ...     "{{ f(5) }}"
        ... ).render()
        '5|4|3|2|1'
    """

    __slots__ = ("_node", "_closure", "_interpreter")

    def __init__(self, node: nodes.Macro, closure: Scope, interpreter: Interpreter):
        self._node = node
        self._closure = closure
        self._interpreter = interpreter

    @property
    def name(self) -> str:
        return self._node.name

    @property
    def arguments(self) -> tuple[str, ...]:
        """Declared parameter names in order."""
        return self._node.args

    def __call__(self, *args: Any, **kwargs: Any) -> str:
        scope = self._closure.child()
        if "caller" in kwargs and "caller" not in self._node.args:
            scope.set("caller", kwargs.pop("caller"))
        bind_arguments(
            f"Macro '{self.name}'", self._node.params, args, kwargs, scope, self._interpreter
        )
        return self._interpreter.render_body(self._node.body, scope, f"macro '{self.name}'")

    def __repr__(self) -> str:
        return f"<Macro {self.name}({', '.join(self.arguments)})>"


class Caller:
    """The ``caller`` callable handed to a macro invoked by a call block.

    Renders the call block's body in a child of the scope that was active
    at the call site, binding the block's declared parameters.

    Example:
            ```jinja
            {% macro wrap(tag) %}<{{ tag }}>{{ caller() }}</{{ tag }}>{% endmacro %}
            {% call wrap('b') %}bold{% endcall %}
            ```
    """

    __slots__ = ("_node", "_scope", "_interpreter")

    def __init__(self, node: nodes.CallBlock, scope: Scope, interpreter: Interpreter):
        self._node = node
        self._scope = scope
        self._interpreter = interpreter

    def __call__(self, *args: Any, **kwargs: Any) -> str:
        scope = self._scope.child()
        bind_arguments("caller()", self._node.params, args, kwargs, scope, self._interpreter)
        return self._interpreter.render_body(self._node.body, scope, "call block")

    def __repr__(self) -> str:
        return "<Caller>"
