"""Lexical scope chain."""

from __future__ import annotations

from typing import Any

from chatmpl.template.undefined import UNDEFINED


class Scope:
    """One frame of variable bindings with a link to the enclosing frame.

    Lookups walk outward to the root; writes always land in this frame, so
    a ``{% set %}`` inside a loop body or macro never rebinds a name in an
    enclosing scope. The chain ends at the globals frame built from the
    Environment.

    Example:
        >>> root = Scope({"x": 1})
        >>> inner = root.child()
        >>> inner.set("x", 2)
        >>> inner.lookup("x"), root.lookup("x")
        (2, 1)
    """

    __slots__ = ("vars", "parent")

    def __init__(self, vars: dict[str, Any] | None = None, parent: Scope | None = None):
        self.vars: dict[str, Any] = vars if vars is not None else {}
        self.parent = parent

    def child(self, vars: dict[str, Any] | None = None) -> Scope:
        """New empty (or pre-seeded) frame enclosed by this one."""
        return Scope(vars, self)

    def lookup(self, name: str) -> Any:
        """Value bound to ``name`` in the nearest frame, or Undefined."""
        scope: Scope | None = self
        while scope is not None:
            if name in scope.vars:
                return scope.vars[name]
            scope = scope.parent
        return UNDEFINED

    def resolve(self, name: str) -> Scope | None:
        """The nearest frame binding ``name``, if any."""
        scope: Scope | None = self
        while scope is not None:
            if name in scope.vars:
                return scope
            scope = scope.parent
        return None

    def set(self, name: str, value: Any) -> None:
        self.vars[name] = value

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.resolve(name) is not None

    def __repr__(self) -> str:
        depth = 0
        scope = self.parent
        while scope is not None:
            depth += 1
            scope = scope.parent
        return f"<Scope depth={depth} vars={sorted(self.vars)}>"
