"""Namespace objects created by the ``namespace(...)`` global."""

from __future__ import annotations

from typing import Any

from chatmpl.template.undefined import UNDEFINED


class Namespace:
    """Mutable attribute bag shared by reference across scopes.

    Ordinary ``{% set %}`` bindings made inside a loop body stay inside that
    iteration. A namespace escapes that rule: every scope holding the same
    ``Namespace`` sees the same storage, so ``{% set ns.attr = value %}`` in a
    loop body is still visible after the loop.

    Example:
            ```jinja
            {% set ns = namespace(found=false) %}
            {% for m in messages %}
                {% if m.role == 'system' %}{% set ns.found = true %}{% endif %}
            {% endfor %}
            {{ ns.found }}
            ```
    """

    __slots__ = ("_storage",)

    def __init__(self, *args: Any, **attrs: Any) -> None:
        # Positional mappings seed the storage, like dict(...)
        self._storage: dict[str, Any] = dict(*args, **attrs)

    def get(self, name: str, default: Any = UNDEFINED) -> Any:
        return self._storage.get(name, default)

    def set(self, name: str, value: Any) -> None:
        self._storage[name] = value

    def __contains__(self, name: object) -> bool:
        return name in self._storage

    def items(self) -> list[tuple[str, Any]]:
        return list(self._storage.items())

    def as_dict(self) -> dict[str, Any]:
        """Shallow copy of the current storage."""
        return dict(self._storage)

    def __repr__(self) -> str:
        return f"<Namespace {self._storage!r}>"
