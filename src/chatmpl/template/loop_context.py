"""Loop iteration metadata for ``{% for %}`` blocks."""

from __future__ import annotations

from typing import Any

from chatmpl.template.undefined import UNDEFINED


class LoopContext:
    """Loop iteration metadata accessible as `loop` inside `{% for %}` blocks.

    Built once per loop over the *retained* items, i.e. after the optional
    ``if`` clause has dropped elements, so indices and ``length`` count only
    the items the body actually sees. A nested loop gets its own context and
    shadows this one; alias it first (``{% set outer = loop %}``) to reach it.

    Properties:
        index: 1-based iteration count (1, 2, 3, ...)
        index0: 0-based iteration count (0, 1, 2, ...)
        first: True on the first iteration
        last: True on the final iteration
        length: Total number of retained items
        revindex: Reverse 1-based index (counts down to 1)
        revindex0: Reverse 0-based index (counts down to 0)
        previtem: Previous item (Undefined on first)
        nextitem: Next item (Undefined on last)

    Methods:
        cycle(*values): Return values[index0 % len(values)]

    Example:
            ```jinja
            {% for m in messages if m.role != 'system' %}
                {{ loop.index }}/{{ loop.length }} {{ m.content }}
                {% if not loop.last %}, {% endif %}
            {% endfor %}
            ```

    """

    __slots__ = ("_index", "_items", "_length")

    def __init__(self, items: list[Any]) -> None:
        self._items = items
        self._length = len(items)
        self._index = 0

    def advance(self, index: int) -> None:
        """Move to the given 0-based position."""
        self._index = index

    @property
    def index(self) -> int:
        """1-based iteration count."""
        return self._index + 1

    @property
    def index0(self) -> int:
        """0-based iteration count."""
        return self._index

    @property
    def first(self) -> bool:
        """True if this is the first iteration."""
        return self._index == 0

    @property
    def last(self) -> bool:
        """True if this is the last iteration."""
        return self._index == self._length - 1

    @property
    def length(self) -> int:
        """Total number of retained items."""
        return self._length

    @property
    def revindex(self) -> int:
        """Reverse 1-based index (counts down to 1)."""
        return self._length - self._index

    @property
    def revindex0(self) -> int:
        """Reverse 0-based index (counts down to 0)."""
        return self._length - self._index - 1

    @property
    def previtem(self) -> Any:
        """Previous item, or Undefined on the first iteration."""
        if self._index == 0:
            return UNDEFINED
        return self._items[self._index - 1]

    @property
    def nextitem(self) -> Any:
        """Next item, or Undefined on the last iteration."""
        if self._index >= self._length - 1:
            return UNDEFINED
        return self._items[self._index + 1]

    def cycle(self, *values: Any) -> Any:
        """Cycle through the given values.

        Example:
            {{ loop.cycle('odd', 'even') }}
        """
        if not values:
            return UNDEFINED
        return values[self._index % len(values)]

    def __repr__(self) -> str:
        return f"<LoopContext {self.index}/{self.length}>"
