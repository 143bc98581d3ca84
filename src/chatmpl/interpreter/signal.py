"""Control results of statement execution."""

from __future__ import annotations

from enum import Enum


class Signal(Enum):
    """Result of executing a statement list.

    ``BREAK`` and ``CONTINUE`` unwind to the nearest enclosing ``{% for %}``,
    which absorbs them.
    """

    NORMAL = "normal"
    BREAK = "break"
    CONTINUE = "continue"
