"""Control flow nodes for the template AST."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from chatmpl.nodes.base import Node
from chatmpl.nodes.expressions import Expr


@dataclass(frozen=True, slots=True)
class If(Node):
    """Conditional: {% if cond %}...{% elif cond %}...{% else %}...{% endif %}"""

    test: Expr
    body: Sequence[Node]
    elif_: Sequence[tuple[Expr, Sequence[Node]]] = ()
    else_: Sequence[Node] = ()


@dataclass(frozen=True, slots=True)
class For(Node):
    """For loop: {% for x in items if cond %}...{% else %}...{% endfor %}"""

    target: Expr
    iter: Expr
    body: Sequence[Node]
    else_: Sequence[Node] = ()
    test: Expr | None = None


@dataclass(frozen=True, slots=True)
class Break(Node):
    """Break out of loop: {% break %}"""


@dataclass(frozen=True, slots=True)
class Continue(Node):
    """Skip to next iteration: {% continue %}"""
