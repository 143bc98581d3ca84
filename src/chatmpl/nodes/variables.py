"""Variable assignment nodes for the template AST."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from chatmpl.nodes.base import Node
from chatmpl.nodes.expressions import Expr
from chatmpl.nodes.output import FilterStep


@dataclass(frozen=True, slots=True)
class Set(Node):
    """Scoped assignment: {% set x = expr %}, {% set a, b = pair %}, {% set ns.x = expr %}"""

    target: Expr
    value: Expr


@dataclass(frozen=True, slots=True)
class Capture(Node):
    """Block assignment: {% set x | filter %}...{% endset %}"""

    target: Expr
    body: Sequence[Node]
    steps: Sequence[FilterStep] = ()
