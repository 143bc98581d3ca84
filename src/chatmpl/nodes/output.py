"""Output nodes for the template AST."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from chatmpl.nodes.base import Node
from chatmpl.nodes.expressions import Expr

FilterStep = tuple[str, Sequence[Expr], dict[str, Expr]]


@dataclass(frozen=True, slots=True)
class Output(Node):
    """Output expression: {{ expr }}"""

    expr: Expr


@dataclass(frozen=True, slots=True)
class Data(Node):
    """Raw text data between template constructs."""

    value: str


@dataclass(frozen=True, slots=True)
class FilterBlock(Node):
    """Apply filters to rendered body: {% filter upper|trim %}...{% endfilter %}"""

    steps: Sequence[FilterStep]
    body: Sequence[Node]
