"""Macro definition and call nodes for the template AST."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from chatmpl.nodes.base import Node
from chatmpl.nodes.expressions import Expr, FuncCall


@dataclass(frozen=True, slots=True)
class MacroParam(Node):
    """A single macro parameter, optionally with a default: name or name=expr"""

    name: str
    default: Expr | None = None


@dataclass(frozen=True, slots=True)
class Macro(Node):
    """Macro definition: {% macro name(params) %}...{% endmacro %}"""

    name: str
    params: Sequence[MacroParam]
    body: Sequence[Node]

    @property
    def args(self) -> tuple[str, ...]:
        """Parameter names in declaration order."""
        return tuple(p.name for p in self.params)


@dataclass(frozen=True, slots=True)
class CallBlock(Node):
    """Call with caller body: {% call(params) name(args) %}...{% endcall %}"""

    call: FuncCall
    body: Sequence[Node]
    params: Sequence[MacroParam] = ()
