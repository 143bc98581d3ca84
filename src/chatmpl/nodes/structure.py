"""Template structure nodes for the template AST."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from chatmpl.nodes.base import Node


@dataclass(frozen=True, slots=True)
class Template(Node):
    """Root node representing a complete template."""

    body: Sequence[Node]
