"""AST node classes for chatmpl templates.

Two disjoint families share the ``Node`` base: expressions (``Expr``
subclasses, which evaluate to a value) and statements (text, output and
control constructs). All nodes are frozen, slotted dataclasses.
"""

from chatmpl.nodes.base import Node
from chatmpl.nodes.control_flow import Break, Continue, For, If
from chatmpl.nodes.expressions import (
    AnyExpr,
    BinOp,
    BoolOp,
    Compare,
    Concat,
    CondExpr,
    Const,
    Dict,
    Expr,
    Filter,
    FuncCall,
    Getattr,
    Getitem,
    List,
    Name,
    Slice,
    Test,
    Tuple,
    UnaryOp,
)
from chatmpl.nodes.functions import CallBlock, Macro, MacroParam
from chatmpl.nodes.output import Data, FilterBlock, FilterStep, Output
from chatmpl.nodes.structure import Template
from chatmpl.nodes.variables import Capture, Set

__all__ = [
    "AnyExpr",
    "BinOp",
    "BoolOp",
    "Break",
    "CallBlock",
    "Capture",
    "Compare",
    "Concat",
    "CondExpr",
    "Const",
    "Continue",
    "Data",
    "Dict",
    "Expr",
    "Filter",
    "FilterBlock",
    "FilterStep",
    "For",
    "FuncCall",
    "Getattr",
    "Getitem",
    "If",
    "List",
    "Macro",
    "MacroParam",
    "Name",
    "Node",
    "Output",
    "Set",
    "Slice",
    "Template",
    "Test",
    "Tuple",
    "UnaryOp",
]
