"""Block statement parsing mixins."""

from chatmpl.parser.blocks.control_flow import ControlFlowBlockParsingMixin
from chatmpl.parser.blocks.core import BlockStackMixin
from chatmpl.parser.blocks.functions import FunctionBlockParsingMixin
from chatmpl.parser.blocks.special_blocks import SpecialBlockParsingMixin
from chatmpl.parser.blocks.variables import VariableBlockParsingMixin

__all__ = [
    "BlockStackMixin",
    "ControlFlowBlockParsingMixin",
    "FunctionBlockParsingMixin",
    "SpecialBlockParsingMixin",
    "VariableBlockParsingMixin",
]
