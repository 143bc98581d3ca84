"""Statement execution for the interpreter.

Provides mixins for executing statement AST nodes against a Scope.

The statements package is organized into logical modules:
- basic: Basic output (data, output)
- control_flow: Control flow (if, for, break, continue)
- variables: Variable assignments (set, block set)
- functions: Macros and call blocks
- special_blocks: Filter blocks

Every handler takes ``(node, scope, buffer)``, appends rendered text to the
buffer, and returns a Signal.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

from chatmpl.interpreter.statements.basic import BasicStatementMixin
from chatmpl.interpreter.statements.control_flow import ControlFlowMixin
from chatmpl.interpreter.statements.functions import FunctionExecutionMixin
from chatmpl.interpreter.statements.special_blocks import SpecialBlockMixin
from chatmpl.interpreter.statements.variables import VariableAssignmentMixin


class StatementExecutionMixin(
    BasicStatementMixin,
    ControlFlowMixin,
    VariableAssignmentMixin,
    FunctionExecutionMixin,
    SpecialBlockMixin,
):
    """Combined mixin for executing all statement types.

    This class combines all statement execution mixins into a single
    interface that can be inherited by the Interpreter class.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks in each individual mixin.

    """
