"""Tree-walking interpreter for chatmpl templates.

Renders a parsed Template AST against a chain of Scopes:

    globals frame  ->  render context frame  ->  loop/macro frames ...

Public API:
    render(ast, root_context, environment): Render a parsed template
    Interpreter: Evaluator with expression and statement mixins
    Scope: One frame of the scope chain
    Signal: Control result of statement execution
    Macro, Caller: Callables created by macro and call blocks
"""

from __future__ import annotations

from chatmpl.interpreter.core import Interpreter, render
from chatmpl.interpreter.macro import Caller, Macro
from chatmpl.interpreter.scope import Scope
from chatmpl.interpreter.signal import Signal

__all__ = ["Caller", "Interpreter", "Macro", "Scope", "Signal", "render"]
