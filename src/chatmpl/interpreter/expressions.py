"""Expression evaluation for the interpreter.

Provides mixin for evaluating expression nodes (constants, names, member
access, operators, calls, filters and tests). Every handler receives the
node and the active Scope and returns a template value.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from chatmpl import values
from chatmpl.environment.exceptions import TemplateRuntimeError
from chatmpl.environment.registry import check_arguments
from chatmpl.interpreter.macro import Caller, Macro
from chatmpl.template.undefined import UNDEFINED

if TYPE_CHECKING:
    from chatmpl import nodes
    from chatmpl.environment import Environment
    from chatmpl.interpreter.scope import Scope


class ExpressionEvaluationMixin:
    """Mixin for evaluating expressions.

    Host attributes accessed via inline TYPE_CHECKING declarations.
    """

    if TYPE_CHECKING:
        # Host attributes (from Interpreter)
        _env: Environment
        _expr_dispatch: dict[str, Callable[[Any, Scope], Any]]

    def _build_expr_dispatch(self) -> dict[str, Callable[[Any, Scope], Any]]:
        return {
            "Const": self._eval_const,
            "Name": self._eval_name,
            "Tuple": self._eval_tuple,
            "List": self._eval_list,
            "Dict": self._eval_dict,
            "Getattr": self._eval_getattr,
            "Getitem": self._eval_getitem,
            "Slice": self._eval_slice,
            "FuncCall": self._eval_call,
            "Filter": self._eval_filter,
            "Test": self._eval_test,
            "BinOp": self._eval_binop,
            "UnaryOp": self._eval_unaryop,
            "Compare": self._eval_compare,
            "BoolOp": self._eval_boolop,
            "CondExpr": self._eval_condexpr,
            "Concat": self._eval_concat,
        }

    def evaluate(self, node: nodes.Expr, scope: Scope) -> Any:
        """Evaluate an expression node to a template value."""
        handler = self._expr_dispatch.get(type(node).__name__)
        if handler is None:
            raise TemplateRuntimeError(f"Cannot evaluate node of type '{type(node).__name__}'")
        return handler(node, scope)

    # -- Atoms ---------------------------------------------------------------

    def _eval_const(self, node: nodes.Const, scope: Scope) -> Any:
        return node.value

    def _eval_name(self, node: nodes.Name, scope: Scope) -> Any:
        return scope.lookup(node.name)

    def _eval_tuple(self, node: nodes.Tuple, scope: Scope) -> tuple[Any, ...]:
        return tuple(self.evaluate(item, scope) for item in node.items)

    def _eval_list(self, node: nodes.List, scope: Scope) -> list[Any]:
        return [self.evaluate(item, scope) for item in node.items]

    def _eval_dict(self, node: nodes.Dict, scope: Scope) -> dict[Any, Any]:
        result: dict[Any, Any] = {}
        for key_node, value_node in zip(node.keys, node.values):
            key = self.evaluate(key_node, scope)
            value = self.evaluate(value_node, scope)
            try:
                result[key] = value
            except TypeError as e:
                raise TemplateRuntimeError(
                    f"Unhashable mapping key of type '{values.kind(key)}'"
                ) from e
        return result

    # -- Member access -------------------------------------------------------

    def _eval_getattr(self, node: nodes.Getattr, scope: Scope) -> Any:
        return values.get_attribute(self.evaluate(node.obj, scope), node.attr)

    def _eval_getitem(self, node: nodes.Getitem, scope: Scope) -> Any:
        obj = self.evaluate(node.obj, scope)
        return values.get_item(obj, self.evaluate(node.key, scope))

    def _eval_slice(self, node: nodes.Slice, scope: Scope) -> Any:
        obj = self.evaluate(node.obj, scope)
        start = self.evaluate(node.start, scope) if node.start is not None else None
        stop = self.evaluate(node.stop, scope) if node.stop is not None else None
        step = self.evaluate(node.step, scope) if node.step is not None else None
        return values.slice_value(obj, start, stop, step)

    # -- Calls, filters, tests -----------------------------------------------

    def _eval_call_args(
        self,
        args: Any,
        kwargs: dict[str, nodes.Expr],
        dyn_args: Any,
        scope: Scope,
    ) -> tuple[list[Any], dict[str, Any]]:
        positional = [self.evaluate(arg, scope) for arg in args]
        for dyn in dyn_args:
            unpacked = self.evaluate(dyn, scope)
            if not isinstance(unpacked, (list, tuple)):
                raise TemplateRuntimeError(
                    f"Argument after * must be an array, not {values.kind(unpacked)}"
                )
            positional.extend(unpacked)
        keywords = {name: self.evaluate(expr, scope) for name, expr in kwargs.items()}
        return positional, keywords

    def _eval_call(self, node: nodes.FuncCall, scope: Scope) -> Any:
        func = self.evaluate(node.func, scope)
        args, kwargs = self._eval_call_args(node.args, node.kwargs, node.dyn_args, scope)
        return self._call_function(func, args, kwargs, _describe_callee(node.func))

    def _call_function(
        self, func: Any, args: list[Any], kwargs: dict[str, Any], label: str
    ) -> Any:
        """Invoke a template-visible callable.

        Macros and callers bind their own arguments. Anything else is checked
        against its Python signature first, and a TypeError or ValueError it
        raises becomes a TemplateRuntimeError.
        """
        if isinstance(func, (Macro, Caller)):
            return func(*args, **kwargs)
        if not callable(func):
            raise TemplateRuntimeError(
                f"'{label}' is not callable (got {values.kind(func)})",
                expression=f"{label}(...)",
            )
        check_arguments(func, args, kwargs, f"'{label}'")
        try:
            return func(*args, **kwargs)
        except (TypeError, ValueError) as e:
            raise TemplateRuntimeError(f"Error calling '{label}': {e}") from e

    def _eval_filter(self, node: nodes.Filter, scope: Scope) -> Any:
        value = self.evaluate(node.value, scope)
        args, kwargs = self._eval_call_args(node.args, node.kwargs, node.dyn_args, scope)
        return self._env.call_filter(node.name, value, *args, **kwargs)

    def _eval_test(self, node: nodes.Test, scope: Scope) -> bool:
        value = self.evaluate(node.value, scope)
        args, kwargs = self._eval_call_args(node.args, node.kwargs, (), scope)
        result = self._env.call_test(node.name, value, *args, **kwargs)
        return not result if node.negated else result

    # -- Operators -----------------------------------------------------------

    def _eval_binop(self, node: nodes.BinOp, scope: Scope) -> Any:
        left = self.evaluate(node.left, scope)
        right = self.evaluate(node.right, scope)
        return values.binary_op(node.op, left, right)

    def _eval_unaryop(self, node: nodes.UnaryOp, scope: Scope) -> Any:
        return values.unary_op(node.op, self.evaluate(node.operand, scope))

    def _eval_compare(self, node: nodes.Compare, scope: Scope) -> bool:
        # Chained: a < b < c means a < b and b < c, each operand evaluated once
        left = self.evaluate(node.left, scope)
        for op, comparator in zip(node.ops, node.comparators):
            right = self.evaluate(comparator, scope)
            if not values.compare(op, left, right):
                return False
            left = right
        return True

    def _eval_boolop(self, node: nodes.BoolOp, scope: Scope) -> Any:
        """Short-circuit ``and``/``or``; the deciding operand is the result."""
        result: Any = UNDEFINED
        for operand in node.values:
            result = self.evaluate(operand, scope)
            truthy = values.is_truthy(result)
            if node.op == "and" and not truthy:
                return result
            if node.op == "or" and truthy:
                return result
        return result

    def _eval_condexpr(self, node: nodes.CondExpr, scope: Scope) -> Any:
        if values.is_truthy(self.evaluate(node.test, scope)):
            return self.evaluate(node.if_true, scope)
        if node.if_false is None:
            return UNDEFINED
        return self.evaluate(node.if_false, scope)

    def _eval_concat(self, node: nodes.Concat, scope: Scope) -> str:
        return "".join(values.to_string(self.evaluate(part, scope)) for part in node.nodes)


def _describe_callee(node: nodes.Expr) -> str:
    """Short source-like text for the called expression, used in messages."""
    name = type(node).__name__
    if name == "Name":
        return node.name  # type: ignore[attr-defined]
    if name == "Getattr":
        return f"{_describe_callee(node.obj)}.{node.attr}"  # type: ignore[attr-defined]
    return "<expression>"
