"""Runtime value model.

Template values are plain Python objects:

    ========== ==========================
    null       ``None``
    undefined  ``UNDEFINED``
    boolean    ``bool``
    integer    ``int``
    float      ``float``
    string     ``str``
    array      ``list`` / ``tuple``
    mapping    ``dict`` (any ``Mapping``)
    callable   functions, macros, bound methods
    namespace  ``Namespace``
    ========== ==========================

This module holds the rules that differ from Python's own: booleans are not
numbers, ``/`` is always true division, printing follows template
conventions (``true``, ``none``), and missing attributes or items give
``UNDEFINED`` instead of raising.

Every helper raises ``TemplateRuntimeError`` (or a subclass) for an
operation that has no meaning for the operand kinds.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from chatmpl.environment.exceptions import (
    DivisionByZeroError,
    NotIterableError,
    TemplateRuntimeError,
)
from chatmpl.template.namespace import Namespace
from chatmpl.template.undefined import UNDEFINED, Undefined

__all__ = [
    "UNDEFINED",
    "Undefined",
    "binary_op",
    "compare",
    "contains",
    "equals",
    "get_attribute",
    "get_item",
    "is_number",
    "is_truthy",
    "is_undefined",
    "iterate",
    "kind",
    "slice_value",
    "to_string",
    "unary_op",
]

# Methods reachable through attribute access on strings: {{ text.strip() }}
STRING_METHODS = frozenset(
    {
        "capitalize",
        "center",
        "count",
        "endswith",
        "find",
        "isalnum",
        "isalpha",
        "isdigit",
        "islower",
        "isspace",
        "istitle",
        "isupper",
        "join",
        "ljust",
        "lower",
        "lstrip",
        "removeprefix",
        "removesuffix",
        "replace",
        "rfind",
        "rjust",
        "rsplit",
        "rstrip",
        "split",
        "splitlines",
        "startswith",
        "strip",
        "swapcase",
        "title",
        "upper",
        "zfill",
    }
)


def is_undefined(value: Any) -> bool:
    return isinstance(value, Undefined)


def is_number(value: Any) -> bool:
    """True for int and float, but not bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_truthy(value: Any) -> bool:
    """Template truthiness.

    None, Undefined, empty strings and containers, zero and false are falsy.
    """
    return bool(value)


def kind(value: Any) -> str:
    """Name of the value-model kind, for error messages."""
    if value is None:
        return "none"
    if isinstance(value, Undefined):
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Namespace):
        return "namespace"
    if isinstance(value, Mapping):
        return "mapping"
    if callable(value):
        return "callable"
    return type(value).__name__


# ---------------------------------------------------------------------------
# Printing
# ---------------------------------------------------------------------------


def to_string(value: Any) -> str:
    """The printed form of a value, used by {{ }} output and concatenation."""
    if isinstance(value, str):
        return value
    if value is None or isinstance(value, Undefined):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return int.__repr__(value)
    if isinstance(value, float):
        return float.__repr__(value)
    if isinstance(value, (list, tuple, Mapping, Namespace)):
        return _repr(value)
    return str(value)


def _repr(value: Any) -> str:
    """Printed form of a value nested inside a container."""
    if isinstance(value, str):
        return repr(value)
    if value is None:
        return "none"
    if isinstance(value, Undefined):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return "[" + ", ".join(_repr(v) for v in value) + "]"
    if isinstance(value, tuple):
        if len(value) == 1:
            return f"({_repr(value[0])},)"
        return "(" + ", ".join(_repr(v) for v in value) + ")"
    if isinstance(value, Namespace):
        return f"<Namespace {_repr(value.as_dict())}>"
    if isinstance(value, Mapping):
        return "{" + ", ".join(f"{_repr(k)}: {_repr(v)}" for k, v in value.items()) + "}"
    return to_string(value)


# ---------------------------------------------------------------------------
# Equality, membership, ordering
# ---------------------------------------------------------------------------


def equals(left: Any, right: Any) -> bool:
    """Structural equality.

    ``1 == 1.0`` holds, but a boolean never equals a number and a string never
    equals a number. Arrays compare element-wise, mappings key by key.
    Namespaces compare by identity.
    """
    if left is right:
        return True
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_number(left) and is_number(right):
        return left == right
    if isinstance(left, Undefined) or isinstance(right, Undefined):
        return isinstance(left, Undefined) and isinstance(right, Undefined)
    if left is None or right is None:
        return False
    if isinstance(left, str) or isinstance(right, str):
        return isinstance(left, str) and isinstance(right, str) and left == right
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(equals(a, b) for a, b in zip(left, right))
    if isinstance(left, Namespace) or isinstance(right, Namespace):
        return False
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if len(left) != len(right):
            return False
        return all(key in right and equals(value, right[key]) for key, value in left.items())
    return bool(left == right)


def contains(container: Any, item: Any) -> bool:
    """The ``in`` operator.

    Substring test for strings, element test for arrays, key test for
    mappings and namespaces. Undefined and null containers contain nothing.
    """
    if container is None or isinstance(container, Undefined):
        return False
    if isinstance(container, str):
        if isinstance(item, Undefined):
            return False
        if not isinstance(item, str):
            raise TemplateRuntimeError(
                f"'in <string>' requires a string as left operand, not {kind(item)}"
            )
        return item in container
    if isinstance(container, Namespace):
        return item in container
    if isinstance(container, Mapping):
        if isinstance(item, str):
            return item in container
        return any(equals(key, item) for key in container)
    if isinstance(container, (list, tuple)) or (
        isinstance(container, Iterable) and not isinstance(container, (bytes, bytearray))
    ):
        return any(equals(element, item) for element in container)
    raise TemplateRuntimeError(f"Argument of type '{kind(container)}' is not a container")


def _orderable(left: Any, right: Any) -> bool:
    if is_number(left) and is_number(right):
        return True
    if isinstance(left, str) and isinstance(right, str):
        return True
    return isinstance(left, (list, tuple)) and isinstance(right, (list, tuple))


def compare(op: str, left: Any, right: Any) -> bool:
    """Evaluate one comparison operator: ==, !=, <, <=, >, >=, in, not in."""
    if op == "==":
        return equals(left, right)
    if op == "!=":
        return not equals(left, right)
    if op == "in":
        return contains(right, left)
    if op == "not in":
        return not contains(right, left)

    if not _orderable(left, right):
        raise TemplateRuntimeError(f"Cannot compare {kind(left)} and {kind(right)} with '{op}'")
    if isinstance(left, tuple):
        left = list(left)
    if isinstance(right, tuple):
        right = list(right)
    if op == "<":
        return left < right
    if op == "<=":
        return left <= right
    if op == ">":
        return left > right
    if op == ">=":
        return left >= right
    raise TemplateRuntimeError(f"Unknown comparison operator '{op}'")


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------


def _unsupported(op: str, left: Any, right: Any) -> TemplateRuntimeError:
    return TemplateRuntimeError(
        f"Unsupported operand types for {op}: '{kind(left)}' and '{kind(right)}'"
    )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def binary_op(op: str, left: Any, right: Any) -> Any:
    """Evaluate an arithmetic operator.

    Integer arithmetic stays integer except ``/`` (always float) and ``**``
    with a negative exponent. Mixed int/float promotes to float. ``+`` joins
    strings and arrays, and a string on either side turns the other operand
    into its printed form. ``*`` repeats strings and arrays.
    """
    if op == "+":
        if is_number(left) and is_number(right):
            return left + right
        if isinstance(left, str) or isinstance(right, str):
            return to_string(left) + to_string(right)
        if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
            return list(left) + list(right)
        raise _unsupported(op, left, right)

    if op == "-":
        if is_number(left) and is_number(right):
            return left - right
        raise _unsupported(op, left, right)

    if op == "*":
        if is_number(left) and is_number(right):
            return left * right
        if isinstance(left, (str, list, tuple)) and _is_int(right):
            return left * right if not isinstance(left, tuple) else list(left) * right
        if _is_int(left) and isinstance(right, (str, list, tuple)):
            return right * left if not isinstance(right, tuple) else list(right) * left
        raise _unsupported(op, left, right)

    if op in ("/", "//", "%"):
        if op == "%" and isinstance(left, str):
            args = tuple(right) if isinstance(right, (list, tuple)) else right
            try:
                return left % args
            except (TypeError, ValueError) as e:
                raise TemplateRuntimeError(f"String formatting failed: {e}") from e
        if not (is_number(left) and is_number(right)):
            raise _unsupported(op, left, right)
        if right == 0:
            raise DivisionByZeroError(op)
        if op == "/":
            return left / right
        if op == "//":
            return left // right
        return left % right

    if op == "**":
        if not (is_number(left) and is_number(right)):
            raise _unsupported(op, left, right)
        try:
            if _is_int(left) and _is_int(right) and right < 0:
                return float(left) ** right
            result = left**right
        except ZeroDivisionError as e:
            raise DivisionByZeroError(op) from e
        except OverflowError as e:
            raise TemplateRuntimeError(f"Numeric overflow in '{op}'") from e
        # Negative base with a fractional exponent has no real result
        if isinstance(result, complex):
            return float("nan")
        return result

    raise TemplateRuntimeError(f"Unknown operator '{op}'")


def unary_op(op: str, operand: Any) -> Any:
    """Evaluate ``not``, unary ``-`` or unary ``+``."""
    if op == "not":
        return not is_truthy(operand)
    if not is_number(operand):
        raise TemplateRuntimeError(f"Unsupported operand type for unary {op}: '{kind(operand)}'")
    if op == "-":
        return -operand
    if op == "+":
        return +operand
    raise TemplateRuntimeError(f"Unknown unary operator '{op}'")


# ---------------------------------------------------------------------------
# Member access
# ---------------------------------------------------------------------------


def _mapping_method(mapping: Mapping[Any, Any], name: str) -> Any:
    if name == "items":
        return lambda: list(mapping.items())
    if name == "keys":
        return lambda: list(mapping.keys())
    if name == "values":
        return lambda: list(mapping.values())
    if name == "get":

        def get(key: Any, default: Any = None) -> Any:
            return mapping.get(key, default)

        return get
    return None


def get_attribute(obj: Any, name: str) -> Any:
    """Dotted member access: ``obj.name``.

    Mapping methods (``items``, ``keys``, ``values``, ``get``) take priority
    over keys of the same name, then mapping keys are tried. Strings expose a
    fixed set of methods. Other objects expose their public attributes.
    Anything missing is Undefined.
    """
    if obj is None or isinstance(obj, Undefined):
        return UNDEFINED
    if isinstance(obj, Namespace):
        return obj.get(name)
    if isinstance(obj, Mapping):
        method = _mapping_method(obj, name)
        if method is not None:
            return method
        return obj[name] if name in obj else UNDEFINED
    if isinstance(obj, str):
        return getattr(obj, name) if name in STRING_METHODS else UNDEFINED
    if isinstance(obj, tuple) and name in getattr(type(obj), "_fields", ()):
        # Named tuples (groupby results) expose their fields
        return getattr(obj, name)
    if isinstance(obj, (bool, int, float, list, tuple)):
        return UNDEFINED
    if name.startswith("_"):
        return UNDEFINED
    return getattr(obj, name, UNDEFINED)


def get_item(obj: Any, key: Any) -> Any:
    """Computed member access: ``obj[key]``.

    Integer indices on arrays and strings accept negative values; an index
    out of range is Undefined. A string key on a non-mapping falls back to
    attribute access.
    """
    if obj is None or isinstance(obj, Undefined):
        return UNDEFINED
    if isinstance(obj, Namespace):
        return obj.get(key) if isinstance(key, str) else UNDEFINED
    if isinstance(obj, Mapping):
        try:
            return obj[key] if key in obj else UNDEFINED
        except TypeError as e:
            raise TemplateRuntimeError(f"Unhashable mapping key of type '{kind(key)}'") from e
    if isinstance(obj, (str, list, tuple)):
        if _is_int(key):
            if -len(obj) <= key < len(obj):
                return obj[key]
            return UNDEFINED
        if isinstance(key, str):
            return get_attribute(obj, key)
        if isinstance(key, Undefined):
            return UNDEFINED
        raise TemplateRuntimeError(
            f"{kind(obj).capitalize()} indices must be integers, not {kind(key)}"
        )
    if isinstance(key, str):
        return get_attribute(obj, key)
    try:
        return obj[key]
    except (LookupError, TypeError):
        return UNDEFINED


def _slice_bound(value: Any, label: str) -> int | None:
    if value is None or isinstance(value, Undefined):
        return None
    if not _is_int(value):
        raise TemplateRuntimeError(f"Slice {label} must be an integer, not {kind(value)}")
    return value


def slice_value(obj: Any, start: Any, stop: Any, step: Any) -> Any:
    """Python-style slicing ``obj[start:stop:step]`` on strings and arrays.

    Out-of-range bounds clamp; a negative step walks backwards.
    """
    if obj is None or isinstance(obj, Undefined):
        return UNDEFINED
    step_value = _slice_bound(step, "step")
    if step_value == 0:
        raise TemplateRuntimeError("Slice step cannot be zero")
    bounds = slice(_slice_bound(start, "start"), _slice_bound(stop, "stop"), step_value)
    if isinstance(obj, str):
        return obj[bounds]
    if isinstance(obj, (list, tuple)):
        return list(obj[bounds])
    raise TemplateRuntimeError(f"Cannot slice {kind(obj)}")


# ---------------------------------------------------------------------------
# Iteration
# ---------------------------------------------------------------------------


def iterate(value: Any) -> list[Any]:
    """Materialize the items a ``{% for %}`` loop walks over.

    Arrays yield elements, mappings yield keys, strings yield characters.
    Other Python iterables (sets, generators) are accepted as arrays.
    """
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        return list(value)
    if isinstance(value, Mapping):
        return list(value.keys())
    if value is None or isinstance(value, (Undefined, Namespace, bytes, bytearray)):
        raise NotIterableError(kind(value))
    if isinstance(value, Iterable):
        return list(value)
    raise NotIterableError(kind(value))
