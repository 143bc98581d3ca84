"""Built-in tests for chatmpl templates.

Tests are boolean predicates used with `is` in conditionals:
`{% if value is test %}` or `{% if value is test(arg) %}`

Categories:
**Type Tests**:
    - `defined`: Value is not Undefined (none counts as defined)
    - `undefined`: Value is Undefined
    - `none`: Value is none
    - `boolean`: Value is true or false
    - `string`: Value is a string
    - `number`: Value is an integer or float (not a boolean)
    - `integer`, `float`: Value is that exact numeric kind
    - `sequence`: Value is an array or string
    - `mapping`: Value is a mapping
    - `iterable`: A `{% for %}` loop accepts the value
    - `callable`: Value is callable (macros, globals, methods)

**Boolean Tests**:
    - `true`: Value is exactly true
    - `false`: Value is exactly false

**Number Tests**:
    - `odd`: Integer is odd
    - `even`: Integer is even
    - `divisibleby(n)`: Integer is divisible by n

**Comparison Tests**:
    - `eq(other)` / `equalto(other)` / `==`: Equal to other
    - `ne(other)` / `!=`: Not equal to other
    - `lt(other)` / `lessthan(other)` / `<`: Less than other
    - `le(other)` / `<=`: Less than or equal
    - `gt(other)` / `greaterthan(other)` / `>`: Greater than other
    - `ge(other)` / `>=`: Greater than or equal
    - `sameas(other)`: Identity comparison
    - `in(seq)`: Value is in sequence

**String Tests**:
    - `lower`: String is all lowercase
    - `upper`: String is all uppercase

**Registry Tests**:
    - `filter`: A filter with this name is registered
    - `test`: A test with this name is registered

Negation:
Use `is not` for negated tests:
`{% if tools is not defined %}` or `{% if loop.index is not even %}`

Example:
    ```jinja
    {% for message in messages %}
        {% if message.content is string %}
            {{ message.content }}
        {% elif message.content is iterable %}
            {% for part in message.content %}{{ part.text }}{% endfor %}
        {% endif %}
    {% endfor %}
    ```

Custom Tests:
    >>> env.add_test('prime', lambda n: n > 1 and all(n % i for i in range(2, n)))
    >>> # {% if 17 is prime %}Yes{% endif %}

"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from chatmpl import values
from chatmpl.environment.registry import pass_environment
from chatmpl.template.namespace import Namespace
from chatmpl.template.undefined import Undefined

if TYPE_CHECKING:
    from chatmpl.environment.core import Environment


def _require_integer(value: Any, test: str) -> int:
    if not values.is_number(value) or not isinstance(value, int):
        raise TypeError(f"'{test}' test expects an integer, got {values.kind(value)}")
    return value


def _test_boolean(value: Any) -> bool:
    return isinstance(value, bool)


def _test_callable(value: Any) -> bool:
    """Test if value is callable."""
    return callable(value)


def _test_defined(value: Any) -> bool:
    """Test if value is defined (anything but the Undefined sentinel)."""
    return not isinstance(value, Undefined)


def _test_divisible_by(value: Any, num: Any) -> bool:
    """Test if value is divisible by num."""
    num = _require_integer(num, "divisibleby")
    if num == 0:
        return False
    return _require_integer(value, "divisibleby") % num == 0


def _test_eq(value: Any, other: Any) -> bool:
    """Test equality."""
    return values.equals(value, other)


def _test_even(value: Any) -> bool:
    """Test if value is even."""
    return _require_integer(value, "even") % 2 == 0


def _test_false(value: Any) -> bool:
    return value is False


def _test_float(value: Any) -> bool:
    return isinstance(value, float)


def _test_ge(value: Any, other: Any) -> bool:
    """Test greater than or equal."""
    return values.compare(">=", value, other)


def _test_gt(value: Any, other: Any) -> bool:
    """Test greater than."""
    return values.compare(">", value, other)


def _test_in(value: Any, seq: Any) -> bool:
    """Test if value is in sequence."""
    return values.contains(seq, value)


def _test_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _test_iterable(value: Any) -> bool:
    """Test if value can drive a {% for %} loop."""
    if value is None or isinstance(value, (Undefined, Namespace, bytes, bytearray)):
        return False
    return isinstance(value, (str, list, tuple, Mapping, Iterable))


def _test_le(value: Any, other: Any) -> bool:
    """Test less than or equal."""
    return values.compare("<=", value, other)


def _test_lower(value: Any) -> bool:
    """Test if string is lowercase."""
    return isinstance(value, str) and value.islower()


def _test_lt(value: Any, other: Any) -> bool:
    """Test less than."""
    return values.compare("<", value, other)


def _test_mapping(value: Any) -> bool:
    """Test if value is a mapping."""
    return isinstance(value, Mapping)


def _test_ne(value: Any, other: Any) -> bool:
    """Test inequality."""
    return not values.equals(value, other)


def _test_none(value: Any) -> bool:
    """Test if value is None."""
    return value is None


def _test_number(value: Any) -> bool:
    """Test if value is a number."""
    return values.is_number(value)


def _test_odd(value: Any) -> bool:
    """Test if value is odd."""
    return _require_integer(value, "odd") % 2 == 1


def _test_sameas(value: Any, other: Any) -> bool:
    return value is other


def _test_sequence(value: Any) -> bool:
    """Test if value is a sequence."""
    return isinstance(value, (list, tuple, str))


def _test_string(value: Any) -> bool:
    """Test if value is a string."""
    return isinstance(value, str)


def _test_true(value: Any) -> bool:
    return value is True


def _test_undefined(value: Any) -> bool:
    return isinstance(value, Undefined)


def _test_upper(value: Any) -> bool:
    """Test if string is uppercase."""
    return isinstance(value, str) and value.isupper()


@pass_environment
def _test_filter(env: Environment, value: Any) -> bool:
    """Test if a filter with this name is registered: {% if 'tojson' is filter %}"""
    return isinstance(value, str) and value in env.filters


@pass_environment
def _test_test(env: Environment, value: Any) -> bool:
    """Test if a test with this name is registered."""
    return isinstance(value, str) and value in env.tests


# Default tests
DEFAULT_TESTS: dict[str, Callable[..., bool]] = {
    "boolean": _test_boolean,
    "callable": _test_callable,
    "defined": _test_defined,
    "divisibleby": _test_divisible_by,
    "eq": _test_eq,
    "equalto": _test_eq,
    "==": _test_eq,
    "even": _test_even,
    "false": _test_false,
    "filter": _test_filter,
    "float": _test_float,
    "ge": _test_ge,
    ">=": _test_ge,
    "gt": _test_gt,
    ">": _test_gt,
    "greaterthan": _test_gt,
    "in": _test_in,
    "integer": _test_integer,
    "iterable": _test_iterable,
    "le": _test_le,
    "<=": _test_le,
    "lower": _test_lower,
    "lt": _test_lt,
    "<": _test_lt,
    "lessthan": _test_lt,
    "mapping": _test_mapping,
    "ne": _test_ne,
    "!=": _test_ne,
    "none": _test_none,
    "number": _test_number,
    "odd": _test_odd,
    "sameas": _test_sameas,
    "sequence": _test_sequence,
    "string": _test_string,
    "test": _test_test,
    "true": _test_true,
    "undefined": _test_undefined,
    "upper": _test_upper,
}
