"""Built-in filters for chatmpl templates.

Filters transform values in expressions, ``{{ value | filter(args) }}``, and
in ``{% filter %}`` sections. Each is a plain Python function taking the
value first; functions marked with ``pass_environment`` receive the
Environment before the value so they can call other filters and tests.

Categories:
**Strings**: capitalize, center, escape/e, forceescape, format, indent, lower,
    replace, safe, string, striptags, title, trim, truncate, upper, urlencode,
    wordcount, wordwrap, xmlattr
**Sequences**: batch, first, groupby, join, last, length/count, list,
    reverse, slice, sort, unique
**Higher order**: map, reject, rejectattr, select, selectattr
**Mappings**: dictsort, items
**Numbers**: abs, filesizeformat, float, int, max, min, round, sum
**Other**: attr, default/d, pprint, tojson

Example:
    ```jinja
    {{ tools | map(attribute='name') | join(', ') }}
    {{ messages | selectattr('role', 'equalto', 'user') | list | length }}
    {{ message.content | trim }}
    ```

Custom Filters:
    >>> env.add_filter('shout', lambda s: s.upper() + '!')
"""

from __future__ import annotations

import html
import json
import math
import re
import textwrap
from collections.abc import Callable, Iterable, Mapping
from functools import cmp_to_key
from pprint import pformat
from typing import TYPE_CHECKING, Any, NamedTuple
from urllib.parse import quote, quote_plus

from chatmpl import values
from chatmpl.environment.exceptions import TemplateRuntimeError
from chatmpl.environment.registry import pass_environment
from chatmpl.template.namespace import Namespace
from chatmpl.template.undefined import UNDEFINED, Undefined

if TYPE_CHECKING:
    from chatmpl.environment.core import Environment

_WORD_RE = re.compile(r"\w+")
_TAG_RE = re.compile(r"<!--.*?-->|<[^>]*>", re.DOTALL)
_XML_ATTR_INVALID_RE = re.compile(r"[\s/>=]")
_DECIMAL_PREFIXES = ("kB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")
_BINARY_PREFIXES = ("KiB", "MiB", "GiB", "TiB", "PiB", "EiB", "ZiB", "YiB")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sequence(value: Any, filter_name: str) -> list[Any]:
    """Items of an iterable filter argument; Undefined is empty."""
    if isinstance(value, Undefined):
        return []
    try:
        return values.iterate(value)
    except TemplateRuntimeError as e:
        raise TemplateRuntimeError(
            f"Filter '{filter_name}' expects an iterable, got {values.kind(value)}"
        ) from e


def _attrgetter(attribute: Any) -> Callable[[Any], Any]:
    """Getter for a dotted attribute path: 'author.name' or 'items.0'."""
    if values.is_number(attribute):
        parts: list[Any] = [attribute]
    else:
        parts = [int(p) if p.isdecimal() else p for p in str(attribute).split(".")]

    def getter(item: Any) -> Any:
        for part in parts:
            item = values.get_item(item, part)
        return item

    return getter


def _fold(value: Any, case_sensitive: bool) -> Any:
    if not case_sensitive and isinstance(value, str):
        return value.lower()
    return value


def _compare(left: Any, right: Any) -> int:
    if values.compare("<", left, right):
        return -1
    if values.compare(">", left, right):
        return 1
    return 0


def _sort_key(
    case_sensitive: bool, attribute: Any = None
) -> Callable[[Any], Any]:
    getter = _attrgetter(attribute) if attribute is not None else None

    def compare(left: Any, right: Any) -> int:
        if getter is not None:
            left, right = getter(left), getter(right)
        return _compare(_fold(left, case_sensitive), _fold(right, case_sensitive))

    return cmp_to_key(compare)


def _json_default(value: Any) -> Any:
    if isinstance(value, Undefined):
        return None
    if isinstance(value, Namespace):
        return value.as_dict()
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        return list(value)
    raise TypeError(f"Object of kind {values.kind(value)} is not JSON serializable")


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------


def _filter_capitalize(value: Any) -> str:
    """Uppercase the first character, lowercase the rest."""
    return values.to_string(value).capitalize()


def _filter_center(value: Any, width: int = 80) -> str:
    return values.to_string(value).center(width)


def _filter_escape(value: Any) -> str:
    """HTML-escape &, <, >, ' and "."""
    return html.escape(values.to_string(value))


def _filter_indent(value: Any, width: int | str = 4, first: bool = False, blank: bool = False) -> str:
    """Indent every line after the first.

    ``width`` is a number of spaces or a literal prefix string. ``first``
    indents the first line too; ``blank`` indents empty lines.
    """
    prefix = width if isinstance(width, str) else " " * width
    lines = values.to_string(value).split("\n")
    result = []
    for i, line in enumerate(lines):
        if (i == 0 and not first) or (not line and not blank):
            result.append(line)
        else:
            result.append(prefix + line)
    return "\n".join(result)


def _filter_lower(value: Any) -> str:
    return values.to_string(value).lower()


def _filter_replace(value: Any, old: str, new: str, count: int | None = None) -> str:
    """Replace occurrences of ``old``; all of them unless ``count`` is given."""
    text = values.to_string(value)
    if count is None:
        return text.replace(old, new)
    return text.replace(old, new, count)


def _filter_safe(value: Any) -> Any:
    # Output is never autoescaped, so safe is the identity
    return value


def _filter_string(value: Any) -> str:
    return values.to_string(value)


def _filter_title(value: Any) -> str:
    return values.to_string(value).title()


def _filter_trim(value: Any, chars: str | None = None) -> str:
    """Strip leading and trailing whitespace (or ``chars``)."""
    return values.to_string(value).strip(chars)


def _filter_truncate(
    value: Any, length: int = 255, killwords: bool = False, end: str = "..."
) -> str:
    """Shorten text to ``length`` characters plus ``end``.

    Without ``killwords`` the cut moves back to the last whitespace so no
    word is split.
    """
    text = values.to_string(value)
    if len(text) <= length:
        return text
    head = text[:length]
    if not killwords:
        cut = max(head.rfind(" "), head.rfind("\n"), head.rfind("\t"))
        if cut != -1:
            head = head[:cut]
    return head + end


def _filter_upper(value: Any) -> str:
    return values.to_string(value).upper()


def _filter_wordcount(value: Any) -> int:
    return len(_WORD_RE.findall(values.to_string(value)))


def _printable(value: Any) -> Any:
    # Booleans, none and undefined format the way templates print them
    if isinstance(value, (bool, Undefined)) or value is None:
        return values.to_string(value)
    return value


def _filter_format(value: Any, *args: Any, **kwargs: Any) -> str:
    """Apply printf-style formatting to the value.

    Positional arguments fill ``%s``/``%d`` fields, keyword arguments fill
    named ``%(name)s`` fields; the two cannot be mixed.

    Example:
        {{ '%s said %d words' | format(m.role, count) }}
    """
    if args and kwargs:
        raise TypeError("format takes positional or keyword arguments, not both")
    text = values.to_string(value)
    if kwargs:
        try:
            return text % {key: _printable(item) for key, item in kwargs.items()}
        except KeyError as e:
            raise ValueError(f"missing format argument {e}") from e
    return text % tuple(_printable(item) for item in args)


def _filter_forceescape(value: Any) -> str:
    return html.escape(values.to_string(value))


def _filter_pprint(value: Any) -> str:
    """Pretty-printed Python representation, for debugging templates."""
    return pformat(value)


def _filter_striptags(value: Any) -> str:
    """Remove tags and comments, collapse whitespace, then unescape entities."""
    text = _TAG_RE.sub("", values.to_string(value))
    return html.unescape(" ".join(text.split()))


def _url_quote(value: Any, for_query: bool = False) -> str:
    text = values.to_string(value)
    if for_query:
        return quote_plus(text, safe="")
    return quote(text, safe="/")


def _filter_urlencode(value: Any) -> str:
    """Percent-encode a string, or build a query string from a mapping or pairs.

    Example:
        {{ {'q': 'chat template', 'page': 2} | urlencode }}  -> q=chat+template&page=2
    """
    if isinstance(value, (Mapping, Namespace)):
        pairs: Iterable[Any] = _mapping_items(value, "urlencode")
    elif isinstance(value, (list, tuple)):
        pairs = value
    else:
        return _url_quote(value)
    return "&".join(f"{_url_quote(k, True)}={_url_quote(v, True)}" for k, v in pairs)


def _filter_wordwrap(
    value: Any,
    width: int = 79,
    break_long_words: bool = True,
    wrapstring: str | None = None,
    break_on_hyphens: bool = True,
) -> str:
    """Wrap text to ``width`` columns.

    Existing line breaks are kept and each line is wrapped on its own. Wrapped
    lines are joined with ``wrapstring`` (a newline by default).
    """
    separator = "\n" if wrapstring is None else values.to_string(wrapstring)
    return separator.join(
        separator.join(
            textwrap.wrap(
                line,
                width=width,
                expand_tabs=False,
                replace_whitespace=False,
                break_long_words=break_long_words,
                break_on_hyphens=break_on_hyphens,
            )
        )
        for line in values.to_string(value).splitlines()
    )


def _filter_xmlattr(value: Any, autospace: bool = True) -> str:
    """Render a mapping as escaped XML/HTML attributes.

    None and undefined values are skipped. A leading space is added unless
    ``autospace`` is false.

    Example:
        <div{{ {'class': 'turn', 'data-role': m.role} | xmlattr }}>
    """
    parts = []
    for key, item in _mapping_items(value, "xmlattr"):
        if item is None or isinstance(item, Undefined):
            continue
        name = values.to_string(key)
        if _XML_ATTR_INVALID_RE.search(name):
            raise ValueError(f"Invalid character in attribute name {name!r}")
        parts.append(f'{html.escape(name)}="{html.escape(values.to_string(item))}"')
    text = " ".join(parts)
    if autospace and text:
        return " " + text
    return text


# ---------------------------------------------------------------------------
# Sequences
# ---------------------------------------------------------------------------


def _filter_batch(value: Any, linecount: int, fill_with: Any = None) -> list[list[Any]]:
    """Split items into rows of ``linecount``, padding the last with ``fill_with``."""
    if not values.is_number(linecount) or linecount < 1:
        raise ValueError("batch size must be a positive integer")
    items = _sequence(value, "batch")
    rows = [items[i : i + linecount] for i in range(0, len(items), linecount)]
    if rows and fill_with is not None and len(rows[-1]) < linecount:
        rows[-1] = rows[-1] + [fill_with] * (linecount - len(rows[-1]))
    return rows


def _filter_first(value: Any) -> Any:
    """First item, or Undefined for an empty sequence."""
    items = _sequence(value, "first")
    return items[0] if items else UNDEFINED


def _filter_join(value: Any, d: str = "", attribute: Any = None) -> str:
    """Concatenate the printed form of each item, separated by ``d``."""
    items = _sequence(value, "join")
    if attribute is not None:
        items = [_attrgetter(attribute)(item) for item in items]
    return values.to_string(d).join(values.to_string(item) for item in items)


class _Group(NamedTuple):
    """One ``groupby`` result: unpacks as a pair, or use ``.grouper``/``.list``."""

    grouper: Any
    list: list[Any]


def _filter_groupby(
    value: Any, attribute: Any, default: Any = None, case_sensitive: bool = False
) -> list[_Group]:
    """Group items by an attribute, sorted by that attribute.

    Items whose attribute is missing use ``default`` when one is given.

    Example:
        {% for role, turns in messages | groupby('role') %}
            {{ role }}: {{ turns | length }}
        {% endfor %}
    """
    getter = _attrgetter(attribute)

    def key(item: Any) -> Any:
        found = getter(item)
        if isinstance(found, Undefined) and default is not None:
            return default
        return found

    def compare(left: tuple[Any, Any], right: tuple[Any, Any]) -> int:
        return _compare(_fold(left[0], case_sensitive), _fold(right[0], case_sensitive))

    keyed = sorted(
        ((key(item), item) for item in _sequence(value, "groupby")), key=cmp_to_key(compare)
    )
    groups: list[_Group] = []
    for found, item in keyed:
        if groups and values.equals(
            _fold(groups[-1].grouper, case_sensitive), _fold(found, case_sensitive)
        ):
            groups[-1].list.append(item)
        else:
            groups.append(_Group(found, [item]))
    return groups


def _filter_last(value: Any) -> Any:
    """Last item, or Undefined for an empty sequence."""
    items = _sequence(value, "last")
    return items[-1] if items else UNDEFINED


def _filter_length(value: Any) -> int:
    """Number of items, characters or keys; Undefined has length 0."""
    if isinstance(value, Undefined):
        return 0
    if isinstance(value, Namespace):
        return len(value.items())
    if isinstance(value, (str, list, tuple, Mapping)):
        return len(value)
    raise TypeError(f"object of kind {values.kind(value)} has no length")


def _filter_list(value: Any) -> list[Any]:
    """Convert to an array: strings split into characters, mappings give their keys."""
    return _sequence(value, "list")


def _filter_slice(value: Any, slices: int, fill_with: Any = None) -> list[list[Any]]:
    """Split items into ``slices`` columns of near-equal length.

    The first columns take one extra item each when the items do not divide
    evenly; with ``fill_with`` the shorter columns are padded to match.

    Example:
        {% for column in tools | slice(3) %}
    """
    if isinstance(slices, bool) or not isinstance(slices, int) or slices < 1:
        raise ValueError("slice count must be a positive integer")
    items = _sequence(value, "slice")
    per_slice, extra = divmod(len(items), slices)
    columns = []
    offset = 0
    for index in range(slices):
        start = offset + index * per_slice
        if index < extra:
            offset += 1
        column = items[start : offset + (index + 1) * per_slice]
        if fill_with is not None and extra and index >= extra:
            column.append(fill_with)
        columns.append(column)
    return columns


def _filter_reverse(value: Any) -> Any:
    if isinstance(value, str):
        return value[::-1]
    return list(reversed(_sequence(value, "reverse")))


def _filter_sort(
    value: Any, reverse: bool = False, case_sensitive: bool = False, attribute: Any = None
) -> list[Any]:
    """Sort items; strings compare case-insensitively unless ``case_sensitive``.

    Example:
        {{ tools | sort(attribute='name') | map(attribute='name') | join(', ') }}
    """
    items = _sequence(value, "sort")
    return sorted(items, key=_sort_key(case_sensitive, attribute), reverse=reverse)


def _filter_unique(value: Any, case_sensitive: bool = False, attribute: Any = None) -> list[Any]:
    """Drop repeated items, keeping the first occurrence of each."""
    getter = _attrgetter(attribute) if attribute is not None else None
    seen: list[Any] = []
    result = []
    for item in _sequence(value, "unique"):
        key = _fold(getter(item) if getter else item, case_sensitive)
        if not any(values.equals(key, other) for other in seen):
            seen.append(key)
            result.append(item)
    return result


# ---------------------------------------------------------------------------
# Higher order
# ---------------------------------------------------------------------------


@pass_environment
def _filter_map(
    env: Environment, value: Any, *args: Any, attribute: Any = None, default: Any = None, **kwargs: Any
) -> list[Any]:
    """Apply a filter to each item, or look up an attribute of each.

    Example:
        {{ names | map('upper') | join(', ') }}
        {{ tools | map(attribute='function.name') | list }}
    """
    items = _sequence(value, "map")
    if attribute is not None:
        getter = _attrgetter(attribute)
        result = []
        for item in items:
            found = getter(item)
            if isinstance(found, Undefined) and default is not None:
                found = default
            result.append(found)
        return result
    if not args:
        raise TypeError("map requires a filter name or attribute=")
    name, *filter_args = args
    return [env.call_filter(name, item, *filter_args, **kwargs) for item in items]


def _select_or_reject(
    env: Environment, value: Any, args: tuple[Any, ...], expect: bool, name: str
) -> list[Any]:
    items = _sequence(value, name)
    if not args:
        return [item for item in items if values.is_truthy(item) is expect]
    test_name, *test_args = args
    return [item for item in items if env.call_test(test_name, item, *test_args) is expect]


def _select_or_reject_attr(
    env: Environment, value: Any, attribute: Any, args: tuple[Any, ...], expect: bool, name: str
) -> list[Any]:
    getter = _attrgetter(attribute)
    items = _sequence(value, name)
    if not args:
        return [item for item in items if values.is_truthy(getter(item)) is expect]
    test_name, *test_args = args
    return [
        item for item in items if env.call_test(test_name, getter(item), *test_args) is expect
    ]


@pass_environment
def _filter_select(env: Environment, value: Any, *args: Any) -> list[Any]:
    """Keep items passing a test; without a test, keep truthy items.

    Example:
        {{ numbers | select('odd') | list }}
    """
    return _select_or_reject(env, value, args, True, "select")


@pass_environment
def _filter_reject(env: Environment, value: Any, *args: Any) -> list[Any]:
    """Drop items passing a test; without a test, drop truthy items."""
    return _select_or_reject(env, value, args, False, "reject")


@pass_environment
def _filter_selectattr(env: Environment, value: Any, attribute: Any, *args: Any) -> list[Any]:
    """Keep items whose attribute passes a test.

    Example:
        {% for m in messages | selectattr('role', 'equalto', 'user') %}
    """
    return _select_or_reject_attr(env, value, attribute, args, True, "selectattr")


@pass_environment
def _filter_rejectattr(env: Environment, value: Any, attribute: Any, *args: Any) -> list[Any]:
    """Drop items whose attribute passes a test."""
    return _select_or_reject_attr(env, value, attribute, args, False, "rejectattr")


# ---------------------------------------------------------------------------
# Mappings
# ---------------------------------------------------------------------------


def _mapping_items(value: Any, filter_name: str) -> list[tuple[Any, Any]]:
    if isinstance(value, Undefined):
        return []
    if isinstance(value, Namespace):
        return value.items()
    if isinstance(value, Mapping):
        return list(value.items())
    raise TypeError(f"{filter_name} expects a mapping, got {values.kind(value)}")


def _filter_dictsort(
    value: Any, case_sensitive: bool = False, by: str = "key", reverse: bool = False
) -> list[tuple[Any, Any]]:
    """Sort a mapping into (key, value) pairs.

    Example:
        {% for name, schema in parameters | dictsort %}
    """
    if by == "key":
        position = 0
    elif by == "value":
        position = 1
    else:
        raise ValueError("dictsort 'by' must be 'key' or 'value'")
    pairs = _mapping_items(value, "dictsort")
    return sorted(pairs, key=_sort_key(case_sensitive, position), reverse=reverse)


def _filter_items(value: Any) -> list[tuple[Any, Any]]:
    """(key, value) pairs of a mapping; Undefined gives none."""
    return _mapping_items(value, "items")


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def _filter_abs(value: Any) -> int | float:
    if not values.is_number(value):
        raise TypeError(f"abs expects a number, got {values.kind(value)}")
    return abs(value)


def _filter_float(value: Any, default: float = 0.0) -> float:
    """Convert to a float, or ``default`` when the value does not parse."""
    if isinstance(value, bool):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _filter_int(value: Any, default: int = 0, base: int = 10) -> int:
    """Convert to an integer, or ``default`` when the value does not parse.

    Strings in ``base`` are accepted, as are float strings ('3.7' gives 3).
    """
    if isinstance(value, str):
        try:
            return int(value.strip(), base)
        except ValueError:
            pass
        try:
            return int(float(value))
        except (ValueError, OverflowError):
            return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _filter_max(value: Any, case_sensitive: bool = False, attribute: Any = None) -> Any:
    """Largest item, or Undefined for an empty sequence."""
    items = _sequence(value, "max")
    if not items:
        return UNDEFINED
    return max(items, key=_sort_key(case_sensitive, attribute))


def _filter_min(value: Any, case_sensitive: bool = False, attribute: Any = None) -> Any:
    """Smallest item, or Undefined for an empty sequence."""
    items = _sequence(value, "min")
    if not items:
        return UNDEFINED
    return min(items, key=_sort_key(case_sensitive, attribute))


def _filter_round(value: Any, precision: int = 0, method: str = "common") -> float:
    """Round a number.

    ``common`` rounds half away from zero, ``ceil`` always rounds up and
    ``floor`` always rounds down. The result is always a float.
    """
    if not values.is_number(value):
        raise TypeError(f"round expects a number, got {values.kind(value)}")
    factor = 10.0**precision
    scaled = value * factor
    if method == "common":
        rounded = math.floor(abs(scaled) + 0.5)
        return math.copysign(rounded, scaled) / factor
    if method == "ceil":
        return math.ceil(scaled) / factor
    if method == "floor":
        return math.floor(scaled) / factor
    raise ValueError("round method must be 'common', 'ceil' or 'floor'")


def _filter_filesizeformat(value: Any, binary: bool = False) -> str:
    """Human-readable file size: ``13.0 kB``, or ``12.7 KiB`` with ``binary``."""
    size = float(value)
    base = 1024 if binary else 1000
    prefixes = _BINARY_PREFIXES if binary else _DECIMAL_PREFIXES
    if size == 1:
        return "1 Byte"
    if size < base:
        return f"{int(size)} Bytes"
    for i, prefix in enumerate(prefixes):
        unit = base ** (i + 2)
        if size < unit:
            break
    return f"{base * size / unit:.1f} {prefix}"


def _filter_sum(value: Any, attribute: Any = None, start: int | float = 0) -> Any:
    items = _sequence(value, "sum")
    if attribute is not None:
        getter = _attrgetter(attribute)
        items = [getter(item) for item in items]
    total = start
    for item in items:
        total = values.binary_op("+", total, item)
    return total


# ---------------------------------------------------------------------------
# Other
# ---------------------------------------------------------------------------


def _filter_attr(value: Any, name: str) -> Any:
    """Attribute lookup by a computed name: {{ obj | attr('role') }}"""
    return values.get_attribute(value, name)


def _filter_default(value: Any, default_value: Any = "", boolean: bool = False) -> Any:
    """Replace Undefined (or, with ``boolean``, any falsy value).

    Example:
        {{ add_generation_prompt | default(false) }}
        {{ message.name | default('user', true) }}
    """
    if isinstance(value, Undefined) or (boolean and not values.is_truthy(value)):
        return default_value
    return value


def _filter_tojson(value: Any, indent: int | None = None) -> str:
    """Serialize to JSON with non-ASCII characters kept as-is.

    Example:
        {{ tools | tojson(indent=2) }}
    """
    return json.dumps(value, indent=indent, ensure_ascii=False, default=_json_default)


# Default filters
DEFAULT_FILTERS: dict[str, Callable[..., Any]] = {
    "abs": _filter_abs,
    "attr": _filter_attr,
    "batch": _filter_batch,
    "capitalize": _filter_capitalize,
    "center": _filter_center,
    "count": _filter_length,
    "d": _filter_default,
    "default": _filter_default,
    "dictsort": _filter_dictsort,
    "e": _filter_escape,
    "escape": _filter_escape,
    "filesizeformat": _filter_filesizeformat,
    "first": _filter_first,
    "float": _filter_float,
    "forceescape": _filter_forceescape,
    "format": _filter_format,
    "groupby": _filter_groupby,
    "indent": _filter_indent,
    "int": _filter_int,
    "items": _filter_items,
    "join": _filter_join,
    "last": _filter_last,
    "length": _filter_length,
    "list": _filter_list,
    "lower": _filter_lower,
    "map": _filter_map,
    "max": _filter_max,
    "min": _filter_min,
    "pprint": _filter_pprint,
    "reject": _filter_reject,
    "rejectattr": _filter_rejectattr,
    "replace": _filter_replace,
    "reverse": _filter_reverse,
    "round": _filter_round,
    "safe": _filter_safe,
    "select": _filter_select,
    "selectattr": _filter_selectattr,
    "slice": _filter_slice,
    "sort": _filter_sort,
    "string": _filter_string,
    "striptags": _filter_striptags,
    "sum": _filter_sum,
    "title": _filter_title,
    "tojson": _filter_tojson,
    "trim": _filter_trim,
    "truncate": _filter_truncate,
    "unique": _filter_unique,
    "upper": _filter_upper,
    "urlencode": _filter_urlencode,
    "wordcount": _filter_wordcount,
    "wordwrap": _filter_wordwrap,
    "xmlattr": _filter_xmlattr,
}
