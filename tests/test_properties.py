"""Property-based tests for rendering.

Uses hypothesis to check properties that must hold for all inputs:

- Text without delimiters renders unchanged
- Integer arithmetic agrees with Python's floor semantics
- Loop metadata counts only retained items
- Namespaces carry state out of loops
- Boolean operators short-circuit
"""

from __future__ import annotations

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from chatmpl import Environment

from .strategies import identifiers, int_lists, nonzero_ints, plain_text, small_ints

# Shared environment instance -- never mutated by these tests
_env = Environment()


def _render(template: str, **ctx: object) -> str:
    """Compile and render a one-shot template."""
    return _env.from_string(template).render(**ctx)


class TestTextProperties:
    @given(text=plain_text)
    @settings(max_examples=200)
    def test_text_renders_unchanged(self, text: str) -> None:
        assert _render(text) == text

    @given(text=plain_text)
    @settings(max_examples=100)
    def test_string_variable_prints_verbatim(self, text: str) -> None:
        assert _render("{{ value }}", value=text) == text

    @given(name=identifiers)
    @settings(max_examples=100)
    def test_undefined_variable_renders_empty(self, name: str) -> None:
        assume(name not in _env.globals)
        assert _render(f"[{{{{ {name} }}}}]") == "[]"


class TestArithmeticProperties:
    @given(a=small_ints, b=nonzero_ints)
    @settings(max_examples=200)
    def test_floor_division_and_modulo(self, a: int, b: int) -> None:
        """a == (a // b) * b + a % b, with Python's sign rules."""
        assert _render("{{ a // b }}", a=a, b=b) == str(a // b)
        assert _render("{{ a % b }}", a=a, b=b) == str(a % b)
        assert _render("{{ (a // b) * b + a % b }}", a=a, b=b) == str(a)

    @given(a=small_ints, b=small_ints)
    @settings(max_examples=200)
    def test_chained_comparison_matches_conjunction(self, a: int, b: int) -> None:
        chained = _render("{{ a < 0 < b }}", a=a, b=b)
        expanded = _render("{{ a < 0 and 0 < b }}", a=a, b=b)
        assert chained == expanded

    @given(x=small_ints)
    @settings(max_examples=100)
    def test_unary_minus_binds_looser_than_power(self, x: int) -> None:
        assert _render("{{ -x ** 2 }}", x=x) == str(-(x**2))


class TestLoopProperties:
    @given(items=int_lists)
    @settings(max_examples=100)
    def test_loop_index_counts_items(self, items: list[int]) -> None:
        result = _render("{% for x in items %}{{ loop.index }},{% endfor %}", items=items)
        assert result == "".join(f"{i}," for i in range(1, len(items) + 1))

    @given(items=int_lists)
    @settings(max_examples=100)
    def test_loop_filter_matches_select(self, items: list[int]) -> None:
        looped = _render("{% for x in items if x is even %}{{ x }} {% endfor %}", items=items)
        selected = _render("{% for x in items | select('even') %}{{ x }} {% endfor %}", items=items)
        assert looped == selected

    @given(items=int_lists)
    @settings(max_examples=100)
    def test_loop_length_is_retained_count(self, items: list[int]) -> None:
        result = _render(
            "{% for x in items if x > 0 %}{% if loop.last %}{{ loop.length }}{% endif %}{% endfor %}",
            items=items,
        )
        retained = sum(1 for x in items if x > 0)
        assert result == (str(retained) if retained else "")

    def test_loop_filter_example(self) -> None:
        source = (
            "{% for x in [0,1,2,3,4,5,6,7,8,9] if x is even %}"
            "{{ loop.index }}:{{ x }} {% endfor %}"
        )
        assert _render(source) == "1:0 2:2 3:4 4:6 5:8 "

    @given(items=int_lists)
    @settings(max_examples=100)
    def test_namespace_accumulates_sum(self, items: list[int]) -> None:
        source = (
            "{% set ns = namespace(total=0) %}"
            "{% for x in items %}{% set ns.total = ns.total + x %}{% endfor %}"
            "{{ ns.total }}"
        )
        assert _render(source, items=items) == str(sum(items))

    @given(items=int_lists)
    @settings(max_examples=100)
    def test_plain_set_never_escapes_loop(self, items: list[int]) -> None:
        source = "{% set total = 0 %}{% for x in items %}{% set total = total + x %}{% endfor %}{{ total }}"
        assert _render(source, items=items) == "0"


class TestLoopBoundaries:
    @given(items=st.lists(small_ints, min_size=1, max_size=20))
    @settings(max_examples=100)
    def test_first_and_last_once(self, items: list[int]) -> None:
        source = "{% for x in items %}{{ loop.first }},{{ loop.last }};{% endfor %}"
        pairs = [p.split(",") for p in _render(source, items=items).split(";")[:-1]]
        assert [first for first, _ in pairs].count("true") == 1
        assert [last for _, last in pairs].count("true") == 1
        assert pairs[0][0] == "true" and pairs[-1][1] == "true"


class TestBooleanProperties:
    @given(x=st.booleans())
    @settings(max_examples=10)
    def test_excluded_middle(self, x: bool) -> None:
        assert _render("{{ x or not x }}", x=x) == "true"

    @given(x=small_ints)
    @settings(max_examples=50)
    def test_short_circuit_skips_raise(self, x: int) -> None:
        result = _render("{{ (x == x) or raise_exception('never') }}", x=x)
        assert result == "true"
        result = _render("{{ (x != x) and raise_exception('never') }}", x=x)
        assert result == "false"
