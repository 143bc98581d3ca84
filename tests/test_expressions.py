"""Tests for expression evaluation: literals, operators, member access and calls."""

from __future__ import annotations

import pytest

from chatmpl import DivisionByZeroError, TemplateRuntimeError


class TestLiteralsAndPrinting:
    """How values print through {{ }}."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("{{ 42 }}", "42"),
            ("{{ 1.5 }}", "1.5"),
            ("{{ 2.0 }}", "2.0"),
            ("{{ 'text' }}", "text"),
            ("{{ true }}", "true"),
            ("{{ False }}", "false"),
            ("{{ none }}", ""),
            ("{{ [1, 'a', none] }}", "[1, 'a', none]"),
            ("{{ {'k': true} }}", "{'k': true}"),
            ("{{ (1,) }}", "(1,)"),
            ("{{ 'a' 'b' }}", "ab"),
        ],
    )
    def test_printed_form(self, render, source, expected):
        assert render(source) == expected

    def test_undefined_renders_empty(self, render):
        assert render("[{{ missing }}]") == "[]"

    def test_undefined_chain_renders_empty(self, render):
        assert render("[{{ missing.attr.deeper }}]") == "[]"

    def test_string_escapes(self, render):
        assert render(r"{{ 'a\nb' }}") == "a\nb"


class TestArithmetic:
    """Binary and unary operators."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("{{ 1 + 2 * 3 }}", "7"),
            ("{{ (1 + 2) * 3 }}", "9"),
            ("{{ 7 / 2 }}", "3.5"),
            ("{{ 4 / 2 }}", "2.0"),
            ("{{ 7 // 2 }}", "3"),
            ("{{ -7 // 2 }}", "-4"),
            ("{{ 7 % 3 }}", "1"),
            ("{{ -7 % 3 }}", "2"),
            ("{{ 2 ** 10 }}", "1024"),
            ("{{ 2 ** -1 }}", "0.5"),
            ("{{ -2 ** 2 }}", "-4"),
            ("{{ 3 ** 3 ** 3 }}", "19683"),
            ("{{ 1 + 0.5 }}", "1.5"),
            ("{{ 10 - 4 - 3 }}", "3"),
        ],
    )
    def test_numbers(self, render, source, expected):
        assert render(source) == expected

    def test_unary_minus_then_filter(self, render):
        assert render("{{ -1 | abs }}") == "1"

    def test_string_plus(self, render):
        assert render("{{ 'a' + 'b' }}") == "ab"

    def test_string_plus_number_prints_number(self, render):
        assert render("{{ 'n=' + 3 }}") == "n=3"

    def test_list_plus(self, render):
        assert render("{{ [1] + [2, 3] }}") == "[1, 2, 3]"

    def test_string_repeat(self, render):
        assert render("{{ '-' * 3 }}") == "---"

    def test_string_formatting(self, render):
        assert render("{{ '%s-%d' % ('a', 2) }}") == "a-2"

    def test_concat_operator(self, render):
        assert render("{{ 'n' ~ 1 ~ none ~ true }}") == "n1true"

    @pytest.mark.parametrize("op", ["/", "//", "%"])
    def test_division_by_zero(self, render, op):
        with pytest.raises(DivisionByZeroError):
            render(f"{{{{ 1 {op} 0 }}}}")

    def test_unsupported_operands(self, render):
        with pytest.raises(TemplateRuntimeError, match="Unsupported operand types for -"):
            render("{{ 'a' - 1 }}")

    def test_unary_minus_on_string(self, render):
        with pytest.raises(TemplateRuntimeError, match="unary -"):
            render("{{ -'a' }}")


class TestComparisons:
    """Equality, ordering and membership."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("{{ 1 == 1.0 }}", "true"),
            ("{{ 1 == true }}", "false"),
            ("{{ '1' == 1 }}", "false"),
            ("{{ [1, 2] == [1, 2] }}", "true"),
            ("{{ {'a': 1} == {'a': 1} }}", "true"),
            ("{{ none == none }}", "true"),
            ("{{ 'a' < 'b' }}", "true"),
            ("{{ 1 < 2 < 3 }}", "true"),
            ("{{ 1 < 3 < 2 }}", "false"),
            ("{{ 'ell' in 'hello' }}", "true"),
            ("{{ 2 in [1, 2] }}", "true"),
            ("{{ 'k' in {'k': 0} }}", "true"),
            ("{{ 3 not in [1, 2] }}", "true"),
            ("{{ 'x' in missing }}", "false"),
        ],
    )
    def test_results(self, render, source, expected):
        assert render(source) == expected

    def test_ordering_mixed_kinds_fails(self, render):
        with pytest.raises(TemplateRuntimeError, match="Cannot compare"):
            render("{{ 1 < 'a' }}")

    def test_chain_short_circuits(self, render):
        # The second comparison would fail if it were evaluated
        assert render("{{ 2 < 1 < 'a' }}") == "false"


class TestBooleanLogic:
    """and/or return the deciding operand; not negates truthiness."""

    def test_or_returns_operand(self, render):
        assert render("{{ '' or 'fallback' }}") == "fallback"

    def test_and_returns_operand(self, render):
        assert render("{{ 'x' and 'y' }}") == "y"

    def test_and_short_circuits(self, render):
        assert render("{{ false and raise_exception('boom') }}") == "false"

    def test_or_short_circuits(self, render):
        assert render("{{ true or raise_exception('boom') }}") == "true"

    @pytest.mark.parametrize(
        "value", ["0", "0.0", "''", "[]", "{}", "none", "false", "missing"]
    )
    def test_falsy_values(self, render, value):
        assert render(f"{{{{ not {value} }}}}") == "true"

    def test_conditional_expression(self, render):
        assert render("{{ 'yes' if x else 'no' }}", x=1) == "yes"
        assert render("{{ 'yes' if x else 'no' }}", x=0) == "no"

    def test_conditional_without_else_is_undefined(self, render):
        assert render("[{{ 'yes' if false }}]") == "[]"
        assert render("{{ ('yes' if false) is defined }}") == "false"


class TestMemberAccess:
    """Attribute, subscript and slice access."""

    def test_mapping_attribute(self, render):
        assert render("{{ m.role }}", m={"role": "user"}) == "user"

    def test_mapping_subscript(self, render):
        assert render("{{ m['role'] }}", m={"role": "user"}) == "user"

    def test_missing_key_is_undefined(self, render):
        assert render("{{ m.nope is defined }}", m={}) == "false"

    def test_negative_index(self, render):
        assert render("{{ xs[-1] }}", xs=[1, 2, 3]) == "3"

    def test_index_out_of_range_is_undefined(self, render):
        assert render("{{ xs[10] is undefined }}", xs=[1]) == "true"

    def test_dotted_integer_index(self, render):
        assert render("{{ xs.0 }}", xs=["first"]) == "first"

    def test_slice(self, render):
        assert render("{{ xs[1:] }}", xs=[1, 2, 3]) == "[2, 3]"

    def test_reverse_slice_string(self, render):
        assert render("{{ 'abc'[::-1] }}") == "cba"

    def test_zero_slice_step(self, render):
        with pytest.raises(TemplateRuntimeError, match="step cannot be zero"):
            render("{{ 'abc'[::0] }}")

    def test_mapping_methods_take_priority(self, render):
        assert render("{{ d.items() }}", d={"items": 1}) == "[('items', 1)]"

    def test_mapping_get(self, render):
        assert render("{{ d.get('a', 'z') }}{{ d.get('b', 'z') }}", d={"a": "x"}) == "xz"

    def test_object_attribute(self, render):
        class Message:
            role = "tool"

        assert render("{{ m.role }}", m=Message()) == "tool"

    def test_private_attribute_hidden(self, render):
        class Message:
            _secret = "hidden"

        assert render("{{ m._secret is defined }}", m=Message()) == "false"


class TestCalls:
    """Function and method calls."""

    def test_string_methods(self, render):
        assert render("{{ ' Hi '.strip().upper() }}") == "HI"

    def test_string_split(self, render):
        assert render("{{ 'a,b'.split(',') }}") == "['a', 'b']"

    def test_startswith(self, render):
        assert render("{{ m.startswith('<') }}", m="<tool>") == "true"

    def test_python_callable(self, render):
        assert render("{{ f(2, y=3) }}", f=lambda x, y: x * y) == "6"

    def test_star_arguments(self, render):
        assert render("{{ f(*xs) }}", f=lambda a, b: a - b, xs=[5, 2]) == "3"

    def test_star_argument_must_be_sequence(self, render):
        with pytest.raises(TemplateRuntimeError):
            render("{{ f(*3) }}", f=lambda *a: a)

    def test_calling_non_callable(self, render):
        with pytest.raises(TemplateRuntimeError, match="is not callable"):
            render("{{ name() }}", name="text")

    def test_calling_undefined(self, render):
        with pytest.raises(TemplateRuntimeError, match="'missing' is not callable"):
            render("{{ missing() }}")

    def test_wrong_argument_count(self, render):
        with pytest.raises(TemplateRuntimeError, match="invalid arguments"):
            render("{{ f(1, 2) }}", f=lambda x: x)


class TestCoercionEdges:
    def test_booleans_are_not_numbers_in_membership(self, render):
        assert render("{{ 1 in [true] }}") == "false"

    def test_number_plus_string(self, render):
        assert render("[{{ 1 + ' ' }}]") == "[1 ]"

    def test_zero_to_negative_power(self, render):
        with pytest.raises(DivisionByZeroError):
            render("{{ 0 ** -1 }}")

    def test_negative_base_fractional_power_is_nan(self, render):
        assert render("{{ (-8) ** 0.5 }}") == "nan"
        assert render("{{ ((-8) ** 0.5) is float }}") == "true"

    def test_negated_power_stays_real(self, render):
        assert render("{{ -4 ** 0.5 }}") == "-2.0"

    def test_nested_dict_literal(self, render):
        assert render("{{ {'a': {'b': 1}}['a']['b'] }}") == "1"
