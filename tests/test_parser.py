"""Tests for the parser: AST shapes, operator precedence and syntax errors."""

from __future__ import annotations

import pytest

from chatmpl import ErrorCode, ParseError, TemplateSyntaxError, parse
from chatmpl import nodes


def _expr(source: str) -> nodes.Expr:
    """Parse ``{{ source }}`` and return the expression node."""
    (output,) = parse(f"{{{{ {source} }}}}").body
    assert isinstance(output, nodes.Output)
    return output.expr


def _error(source: str) -> ParseError:
    with pytest.raises(ParseError) as exc_info:
        parse(source)
    return exc_info.value


class TestTemplateStructure:
    """Top-level body: text, output, comments."""

    def test_text_only(self):
        ast = parse("Hello")
        assert ast.body == (nodes.Data(lineno=1, col_offset=0, value="Hello"),)

    def test_empty_template(self):
        assert parse("").body == ()

    def test_comments_produce_no_nodes(self):
        ast = parse("a{# hidden #}b")
        assert [n.value for n in ast.body] == ["a", "b"]

    def test_output_node(self):
        ast = parse("{{ name }}")
        assert isinstance(ast.body[0], nodes.Output)
        assert ast.body[0].expr.name == "name"

    def test_nodes_are_frozen(self):
        ast = parse("{{ x }}")
        with pytest.raises(AttributeError):
            ast.body[0].expr = None  # type: ignore[misc]

    def test_generation_block_is_transparent(self):
        ast = parse("a{% generation %}b{% endgeneration %}c")
        assert [n.value for n in ast.body] == ["a", "b", "c"]


class TestPrecedence:
    """Operator precedence and associativity."""

    def test_multiplication_binds_tighter(self):
        expr = _expr("1 + 2 * 3")
        assert isinstance(expr, nodes.BinOp) and expr.op == "+"
        assert isinstance(expr.right, nodes.BinOp) and expr.right.op == "*"

    def test_left_associative_subtraction(self):
        expr = _expr("10 - 4 - 3")
        assert expr.op == "-"
        assert isinstance(expr.left, nodes.BinOp)
        assert expr.right.value == 3

    def test_unary_minus_wraps_power(self):
        expr = _expr("-2 ** 2")
        assert isinstance(expr, nodes.UnaryOp) and expr.op == "-"
        assert isinstance(expr.operand, nodes.BinOp) and expr.operand.op == "**"

    def test_power_is_left_associative(self):
        expr = _expr("2 ** 3 ** 2")
        assert isinstance(expr.left, nodes.BinOp)
        assert expr.right.value == 2

    def test_filter_binds_tighter_than_arithmetic(self):
        expr = _expr("a + b | upper")
        assert isinstance(expr, nodes.BinOp)
        assert isinstance(expr.right, nodes.Filter)

    def test_filter_applies_after_unary_sign(self):
        expr = _expr("-1 | abs")
        assert isinstance(expr, nodes.Filter)
        assert isinstance(expr.value, nodes.UnaryOp)

    def test_concat_below_additive(self):
        expr = _expr("a ~ b + c")
        assert isinstance(expr, nodes.Concat)
        assert isinstance(expr.nodes[1], nodes.BinOp)

    def test_not_below_comparison(self):
        expr = _expr("not a == b")
        assert isinstance(expr, nodes.UnaryOp) and expr.op == "not"
        assert isinstance(expr.operand, nodes.Compare)

    def test_and_binds_tighter_than_or(self):
        expr = _expr("a or b and c")
        assert expr.op == "or"
        assert isinstance(expr.values[1], nodes.BoolOp) and expr.values[1].op == "and"

    def test_chained_comparison_is_one_node(self):
        expr = _expr("1 < x <= 3")
        assert isinstance(expr, nodes.Compare)
        assert expr.ops == ("<", "<=")

    def test_not_in(self):
        expr = _expr("a not in b")
        assert expr.ops == ("not in",)

    def test_conditional_expression(self):
        expr = _expr("a if cond else b")
        assert isinstance(expr, nodes.CondExpr)
        assert expr.if_false.name == "b"

    def test_conditional_without_else(self):
        expr = _expr("a if cond")
        assert expr.if_false is None


class TestTests:
    """``is`` test syntax."""

    def test_simple_test(self):
        expr = _expr("x is defined")
        assert isinstance(expr, nodes.Test)
        assert (expr.name, expr.negated) == ("defined", False)

    def test_negated_test(self):
        assert _expr("x is not none").negated is True

    def test_capitalized_constant_test_name(self):
        assert _expr("x is None").name == "none"

    def test_argument_without_parentheses(self):
        expr = _expr("n is divisibleby 3")
        assert [a.value for a in expr.args] == [3]

    def test_argument_in_parentheses(self):
        expr = _expr("n is divisibleby(3)")
        assert [a.value for a in expr.args] == [3]

    def test_test_then_boolean(self):
        expr = _expr("x is defined and y")
        assert isinstance(expr, nodes.BoolOp)
        assert isinstance(expr.values[0], nodes.Test)


class TestPrimaries:
    """Literals, collections and postfix access."""

    @pytest.mark.parametrize(
        ("source", "value"),
        [
            ("42", 42),
            ("3.5", 3.5),
            ("'text'", "text"),
            ("true", True),
            ("False", False),
            ("none", None),
            ("None", None),
        ],
    )
    def test_constants(self, source, value):
        assert _expr(source).value == value

    def test_adjacent_strings_concatenate(self):
        expr = _expr("'a' 'b'")
        assert isinstance(expr, nodes.Concat)

    def test_list_with_trailing_comma(self):
        expr = _expr("[1, 2,]")
        assert [i.value for i in expr.items] == [1, 2]

    def test_dict(self):
        expr = _expr("{'a': 1, 'b': 2}")
        assert [k.value for k in expr.keys] == ["a", "b"]

    def test_tuple(self):
        expr = _expr("(1, 2)")
        assert isinstance(expr, nodes.Tuple) and len(expr.items) == 2

    def test_single_item_tuple(self):
        expr = _expr("(1,)")
        assert isinstance(expr, nodes.Tuple) and len(expr.items) == 1

    def test_empty_tuple(self):
        assert _expr("()").items == ()

    def test_parenthesized_expression_is_not_tuple(self):
        assert isinstance(_expr("(1)"), nodes.Const)

    def test_numeric_attribute_is_subscript(self):
        expr = _expr("items.0")
        assert isinstance(expr, nodes.Getitem) and expr.key.value == 0

    def test_slice(self):
        expr = _expr("x[1:-1]")
        assert isinstance(expr, nodes.Slice)
        assert expr.step is None

    def test_slice_with_step_only(self):
        expr = _expr("x[::-1]")
        assert expr.start is None and expr.stop is None
        assert isinstance(expr.step, nodes.UnaryOp)

    def test_call_arguments(self):
        expr = _expr("f(1, *rest, key='v')")
        assert isinstance(expr, nodes.FuncCall)
        assert len(expr.args) == 1
        assert len(expr.dyn_args) == 1
        assert list(expr.kwargs) == ["key"]

    def test_method_call_chain(self):
        expr = _expr("text.strip().split(',')")
        assert isinstance(expr, nodes.FuncCall)
        assert expr.func.attr == "split"


class TestStatements:
    """Block statements."""

    def test_if_elif_else(self):
        (node,) = parse("{% if a %}1{% elif b %}2{% else %}3{% endif %}").body
        assert isinstance(node, nodes.If)
        assert len(node.elif_) == 1
        assert node.else_[0].value == "3"

    def test_for_with_filter_and_else(self):
        (node,) = parse("{% for x in xs if x %}{{ x }}{% else %}none{% endfor %}").body
        assert isinstance(node, nodes.For)
        assert node.test is not None
        assert node.else_[0].value == "none"

    def test_for_tuple_target(self):
        (node,) = parse("{% for k, v in d.items() %}{% endfor %}").body
        assert isinstance(node.target, nodes.Tuple)
        assert [t.name for t in node.target.items] == ["k", "v"]

    def test_break_and_continue(self):
        (node,) = parse("{% for x in xs %}{% break %}{% continue %}{% endfor %}").body
        assert [type(n).__name__ for n in node.body] == ["Break", "Continue"]

    def test_set(self):
        (node,) = parse("{% set x = 1 %}").body
        assert isinstance(node, nodes.Set)

    def test_set_namespace_attribute(self):
        (node,) = parse("{% set ns.count = 1 %}").body
        assert isinstance(node.target, nodes.Getattr)

    def test_set_tuple(self):
        (node,) = parse("{% set a, b = 1, 2 %}").body
        assert isinstance(node.target, nodes.Tuple)
        assert isinstance(node.value, nodes.Tuple)

    def test_block_set(self):
        (node,) = parse("{% set x | trim %} body {% endset %}").body
        assert isinstance(node, nodes.Capture)
        assert node.steps[0][0] == "trim"

    def test_macro(self):
        (node,) = parse("{% macro f(a, b=2) %}{{ a }}{% endmacro %}").body
        assert isinstance(node, nodes.Macro)
        assert node.args == ("a", "b")
        assert node.params[1].default.value == 2

    def test_call_block(self):
        (node,) = parse("{% call(item) f(1) %}{{ item }}{% endcall %}").body
        assert isinstance(node, nodes.CallBlock)
        assert [p.name for p in node.params] == ["item"]

    def test_filter_block(self):
        (node,) = parse("{% filter upper | replace('A', 'B') %}a{% endfilter %}").body
        assert isinstance(node, nodes.FilterBlock)
        assert [step[0] for step in node.steps] == ["upper", "replace"]

    def test_line_numbers(self):
        ast = parse("line 1\n{% if x %}\n{{ y }}\n{% endif %}")
        if_node = ast.body[1]
        assert if_node.lineno == 2
        assert if_node.body[1].lineno == 3


class TestSyntaxErrors:
    """Malformed templates raise ParseError with a code and location."""

    def test_parse_error_is_syntax_error(self):
        assert isinstance(_error("{% if %}"), TemplateSyntaxError)

    def test_unclosed_block(self):
        error = _error("{% if x %}never closed")
        assert error.code == ErrorCode.UNCLOSED_BLOCK
        assert "'if' block opened at line 1" in error.message

    def test_mismatched_end_tag(self):
        error = _error("{% if x %}{% endfor %}")
        assert error.code == ErrorCode.UNMATCHED_END_TAG

    def test_stray_end_tag(self):
        error = _error("text {% endif %}")
        assert error.code == ErrorCode.UNMATCHED_END_TAG

    def test_stray_else(self):
        assert "outside of an 'if' or 'for' block" in _error("{% else %}").message

    def test_unknown_statement_suggests(self):
        error = _error("{% fro x in y %}{% endfor %}")
        assert "Unknown statement 'fro'" in error.message
        assert error.suggestion == "Did you mean 'for'?"

    def test_unterminated_string(self):
        assert _error("{{ 'abc }}").code == ErrorCode.UNCLOSED_STRING

    def test_unknown_character(self):
        assert _error("{{ a ; b }}").code == ErrorCode.UNKNOWN_CHARACTER

    def test_unclosed_output_tag(self):
        assert _error("{{ name").code == ErrorCode.UNCLOSED_TAG

    def test_unclosed_comment(self):
        assert _error("{# never closed").code == ErrorCode.UNCLOSED_COMMENT

    def test_empty_output(self):
        assert _error("{{ }}").code == ErrorCode.INVALID_EXPRESSION

    def test_recursive_loop_rejected(self):
        assert "Recursive loops" in _error("{% for x in y recursive %}{% endfor %}").message

    def test_keyword_unpacking_rejected(self):
        assert _error("{{ f(**kw) }}").code == ErrorCode.INVALID_EXPRESSION

    def test_positional_after_keyword(self):
        assert "Positional argument follows keyword" in _error("{{ f(a=1, 2) }}").message

    def test_duplicate_macro_parameter(self):
        assert "Duplicate parameter 'a'" in _error("{% macro f(a, a) %}{% endmacro %}").message

    def test_call_requires_call_expression(self):
        assert _error("{% call f %}{% endcall %}").code == ErrorCode.INVALID_EXPRESSION

    def test_reserved_word_target(self):
        _error("{% set true = 1 %}")

    def test_error_location(self):
        error = _error("line one\n{{ a ; }}")
        assert error.lineno == 2
        assert error.col_offset == 5

    def test_error_message_has_snippet(self):
        source = "{% for m in messages %}\n{{ m.content | }}\n{% endfor %}"
        with pytest.raises(ParseError) as exc_info:
            parse(source, name="chat.jinja")
        text = str(exc_info.value)
        assert "chat.jinja:2" in text
        assert "{{ m.content | }}" in text
