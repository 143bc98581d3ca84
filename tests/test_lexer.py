"""Tests for the template lexer.

Covers text/tag mode switching, literals, operators, whitespace control and
the lexer's totality: malformed input becomes ERROR tokens, never exceptions.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings

from chatmpl import TokenType, tokenize
from chatmpl.lexer import Lexer

from .strategies import arbitrary_template_source, plain_text, template_fragment


def _types(source: str, **kwargs) -> list[str]:
    return [t.type.name for t in tokenize(source, **kwargs)]


def _values(source: str, token_type: TokenType) -> list[str]:
    return [t.value for t in tokenize(source) if t.type == token_type]


class TestTextAndTags:
    """Switching between text mode and tag mode."""

    def test_plain_text(self):
        assert _types("Hello") == ["DATA", "EOF"]

    def test_empty_source(self):
        assert _types("") == ["EOF"]

    def test_variable_tag(self):
        assert _types("Hi {{ name }}!") == [
            "DATA",
            "VARIABLE_BEGIN",
            "NAME",
            "VARIABLE_END",
            "DATA",
            "EOF",
        ]

    def test_block_tag(self):
        assert _types("{% if x %}") == ["BLOCK_BEGIN", "NAME", "NAME", "BLOCK_END", "EOF"]

    def test_comment_tag(self):
        assert _types("a{# note #}b") == ["DATA", "COMMENT_BEGIN", "COMMENT_END", "DATA", "EOF"]

    def test_single_brace_is_text(self):
        assert _values("a { b } c", TokenType.DATA) == ["a { b } c"]

    def test_keywords_are_names(self):
        tokens = tokenize("{% for x in items if x %}")
        names = [t.value for t in tokens if t.type == TokenType.NAME]
        assert names == ["for", "x", "in", "items", "if", "x"]

    def test_line_and_column(self):
        tokens = tokenize("line one\n  {{ value }}")
        name = next(t for t in tokens if t.type == TokenType.NAME)
        assert (name.lineno, name.col_offset) == (2, 5)


class TestLiterals:
    """Strings and numbers inside tags."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("{{ 'single' }}", "single"),
            ('{{ "double" }}', "double"),
            ("{{ 'it\\'s' }}", "it's"),
            ("{{ 'a\\nb' }}", "a\nb"),
            ("{{ 'tab\\there' }}", "tab\there"),
            ("{{ '' }}", ""),
        ],
    )
    def test_string_escapes(self, source, expected):
        assert _values(source, TokenType.STRING) == [expected]

    def test_integer(self):
        assert _values("{{ 42 }}", TokenType.INTEGER) == ["42"]

    def test_float(self):
        assert _values("{{ 3.14 }}", TokenType.FLOAT) == ["3.14"]

    def test_attribute_number_is_not_float(self):
        # items.0.name must lex as NAME DOT INTEGER DOT NAME
        types = _types("{{ items.0.name }}")
        assert types[1:6] == ["NAME", "DOT", "INTEGER", "DOT", "NAME"]


class TestOperators:
    """Single and double character operators."""

    @pytest.mark.parametrize(
        ("op", "token_type"),
        [
            ("**", TokenType.POW),
            ("//", TokenType.FLOORDIV),
            ("==", TokenType.EQ),
            ("!=", TokenType.NE),
            ("<=", TokenType.LE),
            (">=", TokenType.GE),
            ("+", TokenType.ADD),
            ("-", TokenType.SUB),
            ("*", TokenType.MUL),
            ("/", TokenType.DIV),
            ("%", TokenType.MOD),
            ("~", TokenType.TILDE),
            ("|", TokenType.PIPE),
            ("<", TokenType.LT),
            (">", TokenType.GT),
        ],
    )
    def test_operator(self, op, token_type):
        tokens = tokenize(f"{{{{ a {op} b }}}}")
        assert tokens[2].type == token_type
        assert tokens[2].value == op

    def test_dict_braces_inside_tag(self):
        types = _types("{{ {'a': 1} }}")
        assert types[1:6] == ["LBRACE", "STRING", "COLON", "INTEGER", "RBRACE"]
        assert types[-2:] == ["VARIABLE_END", "EOF"]


class TestMalformedInput:
    """The lexer reports problems as ERROR tokens."""

    def test_unterminated_string(self):
        tokens = tokenize("{{ 'oops }}")
        errors = [t for t in tokens if t.type == TokenType.ERROR]
        assert errors and errors[0].value == "unterminated string literal"

    def test_unknown_character(self):
        tokens = tokenize("{{ a ; b }}")
        errors = [t for t in tokens if t.type == TokenType.ERROR]
        assert [e.value for e in errors] == [";"]

    def test_number_scan_without_digit_is_error_token(self):
        lexer = Lexer("x")
        lexer._lex_number()
        assert [(t.type, t.value) for t in lexer._tokens] == [(TokenType.ERROR, "x")]

    def test_unterminated_tag_runs_to_eof(self):
        assert _types("{{ name")[-1] == "EOF"

    def test_unterminated_raw(self):
        tokens = tokenize("{% raw %}never closed")
        assert tokens[0].type == TokenType.ERROR
        assert tokens[0].value == "unterminated raw block"


class TestWhitespaceControl:
    """Trim markers and the trim_blocks / lstrip_blocks options."""

    def test_minus_strips_before(self):
        assert _values("a   {{- x }}", TokenType.DATA) == ["a"]

    def test_minus_strips_after(self):
        assert _values("{{ x -}}   \n b", TokenType.DATA) == ["b"]

    def test_trim_blocks_drops_one_newline(self):
        tokens = tokenize("{% if x %}\n\nA", trim_blocks=True)
        assert [t.value for t in tokens if t.type == TokenType.DATA] == ["\nA"]

    def test_trim_blocks_ignores_variable_tags(self):
        tokens = tokenize("{{ x }}\nA", trim_blocks=True)
        assert [t.value for t in tokens if t.type == TokenType.DATA] == ["\nA"]

    def test_lstrip_blocks(self):
        tokens = tokenize("A\n    {% if x %}", lstrip_blocks=True)
        assert [t.value for t in tokens if t.type == TokenType.DATA] == ["A\n"]

    def test_lstrip_blocks_keeps_inline_text(self):
        tokens = tokenize("A  {% if x %}", lstrip_blocks=True)
        assert [t.value for t in tokens if t.type == TokenType.DATA] == ["A  "]

    def test_plus_disables_lstrip(self):
        tokens = tokenize("A\n    {%+ if x %}", lstrip_blocks=True)
        assert [t.value for t in tokens if t.type == TokenType.DATA] == ["A\n    "]

    def test_raw_block_is_verbatim(self):
        tokens = tokenize("{% raw %}{{ not parsed }}{% endraw %}")
        assert [(t.type, t.value) for t in tokens[:-1]] == [
            (TokenType.DATA, "{{ not parsed }}")
        ]


class TestLexerProperties:
    """Property-based lexer invariants."""

    @given(source=plain_text)
    @settings(max_examples=200)
    def test_plain_text_roundtrip(self, source: str) -> None:
        """Text without delimiters produces a single DATA token with the original content."""
        tokens = tokenize(source)
        assert [t.type for t in tokens] == [TokenType.DATA, TokenType.EOF]
        assert tokens[0].value == source

    @given(source=arbitrary_template_source)
    @settings(max_examples=300)
    def test_never_raises(self, source: str) -> None:
        """Any input tokenizes; the stream always ends with exactly one EOF."""
        tokens = tokenize(source)
        assert tokens[-1].type == TokenType.EOF
        assert sum(1 for t in tokens if t.type == TokenType.EOF) == 1

    @given(source=template_fragment)
    @settings(max_examples=200)
    def test_spans_reproduce_source(self, source: str) -> None:
        """Without whitespace control, token spans are ordered and DATA spans match their text."""
        tokens = tokenize(source)
        previous_end = 0
        for token in tokens:
            assert token.position >= previous_end
            assert token.end >= token.position
            if token.type == TokenType.DATA:
                assert source[token.position : token.end] == token.value
            if token.type in (TokenType.NAME, TokenType.VARIABLE_BEGIN, TokenType.VARIABLE_END):
                assert source[token.position : token.end] == token.value
            previous_end = token.end
        assert tokens[-1].position == len(source)
