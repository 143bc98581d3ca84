"""Tests for runtime error reporting: codes, locations and wrapping."""

from __future__ import annotations

import pytest

from chatmpl import (
    ErrorCode,
    LoopControlError,
    NotIterableError,
    TemplateError,
    TemplateException,
    TemplateRuntimeError,
    UnknownFilterError,
)
from chatmpl.environment.terminal import strip_colors


def _runtime_error(env, source: str, name: str | None = None, **context) -> TemplateRuntimeError:
    with pytest.raises(TemplateRuntimeError) as exc_info:
        env.from_string(source, name=name).render(context)
    return exc_info.value


class TestErrorCodes:
    @pytest.mark.parametrize(
        ("source", "code"),
        [
            ("{{ 1 // 0 }}", ErrorCode.DIVISION_BY_ZERO),
            ("{% for x in 3 %}{% endfor %}", ErrorCode.NOT_ITERABLE),
            ("{{ x | nope }}", ErrorCode.UNKNOWN_FILTER),
            ("{{ x is nope }}", ErrorCode.UNKNOWN_TEST),
            ("{% break %}", ErrorCode.LOOP_CONTROL),
            ("{{ 'a' - 1 }}", ErrorCode.RUNTIME_ERROR),
            ("{% macro f(a) %}{% endmacro %}{{ f() }}", ErrorCode.ARGUMENT_ERROR),
        ],
    )
    def test_code(self, env, source, code):
        assert _runtime_error(env, source).code is code

    def test_code_categories(self):
        assert ErrorCode.UNKNOWN_FILTER.value.startswith("C-RUN")
        assert ErrorCode.UNCLOSED_STRING.value.startswith("C-LEX")

    def test_all_errors_share_a_base(self, env):
        for source in ("{{ 1 // 0 }}", "{{ raise_exception('x') }}", "{% if %}"):
            with pytest.raises(TemplateError):
                env.from_string(source).render()


class TestLocations:
    def test_line_number(self, env):
        source = "line one\nline two\n{{ 1 // 0 }}"
        error = _runtime_error(env, source, name="chat.jinja")
        assert error.lineno == 3
        assert error.template_name == "chat.jinja"
        assert "chat.jinja:3" in strip_colors(str(error))

    def test_snippet_shows_failing_line(self, env):
        source = "{% for m in messages %}\n{{ m.content - 1 }}\n{% endfor %}"
        error = _runtime_error(env, source, messages=[{"content": "hi"}])
        assert error.lineno == 2
        assert "{{ m.content - 1 }}" in strip_colors(str(error))

    def test_innermost_statement_wins(self, env):
        source = "{% if true %}\n\n{% for x in 5 %}{% endfor %}\n{% endif %}"
        error = _runtime_error(env, source)
        assert isinstance(error, NotIterableError)
        assert error.lineno == 3

    def test_error_inside_macro(self, env):
        source = "{% macro f() %}\n{{ missing.x() }}\n{% endmacro %}\n{{ f() }}"
        assert _runtime_error(env, source).lineno == 2

    def test_format_compact(self, env):
        error = _runtime_error(env, "{{ 1 // 0 }}")
        compact = strip_colors(error.format_compact())
        assert compact.startswith("C-RUN-005")
        assert "Division by zero" in compact


class TestWrappedPythonErrors:
    def test_python_exception_is_wrapped(self, env):
        def explode():
            raise KeyError("boom")

        source = "ok\n{{ explode() }}"
        error = _runtime_error(env, source, explode=explode)
        assert "KeyError" in error.message
        assert error.lineno == 2
        assert isinstance(error.__cause__, KeyError)

    def test_type_error_from_callable(self, env):
        def strict(value):
            raise TypeError("bad value")

        error = _runtime_error(env, "{{ strict(1) }}", strict=strict)
        assert "Error calling 'strict'" in error.message

    def test_runaway_recursion(self, env):
        source = "{% macro f(n) %}{{ f(n + 1) }}{% endmacro %}{{ f(0) }}"
        error = _runtime_error(env, source)
        assert "recursion" in error.message


class TestSpecificErrors:
    def test_unknown_filter_suggestion(self, env):
        error = _runtime_error(env, "{{ name | lenght }}", name="x")
        assert isinstance(error, UnknownFilterError)
        assert error.name == "lenght"
        assert strip_colors(error.suggestion) == "Did you mean 'length'?"

    def test_loop_control_message(self, env):
        error = _runtime_error(env, "{% if true %}{% continue %}{% endif %}")
        assert isinstance(error, LoopControlError)
        assert "outside of a loop" in error.message

    def test_not_iterable_kind(self, env):
        error = _runtime_error(env, "{% for x in value %}{% endfor %}", value=None)
        assert isinstance(error, NotIterableError)
        assert error.kind == "none"

    def test_template_exception_keeps_message(self, env):
        with pytest.raises(TemplateException) as exc_info:
            env.from_string("{{ raise_exception('Only user and assistant roles') }}").render()
        assert str(exc_info.value) == "Only user and assistant roles"
        assert exc_info.value.code is ErrorCode.TEMPLATE_EXCEPTION

    def test_render_context_must_be_mapping(self, env):
        with pytest.raises(TypeError, match="must be a mapping"):
            env.from_string("x").render(["not", "a", "mapping"])
