"""Exceptions for chatmpl templates.

Exception Hierarchy:
TemplateError (base)
├── TemplateSyntaxError       # Parse-time syntax error
│   └── ParseError            # Raised by the parser, carries the token
├── TemplateRuntimeError      # Render-time error with context
│   ├── NotIterableError      # {% for %} over a non-iterable value
│   ├── DivisionByZeroError   # /, //, % or ** by zero
│   ├── ArgumentError         # Wrong arguments or unpack arity
│   ├── UnknownFilterError    # Filter name not registered
│   ├── UnknownTestError      # Test name not registered
│   └── LoopControlError      # break/continue outside of a loop
└── TemplateException         # Raised on purpose by raise_exception()

Undefined variables and attributes are not errors: they evaluate to the
``Undefined`` value. Only structural misuse raises.

Example:
    ```
    C-RUN-002: Unknown filter 'uper' in chat.jinja:3
       |
      2 | {% for m in messages %}
    > 3 | {{ m.content | uper }}
       |
      Hint: Did you mean 'upper'?
    ```

"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from difflib import get_close_matches
from enum import Enum
from typing import Any

from chatmpl.environment import terminal

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------


class ErrorCode(Enum):
    """Searchable error codes.

    Format: C-{CATEGORY}-{NUMBER}
    Categories: LEX (lexer), PAR (parser), RUN (runtime), TPL (template)
    """

    # Lexer errors surfaced by the parser (C-LEX-xxx)
    UNCLOSED_STRING = "C-LEX-001"
    UNKNOWN_CHARACTER = "C-LEX-002"
    UNCLOSED_COMMENT = "C-LEX-003"
    UNCLOSED_RAW = "C-LEX-004"

    # Parser errors (C-PAR-xxx)
    UNEXPECTED_TOKEN = "C-PAR-001"
    UNCLOSED_BLOCK = "C-PAR-002"
    UNMATCHED_END_TAG = "C-PAR-003"
    UNCLOSED_TAG = "C-PAR-004"
    INVALID_EXPRESSION = "C-PAR-005"

    # Runtime errors (C-RUN-xxx)
    RUNTIME_ERROR = "C-RUN-001"
    UNKNOWN_FILTER = "C-RUN-002"
    UNKNOWN_TEST = "C-RUN-003"
    NOT_ITERABLE = "C-RUN-004"
    DIVISION_BY_ZERO = "C-RUN-005"
    ARGUMENT_ERROR = "C-RUN-006"
    LOOP_CONTROL = "C-RUN-007"

    # Template errors (C-TPL-xxx)
    SYNTAX_ERROR = "C-TPL-001"
    TEMPLATE_EXCEPTION = "C-TPL-002"

    @property
    def category(self) -> str:
        """Error category (e.g., 'runtime', 'lexer', 'parser', 'template')."""
        prefix = self.value.split("-")[1]
        return {
            "LEX": "lexer",
            "PAR": "parser",
            "RUN": "runtime",
            "TPL": "template",
        }.get(prefix, "unknown")


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source context around an error line.

    Attributes:
        lines: Tuple of (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
        column: Optional column offset for caret pointer.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        """Format the snippet with line numbers, marking the error line."""
        parts: list[str] = [terminal.dim_text("   |")]
        for lineno, content in self.lines:
            is_error = lineno == self.error_line
            parts.append(terminal.format_source_line(lineno, content, is_error=is_error))
            if is_error and self.column is not None:
                caret = " " * self.column + "^"
                parts.append(f"{terminal.dim_text('     |')} {terminal.error_line(caret)}")
        parts.append(terminal.dim_text("   |"))
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
    column: int | None = None,
) -> SourceSnippet:
    """Build a SourceSnippet from template source.

    Args:
        source: Full template source text.
        error_line: 1-based line number of the error.
        context_lines: Number of lines to show before/after the error line.
        column: Optional column offset for caret pointer.
    """
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line, column=column)


def _did_you_mean(name: str, candidates: Iterable[str]) -> str | None:
    matches = get_close_matches(name, list(candidates), n=1, cutoff=0.6)
    return matches[0] if matches else None


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class TemplateError(Exception):
    """Base exception for all template errors.

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format error as a short, human-readable summary without traceback noise."""
        header = str(self)
        if self.code and self.code.value not in header:
            header = f"{self.code.value}: {header}"
        return header


class TemplateSyntaxError(TemplateError):
    """Parse-time syntax error in template source.

    When ``source`` and ``lineno`` are provided, the message includes the
    offending line, and a caret when ``col_offset`` is known.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        source: str | None = None,
        col_offset: int | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.name = name
        self.source = source
        self.col_offset = col_offset
        if code is not None:
            self.code = code
        super().__init__(self._format_message())

    def _location(self) -> str:
        location = self.name or "<template>"
        if self.lineno:
            location += f":{self.lineno}"
            if self.col_offset is not None:
                location += f":{self.col_offset}"
        return location

    def _source_lines(self) -> list[str]:
        if not (self.source and self.lineno):
            return []
        lines = self.source.splitlines()
        if not 0 < self.lineno <= len(lines):
            return []
        snippet = ["   |", f"{self.lineno:>3} | {lines[self.lineno - 1]}"]
        if self.col_offset is not None:
            snippet.append(f"   | {' ' * self.col_offset}^")
        return snippet

    def _format_message(self) -> str:
        parts = [f"Syntax Error: {self.message}", f"  --> {self._location()}"]
        parts.extend(self._source_lines())
        return "\n".join(parts)

    def format_compact(self) -> str:
        """Format syntax error as a structured terminal diagnostic."""
        parts = [
            terminal.format_error_header(self.code.value if self.code else None, self.message),
            f"  --> {terminal.location(self._location())}",
        ]
        snippet = self._source_lines()
        if snippet:
            parts.extend(snippet)
            parts.append("   |")
        return "\n".join(parts)


class TemplateRuntimeError(TemplateError):
    """Render-time error with debugging context.

    Output Format:
            ```
            Runtime Error: Unsupported operand types for -: 'string' and 'integer'
              Location: chat.jinja:4
               |
            >  4 | {{ message.content - 1 }}
               |
              Expression: message.content - 1
            ```

    Attributes:
        message: Error description
        expression: Template expression that failed
        values: Dict of names → values for context
        template_name: Name of the template
        lineno: Line number in template source
        suggestion: Actionable fix suggestion
        source_snippet: Surrounding template lines
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        values: dict[str, Any] | None = None,
        template_name: str | None = None,
        lineno: int | None = None,
        suggestion: str | None = None,
        source_snippet: SourceSnippet | None = None,
    ):
        self.message = message
        self.expression = expression
        self.values = values or {}
        self.template_name = template_name
        self.lineno = lineno
        self.suggestion = suggestion
        self.source_snippet = source_snippet
        super().__init__(self._format_message())

    def attach_location(
        self,
        template_name: str | None,
        lineno: int | None,
        source: str | None = None,
    ) -> None:
        """Fill in where the error happened, unless it is already known.

        Called by the interpreter as the error unwinds through the statement
        that was executing. The first (innermost) location wins.
        """
        if self.lineno is not None:
            return
        self.template_name = self.template_name or template_name
        self.lineno = lineno
        if source and lineno and self.source_snippet is None:
            self.source_snippet = build_source_snippet(source, lineno)
        self.args = (self._format_message(),)

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self.message}"]

        if self.template_name or self.lineno:
            loc = self.template_name or "<template>"
            if self.lineno:
                loc += f":{self.lineno}"
            parts.append(f"  Location: {terminal.location(loc)}")

        if self.source_snippet:
            parts.append(self.source_snippet.format())

        if self.expression:
            parts.append(f"  Expression: {self.expression}")

        if self.values:
            parts.append("  Values:")
            for name, value in self.values.items():
                type_name = type(value).__name__
                value_repr = repr(value)
                if len(value_repr) > 80:
                    value_repr = value_repr[:77] + "..."
                parts.append(f"    {name} = {value_repr} ({type_name})")

        if self.suggestion:
            parts.append(f"\n  {terminal.hint('Suggestion:')} {self.suggestion}")

        return "\n".join(parts)

    def format_compact(self) -> str:
        """Format runtime error as a structured terminal diagnostic."""
        loc = self.template_name or "<template>"
        if self.lineno:
            loc += f":{self.lineno}"
        parts = [
            terminal.format_error_header(self.code.value if self.code else None, self.message),
            f"  Location: {terminal.location(loc)}",
        ]
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        if self.expression:
            parts.append(f"  Expression: {self.expression}")
        if self.suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {self.suggestion}")
        return "\n".join(parts)


class NotIterableError(TemplateRuntimeError):
    """A ``{% for %}`` loop was given something that is not an array, mapping or string.

    Example:
            >>> env.from_string("{% for x in 42 %}{% endfor %}").render()
        NotIterableError: Cannot iterate over integer
    """

    code: ErrorCode | None = ErrorCode.NOT_ITERABLE

    def __init__(self, kind: str, **kwargs: Any):
        self.kind = kind
        super().__init__(
            f"Cannot iterate over {kind}",
            suggestion="Loop over an array, mapping or string, or guard with {% if x is iterable %}",
            **kwargs,
        )


class DivisionByZeroError(TemplateRuntimeError):
    """Division, floor division, modulo or negative power with a zero divisor."""

    code: ErrorCode | None = ErrorCode.DIVISION_BY_ZERO

    def __init__(self, op: str, **kwargs: Any):
        self.op = op
        super().__init__(f"Division by zero in '{op}'", **kwargs)


class ArgumentError(TemplateRuntimeError):
    """A macro, filter or test received arguments it cannot bind.

    Also raised when a tuple target in ``{% for %}`` or ``{% set %}`` does not
    match the arity of the value being unpacked.
    """

    code: ErrorCode | None = ErrorCode.ARGUMENT_ERROR


class UnknownFilterError(TemplateRuntimeError):
    """Filter name not found in the environment's filter registry.

    Example:
            >>> env.from_string("{{ x | uper }}").render(x="a")
        UnknownFilterError: Unknown filter 'uper'
          Suggestion: Did you mean 'upper'?
    """

    code: ErrorCode | None = ErrorCode.UNKNOWN_FILTER

    def __init__(self, name: str, available: Iterable[str] = (), **kwargs: Any):
        self.name = name
        match = _did_you_mean(name, available)
        super().__init__(
            f"Unknown filter '{name}'",
            suggestion=f"Did you mean '{terminal.suggestion(match)}'?" if match else None,
            **kwargs,
        )


class UnknownTestError(TemplateRuntimeError):
    """Test name not found in the environment's test registry."""

    code: ErrorCode | None = ErrorCode.UNKNOWN_TEST

    def __init__(self, name: str, available: Iterable[str] = (), **kwargs: Any):
        self.name = name
        match = _did_you_mean(name, available)
        super().__init__(
            f"Unknown test '{name}'",
            suggestion=f"Did you mean '{terminal.suggestion(match)}'?" if match else None,
            **kwargs,
        )


class LoopControlError(TemplateRuntimeError):
    """{% break %} or {% continue %} reached a template or macro body with no loop to absorb it."""

    code: ErrorCode | None = ErrorCode.LOOP_CONTROL


class TemplateException(TemplateError):
    """Raised deliberately by a template through ``raise_exception(message)``.

    Kept apart from TemplateRuntimeError so callers can tell "the template
    rejected this input" from "the engine hit a bug or misuse":

        >>> try:
        ...     template.render(messages=messages)
        ... except TemplateException as e:
        ...     reject_request(e.message)
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_EXCEPTION

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
