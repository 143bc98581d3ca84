"""Core Environment class for chatmpl.

The Environment is the central configuration object: whitespace options,
the filter and test registries, and the globals every template sees.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from chatmpl.environment.exceptions import (
    TemplateRuntimeError,
    UnknownFilterError,
    UnknownTestError,
)
from chatmpl.environment.filters import DEFAULT_FILTERS
from chatmpl.environment.globals import DEFAULT_GLOBALS
from chatmpl.environment.registry import FilterRegistry, check_arguments, wants_environment
from chatmpl.environment.tests import DEFAULT_TESTS

if TYPE_CHECKING:
    from chatmpl.nodes import Template as TemplateNode
    from chatmpl.template import Template

logger = logging.getLogger(__name__)


class Environment:
    """Central configuration for template compilation and rendering.

    Thread-Safety:
        Filter and test tables are replaced copy-on-write, never mutated in
        place, so a render that already looked up its table is unaffected
        by a concurrent ``add_filter``. Parsing and rendering keep no shared
        mutable state.

    Attributes:
        trim_blocks: Remove the first newline after a block tag
        lstrip_blocks: Strip whitespace before a block tag on its line
        globals: Variables and functions available in all templates
        filters: Dict-like registry of filter functions
        tests: Dict-like registry of test functions

    Example:
        >>> env = Environment(trim_blocks=True, lstrip_blocks=True)
        >>> env.add_filter("shout", lambda s: s.upper() + "!")
        >>> env.from_string("{{ greeting | shout }}").render(greeting="hi")
        'HI!'
    """

    def __init__(
        self,
        *,
        trim_blocks: bool = False,
        lstrip_blocks: bool = False,
        filters: Mapping[str, Callable[..., Any]] | None = None,
        tests: Mapping[str, Callable[..., Any]] | None = None,
        globals: Mapping[str, Any] | None = None,
    ):
        self.trim_blocks = trim_blocks
        self.lstrip_blocks = lstrip_blocks
        self._filters: dict[str, Callable[..., Any]] = {**DEFAULT_FILTERS, **(filters or {})}
        self._tests: dict[str, Callable[..., Any]] = {**DEFAULT_TESTS, **(tests or {})}
        self.globals: dict[str, Any] = {**DEFAULT_GLOBALS, **(globals or {})}

    @property
    def filters(self) -> FilterRegistry:
        """Get filters as dict-like registry."""
        return FilterRegistry(self, "_filters")

    @property
    def tests(self) -> FilterRegistry:
        """Get tests as dict-like registry."""
        return FilterRegistry(self, "_tests")

    def add_filter(self, name: str, func: Callable[..., Any]) -> None:
        """Register a filter: ``func(value, *args, **kwargs)``.

        Example:
            >>> env.add_filter("double", lambda x: x * 2)
            >>> env.from_string("{{ 21 | double }}").render()
            '42'
        """
        self.filters[name] = func

    def add_test(self, name: str, func: Callable[..., Any]) -> None:
        """Register a test: ``func(value, *args, **kwargs) -> bool``.

        Example:
            >>> env.add_test("positive", lambda x: x > 0)
            >>> env.from_string("{{ 5 is positive }}").render()
            'true'
        """
        self.tests[name] = func

    def add_global(self, name: str, value: Any) -> None:
        """Make a variable or function visible to every template."""
        self.globals = {**self.globals, name: value}
        logger.debug("Registered global %r", name)

    def parse(self, source: str, name: str | None = None) -> TemplateNode:
        """Parse source into a Template AST using this environment's whitespace options.

        Raises:
            TemplateSyntaxError: The source is not a valid template
        """
        from chatmpl.parser import parse

        return parse(
            source,
            name=name,
            trim_blocks=self.trim_blocks,
            lstrip_blocks=self.lstrip_blocks,
        )

    def from_string(self, source: str, name: str | None = None) -> Template:
        """Compile a template from source.

        Args:
            source: Template source code
            name: Optional template name for error messages

        Returns:
            Parsed Template ready for rendering

        Example:
            >>> env = Environment()
            >>> env.from_string("Hello, {{ name }}!").render(name="World")
            'Hello, World!'
        """
        from chatmpl.template import Template

        ast = self.parse(source, name)
        logger.debug("Compiled template %s (%d nodes)", name or "<string>", len(ast.body))
        return Template(self, ast, name=name, source=source)

    def call_filter(self, name: str, value: Any, *args: Any, **kwargs: Any) -> Any:
        """Apply the registered filter ``name`` to ``value``.

        Raises:
            UnknownFilterError: No filter is registered under ``name``
            ArgumentError: The arguments do not fit the filter's signature
            TemplateRuntimeError: The filter rejected the value's type
        """
        func = self._filters.get(name)
        if func is None:
            raise UnknownFilterError(name, self._filters)
        call_args = (self, value, *args) if wants_environment(func) else (value, *args)
        check_arguments(func, call_args, kwargs, f"Filter '{name}'")
        try:
            return func(*call_args, **kwargs)
        except (TypeError, ValueError) as e:
            raise TemplateRuntimeError(f"Filter '{name}' failed: {e}") from e

    def call_test(self, name: str, value: Any, *args: Any, **kwargs: Any) -> bool:
        """Apply the registered test ``name`` to ``value``.

        Raises:
            UnknownTestError: No test is registered under ``name``
            ArgumentError: The arguments do not fit the test's signature
            TemplateRuntimeError: The test rejected the value's type
        """
        func = self._tests.get(name)
        if func is None:
            raise UnknownTestError(name, self._tests)
        call_args = (self, value, *args) if wants_environment(func) else (value, *args)
        check_arguments(func, call_args, kwargs, f"Test '{name}'")
        try:
            return bool(func(*call_args, **kwargs))
        except (TypeError, ValueError) as e:
            raise TemplateRuntimeError(f"Test '{name}' failed: {e}") from e

    def __repr__(self) -> str:
        return (
            f"<Environment trim_blocks={self.trim_blocks} lstrip_blocks={self.lstrip_blocks}"
            f" filters={len(self._filters)} tests={len(self._tests)}>"
        )
