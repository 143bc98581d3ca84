"""Environment package: configuration, registries and built-ins.

Public API:
    Environment: Whitespace options, filters, tests and globals
    FilterRegistry: Dict-like view of a filter or test table
    pass_environment: Decorator for filters/tests that need the Environment
    Exceptions: TemplateError and its subclasses
"""

from chatmpl.environment.core import Environment
from chatmpl.environment.exceptions import (
    ArgumentError,
    DivisionByZeroError,
    ErrorCode,
    LoopControlError,
    NotIterableError,
    TemplateError,
    TemplateException,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UnknownFilterError,
    UnknownTestError,
)
from chatmpl.environment.filters import DEFAULT_FILTERS
from chatmpl.environment.globals import DEFAULT_GLOBALS
from chatmpl.environment.registry import FilterRegistry, pass_environment
from chatmpl.environment.tests import DEFAULT_TESTS

__all__ = [
    "DEFAULT_FILTERS",
    "DEFAULT_GLOBALS",
    "DEFAULT_TESTS",
    "ArgumentError",
    "DivisionByZeroError",
    "Environment",
    "ErrorCode",
    "FilterRegistry",
    "LoopControlError",
    "NotIterableError",
    "TemplateError",
    "TemplateException",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "UnknownFilterError",
    "UnknownTestError",
    "pass_environment",
]
