"""chatmpl: a Jinja-compatible template engine for chat prompt templates.

A pure-Python, dependency-free engine covering the Jinja subset that model
chat templates use: expressions, filters and tests, ``if``/``for`` with loop
filters and ``break``/``continue``, ``set`` and namespaces, macros and call
blocks.

Quickstart:
    >>> from chatmpl import Environment
    >>> env = Environment()
    >>> template = env.from_string("Hello, {{ name }}!")
    >>> template.render(name="World")
    'Hello, World!'

Chat templates:
    >>> env = Environment(trim_blocks=True, lstrip_blocks=True)
    >>> template = env.from_string(source)
    >>> template.render(messages=messages, add_generation_prompt=True)

Architecture:
Template Source → Lexer → Parser → chatmpl AST → Interpreter → str

Pipeline stages:
1. **Lexer**: Tokenizes template source into a token stream
2. **Parser**: Builds an immutable AST from tokens
3. **Interpreter**: Walks the AST against a scope chain
4. **Template**: Binds an AST to its Environment with a render() interface

Undefined Values:
Missing variables and attributes evaluate to ``Undefined``, which renders
as nothing and is falsy. Use ``| default(fallback)`` or ``is defined``:

    >>> env.from_string("{{ missing }}|{{ missing | default('N/A') }}").render()
    '|N/A'

"""

from chatmpl._types import Token, TokenType
from chatmpl.environment import (
    ArgumentError,
    DivisionByZeroError,
    Environment,
    ErrorCode,
    LoopControlError,
    NotIterableError,
    TemplateError,
    TemplateException,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UnknownFilterError,
    UnknownTestError,
    pass_environment,
)
from chatmpl.interpreter import render
from chatmpl.lexer import tokenize
from chatmpl.parser import ParseError, parse
from chatmpl.template import UNDEFINED, LoopContext, Namespace, Template, Undefined

__version__ = "0.1.0"

__all__ = [
    "UNDEFINED",
    "ArgumentError",
    "DivisionByZeroError",
    "Environment",
    "ErrorCode",
    "LoopContext",
    "LoopControlError",
    "Namespace",
    "NotIterableError",
    "ParseError",
    "Template",
    "TemplateError",
    "TemplateException",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "Token",
    "TokenType",
    "Undefined",
    "UnknownFilterError",
    "UnknownTestError",
    "__version__",
    "parse",
    "pass_environment",
    "render",
    "tokenize",
]
