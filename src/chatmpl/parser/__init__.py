"""Recursive-descent parser producing the template AST."""

from chatmpl.parser.core import Parser, parse
from chatmpl.parser.errors import ParseError

__all__ = ["ParseError", "Parser", "parse"]
