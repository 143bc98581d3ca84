"""ANSI colouring for error messages.

Colours are on when stdout is a TTY. ``NO_COLOR`` turns them off and
``FORCE_COLOR`` turns them on regardless (https://no-color.org/).
"""

from __future__ import annotations

import os
import re
import sys
from typing import Literal

ColorName = Literal["reset", "bold", "dim", "cyan", "green", "yellow", "bright_red", "bright_green"]

_CODES: dict[str, str] = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
}

_ANSI_RE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def _detect_colors() -> bool:
    if os.environ.get("FORCE_COLOR"):
        return True
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


_USE_COLORS = _detect_colors()


def supports_color() -> bool:
    """True when error output is colourised."""
    return _USE_COLORS


def colorize(text: str, *colors: ColorName) -> str:
    """Wrap text in the given ANSI codes, or return it unchanged when colours are off.

    Example:
        >>> colorize("Error", "bright_red", "bold")  # with colours on
        '\\x1b[91m\\x1b[1mError\\x1b[0m'
    """
    if not _USE_COLORS or not colors:
        return text
    prefix = "".join(_CODES[color] for color in colors)
    return f"{prefix}{text}{_CODES['reset']}"


def strip_colors(text: str) -> str:
    """Remove ANSI escape sequences."""
    return _ANSI_RE.sub("", text)


def location(text: str) -> str:
    return colorize(text, "cyan")


def hint(text: str) -> str:
    return colorize(text, "green")


def suggestion(text: str) -> str:
    return colorize(text, "bright_green", "bold")


def dim_text(text: str) -> str:
    return colorize(text, "dim")


def error_line(text: str) -> str:
    return colorize(text, "bright_red")


def format_error_header(code: str | None, message: str) -> str:
    """Prefix a message with its error code, e.g. ``C-RUN-002: Unknown filter 'uper'``."""
    if code:
        return f"{colorize(code, 'bright_red', 'bold')}: {message}"
    return message


def format_source_line(lineno: int, content: str, is_error: bool = False) -> str:
    """Format one numbered source line; the error line gets a ``>`` marker."""
    marker = ">" if is_error else " "
    number = colorize(f"{marker}{lineno:>3}", "yellow")
    body = error_line(content) if is_error else dim_text(content)
    return f"{number} | {body}"
