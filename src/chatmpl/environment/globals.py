"""Default global functions and objects for templates.

These are registered in every Environment and can be shadowed by render
context variables of the same name.

Chat templates lean on a handful of them:

    {% set ns = namespace(seen_system=false) %}
    {% if messages[0].role != 'system' %}
        {{ raise_exception('Conversation must start with a system message') }}
    {% endif %}
    {{ strftime_now('%d %B %Y') }}
"""

from __future__ import annotations

import random
from datetime import datetime
from typing import Any

from chatmpl.environment.exceptions import TemplateException
from chatmpl.template.namespace import Namespace
from chatmpl.values import is_undefined, to_string


def raise_exception(message: Any = None) -> None:
    """Abort the render with a TemplateException carrying ``message``."""
    if message is None or is_undefined(message):
        raise TemplateException("Template raised an exception")
    raise TemplateException(to_string(message))


def strftime_now(format: str) -> str:
    """Current local time formatted with ``datetime.strftime``."""
    return datetime.now().strftime(format)


_LOREM_WORDS = (
    "lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua enim ad minim veniam quis nostrud "
    "exercitation ullamco laboris nisi aliquip ex ea commodo consequat duis aute irure "
    "in reprehenderit voluptate velit esse cillum fugiat nulla pariatur excepteur sint "
    "occaecat cupidatat non proident sunt culpa qui officia deserunt mollit anim id est "
    "laborum"
).split()


def lipsum(n: int = 5, html: bool = True, min: int = 20, max: int = 100) -> str:
    """Placeholder text: ``n`` paragraphs of ``min`` to ``max`` words each.

    With ``html`` each paragraph is wrapped in ``<p>`` and paragraphs are
    separated by a newline; otherwise by a blank line.
    """
    paragraphs = []
    for _ in range(n):
        words = [random.choice(_LOREM_WORDS) for _ in range(random.randint(min, max))]
        sentences = []
        while words:
            size = random.randint(8, 15)
            sentence = " ".join(words[:size])
            words = words[size:]
            sentences.append(f"{sentence[0].upper()}{sentence[1:]}.")
        paragraphs.append(" ".join(sentences))
    if html:
        return "\n".join(f"<p>{paragraph}</p>" for paragraph in paragraphs)
    return "\n\n".join(paragraphs)


def template_range(*args: int) -> list[int]:
    """``range(stop)`` / ``range(start, stop[, step])`` as an array."""
    if not 1 <= len(args) <= 3:
        raise TypeError(f"range expected 1 to 3 arguments, got {len(args)}")
    return list(range(*args))


def template_dict(**items: Any) -> dict[str, Any]:
    """``dict(a=1, b=2)``: build a mapping from keyword arguments."""
    return items


class Cycler:
    """Cycle through values across calls, independent of any loop.

    Example:
            ```jinja
            {% set row = cycler('odd', 'even') %}
            {% for m in messages %}<div class="{{ row.next() }}">{% endfor %}
            ```
    """

    __slots__ = ("items", "pos")

    def __init__(self, *items: Any):
        if not items:
            raise ValueError("cycler needs at least one item")
        self.items = items
        self.pos = 0

    @property
    def current(self) -> Any:
        """The value the next call to next() returns."""
        return self.items[self.pos]

    def next(self) -> Any:
        value = self.current
        self.pos = (self.pos + 1) % len(self.items)
        return value

    def reset(self) -> None:
        self.pos = 0

    def __repr__(self) -> str:
        return f"<Cycler {self.pos}/{len(self.items)}>"


class Joiner:
    """Return an empty string on the first call and ``sep`` afterwards.

    Example:
            ```jinja
            {% set comma = joiner(", ") %}
            {% for tool in tools %}{{ comma() }}{{ tool.name }}{% endfor %}
            ```
    """

    __slots__ = ("sep", "used")

    def __init__(self, sep: str = ", "):
        self.sep = sep
        self.used = False

    def __call__(self) -> str:
        if not self.used:
            self.used = True
            return ""
        return self.sep

    def __repr__(self) -> str:
        return f"<Joiner {self.sep!r}>"


DEFAULT_GLOBALS: dict[str, Any] = {
    "range": template_range,
    "dict": template_dict,
    "namespace": Namespace,
    "cycler": Cycler,
    "joiner": Joiner,
    "raise_exception": raise_exception,
    "strftime_now": strftime_now,
    "lipsum": lipsum,
}
