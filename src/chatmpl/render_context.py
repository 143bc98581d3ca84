"""RenderContext: per-render state kept out of the user's variables.

The template name, its source and the line currently executing live in a
ContextVar, so concurrent renders on different threads never see each
other's bookkeeping and no internal key can collide with a template
variable.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass


@dataclass
class RenderContext:
    """Per-render state isolated from user context.

    Thread Safety:
        ContextVars are thread-local by design. Each thread has its own
        RenderContext instance.

    Attributes:
        template_name: Current template name for error messages
        source: Template source for runtime error snippets
        line: Line of the statement being executed
    """

    template_name: str | None = None
    source: str | None = None
    line: int = 0


# Module-level ContextVar
_render_context: ContextVar[RenderContext | None] = ContextVar(
    "render_context",
    default=None,
)


def get_render_context() -> RenderContext | None:
    """Get current render context (None if not in render)."""
    return _render_context.get()


@contextmanager
def render_context(
    template_name: str | None = None,
    source: str | None = None,
) -> Iterator[RenderContext]:
    """Context manager for render-scoped state.

    Creates a new RenderContext and sets it as the current context for
    the duration of the with block, restoring the previous one on exit.

    Example:
        with render_context(template_name="chat.jinja", source=src) as ctx:
            output = interpreter.render(ast, scope)
            # ctx.line tracks the executing statement for error messages
    """
    ctx = RenderContext(template_name=template_name, source=source)
    token: Token[RenderContext | None] = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        _render_context.reset(token)
