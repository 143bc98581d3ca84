"""Template: a parsed template bound to its Environment."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from chatmpl.environment import Environment
    from chatmpl.nodes import Template as TemplateNode


class Template:
    """Parsed template ready for rendering.

    Templates are immutable; concurrent ``render()`` calls share nothing but
    the AST and the Environment.

    The template holds its Environment strongly, so a temporary
    ``Environment().from_string(src).render()`` is safe.

    Attributes:
        name: Template identifier (for error messages)
        ast: The parsed Template node

    Example:
            >>> from chatmpl import Environment
            >>> env = Environment()
            >>> t = env.from_string("Hello, {{ name | upper }}!")
            >>> t.render(name="World")
            'Hello, WORLD!'

            >>> t.render({"name": "World"})  # Dict context also works
            'Hello, WORLD!'

    """

    __slots__ = ("_ast", "_env", "_name", "_source")

    def __init__(
        self,
        env: Environment,
        ast: TemplateNode,
        name: str | None = None,
        source: str | None = None,
    ):
        self._env = env
        self._ast = ast
        self._name = name
        self._source = source

    @property
    def environment(self) -> Environment:
        """The Environment this template renders against."""
        return self._env

    @property
    def name(self) -> str | None:
        """Template name."""
        return self._name

    @property
    def ast(self) -> TemplateNode:
        """The parsed AST."""
        return self._ast

    def render(self, context: Mapping[str, Any] | None = None, **kwargs: Any) -> str:
        """Render template with given context.

        Args:
            context: Mapping of context variables
            **kwargs: Context variables as keyword arguments; these win over
                ``context`` entries with the same name

        Returns:
            Rendered template as string

        Raises:
            TemplateRuntimeError: Rendering failed
            TemplateException: The template called raise_exception()
        """
        from chatmpl.interpreter import render

        ctx: dict[str, Any] = {}
        if context is not None:
            if not isinstance(context, Mapping):
                raise TypeError(f"render() context must be a mapping, got {type(context).__name__}")
            ctx.update(context)
        ctx.update(kwargs)
        return render(self._ast, ctx, self._env, name=self._name, source=self._source)

    def __repr__(self) -> str:
        return f"<Template {self._name or '(inline)'}>"
