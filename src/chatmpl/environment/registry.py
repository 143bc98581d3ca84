"""Filter and test registries for the chatmpl environment.

Provides a Jinja-compatible dict-like interface over the Environment's
filter and test tables, the ``pass_environment`` marker, and the signature
check applied before a registered function is called.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, ItemsView, KeysView, Mapping, Sequence, ValuesView
from functools import lru_cache
from typing import TYPE_CHECKING, Any, TypeVar

from chatmpl.environment.exceptions import ArgumentError

if TYPE_CHECKING:
    from chatmpl.environment.core import Environment

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def pass_environment(func: F) -> F:
    """Mark a filter or test to receive the Environment as its first argument.

    Example:
        >>> @pass_environment
        ... def shout(env, value):
        ...     return env.call_filter("upper", value) + "!"
        >>> env.add_filter("shout", shout)
    """
    func.pass_environment = True  # type: ignore[attr-defined]
    return func


def wants_environment(func: Callable[..., Any]) -> bool:
    return getattr(func, "pass_environment", False) is True


@lru_cache(maxsize=512)
def _cached_signature(func: Callable[..., Any]) -> inspect.Signature | None:
    return _signature(func)


def _signature(func: Callable[..., Any]) -> inspect.Signature | None:
    try:
        return inspect.signature(func)
    except (TypeError, ValueError):
        # Some builtins expose no signature
        return None


def check_arguments(
    func: Callable[..., Any],
    args: Sequence[Any],
    kwargs: Mapping[str, Any],
    label: str,
) -> None:
    """Raise ArgumentError if ``func(*args, **kwargs)`` cannot bind.

    Functions without an introspectable signature are not checked.
    """
    try:
        signature = _cached_signature(func)
    except TypeError:
        # Unhashable callable
        signature = _signature(func)
    if signature is None:
        return
    try:
        signature.bind(*args, **kwargs)
    except TypeError as e:
        raise ArgumentError(
            f"{label} called with invalid arguments: {e}",
            suggestion=f"Signature: {signature}",
        ) from e


class FilterRegistry:
    """Dict-like interface for filters/tests that matches Jinja's API.

    Supports:
        - env.filters['name'] = func
        - env.filters.update({'name': func})
        - func = env.filters['name']
        - 'name' in env.filters
        - del env.filters['name']

    All mutations use copy-on-write, so a render in progress keeps the table
    it started with.
    """

    __slots__ = ("_env", "_attr")

    def __init__(self, env: Environment, attr: str):
        self._env = env
        self._attr = attr

    def _get_dict(self) -> dict[str, Callable[..., Any]]:
        return getattr(self._env, self._attr)

    def _set_dict(self, d: dict[str, Callable[..., Any]]) -> None:
        setattr(self._env, self._attr, d)

    def __getitem__(self, name: str) -> Callable[..., Any]:
        return self._get_dict()[name]

    def __setitem__(self, name: str, func: Callable[..., Any]) -> None:
        if not callable(func):
            raise TypeError(f"'{name}' must be callable, got {type(func).__name__}")
        new = self._get_dict().copy()
        new[name] = func
        self._set_dict(new)
        logger.debug("Registered %r in %s", name, self._attr)

    def __delitem__(self, name: str) -> None:
        new = self._get_dict().copy()
        del new[name]
        self._set_dict(new)

    def __contains__(self, name: object) -> bool:
        return name in self._get_dict()

    def __iter__(self):
        return iter(self._get_dict())

    def __len__(self) -> int:
        return len(self._get_dict())

    def get(
        self, name: str, default: Callable[..., Any] | None = None
    ) -> Callable[..., Any] | None:
        return self._get_dict().get(name, default)

    def update(self, mapping: Mapping[str, Callable[..., Any]]) -> None:
        """Batch update (Jinja compatibility)."""
        new = self._get_dict().copy()
        new.update(mapping)
        self._set_dict(new)
        logger.debug("Registered %d entries in %s", len(mapping), self._attr)

    def copy(self) -> dict[str, Callable[..., Any]]:
        """Return a copy of the underlying dict."""
        return self._get_dict().copy()

    def keys(self) -> KeysView[str]:
        return self._get_dict().keys()

    def values(self) -> ValuesView[Callable[..., Any]]:
        return self._get_dict().values()

    def items(self) -> ItemsView[str, Callable[..., Any]]:
        return self._get_dict().items()
