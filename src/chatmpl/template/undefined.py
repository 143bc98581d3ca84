"""The Undefined value: what a missing variable or attribute evaluates to."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any


class Undefined:
    """Marker for the absence of a binding.

    Distinct from ``None`` (an explicit null). Undefined is falsy, renders as
    an empty string, has length 0, iterates as empty, and only equals itself.
    Looking up an attribute or item on it yields Undefined again, so
    ``{{ a.b.c }}`` on a missing ``a`` renders nothing instead of failing.
    """

    __slots__ = ()
    _instance: Undefined | None = None

    def __new__(cls) -> Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __len__(self) -> int:
        return 0

    def __iter__(self) -> Iterator[Any]:
        return iter(())

    def __str__(self) -> str:
        return ""

    def __repr__(self) -> str:
        return "Undefined"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Undefined)

    def __ne__(self, other: object) -> bool:
        return not isinstance(other, Undefined)

    def __hash__(self) -> int:
        return hash(Undefined)


UNDEFINED = Undefined()
