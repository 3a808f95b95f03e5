"""
Change-reporting wrapper around entity instances.
"""

from __future__ import annotations

from typing import Any, Callable, FrozenSet

ChangeCallback = Callable[[Any, str, Any], None]


class EntityProxy:
    """
    Stands in for an entity and reports assignments to mapped properties.

    Reads are forwarded to the wrapped entity. Assignments to a property in
    ``tracked`` write through first and then invoke
    ``on_change(target, name, previous)``; a write the entity rejects is
    never reported.
    """

    __slots__ = ("_target", "_on_change", "_tracked")

    def __init__(self, target: Any, on_change: ChangeCallback, tracked: FrozenSet[str]) -> None:
        object.__setattr__(self, "_target", target)
        object.__setattr__(self, "_on_change", on_change)
        object.__setattr__(self, "_tracked", tracked)

    @property  # type: ignore[misc]
    def __class__(self) -> type:  # noqa: D105
        return type(self._target)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._target, name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in self._tracked:
            setattr(self._target, name, value)
            return
        previous = getattr(self._target, name, None)
        setattr(self._target, name, value)
        self._on_change(self._target, name, previous)

    def __delattr__(self, name: str) -> None:
        delattr(self._target, name)

    def __eq__(self, other: object) -> bool:
        return unwrap(other) is self._target

    def __hash__(self) -> int:
        return id(self._target)

    def __repr__(self) -> str:
        return f"<EntityProxy {self._target!r}>"


def is_proxy(value: Any) -> bool:
    return type(value) is EntityProxy


def unwrap(value: Any) -> Any:
    """
    Return the original entity behind ``value`` (or ``value`` itself).
    """
    if type(value) is EntityProxy:
        return object.__getattribute__(value, "_target")
    return value
