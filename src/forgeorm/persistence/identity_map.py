"""
Entity handles and the identity map recording assigned keys.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple, Type

from ..core.proxy import unwrap


@dataclass(frozen=True, slots=True)
class EntityHandle:
    """
    Stable reference to one original entity instance.

    Handles compare by slot, so bookkeeping never relies on an entity's own
    ``__eq__``/``__hash__``.
    """

    slot: int
    entity_type: Type

    def __repr__(self) -> str:
        return f"<EntityHandle {self.entity_type.__name__}#{self.slot}>"


class HandleRegistry:
    """
    Hands out one :class:`EntityHandle` per original entity object.

    The registry keeps a strong reference to every registered entity, so the
    ``id()`` used for lookup stays unique until the handle is released.
    """

    def __init__(self) -> None:
        self._by_object: Dict[int, EntityHandle] = {}
        self._entities: Dict[EntityHandle, Any] = {}
        self._slots = itertools.count(1)

    def handle_for(self, entity: Any) -> EntityHandle:
        original = unwrap(entity)
        handle = self._by_object.get(id(original))
        if handle is None:
            handle = EntityHandle(next(self._slots), type(original))
            self._by_object[id(original)] = handle
            self._entities[handle] = original
        return handle

    def lookup(self, entity: Any) -> Optional[EntityHandle]:
        return self._by_object.get(id(unwrap(entity)))

    def entity(self, handle: EntityHandle) -> Any:
        return self._entities[handle]

    def release(self, handle: EntityHandle) -> None:
        entity = self._entities.pop(handle, None)
        if entity is not None:
            self._by_object.pop(id(entity), None)

    def __contains__(self, handle: object) -> bool:
        return handle in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[EntityHandle]:
        return iter(list(self._entities))


class IdentityMap:
    """
    Maps entity handles to their database keys, with the reverse
    ``(entity type, key) -> handle`` index used to hand out one instance per row.
    """

    def __init__(self) -> None:
        self._keys: Dict[EntityHandle, Any] = {}
        self._handles: Dict[Tuple[Type, Any], EntityHandle] = {}

    def add(self, handle: EntityHandle, key: Any) -> None:
        previous = self._keys.get(handle)
        if previous is not None:
            self._handles.pop((handle.entity_type, previous), None)
        self._keys[handle] = key
        self._handles[(handle.entity_type, key)] = handle

    def get(self, handle: EntityHandle) -> Any:
        return self._keys.get(handle)

    def find(self, entity_type: Type, key: Any) -> Optional[EntityHandle]:
        return self._handles.get((entity_type, key))

    def remove(self, handle: EntityHandle) -> None:
        key = self._keys.pop(handle, None)
        if key is not None:
            self._handles.pop((handle.entity_type, key), None)

    def clear(self) -> None:
        self._keys.clear()
        self._handles.clear()

    def handles(self) -> list[EntityHandle]:
        return list(self._keys)

    def __contains__(self, handle: object) -> bool:
        return handle in self._keys

    def __len__(self) -> int:
        return len(self._keys)
