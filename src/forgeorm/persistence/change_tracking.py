"""
Dirty-property tracking through entity proxies.
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, Optional, Set

from ..core.proxy import is_proxy, unwrap
from ..schema.resolver import ResolvedEntitySchema
from .identity_map import EntityHandle, HandleRegistry


class EntityChangeTracker:
    """
    Records which properties of one entity were assigned through its proxy.
    """

    def __init__(self, original: Any, proxy: Any, schema: ResolvedEntitySchema) -> None:
        self.original = original
        self.proxy = proxy
        self.schema = schema
        self._changed: Set[str] = set()
        self._original_values: Dict[str, Any] = {}

    @property
    def entity(self) -> Any:
        return self.proxy

    @property
    def changed_properties(self) -> FrozenSet[str]:
        return frozenset(self._changed)

    @property
    def has_changes(self) -> bool:
        return bool(self._changed)

    def mark_changed(self, property_name: str, previous_value: Any) -> None:
        """
        Record ``property_name`` as changed; the first call keeps its original value.
        """
        if property_name not in self._changed:
            if self.schema.accessor(property_name) is None:
                raise KeyError(f"No accessor for property '{property_name}' on {self.schema.entity_type.__name__}")
            self._original_values[property_name] = previous_value
        self._changed.add(property_name)

    def get_original_value(self, property_name: str) -> Any:
        return self._original_values.get(property_name)

    def reset(self) -> None:
        self._changed.clear()
        self._original_values.clear()


class ChangeTrackingManager:
    """
    Creates tracking proxies and answers questions about tracked entities.

    Trackers are keyed by :class:`EntityHandle`; proxies report assignments
    back here and are routed to the tracker of their original entity.
    """

    def __init__(self, handles: Optional[HandleRegistry] = None) -> None:
        self.handles = handles or HandleRegistry()
        self._trackers: Dict[EntityHandle, EntityChangeTracker] = {}

    def create_tracked_proxy(self, entity: Any, schema: ResolvedEntitySchema) -> Any:
        original = unwrap(entity)
        handle = self.handles.handle_for(original)
        tracker = self._trackers.get(handle)
        if tracker is not None:
            return tracker.entity

        if schema.proxy_factory is None:
            return entity

        if is_proxy(entity):
            proxy = entity
        else:
            proxy = schema.proxy_factory(original, self._record_change, frozenset(schema.accessors))
        self._trackers[handle] = EntityChangeTracker(original, proxy, schema)
        return proxy

    def _record_change(self, target: Any, property_name: str, previous_value: Any) -> None:
        handle = self.handles.lookup(target)
        if handle is None:
            return
        tracker = self._trackers.get(handle)
        if tracker is not None:
            tracker.mark_changed(property_name, previous_value)

    def get_tracker(self, entity: Any) -> Optional[EntityChangeTracker]:
        handle = self.handles.lookup(entity)
        if handle is None:
            return None
        return self._trackers.get(handle)

    def is_tracked(self, entity: Any) -> bool:
        return self.get_tracker(entity) is not None

    def get_original(self, entity: Any) -> Any:
        return unwrap(entity)

    def get_tracked(self, entity: Any) -> Any:
        """
        Return the proxy for ``entity`` if it is tracked, else ``entity`` itself.
        """
        tracker = self.get_tracker(entity)
        return tracker.entity if tracker is not None else entity

    def get_changed_properties(self, entity: Any) -> Optional[FrozenSet[str]]:
        tracker = self.get_tracker(entity)
        return tracker.changed_properties if tracker is not None else None

    def has_changes(self, entity: Any) -> bool:
        tracker = self.get_tracker(entity)
        return tracker.has_changes if tracker is not None else False

    def reset(self, entity: Any) -> None:
        tracker = self.get_tracker(entity)
        if tracker is not None:
            tracker.reset()

    def untrack(self, entity: Any) -> None:
        handle = self.handles.lookup(entity)
        if handle is not None:
            self._trackers.pop(handle, None)

    def tracked_handles(self) -> list[EntityHandle]:
        return list(self._trackers)

    def clear(self) -> None:
        self._trackers.clear()

    def __len__(self) -> int:
        return len(self._trackers)
