"""
Hook dispatcher coordinating entity lifecycle events.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Type

from ..core.proxy import unwrap


HookHandler = Callable[..., None]

ENTITY_EVENTS = (
    "before_insert",
    "after_insert",
    "before_update",
    "after_update",
    "before_delete",
    "after_delete",
)
FLUSH_EVENTS = ("after_flush",)


class HookDispatcher:
    """
    Maintains global and per-entity-type hook handlers.
    """

    def __init__(self) -> None:
        self._global_handlers: Dict[str, List[HookHandler]] = defaultdict(list)
        self._entity_handlers: Dict[Type, Dict[str, List[HookHandler]]] = defaultdict(
            lambda: defaultdict(list)
        )

    def register(self, event: str, handler: HookHandler, *, entity_type: Optional[Type] = None) -> None:
        if event not in ENTITY_EVENTS and event not in FLUSH_EVENTS:
            raise ValueError(f"Unknown hook event '{event}'")
        if entity_type:
            self._entity_handlers[entity_type][event].append(handler)
        else:
            self._global_handlers[event].append(handler)

    def on(self, event: str, *, entity_type: Optional[Type] = None) -> Callable[[HookHandler], HookHandler]:
        """Decorator form of :meth:`register`."""

        def decorator(handler: HookHandler) -> HookHandler:
            self.register(event, handler, entity_type=entity_type)
            return handler

        return decorator

    def fire(self, event: str, instance: Optional[Any], **context: Any) -> None:
        handlers = list(self._global_handlers.get(event, []))
        original = unwrap(instance) if instance is not None else None
        if original is not None:
            handlers.extend(self._entity_handlers.get(type(original), {}).get(event, []))
        for handler in handlers:
            handler(original, **context)

    def clear(self) -> None:
        self._global_handlers.clear()
        self._entity_handlers.clear()


hooks = HookDispatcher()
