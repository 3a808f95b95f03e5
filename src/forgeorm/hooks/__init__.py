"""
Lifecycle hooks registry for ForgeORM entities.
"""

from .dispatcher import ENTITY_EVENTS, FLUSH_EVENTS, HookDispatcher, hooks

__all__ = ["ENTITY_EVENTS", "FLUSH_EVENTS", "HookDispatcher", "hooks"]
