"""
Errors raised by the persistence engine.
"""

from __future__ import annotations

from typing import Any


class PersistenceError(RuntimeError):
    """Base class for business-rule failures in the unit of work."""


class MissingPrimaryKeyError(PersistenceError):
    """Raised when an update or delete targets an entity without a primary key value."""

    def __init__(self, entity: Any, action: str) -> None:
        self.entity = entity
        self.action = action
        super().__init__(f"Cannot {action} {type(entity).__name__} without primary key value")


class UnresolvedDependencyError(PersistenceError):
    """Raised by strict ordering when pending inserts depend on each other in a cycle."""

    def __init__(self, entities: list[Any]) -> None:
        self.entities = entities
        names = ", ".join(type(entity).__name__ for entity in entities)
        super().__init__(f"Cannot order pending inserts, unresolved foreign key dependencies between: {names}")


class EntityNotFoundError(PersistenceError):
    """Raised when a repository lookup that must succeed finds no row."""
