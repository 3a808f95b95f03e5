"""
Persistence layer components: entity manager, change tracking, identity map.
"""

from .change_tracking import ChangeTrackingManager, EntityChangeTracker
from .entity_manager import EntityManager
from .errors import (
    EntityNotFoundError,
    MissingPrimaryKeyError,
    PersistenceError,
    UnresolvedDependencyError,
)
from .identity_map import EntityHandle, HandleRegistry, IdentityMap
from .operations import OperationKind, PendingDelete, PendingInsert, PendingOperation, PendingUpdate
from .ordering import RelationshipTracker, order_operations
from .transaction import TransactionError, TransactionManager

__all__ = [
    "ChangeTrackingManager",
    "EntityChangeTracker",
    "EntityHandle",
    "EntityManager",
    "EntityNotFoundError",
    "HandleRegistry",
    "IdentityMap",
    "MissingPrimaryKeyError",
    "OperationKind",
    "PendingDelete",
    "PendingInsert",
    "PendingOperation",
    "PendingUpdate",
    "PersistenceError",
    "RelationshipTracker",
    "TransactionError",
    "TransactionManager",
    "UnresolvedDependencyError",
    "order_operations",
]
