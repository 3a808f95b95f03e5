"""
Unit-of-work entity manager coordinating persistence of entity graphs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional, Type, TypeVar

from ..core.proxy import unwrap
from ..schema.resolver import RelationInfo, ResolvedEntitySchema, SchemaResolver
from ..serializer import Serializer
from ..utils import get_logger
from .change_tracking import ChangeTrackingManager
from .errors import MissingPrimaryKeyError
from .identity_map import EntityHandle, HandleRegistry, IdentityMap
from .operations import (
    OperationKind,
    PendingDelete,
    PendingInsert,
    PendingOperation,
    PendingUpdate,
)
from .ordering import RelationshipTracker, order_operations

if TYPE_CHECKING:
    from ..database import Database
    from ..hooks import HookDispatcher

T = TypeVar("T")


class EntityManager:
    """
    Collects persist/remove requests and writes them in one transaction.

    ``persist`` and ``remove`` only touch in-memory queues. ``flush`` orders
    the queued operations so parents are inserted before the children that
    reference them, executes them, and copies generated keys into dependent
    foreign-key properties as it goes.

    One manager is meant to be used from a single thread.
    """

    def __init__(
        self,
        database: "Database",
        *,
        serializer: Optional[Serializer] = None,
        schema_resolver: Optional[SchemaResolver] = None,
        hook_dispatcher: Optional["HookDispatcher"] = None,
        strict_ordering: bool = False,
    ) -> None:
        self.database = database
        if schema_resolver is None:
            schema_resolver = serializer.resolver if serializer is not None else SchemaResolver()
        self.schema_resolver = schema_resolver
        self.serializer = serializer or Serializer(schema_resolver)
        if hook_dispatcher is None:
            from ..hooks import hooks

            hook_dispatcher = hooks
        self.hooks = hook_dispatcher
        self.strict_ordering = strict_ordering

        self.handles = HandleRegistry()
        self.change_tracker = ChangeTrackingManager(self.handles)
        self.identity_map = IdentityMap()
        self._pending: Dict[EntityHandle, PendingOperation] = {}
        self._entity_ids: Dict[EntityHandle, Any] = {}
        self._executed: set[EntityHandle] = set()
        self._relationships: list[RelationshipTracker] = []
        self._processing: set[EntityHandle] = set()
        self.logger = get_logger("persistence.entity_manager")

    # ------------------------------------------------------------------ #
    # Scheduling
    # ------------------------------------------------------------------ #
    def persist(self, entity: T) -> T:
        """
        Schedule ``entity`` for insert (new) or update (managed).

        Returns the tracked form of the entity; assignments made through it
        are recorded so the next update only writes changed columns.
        """
        if entity is None:
            raise ValueError("Entity cannot be None")
        schema = self.schema_resolver.resolve(entity)
        handle = self.handles.handle_for(entity)
        if handle in self._processing:
            return self.change_tracker.get_tracked(entity)

        self._processing.add(handle)
        try:
            managed = handle in self.identity_map
            tracked = self.change_tracker.create_tracked_proxy(entity, schema)
            operation_type = PendingUpdate if managed else PendingInsert
            self._schedule(operation_type(handle, tracked))
            self.logger.debug("Scheduled %s for %r", operation_type.kind.value, unwrap(entity))

            self._cascade_persist(handle, schema)
            self._detect_inverse_relationships(handle, schema)
            self._detect_parent_in_pending_operations(handle)
            return tracked
        finally:
            self._processing.discard(handle)

    def remove(self, entity: Any) -> None:
        """
        Schedule ``entity`` for deletion, after any cascade-remove children.
        """
        if entity is None:
            raise ValueError("Entity cannot be None")
        schema = self.schema_resolver.resolve(entity)
        existing = self.handles.lookup(entity)
        if existing is not None and existing in self._processing:
            return
        if schema.get_primary_key_value(entity) is None:
            raise MissingPrimaryKeyError(unwrap(entity), "remove")

        handle = self.handles.handle_for(entity)
        self._processing.add(handle)
        try:
            self._cascade_remove(handle, schema)
            self._schedule(PendingDelete(handle, self.change_tracker.get_tracked(entity)))
            self.logger.debug("Scheduled delete for %r", unwrap(entity))
        finally:
            self._processing.discard(handle)

    def manage(self, entity: T, key: Any = None) -> T:
        """
        Register an entity loaded from storage as managed under ``key``.
        """
        if entity is None:
            raise ValueError("Entity cannot be None")
        schema = self.schema_resolver.resolve(entity)
        if key is None:
            key = schema.get_primary_key_value(entity)
        if key is None:
            raise MissingPrimaryKeyError(unwrap(entity), "manage")
        handle = self.handles.handle_for(entity)
        self.identity_map.add(handle, key)
        return self.change_tracker.create_tracked_proxy(entity, schema)

    def detach(self, entity: Any) -> None:
        """
        Forget ``entity``: drop its pending operation, edges, key and tracker.
        """
        if entity is None:
            raise ValueError("Entity cannot be None")
        handle = self.handles.lookup(entity)
        if handle is None or handle in self._processing:
            return

        self._processing.add(handle)
        try:
            schema = self.schema_resolver.resolve(entity)
            for relation in schema.relations.values():
                if not relation.cascade_detach:
                    continue
                for related in relation.related_entities(schema.get_value(entity, relation.property_name)):
                    self.detach(related)
        finally:
            self._processing.discard(handle)

        self._pending.pop(handle, None)
        self._entity_ids.pop(handle, None)
        self._relationships = [
            edge for edge in self._relationships if edge.parent != handle and edge.child != handle
        ]
        self.identity_map.remove(handle)
        self.change_tracker.untrack(entity)
        self.handles.release(handle)

    # ------------------------------------------------------------------ #
    # Flushing
    # ------------------------------------------------------------------ #
    def flush(self) -> None:
        """
        Execute every pending operation inside one transaction.

        Nothing is sent to the database when the queue is empty. If any
        statement fails the transaction is rolled back, the error propagates
        and the queue is left as it was.
        """
        if not self._pending:
            return

        operations = list(self._pending.values())
        ordered = order_operations(
            operations,
            self._relationships,
            self.identity_map,
            strict=self.strict_ordering,
            logger=self.logger,
        )
        with self.database.transaction():
            for operation in ordered:
                self._execute(operation)

        for operation in operations:
            if operation.kind is not OperationKind.DELETE:
                self.change_tracker.reset(operation.entity)
        self.logger.info(
            "Flushed %d operations (%d inserts, %d updates, %d deletes)",
            len(ordered),
            self.pending_inserts_count,
            self.pending_updates_count,
            self.pending_deletes_count,
        )
        self.clear()
        self.hooks.fire("after_flush", None, entity_manager=self, operations=tuple(ordered))

    def clear(self) -> None:
        """
        Discard pending operations and relationship edges.

        Keys already recorded in the identity map are kept.
        """
        self._pending.clear()
        self._entity_ids.clear()
        self._executed.clear()
        self._relationships.clear()
        for handle in self.handles:
            if handle not in self.identity_map:
                self.change_tracker.untrack(self.handles.entity(handle))
                self.handles.release(handle)

    def _execute(self, operation: PendingOperation) -> None:
        original = operation.original
        event = operation.kind.value
        if operation.kind is OperationKind.INSERT:
            self._fill_foreign_keys_before_insert(operation.handle)

        self.hooks.fire(f"before_{event}", original, entity_manager=self)
        key = operation.execute(self.database, self.serializer, self.schema_resolver, self.change_tracker)

        if operation.kind is OperationKind.DELETE:
            self.identity_map.remove(operation.handle)
            self._entity_ids.pop(operation.handle, None)
            self.change_tracker.untrack(original)
        else:
            self._executed.add(operation.handle)
            if key is not None:
                self._entity_ids[operation.handle] = key
                self.identity_map.add(operation.handle, key)
                if operation.kind is OperationKind.INSERT:
                    self._propagate_key_to_children(operation.handle, key)
        self.hooks.fire(f"after_{event}", original, entity_manager=self)

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #
    @property
    def has_pending_operations(self) -> bool:
        return bool(self._pending)

    @property
    def pending_operations_count(self) -> int:
        return len(self._pending)

    @property
    def pending_inserts_count(self) -> int:
        return self._count(OperationKind.INSERT)

    @property
    def pending_updates_count(self) -> int:
        return self._count(OperationKind.UPDATE)

    @property
    def pending_deletes_count(self) -> int:
        return self._count(OperationKind.DELETE)

    @property
    def pending_operations(self) -> tuple[PendingOperation, ...]:
        return tuple(self._pending.values())

    @property
    def relationships(self) -> tuple[RelationshipTracker, ...]:
        return tuple(self._relationships)

    def has_entity_pending(self, entity: Any) -> bool:
        handle = self.handles.lookup(entity)
        return handle is not None and handle in self._pending

    def get_pending_operation_type(self, entity: Any) -> Optional[str]:
        handle = self.handles.lookup(entity)
        operation = self._pending.get(handle) if handle is not None else None
        return operation.kind.value if operation is not None else None

    def get_entity_id(self, entity: Any) -> Any:
        handle = self.handles.lookup(entity)
        if handle is None:
            return None
        key = self.identity_map.get(handle)
        return key if key is not None else self._entity_ids.get(handle)

    def is_managed(self, entity: Any) -> bool:
        handle = self.handles.lookup(entity)
        return handle is not None and handle in self.identity_map

    def get_managed(self, entity_type: Type[T], key: Any) -> Optional[T]:
        """
        Return the tracked instance registered for ``(entity_type, key)``, if any.
        """
        handle = self.identity_map.find(entity_type, key)
        if handle is None:
            return None
        return self.change_tracker.get_tracked(self.handles.entity(handle))

    def _count(self, kind: OperationKind) -> int:
        return sum(1 for operation in self._pending.values() if operation.kind is kind)

    # ------------------------------------------------------------------ #
    # Cascades and relationship edges
    # ------------------------------------------------------------------ #
    def _schedule(self, operation: PendingOperation) -> None:
        self._pending.pop(operation.handle, None)
        self._pending[operation.handle] = operation

    def _has_pending_insert(self, handle: EntityHandle) -> bool:
        operation = self._pending.get(handle)
        return operation is not None and operation.kind is OperationKind.INSERT

    def _add_relationship(self, tracker: RelationshipTracker) -> None:
        if tracker not in self._relationships:
            self._relationships.append(tracker)

    def _known_key(self, handle: EntityHandle, schema: ResolvedEntitySchema) -> Any:
        key = self.identity_map.get(handle)
        if key is None:
            key = self._entity_ids.get(handle)
        if key is None and not self._has_pending_insert(handle):
            key = schema.get_primary_key_value(self.handles.entity(handle))
        return key

    def _set_foreign_key(self, handle: EntityHandle, property_name: str, value: Any) -> bool:
        entity = self.handles.entity(handle)
        schema = self.schema_resolver.resolve(entity)
        previous = schema.get_value(entity, property_name)
        if previous == value:
            return False
        schema.set_value(entity, property_name, value)
        tracker = self.change_tracker.get_tracker(entity)
        if tracker is not None and schema.is_column(property_name):
            tracker.mark_changed(property_name, previous)
        return True

    def _cascade_persist(self, handle: EntityHandle, schema: ResolvedEntitySchema) -> None:
        entity = self.handles.entity(handle)
        for relation in schema.relations.values():
            if not relation.cascade_persist:
                continue
            value = schema.get_value(entity, relation.property_name)
            for related in relation.related_entities(value):
                if relation.is_inverse:
                    self._track_inverse_relationship(handle, related, relation)
                else:
                    self._track_relationship(handle, schema, related, relation)
                self.persist(related)

    def _track_relationship(
        self,
        parent: EntityHandle,
        parent_schema: ResolvedEntitySchema,
        child_entity: Any,
        relation: RelationInfo,
    ) -> None:
        child = self.handles.handle_for(child_entity)
        parent_key = self._known_key(parent, parent_schema)
        if parent_key is not None:
            self._set_foreign_key(child, relation.foreign_key, parent_key)
        elif self._has_pending_insert(parent):
            self._add_relationship(RelationshipTracker(parent, child, relation.foreign_key, relation.type))

    def _track_inverse_relationship(self, child: EntityHandle, parent_entity: Any, relation: RelationInfo) -> None:
        parent = self.handles.handle_for(parent_entity)
        parent_key = self._known_key(parent, self.schema_resolver.resolve(parent_entity))
        if parent_key is not None:
            self._set_foreign_key(child, relation.local_key, parent_key)
        else:
            self._add_relationship(RelationshipTracker(parent, child, relation.local_key, relation.type))

    def _detect_inverse_relationships(self, handle: EntityHandle, schema: ResolvedEntitySchema) -> None:
        entity = self.handles.entity(handle)
        for relation in schema.relations.values():
            if not relation.is_inverse:
                continue
            parent_entity = schema.get_value(entity, relation.property_name)
            if parent_entity is None:
                continue
            parent = self.handles.handle_for(parent_entity)
            parent_key = self._known_key(parent, self.schema_resolver.resolve(parent_entity))
            if parent_key is not None:
                self._set_foreign_key(handle, relation.local_key, parent_key)
            elif self._has_pending_insert(parent):
                self._add_relationship(RelationshipTracker(parent, handle, relation.local_key, relation.type))

    def _detect_parent_in_pending_operations(self, handle: EntityHandle) -> None:
        """
        Register an edge when a pending insert already references this entity.
        """
        entity = self.handles.entity(handle)
        for operation in list(self._pending.values()):
            if operation.kind is not OperationKind.INSERT or operation.handle == handle:
                continue
            parent_entity = operation.original
            parent_schema = self.schema_resolver.resolve(parent_entity)
            for relation in parent_schema.relations.values():
                if relation.is_inverse:
                    continue
                value = parent_schema.get_value(parent_entity, relation.property_name)
                if any(unwrap(item) is entity for item in relation.related_entities(value)):
                    self._add_relationship(
                        RelationshipTracker(operation.handle, handle, relation.foreign_key, relation.type)
                    )
                    return

    def _cascade_remove(self, handle: EntityHandle, schema: ResolvedEntitySchema) -> None:
        entity = self.handles.entity(handle)
        for relation in schema.relations.values():
            if not relation.cascade_remove:
                continue
            for related in relation.related_entities(schema.get_value(entity, relation.property_name)):
                self.remove(related)

    def _fill_foreign_keys_before_insert(self, handle: EntityHandle) -> None:
        entity = self.handles.entity(handle)
        schema = self.schema_resolver.resolve(entity)
        for relation in schema.relations.values():
            if not relation.is_inverse:
                continue
            parent_entity = schema.get_value(entity, relation.property_name)
            if parent_entity is None:
                continue
            parent = self.handles.handle_for(parent_entity)
            parent_key = self._known_key(parent, self.schema_resolver.resolve(parent_entity))
            if parent_key is not None:
                self._set_foreign_key(handle, relation.local_key, parent_key)

    def _propagate_key_to_children(self, parent: EntityHandle, key: Any) -> None:
        for edge in self._relationships:
            if edge.parent != parent or edge.child not in self.handles:
                continue
            changed = self._set_foreign_key(edge.child, edge.foreign_key_property, key)
            if changed and edge.child in self._executed:
                self._backfill_foreign_key(edge.child, edge.foreign_key_property)

    def _backfill_foreign_key(self, handle: EntityHandle, property_name: str) -> None:
        """
        Write a key that arrived after its row was inserted (forced cycle).
        """
        entity = self.change_tracker.get_tracked(self.handles.entity(handle))
        self.logger.debug("Back-filling %s on %r", property_name, unwrap(entity))
        PendingUpdate(handle, entity).execute(
            self.database, self.serializer, self.schema_resolver, self.change_tracker
        )

    def __repr__(self) -> str:
        return f"<EntityManager pending={len(self._pending)} managed={len(self.identity_map)}>"
