"""
Foreign-key dependency tracking and execution ordering for a flush.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ..core.relations import RelationType
from .errors import UnresolvedDependencyError
from .identity_map import EntityHandle, IdentityMap
from .operations import OperationKind, PendingOperation


@dataclass(frozen=True)
class RelationshipTracker:
    """
    Records that ``child`` must receive ``parent``'s key in
    ``foreign_key_property`` once the parent has been inserted.
    """

    parent: EntityHandle
    child: EntityHandle
    foreign_key_property: str
    relation_type: RelationType


def order_operations(
    operations: Sequence[PendingOperation],
    relationships: Iterable[RelationshipTracker],
    identity_map: IdentityMap,
    *,
    strict: bool = False,
    logger: Optional[logging.Logger] = None,
) -> list[PendingOperation]:
    """
    Return ``operations`` in execution order: inserts, then updates, then deletes.

    Inserts are placed in passes. An insert is ready once each of its tracked
    parents already has a key, has its own insert placed, or has no pending
    insert at all. When a pass places nothing the first remaining insert is
    forced through, unless ``strict`` is set, in which case
    :class:`UnresolvedDependencyError` is raised.
    """
    inserts = [op for op in operations if op.kind is OperationKind.INSERT]
    updates = [op for op in operations if op.kind is OperationKind.UPDATE]
    deletes = [op for op in operations if op.kind is OperationKind.DELETE]

    parents: dict[EntityHandle, list[EntityHandle]] = {}
    for relationship in relationships:
        parents.setdefault(relationship.child, []).append(relationship.parent)
    pending_inserts = {op.handle for op in inserts}

    placed: set[EntityHandle] = set()
    ordered: list[PendingOperation] = []
    remaining = list(inserts)

    def can_insert_now(handle: EntityHandle) -> bool:
        for parent in parents.get(handle, ()):
            if parent in identity_map or parent in placed or parent not in pending_inserts:
                continue
            return False
        return True

    while remaining:
        placed_this_pass = False
        still_waiting: list[PendingOperation] = []
        for op in remaining:
            if can_insert_now(op.handle):
                ordered.append(op)
                placed.add(op.handle)
                placed_this_pass = True
            else:
                still_waiting.append(op)
        remaining = still_waiting

        if remaining and not placed_this_pass:
            if strict:
                raise UnresolvedDependencyError([op.original for op in remaining])
            forced = remaining.pop(0)
            if logger is not None:
                logger.warning(
                    "Forcing insert of %r with unresolved parent keys; "
                    "foreign keys are back-filled once the parents are inserted",
                    forced.original,
                )
            ordered.append(forced)
            placed.add(forced.handle)

    return ordered + updates + deletes
