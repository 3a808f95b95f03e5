"""
Pending insert/update/delete operations queued by the entity manager.
"""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Optional

from ..core.fields import DateTimeField
from ..core.proxy import unwrap
from ..schema.resolver import ResolvedEntitySchema, SchemaResolver
from .errors import MissingPrimaryKeyError
from .identity_map import EntityHandle

if TYPE_CHECKING:
    from ..database import Database
    from ..serializer import Serializer
    from .change_tracking import ChangeTrackingManager


class OperationKind(str, enum.Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(eq=False)
class PendingOperation(abc.ABC):
    """
    One queued write. ``entity`` is the tracked form handed back by ``persist``.
    """

    kind: ClassVar[OperationKind]

    handle: EntityHandle
    entity: Any

    @property
    def original(self) -> Any:
        return unwrap(self.entity)

    @abc.abstractmethod
    def execute(
        self,
        database: "Database",
        serializer: "Serializer",
        resolver: SchemaResolver,
        change_tracker: Optional["ChangeTrackingManager"] = None,
    ) -> Any:
        """Run the statement and return the entity key."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.handle!r}>"


class PendingInsert(PendingOperation):
    kind = OperationKind.INSERT

    def execute(self, database, serializer, resolver, change_tracker=None) -> Any:
        schema = resolver.resolve(self.entity)
        original = self.original
        _touch_timestamps(schema, original, inserting=True)

        payload = serializer.normalize(original)
        pk_name = schema.primary_key
        pk_column = schema.primary_key_column
        if pk_column.is_auto_increment and payload.get(pk_name) is None:
            payload.pop(pk_name, None)

        columns = [schema.get_column_name(name) for name in payload]
        sql = database.dialect.insert_sql(schema.table_name, columns)
        result = database.execute(sql, list(payload.values()))

        if pk_column.is_auto_increment and schema.get_primary_key_value(original) is None:
            if result.insert_id is not None:
                schema.set_value(original, pk_name, result.insert_id)
        return schema.get_primary_key_value(original)


class PendingUpdate(PendingOperation):
    kind = OperationKind.UPDATE

    def execute(self, database, serializer, resolver, change_tracker=None) -> Any:
        schema = resolver.resolve(self.entity)
        original = self.original
        pk_name = schema.primary_key
        pk_value = schema.get_primary_key_value(original)
        if pk_value is None:
            raise MissingPrimaryKeyError(original, "update")

        changed = change_tracker.get_changed_properties(original) if change_tracker is not None else None
        if changed:
            names = [name for name in schema.columns if name in changed and name != pk_name]
        else:
            names = [name for name in serializer.normalize(original) if name != pk_name]
        if not names:
            return pk_value

        for name in _touch_timestamps(schema, original, inserting=False):
            if name not in names:
                names.append(name)

        sql = database.dialect.update_sql(
            schema.table_name,
            [schema.get_column_name(name) for name in names],
            schema.primary_key_column.column_name,
        )
        params = [schema.columns[name].to_db(schema.get_value(original, name)) for name in names]
        params.append(_pk_param(schema, pk_value))
        database.execute(sql, params)
        return pk_value


class PendingDelete(PendingOperation):
    kind = OperationKind.DELETE

    def execute(self, database, serializer, resolver, change_tracker=None) -> Any:
        schema = resolver.resolve(self.entity)
        original = self.original
        pk_value = schema.get_primary_key_value(original)
        if pk_value is None:
            raise MissingPrimaryKeyError(original, "delete")

        sql = database.dialect.delete_sql(schema.table_name, schema.primary_key_column.column_name)
        database.execute(sql, [_pk_param(schema, pk_value)])
        return pk_value


def _pk_param(schema: ResolvedEntitySchema, value: Any) -> Any:
    return schema.primary_key_column.to_db(value)


def _touch_timestamps(schema: ResolvedEntitySchema, entity: Any, *, inserting: bool) -> list[str]:
    """
    Fill ``auto_now``/``auto_now_add`` columns and return the properties written.
    """
    touched: list[str] = []
    now = None
    for name, column in schema.columns.items():
        if column.auto_now or (inserting and column.auto_now_add and schema.get_value(entity, name) is None):
            now = now or DateTimeField.now()
            schema.set_value(entity, name, now)
            touched.append(name)
    return touched
