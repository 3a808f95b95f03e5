"""
Per-entity repository with simple lookups on top of the entity manager.
"""

from __future__ import annotations

from typing import Any, Generic, List, Mapping, Optional, Tuple, Type, TypeVar

from .persistence.entity_manager import EntityManager
from .persistence.errors import EntityNotFoundError
from .schema.resolver import ResolvedEntitySchema
from .utils import get_logger

T = TypeVar("T")


class Repository(Generic[T]):
    """
    Finds rows of one entity type and hands them out as managed entities.

    Loaded entities are registered with the entity manager, so the same row
    always maps to the same instance and later changes are flushed as updates.
    """

    def __init__(self, entity_type: Type[T], entity_manager: EntityManager) -> None:
        self.entity_type = entity_type
        self.entity_manager = entity_manager
        self.schema: ResolvedEntitySchema[T] = entity_manager.schema_resolver.resolve_by_type(entity_type)
        self.logger = get_logger("repository")

    @property
    def database(self):
        return self.entity_manager.database

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def find(self, id: Any) -> Optional[T]:
        managed = self.entity_manager.get_managed(self.entity_type, id)
        if managed is not None:
            return managed
        return self.find_one_by({self.schema.primary_key: id})

    def find_or_fail(self, id: Any) -> T:
        entity = self.find(id)
        if entity is None:
            raise EntityNotFoundError(f"{self.entity_type.__name__} with id {id!r} not found")
        return entity

    def find_all(self, *, limit: Optional[int] = None, offset: Optional[int] = None) -> List[T]:
        return self.find_by({}, limit=limit, offset=offset)

    def find_by(
        self,
        criteria: Mapping[str, Any],
        *,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[T]:
        where_sql, params = self._where(criteria)
        sql = self.database.dialect.select_sql(
            self.schema.table_name,
            [column.column_name for column in self.schema.columns.values()],
            where=where_sql,
            order_by=self.schema.primary_key_column.column_name,
            limit=limit,
            offset=offset,
        )
        result = self.database.execute(sql, params)
        return [self._load(row) for row in result.rows]

    def find_one_by(self, criteria: Mapping[str, Any]) -> Optional[T]:
        results = self.find_by(criteria, limit=1)
        return results[0] if results else None

    def count(self, criteria: Optional[Mapping[str, Any]] = None) -> int:
        where_sql, params = self._where(criteria or {})
        table = self.database.dialect.format_table(self.schema.table_name)
        where_clause = f" WHERE {where_sql}" if where_sql else ""
        result = self.database.execute(f"SELECT COUNT(*) AS count FROM {table}{where_clause}", params)
        return int(result.scalar() or 0)

    def exists(self, id: Any) -> bool:
        return self.count({self.schema.primary_key: id}) > 0

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def persist(self, entity: T) -> T:
        return self.entity_manager.persist(entity)

    def remove(self, entity: T) -> None:
        self.entity_manager.remove(entity)

    def save(self, entity: T) -> T:
        """Persist ``entity`` and flush immediately."""
        tracked = self.persist(entity)
        self.entity_manager.flush()
        return tracked

    def delete(self, entity: T) -> None:
        """Remove ``entity`` and flush immediately."""
        self.remove(entity)
        self.entity_manager.flush()

    # ------------------------------------------------------------------ #
    def _where(self, criteria: Mapping[str, Any]) -> Tuple[str, List[Any]]:
        if not criteria:
            return "", []
        dialect = self.database.dialect
        clauses: List[str] = []
        params: List[Any] = []
        for property_name, value in criteria.items():
            if not self.schema.is_column(property_name):
                raise ValueError(f"{self.entity_type.__name__} has no column property '{property_name}'")
            column = dialect.quote_identifier(self.schema.get_column_name(property_name))
            if value is None:
                clauses.append(f"{column} IS NULL")
                continue
            clauses.append(f"{column} = {dialect.parameter_placeholder()}")
            params.append(self.schema.columns[property_name].to_db(value))
        return " AND ".join(clauses), params

    def _load(self, row: Mapping[str, Any]) -> T:
        key = row.get(self.schema.primary_key_column.column_name)
        managed = self.entity_manager.get_managed(self.entity_type, key)
        if managed is not None:
            return managed
        entity = self.entity_manager.serializer.denormalize(self.entity_type, row)
        return self.entity_manager.manage(entity, key)

    def __repr__(self) -> str:
        return f"<Repository {self.entity_type.__name__}>"
