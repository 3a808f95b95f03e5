"""
Schema builder converting resolved entity schemas into DDL statements.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, List, Type

from ..core.fields import Field
from ..dialects.base import Dialect
from ..utils import get_logger
from .resolver import ResolvedEntitySchema, SchemaResolver

if TYPE_CHECKING:
    from ..database import Database


class SchemaBuilder:
    """
    Produces dialect-specific ``CREATE TABLE``/``DROP TABLE`` statements and
    optionally runs them against a database.
    """

    def __init__(self, dialect: Dialect, resolver: SchemaResolver | None = None) -> None:
        self.dialect = dialect
        self.resolver = resolver or SchemaResolver()
        self.logger = get_logger("schema.builder")

    def create_table_sql(self, entity_type: Type) -> str:
        schema = self.resolver.resolve_by_type(entity_type)
        column_list = ", ".join(self._render_columns(schema))
        return f"CREATE TABLE IF NOT EXISTS {self.dialect.format_table(schema.table_name)} ({column_list})"

    def drop_table_sql(self, entity_type: Type) -> str:
        table_name = self.dialect.format_table(self.resolver.resolve_by_type(entity_type).table_name)
        self.logger.warning(
            "DROP TABLE generated for %s; confirm destructive change before applying.",
            table_name,
        )
        return f"DROP TABLE IF EXISTS {table_name}"

    def create_index_sql(self, entity_type: Type) -> list[str]:
        schema = self.resolver.resolve_by_type(entity_type)
        statements: list[str] = []
        for column in schema.columns.values():
            if not column.is_unique or column.is_primary_key:
                continue
            index_name = f"idx_{schema.table_name}_{column.column_name}"
            statements.append(
                f"CREATE UNIQUE INDEX IF NOT EXISTS {self.dialect.quote_identifier(index_name)} "
                f"ON {self.dialect.format_table(schema.table_name)} ({self.dialect.quote_identifier(column.column_name)})"
            )
        return statements

    # ------------------------------------------------------------------ #
    def create_tables(self, database: "Database", entity_types: Iterable[Type]) -> None:
        for entity_type in entity_types:
            database.execute(self.create_table_sql(entity_type))
            for statement in self.create_index_sql(entity_type):
                database.execute(statement)
            self.logger.info("Created table for %s", entity_type.__name__)

    def drop_tables(self, database: "Database", entity_types: Iterable[Type]) -> None:
        for entity_type in reversed(list(entity_types)):
            database.execute(self.drop_table_sql(entity_type))

    def table_exists(self, database: "Database", table_name: str) -> bool:
        return database.execute(self.dialect.table_exists_sql(), [table_name]).has_results

    # ------------------------------------------------------------------ #
    def _render_columns(self, schema: ResolvedEntitySchema) -> List[str]:
        pieces: List[str] = []
        composite_keys: List[str] = []
        for column in schema.columns.values():
            column_type = column.db_type
            if not column_type:
                raise ValueError(f"Field '{column.property_name}' missing db_type for schema generation.")
            column_def = self.dialect.render_column_definition(
                column.column_name,
                column_type,
                nullable=column.is_nullable,
            )
            extras: List[str] = []
            if column.is_primary_key and column.is_auto_increment:
                extras.append("PRIMARY KEY")
                extras.append(self.dialect.auto_increment_keyword())
            elif column.is_primary_key:
                composite_keys.append(self.dialect.quote_identifier(column.column_name))
            default_sql = self._default_clause(column.field)
            if default_sql:
                extras.append(default_sql)
            if column.is_unique and not column.is_primary_key:
                extras.append("UNIQUE")

            if extras:
                column_def = f"{column_def} {' '.join(extras)}"
            pieces.append(column_def)
        if composite_keys:
            pieces.append(f"PRIMARY KEY ({', '.join(composite_keys)})")
        return pieces

    def _default_clause(self, field: Field) -> str | None:
        if field.default is None or callable(field.default):
            return None
        value: Any = field.default
        if isinstance(value, bool):
            return f"DEFAULT {1 if value else 0}"
        if isinstance(value, str):
            escaped = value.replace("'", "''")
            return f"DEFAULT '{escaped}'"
        return f"DEFAULT {value}"
