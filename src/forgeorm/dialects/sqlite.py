"""
SQLite rendering rules.
"""

from __future__ import annotations

from typing import Final, Sequence

from .base import DialectCapabilities

_SAVEPOINT_ACTIONS = {
    "create": "SAVEPOINT {}",
    "release": "RELEASE SAVEPOINT {}",
    "rollback": "ROLLBACK TO SAVEPOINT {}",
}


class SQLiteDialect:
    """
    Double-quoted identifiers and ``?`` parameters.
    """

    name: Final[str] = "sqlite"
    capabilities: Final[DialectCapabilities] = DialectCapabilities()

    def quote_identifier(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def format_table(self, table_name: str) -> str:
        return self.quote_identifier(table_name)

    def parameter_placeholder(self, position: int | None = None) -> str:
        return "?"

    def limit_clause(self, limit: int | None, offset: int | None) -> str:
        if limit is None and offset is None:
            return ""
        clause = f"LIMIT {int(limit) if limit is not None else -1}"
        if offset is not None:
            clause += f" OFFSET {int(offset)}"
        return clause

    def auto_increment_keyword(self) -> str:
        return "AUTOINCREMENT"

    def render_column_definition(self, column: str, column_type: str, *, nullable: bool) -> str:
        definition = f"{self.quote_identifier(column)} {column_type}"
        return definition if nullable else f"{definition} NOT NULL"

    # Statements ----------------------------------------------------------
    def insert_sql(self, table: str, columns: Sequence[str]) -> str:
        if not columns:
            return f"INSERT INTO {self.format_table(table)} DEFAULT VALUES"
        column_list = ", ".join(self.quote_identifier(column) for column in columns)
        placeholders = ", ".join("?" for _ in columns)
        return f"INSERT INTO {self.format_table(table)} ({column_list}) VALUES ({placeholders})"

    def update_sql(self, table: str, columns: Sequence[str], key_column: str) -> str:
        assignments = ", ".join(self._equals(column) for column in columns)
        return f"UPDATE {self.format_table(table)} SET {assignments} WHERE {self._equals(key_column)}"

    def delete_sql(self, table: str, key_column: str) -> str:
        return f"DELETE FROM {self.format_table(table)} WHERE {self._equals(key_column)}"

    def select_sql(
        self,
        table: str,
        columns: Sequence[str],
        *,
        where: str = "",
        order_by: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> str:
        select_list = ", ".join(self.quote_identifier(column) for column in columns) or "*"
        parts = [f"SELECT {select_list} FROM {self.format_table(table)}"]
        if where:
            parts.append(f"WHERE {where}")
        if order_by:
            parts.append(f"ORDER BY {self.quote_identifier(order_by)}")
        limit_sql = self.limit_clause(limit, offset)
        if limit_sql:
            parts.append(limit_sql)
        return " ".join(parts)

    def savepoint_sql(self, action: str, name: str) -> str:
        try:
            template = _SAVEPOINT_ACTIONS[action]
        except KeyError as exc:
            raise ValueError(f"Unknown savepoint action '{action}'") from exc
        return template.format(self.quote_identifier(name))

    def table_exists_sql(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?"

    def _equals(self, column: str) -> str:
        return f"{self.quote_identifier(column)} = ?"
