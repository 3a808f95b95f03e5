"""
Dialect strategy interface: identifier quoting and statement rendering.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence


@dataclass(frozen=True)
class DialectCapabilities:
    supports_savepoints: bool = True


class Dialect(Protocol):
    """
    Renders the handful of statements the unit of work, the repository and
    the schema builder issue. Column and table names are passed unquoted.
    """

    @property
    def name(self) -> str: ...

    @property
    def capabilities(self) -> DialectCapabilities: ...

    def quote_identifier(self, identifier: str) -> str: ...

    def format_table(self, table_name: str) -> str: ...

    def parameter_placeholder(self, position: int | None = None) -> str: ...

    def limit_clause(self, limit: int | None, offset: int | None) -> str: ...

    def auto_increment_keyword(self) -> str: ...

    def render_column_definition(self, column: str, column_type: str, *, nullable: bool) -> str: ...

    def insert_sql(self, table: str, columns: Sequence[str]) -> str: ...

    def update_sql(self, table: str, columns: Sequence[str], key_column: str) -> str: ...

    def delete_sql(self, table: str, key_column: str) -> str: ...

    def select_sql(
        self,
        table: str,
        columns: Sequence[str],
        *,
        where: str = "",
        order_by: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> str: ...

    def savepoint_sql(self, action: str, name: str) -> str: ...

    def table_exists_sql(self) -> str: ...
