"""
SQLite database adapter implementation.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, List, Sequence

from ..dialects.sqlite import SQLiteDialect
from ..utils import get_logger, time_call
from .base import (
    AdapterConnectionError,
    AdapterExecutionError,
    AdapterTransactionError,
    ConnectionConfig,
    ConstraintViolationError,
    DatabaseAdapter,
    ObjectNotFoundError,
    QueryResult,
)

_SENSITIVE_TOKENS = ("password", "secret", "token")


@dataclass(slots=True)
class SQLiteConnectionState:
    connection: sqlite3.Connection
    isolation_level: str | None


class SQLiteAdapter(DatabaseAdapter):
    """
    Adapter wrapping the Python stdlib sqlite3 module.

    The connection runs with ``isolation_level=None`` so transactions are
    controlled only through :meth:`begin`, :meth:`commit` and :meth:`rollback`.
    """

    def __init__(self, *, slow_query_ms: float = 200) -> None:
        self.dialect = SQLiteDialect()
        self.slow_query_ms = slow_query_ms
        self._state: SQLiteConnectionState | None = None
        self.logger = get_logger("adapters.sqlite")

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        if self._state:
            return self._state.connection
        path = self._normalize_path(config.url)
        timeout = config.timeout if config.timeout is not None else 5.0
        try:
            connection = sqlite3.connect(path, isolation_level=None, timeout=timeout, check_same_thread=False)
        except sqlite3.Error as exc:
            raise AdapterConnectionError(
                f"Failed to open SQLite database {config.descriptive_label()}: {exc}"
            ) from exc
        connection.row_factory = sqlite3.Row
        if config.foreign_keys:
            connection.execute("PRAGMA foreign_keys = ON")

        self._state = SQLiteConnectionState(connection, config.isolation_level)
        self.logger.debug("Connected to %s", config.descriptive_label())
        return connection

    def close(self) -> None:
        if self._state:
            self._state.connection.close()
            self._state = None

    @property
    def is_connected(self) -> bool:
        return self._state is not None

    @property
    def in_transaction(self) -> bool:
        return bool(self._state and self._state.connection.in_transaction)

    def _ensure_connection(self) -> sqlite3.Connection:
        if not self._state:
            raise AdapterConnectionError("SQLiteAdapter is not connected. Call connect() first.")
        return self._state.connection

    # ------------------------------------------------------------------ #
    # Execution helpers
    # ------------------------------------------------------------------ #
    def execute(self, sql: str, params: Sequence[Any] | None = None) -> QueryResult:
        connection = self._ensure_connection()
        bound = self._prepare_params(params or ())
        with time_call("sqlite.execute", self.logger, sql=sql, params=self._redact(bound), threshold_ms=self.slow_query_ms):
            try:
                cursor = connection.execute(sql, bound)
            except sqlite3.Error as exc:
                raise self._translate_error(exc, sql, bound) from exc
            rows = [dict(row) for row in cursor.fetchall()] if cursor.description else []
        insert_id = cursor.lastrowid if cursor.lastrowid else None
        return QueryResult(rows=rows, affected_rows=max(cursor.rowcount, 0), insert_id=insert_id)

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def begin(self) -> None:
        connection = self._ensure_connection()
        mode = self._state.isolation_level if self._state else None
        statement = f"BEGIN {mode}" if mode else "BEGIN"
        try:
            connection.execute(statement)
        except sqlite3.Error as exc:
            raise AdapterTransactionError(f"Failed to begin transaction: {exc}") from exc

    def commit(self) -> None:
        connection = self._ensure_connection()
        try:
            connection.commit()
        except sqlite3.Error as exc:
            raise AdapterTransactionError(f"Failed to commit transaction: {exc}") from exc

    def rollback(self) -> None:
        connection = self._ensure_connection()
        try:
            connection.rollback()
        except sqlite3.Error as exc:
            raise AdapterTransactionError(f"Failed to roll back transaction: {exc}") from exc

    # ------------------------------------------------------------------ #
    @staticmethod
    def _normalize_path(url: str) -> str:
        if url in ("sqlite:///:memory:", "sqlite://", ":memory:", ""):
            return ":memory:"
        prefix = "sqlite:///"
        if url.startswith(prefix):
            return url[len(prefix) :]
        return url

    @staticmethod
    def _prepare_params(params: Sequence[Any]) -> List[Any]:
        prepared = []
        for value in params:
            if isinstance(value, (datetime, date)):
                prepared.append(value.isoformat())
            else:
                prepared.append(value)
        return prepared

    @staticmethod
    def _translate_error(exc: sqlite3.Error, sql: str, params: Sequence[Any]) -> AdapterExecutionError:
        message = str(exc)
        lowered = message.lower()
        if isinstance(exc, sqlite3.IntegrityError):
            return ConstraintViolationError(message, sql=sql, params=params)
        if "no such table" in lowered or "no such column" in lowered:
            return ObjectNotFoundError(message, sql=sql, params=params)
        return AdapterExecutionError(message, sql=sql, params=params)

    @staticmethod
    def _redact(params: Sequence[Any]) -> List[Any]:
        redacted = []
        for value in params:
            if isinstance(value, str) and any(token in value.lower() for token in _SENSITIVE_TOKENS):
                redacted.append("***")
            else:
                redacted.append(value)
        return redacted
