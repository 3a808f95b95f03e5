"""
Database façade used by the persistence engine.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Optional, TypeVar

from .adapters.base import ConnectionConfig, DatabaseAdapter, QueryResult
from .adapters.sqlite import SQLiteAdapter
from .dialects.base import Dialect
from .persistence.transaction import TransactionManager
from .utils import get_logger

T = TypeVar("T")


class Database:
    """
    Owns one adapter connection and its transaction stack.

    ``execute`` runs a single statement; ``transaction`` wraps a block so that
    it either commits as a whole or is rolled back when it raises.
    """

    def __init__(
        self,
        adapter: Optional[DatabaseAdapter] = None,
        *,
        config: Optional[ConnectionConfig] = None,
        connect: bool = True,
    ) -> None:
        self.adapter: DatabaseAdapter = adapter or SQLiteAdapter()
        self.config = config or ConnectionConfig()
        self.transaction_manager = TransactionManager(self.adapter, self.adapter.dialect)
        self.logger = get_logger("database")
        if connect:
            self.connect()

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "Database":
        return cls(config=ConnectionConfig(url=url, **kwargs))

    @classmethod
    def from_env(cls, env_var: str = "FORGEORM_DATABASE_URL") -> "Database":
        return cls(config=ConnectionConfig.from_env(env_var))

    @property
    def dialect(self) -> Dialect:
        return self.adapter.dialect

    @property
    def in_transaction(self) -> bool:
        return self.transaction_manager.active

    def connect(self) -> None:
        if not self.adapter.is_connected:
            self.adapter.connect(self.config)

    def close(self) -> None:
        self.transaction_manager.reset()
        self.adapter.close()

    def __enter__(self) -> "Database":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    def execute(self, sql: str, params: Iterable[Any] | None = None) -> QueryResult:
        return self.adapter.execute(sql, list(params or []))

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """
        Run the enclosed block atomically. Nested blocks use savepoints.
        """
        with self.transaction_manager.transaction():
            yield self

    def run_in_transaction(self, body: Callable[["Database"], T]) -> T:
        with self.transaction() as database:
            return body(database)
