"""
Transaction stack for one adapter connection.
"""

from __future__ import annotations

import itertools
from contextlib import contextmanager
from typing import Iterator, List, Optional

from ..adapters.base import DatabaseAdapter
from ..dialects.base import Dialect
from ..utils import get_logger


class TransactionError(RuntimeError):
    pass


class TransactionManager:
    """
    Tracks nesting depth for :meth:`Database.transaction`.

    The outermost level is a real ``BEGIN``/``COMMIT``/``ROLLBACK``; every
    inner level is a named savepoint, so an inner failure only undoes its own
    statements. Entries on the stack are ``None`` for the outermost level and
    the savepoint name otherwise.
    """

    def __init__(self, adapter: DatabaseAdapter, dialect: Dialect) -> None:
        self.adapter = adapter
        self.dialect = dialect
        self._levels: List[Optional[str]] = []
        self._names = (f"forge_sp_{n}" for n in itertools.count(1))
        self.logger = get_logger("persistence.transaction")

    @property
    def depth(self) -> int:
        return len(self._levels)

    @property
    def active(self) -> bool:
        return bool(self._levels)

    def begin(self) -> None:
        if not self._levels:
            self.adapter.begin()
            self._levels.append(None)
            self.logger.debug("BEGIN")
            return
        if not self.dialect.capabilities.supports_savepoints:
            raise TransactionError(f"{self.dialect.name} cannot nest transactions")
        savepoint = next(self._names)
        self.adapter.execute(self.dialect.savepoint_sql("create", savepoint))
        self._levels.append(savepoint)

    def commit(self) -> None:
        savepoint = self._pop("commit")
        if savepoint is None:
            self.adapter.commit()
            self.logger.debug("COMMIT")
        else:
            self.adapter.execute(self.dialect.savepoint_sql("release", savepoint))

    def rollback(self) -> None:
        savepoint = self._pop("roll back")
        if savepoint is None:
            self.adapter.rollback()
            self.logger.debug("ROLLBACK")
            return
        self.adapter.execute(self.dialect.savepoint_sql("rollback", savepoint))
        self.adapter.execute(self.dialect.savepoint_sql("release", savepoint))

    @contextmanager
    def transaction(self) -> Iterator[None]:
        self.begin()
        try:
            yield
        except BaseException:
            self.rollback()
            raise
        self.commit()

    def reset(self) -> None:
        """Forget the stack, e.g. after the connection was closed."""
        self._levels.clear()

    def _pop(self, action: str) -> Optional[str]:
        if not self._levels:
            raise TransactionError(f"No active transaction to {action}.")
        return self._levels.pop()
