"""
Adapter protocol, configuration and error hierarchy for ForgeORM.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

from ..dialects.base import Dialect


class AdapterError(RuntimeError):
    """Base error for adapter-related failures."""


class AdapterConfigurationError(AdapterError):
    """Raised when configuration or required dependencies are invalid."""


class AdapterConnectionError(AdapterError):
    """Raised when establishing or using a connection fails."""


class AdapterExecutionError(AdapterError):
    """
    Raised when a statement fails. Carries the offending SQL and parameters.
    """

    def __init__(self, message: str, *, sql: str | None = None, params: Sequence[Any] | None = None) -> None:
        super().__init__(message)
        self.sql = sql
        self.params = list(params) if params is not None else None


class ConstraintViolationError(AdapterExecutionError):
    """Raised for unique, not-null, check and foreign key violations."""


class ObjectNotFoundError(AdapterExecutionError):
    """Raised when a statement references a missing table or column."""


class AdapterTransactionError(AdapterError):
    """Raised when begin/commit/rollback fails at the driver level."""


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: str, *, key: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise AdapterConfigurationError(f"Invalid boolean value for '{key}': {value!r}")


@dataclass
class ConnectionConfig:
    """
    Normalized connection configuration for adapters.

    ``url`` is a ``sqlite:///path`` URL (``sqlite:///:memory:`` for an
    in-memory database). ``isolation_level`` selects the ``BEGIN`` mode
    (``DEFERRED``, ``IMMEDIATE`` or ``EXCLUSIVE``).
    """

    url: str = "sqlite:///:memory:"
    isolation_level: str | None = None
    timeout: float | None = None
    foreign_keys: bool = True
    source: str | None = None

    @classmethod
    def from_env(cls, env_var: str = "FORGEORM_DATABASE_URL", **kwargs: Any) -> "ConnectionConfig":
        """
        Build a config from environment variables.

        ``<env_var>`` holds the URL; ``<env_var>_TIMEOUT`` and
        ``<env_var>_FOREIGN_KEYS`` optionally override the matching fields.
        """

        value = os.getenv(env_var)
        if not value:
            raise AdapterConfigurationError(f"Environment variable {env_var} is not set")

        timeout = os.getenv(f"{env_var}_TIMEOUT")
        if timeout is not None and "timeout" not in kwargs:
            try:
                kwargs["timeout"] = float(timeout)
            except ValueError as exc:
                raise AdapterConfigurationError(f"Invalid float value for '{env_var}_TIMEOUT': {timeout!r}") from exc
        foreign_keys = os.getenv(f"{env_var}_FOREIGN_KEYS")
        if foreign_keys is not None and "foreign_keys" not in kwargs:
            kwargs["foreign_keys"] = _parse_bool(foreign_keys, key=f"{env_var}_FOREIGN_KEYS")
        return cls(url=value, source=env_var, **kwargs)

    def descriptive_label(self) -> str:
        if self.source:
            return f"{self.source} ({self.url})"
        return self.url


@dataclass
class QueryResult:
    """
    Outcome of one statement: fetched rows, affected row count, generated key.
    """

    rows: List[Dict[str, Any]] = field(default_factory=list)
    affected_rows: int = 0
    insert_id: Optional[int] = None

    @property
    def has_results(self) -> bool:
        return bool(self.rows)

    def first(self) -> Optional[Dict[str, Any]]:
        return self.rows[0] if self.rows else None

    def scalar(self) -> Any:
        row = self.first()
        if row is None:
            return None
        return next(iter(row.values()), None)


class DatabaseAdapter(Protocol):
    """
    Adapter interface exposing database operations used by higher layers.
    """

    dialect: Dialect

    def connect(self, config: ConnectionConfig) -> Any:
        """
        Establish a connection handle using the supplied configuration.
        """

    def close(self) -> None:
        """
        Close underlying resources. Implementations should be idempotent.
        """

    @property
    def is_connected(self) -> bool:
        """
        Whether a connection is currently open.
        """

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> QueryResult:
        """
        Execute a single SQL statement.
        """

    def begin(self) -> None:
        """
        Start a transaction.
        """

    def commit(self) -> None:
        """
        Commit the current transaction.
        """

    def rollback(self) -> None:
        """
        Roll back the current transaction.
        """
