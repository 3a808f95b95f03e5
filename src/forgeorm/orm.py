"""
ORM façade wiring the database, schema resolver and entity manager together.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, Optional, Type, TypeVar

from .database import Database
from .persistence.entity_manager import EntityManager
from .repository import Repository
from .schema.builder import SchemaBuilder
from .schema.resolver import ResolvedEntitySchema, SchemaResolver
from .serializer import Serializer
from .utils import get_logger

T = TypeVar("T")


class Orm:
    """
    Entry point bundling one :class:`Database` with one :class:`EntityManager`.

    Example::

        orm = Orm.from_url("sqlite:///app.db")
        orm.create_schema([User, Post])
        users = orm.get_repository(User)
        user = users.save(User(name="Ada"))
    """

    def __init__(
        self,
        database: Database,
        *,
        schema_resolver: Optional[SchemaResolver] = None,
        serializer: Optional[Serializer] = None,
        strict_ordering: bool = False,
        **entity_manager_options: Any,
    ) -> None:
        self.database = database
        self.schema_resolver = schema_resolver or SchemaResolver()
        self.serializer = serializer or Serializer(self.schema_resolver)
        self.entity_manager = EntityManager(
            database,
            serializer=self.serializer,
            schema_resolver=self.schema_resolver,
            strict_ordering=strict_ordering,
            **entity_manager_options,
        )
        self.schema_builder = SchemaBuilder(database.dialect, self.schema_resolver)
        self._repositories: Dict[Type, Repository] = {}
        self.logger = get_logger("orm")

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "Orm":
        return cls(Database.from_url(url), **kwargs)

    def get_repository(self, entity_type: Type[T]) -> Repository[T]:
        repository = self._repositories.get(entity_type)
        if repository is None:
            repository = Repository(entity_type, self.entity_manager)
            self._repositories[entity_type] = repository
        return repository

    def get_schema(self, entity_type: Type[T]) -> ResolvedEntitySchema[T]:
        return self.schema_resolver.resolve_by_type(entity_type)

    def create_schema(self, entity_types: Iterable[Type]) -> None:
        self.schema_builder.create_tables(self.database, entity_types)

    def drop_schema(self, entity_types: Iterable[Type]) -> None:
        self.schema_builder.drop_tables(self.database, entity_types)

    @contextmanager
    def transaction(self) -> Iterator[EntityManager]:
        """
        Run a block of entity work atomically.

        Pending operations are flushed when the block exits normally. If the
        block raises, the transaction is rolled back and pending operations
        are discarded.
        """
        try:
            with self.database.transaction():
                yield self.entity_manager
                self.entity_manager.flush()
        except BaseException:
            self.entity_manager.clear()
            raise

    def close(self) -> None:
        self.entity_manager.clear()
        self.database.close()

    def __enter__(self) -> "Orm":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
