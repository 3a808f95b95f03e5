"""
Schema resolution: turns entity mapping metadata into descriptor tables.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Optional, Type, TypeVar

from ..core.fields import DateTimeField, Field
from ..core.model import Entity
from ..core.proxy import EntityProxy, unwrap
from ..core.relations import Relation, RelationshipError, RelationType, relation_registry
from ..utils import get_logger
from ..utils.naming import DefaultNamingStrategy, NamingStrategy

T = TypeVar("T")


class SchemaResolutionError(RuntimeError):
    """Raised when a type cannot be resolved to an entity schema."""


@dataclass(frozen=True)
class PropertyAccessor:
    """
    Getter/setter pair for one mapped property.

    Accessors read and write the entity directly and never go through a
    tracking proxy.
    """

    name: str
    getter: Callable[[Any], Any]
    setter: Callable[[Any, Any], None]

    def get_value(self, entity: Any) -> Any:
        return self.getter(unwrap(entity))

    def set_value(self, entity: Any, value: Any) -> None:
        self.setter(unwrap(entity), value)


@dataclass(frozen=True)
class ColumnInfo:
    property_name: str
    column_name: str
    field: Field

    @property
    def is_primary_key(self) -> bool:
        return self.field.primary_key

    @property
    def is_auto_increment(self) -> bool:
        return self.field.auto_increment

    @property
    def is_nullable(self) -> bool:
        return self.field.nullable and not self.field.primary_key

    @property
    def is_unique(self) -> bool:
        return self.field.unique

    @property
    def db_type(self) -> str | None:
        return self.field.db_type

    @property
    def auto_now(self) -> bool:
        return isinstance(self.field, DateTimeField) and self.field.auto_now

    @property
    def auto_now_add(self) -> bool:
        return isinstance(self.field, DateTimeField) and self.field.auto_now_add

    def to_db(self, value: Any) -> Any:
        return self.field.to_db(value)


@dataclass(frozen=True)
class RelationInfo:
    property_name: str
    relation: Relation
    related_type: Type

    @property
    def type(self) -> RelationType:
        return self.relation.relation_type

    @property
    def foreign_key(self) -> str:
        return self.relation.foreign_key

    @property
    def local_key(self) -> str:
        return self.relation.local_key

    @property
    def is_inverse(self) -> bool:
        return self.relation.is_inverse

    @property
    def many(self) -> bool:
        return self.relation.many

    @property
    def cascade_persist(self) -> bool:
        return self.relation.cascade_persist

    @property
    def cascade_remove(self) -> bool:
        return self.relation.cascade_remove

    @property
    def cascade_detach(self) -> bool:
        return self.relation.cascade_detach

    def related_entities(self, value: Any) -> list[Any]:
        """
        Normalise a relation value to a list of non-null related entities.
        """
        if value is None:
            return []
        if self.many:
            return [item for item in value if item is not None]
        return [value]


@dataclass
class ResolvedEntitySchema(Generic[T]):
    """
    Everything the persistence engine needs to know about one entity type.
    """

    entity_type: Type[T]
    table_name: str
    columns: "OrderedDict[str, ColumnInfo]"
    relations: "OrderedDict[str, RelationInfo]"
    accessors: Dict[str, PropertyAccessor] = field(default_factory=dict)
    proxy_factory: Optional[Callable[..., Any]] = None

    @property
    def primary_key(self) -> str:
        return self.primary_key_column.property_name

    @property
    def primary_key_column(self) -> ColumnInfo:
        for column in self.columns.values():
            if column.is_primary_key:
                return column
        raise SchemaResolutionError(f"No primary key found in {self.entity_type.__name__}")

    @property
    def created_at(self) -> Optional[str]:
        return next((c.property_name for c in self.columns.values() if c.auto_now_add), None)

    @property
    def updated_at(self) -> Optional[str]:
        return next((c.property_name for c in self.columns.values() if c.auto_now), None)

    def is_column(self, property_name: str) -> bool:
        return property_name in self.columns

    def is_relation(self, property_name: str) -> bool:
        return property_name in self.relations

    def get_column_name(self, property_name: str) -> str:
        try:
            return self.columns[property_name].column_name
        except KeyError as exc:
            raise SchemaResolutionError(
                f"Column {property_name} not found in {self.entity_type.__name__}"
            ) from exc

    def accessor(self, property_name: str) -> Optional[PropertyAccessor]:
        return self.accessors.get(property_name)

    def get_value(self, entity: Any, property_name: str) -> Any:
        accessor = self.accessors.get(property_name)
        if accessor is None:
            return None
        return accessor.get_value(entity)

    def set_value(self, entity: Any, property_name: str, value: Any) -> bool:
        accessor = self.accessors.get(property_name)
        if accessor is None:
            return False
        accessor.set_value(entity, value)
        return True

    def get_primary_key_value(self, entity: Any) -> Any:
        return self.get_value(entity, self.primary_key)


def _field_getter(name: str) -> Callable[[Any], Any]:
    return lambda entity: getattr(entity, name)


def _field_setter(name: str) -> Callable[[Any, Any], None]:
    def setter(entity: Any, value: Any) -> None:
        setattr(entity, name, value)

    return setter


class SchemaResolver:
    """
    Resolves and caches :class:`ResolvedEntitySchema` objects per entity type.
    """

    def __init__(self, naming_strategy: Optional[NamingStrategy] = None) -> None:
        self.naming_strategy: NamingStrategy = naming_strategy or DefaultNamingStrategy()
        self._cache: Dict[Type, ResolvedEntitySchema] = {}
        self.logger = get_logger("schema.resolver")

    def resolve(self, entity_or_type: Any) -> ResolvedEntitySchema:
        if isinstance(entity_or_type, type):
            return self.resolve_by_type(entity_or_type)
        return self.resolve_by_type(type(unwrap(entity_or_type)))

    def resolve_by_type(self, entity_type: Type[T]) -> ResolvedEntitySchema[T]:
        cached = self._cache.get(entity_type)
        if cached is not None:
            return cached

        if not (isinstance(entity_type, type) and issubclass(entity_type, Entity)) or entity_type is Entity:
            raise SchemaResolutionError(f"{entity_type!r} is not a mapped entity")
        options = entity_type._meta
        if options.abstract:
            raise SchemaResolutionError(f"{entity_type.__name__} is abstract and cannot be persisted")

        columns: "OrderedDict[str, ColumnInfo]" = OrderedDict()
        accessors: Dict[str, PropertyAccessor] = {}
        for field_obj in options.get_fields():
            name = field_obj.require_name()
            column_name = field_obj.db_column or self.naming_strategy.column_name(name)
            columns[name] = ColumnInfo(property_name=name, column_name=column_name, field=field_obj)
            accessors[name] = PropertyAccessor(name, _field_getter(name), _field_setter(name))

        relations: "OrderedDict[str, RelationInfo]" = OrderedDict()
        for relation in options.get_relations():
            name = relation.require_name()
            if relation.remote_model is None and isinstance(relation.to, str):
                target = relation_registry.get(relation.to)
                if target is not None:
                    relation.resolve_model(target)
            try:
                related_type = relation.require_remote_model()
            except RelationshipError as exc:
                raise SchemaResolutionError(str(exc)) from exc
            relations[name] = RelationInfo(property_name=name, relation=relation, related_type=related_type)
            accessors[name] = PropertyAccessor(name, _field_getter(name), _field_setter(name))

        schema: ResolvedEntitySchema[T] = ResolvedEntitySchema(
            entity_type=entity_type,
            table_name=options.table_name or self.naming_strategy.table_name(entity_type.__name__),
            columns=columns,
            relations=relations,
            accessors=accessors,
            proxy_factory=EntityProxy if options.track_changes else None,
        )
        if not any(column.is_primary_key for column in columns.values()):
            raise SchemaResolutionError(f"No primary key found in {entity_type.__name__}")
        self._cache[entity_type] = schema
        self.logger.debug("Resolved schema for %s (table %s)", entity_type.__name__, schema.table_name)
        return schema

    def resolve_by_table_name(self, table_name: str) -> Optional[ResolvedEntitySchema]:
        for schema in self._cache.values():
            if schema.table_name == table_name:
                return schema
        for model in list(relation_registry.models.values()):
            try:
                schema = self.resolve_by_type(model)
            except SchemaResolutionError:
                continue
            if schema.table_name == table_name:
                return schema
        return None

    def clear_cache(self) -> None:
        self._cache.clear()

    @property
    def all_schemas(self) -> list[ResolvedEntitySchema]:
        return list(self._cache.values())
