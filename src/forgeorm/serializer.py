"""
Conversion between entities and flat column payloads.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from .schema.resolver import SchemaResolver

T = TypeVar("T")


class Serializer:
    """
    Normalizes entities to ``{property: value}`` dictionaries and builds
    entities back from database rows.
    """

    def __init__(self, resolver: Optional[SchemaResolver] = None) -> None:
        self.resolver = resolver or SchemaResolver()

    def normalize(self, entity: Any) -> Dict[str, Any]:
        """
        Return every mapped column of ``entity`` keyed by property name.

        Relation properties are left out and values are converted to their
        database representation.
        """
        schema = self.resolver.resolve(entity)
        payload: Dict[str, Any] = {}
        for name, column in schema.columns.items():
            payload[name] = column.to_db(schema.get_value(entity, name))
        return payload

    def denormalize(self, entity_type: Type[T], row: Mapping[str, Any]) -> T:
        """
        Build an entity from a row keyed by column name.

        Columns missing from ``row`` are left unset; unknown keys are ignored.
        """
        schema = self.resolver.resolve_by_type(entity_type)
        instance = entity_type()
        for name, column in schema.columns.items():
            if column.column_name in row:
                value = row[column.column_name]
            elif name in row:
                value = row[name]
            else:
                continue
            schema.set_value(instance, name, value)
        return instance
