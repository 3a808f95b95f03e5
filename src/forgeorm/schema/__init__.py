"""
Schema resolution and DDL generation.
"""

from .builder import SchemaBuilder
from .resolver import (
    ColumnInfo,
    PropertyAccessor,
    RelationInfo,
    ResolvedEntitySchema,
    SchemaResolutionError,
    SchemaResolver,
)
from ..utils.naming import DefaultNamingStrategy, NamingStrategy, UnderscoreNamingStrategy

__all__ = [
    "ColumnInfo",
    "DefaultNamingStrategy",
    "NamingStrategy",
    "PropertyAccessor",
    "RelationInfo",
    "ResolvedEntitySchema",
    "SchemaBuilder",
    "SchemaResolutionError",
    "SchemaResolver",
    "UnderscoreNamingStrategy",
]
