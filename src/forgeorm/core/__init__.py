"""
Mapping layer: entity base class, column fields and relations.
"""

from .fields import (
    AutoField,
    BooleanField,
    DateTimeField,
    Field,
    FieldError,
    FloatField,
    IntegerField,
    StringField,
    TextField,
)
from .model import Entity, EntityMeta, EntityOptions, ModelConfigurationError
from .proxy import EntityProxy, is_proxy, unwrap
from .relations import (
    BelongsTo,
    CascadeOption,
    HasMany,
    HasOne,
    Relation,
    RelationRegistry,
    RelationshipError,
    RelationType,
    relation_registry,
)

__all__ = [
    "AutoField",
    "BelongsTo",
    "BooleanField",
    "CascadeOption",
    "DateTimeField",
    "Entity",
    "EntityMeta",
    "EntityOptions",
    "EntityProxy",
    "Field",
    "FieldError",
    "FloatField",
    "HasMany",
    "HasOne",
    "IntegerField",
    "ModelConfigurationError",
    "Relation",
    "RelationRegistry",
    "RelationType",
    "RelationshipError",
    "StringField",
    "TextField",
    "is_proxy",
    "relation_registry",
    "unwrap",
]
