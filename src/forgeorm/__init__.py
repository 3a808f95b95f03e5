"""
ForgeORM public package initialization.
"""

from .core.fields import (  # noqa: F401
    AutoField,
    BooleanField,
    DateTimeField,
    FloatField,
    IntegerField,
    StringField,
    TextField,
)
from .core.model import Entity, ModelConfigurationError  # noqa: F401
from .core.relations import BelongsTo, CascadeOption, HasMany, HasOne, RelationType  # noqa: F401
from .database import Database  # noqa: F401
from .hooks import hooks  # noqa: F401
from .orm import Orm  # noqa: F401
from .persistence import (  # noqa: F401
    EntityManager,
    EntityNotFoundError,
    MissingPrimaryKeyError,
    PersistenceError,
    UnresolvedDependencyError,
)
from .repository import Repository  # noqa: F401
from .schema import SchemaBuilder, SchemaResolver  # noqa: F401
from .serializer import Serializer  # noqa: F401

__all__ = [
    "AutoField",
    "BelongsTo",
    "BooleanField",
    "CascadeOption",
    "Database",
    "DateTimeField",
    "Entity",
    "EntityManager",
    "EntityNotFoundError",
    "FloatField",
    "HasMany",
    "HasOne",
    "IntegerField",
    "MissingPrimaryKeyError",
    "ModelConfigurationError",
    "Orm",
    "PersistenceError",
    "RelationType",
    "Repository",
    "SchemaBuilder",
    "SchemaResolver",
    "Serializer",
    "StringField",
    "TextField",
    "UnresolvedDependencyError",
    "hooks",
]
