"""
Entity base class and the metaclass that builds per-type mapping tables.
"""

from __future__ import annotations

import copy
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Type

from .fields import AutoField, Field
from .relations import Relation, relation_registry


class ModelConfigurationError(Exception):
    """Raised when an entity class is misconfigured."""


@dataclass
class EntityOptions:
    """
    Mapping metadata collected by :class:`EntityMeta`, built once per class.
    """

    model: Type["Entity"]
    table_name: str = ""
    abstract: bool = False
    track_changes: bool = True
    fields: "OrderedDict[str, Field]" = field(default_factory=OrderedDict)
    relations: "OrderedDict[str, Relation]" = field(default_factory=OrderedDict)
    primary_key: Optional[Field] = None

    def add_field(self, field_obj: Field) -> None:
        name = field_obj.require_name()
        if name in self.fields or name in self.relations:
            raise ModelConfigurationError(
                f"Duplicate property '{name}' on entity '{self.model.__name__}'"
            )
        self.fields[name] = field_obj
        if field_obj.primary_key:
            if self.primary_key and self.primary_key is not field_obj:
                raise ModelConfigurationError(
                    f"Multiple primary keys defined on entity '{self.model.__name__}'"
                )
            self.primary_key = field_obj

    def add_relation(self, relation: Relation) -> None:
        name = relation.require_name()
        if name in self.fields or name in self.relations:
            raise ModelConfigurationError(
                f"Duplicate property '{name}' on entity '{self.model.__name__}'"
            )
        self.relations[name] = relation

    def get_fields(self) -> Iterable[Field]:
        return self.fields.values()

    def get_relations(self) -> Iterable[Relation]:
        return self.relations.values()


class EntityMeta(type):
    """
    Collects declared fields and relations into ``cls._meta``.
    """

    def __new__(mcls, name: str, bases: tuple[type, ...], attrs: Dict[str, Any]) -> "EntityMeta":
        if not any(isinstance(base, EntityMeta) for base in bases):
            return super().__new__(mcls, name, bases, attrs)

        declared: Dict[str, Field | Relation] = {}
        for attr_name, value in list(attrs.items()):
            if isinstance(value, (Field, Relation)):
                declared[attr_name] = attrs.pop(attr_name)

        cls = super().__new__(mcls, name, bases, attrs)

        meta = attrs.get("Meta")
        options = EntityOptions(
            model=cls,
            table_name=getattr(meta, "table", None) or "",
            abstract=getattr(meta, "abstract", False),
            track_changes=getattr(meta, "track_changes", True),
        )
        cls._meta = options

        inherited: Dict[str, Field | Relation] = {}
        for base in bases:
            base_options = getattr(base, "_meta", None)
            if base_options is None or not base_options.abstract:
                continue
            for member in [*base_options.get_fields(), *base_options.get_relations()]:
                inherited.setdefault(member.require_name(), copy.copy(member))
        for attr_name, member in inherited.items():
            declared.setdefault(attr_name, member)

        for attr_name, member in sorted(declared.items(), key=lambda item: item[1].creation_counter):
            member.contribute_to_class(cls, attr_name)
            if isinstance(member, Relation):
                options.add_relation(member)
                relation_registry.register_relation(cls, member)
            else:
                options.add_field(member)

        if not options.primary_key and not options.abstract:
            if "id" in options.fields:
                raise ModelConfigurationError(
                    f"Entity '{name}' defines a field named 'id' but no primary key. "
                    "Either set primary_key=True on that field or define a different name."
                )
            auto_field = AutoField()
            auto_field.contribute_to_class(cls, "id")
            options.add_field(auto_field)
            options.fields.move_to_end("id", last=False)

        if not options.abstract:
            relation_registry.register_model(cls)
        return cls


class Entity(metaclass=EntityMeta):
    """
    Base class for mapped entities.

    Entities are plain data containers; persistence goes through an
    :class:`~forgeorm.persistence.EntityManager`.
    """

    _meta: EntityOptions

    def __init__(self, **kwargs: Any) -> None:
        self._field_values: Dict[str, Any] = {}
        self._related_values: Dict[str, Any] = {}

        for key, value in kwargs.items():
            if key not in self._meta.fields and key not in self._meta.relations:
                raise TypeError(f"{self.__class__.__name__} has no property '{key}'")
            setattr(self, key, value)

    def __repr__(self) -> str:
        parts = ", ".join(
            f"{name}={self._field_values[name]!r}" for name in self._meta.fields if name in self._field_values
        )
        return f"<{self.__class__.__name__} {parts}>"

    @property
    def pk(self) -> Any:
        if not self._meta.primary_key:
            raise ModelConfigurationError(
                f"Entity '{self.__class__.__name__}' does not define a primary key."
            )
        return getattr(self, self._meta.primary_key.require_name())
