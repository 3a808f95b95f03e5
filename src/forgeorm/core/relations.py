"""
Relationship descriptors and the registry resolving string references.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple, Type, cast

if TYPE_CHECKING:
    from .model import Entity


class RelationshipError(RuntimeError):
    pass


class RelationType(str, enum.Enum):
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    BELONGS_TO = "belongs_to"


class CascadeOption(str, enum.Enum):
    PERSIST = "persist"
    REMOVE = "remove"
    DETACH = "detach"
    ALL = "all"


class Relation:
    """
    Base descriptor for a relation property.

    ``foreign_key`` and ``local_key`` keep their usual meaning: for owning
    relations (has-one/has-many) the foreign key is the property on the
    related entity that stores this entity's key, for belongs-to relations
    the local key is the property on this entity that stores the parent's key.
    """

    relation_type: RelationType
    many = False

    _creation_counter = 0

    def __init__(
        self,
        to: Type | str,
        *,
        foreign_key: str,
        local_key: str = "id",
        cascade: Iterable[CascadeOption | str] = (),
    ) -> None:
        self.to = to
        self.foreign_key = foreign_key
        self.local_key = local_key
        self.cascade = frozenset(CascadeOption(option) for option in cascade)
        self.remote_model: Optional[Type] = to if isinstance(to, type) else None
        self.model: Optional[Type] = None
        self.name: Optional[str] = None
        self.creation_counter = Relation._creation_counter
        Relation._creation_counter += 1

    def __repr__(self) -> str:
        target = self.to if isinstance(self.to, str) else self.to.__name__
        return f"<{self.__class__.__name__} {self.name} -> {target}>"

    # Descriptor protocol -------------------------------------------------
    def __get__(self, instance: object | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        entity = cast("Entity", instance)
        return entity._related_values.get(self.require_name())

    def __set__(self, instance: object, value: Any) -> None:
        entity = cast("Entity", instance)
        entity._related_values[self.require_name()] = value

    # Metadata helpers ----------------------------------------------------
    def contribute_to_class(self, model: Type, name: str) -> None:
        self.model = model
        self.name = name
        setattr(model, name, self)

    def require_name(self) -> str:
        if self.name is None:
            raise RelationshipError("Relation name is not set.")
        return self.name

    def resolve_model(self, model: Type) -> None:
        self.remote_model = model

    def require_remote_model(self) -> Type:
        if self.remote_model is None:
            raise RelationshipError(
                f"Relation '{self.name}' on '{getattr(self.model, '__name__', '?')}' "
                f"references unknown entity {self.to!r}."
            )
        return self.remote_model

    @property
    def is_inverse(self) -> bool:
        return self.relation_type is RelationType.BELONGS_TO

    def _cascades(self, option: CascadeOption) -> bool:
        return option in self.cascade or CascadeOption.ALL in self.cascade

    @property
    def cascade_persist(self) -> bool:
        return self._cascades(CascadeOption.PERSIST)

    @property
    def cascade_remove(self) -> bool:
        return self._cascades(CascadeOption.REMOVE)

    @property
    def cascade_detach(self) -> bool:
        return self._cascades(CascadeOption.DETACH)


class HasOne(Relation):
    relation_type = RelationType.HAS_ONE


class HasMany(Relation):
    relation_type = RelationType.HAS_MANY
    many = True

    def __get__(self, instance: object | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        entity = cast("Entity", instance)
        return entity._related_values.setdefault(self.require_name(), [])

    def __set__(self, instance: object, value: Any) -> None:
        entity = cast("Entity", instance)
        entity._related_values[self.require_name()] = list(value) if value is not None else []


class BelongsTo(Relation):
    relation_type = RelationType.BELONGS_TO

    def __init__(
        self,
        to: Type | str,
        *,
        local_key: str,
        foreign_key: str = "id",
        cascade: Iterable[CascadeOption | str] = (),
    ) -> None:
        super().__init__(to, foreign_key=foreign_key, local_key=local_key, cascade=cascade)


class RelationRegistry:
    """
    Resolves relation targets given by class name once the target is defined.
    """

    def __init__(self) -> None:
        self.models: Dict[str, Type] = {}
        self.pending: List[Tuple[Type, Relation]] = []

    def register_model(self, model: Type) -> None:
        self.models[model.__name__] = model
        self._resolve_pending()

    def register_relation(self, model: Type, relation: Relation) -> None:
        target = self._resolve_target(relation.to)
        if target is None:
            self.pending.append((model, relation))
            return
        relation.resolve_model(target)

    def get(self, label: str) -> Optional[Type]:
        return self.models.get(label.split(".")[-1])

    def _resolve_pending(self) -> None:
        unresolved = []
        for model, relation in self.pending:
            target = self._resolve_target(relation.to)
            if target is None:
                unresolved.append((model, relation))
                continue
            relation.resolve_model(target)
        self.pending = unresolved

    def _resolve_target(self, target: Type | str) -> Optional[Type]:
        if isinstance(target, type):
            return target
        return self.get(target)


relation_registry = RelationRegistry()
