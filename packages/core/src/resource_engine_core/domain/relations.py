"""Relation descriptors — static, read-only declarations of associations.

A descriptor names the relation, its kind and target entity type.  Key
columns are optional; :meth:`RelationDescriptor.keys` resolves them
against the parent type using the conventional snake-case scheme so that
every storage adapter agrees on the same layout::

    tags = RelationDescriptor(
        name="tags",
        kind=RelationKind.MORPH_TO_MANY,
        target=Tag,
        morph_name="taggable",
        pivot_fillable={"meta"},
    )
    keys = tags.keys(Post)
    keys.pivot_table        # "taggables"
    keys.foreign_key        # "taggable_id"
    keys.morph_class        # "Post"
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from ..primitives.exceptions import InvalidPivotOperationError
from .entity import morph_class, snake_case


class RelationKind(str, Enum):
    """Shape of an association between a parent and its related entities."""

    BELONGS_TO = "BelongsTo"
    HAS_ONE = "HasOne"
    HAS_MANY = "HasMany"
    MORPH_ONE = "MorphOne"
    MORPH_MANY = "MorphMany"
    BELONGS_TO_MANY = "BelongsToMany"
    MORPH_TO_MANY = "MorphToMany"
    HAS_MANY_THROUGH = "HasManyThrough"

    @property
    def has_pivot(self) -> bool:
        return self in PIVOT_KINDS

    @property
    def is_morph(self) -> bool:
        return self in MORPH_KINDS

    @property
    def is_single(self) -> bool:
        """True when the relation resolves to at most one entity."""
        return self in SINGLE_KINDS


PIVOT_KINDS = frozenset({RelationKind.BELONGS_TO_MANY, RelationKind.MORPH_TO_MANY})
MORPH_KINDS = frozenset(
    {RelationKind.MORPH_ONE, RelationKind.MORPH_MANY, RelationKind.MORPH_TO_MANY}
)
SINGLE_KINDS = frozenset(
    {RelationKind.BELONGS_TO, RelationKind.HAS_ONE, RelationKind.MORPH_ONE}
)


@dataclass(frozen=True)
class RelationKeys:
    """Resolved key layout of a relation for one parent type.

    Attributes:
        foreign_key: Column holding the parent reference.  On the parent
            for ``BelongsTo``, on the target for has-one/has-many/morph,
            on the pivot table for many-to-many, on the intermediate
            entity for ``HasManyThrough``.
        owner_key: Key the foreign key points at (parent key, or target
            key for ``BelongsTo``).
        morph_type: Column holding the polymorphic type name.
        morph_class: Value written to / matched in ``morph_type``.
        pivot_table: Join table name (many-to-many kinds only).
        related_pivot_key: Pivot column referencing the target.
        through: Intermediate entity type (``HasManyThrough`` only).
        second_key: Target column referencing the intermediate entity.
    """

    foreign_key: str
    owner_key: str = "id"
    morph_type: str | None = None
    morph_class: str | None = None
    pivot_table: str | None = None
    related_pivot_key: str | None = None
    through: type[Any] | None = None
    second_key: str | None = None


class RelationDescriptor(BaseModel):
    """Static declaration of one named relation.

    ``pivot_fillable`` is only meaningful for the two many-to-many kinds
    and is rejected elsewhere.  ``morph_inverse`` flips a ``MorphToMany``
    so that the polymorphic columns describe the target instead of the
    parent (tags → posts rather than posts → tags).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    kind: RelationKind
    target: type[Any]
    pivot_fillable: frozenset[str] = frozenset()
    foreign_key: str | None = None
    owner_key: str = "id"
    morph_name: str | None = None
    morph_inverse: bool = False
    pivot_table: str | None = None
    related_pivot_key: str | None = None
    through: type[Any] | None = None
    second_key: str | None = None

    @model_validator(mode="after")
    def _check_kind_specific_fields(self) -> RelationDescriptor:
        if self.pivot_fillable and not self.kind.has_pivot:
            raise ValueError(
                f"pivot_fillable is only allowed on many-to-many relations, "
                f"{self.name!r} is {self.kind.value}"
            )
        if self.kind.is_morph and not self.morph_name:
            raise ValueError(f"{self.kind.value} relation {self.name!r} needs morph_name")
        if self.morph_inverse and self.kind is not RelationKind.MORPH_TO_MANY:
            raise ValueError("morph_inverse only applies to MorphToMany relations")
        if self.kind is RelationKind.HAS_MANY_THROUGH and self.through is None:
            raise ValueError(f"HasManyThrough relation {self.name!r} needs through")
        return self

    @property
    def has_pivot(self) -> bool:
        return self.kind.has_pivot

    def ensure_pivot(self, operation: str | None = None) -> None:
        """Raise :class:`InvalidPivotOperationError` unless many-to-many."""
        if not self.has_pivot:
            raise InvalidPivotOperationError(self.name, self.kind.value, operation)

    def keys(self, parent: type[Any]) -> RelationKeys:
        """Resolve the key layout of this relation for *parent*."""
        parent_name = snake_case(parent.__name__)
        target_name = snake_case(self.target.__name__)
        kind = self.kind

        if kind is RelationKind.BELONGS_TO:
            return RelationKeys(
                foreign_key=self.foreign_key or f"{self.name}_id",
                owner_key=self.owner_key,
            )
        if kind in (RelationKind.HAS_ONE, RelationKind.HAS_MANY):
            return RelationKeys(
                foreign_key=self.foreign_key or f"{parent_name}_id",
                owner_key=self.owner_key,
            )
        if kind in (RelationKind.MORPH_ONE, RelationKind.MORPH_MANY):
            return RelationKeys(
                foreign_key=self.foreign_key or f"{self.morph_name}_id",
                owner_key=self.owner_key,
                morph_type=f"{self.morph_name}_type",
                morph_class=morph_class(parent),
            )
        if kind is RelationKind.BELONGS_TO_MANY:
            return RelationKeys(
                foreign_key=self.foreign_key or f"{parent_name}_id",
                owner_key=self.owner_key,
                pivot_table=self.pivot_table
                or "_".join(sorted((parent_name, target_name))),
                related_pivot_key=self.related_pivot_key or f"{target_name}_id",
            )
        if kind is RelationKind.MORPH_TO_MANY:
            if self.morph_inverse:
                return RelationKeys(
                    foreign_key=self.foreign_key or f"{parent_name}_id",
                    owner_key=self.owner_key,
                    morph_type=f"{self.morph_name}_type",
                    morph_class=morph_class(self.target),
                    pivot_table=self.pivot_table or f"{self.morph_name}s",
                    related_pivot_key=self.related_pivot_key
                    or f"{self.morph_name}_id",
                )
            return RelationKeys(
                foreign_key=self.foreign_key or f"{self.morph_name}_id",
                owner_key=self.owner_key,
                morph_type=f"{self.morph_name}_type",
                morph_class=morph_class(parent),
                pivot_table=self.pivot_table or f"{self.morph_name}s",
                related_pivot_key=self.related_pivot_key or f"{target_name}_id",
            )
        # HasManyThrough
        assert self.through is not None
        return RelationKeys(
            foreign_key=self.foreign_key or f"{parent_name}_id",
            owner_key=self.owner_key,
            through=self.through,
            second_key=self.second_key or f"{snake_case(self.through.__name__)}_id",
        )
