"""Domain: entity helpers and relation descriptors."""

from __future__ import annotations

from .entity import (
    Record,
    entity_key,
    fill,
    fillable_attributes,
    morph_class,
    snake_case,
)
from .relations import (
    MORPH_KINDS,
    PIVOT_KINDS,
    SINGLE_KINDS,
    RelationDescriptor,
    RelationKeys,
    RelationKind,
)

__all__ = [
    "MORPH_KINDS",
    "PIVOT_KINDS",
    "SINGLE_KINDS",
    "Record",
    "RelationDescriptor",
    "RelationKeys",
    "RelationKind",
    "entity_key",
    "fill",
    "fillable_attributes",
    "morph_class",
    "snake_case",
]
