"""InMemoryStorage — dict-backed storage port for tests and prototypes.

Entities live in one dict per entity type, keyed by ``id`` (assigned from
a per-type counter on first save).  Pivot rows live in one list per pivot
table name and use the same column names a relational schema would.

Relations to eager-load by name are declared up front::

    storage = InMemoryStorage(relations={Post: [tags, comments]})
    storage.query(Post).with_relations(["tags"]).find_or_fail(1).tags
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Any

from ...primitives.exceptions import ConfigurationError
from ...query.operators_memory import build_default_registry
from .association import MemoryAssociation
from .query import MemoryQuery

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping, Sequence

    from ...domain.relations import RelationDescriptor
    from ...query.evaluator import MemoryOperatorRegistry


class InMemoryStorage:
    """In-memory implementation of ``IStorage``."""

    def __init__(
        self,
        relations: Mapping[type[Any], Iterable[RelationDescriptor]] | None = None,
        operators: MemoryOperatorRegistry | None = None,
    ) -> None:
        self._tables: dict[type[Any], dict[Any, Any]] = {}
        self._sequences: dict[type[Any], Iterator[int]] = {}
        self._pivots: dict[str, list[dict[str, Any]]] = {}
        self._relations: dict[type[Any], dict[str, RelationDescriptor]] = {}
        self._operators = operators or build_default_registry()
        for model, descriptors in (relations or {}).items():
            for descriptor in descriptors:
                self.register_relation(model, descriptor)

    def register_relation(self, model: type[Any], relation: RelationDescriptor) -> None:
        self._relations.setdefault(model, {})[relation.name] = relation

    def relation(self, model: type[Any], name: str) -> RelationDescriptor:
        try:
            return self._relations[model][name]
        except KeyError:
            raise ConfigurationError(
                f"Relation {name!r} is not registered for {model.__name__}"
            ) from None

    # ── IStorage ─────────────────────────────────────────────────

    def query(self, model: type[Any]) -> MemoryQuery:
        return self.query_over(model, lambda: list(self._table(model).values()))

    def association(self, parent: Any, relation: RelationDescriptor) -> MemoryAssociation:
        return MemoryAssociation(self, parent, relation)

    def new(self, model: type[Any]) -> Any:
        return model()

    def save(self, entity: Any) -> Any:
        model = type(entity)
        if getattr(entity, "id", None) is None:
            sequence = self._sequences.setdefault(model, itertools.count(1))
            entity.id = next(sequence)
        self._table(model)[entity.id] = entity
        return entity

    def delete(self, entity: Any) -> None:
        self._table(type(entity)).pop(getattr(entity, "id", None), None)

    def load(self, entity: Any, relations: Sequence[str]) -> Any:
        """Set each named relation as an attribute; dotted names nest."""
        for path in relations:
            name, _, rest = path.partition(".")
            relation = self.relation(type(entity), name)
            related = self.association(entity, relation).related()
            if relation.kind.is_single:
                setattr(entity, name, related[0] if related else None)
            else:
                setattr(entity, name, related)
            if rest:
                for item in related:
                    self.load(item, [rest])
        return entity

    # ── Adapter internals ────────────────────────────────────────

    def query_over(self, model: type[Any], source: Any) -> MemoryQuery:
        return MemoryQuery(
            storage=self, model=model, source=source, operators=self._operators
        )

    def all(self, model: type[Any]) -> list[Any]:
        return list(self._table(model).values())

    def key_type(self, model: type[Any]) -> type | None:
        """Type of the ids stored for *model*; None while nothing is stored."""
        for entity_id in self._table(model):
            if entity_id is not None:
                return type(entity_id)
        return None

    def pivot_rows(self, table: str) -> list[dict[str, Any]]:
        return self._pivots.setdefault(table, [])

    def _table(self, model: type[Any]) -> dict[Any, Any]:
        return self._tables.setdefault(model, {})

    # ── Test helpers ─────────────────────────────────────────────

    def clear(self) -> None:
        self._tables.clear()
        self._sequences.clear()
        self._pivots.clear()
