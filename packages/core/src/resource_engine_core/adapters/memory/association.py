"""MemoryAssociation — one parent's side of a relation, over in-memory rows.

Key columns come from :meth:`RelationDescriptor.keys`, so the same
descriptor produces the same layout here and in the SQL adapter.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...domain.relations import RelationKind
from ...pivot import (
    PivotResult,
    coerce_pivot_id,
    coerce_pivot_keys,
    parse_pivot_records,
)

if TYPE_CHECKING:
    from ...domain.relations import RelationDescriptor
    from ...pivot import PivotPayload
    from .query import MemoryQuery
    from .storage import InMemoryStorage


class MemoryAssociation:
    """In-memory implementation of ``IAssociation``."""

    def __init__(
        self, storage: InMemoryStorage, parent: Any, relation: RelationDescriptor
    ) -> None:
        self._storage = storage
        self._parent = parent
        self._relation = relation
        self._keys = relation.keys(type(parent))

    # ── Reading ──────────────────────────────────────────────────

    def query(self) -> MemoryQuery:
        return self._storage.query_over(self._relation.target, self.related)

    def related(self) -> list[Any]:
        """Entities currently linked to the parent, in link order."""
        kind = self._relation.kind
        keys = self._keys
        target = self._relation.target

        if kind is RelationKind.BELONGS_TO:
            owner = getattr(self._parent, keys.foreign_key, None)
            return [
                entity
                for entity in self._storage.all(target)
                if owner is not None and getattr(entity, keys.owner_key) == owner
            ]
        if kind in (RelationKind.HAS_ONE, RelationKind.HAS_MANY):
            return [
                entity
                for entity in self._storage.all(target)
                if getattr(entity, keys.foreign_key, None) == self._parent_key
            ]
        if kind in (RelationKind.MORPH_ONE, RelationKind.MORPH_MANY):
            assert keys.morph_type is not None
            return [
                entity
                for entity in self._storage.all(target)
                if getattr(entity, keys.foreign_key, None) == self._parent_key
                and getattr(entity, keys.morph_type, None) == keys.morph_class
            ]
        if kind is RelationKind.HAS_MANY_THROUGH:
            assert keys.through is not None and keys.second_key is not None
            through_ids = {
                entity.id
                for entity in self._storage.all(keys.through)
                if getattr(entity, keys.foreign_key, None) == self._parent_key
            }
            return [
                entity
                for entity in self._storage.all(target)
                if getattr(entity, keys.second_key, None) in through_ids
            ]

        table = {entity.id: entity for entity in self._storage.all(target)}
        linked = dict.fromkeys(self._linked_ids())
        return [table[related_id] for related_id in linked if related_id in table]

    # ── Writing ──────────────────────────────────────────────────

    def save(self, entity: Any) -> Any:
        """Persist *entity* with its link to the parent set."""
        kind = self._relation.kind
        keys = self._keys

        if kind is RelationKind.BELONGS_TO:
            self._storage.save(entity)
            setattr(self._parent, keys.foreign_key, getattr(entity, keys.owner_key))
            self._storage.save(self._parent)
            return entity
        if kind in (
            RelationKind.HAS_ONE,
            RelationKind.HAS_MANY,
            RelationKind.MORPH_ONE,
            RelationKind.MORPH_MANY,
        ):
            setattr(entity, keys.foreign_key, self._parent_key)
            if keys.morph_type is not None:
                setattr(entity, keys.morph_type, keys.morph_class)
            return self._storage.save(entity)
        if kind is RelationKind.HAS_MANY_THROUGH:
            return self._storage.save(entity)

        self._storage.save(entity)
        if entity.id not in self._linked_ids():
            self._insert(entity.id, {})
        return entity

    # ── Pivot operations ─────────────────────────────────────────

    def sync(self, records: PivotPayload, *, detaching: bool = True) -> PivotResult:
        self._relation.ensure_pivot("sync")
        wanted = self._records(records)
        current = self._linked_ids()
        result: dict[str, list[Any]] = {"attached": [], "detached": [], "updated": []}

        if detaching:
            stale = [related_id for related_id in current if related_id not in wanted]
            if stale:
                self._delete(stale)
                result["detached"] = stale

        for related_id, attributes in wanted.items():
            if related_id not in current:
                self._insert(related_id, attributes)
                result["attached"].append(related_id)
            elif attributes and self._update(related_id, attributes)[1]:
                result["updated"].append(related_id)
        return PivotResult(**result)

    def toggle(self, records: PivotPayload) -> PivotResult:
        self._relation.ensure_pivot("toggle")
        wanted = self._records(records)
        current = set(self._linked_ids())

        detach = [related_id for related_id in wanted if related_id in current]
        attach = [related_id for related_id in wanted if related_id not in current]
        if detach:
            self._delete(detach)
        for related_id in attach:
            self._insert(related_id, wanted[related_id])
        return PivotResult(attached=attach, detached=detach)

    def attach(self, records: PivotPayload) -> PivotResult:
        self._relation.ensure_pivot("attach")
        wanted = self._records(records)
        for related_id, attributes in wanted.items():
            self._insert(related_id, attributes)
        return PivotResult(attached=list(wanted))

    def detach(self, records: PivotPayload) -> PivotResult:
        self._relation.ensure_pivot("detach")
        ids = list(self._records(records))
        current = set(self._linked_ids())
        detached = [related_id for related_id in ids if related_id in current]
        if detached:
            self._delete(detached)
        return PivotResult(detached=detached)

    def update_existing_pivot(self, related_id: Any, attributes: dict[str, Any]) -> int:
        self._relation.ensure_pivot("update_pivot")
        related_id = coerce_pivot_id(related_id, self._key_type())
        matched, _ = self._update(related_id, attributes)
        return matched

    # ── Pivot rows ───────────────────────────────────────────────

    def _records(self, payload: PivotPayload) -> dict[Any, dict[str, Any]]:
        return coerce_pivot_keys(parse_pivot_records(payload), self._key_type())

    def _key_type(self) -> type | None:
        return self._storage.key_type(self._relation.target)

    @property
    def _parent_key(self) -> Any:
        return getattr(self._parent, self._keys.owner_key, None)

    def _rows(self) -> list[dict[str, Any]]:
        assert self._keys.pivot_table is not None
        return self._storage.pivot_rows(self._keys.pivot_table)

    def _owns(self, row: dict[str, Any]) -> bool:
        keys = self._keys
        if row.get(keys.foreign_key) != self._parent_key:
            return False
        return keys.morph_type is None or row.get(keys.morph_type) == keys.morph_class

    def _linked_ids(self) -> list[Any]:
        assert self._keys.related_pivot_key is not None
        related_key = self._keys.related_pivot_key
        return list(
            dict.fromkeys(row[related_key] for row in self._rows() if self._owns(row))
        )

    def _insert(self, related_id: Any, attributes: dict[str, Any]) -> None:
        keys = self._keys
        assert keys.related_pivot_key is not None
        row = {**attributes, keys.foreign_key: self._parent_key}
        row[keys.related_pivot_key] = related_id
        if keys.morph_type is not None:
            row[keys.morph_type] = keys.morph_class
        self._rows().append(row)

    def _delete(self, related_ids: list[Any]) -> None:
        related_key = self._keys.related_pivot_key
        doomed = set(related_ids)
        self._rows()[:] = [
            row
            for row in self._rows()
            if not (self._owns(row) and row[related_key] in doomed)
        ]

    def _update(self, related_id: Any, attributes: dict[str, Any]) -> tuple[int, bool]:
        """Return (matched rows, whether any value changed)."""
        related_key = self._keys.related_pivot_key
        matched = 0
        changed = False
        for row in self._rows():
            if self._owns(row) and row[related_key] == related_id:
                matched += 1
                if any(row.get(k) != v for k, v in attributes.items()):
                    changed = True
                    row.update(attributes)
        return matched, changed
