"""SQLAlchemyAssociation — one parent's side of a relation, in SQL.

Related entities are selected with a correlated condition per relation
kind; pivot rows are read and written with Core statements against the
pivot ``Table`` found in the parent model's metadata.  Key columns come
from :meth:`RelationDescriptor.keys`, the same layout the in-memory
adapter uses.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, delete, false, insert, select, update

from resource_engine_core.domain.relations import RelationKind
from resource_engine_core.pivot import (
    PivotResult,
    coerce_pivot_id,
    coerce_pivot_keys,
    parse_pivot_records,
)

from .exceptions import PivotTableError
from .query import resolve_column

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Table

    from resource_engine_core.domain.relations import RelationDescriptor
    from resource_engine_core.pivot import PivotPayload

    from .query import SQLAlchemyQuery
    from .storage import SQLAlchemyStorage

logger = logging.getLogger("resource_engine.sqlalchemy")


class SQLAlchemyAssociation:
    """SQLAlchemy implementation of ``IAssociation``."""

    def __init__(
        self, storage: SQLAlchemyStorage, parent: Any, relation: RelationDescriptor
    ) -> None:
        self._storage = storage
        self._parent = parent
        self._relation = relation
        self._keys = relation.keys(type(parent))

    # ── Reading ──────────────────────────────────────────────────

    def query(self) -> SQLAlchemyQuery:
        target = self._relation.target
        return self._storage.query(target).filtered(self._condition())

    def related(self) -> list[Any]:
        """Entities currently linked to the parent."""
        return self.query().all()

    def _condition(self) -> ColumnElement[bool]:
        kind = self._relation.kind
        keys = self._keys
        target = self._relation.target

        if kind is RelationKind.BELONGS_TO:
            owner = getattr(self._parent, keys.foreign_key, None)
            if owner is None:
                return false()
            return resolve_column(target, keys.owner_key) == owner
        if kind in (RelationKind.HAS_ONE, RelationKind.HAS_MANY):
            return resolve_column(target, keys.foreign_key) == self._parent_key
        if kind in (RelationKind.MORPH_ONE, RelationKind.MORPH_MANY):
            assert keys.morph_type is not None
            return and_(
                resolve_column(target, keys.foreign_key) == self._parent_key,
                resolve_column(target, keys.morph_type) == keys.morph_class,
            )
        if kind is RelationKind.HAS_MANY_THROUGH:
            assert keys.through is not None and keys.second_key is not None
            through_ids = select(resolve_column(keys.through, "id")).where(
                resolve_column(keys.through, keys.foreign_key) == self._parent_key
            )
            return resolve_column(target, keys.second_key).in_(through_ids)

        pivot = self._pivot_table()
        linked = select(pivot.c[self._keys.related_pivot_key]).where(
            self._owns(pivot)
        )
        return resolve_column(target, "id").in_(linked)

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
        attached: list[Any] = []
        detached: list[Any] = []
        updated: list[Any] = []

        if detaching:
            detached = [related_id for related_id in current if related_id not in wanted]
            if detached:
                self._delete(detached)

        for related_id, attributes in wanted.items():
            if related_id not in current:
                self._insert(related_id, attributes)
                attached.append(related_id)
            elif attributes and self._update(related_id, attributes)[1]:
                updated.append(related_id)
        self._log("sync", attached=attached, detached=detached, updated=updated)
        return PivotResult(attached=attached, detached=detached, updated=updated)

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
        self._log("toggle", attached=attach, detached=detach)
        return PivotResult(attached=attach, detached=detach)

    def attach(self, records: PivotPayload) -> PivotResult:
        self._relation.ensure_pivot("attach")
        wanted = self._records(records)
        for related_id, attributes in wanted.items():
            self._insert(related_id, attributes)
        self._log("attach", attached=list(wanted))
        return PivotResult(attached=list(wanted))

    def detach(self, records: PivotPayload) -> PivotResult:
        self._relation.ensure_pivot("detach")
        ids = list(self._records(records))
        current = set(self._linked_ids())
        detached = [related_id for related_id in ids if related_id in current]
        if detached:
            self._delete(detached)
        self._log("detach", detached=detached)
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
        """Python type of the pivot column referencing the target."""
        column = self._pivot_table().c[self._keys.related_pivot_key]
        try:
            return column.type.python_type
        except NotImplementedError:
            return None

    @property
    def _parent_key(self) -> Any:
        return getattr(self._parent, self._keys.owner_key, None)

    def _pivot_table(self) -> Table:
        name = self._keys.pivot_table
        tables = type(self._parent).metadata.tables
        if name not in tables:
            raise PivotTableError(
                f"Pivot table {name!r} of relation {self._relation.name!r} "
                f"is not defined in the metadata of {type(self._parent).__name__}"
            )
        return tables[name]

    def _owns(self, pivot: Table) -> ColumnElement[bool]:
        keys = self._keys
        condition = pivot.c[keys.foreign_key] == self._parent_key
        if keys.morph_type is not None:
            condition = and_(condition, pivot.c[keys.morph_type] == keys.morph_class)
        return condition

    def _linked_ids(self) -> list[Any]:
        pivot = self._pivot_table()
        rows = self._storage.session.execute(
            select(pivot.c[self._keys.related_pivot_key]).where(self._owns(pivot))
        ).scalars()
        return list(dict.fromkeys(rows))

    def _insert(self, related_id: Any, attributes: dict[str, Any]) -> None:
        keys = self._keys
        assert keys.related_pivot_key is not None
        row = {**attributes, keys.foreign_key: self._parent_key}
        row[keys.related_pivot_key] = related_id
        if keys.morph_type is not None:
            row[keys.morph_type] = keys.morph_class
        self._storage.session.execute(insert(self._pivot_table()).values(**row))

    def _delete(self, related_ids: list[Any]) -> None:
        pivot = self._pivot_table()
        self._storage.session.execute(
            delete(pivot).where(
                self._owns(pivot),
                pivot.c[self._keys.related_pivot_key].in_(related_ids),
            )
        )

    def _update(self, related_id: Any, attributes: dict[str, Any]) -> tuple[int, bool]:
        """Return (matched rows, whether any value changed)."""
        pivot = self._pivot_table()
        condition = and_(
            self._owns(pivot), pivot.c[self._keys.related_pivot_key] == related_id
        )
        rows = self._storage.session.execute(select(pivot).where(condition)).all()
        changed = any(
            row._mapping.get(name) != value
            for row in rows
            for name, value in attributes.items()
        )
        if changed:
            self._storage.session.execute(
                update(pivot).where(condition).values(**attributes)
            )
        return len(rows), changed

    def _log(self, operation: str, **ids: list[Any]) -> None:
        logger.debug(
            "%s on %s.%s #%s: %s",
            operation,
            type(self._parent).__name__,
            self._relation.name,
            self._parent_key,
            {name: value for name, value in ids.items() if value},
        )
