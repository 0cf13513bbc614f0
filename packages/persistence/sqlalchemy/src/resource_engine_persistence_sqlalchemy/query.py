"""SQLAlchemyQuery — immutable query over one mapped model.

Every composition method returns a new query wrapping an extended
``Select``; nothing reaches the database until ``paginate``, ``all`` or
``find_or_fail``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, or_, select

from resource_engine_core.primitives.exceptions import EntityNotFoundError
from resource_engine_core.query.operators import FilterOperator
from resource_engine_core.query.page import Page

from .exceptions import UnknownColumnError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import Select

    from resource_engine_core.query.context import (
        FilterClause,
        SearchClause,
        SortClause,
    )

    from .operators import SQLAlchemyOperatorRegistry
    from .storage import SQLAlchemyStorage


def resolve_column(model: type[Any], name: str) -> Any:
    """Return the mapped column attribute *name* of *model*."""
    column = getattr(model, name, None)
    if column is None or not hasattr(column, "expression"):
        raise UnknownColumnError(model, name)
    return column


@dataclass(frozen=True)
class SQLAlchemyQuery:
    storage: SQLAlchemyStorage
    model: type[Any]
    statement: Select[Any]
    operators: SQLAlchemyOperatorRegistry
    relations: tuple[str, ...] = ()

    # ── Composition ──────────────────────────────────────────────

    def where(self, clause: FilterClause) -> SQLAlchemyQuery:
        column = resolve_column(self.model, clause.field)
        condition = self.operators.apply(
            clause.operator, column, clause.value, field=clause.field
        )
        return replace(self, statement=self.statement.where(condition))

    def search(self, clause: SearchClause) -> SQLAlchemyQuery:
        if not clause.fields:
            return self
        conditions = [
            self.operators.apply(
                FilterOperator.CONTAINS,
                resolve_column(self.model, name),
                clause.term,
                field=name,
            )
            for name in clause.fields
        ]
        return replace(self, statement=self.statement.where(or_(*conditions)))

    def order_by(self, clause: SortClause) -> SQLAlchemyQuery:
        column = resolve_column(self.model, clause.field)
        ordering = column.desc() if clause.descending else column.asc()
        return replace(self, statement=self.statement.order_by(ordering))

    def filtered(self, condition: Any) -> SQLAlchemyQuery:
        """Narrow the query by a raw SQLAlchemy condition."""
        return replace(self, statement=self.statement.where(condition))

    def with_relations(self, relations: Sequence[str]) -> SQLAlchemyQuery:
        merged = dict.fromkeys((*self.relations, *relations))
        return replace(self, relations=tuple(merged))

    # ── Execution ────────────────────────────────────────────────

    def all(self) -> list[Any]:
        items = list(self.storage.session.scalars(self.statement).all())
        for entity in items:
            self.storage.load(entity, self.relations)
        return items

    def count(self) -> int:
        counted = select(func.count()).select_from(
            self.statement.order_by(None).subquery()
        )
        return int(self.storage.session.scalar(counted) or 0)

    def paginate(self, page: int, per_page: int) -> Page[Any]:
        total = self.count()
        window = self.statement.limit(per_page).offset((page - 1) * per_page)
        items = list(self.storage.session.scalars(window).all())
        for entity in items:
            self.storage.load(entity, self.relations)
        return Page(items=items, total=total, page=page, per_page=per_page)

    def find_or_fail(self, entity_id: Any) -> Any:
        key = resolve_column(self.model, "id")
        entity = self.storage.session.scalars(
            self.statement.where(key == entity_id).limit(1)
        ).first()
        if entity is None:
            raise EntityNotFoundError(self.model.__name__, entity_id)
        self.storage.load(entity, self.relations)
        return entity
