"""MemoryQuery — immutable, lazily evaluated query over in-memory entities."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from ...primitives.exceptions import EntityNotFoundError, FilterParseError
from ...query.operators import FilterOperator
from ...query.page import Page

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from ...query.context import FilterClause, SearchClause, SortClause
    from ...query.evaluator import MemoryOperatorRegistry
    from .storage import InMemoryStorage


@dataclass(frozen=True)
class MemoryQuery:
    """Criteria accumulated against a candidate source.

    ``source`` is re-read on every execution, so a query built before a
    write sees the write.
    """

    storage: InMemoryStorage
    model: type[Any]
    source: Callable[[], list[Any]]
    operators: MemoryOperatorRegistry
    filters: tuple[FilterClause, ...] = ()
    searches: tuple[SearchClause, ...] = ()
    sorts: tuple[SortClause, ...] = ()
    relations: tuple[str, ...] = ()

    # ── Composition ──────────────────────────────────────────────

    def where(self, clause: FilterClause) -> MemoryQuery:
        return replace(self, filters=(*self.filters, clause))

    def search(self, clause: SearchClause) -> MemoryQuery:
        return replace(self, searches=(*self.searches, clause))

    def order_by(self, clause: SortClause) -> MemoryQuery:
        return replace(self, sorts=(*self.sorts, clause))

    def with_relations(self, relations: Sequence[str]) -> MemoryQuery:
        merged = dict.fromkeys((*self.relations, *relations))
        return replace(self, relations=tuple(merged))

    # ── Execution ────────────────────────────────────────────────

    def all(self) -> list[Any]:
        items = self._execute()
        for entity in items:
            self.storage.load(entity, self.relations)
        return items

    def paginate(self, page: int, per_page: int) -> Page[Any]:
        items = self._execute()
        start = (page - 1) * per_page
        window = items[start : start + per_page]
        for entity in window:
            self.storage.load(entity, self.relations)
        return Page(items=window, total=len(items), page=page, per_page=per_page)

    def find_or_fail(self, entity_id: Any) -> Any:
        for entity in self.source():
            if getattr(entity, "id", None) == entity_id and self._matches(entity):
                self.storage.load(entity, self.relations)
                return entity
        raise EntityNotFoundError(self.model.__name__, entity_id)

    # ── Evaluation ───────────────────────────────────────────────

    def _execute(self) -> list[Any]:
        items = [entity for entity in self.source() if self._matches(entity)]
        for clause in reversed(self.sorts):
            try:
                items.sort(
                    key=lambda entity, f=clause.field: _sort_key(getattr(entity, f, None)),
                    reverse=clause.descending,
                )
            except TypeError as e:
                raise FilterParseError(
                    f"Cannot sort {self.model.__name__} by {clause.field!r}: "
                    "stored values are not mutually comparable"
                ) from e
        return items

    def _matches(self, entity: Any) -> bool:
        for clause in self.filters:
            if not self.operators.evaluate(
                clause.operator,
                getattr(entity, clause.field, None),
                clause.value,
                field=clause.field,
            ):
                return False
        for search in self.searches:
            if not any(
                self.operators.evaluate(
                    FilterOperator.CONTAINS,
                    getattr(entity, name, None),
                    search.term,
                    field=name,
                )
                for name in search.fields
            ):
                return False
        return True


def _sort_key(value: Any) -> tuple[bool, Any]:
    # None sorts first ascending, last descending
    return (value is not None, value)
