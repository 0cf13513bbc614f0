"""
QueryComposer — apply request criteria to a storage query.

Criteria are applied in a fixed order: filters, then search, then
sorting.  All three only apply to read operations; writes see the base
query (plus any resource scope) so request parameters can never widen or
narrow what an update or delete touches.

Every field name coming from the request is checked against the
resource's :class:`FieldWhitelist` first; an unknown name raises
:class:`~resource_engine_core.primitives.exceptions.FieldNotAllowedError`
instead of being ignored.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .context import SearchClause

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ..ports.storage import IQuery
    from .context import FilterClause, Operation, OperationContext, SortClause
    from .whitelist import FieldWhitelist

logger = logging.getLogger("resource_engine.query")


class QueryComposer:
    """Validates and applies filter, search, sort and include criteria."""

    def __init__(
        self,
        whitelist: FieldWhitelist,
        *,
        searchable: Sequence[str] = (),
        always_include: Sequence[str] = (),
    ) -> None:
        self._whitelist = whitelist
        self._searchable = tuple(searchable)
        self._always_include = tuple(always_include)

    @property
    def whitelist(self) -> FieldWhitelist:
        return self._whitelist

    def compose(
        self, query: IQuery, context: OperationContext, operation: Operation
    ) -> IQuery:
        """Return *query* augmented with the criteria *operation* accepts."""
        if not operation.reads:
            return query
        query = self.apply_filters(query, context.filters)
        query = self.apply_search(query, context.search)
        return self.apply_sorting(query, context.sort)

    def apply_filters(self, query: IQuery, filters: Iterable[FilterClause]) -> IQuery:
        for clause in filters:
            self._whitelist.allow_filter(clause.field, clause.operator)
            query = query.where(clause)
        return query

    def apply_search(self, query: IQuery, term: str | None) -> IQuery:
        if not term:
            return query
        if not self._searchable:
            logger.debug(
                "Search term ignored: %s declares no searchable fields",
                self._whitelist.resource,
            )
            return query
        return query.search(SearchClause(term=term, fields=self._searchable))

    def apply_sorting(self, query: IQuery, sort: Iterable[SortClause]) -> IQuery:
        for clause in sort:
            self._whitelist.allow_sort(clause.field)
            query = query.order_by(clause)
        return query

    def relations(self, context: OperationContext) -> tuple[str, ...]:
        """Relations to eager-load: always-included first, then requested."""
        requested: list[str] = []
        for name in context.includes:
            if name in self._always_include or name in requested:
                continue
            self._whitelist.allow_include(name)
            requested.append(name)
        return (*self._always_include, *requested)
