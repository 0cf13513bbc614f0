"""QueryStringBuilder — OperationContext -> query string (pagination links)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

from resource_engine_core.query import FilterOperator

from .syntax import parse_scalar

if TYPE_CHECKING:
    from resource_engine_core.query import FilterClause, OperationContext


class QueryStringBuilder:
    """Build a query string that :class:`ContextParser` parses back.

    Filters are written in the colon-separated syntax.  String values
    that would read back as a number, boolean or null are double-quoted.
    """

    def build(
        self,
        context: OperationContext,
        *,
        page: int | None = None,
        filter_key: str = "filter",
        search_key: str = "search",
        sort_key: str = "sort",
        include_key: str = "include",
        page_key: str = "page",
        limit_key: str = "limit",
    ) -> str:
        """Produce the query string of *context*, optionally for another page."""
        params: dict[str, str | int] = {}
        if context.filters:
            params[filter_key] = ",".join(_clause(c) for c in context.filters)
        if context.search:
            params[search_key] = context.search
        if context.sort:
            params[sort_key] = ",".join(
                f"-{c.field}" if c.descending else c.field for c in context.sort
            )
        if context.includes:
            params[include_key] = ",".join(context.includes)
        params[page_key] = page if page is not None else context.page
        if context.per_page is not None:
            params[limit_key] = context.per_page
        return urlencode(params)


def _clause(clause: FilterClause) -> str:
    op = clause.operator.value.replace(" ", "_")
    if not clause.operator.takes_value:
        return f"{clause.field}:{op}:"
    if clause.operator in (FilterOperator.IN, FilterOperator.NOT_IN):
        return f"{clause.field}:{op}:{','.join(_scalar(v) for v in clause.value)}"
    return f"{clause.field}:{op}:{_scalar(clause.value)}"


def _scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    if isinstance(value, str) and parse_scalar(text) != text:
        # would read back as another type
        return f'"{text}"'
    return text
