"""ContextParser — untrusted query params -> OperationContext."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from resource_engine_core.primitives.exceptions import FilterParseError
from resource_engine_core.query import OperationContext, SortClause, SortDirection

from .pagination import PaginationParser
from .syntax import ColonSeparatedSyntax, FilterSyntax

if TYPE_CHECKING:
    from collections.abc import Mapping


class ContextParser:
    """Parse API params into an :class:`OperationContext`.

    Only the shape of the parameters is checked here.  Whether a field
    may be filtered, sorted or included is decided by the resource's
    whitelist when the engine composes the query.
    """

    def __init__(
        self,
        default_syntax: FilterSyntax | None = None,
        pagination: PaginationParser | None = None,
    ) -> None:
        self._syntax = default_syntax or ColonSeparatedSyntax()
        self._pagination = pagination or PaginationParser()

    def parse(
        self,
        query_params: Mapping[str, Any],
        *,
        filter_key: str = "filter",
        search_key: str = "search",
        sort_key: str = "sort",
        include_key: str = "include",
        page_key: str = "page",
        limit_key: str = "limit",
    ) -> OperationContext:
        params = dict(query_params)
        raw_filter = params.get(filter_key)
        filters = self._syntax.parse_filter(raw_filter) if raw_filter else []
        pagination = self._pagination.parse(
            params, page_key=page_key, limit_key=limit_key
        )
        return OperationContext(
            filters=filters,
            search=self._parse_search(params.get(search_key)),
            sort=self._parse_sort(params.get(sort_key)),
            includes=self._parse_list(params.get(include_key)),
            page=pagination.page,
            per_page=pagination.per_page,
        )

    def _parse_search(self, raw: Any) -> str | None:
        if raw is None:
            return None
        if isinstance(raw, dict):
            raw = raw.get("value")
        return str(raw) if raw is not None else None

    def _parse_sort(self, raw: Any) -> list[SortClause]:
        if not raw:
            return []
        if isinstance(raw, str):
            raw = raw.split(",")
        if not isinstance(raw, list):
            raise FilterParseError(f"Unsupported sort parameter: {raw!r}")
        out: list[SortClause] = []
        for item in raw:
            parsed = self._parse_sort_item(item)
            if parsed is not None:
                out.append(parsed)
        return out

    def _parse_sort_item(self, item: Any) -> SortClause | None:
        if isinstance(item, dict):
            field = item.get("field", "")
            direction = item.get("direction", item.get("dir", SortDirection.ASC))
        elif isinstance(item, str):
            field = item.strip()
            direction = SortDirection.ASC
            if field.startswith("-"):
                field, direction = field[1:], SortDirection.DESC
        else:
            return None
        if not field:
            return None
        return SortClause(field, direction)

    def _parse_list(self, raw: Any) -> list[str]:
        if not raw:
            return []
        if isinstance(raw, str):
            raw = raw.split(",")
        return [str(name).strip() for name in raw if str(name).strip()]
