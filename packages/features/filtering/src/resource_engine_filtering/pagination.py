"""PaginationParser — page/limit from query params."""

from __future__ import annotations

from typing import Any, NamedTuple


class PaginationResult(NamedTuple):
    page: int
    per_page: int | None


class PaginationParser:
    """Parse page and page size from query params.

    Malformed values fall back to the first page / the resource default
    page size instead of failing the request; the page size cap is
    applied later by the resource configuration.
    """

    def parse(
        self,
        query_params: dict[str, Any],
        *,
        page_key: str = "page",
        limit_key: str = "limit",
    ) -> PaginationResult:
        page = 1
        raw_page = query_params.get(page_key)
        if raw_page is not None:
            try:
                page = max(1, int(raw_page))
            except (TypeError, ValueError):
                page = 1
        per_page = None
        raw_limit = query_params.get(limit_key)
        if raw_limit is not None:
            try:
                per_page = max(1, int(raw_limit))
            except (TypeError, ValueError):
                per_page = None
        return PaginationResult(page=page, per_page=per_page)
