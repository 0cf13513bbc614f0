"""API query parsing — filter, search, sort, include and pagination params."""

from __future__ import annotations

from resource_engine_core.primitives.exceptions import FilterParseError

from .pagination import PaginationParser, PaginationResult
from .parser import ContextParser
from .query_string import QueryStringBuilder
from .syntax import ColonSeparatedSyntax, FilterSyntax, JsonFilterSyntax, resolve_operator

__all__ = [
    "ColonSeparatedSyntax",
    "ContextParser",
    "FilterParseError",
    "FilterSyntax",
    "JsonFilterSyntax",
    "PaginationParser",
    "PaginationResult",
    "QueryStringBuilder",
    "resolve_operator",
]
