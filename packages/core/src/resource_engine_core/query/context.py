"""
Operation context — the parsed request criteria of one invocation.

``OperationContext`` is immutable and built fresh for every call.  It
carries *what the caller asked for* (filters, search term, ordering,
includes, pagination); whether each part applies is decided by the
:class:`~resource_engine_core.query.composer.QueryComposer` from the
:class:`Operation` being executed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..primitives.exceptions import FilterParseError, InvalidQueryError
from .operators import FilterOperator, SortDirection


class Operation(str, Enum):
    """Every operation the engines expose.

    The value doubles as the authorization ability name for the five
    CRUD operations.
    """

    INDEX = "index"
    STORE = "store"
    SHOW = "show"
    UPDATE = "update"
    DESTROY = "destroy"
    SYNC = "sync"
    TOGGLE = "toggle"
    ATTACH = "attach"
    DETACH = "detach"
    UPDATE_PIVOT = "update_pivot"

    @property
    def reads(self) -> bool:
        """Request filters, search and sorting apply only to reads."""
        return self in (Operation.INDEX, Operation.SHOW)


@dataclass(frozen=True)
class FilterClause:
    """``field <operator> value``."""

    field: str
    operator: FilterOperator = FilterOperator.EQ
    value: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.operator, FilterOperator):
            try:
                op = FilterOperator(str(self.operator).lower())
            except ValueError as e:
                valid = ", ".join(o.value for o in FilterOperator)
                raise FilterParseError(
                    f"Unknown operator {self.operator!r}. Valid operators: {valid}"
                ) from e
            object.__setattr__(self, "operator", op)
        if self.operator in (FilterOperator.IN, FilterOperator.NOT_IN):
            value = self.value
            if isinstance(value, (list, set, frozenset)):
                object.__setattr__(self, "value", tuple(value))
            elif not isinstance(value, tuple):
                object.__setattr__(self, "value", (value,))


@dataclass(frozen=True)
class SortClause:
    field: str
    direction: SortDirection = SortDirection.ASC

    def __post_init__(self) -> None:
        if not isinstance(self.direction, SortDirection):
            try:
                direction = SortDirection(str(self.direction).lower())
            except ValueError as e:
                raise FilterParseError(
                    f"Sort direction must be 'asc' or 'desc', got {self.direction!r}"
                ) from e
            object.__setattr__(self, "direction", direction)

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC


@dataclass(frozen=True)
class SearchClause:
    """Case-insensitive substring match of ``term`` on any of ``fields``."""

    term: str
    fields: tuple[str, ...]


def _as_tuple(items: Iterable[Any] | None) -> tuple[Any, ...]:
    return tuple(items) if items else ()


@dataclass(frozen=True)
class OperationContext:
    """
    Immutable request criteria.

    Attributes:
        filters: Filter clauses, combined with AND.
        search: Free-text search term (``None`` = no search).
        sort: Sort clauses, first clause has the highest priority.
        includes: Relation names to eager-load.
        page: 1-based page number.
        per_page: Page size; ``None`` uses the resource default.
    """

    filters: tuple[FilterClause, ...] = field(default_factory=tuple)
    search: str | None = None
    sort: tuple[SortClause, ...] = field(default_factory=tuple)
    includes: tuple[str, ...] = field(default_factory=tuple)
    page: int = 1
    per_page: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", _as_tuple(self.filters))
        object.__setattr__(self, "sort", _as_tuple(self.sort))
        object.__setattr__(self, "includes", _as_tuple(self.includes))
        if self.search is not None and not self.search.strip():
            object.__setattr__(self, "search", None)
        if self.page < 1:
            raise InvalidQueryError(f"page must be >= 1, got {self.page}")
        if self.per_page is not None and self.per_page < 1:
            raise InvalidQueryError(f"per_page must be >= 1, got {self.per_page}")

    @property
    def has_criteria(self) -> bool:
        return bool(self.filters or self.search or self.sort)
