"""
Per-resource configuration.

One ``ResourceConfig`` is built per resource at startup and handed to
the engine; nothing is read from class attributes or globals afterwards::

    posts = ResourceConfig(
        model=Post,
        filterable={"status": {"=", "in"}, "views": {">", "<"}},
        sortable={"created_at", "title"},
        searchable=("title", "body"),
        includable={"tags", "user"},
        scopes={Operation.INDEX: lambda query, ctx: query.where(published)},
    )
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .primitives.exceptions import ConfigurationError
from .query.composer import QueryComposer
from .query.context import Operation
from .query.whitelist import FieldWhitelist

if TYPE_CHECKING:
    from .ports.storage import IQuery
    from .query.context import OperationContext

    QueryScope = Callable[[IQuery, OperationContext], IQuery]


@dataclass(frozen=True)
class ResourceConfig:
    """
    Static description of one resource.

    Attributes:
        model: Entity type the resource operates on.
        filterable: Field names (or field → allowed operators) usable in
            request filters.
        sortable: Field names usable in request sorting.
        searchable: Fields matched by the search term, in order.
        includable: Relation names a request may eager-load.
        always_include: Relations eager-loaded on every read and reload.
        scopes: Per-operation query scopes, applied for every operation
            (reads and writes) before request criteria.
        per_page: Default page size.
        max_per_page: Upper bound for a requested page size.
        authorization_required: Skip the authorizer entirely when off.
        name: Resource name used in errors and logs (defaults to the
            model class name).
    """

    model: type[Any]
    filterable: Mapping[str, Iterable[Any]] | Iterable[str] = ()
    sortable: Iterable[str] = ()
    searchable: Sequence[str] = ()
    includable: Iterable[str] = ()
    always_include: Sequence[str] = ()
    scopes: Mapping[Operation, QueryScope] = field(default_factory=dict)
    per_page: int = 15
    max_per_page: int = 100
    authorization_required: bool = True
    name: str | None = None

    def __post_init__(self) -> None:
        if self.per_page < 1 or self.max_per_page < self.per_page:
            raise ConfigurationError(
                f"Invalid page sizes for {self.resource_name}: "
                f"per_page={self.per_page}, max_per_page={self.max_per_page}"
            )
        if isinstance(self.filterable, Mapping):
            filterable: Any = MappingProxyType(
                {name: frozenset(ops) for name, ops in self.filterable.items()}
            )
        else:
            filterable = frozenset(self.filterable)
        object.__setattr__(self, "filterable", filterable)
        object.__setattr__(self, "sortable", frozenset(self.sortable))
        object.__setattr__(self, "searchable", tuple(self.searchable))
        object.__setattr__(self, "includable", frozenset(self.includable))
        object.__setattr__(self, "always_include", tuple(self.always_include))
        object.__setattr__(
            self,
            "scopes",
            MappingProxyType({Operation(op): s for op, s in self.scopes.items()}),
        )

    @property
    def resource_name(self) -> str:
        return self.name or self.model.__name__

    def whitelist(self) -> FieldWhitelist:
        return FieldWhitelist(
            self.resource_name,
            filterable=self.filterable,
            sortable=self.sortable,
            includable=(*self.includable, *self.always_include),
        )

    def composer(self) -> QueryComposer:
        return QueryComposer(
            self.whitelist(),
            searchable=self.searchable,
            always_include=self.always_include,
        )

    def scope_for(self, operation: Operation) -> QueryScope | None:
        return self.scopes.get(operation)

    def page_size(self, requested: int | None) -> int:
        if requested is None:
            return self.per_page
        return min(requested, self.max_per_page)
