"""Storage ports — the query, persistence and association interface.

The engines build queries, persist entities and mutate associations only
through these protocols.  Implementations:

* :class:`~resource_engine_core.adapters.memory.InMemoryStorage`
* ``resource_engine_persistence_sqlalchemy.SQLAlchemyStorage``

Queries are composable values: every ``where`` / ``search`` / ``order_by``
/ ``with_relations`` call returns a new query and leaves the receiver
untouched.  ``find_or_fail`` must raise
:class:`~resource_engine_core.primitives.exceptions.NotFoundError` (never
return ``None``) so callers can tell "missing" from other failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..domain.relations import RelationDescriptor
    from ..pivot import PivotPayload, PivotResult
    from ..query.context import FilterClause, SearchClause, SortClause
    from ..query.page import Page


@runtime_checkable
class IQuery(Protocol):
    """A lazily executed query over one entity collection."""

    def where(self, clause: FilterClause) -> IQuery: ...

    def search(self, clause: SearchClause) -> IQuery: ...

    def order_by(self, clause: SortClause) -> IQuery: ...

    def with_relations(self, relations: Sequence[str]) -> IQuery: ...

    def paginate(self, page: int, per_page: int) -> Page[Any]: ...

    def find_or_fail(self, entity_id: Any) -> Any: ...


@runtime_checkable
class IAssociation(Protocol):
    """One parent's side of a relation.

    The pivot methods are only meaningful for many-to-many relations;
    implementations raise ``InvalidPivotOperationError`` otherwise.
    """

    def query(self) -> IQuery:
        """Query over the related entities of this parent."""
        ...

    def save(self, entity: Any) -> Any:
        """Persist *entity* and link it to the parent."""
        ...

    def sync(self, records: PivotPayload, *, detaching: bool = True) -> PivotResult: ...

    def toggle(self, records: PivotPayload) -> PivotResult: ...

    def attach(self, records: PivotPayload) -> PivotResult:
        """Insert links unconditionally (duplicates allowed)."""
        ...

    def detach(self, records: PivotPayload) -> PivotResult: ...

    def update_existing_pivot(
        self, related_id: Any, attributes: dict[str, Any]
    ) -> int:
        """Overwrite pivot attributes of one link; return matched links."""
        ...


@runtime_checkable
class IStorage(Protocol):
    """Entry point of the storage collaborator."""

    def query(self, model: type[Any]) -> IQuery: ...

    def association(self, parent: Any, relation: RelationDescriptor) -> IAssociation: ...

    def new(self, model: type[Any]) -> Any:
        """Return a fresh, unsaved instance of *model*."""
        ...

    def save(self, entity: Any) -> Any: ...

    def delete(self, entity: Any) -> None: ...

    def load(self, entity: Any, relations: Sequence[str]) -> Any:
        """(Re)load the named relations onto *entity*."""
        ...
