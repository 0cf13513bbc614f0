"""ISerializer — wire representation of operation results."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..query.page import Page


@runtime_checkable
class ISerializer(Protocol):
    """Turn a final entity or page into its wire form.

    Called once per operation, after every hook has run; hook
    short-circuit values never pass through it.
    """

    def serialize(self, entity: Any) -> Any: ...

    def serialize_page(self, page: Page[Any]) -> Any: ...
