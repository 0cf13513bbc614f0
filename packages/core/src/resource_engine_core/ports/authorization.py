"""IAuthorizer — capability checks delegated by the engines."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IAuthorizer(Protocol):
    """Decide whether the current caller may exercise *ability* on *subject*.

    ``subject`` is an entity type for type-level abilities (``index``,
    ``store``) and a loaded instance for instance-level ones (``show``,
    ``update``, ``destroy``).  Pivot operations ask for ``update`` on the
    parent instance.
    """

    def authorize(self, ability: str, subject: Any) -> bool: ...
