"""IInputValidator — request-data validation port."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..query.context import Operation


@runtime_checkable
class IInputValidator(Protocol):
    """Reject invalid create/update input.

    Implementations raise
    :class:`~resource_engine_core.primitives.exceptions.ValidationFailedError`;
    returning normally means the data is acceptable.
    """

    def validate(self, operation: Operation, data: Mapping[str, Any]) -> None: ...
