"""
Filter evaluation for the in-memory storage.

A filter clause ``views > 10`` is checked against a candidate entity by
looking up the :class:`MemoryOperator` registered for ``>`` and calling
it with the entity's ``views`` value.  Values a request supplies are not
typed against the model, so a comparison Python refuses (``5 > "abc"``)
is reported as a :class:`FilterParseError` naming the field, the same
way a malformed filter string is.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from ..primitives.exceptions import FilterParseError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .operators import FilterOperator


class MemoryOperator(ABC):
    """Checks one filter operator against a plain Python value."""

    @property
    @abstractmethod
    def name(self) -> FilterOperator: ...

    @abstractmethod
    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        """Return whether *field_value* (read from the entity) satisfies the clause."""
        ...


class MemoryOperatorRegistry:
    """
    The operators one in-memory storage understands.

    Registering an operator for a name that is already present replaces
    it, which is how a storage swaps in e.g. a case-sensitive ``=``::

        registry = build_default_registry()
        registry.register(CaseSensitiveEqual())
    """

    def __init__(self, operators: Iterable[MemoryOperator] = ()) -> None:
        self._operators: dict[FilterOperator, MemoryOperator] = {}
        for operator in operators:
            self.register(operator)

    def register(self, operator: MemoryOperator) -> None:
        self._operators[operator.name] = operator

    def unregister(self, name: FilterOperator) -> None:
        self._operators.pop(name, None)

    @property
    def supported_operators(self) -> set[FilterOperator]:
        return set(self._operators)

    def evaluate(
        self,
        name: FilterOperator,
        field_value: Any,
        condition_value: Any,
        *,
        field: str | None = None,
    ) -> bool:
        """
        Evaluate clause *name* against *field_value*.

        Raises:
            FilterParseError: The operator is not registered, or the
                clause value cannot be compared with the stored value.
        """
        operator = self._operators.get(name)
        subject = f" on field {field!r}" if field else ""
        if operator is None:
            raise FilterParseError(
                f"Operator {name.value!r}{subject} is not supported "
                "by the in-memory storage"
            )
        try:
            return operator.evaluate(field_value, condition_value)
        except TypeError as e:
            raise FilterParseError(
                f"Cannot apply {name.value!r}{subject}: "
                f"{condition_value!r} is not comparable with {field_value!r}"
            ) from e
