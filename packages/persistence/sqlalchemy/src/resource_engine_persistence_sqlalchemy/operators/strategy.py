"""
Filter compilation for the SQL storage.

Each :class:`SQLAlchemyOperator` turns one filter clause into a WHERE
condition on a mapped column.  The registry is the set of operators a
:class:`~resource_engine_persistence_sqlalchemy.storage.SQLAlchemyStorage`
accepts; a clause naming anything else is rejected before a statement
is built.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from resource_engine_core.primitives.exceptions import FilterParseError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy import ColumnElement

    from resource_engine_core.query.operators import FilterOperator


class SQLAlchemyOperator(ABC):
    """Compiles one filter operator into a ``ColumnElement[bool]``."""

    @property
    @abstractmethod
    def name(self) -> FilterOperator: ...

    @abstractmethod
    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        """Build the condition for ``column <operator> value``."""
        ...


class SQLAlchemyOperatorRegistry:
    """The operators one SQL storage understands, keyed by FilterOperator."""

    def __init__(self, operators: Iterable[SQLAlchemyOperator] = ()) -> None:
        self._operators: dict[FilterOperator, SQLAlchemyOperator] = {}
        for operator in operators:
            self.register(operator)

    def register(self, operator: SQLAlchemyOperator) -> None:
        self._operators[operator.name] = operator

    def unregister(self, name: FilterOperator) -> None:
        self._operators.pop(name, None)

    @property
    def supported_operators(self) -> set[FilterOperator]:
        return set(self._operators)

    def apply(
        self,
        name: FilterOperator,
        column: Any,
        value: Any,
        *,
        field: str | None = None,
    ) -> ColumnElement[bool]:
        """
        Compile clause *name* against *column*.

        Raises:
            FilterParseError: The operator is not registered.
        """
        operator = self._operators.get(name)
        if operator is None:
            subject = f" on field {field!r}" if field else ""
            raise FilterParseError(
                f"Operator {name.value!r}{subject} is not supported "
                "by the SQL storage"
            )
        return operator.apply(column, value)
