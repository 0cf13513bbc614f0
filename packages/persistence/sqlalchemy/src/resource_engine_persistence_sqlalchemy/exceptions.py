"""Exceptions for the SQLAlchemy persistence layer."""

from __future__ import annotations

from resource_engine_core.primitives.exceptions import (
    InvalidQueryError,
    PersistenceError,
)


class SQLAlchemyPersistenceError(PersistenceError):
    """Base exception for all SQLAlchemy-specific persistence errors."""


class PivotTableError(SQLAlchemyPersistenceError):
    """Raised when a relation's pivot table is missing from the metadata."""


class UnknownColumnError(InvalidQueryError):
    """Raised when a query references an attribute the model does not map."""

    def __init__(self, model: type, column: str) -> None:
        self.model = model
        self.column = column
        super().__init__(f"Model {model.__name__} has no column {column!r}")


__all__: list[str] = [
    "PivotTableError",
    "SQLAlchemyPersistenceError",
    "UnknownColumnError",
]
