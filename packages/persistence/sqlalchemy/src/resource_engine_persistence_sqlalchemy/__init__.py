"""SQLAlchemy storage adapter for the resource engine."""

from __future__ import annotations

from .association import SQLAlchemyAssociation
from .exceptions import (
    PivotTableError,
    SQLAlchemyPersistenceError,
    UnknownColumnError,
)
from .operators import (
    SQLAlchemyOperator,
    SQLAlchemyOperatorRegistry,
    build_default_registry,
)
from .query import SQLAlchemyQuery
from .storage import SQLAlchemyStorage

__all__ = [
    "PivotTableError",
    "SQLAlchemyAssociation",
    "SQLAlchemyOperator",
    "SQLAlchemyOperatorRegistry",
    "SQLAlchemyPersistenceError",
    "SQLAlchemyQuery",
    "SQLAlchemyStorage",
    "UnknownColumnError",
    "build_default_registry",
]
