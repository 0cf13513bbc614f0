"""
SQLAlchemy operator implementations and default registry.

Usage::

    from resource_engine_persistence_sqlalchemy.operators import (
        build_default_registry,
    )

    expr = build_default_registry().apply(FilterOperator.EQ, column, value)
"""

from __future__ import annotations

from .comparison import (
    EqualOperator,
    GreaterEqualOperator,
    GreaterThanOperator,
    InOperator,
    IsNotNullOperator,
    IsNullOperator,
    LessEqualOperator,
    LessThanOperator,
    NotEqualOperator,
    NotInOperator,
)
from .strategy import SQLAlchemyOperator, SQLAlchemyOperatorRegistry
from .string import ContainsOperator, LikeOperator, NotLikeOperator


def build_default_registry() -> SQLAlchemyOperatorRegistry:
    """Create a registry with every built-in operator."""
    return SQLAlchemyOperatorRegistry(
        [
            EqualOperator(),
            NotEqualOperator(),
            GreaterThanOperator(),
            GreaterEqualOperator(),
            LessThanOperator(),
            LessEqualOperator(),
            InOperator(),
            NotInOperator(),
            LikeOperator(),
            NotLikeOperator(),
            ContainsOperator(),
            IsNullOperator(),
            IsNotNullOperator(),
        ]
    )


__all__ = [
    "SQLAlchemyOperator",
    "SQLAlchemyOperatorRegistry",
    "build_default_registry",
]
