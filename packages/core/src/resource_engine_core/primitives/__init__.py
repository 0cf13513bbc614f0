"""Primitives: exceptions."""

from __future__ import annotations

from .exceptions import (
    ConfigurationError,
    EntityNotFoundError,
    FieldNotAllowedError,
    FilterParseError,
    ForbiddenError,
    InvalidPivotOperationError,
    InvalidQueryError,
    NotFoundError,
    PersistenceError,
    PivotNotFoundError,
    ResourceEngineError,
    ValidationFailedError,
)

__all__ = [
    "ConfigurationError",
    "EntityNotFoundError",
    "FieldNotAllowedError",
    "FilterParseError",
    "ForbiddenError",
    "InvalidPivotOperationError",
    "InvalidQueryError",
    "NotFoundError",
    "PersistenceError",
    "PivotNotFoundError",
    "ResourceEngineError",
    "ValidationFailedError",
]
