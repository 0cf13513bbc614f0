"""Engine and request exceptions for resource-engine-core.

Every error aborts the running operation and propagates to the caller
unchanged; the engine never recovers locally.  Query errors expose
``to_dict()`` for API-friendly error bodies.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class ResourceEngineError(Exception):
    """Root exception for the entire resource-engine toolkit."""


class ConfigurationError(ResourceEngineError):
    """Raised when a resource or relation is declared inconsistently.

    These are programming defects: they do not depend on request data and
    surface on first use (or at declaration time where possible).
    """


# ── Not found ────────────────────────────────────────────────────────


class NotFoundError(ResourceEngineError):
    """Raised when an identifier does not resolve under the current scope."""


class EntityNotFoundError(NotFoundError):
    """Raised when a specific entity cannot be found by ID."""

    def __init__(self, entity_type: str, entity_id: object) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id={entity_id!r} not found")


class PivotNotFoundError(NotFoundError):
    """Raised when a many-to-many link between two entities does not exist."""

    def __init__(self, relation: str, parent_id: object, related_id: object) -> None:
        self.relation = relation
        self.parent_id = parent_id
        self.related_id = related_id
        super().__init__(
            f"No {relation!r} link between parent id={parent_id!r} "
            f"and related id={related_id!r}"
        )


# ── Authorization ────────────────────────────────────────────────────


class ForbiddenError(ResourceEngineError):
    """Raised when the authorizer denies a capability."""

    def __init__(self, ability: str, subject: object) -> None:
        self.ability = ability
        self.subject = subject
        name = subject.__name__ if isinstance(subject, type) else type(subject).__name__
        super().__init__(f"Ability {ability!r} denied on {name}")


# ── Query errors ─────────────────────────────────────────────────────


class InvalidQueryError(ResourceEngineError):
    """Request query parameters are unrecognized or malformed."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INVALID_QUERY",
            "message": str(self),
        }


class FilterParseError(InvalidQueryError):
    """Raised when a filter, sort or search parameter cannot be parsed."""


class FieldNotAllowedError(InvalidQueryError):
    """
    A field (or an operator on a field) is not whitelisted for the resource.

    Uses fuzzy matching to suggest similar allowed names::

        Field 'titel' is not filterable on 'Post'. Did you mean: title?
    """

    def __init__(
        self,
        field: str,
        purpose: str,
        resource: str,
        allowed: list[str] | set[str] | frozenset[str] | tuple[str, ...],
        *,
        operator: str | None = None,
    ) -> None:
        self.field = field
        self.purpose = purpose
        self.resource = resource
        self.allowed = sorted(allowed)
        self.operator = operator

        if operator is not None:
            self.suggestions = get_close_matches(operator, self.allowed, n=3)
            message = (
                f"Operator {operator!r} is not allowed for field {field!r} "
                f"on {resource!r}."
            )
        else:
            self.suggestions = get_close_matches(field, self.allowed, n=3)
            message = f"Field {field!r} is not {purpose} on {resource!r}."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "FIELD_NOT_ALLOWED",
            "field": self.field,
            "purpose": self.purpose,
            "resource": self.resource,
            "operator": self.operator,
            "suggestions": self.suggestions,
            "allowed": self.allowed,
        }


# ── Relations ────────────────────────────────────────────────────────


class InvalidPivotOperationError(ConfigurationError):
    """Raised when a pivot operation targets a relation without a pivot table."""

    def __init__(self, relation: str, kind: str, operation: str | None = None) -> None:
        self.relation = relation
        self.kind = kind
        self.operation = operation
        what = f"{operation!r}" if operation else "Pivot operations"
        super().__init__(
            f"{what} requires a BelongsToMany or MorphToMany relation; "
            f"{relation!r} is {kind}"
        )


# ── Validation ───────────────────────────────────────────────────────


class ValidationFailedError(ResourceEngineError):
    """Raised by an input validator when request data is rejected.

    Carries structured errors: ``{field: [messages]}``.
    """

    def __init__(self, errors: dict[str, list[str]] | str | None = None) -> None:
        if isinstance(errors, str):
            self.errors: dict[str, list[str]] = {"__root__": [errors]}
        elif errors is None:
            self.errors = {}
        else:
            self.errors = errors
        super().__init__(str(self.errors))


# ── Infrastructure ───────────────────────────────────────────────────


class PersistenceError(ResourceEngineError):
    """Base class for storage adapter failures."""
