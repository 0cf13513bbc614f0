"""resource-engine-core — generic resource operation engine.

CRUD over root entities, nested CRUD and pivot operations over relations,
a hook pipeline around every operation, and whitelisted query criteria.
Storage, authorization and serialization are ports; in-memory adapters
are included.
"""

from __future__ import annotations

# ── Adapters ────────────────────────────────────────────────────
from .adapters.memory import (
    AllowAllAuthorizer,
    InMemoryStorage,
    PolicyAuthorizer,
    RecordSerializer,
)
from .config import ResourceConfig

# ── Domain ───────────────────────────────────────────────────────
from .domain import (
    Record,
    RelationDescriptor,
    RelationKeys,
    RelationKind,
    fill,
    fillable_attributes,
)

# ── Engines ──────────────────────────────────────────────────────
from .engine import RelationEngine, ResourceEngine
from .hooks import HookPipeline, HookPoint, HookResult
from .pivot import PivotResult, sanitize_many, sanitize_one

# ── Ports ────────────────────────────────────────────────────────
from .ports import (
    IAssociation,
    IAuthorizer,
    IInputValidator,
    IQuery,
    ISerializer,
    IStorage,
)

# ── Primitives ───────────────────────────────────────────────────
from .primitives import (
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

# ── Query ────────────────────────────────────────────────────────
from .query import (
    FieldWhitelist,
    FilterClause,
    FilterOperator,
    Operation,
    OperationContext,
    Page,
    QueryComposer,
    SearchClause,
    SortClause,
    SortDirection,
)
from .validation import PydanticInputValidator

__all__ = [
    "AllowAllAuthorizer",
    "ConfigurationError",
    "EntityNotFoundError",
    "FieldNotAllowedError",
    "FieldWhitelist",
    "FilterClause",
    "FilterOperator",
    "FilterParseError",
    "ForbiddenError",
    "HookPipeline",
    "HookPoint",
    "HookResult",
    "IAssociation",
    "IAuthorizer",
    "IInputValidator",
    "IQuery",
    "ISerializer",
    "IStorage",
    "InMemoryStorage",
    "InvalidPivotOperationError",
    "InvalidQueryError",
    "NotFoundError",
    "Operation",
    "OperationContext",
    "Page",
    "PersistenceError",
    "PivotNotFoundError",
    "PivotResult",
    "PolicyAuthorizer",
    "PydanticInputValidator",
    "QueryComposer",
    "Record",
    "RecordSerializer",
    "RelationDescriptor",
    "RelationEngine",
    "RelationKeys",
    "RelationKind",
    "ResourceConfig",
    "ResourceEngine",
    "ResourceEngineError",
    "SearchClause",
    "SortClause",
    "SortDirection",
    "ValidationFailedError",
    "fill",
    "fillable_attributes",
    "sanitize_many",
    "sanitize_one",
]
