from .composer import QueryComposer
from .context import (
    FilterClause,
    Operation,
    OperationContext,
    SearchClause,
    SortClause,
)
from .evaluator import MemoryOperator, MemoryOperatorRegistry
from .operators import FilterOperator, SortDirection
from .operators_memory import build_default_registry
from .page import Page
from .whitelist import FieldWhitelist

__all__ = [
    "FieldWhitelist",
    "FilterClause",
    "FilterOperator",
    "MemoryOperator",
    "MemoryOperatorRegistry",
    "Operation",
    "OperationContext",
    "Page",
    "QueryComposer",
    "SearchClause",
    "SortClause",
    "SortDirection",
    "build_default_registry",
]
