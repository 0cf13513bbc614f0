"""FieldWhitelist — per-resource filterable/sortable/includable names."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from ..primitives.exceptions import FieldNotAllowedError
from .operators import FilterOperator

_ALL_OPERATORS = frozenset(FilterOperator)


class FieldWhitelist:
    """Per-resource allowed fields and operators.

    ``filterable`` is either a plain iterable of field names (every
    operator allowed) or a mapping of field name → allowed operators.
    """

    def __init__(
        self,
        resource: str,
        *,
        filterable: Mapping[str, Iterable[FilterOperator | str]]
        | Iterable[str]
        | None = None,
        sortable: Iterable[str] | None = None,
        includable: Iterable[str] | None = None,
    ) -> None:
        self.resource = resource
        self.filterable_fields: dict[str, frozenset[FilterOperator]] = {}
        if isinstance(filterable, Mapping):
            for name, ops in filterable.items():
                self.filterable_fields[name] = frozenset(FilterOperator(o) for o in ops)
        elif filterable:
            self.filterable_fields = {name: _ALL_OPERATORS for name in filterable}
        self.sortable_fields = frozenset(sortable or ())
        self.includable_relations = frozenset(includable or ())

    def allow_filter(self, field: str, op: FilterOperator) -> None:
        """Raise FieldNotAllowedError if field or operator is not allowed."""
        if field not in self.filterable_fields:
            raise FieldNotAllowedError(
                field, "filterable", self.resource, self.filterable_fields.keys()
            )
        allowed_ops = self.filterable_fields[field]
        if op not in allowed_ops:
            raise FieldNotAllowedError(
                field,
                "filterable",
                self.resource,
                [o.value for o in allowed_ops],
                operator=op.value,
            )

    def allow_sort(self, field: str) -> None:
        if field not in self.sortable_fields:
            raise FieldNotAllowedError(
                field, "sortable", self.resource, self.sortable_fields
            )

    def allow_include(self, relation: str) -> None:
        if relation not in self.includable_relations:
            raise FieldNotAllowedError(
                relation, "includable", self.resource, self.includable_relations
            )
