"""FilterSyntax — pluggable syntax for the ``filter`` request parameter.

Both syntaxes produce a list of
:class:`~resource_engine_core.query.context.FilterClause`, combined with
AND by the engine::

    ColonSeparatedSyntax().parse_filter("status:in:draft,published,views:gt:10")
    JsonFilterSyntax().parse_filter('[{"field": "views", "op": ">", "value": 10}]')
"""

from __future__ import annotations

import json
from typing import Any

from resource_engine_core.primitives.exceptions import FilterParseError
from resource_engine_core.query import FilterClause, FilterOperator

# Map common names to FilterOperator values
_OP_ALIASES: dict[str, FilterOperator] = {
    # Comparison
    "eq": FilterOperator.EQ,
    "=": FilterOperator.EQ,
    "ne": FilterOperator.NE,
    "!=": FilterOperator.NE,
    "gt": FilterOperator.GT,
    ">": FilterOperator.GT,
    "gte": FilterOperator.GE,
    ">=": FilterOperator.GE,
    "lt": FilterOperator.LT,
    "<": FilterOperator.LT,
    "lte": FilterOperator.LE,
    "<=": FilterOperator.LE,
    # Set
    "in": FilterOperator.IN,
    "not_in": FilterOperator.NOT_IN,
    "not in": FilterOperator.NOT_IN,
    # String
    "contains": FilterOperator.CONTAINS,
    "icontains": FilterOperator.CONTAINS,
    "like": FilterOperator.LIKE,
    "ilike": FilterOperator.LIKE,
    "not_like": FilterOperator.NOT_LIKE,
    "not like": FilterOperator.NOT_LIKE,
    # Null checks
    "is_null": FilterOperator.IS_NULL,
    "null": FilterOperator.IS_NULL,
    "is_not_null": FilterOperator.IS_NOT_NULL,
    "not_null": FilterOperator.IS_NOT_NULL,
}

_SET_OPERATORS = (FilterOperator.IN, FilterOperator.NOT_IN)


def resolve_operator(raw: Any) -> FilterOperator:
    """Map an operator name or alias to :class:`FilterOperator`."""
    name = str(raw).strip().lower()
    op = _OP_ALIASES.get(name)
    if op is None:
        valid = ", ".join(sorted(_OP_ALIASES))
        raise FilterParseError(f"Unknown operator {raw!r}. Valid operators: {valid}")
    return op


class FilterSyntax:
    """Base for filter syntax parsers."""

    def parse_filter(self, raw: Any) -> list[FilterClause]:
        """Parse raw input to filter clauses."""
        raise NotImplementedError


class ColonSeparatedSyntax(FilterSyntax):
    """Parse field:op:value,field2:op2:value2 (comma-separated clauses, AND)."""

    def parse_filter(self, raw: Any) -> list[FilterClause]:
        if not raw or not isinstance(raw, str):
            return []
        clauses = []

        for part in self._smart_split(raw):
            tokens = part.split(":", 2)
            if len(tokens) != 3:
                raise FilterParseError(f"Expected field:op:value, got: {part!r}")
            field, op_name, value = (t.strip() for t in tokens)
            if not field:
                raise FilterParseError(f"Missing field name in {part!r}")
            op = resolve_operator(op_name)
            clauses.append(FilterClause(field, op, self._parse_value(value, op)))
        return clauses

    def _smart_split(self, raw: str) -> list[str]:
        """
        Split filter string by commas, but keep commas inside set values.

        Example:
            "status:in:draft,published,views:gt:10"
            → ["status:in:draft,published", "views:gt:10"]

        A segment with fewer than two colons continues the previous clause.
        """
        clauses: list[str] = []

        for segment in raw.split(","):
            segment = segment.strip()
            if not segment:
                continue
            if segment.count(":") >= 2 or not clauses:
                clauses.append(segment)
            else:
                clauses[-1] += "," + segment

        return clauses

    def _parse_value(self, s: str, op: FilterOperator) -> Any:
        """
        Parse string value to appropriate Python type.

        Returns:
            Parsed value (bool, int, float, list, None, or str)
        """
        if not op.takes_value:
            return None
        if op in _SET_OPERATORS:
            return [self._parse_scalar(v.strip()) for v in s.split(",")]
        return self._parse_scalar(s)

    def _parse_scalar(self, s: str) -> Any:
        return parse_scalar(s)


def parse_scalar(s: str) -> Any:
    """Type one colon-syntax value.

    ``true``, ``false``, ``null`` and numbers become Python values; a value
    wrapped in double quotes is kept as the string between them, so
    ``code:eq:"10"`` filters on the text ``10``.
    """
    if len(s) >= 2 and s[0] == s[-1] == '"':
        return s[1:-1]
    lowered = s.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered == "null":
        return None
    try:
        return int(s)
    except ValueError:
        pass
    try:
        return float(s)
    except ValueError:
        pass
    return s


class JsonFilterSyntax(FilterSyntax):
    """Parse a JSON list of ``{"field", "op", "value"}`` objects.

    ``{"and": [...]}`` is accepted as an explicit wrapper; ``or`` groups
    are rejected because filter clauses are always combined with AND.
    """

    def parse_filter(self, raw: Any) -> list[FilterClause]:
        if raw is None or raw == "":
            return []
        data = raw
        if isinstance(raw, (str, bytes)):
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                raise FilterParseError(str(e)) from e
        return self._normalise(data)

    def _normalise(self, data: Any) -> list[FilterClause]:
        if isinstance(data, list):
            return [clause for item in data for clause in self._normalise(item)]
        if not isinstance(data, dict):
            raise FilterParseError(f"Expected filter object, got: {data!r}")

        if "and" in data:
            return self._normalise(data["and"])
        if "or" in data:
            raise FilterParseError("OR groups are not supported; clauses are ANDed")

        field = data.get("field", data.get("attr"))
        if not field:
            raise FilterParseError(f"Filter object needs a field: {data!r}")
        op = resolve_operator(data.get("op", data.get("operator", "=")))
        value = data.get("value", data.get("val"))
        return [FilterClause(str(field), op, value if op.takes_value else None)]
