"""Tests for the colon-separated and JSON filter syntaxes."""

from __future__ import annotations

import pytest

from resource_engine_core.primitives.exceptions import FilterParseError
from resource_engine_core.query import FilterClause, FilterOperator
from resource_engine_filtering.syntax import (
    ColonSeparatedSyntax,
    JsonFilterSyntax,
    resolve_operator,
)


@pytest.mark.parametrize(
    ("alias", "op"),
    [
        ("eq", FilterOperator.EQ),
        ("=", FilterOperator.EQ),
        ("gte", FilterOperator.GE),
        ("not_in", FilterOperator.NOT_IN),
        ("not in", FilterOperator.NOT_IN),
        ("ILIKE", FilterOperator.LIKE),
        ("null", FilterOperator.IS_NULL),
    ],
)
def test_operator_aliases(alias: str, op: FilterOperator) -> None:
    assert resolve_operator(alias) is op


def test_unknown_operator() -> None:
    with pytest.raises(FilterParseError, match="Unknown operator"):
        resolve_operator("startswith")


def test_colon_single_clause() -> None:
    assert ColonSeparatedSyntax().parse_filter("status:eq:active") == [
        FilterClause("status", FilterOperator.EQ, "active")
    ]


def test_colon_multiple_clauses_keep_set_values() -> None:
    clauses = ColonSeparatedSyntax().parse_filter("status:in:draft,published,views:gt:10")

    assert clauses == [
        FilterClause("status", FilterOperator.IN, ("draft", "published")),
        FilterClause("views", FilterOperator.GT, 10),
    ]


def test_colon_value_types() -> None:
    clauses = ColonSeparatedSyntax().parse_filter(
        "a:eq:true,b:eq:1.5,c:eq:null,d:eq:2024-01-01T10:00:00,e:is_null:"
    )

    assert [c.value for c in clauses] == [True, 1.5, None, "2024-01-01T10:00:00", None]
    assert clauses[-1].operator is FilterOperator.IS_NULL


def test_colon_quoted_values_stay_strings() -> None:
    clauses = ColonSeparatedSyntax().parse_filter(
        'code:eq:"10",flag:eq:"true",status:in:"null",draft,"7"'
    )

    assert [c.value for c in clauses] == ["10", "true", ("null", "draft", "7")]


def test_colon_rejects_malformed_clause() -> None:
    with pytest.raises(FilterParseError, match="Expected field:op:value"):
        ColonSeparatedSyntax().parse_filter("status")


def test_colon_ignores_non_string() -> None:
    assert ColonSeparatedSyntax().parse_filter(None) == []
    assert ColonSeparatedSyntax().parse_filter({"status": "x"}) == []


def test_json_list_and_wrapper() -> None:
    syntax = JsonFilterSyntax()
    raw = '{"and": [{"field": "views", "op": ">", "value": 10}, {"attr": "title", "operator": "like", "val": "%a%"}]}'

    assert syntax.parse_filter(raw) == [
        FilterClause("views", FilterOperator.GT, 10),
        FilterClause("title", FilterOperator.LIKE, "%a%"),
    ]
    assert syntax.parse_filter([{"field": "status", "value": "x"}]) == [
        FilterClause("status", FilterOperator.EQ, "x")
    ]


def test_json_rejects_or_groups() -> None:
    with pytest.raises(FilterParseError, match="OR groups"):
        JsonFilterSyntax().parse_filter({"or": [{"field": "a", "value": 1}]})


def test_json_rejects_invalid_json() -> None:
    with pytest.raises(FilterParseError):
        JsonFilterSyntax().parse_filter("{not json")


def test_json_requires_field() -> None:
    with pytest.raises(FilterParseError, match="needs a field"):
        JsonFilterSyntax().parse_filter([{"op": "=", "value": 1}])
