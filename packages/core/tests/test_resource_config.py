"""Tests for ResourceConfig."""

from __future__ import annotations

import pytest

from resource_engine_core.config import ResourceConfig
from resource_engine_core.primitives.exceptions import ConfigurationError
from resource_engine_core.query import FilterOperator, Operation
from resource_models import Post


def test_defaults() -> None:
    config = ResourceConfig(model=Post)

    assert config.resource_name == "Post"
    assert config.per_page == 15
    assert config.max_per_page == 100
    assert config.authorization_required
    assert config.scope_for(Operation.INDEX) is None


def test_page_size_is_capped() -> None:
    config = ResourceConfig(model=Post, per_page=10, max_per_page=50)

    assert config.page_size(None) == 10
    assert config.page_size(20) == 20
    assert config.page_size(500) == 50


@pytest.mark.parametrize(("per_page", "max_per_page"), [(0, 100), (20, 10)])
def test_invalid_page_sizes(per_page: int, max_per_page: int) -> None:
    with pytest.raises(ConfigurationError):
        ResourceConfig(model=Post, per_page=per_page, max_per_page=max_per_page)


def test_scopes_accept_operation_names() -> None:
    def published(query, _context):  # type: ignore[no-untyped-def]
        return query

    config = ResourceConfig(model=Post, scopes={"index": published})

    assert config.scope_for(Operation.INDEX) is published


def test_whitelist_includes_always_included_relations() -> None:
    config = ResourceConfig(
        model=Post,
        filterable={"status": {"="}},
        includable={"tags"},
        always_include=("user",),
        name="posts",
    )
    whitelist = config.whitelist()

    assert whitelist.resource == "posts"
    assert whitelist.filterable_fields == {"status": frozenset({FilterOperator.EQ})}
    assert whitelist.includable_relations == {"tags", "user"}
