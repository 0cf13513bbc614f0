"""Shared fixtures: a small blog schema over the in-memory storage."""

from __future__ import annotations

import pytest

from resource_engine_core.adapters.memory import InMemoryStorage
from resource_engine_core.config import ResourceConfig
from resource_engine_core.engine import RelationEngine, ResourceEngine
from resource_models import AUTHOR, CATEGORIES, COMMENTS, IMAGE, TAGS, Post, Tag

# --- Fixtures ---


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage(
        relations={Post: [TAGS, CATEGORIES, COMMENTS, AUTHOR, IMAGE]}
    )


@pytest.fixture
def post_config() -> ResourceConfig:
    return ResourceConfig(
        model=Post,
        filterable={"status": {"=", "in"}, "views": {">", "<", "="}, "title": {"like"}},
        sortable={"title", "views"},
        searchable=("title", "body"),
        includable={"tags", "comments", "user"},
    )


@pytest.fixture
def posts(storage: InMemoryStorage, post_config: ResourceConfig) -> ResourceEngine:
    return ResourceEngine(post_config, storage)


@pytest.fixture
def post_tags(posts: ResourceEngine, storage: InMemoryStorage) -> RelationEngine:
    return RelationEngine(
        posts, TAGS, ResourceConfig(model=Tag, filterable={"name"}), storage
    )


@pytest.fixture
def seeded(storage: InMemoryStorage) -> list[Post]:
    """Posts 1-3 and tags 1-3, nothing linked."""
    rows = [
        Post(title="Hello world", body="first", status="published", views=10),
        Post(title="Draft notes", body="second", status="draft", views=5),
        Post(title="Another hello", body="third", status="published", views=30),
    ]
    for post in rows:
        storage.save(post)
    for name in ("python", "sql", "web"):
        storage.save(Tag(name=name))
    return rows
