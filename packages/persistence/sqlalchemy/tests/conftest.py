"""Fixtures: the mapped blog schema on in-memory SQLite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from resource_engine_core.config import ResourceConfig
from resource_engine_core.engine import RelationEngine, ResourceEngine
from resource_engine_persistence_sqlalchemy import SQLAlchemyStorage
from sql_models import (
    AUTHOR,
    CATEGORIES,
    COMMENTS,
    IMAGE,
    TAGS,
    Base,
    Post,
    Tag,
)

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def session() -> Iterator[Session]:
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture
def storage(session: Session) -> SQLAlchemyStorage:
    return SQLAlchemyStorage(
        session, relations={Post: [TAGS, CATEGORIES, COMMENTS, AUTHOR, IMAGE]}
    )


@pytest.fixture
def posts(storage: SQLAlchemyStorage) -> ResourceEngine:
    config = ResourceConfig(
        model=Post,
        filterable={"status": {"=", "in"}, "views": {">", "<", "="}, "title": {"like"}},
        sortable={"title", "views"},
        searchable=("title", "body"),
        includable={"tags", "comments", "user"},
    )
    return ResourceEngine(config, storage)


@pytest.fixture
def post_tags(posts: ResourceEngine, storage: SQLAlchemyStorage) -> RelationEngine:
    return RelationEngine(
        posts, TAGS, ResourceConfig(model=Tag, filterable={"name"}), storage
    )


@pytest.fixture
def seeded(session: Session) -> list[Post]:
    """Posts 1-3 and tags 1-3, nothing linked."""
    rows = [
        Post(title="Hello world", body="first", status="published", views=10),
        Post(title="Draft notes", body="second", status="draft", views=5),
        Post(title="Another hello", body=None, status="published", views=30),
    ]
    session.add_all(rows)
    session.add_all([Tag(name=name) for name in ("python", "sql", "web")])
    session.flush()
    return rows
