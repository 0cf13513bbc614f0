"""Tests for ResourceEngine: root CRUD lifecycle."""

from __future__ import annotations

import logging
from typing import Any
from unittest.mock import MagicMock

import pytest
from pydantic import BaseModel, Field

from resource_engine_core.adapters.memory import (
    AllowAllAuthorizer,
    InMemoryStorage,
    PolicyAuthorizer,
    RecordSerializer,
)
from resource_engine_core.config import ResourceConfig
from resource_engine_core.engine import ResourceEngine
from resource_engine_core.hooks import HookPipeline, HookPoint
from resource_engine_core.primitives.exceptions import (
    EntityNotFoundError,
    FieldNotAllowedError,
    FilterParseError,
    ForbiddenError,
    InvalidQueryError,
    NotFoundError,
    ValidationFailedError,
)
from resource_engine_core.query import (
    FilterClause,
    Operation,
    OperationContext,
    Page,
    SortClause,
)
from resource_engine_core.validation import PydanticInputValidator
from resource_models import TAGS, Post


def _recording_hooks(calls: list[str]) -> HookPipeline:
    hooks = HookPipeline()
    for point in HookPoint:
        hooks.register(point, lambda *_, name=point.value: calls.append(name))
    return hooks


# ── list ─────────────────────────────────────────────────────────


class TestList:
    def test_returns_page(self, posts: ResourceEngine, seeded: list[Post]) -> None:
        page = posts.list()

        assert isinstance(page, Page)
        assert [p.id for p in page] == [1, 2, 3]
        assert page.per_page == 15

    def test_applies_filters_search_and_sort(
        self, posts: ResourceEngine, seeded: list[Post]
    ) -> None:
        context = OperationContext(
            filters=[FilterClause("status", "=", "published")],
            search="hello",
            sort=[SortClause("views", "desc")],
        )

        assert [p.id for p in posts.list(context)] == [3, 1]

    def test_unknown_filter_field_is_invalid_query(
        self, posts: ResourceEngine, seeded: list[Post]
    ) -> None:
        context = OperationContext(filters=[FilterClause("secret", "=", 1)])

        with pytest.raises(InvalidQueryError):
            posts.list(context)

    def test_incomparable_filter_value_is_invalid_query(
        self, posts: ResourceEngine, seeded: list[Post]
    ) -> None:
        context = OperationContext(filters=[FilterClause("views", ">", "abc")])

        with pytest.raises(FilterParseError, match="on field 'views'"):
            posts.list(context)

    def test_mixed_sort_values_are_invalid_query(
        self, posts: ResourceEngine, seeded: list[Post]
    ) -> None:
        seeded[1].title = 7

        with pytest.raises(InvalidQueryError, match="Cannot sort Post by 'title'"):
            posts.list(OperationContext(sort=[SortClause("title")]))

    def test_per_page_is_capped(self, storage: InMemoryStorage) -> None:
        engine = ResourceEngine(ResourceConfig(model=Post, max_per_page=20), storage)

        assert engine.list(OperationContext(per_page=500)).per_page == 20

    def test_includes_are_loaded(
        self, posts: ResourceEngine, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        storage.association(seeded[0], TAGS).attach([1])

        page = posts.list(OperationContext(includes=("tags",)))

        assert [t.name for t in page.items[0].tags] == ["python"]
        assert page.items[1].tags == []

    def test_unknown_include_is_rejected(
        self, posts: ResourceEngine, seeded: list[Post]
    ) -> None:
        with pytest.raises(FieldNotAllowedError):
            posts.list(OperationContext(includes=("secrets",)))

    def test_index_scope(self, storage: InMemoryStorage, seeded: list[Post]) -> None:
        config = ResourceConfig(
            model=Post,
            scopes={
                Operation.INDEX: lambda q, _: q.where(
                    FilterClause("status", "=", "published")
                )
            },
        )

        assert [p.id for p in ResourceEngine(config, storage).list()] == [1, 3]


# ── create / update ──────────────────────────────────────────────


class TestWrite:
    def test_create_persists_only_fillable(
        self, posts: ResourceEngine, storage: InMemoryStorage
    ) -> None:
        post = posts.create({"title": "New", "id": 42, "admin": True})

        assert post.id == 1
        assert post.title == "New"
        assert not hasattr(post, "admin")
        assert storage.query(Post).find_or_fail(1) is post

    def test_update_persists_only_fillable(
        self, posts: ResourceEngine, seeded: list[Post]
    ) -> None:
        post = posts.update(1, {"title": "Changed", "id": 9, "admin": True})

        assert post.id == 1
        assert post.title == "Changed"
        assert not hasattr(post, "admin")

    def test_update_ignores_request_filters(
        self, posts: ResourceEngine, seeded: list[Post]
    ) -> None:
        context = OperationContext(filters=[FilterClause("unknown", "=", 1)])

        assert posts.update(2, {"title": "x"}, context).title == "x"

    def test_update_scope_hides_entity(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        config = ResourceConfig(
            model=Post,
            scopes={
                Operation.UPDATE: lambda q, _: q.where(
                    FilterClause("status", "=", "draft")
                )
            },
        )

        with pytest.raises(NotFoundError):
            ResourceEngine(config, storage).update(1, {"title": "x"})

    def test_unknown_include_rejected_before_create(
        self, posts: ResourceEngine, storage: InMemoryStorage
    ) -> None:
        before_save = MagicMock(return_value=None)
        posts.hooks.register(HookPoint.BEFORE_SAVE, before_save)

        with pytest.raises(FieldNotAllowedError):
            posts.create({"title": "x"}, OperationContext(includes=("secrets",)))

        before_save.assert_not_called()
        assert storage.all(Post) == []

    def test_unknown_include_rejected_before_update(
        self, posts: ResourceEngine, seeded: list[Post]
    ) -> None:
        with pytest.raises(FieldNotAllowedError):
            posts.update(1, {"title": "x"}, OperationContext(includes=("secrets",)))

        assert seeded[0].title == "Hello world"

    def test_create_hook_order(self, storage: InMemoryStorage) -> None:
        calls: list[str] = []
        engine = ResourceEngine(
            ResourceConfig(model=Post), storage, hooks=_recording_hooks(calls)
        )

        engine.create({"title": "x"})

        assert calls == ["before_store", "before_save", "after_save", "after_store"]

    def test_update_hook_order(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        calls: list[str] = []
        engine = ResourceEngine(
            ResourceConfig(model=Post), storage, hooks=_recording_hooks(calls)
        )

        engine.update(1, {"title": "x"})

        assert calls == ["before_update", "before_save", "after_save", "after_update"]

    def test_before_update_short_circuit_never_saves(self) -> None:
        storage = MagicMock()
        hooks = HookPipeline({HookPoint.BEFORE_UPDATE: lambda *_: {"locked": True}})
        engine = ResourceEngine(ResourceConfig(model=Post), storage, hooks=hooks)

        result = engine.update(1, {"title": "x"})

        assert result == {"locked": True}
        storage.query.assert_not_called()
        storage.save.assert_not_called()

    def test_before_save_short_circuit_skips_persistence(
        self, storage: InMemoryStorage
    ) -> None:
        hooks = HookPipeline({HookPoint.BEFORE_SAVE: lambda *_: "skipped"})
        engine = ResourceEngine(ResourceConfig(model=Post), storage, hooks=hooks)

        assert engine.create({"title": "x"}) == "skipped"
        assert storage.all(Post) == []

    def test_after_save_short_circuit_skips_after_store(
        self, storage: InMemoryStorage
    ) -> None:
        after_store = MagicMock(return_value=None)
        hooks = HookPipeline(
            {
                HookPoint.AFTER_SAVE: lambda *_: ["stop"],
                HookPoint.AFTER_STORE: after_store,
            }
        )
        engine = ResourceEngine(ResourceConfig(model=Post), storage, hooks=hooks)

        assert engine.create({"title": "x"}) == ["stop"]
        after_store.assert_not_called()
        assert len(storage.all(Post)) == 1

    def test_empty_hook_results_continue(self, storage: InMemoryStorage) -> None:
        hooks = HookPipeline(
            {HookPoint.BEFORE_STORE: lambda *_: {}, HookPoint.AFTER_STORE: lambda *_: ""}
        )
        engine = ResourceEngine(ResourceConfig(model=Post), storage, hooks=hooks)

        assert engine.create({"title": "x"}).title == "x"


# ── fetch / delete ───────────────────────────────────────────────


class TestReadAndDelete:
    def test_fetch(self, posts: ResourceEngine, seeded: list[Post]) -> None:
        assert posts.fetch(2).title == "Draft notes"

    def test_fetch_hidden_by_filter_is_not_found(
        self, posts: ResourceEngine, seeded: list[Post]
    ) -> None:
        context = OperationContext(filters=[FilterClause("status", "=", "published")])

        with pytest.raises(EntityNotFoundError):
            posts.fetch(2, context)

    def test_fetch_missing(self, posts: ResourceEngine) -> None:
        with pytest.raises(NotFoundError):
            posts.fetch(7)

    def test_delete_returns_last_state(
        self, posts: ResourceEngine, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        deleted = posts.delete(1)

        assert deleted.title == "Hello world"
        assert [p.id for p in storage.all(Post)] == [2, 3]

    def test_before_destroy_short_circuit(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        hooks = HookPipeline({HookPoint.BEFORE_DESTROY: lambda *_: "kept"})
        engine = ResourceEngine(ResourceConfig(model=Post), storage, hooks=hooks)

        assert engine.delete(1) == "kept"
        assert len(storage.all(Post)) == 3

    def test_after_show_receives_entity(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        after_show = MagicMock(return_value=None)
        engine = ResourceEngine(
            ResourceConfig(model=Post),
            storage,
            hooks=HookPipeline({HookPoint.AFTER_SHOW: after_show}),
        )
        context = OperationContext()

        engine.fetch(1, context)

        after_show.assert_called_once_with(context, seeded[0])


# ── Collaborators ────────────────────────────────────────────────


class TestAuthorization:
    def test_type_level_denial_before_query(self) -> None:
        storage = MagicMock()
        engine = ResourceEngine(
            ResourceConfig(model=Post),
            storage,
            authorizer=PolicyAuthorizer({}),
        )

        with pytest.raises(ForbiddenError):
            engine.list()
        with pytest.raises(ForbiddenError):
            engine.create({"title": "x"})
        storage.query.assert_not_called()
        storage.save.assert_not_called()

    def test_instance_level_check_receives_entity(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        seen: list[Any] = []
        authorizer = PolicyAuthorizer(
            {"show": lambda post: seen.append(post) or post.status == "published"}
        )
        engine = ResourceEngine(ResourceConfig(model=Post), storage, authorizer=authorizer)

        assert engine.fetch(1).id == 1
        with pytest.raises(ForbiddenError):
            engine.fetch(2)
        assert seen == [seeded[0], seeded[1]]

    def test_denied_update_does_not_save(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        engine = ResourceEngine(
            ResourceConfig(model=Post), storage, authorizer=PolicyAuthorizer({})
        )

        with pytest.raises(ForbiddenError):
            engine.update(1, {"title": "x"})
        assert seeded[0].title == "Hello world"

    def test_denial_is_logged(
        self,
        storage: InMemoryStorage,
        seeded: list[Post],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        engine = ResourceEngine(
            ResourceConfig(model=Post), storage, authorizer=PolicyAuthorizer({})
        )

        with caplog.at_level(logging.WARNING, logger="resource_engine.engine"):
            with pytest.raises(ForbiddenError):
                engine.delete(1)

        assert "Ability destroy denied on Post" in caplog.text

    def test_allow_all_authorizer_grants_every_operation(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        engine = ResourceEngine(
            ResourceConfig(model=Post), storage, authorizer=AllowAllAuthorizer()
        )

        assert [p.id for p in engine.list()] == [1, 2, 3]
        created = engine.create({"title": "x"})
        assert engine.update(created.id, {"title": "y"}).title == "y"
        engine.delete(created.id)
        assert len(storage.all(Post)) == 3

    def test_policy_fallback_decides_unlisted_abilities(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        authorizer = PolicyAuthorizer(
            {"destroy": lambda post: post.status == "draft"},
            fallback=AllowAllAuthorizer(),
        )
        engine = ResourceEngine(ResourceConfig(model=Post), storage, authorizer=authorizer)

        assert engine.fetch(1).id == 1
        with pytest.raises(ForbiddenError):
            engine.delete(1)
        engine.delete(2)
        assert [p.id for p in storage.all(Post)] == [1, 3]

    def test_authorization_can_be_disabled(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        engine = ResourceEngine(
            ResourceConfig(model=Post, authorization_required=False),
            storage,
            authorizer=PolicyAuthorizer({}),
        )

        assert engine.fetch(1).id == 1


class PostInput(BaseModel):
    title: str = Field(min_length=3)
    views: int = 0


class TestValidationAndSerialization:
    def test_validator_runs_before_hooks(self, storage: InMemoryStorage) -> None:
        before_store = MagicMock(return_value=None)
        engine = ResourceEngine(
            ResourceConfig(model=Post),
            storage,
            validator=PydanticInputValidator(PostInput),
            hooks=HookPipeline({HookPoint.BEFORE_STORE: before_store}),
        )

        with pytest.raises(ValidationFailedError) as info:
            engine.create({"title": "x"})

        assert "title" in info.value.errors
        before_store.assert_not_called()
        assert storage.all(Post) == []

    def test_update_validates_partial_payload(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        engine = ResourceEngine(
            ResourceConfig(model=Post),
            storage,
            validator=PydanticInputValidator(PostInput),
        )

        assert engine.update(1, {"views": 3}).views == 3
        with pytest.raises(ValidationFailedError) as info:
            engine.update(1, {"views": "many"})
        assert list(info.value.errors) == ["views"]

    def test_serializer_shapes_results(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        engine = ResourceEngine(
            ResourceConfig(model=Post), storage, serializer=RecordSerializer()
        )

        assert engine.fetch(2)["title"] == "Draft notes"
        body = engine.list(OperationContext(per_page=2))
        assert len(body["data"]) == 2
        assert body["meta"]["last_page"] == 2

    def test_short_circuit_bypasses_serializer(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        serializer = MagicMock()
        engine = ResourceEngine(
            ResourceConfig(model=Post),
            storage,
            serializer=serializer,
            hooks=HookPipeline({HookPoint.AFTER_SHOW: lambda *_: "raw"}),
        )

        assert engine.fetch(1) == "raw"
        serializer.serialize.assert_not_called()
