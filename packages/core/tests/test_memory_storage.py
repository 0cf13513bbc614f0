"""Tests for InMemoryStorage, its queries and associations."""

from __future__ import annotations

import pytest

from resource_engine_core.adapters.memory import InMemoryStorage, RecordSerializer
from resource_engine_core.domain import RelationDescriptor, RelationKind
from resource_engine_core.primitives.exceptions import (
    ConfigurationError,
    EntityNotFoundError,
    InvalidPivotOperationError,
)
from resource_engine_core.query import FilterClause, SearchClause, SortClause
from resource_models import (
    AUTHOR,
    CATEGORIES,
    COMMENTS,
    IMAGE,
    TAGS,
    Comment,
    Image,
    Post,
    Tag,
    User,
)


class TestQuery:
    def test_save_assigns_sequential_ids(self, storage: InMemoryStorage) -> None:
        first = storage.save(Post(title="a"))
        second = storage.save(Tag(name="b"))
        third = storage.save(Post(title="c"))

        assert (first.id, second.id, third.id) == (1, 1, 2)

    def test_filters_are_anded(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        page = (
            storage.query(Post)
            .where(FilterClause("status", "=", "published"))
            .where(FilterClause("views", ">", 20))
            .paginate(1, 15)
        )

        assert [p.id for p in page] == [3]

    def test_search_is_or_across_fields(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        page = (
            storage.query(Post)
            .search(SearchClause("SECOND", ("title", "body")))
            .paginate(1, 15)
        )

        assert [p.title for p in page] == ["Draft notes"]

    def test_sorts_apply_in_listed_order(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        page = (
            storage.query(Post)
            .order_by(SortClause("status", "desc"))
            .order_by(SortClause("views", "desc"))
            .paginate(1, 15)
        )

        assert [p.id for p in page] == [3, 1, 2]

    def test_queries_are_immutable(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        base = storage.query(Post)
        base.where(FilterClause("status", "=", "draft"))

        assert base.paginate(1, 15).total == 3

    def test_paginate(self, storage: InMemoryStorage, seeded: list[Post]) -> None:
        page = storage.query(Post).paginate(2, 2)

        assert [p.id for p in page] == [3]
        assert page.total == 3
        assert page.last_page == 2
        assert not page.has_more

    def test_find_or_fail_respects_criteria(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        drafts = storage.query(Post).where(FilterClause("status", "=", "draft"))

        assert drafts.find_or_fail(2).title == "Draft notes"
        with pytest.raises(EntityNotFoundError):
            drafts.find_or_fail(1)

    def test_delete(self, storage: InMemoryStorage, seeded: list[Post]) -> None:
        storage.delete(seeded[0])

        with pytest.raises(EntityNotFoundError):
            storage.query(Post).find_or_fail(1)

    def test_unregistered_relation(self, storage: InMemoryStorage) -> None:
        with pytest.raises(ConfigurationError, match="not registered"):
            storage.load(storage.save(Tag(name="x")), ["posts"])


class TestAssociations:
    def test_has_many_save_sets_foreign_key(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        comment = storage.association(seeded[0], COMMENTS).save(Comment(body="hi"))

        assert comment.post_id == 1
        assert storage.association(seeded[0], COMMENTS).related() == [comment]
        assert storage.association(seeded[1], COMMENTS).related() == []

    def test_belongs_to_save_sets_parent_key(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        user = storage.association(seeded[0], AUTHOR).save(User(name="ann"))

        assert seeded[0].user_id == user.id
        storage.load(seeded[0], ["user"])
        assert seeded[0].user is user

    def test_morph_one_matches_type_and_id(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        image = storage.association(seeded[0], IMAGE).save(Image(url="a.png"))
        storage.save(Image(url="other.png", imageable_id=1, imageable_type="User"))

        assert image.imageable_type == "Post"
        storage.load(seeded[0], ["image"])
        assert seeded[0].image is image

    def test_has_many_through(self, storage: InMemoryStorage) -> None:
        class Country(User):
            pass

        relation = RelationDescriptor(
            name="posts",
            kind=RelationKind.HAS_MANY_THROUGH,
            target=Post,
            through=User,
        )
        country = storage.save(Country(name="gr"))
        author = storage.save(User(name="ann", country_id=country.id))
        storage.save(User(name="bob", country_id=99))
        post = storage.save(Post(title="x", user_id=author.id))
        storage.save(Post(title="y", user_id=2))

        assert storage.association(country, relation).related() == [post]

    def test_pivot_save_links_once(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        association = storage.association(seeded[0], TAGS)
        tag = association.save(Tag(name="new"))
        association.save(tag)

        assert association.related() == [tag]
        assert storage.pivot_rows("taggables") == [
            {"taggable_id": 1, "tag_id": tag.id, "taggable_type": "Post"}
        ]

    def test_morph_pivot_rows_are_scoped_by_type(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        storage.pivot_rows("taggables").append(
            {"taggable_id": 1, "tag_id": 2, "taggable_type": "Video"}
        )

        assert storage.association(seeded[0], TAGS).related() == []

    def test_sync_reports_changes(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        association = storage.association(seeded[0], TAGS)
        association.attach({1: {"meta": "a"}, 2: {}})

        result = association.sync({2: {"meta": "b"}, 3: {}})

        assert result.attached == [3]
        assert result.detached == [1]
        assert result.updated == [2]

    def test_sync_with_unchanged_attributes_reports_nothing(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        association = storage.association(seeded[0], TAGS)
        association.sync({1: {"meta": "a"}})

        assert not association.sync({1: {"meta": "a"}}).changed

    def test_attach_allows_duplicates(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        association = storage.association(seeded[0], CATEGORIES)
        association.attach([1])
        association.attach([1])

        assert len(storage.pivot_rows("category_post")) == 2
        assert association.detach([1]).detached == [1]
        assert storage.pivot_rows("category_post") == []

    def test_detach_ignores_unlinked_ids(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        association = storage.association(seeded[0], TAGS)
        association.attach([1])

        assert association.detach([1, 2]).detached == [1]
        assert association.detach([]).detached == []

    def test_update_existing_pivot_returns_matches(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        association = storage.association(seeded[0], CATEGORIES)
        association.attach({1: {"position": 1}})

        assert association.update_existing_pivot(1, {"position": 5}) == 1
        assert storage.pivot_rows("category_post")[0]["position"] == 5
        assert association.update_existing_pivot(2, {"position": 5}) == 0

    def test_pivot_operations_require_pivot_relation(
        self, storage: InMemoryStorage, seeded: list[Post]
    ) -> None:
        with pytest.raises(InvalidPivotOperationError):
            storage.association(seeded[0], COMMENTS).sync([1])

    def test_nested_loading(self, storage: InMemoryStorage, seeded: list[Post]) -> None:
        storage.register_relation(
            Comment,
            RelationDescriptor(
                name="author",
                kind=RelationKind.BELONGS_TO,
                target=User,
                foreign_key="user_id",
            ),
        )
        ann = storage.save(User(name="ann"))
        storage.association(seeded[0], COMMENTS).save(Comment(body="hi", user_id=ann.id))

        storage.load(seeded[0], ["comments.author"])

        assert [c.author for c in seeded[0].comments] == [ann]


def test_record_serializer(storage: InMemoryStorage, seeded: list[Post]) -> None:
    serializer = RecordSerializer()

    assert serializer.serialize(Tag(name="x")) == {"id": None, "name": "x"}
    body = serializer.serialize_page(storage.query(Tag).paginate(1, 2))
    assert body["data"] == [{"id": 1, "name": "python"}, {"id": 2, "name": "sql"}]
    assert body["meta"] == {"current_page": 1, "last_page": 2, "per_page": 2, "total": 3}
