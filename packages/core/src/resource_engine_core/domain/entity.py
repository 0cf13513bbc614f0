"""Entity helpers — fillable whitelisting, keys and morph names.

The engine never owns entities; it reads and writes attributes through
these helpers so that any attribute-bearing object (SQLAlchemy model,
plain class, :class:`Record`) can act as an entity.

Usage::

    class Post(Record):
        __fillable__ = ("title", "body")

    post = fill(Post(), {"title": "Hi", "id": 99})   # id is ignored
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, ClassVar

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def snake_case(name: str) -> str:
    """``PostMeta`` → ``post_meta``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _entity_type(entity_or_type: Any) -> type[Any]:
    return entity_or_type if isinstance(entity_or_type, type) else type(entity_or_type)


def fillable_attributes(entity_or_type: Any) -> frozenset[str]:
    """Return the declared ``__fillable__`` names of an entity or entity type."""
    return frozenset(getattr(_entity_type(entity_or_type), "__fillable__", ()))


def fill(entity: Any, data: Mapping[str, Any]) -> Any:
    """Copy only the fillable keys of *data* onto *entity*."""
    allowed = fillable_attributes(entity)
    for key, value in data.items():
        if key in allowed:
            setattr(entity, key, value)
    return entity


def entity_key(entity: Any, key: str = "id") -> Any:
    return getattr(entity, key, None)


def morph_class(entity_or_type: Any) -> str:
    """Value stored in ``*_type`` columns of polymorphic relations."""
    cls = _entity_type(entity_or_type)
    return str(getattr(cls, "__morph_name__", cls.__name__))


class Record:
    """Plain attribute-bag entity used with the in-memory storage.

    Subclasses declare ``__fillable__``; any keyword passed to the
    constructor becomes an attribute.
    """

    __fillable__: ClassVar[tuple[str, ...]] = ()

    def __init__(self, **attributes: Any) -> None:
        self.id: Any = None
        for name, value in attributes.items():
            setattr(self, name, value)

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, self.__class__):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        attrs = ", ".join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"{type(self).__name__}({attrs})"
