"""Serializer for :class:`~resource_engine_core.domain.entity.Record` entities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ...query.page import Page


class RecordSerializer:
    """Render entities with ``to_dict()`` and pages as ``{"data", "meta"}``."""

    def serialize(self, entity: Any) -> Any:
        return _plain(entity)

    def serialize_page(self, page: Page[Any]) -> dict[str, Any]:
        return {"data": [_plain(item) for item in page], "meta": page.to_meta()}


def _plain(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return {key: _plain(item) for key, item in value.to_dict().items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value
