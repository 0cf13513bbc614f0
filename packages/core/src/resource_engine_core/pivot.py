"""
Pivot field sanitization — what extra data may ride on a many-to-many link.

Pivot payloads arrive in one of three shapes::

    {3: {"meta": "x"}, 4: {}}    # related id → pivot attributes
    [3, 4]                        # bare ids, no pivot data
    3                             # a single id

Only keys in the relation's ``pivot_fillable`` set survive; unknown keys
are dropped without error.  Structured values (mappings, lists, tuples)
are encoded as canonical JSON text because pivot columns are flat.
Storage adapters coerce related ids to the type of their key column
before comparing them with stored links.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .primitives.exceptions import ValidationFailedError

# mapping of id → attributes, sequence of ids, or a single id
PivotPayload = Any


class PivotResult(BaseModel):
    """Outcome of a pivot operation: which related ids changed and how."""

    model_config = ConfigDict(frozen=True)

    attached: list[Any] = Field(default_factory=list)
    detached: list[Any] = Field(default_factory=list)
    updated: list[Any] = Field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.attached or self.detached or self.updated)

    def merge(self, other: PivotResult) -> PivotResult:
        return PivotResult(
            attached=[*self.attached, *other.attached],
            detached=[*self.detached, *other.detached],
            updated=[*self.updated, *other.updated],
        )


def encode_pivot_value(value: Any) -> Any:
    """Encode structured values as canonical JSON; scalars pass through."""
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)
    return value


def sanitize_one(
    pivot_fields: Mapping[str, Any] | None, fillable: Iterable[str]
) -> dict[str, Any]:
    """Whitelist and encode the pivot attributes of a single link."""
    if not pivot_fields:
        return {}
    allowed = frozenset(fillable)
    return {
        key: encode_pivot_value(value)
        for key, value in pivot_fields.items()
        if key in allowed
    }


def sanitize_many(payload: PivotPayload, fillable: Iterable[str]) -> Any:
    """Whitelist and encode every mapping value of a pivot payload.

    Non-mapping values mean "link without pivot data" and pass through
    unchanged.  Bare ids (sequence or scalar) are returned as a list.
    """
    if payload is None:
        return []
    if not isinstance(payload, Mapping):
        return list(_wrap(payload))
    allowed = frozenset(fillable)
    cleaned: dict[Any, Any] = {}
    for related_id, pivot_fields in payload.items():
        if isinstance(pivot_fields, Mapping):
            cleaned[related_id] = sanitize_one(pivot_fields, allowed)
        else:
            cleaned[related_id] = pivot_fields
    return cleaned


def parse_pivot_records(payload: PivotPayload) -> dict[Any, dict[str, Any]]:
    """Normalize any payload shape into ``{related_id: attributes}``.

    Used by storage adapters; attributes are expected to be sanitized
    already.
    """
    if payload is None:
        return {}
    if isinstance(payload, Mapping):
        return {
            related_id: dict(attrs) if isinstance(attrs, Mapping) else {}
            for related_id, attrs in payload.items()
        }
    return {related_id: {} for related_id in _wrap(payload)}


def coerce_pivot_keys(
    records: dict[Any, dict[str, Any]], key_type: type | None
) -> dict[Any, dict[str, Any]]:
    """Convert the related ids of parsed *records* to *key_type*.

    JSON object keys are always strings, so ``{"3": {}}`` must address the
    same link as ``{3: {}}``.  ``None`` leaves ids untouched.
    """
    if key_type is None:
        return records
    coerced: dict[Any, dict[str, Any]] = {}
    for related_id, attributes in records.items():
        coerced[coerce_pivot_id(related_id, key_type)] = attributes
    return coerced


def coerce_pivot_id(related_id: Any, key_type: type | None) -> Any:
    if key_type is None or isinstance(related_id, key_type):
        return related_id
    try:
        return key_type(related_id)
    except (TypeError, ValueError) as e:
        raise ValidationFailedError(
            {"id": [f"{related_id!r} is not a valid {key_type.__name__} id"]}
        ) from e


def _wrap(payload: Any) -> Iterable[Any]:
    if isinstance(payload, (list, tuple, set, frozenset)):
        return payload
    return (payload,)
