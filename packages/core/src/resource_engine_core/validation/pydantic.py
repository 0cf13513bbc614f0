"""PydanticInputValidator — validates request data against a Pydantic model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from ..primitives.exceptions import ValidationFailedError
from ..query.context import Operation

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pydantic import BaseModel


class PydanticInputValidator:
    """Validates create/update input through a Pydantic model class.

    ``update_schema`` is used for updates when given.  Without it, updates
    are validated against ``schema`` as a partial payload: errors about
    fields the caller did not send are ignored.

    Failures are converted into
    :class:`~resource_engine_core.primitives.exceptions.ValidationFailedError`
    with ``{field: [messages]}`` errors.
    """

    def __init__(
        self,
        schema: type[BaseModel],
        *,
        update_schema: type[BaseModel] | None = None,
    ) -> None:
        self._schema = schema
        self._update_schema = update_schema

    def validate(self, operation: Operation, data: Mapping[str, Any]) -> None:
        partial = operation is Operation.UPDATE and self._update_schema is None
        schema = (
            self._update_schema
            if operation is Operation.UPDATE and self._update_schema is not None
            else self._schema
        )
        try:
            schema.model_validate(dict(data))
        except PydanticValidationError as exc:
            errors: dict[str, list[str]] = {}
            for error in exc.errors():
                loc = error.get("loc", ()) or ("__root__",)
                if partial and loc[0] not in data:
                    continue
                field = ".".join(str(p) for p in loc)
                errors.setdefault(field, []).append(error.get("msg", "validation error"))
            if errors:
                raise ValidationFailedError(errors) from exc
