"""
ResourceEngine — list/create/read/update/delete for one root entity type.

Every operation runs the same lifecycle::

    before_<op> → authorize → query/mutation
                  (create/update: before_save → save → reload → after_save)
                → after_<op> → serializer

A non-empty hook result ends the operation immediately and is returned
as-is.  Errors (not found, forbidden, invalid query, validation) are
raised to the caller; nothing is retried or swallowed.

The query-building primitives (:meth:`build_query`, :meth:`find`,
:meth:`authorize`, :meth:`reload`) are public so the relation engine can
compose them instead of re-implementing them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..domain.entity import fill
from ..hooks import HookPipeline, HookPoint
from ..primitives.exceptions import ForbiddenError
from ..query.context import Operation, OperationContext

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ..config import ResourceConfig
    from ..ports.authorization import IAuthorizer
    from ..ports.serialization import ISerializer
    from ..ports.storage import IQuery, IStorage
    from ..ports.validation import IInputValidator
    from ..query.composer import QueryComposer
    from ..query.page import Page

logger = logging.getLogger("resource_engine.engine")

_EMPTY_CONTEXT = OperationContext()


class ResourceEngine:
    """CRUD operations over ``config.model`` through the storage port."""

    def __init__(
        self,
        config: ResourceConfig,
        storage: IStorage,
        *,
        authorizer: IAuthorizer | None = None,
        serializer: ISerializer | None = None,
        validator: IInputValidator | None = None,
        hooks: HookPipeline | None = None,
    ) -> None:
        self._config = config
        self._storage = storage
        self._authorizer = authorizer
        self._serializer = serializer
        self._validator = validator
        self._hooks = hooks or HookPipeline()
        self._composer = config.composer()

    @property
    def config(self) -> ResourceConfig:
        return self._config

    @property
    def storage(self) -> IStorage:
        return self._storage

    @property
    def composer(self) -> QueryComposer:
        return self._composer

    @property
    def hooks(self) -> HookPipeline:
        return self._hooks

    # ── Operations ───────────────────────────────────────────────

    def list(self, context: OperationContext | None = None) -> Any:
        """Return one page of entities matching the request criteria."""
        context = context or _EMPTY_CONTEXT
        logger.debug("%s.index page=%d", self._config.resource_name, context.page)

        hooked = self._hooks.run(HookPoint.BEFORE_INDEX, context)
        if hooked.handled:
            return hooked.value

        self.authorize(Operation.INDEX.value, self._config.model)

        page = (
            self.build_query(Operation.INDEX, context)
            .with_relations(self._composer.relations(context))
            .paginate(context.page, self._config.page_size(context.per_page))
        )

        hooked = self._hooks.run(HookPoint.AFTER_INDEX, context, page)
        if hooked.handled:
            return hooked.value

        return self.present_page(page)

    def create(
        self, data: Mapping[str, Any], context: OperationContext | None = None
    ) -> Any:
        """Create an entity from the fillable subset of *data*."""
        context = context or _EMPTY_CONTEXT
        logger.debug("%s.store", self._config.resource_name)
        self.validate(Operation.STORE, data)
        relations = self.relations(context)

        hooked = self._hooks.run(HookPoint.BEFORE_STORE, context, data)
        if hooked.handled:
            return hooked.value

        self.authorize(Operation.STORE.value, self._config.model)

        entity = fill(self._storage.new(self._config.model), data)

        hooked = self._hooks.run(HookPoint.BEFORE_SAVE, context, entity)
        if hooked.handled:
            return hooked.value

        self._storage.save(entity)
        self.reload(entity, relations)

        hooked = self._hooks.run(HookPoint.AFTER_SAVE, context, entity)
        if hooked.handled:
            return hooked.value

        hooked = self._hooks.run(HookPoint.AFTER_STORE, context, entity)
        if hooked.handled:
            return hooked.value

        return self.present(entity)

    def fetch(self, entity_id: Any, context: OperationContext | None = None) -> Any:
        """Return one entity; criteria may hide an otherwise existing id."""
        context = context or _EMPTY_CONTEXT
        logger.debug("%s.show id=%r", self._config.resource_name, entity_id)

        hooked = self._hooks.run(HookPoint.BEFORE_SHOW, context, entity_id)
        if hooked.handled:
            return hooked.value

        entity = self.find(entity_id, Operation.SHOW, context)
        self.authorize(Operation.SHOW.value, entity)

        hooked = self._hooks.run(HookPoint.AFTER_SHOW, context, entity)
        if hooked.handled:
            return hooked.value

        return self.present(entity)

    def update(
        self,
        entity_id: Any,
        data: Mapping[str, Any],
        context: OperationContext | None = None,
    ) -> Any:
        """Overwrite the fillable attributes of an existing entity."""
        context = context or _EMPTY_CONTEXT
        logger.debug("%s.update id=%r", self._config.resource_name, entity_id)
        self.validate(Operation.UPDATE, data)
        relations = self.relations(context)

        hooked = self._hooks.run(HookPoint.BEFORE_UPDATE, context, entity_id)
        if hooked.handled:
            return hooked.value

        entity = self.find(entity_id, Operation.UPDATE, context)
        self.authorize(Operation.UPDATE.value, entity)

        fill(entity, data)

        hooked = self._hooks.run(HookPoint.BEFORE_SAVE, context, entity)
        if hooked.handled:
            return hooked.value

        self._storage.save(entity)
        self.reload(entity, relations)

        hooked = self._hooks.run(HookPoint.AFTER_SAVE, context, entity)
        if hooked.handled:
            return hooked.value

        hooked = self._hooks.run(HookPoint.AFTER_UPDATE, context, entity)
        if hooked.handled:
            return hooked.value

        return self.present(entity)

    def delete(self, entity_id: Any, context: OperationContext | None = None) -> Any:
        """Remove an entity and return its last known state."""
        context = context or _EMPTY_CONTEXT
        logger.debug("%s.destroy id=%r", self._config.resource_name, entity_id)

        hooked = self._hooks.run(HookPoint.BEFORE_DESTROY, context, entity_id)
        if hooked.handled:
            return hooked.value

        entity = self.find(entity_id, Operation.DESTROY, context)
        self.authorize(Operation.DESTROY.value, entity)

        self._storage.delete(entity)

        hooked = self._hooks.run(HookPoint.AFTER_DESTROY, context, entity)
        if hooked.handled:
            return hooked.value

        return self.present(entity)

    # ── Query-building primitives ────────────────────────────────

    def build_query(self, operation: Operation, context: OperationContext) -> IQuery:
        """Base query for *operation*: resource scope, then request criteria."""
        return self.scope_query(
            self._storage.query(self._config.model), operation, context
        )

    def scope_query(
        self, query: IQuery, operation: Operation, context: OperationContext
    ) -> IQuery:
        scope = self._config.scope_for(operation)
        if scope is not None:
            query = scope(query, context)
        return self._composer.compose(query, context, operation)

    def find(
        self,
        entity_id: Any,
        operation: Operation,
        context: OperationContext | None = None,
    ) -> Any:
        """Load one entity under the criteria of *operation* or raise NotFound."""
        context = context or _EMPTY_CONTEXT
        return (
            self.build_query(operation, context)
            .with_relations(self._composer.relations(context))
            .find_or_fail(entity_id)
        )

    def reload(self, entity: Any, relations: Sequence[str]) -> Any:
        """Eager-load *relations* onto a freshly written entity."""
        if relations:
            self._storage.load(entity, relations)
        return entity

    def authorize(self, ability: str, subject: Any) -> None:
        """Raise :class:`ForbiddenError` unless the authorizer allows it."""
        if not self._config.authorization_required or self._authorizer is None:
            return
        if not self._authorizer.authorize(ability, subject):
            logger.warning(
                "Ability %s denied on %s", ability, self._config.resource_name
            )
            raise ForbiddenError(ability, subject)

    def validate(self, operation: Operation, data: Mapping[str, Any]) -> None:
        if self._validator is not None:
            self._validator.validate(operation, data)

    # ── Presentation ─────────────────────────────────────────────

    def present(self, entity: Any) -> Any:
        if self._serializer is None:
            return entity
        return self._serializer.serialize(entity)

    def present_page(self, page: Page[Any]) -> Any:
        if self._serializer is None:
            return page
        return self._serializer.serialize_page(page)

    def relations(self, context: OperationContext) -> Sequence[str]:
        return self._composer.relations(context)
