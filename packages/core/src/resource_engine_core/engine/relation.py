"""
RelationEngine — nested CRUD and pivot operations under one parent.

The engine composes a parent :class:`ResourceEngine` (used only to locate
and authorize the parent) with the relation descriptor and the related
side's :class:`ResourceConfig`::

    post_tags = RelationEngine(
        posts,
        RelationDescriptor(name="tags", kind=RelationKind.MORPH_TO_MANY,
                           target=Tag, morph_name="taggable",
                           pivot_fillable={"meta"}),
        ResourceConfig(model=Tag, filterable={"name"}),
        storage,
    )
    post_tags.sync(1, {3: {"meta": "x"}, 4: {}})

CRUD operations follow the same lifecycle as the root engine, with the
related collection reached through ``storage.association(parent, relation)``
and authorization checked against the related type or instance.

Pivot operations (``sync``, ``toggle``, ``attach``, ``detach``,
``update_pivot``) only exist on many-to-many relations.  On any other
kind they raise :class:`InvalidPivotOperationError` before a hook or the
storage is touched.  They are authorized as ``update`` on the parent and
return a :class:`PivotResult`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..domain.entity import fill
from ..hooks import HookPipeline, HookPoint
from ..pivot import PivotResult, sanitize_many, sanitize_one
from ..primitives.exceptions import PivotNotFoundError
from ..query.context import Operation, OperationContext
from .resource import ResourceEngine

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from ..config import ResourceConfig
    from ..domain.relations import RelationDescriptor
    from ..pivot import PivotPayload
    from ..ports.authorization import IAuthorizer
    from ..ports.serialization import ISerializer
    from ..ports.storage import IAssociation, IStorage
    from ..ports.validation import IInputValidator

logger = logging.getLogger("resource_engine.engine")

_EMPTY_CONTEXT = OperationContext()


class RelationEngine:
    """Operations on the entities related to one parent through *relation*."""

    def __init__(
        self,
        parent: ResourceEngine,
        relation: RelationDescriptor,
        config: ResourceConfig,
        storage: IStorage | None = None,
        *,
        authorizer: IAuthorizer | None = None,
        serializer: ISerializer | None = None,
        validator: IInputValidator | None = None,
        hooks: HookPipeline | None = None,
    ) -> None:
        self._parent = parent
        self._relation = relation
        self._storage = storage or parent.storage
        self._hooks = hooks or HookPipeline()
        self._related = ResourceEngine(
            config,
            self._storage,
            authorizer=authorizer,
            serializer=serializer,
            validator=validator,
            hooks=self._hooks,
        )

    @property
    def relation(self) -> RelationDescriptor:
        return self._relation

    @property
    def supports_pivot(self) -> bool:
        return self._relation.has_pivot

    @property
    def hooks(self) -> HookPipeline:
        return self._hooks

    # ── CRUD ─────────────────────────────────────────────────────

    def list(self, parent_id: Any, context: OperationContext | None = None) -> Any:
        context = context or _EMPTY_CONTEXT
        self._log("index", parent_id)

        hooked = self._hooks.run(HookPoint.BEFORE_INDEX, context)
        if hooked.handled:
            return hooked.value

        association = self._association(parent_id, Operation.INDEX)
        self._related.authorize(Operation.INDEX.value, self._relation.target)

        page = (
            self._related.scope_query(association.query(), Operation.INDEX, context)
            .with_relations(self._related.relations(context))
            .paginate(context.page, self._related.config.page_size(context.per_page))
        )

        hooked = self._hooks.run(HookPoint.AFTER_INDEX, context, page)
        if hooked.handled:
            return hooked.value

        return self._related.present_page(page)

    def create(
        self,
        parent_id: Any,
        data: Mapping[str, Any],
        context: OperationContext | None = None,
    ) -> Any:
        """Create a related entity and link it to the parent."""
        context = context or _EMPTY_CONTEXT
        self._log("store", parent_id)
        self._related.validate(Operation.STORE, data)
        relations = self._related.relations(context)

        hooked = self._hooks.run(HookPoint.BEFORE_STORE, context, data)
        if hooked.handled:
            return hooked.value

        association = self._association(parent_id, Operation.STORE)
        self._related.authorize(Operation.STORE.value, self._relation.target)

        entity = fill(self._storage.new(self._relation.target), data)
        return self._save(
            association, entity, relations, context, HookPoint.AFTER_STORE
        )

    def fetch(
        self,
        parent_id: Any,
        related_id: Any,
        context: OperationContext | None = None,
    ) -> Any:
        context = context or _EMPTY_CONTEXT
        self._log("show", parent_id, related_id)

        hooked = self._hooks.run(HookPoint.BEFORE_SHOW, context, related_id)
        if hooked.handled:
            return hooked.value

        association = self._association(parent_id, Operation.SHOW)
        entity = self._find(association, related_id, Operation.SHOW, context)
        self._related.authorize(Operation.SHOW.value, entity)

        hooked = self._hooks.run(HookPoint.AFTER_SHOW, context, entity)
        if hooked.handled:
            return hooked.value

        return self._related.present(entity)

    def update(
        self,
        parent_id: Any,
        related_id: Any,
        data: Mapping[str, Any],
        context: OperationContext | None = None,
    ) -> Any:
        context = context or _EMPTY_CONTEXT
        self._log("update", parent_id, related_id)
        self._related.validate(Operation.UPDATE, data)
        relations = self._related.relations(context)

        hooked = self._hooks.run(HookPoint.BEFORE_UPDATE, context, related_id)
        if hooked.handled:
            return hooked.value

        association = self._association(parent_id, Operation.UPDATE)
        entity = self._find(association, related_id, Operation.UPDATE, context)
        self._related.authorize(Operation.UPDATE.value, entity)

        fill(entity, data)
        return self._save(
            association, entity, relations, context, HookPoint.AFTER_UPDATE
        )

    def delete(
        self,
        parent_id: Any,
        related_id: Any,
        context: OperationContext | None = None,
    ) -> Any:
        context = context or _EMPTY_CONTEXT
        self._log("destroy", parent_id, related_id)

        hooked = self._hooks.run(HookPoint.BEFORE_DESTROY, context, related_id)
        if hooked.handled:
            return hooked.value

        association = self._association(parent_id, Operation.DESTROY)
        entity = self._find(association, related_id, Operation.DESTROY, context)
        self._related.authorize(Operation.DESTROY.value, entity)

        self._storage.delete(entity)

        hooked = self._hooks.run(HookPoint.AFTER_DESTROY, context, entity)
        if hooked.handled:
            return hooked.value

        return self._related.present(entity)

    # ── Pivot operations ─────────────────────────────────────────

    def sync(
        self,
        parent_id: Any,
        payload: PivotPayload,
        detaching: bool = True,
        context: OperationContext | None = None,
    ) -> Any:
        """Make the parent's links equal *payload* (or a superset of it).

        With ``detaching=False`` links absent from the payload are kept.
        """
        self._relation.ensure_pivot(Operation.SYNC.value)
        return self._pivot(
            Operation.SYNC,
            parent_id,
            context,
            lambda assoc: assoc.sync(
                sanitize_many(payload, self._relation.pivot_fillable),
                detaching=detaching,
            ),
        )

    def toggle(
        self,
        parent_id: Any,
        payload: PivotPayload,
        context: OperationContext | None = None,
    ) -> Any:
        """Detach the listed ids that are linked, attach the others."""
        self._relation.ensure_pivot(Operation.TOGGLE.value)
        return self._pivot(
            Operation.TOGGLE,
            parent_id,
            context,
            lambda assoc: assoc.toggle(
                sanitize_many(payload, self._relation.pivot_fillable)
            ),
        )

    def attach(
        self,
        parent_id: Any,
        payload: PivotPayload,
        duplicates: bool = False,
        context: OperationContext | None = None,
    ) -> Any:
        """Link the payload ids to the parent.

        Without ``duplicates`` this is a non-detaching sync: ids already
        linked only get their pivot attributes refreshed.
        """
        self._relation.ensure_pivot(Operation.ATTACH.value)

        def attach(assoc: IAssociation) -> PivotResult:
            records = sanitize_many(payload, self._relation.pivot_fillable)
            if duplicates:
                return assoc.attach(records)
            return assoc.sync(records, detaching=False)

        return self._pivot(Operation.ATTACH, parent_id, context, attach)

    def detach(
        self,
        parent_id: Any,
        payload: PivotPayload,
        context: OperationContext | None = None,
    ) -> Any:
        self._relation.ensure_pivot(Operation.DETACH.value)
        return self._pivot(
            Operation.DETACH,
            parent_id,
            context,
            lambda assoc: assoc.detach(
                sanitize_many(payload, self._relation.pivot_fillable)
            ),
        )

    def update_pivot(
        self,
        parent_id: Any,
        related_id: Any,
        pivot_fields: Mapping[str, Any] | None,
        context: OperationContext | None = None,
    ) -> Any:
        """Overwrite the pivot attributes of an existing link."""
        self._relation.ensure_pivot(Operation.UPDATE_PIVOT.value)

        def update(assoc: IAssociation) -> PivotResult:
            attributes = sanitize_one(pivot_fields, self._relation.pivot_fillable)
            if not assoc.update_existing_pivot(related_id, attributes):
                raise PivotNotFoundError(self._relation.name, parent_id, related_id)
            return PivotResult(updated=[related_id])

        return self._pivot(Operation.UPDATE_PIVOT, parent_id, context, update)

    # ── Internals ────────────────────────────────────────────────

    def _pivot(
        self,
        operation: Operation,
        parent_id: Any,
        context: OperationContext | None,
        mutate: Callable[[IAssociation], PivotResult],
    ) -> Any:
        context = context or _EMPTY_CONTEXT
        self._log(operation.value, parent_id)
        before = HookPoint(f"before_{operation.value}")
        after = HookPoint(f"after_{operation.value}")

        hooked = self._hooks.run(before, context, parent_id)
        if hooked.handled:
            return hooked.value

        parent = self._parent.find(parent_id, Operation.UPDATE)
        self._parent.authorize(Operation.UPDATE.value, parent)

        result = mutate(self._storage.association(parent, self._relation))

        hooked = self._hooks.run(after, context, result)
        if hooked.handled:
            return hooked.value

        return result

    def _association(self, parent_id: Any, operation: Operation) -> IAssociation:
        """Locate the parent under its own scope for *operation*."""
        parent_operation = Operation.SHOW if operation.reads else Operation.UPDATE
        parent = self._parent.find(parent_id, parent_operation)
        return self._storage.association(parent, self._relation)

    def _find(
        self,
        association: IAssociation,
        related_id: Any,
        operation: Operation,
        context: OperationContext,
    ) -> Any:
        return (
            self._related.scope_query(association.query(), operation, context)
            .with_relations(self._related.relations(context))
            .find_or_fail(related_id)
        )

    def _save(
        self,
        association: IAssociation,
        entity: Any,
        relations: Sequence[str],
        context: OperationContext,
        after: HookPoint,
    ) -> Any:
        hooked = self._hooks.run(HookPoint.BEFORE_SAVE, context, entity)
        if hooked.handled:
            return hooked.value

        association.save(entity)
        self._related.reload(entity, relations)

        hooked = self._hooks.run(HookPoint.AFTER_SAVE, context, entity)
        if hooked.handled:
            return hooked.value

        hooked = self._hooks.run(after, context, entity)
        if hooked.handled:
            return hooked.value

        return self._related.present(entity)

    def _log(self, operation: str, parent_id: Any, related_id: Any = None) -> None:
        logger.debug(
            "%s.%s.%s parent=%r related=%r",
            self._parent.config.resource_name,
            self._relation.name,
            operation,
            parent_id,
            related_id,
        )
