"""SQLAlchemyStorage — storage port over a synchronous ``Session``.

The storage only flushes; committing or rolling back is left to whoever
owns the session (a request scope, a test fixture)::

    with Session(engine) as session, session.begin():
        storage = SQLAlchemyStorage(session, relations={Post: [tags]})
        ResourceEngine(posts_config, storage).create({"title": "Hi"})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from resource_engine_core.primitives.exceptions import ConfigurationError

from .association import SQLAlchemyAssociation
from .exceptions import SQLAlchemyPersistenceError
from .operators import build_default_registry
from .query import SQLAlchemyQuery

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from sqlalchemy.orm import Session

    from resource_engine_core.domain.relations import RelationDescriptor

    from .operators import SQLAlchemyOperatorRegistry

logger = logging.getLogger("resource_engine.sqlalchemy")


class SQLAlchemyStorage:
    """SQLAlchemy implementation of ``IStorage``."""

    def __init__(
        self,
        session: Session,
        relations: Mapping[type[Any], Iterable[RelationDescriptor]] | None = None,
        operators: SQLAlchemyOperatorRegistry | None = None,
    ) -> None:
        self._session = session
        self._relations: dict[type[Any], dict[str, RelationDescriptor]] = {}
        self._operators = operators or build_default_registry()
        for model, descriptors in (relations or {}).items():
            for descriptor in descriptors:
                self.register_relation(model, descriptor)

    @property
    def session(self) -> Session:
        return self._session

    def register_relation(self, model: type[Any], relation: RelationDescriptor) -> None:
        self._relations.setdefault(model, {})[relation.name] = relation

    def relation(self, model: type[Any], name: str) -> RelationDescriptor:
        try:
            return self._relations[model][name]
        except KeyError:
            raise ConfigurationError(
                f"Relation {name!r} is not registered for {model.__name__}"
            ) from None

    # ── IStorage ─────────────────────────────────────────────────

    def query(self, model: type[Any]) -> SQLAlchemyQuery:
        return SQLAlchemyQuery(
            storage=self,
            model=model,
            statement=select(model),
            operators=self._operators,
        )

    def association(
        self, parent: Any, relation: RelationDescriptor
    ) -> SQLAlchemyAssociation:
        return SQLAlchemyAssociation(self, parent, relation)

    def new(self, model: type[Any]) -> Any:
        return model()

    def save(self, entity: Any) -> Any:
        self._session.add(entity)
        self._flush(f"save {type(entity).__name__}")
        return entity

    def delete(self, entity: Any) -> None:
        self._session.delete(entity)
        self._flush(f"delete {type(entity).__name__} #{getattr(entity, 'id', None)}")

    def load(self, entity: Any, relations: Sequence[str]) -> Any:
        """Set each named relation as an attribute; dotted names nest."""
        for path in relations:
            name, _, rest = path.partition(".")
            relation = self.relation(type(entity), name)
            related = self.association(entity, relation).related()
            if relation.kind.is_single:
                setattr(entity, name, related[0] if related else None)
            else:
                setattr(entity, name, related)
            if rest:
                for item in related:
                    self.load(item, [rest])
        return entity

    def _flush(self, action: str) -> None:
        try:
            self._session.flush()
        except SQLAlchemyError as exc:
            logger.warning("Flush failed during %s: %s", action, exc)
            raise SQLAlchemyPersistenceError(f"Could not {action}: {exc}") from exc
