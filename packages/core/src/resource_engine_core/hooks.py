"""
Hook pipeline — named extension points around every operation.

A resource registers plain callables for the points it cares about;
an unregistered point is a no-op.  When a callback returns a non-empty
value the operation stops and that value becomes its result::

    hooks = HookPipeline()

    @hooks.on(HookPoint.BEFORE_UPDATE)
    def freeze_archived(context, entity_id):
        if entity_id in archived_ids:
            return {"status": "archived"}      # update never runs

Callback arguments per point:

* ``before_index(context)`` / ``after_index(context, page)``
* ``before_store(context, data)`` / ``after_store(context, entity)``
* ``before_show|before_update|before_destroy(context, entity_id)``
* ``after_show|after_update|after_destroy(context, entity)``
* ``before_save(context, entity)`` / ``after_save(context, entity)``
* ``before_<pivot op>(context, parent_id)`` / ``after_<pivot op>(context, result)``

The pipeline holds only the registrations made at configuration time;
it keeps no per-request state.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sized
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar, cast

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("resource_engine.hooks")

T = TypeVar("T")


class HookPoint(str, Enum):
    BEFORE_INDEX = "before_index"
    AFTER_INDEX = "after_index"
    BEFORE_STORE = "before_store"
    AFTER_STORE = "after_store"
    BEFORE_SHOW = "before_show"
    AFTER_SHOW = "after_show"
    BEFORE_UPDATE = "before_update"
    AFTER_UPDATE = "after_update"
    BEFORE_DESTROY = "before_destroy"
    AFTER_DESTROY = "after_destroy"
    BEFORE_SAVE = "before_save"
    AFTER_SAVE = "after_save"
    BEFORE_SYNC = "before_sync"
    AFTER_SYNC = "after_sync"
    BEFORE_TOGGLE = "before_toggle"
    AFTER_TOGGLE = "after_toggle"
    BEFORE_ATTACH = "before_attach"
    AFTER_ATTACH = "after_attach"
    BEFORE_DETACH = "before_detach"
    AFTER_DETACH = "after_detach"
    BEFORE_UPDATE_PIVOT = "before_update_pivot"
    AFTER_UPDATE_PIVOT = "after_update_pivot"


@dataclass(frozen=True)
class HookResult(Generic[T]):
    """
    Result of running one hook point.

    Attributes:
        value: The value returned by the callback.
        handled: If ``True``, the operation must stop and return ``value``.
    """

    value: T
    handled: bool = True

    @classmethod
    def skip(cls) -> HookResult[None]:
        """Let the pipeline continue."""
        return cast("HookResult[None]", cls(value=None, handled=False))  # type: ignore[arg-type]


def is_empty(value: Any) -> bool:
    """``None``, empty strings and empty collections do not short-circuit."""
    if value is None:
        return True
    if isinstance(value, (str, bytes, Mapping, list, tuple, set, frozenset)):
        return len(cast("Sized", value)) == 0
    return False


class HookPipeline:
    """Callback registrations keyed by :class:`HookPoint`."""

    def __init__(
        self, callbacks: Mapping[HookPoint, Callable[..., Any]] | None = None
    ) -> None:
        self._callbacks: dict[HookPoint, Callable[..., Any]] = {}
        for point, callback in (callbacks or {}).items():
            self.register(point, callback)

    # ── Registration ─────────────────────────────────────────────

    def register(self, point: HookPoint | str, callback: Callable[..., Any]) -> None:
        """Register *callback* for *point*, replacing any previous one."""
        point = HookPoint(point)
        if point in self._callbacks:
            logger.debug("Replacing hook %s", point.value)
        self._callbacks[point] = callback

    def on(
        self, point: HookPoint | str
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator-style registration."""

        def wrapper(callback: Callable[..., Any]) -> Callable[..., Any]:
            self.register(point, callback)
            return callback

        return wrapper

    def has(self, point: HookPoint) -> bool:
        return point in self._callbacks

    # ── Execution ────────────────────────────────────────────────

    def run(self, point: HookPoint, *args: Any) -> HookResult[Any]:
        """Invoke the callback for *point* (if any) and judge its result."""
        callback = self._callbacks.get(point)
        if callback is None:
            return HookResult.skip()
        value = callback(*args)
        if is_empty(value):
            return HookResult.skip()
        logger.info("Hook %s short-circuited the operation", point.value)
        return HookResult(value=value)
