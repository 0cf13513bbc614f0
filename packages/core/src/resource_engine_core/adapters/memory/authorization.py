"""Authorizers usable without an application policy layer."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from ...ports.authorization import IAuthorizer

logger = logging.getLogger("resource_engine.engine")


class AllowAllAuthorizer:
    """Grant every ability.

    Engines built without an authorizer skip the check entirely; pass
    this where an ``IAuthorizer`` instance is needed instead, e.g. as the
    ``fallback`` of a :class:`PolicyAuthorizer` that restricts only a few
    abilities.
    """

    def authorize(self, ability: str, subject: Any) -> bool:  # noqa: ARG002
        return True


class PolicyAuthorizer:
    """Delegate each ability to a callable.

    Abilities without a policy go to *fallback*, or are denied when no
    fallback is given.

    Usage::

        authorizer = PolicyAuthorizer({
            "index": lambda subject: True,
            "update": lambda post: post.user_id == current_user.id,
        })

        # only deletes are restricted
        authorizer = PolicyAuthorizer(
            {"destroy": lambda post: post.user_id == current_user.id},
            fallback=AllowAllAuthorizer(),
        )
    """

    def __init__(
        self,
        policies: Mapping[str, Callable[[Any], bool]],
        fallback: IAuthorizer | None = None,
    ) -> None:
        self._policies = dict(policies)
        self._fallback = fallback

    def authorize(self, ability: str, subject: Any) -> bool:
        policy = self._policies.get(ability)
        if policy is not None:
            return bool(policy(subject))
        if self._fallback is not None:
            return self._fallback.authorize(ability, subject)
        logger.debug("No policy for ability %s", ability)
        return False
