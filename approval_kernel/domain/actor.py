"""
Actor context (``approval_kernel.domain.actor``).

The identity/permission collaborator supplies an ``Actor`` for every call;
the kernel never looks permissions up from ambient session state.
"""

from __future__ import annotations

from dataclasses import dataclass

from approval_kernel.domain.workflow import (
    ACTION_TIERS,
    SCOPE_BOUND_TIERS,
    Action,
    Tier,
    dominates,
)
from approval_kernel.exceptions import PermissionDeniedError


@dataclass(frozen=True)
class Actor:
    """Capability context: who is acting, at which tier, for which branch.

    ``scope`` is the branch the actor belongs to; ``None`` means the actor is
    attached to the head office.
    """

    actor_id: str
    tier: Tier
    scope: str | None = None
    label: str | None = None

    @property
    def is_scope_bound(self) -> bool:
        return self.tier in SCOPE_BOUND_TIERS

    def can_see_scope(self, document_scope: str | None) -> bool:
        return not self.is_scope_bound or document_scope == self.scope


def authorize(actor: Actor, action: Action, document_scope: str | None) -> None:
    """Check ``actor`` may perform ``action`` on a document owned by ``document_scope``.

    Branch and submitter tier actors act only inside their own branch, so a
    global document (scope ``None``) can only be handled by central, finance
    or admin actors once it has left the submitter.

    Raises:
        PermissionDeniedError: on tier or scope mismatch.
    """
    needed = ACTION_TIERS[action]
    if not dominates(actor.tier, needed):
        raise PermissionDeniedError(
            actor.actor_id, action.value, needed.value, actor.tier.value,
            "tier does not dominate required tier",
        )
    if not actor.can_see_scope(document_scope):
        raise PermissionDeniedError(
            actor.actor_id, action.value, needed.value, actor.tier.value,
            f"scope {actor.scope!r} does not match document scope {document_scope!r}",
        )
