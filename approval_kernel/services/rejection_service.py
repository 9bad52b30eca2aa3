"""
approval_kernel.services.rejection_service -- The rejection handler.

Responsibility:
    Sends a document back to its submitter with a mandatory reason and
    builds the notice handed to the notification collaborator.

Architecture position:
    Kernel > Services.  Thin layer over the TransitionService.

Invariants enforced:
    - A blank or whitespace-only reason fails before anything is loaded
      or written.
    - The stage-specific rejection action is resolved from the current
      state; amount and payload are left untouched.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from approval_kernel.domain.actor import Actor
from approval_kernel.domain.clock import Clock
from approval_kernel.domain.documents import RejectionNotice, TransitionResult
from approval_kernel.domain.state_machine import resolve_reject_action
from approval_kernel.domain.validation import validate_reason
from approval_kernel.domain.workflow import Family, State
from approval_kernel.models.document import WorkflowDocumentModel
from approval_kernel.services.base import BaseService
from approval_kernel.services.transition_service import TransitionService


class RejectionService(BaseService[WorkflowDocumentModel]):
    """Rejects documents back to the correctable state."""

    def __init__(
        self,
        session: Session,
        transitions: TransitionService,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._transitions = transitions

    def reject(
        self,
        document_id: UUID,
        family: Family,
        actor: Actor,
        reason: str | None,
    ) -> tuple[TransitionResult, RejectionNotice]:
        cleaned = validate_reason(reason)
        model = self._transitions.load(document_id, family)
        action = resolve_reject_action(family, State(model.state))

        result = self._transitions.transition(
            document_id, family, action, actor, reason=cleaned,
        )
        notice = RejectionNotice(
            document_id=document_id,
            family=family,
            reason=cleaned,
            submitted_by=result.document.submitted_by,
            rejected_by=actor.actor_id,
            scope=result.document.scope,
        )
        return result, notice
