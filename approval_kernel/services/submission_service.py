"""
approval_kernel.services.submission_service -- The submission gateway.

Responsibility:
    Validates a new submission for its family, stamps the owning branch
    and persists the document, then records the initial ``submit`` step so
    the document waits for branch validation.

Architecture position:
    Kernel > Services.  Uses the TransitionService for the initial step so
    that the first history entry goes through the same guarded path as
    every later one.

Invariants enforced:
    - Submitter and branch tier actors always stamp their own branch;
      central, finance and admin actors may name one (default: global).
    - A document never leaves this service without its first history entry.
    - No duplicate detection; two identical submissions are two documents.

Failure modes:
    - ValidationError with every failing field.
    - PermissionDeniedError if the actor cannot submit.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from approval_kernel.domain.actor import Actor, authorize
from approval_kernel.domain.clock import Clock
from approval_kernel.domain.validation import validate_submission
from approval_kernel.domain.workflow import Action, Family, get_lattice
from approval_kernel.logging_config import get_logger
from approval_kernel.models.document import WorkflowDocumentModel
from approval_kernel.services.base import BaseService
from approval_kernel.services.transition_service import TransitionService

logger = get_logger("services.submission")


class SubmissionService(BaseService[WorkflowDocumentModel]):
    """Creates workflow documents."""

    def __init__(
        self,
        session: Session,
        transitions: TransitionService,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._transitions = transitions

    def submit(
        self,
        family: Family,
        payload: Mapping[str, Any],
        submitter: Actor,
    ) -> UUID:
        """Validate, persist and submit a new document.

        Returns:
            The new document id.
        """
        validated = validate_submission(family, payload)
        scope = submitter.scope if submitter.is_scope_bound else validated.scope
        authorize(submitter, Action.SUBMIT, scope)

        now = self.clock.now()
        model = WorkflowDocumentModel(
            id=uuid4(),
            family=family.value,
            state=get_lattice(family).initial_state.value,
            version=1,
            scope=scope,
            scope_label=validated.scope_label,
            submitted_by=submitter.actor_id,
            submitter_label=submitter.label,
            submitted_at=now,
            amount=validated.amount,
            description=validated.description,
            payload=validated.payload,
            last_transition_at=now,
        )
        self.session.add(model)
        self.session.flush()

        logger.info(
            "document_submitted",
            extra={
                "document_id": str(model.id),
                "family": family.value,
                "submitted_by": submitter.actor_id,
                "scope": scope,
                "amount": str(validated.amount) if validated.amount is not None else None,
            },
        )

        self._transitions.transition(model.id, family, Action.SUBMIT, submitter)
        return model.id
