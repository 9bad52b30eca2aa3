"""
approval_kernel.services.correction_service -- In-place correction of
rejected documents.

Responsibility:
    Lets the submitter fix a rejected document before resubmitting it
    under the same id.  Only the submission fields change; the state, the
    rejection reason and the history stay as they are.

Architecture position:
    Kernel > Services.  Writes through the TransitionService's
    compare-and-set so a correction racing a resubmission cannot both win.

Invariants enforced:
    - Only in the correctable state (Draft with a rejection reason).
    - Only the original submitter, or a branch-or-higher actor who can see
      the document's branch.
    - The merged fields pass the same family validation as a submission.
    - The owning branch cannot be changed.

Failure modes:
    - InvalidTransitionError -- document not correctable.
    - PermissionDeniedError -- actor may not correct this document.
    - ValidationError -- merged fields invalid.
    - StaleStateError -- concurrent write won.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from approval_kernel.domain.actor import Actor
from approval_kernel.domain.clock import Clock
from approval_kernel.domain.documents import WorkflowDocument
from approval_kernel.domain.state_machine import is_correctable
from approval_kernel.domain.validation import merge_correction, validate_submission
from approval_kernel.domain.workflow import Family, Tier, dominates
from approval_kernel.exceptions import InvalidTransitionError, PermissionDeniedError
from approval_kernel.logging_config import get_logger
from approval_kernel.models.document import WorkflowDocumentModel
from approval_kernel.services.base import BaseService
from approval_kernel.services.transition_service import TransitionService

logger = get_logger("services.correction")

CORRECT_ACTION = "correct"


class CorrectionService(BaseService[WorkflowDocumentModel]):
    """Edits rejected documents without moving them."""

    def __init__(
        self,
        session: Session,
        transitions: TransitionService,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._transitions = transitions

    def correct(
        self,
        document_id: UUID,
        family: Family,
        actor: Actor,
        changes: Mapping[str, Any],
    ) -> WorkflowDocument:
        model = self._transitions.load(document_id, family)
        document = model.to_dto()

        if not is_correctable(family, document.state, document.rejection_reason):
            raise InvalidTransitionError(family.value, document.state.value, CORRECT_ACTION)

        is_owner = actor.actor_id == document.submitted_by
        is_reviewer = dominates(actor.tier, Tier.BRANCH) and actor.can_see_scope(document.scope)
        if not (is_owner or is_reviewer):
            raise PermissionDeniedError(
                actor.actor_id, CORRECT_ACTION, Tier.BRANCH.value, actor.tier.value,
                "only the submitter or a reviewer of the branch may correct",
            )

        validated = validate_submission(family, merge_correction(document, changes))
        self._transitions.bump_version(
            model,
            amount=validated.amount,
            description=validated.description,
            scope_label=validated.scope_label,
            payload=validated.payload,
        )
        corrected = model.to_dto()

        logger.info(
            "document_corrected",
            extra={
                "document_id": str(document_id),
                "family": family.value,
                "actor": actor.actor_id,
                "fields": sorted(changes),
                "version": corrected.version,
            },
        )
        return corrected

