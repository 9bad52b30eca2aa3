"""
approval_kernel.services.transition_service -- The transition engine.

Responsibility:
    Applies one requested action to one stored document: load, authorize,
    ask the pure state machine for the next state, persist it under a
    compare-and-set guard, append the history entry and, on the
    finalizing edge, apply the ledger effect.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.  The
    SubmissionService, RejectionService and the workflow facade drive it.

Invariants enforced:
    - Only lattice edges are persisted (``decide`` is the sole authority).
    - Compare-and-set: the state write is
      ``UPDATE ... WHERE id = ? AND state = observed AND version = observed``;
      zero rows means another writer won and StaleStateError is raised.
      There is no automatic retry.
    - The state write, history append and ledger insert share the caller's
      transaction.  A failure in any of them rolls all three back.
    - A retried forward action resolves to a no-op (``changed=False``)
      and writes nothing.

Failure modes:
    - DocumentNotFoundError -- unknown id or family mismatch.
    - PermissionDeniedError -- tier or scope mismatch.
    - InvalidTransitionError -- action not on the lattice (logged at error).
    - StaleStateError -- compare-and-set lost (logged at info).
    - ValidationError -- rejection without a reason.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from approval_kernel.domain.actor import Actor, authorize
from approval_kernel.domain.clock import Clock
from approval_kernel.domain.documents import TransitionResult
from approval_kernel.domain.state_machine import decide, is_terminal
from approval_kernel.domain.validation import validate_reason
from approval_kernel.domain.workflow import (
    ACTION_KINDS,
    Action,
    ActionKind,
    Family,
    State,
    Tier,
    get_lattice,
)
from approval_kernel.exceptions import (
    DocumentNotFoundError,
    InvalidTransitionError,
    PermissionDeniedError,
    StaleStateError,
)
from approval_kernel.logging_config import get_logger
from approval_kernel.models.document import WorkflowDocumentModel, WorkflowHistoryModel
from approval_kernel.services.base import BaseService
from approval_kernel.services.ledger_service import LedgerService

logger = get_logger("services.transition")


class TransitionService(BaseService[WorkflowDocumentModel]):
    """Moves stored documents along their lattice."""

    def __init__(
        self,
        session: Session,
        ledger: LedgerService,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._ledger = ledger

    def load(self, document_id: UUID, family: Family) -> WorkflowDocumentModel:
        """Load a document of ``family``.

        Raises:
            DocumentNotFoundError: if absent or stored under another family.
        """
        model = self.session.get(WorkflowDocumentModel, document_id)
        if model is None or model.family != family.value:
            raise DocumentNotFoundError(str(document_id), family.value)
        return model

    def transition(
        self,
        document_id: UUID,
        family: Family,
        action: Action,
        actor: Actor,
        reason: str | None = None,
    ) -> TransitionResult:
        """Apply ``action`` to the document on behalf of ``actor``."""
        model = self.load(document_id, family)
        observed_state = State(model.state)
        observed_version = model.version

        if action not in get_lattice(family).actions:
            self._log_invalid(document_id, family, observed_state, action, actor)
            raise InvalidTransitionError(family.value, observed_state.value, action.value)

        authorize(actor, action, model.scope)
        _check_resubmitter(actor, action, model)

        try:
            decision = decide(family, observed_state, action, actor.tier)
        except InvalidTransitionError:
            self._log_invalid(document_id, family, observed_state, action, actor)
            raise

        if not decision.changed:
            effect = None
            if is_terminal(family, observed_state):
                effect = self._ledger.get_effect(document_id, family)
            logger.info(
                "workflow_transition_noop",
                extra={
                    "document_id": str(document_id),
                    "family": family.value,
                    "state": observed_state.value,
                    "action": action.value,
                    "actor": actor.actor_id,
                },
            )
            return TransitionResult(
                document=model.to_dto(),
                action=action,
                from_state=observed_state,
                to_state=observed_state,
                changed=False,
                ledger_effect=effect,
            )

        kind = ACTION_KINDS[action]
        if kind == ActionKind.REJECT:
            new_reason = validate_reason(reason)
            history_reason = new_reason
        elif kind == ActionKind.SUBMIT:
            new_reason = None
            history_reason = None
        else:
            new_reason = model.rejection_reason
            history_reason = None

        now = self.clock.now()
        self._compare_and_set(
            model,
            observed_state,
            observed_version,
            state=decision.next_state.value,
            rejection_reason=new_reason,
            last_transition_at=now,
        )

        self.session.add(
            WorkflowHistoryModel(
                document_id=model.id,
                sequence=self._next_sequence(model.id),
                actor_id=actor.actor_id,
                action=action.value,
                from_state=observed_state.value,
                to_state=decision.next_state.value,
                reason=history_reason,
                occurred_at=now,
            )
        )
        self.session.flush()

        # Reload the row and its history as written.
        self.session.expire(model)
        document = model.to_dto()

        effect = None
        created = False
        if decision.requires_ledger_effect:
            effect, created = self._ledger.apply_effect(document, actor.actor_id)

        logger.info(
            "workflow_transition",
            extra={
                "document_id": str(document_id),
                "family": family.value,
                "action": action.value,
                "from_state": observed_state.value,
                "to_state": decision.next_state.value,
                "actor": actor.actor_id,
                "version": document.version,
                "ledger_created": created,
            },
        )

        return TransitionResult(
            document=document,
            action=action,
            from_state=observed_state,
            to_state=decision.next_state,
            changed=True,
            ledger_effect=effect,
            ledger_created=created,
        )

    def bump_version(
        self,
        model: WorkflowDocumentModel,
        **values,
    ) -> None:
        """Compare-and-set write that keeps the current state.

        Used by the correction command to edit fields without moving the
        document.
        """
        self._compare_and_set(model, State(model.state), model.version, **values)
        self.session.expire(model)

    def _compare_and_set(
        self,
        model: WorkflowDocumentModel,
        observed_state: State,
        observed_version: int,
        **values,
    ) -> None:
        result = self.session.execute(
            update(WorkflowDocumentModel)
            .where(
                WorkflowDocumentModel.id == model.id,
                WorkflowDocumentModel.state == observed_state.value,
                WorkflowDocumentModel.version == observed_version,
            )
            .values(version=observed_version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.info(
                "stale_state_conflict",
                extra={
                    "document_id": str(model.id),
                    "family": model.family,
                    "expected_state": observed_state.value,
                    "expected_version": observed_version,
                },
            )
            raise StaleStateError(str(model.id), observed_state.value, observed_version)

    def _log_invalid(
        self,
        document_id: UUID,
        family: Family,
        state: State,
        action: Action,
        actor: Actor,
    ) -> None:
        logger.error(
            "invalid_transition",
            extra={
                "document_id": str(document_id),
                "family": family.value,
                "state": state.value,
                "action": action.value,
                "actor": actor.actor_id,
            },
        )

    def _next_sequence(self, document_id: UUID) -> int:
        current = self.session.execute(
            select(func.max(WorkflowHistoryModel.sequence)).where(
                WorkflowHistoryModel.document_id == document_id,
            )
        ).scalar_one()
        return (current or 0) + 1


def _check_resubmitter(actor: Actor, action: Action, model: WorkflowDocumentModel) -> None:
    """Submitter-tier actors may only submit their own documents."""
    if (
        ACTION_KINDS[action] == ActionKind.SUBMIT
        and actor.tier == Tier.SUBMITTER
        and actor.actor_id != model.submitted_by
    ):
        raise PermissionDeniedError(
            actor.actor_id, action.value, Tier.SUBMITTER.value, actor.tier.value,
            "only the original submitter may resubmit",
        )
