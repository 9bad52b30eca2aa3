"""
Module: approval_kernel.selectors.queue_selector
Responsibility: The approval queue aggregator.  Builds, across every
    document family, the actor's pending queue, a bounded recent-history
    view and the list of rejected documents awaiting correction.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - Pending: only states whose next approval edge requires exactly the
      actor's tier (admin sees every pending state); scope-bound actors see
      only their own branch.  Oldest submission first.
    - History: finalized/paid or rejected documents, newest transition
      first, never more than the resolved limit.
    - Each family is queried in its own savepoint.  A database error for
      one family is logged and that family is left out; the others are
      still returned.

Failure modes:
    - ValidationError for a non-positive history limit.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TypeVar

from sqlalchemy import Select, and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from approval_kernel.domain.actor import Actor
from approval_kernel.domain.documents import (
    CorrectionItem,
    HistoryItem,
    PendingItem,
    WorkflowDocument,
)
from approval_kernel.domain.labels import context_label, submitter_label
from approval_kernel.domain.state_machine import pending_states_for_tier
from approval_kernel.domain.validation import validate_limit
from approval_kernel.domain.workflow import Family, Tier, get_lattice
from approval_kernel.logging_config import get_logger
from approval_kernel.models.document import WorkflowDocumentModel
from approval_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.queue")

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 200

REJECTED_OUTCOME = "rejected"

T = TypeVar("T")


class QueueSelector(BaseSelector[WorkflowDocumentModel]):
    """Aggregates queue views over all families."""

    def __init__(
        self,
        session: Session,
        history_limit_default: int = DEFAULT_HISTORY_LIMIT,
        history_limit_max: int = MAX_HISTORY_LIMIT,
    ):
        super().__init__(session)
        self.history_limit_default = history_limit_default
        self.history_limit_max = history_limit_max

    # ------------------------------------------------------------------
    # Pending
    # ------------------------------------------------------------------

    def list_pending(self, actor: Actor) -> list[PendingItem]:
        """Documents waiting for ``actor``'s tier, oldest first."""

        def statement(family: Family) -> Select | None:
            states = pending_states_for_tier(family, actor.tier)
            if not states:
                return None
            stmt = select(WorkflowDocumentModel).where(
                WorkflowDocumentModel.family == family.value,
                WorkflowDocumentModel.state.in_([s.value for s in states]),
            )
            if actor.is_scope_bound:
                stmt = stmt.where(WorkflowDocumentModel.scope == actor.scope)
            return stmt.order_by(WorkflowDocumentModel.submitted_at)

        items = self._collect("list_pending", statement, _pending_item)
        items.sort(key=lambda i: (i.submitted_at, str(i.id)))
        return items

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def list_history(self, actor: Actor, limit: int | None = None) -> list[HistoryItem]:
        """Finalized and rejected documents visible to ``actor``, newest first."""
        resolved = validate_limit(limit, self.history_limit_default, self.history_limit_max)

        def statement(family: Family) -> Select:
            lattice = get_lattice(family)
            stmt = select(WorkflowDocumentModel).where(
                WorkflowDocumentModel.family == family.value,
                or_(
                    WorkflowDocumentModel.state == lattice.finalizing_state.value,
                    and_(
                        WorkflowDocumentModel.state == lattice.correctable_state.value,
                        WorkflowDocumentModel.rejection_reason.is_not(None),
                    ),
                ),
            )
            stmt = _visible_to(stmt, actor)
            return stmt.order_by(WorkflowDocumentModel.last_transition_at.desc()).limit(resolved)

        items = self._collect("list_history", statement, _history_item)
        items.sort(key=lambda i: (i.last_transition_at, str(i.id)), reverse=True)
        return items[:resolved]

    # ------------------------------------------------------------------
    # Correction
    # ------------------------------------------------------------------

    def list_needing_correction(self, actor: Actor) -> list[CorrectionItem]:
        """Rejected documents the actor submitted (or, for a branch actor,
        that belong to the actor's branch), newest rejection first."""

        def statement(family: Family) -> Select:
            lattice = get_lattice(family)
            ownership = WorkflowDocumentModel.submitted_by == actor.actor_id
            if actor.tier == Tier.BRANCH:
                ownership = or_(ownership, WorkflowDocumentModel.scope == actor.scope)
            return (
                select(WorkflowDocumentModel)
                .where(
                    WorkflowDocumentModel.family == family.value,
                    WorkflowDocumentModel.state == lattice.correctable_state.value,
                    WorkflowDocumentModel.rejection_reason.is_not(None),
                    ownership,
                )
                .order_by(WorkflowDocumentModel.last_transition_at.desc())
            )

        items = self._collect("list_needing_correction", statement, _correction_item)
        items.sort(key=lambda i: (i.rejected_at, str(i.id)), reverse=True)
        return items

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _collect(
        self,
        view: str,
        statement: Callable[[Family], Select | None],
        convert: Callable[[WorkflowDocument], T],
    ) -> list[T]:
        items: list[T] = []
        for family in Family:
            stmt = statement(family)
            if stmt is None:
                continue
            try:
                with self.session.begin_nested():
                    documents = [m.to_dto() for m in self._fetch(family, stmt)]
            except SQLAlchemyError:
                logger.error(
                    "queue_family_query_failed",
                    extra={"view": view, "family": family.value},
                    exc_info=True,
                )
                continue
            items.extend(convert(d) for d in documents)
        return items

    def _fetch(self, family: Family, stmt: Select) -> Iterable[WorkflowDocumentModel]:
        return self.session.execute(stmt).scalars().all()


def _visible_to(stmt: Select, actor: Actor) -> Select:
    if actor.tier == Tier.SUBMITTER:
        return stmt.where(WorkflowDocumentModel.submitted_by == actor.actor_id)
    if actor.is_scope_bound:
        return stmt.where(WorkflowDocumentModel.scope == actor.scope)
    return stmt


def _pending_item(document: WorkflowDocument) -> PendingItem:
    return PendingItem(
        id=document.id,
        family=document.family,
        state=document.state,
        submitter_label=submitter_label(document),
        submitted_at=document.submitted_at,
        context_label=context_label(document),
        amount=document.amount,
    )


def _history_item(document: WorkflowDocument) -> HistoryItem:
    return HistoryItem(
        id=document.id,
        family=document.family,
        state=document.state,
        outcome=REJECTED_OUTCOME if document.is_rejected else document.state.value,
        submitter_label=submitter_label(document),
        last_transition_at=document.last_transition_at,
        context_label=context_label(document),
        amount=document.amount,
        reason=document.rejection_reason,
    )


def _correction_item(document: WorkflowDocument) -> CorrectionItem:
    return CorrectionItem(
        id=document.id,
        family=document.family,
        reason=document.rejection_reason,
        rejected_at=document.last_transition_at,
        context_label=context_label(document),
        amount=document.amount,
    )
