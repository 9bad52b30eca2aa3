"""
Module: approval_kernel.models.document
Responsibility: ORM persistence for workflow documents and their
    append-only transition history.

Architecture position: Kernel > Models.  May import from db/ and exceptions.

Invariants enforced:
    - Exactly one state per document; the state column only ever moves
      through the transition service's compare-and-set UPDATE.
    - family and submitted_by are write-once.
    - History is append-only: UNIQUE(document_id, sequence), no UPDATE,
      no DELETE.
    - version increases by one on every accepted state change or correction.

Failure modes:
    - IntegrityError on duplicate history sequence for a document.
    - ImmutabilityViolationError on history UPDATE/DELETE or on a change to
      a document's family or submitter.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    CheckConstraint,
    ForeignKey,
    Index,
    Text,
    UniqueConstraint,
    event,
    inspect,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from approval_kernel.db.base import Base, UUIDString
from approval_kernel.db.types import ExternalId, Label, ShortCode, normalize_money
from approval_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from approval_kernel.domain.documents import HistoryEntry, WorkflowDocument


class WorkflowDocumentModel(Base):
    """Persistent workflow document (all families share one table).

    Contract:
        ``state`` changes only through a compare-and-set on
        ``(state, version)``.  Family-specific fields live in ``payload``.
    """

    __tablename__ = "workflow_documents"

    __table_args__ = (
        CheckConstraint(
            "family IN ('expense_report', 'invoice', 'transaction', "
            "'payroll_run', 'employee_action')",
            name="ck_workflow_documents_family",
        ),
        CheckConstraint(
            "state IN ('draft', 'branch_pending', 'central_pending', "
            "'finance_validated', 'finalized', 'paid')",
            name="ck_workflow_documents_state",
        ),
        CheckConstraint("version >= 1", name="ck_workflow_documents_version"),
        # Queue lookups: family + state, optionally narrowed by scope
        Index("ix_workflow_documents_family_state", "family", "state", "scope"),
        Index("ix_workflow_documents_last_transition", "last_transition_at"),
    )

    family: Mapped[ShortCode] = mapped_column(nullable=False)
    state: Mapped[ShortCode] = mapped_column(nullable=False)
    version: Mapped[int] = mapped_column(nullable=False, default=1)
    scope: Mapped[ExternalId | None] = mapped_column(nullable=True)
    scope_label: Mapped[Label | None] = mapped_column(nullable=True)
    submitted_by: Mapped[ExternalId] = mapped_column(nullable=False)
    submitter_label: Mapped[Label | None] = mapped_column(nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_transition_at: Mapped[datetime] = mapped_column(nullable=False)

    history: Mapped[list["WorkflowHistoryModel"]] = relationship(
        "WorkflowHistoryModel",
        back_populates="document",
        order_by="WorkflowHistoryModel.sequence",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<WorkflowDocument {self.id} {self.family} "
            f"state={self.state} v{self.version}>"
        )

    def to_dto(self) -> WorkflowDocument:
        """Convert ORM model to frozen domain DTO."""
        from approval_kernel.domain.documents import (
            WorkflowDocument as WorkflowDocumentDTO,
        )
        from approval_kernel.domain.workflow import Family, State

        return WorkflowDocumentDTO(
            id=self.id,
            family=Family(self.family),
            state=State(self.state),
            submitted_by=self.submitted_by,
            submitted_at=self.submitted_at,
            version=self.version,
            scope=self.scope,
            scope_label=self.scope_label,
            amount=normalize_money(self.amount),
            description=self.description,
            payload=dict(self.payload or {}),
            submitter_label=self.submitter_label,
            rejection_reason=self.rejection_reason,
            last_transition_at=self.last_transition_at,
            history=tuple(h.to_dto() for h in self.history),
        )


class WorkflowHistoryModel(Base):
    """One recorded transition. Append-only."""

    __tablename__ = "workflow_history"

    __table_args__ = (
        UniqueConstraint(
            "document_id", "sequence",
            name="uq_workflow_history_sequence",
        ),
        Index("ix_workflow_history_document", "document_id"),
    )

    document_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("workflow_documents.id"),
        nullable=False,
    )
    sequence: Mapped[int] = mapped_column(nullable=False)
    actor_id: Mapped[ExternalId] = mapped_column(nullable=False)
    action: Mapped[ShortCode] = mapped_column(nullable=False)
    from_state: Mapped[ShortCode] = mapped_column(nullable=False)
    to_state: Mapped[ShortCode] = mapped_column(nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(nullable=False)

    document: Mapped["WorkflowDocumentModel"] = relationship(
        "WorkflowDocumentModel",
        back_populates="history",
    )

    def __repr__(self) -> str:
        return (
            f"<WorkflowHistory {self.document_id}#{self.sequence} "
            f"{self.from_state}->{self.to_state}>"
        )

    def to_dto(self) -> HistoryEntry:
        """Convert ORM model to frozen domain DTO."""
        from approval_kernel.domain.documents import HistoryEntry as HistoryEntryDTO
        from approval_kernel.domain.workflow import Action, State

        return HistoryEntryDTO(
            sequence=self.sequence,
            actor_id=self.actor_id,
            action=Action(self.action),
            from_state=State(self.from_state),
            to_state=State(self.to_state),
            occurred_at=self.occurred_at,
            reason=self.reason,
        )


# =============================================================================
# ORM-Level Immutability
# =============================================================================

_WRITE_ONCE_DOCUMENT_FIELDS = ("family", "submitted_by")


@event.listens_for(WorkflowDocumentModel, "before_update")
def prevent_identity_change(mapper, connection, target):
    """Reject changes to a document's family or submitter."""
    state = inspect(target)
    for name in _WRITE_ONCE_DOCUMENT_FIELDS:
        if state.attrs[name].history.has_changes():
            raise ImmutabilityViolationError(
                entity_type="WorkflowDocument",
                entity_id=str(target.id),
                reason=f"{name} is write-once -- cannot modify",
            )


@event.listens_for(WorkflowDocumentModel, "before_delete")
def prevent_document_delete(mapper, connection, target):
    """Documents carry their history; they are never deleted."""
    raise ImmutabilityViolationError(
        entity_type="WorkflowDocument",
        entity_id=str(target.id),
        reason="Workflow documents cannot be deleted",
    )


@event.listens_for(WorkflowHistoryModel, "before_update")
def prevent_history_update(mapper, connection, target):
    """Prevent updates to history entries."""
    raise ImmutabilityViolationError(
        entity_type="WorkflowHistory",
        entity_id=f"{target.document_id}#{target.sequence}",
        reason="History entries are immutable -- cannot modify",
    )


@event.listens_for(WorkflowHistoryModel, "before_delete")
def prevent_history_delete(mapper, connection, target):
    """Prevent deletion of history entries."""
    raise ImmutabilityViolationError(
        entity_type="WorkflowHistory",
        entity_id=f"{target.document_id}#{target.sequence}",
        reason="History entries are immutable -- cannot delete",
    )
