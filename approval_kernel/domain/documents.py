"""
Workflow document value objects (``approval_kernel.domain.documents``).

Responsibility
--------------
Frozen DTOs returned across the kernel boundary: documents with their
history, ledger effects, transition results, queue rows and notification
payloads.  ORM models convert to these via ``to_dto()``; nothing outside
the kernel ever sees a live ORM instance.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from approval_kernel.domain.workflow import Action, Family, State


@dataclass(frozen=True)
class HistoryEntry:
    """One recorded transition. Immutable and append-only."""

    sequence: int
    actor_id: str
    action: Action
    from_state: State
    to_state: State
    occurred_at: datetime
    reason: str | None = None


@dataclass(frozen=True)
class WorkflowDocument:
    """Snapshot of a document participating in the approval workflow."""

    id: UUID
    family: Family
    state: State
    submitted_by: str
    submitted_at: datetime
    version: int
    scope: str | None = None
    scope_label: str | None = None
    amount: Decimal | None = None
    description: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    submitter_label: str | None = None
    rejection_reason: str | None = None
    last_transition_at: datetime | None = None
    history: tuple[HistoryEntry, ...] = ()

    @property
    def is_rejected(self) -> bool:
        return self.rejection_reason is not None


@dataclass(frozen=True)
class LedgerPostingRule:
    """How a finalizing family is recorded in the ledger."""

    direction: str
    category: str
    description_template: str


@dataclass(frozen=True)
class LedgerEffect:
    """The exactly-once side effect of a finalized document."""

    document_id: UUID
    family: Family
    ledger_key: str
    direction: str
    category: str
    description: str
    applied_by: str
    applied_at: datetime
    amount_applied: Decimal | None = None


@dataclass(frozen=True)
class TransitionResult:
    """Result of a transition request.

    ``changed=False`` means the request was a tolerated retry and nothing
    was written.
    """

    document: WorkflowDocument
    action: Action
    from_state: State
    to_state: State
    changed: bool
    ledger_effect: LedgerEffect | None = None
    ledger_created: bool = False


@dataclass(frozen=True)
class PendingItem:
    """Normalized approval-queue row."""

    id: UUID
    family: Family
    state: State
    submitter_label: str
    submitted_at: datetime
    context_label: str
    amount: Decimal | None = None


@dataclass(frozen=True)
class HistoryItem:
    """Normalized row of the bounded recent-history view."""

    id: UUID
    family: Family
    state: State
    outcome: str
    submitter_label: str
    last_transition_at: datetime
    context_label: str
    amount: Decimal | None = None
    reason: str | None = None


@dataclass(frozen=True)
class CorrectionItem:
    """A rejected document waiting for its submitter to correct it."""

    id: UUID
    family: Family
    reason: str
    rejected_at: datetime
    context_label: str
    amount: Decimal | None = None


@dataclass(frozen=True)
class RejectionNotice:
    """Payload handed to the notification collaborator on rejection."""

    document_id: UUID
    family: Family
    reason: str
    submitted_by: str
    rejected_by: str
    scope: str | None = None


@dataclass(frozen=True)
class AdvanceNotice:
    """Payload handed to the notification collaborator on forward moves."""

    document_id: UUID
    family: Family
    action: Action
    from_state: State
    to_state: State
    actor_id: str
    submitted_by: str
    scope: str | None = None
