"""Domain layer - pure lattices, decisions, value objects. ZERO I/O."""

from approval_kernel.domain.actor import Actor, authorize
from approval_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from approval_kernel.domain.documents import (
    AdvanceNotice,
    CorrectionItem,
    HistoryEntry,
    HistoryItem,
    LedgerEffect,
    LedgerPostingRule,
    PendingItem,
    RejectionNotice,
    TransitionResult,
    WorkflowDocument,
)
from approval_kernel.domain.state_machine import Decision, decide
from approval_kernel.domain.workflow import (
    LATTICES,
    Action,
    Family,
    Lattice,
    State,
    Tier,
    get_lattice,
)

__all__ = [
    "Action",
    "Actor",
    "AdvanceNotice",
    "Clock",
    "CorrectionItem",
    "Decision",
    "DeterministicClock",
    "Family",
    "HistoryEntry",
    "HistoryItem",
    "LATTICES",
    "Lattice",
    "LedgerEffect",
    "LedgerPostingRule",
    "PendingItem",
    "RejectionNotice",
    "State",
    "SystemClock",
    "Tier",
    "TransitionResult",
    "WorkflowDocument",
    "authorize",
    "decide",
    "get_lattice",
]
