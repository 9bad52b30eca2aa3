"""
Workflow lattice declarations (``approval_kernel.domain.workflow``).

Responsibility
--------------
Declares, per document family, the valid states and the transition table
(the "lattice") as data.  Every family is one variant of the same
polymorphic workflow; behaviour differences live in ``LATTICES``, never in
per-family conditionals.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``models/``, ``services/``, ``selectors/`` or outer layers.

Invariants enforced
-------------------
* Edges reference only states on the lattice's forward chain.
* ``initial_state`` is the first element of ``forward_chain``.
* The last element of ``forward_chain`` is the finalizing state; it has
  no outgoing edges and is the only state reached by a ledger-posting
  edge.
* Rejection edges are sideways moves back to the correctable state.
* Tier dominance is a declared table (``TIER_DOMINANCE``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Family(str, Enum):
    """Document families that share the approval workflow."""

    EXPENSE_REPORT = "expense_report"
    INVOICE = "invoice"
    TRANSACTION = "transaction"
    PAYROLL_RUN = "payroll_run"
    EMPLOYEE_ACTION = "employee_action"


class State(str, Enum):
    """Positions a document can occupy on its lattice."""

    DRAFT = "draft"
    BRANCH_PENDING = "branch_pending"
    CENTRAL_PENDING = "central_pending"
    FINANCE_VALIDATED = "finance_validated"
    FINALIZED = "finalized"
    PAID = "paid"


class Action(str, Enum):
    """Actions an actor can request on a document."""

    SUBMIT = "submit"
    BRANCH_APPROVE = "branch_approve"
    BRANCH_REJECT = "branch_reject"
    CENTRAL_APPROVE = "central_approve"
    CENTRAL_REJECT = "central_reject"
    PAY = "pay"


class ActionKind(str, Enum):
    """Coarse classification used for retry tolerance and action lookup."""

    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    PAY = "pay"


class Tier(str, Enum):
    """Authority tier granted to an actor by the permission service."""

    SUBMITTER = "submitter"
    BRANCH = "branch"
    CENTRAL = "central"
    FINANCE = "finance"
    ADMIN = "admin"


ACTION_KINDS: dict[Action, ActionKind] = {
    Action.SUBMIT: ActionKind.SUBMIT,
    Action.BRANCH_APPROVE: ActionKind.APPROVE,
    Action.BRANCH_REJECT: ActionKind.REJECT,
    Action.CENTRAL_APPROVE: ActionKind.APPROVE,
    Action.CENTRAL_REJECT: ActionKind.REJECT,
    Action.PAY: ActionKind.PAY,
}

ACTION_TIERS: dict[Action, Tier] = {
    Action.SUBMIT: Tier.SUBMITTER,
    Action.BRANCH_APPROVE: Tier.BRANCH,
    Action.BRANCH_REJECT: Tier.BRANCH,
    Action.CENTRAL_APPROVE: Tier.CENTRAL,
    Action.CENTRAL_REJECT: Tier.CENTRAL,
    Action.PAY: Tier.FINANCE,
}

# Actions that move a document forward; re-applying one is tolerated.
FORWARD_ACTION_KINDS: frozenset[ActionKind] = frozenset({
    ActionKind.SUBMIT,
    ActionKind.APPROVE,
    ActionKind.PAY,
})

# tier -> tiers whose actions it may perform.  Finance is a separate
# department, not a superior of central.
TIER_DOMINANCE: dict[Tier, frozenset[Tier]] = {
    Tier.SUBMITTER: frozenset({Tier.SUBMITTER}),
    Tier.BRANCH: frozenset({Tier.SUBMITTER, Tier.BRANCH}),
    Tier.CENTRAL: frozenset({Tier.SUBMITTER, Tier.BRANCH, Tier.CENTRAL}),
    Tier.FINANCE: frozenset({Tier.SUBMITTER, Tier.FINANCE}),
    Tier.ADMIN: frozenset(Tier),
}

# Tiers whose authority is limited to their own branch.
SCOPE_BOUND_TIERS: frozenset[Tier] = frozenset({Tier.SUBMITTER, Tier.BRANCH})


def dominates(actor_tier: Tier, required_tier: Tier) -> bool:
    """True when ``actor_tier`` may perform actions requiring ``required_tier``."""
    return required_tier in TIER_DOMINANCE.get(actor_tier, frozenset())


@dataclass(frozen=True)
class LatticeEdge:
    """
    One declared transition.

    ``finalizes=True`` marks the edge into the finalizing state, the only
    edge that requires a ledger effect.
    """

    from_state: State
    to_state: State
    action: Action
    finalizes: bool = False

    @property
    def kind(self) -> ActionKind:
        return ACTION_KINDS[self.action]

    @property
    def required_tier(self) -> Tier:
        return ACTION_TIERS[self.action]


@dataclass(frozen=True)
class Lattice:
    """
    A family's state machine definition.

    Contract: frozen; ``forward_chain`` lists the happy path in order,
    ``edges`` lists every legal move (forward and rejection).
    """

    family: Family
    description: str
    forward_chain: tuple[State, ...]
    edges: tuple[LatticeEdge, ...]
    correctable_state: State = State.DRAFT

    @property
    def initial_state(self) -> State:
        return self.forward_chain[0]

    @property
    def finalizing_state(self) -> State:
        return self.forward_chain[-1]

    @property
    def states(self) -> tuple[State, ...]:
        return self.forward_chain

    @property
    def actions(self) -> frozenset[Action]:
        return frozenset(e.action for e in self.edges)

    def edge_for(self, state: State, action: Action) -> LatticeEdge | None:
        for edge in self.edges:
            if edge.from_state == state and edge.action == action:
                return edge
        return None

    def edges_from(self, state: State) -> tuple[LatticeEdge, ...]:
        return tuple(e for e in self.edges if e.from_state == state)

    def forward_edge(self, action: Action) -> LatticeEdge | None:
        """The forward edge carrying ``action``, or None for reject actions."""
        for edge in self.edges:
            if edge.action == action and edge.kind in FORWARD_ACTION_KINDS:
                return edge
        return None

    def position(self, state: State) -> int:
        return self.forward_chain.index(state)


def _chain_edges(
    chain: tuple[State, ...],
    actions: tuple[Action, ...],
) -> tuple[LatticeEdge, ...]:
    last = len(actions) - 1
    return tuple(
        LatticeEdge(chain[i], chain[i + 1], action, finalizes=(i == last))
        for i, action in enumerate(actions)
    )


_REJECTION_EDGES: tuple[LatticeEdge, ...] = (
    LatticeEdge(State.BRANCH_PENDING, State.DRAFT, Action.BRANCH_REJECT),
    LatticeEdge(State.CENTRAL_PENDING, State.DRAFT, Action.CENTRAL_REJECT),
)


def two_tier_lattice(family: Family, description: str) -> Lattice:
    """Branch then central validation, finalizing at ``finalized``."""
    chain = (
        State.DRAFT,
        State.BRANCH_PENDING,
        State.CENTRAL_PENDING,
        State.FINALIZED,
    )
    forward = _chain_edges(
        chain,
        (Action.SUBMIT, Action.BRANCH_APPROVE, Action.CENTRAL_APPROVE),
    )
    return Lattice(
        family=family,
        description=description,
        forward_chain=chain,
        edges=forward + _REJECTION_EDGES,
    )


def three_tier_lattice(family: Family, description: str) -> Lattice:
    """Branch, central, then finance disbursal, finalizing at ``paid``."""
    chain = (
        State.DRAFT,
        State.BRANCH_PENDING,
        State.CENTRAL_PENDING,
        State.FINANCE_VALIDATED,
        State.PAID,
    )
    forward = _chain_edges(
        chain,
        (Action.SUBMIT, Action.BRANCH_APPROVE, Action.CENTRAL_APPROVE, Action.PAY),
    )
    return Lattice(
        family=family,
        description=description,
        forward_chain=chain,
        edges=forward + _REJECTION_EDGES,
    )


LATTICES: dict[Family, Lattice] = {
    Family.EXPENSE_REPORT: two_tier_lattice(
        Family.EXPENSE_REPORT, "Expense report validation",
    ),
    Family.INVOICE: two_tier_lattice(
        Family.INVOICE, "Invoice validation",
    ),
    Family.TRANSACTION: two_tier_lattice(
        Family.TRANSACTION, "Recorded transaction validation",
    ),
    Family.PAYROLL_RUN: three_tier_lattice(
        Family.PAYROLL_RUN, "Payroll run validation and disbursal",
    ),
    # amount optional; finalized means the employee is active / assigned
    Family.EMPLOYEE_ACTION: two_tier_lattice(
        Family.EMPLOYEE_ACTION, "Recruitment / reassignment validation",
    ),
}

FINANCIAL_FAMILIES: frozenset[Family] = frozenset({
    Family.EXPENSE_REPORT,
    Family.INVOICE,
    Family.TRANSACTION,
    Family.PAYROLL_RUN,
})


def get_lattice(family: Family | str) -> Lattice:
    """Return the declared lattice for ``family``.

    Raises:
        ValueError: if ``family`` is not a known family value.
    """
    return LATTICES[Family(family)]
