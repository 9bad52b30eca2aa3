"""
Workflow State Machine Core (``approval_kernel.domain.state_machine``).

Responsibility
--------------
Pure decision logic over the declared lattices: given a family, the
current state, the requested action and the actor's tier, decide the next
state and whether the move requires a ledger effect.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  Never touches storage; the
transition service persists what ``decide`` returns.

Invariants enforced
-------------------
* Only edges declared in ``LATTICES`` are ever returned.
* Re-applying a forward action whose target is at or behind the current
  position is a no-op (``changed=False``), tolerating retried requests.
* ``requires_ledger_effect`` is true only on the finalizing edge.

Failure modes
-------------
* InvalidTransitionError -- action not declared for the state.
* PermissionDeniedError -- actor tier does not dominate the edge's tier.
"""

from __future__ import annotations

from dataclasses import dataclass

from approval_kernel.domain.workflow import (
    FORWARD_ACTION_KINDS,
    Action,
    ActionKind,
    Family,
    State,
    Tier,
    dominates,
    get_lattice,
)
from approval_kernel.exceptions import InvalidTransitionError, PermissionDeniedError


@dataclass(frozen=True)
class Decision:
    """Outcome of ``decide``. Immutable."""

    family: Family
    action: Action
    from_state: State
    next_state: State
    requires_ledger_effect: bool = False
    changed: bool = True


def required_tier(family: Family, action: Action) -> Tier:
    """Tier required by ``action`` on ``family``'s lattice.

    Raises:
        InvalidTransitionError: if the family's lattice never uses ``action``.
    """
    lattice = get_lattice(family)
    for edge in lattice.edges:
        if edge.action == action:
            return edge.required_tier
    raise InvalidTransitionError(family.value, "*", action.value)


def decide(
    family: Family,
    current_state: State,
    action: Action,
    actor_tier: Tier,
) -> Decision:
    """Decide the next state for ``action`` applied at ``current_state``.

    Deterministic and side-effect-free.

    Raises:
        InvalidTransitionError: if the move is not on the lattice.
        PermissionDeniedError: if ``actor_tier`` does not dominate the
            tier the action requires.
    """
    lattice = get_lattice(family)
    tier = required_tier(family, action)

    if not dominates(actor_tier, tier):
        raise PermissionDeniedError(
            None, action.value, tier.value, actor_tier.value,
            "tier does not dominate required tier",
        )

    edge = lattice.edge_for(current_state, action)
    if edge is not None:
        return Decision(
            family=family,
            action=action,
            from_state=current_state,
            next_state=edge.to_state,
            requires_ledger_effect=edge.finalizes,
        )

    forward = lattice.forward_edge(action)
    if (
        forward is not None
        and forward.kind in FORWARD_ACTION_KINDS
        and lattice.position(current_state) >= lattice.position(forward.to_state)
    ):
        return Decision(
            family=family,
            action=action,
            from_state=current_state,
            next_state=current_state,
            requires_ledger_effect=False,
            changed=False,
        )

    raise InvalidTransitionError(family.value, current_state.value, action.value)


def resolve_approve_action(family: Family, state: State, actor_tier: Tier) -> Action:
    """Pick the approval action an ``approve`` request means at ``state``.

    A pending state's own forward edge wins, disbursal included, so an actor
    below that stage's tier is refused.  On the finalizing state the latest
    forward step the actor holds is chosen and resolves to a no-op; an actor
    holding none gets the finalizing edge's action and is refused.
    """
    lattice = get_lattice(family)
    for edge in lattice.edges_from(state):
        if edge.kind in (ActionKind.APPROVE, ActionKind.PAY):
            return edge.action

    steps = [e for e in lattice.edges if e.kind in (ActionKind.APPROVE, ActionKind.PAY)]
    for edge in reversed(steps):
        if dominates(actor_tier, edge.required_tier):
            return edge.action
    return next(e.action for e in lattice.edges if e.finalizes)


def resolve_reject_action(family: Family, state: State) -> Action:
    """Pick the rejection action for ``state`` (branch-stage when none applies)."""
    lattice = get_lattice(family)
    for edge in lattice.edges_from(state):
        if edge.kind == ActionKind.REJECT:
            return edge.action
    return Action.BRANCH_REJECT


def pending_states_for_tier(family: Family, tier: Tier) -> tuple[State, ...]:
    """States whose next forward step is performed by ``tier``.

    ADMIN sees every state that awaits an approval or disbursal.
    """
    lattice = get_lattice(family)
    states = []
    for edge in lattice.edges:
        if edge.kind not in (ActionKind.APPROVE, ActionKind.PAY):
            continue
        if tier == Tier.ADMIN or edge.required_tier == tier:
            if edge.from_state not in states:
                states.append(edge.from_state)
    return tuple(states)


def is_terminal(family: Family, state: State) -> bool:
    return state == get_lattice(family).finalizing_state


def is_correctable(family: Family, state: State, rejection_reason: str | None) -> bool:
    """A document is correctable only while parked in Draft after a rejection."""
    return (
        state == get_lattice(family).correctable_state
        and rejection_reason is not None
    )


def is_valid_walk(family: Family, steps: list[tuple[State, State, Action]]) -> bool:
    """Check a history walk against the lattice.

    ``steps`` is an ordered list of ``(from_state, to_state, action)``.  The
    first step must start at the initial state and each step must start where
    the previous one ended.
    """
    lattice = get_lattice(family)
    expected = lattice.initial_state
    for from_state, to_state, action in steps:
        if from_state != expected:
            return False
        edge = lattice.edge_for(from_state, action)
        if edge is None or edge.to_state != to_state:
            return False
        expected = to_state
    return True
