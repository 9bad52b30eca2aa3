"""
approval_services.workflow_service -- The approval workflow facade.

Responsibility:
    The one entry point external callers use: submit, approve, reject, pay,
    resubmit, correct, the queue views and document lookups.  Each call
    runs in its own transaction; notifications go out only after commit.

Architecture position:
    Services layer.  Wires configuration (via bridges) into the kernel
    services and owns the transaction boundary (``session_scope``).

Invariants enforced:
    - One transaction per call: the state write, history append and
      ledger insert commit or roll back together.
    - A failing notification sink is logged and never undoes a committed
      transition.
    - Every call is logged under a fresh correlation id with the actor,
      document and family bound into the log context.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from contextlib import contextmanager
from typing import Any, Iterator, TypeVar
from uuid import UUID, uuid4

from sqlalchemy.orm import Session, sessionmaker

from approval_config import get_active_config
from approval_config.bridges import build_ledger_rules
from approval_config.schema import WorkflowConfiguration
from approval_kernel.db.engine import get_session_factory, session_scope
from approval_kernel.domain.actor import Actor
from approval_kernel.domain.clock import Clock, SystemClock
from approval_kernel.domain.documents import (
    AdvanceNotice,
    CorrectionItem,
    HistoryItem,
    LedgerEffect,
    PendingItem,
    RejectionNotice,
    TransitionResult,
    WorkflowDocument,
)
from approval_kernel.domain.state_machine import resolve_approve_action
from approval_kernel.domain.workflow import Action, Family, State
from approval_kernel.logging_config import LogContext, get_logger
from approval_kernel.selectors.queue_selector import QueueSelector
from approval_kernel.services.correction_service import CorrectionService
from approval_kernel.services.ledger_service import LedgerService
from approval_kernel.services.rejection_service import RejectionService
from approval_kernel.services.submission_service import SubmissionService
from approval_kernel.services.transition_service import TransitionService
from approval_services.notifications import LoggingNotificationSink, NotificationSink

logger = get_logger("services.workflow")

T = TypeVar("T")


class _Kernel:
    """Kernel services bound to one session."""

    def __init__(self, session: Session, rules, clock: Clock, config: WorkflowConfiguration):
        self.ledger = LedgerService(session, rules, clock)
        self.transitions = TransitionService(session, self.ledger, clock)
        self.submissions = SubmissionService(session, self.transitions, clock)
        self.rejections = RejectionService(session, self.transitions, clock)
        self.corrections = CorrectionService(session, self.transitions, clock)
        self.queue = QueueSelector(
            session,
            history_limit_default=config.queue.history_limit_default,
            history_limit_max=config.queue.history_limit_max,
        )


class ApprovalWorkflowService:
    """Facade over the approval workflow kernel.

    Args:
        session_factory: Defaults to the engine module's factory.
        config: Defaults to ``get_active_config()``.
        clock: Defaults to ``SystemClock``.
        notifier: Defaults to ``LoggingNotificationSink``.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        config: WorkflowConfiguration | None = None,
        clock: Clock | None = None,
        notifier: NotificationSink | None = None,
    ):
        self._config = config or get_active_config()
        self._factory = session_factory or get_session_factory()
        self._clock = clock or SystemClock()
        self._notifier = notifier or LoggingNotificationSink()
        self._rules = build_ledger_rules(self._config)

    @property
    def config(self) -> WorkflowConfiguration:
        return self._config

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def submit(self, family: Family, payload: Mapping[str, Any], submitter: Actor) -> UUID:
        with self._call(submitter, family=family):
            with self._transaction() as kernel:
                return kernel.submissions.submit(family, payload, submitter)

    def approve(self, document_id: UUID, family: Family, actor: Actor) -> TransitionResult:
        """Approve at whatever stage the document is waiting in.

        The actor must hold the tier of that stage, disbursal included.  On
        a finalized or paid document this is a harmless no-op
        (``changed=False``) that returns the existing ledger effect.
        """
        with self._call(actor, document_id, family):
            with self._transaction() as kernel:
                model = kernel.transitions.load(document_id, family)
                action = resolve_approve_action(family, State(model.state), actor.tier)
                result = kernel.transitions.transition(document_id, family, action, actor)
            self._notify_advanced(result, actor)
            return result

    def reject(
        self,
        document_id: UUID,
        family: Family,
        actor: Actor,
        reason: str | None,
    ) -> TransitionResult:
        """Send the document back to its submitter with ``reason``."""
        with self._call(actor, document_id, family):
            with self._transaction() as kernel:
                result, notice = kernel.rejections.reject(document_id, family, actor, reason)
            self._dispatch("rejected", self._notifier.rejected, notice)
            return result

    def pay(self, document_id: UUID, family: Family, actor: Actor) -> TransitionResult:
        """Record the disbursal of a validated payroll run."""
        return self._simple(document_id, family, Action.PAY, actor)

    def resubmit(self, document_id: UUID, family: Family, actor: Actor) -> TransitionResult:
        """Send a corrected document back into branch validation."""
        return self._simple(document_id, family, Action.SUBMIT, actor)

    def correct(
        self,
        document_id: UUID,
        family: Family,
        actor: Actor,
        changes: Mapping[str, Any],
    ) -> WorkflowDocument:
        with self._call(actor, document_id, family):
            with self._transaction() as kernel:
                return kernel.corrections.correct(document_id, family, actor, changes)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_pending(self, actor: Actor) -> list[PendingItem]:
        return self._read(actor, lambda k: k.queue.list_pending(actor))

    def list_history(self, actor: Actor, limit: int | None = None) -> list[HistoryItem]:
        return self._read(actor, lambda k: k.queue.list_history(actor, limit))

    def list_needing_correction(self, actor: Actor) -> list[CorrectionItem]:
        return self._read(actor, lambda k: k.queue.list_needing_correction(actor))

    def get_document(self, document_id: UUID, family: Family) -> WorkflowDocument:
        with self._transaction() as kernel:
            return kernel.transitions.load(document_id, family).to_dto()

    def get_ledger_effect(self, document_id: UUID, family: Family) -> LedgerEffect | None:
        with self._transaction() as kernel:
            return kernel.ledger.get_effect(document_id, family)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _simple(
        self,
        document_id: UUID,
        family: Family,
        action: Action,
        actor: Actor,
    ) -> TransitionResult:
        with self._call(actor, document_id, family):
            with self._transaction() as kernel:
                result = kernel.transitions.transition(document_id, family, action, actor)
            self._notify_advanced(result, actor)
            return result

    def _read(self, actor: Actor, query: Callable[[_Kernel], T]) -> T:
        with self._call(actor):
            with self._transaction() as kernel:
                return query(kernel)

    @contextmanager
    def _transaction(self) -> Iterator[_Kernel]:
        with session_scope(self._factory) as session:
            yield _Kernel(session, self._rules, self._clock, self._config)

    @contextmanager
    def _call(
        self,
        actor: Actor,
        document_id: UUID | None = None,
        family: Family | None = None,
    ) -> Iterator[None]:
        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=actor.actor_id,
            actor_tier=actor.tier,
            document_id=document_id,
            family=family,
        ):
            yield

    def _notify_advanced(self, result: TransitionResult, actor: Actor) -> None:
        if not result.changed:
            return
        notice = AdvanceNotice(
            document_id=result.document.id,
            family=result.document.family,
            action=result.action,
            from_state=result.from_state,
            to_state=result.to_state,
            actor_id=actor.actor_id,
            submitted_by=result.document.submitted_by,
            scope=result.document.scope,
        )
        self._dispatch("advanced", self._notifier.advanced, notice)

    def _dispatch(
        self,
        kind: str,
        deliver: Callable[[Any], None],
        notice: AdvanceNotice | RejectionNotice,
    ) -> None:
        try:
            deliver(notice)
        except Exception:
            logger.exception(
                "notification_failed",
                extra={"notification": kind, "document_id": str(notice.document_id)},
            )
