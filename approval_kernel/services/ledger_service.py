"""
approval_kernel.services.ledger_service -- Exactly-once ledger effects.

Responsibility:
    Records the ledger effect of a document reaching its finalizing state:
    expense reports and payroll runs post an expense, invoices post income,
    transactions post in their own direction, and employee actions record
    a non-monetary activation.  How each family posts comes from
    ``LedgerPostingRule`` values built from configuration.

Architecture position:
    Kernel > Services.  Called by the TransitionService inside the same
    transaction as the state write and history append.

Invariants enforced:
    - At most one effect per document.  An existing row is returned
      unchanged with ``created=False``; the unique constraints on
      ``(document_id, family)`` and ``ledger_key`` are the backstop.

Failure modes:
    - ConfigurationError if no posting rule exists for the family.
    - IntegrityError propagates if a concurrent writer slipped past the
      transition compare-and-set; the caller's transaction rolls back.
"""

from __future__ import annotations

from collections.abc import Mapping
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from approval_kernel.domain.clock import Clock
from approval_kernel.domain.documents import LedgerEffect, LedgerPostingRule, WorkflowDocument
from approval_kernel.domain.labels import UNKNOWN_LABEL, context_label, scope_label
from approval_kernel.domain.workflow import Family
from approval_kernel.exceptions import ConfigurationError
from approval_kernel.logging_config import get_logger
from approval_kernel.models.ledger import LedgerEffectModel
from approval_kernel.services.base import BaseService
from approval_kernel.utils.idempotency import generate_ledger_key

logger = get_logger("services.ledger")

# Rule direction that defers to the document's own "direction" field.
DOCUMENT_DIRECTION = "document"
LEDGER_DIRECTIONS = frozenset({"income", "expense", "none", DOCUMENT_DIRECTION})

# Placeholders available to description templates.
DESCRIPTION_FIELDS: tuple[str, ...] = (
    "family", "document_id", "description", "context_label", "scope_label", "amount",
)


def resolve_direction(rule: LedgerPostingRule, document: WorkflowDocument) -> str:
    if rule.direction == DOCUMENT_DIRECTION:
        return document.payload.get("direction") or "expense"
    return rule.direction


def render_description(rule: LedgerPostingRule, document: WorkflowDocument) -> str:
    """Fill the rule's description template from the document."""
    fields = {
        "family": document.family.value,
        "document_id": str(document.id),
        "description": document.description or UNKNOWN_LABEL,
        "context_label": context_label(document),
        "scope_label": scope_label(document),
        "amount": "" if document.amount is None else str(document.amount),
    }
    return rule.description_template.format_map(fields)


class LedgerService(BaseService[LedgerEffectModel]):
    """Applies and looks up ledger effects."""

    def __init__(
        self,
        session: Session,
        rules: Mapping[Family, LedgerPostingRule],
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._rules = dict(rules)

    def get_effect(self, document_id: UUID, family: Family) -> LedgerEffect | None:
        model = self._find(document_id, family)
        return model.to_dto() if model is not None else None

    def apply_effect(
        self,
        document: WorkflowDocument,
        applied_by: str,
    ) -> tuple[LedgerEffect, bool]:
        """Record the ledger effect of ``document`` once.

        Returns:
            ``(effect, created)``; ``created`` is False when the effect
            already existed.
        """
        existing = self._find(document.id, document.family)
        if existing is not None:
            logger.info(
                "ledger_effect_already_applied",
                extra={
                    "document_id": str(document.id),
                    "family": document.family.value,
                    "ledger_key": existing.ledger_key,
                },
            )
            return existing.to_dto(), False

        rule = self._rules.get(document.family)
        if rule is None:
            raise ConfigurationError(
                "ledger_postings",
                f"no posting rule for family {document.family.value!r}",
            )

        model = LedgerEffectModel(
            document_id=document.id,
            family=document.family.value,
            ledger_key=generate_ledger_key(document.family.value, document.id),
            direction=resolve_direction(rule, document),
            category=rule.category,
            description=render_description(rule, document),
            amount=document.amount,
            applied_by=applied_by,
            applied_at=self.clock.now(),
        )
        self.session.add(model)
        self.session.flush()

        logger.info(
            "ledger_effect_applied",
            extra={
                "document_id": str(document.id),
                "family": document.family.value,
                "ledger_key": model.ledger_key,
                "direction": model.direction,
                "category": model.category,
                "amount": str(document.amount) if document.amount is not None else None,
            },
        )
        return model.to_dto(), True

    def _find(self, document_id: UUID, family: Family) -> LedgerEffectModel | None:
        return self.session.execute(
            select(LedgerEffectModel).where(
                LedgerEffectModel.document_id == document_id,
                LedgerEffectModel.family == family.value,
            )
        ).scalar_one_or_none()
