"""
Module: approval_kernel.models.ledger
Responsibility: ORM persistence for the ledger effect recorded when a
    document finalizes.

Architecture position: Kernel > Models.  May import from db/ and exceptions.

Invariants enforced:
    - At most one effect per document: UNIQUE(document_id, family) and a
      unique ledger_key.  A concurrent second insert fails at the database
      and is resolved by the ledger service as "already applied".
    - Effects are immutable once written.

Failure modes:
    - IntegrityError on a duplicate effect.
    - ImmutabilityViolationError on UPDATE/DELETE.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Text, UniqueConstraint, event
from sqlalchemy.orm import Mapped, mapped_column

from approval_kernel.db.base import Base, UUIDString
from approval_kernel.db.types import ExternalId, Label, ShortCode, normalize_money
from approval_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from approval_kernel.domain.documents import LedgerEffect


class LedgerEffectModel(Base):
    """Persistent ledger effect. Written once, never changed."""

    __tablename__ = "ledger_effects"

    __table_args__ = (
        UniqueConstraint(
            "document_id", "family",
            name="uq_ledger_effects_document",
        ),
        CheckConstraint(
            "direction IN ('income', 'expense', 'none')",
            name="ck_ledger_effects_direction",
        ),
    )

    document_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("workflow_documents.id"),
        nullable=False,
    )
    family: Mapped[ShortCode] = mapped_column(nullable=False)
    ledger_key: Mapped[Label] = mapped_column(nullable=False, unique=True)
    direction: Mapped[ShortCode] = mapped_column(nullable=False)
    category: Mapped[ShortCode] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    applied_by: Mapped[ExternalId] = mapped_column(nullable=False)
    applied_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<LedgerEffect {self.ledger_key} {self.direction} {self.amount}>"

    def to_dto(self) -> LedgerEffect:
        """Convert ORM model to frozen domain DTO."""
        from approval_kernel.domain.documents import LedgerEffect as LedgerEffectDTO
        from approval_kernel.domain.workflow import Family

        return LedgerEffectDTO(
            document_id=self.document_id,
            family=Family(self.family),
            ledger_key=self.ledger_key,
            direction=self.direction,
            category=self.category,
            description=self.description,
            applied_by=self.applied_by,
            applied_at=self.applied_at,
            amount_applied=normalize_money(self.amount),
        )


@event.listens_for(LedgerEffectModel, "before_update")
def prevent_effect_update(mapper, connection, target):
    """Prevent updates to ledger effects."""
    raise ImmutabilityViolationError(
        entity_type="LedgerEffect",
        entity_id=target.ledger_key,
        reason="Ledger effects are immutable -- cannot modify",
    )


@event.listens_for(LedgerEffectModel, "before_delete")
def prevent_effect_delete(mapper, connection, target):
    """Prevent deletion of ledger effects."""
    raise ImmutabilityViolationError(
        entity_type="LedgerEffect",
        entity_id=target.ledger_key,
        reason="Ledger effects are immutable -- cannot delete",
    )
