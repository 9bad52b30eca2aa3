"""
ORM-level immutability of documents, history and ledger effects.

History and ledger rows are append-only; a document's family and
submitter are write-once and documents are never deleted.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from approval_kernel.domain.workflow import Action, Family
from approval_kernel.exceptions import ImmutabilityViolationError
from approval_kernel.models.document import WorkflowDocumentModel, WorkflowHistoryModel
from approval_kernel.models.ledger import LedgerEffectModel


@pytest.fixture
def document(session, submission_service, submitter, expense_payload):
    doc_id = submission_service.submit(Family.EXPENSE_REPORT, expense_payload(), submitter)
    return session.get(WorkflowDocumentModel, doc_id)


@pytest.fixture
def finalized(session, document, transition_service, branch_manager, central):
    transition_service.transition(document.id, Family.EXPENSE_REPORT, Action.BRANCH_APPROVE, branch_manager)
    transition_service.transition(document.id, Family.EXPENSE_REPORT, Action.CENTRAL_APPROVE, central)
    return document


class TestDocumentModel:

    def test_family_is_write_once(self, session, document):
        document.family = Family.INVOICE.value
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_submitter_is_write_once(self, session, document):
        document.submitted_by = "someone.else"
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert "submitted_by" in exc_info.value.reason

    def test_other_fields_may_change(self, session, document):
        document.scope_label = "Plateau (renamed)"
        session.flush()
        assert document.to_dto().scope_label == "Plateau (renamed)"

    def test_documents_cannot_be_deleted(self, session, document):
        session.delete(document)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_repr(self, document):
        assert "expense_report" in repr(document)
        assert "branch_pending" in repr(document)


class TestHistoryModel:

    def test_history_cannot_be_modified(self, session, document):
        entry = document.history[0]
        entry.reason = "rewritten"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_history_cannot_be_deleted(self, session, document):
        session.delete(document.history[0])
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_duplicate_sequence_rejected(self, session, document, deterministic_clock):
        session.add(
            WorkflowHistoryModel(
                document_id=document.id,
                sequence=1,
                actor_id="intruder",
                action=Action.SUBMIT.value,
                from_state="draft",
                to_state="branch_pending",
                occurred_at=deterministic_clock.now(),
            )
        )
        with pytest.raises(IntegrityError):
            session.flush()


class TestLedgerEffectModel:

    def _effect(self, session, document_id) -> LedgerEffectModel:
        return session.query(LedgerEffectModel).filter_by(document_id=document_id).one()

    def test_effect_cannot_be_modified(self, session, finalized):
        effect = self._effect(session, finalized.id)
        effect.category = "other"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_effect_cannot_be_deleted(self, session, finalized):
        session.delete(self._effect(session, finalized.id))
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_second_effect_for_document_rejected(self, session, finalized, deterministic_clock):
        session.add(
            LedgerEffectModel(
                document_id=finalized.id,
                family=Family.EXPENSE_REPORT.value,
                ledger_key=f"expense_report:{finalized.id}:again",
                direction="expense",
                category="expense_report",
                description="duplicate",
                applied_by="intruder",
                applied_at=deterministic_clock.now(),
            )
        )
        with pytest.raises(IntegrityError):
            session.flush()

    def test_dto_normalizes_amount(self, session, finalized):
        effect = self._effect(session, finalized.id).to_dto()
        assert str(effect.amount_applied) == "50000"
