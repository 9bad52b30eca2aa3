"""Tests for in-place correction of rejected documents."""

from decimal import Decimal

import pytest

from approval_kernel.domain.workflow import Action, Family, State
from approval_kernel.exceptions import (
    InvalidTransitionError,
    PermissionDeniedError,
    ValidationError,
)


@pytest.fixture
def rejected_expense(submission_service, rejection_service, submitter, branch_manager, expense_payload):
    doc_id = submission_service.submit(Family.EXPENSE_REPORT, expense_payload(), submitter)
    rejection_service.reject(doc_id, Family.EXPENSE_REPORT, branch_manager, "Receipt missing")
    return doc_id


class TestCorrect:

    def test_owner_corrects_fields_in_place(self, correction_service, rejected_expense, submitter):
        corrected = correction_service.correct(
            rejected_expense, Family.EXPENSE_REPORT, submitter,
            {"amount": "45000", "receipt": "R-881"},
        )

        assert corrected.id == rejected_expense
        assert corrected.state == State.DRAFT
        assert corrected.amount == Decimal("45000")
        assert corrected.description == "Fuel for site visits"
        assert corrected.payload == {"receipt": "R-881"}
        assert corrected.rejection_reason == "Receipt missing"
        assert corrected.version == 4

    def test_correction_adds_no_history(self, correction_service, rejected_expense, submitter):
        corrected = correction_service.correct(
            rejected_expense, Family.EXPENSE_REPORT, submitter, {"description": "Fuel, March"},
        )
        assert [h.action for h in corrected.history] == [Action.SUBMIT, Action.BRANCH_REJECT]

    def test_branch_reviewer_may_correct(self, correction_service, rejected_expense, branch_manager):
        corrected = correction_service.correct(
            rejected_expense, Family.EXPENSE_REPORT, branch_manager, {"amount": "1"},
        )
        assert corrected.amount == Decimal("1")

    def test_corrected_document_can_be_resubmitted(
        self, correction_service, transition_service, rejected_expense, submitter,
    ):
        correction_service.correct(rejected_expense, Family.EXPENSE_REPORT, submitter, {"amount": "45000"})
        result = transition_service.transition(
            rejected_expense, Family.EXPENSE_REPORT, Action.SUBMIT, submitter,
        )
        assert result.document.state == State.BRANCH_PENDING
        assert result.document.amount == Decimal("45000")
        assert result.document.rejection_reason is None

    def test_correction_is_logged(self, correction_service, rejected_expense, submitter, captured_logs):
        correction_service.correct(rejected_expense, Family.EXPENSE_REPORT, submitter, {"amount": "2"})
        records = [r for r in captured_logs() if r["message"] == "document_corrected"]
        assert records and records[0]["fields"] == ["amount"]


class TestCorrectErrors:

    def test_pending_document_is_not_correctable(
        self, correction_service, submission_service, submitter, expense_payload,
    ):
        doc_id = submission_service.submit(Family.EXPENSE_REPORT, expense_payload(), submitter)
        with pytest.raises(InvalidTransitionError) as exc_info:
            correction_service.correct(doc_id, Family.EXPENSE_REPORT, submitter, {"amount": "1"})
        assert exc_info.value.action == "correct"

    def test_other_submitter_is_denied(self, correction_service, rejected_expense, other_submitter):
        with pytest.raises(PermissionDeniedError):
            correction_service.correct(
                rejected_expense, Family.EXPENSE_REPORT, other_submitter, {"amount": "1"},
            )

    def test_other_branch_is_denied(self, correction_service, rejected_expense, other_branch_manager):
        with pytest.raises(PermissionDeniedError):
            correction_service.correct(
                rejected_expense, Family.EXPENSE_REPORT, other_branch_manager, {"amount": "1"},
            )

    def test_invalid_correction(self, correction_service, rejected_expense, submitter):
        with pytest.raises(ValidationError):
            correction_service.correct(rejected_expense, Family.EXPENSE_REPORT, submitter, {"amount": "-1"})

    def test_scope_cannot_be_corrected(self, correction_service, rejected_expense, submitter):
        with pytest.raises(ValidationError):
            correction_service.correct(
                rejected_expense, Family.EXPENSE_REPORT, submitter, {"scope": "bouake-centre"},
            )
