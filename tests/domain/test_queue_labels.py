"""Tests for per-family queue context labels."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from approval_kernel.domain.documents import WorkflowDocument
from approval_kernel.domain.labels import (
    UNKNOWN_LABEL,
    context_label,
    scope_label,
    submitter_label,
)
from approval_kernel.domain.workflow import Family, State


def make_document(family: Family, payload=None, **overrides) -> WorkflowDocument:
    values = dict(
        id=uuid4(),
        family=family,
        state=State.BRANCH_PENDING,
        submitted_by="awa.kone",
        submitted_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
        version=2,
        scope="abidjan-plateau",
        scope_label="Abidjan Plateau",
        amount=Decimal("1000"),
        description="Office chairs",
        payload=payload or {},
        submitter_label="Awa Kone",
    )
    values.update(overrides)
    return WorkflowDocument(**values)


class TestContextLabels:

    def test_expense_report(self):
        doc = make_document(Family.EXPENSE_REPORT)
        assert context_label(doc) == "Office chairs (Abidjan Plateau)"

    def test_invoice_uses_number(self):
        doc = make_document(Family.INVOICE, {"number": "F-0042"})
        assert context_label(doc) == "Invoice #F-0042 (Abidjan Plateau)"

    def test_invoice_without_number(self):
        doc = make_document(Family.INVOICE)
        assert context_label(doc) == f"Invoice #{UNKNOWN_LABEL} (Abidjan Plateau)"

    def test_payroll_period(self):
        doc = make_document(Family.PAYROLL_RUN, {"month": 3, "year": 2024})
        assert context_label(doc) == "Payroll 03/2024 - Abidjan Plateau"

    def test_payroll_missing_period(self):
        doc = make_document(Family.PAYROLL_RUN, {"year": 2024})
        assert context_label(doc) == f"Payroll {UNKNOWN_LABEL} - Abidjan Plateau"

    def test_recruitment(self):
        doc = make_document(
            Family.EMPLOYEE_ACTION,
            {"kind": "recruitment", "first_name": "Aminata", "last_name": "Traore", "position": "Cashier"},
        )
        assert context_label(doc) == "Aminata Traore - Cashier"

    def test_reassignment(self):
        doc = make_document(
            Family.EMPLOYEE_ACTION,
            {"kind": "reassignment", "first_name": "Aminata", "last_name": "Traore", "target_scope": "Bouake"},
        )
        assert context_label(doc) == "Aminata Traore -> Bouake"

    def test_missing_names_render_unknown(self):
        doc = make_document(Family.EMPLOYEE_ACTION, {"kind": "recruitment", "first_name": "  "})
        assert context_label(doc) == f"{UNKNOWN_LABEL} {UNKNOWN_LABEL} - {UNKNOWN_LABEL}"

    @pytest.mark.parametrize("family", list(Family))
    def test_every_family_renders_with_empty_payload(self, family):
        doc = make_document(family, scope=None, scope_label=None, description=None)
        assert isinstance(context_label(doc), str)


class TestFallbackLabels:

    def test_scope_label_falls_back_to_scope(self):
        doc = make_document(Family.TRANSACTION, scope_label=None)
        assert scope_label(doc) == "abidjan-plateau"

    def test_global_document_scope_is_unknown(self):
        doc = make_document(Family.TRANSACTION, scope=None, scope_label=None)
        assert scope_label(doc) == UNKNOWN_LABEL

    def test_submitter_label_falls_back_to_id(self):
        doc = make_document(Family.INVOICE, submitter_label=None)
        assert submitter_label(doc) == "awa.kone"
