"""
Queue display labels (``approval_kernel.domain.labels``).

Each family renders a one-line context label for the approval queue.
Missing optional relations (branch name, client, employee names) render as
``UNKNOWN_LABEL`` rather than failing the whole queue.
"""

from __future__ import annotations

from collections.abc import Callable

from approval_kernel.domain.documents import WorkflowDocument
from approval_kernel.domain.workflow import Family

UNKNOWN_LABEL = "Unknown"


def _field(document: WorkflowDocument, key: str) -> str:
    value = document.payload.get(key)
    if value is None or str(value).strip() == "":
        return UNKNOWN_LABEL
    return str(value)


def scope_label(document: WorkflowDocument) -> str:
    return document.scope_label or document.scope or UNKNOWN_LABEL


def submitter_label(document: WorkflowDocument) -> str:
    return document.submitter_label or document.submitted_by or UNKNOWN_LABEL


def _described(document: WorkflowDocument) -> str:
    description = document.description or UNKNOWN_LABEL
    return f"{description} ({scope_label(document)})"


def _invoice(document: WorkflowDocument) -> str:
    return f"Invoice #{_field(document, 'number')} ({scope_label(document)})"


def _payroll(document: WorkflowDocument) -> str:
    month = document.payload.get("month")
    year = document.payload.get("year")
    if month is None or year is None:
        period = UNKNOWN_LABEL
    else:
        period = f"{int(month):02d}/{year}"
    return f"Payroll {period} - {scope_label(document)}"


def _employee_action(document: WorkflowDocument) -> str:
    name = f"{_field(document, 'first_name')} {_field(document, 'last_name')}"
    if document.payload.get("kind") == "reassignment":
        return f"{name} -> {_field(document, 'target_scope')}"
    return f"{name} - {_field(document, 'position')}"


_CONTEXT_LABELS: dict[Family, Callable[[WorkflowDocument], str]] = {
    Family.EXPENSE_REPORT: _described,
    Family.INVOICE: _invoice,
    Family.TRANSACTION: _described,
    Family.PAYROLL_RUN: _payroll,
    Family.EMPLOYEE_ACTION: _employee_action,
}


def context_label(document: WorkflowDocument) -> str:
    """One-line description of ``document`` for queue and history views."""
    return _CONTEXT_LABELS[document.family](document)
