"""ORM models for the approval kernel."""

from approval_kernel.models.document import WorkflowDocumentModel, WorkflowHistoryModel
from approval_kernel.models.ledger import LedgerEffectModel

__all__ = [
    "WorkflowDocumentModel",
    "WorkflowHistoryModel",
    "LedgerEffectModel",
]
