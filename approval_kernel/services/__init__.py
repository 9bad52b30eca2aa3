"""Kernel services -- write side of the workflow. Flush only, never commit."""

from approval_kernel.services.correction_service import CorrectionService
from approval_kernel.services.ledger_service import LedgerService
from approval_kernel.services.rejection_service import RejectionService
from approval_kernel.services.submission_service import SubmissionService
from approval_kernel.services.transition_service import TransitionService

__all__ = [
    "CorrectionService",
    "LedgerService",
    "RejectionService",
    "SubmissionService",
    "TransitionService",
]
