"""
approval_services.notifications -- Notification collaborator seam.

The workflow tells a ``NotificationSink`` about rejections and forward
moves after the transaction has committed.  Delivery (mail, chat, UI
banners) is somebody else's job; the default sink only logs.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from approval_kernel.domain.documents import AdvanceNotice, RejectionNotice
from approval_kernel.logging_config import get_logger

logger = get_logger("services.notifications")


@runtime_checkable
class NotificationSink(Protocol):
    """Receives committed workflow events."""

    def rejected(self, notice: RejectionNotice) -> None: ...

    def advanced(self, notice: AdvanceNotice) -> None: ...


class LoggingNotificationSink:
    """Default sink: one structured log line per event."""

    def rejected(self, notice: RejectionNotice) -> None:
        logger.info(
            "document_rejected_notice",
            extra={
                "document_id": str(notice.document_id),
                "family": notice.family.value,
                "submitted_by": notice.submitted_by,
                "rejected_by": notice.rejected_by,
                "reason": notice.reason,
            },
        )

    def advanced(self, notice: AdvanceNotice) -> None:
        logger.info(
            "document_advanced_notice",
            extra={
                "document_id": str(notice.document_id),
                "family": notice.family.value,
                "action": notice.action.value,
                "from_state": notice.from_state.value,
                "to_state": notice.to_state.value,
                "actor": notice.actor_id,
            },
        )


class RecordingNotificationSink:
    """Keeps every notice in memory, in order."""

    def __init__(self) -> None:
        self.rejections: list[RejectionNotice] = []
        self.advances: list[AdvanceNotice] = []

    def rejected(self, notice: RejectionNotice) -> None:
        self.rejections.append(notice)

    def advanced(self, notice: AdvanceNotice) -> None:
        self.advances.append(notice)
