"""Outer services layer: the workflow facade and notification seam."""

from approval_services.notifications import (
    LoggingNotificationSink,
    NotificationSink,
    RecordingNotificationSink,
)
from approval_services.workflow_service import ApprovalWorkflowService

__all__ = [
    "ApprovalWorkflowService",
    "LoggingNotificationSink",
    "NotificationSink",
    "RecordingNotificationSink",
]
